from collections.abc import Sequence

from fireguide_payments.domain.entities.booking import Booking


class BookingRepo:
    """Repositorio de reservas con control de concurrencia optimista."""

    async def add(self, booking: Booking) -> Booking:
        raise NotImplementedError

    async def get(self, booking_ref: str) -> Booking | None:
        raise NotImplementedError

    async def save(self, booking: Booking, expected_version: int) -> Booking:
        """Persiste la reserva si la versión almacenada es expected_version.

        Raises:
            OptimisticLockError: Otra escritura ganó la carrera.
        """
        raise NotImplementedError

    async def find_by_session_ref(self, session_ref: str) -> Booking | None:
        raise NotImplementedError

    async def list_all(self) -> Sequence[Booking]:
        raise NotImplementedError
