import copy
from typing import Sequence

from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.domain.entities.booking import Booking
from fireguide_payments.domain.errors import BookingNotFoundError, OptimisticLockError


class InMemoryBookingRepo(BookingRepo):
    """Stores deep copies so callers only publish changes through save()."""

    def __init__(self) -> None:
        self.bookings: dict[str, Booking] = {}
        self._sessions: dict[str, str] = {}

    async def add(self, booking: Booking) -> Booking:
        if booking.booking_ref in self.bookings:
            raise ValueError("Booking ref already exists")
        stored = copy.deepcopy(booking)
        self.bookings[booking.booking_ref] = stored
        self._index_sessions(stored)
        return copy.deepcopy(stored)

    async def get(self, booking_ref: str) -> Booking | None:
        booking = self.bookings.get(booking_ref)
        return copy.deepcopy(booking) if booking is not None else None

    async def save(self, booking: Booking, expected_version: int) -> Booking:
        current = self.bookings.get(booking.booking_ref)
        if current is None:
            raise BookingNotFoundError(booking.booking_ref)
        if current.version != expected_version:
            raise OptimisticLockError(
                booking_ref=booking.booking_ref,
                expected_version=expected_version,
                actual_version=current.version,
            )
        stored = copy.deepcopy(booking)
        stored.version = expected_version + 1
        self.bookings[booking.booking_ref] = stored
        self._index_sessions(stored)
        return copy.deepcopy(stored)

    async def find_by_session_ref(self, session_ref: str) -> Booking | None:
        booking_ref = self._sessions.get(session_ref)
        return await self.get(booking_ref) if booking_ref else None

    async def list_all(self) -> Sequence[Booking]:
        return [copy.deepcopy(b) for b in self.bookings.values()]

    def _index_sessions(self, booking: Booking) -> None:
        for payment in [booking.payment, *booking.previous_payments]:
            if payment is not None and payment.session_ref:
                self._sessions[payment.session_ref] = booking.booking_ref
