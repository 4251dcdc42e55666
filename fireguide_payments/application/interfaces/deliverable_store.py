from fireguide_payments.domain.constants import DeliverableType


class DeliverableStore:
    """Almacén externo donde los profesionales suben sus entregables."""

    async def list_submitted(self, booking_ref: str) -> set[DeliverableType]:
        raise NotImplementedError
