from collections import defaultdict

from fireguide_payments.application.interfaces.deliverable_store import DeliverableStore
from fireguide_payments.domain.constants import DeliverableType


class InMemoryDeliverableStore(DeliverableStore):
    def __init__(self) -> None:
        self.uploads: dict[str, set[DeliverableType]] = defaultdict(set)

    def upload(self, booking_ref: str, deliverable_type: DeliverableType) -> None:
        self.uploads[booking_ref].add(DeliverableType(deliverable_type))

    async def list_submitted(self, booking_ref: str) -> set[DeliverableType]:
        return set(self.uploads.get(booking_ref, set()))
