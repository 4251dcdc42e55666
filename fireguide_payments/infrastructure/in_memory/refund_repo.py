import copy
from typing import Sequence

from fireguide_payments.application.interfaces.refund_repo import RefundRepo
from fireguide_payments.domain.entities.refund_request import RefundRequest, RefundStatus


class InMemoryRefundRepo(RefundRepo):
    def __init__(self) -> None:
        self.requests: dict[str, RefundRequest] = {}

    async def get(self, refund_id: str) -> RefundRequest | None:
        request = self.requests.get(refund_id)
        return copy.deepcopy(request) if request is not None else None

    async def save(self, request: RefundRequest) -> None:
        self.requests[request.refund_id] = copy.deepcopy(request)

    async def list_by_booking(self, booking_ref: str) -> Sequence[RefundRequest]:
        return [copy.deepcopy(r) for r in self.requests.values() if r.booking_ref == booking_ref]

    async def list_pending(self) -> Sequence[RefundRequest]:
        return [
            copy.deepcopy(r) for r in self.requests.values() if r.status == RefundStatus.PENDING
        ]
