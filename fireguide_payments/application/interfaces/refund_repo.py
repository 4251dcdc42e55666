from collections.abc import Sequence

from fireguide_payments.domain.entities.refund_request import RefundRequest


class RefundRepo:
    async def get(self, refund_id: str) -> RefundRequest | None:
        raise NotImplementedError

    async def save(self, request: RefundRequest) -> None:
        raise NotImplementedError

    async def list_by_booking(self, booking_ref: str) -> Sequence[RefundRequest]:
        raise NotImplementedError

    async def list_pending(self) -> Sequence[RefundRequest]:
        raise NotImplementedError
