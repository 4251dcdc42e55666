from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class DisbursementStatus(str, Enum):
    PAID = "PAID"
    FAILED = "FAILED"


@dataclass
class DisbursementResult:
    status: DisbursementStatus
    transfer_ref: str | None = None
    failure_reason: str | None = None


class DisbursementClient:
    async def payout(
        self,
        account_ref: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> DisbursementResult:
        raise NotImplementedError
