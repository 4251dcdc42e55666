from decimal import Decimal
from uuid import uuid4

from fireguide_payments.application.interfaces.disbursement_client import (
    DisbursementClient,
    DisbursementResult,
    DisbursementStatus,
)
from fireguide_payments.application.interfaces.gateway_client import GatewayError


class StubDisbursementClient(DisbursementClient):
    """
    In-memory disbursement rail.

    Accounts listed in `fail_accounts` are rejected with a FAILED result;
    `fail_next` raises GatewayError for the next N calls. Repeating an
    idempotency key returns the first result.
    """

    def __init__(self) -> None:
        self.results: dict[str, DisbursementResult] = {}
        self.transfers: list[tuple[str, Decimal, str]] = []
        self.fail_accounts: set[str] = set()
        self.fail_next = 0

    async def payout(
        self,
        account_ref: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> DisbursementResult:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise GatewayError("Simulated disbursement outage", operation="payout")
        if idempotency_key in self.results:
            return self.results[idempotency_key]

        if account_ref in self.fail_accounts:
            result = DisbursementResult(
                status=DisbursementStatus.FAILED,
                failure_reason=f"account {account_ref} rejected the transfer",
            )
        else:
            result = DisbursementResult(
                status=DisbursementStatus.PAID,
                transfer_ref=f"tr_{uuid4().hex[:14]}",
            )
            self.transfers.append((account_ref, amount, idempotency_key))
        self.results[idempotency_key] = result
        return result
