from functools import lru_cache
from typing import Any

from fastapi import Depends, Header

from fireguide_payments.application.commission_engine import CommissionEngine, resolve_default_rates
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.application.use_cases.admin import (
    AdminApproveRefundUseCase,
    AdminDenyRefundUseCase,
    AdminForcePayoutUseCase,
    AdminHoldPayoutUseCase,
    AdminOpenDisputeUseCase,
    AdminResolveDisputeUseCase,
    AdminResolveHeldPayoutUseCase,
    AdminUpdateCommissionRateUseCase,
    ListAuditRecordsUseCase,
    ListPaymentsUseCase,
    ListPayoutsUseCase,
)
from fireguide_payments.application.use_cases.apply_gateway_result import ApplyGatewayResultUseCase
from fireguide_payments.application.use_cases.cancel_booking import CancelBookingUseCase
from fireguide_payments.application.use_cases.create_booking import (
    CreateBookingUseCase,
    GetBookingUseCase,
    QuotePriceUseCase,
)
from fireguide_payments.application.use_cases.deliverables import (
    SubmitDeliverableUseCase,
    SyncDeliverablesUseCase,
)
from fireguide_payments.application.use_cases.payouts import (
    CheckPayoutEligibilityUseCase,
    CreatePayoutUseCase,
    ExecutePayoutUseCase,
    PayoutExecutor,
)
from fireguide_payments.application.use_cases.refunds import (
    ApplyRefundUseCase,
    ListRefundsUseCase,
    RefundApplier,
    RequestRefundUseCase,
)
from fireguide_payments.application.use_cases.start_checkout import StartCheckoutUseCase
from fireguide_payments.config import Settings, get_settings
from fireguide_payments.domain.value_objects.admin_identity import AdminIdentity
from fireguide_payments.infrastructure.circuit_breaker import (
    GuardedDisbursementClient,
    GuardedGatewayClient,
    create_breaker,
)
from fireguide_payments.infrastructure.in_memory import (
    InMemoryAuditLog,
    InMemoryBookingLocks,
    InMemoryBookingRepo,
    InMemoryCommissionRepo,
    InMemoryDeliverableStore,
    InMemoryIdempotencyRepo,
    InMemoryRefundRepo,
    StubDisbursementClient,
    StubGatewayClient,
)
from fireguide_payments.infrastructure.services import ClockImpl, IdGeneratorImpl


def build_bundle(
    settings: Settings,
    clock: Clock | None = None,
    id_generator: IdGenerator | None = None,
) -> dict[str, Any]:
    """Wires the in-memory adapters; money-movement clients go behind breakers when enabled."""
    clock = clock or ClockImpl()
    id_generator = id_generator or IdGeneratorImpl()
    gateway_stub = StubGatewayClient(webhook_secret=settings.gateway_webhook_secret)
    disbursement_stub = StubDisbursementClient()
    gateway_client = gateway_stub
    disbursement_client = disbursement_stub
    if settings.circuit_breaker_enabled:
        gateway_client = GuardedGatewayClient(
            gateway_stub,
            create_breaker(
                "gateway",
                fail_max=settings.gateway_breaker_fail_max,
                reset_timeout=settings.gateway_breaker_reset_timeout,
            ),
        )
        disbursement_client = GuardedDisbursementClient(
            disbursement_stub,
            create_breaker(
                "disbursement",
                fail_max=settings.disbursement_breaker_fail_max,
                reset_timeout=settings.disbursement_breaker_reset_timeout,
            ),
        )

    commission_repo = InMemoryCommissionRepo()
    return {
        "clock": clock,
        "id_generator": id_generator,
        "booking_repo": InMemoryBookingRepo(),
        "refund_repo": InMemoryRefundRepo(),
        "commission_repo": commission_repo,
        "idempotency_repo": InMemoryIdempotencyRepo(),
        "audit_log": InMemoryAuditLog(),
        "booking_locks": InMemoryBookingLocks(),
        "deliverable_store": InMemoryDeliverableStore(),
        "gateway_stub": gateway_stub,
        "disbursement_stub": disbursement_stub,
        "gateway_client": gateway_client,
        "disbursement_client": disbursement_client,
        "commission_engine": CommissionEngine(
            commission_repo=commission_repo,
            clock=clock,
            default_rates=resolve_default_rates(
                settings.default_commission_rate, settings.commission_rate_overrides
            ),
        ),
    }


def build_use_cases(bundle: dict[str, Any], settings: Settings) -> dict[str, Any]:
    booking_repo = bundle["booking_repo"]
    refund_repo = bundle["refund_repo"]
    audit_log = bundle["audit_log"]
    booking_locks = bundle["booking_locks"]
    clock = bundle["clock"]
    id_generator = bundle["id_generator"]
    refund_applier = RefundApplier(gateway_client=bundle["gateway_client"])
    payout_executor = PayoutExecutor(disbursement_client=bundle["disbursement_client"])
    admin_deps = {"audit_log": audit_log, "id_generator": id_generator, "clock": clock}

    return {
        "quote_price": QuotePriceUseCase(
            price_minimum=settings.price_minimum, price_maximum=settings.price_maximum
        ),
        "create_booking": CreateBookingUseCase(
            booking_repo=booking_repo,
            id_generator=id_generator,
            clock=clock,
            price_minimum=settings.price_minimum,
            price_maximum=settings.price_maximum,
        ),
        "get_booking": GetBookingUseCase(booking_repo=booking_repo),
        "start_checkout": StartCheckoutUseCase(
            booking_repo=booking_repo,
            commission_engine=bundle["commission_engine"],
            gateway_client=bundle["gateway_client"],
            id_generator=id_generator,
            clock=clock,
            booking_locks=booking_locks,
            price_minimum=settings.price_minimum,
            price_maximum=settings.price_maximum,
        ),
        "apply_gateway_result": ApplyGatewayResultUseCase(
            booking_repo=booking_repo,
            gateway_client=bundle["gateway_client"],
            idempotency_repo=bundle["idempotency_repo"],
            clock=clock,
            booking_locks=booking_locks,
        ),
        "submit_deliverable": SubmitDeliverableUseCase(
            booking_repo=booking_repo, clock=clock, booking_locks=booking_locks
        ),
        "sync_deliverables": SyncDeliverablesUseCase(
            booking_repo=booking_repo,
            deliverable_store=bundle["deliverable_store"],
            clock=clock,
            booking_locks=booking_locks,
        ),
        "cancel_booking": CancelBookingUseCase(
            booking_repo=booking_repo,
            id_generator=id_generator,
            clock=clock,
            booking_locks=booking_locks,
        ),
        "request_refund": RequestRefundUseCase(
            booking_repo=booking_repo,
            refund_repo=refund_repo,
            refund_applier=refund_applier,
            id_generator=id_generator,
            clock=clock,
            booking_locks=booking_locks,
            auto_approve=settings.auto_approve_refunds,
        ),
        "apply_refund": ApplyRefundUseCase(
            booking_repo=booking_repo,
            refund_repo=refund_repo,
            refund_applier=refund_applier,
            clock=clock,
            booking_locks=booking_locks,
        ),
        "list_refunds": ListRefundsUseCase(refund_repo=refund_repo),
        "check_payout_eligibility": CheckPayoutEligibilityUseCase(booking_repo=booking_repo),
        "create_payout": CreatePayoutUseCase(
            booking_repo=booking_repo, clock=clock, booking_locks=booking_locks
        ),
        "execute_payout": ExecutePayoutUseCase(
            booking_repo=booking_repo,
            payout_executor=payout_executor,
            clock=clock,
            booking_locks=booking_locks,
        ),
        "admin_approve_refund": AdminApproveRefundUseCase(
            booking_repo=booking_repo,
            refund_repo=refund_repo,
            refund_applier=refund_applier,
            booking_locks=booking_locks,
            **admin_deps,
        ),
        "admin_deny_refund": AdminDenyRefundUseCase(
            refund_repo=refund_repo, booking_locks=booking_locks, **admin_deps
        ),
        "admin_force_payout": AdminForcePayoutUseCase(
            booking_repo=booking_repo,
            payout_executor=payout_executor,
            booking_locks=booking_locks,
            **admin_deps,
        ),
        "admin_hold_payout": AdminHoldPayoutUseCase(
            booking_repo=booking_repo, booking_locks=booking_locks, **admin_deps
        ),
        "admin_resolve_held_payout": AdminResolveHeldPayoutUseCase(
            booking_repo=booking_repo, booking_locks=booking_locks, **admin_deps
        ),
        "admin_update_commission_rate": AdminUpdateCommissionRateUseCase(
            commission_engine=bundle["commission_engine"], **admin_deps
        ),
        "admin_open_dispute": AdminOpenDisputeUseCase(
            booking_repo=booking_repo, booking_locks=booking_locks, **admin_deps
        ),
        "admin_resolve_dispute": AdminResolveDisputeUseCase(
            booking_repo=booking_repo, booking_locks=booking_locks, **admin_deps
        ),
        "list_payments": ListPaymentsUseCase(booking_repo=booking_repo),
        "list_payouts": ListPayoutsUseCase(booking_repo=booking_repo),
        "list_audit_records": ListAuditRecordsUseCase(audit_log=audit_log),
        "commission_engine": bundle["commission_engine"],
    }


@lru_cache(maxsize=1)
def _in_memory_bundle() -> dict[str, Any]:
    settings = get_settings()
    bundle = build_bundle(settings)
    bundle["use_cases"] = build_use_cases(bundle, settings)
    return bundle


def get_bundle(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    if not settings.use_in_memory:
        # Persistent adapters are not part of this service yet.
        raise RuntimeError("Only the in-memory adapters are available (USE_IN_MEMORY=true)")
    return _in_memory_bundle()


def get_use_cases(bundle: dict[str, Any] = Depends(get_bundle)) -> dict[str, Any]:
    return bundle["use_cases"]


def get_admin_identity(
    admin_id: str | None = Header(default=None, alias="X-Admin-Id"),
    admin_roles: str | None = Header(default=None, alias="X-Admin-Roles"),
) -> AdminIdentity | None:
    """Caller identity for admin routes; authority is checked by the use cases."""
    if not admin_id:
        return None
    roles = frozenset(role.strip() for role in (admin_roles or "").split(",") if role.strip())
    return AdminIdentity(admin_id=admin_id, roles=roles)
