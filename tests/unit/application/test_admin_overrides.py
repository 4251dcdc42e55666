"""Operaciones administrativas: autoridad, auditoría y efectos sobre la liquidación."""

import asyncio
from decimal import Decimal

import pytest

from fireguide_payments.application.use_cases.admin import PayoutResolution
from fireguide_payments.domain.constants import RefundReason, ServiceType
from fireguide_payments.domain.entities.audit_record import AuditAction
from fireguide_payments.domain.entities.payment import PaymentStatus
from fireguide_payments.domain.entities.payout import PayoutStatus
from fireguide_payments.domain.entities.refund_request import RefundStatus, RequesterType
from fireguide_payments.domain.errors import (
    InsufficientAuthorityError,
    InvalidRateError,
    InvalidStateError,
    NotEligibleError,
)
from fireguide_payments.domain.status_machine import BookingStatus


async def _pending_refund(use_cases, booking_ref, amount="120.00"):
    outcome = await use_cases["request_refund"].execute(
        booking_ref,
        amount=Decimal(amount),
        reason=RefundReason.SERVICE_NOT_DELIVERED,
        requester_id="cust-1",
        requester_type=RequesterType.CUSTOMER,
    )
    assert outcome.applied is False
    return outcome.request


class TestAuthority:
    async def test_every_override_rejects_non_admin(self, flow, use_cases, not_admin):
        booking = await flow.paid_booking()
        ref = booking.booking_ref
        calls = [
            use_cases["admin_approve_refund"].execute(not_admin, "ref_000001"),
            use_cases["admin_deny_refund"].execute(not_admin, "ref_000001"),
            use_cases["admin_force_payout"].execute(not_admin, ref, account_ref="a", reason="r"),
            use_cases["admin_hold_payout"].execute(not_admin, ref, reason="r"),
            use_cases["admin_resolve_held_payout"].execute(
                not_admin, ref, resolution=PayoutResolution.RELEASE
            ),
            use_cases["admin_update_commission_rate"].execute(
                not_admin, ServiceType.FRA, rate=Decimal("0.10")
            ),
            use_cases["admin_open_dispute"].execute(not_admin, ref, reason="r"),
            use_cases["admin_resolve_dispute"].execute(not_admin, ref, resolution="r"),
            use_cases["list_payments"].execute(not_admin),
            use_cases["list_payouts"].execute(not_admin),
            use_cases["list_audit_records"].execute(not_admin),
        ]
        for call in calls:
            with pytest.raises(InsufficientAuthorityError):
                await call

    async def test_missing_identity_is_rejected(self, use_cases):
        with pytest.raises(InsufficientAuthorityError):
            await use_cases["list_payments"].execute(None)

    async def test_rejected_call_changes_nothing(self, flow, use_cases, bundle, not_admin):
        booking = await flow.completed_booking()
        with pytest.raises(InsufficientAuthorityError):
            await use_cases["admin_hold_payout"].execute(not_admin, booking.booking_ref, reason="r")
        after = await use_cases["get_booking"].execute(booking.booking_ref)
        assert after.version == booking.version
        assert bundle["audit_log"].records == []


class TestRefundResolution:
    async def test_admin_approval_applies_refund(self, flow, use_cases, admin, bundle):
        booking = await flow.paid_booking()
        request = await _pending_refund(use_cases, booking.booking_ref)

        outcome = await use_cases["admin_approve_refund"].execute(admin, request.refund_id, note="ok")

        assert outcome.applied is True
        assert outcome.request.status == RefundStatus.APPROVED
        assert outcome.request.resolved_by == "admin-1"
        assert outcome.payment_status == PaymentStatus.PARTIALLY_REFUNDED.value
        assert [r.action for r in bundle["audit_log"].records] == [AuditAction.APPROVE_REFUND]

    async def test_denied_request_cannot_be_approved(self, flow, use_cases, admin):
        booking = await flow.paid_booking()
        request = await _pending_refund(use_cases, booking.booking_ref)

        denied = await use_cases["admin_deny_refund"].execute(admin, request.refund_id, note="no")
        assert denied.status == RefundStatus.DENIED

        with pytest.raises(InvalidStateError):
            await use_cases["admin_approve_refund"].execute(admin, request.refund_id)
        booking = await use_cases["get_booking"].execute(booking.booking_ref)
        assert booking.payment.refunded_amount == Decimal("0")

    async def test_concurrent_approve_and_deny_resolve_once(
        self, flow, use_cases, admin, bundle, monkeypatch
    ):
        booking = await flow.paid_booking()
        request = await _pending_refund(use_cases, booking.booking_ref, "50.00")

        refund_repo = bundle["refund_repo"]
        original_get = refund_repo.get

        async def slow_get(refund_id):
            await asyncio.sleep(0)
            return await original_get(refund_id)

        monkeypatch.setattr(refund_repo, "get", slow_get)

        results = await asyncio.gather(
            use_cases["admin_approve_refund"].execute(admin, request.refund_id),
            use_cases["admin_deny_refund"].execute(admin, request.refund_id),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidStateError)
        assert len(bundle["audit_log"].records) == 1

        stored = await original_get(request.refund_id)
        booking = await use_cases["get_booking"].execute(booking.booking_ref)
        if stored.status == RefundStatus.APPROVED:
            assert bundle["audit_log"].records[0].action == AuditAction.APPROVE_REFUND
            assert booking.payment.refunded_amount == Decimal("50.00")
        else:
            assert stored.status == RefundStatus.DENIED
            assert bundle["audit_log"].records[0].action == AuditAction.DENY_REFUND
            assert booking.payment.refunded_amount == Decimal("0")

    async def test_pending_queue_lists_unresolved_requests(self, flow, use_cases, admin):
        booking = await flow.paid_booking()
        first = await _pending_refund(use_cases, booking.booking_ref, "10.00")
        second = await _pending_refund(use_cases, booking.booking_ref, "20.00")
        await use_cases["admin_deny_refund"].execute(admin, first.refund_id)

        pending = await use_cases["list_refunds"].execute()
        assert [r.refund_id for r in pending] == [second.refund_id]


class TestPayoutOverrides:
    async def test_force_payout_skips_deliverables(self, flow, use_cases, admin, bundle):
        booking = await flow.paid_booking()

        payout = await use_cases["admin_force_payout"].execute(
            admin, booking.booking_ref, account_ref="acct-1", reason="report lost by courier"
        )

        assert payout.status == PayoutStatus.PAID
        assert payout.amount == Decimal("255.00")
        assert payout.forced_by == "admin-1"
        booking = await use_cases["get_booking"].execute(booking.booking_ref)
        assert booking.status == BookingStatus.CLOSED
        assert bundle["audit_log"].records[-1].action == AuditAction.FORCE_PAYOUT

    async def test_force_payout_never_exceeds_ceiling(self, flow, use_cases, admin):
        booking = await flow.paid_booking()
        await use_cases["request_refund"].execute(
            booking.booking_ref,
            amount=Decimal("100.00"),
            reason=RefundReason.PROFESSIONAL_CANCELLED,
            requester_id="pro-1",
            requester_type=RequesterType.PROFESSIONAL,
        )
        payout = await use_cases["admin_force_payout"].execute(
            admin, booking.booking_ref, account_ref="acct-1", reason="partial service"
        )
        assert payout.amount == Decimal("155.00")

    async def test_force_payout_requires_paid_booking(self, flow, use_cases, admin):
        booking = await flow.create()
        with pytest.raises(InvalidStateError):
            await use_cases["admin_force_payout"].execute(
                admin, booking.booking_ref, account_ref="acct-1", reason="r"
            )

    async def test_hold_then_release_returns_to_eligible(self, flow, use_cases, admin):
        booking = await flow.completed_booking()
        booking = await use_cases["admin_hold_payout"].execute(
            admin, booking.booking_ref, reason="customer complaint"
        )
        assert booking.payout.status == PayoutStatus.HELD

        with pytest.raises(NotEligibleError):
            await use_cases["create_payout"].execute(booking.booking_ref, account_ref="acct-1")

        booking = await use_cases["admin_resolve_held_payout"].execute(
            admin, booking.booking_ref, resolution=PayoutResolution.RELEASE, reason="resolved"
        )
        assert booking.payout.status == PayoutStatus.ELIGIBLE
        assert booking.payout.hold_reason is None

    async def test_hold_before_payout_exists_blocks_promotion(self, flow, use_cases, admin):
        booking = await flow.paid_booking()
        await use_cases["admin_hold_payout"].execute(admin, booking.booking_ref, reason="audit")

        booking = await flow.deliver(booking.booking_ref)
        assert booking.status == BookingStatus.COMPLETED
        assert booking.payout is None

        booking = await use_cases["admin_resolve_held_payout"].execute(
            admin, booking.booking_ref, resolution=PayoutResolution.RELEASE
        )
        assert booking.payout.status == PayoutStatus.ELIGIBLE

    async def test_release_after_partial_refund_recaps_amount(self, flow, use_cases, admin):
        booking = await flow.completed_booking()
        await use_cases["create_payout"].execute(booking.booking_ref, account_ref="acct-1")
        await use_cases["request_refund"].execute(
            booking.booking_ref,
            amount=Decimal("100.00"),
            reason=RefundReason.PROFESSIONAL_CANCELLED,
            requester_id="pro-1",
            requester_type=RequesterType.PROFESSIONAL,
        )

        booking = await use_cases["admin_resolve_held_payout"].execute(
            admin, booking.booking_ref, resolution=PayoutResolution.RELEASE
        )
        assert booking.payout.status == PayoutStatus.SCHEDULED
        assert booking.payout.amount == Decimal("155.00")

        payout = await use_cases["execute_payout"].execute(booking.booking_ref)
        assert payout.status == PayoutStatus.PAID
        assert payout.amount == Decimal("155.00")

    async def test_clawback_cancels_held_payout(self, flow, use_cases, admin, bundle):
        booking = await flow.completed_booking()
        await use_cases["admin_hold_payout"].execute(admin, booking.booking_ref, reason="fraud")
        booking = await use_cases["admin_resolve_held_payout"].execute(
            admin, booking.booking_ref, resolution=PayoutResolution.CLAWBACK, reason="fraud"
        )
        assert booking.payout.status == PayoutStatus.CANCELLED
        assert [r.action for r in bundle["audit_log"].records] == [
            AuditAction.HOLD_PAYOUT,
            AuditAction.CLAWBACK_PAYOUT,
        ]

    async def test_resolving_payout_that_is_not_held(self, flow, use_cases, admin):
        booking = await flow.completed_booking()
        with pytest.raises(InvalidStateError):
            await use_cases["admin_resolve_held_payout"].execute(
                admin, booking.booking_ref, resolution=PayoutResolution.RELEASE
            )


class TestDisputes:
    async def test_dispute_holds_payout_until_explicit_release(self, flow, use_cases, admin):
        booking = await flow.completed_booking()
        booking = await use_cases["admin_open_dispute"].execute(
            admin, booking.booking_ref, reason="quality"
        )
        assert booking.payout.status == PayoutStatus.HELD
        assert booking.dispute_open is True

        with pytest.raises(NotEligibleError):
            await use_cases["admin_resolve_held_payout"].execute(
                admin, booking.booking_ref, resolution=PayoutResolution.RELEASE
            )

        booking = await use_cases["admin_resolve_dispute"].execute(
            admin, booking.booking_ref, resolution="professional upheld"
        )
        assert booking.dispute_open is False
        assert booking.payout.status == PayoutStatus.HELD

        booking = await use_cases["admin_resolve_held_payout"].execute(
            admin, booking.booking_ref, resolution=PayoutResolution.RELEASE
        )
        assert booking.payout.status == PayoutStatus.ELIGIBLE

    async def test_dispute_blocks_eligibility(self, flow, use_cases, admin):
        booking = await flow.paid_booking()
        await use_cases["admin_open_dispute"].execute(admin, booking.booking_ref, reason="no show")
        booking = await flow.deliver(booking.booking_ref)
        assert booking.payout is None
        eligibility = await use_cases["check_payout_eligibility"].execute(booking.booking_ref)
        assert "DISPUTE_OPEN" in eligibility.reason_codes()

    async def test_resolving_without_dispute_is_rejected(self, flow, use_cases, admin):
        booking = await flow.paid_booking()
        with pytest.raises(InvalidStateError):
            await use_cases["admin_resolve_dispute"].execute(admin, booking.booking_ref, resolution="x")


class TestCommissionRates:
    async def test_new_rate_applies_only_to_new_checkouts(self, flow, use_cases, admin):
        first = await flow.create()
        before = await use_cases["start_checkout"].execute(first.booking_ref)

        config = await use_cases["admin_update_commission_rate"].execute(
            admin, ServiceType.EXTINGUISHER, rate=Decimal("0.20"), reason="pricing review"
        )
        assert config.version == 2

        second = await flow.create()
        after = await use_cases["start_checkout"].execute(second.booking_ref)

        assert before.commission_amount == Decimal("45.00")
        assert after.commission_amount == Decimal("60.00")
        first = await use_cases["get_booking"].execute(first.booking_ref)
        assert first.payment.commission_rate == Decimal("0.15")
        assert first.payment.commission_version == 1

        history = await use_cases["commission_engine"].history(ServiceType.EXTINGUISHER)
        assert [c.version for c in history] == [1, 2]

    async def test_invalid_rate_is_rejected_without_new_version(self, use_cases, admin):
        with pytest.raises(InvalidRateError):
            await use_cases["admin_update_commission_rate"].execute(
                admin, ServiceType.FRA, rate=Decimal("1.00")
            )
        history = await use_cases["commission_engine"].history(ServiceType.FRA)
        assert len(history) == 1

    async def test_training_defaults_to_its_own_rate(self, use_cases):
        config = await use_cases["commission_engine"].current_config(ServiceType.TRAINING)
        assert config.rate == Decimal("0.20")


class TestReporting:
    async def test_payment_and_payout_listings(self, flow, use_cases, admin):
        completed = await flow.completed_booking()
        pending = await flow.create()
        await use_cases["start_checkout"].execute(pending.booking_ref)

        succeeded = await use_cases["list_payments"].execute(admin, status=PaymentStatus.SUCCEEDED)
        assert [item.booking_ref for item in succeeded] == [completed.booking_ref]

        everything = await use_cases["list_payments"].execute(admin, customer_id="cust-1")
        assert len(everything) == 2

        payouts = await use_cases["list_payouts"].execute(admin, status=PayoutStatus.ELIGIBLE)
        assert [item.payout.payout_id for item in payouts] == [f"PO-{completed.booking_ref}"]

    async def test_audit_trail_filters_by_booking(self, flow, use_cases, admin):
        first = await flow.completed_booking()
        second = await flow.completed_booking()
        await use_cases["admin_hold_payout"].execute(admin, first.booking_ref, reason="a")
        await use_cases["admin_hold_payout"].execute(admin, second.booking_ref, reason="b")

        records = await use_cases["list_audit_records"].execute(admin, booking_ref=first.booking_ref)
        assert len(records) == 1
        assert records[0].actor_id == "admin-1"
        assert records[0].reason == "a"
