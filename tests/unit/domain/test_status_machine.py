"""Status Cascade: derivación del estado de la reserva."""

from datetime import datetime, timezone
from decimal import Decimal
from itertools import combinations

import pytest

from fireguide_payments.domain.constants import DeliverableType, ServiceType
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.deliverable import Deliverable
from fireguide_payments.domain.entities.payment import Payment, PaymentStatus
from fireguide_payments.domain.entities.payout import Payout, PayoutStatus
from fireguide_payments.domain.errors import DirectStatusChangeError, InvalidStateError
from fireguide_payments.domain.status_machine import (
    BookingStatus,
    derive_booking_status,
    workflow_stage,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
REQUIRED = frozenset({DeliverableType.FRA_REPORT})
TWO_REQUIRED = frozenset({DeliverableType.FRA_REPORT, DeliverableType.EL_CERTIFICATE})


def _payment(status: PaymentStatus) -> Payment:
    payment = Payment.create_pending(
        payment_id="pay_1",
        booking_ref="BK-TEST0001",
        amount=Decimal("300.00"),
        commission_rate=Decimal("0.15"),
        commission_amount=Decimal("45.00"),
        professional_earnings=Decimal("255.00"),
        commission_version=1,
        now=NOW,
    )
    payment.status = status
    return payment


def _payout(status: PayoutStatus) -> Payout:
    payout = Payout.create_eligible("BK-TEST0001", Decimal("255.00"), NOW)
    payout.status = status
    return payout


@pytest.mark.parametrize(
    "status", [None, PaymentStatus.PENDING, PaymentStatus.AUTHORIZED, PaymentStatus.FAILED]
)
def test_unsettled_payment_keeps_booking_created(status):
    payment = _payment(status) if status else None
    assert derive_booking_status(payment, None, REQUIRED, REQUIRED) == BookingStatus.CREATED


def test_every_deliverable_combination_maps_to_a_single_status():
    payment = _payment(PaymentStatus.SUCCEEDED)
    subsets = [frozenset(c) for n in range(len(TWO_REQUIRED) + 1) for c in combinations(TWO_REQUIRED, n)]
    results = {subset: derive_booking_status(payment, None, subset, TWO_REQUIRED) for subset in subsets}

    assert results[frozenset()] == BookingStatus.CONFIRMED
    assert results[frozenset({DeliverableType.FRA_REPORT})] == BookingStatus.IN_PROGRESS
    assert results[frozenset({DeliverableType.EL_CERTIFICATE})] == BookingStatus.IN_PROGRESS
    assert results[TWO_REQUIRED] == BookingStatus.COMPLETED


def test_unrelated_deliverable_does_not_start_work():
    payment = _payment(PaymentStatus.SUCCEEDED)
    status = derive_booking_status(payment, None, {DeliverableType.ATTENDANCE_SHEET}, REQUIRED)
    assert status == BookingStatus.CONFIRMED


def test_paid_payout_closes_booking():
    payment = _payment(PaymentStatus.SUCCEEDED)
    status = derive_booking_status(payment, _payout(PayoutStatus.PAID), REQUIRED, REQUIRED)
    assert status == BookingStatus.CLOSED


def test_cancelled_payment_cancels_booking():
    status = derive_booking_status(_payment(PaymentStatus.CANCELLED), None, (), REQUIRED)
    assert status == BookingStatus.CANCELLED


def test_full_refund_before_work_cancels_booking():
    status = derive_booking_status(_payment(PaymentStatus.REFUNDED), None, (), REQUIRED)
    assert status == BookingStatus.CANCELLED


def test_full_refund_after_work_with_open_payout_stays_completed():
    status = derive_booking_status(
        _payment(PaymentStatus.REFUNDED), _payout(PayoutStatus.HELD), REQUIRED, REQUIRED
    )
    assert status == BookingStatus.COMPLETED


def test_partial_refund_keeps_work_status():
    status = derive_booking_status(
        _payment(PaymentStatus.PARTIALLY_REFUNDED), None, REQUIRED, REQUIRED
    )
    assert status == BookingStatus.COMPLETED


def _booking() -> Booking:
    return Booking.create(
        booking_ref="BK-TEST0001",
        service_type=ServiceType.FRA,
        final_price=Decimal("300.00"),
        now=NOW,
        customer_id="cust-1",
        professional_id="pro-1",
    )


def test_direct_status_assignment_is_rejected():
    booking = _booking()
    with pytest.raises(DirectStatusChangeError):
        booking.status = BookingStatus.COMPLETED
    assert booking.status == BookingStatus.CREATED


def test_reconcile_walks_the_cascade_and_records_history():
    booking = _booking()
    booking.payment = _payment(PaymentStatus.SUCCEEDED)
    assert booking.reconcile(NOW) is True
    assert booking.status == BookingStatus.CONFIRMED

    booking.submit_deliverable(Deliverable(DeliverableType.FRA_REPORT, NOW))
    booking.reconcile(NOW)
    assert booking.status == BookingStatus.COMPLETED
    assert booking.payout is not None
    assert booking.payout.status == PayoutStatus.ELIGIBLE
    assert booking.payout.amount == Decimal("255.00")

    booking_changes = [e.new for e in booking.status_history if e.status_type == StatusType.BOOKING]
    assert booking_changes == ["CREATED", "CONFIRMED", "COMPLETED"]


def test_reconcile_is_a_no_op_when_nothing_changed():
    booking = _booking()
    history = list(booking.status_history)
    assert booking.reconcile(NOW) is False
    assert booking.status_history == history


def test_completed_booking_never_moves_back():
    booking = _booking()
    booking.payment = _payment(PaymentStatus.SUCCEEDED)
    booking.submit_deliverable(Deliverable(DeliverableType.FRA_REPORT, NOW))
    booking.reconcile(NOW)
    booking.payment.status = PaymentStatus.PENDING
    with pytest.raises(InvalidStateError):
        booking.reconcile(NOW)
    assert booking.status == BookingStatus.COMPLETED


def test_terminal_booking_rejects_deliverables():
    booking = _booking()
    booking.payment = _payment(PaymentStatus.CANCELLED)
    booking.reconcile(NOW)
    with pytest.raises(InvalidStateError):
        booking.submit_deliverable(Deliverable(DeliverableType.FRA_REPORT, NOW))


def test_duplicate_deliverable_is_ignored():
    booking = _booking()
    assert booking.submit_deliverable(Deliverable(DeliverableType.FRA_REPORT, NOW)) is True
    assert booking.submit_deliverable(Deliverable(DeliverableType.FRA_REPORT, NOW)) is False


def test_workflow_stage_reports_dispute():
    booking = _booking()
    booking.payment = _payment(PaymentStatus.SUCCEEDED)
    booking.reconcile(NOW)
    assert workflow_stage(booking) == "Service Scheduled"
    booking.dispute_open = True
    assert workflow_stage(booking) == "In Dispute"
