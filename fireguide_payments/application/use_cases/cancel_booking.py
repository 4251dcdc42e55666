import logging
from decimal import Decimal

from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.payment import Payment, PaymentStatus
from fireguide_payments.domain.errors import InvalidStateError
from fireguide_payments.domain.status_machine import BookingStatus


class CancelBookingUseCase:
    """
    Voids a booking whose checkout never settled.

    Settled bookings are cancelled through a refund instead.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        id_generator: IdGenerator,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._id_generator = id_generator
        self._clock = clock
        self._booking_locks = booking_locks
        self._logger = logging.getLogger(__name__)

    async def execute(self, booking_ref: str, actor_id: str, reason: str | None = None) -> Booking:
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            if booking.status == BookingStatus.CANCELLED:
                return booking

            now = self._clock.now()
            payment = booking.payment
            if payment is not None and payment.is_open:
                previous = payment.status
                payment.cancel(now)
            elif payment is None or payment.status == PaymentStatus.FAILED:
                # Nothing was ever charged: record a voided attempt so the
                # derived status becomes CANCELLED.
                previous = None
                payment = Payment.create_pending(
                    payment_id=self._id_generator.new_id("pay"),
                    booking_ref=booking_ref,
                    amount=booking.final_price,
                    commission_rate=Decimal("0"),
                    commission_amount=Decimal("0"),
                    professional_earnings=Decimal("0"),
                    commission_version=None,
                    now=now,
                    attempt=payment.attempt + 1 if payment else 1,
                )
                payment.cancel(now)
                booking.replace_payment(payment)
            else:
                raise InvalidStateError(
                    entity="payment",
                    current_status=payment.status.value,
                    expected_status=[
                        PaymentStatus.PENDING.value,
                        PaymentStatus.AUTHORIZED.value,
                        PaymentStatus.FAILED.value,
                    ],
                    operation="cancelar la reserva sin reembolso",
                )

            booking.record_change(
                StatusType.PAYMENT, previous, payment.status, actor_id, now, reason=reason
            )
            booking.reconcile(now, actor_id, reason=reason or "booking cancelled")
            booking = await self._booking_repo.save(booking, expected_version)

        self._logger.info(
            "Booking cancelled",
            extra={"booking_ref": booking_ref, "actor_id": actor_id, "reason": reason},
        )
        return booking
