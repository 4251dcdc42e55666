import logging
from decimal import Decimal

from fireguide_payments.application.commission_engine import CommissionEngine
from fireguide_payments.application.dtos.results import CheckoutResult
from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.gateway_client import GatewayClient
from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.domain.constants import PRICE_MAXIMUM, PRICE_MINIMUM, SYSTEM_ACTOR
from fireguide_payments.domain.entities.booking import Booking, StatusType
from fireguide_payments.domain.entities.payment import Payment
from fireguide_payments.domain.payment_rules import (
    checkout_idempotency_key,
    validate_payment_conditions,
)


def _checkout_result(booking: Booking, payment: Payment, reused: bool) -> CheckoutResult:
    return CheckoutResult(
        booking_ref=booking.booking_ref,
        payment_id=payment.payment_id,
        session_ref=payment.session_ref,
        checkout_url=payment.checkout_url,
        amount=payment.amount,
        commission_amount=payment.commission_amount,
        professional_earnings=payment.professional_earnings,
        payment_status=payment.status.value,
        booking_status=booking.status.value,
        reused=reused,
    )


class StartCheckoutUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        commission_engine: CommissionEngine,
        gateway_client: GatewayClient,
        id_generator: IdGenerator,
        clock: Clock,
        booking_locks: BookingLocks,
        price_minimum: Decimal = PRICE_MINIMUM,
        price_maximum: Decimal = PRICE_MAXIMUM,
    ) -> None:
        self._booking_repo = booking_repo
        self._commission_engine = commission_engine
        self._gateway_client = gateway_client
        self._id_generator = id_generator
        self._clock = clock
        self._booking_locks = booking_locks
        self._price_minimum = price_minimum
        self._price_maximum = price_maximum
        self._logger = logging.getLogger(__name__)

    async def execute(self, booking_ref: str, actor_id: str = SYSTEM_ACTOR) -> CheckoutResult:
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version

            current = booking.payment
            if current is not None and current.is_open:
                return _checkout_result(booking, current, reused=True)

            validate_payment_conditions(booking, self._price_minimum, self._price_maximum)

            attempt = current.attempt + 1 if current is not None else 1
            split = await self._commission_engine.split(booking.final_price, booking.service_type)
            session = await self._gateway_client.create_checkout_session(
                amount=booking.final_price,
                booking_ref=booking_ref,
                idempotency_key=checkout_idempotency_key(booking_ref, attempt),
            )

            now = self._clock.now()
            payment = Payment.create_pending(
                payment_id=self._id_generator.new_id("pay"),
                booking_ref=booking_ref,
                amount=booking.final_price,
                commission_rate=split.rate,
                commission_amount=split.commission,
                professional_earnings=split.professional_earnings,
                commission_version=split.version,
                now=now,
                attempt=attempt,
            )
            payment.session_ref = session.session_ref
            payment.checkout_url = session.checkout_url
            booking.replace_payment(payment)
            booking.record_change(
                StatusType.PAYMENT, None, payment.status, actor_id, now, reason="checkout started"
            )
            booking.reconcile(now, actor_id)
            await self._booking_repo.save(booking, expected_version)

            self._logger.info(
                "Checkout session created",
                extra={
                    "booking_ref": booking_ref,
                    "payment_id": payment.payment_id,
                    "session_ref": payment.session_ref,
                    "attempt": attempt,
                    "commission_amount": str(split.commission),
                },
            )
            return _checkout_result(booking, payment, reused=False)
