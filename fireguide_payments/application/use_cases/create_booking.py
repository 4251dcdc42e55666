import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.domain.constants import PRICE_MAXIMUM, PRICE_MINIMUM, ServiceType
from fireguide_payments.domain.entities.booking import Booking
from fireguide_payments.domain.pricing import PriceQuote, quote_price, validate_price


class QuotePriceUseCase:
    def __init__(
        self,
        price_minimum: Decimal = PRICE_MINIMUM,
        price_maximum: Decimal = PRICE_MAXIMUM,
    ) -> None:
        self._price_minimum = price_minimum
        self._price_maximum = price_maximum

    def execute(self, service_type: ServiceType | str, attributes: Mapping[str, Any]) -> PriceQuote:
        quote = quote_price(service_type, attributes)
        validate_price(quote.final_price, self._price_minimum, self._price_maximum)
        return quote


class CreateBookingUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        id_generator: IdGenerator,
        clock: Clock,
        price_minimum: Decimal = PRICE_MINIMUM,
        price_maximum: Decimal = PRICE_MAXIMUM,
    ) -> None:
        self._booking_repo = booking_repo
        self._id_generator = id_generator
        self._clock = clock
        self._quote = QuotePriceUseCase(price_minimum, price_maximum)
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        service_type: ServiceType | str,
        pricing: Mapping[str, Any],
        customer_id: str | None = None,
        professional_id: str | None = None,
        service_date: datetime | None = None,
    ) -> Booking:
        quote = self._quote.execute(service_type, pricing)
        booking = Booking.create(
            booking_ref=self._id_generator.new_booking_ref(),
            service_type=quote.service_type,
            final_price=quote.final_price,
            now=self._clock.now(),
            customer_id=customer_id,
            professional_id=professional_id,
            pricing=dict(pricing),
            service_date=service_date,
        )
        booking = await self._booking_repo.add(booking)
        self._logger.info(
            "Booking created",
            extra={
                "booking_ref": booking.booking_ref,
                "service_type": booking.service_type.value,
                "final_price": str(booking.final_price),
            },
        )
        return booking


class GetBookingUseCase:
    def __init__(self, booking_repo: BookingRepo) -> None:
        self._booking_repo = booking_repo

    async def execute(self, booking_ref: str) -> Booking:
        return await load_booking(self._booking_repo, booking_ref)
