import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager

from fireguide_payments.application.interfaces.booking_locks import BookingLocks


class InMemoryBookingLocks(BookingLocks):
    """One asyncio.Lock per booking; different bookings proceed in parallel."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def hold(self, booking_ref: str):
        async with self._locks[booking_ref]:
            yield
