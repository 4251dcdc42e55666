from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class BookingLocks(Protocol):
    """Serializa las transiciones de una misma reserva."""

    @asynccontextmanager
    async def hold(self, booking_ref: str) -> AsyncIterator[None]:
        yield
