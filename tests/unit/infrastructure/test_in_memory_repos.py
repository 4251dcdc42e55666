from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fireguide_payments.domain.constants import ServiceType
from fireguide_payments.domain.entities.booking import Booking
from fireguide_payments.domain.errors import BookingNotFoundError, OptimisticLockError
from fireguide_payments.infrastructure.in_memory import InMemoryBookingRepo

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _booking(ref: str = "BK-REPO0001") -> Booking:
    return Booking.create(ref, ServiceType.EXTINGUISHER, Decimal("300.00"), NOW)


async def test_save_bumps_version():
    repo = InMemoryBookingRepo()
    await repo.add(_booking())
    loaded = await repo.get("BK-REPO0001")

    saved = await repo.save(loaded, expected_version=0)

    assert saved.version == 1
    assert (await repo.get("BK-REPO0001")).version == 1


async def test_stale_writer_is_rejected():
    repo = InMemoryBookingRepo()
    await repo.add(_booking())
    first = await repo.get("BK-REPO0001")
    second = await repo.get("BK-REPO0001")
    await repo.save(first, expected_version=0)

    with pytest.raises(OptimisticLockError):
        await repo.save(second, expected_version=0)


async def test_readers_get_isolated_copies():
    repo = InMemoryBookingRepo()
    await repo.add(_booking())
    loaded = await repo.get("BK-REPO0001")
    loaded.customer_id = "changed-without-save"

    assert (await repo.get("BK-REPO0001")).customer_id is None


async def test_duplicate_ref_and_missing_booking():
    repo = InMemoryBookingRepo()
    await repo.add(_booking())
    with pytest.raises(ValueError):
        await repo.add(_booking())
    with pytest.raises(BookingNotFoundError):
        await repo.save(_booking("BK-MISSING1"), expected_version=0)
    assert await repo.get("BK-MISSING1") is None
