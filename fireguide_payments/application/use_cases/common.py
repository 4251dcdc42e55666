import hashlib
import json
from typing import Any

from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.domain.entities.booking import Booking
from fireguide_payments.domain.errors import BookingNotFoundError


async def load_booking(booking_repo: BookingRepo, booking_ref: str) -> Booking:
    booking = await booking_repo.get(booking_ref)
    if booking is None:
        raise BookingNotFoundError(booking_ref)
    return booking


def hash_request(scope: str, payload: dict[str, Any]) -> str:
    normalized = json.dumps(
        {"scope": scope, **payload},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(normalized.encode()).hexdigest()
