"""Value Objects del dominio de pagos."""

from fireguide_payments.domain.value_objects.admin_identity import (
    ADMIN_ROLE,
    AdminIdentity,
    require_admin,
)
from fireguide_payments.domain.value_objects.booking_ref import BookingRef
from fireguide_payments.domain.value_objects.money import CENT, Money

__all__ = [
    "ADMIN_ROLE",
    "AdminIdentity",
    "BookingRef",
    "CENT",
    "Money",
    "require_admin",
]
