"""Implementación real del generador de identificadores."""

import uuid

from fireguide_payments.application.interfaces.id_generator import IdGenerator
from fireguide_payments.domain.value_objects.booking_ref import BookingRef


class IdGeneratorImpl(IdGenerator):
    def new_id(self, prefix: str) -> str:
        """Genera `<prefix>_<hex>` a partir de un UUID v4."""
        return f"{prefix}_{uuid.uuid4().hex}"

    def new_booking_ref(self) -> str:
        return str(BookingRef.generate())
