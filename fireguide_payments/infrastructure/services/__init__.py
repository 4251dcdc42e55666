"""Servicios de infraestructura."""

from fireguide_payments.infrastructure.services.clock_impl import ClockImpl
from fireguide_payments.infrastructure.services.id_generator_impl import IdGeneratorImpl

__all__ = [
    "ClockImpl",
    "IdGeneratorImpl",
]
