"""Entidad CommissionConfig - versión de la tasa de comisión por servicio."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from fireguide_payments.domain.constants import ServiceType
from fireguide_payments.domain.errors import InvalidRateError


def coerce_rate(rate: Decimal | float | str) -> Decimal:
    """Convierte y valida una tasa de comisión en [0, 1)."""
    try:
        value = rate if isinstance(rate, Decimal) else Decimal(str(rate))
    except InvalidOperation as exc:
        raise InvalidRateError(rate) from exc
    if not value.is_finite() or value < 0 or value >= 1:
        raise InvalidRateError(rate)
    return value


@dataclass(frozen=True)
class CommissionConfig:
    """
    Versión inmutable de la comisión de un tipo de servicio.

    Las configuraciones sólo se agregan; nunca se modifican.
    """

    service_type: ServiceType
    rate: Decimal
    version: int
    modified_by: str
    modified_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", coerce_rate(self.rate))
        if self.version < 1:
            raise ValueError(f"version debe ser >= 1: {self.version}")
