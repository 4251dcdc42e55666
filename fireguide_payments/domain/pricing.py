"""
Pricing Calculator.

Calcula el precio final de un servicio a partir de sus atributos. Las
funciones son puras: nunca asumen cero ante un atributo ausente.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from fireguide_payments.domain.constants import (
    ALARM_ADDRESSABLE_ADDON,
    ALARM_OVERDUE_ADDON,
    FRA_RISK_ADDONS,
    FRA_SIZE_ADDONS,
    PRICE_MAXIMUM,
    PRICE_MINIMUM,
    TRAINING_BANDS,
    TRAINING_LARGE_GROUP_PRICE,
    ServiceType,
)
from fireguide_payments.domain.errors import InvalidPricingInputError
from fireguide_payments.domain.value_objects.money import CENT

MAX_AMOUNT_INTEGER_DIGITS = 10


@dataclass(frozen=True)
class PriceQuote:
    """Precio final con su desglose."""

    service_type: ServiceType
    final_price: Decimal
    breakdown: dict[str, Any] = field(default_factory=dict)


def _require(attributes: Mapping[str, Any], name: str) -> Any:
    value = attributes.get(name)
    if value is None:
        raise InvalidPricingInputError(name, "atributo requerido ausente")
    return value


def _decimal(attributes: Mapping[str, Any], name: str) -> Decimal:
    value = _require(attributes, name)
    if isinstance(value, bool):
        raise InvalidPricingInputError(name, f"se esperaba un número, se recibió {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidPricingInputError(name, f"no es numérico: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidPricingInputError(name, "debe ser finito")
    if amount < 0:
        raise InvalidPricingInputError(name, "no puede ser negativo")
    # Los montos se almacenan con 12 dígitos (10 enteros + 2 decimales)
    if amount != 0 and amount.adjusted() >= MAX_AMOUNT_INTEGER_DIGITS:
        raise InvalidPricingInputError(
            name, f"admite como máximo {MAX_AMOUNT_INTEGER_DIGITS} dígitos enteros"
        )
    if amount != amount.quantize(CENT):
        raise InvalidPricingInputError(name, "admite como máximo 2 decimales")
    return amount


def _flag(attributes: Mapping[str, Any], name: str) -> bool:
    value = _require(attributes, name)
    if not isinstance(value, bool):
        raise InvalidPricingInputError(name, f"se esperaba un booleano, se recibió {value!r}")
    return value


def _choice(attributes: Mapping[str, Any], name: str, table: Mapping[str, Decimal]) -> str:
    value = _require(attributes, name)
    key = str(value).strip().lower()
    if key not in table:
        raise InvalidPricingInputError(name, f"'{value}' no es uno de {', '.join(table)}")
    return key


def _quote_fra(attributes: Mapping[str, Any]) -> tuple[Decimal, dict[str, Any]]:
    base_price = _decimal(attributes, "base_price")
    size = _choice(attributes, "property_size", FRA_SIZE_ADDONS)
    risk = _choice(attributes, "risk_level", FRA_RISK_ADDONS)
    size_addon = FRA_SIZE_ADDONS[size]
    risk_addon = FRA_RISK_ADDONS[risk]
    return base_price + size_addon + risk_addon, {
        "base_price": base_price,
        "size_addon": size_addon,
        "risk_addon": risk_addon,
    }


def _quote_alarm(attributes: Mapping[str, Any]) -> tuple[Decimal, dict[str, Any]]:
    base_price = _decimal(attributes, "base_price")
    addressable_addon = ALARM_ADDRESSABLE_ADDON if _flag(attributes, "is_addressable") else Decimal("0")
    overdue_addon = ALARM_OVERDUE_ADDON if _flag(attributes, "is_overdue") else Decimal("0")
    return base_price + addressable_addon + overdue_addon, {
        "base_price": base_price,
        "addressable_addon": addressable_addon,
        "overdue_addon": overdue_addon,
    }


def _quote_flat(attributes: Mapping[str, Any]) -> tuple[Decimal, dict[str, Any]]:
    base_price = _decimal(attributes, "base_price")
    breakdown: dict[str, Any] = {"base_price": base_price}
    for optional in ("number_of_units", "number_of_fixtures"):
        if attributes.get(optional) is not None:
            breakdown[optional] = attributes[optional]
    return base_price, breakdown


def _quote_training(attributes: Mapping[str, Any]) -> tuple[Decimal, dict[str, Any]]:
    attendees = _require(attributes, "number_of_attendees")
    if isinstance(attendees, bool) or not isinstance(attendees, int):
        raise InvalidPricingInputError(
            "number_of_attendees", f"se esperaba un entero, se recibió {attendees!r}"
        )
    if attendees < 1:
        raise InvalidPricingInputError("number_of_attendees", "debe ser al menos 1")

    band_price = TRAINING_LARGE_GROUP_PRICE
    for max_attendees, price in TRAINING_BANDS:
        if attendees <= max_attendees:
            band_price = price
            break
    return band_price, {
        "band_price": band_price,
        "attendees": attendees,
        "price_per_person": (band_price / attendees).quantize(CENT),
    }


def _quote_custom(attributes: Mapping[str, Any]) -> tuple[Decimal, dict[str, Any]]:
    manual_price = _decimal(attributes, "admin_manual_price")
    breakdown: dict[str, Any] = {"manual_price": manual_price}
    if attributes.get("description"):
        breakdown["description"] = attributes["description"]
    return manual_price, breakdown


_CALCULATORS = {
    ServiceType.FRA: _quote_fra,
    ServiceType.ALARM: _quote_alarm,
    ServiceType.EXTINGUISHER: _quote_flat,
    ServiceType.EMERGENCY_LIGHTING: _quote_flat,
    ServiceType.CONSULTATION: _quote_flat,
    ServiceType.TRAINING: _quote_training,
    ServiceType.CUSTOM_QUOTE: _quote_custom,
}


def _service_type(service_type: ServiceType | str) -> ServiceType:
    try:
        return ServiceType(service_type)
    except ValueError as exc:
        raise InvalidPricingInputError("service_type", f"tipo desconocido: {service_type!r}") from exc


def quote_price(service_type: ServiceType | str, attributes: Mapping[str, Any]) -> PriceQuote:
    """Calcula el precio final y su desglose."""
    resolved = _service_type(service_type)
    final_price, breakdown = _CALCULATORS[resolved](attributes)
    return PriceQuote(
        service_type=resolved,
        final_price=final_price.quantize(CENT),
        breakdown=breakdown,
    )


def compute_price(service_type: ServiceType | str, attributes: Mapping[str, Any]) -> Decimal:
    """
    Calcula el precio final de un servicio.

    Raises:
        InvalidPricingInputError: Atributo requerido ausente, negativo o fuera de dominio.
    """
    return quote_price(service_type, attributes).final_price


def validate_price(
    price: Decimal,
    minimum: Decimal = PRICE_MINIMUM,
    maximum: Decimal = PRICE_MAXIMUM,
) -> Decimal:
    """
    Verifica que el precio pueda cobrarse.

    Raises:
        InvalidPricingInputError: Precio no positivo o fuera de [minimum, maximum].
    """
    if not isinstance(price, Decimal) or not price.is_finite():
        raise InvalidPricingInputError("final_price", "debe ser un decimal finito")
    if price <= 0:
        raise InvalidPricingInputError("final_price", "debe ser mayor que cero")
    if price < minimum:
        raise InvalidPricingInputError("final_price", f"debe ser al menos {minimum}")
    if price > maximum:
        raise InvalidPricingInputError("final_price", f"no puede superar {maximum}")
    return price
