"""Reparto de comisión entre la plataforma y el profesional."""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from fireguide_payments.domain.entities.commission_config import coerce_rate
from fireguide_payments.domain.errors import InvalidMoneyError
from fireguide_payments.domain.value_objects.money import CENT


@dataclass(frozen=True)
class CommissionSplit:
    """Resultado del reparto: commission + professional_earnings == final_price."""

    final_price: Decimal
    rate: Decimal
    commission: Decimal
    professional_earnings: Decimal
    version: int | None = None


def split_price(final_price: Decimal, rate: Decimal, version: int | None = None) -> CommissionSplit:
    """
    Reparte el precio final.

    La comisión se redondea hacia abajo al centavo y las ganancias son el
    resto exacto, de modo que la suma reconstruye el precio sin pérdida.
    """
    validated_rate = coerce_rate(rate)
    if final_price < 0 or final_price != final_price.quantize(CENT):
        raise InvalidMoneyError(f"final_price inválido para reparto: {final_price}")

    commission = (final_price * validated_rate).quantize(CENT, rounding=ROUND_DOWN)
    return CommissionSplit(
        final_price=final_price,
        rate=validated_rate,
        commission=commission,
        professional_earnings=final_price - commission,
        version=version,
    )
