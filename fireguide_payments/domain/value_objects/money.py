"""Value Object Money - representa un valor monetario en la unidad mínima de 0.01."""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from fireguide_payments.domain.errors import InvalidMoneyError

CENT = Decimal("0.01")


@dataclass(frozen=True, order=True)
class Money:
    """
    Value Object inmutable que representa un monto monetario.

    El motor no maneja múltiples monedas: el monto es un decimal agnóstico
    con exactamente 2 decimales.

    Attributes:
        amount: Monto decimal no negativo (2 decimales).
    """

    amount: Decimal

    def __post_init__(self) -> None:
        amount = self.amount
        if not isinstance(amount, Decimal):
            try:
                amount = Decimal(str(amount))
            except InvalidOperation as exc:
                raise InvalidMoneyError(f"amount no es numérico: {self.amount!r}") from exc

        if not amount.is_finite():
            raise InvalidMoneyError(f"amount debe ser finito: {amount}")

        if amount < 0:
            raise InvalidMoneyError(f"amount no puede ser negativo: {amount}")

        if amount != amount.quantize(CENT):
            raise InvalidMoneyError(f"amount admite como máximo 2 decimales: {amount}")

        object.__setattr__(self, "amount", amount.quantize(CENT))

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError(f"No se puede sumar Money con {type(other)}")
        return Money(amount=self.amount + other.amount)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError(f"No se puede restar Money con {type(other)}")
        if other.amount > self.amount:
            raise InvalidMoneyError(f"La resta produce un monto negativo: {self.amount} - {other.amount}")
        return Money(amount=self.amount - other.amount)

    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    def floor_fraction(self, rate: Decimal) -> "Money":
        """Aplica una fracción redondeando hacia abajo al centavo."""
        return Money(amount=(self.amount * rate).quantize(CENT, rounding=ROUND_DOWN))

    def __str__(self) -> str:
        return f"{self.amount:.2f}"

    @classmethod
    def zero(cls) -> "Money":
        """Crea un Money con valor cero."""
        return cls(amount=Decimal("0"))

    @classmethod
    def of(cls, value: Decimal | int | str) -> "Money":
        """Crea un Money desde un valor decimal, entero o string."""
        return cls(amount=value)

    @classmethod
    def from_minor_units(cls, cents: int) -> "Money":
        """Crea un Money desde centavos (útil para pasarelas)."""
        return cls(amount=Decimal(cents) / 100)

    def to_minor_units(self) -> int:
        """Convierte a centavos (útil para pasarelas)."""
        return int(self.amount * 100)
