"""Value Object BookingRef - referencia única de una reserva."""

import secrets
import string
from dataclasses import dataclass


@dataclass(frozen=True)
class BookingRef:
    """
    Value Object inmutable que representa la referencia de una reserva.

    Formato generado: ``BK-`` seguido de 8 caracteres alfanuméricos en mayúsculas.
    """

    value: str

    PREFIX = "BK-"
    CODE_LENGTH = 8
    ALLOWED_CHARS = string.ascii_uppercase + string.digits

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("booking_ref no puede estar vacío")

        if len(self.value) > 50:
            raise ValueError(f"booking_ref excede 50 caracteres: {len(self.value)}")

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BookingRef):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return False

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> "BookingRef":
        """Genera una nueva referencia aleatoria."""
        code = "".join(secrets.choice(cls.ALLOWED_CHARS) for _ in range(cls.CODE_LENGTH))
        return cls(value=f"{cls.PREFIX}{code}")

    @classmethod
    def from_string(cls, value: str) -> "BookingRef":
        """Crea una BookingRef desde un string existente."""
        return cls(value=value.upper().strip())
