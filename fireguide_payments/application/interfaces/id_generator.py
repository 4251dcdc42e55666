"""Interface IdGenerator - Puerto para generación de identificadores únicos."""

from abc import ABC, abstractmethod


class IdGenerator(ABC):
    """
    Puerto para generación de identificadores.

    Permite inyectar implementaciones fake para testing determinista.
    """

    @abstractmethod
    def new_id(self, prefix: str) -> str:
        """Genera un identificador único con el prefijo dado (p. ej. 'pay')."""
        raise NotImplementedError

    @abstractmethod
    def new_booking_ref(self) -> str:
        """Genera una referencia de reserva única."""
        raise NotImplementedError


class FakeIdGenerator(IdGenerator):
    """Genera valores predecibles basados en contadores."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}

    def _next(self, prefix: str) -> int:
        self._counters[prefix] = self._counters.get(prefix, 0) + 1
        return self._counters[prefix]

    def new_id(self, prefix: str) -> str:
        return f"{prefix}_{self._next(prefix):06d}"

    def new_booking_ref(self) -> str:
        return f"BK-TEST{self._next('booking'):04d}"
