"""Implementación real del servicio de reloj."""

from datetime import datetime, timezone

from fireguide_payments.application.interfaces.clock import Clock


class ClockImpl(Clock):
    """
    Implementación real del Clock que usa el reloj del sistema.

    Para testing, usar FakeClock de application.interfaces.clock.
    """

    def now(self) -> datetime:
        """Retorna la fecha/hora actual con timezone UTC."""
        return datetime.now(timezone.utc)
