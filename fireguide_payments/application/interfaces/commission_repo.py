from collections.abc import Sequence

from fireguide_payments.domain.constants import ServiceType
from fireguide_payments.domain.entities.commission_config import CommissionConfig


class CommissionRepo:
    """Historial append-only de configuraciones de comisión."""

    async def append(self, config: CommissionConfig) -> CommissionConfig:
        """Agrega una versión nueva; rechaza versiones no consecutivas."""
        raise NotImplementedError

    async def current(self, service_type: ServiceType) -> CommissionConfig | None:
        raise NotImplementedError

    async def history(self, service_type: ServiceType) -> Sequence[CommissionConfig]:
        raise NotImplementedError
