from collections import defaultdict
from typing import Sequence

from fireguide_payments.application.interfaces.commission_repo import CommissionRepo
from fireguide_payments.domain.constants import ServiceType
from fireguide_payments.domain.entities.commission_config import CommissionConfig


class InMemoryCommissionRepo(CommissionRepo):
    def __init__(self) -> None:
        self._history: dict[ServiceType, list[CommissionConfig]] = defaultdict(list)

    async def append(self, config: CommissionConfig) -> CommissionConfig:
        history = self._history[config.service_type]
        expected = history[-1].version + 1 if history else 1
        if config.version != expected:
            raise ValueError(
                f"Commission version {config.version} for {config.service_type.value} "
                f"is not the next version ({expected})"
            )
        history.append(config)
        return config

    async def current(self, service_type: ServiceType) -> CommissionConfig | None:
        history = self._history.get(service_type)
        return history[-1] if history else None

    async def history(self, service_type: ServiceType) -> Sequence[CommissionConfig]:
        return list(self._history.get(service_type, []))
