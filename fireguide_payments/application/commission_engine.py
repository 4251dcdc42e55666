"""Commission Engine: versioned commission rates and price splitting."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal

from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.commission_repo import CommissionRepo
from fireguide_payments.domain.commission import CommissionSplit, split_price
from fireguide_payments.domain.constants import (
    DEFAULT_COMMISSION_RATE,
    DEFAULT_COMMISSION_RATES,
    SYSTEM_ACTOR,
    ServiceType,
)
from fireguide_payments.domain.entities.commission_config import CommissionConfig, coerce_rate


def resolve_default_rates(
    default_rate: Decimal = DEFAULT_COMMISSION_RATE,
    overrides: Mapping[ServiceType, Decimal] | None = None,
) -> dict[ServiceType, Decimal]:
    """Default rate per service type; TRAINING keeps its own rate unless overridden."""
    rates = {service_type: coerce_rate(default_rate) for service_type in ServiceType}
    rates[ServiceType.TRAINING] = DEFAULT_COMMISSION_RATES[ServiceType.TRAINING]
    for service_type, rate in (overrides or {}).items():
        rates[ServiceType(service_type)] = coerce_rate(rate)
    return rates


class CommissionEngine:
    def __init__(
        self,
        commission_repo: CommissionRepo,
        clock: Clock,
        default_rates: Mapping[ServiceType, Decimal] | None = None,
    ) -> None:
        self._commission_repo = commission_repo
        self._clock = clock
        self._default_rates = dict(default_rates or resolve_default_rates())
        self._lock = asyncio.Lock()
        self._logger = logging.getLogger(__name__)

    async def current_config(self, service_type: ServiceType) -> CommissionConfig:
        config = await self._commission_repo.current(service_type)
        if config is not None:
            return config
        async with self._lock:
            config = await self._commission_repo.current(service_type)
            if config is None:
                config = await self._commission_repo.append(
                    CommissionConfig(
                        service_type=service_type,
                        rate=self._default_rates[service_type],
                        version=1,
                        modified_by=SYSTEM_ACTOR,
                        modified_at=self._clock.now(),
                    )
                )
            return config

    async def split(self, final_price: Decimal, service_type: ServiceType) -> CommissionSplit:
        config = await self.current_config(service_type)
        return split_price(final_price, config.rate, version=config.version)

    async def update_commission_rate(
        self,
        service_type: ServiceType,
        new_rate: Decimal,
        admin_id: str,
    ) -> CommissionConfig:
        """Appends a new version; existing payments keep the split they captured."""
        rate = coerce_rate(new_rate)
        current = await self.current_config(service_type)
        async with self._lock:
            latest = await self._commission_repo.current(service_type) or current
            config = await self._commission_repo.append(
                CommissionConfig(
                    service_type=service_type,
                    rate=rate,
                    version=latest.version + 1,
                    modified_by=admin_id,
                    modified_at=self._clock.now(),
                )
            )
        self._logger.info(
            "Commission rate updated",
            extra={
                "service_type": service_type.value,
                "previous_rate": str(latest.rate),
                "new_rate": str(rate),
                "version": config.version,
                "admin_id": admin_id,
            },
        )
        return config

    async def history(self, service_type: ServiceType) -> Sequence[CommissionConfig]:
        await self.current_config(service_type)
        return await self._commission_repo.history(service_type)
