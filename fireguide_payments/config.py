from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fireguide_payments.domain.constants import (
    DEFAULT_COMMISSION_RATE,
    PRICE_MAXIMUM,
    PRICE_MINIMUM,
    ServiceType,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    use_in_memory: bool = True

    price_minimum: Decimal = PRICE_MINIMUM
    price_maximum: Decimal = PRICE_MAXIMUM
    default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE
    # e.g. COMMISSION_RATE_OVERRIDES='{"TRAINING": "0.25"}'
    commission_rate_overrides: dict[ServiceType, Decimal] = Field(default_factory=dict)
    auto_approve_refunds: bool = True

    circuit_breaker_enabled: bool = True
    gateway_breaker_fail_max: int = 5
    gateway_breaker_reset_timeout: int = 60
    disbursement_breaker_fail_max: int = 5
    disbursement_breaker_reset_timeout: int = 60

    gateway_webhook_secret: str | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
