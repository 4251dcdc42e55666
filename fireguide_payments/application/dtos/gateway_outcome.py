"""Normalización de callbacks de la pasarela."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fireguide_payments.domain.payment_rules import GatewayOutcomeStatus

_SUCCEEDED = {"succeeded", "success", "successful", "paid", "complete", "completed", "captured", "true"}
_AUTHORIZED = {"authorized", "authorised", "requires_capture"}
_FAILED = {"failed", "failure", "declined", "canceled", "cancelled", "expired", "false"}


def normalize_outcome_status(value: Any) -> GatewayOutcomeStatus:
    """Convierte las variantes que envían las pasarelas en GatewayOutcomeStatus."""
    if isinstance(value, GatewayOutcomeStatus):
        return value
    if isinstance(value, bool):
        return GatewayOutcomeStatus.SUCCEEDED if value else GatewayOutcomeStatus.FAILED
    key = str(value).strip().lower()
    if key in _SUCCEEDED:
        return GatewayOutcomeStatus.SUCCEEDED
    if key in _AUTHORIZED:
        return GatewayOutcomeStatus.AUTHORIZED
    if key in _FAILED:
        return GatewayOutcomeStatus.FAILED
    raise ValueError(f"unrecognised gateway status: {value!r}")


class GatewayOutcome(BaseModel):
    """
    Resultado de la pasarela ya normalizado.

    Acepta formas sueltas: `id`/`event_id`, `session_id`/`session_ref`,
    `status`/`payment_status`/`paid`, y `amount` o `amount_minor` en centavos.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(min_length=1)
    session_ref: str = Field(min_length=1)
    status: GatewayOutcomeStatus
    amount: Decimal | None = None
    gateway_reference: str | None = None
    failure_reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap_loose_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = dict(data)
        for target, aliases in (
            ("event_id", ("id", "eventId")),
            ("session_ref", ("session_id", "sessionId", "checkout_session")),
            ("status", ("payment_status", "paymentStatus", "paid", "succeeded")),
            ("gateway_reference", ("payment_intent", "charge_id", "reference")),
            ("failure_reason", ("error", "failure_message")),
        ):
            if normalized.get(target) is None:
                for alias in aliases:
                    if normalized.get(alias) is not None:
                        normalized[target] = normalized[alias]
                        break
        if normalized.get("amount") is None and normalized.get("amount_minor") is not None:
            normalized["amount"] = Decimal(int(normalized["amount_minor"])) / 100
        return normalized

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> GatewayOutcomeStatus:
        return normalize_outcome_status(value)
