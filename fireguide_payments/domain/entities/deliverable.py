"""Entidad Deliverable - evidencia entregada por el profesional."""

from dataclasses import dataclass
from datetime import datetime

from fireguide_payments.domain.constants import DeliverableType


@dataclass(frozen=True)
class Deliverable:
    """Entregable enviado; artifact_ref es opaco para el motor."""

    deliverable_type: DeliverableType
    submitted_at: datetime
    artifact_ref: str | None = None
