from collections.abc import Sequence

from fireguide_payments.domain.entities.audit_record import AuditRecord


class AuditLog:
    """Registro append-only de acciones administrativas."""

    async def append(self, record: AuditRecord) -> None:
        raise NotImplementedError

    async def list_records(self, booking_ref: str | None = None) -> Sequence[AuditRecord]:
        raise NotImplementedError
