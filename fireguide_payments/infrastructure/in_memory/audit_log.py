from typing import Sequence

from fireguide_payments.application.interfaces.audit_log import AuditLog
from fireguide_payments.domain.entities.audit_record import AuditRecord


class InMemoryAuditLog(AuditLog):
    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    async def append(self, record: AuditRecord) -> None:
        self.records.append(record)

    async def list_records(self, booking_ref: str | None = None) -> Sequence[AuditRecord]:
        if booking_ref is None:
            return list(self.records)
        return [r for r in self.records if r.booking_ref == booking_ref]
