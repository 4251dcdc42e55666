import logging

from fireguide_payments.application.interfaces.booking_locks import BookingLocks
from fireguide_payments.application.interfaces.booking_repo import BookingRepo
from fireguide_payments.application.interfaces.clock import Clock
from fireguide_payments.application.interfaces.deliverable_store import DeliverableStore
from fireguide_payments.application.use_cases.common import load_booking
from fireguide_payments.domain.constants import SYSTEM_ACTOR, DeliverableType
from fireguide_payments.domain.entities.booking import Booking
from fireguide_payments.domain.entities.deliverable import Deliverable


class SubmitDeliverableUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._clock = clock
        self._booking_locks = booking_locks
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        booking_ref: str,
        deliverable_type: DeliverableType,
        artifact_ref: str | None = None,
        submitted_by: str = SYSTEM_ACTOR,
    ) -> Booking:
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            now = self._clock.now()

            added = booking.submit_deliverable(
                Deliverable(
                    deliverable_type=DeliverableType(deliverable_type),
                    submitted_at=now,
                    artifact_ref=artifact_ref,
                )
            )
            if not added:
                return booking

            booking.reconcile(now, submitted_by, reason=f"deliverable {deliverable_type}")
            booking = await self._booking_repo.save(booking, expected_version)

        self._logger.info(
            "Deliverable submitted",
            extra={
                "booking_ref": booking_ref,
                "deliverable_type": DeliverableType(deliverable_type).value,
                "booking_status": booking.status.value,
            },
        )
        return booking


class SyncDeliverablesUseCase:
    """Pulls submitted deliverables from the external store into the booking."""

    def __init__(
        self,
        booking_repo: BookingRepo,
        deliverable_store: DeliverableStore,
        clock: Clock,
        booking_locks: BookingLocks,
    ) -> None:
        self._booking_repo = booking_repo
        self._deliverable_store = deliverable_store
        self._clock = clock
        self._booking_locks = booking_locks
        self._logger = logging.getLogger(__name__)

    async def execute(self, booking_ref: str) -> Booking:
        submitted = await self._deliverable_store.list_submitted(booking_ref)
        async with self._booking_locks.hold(booking_ref):
            booking = await load_booking(self._booking_repo, booking_ref)
            expected_version = booking.version
            new_types = sorted(set(submitted) - booking.submitted_deliverables, key=lambda d: d.value)
            if not new_types:
                return booking

            now = self._clock.now()
            for deliverable_type in new_types:
                booking.submit_deliverable(Deliverable(deliverable_type=deliverable_type, submitted_at=now))
            booking.reconcile(now, SYSTEM_ACTOR, reason="deliverables synchronised")
            booking = await self._booking_repo.save(booking, expected_version)

        self._logger.info(
            "Deliverables synchronised",
            extra={
                "booking_ref": booking_ref,
                "added": [d.value for d in new_types],
                "booking_status": booking.status.value,
            },
        )
        return booking
