"""Elapsed-time sweep over stored reservations"""
import logging

from application.services import ReservationService
from domain.enums import ReservationStatus
from domain.results import ActionResult
from domain.value_objects import SYSTEM_ACTOR, SweepReport

logger = logging.getLogger(__name__)


class ReservationSweeper:
    """Expires unstarted bookings and completes elapsed ones.

    Runs a single pass per call; scheduling it is left to the caller. Every
    change goes through the service, so it is subject to the same state
    machine rules and optimistic locking as a user action.
    """

    def __init__(self, service: ReservationService):
        self.service = service

    async def run_once(self) -> SweepReport:
        now = self.service.clock.now()
        machine = self.service.state_machine
        report = SweepReport(ran_at=now)

        waiting = await self.service.repository.find_by_statuses(
            [ReservationStatus.PENDING, ReservationStatus.APPROVED]
        )
        for reservation in waiting:
            if machine.is_overdue(reservation, now):
                result = await self.service.expire(reservation.reservation_id, SYSTEM_ACTOR)
                if self._tally(report, result):
                    report.expired += 1

        ongoing = await self.service.repository.find_by_statuses([ReservationStatus.ONGOING])
        for reservation in ongoing:
            if machine.has_elapsed(reservation, now):
                result = await self.service.complete(reservation.reservation_id, SYSTEM_ACTOR)
                if self._tally(report, result):
                    report.completed += 1

        logger.info(
            "sweep at %s: expired=%s completed=%s failed=%s",
            now.isoformat(), report.expired, report.completed, report.failed
        )
        return report

    @staticmethod
    def _tally(report: SweepReport, result: ActionResult) -> bool:
        if not result.ok:
            report.failed += 1
            return False
        return result.changed
