"""
Report Scheduler

Fires the daily report run on a cron schedule (default 23:00 every day).

Each firing:
1. Lists every user in storage
2. Generates today's report for each user
3. Delivers it by email and SMS to that user's recipients

DESIGN DECISION: One user's failure never stops the run. It is logged and
audited, and the loop moves on to the next user. There is no caller to
surface errors to, so the audit trail is the record of every firing.

The scheduler never retries a failed run; transport retries live inside the
notification services.
"""

import asyncio
from datetime import date
from typing import Optional, Union

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.audit import AuditLogger, create_correlation_id
from src.config.settings import SchedulerSettings
from src.models.report import (
    DeliveryMethod,
    ReportInterval,
    SendReportResult,
)
from src.orchestrator import ReportFlow, create_app_components
from src.reports import resolve_interval
from src.services.storage import StorageError


logger = structlog.get_logger(__name__)

JOB_ID = "daily_report"


class ReportScheduler:
    """
    Runs scheduled report delivery for all users.
    """

    def __init__(
        self,
        report_flow: ReportFlow,
        settings: Optional[SchedulerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._flow = report_flow
        self._settings = settings or SchedulerSettings()
        self._audit_logger = audit_logger
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def schedule(self) -> str:
        return self._settings.schedule

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """
        Register the cron job and start the scheduler.

        Must be called with a running event loop.
        """
        if not self._settings.scheduler_enabled:
            logger.info("scheduler_disabled")
            return
        if self.running:
            return

        trigger = CronTrigger.from_crontab(
            self._settings.schedule,
            timezone=self._settings.timezone,
        )
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_scheduled_reports,
            trigger,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "scheduler_started",
            schedule=self._settings.schedule,
            timezone=self._settings.timezone,
        )

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("scheduler_stopped")
        self._scheduler = None

    async def run_forever(self) -> None:
        """Start the scheduler and block until cancelled."""
        self.start()
        try:
            await asyncio.Event().wait()
        finally:
            self.shutdown()

    async def run_scheduled_reports(self, today: Optional[date] = None) -> dict[str, int]:
        """
        One scheduler firing: today's report for every user, by email and SMS.

        Returns:
            Counts of succeeded and failed users
        """
        correlation_id = create_correlation_id()
        counts = {"succeeded": 0, "failed": 0}

        try:
            users = await self._flow.list_users()
        except StorageError as e:
            logger.error("scheduled_run_user_listing_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_scheduled_run_skipped(
                    reason=f"Failed to list users: {e}",
                    correlation_id=correlation_id,
                )
            return counts

        if not users:
            logger.info("scheduled_run_no_users")
            if self._audit_logger:
                await self._audit_logger.log_scheduled_run_skipped(
                    reason="No users to report on",
                    correlation_id=correlation_id,
                )
            return counts

        logger.info("scheduled_run_started", user_count=len(users))
        if self._audit_logger:
            await self._audit_logger.log_scheduled_run_started(
                schedule=self._settings.schedule,
                user_count=len(users),
                correlation_id=correlation_id,
            )

        for user in users:
            try:
                result = await self.send_report_for_user(
                    user.id,
                    today=today,
                    is_user_action=False,
                )
            except Exception as e:
                counts["failed"] += 1
                logger.exception("scheduled_report_failed", user_id=user.id)
                if self._audit_logger:
                    await self._audit_logger.log_error(
                        error_type=type(e).__name__,
                        error_message=str(e),
                        details={"user_id": user.id, "job": JOB_ID},
                        correlation_id=correlation_id,
                    )
                continue

            if result.results.all_succeeded:
                counts["succeeded"] += 1
            else:
                counts["failed"] += 1
                logger.warning(
                    "scheduled_report_not_delivered",
                    user_id=user.id,
                    results=result.results.to_dict(),
                )

        logger.info("scheduled_run_completed", **counts)
        if self._audit_logger:
            await self._audit_logger.log_scheduled_run_completed(
                succeeded=counts["succeeded"],
                failed=counts["failed"],
                correlation_id=correlation_id,
            )
        return counts

    async def send_report_for_user(
        self,
        user_id: str,
        interval: Union[ReportInterval, str] = ReportInterval.DAILY,
        method: Union[DeliveryMethod, str] = DeliveryMethod.BOTH,
        today: Optional[date] = None,
        is_user_action: bool = True,
    ) -> SendReportResult:
        """
        Generate and deliver one user's report for a relative interval.

        Raises:
            DataError: If generation fails
        """
        date_range = resolve_interval(interval, today=today)
        return await self._flow.send_report(
            user_id,
            date_range.start_date,
            date_range.end_date,
            method,
            is_user_action=is_user_action,
        )


def main() -> None:
    """Run the daily report scheduler until interrupted."""
    _, scheduler, _ = create_app_components(use_storage=True)
    try:
        asyncio.run(scheduler.run_forever())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
