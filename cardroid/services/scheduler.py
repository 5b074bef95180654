"""
Cron schedule for the daily reminder jobs
"""
import logging

from apscheduler.events import EVENT_JOB_ERROR, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from cardroid.adapters.whatsapp_session import WhatsAppSession
from cardroid.config import settings
from cardroid.services.reminders import installment_due_job, warranty_expiry_job
from cardroid.utils.dates import BusinessClock
from cardroid.utils.monitoring import capture_exception

logger = logging.getLogger(__name__)

WARRANTY_JOB_ID = "warranty_expiry_reminder"
INSTALLMENT_JOB_ID = "installment_due_reminder"


def _on_job_error(event: JobExecutionEvent) -> None:
    logger.error(f"Scheduled job {event.job_id} failed: {event.exception}")
    capture_exception(event.exception, job_id=event.job_id)


def create_scheduler(session: WhatsAppSession, clock: BusinessClock) -> AsyncIOScheduler:
    """
    Build (not start) the scheduler with both reminder jobs

    Triggers fire in the business timezone regardless of the host clock.
    """
    scheduler = AsyncIOScheduler(timezone=settings.timezone)
    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)

    scheduler.add_job(
        warranty_expiry_job,
        CronTrigger(
            hour=settings.warranty_reminder_hour,
            minute=settings.warranty_reminder_minute,
            timezone=settings.timezone,
        ),
        args=[session, clock, settings.warranty_reminder_days],
        id=WARRANTY_JOB_ID,
        replace_existing=True,
        coalesce=True,
    )
    scheduler.add_job(
        installment_due_job,
        CronTrigger(
            hour=settings.installment_reminder_hour,
            minute=settings.installment_reminder_minute,
            timezone=settings.timezone,
        ),
        args=[session, clock],
        id=INSTALLMENT_JOB_ID,
        replace_existing=True,
        coalesce=True,
    )

    logger.info(
        f"Reminder jobs scheduled ({settings.timezone}): warranty "
        f"{settings.warranty_reminder_hour:02d}:{settings.warranty_reminder_minute:02d}, installments "
        f"{settings.installment_reminder_hour:02d}:{settings.installment_reminder_minute:02d}"
    )
    return scheduler
