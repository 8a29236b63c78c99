from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from pytz import timezone

from app.scheduler.jobs import take_weekly_snapshot
from app.config import get_settings


settings = get_settings()


def _jobstore_url() -> str:
    if settings.SCHEDULER_DB_URL:
        return settings.SCHEDULER_DB_URL
    # Lazy import: resolves the same URL the tabular store uses
    from app.db.session import DATABASE_URL  # pylint: disable=import-outside-toplevel

    return DATABASE_URL


def build_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler(
        jobstores={"default": SQLAlchemyJobStore(url=_jobstore_url())},
        timezone=timezone(settings.SCHEDULER_TZ),
    )


scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    global scheduler
    if scheduler is None:
        scheduler = build_scheduler()
    return scheduler


def configure_jobs(target: AsyncIOScheduler | None = None) -> None:
    """
    Register all recurring jobs with the scheduler.

    - weekly-snapshot: append the cumulative pulled metres once a week
    """
    target = target or get_scheduler()
    target.add_job(
        take_weekly_snapshot,
        "cron",
        id="weekly-snapshot",
        day_of_week=settings.SNAPSHOT_DAY_OF_WEEK,
        hour=settings.SNAPSHOT_HOUR,
        minute=0,
        replace_existing=True,
        misfire_grace_time=7200,
        coalesce=True,
        max_instances=1,
    )


async def init_scheduler() -> None:
    """
    FastAPI startup hook: initialize and start the APScheduler instance
    if SCHEDULER_ENABLED is true.
    """
    if not settings.SCHEDULER_ENABLED:
        return
    configure_jobs()
    get_scheduler().start()


async def shutdown_scheduler() -> None:
    """
    FastAPI shutdown hook: stop the scheduler cleanly.
    """
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
