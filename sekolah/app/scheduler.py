"""
Scheduler - Background Maintenance Jobs
=======================================
APScheduler jobs for:
1. Daily activity log retention cleanup
"""

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from sekolah.app import activity_log
from sekolah.app.config import settings
from sekolah.app.database import get_db_manager
from sekolah.app.exceptions import DatabaseError

logger = logging.getLogger(__name__)


CLEANUP_JOB_ID = "cleanup_activity_logs"


class MaintenanceScheduler:
    """Wraps an APScheduler instance holding the site's housekeeping jobs"""

    def __init__(self, use_async: bool = False):
        self.scheduler = AsyncIOScheduler() if use_async else BackgroundScheduler()

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    def start(self):
        if self.is_running:
            return
        self.scheduler.start()
        logger.info("✅ Maintenance scheduler started")

    def stop(self):
        if not self.is_running:
            return
        self.scheduler.shutdown(wait=False)
        logger.info("🛑 Maintenance scheduler stopped")

    def add_log_cleanup_job(self, hour: int = 2, minute: int = 0, days_to_keep: int = None):
        """
        Purge activity logs once a day.

        Args:
            hour: Hour to run (0-23)
            minute: Minute to run (0-59)
            days_to_keep: Retention window, defaults to activity_log.retention_days
        """
        self.scheduler.add_job(
            run_log_cleanup,
            CronTrigger(hour=hour, minute=minute),
            kwargs={"days_to_keep": days_to_keep},
            id=CLEANUP_JOB_ID,
            name="Hapus activity log lama",
            replace_existing=True
        )
        logger.info(f"📅 Log cleanup dijadwalkan setiap hari {hour:02d}:{minute:02d}")

    def get_jobs(self):
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger),
            })
        return jobs


def run_log_cleanup(days_to_keep: int = None, db=None) -> int:
    """Execute cleanup job; a database outage skips this run"""
    logger.info(f"🧹 Starting log cleanup at {datetime.now()}")
    try:
        return activity_log.cleanup(db or get_db_manager(), days_to_keep)
    except DatabaseError as e:
        logger.error(f"❌ Log cleanup job failed: {e}")
        return 0


# =========================================================================
# SINGLETON
# =========================================================================

_scheduler: MaintenanceScheduler = None


def get_scheduler(use_async: bool = False) -> MaintenanceScheduler:
    """Get or create scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = MaintenanceScheduler(use_async=use_async)
    return _scheduler


def init_scheduler(cleanup_hour: int = None) -> MaintenanceScheduler:
    """Initialize and start scheduler with default jobs"""
    scheduler = get_scheduler(use_async=True)
    scheduler.add_log_cleanup_job(
        hour=cleanup_hour if cleanup_hour is not None else settings.log_cleanup_hour,
        days_to_keep=settings.log_retention_days
    )
    scheduler.start()
    return scheduler
