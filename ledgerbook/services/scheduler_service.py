"""
Scheduler Service Module
Runs the periodic accounting batches using APScheduler

Jobs:
    auto_post  - daily at ``scheduler.auto_post_time``: post due post-dated vouchers
    recurring  - every ``scheduler.recurring_interval_minutes``: execute due recurring vouchers
"""

import asyncio
from typing import Any, Dict, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import SchedulerConfig, config
from ..utils.logger import logger

AUTO_POST_JOB = "auto_post"
RECURRING_JOB = "recurring"


class SchedulerService:
    """Service for managing the periodic accounting jobs"""

    def __init__(self, settings: Optional[SchedulerConfig] = None, vouchers=None, recurring=None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False
        settings = settings or config.scheduler
        self.schedule_config = {
            "enabled": settings.enabled,
            "auto_post_time": settings.auto_post_time,  # HH:MM format
            "recurring_interval_minutes": settings.recurring_interval_minutes,
        }
        self._vouchers = vouchers
        self._recurring = recurring

    @property
    def vouchers(self):
        if self._vouchers is None:
            from .voucher_service import voucher_service
            self._vouchers = voucher_service
        return self._vouchers

    @property
    def recurring(self):
        if self._recurring is None:
            from .recurring_service import recurring_service
            self._recurring = recurring_service
        return self._recurring

    def start(self):
        """Start the scheduler"""
        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler()

        if not self.scheduler.running:
            self.scheduler.start()
            self.is_running = True
            logger.info("Scheduler started")

        if self.schedule_config.get("enabled"):
            self._add_jobs()

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler status"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append({
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run.isoformat() if next_run else None
                })

        return {
            "is_running": self.is_running,
            "schedule_config": self.schedule_config,
            "jobs": jobs
        }

    def update_schedule(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update schedule configuration"""
        self.schedule_config.update({k: v for k, v in changes.items() if v is not None})
        self._remove_jobs()

        if self.schedule_config.get("enabled"):
            self._add_jobs()
            return {"status": "success", "message": "Schedule updated and enabled"}
        return {"status": "success", "message": "Schedule disabled"}

    def _remove_jobs(self):
        if not self.scheduler:
            return
        for job_id in (AUTO_POST_JOB, RECURRING_JOB):
            try:
                self.scheduler.remove_job(job_id)
            except JobLookupError:
                pass

    def _add_jobs(self):
        """Add the accounting jobs to the scheduler"""
        if not self.scheduler:
            self.start()
            return

        time_str = self.schedule_config.get("auto_post_time", "00:15")
        hour, minute = map(int, time_str.split(":"))
        self.scheduler.add_job(
            self.run_auto_post,
            trigger=CronTrigger(hour=hour, minute=minute),
            id=AUTO_POST_JOB,
            name="Auto-post post-dated vouchers",
            replace_existing=True
        )

        interval = int(self.schedule_config.get("recurring_interval_minutes", 60))
        self.scheduler.add_job(
            self.run_recurring,
            trigger=IntervalTrigger(minutes=interval),
            id=RECURRING_JOB,
            name="Execute due recurring vouchers",
            replace_existing=True
        )

        logger.info(f"Scheduled jobs added: auto-post at {time_str}, recurring every {interval} min")

    async def run_auto_post(self):
        """Execute the auto-post batch"""
        logger.info("Running scheduled auto-post")
        try:
            results = await self.vouchers.process_due_auto_post()
            logger.info(f"Scheduled auto-post completed: {len(results)} vouchers")
        except Exception as e:
            logger.error(f"Scheduled auto-post failed: {e}")

    async def run_recurring(self):
        """Execute the recurring voucher batch"""
        logger.info("Running scheduled recurring vouchers")
        try:
            results = await self.recurring.execute_all_due()
            logger.info(f"Scheduled recurring run completed: {len(results)} schedules")
        except Exception as e:
            logger.error(f"Scheduled recurring run failed: {e}")

    def run_now(self, job: str = RECURRING_JOB) -> Dict[str, Any]:
        """Trigger a job immediately in the background"""
        if job == AUTO_POST_JOB:
            asyncio.create_task(self.run_auto_post())
        elif job == RECURRING_JOB:
            asyncio.create_task(self.run_recurring())
        else:
            return {"status": "error", "message": f"Unknown job: {job}"}
        return {"status": "started", "message": f"Job '{job}' triggered manually"}


# Global service instance
scheduler_service = SchedulerService()
