"""
Ledgerbook - Scheduler Tests

Job registration and the batch runners, with the accounting services of the
test database injected.
"""

from ledgerbook.config import SchedulerConfig
from ledgerbook.models.voucher import VoucherStatus
from ledgerbook.services.scheduler_service import AUTO_POST_JOB, RECURRING_JOB, SchedulerService

from .factories import cash_sale


def scheduler_for(books, **settings) -> SchedulerService:
    return SchedulerService(SchedulerConfig(**settings), vouchers=books.vouchers, recurring=books.recurring)


class TestJobs:

    async def test_disabled_start_adds_no_jobs(self, books):
        scheduler = scheduler_for(books)
        scheduler.start()
        try:
            status = scheduler.get_status()
            assert status["is_running"] is True
            assert status["jobs"] == []
        finally:
            scheduler.stop()

    async def test_enabling_registers_both_jobs(self, books):
        scheduler = scheduler_for(books)
        scheduler.start()
        try:
            outcome = scheduler.update_schedule({"enabled": True, "auto_post_time": "01:30"})
            jobs = {job["id"] for job in scheduler.get_status()["jobs"]}

            assert outcome["message"] == "Schedule updated and enabled"
            assert jobs == {AUTO_POST_JOB, RECURRING_JOB}
            assert scheduler.schedule_config["auto_post_time"] == "01:30"
        finally:
            scheduler.stop()

    async def test_disabling_removes_jobs(self, books):
        scheduler = scheduler_for(books, enabled=True)
        scheduler.start()
        try:
            scheduler.update_schedule({"enabled": False})
            assert scheduler.get_status()["jobs"] == []
        finally:
            scheduler.stop()

    def test_unknown_job_rejected(self):
        scheduler = SchedulerService(SchedulerConfig())
        assert scheduler.run_now("nightly")["status"] == "error"


class TestRunners:

    async def test_auto_post_runs_batch(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.schedule_post_dated(voucher.id, voucher.voucher_date)

        await scheduler_for(books).run_auto_post()

        stored = await books.vouchers.get_voucher(voucher.id)
        assert stored.status == VoucherStatus.POSTED

    async def test_recurring_runner_survives_empty_batch(self, books):
        await scheduler_for(books).run_recurring()
