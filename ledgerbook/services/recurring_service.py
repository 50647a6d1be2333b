"""
Recurring Voucher Service Module
================================
Materializes template vouchers on a schedule.

Each execution goes through TemplateService.materialize. A failed execution
is recorded on the schedule (failedRuns, retryCount, lastError) and then
re-raised; ``execute_all_due`` catches it per schedule so one failure never
stops the rest of the batch.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from ..config import SchedulerConfig, config
from ..core import schedule as rules
from ..exceptions import LedgerbookError, RecurringVoucherNotFoundError
from ..models.recurring import (
    LastError,
    RecurringExecutionResult,
    RecurringVoucher,
    RecurringVoucherCreate,
)
from ..models.voucher import Voucher
from ..repositories.document_repository import RecurringVoucherRepository
from ..utils.decorators import timed
from ..utils.helpers import now, today
from ..utils.locks import KeyedLock
from ..utils.logger import logger
from .approval_service import ApprovalService, approval_service
from .database_service import DatabaseService, database_service
from .notification_service import NotificationService, notification_service
from .template_service import TemplateService, template_service

RETRY_LIMIT_CODE = "RETRY_LIMIT_REACHED"


class RecurringService:
    """Schedules bound to templates"""

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        templates: Optional[TemplateService] = None,
        approvals: Optional[ApprovalService] = None,
        notifications: Optional[NotificationService] = None,
        settings: Optional[SchedulerConfig] = None,
    ):
        self.db = db or database_service
        self.templates = templates or template_service
        self.approvals = approvals or approval_service
        self.notifications = notifications or notification_service
        self.settings = settings or config.scheduler
        self.repository = RecurringVoucherRepository(self.db)
        self.locks = KeyedLock()

    def next_run_date(self, recurring: RecurringVoucher) -> date:
        return rules.calculate_next_run_date(recurring, self.settings.legacy_quarterly_overflow)

    async def get_recurring(self, recurring_id: str) -> RecurringVoucher:
        recurring = await self.repository.get(recurring_id)
        if recurring is None:
            raise RecurringVoucherNotFoundError(recurring_id)
        return recurring

    async def list_recurring(self, active_only: bool = False) -> List[RecurringVoucher]:
        return await self.repository.find("is_active = 1" if active_only else "")

    async def create_recurring(self, data: RecurringVoucherCreate) -> RecurringVoucher:
        await self.templates.get_template(data.template_id)
        recurring = RecurringVoucher(**data.model_dump())
        recurring.next_run_date = self.next_run_date(recurring)
        await self.repository.insert(recurring)
        logger.info(f"Recurring voucher '{recurring.name}' created, first run {recurring.next_run_date}")
        return recurring

    async def _set_paused(self, recurring_id: str, paused: bool) -> RecurringVoucher:
        async with self.locks.hold(recurring_id):
            recurring = await self.get_recurring(recurring_id)
            recurring.is_paused = paused
            return await self.repository.update(recurring)

    async def pause(self, recurring_id: str) -> RecurringVoucher:
        return await self._set_paused(recurring_id, True)

    async def resume(self, recurring_id: str) -> RecurringVoucher:
        return await self._set_paused(recurring_id, False)

    async def deactivate(self, recurring_id: str) -> RecurringVoucher:
        async with self.locks.hold(recurring_id):
            recurring = await self.get_recurring(recurring_id)
            recurring.is_active = False
            return await self.repository.update(recurring)

    async def delete_recurring(self, recurring_id: str) -> None:
        await self.get_recurring(recurring_id)
        await self.repository.delete(recurring_id)

    async def get_due_vouchers(self, as_of: Optional[date] = None) -> List[RecurringVoucher]:
        as_of = as_of or today()
        candidates = await self.repository.find_due(as_of.isoformat())
        return [r for r in candidates if rules.is_due(r, as_of)]

    def _variables(self, recurring: RecurringVoucher, as_of: date) -> Dict[str, Any]:
        return {
            "voucherDate": as_of.isoformat(),
            "narration": f"{recurring.name} - {as_of.strftime('%d/%m/%Y')}",
            **recurring.variable_values,
        }

    async def _notify(self, recurring: RecurringVoucher, outcome: str, **payload) -> None:
        wanted = recurring.notify_on_success if outcome == "success" else recurring.notify_on_failure
        if not wanted or not recurring.notification_emails:
            return
        await self.notifications.send(f"recurring.{outcome}", {
            "recurringVoucherId": recurring.id,
            "name": recurring.name,
            "emails": recurring.notification_emails,
            **payload,
        })

    async def execute(self, recurring_id: str, as_of: Optional[date] = None) -> Voucher:
        """Run one schedule now; failures are recorded and re-raised"""
        as_of = as_of or today()
        async with self.locks.hold(recurring_id):
            recurring = await self.get_recurring(recurring_id)
            try:
                voucher = await self.templates.materialize(
                    recurring.template_id, self._variables(recurring, as_of), recurring.created_by,
                    recurring_voucher_id=recurring.id,
                )
                if (
                    recurring.auto_approve
                    and recurring.max_auto_approval_amount is not None
                    and voucher.total_debit <= recurring.max_auto_approval_amount
                ):
                    voucher = await self.approvals.auto_approve(voucher.id)
            except Exception as e:
                message = e.message if isinstance(e, LedgerbookError) else str(e)
                recurring.total_runs += 1
                recurring.failed_runs += 1
                recurring.retry_count += 1
                recurring.last_error = LastError(message=message, date=now())
                await self.repository.update(recurring)
                await self._notify(recurring, "failure", error=message)
                raise

            recurring.last_run_date = as_of
            recurring.total_runs += 1
            recurring.successful_runs += 1
            recurring.retry_count = 0
            recurring.last_error = None
            recurring.next_run_date = self.next_run_date(recurring)
            await self.repository.update(recurring)

        await self._notify(recurring, "success", voucherNumber=voucher.voucher_number)
        return voucher

    @timed
    async def execute_all_due(self, as_of: Optional[date] = None) -> List[RecurringExecutionResult]:
        as_of = as_of or today()
        results = []

        for recurring in await self.get_due_vouchers(as_of):
            if rules.is_exhausted(recurring):
                results.append(RecurringExecutionResult(
                    success=False,
                    recurring_voucher_id=recurring.id,
                    error=f"Skipped after {recurring.retry_count} consecutive failures",
                    code=RETRY_LIMIT_CODE,
                ))
                continue
            try:
                voucher = await self.execute(recurring.id, as_of)
                results.append(RecurringExecutionResult(
                    success=True, recurring_voucher_id=recurring.id, voucher_number=voucher.voucher_number,
                ))
            except LedgerbookError as e:
                results.append(RecurringExecutionResult(
                    success=False, recurring_voucher_id=recurring.id, error=e.message, code=e.code,
                ))
            except Exception as e:
                logger.error(f"Recurring voucher {recurring.id} failed: {e}")
                results.append(RecurringExecutionResult(
                    success=False, recurring_voucher_id=recurring.id, error=str(e),
                ))

        if results:
            failed = sum(1 for r in results if not r.success)
            logger.info(f"Recurring run processed {len(results)} schedules ({failed} failed)")
        return results


# Global service instance
recurring_service = RecurringService()
