"""
Ledgerbook - Recurring Voucher Tests

Schedule creation, execution bookkeeping and batch isolation.
"""

from datetime import date

import pytest

from ledgerbook.exceptions import TemplateInactiveError, TemplateNotFoundError
from ledgerbook.models.recurring import RecurringVoucherCreate
from ledgerbook.models.template import TemplateCreate, TemplateUpdate
from ledgerbook.models.voucher import ApprovalStatus
from ledgerbook.services.recurring_service import RETRY_LIMIT_CODE

from .factories import ledger_ref


async def rent_template(books, **extra):
    return await books.templates.create_template(TemplateCreate.model_validate({
        "templateName": "Monthly rent",
        "voucherType": "payment",
        "items": [
            {"account": ledger_ref("Rent"), "accountName": "Rent", "debitAmount": 25000},
            {"account": ledger_ref("Cash"), "accountName": "Cash", "creditAmount": 25000},
        ],
        **extra,
    }))


async def monthly(books, template_id, **extra):
    return await books.recurring.create_recurring(RecurringVoucherCreate.model_validate({
        "name": "Office rent",
        "templateId": template_id,
        "frequency": "monthly",
        "startDate": "2024-01-31",
        **extra,
    }))


class TestCreate:

    async def test_first_run_one_interval_after_start(self, books):
        template = await rent_template(books)
        recurring = await monthly(books, template.id)
        assert recurring.next_run_date == date(2024, 2, 29)

    async def test_template_must_exist(self, books):
        with pytest.raises(TemplateNotFoundError):
            await monthly(books, "missing")

    async def test_paused_schedule_not_due(self, books):
        template = await rent_template(books)
        recurring = await monthly(books, template.id)
        await books.recurring.pause(recurring.id)

        assert await books.recurring.get_due_vouchers(date(2024, 3, 1)) == []

        await books.recurring.resume(recurring.id)
        due = await books.recurring.get_due_vouchers(date(2024, 3, 1))
        assert [r.id for r in due] == [recurring.id]

    async def test_deactivated_schedule_not_due(self, books):
        template = await rent_template(books)
        recurring = await monthly(books, template.id)

        stopped = await books.recurring.deactivate(recurring.id)

        assert stopped.is_active is False
        assert await books.recurring.get_due_vouchers(date(2024, 3, 1)) == []


class TestExecute:

    async def test_success_advances_schedule(self, books):
        template = await rent_template(books)
        recurring = await monthly(books, template.id, dayOfMonth=31)

        voucher = await books.recurring.execute(recurring.id, date(2024, 2, 29))
        stored = await books.recurring.get_recurring(recurring.id)

        assert voucher.is_recurring
        assert voucher.recurring_voucher_id == recurring.id
        assert voucher.voucher_date == date(2024, 2, 29)
        assert voucher.narration == "Office rent - 29/02/2024"
        assert stored.last_run_date == date(2024, 2, 29)
        assert stored.next_run_date == date(2024, 3, 31)
        assert (stored.total_runs, stored.successful_runs, stored.failed_runs) == (1, 1, 0)
        assert stored.last_error is None

    async def test_failure_recorded_and_raised(self, books):
        template = await rent_template(books)
        recurring = await monthly(books, template.id)
        await books.templates.update_template(template.id, TemplateUpdate(is_active=False))

        with pytest.raises(TemplateInactiveError):
            await books.recurring.execute(recurring.id, date(2024, 3, 1))

        stored = await books.recurring.get_recurring(recurring.id)
        assert (stored.total_runs, stored.failed_runs, stored.retry_count) == (1, 1, 1)
        assert "not active" in stored.last_error.message
        assert stored.next_run_date == date(2024, 2, 29)

    async def test_auto_approve_under_limit(self, books, approval_levels):
        levels = [level.to_document() for level in approval_levels]
        template = await rent_template(books, requiresApproval=True, approvalLevels=levels)
        recurring = await monthly(books, template.id, autoApprove=True, maxAutoApprovalAmount=30000)

        voucher = await books.recurring.execute(recurring.id, date(2024, 2, 29))
        assert voucher.approval_status == ApprovalStatus.APPROVED

    async def test_auto_approve_over_limit_stays_pending(self, books, approval_levels):
        levels = [level.to_document() for level in approval_levels]
        template = await rent_template(books, requiresApproval=True, approvalLevels=levels)
        recurring = await monthly(books, template.id, autoApprove=True, maxAutoApprovalAmount=1000)

        voucher = await books.recurring.execute(recurring.id, date(2024, 2, 29))
        assert voucher.approval_status == ApprovalStatus.PENDING


class TestExecuteAllDue:

    async def test_one_failure_does_not_stop_batch(self, books):
        good_template = await rent_template(books)
        bad_template = await rent_template(books, templateName="Retired")
        bad = await monthly(books, bad_template.id, name="Retired rent")
        good = await monthly(books, good_template.id)
        await books.templates.update_template(bad_template.id, TemplateUpdate(is_active=False))

        results = await books.recurring.execute_all_due(date(2024, 3, 1))
        by_id = {r.recurring_voucher_id: r for r in results}

        assert by_id[bad.id].success is False
        assert by_id[bad.id].code == "TEMPLATE_INACTIVE"
        assert by_id[good.id].success is True
        assert by_id[good.id].voucher_number == "PY/0001"

    async def test_missing_template_isolated_mid_batch(self, books):
        template = await rent_template(books)
        doomed = await rent_template(books, templateName="Storage unit")
        first = await monthly(books, template.id)
        second = await monthly(books, doomed.id, name="Storage rent")
        third = await monthly(books, template.id, name="Parking")
        await books.templates.delete_template(doomed.id)

        results = await books.recurring.execute_all_due(date(2024, 3, 1))

        assert [r.recurring_voucher_id for r in results] == [first.id, second.id, third.id]
        assert [r.success for r in results] == [True, False, True]
        assert results[1].code == "NOT_FOUND"
        assert [results[0].voucher_number, results[2].voucher_number] == ["PY/0001", "PY/0002"]
        assert (await books.recurring.get_recurring(second.id)).failed_runs == 1

    async def test_exhausted_schedule_skipped(self, books):
        template = await rent_template(books)
        recurring = await monthly(books, template.id, maxRetries=1)
        await books.templates.update_template(template.id, TemplateUpdate(is_active=False))

        first = await books.recurring.execute_all_due(date(2024, 3, 1))
        second = await books.recurring.execute_all_due(date(2024, 3, 2))

        assert first[0].code == "TEMPLATE_INACTIVE"
        assert second[0].code == RETRY_LIMIT_CODE
        stored = await books.recurring.get_recurring(recurring.id)
        assert stored.total_runs == 1

    async def test_nothing_due(self, books):
        template = await rent_template(books)
        await monthly(books, template.id)
        assert await books.recurring.execute_all_due(date(2024, 2, 1)) == []
