"""
Ledgerbook - Approval Workflow Tests

Multi-level approval: record creation, authorization, delegation,
rejection and the non-decreasing approval level.
"""

import pytest

from ledgerbook.exceptions import (
    InvalidApprovalStateError,
    InvalidVoucherStateError,
    UnauthorizedApproverError,
    ValidationError,
)
from ledgerbook.models.approval import ApprovalLevel, ApprovalRecordStatus
from ledgerbook.models.voucher import ApprovalStatus, VoucherStatus

from .factories import cash_sale


async def workflow(books, levels, amount=1000.0):
    voucher = await books.vouchers.create_voucher(cash_sale(amount))
    record = await books.approvals.create_workflow(voucher.id, levels, "u-clerk")
    return voucher, record


class TestCreateWorkflow:

    async def test_only_first_level_record_created(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)

        records = await books.approvals.approvals_for_voucher(voucher.id)
        stored = await books.vouchers.get_voucher(voucher.id)

        assert len(records) == 1
        assert record.approval_level == 1
        assert record.max_approval_level == 2
        assert record.approver_id == "u-accountant"
        assert record.status == ApprovalRecordStatus.PENDING
        assert stored.approval_status == ApprovalStatus.PENDING
        assert stored.approval_level == 1
        assert stored.max_approval_level == 2

    async def test_amount_cap_is_informational(self, books, approval_levels):
        _, record = await workflow(books, approval_levels, amount=75000)
        assert record.amount_limit == 50000
        assert record.can_approve_amount is False

    async def test_levels_required(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        with pytest.raises(ValidationError):
            await books.approvals.create_workflow(voucher.id, [])

    async def test_level_without_approver_rejected(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        with pytest.raises(ValidationError):
            await books.approvals.create_workflow(voucher.id, [ApprovalLevel(level=1, approver_role="CFO")])
        assert await books.approvals.approvals_for_voucher(voucher.id) == []

    async def test_levels_numbered_from_one(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        levels = [
            ApprovalLevel(level=2, approver_role="Accountant", approver_id="u-accountant"),
            ApprovalLevel(level=3, approver_role="Finance Manager", approver_id="u-manager"),
        ]

        with pytest.raises(ValidationError) as error:
            await books.approvals.create_workflow(voucher.id, levels)

        assert error.value.details["levels"] == [2, 3]
        assert await books.approvals.approvals_for_voucher(voucher.id) == []
        stored = await books.vouchers.get_voucher(voucher.id)
        assert stored.approval_status == ApprovalStatus.NOT_REQUIRED

    async def test_restart_mid_chain_rejected(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)
        await books.approvals.approve(record.id, "u-accountant")

        with pytest.raises(InvalidVoucherStateError):
            await books.approvals.create_workflow(voucher.id, approval_levels, "u-clerk")

        stored = await books.vouchers.get_voucher(voucher.id)
        assert stored.approval_level == 2
        assert len(await books.approvals.approvals_for_voucher(voucher.id)) == 2

    async def test_rejected_voucher_cannot_restart(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)
        await books.approvals.reject(record.id, "u-accountant", "Missing invoice")

        with pytest.raises(InvalidVoucherStateError):
            await books.approvals.create_workflow(voucher.id, approval_levels, "u-clerk")

        stored = await books.vouchers.get_voucher(voucher.id)
        assert stored.approval_status == ApprovalStatus.REJECTED
        assert len(await books.approvals.approvals_for_voucher(voucher.id)) == 1

    async def test_posted_voucher_cannot_start(self, books, approval_levels):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.post_voucher(voucher.id)

        with pytest.raises(InvalidVoucherStateError):
            await books.approvals.create_workflow(voucher.id, approval_levels)
        assert await books.approvals.approvals_for_voucher(voucher.id) == []

    async def test_requested_notification_sent(self, books, approval_levels):
        await workflow(books, approval_levels)
        assert books.notifications.sent_count == 1


class TestApprove:

    async def test_non_final_level_opens_next(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)

        updated = await books.approvals.approve(record.id, "u-accountant", "Checked")
        records = await books.approvals.approvals_for_voucher(voucher.id)

        assert updated.approval_status == ApprovalStatus.PENDING
        assert updated.approval_level == 2
        assert [r.approval_level for r in records] == [1, 2]
        assert records[0].status == ApprovalRecordStatus.APPROVED
        assert records[1].approver_id == "u-manager"
        assert records[1].status == ApprovalRecordStatus.PENDING

    async def test_final_level_approves_voucher(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)
        await books.approvals.approve(record.id, "u-accountant")
        second = (await books.approvals.approvals_for_voucher(voucher.id))[1]

        approved = await books.approvals.approve(second.id, "u-manager", "OK")

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.final_approver_id == "u-manager"
        assert approved.approved_date is not None
        # approval never posts
        assert approved.status == VoucherStatus.DRAFT

    async def test_wrong_user_rejected(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)
        with pytest.raises(UnauthorizedApproverError):
            await books.approvals.approve(record.id, "u-intruder")

    async def test_closed_record_rejected(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)
        await books.approvals.approve(record.id, "u-accountant")
        with pytest.raises(InvalidApprovalStateError):
            await books.approvals.approve(record.id, "u-accountant")

    async def test_level_never_decreases(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)
        levels = [(await books.vouchers.get_voucher(voucher.id)).approval_level]

        await books.approvals.approve(record.id, "u-accountant")
        levels.append((await books.vouchers.get_voucher(voucher.id)).approval_level)
        second = (await books.approvals.approvals_for_voucher(voucher.id))[1]
        await books.approvals.approve(second.id, "u-manager")
        levels.append((await books.vouchers.get_voucher(voucher.id)).approval_level)

        assert levels == sorted(levels)


class TestRejectAndDelegate:

    async def test_reject_marks_voucher(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)

        rejected = await books.approvals.reject(record.id, "u-accountant", "Missing invoice")

        assert rejected.approval_status == ApprovalStatus.REJECTED
        assert rejected.rejected_by == "u-accountant"
        assert rejected.rejection_reason == "Missing invoice"
        assert len(await books.approvals.approvals_for_voucher(voucher.id)) == 1

    async def test_delegate_can_decide(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)

        delegated = await books.approvals.delegate(record.id, "u-accountant", "u-deputy", "On leave")
        pending = await books.approvals.pending_approvals_for("u-deputy")

        assert delegated.status == ApprovalRecordStatus.DELEGATED
        assert [r.id for r in pending] == [record.id]

        voucher = await books.approvals.approve(record.id, "u-deputy")
        assert voucher.approval_level == 2

    async def test_only_approver_delegates(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)
        with pytest.raises(UnauthorizedApproverError):
            await books.approvals.delegate(record.id, "u-deputy", "u-other")

    async def test_bulk_approve_isolates_failures(self, books, approval_levels):
        _, first = await workflow(books, approval_levels)
        _, second = await workflow(books, approval_levels)

        results = await books.approvals.bulk_approve([first.id, "missing", second.id], "u-accountant")

        assert [r.success for r in results] == [True, False, True]
        assert results[1].code == "NOT_FOUND"


class TestAutoApprove:

    async def test_closes_open_records(self, books, approval_levels):
        voucher, record = await workflow(books, approval_levels)

        approved = await books.approvals.auto_approve(voucher.id)
        stored = await books.approvals.get_approval(record.id)

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.final_approver_id == "system"
        assert stored.status == ApprovalRecordStatus.APPROVED

    async def test_statistics(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)
        await books.approvals.approve(record.id, "u-accountant")

        stats = await books.approvals.approval_statistics("u-accountant")

        assert stats["total"] == 1
        assert stats["statusBreakdown"]["approved"] == 1


class TestReminder:

    async def test_reminder_counted_and_notified(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)

        reminded = await books.approvals.send_reminder(record.id)

        assert reminded.reminders_sent == 1
        assert reminded.last_reminder_date is not None
        assert books.notifications.sent_count == 2

    async def test_no_reminder_for_decided_record(self, books, approval_levels):
        _, record = await workflow(books, approval_levels)
        await books.approvals.reject(record.id, "u-accountant", "Wrong ledger")

        with pytest.raises(InvalidApprovalStateError):
            await books.approvals.send_reminder(record.id)
