"""
Approval Service Module
Multi-level voucher approval workflow

Only the first level's record is created with the workflow; each approval of
a non-final level creates the record for the next one. Approving or
rejecting never posts the voucher.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from ..core import approvals as rules
from ..exceptions import ApprovalNotFoundError, LedgerbookError, ValidationError
from ..models.approval import ApprovalLevel, ApprovalRecordStatus, VoucherApproval
from ..models.response import BatchItemResult
from ..models.voucher import ApprovalStatus, Voucher
from ..repositories.document_repository import ApprovalRepository, TemplateRepository
from ..utils.helpers import now
from ..utils.logger import logger
from .audit_service import AuditService, audit_service
from .database_service import DatabaseService, database_service
from .notification_service import NotificationService, notification_service
from .voucher_service import VoucherService, voucher_service

AUTO_APPROVER = "system"


class ApprovalService:
    """Approve, reject and delegate voucher approval records"""

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        vouchers: Optional[VoucherService] = None,
        notifications: Optional[NotificationService] = None,
        audit: Optional[AuditService] = None,
    ):
        self.db = db or database_service
        self.vouchers = vouchers or voucher_service
        self.notifications = notifications or notification_service
        self.audit = audit or audit_service
        self.repository = ApprovalRepository(self.db)
        self.templates = TemplateRepository(self.db)

    async def get_approval(self, approval_id: str) -> VoucherApproval:
        approval = await self.repository.get(approval_id)
        if approval is None:
            raise ApprovalNotFoundError(approval_id)
        return approval

    async def approvals_for_voucher(self, voucher_id: str) -> List[VoucherApproval]:
        return await self.repository.for_voucher(voucher_id)

    async def _notify(self, event: str, approval: VoucherApproval, **extra) -> None:
        payload = {
            "approvalId": approval.id,
            "voucherNumber": approval.voucher_number,
            "approvalLevel": approval.approval_level,
            "approverId": approval.delegated_to or approval.approver_id,
            **extra,
        }
        await self.notifications.send(event, payload)

    async def notify_requested(self, record: VoucherApproval) -> None:
        await self._notify("approval.requested", record)

    # Workflow creation

    async def _insert_level(self, voucher: Voucher, level: ApprovalLevel, max_level: int,
                            created_by: Optional[str] = None) -> VoucherApproval:
        record = rules.new_approval_record(voucher, level, max_level, created_by)
        return await self.repository.insert(record)

    async def open_first_level(self, voucher: Voucher, created_by: Optional[str] = None) -> VoucherApproval:
        """Create the level-1 record of the voucher's approval chain"""
        chain = voucher.approval_chain
        return await self._insert_level(voucher, chain[0], len(chain), created_by)

    async def start_workflow(self, voucher: Voucher, levels: List[ApprovalLevel],
                             created_by: Optional[str] = None) -> VoucherApproval:
        """Put an already loaded voucher into approval and create the level-1 record

        The caller holds the voucher's lock and owns the transaction.
        """
        rules.ensure_workflow_can_start(voucher)
        rules.begin_chain(voucher, levels)
        await self.vouchers.save(voucher)
        return await self.open_first_level(voucher, created_by)

    async def create_workflow(self, voucher_id: str, levels: List[ApprovalLevel],
                              created_by: Optional[str] = None) -> VoucherApproval:
        async with self.vouchers.locks.hold(voucher_id):
            voucher = await self.vouchers.get_voucher(voucher_id)
            async with self.db.transaction():
                record = await self.start_workflow(voucher, levels, created_by)

        await self.notify_requested(record)
        return record

    # Decisions

    async def _next_level_definition(self, voucher: Voucher, number: int) -> Optional[ApprovalLevel]:
        if voucher.template_id:
            template = await self.templates.get(voucher.template_id)
            if template is not None:
                level = template.level(number)
                if level is not None:
                    return level
        return rules.find_level(voucher.approval_chain, number)

    def _max_level(self, voucher: Voucher, record: VoucherApproval) -> int:
        return voucher.max_approval_level or record.max_approval_level

    async def approve(self, approval_id: str, approver_id: str, comments: str = "") -> Voucher:
        record = await self.get_approval(approval_id)
        next_record = None

        async with self.vouchers.locks.hold(record.voucher_id):
            record = await self.get_approval(approval_id)
            voucher = await self.vouchers.get_voucher(record.voucher_id)
            at = now()
            rules.approve(record, approver_id, comments, at)

            async with self.db.transaction():
                await self.repository.update(record)
                if rules.is_final_level(record):
                    rules.mark_voucher_approved(voucher, approver_id, at)
                else:
                    number = rules.advance_voucher(voucher)
                    level = await self._next_level_definition(voucher, number)
                    if level is None:
                        raise ValidationError(
                            f"No definition for approval level {number} of voucher {voucher.voucher_number}",
                            field="approvalLevels",
                        )
                    next_record = await self._insert_level(
                        voucher, level, self._max_level(voucher, record), record.created_by
                    )
                await self.vouchers.save(voucher)

        await self.audit.log_action(
            "APPROVE", "voucher", voucher.id, voucher.voucher_number,
            new_data={"level": record.approval_level, "approvalStatus": voucher.approval_status.value},
            actor=approver_id,
        )
        if next_record is not None:
            await self.notify_requested(next_record)
        else:
            await self._notify("approval.completed", record, approvedBy=approver_id)
        return voucher

    async def reject(self, approval_id: str, approver_id: str, comments: str = "") -> Voucher:
        record = await self.get_approval(approval_id)

        async with self.vouchers.locks.hold(record.voucher_id):
            record = await self.get_approval(approval_id)
            voucher = await self.vouchers.get_voucher(record.voucher_id)
            at = now()
            rules.reject(record, approver_id, comments, at)
            rules.mark_voucher_rejected(voucher, approver_id, comments, at)

            async with self.db.transaction():
                await self.repository.update(record)
                await self.vouchers.save(voucher)

        await self.audit.log_action(
            "REJECT", "voucher", voucher.id, voucher.voucher_number,
            new_data={"level": record.approval_level, "reason": comments}, actor=approver_id,
        )
        await self._notify("approval.rejected", record, rejectedBy=approver_id, reason=comments)
        return voucher

    async def delegate(self, approval_id: str, approver_id: str, delegate_to_id: str,
                       reason: str = "") -> VoucherApproval:
        record = await self.get_approval(approval_id)
        async with self.vouchers.locks.hold(record.voucher_id):
            record = await self.get_approval(approval_id)
            rules.delegate(record, approver_id, delegate_to_id, reason, now())
            await self.repository.update(record)

        await self._notify("approval.delegated", record, delegatedBy=approver_id)
        return record

    async def auto_approve(self, voucher_id: str, actor: str = AUTO_APPROVER) -> Voucher:
        """Approve a voucher and close its open approval records without a human decision"""
        async with self.vouchers.locks.hold(voucher_id):
            voucher = await self.vouchers.get_voucher(voucher_id)
            at = now()
            open_records = [r for r in await self.repository.for_voucher(voucher_id) if r.is_open]
            async with self.db.transaction():
                for record in open_records:
                    record.status = ApprovalRecordStatus.APPROVED
                    record.approval_date = at
                    record.comments = "Auto-approved"
                    await self.repository.update(record)
                rules.mark_voucher_approved(voucher, actor, at)
                await self.vouchers.save(voucher)

        await self.audit.log_action("AUTO_APPROVE", "voucher", voucher.id, voucher.voucher_number, actor=actor)
        return voucher

    async def bulk_approve(self, approval_ids: List[str], approver_id: str,
                           comments: str = "") -> List[BatchItemResult]:
        results = []
        for approval_id in approval_ids:
            try:
                voucher = await self.approve(approval_id, approver_id, comments)
                results.append(BatchItemResult(
                    success=True, id=approval_id,
                    data={"voucherNumber": voucher.voucher_number, "approvalStatus": voucher.approval_status.value},
                ))
            except LedgerbookError as e:
                results.append(BatchItemResult(success=False, id=approval_id, error=e.message, code=e.code))
            except Exception as e:
                logger.error(f"Bulk approval of {approval_id} failed: {e}")
                results.append(BatchItemResult(success=False, id=approval_id, error=str(e)))
        return results

    # Queries

    async def pending_approvals_for(self, user_id: str) -> List[VoucherApproval]:
        """Records the user can act on: own pending ones and those delegated to them"""
        return await self.repository.pending_for(user_id)

    async def approval_statistics(self, user_id: str, from_date: Optional[date] = None,
                                  to_date: Optional[date] = None) -> Dict[str, Any]:
        records = await self.repository.by_approver(user_id)
        if from_date:
            records = [r for r in records if r.created_at and r.created_at.date() >= from_date]
        if to_date:
            records = [r for r in records if r.created_at and r.created_at.date() <= to_date]

        breakdown = {status.value: 0 for status in ApprovalRecordStatus}
        for record in records:
            breakdown[record.status.value] += 1

        durations = [
            (record.approval_date - record.created_at).total_seconds()
            for record in records
            if record.status == ApprovalRecordStatus.APPROVED and record.approval_date and record.created_at
        ]
        return {
            "userId": user_id,
            "total": len(records),
            "statusBreakdown": breakdown,
            "averageApprovalSeconds": sum(durations) / len(durations) if durations else 0.0,
        }

    async def send_reminder(self, approval_id: str) -> VoucherApproval:
        record = await self.get_approval(approval_id)
        rules.ensure_open(record, "remind")
        record.reminders_sent += 1
        record.last_reminder_date = now()
        await self.repository.update(record)
        await self._notify("approval.reminder", record, remindersSent=record.reminders_sent)
        return record


# Global service instance
approval_service = ApprovalService()
