"""
Approval Rules
Authorization and state transitions of a single approval record
"""

from datetime import datetime
from typing import List, Optional

from ..exceptions import (
    InvalidApprovalStateError,
    InvalidVoucherStateError,
    UnauthorizedApproverError,
    ValidationError,
)
from ..models.approval import ApprovalLevel, ApprovalRecordStatus, VoucherApproval
from ..models.voucher import ApprovalStatus, Voucher, VoucherStatus


def can_approve_amount(amount: float, level: ApprovalLevel) -> bool:
    """Informational: does the amount fall under the level's cap"""
    if level.max_amount is None:
        return True
    return amount <= level.max_amount


def find_level(levels: List[ApprovalLevel], number: int) -> Optional[ApprovalLevel]:
    for level in levels:
        if level.level == number:
            return level
    return None


def new_approval_record(
    voucher: Voucher,
    level: ApprovalLevel,
    max_level: int,
    created_by: Optional[str] = None,
) -> VoucherApproval:
    if not level.approver_id:
        raise ValidationError(f"Approval level {level.level} has no approver", field="approverId")
    return VoucherApproval(
        voucher_id=voucher.id,
        voucher_number=voucher.voucher_number,
        approval_level=level.level,
        max_approval_level=max_level,
        approver_id=level.approver_id,
        approver_role=level.approver_role,
        amount_limit=level.max_amount,
        can_approve_amount=can_approve_amount(voucher.total_debit, level),
        created_by=created_by or voucher.created_by,
    )


def ensure_open(record: VoucherApproval, operation: str) -> None:
    if not record.is_open:
        raise InvalidApprovalStateError(record.id, record.status.value, operation)


def authorize_decision(record: VoucherApproval, user_id: str, operation: str) -> None:
    """The approver or the current delegate may approve or reject"""
    if user_id == record.approver_id:
        return
    if record.delegated_to and user_id == record.delegated_to:
        return
    raise UnauthorizedApproverError(record.id, user_id, operation)


def approve(record: VoucherApproval, user_id: str, comments: str, at: datetime) -> VoucherApproval:
    ensure_open(record, "approve")
    authorize_decision(record, user_id, "approve")
    record.status = ApprovalRecordStatus.APPROVED
    record.approval_date = at
    record.comments = comments
    return record


def reject(record: VoucherApproval, user_id: str, comments: str, at: datetime) -> VoucherApproval:
    ensure_open(record, "reject")
    authorize_decision(record, user_id, "reject")
    record.status = ApprovalRecordStatus.REJECTED
    record.approval_date = at
    record.comments = comments
    return record


def delegate(record: VoucherApproval, user_id: str, delegate_to: str, reason: str, at: datetime) -> VoucherApproval:
    # only the original approver may hand the record on
    ensure_open(record, "delegate")
    if user_id != record.approver_id:
        raise UnauthorizedApproverError(record.id, user_id, "delegate")
    if not delegate_to:
        raise ValidationError("Delegate user is required", field="delegateToId")
    record.status = ApprovalRecordStatus.DELEGATED
    record.delegated_to = delegate_to
    record.delegation_reason = reason
    record.delegation_date = at
    return record


def is_final_level(record: VoucherApproval) -> bool:
    return record.approval_level >= record.max_approval_level


def mark_voucher_approved(voucher: Voucher, approver_id: str, at: datetime) -> Voucher:
    voucher.approval_status = ApprovalStatus.APPROVED
    voucher.approved_date = at
    voucher.final_approver_id = approver_id
    return voucher


def mark_voucher_rejected(voucher: Voucher, approver_id: str, reason: str, at: datetime) -> Voucher:
    voucher.approval_status = ApprovalStatus.REJECTED
    voucher.rejected_date = at
    voucher.rejected_by = approver_id
    voucher.rejection_reason = reason
    return voucher


def advance_voucher(voucher: Voucher) -> int:
    """Move the voucher to its next approval level; the level never decreases"""
    voucher.approval_level = voucher.approval_level + 1
    return voucher.approval_level


def ordered_levels(levels: List[ApprovalLevel]) -> List[ApprovalLevel]:
    """Levels sorted by number; they must run 1..N without gaps or repeats"""
    if not levels:
        raise ValidationError("At least one approval level is required", field="levels")
    ordered = sorted(levels, key=lambda level: level.level)
    numbers = [level.level for level in ordered]
    if numbers != list(range(1, len(ordered) + 1)):
        raise ValidationError(
            f"Approval levels must be numbered 1..{len(ordered)}, got {numbers}", field="levels", levels=numbers,
        )
    return ordered


def ensure_workflow_can_start(voucher: Voucher) -> None:
    """Only an editable voucher that never entered approval can start a chain"""
    if voucher.status not in (VoucherStatus.DRAFT, VoucherStatus.PROVISIONAL):
        raise InvalidVoucherStateError(voucher.voucher_number, voucher.status.value, "start approval for")
    if voucher.approval_status != ApprovalStatus.NOT_REQUIRED:
        raise InvalidVoucherStateError(voucher.voucher_number, voucher.approval_status.value, "start approval for")


def begin_chain(voucher: Voucher, levels: List[ApprovalLevel]) -> List[ApprovalLevel]:
    """Put the voucher at level 1 of the given chain"""
    ordered = ordered_levels(levels)
    voucher.approval_status = ApprovalStatus.PENDING
    voucher.approval_level = 1
    voucher.max_approval_level = len(ordered)
    voucher.approval_chain = ordered
    return ordered
