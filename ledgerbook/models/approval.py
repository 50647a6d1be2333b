"""
Approval Models
Approval level definitions and per-level approval records
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import CamelModel
from ..utils.helpers import new_id


class ApprovalRecordStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELEGATED = "delegated"


class ApprovalLevel(CamelModel):
    """One step of an approval chain"""
    level: int = Field(ge=1)
    approver_role: str
    approver_id: Optional[str] = None
    min_amount: float = 0.0
    max_amount: Optional[float] = None


class VoucherApproval(CamelModel):
    """Approval record for one level of one voucher"""
    id: str = Field(default_factory=new_id)
    voucher_id: str
    voucher_number: str
    approval_level: int = Field(ge=1)
    max_approval_level: int = Field(ge=1)
    approver_id: str
    approver_role: str
    status: ApprovalRecordStatus = ApprovalRecordStatus.PENDING
    approval_date: Optional[datetime] = None
    comments: str = ""
    delegated_to: Optional[str] = None
    delegation_reason: Optional[str] = None
    delegation_date: Optional[datetime] = None
    amount_limit: Optional[float] = None
    can_approve_amount: bool = True
    notification_sent: bool = False
    reminders_sent: int = 0
    last_reminder_date: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.status in (ApprovalRecordStatus.PENDING, ApprovalRecordStatus.DELEGATED)
