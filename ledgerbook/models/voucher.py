"""
Voucher Models
Voucher header, line items and their lifecycle enums
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .account import AccountRef, upgrade_legacy_account
from .approval import ApprovalLevel
from .base import CamelModel
from ..utils.helpers import new_id


class VoucherType(str, Enum):
    SALES = "sales"
    PURCHASE = "purchase"
    RECEIPT = "receipt"
    PAYMENT = "payment"
    JOURNAL = "journal"
    CONTRA = "contra"
    DEBIT_NOTE = "debit_note"
    CREDIT_NOTE = "credit_note"


class VoucherStatus(str, Enum):
    DRAFT = "draft"
    PROVISIONAL = "provisional"
    POSTED = "posted"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VoucherItem(CamelModel):
    """Line item: one account, normally one nonzero side"""
    account: AccountRef
    account_name: str = ""
    description: str = ""
    debit_amount: float = Field(default=0.0, ge=0)
    credit_amount: float = Field(default=0.0, ge=0)
    gst_rate: float = 0.0
    gst_amount: float = 0.0
    tds_rate: float = 0.0
    tds_amount: float = 0.0

    _upgrade_legacy = model_validator(mode="before")(upgrade_legacy_account)


class BankDetails(CamelModel):
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[date] = None
    utr_number: Optional[str] = None


class PartyDetails(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None
    contact_number: Optional[str] = None


def require_narration(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("narration is required")
    return value


class VoucherHeader(CamelModel):
    """Caller-supplied voucher fields (number and totals are assigned by the core)"""
    voucher_type: VoucherType
    voucher_date: Optional[date] = None
    reference_number: str = ""
    reference_date: Optional[date] = None
    narration: str
    financial_year: Optional[str] = None
    party_details: Optional[PartyDetails] = None
    bank_details: Optional[BankDetails] = None

    _narration_required = field_validator("narration")(require_narration)


class Voucher(CamelModel):
    """Financial transaction header with balanced line items"""
    id: str = Field(default_factory=new_id)
    voucher_number: str
    voucher_type: VoucherType
    voucher_date: date
    reference_number: str = ""
    reference_date: Optional[date] = None
    narration: str
    items: List[VoucherItem] = []

    # Derived on every save
    total_debit: float = 0.0
    total_credit: float = 0.0
    total_gst: float = Field(default=0.0, alias="totalGST")
    total_tds: float = Field(default=0.0, alias="totalTDS")
    financial_year: str = ""

    status: VoucherStatus = VoucherStatus.DRAFT

    # Post-dating
    is_post_dated: bool = False
    effective_date: Optional[date] = None
    post_date_reason: Optional[str] = None
    auto_post_enabled: bool = False

    # Provisional
    is_provisional: bool = False
    provisional_reason: Optional[str] = None
    provisional_date: Optional[datetime] = None
    confirmed_date: Optional[datetime] = None

    posted_date: Optional[datetime] = None
    cancelled_date: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    # Template / recurring origin
    template_id: Optional[str] = None
    template_code: Optional[str] = None
    is_from_template: bool = False
    is_recurring: bool = False
    recurring_voucher_id: Optional[str] = None

    # Approval workflow
    approval_status: ApprovalStatus = ApprovalStatus.NOT_REQUIRED
    approval_level: int = 0
    max_approval_level: int = 0
    approval_chain: List[ApprovalLevel] = []
    approved_date: Optional[datetime] = None
    final_approver_id: Optional[str] = None
    rejected_date: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None

    party_details: Optional[PartyDetails] = None
    bank_details: Optional[BankDetails] = None

    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    _narration_required = field_validator("narration")(require_narration)

    @property
    def is_editable(self) -> bool:
        return self.status in (VoucherStatus.DRAFT, VoucherStatus.PROVISIONAL)

    @property
    def cheque_number(self) -> str:
        if self.bank_details and self.bank_details.cheque_number:
            return self.bank_details.cheque_number
        return ""


class VoucherCreateRequest(VoucherHeader):
    items: List[VoucherItem]
    created_by: Optional[str] = None


class VoucherUpdate(CamelModel):
    """Changes allowed while a voucher is still draft or provisional"""
    voucher_date: Optional[date] = None
    reference_number: Optional[str] = None
    reference_date: Optional[date] = None
    narration: Optional[str] = None
    items: Optional[List[VoucherItem]] = None
    party_details: Optional[PartyDetails] = None
    bank_details: Optional[BankDetails] = None
    updated_by: Optional[str] = None


class AutoPostResult(CamelModel):
    success: bool
    voucher_id: str
    voucher_number: str
    status: Optional[VoucherStatus] = None
    error: Optional[str] = None
    code: Optional[str] = None


class VoucherTypeSummary(CamelModel):
    voucher_type: VoucherType
    count: int
    total_debit: float
    total_credit: float
