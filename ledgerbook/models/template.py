"""
Template Models
Reusable voucher blueprints with variable lines
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from .account import AccountRef, upgrade_legacy_account
from .approval import ApprovalLevel
from .base import CamelModel
from .voucher import VoucherType
from ..utils.helpers import new_id


class TemplateCategory(str, Enum):
    STANDARD = "standard"
    RECURRING = "recurring"
    CUSTOM = "custom"


class TemplateItem(CamelModel):
    account: AccountRef
    account_name: str
    description: str = ""
    debit_amount: float = Field(default=0.0, ge=0)
    credit_amount: float = Field(default=0.0, ge=0)
    is_variable: bool = False
    gst_rate: float = 0.0
    tds_rate: float = 0.0

    _upgrade_legacy = model_validator(mode="before")(upgrade_legacy_account)


class TemplateVariable(CamelModel):
    name: str
    label: str = ""
    type: str = "text"
    default_value: Optional[Any] = None
    is_required: bool = False


class VoucherTemplate(CamelModel):
    id: str = Field(default_factory=new_id)
    template_name: str
    template_code: str = ""
    description: str = ""
    voucher_type: VoucherType
    items: List[TemplateItem] = []
    is_active: bool = True
    is_default: bool = False
    category: TemplateCategory = TemplateCategory.STANDARD
    usage_count: int = 0
    last_used: Optional[datetime] = None
    variables: List[TemplateVariable] = []
    requires_approval: bool = False
    approval_levels: List[ApprovalLevel] = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @field_validator("template_code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    def level(self, number: int) -> Optional[ApprovalLevel]:
        for level in self.approval_levels:
            if level.level == number:
                return level
        return None


class TemplateCreate(CamelModel):
    template_name: str
    template_code: Optional[str] = None
    description: str = ""
    voucher_type: VoucherType
    items: List[TemplateItem]
    is_active: bool = True
    is_default: bool = False
    category: TemplateCategory = TemplateCategory.STANDARD
    variables: List[TemplateVariable] = []
    requires_approval: bool = False
    approval_levels: List[ApprovalLevel] = []


class TemplateUpdate(CamelModel):
    template_name: Optional[str] = None
    description: Optional[str] = None
    items: Optional[List[TemplateItem]] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    category: Optional[TemplateCategory] = None
    variables: Optional[List[TemplateVariable]] = None
    requires_approval: Optional[bool] = None
    approval_levels: Optional[List[ApprovalLevel]] = None


class MaterializeRequest(CamelModel):
    variables: Dict[str, Any] = {}
    user_id: Optional[str] = None
