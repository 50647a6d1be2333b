"""
Recurring Voucher Models
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import CamelModel
from ..utils.helpers import new_id


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class LastError(CamelModel):
    message: str
    date: datetime


class RecurringVoucher(CamelModel):
    """Schedule that materializes one template on a fixed cadence"""
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    template_id: str
    frequency: Frequency
    interval: int = Field(default=1, ge=1)
    start_date: date
    end_date: Optional[date] = None
    next_run_date: Optional[date] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    month_of_year: Optional[int] = Field(default=None, ge=1, le=12)
    # Sunday=0 ... Saturday=6
    week_day: Optional[int] = Field(default=None, ge=0, le=6)
    is_active: bool = True
    is_paused: bool = False
    last_run_date: Optional[date] = None
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    variable_values: Dict[str, Any] = {}
    auto_approve: bool = False
    max_auto_approval_amount: Optional[float] = None
    notify_on_success: bool = False
    notify_on_failure: bool = True
    notification_emails: List[str] = []
    last_error: Optional[LastError] = None
    retry_count: int = 0
    max_retries: int = 3
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0


class RecurringVoucherCreate(CamelModel):
    name: str
    description: str = ""
    template_id: str
    frequency: Frequency
    interval: int = Field(default=1, ge=1)
    start_date: date
    end_date: Optional[date] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    month_of_year: Optional[int] = Field(default=None, ge=1, le=12)
    week_day: Optional[int] = Field(default=None, ge=0, le=6)
    variable_values: Dict[str, Any] = {}
    auto_approve: bool = False
    max_auto_approval_amount: Optional[float] = None
    notify_on_success: bool = False
    notify_on_failure: bool = True
    notification_emails: List[str] = []
    max_retries: int = 3
    created_by: Optional[str] = None


class RecurringExecutionResult(CamelModel):
    success: bool
    recurring_voucher_id: str
    voucher_number: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
