"""
Bank Reconciliation Models
Statement lines, book lines and the derived summary
"""

import datetime as dt
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import CamelModel
from ..utils.helpers import new_id


class ReconciliationStatus(str, Enum):
    DRAFT = "Draft"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    APPROVED = "Approved"


class StatementPeriod(CamelModel):
    from_date: date
    to_date: date


class BankEntry(CamelModel):
    id: str = Field(default_factory=new_id)
    date: Optional[dt.date] = None
    description: str = ""
    cheque_number: str = ""
    debit: float = 0.0
    credit: float = 0.0
    balance: float = 0.0
    matched: bool = False
    matched_book_entry_id: Optional[str] = None
    matched_ledger_entry_id: Optional[str] = None


class BookEntry(CamelModel):
    id: str = Field(default_factory=new_id)
    voucher_id: Optional[str] = None
    ledger_entry_id: Optional[str] = None
    date: Optional[dt.date] = None
    description: str = ""
    cheque_number: str = ""
    debit: float = 0.0
    credit: float = 0.0
    matched: bool = False
    matched_bank_entry_id: Optional[str] = None


class ReconciliationSummary(CamelModel):
    total_bank_debits: float = 0.0
    total_bank_credits: float = 0.0
    total_book_debits: float = 0.0
    total_book_credits: float = 0.0
    matched_entries: int = 0
    unmatched_bank_entries: int = 0
    unmatched_book_entries: int = 0
    reconciliation_difference: float = 0.0


class BankReconciliation(CamelModel):
    id: str = Field(default_factory=new_id)
    bank_account: str
    account_number: str = ""
    statement_period: StatementPeriod
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    bank_entries: List[BankEntry] = []
    book_entries: List[BookEntry] = []
    summary: ReconciliationSummary = ReconciliationSummary()
    status: ReconciliationStatus = ReconciliationStatus.DRAFT
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0


class ReconciliationCreate(CamelModel):
    bank_account: str
    account_number: str = ""
    statement_period: StatementPeriod
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    created_by: Optional[str] = None


class ManualMatchRequest(CamelModel):
    bank_entry_id: str
    book_entry_id: str


class UnmatchRequest(CamelModel):
    bank_entry_id: Optional[str] = None
    book_entry_id: Optional[str] = None
