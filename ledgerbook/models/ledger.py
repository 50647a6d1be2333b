"""
Ledger Models
Single-sided ledger entries and the report shapes derived from them
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .account import AccountKind, AccountType
from .base import CamelModel
from ..utils.helpers import new_id


class EntryKind(str, Enum):
    POSTING = "posting"
    REVERSAL = "reversal"


class LedgerEntry(CamelModel):
    """One debit-only or credit-only movement against an account"""
    id: str = Field(default_factory=new_id)
    account_kind: AccountKind
    account_key: str
    account_name: str
    account_type: AccountType
    account_category: str = "General"
    voucher_id: str
    voucher_number: str
    voucher_type: str
    voucher_date: date
    financial_year: str
    description: str = ""
    cheque_number: str = ""
    debit_amount: float = 0.0
    credit_amount: float = 0.0
    entry_kind: EntryKind = EntryKind.POSTING
    created_at: Optional[datetime] = None


class LedgerLine(CamelModel):
    """Ledger entry with the running balance after it"""
    voucher_date: date
    voucher_number: str
    voucher_type: str
    description: str
    debit_amount: float
    credit_amount: float
    balance: float


class AccountBalance(CamelModel):
    account_name: str
    as_of: Optional[date] = None
    total_debit: float
    total_credit: float
    balance: float


class AccountLedger(CamelModel):
    account_name: str
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    opening_balance: float
    closing_balance: float
    entries: List[LedgerLine]


class TrialBalanceRow(CamelModel):
    account_name: str
    account_type: AccountType
    debit_balance: float
    credit_balance: float
    balance_type: str


class TrialBalance(CamelModel):
    as_of: Optional[date] = None
    accounts: List[TrialBalanceRow]
    total_debit: float
    total_credit: float
    difference: float
    is_balanced: bool


class ReportLine(CamelModel):
    account_name: str
    category: str
    amount: float


class ProfitAndLoss(CamelModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    income: List[ReportLine]
    expenses: List[ReportLine]
    total_income: float
    total_expenses: float
    net_profit: float
    profit_margin: float


class BalanceSheet(CamelModel):
    as_of: Optional[date] = None
    assets: List[ReportLine]
    liabilities: List[ReportLine]
    equity: List[ReportLine]
    total_assets: float
    total_liabilities: float
    total_equity: float
    balance_check: float


class DayBookVoucher(CamelModel):
    voucher_number: str
    voucher_type: str
    voucher_date: date
    entries: List[LedgerEntry]
    total_debit: float
    total_credit: float
