"""
Ledger Service Module
Derived balances and financial reports over ledger entries

Balances are never stored; every figure here is aggregated from the
ledger_entries table at query time.
"""

from datetime import date
from typing import Dict, List, Optional

from ..models.account import AccountType
from ..models.ledger import (
    AccountBalance,
    AccountLedger,
    BalanceSheet,
    DayBookVoucher,
    LedgerEntry,
    LedgerLine,
    ProfitAndLoss,
    ReportLine,
    TrialBalance,
    TrialBalanceRow,
)
from ..repositories.ledger_repository import LedgerRepository
from ..utils.decorators import timed
from ..utils.helpers import money_sum, round_money
from .database_service import DatabaseService, database_service

PROFIT_AND_LOSS_ACCOUNT = "Profit & Loss A/c"


class LedgerService:
    """Read side of the ledger"""

    def __init__(self, db: Optional[DatabaseService] = None):
        self.db = db or database_service
        self.entries = LedgerRepository(self.db)

    async def entries_for_voucher(self, voucher_number: str) -> List[LedgerEntry]:
        return await self.entries.for_voucher_number(voucher_number)

    async def entries_for_account(
        self,
        account_name: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[LedgerEntry]:
        return await self.entries.for_account(account_name, from_date, to_date)

    async def account_balance(self, account_name: str, as_of: Optional[date] = None) -> AccountBalance:
        """balance = sum(debit) - sum(credit) up to and including as_of"""
        totals = await self.entries.account_totals(account_name, as_of)
        return AccountBalance(
            account_name=account_name,
            as_of=as_of,
            total_debit=round_money(totals["debit"]),
            total_credit=round_money(totals["credit"]),
            balance=round_money(totals["debit"] - totals["credit"]),
        )

    async def account_ledger(
        self,
        account_name: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> AccountLedger:
        opening = 0.0
        if from_date:
            totals = await self.entries.account_totals(account_name, from_date, before=True)
            opening = round_money(totals["debit"] - totals["credit"])

        running = opening
        lines = []
        for entry in await self.entries.for_account(account_name, from_date, to_date):
            running = round_money(running + entry.debit_amount - entry.credit_amount)
            lines.append(LedgerLine(
                voucher_date=entry.voucher_date,
                voucher_number=entry.voucher_number,
                voucher_type=entry.voucher_type,
                description=entry.description,
                debit_amount=entry.debit_amount,
                credit_amount=entry.credit_amount,
                balance=running,
            ))

        return AccountLedger(
            account_name=account_name,
            from_date=from_date,
            to_date=to_date,
            opening_balance=opening,
            closing_balance=running,
            entries=lines,
        )

    @timed
    async def trial_balance(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> TrialBalance:
        rows = []
        for row in await self.entries.totals_by_account(from_date, to_date):
            net = round_money(row["debit"] - row["credit"])
            if net == 0:
                continue
            rows.append(TrialBalanceRow(
                account_name=row["account_name"],
                account_type=row["account_type"],
                debit_balance=net if net > 0 else 0.0,
                credit_balance=-net if net < 0 else 0.0,
                balance_type="debit" if net > 0 else "credit",
            ))

        total_debit = money_sum(r.debit_balance for r in rows)
        total_credit = money_sum(r.credit_balance for r in rows)
        difference = round_money(total_debit - total_credit)
        return TrialBalance(
            as_of=to_date,
            accounts=rows,
            total_debit=total_debit,
            total_credit=total_credit,
            difference=difference,
            is_balanced=abs(difference) <= 0.01,
        )

    async def _net_by_type(self, from_date: Optional[date], to_date: Optional[date]) -> Dict[AccountType, List[ReportLine]]:
        """Net amount per account, signed so that the account's normal side is positive"""
        grouped: Dict[AccountType, List[ReportLine]] = {t: [] for t in AccountType}
        for row in await self.entries.totals_by_account(from_date, to_date):
            account_type = AccountType(row["account_type"])
            if account_type in (AccountType.ASSET, AccountType.EXPENSE):
                amount = row["debit"] - row["credit"]
            else:
                amount = row["credit"] - row["debit"]
            amount = round_money(amount)
            if amount == 0:
                continue
            grouped[account_type].append(ReportLine(
                account_name=row["account_name"],
                category=row["account_category"] or "General",
                amount=amount,
            ))
        return grouped

    async def profit_and_loss(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> ProfitAndLoss:
        grouped = await self._net_by_type(from_date, to_date)
        income = grouped[AccountType.INCOME]
        expenses = grouped[AccountType.EXPENSE]
        total_income = money_sum(line.amount for line in income)
        total_expenses = money_sum(line.amount for line in expenses)
        net_profit = round_money(total_income - total_expenses)
        return ProfitAndLoss(
            from_date=from_date,
            to_date=to_date,
            income=income,
            expenses=expenses,
            total_income=total_income,
            total_expenses=total_expenses,
            net_profit=net_profit,
            profit_margin=round_money(net_profit / total_income * 100) if total_income > 0 else 0.0,
        )

    async def balance_sheet(self, as_of: Optional[date] = None) -> BalanceSheet:
        grouped = await self._net_by_type(None, as_of)
        equity = list(grouped[AccountType.EQUITY])

        # undistributed result of the period belongs to equity
        net_profit = round_money(
            sum(line.amount for line in grouped[AccountType.INCOME])
            - sum(line.amount for line in grouped[AccountType.EXPENSE])
        )
        if net_profit:
            equity.append(ReportLine(account_name=PROFIT_AND_LOSS_ACCOUNT, category="Reserves", amount=net_profit))

        total_assets = money_sum(line.amount for line in grouped[AccountType.ASSET])
        total_liabilities = money_sum(line.amount for line in grouped[AccountType.LIABILITY])
        total_equity = money_sum(line.amount for line in equity)
        return BalanceSheet(
            as_of=as_of,
            assets=grouped[AccountType.ASSET],
            liabilities=grouped[AccountType.LIABILITY],
            equity=equity,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=total_equity,
            balance_check=round_money(total_assets - (total_liabilities + total_equity)),
        )

    async def day_book(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> List[DayBookVoucher]:
        """Entries within the range grouped by voucher, in date order"""
        grouped: Dict[str, List[LedgerEntry]] = {}
        for entry in await self.entries.in_range(from_date, to_date):
            grouped.setdefault(entry.voucher_number, []).append(entry)

        return [
            DayBookVoucher(
                voucher_number=number,
                voucher_type=entries[0].voucher_type,
                voucher_date=entries[0].voucher_date,
                entries=entries,
                total_debit=money_sum(e.debit_amount for e in entries),
                total_credit=money_sum(e.credit_amount for e in entries),
            )
            for number, entries in grouped.items()
        ]

    async def bank_accounts(self) -> List[str]:
        """Account names that look like bank or cash accounts"""
        names = await self.entries.account_names()
        return [name for name in names if "bank" in name.lower() or "cash" in name.lower()]


# Global service instance
ledger_service = LedgerService()
