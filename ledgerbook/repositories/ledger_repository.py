"""
Ledger Repository
Append-only storage of single-sided ledger entries
"""

from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..models.ledger import LedgerEntry

if TYPE_CHECKING:
    from ..services.database_service import DatabaseService

ENTRY_COLUMNS = (
    "id", "account_kind", "account_key", "account_name", "account_type", "account_category",
    "voucher_id", "voucher_number", "voucher_type", "voucher_date", "financial_year",
    "description", "cheque_number", "debit_amount", "credit_amount", "entry_kind", "created_at",
)


def _row_of(entry: LedgerEntry) -> Tuple:
    data = entry.model_dump(mode="json")
    return tuple(data[column] for column in ENTRY_COLUMNS)


def _entry_of(row: Dict[str, Any]) -> LedgerEntry:
    return LedgerEntry.model_validate({column: row[column] for column in ENTRY_COLUMNS})


def _range_clause(from_date: Optional[date], to_date: Optional[date]) -> Tuple[List[str], List[Any]]:
    clauses, params = [], []
    if from_date:
        clauses.append("voucher_date >= ?")
        params.append(from_date.isoformat())
    if to_date:
        clauses.append("voucher_date <= ?")
        params.append(to_date.isoformat())
    return clauses, params


class LedgerRepository:
    """Ledger entry table access; entries are inserted and deleted, never updated"""

    def __init__(self, db: "DatabaseService"):
        self.db = db

    async def insert_many(self, entries: List[LedgerEntry]) -> int:
        if not entries:
            return 0
        placeholders = ", ".join("?" for _ in ENTRY_COLUMNS)
        await self.db.execute_many(
            f"INSERT INTO ledger_entries ({', '.join(ENTRY_COLUMNS)}) VALUES ({placeholders})",
            [_row_of(entry) for entry in entries],
        )
        return len(entries)

    async def delete_by_voucher_number(self, voucher_number: str) -> int:
        return await self.db.execute("DELETE FROM ledger_entries WHERE voucher_number = ?", (voucher_number,))

    async def for_voucher_number(self, voucher_number: str) -> List[LedgerEntry]:
        rows = await self.db.fetch_all(
            "SELECT * FROM ledger_entries WHERE voucher_number = ? ORDER BY rowid", (voucher_number,)
        )
        return [_entry_of(row) for row in rows]

    async def for_account(
        self,
        account_name: str,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[LedgerEntry]:
        clauses, params = _range_clause(from_date, to_date)
        clauses.insert(0, "account_name = ?")
        params.insert(0, account_name)
        rows = await self.db.fetch_all(
            f"SELECT * FROM ledger_entries WHERE {' AND '.join(clauses)} ORDER BY voucher_date, rowid",
            tuple(params),
        )
        return [_entry_of(row) for row in rows]

    async def in_range(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> List[LedgerEntry]:
        clauses, params = _range_clause(from_date, to_date)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.db.fetch_all(
            f"SELECT * FROM ledger_entries {where} ORDER BY voucher_date, voucher_number, rowid",
            tuple(params),
        )
        return [_entry_of(row) for row in rows]

    async def account_totals(self, account_name: str, to_date: Optional[date] = None,
                             before: bool = False) -> Dict[str, float]:
        """Debit and credit sums up to (or strictly before) a date"""
        query = (
            "SELECT COALESCE(SUM(debit_amount), 0) AS debit, COALESCE(SUM(credit_amount), 0) AS credit "
            "FROM ledger_entries WHERE account_name = ?"
        )
        params: List[Any] = [account_name]
        if to_date:
            query += " AND voucher_date < ?" if before else " AND voucher_date <= ?"
            params.append(to_date.isoformat())
        row = await self.db.fetch_one(query, tuple(params))
        return {"debit": row["debit"], "credit": row["credit"]}

    async def totals_by_account(self, from_date: Optional[date] = None,
                                to_date: Optional[date] = None) -> List[Dict[str, Any]]:
        clauses, params = _range_clause(from_date, to_date)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return await self.db.fetch_all(
            "SELECT account_name, account_type, MAX(account_category) AS account_category, "
            "SUM(debit_amount) AS debit, SUM(credit_amount) AS credit "
            f"FROM ledger_entries {where} "
            "GROUP BY account_name, account_type ORDER BY account_type, account_name",
            tuple(params),
        )

    async def account_names(self, pattern: Optional[str] = None) -> List[str]:
        if pattern:
            rows = await self.db.fetch_all(
                "SELECT DISTINCT account_name FROM ledger_entries WHERE account_name LIKE ? ORDER BY account_name",
                (f"%{pattern}%",),
            )
        else:
            rows = await self.db.fetch_all("SELECT DISTINCT account_name FROM ledger_entries ORDER BY account_name")
        return [row["account_name"] for row in rows]

    async def count(self) -> int:
        return await self.db.fetch_scalar("SELECT COUNT(*) FROM ledger_entries") or 0
