"""
Reconciliation Service Module
Bank reconciliation sessions: statement import, book loading and matching

The summary is recomputed from the entries on every save.
"""

from typing import Any, Dict, List, Optional

from ..config import AccountingConfig, config
from ..core import matching as rules
from ..exceptions import ReconciliationNotFoundError, StateConflictError
from ..models.reconciliation import BankReconciliation, ReconciliationCreate, ReconciliationStatus
from ..repositories.document_repository import ReconciliationRepository
from ..repositories.ledger_repository import LedgerRepository
from ..utils.helpers import now
from ..utils.locks import KeyedLock
from ..utils.logger import logger
from .database_service import DatabaseService, database_service

RECENT_LIMIT = 5


class ReconciliationService:
    """Pairs bank statement lines with ledger entries of the same account"""

    def __init__(self, db: Optional[DatabaseService] = None, settings: Optional[AccountingConfig] = None):
        self.db = db or database_service
        self.settings = settings or config.accounting
        self.repository = ReconciliationRepository(self.db)
        self.ledger = LedgerRepository(self.db)
        self.locks = KeyedLock()

    async def get_reconciliation(self, reconciliation_id: str) -> BankReconciliation:
        reconciliation = await self.repository.get(reconciliation_id)
        if reconciliation is None:
            raise ReconciliationNotFoundError(reconciliation_id)
        return reconciliation

    async def list_reconciliations(
        self, bank_account: Optional[str] = None, status: Optional[ReconciliationStatus] = None
    ) -> List[BankReconciliation]:
        clauses, params = [], []
        if bank_account:
            clauses.append("bank_account = ?")
            params.append(bank_account)
        if status:
            clauses.append("status = ?")
            params.append(status.value)
        return await self.repository.find(" AND ".join(clauses), tuple(params), order_by="created_at DESC")

    async def _save(self, reconciliation: BankReconciliation) -> BankReconciliation:
        rules.recompute_summary(reconciliation)
        return await self.repository.save(reconciliation)

    def _ensure_open(self, reconciliation: BankReconciliation, operation: str) -> None:
        if reconciliation.status == ReconciliationStatus.APPROVED:
            raise StateConflictError(
                f"Cannot {operation} approved reconciliation {reconciliation.id}",
                {"id": reconciliation.id, "status": reconciliation.status.value, "operation": operation},
            )

    async def create_reconciliation(self, data: ReconciliationCreate) -> BankReconciliation:
        reconciliation = BankReconciliation(**data.model_dump())
        return await self._save(reconciliation)

    async def import_statement(self, reconciliation_id: str, rows: List[Dict[str, Any]]) -> BankReconciliation:
        """Replace the bank entries wholesale"""
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            self._ensure_open(reconciliation, "import into")
            reconciliation.bank_entries = rules.parse_statement_rows(rows)
            for book in reconciliation.book_entries:
                book.matched = False
                book.matched_bank_entry_id = None
            if reconciliation.status == ReconciliationStatus.DRAFT:
                reconciliation.status = ReconciliationStatus.IN_PROGRESS
            await self._save(reconciliation)

        logger.info(f"Imported {len(reconciliation.bank_entries)} statement lines into {reconciliation_id}")
        return reconciliation

    async def load_book_entries(self, reconciliation_id: str) -> BankReconciliation:
        """Snapshot the bank account's ledger entries within the statement period"""
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            self._ensure_open(reconciliation, "load entries into")
            period = reconciliation.statement_period
            entries = await self.ledger.for_account(reconciliation.bank_account, period.from_date, period.to_date)
            reconciliation.book_entries = rules.book_entries_from_ledger(entries)
            for bank in reconciliation.bank_entries:
                bank.matched = False
                bank.matched_book_entry_id = None
                bank.matched_ledger_entry_id = None
            await self._save(reconciliation)
        return reconciliation

    async def auto_match(self, reconciliation_id: str) -> Dict[str, Any]:
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            self._ensure_open(reconciliation, "match")
            match_count = rules.auto_match(reconciliation, self.settings.match_date_window_days)
            await self._save(reconciliation)

        logger.info(f"Auto-matched {match_count} entries in reconciliation {reconciliation_id}")
        return {"matchCount": match_count, "reconciliation": reconciliation}

    async def manual_match(self, reconciliation_id: str, bank_entry_id: str, book_entry_id: str) -> BankReconciliation:
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            self._ensure_open(reconciliation, "match")
            rules.manual_match(reconciliation, bank_entry_id, book_entry_id)
            return await self._save(reconciliation)

    async def unmatch(self, reconciliation_id: str, bank_entry_id: Optional[str] = None,
                      book_entry_id: Optional[str] = None) -> BankReconciliation:
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            self._ensure_open(reconciliation, "unmatch")
            rules.unmatch(reconciliation, bank_entry_id, book_entry_id)
            return await self._save(reconciliation)

    async def complete(self, reconciliation_id: str) -> BankReconciliation:
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            self._ensure_open(reconciliation, "complete")
            reconciliation.status = ReconciliationStatus.COMPLETED
            return await self._save(reconciliation)

    async def approve(self, reconciliation_id: str, approved_by: str) -> BankReconciliation:
        async with self.locks.hold(reconciliation_id):
            reconciliation = await self.get_reconciliation(reconciliation_id)
            if reconciliation.status != ReconciliationStatus.COMPLETED:
                raise StateConflictError(
                    f"Reconciliation {reconciliation.id} must be completed before approval",
                    {"id": reconciliation.id, "status": reconciliation.status.value, "operation": "approve"},
                )
            reconciliation.status = ReconciliationStatus.APPROVED
            reconciliation.approved_by = approved_by
            reconciliation.approved_at = now()
            return await self._save(reconciliation)

    async def delete_reconciliation(self, reconciliation_id: str) -> None:
        await self.get_reconciliation(reconciliation_id)
        await self.repository.delete(reconciliation_id)

    async def dashboard_summary(self) -> Dict[str, Any]:
        reconciliations = await self.repository.find(order_by="created_at DESC")
        by_status = {status.value: 0 for status in ReconciliationStatus}
        by_account: Dict[str, Dict[str, Any]] = {}

        for item in reconciliations:
            by_status[item.status.value] += 1
            account = by_account.setdefault(item.bank_account, {
                "bankAccount": item.bank_account,
                "count": 0,
                "totalDifference": 0.0,
                "lastReconciled": None,
            })
            account["count"] += 1
            account["totalDifference"] = round(account["totalDifference"] + item.summary.reconciliation_difference, 2)
            if account["lastReconciled"] is None:
                account["lastReconciled"] = item.statement_period.to_date.isoformat()

        return {
            "totalReconciliations": len(reconciliations),
            "pendingReconciliations": by_status[ReconciliationStatus.DRAFT.value]
            + by_status[ReconciliationStatus.IN_PROGRESS.value],
            "completedReconciliations": by_status[ReconciliationStatus.COMPLETED.value],
            "approvedReconciliations": by_status[ReconciliationStatus.APPROVED.value],
            "recentReconciliations": [item.to_document() for item in reconciliations[:RECENT_LIMIT]],
            "bankAccountSummary": list(by_account.values()),
        }


# Global service instance
reconciliation_service = ReconciliationService()
