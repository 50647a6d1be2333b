"""
Voucher Service Module
======================
Application service for the voucher lifecycle.

Loads vouchers, applies the rules in ``core.vouchers`` and persists the
result. Posting and cancelling hold the voucher's lock and write the voucher
and its ledger entries in one database transaction, so a balanced posted
voucher always has ledger entries summing to its totals.

USAGE:
------
from ledgerbook.services.voucher_service import voucher_service

voucher = await voucher_service.create_voucher(request)
voucher = await voucher_service.post_voucher(voucher.id)
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

from ..config import AccountingConfig, config
from ..core import vouchers as rules
from ..exceptions import InvalidVoucherStateError, LedgerbookError, VoucherNotFoundError
from ..models.account import ResolvedAccount
from ..models.ledger import LedgerEntry
from ..models.response import BatchItemResult
from ..models.voucher import (
    AutoPostResult,
    Voucher,
    VoucherCreateRequest,
    VoucherItem,
    VoucherStatus,
    VoucherType,
    VoucherTypeSummary,
    VoucherUpdate,
)
from ..repositories.document_repository import VoucherRepository
from ..repositories.ledger_repository import LedgerRepository
from ..utils.decorators import timed
from ..utils.helpers import now, round_money, today
from ..utils.locks import KeyedLock
from ..utils.logger import logger
from .account_service import AccountService, account_service
from .audit_service import AuditService, audit_service
from .database_service import DatabaseService, database_service
from .numbering_service import NumberingService, numbering_service

CANCEL_MODE_REVERSE = "reverse"


class VoucherService:
    """Create, edit, post and cancel vouchers"""

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        numbering: Optional[NumberingService] = None,
        accounts: Optional[AccountService] = None,
        audit: Optional[AuditService] = None,
        settings: Optional[AccountingConfig] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.db = db or database_service
        self.numbering = numbering or numbering_service
        self.accounts = accounts or account_service
        self.audit = audit or audit_service
        self.settings = settings or config.accounting
        self.locks = locks or KeyedLock()
        self.repository = VoucherRepository(self.db)
        self.ledger = LedgerRepository(self.db)

    @property
    def tolerance(self) -> float:
        return self.settings.money_tolerance

    # Queries

    async def get_voucher(self, voucher_id: str) -> Voucher:
        voucher = await self.repository.get(voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        return voucher

    async def get_by_number(self, voucher_number: str) -> Voucher:
        voucher = await self.repository.get_by_number(voucher_number)
        if voucher is None:
            raise VoucherNotFoundError(voucher_number)
        return voucher

    async def list_vouchers(
        self,
        status: Optional[VoucherStatus] = None,
        voucher_type: Optional[VoucherType] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Voucher], int]:
        clauses, params = [], []
        if status:
            clauses.append("status = ?")
            params.append(status.value)
        if voucher_type:
            clauses.append("voucher_type = ?")
            params.append(voucher_type.value)
        if from_date:
            clauses.append("voucher_date >= ?")
            params.append(from_date.isoformat())
        if to_date:
            clauses.append("voucher_date <= ?")
            params.append(to_date.isoformat())
        where = " AND ".join(clauses)
        items = await self.repository.find(
            where, tuple(params), order_by="voucher_date DESC, rowid DESC", limit=limit, offset=offset
        )
        total = await self.repository.count(where, tuple(params))
        return items, total

    async def voucher_summary(
        self, from_date: Optional[date] = None, to_date: Optional[date] = None
    ) -> List[VoucherTypeSummary]:
        """Posted vouchers grouped by type"""
        query = (
            "SELECT voucher_type, COUNT(*) AS count, "
            "COALESCE(SUM(json_extract(data, '$.totalDebit')), 0) AS total_debit, "
            "COALESCE(SUM(json_extract(data, '$.totalCredit')), 0) AS total_credit "
            "FROM vouchers WHERE status = 'posted'"
        )
        params = []
        if from_date:
            query += " AND voucher_date >= ?"
            params.append(from_date.isoformat())
        if to_date:
            query += " AND voucher_date <= ?"
            params.append(to_date.isoformat())
        query += " GROUP BY voucher_type ORDER BY voucher_type"
        rows = await self.db.fetch_all(query, tuple(params))
        return [
            VoucherTypeSummary(
                voucher_type=row["voucher_type"],
                count=row["count"],
                total_debit=round_money(row["total_debit"]),
                total_credit=round_money(row["total_credit"]),
            )
            for row in rows
        ]

    # Creation and editing

    async def _resolve_items(self, items: List[VoucherItem]) -> Dict[str, ResolvedAccount]:
        resolved = {}
        for item in items:
            key = f"{item.account.kind}:{item.account.key}"
            if key not in resolved:
                resolved[key] = await self.accounts.resolve(item.account)
            if not item.account_name:
                item.account_name = resolved[key].name
        return resolved

    def _resolver(self, resolved: Dict[str, ResolvedAccount]):
        return lambda item: resolved[f"{item.account.kind}:{item.account.key}"]

    async def add_voucher(self, voucher: Voucher) -> Voucher:
        """Validate, derive totals and store a voucher built by the caller"""
        rules.validate_items(voucher.items)
        await self._resolve_items(voucher.items)
        rules.recompute_totals(voucher)
        await self.repository.insert(voucher)
        await self.audit.log_action(
            "CREATE", "voucher", voucher.id, voucher.voucher_number,
            new_data={"status": voucher.status.value, "totalDebit": voucher.total_debit},
            actor=voucher.created_by,
        )
        return voucher

    async def create_voucher(self, request: VoucherCreateRequest) -> Voucher:
        rules.validate_items(request.items)
        voucher_number = await self.numbering.next_voucher_number(request.voucher_type.value)
        voucher = Voucher(
            voucher_number=voucher_number,
            voucher_type=request.voucher_type,
            voucher_date=request.voucher_date or today(),
            reference_number=request.reference_number,
            reference_date=request.reference_date,
            narration=request.narration,
            financial_year=request.financial_year or "",
            items=request.items,
            party_details=request.party_details,
            bank_details=request.bank_details,
            created_by=request.created_by,
        )
        return await self.add_voucher(voucher)

    async def update_voucher(self, voucher_id: str, changes: VoucherUpdate) -> Voucher:
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            rules.ensure_editable(voucher, "update")

            data = {field: getattr(changes, field) for field in changes.model_fields_set}
            if "items" in data:
                rules.validate_items(data["items"])
                await self._resolve_items(data["items"])
            if "voucher_date" in data:
                data["financial_year"] = ""
            voucher = voucher.merged(data)

            rules.recompute_totals(voucher)
            await self.repository.update(voucher)

        await self.audit.log_action("UPDATE", "voucher", voucher.id, voucher.voucher_number, actor=changes.updated_by)
        return voucher

    async def delete_voucher(self, voucher_id: str) -> None:
        """Only drafts may be deleted"""
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            if voucher.status != VoucherStatus.DRAFT:
                raise InvalidVoucherStateError(voucher.voucher_number, voucher.status.value, "delete")
            async with self.db.transaction():
                await self.db.execute("DELETE FROM voucher_approvals WHERE voucher_id = ?", (voucher.id,))
                await self.repository.delete(voucher.id)

        await self.audit.log_action(
            "DELETE", "voucher", voucher.id, voucher.voucher_number, old_data=voucher.to_document()
        )

    async def save(self, voucher: Voucher) -> Voucher:
        """Persist workflow fields changed by another service"""
        return await self.repository.update(voucher)

    # Lifecycle

    async def _write_posting(self, voucher: Voucher, resolved: Dict[str, ResolvedAccount]) -> List[LedgerEntry]:
        entries = rules.generate_ledger_entries(voucher, self._resolver(resolved), now())
        async with self.db.transaction():
            await self.repository.update(voucher)
            await self.ledger.insert_many(entries)
        return entries

    async def _post(self, voucher_id: str, clear_post_dated: bool = False) -> Voucher:
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            rules.ensure_postable(voucher)
            resolved = await self._resolve_items(voucher.items)
            rules.post(voucher, now(), self.tolerance)
            if clear_post_dated:
                voucher.is_post_dated = False
            entries = await self._write_posting(voucher, resolved)

        logger.info(f"Voucher {voucher.voucher_number} posted ({len(entries)} ledger entries)")
        await self.audit.log_action(
            "POST", "voucher", voucher.id, voucher.voucher_number,
            new_data={"status": voucher.status.value, "entries": len(entries)},
        )
        return voucher

    async def post_voucher(self, voucher_id: str) -> Voucher:
        return await self._post(voucher_id)

    async def cancel_voucher(self, voucher_id: str, reason: str, user_id: Optional[str] = None) -> Voucher:
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            previous = voucher.status.value
            was_posted = rules.cancel(voucher, reason, now())
            if user_id:
                voucher.updated_by = user_id

            async with self.db.transaction():
                await self.repository.update(voucher)
                if was_posted:
                    await self._reverse_ledger(voucher)

        logger.info(f"Voucher {voucher.voucher_number} cancelled (was {previous})")
        await self.audit.log_action(
            "CANCEL", "voucher", voucher.id, voucher.voucher_number,
            old_data={"status": previous}, new_data={"status": voucher.status.value, "reason": voucher.cancel_reason},
            actor=user_id,
        )
        return voucher

    async def _reverse_ledger(self, voucher: Voucher) -> int:
        if self.settings.cancel_mode == CANCEL_MODE_REVERSE:
            postings = await self.ledger.for_voucher_number(voucher.voucher_number)
            return await self.ledger.insert_many(rules.reversal_entries(postings, now()))
        return await self.ledger.delete_by_voucher_number(voucher.voucher_number)

    async def mark_provisional(self, voucher_id: str, reason: str) -> Voucher:
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            rules.mark_provisional(voucher, reason, now())
            await self.repository.update(voucher)
        await self.audit.log_action("PROVISIONAL", "voucher", voucher.id, voucher.voucher_number,
                                    new_data={"reason": reason})
        return voucher

    async def confirm_provisional(self, voucher_id: str) -> Voucher:
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            resolved = await self._resolve_items(voucher.items)
            rules.confirm_provisional(voucher, now(), self.tolerance)
            entries = await self._write_posting(voucher, resolved)

        logger.info(f"Provisional voucher {voucher.voucher_number} confirmed ({len(entries)} ledger entries)")
        await self.audit.log_action("CONFIRM", "voucher", voucher.id, voucher.voucher_number)
        return voucher

    async def schedule_post_dated(
        self, voucher_id: str, effective_date: date, reason: str = "", auto_post: bool = True
    ) -> Voucher:
        async with self.locks.hold(voucher_id):
            voucher = await self.get_voucher(voucher_id)
            rules.schedule_post_dated(voucher, effective_date, reason, auto_post)
            await self.repository.update(voucher)
        await self.audit.log_action(
            "SCHEDULE", "voucher", voucher.id, voucher.voucher_number,
            new_data={"effectiveDate": effective_date.isoformat(), "autoPost": auto_post},
        )
        return voucher

    # Batches

    @timed
    async def process_due_auto_post(self, as_of: Optional[date] = None) -> List[AutoPostResult]:
        """Post every post-dated draft whose effective date has arrived"""
        as_of = as_of or today()
        due = await self.repository.find_due_post_dated(as_of.isoformat())
        results = []

        for voucher in due:
            try:
                posted = await self._post(voucher.id, clear_post_dated=True)
                results.append(AutoPostResult(
                    success=True, voucher_id=posted.id, voucher_number=posted.voucher_number, status=posted.status,
                ))
            except LedgerbookError as e:
                results.append(AutoPostResult(
                    success=False, voucher_id=voucher.id, voucher_number=voucher.voucher_number,
                    error=e.message, code=e.code,
                ))
            except Exception as e:
                logger.error(f"Auto-post of {voucher.voucher_number} failed: {e}")
                results.append(AutoPostResult(
                    success=False, voucher_id=voucher.id, voucher_number=voucher.voucher_number, error=str(e),
                ))

        if results:
            failed = sum(1 for r in results if not r.success)
            logger.info(f"Auto-post processed {len(results)} vouchers ({failed} failed)")
        return results

    async def bulk_post(self, voucher_ids: List[str]) -> List[BatchItemResult]:
        results = []
        for voucher_id in voucher_ids:
            try:
                voucher = await self._post(voucher_id)
                results.append(BatchItemResult(
                    success=True, id=voucher_id, data={"voucherNumber": voucher.voucher_number},
                ))
            except LedgerbookError as e:
                results.append(BatchItemResult(success=False, id=voucher_id, error=e.message, code=e.code))
            except Exception as e:
                logger.error(f"Bulk post of {voucher_id} failed: {e}")
                results.append(BatchItemResult(success=False, id=voucher_id, error=str(e)))
        return results


# Global service instance
voucher_service = VoucherService()
