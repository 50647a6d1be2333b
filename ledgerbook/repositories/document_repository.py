"""
Document Repositories
Aggregates stored as a JSON document plus a few indexed columns

Every aggregate table has ``id``, ``version``, ``data``, ``created_at`` and
``updated_at``; subclasses name the extra columns kept in sync with the
document. Updates are optimistic: the row is written only when the stored
version still equals the version the model was loaded with.
"""

import json
from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from ..exceptions import ConcurrencyConflictError
from ..models.approval import ApprovalRecordStatus, VoucherApproval
from ..models.base import CamelModel
from ..models.recurring import RecurringVoucher
from ..models.reconciliation import BankReconciliation
from ..models.template import VoucherTemplate
from ..models.voucher import Voucher
from ..utils.helpers import now

if TYPE_CHECKING:
    from ..services.database_service import DatabaseService

ModelT = TypeVar("ModelT", bound=CamelModel)


def _column_value(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class DocumentRepository(Generic[ModelT]):
    """Base repository for JSON document tables"""

    table: str = ""
    model: Type[ModelT]
    entity: str = "Record"

    def __init__(self, db: "DatabaseService"):
        self.db = db

    def columns(self, item: ModelT) -> Dict[str, Any]:
        """Indexed columns mirrored from the document"""
        return {}

    def _load(self, row: Optional[Dict[str, Any]]) -> Optional[ModelT]:
        if row is None:
            return None
        item = self.model.model_validate(json.loads(row["data"]))
        item.version = row["version"]
        return item

    async def get(self, item_id: str) -> Optional[ModelT]:
        row = await self.db.fetch_one(f"SELECT data, version FROM {self.table} WHERE id = ?", (item_id,))
        return self._load(row)

    async def find(
        self,
        where: str = "",
        params: Tuple = (),
        order_by: str = "rowid",
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ModelT]:
        query = f"SELECT data, version FROM {self.table}"
        if where:
            query += f" WHERE {where}"
        query += f" ORDER BY {order_by}"
        if limit is not None:
            query += f" LIMIT {int(limit)} OFFSET {int(offset)}"
        rows = await self.db.fetch_all(query, params)
        return [self._load(row) for row in rows]

    async def find_one(self, where: str, params: Tuple = ()) -> Optional[ModelT]:
        items = await self.find(where, params, limit=1)
        return items[0] if items else None

    async def count(self, where: str = "", params: Tuple = ()) -> int:
        query = f"SELECT COUNT(*) FROM {self.table}"
        if where:
            query += f" WHERE {where}"
        return await self.db.fetch_scalar(query, params) or 0

    async def insert(self, item: ModelT) -> ModelT:
        stamp = now()
        item.created_at = item.created_at or stamp
        item.updated_at = stamp
        item.version = 1

        columns = {
            "id": item.id,
            **{k: _column_value(v) for k, v in self.columns(item).items()},
            "version": item.version,
            "data": json.dumps(item.to_document()),
            "created_at": item.created_at.isoformat(),
            "updated_at": item.updated_at.isoformat(),
        }
        names = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        await self.db.execute(
            f"INSERT INTO {self.table} ({names}) VALUES ({placeholders})",
            tuple(columns.values()),
        )
        return item

    async def update(self, item: ModelT) -> ModelT:
        """Write the document if nobody else saved it since it was loaded"""
        expected = item.version
        item.updated_at = now()
        item.version = expected + 1

        columns = {
            **{k: _column_value(v) for k, v in self.columns(item).items()},
            "version": item.version,
            "data": json.dumps(item.to_document()),
            "updated_at": item.updated_at.isoformat(),
        }
        assignments = ", ".join(f"{name} = ?" for name in columns)
        rowcount = await self.db.execute(
            f"UPDATE {self.table} SET {assignments} WHERE id = ? AND version = ?",
            (*columns.values(), item.id, expected),
        )
        if rowcount == 0:
            item.version = expected
            raise ConcurrencyConflictError(self.entity, item.id, expected)
        return item

    async def save(self, item: ModelT) -> ModelT:
        if item.version:
            return await self.update(item)
        return await self.insert(item)

    async def delete(self, item_id: str) -> int:
        return await self.db.execute(f"DELETE FROM {self.table} WHERE id = ?", (item_id,))


class VoucherRepository(DocumentRepository[Voucher]):
    table = "vouchers"
    model = Voucher
    entity = "Voucher"

    def columns(self, item: Voucher) -> Dict[str, Any]:
        return {
            "voucher_number": item.voucher_number,
            "voucher_type": item.voucher_type,
            "voucher_date": item.voucher_date,
            "status": item.status,
            "approval_status": item.approval_status,
            "financial_year": item.financial_year,
            "is_post_dated": item.is_post_dated,
            "auto_post_enabled": item.auto_post_enabled,
            "effective_date": item.effective_date,
            "template_id": item.template_id,
        }

    async def get_by_number(self, voucher_number: str) -> Optional[Voucher]:
        return await self.find_one("voucher_number = ?", (voucher_number,))

    async def find_due_post_dated(self, today: str) -> List[Voucher]:
        return await self.find(
            "status = 'draft' AND is_post_dated = 1 AND auto_post_enabled = 1 "
            "AND effective_date IS NOT NULL AND effective_date <= ?",
            (today,),
        )


class ApprovalRepository(DocumentRepository[VoucherApproval]):
    table = "voucher_approvals"
    model = VoucherApproval
    entity = "Approval"

    def columns(self, item: VoucherApproval) -> Dict[str, Any]:
        return {
            "voucher_id": item.voucher_id,
            "voucher_number": item.voucher_number,
            "approval_level": item.approval_level,
            "approver_id": item.approver_id,
            "delegated_to": item.delegated_to,
            "status": item.status,
        }

    async def for_voucher(self, voucher_id: str) -> List[VoucherApproval]:
        return await self.find("voucher_id = ?", (voucher_id,), order_by="approval_level, rowid")

    async def pending_for(self, user_id: str) -> List[VoucherApproval]:
        return await self.find(
            "(approver_id = ? AND status = ?) OR (delegated_to = ? AND status = ?)",
            (user_id, ApprovalRecordStatus.PENDING.value, user_id, ApprovalRecordStatus.DELEGATED.value),
            order_by="created_at DESC",
        )

    async def by_approver(self, user_id: str) -> List[VoucherApproval]:
        return await self.find("approver_id = ?", (user_id,))


class TemplateRepository(DocumentRepository[VoucherTemplate]):
    table = "voucher_templates"
    model = VoucherTemplate
    entity = "Template"

    def columns(self, item: VoucherTemplate) -> Dict[str, Any]:
        return {
            "template_code": item.template_code,
            "voucher_type": item.voucher_type,
            "is_active": item.is_active,
            "usage_count": item.usage_count,
        }

    async def code_exists(self, template_code: str) -> bool:
        return await self.count("template_code = ?", (template_code,)) > 0


class RecurringVoucherRepository(DocumentRepository[RecurringVoucher]):
    table = "recurring_vouchers"
    model = RecurringVoucher
    entity = "Recurring voucher"

    def columns(self, item: RecurringVoucher) -> Dict[str, Any]:
        return {
            "template_id": item.template_id,
            "is_active": item.is_active,
            "is_paused": item.is_paused,
            "next_run_date": item.next_run_date,
            "end_date": item.end_date,
        }

    async def find_due(self, today: str) -> List[RecurringVoucher]:
        return await self.find(
            "is_active = 1 AND is_paused = 0 AND next_run_date IS NOT NULL AND next_run_date <= ? "
            "AND (end_date IS NULL OR end_date >= ?)",
            (today, today),
            order_by="next_run_date, rowid",
        )


class ReconciliationRepository(DocumentRepository[BankReconciliation]):
    table = "bank_reconciliations"
    model = BankReconciliation
    entity = "Bank reconciliation"

    def columns(self, item: BankReconciliation) -> Dict[str, Any]:
        return {
            "bank_account": item.bank_account,
            "status": item.status,
        }
