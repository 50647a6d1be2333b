"""
Bank Reconciliation Controller
Handles bank statement import and matching endpoints
"""

from typing import Optional

from fastapi import APIRouter, Query

from ..models.reconciliation import (
    ManualMatchRequest,
    ReconciliationCreate,
    ReconciliationStatus,
    UnmatchRequest,
)
from ..models.requests import ApproveReconciliationRequest, StatementImportRequest
from ..services.reconciliation_service import reconciliation_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("")
async def list_reconciliations(
    bank_account: Optional[str] = Query(None, alias="bankAccount"),
    status: Optional[ReconciliationStatus] = Query(None)
):
    return JsonView.success(data=await reconciliation_service.list_reconciliations(bank_account, status))


@router.get("/dashboard")
async def dashboard():
    return JsonView.success(data=await reconciliation_service.dashboard_summary())


@router.post("", status_code=201)
async def create_reconciliation(data: ReconciliationCreate):
    reconciliation = await reconciliation_service.create_reconciliation(data)
    return JsonView.success("Reconciliation created", reconciliation)


@router.get("/{reconciliation_id}")
async def get_reconciliation(reconciliation_id: str):
    return JsonView.success(data=await reconciliation_service.get_reconciliation(reconciliation_id))


@router.delete("/{reconciliation_id}")
async def delete_reconciliation(reconciliation_id: str):
    await reconciliation_service.delete_reconciliation(reconciliation_id)
    return JsonView.success("Reconciliation deleted")


@router.post("/{reconciliation_id}/statement")
async def import_statement(reconciliation_id: str, request: StatementImportRequest):
    """Replace the bank side with the given statement rows"""
    reconciliation = await reconciliation_service.import_statement(reconciliation_id, request.rows)
    return JsonView.success(f"Imported {len(reconciliation.bank_entries)} statement lines", reconciliation)


@router.post("/{reconciliation_id}/book-entries")
async def load_book_entries(reconciliation_id: str):
    reconciliation = await reconciliation_service.load_book_entries(reconciliation_id)
    return JsonView.success(f"Loaded {len(reconciliation.book_entries)} book entries", reconciliation)


@router.post("/{reconciliation_id}/auto-match")
async def auto_match(reconciliation_id: str):
    result = await reconciliation_service.auto_match(reconciliation_id)
    return JsonView.success(f"Matched {result['matchCount']} entries", {
        "matchCount": result["matchCount"],
        "reconciliation": JsonView.document(result["reconciliation"]),
    })


@router.post("/{reconciliation_id}/match")
async def manual_match(reconciliation_id: str, request: ManualMatchRequest):
    reconciliation = await reconciliation_service.manual_match(
        reconciliation_id, request.bank_entry_id, request.book_entry_id
    )
    return JsonView.success("Entries matched", reconciliation)


@router.post("/{reconciliation_id}/unmatch")
async def unmatch(reconciliation_id: str, request: UnmatchRequest):
    reconciliation = await reconciliation_service.unmatch(
        reconciliation_id, request.bank_entry_id, request.book_entry_id
    )
    return JsonView.success("Entries unmatched", reconciliation)


@router.post("/{reconciliation_id}/complete")
async def complete(reconciliation_id: str):
    return JsonView.success("Reconciliation completed", await reconciliation_service.complete(reconciliation_id))


@router.post("/{reconciliation_id}/approve")
async def approve(reconciliation_id: str, request: ApproveReconciliationRequest):
    reconciliation = await reconciliation_service.approve(reconciliation_id, request.approved_by)
    return JsonView.success("Reconciliation approved", reconciliation)
