"""
Voucher Controller
Handles voucher lifecycle API endpoints
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..models.requests import BulkIdsRequest, PostDatedRequest, ReasonRequest, WorkflowRequest
from ..models.voucher import VoucherCreateRequest, VoucherStatus, VoucherType, VoucherUpdate
from ..services.approval_service import approval_service
from ..services.ledger_service import ledger_service
from ..services.voucher_service import voucher_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("")
async def list_vouchers(
    status: Optional[VoucherStatus] = Query(None, description="Filter by status"),
    voucher_type: Optional[VoucherType] = Query(None, alias="voucherType", description="Filter by voucher type"),
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0)
):
    """List vouchers, newest first"""
    items, total = await voucher_service.list_vouchers(status, voucher_type, from_date, to_date, limit, offset)
    return JsonView.paginated(items, total, limit, offset)


@router.get("/summary")
async def voucher_summary(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate")
):
    """Posted voucher totals grouped by type"""
    return JsonView.success(data=await voucher_service.voucher_summary(from_date, to_date))


@router.post("/auto-post")
async def run_auto_post(as_of: Optional[date] = Query(None, alias="asOf")):
    """Post every post-dated voucher that has fallen due"""
    return JsonView.batch(await voucher_service.process_due_auto_post(as_of))


@router.post("/bulk-post")
async def bulk_post(request: BulkIdsRequest):
    return JsonView.batch(await voucher_service.bulk_post(request.ids))


@router.get("/number/{voucher_number:path}")
async def get_voucher_by_number(voucher_number: str):
    return JsonView.success(data=await voucher_service.get_by_number(voucher_number))


@router.post("", status_code=201)
async def create_voucher(request: VoucherCreateRequest):
    voucher = await voucher_service.create_voucher(request)
    return JsonView.success(f"Voucher {voucher.voucher_number} created", voucher)


@router.get("/{voucher_id}")
async def get_voucher(voucher_id: str):
    return JsonView.success(data=await voucher_service.get_voucher(voucher_id))


@router.put("/{voucher_id}")
async def update_voucher(voucher_id: str, changes: VoucherUpdate):
    voucher = await voucher_service.update_voucher(voucher_id, changes)
    return JsonView.success(f"Voucher {voucher.voucher_number} updated", voucher)


@router.delete("/{voucher_id}")
async def delete_voucher(voucher_id: str):
    await voucher_service.delete_voucher(voucher_id)
    return JsonView.success("Voucher deleted")


@router.post("/{voucher_id}/post")
async def post_voucher(voucher_id: str):
    voucher = await voucher_service.post_voucher(voucher_id)
    return JsonView.success(f"Voucher {voucher.voucher_number} posted", voucher)


@router.post("/{voucher_id}/cancel")
async def cancel_voucher(voucher_id: str, request: ReasonRequest):
    voucher = await voucher_service.cancel_voucher(voucher_id, request.reason, request.user_id)
    return JsonView.success(f"Voucher {voucher.voucher_number} cancelled", voucher)


@router.post("/{voucher_id}/provisional")
async def mark_provisional(voucher_id: str, request: ReasonRequest):
    voucher = await voucher_service.mark_provisional(voucher_id, request.reason)
    return JsonView.success(f"Voucher {voucher.voucher_number} marked provisional", voucher)


@router.post("/{voucher_id}/confirm")
async def confirm_provisional(voucher_id: str):
    voucher = await voucher_service.confirm_provisional(voucher_id)
    return JsonView.success(f"Voucher {voucher.voucher_number} confirmed", voucher)


@router.post("/{voucher_id}/post-dated")
async def schedule_post_dated(voucher_id: str, request: PostDatedRequest):
    voucher = await voucher_service.schedule_post_dated(
        voucher_id, request.effective_date, request.reason, request.auto_post
    )
    return JsonView.success(f"Voucher {voucher.voucher_number} scheduled for {request.effective_date}", voucher)


@router.get("/{voucher_id}/ledger-entries")
async def voucher_ledger_entries(voucher_id: str):
    """Ledger entries written for a voucher"""
    voucher = await voucher_service.get_voucher(voucher_id)
    entries = await ledger_service.entries_for_voucher(voucher.voucher_number)
    return JsonView.success(data=entries)


@router.get("/{voucher_id}/approvals")
async def voucher_approvals(voucher_id: str):
    await voucher_service.get_voucher(voucher_id)
    return JsonView.success(data=await approval_service.approvals_for_voucher(voucher_id))


@router.post("/{voucher_id}/workflow", status_code=201)
async def create_workflow(voucher_id: str, request: WorkflowRequest):
    """Start a multi-level approval workflow for a voucher"""
    record = await approval_service.create_workflow(voucher_id, request.levels, request.created_by)
    return JsonView.success("Approval workflow created", record)


@router.post("/{voucher_id}/auto-approve")
async def auto_approve(voucher_id: str):
    voucher = await approval_service.auto_approve(voucher_id)
    return JsonView.success(f"Voucher {voucher.voucher_number} approved", voucher)
