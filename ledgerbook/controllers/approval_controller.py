"""
Approval Controller
Handles voucher approval workflow endpoints
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..models.requests import ApprovalDecision, BulkApproveRequest, DelegateRequest
from ..services.approval_service import approval_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("/pending/{user_id}")
async def pending_approvals(user_id: str):
    """Approvals the user can act on, including those delegated to them"""
    records = await approval_service.pending_approvals_for(user_id)
    return JsonView.success(data=records)


@router.get("/statistics/{user_id}")
async def approval_statistics(
    user_id: str,
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate")
):
    return JsonView.success(data=await approval_service.approval_statistics(user_id, from_date, to_date))


@router.post("/bulk-approve")
async def bulk_approve(request: BulkApproveRequest):
    results = await approval_service.bulk_approve(request.approval_ids, request.approver_id, request.comments)
    return JsonView.batch(results)


@router.get("/{approval_id}")
async def get_approval(approval_id: str):
    return JsonView.success(data=await approval_service.get_approval(approval_id))


@router.post("/{approval_id}/approve")
async def approve(approval_id: str, decision: ApprovalDecision):
    voucher = await approval_service.approve(approval_id, decision.approver_id, decision.comments)
    return JsonView.success(f"Approval recorded for {voucher.voucher_number}", voucher)


@router.post("/{approval_id}/reject")
async def reject(approval_id: str, decision: ApprovalDecision):
    voucher = await approval_service.reject(approval_id, decision.approver_id, decision.comments)
    return JsonView.success(f"Voucher {voucher.voucher_number} rejected", voucher)


@router.post("/{approval_id}/delegate")
async def delegate(approval_id: str, request: DelegateRequest):
    record = await approval_service.delegate(
        approval_id, request.approver_id, request.delegate_to_id, request.reason
    )
    return JsonView.success(f"Approval delegated to {request.delegate_to_id}", record)


@router.post("/{approval_id}/remind")
async def send_reminder(approval_id: str):
    record = await approval_service.send_reminder(approval_id)
    return JsonView.success("Reminder sent", record)
