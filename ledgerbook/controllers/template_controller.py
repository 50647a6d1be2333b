"""
Template Controller
Handles voucher template endpoints
"""

from typing import Optional

from fastapi import APIRouter, Query

from ..models.requests import BulkMaterializeRequest, DuplicateTemplateRequest
from ..models.template import MaterializeRequest, TemplateCategory, TemplateCreate, TemplateUpdate
from ..models.voucher import VoucherType
from ..services.template_service import template_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("")
async def list_templates(
    voucher_type: Optional[VoucherType] = Query(None, alias="voucherType"),
    category: Optional[TemplateCategory] = Query(None),
    active_only: bool = Query(False, alias="activeOnly")
):
    return JsonView.success(data=await template_service.list_templates(voucher_type, category, active_only))


@router.get("/popular")
async def popular_templates(limit: int = Query(10, ge=1, le=100)):
    """Active templates ordered by usage"""
    return JsonView.success(data=await template_service.popular_templates(limit))


@router.get("/type/{voucher_type}")
async def templates_by_type(voucher_type: VoucherType):
    return JsonView.success(data=await template_service.templates_by_type(voucher_type))


@router.post("", status_code=201)
async def create_template(data: TemplateCreate, user_id: Optional[str] = Query(None, alias="userId")):
    template = await template_service.create_template(data, user_id)
    return JsonView.success(f"Template {template.template_code} created", template)


@router.post("/bulk-materialize")
async def bulk_materialize(request: BulkMaterializeRequest):
    results = await template_service.bulk_materialize(request.template_id, request.variable_sets, request.user_id)
    return JsonView.batch(results)


@router.get("/{template_id}")
async def get_template(template_id: str):
    return JsonView.success(data=await template_service.get_template(template_id))


@router.put("/{template_id}")
async def update_template(template_id: str, changes: TemplateUpdate):
    template = await template_service.update_template(template_id, changes)
    return JsonView.success(f"Template {template.template_code} updated", template)


@router.delete("/{template_id}")
async def delete_template(template_id: str):
    await template_service.delete_template(template_id)
    return JsonView.success("Template deleted")


@router.post("/{template_id}/duplicate", status_code=201)
async def duplicate_template(template_id: str, request: DuplicateTemplateRequest):
    template = await template_service.duplicate_template(template_id, request.template_name, request.user_id)
    return JsonView.success(f"Template duplicated as {template.template_code}", template)


@router.post("/{template_id}/materialize", status_code=201)
async def materialize(template_id: str, request: MaterializeRequest):
    """Create a draft voucher from the template"""
    voucher = await template_service.materialize(template_id, request.variables, request.user_id)
    return JsonView.success(f"Voucher {voucher.voucher_number} created from template", voucher)
