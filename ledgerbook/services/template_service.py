"""
Template Service Module
Voucher templates and their materialization into draft vouchers
"""

from typing import Any, Dict, List, Optional

from ..core import approvals as approval_rules
from ..core import templates as rules
from ..exceptions import LedgerbookError, TemplateNotFoundError, ValidationError
from ..models.response import BatchItemResult
from ..models.template import TemplateCategory, TemplateCreate, TemplateUpdate, VoucherTemplate
from ..models.voucher import ApprovalStatus, Voucher, VoucherType
from ..repositories.document_repository import TemplateRepository
from ..utils.helpers import new_id, now, today
from ..utils.logger import logger
from .approval_service import ApprovalService, approval_service
from .database_service import DatabaseService, database_service
from .numbering_service import NumberingService, numbering_service
from .voucher_service import VoucherService, voucher_service

MAX_CODE_ATTEMPTS = 10


class TemplateService:
    """CRUD for templates plus createVoucherFromTemplate"""

    def __init__(
        self,
        db: Optional[DatabaseService] = None,
        vouchers: Optional[VoucherService] = None,
        approvals: Optional[ApprovalService] = None,
        numbering: Optional[NumberingService] = None,
    ):
        self.db = db or database_service
        self.vouchers = vouchers or voucher_service
        self.approvals = approvals or approval_service
        self.numbering = numbering or numbering_service
        self.repository = TemplateRepository(self.db)

    async def get_template(self, template_id: str) -> VoucherTemplate:
        template = await self.repository.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    async def list_templates(
        self,
        voucher_type: Optional[VoucherType] = None,
        category: Optional[TemplateCategory] = None,
        active_only: bool = False,
    ) -> List[VoucherTemplate]:
        clauses, params = [], []
        if voucher_type:
            clauses.append("voucher_type = ?")
            params.append(voucher_type.value)
        if active_only:
            clauses.append("is_active = 1")
        templates = await self.repository.find(" AND ".join(clauses), tuple(params))
        if category:
            templates = [t for t in templates if t.category == category]
        return templates

    async def templates_by_type(self, voucher_type: VoucherType) -> List[VoucherTemplate]:
        return await self.list_templates(voucher_type=voucher_type, active_only=True)

    async def popular_templates(self, limit: int = 10) -> List[VoucherTemplate]:
        return await self.repository.find("is_active = 1", order_by="usage_count DESC, rowid", limit=limit)

    async def _unique_code(self, voucher_type: str) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = rules.generate_template_code(voucher_type)
            if not await self.repository.code_exists(code):
                return code
        raise ValidationError("Could not generate a unique template code", field="templateCode")

    async def create_template(self, data: TemplateCreate, user_id: Optional[str] = None) -> VoucherTemplate:
        if not data.items:
            raise ValidationError("At least one template item is required", field="items")
        if data.approval_levels:
            approval_rules.ordered_levels(data.approval_levels)

        code = (data.template_code or "").strip().upper()
        if code:
            if await self.repository.code_exists(code):
                raise ValidationError(f"Template code already exists: {code}", field="templateCode")
        else:
            code = await self._unique_code(data.voucher_type.value)

        template = VoucherTemplate(
            **data.model_dump(exclude={"template_code", "items", "variables", "approval_levels"}),
            template_code=code,
            items=data.items,
            variables=data.variables,
            approval_levels=data.approval_levels,
            created_by=user_id,
        )
        await self.repository.insert(template)
        logger.info(f"Template {template.template_code} created")
        return template

    async def update_template(self, template_id: str, changes: TemplateUpdate) -> VoucherTemplate:
        template = await self.get_template(template_id)
        data = {field: getattr(changes, field) for field in changes.model_fields_set}
        if "items" in data and not data["items"]:
            raise ValidationError("At least one template item is required", field="items")
        if data.get("approval_levels"):
            data["approval_levels"] = approval_rules.ordered_levels(data["approval_levels"])
        return await self.repository.update(template.merged(data))

    async def delete_template(self, template_id: str) -> None:
        await self.get_template(template_id)
        await self.repository.delete(template_id)

    async def duplicate_template(self, template_id: str, template_name: str,
                                 user_id: Optional[str] = None) -> VoucherTemplate:
        source = await self.get_template(template_id)
        copy = source.model_copy(deep=True, update={
            "id": new_id(),
            "template_name": template_name,
            "template_code": await self._unique_code(source.voucher_type.value),
            "is_default": False,
            "usage_count": 0,
            "last_used": None,
            "created_by": user_id,
            "created_at": None,
            "version": 0,
        })
        return await self.repository.insert(copy)

    async def materialize(self, template_id: str, variables: Optional[Dict[str, Any]] = None,
                          user_id: Optional[str] = None, recurring_voucher_id: Optional[str] = None) -> Voucher:
        """createVoucherFromTemplate: a draft voucher built from the template"""
        template = await self.get_template(template_id)
        rules.ensure_active(template)
        values = rules.resolve_variables(template, variables or {})
        items = rules.build_items(template, values)

        voucher_number = await self.numbering.next_voucher_number(template.voucher_type.value)
        voucher = Voucher(
            voucher_number=voucher_number,
            voucher_type=template.voucher_type,
            voucher_date=rules.voucher_date_for(values, today()),
            reference_number=str(values.get("referenceNumber") or ""),
            narration=rules.narration_for(template, values),
            items=items,
            template_id=template.id,
            template_code=template.template_code,
            is_from_template=True,
            is_recurring=recurring_voucher_id is not None,
            recurring_voucher_id=recurring_voucher_id,
            created_by=user_id,
        )

        open_first_level = False
        if template.requires_approval:
            voucher.approval_status = ApprovalStatus.PENDING
            voucher.approval_level = 1
            if template.approval_levels:
                approval_rules.begin_chain(voucher, template.approval_levels)
                open_first_level = True

        first_record = None
        async with self.db.transaction():
            await self.vouchers.add_voucher(voucher)
            if open_first_level:
                first_record = await self.approvals.open_first_level(voucher, user_id)
            template.usage_count += 1
            template.last_used = now()
            await self.repository.update(template)

        if first_record is not None:
            await self.approvals.notify_requested(first_record)
        return voucher

    async def bulk_materialize(self, template_id: str, variable_sets: List[Dict[str, Any]],
                               user_id: Optional[str] = None) -> List[BatchItemResult]:
        results = []
        for index, variables in enumerate(variable_sets):
            item_id = str(index)
            try:
                voucher = await self.materialize(template_id, variables, user_id)
                results.append(BatchItemResult(
                    success=True, id=item_id, data={"voucherId": voucher.id, "voucherNumber": voucher.voucher_number},
                ))
            except LedgerbookError as e:
                results.append(BatchItemResult(success=False, id=item_id, error=e.message, code=e.code))
            except Exception as e:
                logger.error(f"Bulk materialization {index} of template {template_id} failed: {e}")
                results.append(BatchItemResult(success=False, id=item_id, error=str(e)))
        return results


# Global service instance
template_service = TemplateService()
