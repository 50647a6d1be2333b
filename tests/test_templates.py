"""
Ledgerbook - Template Tests

Template CRUD and materialization into draft vouchers.
"""

import re
from datetime import date

import pytest

from ledgerbook.exceptions import TemplateInactiveError, ValidationError
from ledgerbook.models.template import TemplateCreate, TemplateUpdate
from ledgerbook.models.voucher import ApprovalStatus, VoucherStatus, VoucherType

from .factories import ledger_ref


def rent_template(**extra) -> TemplateCreate:
    return TemplateCreate.model_validate({
        "templateName": "Monthly rent",
        "description": "Office rent",
        "voucherType": "payment",
        "items": [
            {"account": ledger_ref("Rent"), "accountName": "Rent", "debitAmount": 25000, "isVariable": True},
            {"account": ledger_ref("Cash"), "accountName": "Cash", "creditAmount": 25000, "isVariable": True},
        ],
        **extra,
    })


class TestTemplateCrud:

    async def test_generated_code(self, books):
        template = await books.templates.create_template(rent_template())
        assert re.fullmatch(r"PAY_TMPL_\d{6}", template.template_code)

    async def test_code_uppercased_and_unique(self, books):
        template = await books.templates.create_template(rent_template(templateCode=" rent01 "))
        assert template.template_code == "RENT01"

        with pytest.raises(ValidationError):
            await books.templates.create_template(rent_template(templateCode="RENT01"))

    async def test_items_required(self, books):
        with pytest.raises(ValidationError):
            await books.templates.create_template(rent_template(items=[]))

    async def test_update_rejects_null_name(self, books):
        template = await books.templates.create_template(rent_template())

        with pytest.raises(ValidationError) as error:
            await books.templates.update_template(template.id, TemplateUpdate.model_validate({"templateName": None}))

        assert error.value.field == "templateName"
        assert (await books.templates.get_template(template.id)).template_name == "Monthly rent"

    async def test_approval_levels_must_start_at_one(self, books):
        levels = [{"level": 2, "approverRole": "Finance Manager", "approverId": "u-manager"}]
        with pytest.raises(ValidationError):
            await books.templates.create_template(rent_template(requiresApproval=True, approvalLevels=levels))

    async def test_duplicate_resets_usage(self, books):
        template = await books.templates.create_template(rent_template())
        await books.templates.materialize(template.id)

        copy = await books.templates.duplicate_template(template.id, "Warehouse rent")

        assert copy.id != template.id
        assert copy.template_code != template.template_code
        assert copy.usage_count == 0
        assert len(copy.items) == 2

    async def test_popular_by_usage(self, books):
        quiet = await books.templates.create_template(rent_template(templateName="Quiet"))
        busy = await books.templates.create_template(rent_template(templateName="Busy"))
        for _ in range(2):
            await books.templates.materialize(busy.id)
        await books.templates.materialize(quiet.id)

        popular = await books.templates.popular_templates(limit=2)
        assert [t.id for t in popular] == [busy.id, quiet.id]

    async def test_by_type_lists_active_only(self, books):
        active = await books.templates.create_template(rent_template())
        await books.templates.create_template(rent_template(templateName="Old rent", isActive=False))

        payments = await books.templates.templates_by_type(VoucherType.PAYMENT)

        assert [t.id for t in payments] == [active.id]
        assert await books.templates.templates_by_type(VoucherType.RECEIPT) == []


class TestMaterialize:

    async def test_creates_draft_from_template(self, books):
        template = await books.templates.create_template(rent_template())

        voucher = await books.templates.materialize(template.id, user_id="u-1")
        stored_template = await books.templates.get_template(template.id)

        assert voucher.status == VoucherStatus.DRAFT
        assert voucher.voucher_number == "PY/0001"
        assert voucher.is_from_template
        assert voucher.template_code == template.template_code
        assert voucher.narration == "Office rent"
        assert voucher.total_debit == 25000
        assert stored_template.usage_count == 1
        assert stored_template.last_used is not None

    async def test_variable_amounts_override_lines(self, books):
        template = await books.templates.create_template(rent_template())

        voucher = await books.templates.materialize(template.id, {
            "Rent_amount": "27,500", "Cash_amount": 27500, "narration": "Rent for June", "voucherDate": "2024-06-01",
        })

        assert voucher.total_debit == 27500
        assert voucher.total_credit == 27500
        assert voucher.narration == "Rent for June"
        assert voucher.voucher_date == date(2024, 6, 1)

    async def test_negative_variable_amount_rejected(self, books):
        template = await books.templates.create_template(rent_template())

        with pytest.raises(ValidationError) as error:
            await books.templates.materialize(template.id, {"Rent_amount": "-50"})

        assert error.value.field == "Rent_amount"
        _, total = await books.vouchers.list_vouchers()
        assert total == 0

    async def test_bulk_reports_negative_amount(self, books):
        template = await books.templates.create_template(rent_template())

        results = await books.templates.bulk_materialize(template.id, [{"Cash_amount": -1}, {}])

        assert [r.success for r in results] == [False, True]
        assert results[0].code == "VALIDATION_ERROR"

    async def test_inactive_template_rejected(self, books):
        template = await books.templates.create_template(rent_template())
        await books.templates.update_template(template.id, TemplateUpdate(is_active=False))

        with pytest.raises(TemplateInactiveError):
            await books.templates.materialize(template.id)

    async def test_required_variable(self, books):
        template = await books.templates.create_template(rent_template(
            variables=[{"name": "period", "isRequired": True}],
        ))
        with pytest.raises(ValidationError):
            await books.templates.materialize(template.id, {})

    async def test_gst_from_rate(self, books):
        template = await books.templates.create_template(TemplateCreate.model_validate({
            "templateName": "Sale with GST",
            "voucherType": "sales",
            "items": [
                {"account": ledger_ref("Cash"), "accountName": "Cash", "debitAmount": 1180},
                {"account": ledger_ref("Sales"), "accountName": "Sales", "creditAmount": 1000, "gstRate": 18},
                {"account": ledger_ref("GST Payable"), "accountName": "GST Payable", "creditAmount": 180},
            ],
        }))

        voucher = await books.templates.materialize(template.id)
        assert voucher.total_gst == 180

    async def test_approval_required_opens_first_level(self, books, approval_levels):
        template = await books.templates.create_template(rent_template(
            requiresApproval=True,
            approvalLevels=[level.to_document() for level in approval_levels],
        ))

        voucher = await books.templates.materialize(template.id)
        records = await books.approvals.approvals_for_voucher(voucher.id)

        assert voucher.approval_status == ApprovalStatus.PENDING
        assert voucher.approval_level == 1
        assert len(records) == 1
        assert records[0].approver_id == "u-accountant"

    async def test_template_levels_drive_next_record(self, books, approval_levels):
        template = await books.templates.create_template(rent_template(
            requiresApproval=True,
            approvalLevels=[level.to_document() for level in approval_levels],
        ))
        voucher = await books.templates.materialize(template.id)
        first = (await books.approvals.approvals_for_voucher(voucher.id))[0]

        await books.approvals.approve(first.id, "u-accountant")
        records = await books.approvals.approvals_for_voucher(voucher.id)

        assert records[1].approver_id == "u-manager"

    async def test_bulk_materialize(self, books):
        template = await books.templates.create_template(rent_template(
            variables=[{"name": "period", "isRequired": True}],
        ))

        results = await books.templates.bulk_materialize(template.id, [{"period": "Apr"}, {}, {"period": "May"}])

        assert [r.success for r in results] == [True, False, True]
        assert results[1].code == "VALIDATION_ERROR"
