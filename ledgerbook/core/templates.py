"""
Template Rules
Turn a voucher template plus a variable bag into voucher line items
"""

import random
from datetime import date
from typing import Any, Dict, List

from ..exceptions import TemplateInactiveError, ValidationError
from ..models.template import VoucherTemplate
from ..models.voucher import VoucherItem
from ..utils.helpers import parse_amount, parse_date, round_money


def generate_template_code(voucher_type: str) -> str:
    """<TYPE3>_TMPL_<6 digits>, e.g. SAL_TMPL_004211"""
    return f"{voucher_type[:3].upper()}_TMPL_{random.randint(0, 999999):06d}"


def ensure_active(template: VoucherTemplate) -> None:
    if not template.is_active:
        raise TemplateInactiveError(template.id)


def resolve_variables(template: VoucherTemplate, variables: Dict[str, Any]) -> Dict[str, Any]:
    """Fill declared defaults and check required variables are present"""
    resolved = dict(variables or {})
    for variable in template.variables:
        if resolved.get(variable.name) in (None, "") and variable.default_value is not None:
            resolved[variable.name] = variable.default_value
        if variable.is_required and resolved.get(variable.name) in (None, ""):
            raise ValidationError(f"Variable '{variable.name}' is required", field=variable.name)
    return resolved


def amount_variable(account_name: str) -> str:
    return f"{account_name}_amount"


def build_items(template: VoucherTemplate, variables: Dict[str, Any]) -> List[VoucherItem]:
    """Copy template lines, overriding variable lines from `<accountName>_amount`"""
    items = []
    for line in template.items:
        debit = line.debit_amount
        credit = line.credit_amount

        if line.is_variable:
            name = amount_variable(line.account_name)
            override = variables.get(name)
            if override:
                amount = parse_amount(override)
                if amount < 0:
                    raise ValidationError(f"{name} must not be negative, got {amount}", field=name, value=amount)
                if line.debit_amount > 0:
                    debit = amount
                if line.credit_amount > 0:
                    credit = amount

        amount = debit or credit
        items.append(VoucherItem(
            account=line.account,
            account_name=line.account_name,
            description=line.description,
            debit_amount=debit,
            credit_amount=credit,
            gst_rate=line.gst_rate,
            gst_amount=round_money(amount * line.gst_rate / 100),
            tds_rate=line.tds_rate,
            tds_amount=round_money(amount * line.tds_rate / 100),
        ))
    return items


def narration_for(template: VoucherTemplate, variables: Dict[str, Any]) -> str:
    return variables.get("narration") or template.description or template.template_name


def voucher_date_for(variables: Dict[str, Any], today: date) -> date:
    return parse_date(variables.get("voucherDate")) or today
