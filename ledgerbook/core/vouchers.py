"""
Voucher Rules
=============
State machine, totals and ledger entry generation for vouchers.

Every function works on in-memory models only; persistence and locking
belong to VoucherService.

STATES:
-------
    draft -> provisional | posted | cancelled
    provisional -> posted | cancelled
    posted -> cancelled
    cancelled (terminal)
"""

from datetime import date, datetime
from typing import Callable, List

from ..exceptions import (
    AlreadyCancelledError,
    AlreadyPostedError,
    EmptyVoucherError,
    InvalidVoucherStateError,
    NotProvisionalError,
    UnbalancedVoucherError,
    ValidationError,
)
from ..models.account import ResolvedAccount
from ..models.ledger import EntryKind, LedgerEntry
from ..models.voucher import Voucher, VoucherItem, VoucherStatus
from ..utils.helpers import financial_year_of, money_sum, new_id, round_money

DEFAULT_TOLERANCE = 0.01

EDITABLE_STATES = (VoucherStatus.DRAFT, VoucherStatus.PROVISIONAL)


def recompute_totals(voucher: Voucher) -> Voucher:
    """Derive totals and financial year from the line items"""
    voucher.total_debit = money_sum(item.debit_amount for item in voucher.items)
    voucher.total_credit = money_sum(item.credit_amount for item in voucher.items)
    voucher.total_gst = money_sum(item.gst_amount for item in voucher.items)
    voucher.total_tds = money_sum(item.tds_amount for item in voucher.items)
    if not voucher.financial_year:
        voucher.financial_year = financial_year_of(voucher.voucher_date)
    return voucher


def validate_items(items: List[VoucherItem]) -> None:
    if not items:
        raise EmptyVoucherError()


def is_balanced(voucher: Voucher, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return abs(voucher.total_debit - voucher.total_credit) <= tolerance


def ensure_balanced(voucher: Voucher, tolerance: float = DEFAULT_TOLERANCE) -> None:
    if not is_balanced(voucher, tolerance):
        raise UnbalancedVoucherError(voucher.voucher_number, voucher.total_debit, voucher.total_credit)


def ensure_editable(voucher: Voucher, operation: str = "modify") -> None:
    if voucher.status not in EDITABLE_STATES:
        raise InvalidVoucherStateError(voucher.voucher_number, voucher.status.value, operation)


def ensure_postable(voucher: Voucher) -> None:
    if voucher.status == VoucherStatus.POSTED:
        raise AlreadyPostedError(voucher.voucher_number)
    ensure_editable(voucher, "post")


def post(voucher: Voucher, at: datetime, tolerance: float = DEFAULT_TOLERANCE) -> Voucher:
    """Move a draft or provisional voucher to posted"""
    ensure_postable(voucher)
    recompute_totals(voucher)
    ensure_balanced(voucher, tolerance)

    voucher.status = VoucherStatus.POSTED
    voucher.posted_date = at
    return voucher


def cancel(voucher: Voucher, reason: str, at: datetime) -> bool:
    """Cancel a voucher; returns True when it had been posted"""
    if voucher.status == VoucherStatus.CANCELLED:
        raise AlreadyCancelledError(voucher.voucher_number)
    if not reason or not reason.strip():
        raise ValidationError("Cancellation reason is required", field="reason")

    was_posted = voucher.status == VoucherStatus.POSTED
    voucher.status = VoucherStatus.CANCELLED
    voucher.cancelled_date = at
    voucher.cancel_reason = reason.strip()
    return was_posted


def mark_provisional(voucher: Voucher, reason: str, at: datetime) -> Voucher:
    if voucher.status != VoucherStatus.DRAFT:
        raise InvalidVoucherStateError(voucher.voucher_number, voucher.status.value, "mark as provisional")
    voucher.status = VoucherStatus.PROVISIONAL
    voucher.is_provisional = True
    voucher.provisional_reason = reason
    voucher.provisional_date = at
    return voucher


def confirm_provisional(voucher: Voucher, at: datetime, tolerance: float = DEFAULT_TOLERANCE) -> Voucher:
    if voucher.status != VoucherStatus.PROVISIONAL:
        raise NotProvisionalError(voucher.voucher_number, voucher.status.value)
    post(voucher, at, tolerance)
    voucher.is_provisional = False
    voucher.confirmed_date = at
    return voucher


def schedule_post_dated(voucher: Voucher, effective_date: date, reason: str, auto_post: bool) -> Voucher:
    if voucher.status != VoucherStatus.DRAFT:
        raise InvalidVoucherStateError(voucher.voucher_number, voucher.status.value, "schedule")
    voucher.is_post_dated = True
    voucher.effective_date = effective_date
    voucher.post_date_reason = reason
    voucher.auto_post_enabled = auto_post
    return voucher


def is_due_for_auto_post(voucher: Voucher, today: date) -> bool:
    return (
        voucher.status == VoucherStatus.DRAFT
        and voucher.is_post_dated
        and voucher.auto_post_enabled
        and voucher.effective_date is not None
        and voucher.effective_date <= today
    )


def generate_ledger_entries(
    voucher: Voucher,
    resolve: Callable[[VoucherItem], ResolvedAccount],
    at: datetime,
) -> List[LedgerEntry]:
    """One single-sided entry per nonzero debit or credit of every item"""
    entries = []
    for item in voucher.items:
        resolved = resolve(item)
        sides = []
        if item.debit_amount > 0:
            sides.append((round_money(item.debit_amount), 0.0))
        if item.credit_amount > 0:
            sides.append((0.0, round_money(item.credit_amount)))

        for debit, credit in sides:
            entries.append(LedgerEntry(
                account_kind=item.account.kind,
                account_key=item.account.key,
                account_name=resolved.name,
                account_type=resolved.account_type,
                account_category=resolved.category,
                voucher_id=voucher.id,
                voucher_number=voucher.voucher_number,
                voucher_type=voucher.voucher_type.value,
                voucher_date=voucher.voucher_date,
                financial_year=voucher.financial_year,
                description=item.description or voucher.narration,
                cheque_number=voucher.cheque_number,
                debit_amount=debit,
                credit_amount=credit,
                entry_kind=EntryKind.POSTING,
                created_at=at,
            ))
    return entries


def reversal_entries(entries: List[LedgerEntry], at: datetime) -> List[LedgerEntry]:
    """Offsetting entries that net each posting to zero"""
    return [
        entry.model_copy(update={
            "id": new_id(),
            "debit_amount": entry.credit_amount,
            "credit_amount": entry.debit_amount,
            "description": f"Reversal: {entry.description}",
            "entry_kind": EntryKind.REVERSAL,
            "created_at": at,
        })
        for entry in entries
        if entry.entry_kind == EntryKind.POSTING
    ]
