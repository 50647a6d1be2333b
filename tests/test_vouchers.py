"""
Ledgerbook - Voucher Service Tests

Lifecycle through the service layer against an in-memory database:
numbering, posting with ledger entries, cancellation and auto-post.
"""

from datetime import date

import pydantic
import pytest

from ledgerbook.exceptions import (
    AccountNotFoundError,
    AlreadyPostedError,
    ConcurrencyConflictError,
    EmptyVoucherError,
    InvalidVoucherStateError,
    UnbalancedVoucherError,
    ValidationError,
    VoucherNotFoundError,
)
from ledgerbook.models.account import AccountKind
from ledgerbook.models.ledger import EntryKind
from ledgerbook.models.voucher import VoucherStatus, VoucherUpdate

from .factories import cash_sale, customer_ref, ledger_ref, line, voucher_request


class TestCreate:

    async def test_numbers_are_sequential_per_type(self, books):
        first = await books.vouchers.create_voucher(cash_sale())
        second = await books.vouchers.create_voucher(cash_sale())
        journal = await books.vouchers.create_voucher(voucher_request([
            line(ledger_ref("Rent"), debit=10), line(ledger_ref("Cash"), credit=10),
        ]))

        assert first.voucher_number == "SV/0001"
        assert second.voucher_number == "SV/0002"
        assert journal.voucher_number == "JV/0001"

    async def test_created_as_draft_with_totals(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale(1200))
        stored = await books.vouchers.get_voucher(voucher.id)

        assert stored.status == VoucherStatus.DRAFT
        assert stored.total_debit == 1200
        assert stored.total_credit == 1200
        assert stored.financial_year == "2024-25"
        assert stored.version == 1

    async def test_account_names_resolved(self, books):
        voucher = await books.vouchers.create_voucher(voucher_request([
            line(customer_ref("C001"), debit=100), line(ledger_ref("Sales"), credit=100),
        ]))
        assert voucher.items[0].account_name == "Acme Traders"

    async def test_unknown_account_rejected(self, books):
        with pytest.raises(AccountNotFoundError):
            await books.vouchers.create_voucher(voucher_request([
                line(ledger_ref("Nowhere"), debit=5), line(ledger_ref("Cash"), credit=5),
            ]))

    async def test_unknown_voucher(self, books):
        with pytest.raises(VoucherNotFoundError):
            await books.vouchers.get_voucher("missing")


class TestPost:

    async def test_post_writes_mirroring_entries(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale(1000))
        posted = await books.vouchers.post_voucher(voucher.id)
        entries = await books.ledger.entries_for_voucher(posted.voucher_number)

        assert posted.status == VoucherStatus.POSTED
        assert posted.posted_date is not None
        assert len(entries) == 2
        assert sum(e.debit_amount for e in entries) == posted.total_debit
        assert sum(e.credit_amount for e in entries) == posted.total_credit
        assert {e.account_name for e in entries} == {"Cash", "Sales"}

    async def test_unbalanced_post_writes_nothing(self, books):
        voucher = await books.vouchers.create_voucher(voucher_request([
            line(ledger_ref("Cash"), debit=100), line(ledger_ref("Sales"), credit=90),
        ]))

        with pytest.raises(UnbalancedVoucherError):
            await books.vouchers.post_voucher(voucher.id)

        stored = await books.vouchers.get_voucher(voucher.id)
        assert stored.status == VoucherStatus.DRAFT
        assert await books.ledger.entries_for_voucher(voucher.voucher_number) == []

    async def test_post_twice_rejected(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.post_voucher(voucher.id)

        with pytest.raises(AlreadyPostedError):
            await books.vouchers.post_voucher(voucher.id)
        assert len(await books.ledger.entries_for_voucher(voucher.voucher_number)) == 2

    async def test_already_posted_reported_before_account_lookup(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.post_voucher(voucher.id)
        await books.accounts.deactivate_account(AccountKind.LEDGER_ACCOUNT, "Cash")

        with pytest.raises(AlreadyPostedError):
            await books.vouchers.post_voucher(voucher.id)

    async def test_posted_voucher_not_editable(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.post_voucher(voucher.id)

        with pytest.raises(InvalidVoucherStateError):
            await books.vouchers.update_voucher(voucher.id, VoucherUpdate(narration="Changed"))

    async def test_confirm_provisional_posts(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.mark_provisional(voucher.id, "Rate not final")
        confirmed = await books.vouchers.confirm_provisional(voucher.id)

        assert confirmed.status == VoucherStatus.POSTED
        assert len(await books.ledger.entries_for_voucher(voucher.voucher_number)) == 2


class TestUpdate:

    async def test_update_recomputes_totals(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale(100))
        updated = await books.vouchers.update_voucher(voucher.id, VoucherUpdate.model_validate({
            "voucherDate": "2025-02-01",
            "items": [line(ledger_ref("Cash"), debit=250), line(ledger_ref("Sales"), credit=250)],
        }))

        assert updated.total_debit == 250
        assert updated.financial_year == "2024-25"
        assert updated.version == 2

    async def test_null_narration_rejected(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())

        with pytest.raises(ValidationError) as error:
            await books.vouchers.update_voucher(voucher.id, VoucherUpdate.model_validate({"narration": None}))

        assert error.value.field == "narration"
        stored = await books.vouchers.get_voucher(voucher.id)
        assert (stored.narration, stored.version) == ("Cash sale", 1)

    async def test_blank_narration_rejected(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        with pytest.raises(ValidationError):
            await books.vouchers.update_voucher(voucher.id, VoucherUpdate(narration="   "))
        with pytest.raises(pydantic.ValidationError):
            voucher_request([line(ledger_ref("Cash"), debit=1), line(ledger_ref("Sales"), credit=1)], narration="  ")

    async def test_null_date_rejected(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())

        with pytest.raises(ValidationError):
            await books.vouchers.update_voucher(voucher.id, VoucherUpdate.model_validate({"voucherDate": None}))
        assert (await books.vouchers.get_voucher(voucher.id)).voucher_date == date(2024, 5, 10)

    async def test_null_items_rejected(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        with pytest.raises(EmptyVoucherError):
            await books.vouchers.update_voucher(voucher.id, VoucherUpdate.model_validate({"items": None}))

    async def test_partial_update_keeps_other_fields(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale(100))
        updated = await books.vouchers.update_voucher(voucher.id, VoucherUpdate(reference_number="INV-7"))

        assert updated.reference_number == "INV-7"
        assert updated.narration == "Cash sale"
        assert updated.total_debit == 100
        assert (await books.vouchers.get_voucher(voucher.id)).reference_number == "INV-7"

    async def test_stale_copy_conflicts(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        first = await books.vouchers.get_voucher(voucher.id)
        stale = await books.vouchers.get_voucher(voucher.id)

        first.reference_number = "INV-1"
        await books.vouchers.save(first)

        stale.reference_number = "INV-2"
        with pytest.raises(ConcurrencyConflictError):
            await books.vouchers.save(stale)
        assert (await books.vouchers.get_voucher(voucher.id)).reference_number == "INV-1"

    async def test_only_drafts_deleted(self, books):
        draft = await books.vouchers.create_voucher(cash_sale())
        posted = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.post_voucher(posted.id)

        await books.vouchers.delete_voucher(draft.id)
        with pytest.raises(VoucherNotFoundError):
            await books.vouchers.get_voucher(draft.id)
        with pytest.raises(InvalidVoucherStateError):
            await books.vouchers.delete_voucher(posted.id)


class TestCancel:

    async def test_cancel_posted_removes_entries(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.post_voucher(voucher.id)

        cancelled = await books.vouchers.cancel_voucher(voucher.id, "Customer returned goods", "u-1")

        assert cancelled.status == VoucherStatus.CANCELLED
        assert cancelled.cancel_reason == "Customer returned goods"
        assert await books.ledger.entries_for_voucher(voucher.voucher_number) == []

    async def test_cancel_posted_with_reversals(self, reversing_books):
        books = reversing_books
        voucher = await books.vouchers.create_voucher(cash_sale(400))
        await books.vouchers.post_voucher(voucher.id)

        await books.vouchers.cancel_voucher(voucher.id, "Duplicate entry")
        entries = await books.ledger.entries_for_voucher(voucher.voucher_number)

        assert len(entries) == 4
        assert sum(1 for e in entries if e.entry_kind == EntryKind.REVERSAL) == 2
        cash = await books.ledger.account_balance("Cash")
        assert cash.balance == 0

    async def test_cancel_leaves_other_vouchers_entries(self, books):
        kept = await books.vouchers.create_voucher(cash_sale(300))
        dropped = await books.vouchers.create_voucher(cash_sale(500))
        await books.vouchers.post_voucher(kept.id)
        await books.vouchers.post_voucher(dropped.id)

        await books.vouchers.cancel_voucher(dropped.id, "Entered twice")

        assert len(await books.ledger.entries_for_voucher(kept.voucher_number)) == 2
        assert (await books.ledger.account_balance("Cash")).balance == 300

    async def test_reversal_leaves_other_vouchers_entries(self, reversing_books):
        books = reversing_books
        kept = await books.vouchers.create_voucher(cash_sale(300))
        dropped = await books.vouchers.create_voucher(cash_sale(500))
        await books.vouchers.post_voucher(kept.id)
        await books.vouchers.post_voucher(dropped.id)

        await books.vouchers.cancel_voucher(dropped.id, "Entered twice")
        kept_entries = await books.ledger.entries_for_voucher(kept.voucher_number)

        assert [e.entry_kind for e in kept_entries] == [EntryKind.POSTING, EntryKind.POSTING]
        assert (await books.ledger.account_balance("Cash")).balance == 300

    async def test_cancel_draft_writes_no_entries(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.cancel_voucher(voucher.id, "Not needed")
        assert await books.ledger.entries_for_voucher(voucher.voucher_number) == []

    async def test_cancel_audited(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.cancel_voucher(voucher.id, "Not needed", "u-9")

        history = await books.audit.get_record_history("voucher", voucher.id)
        assert [h["action"] for h in history] == ["CREATE", "CANCEL"]
        assert history[-1]["actor"] == "u-9"
        assert history[-1]["new_data"]["reason"] == "Not needed"


class TestAutoPost:

    async def test_due_vouchers_posted(self, books):
        due = await books.vouchers.create_voucher(cash_sale())
        later = await books.vouchers.create_voucher(cash_sale())
        await books.vouchers.schedule_post_dated(due.id, date(2024, 6, 1), "Cheque date")
        await books.vouchers.schedule_post_dated(later.id, date(2024, 7, 1), "Cheque date")

        results = await books.vouchers.process_due_auto_post(date(2024, 6, 1))

        assert [r.voucher_number for r in results] == [due.voucher_number]
        assert results[0].success
        posted = await books.vouchers.get_voucher(due.id)
        assert posted.status == VoucherStatus.POSTED
        assert posted.is_post_dated is False
        assert (await books.vouchers.get_voucher(later.id)).status == VoucherStatus.DRAFT

    async def test_failure_isolated(self, books):
        bad = await books.vouchers.create_voucher(voucher_request([
            line(ledger_ref("Cash"), debit=100), line(ledger_ref("Sales"), credit=1),
        ]))
        good = await books.vouchers.create_voucher(cash_sale())
        for voucher in (bad, good):
            await books.vouchers.schedule_post_dated(voucher.id, date(2024, 6, 1))

        results = await books.vouchers.process_due_auto_post(date(2024, 6, 30))
        by_number = {r.voucher_number: r for r in results}

        assert by_number[bad.voucher_number].success is False
        assert by_number[bad.voucher_number].code == "UNBALANCED"
        assert by_number[good.voucher_number].success is True

    async def test_bulk_post_reports_each(self, books):
        voucher = await books.vouchers.create_voucher(cash_sale())
        results = await books.vouchers.bulk_post([voucher.id, "missing"])

        assert results[0].success is True
        assert results[1].success is False
        assert results[1].code == "NOT_FOUND"


class TestSummary:

    async def test_posted_vouchers_grouped_by_type(self, books):
        for amount in (1000, 500):
            voucher = await books.vouchers.create_voucher(cash_sale(amount))
            await books.vouchers.post_voucher(voucher.id)
        await books.vouchers.create_voucher(cash_sale(99))

        summary = await books.vouchers.voucher_summary()

        assert len(summary) == 1
        assert summary[0].voucher_type == "sales"
        assert (summary[0].count, summary[0].total_debit) == (2, 1500)
