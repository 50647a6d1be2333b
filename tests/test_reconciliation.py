"""
Ledgerbook - Bank Reconciliation Service Tests
"""

import pytest

from ledgerbook.exceptions import ReconciliationNotFoundError, StateConflictError
from ledgerbook.models.reconciliation import ReconciliationCreate, ReconciliationStatus

from .factories import ledger_ref, line, voucher_request


async def bank_receipt(books, amount, voucher_date, cheque_number=None):
    """Posted Dr HDFC Bank / Cr Sales"""
    extra = {"bankDetails": {"chequeNumber": cheque_number}} if cheque_number else {}
    voucher = await books.vouchers.create_voucher(voucher_request(
        [line(ledger_ref("HDFC Bank"), debit=amount), line(ledger_ref("Sales"), credit=amount)],
        voucher_type="receipt",
        voucher_date=voucher_date,
        narration=f"Receipt {amount}",
        **extra,
    ))
    return await books.vouchers.post_voucher(voucher.id)


async def may_reconciliation(books):
    return await books.reconciliations.create_reconciliation(ReconciliationCreate.model_validate({
        "bankAccount": "HDFC Bank",
        "accountNumber": "50100012345678",
        "statementPeriod": {"fromDate": "2024-05-01", "toDate": "2024-05-31"},
        "openingBalance": 10000,
        "closingBalance": 17500,
    }))


STATEMENT = [
    {"date": "2024-05-06", "description": "CHQ DEP 000451", "chequeNumber": "000451", "debit": 5000},
    {"transactionDate": "2024-05-21", "narration": "NEFT ACME", "withdrawal": "2,500.00"},
    {"date": "2024-05-28", "description": "BANK CHARGES", "debit": 118},
]


class TestSession:

    async def test_created_as_draft(self, books):
        reconciliation = await may_reconciliation(books)
        stored = await books.reconciliations.get_reconciliation(reconciliation.id)

        assert stored.status == ReconciliationStatus.DRAFT
        assert stored.summary.reconciliation_difference == 0
        assert stored.version == 1

    async def test_unknown_reconciliation(self, books):
        with pytest.raises(ReconciliationNotFoundError):
            await books.reconciliations.get_reconciliation("missing")

    async def test_import_moves_to_in_progress(self, books):
        reconciliation = await may_reconciliation(books)
        updated = await books.reconciliations.import_statement(reconciliation.id, STATEMENT)

        assert updated.status == ReconciliationStatus.IN_PROGRESS
        assert [e.debit for e in updated.bank_entries] == [5000, 2500, 118]
        assert updated.bank_entries[1].description == "NEFT ACME"
        assert updated.summary.total_bank_debits == 7618
        assert updated.summary.unmatched_bank_entries == 3

    async def test_book_entries_limited_to_account_and_period(self, books):
        await bank_receipt(books, 5000, "2024-05-04", cheque_number="000451")
        await bank_receipt(books, 900, "2024-06-02")
        reconciliation = await may_reconciliation(books)

        updated = await books.reconciliations.load_book_entries(reconciliation.id)

        assert len(updated.book_entries) == 1
        book = updated.book_entries[0]
        assert (book.debit, book.cheque_number) == (5000, "000451")
        assert book.ledger_entry_id is not None


class TestMatching:

    async def loaded(self, books):
        await bank_receipt(books, 5000, "2024-05-04", cheque_number="000451")
        await bank_receipt(books, 2500, "2024-05-19")
        reconciliation = await may_reconciliation(books)
        await books.reconciliations.import_statement(reconciliation.id, STATEMENT)
        return await books.reconciliations.load_book_entries(reconciliation.id)

    async def test_auto_match_reports_count(self, books):
        reconciliation = await self.loaded(books)
        outcome = await books.reconciliations.auto_match(reconciliation.id)

        matched = outcome["reconciliation"]
        assert outcome["matchCount"] == 2
        assert matched.summary.matched_entries == 2
        assert matched.summary.unmatched_bank_entries == 1
        assert matched.summary.unmatched_book_entries == 0
        assert matched.bank_entries[0].matched_ledger_entry_id == matched.book_entries[0].ledger_entry_id

    async def test_auto_match_persists(self, books):
        reconciliation = await self.loaded(books)
        await books.reconciliations.auto_match(reconciliation.id)
        again = await books.reconciliations.auto_match(reconciliation.id)

        assert again["matchCount"] == 0

    async def test_manual_match_and_unmatch(self, books):
        reconciliation = await self.loaded(books)
        bank = reconciliation.bank_entries[2]
        book = reconciliation.book_entries[1]

        matched = await books.reconciliations.manual_match(reconciliation.id, bank.id, book.id)
        assert matched.bank_entries[2].matched_book_entry_id == book.id
        assert matched.book_entries[1].matched_bank_entry_id == bank.id

        released = await books.reconciliations.unmatch(reconciliation.id, bank_entry_id=bank.id)
        assert not released.bank_entries[2].matched
        assert not released.book_entries[1].matched


class TestCompletion:

    async def test_approve_requires_completed(self, books):
        reconciliation = await may_reconciliation(books)
        with pytest.raises(StateConflictError):
            await books.reconciliations.approve(reconciliation.id, "u-manager")

    async def test_complete_then_approve(self, books):
        reconciliation = await may_reconciliation(books)
        await books.reconciliations.complete(reconciliation.id)
        approved = await books.reconciliations.approve(reconciliation.id, "u-manager")

        assert approved.status == ReconciliationStatus.APPROVED
        assert approved.approved_by == "u-manager"
        assert approved.approved_at is not None

    async def test_approved_is_immutable(self, books):
        reconciliation = await may_reconciliation(books)
        await books.reconciliations.complete(reconciliation.id)
        await books.reconciliations.approve(reconciliation.id, "u-manager")

        with pytest.raises(StateConflictError):
            await books.reconciliations.import_statement(reconciliation.id, STATEMENT)
        with pytest.raises(StateConflictError):
            await books.reconciliations.auto_match(reconciliation.id)


class TestDashboard:

    async def test_counts_by_status(self, books):
        first = await may_reconciliation(books)
        await may_reconciliation(books)
        await books.reconciliations.complete(first.id)

        dashboard = await books.reconciliations.dashboard_summary()

        assert dashboard["totalReconciliations"] == 2
        assert dashboard["pendingReconciliations"] == 1
        assert dashboard["completedReconciliations"] == 1
        assert dashboard["bankAccountSummary"][0]["bankAccount"] == "HDFC Bank"
        assert dashboard["bankAccountSummary"][0]["count"] == 2
