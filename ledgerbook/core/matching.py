"""
Bank Reconciliation Matching
=============================
Pairs bank statement lines with book (ledger) lines.

AUTO-MATCH:
-----------
Two greedy passes over unmatched entries, bank entries in stored order and,
for each, the first unmatched book entry in stored order that qualifies:

1. same non-empty cheque number, debit and credit equal within tolerance
2. debit and credit equal within tolerance, dates at most N days apart

The result is order-dependent by construction; no global assignment is
attempted.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import EntryNotFoundError
from ..models.ledger import LedgerEntry
from ..models.reconciliation import (
    BankEntry,
    BankReconciliation,
    BookEntry,
    ReconciliationSummary,
)
from ..utils.constants import DEFAULT_MATCH_WINDOW_DAYS
from ..utils.helpers import money_sum, parse_amount, parse_date, round_money

MATCH_TOLERANCE = 0.01


def _amounts_match(bank: BankEntry, book: BookEntry, tolerance: float) -> bool:
    return (round_money(abs(book.debit - bank.debit)) <= tolerance
            and round_money(abs(book.credit - bank.credit)) <= tolerance)


def _cheque_match(bank: BankEntry, book: BookEntry, tolerance: float) -> bool:
    return book.cheque_number == bank.cheque_number and _amounts_match(bank, book, tolerance)


def _date_match(bank: BankEntry, book: BookEntry, window_days: int, tolerance: float) -> bool:
    if bank.date is None or book.date is None:
        return False
    return abs((bank.date - book.date).days) <= window_days and _amounts_match(bank, book, tolerance)


def _pair(bank: BankEntry, book: BookEntry) -> None:
    bank.matched = True
    bank.matched_book_entry_id = book.id
    bank.matched_ledger_entry_id = book.ledger_entry_id
    book.matched = True
    book.matched_bank_entry_id = bank.id


def _release_bank(bank: BankEntry) -> None:
    bank.matched = False
    bank.matched_book_entry_id = None
    bank.matched_ledger_entry_id = None


def _release_book(book: BookEntry) -> None:
    book.matched = False
    book.matched_bank_entry_id = None


def auto_match(
    reconciliation: BankReconciliation,
    window_days: int = DEFAULT_MATCH_WINDOW_DAYS,
    tolerance: float = MATCH_TOLERANCE,
) -> int:
    """Run both passes in place and return the number of new pairs"""
    match_count = 0

    for bank in reconciliation.bank_entries:
        if bank.matched or not bank.cheque_number:
            continue
        book = next(
            (b for b in reconciliation.book_entries if not b.matched and _cheque_match(bank, b, tolerance)),
            None,
        )
        if book is not None:
            _pair(bank, book)
            match_count += 1

    for bank in reconciliation.bank_entries:
        if bank.matched:
            continue
        book = next(
            (b for b in reconciliation.book_entries if not b.matched and _date_match(bank, b, window_days, tolerance)),
            None,
        )
        if book is not None:
            _pair(bank, book)
            match_count += 1

    return match_count


def find_bank_entry(reconciliation: BankReconciliation, entry_id: str) -> BankEntry:
    for entry in reconciliation.bank_entries:
        if entry.id == entry_id:
            return entry
    raise EntryNotFoundError(entry_id)


def find_book_entry(reconciliation: BankReconciliation, entry_id: str) -> BookEntry:
    for entry in reconciliation.book_entries:
        if entry.id == entry_id:
            return entry
    raise EntryNotFoundError(entry_id)


def _counterpart_of_bank(reconciliation: BankReconciliation, bank: BankEntry) -> Optional[BookEntry]:
    for book in reconciliation.book_entries:
        if book.matched_bank_entry_id == bank.id:
            return book
    return None


def unmatch_bank(reconciliation: BankReconciliation, bank: BankEntry) -> None:
    counterpart = _counterpart_of_bank(reconciliation, bank)
    if counterpart is not None:
        _release_book(counterpart)
    _release_bank(bank)


def unmatch_book(reconciliation: BankReconciliation, book: BookEntry) -> None:
    if book.matched_bank_entry_id:
        for bank in reconciliation.bank_entries:
            if bank.id == book.matched_bank_entry_id:
                _release_bank(bank)
    _release_book(book)


def manual_match(reconciliation: BankReconciliation, bank_entry_id: str, book_entry_id: str) -> None:
    """Pair two entries, first releasing any pair either side was part of"""
    bank = find_bank_entry(reconciliation, bank_entry_id)
    book = find_book_entry(reconciliation, book_entry_id)
    if bank.matched:
        unmatch_bank(reconciliation, bank)
    if book.matched:
        unmatch_book(reconciliation, book)
    _pair(bank, book)


def unmatch(
    reconciliation: BankReconciliation,
    bank_entry_id: Optional[str] = None,
    book_entry_id: Optional[str] = None,
) -> None:
    if bank_entry_id:
        unmatch_bank(reconciliation, find_bank_entry(reconciliation, bank_entry_id))
    if book_entry_id:
        unmatch_book(reconciliation, find_book_entry(reconciliation, book_entry_id))


def recompute_summary(reconciliation: BankReconciliation) -> ReconciliationSummary:
    """Derive the summary from the entries; touches nothing else"""
    bank_debits = money_sum(e.debit for e in reconciliation.bank_entries)
    bank_credits = money_sum(e.credit for e in reconciliation.bank_entries)
    book_debits = money_sum(e.debit for e in reconciliation.book_entries)
    book_credits = money_sum(e.credit for e in reconciliation.book_entries)

    opening = reconciliation.opening_balance
    bank_balance = opening + bank_credits - bank_debits
    book_balance = opening + book_credits - book_debits

    reconciliation.summary = ReconciliationSummary(
        total_bank_debits=bank_debits,
        total_bank_credits=bank_credits,
        total_book_debits=book_debits,
        total_book_credits=book_credits,
        matched_entries=sum(1 for e in reconciliation.bank_entries if e.matched),
        unmatched_bank_entries=sum(1 for e in reconciliation.bank_entries if not e.matched),
        unmatched_book_entries=sum(1 for e in reconciliation.book_entries if not e.matched),
        reconciliation_difference=round_money(abs(bank_balance - book_balance)),
    )
    return reconciliation.summary


def _first(row: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def parse_statement_rows(rows: Iterable[Dict[str, Any]]) -> List[BankEntry]:
    """Build bank entries from loosely named statement rows"""
    entries = []
    for row in rows:
        entries.append(BankEntry(
            date=parse_date(_first(row, "date", "transactionDate", "valueDate")),
            description=str(_first(row, "description", "narration") or ""),
            cheque_number=str(_first(row, "chequeNumber", "chqNo", "cheque_number") or ""),
            debit=parse_amount(_first(row, "debitAmount", "debit", "withdrawal")),
            credit=parse_amount(_first(row, "creditAmount", "credit", "deposit")),
            balance=parse_amount(_first(row, "balance")),
        ))
    return entries


def book_entries_from_ledger(entries: Iterable[LedgerEntry]) -> List[BookEntry]:
    return [
        BookEntry(
            voucher_id=entry.voucher_id,
            ledger_entry_id=entry.id,
            date=entry.voucher_date,
            description=entry.description,
            cheque_number=entry.cheque_number,
            debit=entry.debit_amount,
            credit=entry.credit_amount,
        )
        for entry in entries
    ]
