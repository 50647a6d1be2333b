"""Ledgerbook: double-entry voucher and ledger core"""
