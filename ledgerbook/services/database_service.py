"""
Database Service Module
Handles SQLite database operations
"""

import asyncio
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

from ..config import config
from ..utils.logger import logger
from ..utils.decorators import timed
from ..utils.constants import ALL_TABLES

MEMORY_DB = ":memory:"

# True while the current task is inside DatabaseService.transaction()
_in_tx: ContextVar[bool] = ContextVar("ledgerbook_in_tx", default=False)


class DatabaseService:
    """Service for SQLite database operations

    One connection is shared by the whole process. Writes are serialized by
    an asyncio lock; statements issued inside ``transaction()`` are committed
    or rolled back together.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.database.path
        self._connection: Optional[aiosqlite.Connection] = None
        self._initialized = False
        self._write_lock = asyncio.Lock()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection"""
        if self._connection is None:
            if self.db_path != MEMORY_DB:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path, timeout=30.0)
            self._connection.row_factory = aiosqlite.Row

            if not self._initialized:
                if self.db_path != MEMORY_DB:
                    await self._connection.execute("PRAGMA journal_mode=WAL")
                await self._connection.execute("PRAGMA busy_timeout=30000")
                await self._connection.execute("PRAGMA synchronous=NORMAL")
                self._initialized = True

            logger.info(f"Connected to SQLite database: {self.db_path}")

        return self._connection

    async def connect(self) -> None:
        """Open database connection"""
        await self._get_connection()

    async def disconnect(self) -> None:
        """Close database connection"""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self._initialized = False
            logger.info("Database connection closed")

    @asynccontextmanager
    async def transaction(self):
        """Run the enclosed statements as one atomic unit

        Nested use joins the outer transaction.
        """
        if _in_tx.get():
            yield self
            return

        conn = await self._get_connection()
        async with self._write_lock:
            token = _in_tx.set(True)
            try:
                yield self
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                _in_tx.reset(token)

    async def _run_write(self, query: str, params, many: bool = False) -> int:
        conn = await self._get_connection()
        if many:
            cursor = await conn.executemany(query, params)
        else:
            cursor = await conn.execute(query, params)
        return cursor.rowcount

    async def execute(self, query: str, params: Tuple = ()) -> int:
        """Execute a query and return affected rows"""
        try:
            if _in_tx.get():
                return await self._run_write(query, params)
            async with self._write_lock:
                rowcount = await self._run_write(query, params)
                await self._connection.commit()
                return rowcount
        except Exception as e:
            logger.error(f"Query execution failed: {e}\nQuery: {query[:200]}...")
            raise

    async def execute_many(self, query: str, params_list: List[Tuple]) -> int:
        """Execute query with multiple parameter sets"""
        if not params_list:
            return 0
        try:
            if _in_tx.get():
                return await self._run_write(query, params_list, many=True)
            async with self._write_lock:
                rowcount = await self._run_write(query, params_list, many=True)
                await self._connection.commit()
                return rowcount
        except Exception as e:
            logger.error(f"Batch execution failed: {e}")
            raise

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        """Fetch all rows from query"""
        conn = await self._get_connection()

        try:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]
        except Exception as e:
            logger.error(f"Fetch failed: {e}")
            raise

    async def fetch_one(self, query: str, params: Tuple = ()) -> Optional[Dict[str, Any]]:
        """Fetch single row from query"""
        conn = await self._get_connection()

        try:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            return dict(row) if row else None
        except Exception as e:
            logger.error(f"Fetch one failed: {e}")
            raise

    async def fetch_scalar(self, query: str, params: Tuple = ()) -> Any:
        """Fetch single value from query"""
        result = await self.fetch_one(query, params)
        if result:
            return list(result.values())[0]
        return None

    @timed
    async def create_tables(self) -> None:
        """Create all tables and indexes"""
        conn = await self._get_connection()

        try:
            await conn.executescript(SCHEMA_SQL)
            await conn.commit()
            logger.info(f"Database schema ready ({len(ALL_TABLES)} tables)")
        except Exception as e:
            logger.error(f"Error creating tables: {e}")
            raise

    async def get_table_count(self, table_name: str) -> int:
        """Get row count for a table"""
        if table_name not in ALL_TABLES:
            raise ValueError(f"Unknown table: {table_name}")
        if not await self.table_exists(table_name):
            return 0
        return await self.fetch_scalar(f"SELECT COUNT(*) FROM {table_name}") or 0

    async def get_all_table_counts(self) -> Dict[str, int]:
        """Get row counts for all tables"""
        counts = {}
        for table in ALL_TABLES:
            counts[table] = await self.get_table_count(table)
        return counts

    async def table_exists(self, table_name: str) -> bool:
        """Check if table exists"""
        result = await self.fetch_scalar(
            "SELECT COUNT(*) FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,)
        )
        return bool(result)

    def get_database_size(self) -> int:
        """Get database file size in bytes"""
        if self.db_path == MEMORY_DB:
            return 0
        path = Path(self.db_path)
        return path.stat().st_size if path.exists() else 0


SCHEMA_SQL = '''
-- Vouchers (document body in data, lifecycle columns indexed)
CREATE TABLE IF NOT EXISTS vouchers (
    id TEXT PRIMARY KEY,
    voucher_number TEXT NOT NULL UNIQUE,
    voucher_type TEXT NOT NULL,
    voucher_date TEXT NOT NULL,
    status TEXT NOT NULL,
    approval_status TEXT NOT NULL,
    financial_year TEXT,
    is_post_dated INTEGER NOT NULL DEFAULT 0,
    auto_post_enabled INTEGER NOT NULL DEFAULT 0,
    effective_date TEXT,
    template_id TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_vouchers_status ON vouchers(status);
CREATE INDEX IF NOT EXISTS idx_vouchers_date ON vouchers(voucher_date);
CREATE INDEX IF NOT EXISTS idx_vouchers_post_dated ON vouchers(is_post_dated, auto_post_enabled, effective_date);

-- Ledger entries (append-only, one side per row)
CREATE TABLE IF NOT EXISTS ledger_entries (
    id TEXT PRIMARY KEY,
    account_kind TEXT NOT NULL,
    account_key TEXT NOT NULL,
    account_name TEXT NOT NULL,
    account_type TEXT NOT NULL,
    account_category TEXT,
    voucher_id TEXT NOT NULL,
    voucher_number TEXT NOT NULL,
    voucher_type TEXT NOT NULL,
    voucher_date TEXT NOT NULL,
    financial_year TEXT,
    description TEXT,
    cheque_number TEXT,
    debit_amount REAL NOT NULL DEFAULT 0,
    credit_amount REAL NOT NULL DEFAULT 0,
    entry_kind TEXT NOT NULL DEFAULT 'posting',
    created_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_ledger_account ON ledger_entries(account_name, voucher_date);
CREATE INDEX IF NOT EXISTS idx_ledger_voucher_number ON ledger_entries(voucher_number);
CREATE INDEX IF NOT EXISTS idx_ledger_date ON ledger_entries(voucher_date);

-- Approval records
CREATE TABLE IF NOT EXISTS voucher_approvals (
    id TEXT PRIMARY KEY,
    voucher_id TEXT NOT NULL,
    voucher_number TEXT NOT NULL,
    approval_level INTEGER NOT NULL,
    approver_id TEXT NOT NULL,
    delegated_to TEXT,
    status TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_approvals_voucher ON voucher_approvals(voucher_id, approval_level);
CREATE INDEX IF NOT EXISTS idx_approvals_approver ON voucher_approvals(approver_id, status);
CREATE INDEX IF NOT EXISTS idx_approvals_delegate ON voucher_approvals(delegated_to, status);

-- Templates
CREATE TABLE IF NOT EXISTS voucher_templates (
    id TEXT PRIMARY KEY,
    template_code TEXT NOT NULL UNIQUE,
    voucher_type TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    usage_count INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_templates_type ON voucher_templates(voucher_type, is_active);

-- Recurring schedules
CREATE TABLE IF NOT EXISTS recurring_vouchers (
    id TEXT PRIMARY KEY,
    template_id TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_paused INTEGER NOT NULL DEFAULT 0,
    next_run_date TEXT,
    end_date TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_recurring_due ON recurring_vouchers(is_active, is_paused, next_run_date);

-- Bank reconciliations
CREATE TABLE IF NOT EXISTS bank_reconciliations (
    id TEXT PRIMARY KEY,
    bank_account TEXT NOT NULL,
    status TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);

-- Voucher numbering
CREATE TABLE IF NOT EXISTS voucher_sequences (
    voucher_type TEXT PRIMARY KEY,
    prefix TEXT NOT NULL,
    next_number INTEGER NOT NULL DEFAULT 1
);

-- Account directory
CREATE TABLE IF NOT EXISTS accounts (
    kind TEXT NOT NULL,
    key TEXT NOT NULL,
    name TEXT NOT NULL,
    account_type TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'General',
    is_active INTEGER NOT NULL DEFAULT 1,
    PRIMARY KEY (kind, key)
);

-- Audit trail of lifecycle actions
CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    action TEXT NOT NULL,
    entity TEXT NOT NULL,
    entity_id TEXT NOT NULL,
    entity_ref TEXT,
    old_data TEXT,
    new_data TEXT,
    actor TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_audit_entity ON audit_log(entity, entity_id);
CREATE INDEX IF NOT EXISTS idx_audit_action ON audit_log(action);
'''


# Global service instance
database_service = DatabaseService()
