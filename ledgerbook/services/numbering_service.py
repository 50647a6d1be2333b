"""
Numbering Service Module
Sequential voucher numbers per voucher type, e.g. JV/0001
"""

from typing import Dict, Optional

from ..config import NumberingConfig, config
from .database_service import DatabaseService, database_service


class NumberingService:
    """Hands out the next voucher number from the voucher_sequences table"""

    def __init__(self, db: Optional[DatabaseService] = None, settings: Optional[NumberingConfig] = None):
        self.db = db or database_service
        self.settings = settings or config.numbering

    def prefix_for(self, voucher_type: str) -> str:
        return self.settings.prefixes.get(voucher_type, voucher_type[:2].upper())

    def format_number(self, prefix: str, number: int) -> str:
        return f"{prefix}/{str(number).zfill(self.settings.padding)}"

    async def next_voucher_number(self, voucher_type: str) -> str:
        prefix = self.prefix_for(voucher_type)
        async with self.db.transaction():
            await self.db.execute(
                "INSERT OR IGNORE INTO voucher_sequences (voucher_type, prefix, next_number) VALUES (?, ?, 1)",
                (voucher_type, prefix),
            )
            number = await self.db.fetch_scalar(
                "SELECT next_number FROM voucher_sequences WHERE voucher_type = ?", (voucher_type,)
            )
            await self.db.execute(
                "UPDATE voucher_sequences SET next_number = next_number + 1 WHERE voucher_type = ?",
                (voucher_type,),
            )
        return self.format_number(prefix, number)

    async def peek(self) -> Dict[str, str]:
        """Next number per voucher type without consuming it"""
        rows = await self.db.fetch_all("SELECT voucher_type, prefix, next_number FROM voucher_sequences")
        return {row["voucher_type"]: self.format_number(row["prefix"], row["next_number"]) for row in rows}


# Global service instance
numbering_service = NumberingService()
