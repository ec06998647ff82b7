"""
TransactionRecord model - stored row for one ledger BUY/SELL operation.
"""

from typing import Optional
from datetime import date
from sqlmodel import SQLModel, Field


class TransactionRecord(SQLModel, table=True):
    """Persisted form of a ledger transaction."""
    id: str = Field(primary_key=True)  # uuid4 hex, never reused
    portfolio_id: str = Field(default="main", index=True)  # "main", "trading", ...
    transaction_date: date = Field(index=True)
    transaction_type: str  # "BUY" or "SELL"
    amount_fiat: float
    price_per_unit: float  # fiat per unit of asset
    amount_asset: float

    # SELL only, frozen at creation
    realized_pnl: Optional[float] = Field(default=None)
    pnl_percentage: Optional[float] = Field(default=None)

    position: int = Field(default=0)  # index in the saved log
