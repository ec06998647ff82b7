"""
Accounting engine for the USDT ledger.

Pure functions over an in-memory transaction log:
- record_transaction / append_transaction: validate a BUY or SELL and insert it
- compute_stats: balance, weighted-average cost and realized PnL per portfolio
- delete_transaction: drop an entry by id
- simulate_sale / preview_transaction: what-if calculations, no log mutation

Cost basis is the weighted average over every BUY recorded for the portfolio,
SELLs never move it. Realized PnL of a SELL is computed once when it is
recorded and stays frozen; deleting or inserting older entries does not
recompute it.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

from services.common import normalize_portfolio_id

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO = "main"
SELL_TOLERANCE = 0.01  # float slack when selling the whole balance


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value: Union["TransactionType", str]) -> "TransactionType":
        """Accept the enum, its value, or the legacy Spanish labels."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper()
        normalized = _LEGACY_TYPE_LABELS.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise TransactionValidationError(f"Unknown transaction type: {value!r}")


_LEGACY_TYPE_LABELS = {
    "COMPRA": "BUY",
    "VENTA": "SELL",
}


class TransactionValidationError(ValueError):
    """Raised when a transaction cannot be recorded as requested."""


class InsufficientBalanceError(TransactionValidationError):
    """Raised when a SELL asks for more units than the portfolio holds."""

    def __init__(self, requested: float, available: float):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance: requested {requested:.2f} units, "
            f"available {available:.2f}"
        )


@dataclass(frozen=True)
class Transaction:
    """One ledger operation. Derived fields are stored, never recomputed."""
    id: str
    portfolio_id: str
    date: date
    type: TransactionType
    amount_fiat: float
    price_per_unit: float
    amount_asset: float
    realized_pnl: Optional[float] = None  # SELL only
    pnl_percentage: Optional[float] = None  # SELL only

    @property
    def is_sell(self) -> bool:
        return self.type == TransactionType.SELL


@dataclass(frozen=True)
class PortfolioStats:
    """Aggregate figures for one portfolio, recomputed on every read."""
    active_investment: float = 0.0
    current_balance: float = 0.0
    average_buy_price: float = 0.0
    total_realized_pnl: float = 0.0


@dataclass(frozen=True)
class SaleSimulation:
    """Outcome of a hypothetical sale at a given price."""
    amount_asset: float
    price_per_unit: float
    proceeds: float
    cost_basis: float
    realized_pnl: float
    pnl_percentage: float
    remaining_balance: float
    exceeds_balance: bool


@dataclass(frozen=True)
class TransactionPreview:
    """Live preview shown while a transaction is being typed."""
    amount_asset: float = 0.0
    projected_pnl: Optional[float] = None


def new_transaction_id() -> str:
    return uuid.uuid4().hex


def portfolio_of(transaction: Transaction) -> str:
    return transaction.portfolio_id or DEFAULT_PORTFOLIO


def filter_by_portfolio(log: Iterable[Transaction], portfolio_id: Optional[str]) -> List[Transaction]:
    """Transactions belonging to one portfolio, in log order."""
    target = portfolio_id or DEFAULT_PORTFOLIO
    return [tx for tx in log if portfolio_of(tx) == target]


def weighted_average_buy_price(transactions: Iterable[Transaction]) -> float:
    """sum(fiat) / sum(units) over BUY transactions; 0 when there are none."""
    sum_fiat = 0.0
    sum_asset = 0.0
    for tx in transactions:
        if tx.type == TransactionType.BUY:
            sum_fiat += tx.amount_fiat
            sum_asset += tx.amount_asset
    return sum_fiat / sum_asset if sum_asset > 0 else 0.0


def pnl_percentage(realized_pnl: float, cost_basis: float) -> float:
    return realized_pnl / cost_basis * 100 if cost_basis > 0 else 0.0


def compute_stats(portfolio_id: Optional[str], log: Iterable[Transaction]) -> PortfolioStats:
    """
    Derive portfolio statistics from the full log.

    Args:
        portfolio_id: Portfolio to summarize (None means the default portfolio)
        log: Complete transaction log, any order

    Returns:
        PortfolioStats with the balance clamped at zero. A negative net
        position only shows up in hand-edited logs and is not repaired here.
    """
    sum_buy_fiat = 0.0
    sum_buy_asset = 0.0
    net_asset = 0.0
    total_realized_pnl = 0.0

    for tx in filter_by_portfolio(log, portfolio_id):
        if tx.type == TransactionType.BUY:
            sum_buy_fiat += tx.amount_fiat
            sum_buy_asset += tx.amount_asset
            net_asset += tx.amount_asset
        elif tx.type == TransactionType.SELL:
            net_asset -= tx.amount_asset
            if tx.realized_pnl is not None:
                total_realized_pnl += tx.realized_pnl

    average_buy_price = sum_buy_fiat / sum_buy_asset if sum_buy_asset > 0 else 0.0
    current_balance = max(0.0, net_asset)

    return PortfolioStats(
        active_investment=current_balance * average_buy_price,
        current_balance=current_balance,
        average_buy_price=average_buy_price,
        total_realized_pnl=total_realized_pnl,
    )


def _require_positive(value: Optional[float], label: str):
    if value is None or not math.isfinite(value) or value <= 0:
        raise TransactionValidationError(f"{label} must be a finite number greater than zero")


def record_transaction(
    transaction_type: Union[TransactionType, str],
    amount_fiat: float,
    price_per_unit: float,
    transaction_date: date,
    portfolio_id: Optional[str],
    existing_log: Sequence[Transaction],
    tolerance: float = SELL_TOLERANCE,
) -> Transaction:
    """
    Validate and build a new transaction against the current log.

    Args:
        transaction_type: BUY or SELL
        amount_fiat: Total fiat paid (BUY) or received (SELL)
        price_per_unit: Fiat per unit of asset
        transaction_date: Calendar date of the operation
        portfolio_id: Target portfolio (None means the default portfolio)
        existing_log: Log as it stands right now; it is not modified
        tolerance: Units a SELL may exceed the balance by

    Returns:
        The new Transaction, with realized PnL filled in for SELLs

    Raises:
        TransactionValidationError: Non-positive or non-finite amount or price, unknown type
        InsufficientBalanceError: SELL larger than balance + tolerance
    """
    tx_type = TransactionType.parse(transaction_type)
    _require_positive(amount_fiat, "Fiat amount")
    _require_positive(price_per_unit, "Price per unit")

    portfolio = normalize_portfolio_id(portfolio_id, DEFAULT_PORTFOLIO)
    amount_asset = amount_fiat / price_per_unit
    realized_pnl = None
    pnl_pct = None

    if tx_type == TransactionType.SELL:
        history = filter_by_portfolio(existing_log, portfolio)
        available = compute_stats(portfolio, history).current_balance
        if amount_asset > available + tolerance:
            logger.warning(
                f"Rejected SELL of {amount_asset:.4f} units in '{portfolio}', "
                f"balance is {available:.4f}"
            )
            raise InsufficientBalanceError(amount_asset, available)

        cost_basis = amount_asset * weighted_average_buy_price(history)
        realized_pnl = amount_fiat - cost_basis
        pnl_pct = pnl_percentage(realized_pnl, cost_basis)

    transaction = Transaction(
        id=new_transaction_id(),
        portfolio_id=portfolio,
        date=transaction_date,
        type=tx_type,
        amount_fiat=amount_fiat,
        price_per_unit=price_per_unit,
        amount_asset=amount_asset,
        realized_pnl=realized_pnl,
        pnl_percentage=pnl_pct,
    )
    logger.info(
        f"Recorded {tx_type.value} in '{portfolio}': {amount_fiat:.2f} fiat "
        f"@ {price_per_unit:.2f} = {amount_asset:.4f} units"
    )
    return transaction


def sort_log(log: Iterable[Transaction]) -> List[Transaction]:
    """Most recent date first. Same-date entries keep their relative order."""
    return sorted(log, key=lambda tx: tx.date, reverse=True)


def append_transaction(log: Sequence[Transaction], transaction: Transaction) -> List[Transaction]:
    """Return a new log with the transaction inserted and dates descending."""
    return sort_log([*log, transaction])


def delete_transaction(transaction_id: str, log: Sequence[Transaction]) -> List[Transaction]:
    """
    Return a new log without the given transaction.
    Frozen PnL of the remaining SELLs is left as recorded.
    """
    remaining = [tx for tx in log if tx.id != transaction_id]
    if len(remaining) == len(log):
        logger.warning(f"Transaction {transaction_id} not found, nothing deleted")
    return remaining


def simulate_sale(
    stats: PortfolioStats,
    amount_asset: float,
    price_per_unit: float,
    tolerance: float = SELL_TOLERANCE,
) -> SaleSimulation:
    """
    What-if sale of `amount_asset` units at `price_per_unit`.
    Uses the same cost-basis rule as a recorded SELL.
    """
    _require_positive(amount_asset, "Units to sell")
    _require_positive(price_per_unit, "Price per unit")

    proceeds = amount_asset * price_per_unit
    cost_basis = amount_asset * stats.average_buy_price
    realized_pnl = proceeds - cost_basis

    return SaleSimulation(
        amount_asset=amount_asset,
        price_per_unit=price_per_unit,
        proceeds=proceeds,
        cost_basis=cost_basis,
        realized_pnl=realized_pnl,
        pnl_percentage=pnl_percentage(realized_pnl, cost_basis),
        remaining_balance=max(0.0, stats.current_balance - amount_asset),
        exceeds_balance=amount_asset > stats.current_balance + tolerance,
    )


def preview_transaction(
    transaction_type: Union[TransactionType, str],
    amount_fiat: Optional[float],
    price_per_unit: Optional[float],
    average_buy_price: float,
) -> TransactionPreview:
    """Units the form would record, plus projected PnL for a SELL."""
    if not amount_fiat or not price_per_unit or amount_fiat <= 0 or price_per_unit <= 0:
        return TransactionPreview()

    amount_asset = amount_fiat / price_per_unit
    projected_pnl = None
    if TransactionType.parse(transaction_type) == TransactionType.SELL and average_buy_price > 0:
        projected_pnl = amount_fiat - amount_asset * average_buy_price

    return TransactionPreview(amount_asset=amount_asset, projected_pnl=projected_pnl)
