"""
Ledger service - single owner of the in-memory transaction log.
Wires recording and deletion to the accounting engine and saves the whole
log after every change.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple, Union

from config import get_settings
from services.accounting import (
    PortfolioStats,
    SaleSimulation,
    Transaction,
    TransactionType,
    append_transaction,
    compute_stats,
    delete_transaction,
    filter_by_portfolio,
    record_transaction,
    simulate_sale,
    sort_log,
)
from services.common import normalize_portfolio_id
from services.persistence import LedgerStore

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Holds the transaction log for the running app.
    The log is replaced wholesale on every mutation, and only after the
    store accepted the new version.
    """

    def __init__(self, store: Optional[LedgerStore] = None, tolerance: Optional[float] = None):
        settings = get_settings()
        self.store = store or LedgerStore()
        self.default_portfolio = settings.default_portfolio
        self.tolerance = settings.sell_tolerance if tolerance is None else tolerance
        self._log: List[Transaction] = self.store.load()

    @property
    def log(self) -> Tuple[Transaction, ...]:
        return tuple(self._log)

    def _portfolio(self, portfolio_id: Optional[str]) -> str:
        return normalize_portfolio_id(portfolio_id, self.default_portfolio)

    def _commit(self, new_log: List[Transaction]):
        self.store.save(new_log)
        self._log = new_log

    def transactions(self, portfolio_id: Optional[str] = None) -> List[Transaction]:
        """Transactions of one portfolio, most recent first."""
        return filter_by_portfolio(self._log, self._portfolio(portfolio_id))

    def stats(self, portfolio_id: Optional[str] = None) -> PortfolioStats:
        return compute_stats(self._portfolio(portfolio_id), self._log)

    def snapshot(self, portfolio_id: Optional[str] = None) -> Tuple[Transaction, ...]:
        """Read-only copy handed to the advisory service."""
        return tuple(self.transactions(portfolio_id))

    def record(
        self,
        transaction_type: Union[TransactionType, str],
        amount_fiat: float,
        price_per_unit: float,
        transaction_date: date,
        portfolio_id: Optional[str] = None,
    ) -> Transaction:
        """
        Record a BUY or SELL and persist the updated log.

        Raises:
            TransactionValidationError: Invalid input; nothing is stored
            InsufficientBalanceError: SELL above the portfolio balance
        """
        transaction = record_transaction(
            transaction_type,
            amount_fiat,
            price_per_unit,
            transaction_date,
            self._portfolio(portfolio_id),
            self._log,
            tolerance=self.tolerance,
        )
        self._commit(append_transaction(self._log, transaction))
        return transaction

    def delete(self, transaction_id: str) -> bool:
        """Delete a transaction and persist. Returns False if the id is unknown."""
        new_log = delete_transaction(transaction_id, self._log)
        if len(new_log) == len(self._log):
            return False
        self._commit(new_log)
        logger.info(f"Deleted transaction {transaction_id}")
        return True

    def replace_all(self, transactions: Iterable[Transaction]) -> int:
        """Replace the whole ledger, e.g. from a JSON import."""
        new_log = sort_log(transactions)
        self._commit(new_log)
        logger.info(f"Replaced ledger with {len(new_log)} transactions")
        return len(new_log)

    def simulate_sale(
        self,
        amount_asset: float,
        price_per_unit: float,
        portfolio_id: Optional[str] = None,
    ) -> SaleSimulation:
        return simulate_sale(self.stats(portfolio_id), amount_asset, price_per_unit, self.tolerance)

    def reload(self):
        """Discard the in-memory log and read it again from storage."""
        self._log = self.store.load()
