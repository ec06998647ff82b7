"""
Services package for USDT Trader Pro.
Provides core business logic separated from presentation and data layers.
"""

from services.accounting import (
    DEFAULT_PORTFOLIO,
    SELL_TOLERANCE,
    InsufficientBalanceError,
    PortfolioStats,
    SaleSimulation,
    Transaction,
    TransactionPreview,
    TransactionType,
    TransactionValidationError,
    append_transaction,
    compute_stats,
    delete_transaction,
    filter_by_portfolio,
    preview_transaction,
    record_transaction,
    simulate_sale,
)
from services.advisor import AdvisorService
from services.ledger import LedgerService
from services.persistence import LedgerStore, dump_json, load_json
from services.portfolios import PORTFOLIOS, PortfolioConfig, get_portfolio_config

__all__ = [
    # Accounting engine
    'DEFAULT_PORTFOLIO',
    'SELL_TOLERANCE',
    'InsufficientBalanceError',
    'PortfolioStats',
    'SaleSimulation',
    'Transaction',
    'TransactionPreview',
    'TransactionType',
    'TransactionValidationError',
    'append_transaction',
    'compute_stats',
    'delete_transaction',
    'filter_by_portfolio',
    'preview_transaction',
    'record_transaction',
    'simulate_sale',
    # Services
    'AdvisorService',
    'LedgerService',
    'LedgerStore',
    'dump_json',
    'load_json',
    # Presentation lookup
    'PORTFOLIOS',
    'PortfolioConfig',
    'get_portfolio_config',
]
