"""
Pytest configuration for the test suite.

Every test runs against its own temporary SQLite database and a clean
settings object, so nothing leaks from a developer's .env file.
"""
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

import pytest

# Add the project root to sys.path for imports
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

import config  # noqa: E402
import db_engine  # noqa: E402
from services.accounting import Transaction, TransactionType  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the app at a temporary database with no LLM configured."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'ledger.db'}")
    monkeypatch.setenv("LLM_MODE", "cloud")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("OPENAI_MODEL", "")
    monkeypatch.setenv("FIAT_CURRENCY", "COP")
    monkeypatch.setenv("DEFAULT_PORTFOLIO", "main")
    monkeypatch.setenv("SELL_TOLERANCE", "0.01")

    db_engine.reset_engine()
    settings = config.reload_settings()
    yield settings
    db_engine.reset_engine()
    config.reload_settings()


@pytest.fixture
def db(isolated_settings):
    """Initialized empty database."""
    db_engine.init_db()
    return db_engine.get_engine()


class FakeLLMClient:
    """Stands in for LLMClient; records prompts and returns a canned answer."""

    def __init__(self, response: Optional[str] = "## Summary\nProfitable so far.", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: List[str] = []
        self.language = "en"

    def invoke(self, message: str, system_message: Optional[str] = None) -> str:
        self.prompts.append(message)
        if self.error is not None:
            raise self.error
        return self.response

    def set_language(self, language: str):
        self.language = language


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


def make_tx(
    tx_type: str,
    amount_fiat: float,
    price: float,
    tx_date: date = date(2024, 1, 1),
    portfolio_id: str = "main",
    realized_pnl: Optional[float] = None,
    pnl_percentage: Optional[float] = None,
    tx_id: Optional[str] = None,
) -> Transaction:
    """Build a Transaction directly, bypassing validation (hand-edited logs)."""
    return Transaction(
        id=tx_id or f"{tx_type.lower()}-{amount_fiat}-{price}-{tx_date.isoformat()}-{portfolio_id}",
        portfolio_id=portfolio_id,
        date=tx_date,
        type=TransactionType(tx_type),
        amount_fiat=amount_fiat,
        price_per_unit=price,
        amount_asset=amount_fiat / price,
        realized_pnl=realized_pnl,
        pnl_percentage=pnl_percentage,
    )
