"""
Tests for shared helpers, portfolio display config and settings.
"""

from datetime import date, datetime

import pytest

from config import get_settings
from services.common import (
    format_fiat,
    format_pct,
    format_units,
    normalize_portfolio_id,
    parse_date,
    transaction_label,
)
from tests.conftest import make_tx
from services.portfolios import PORTFOLIOS, get_portfolio_config, portfolio_ids


class TestCommon:
    @pytest.mark.parametrize("value,expected", [(None, "main"), ("", "main"), ("   ", "main"), (" Trading ", "Trading"), ("Savings", "Savings")])
    def test_normalize_portfolio_id(self, value, expected):
        assert normalize_portfolio_id(value) == expected

    @pytest.mark.parametrize("value", [date(2024, 5, 1), datetime(2024, 5, 1, 10, 30), "2024-05-01", "2024-05-01T10:00:00.000Z"])
    def test_parse_date(self, value):
        assert parse_date(value) == date(2024, 5, 1)

    @pytest.mark.parametrize("value", [None, "", "05/01/2024", 20240501])
    def test_parse_date_rejects(self, value):
        with pytest.raises(ValueError):
            parse_date(value)

    def test_formatting(self):
        assert format_fiat(1234567.8) == "$1,234,568 COP"
        assert format_fiat(-50000, "MXN", 2) == "-$50,000.00 MXN"
        assert format_units(150) == "150.00 USDT"
        assert format_pct(12.5) == "+12.50%"

    def test_transaction_label(self):
        tx = make_tx("BUY", 1_000_000, 4_000, date(2024, 1, 1))
        assert transaction_label(tx) == "2024-01-01 | BUY | $1,000,000 COP @ $4,000 COP"

    def test_identical_operations_stay_distinct_picker_options(self):
        twins = [make_tx("BUY", 1_000, 4_000, tx_id="a"), make_tx("BUY", 1_000, 4_000, tx_id="b")]
        labels = {tx.id: transaction_label(tx) for tx in twins}

        assert list(labels) == ["a", "b"]
        assert labels["a"] == labels["b"]


class TestPortfolios:
    def test_predefined_portfolios(self):
        assert portfolio_ids() == ["main", "trading"]

    def test_lookup_and_fallback(self):
        assert get_portfolio_config("trading").label == "Trading / Scalping"
        assert get_portfolio_config("unknown") is PORTFOLIOS[0]
        assert get_portfolio_config(None) is PORTFOLIOS[0]


class TestSettings:
    def test_defaults(self):
        settings = get_settings()

        assert settings.default_portfolio == "main"
        assert settings.sell_tolerance == 0.01
        assert settings.is_openai_configured is False
        assert settings.is_llm_configured is False

    def test_local_mode_needs_no_key(self, monkeypatch):
        import config

        monkeypatch.setenv("LLM_MODE", "local")
        assert config.reload_settings().is_llm_configured is True
