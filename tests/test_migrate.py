"""
Tests for schema migrations and the legacy JSON import.
"""

import json
import sqlite3
from datetime import date

import migrate
from services.ledger import LedgerService


def create_pre_portfolio_db(path):
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE transactionrecord (
            id VARCHAR PRIMARY KEY,
            transaction_date DATE NOT NULL,
            transaction_type VARCHAR NOT NULL,
            amount_fiat FLOAT NOT NULL,
            price_per_unit FLOAT NOT NULL,
            amount_asset FLOAT NOT NULL,
            realized_pnl FLOAT,
            pnl_percentage FLOAT
        )
    """)
    conn.executemany(
        "INSERT INTO transactionrecord VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        [
            ("old-buy", "2024-01-01", "BUY", 1000000, 4000, 250, None, None),
            ("old-sell", "2024-02-01", "SELL", 450000, 4500, 100, 50000, 12.5),
        ],
    )
    conn.commit()
    conn.close()


class TestSchemaMigrations:
    def test_missing_database_is_a_no_op(self, tmp_path):
        assert migrate.migrate_transactionrecord_add_portfolio_id(str(tmp_path / "nope.db")) is False

    def test_db_file_from_settings(self, tmp_path):
        assert migrate.get_db_file() == str(tmp_path / "ledger.db")

    def test_old_database_is_upgraded_and_loadable(self, tmp_path):
        db_file = str(tmp_path / "ledger.db")
        create_pre_portfolio_db(db_file)

        assert migrate.migrate_transactionrecord_add_portfolio_id() is True
        assert migrate.migrate_transactionrecord_add_position() is True

        log = LedgerService().log
        assert [tx.id for tx in log] == ["old-sell", "old-buy"]
        assert {tx.portfolio_id for tx in log} == {"main"}
        assert log[0].realized_pnl == 50000

    def test_migrations_are_idempotent(self, tmp_path):
        create_pre_portfolio_db(str(tmp_path / "ledger.db"))
        migrate.run_all_migrations()

        assert migrate.migrate_transactionrecord_add_portfolio_id() is False
        assert migrate.migrate_transactionrecord_add_position() is False


class TestLegacyImport:
    def test_import_merges_new_entries(self, tmp_path, db):
        LedgerService().record("BUY", 100_000, 4_000, date(2024, 3, 1))
        export = tmp_path / "usdt_transactions.json"
        export.write_text(json.dumps([
            {"id": "a", "date": "2024-01-01", "type": "COMPRA", "amountPesos": 400000, "pricePerUsdt": 4000, "amountUsdt": 100},
            {"id": "b", "date": "2024-01-05", "type": "VENTA", "amountPesos": 90000, "pricePerUsdt": 4500, "amountUsdt": 20,
             "realizedPnl": 10000, "pnlPercentage": 12.5},
        ]), encoding="utf-8")

        assert migrate.import_legacy_json(str(export)) == 2
        assert migrate.import_legacy_json(str(export)) == 0

        ledger = LedgerService()
        assert len(ledger.log) == 3
        assert ledger.log[-1].id == "a"
        assert ledger.stats("main").total_realized_pnl == 10000
