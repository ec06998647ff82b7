"""
Database migration script for USDT Trader Pro.
Brings older ledger databases up to the current schema and imports the
JSON export of the browser version of the app.

Usage:
    python migrate.py [legacy_export.json]
"""

import logging
import os
import sqlite3
import sys
from typing import Optional

from config import get_settings

logger = logging.getLogger(__name__)

TABLE = "transactionrecord"


def get_db_file() -> Optional[str]:
    """SQLite file behind the configured database URL, None for other backends."""
    url = get_settings().database_url
    prefix = "sqlite:///"
    if not url.startswith(prefix):
        return None
    return url[len(prefix):]


def _columns(cursor: sqlite3.Cursor) -> list:
    cursor.execute(f"PRAGMA table_info({TABLE})")
    return [col[1] for col in cursor.fetchall()]


def _add_column(db_file: str, column: str, ddl: str, backfill: Optional[str] = None) -> bool:
    """
    Add a column to the transaction table if it doesn't exist.

    Returns:
        True if the column was added
    """
    if not db_file or not os.path.exists(db_file):
        logger.info(f"Database {db_file} does not exist. Nothing to migrate.")
        return False

    conn = sqlite3.connect(db_file)
    cursor = conn.cursor()

    try:
        columns = _columns(cursor)
        if not columns:
            logger.info(f"Table '{TABLE}' does not exist yet. Nothing to migrate.")
            return False

        if column in columns:
            logger.info(f"Column '{column}' already exists in {TABLE} table.")
            return False

        logger.info(f"Adding '{column}' column to {TABLE} table...")
        cursor.execute(f"ALTER TABLE {TABLE} ADD COLUMN {column} {ddl}")
        if backfill:
            cursor.execute(backfill)
        conn.commit()
        logger.info(f"Added '{column}' column successfully.")
        return True

    except sqlite3.OperationalError as e:
        logger.error(f"Error during migration: {e}")
        conn.rollback()
        return False
    finally:
        conn.close()


def migrate_transactionrecord_add_portfolio_id(db_file: Optional[str] = None) -> bool:
    """
    Add portfolio_id to ledgers created before portfolios existed.
    Existing rows belong to the default portfolio.
    """
    default = get_settings().default_portfolio
    return _add_column(
        db_file or get_db_file(),
        "portfolio_id",
        f"VARCHAR NOT NULL DEFAULT '{default}'",
        backfill=f"UPDATE {TABLE} SET portfolio_id = '{default}' WHERE portfolio_id IS NULL OR portfolio_id = ''",
    )


def migrate_transactionrecord_add_position(db_file: Optional[str] = None) -> bool:
    """Add the saved-order column; old rows are numbered newest date first."""
    return _add_column(
        db_file or get_db_file(),
        "position",
        "INTEGER NOT NULL DEFAULT 0",
        backfill=(
            f"UPDATE {TABLE} SET position = ("
            f"SELECT COUNT(*) FROM {TABLE} AS newer "
            f"WHERE newer.transaction_date > {TABLE}.transaction_date "
            f"OR (newer.transaction_date = {TABLE}.transaction_date AND newer.rowid < {TABLE}.rowid))"
        ),
    )


def import_legacy_json(path: str) -> int:
    """
    Merge a JSON export from the browser app into the ledger database.
    Entries whose id is already stored are skipped.

    Returns:
        Number of transactions imported
    """
    from db_engine import init_db
    from services.ledger import LedgerService
    from services.persistence import load_json

    with open(path, 'r', encoding='utf-8') as f:
        imported = load_json(f.read())

    init_db()
    ledger = LedgerService()
    known_ids = {tx.id for tx in ledger.log}
    new_entries = [tx for tx in imported if tx.id not in known_ids]

    if not new_entries:
        logger.info(f"No new transactions to import from {path}")
        return 0

    ledger.replace_all([*ledger.log, *new_entries])
    logger.info(f"Imported {len(new_entries)} transactions from {path}")
    return len(new_entries)


def run_all_migrations(legacy_json: Optional[str] = None):
    """Run all pending migrations, then the optional legacy import."""
    logger.info("USDT Trader Pro Database Migration")

    migrate_transactionrecord_add_portfolio_id()
    migrate_transactionrecord_add_position()

    if legacy_json:
        import_legacy_json(legacy_json)

    logger.info("Migration complete!")


if __name__ == "__main__":
    logging.basicConfig(
        level=get_settings().log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    run_all_migrations(sys.argv[1] if len(sys.argv) > 1 else None)
