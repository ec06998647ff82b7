"""
Database engine and session management for USDT Trader Pro.
Uses SQLModel with SQLite for persistent storage of the ledger.
The app is the only writer; the journal is switched to WAL on first connect.
"""

from sqlmodel import SQLModel, Session, create_engine
from typing import Optional
import logging

from config import get_settings

logger = logging.getLogger(__name__)

# Global engine instance
_engine: Optional[object] = None


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            echo=settings.db_echo,
            connect_args={
                "check_same_thread": False,  # Streamlit reruns on worker threads
            }
        )
        _enable_wal_mode()
    return _engine


def _enable_wal_mode():
    if _engine is None:
        return

    try:
        with _engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            logger.info("SQLite WAL mode enabled")
    except Exception as e:
        logger.warning(f"Could not enable WAL mode: {e}")


def reset_engine():
    """Dispose the current engine so the next call picks up fresh settings."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def init_db():
    """Initialize the database and create all tables."""
    from models import TransactionRecord, UserPreferences  # noqa: F401

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized")


def get_session():
    """Get a new database session."""
    return Session(get_engine())
