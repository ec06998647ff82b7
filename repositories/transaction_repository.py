"""
Transaction Repository - data access layer for TransactionRecord model.
Optimized with optional session parameter for transaction reuse.
"""

from typing import Optional, List
from sqlmodel import Session, select

from db_engine import get_engine
from models import TransactionRecord


class TransactionRepository:
    """Repository for TransactionRecord persistence."""

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[TransactionRecord]:
        """
        Retrieve every stored transaction in saved log order.

        Args:
            session: Optional existing session for transaction reuse

        Returns:
            List of TransactionRecord objects
        """
        def _get_all(sess: Session) -> List[TransactionRecord]:
            statement = select(TransactionRecord).order_by(TransactionRecord.position)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_portfolio(portfolio_id: str, session: Optional[Session] = None) -> List[TransactionRecord]:
        """
        Retrieve stored transactions for one portfolio in saved log order.

        Args:
            portfolio_id: Portfolio identifier ("main", "trading", ...)
            session: Optional existing session for transaction reuse

        Returns:
            List of TransactionRecord objects
        """
        def _get_by_portfolio(sess: Session) -> List[TransactionRecord]:
            statement = (
                select(TransactionRecord)
                .where(TransactionRecord.portfolio_id == portfolio_id)
                .order_by(TransactionRecord.position)
            )
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_by_portfolio(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_portfolio(session)

    @staticmethod
    def get_by_id(transaction_id: str, session: Optional[Session] = None) -> Optional[TransactionRecord]:
        """
        Retrieve a transaction by its ID.

        Args:
            transaction_id: Transaction ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            TransactionRecord object or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[TransactionRecord]:
            return sess.get(TransactionRecord, transaction_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def replace_all(records: List[TransactionRecord], session: Optional[Session] = None) -> int:
        """
        Overwrite the stored log with the given records in a single commit.
        Each record's position is set to its index in the list.

        Args:
            records: Complete log to store
            session: Optional existing session for transaction reuse

        Returns:
            Number of records stored
        """
        def _replace_all(sess: Session) -> int:
            try:
                for existing in sess.exec(select(TransactionRecord)).all():
                    sess.delete(existing)
                sess.flush()

                for position, record in enumerate(records):
                    record.position = position
                    sess.add(record)
                sess.commit()
                return len(records)
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _replace_all(session)
        else:
            with Session(get_engine()) as session:
                return _replace_all(session)

    @staticmethod
    def count(session: Optional[Session] = None) -> int:
        """Number of stored transactions."""
        def _count(sess: Session) -> int:
            return len(sess.exec(select(TransactionRecord.id)).all())

        if session is not None:
            return _count(session)
        else:
            with Session(get_engine()) as session:
                return _count(session)
