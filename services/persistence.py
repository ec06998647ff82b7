"""
Ledger persistence: load/save the whole transaction log.

Stored data goes through a load-time normalization step before the
accounting engine sees it:
- entries without an id get a fresh one
- entries without a portfolio are tagged with the default portfolio
- legacy type labels ("COMPRA"/"VENTA") and field names from the browser
  app's JSON export are mapped to the current schema

Broken storage never stops the app: an unreadable database or JSON payload
loads as an empty log, and individual malformed entries are skipped.
"""

import json
import logging
import math
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from models import TransactionRecord
from repositories import TransactionRepository
from services.accounting import Transaction, TransactionType, new_transaction_id
from services.common import normalize_portfolio_id, parse_date

logger = logging.getLogger(__name__)


# Accepted spellings per field, current schema first
FIELD_ALIASES = {
    "id": ("id",),
    "portfolio_id": ("portfolio_id", "portfolioId"),
    "date": ("date", "transaction_date"),
    "type": ("type", "transaction_type"),
    "amount_fiat": ("amount_fiat", "amountFiat", "amountPesos"),
    "price_per_unit": ("price_per_unit", "pricePerUnit", "pricePerUsdt"),
    "amount_asset": ("amount_asset", "amountAsset", "amountUsdt"),
    "realized_pnl": ("realized_pnl", "realizedPnl"),
    "pnl_percentage": ("pnl_percentage", "pnlPercentage"),
}


def _pick(raw: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{field} is not a number: {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{field} is not finite: {value!r}")
    return number


def _optional_number(value: Any, field: str) -> Optional[float]:
    return None if value is None else _number(value, field)


def normalize_entry(raw: Mapping[str, Any], default_portfolio: Optional[str] = None) -> Transaction:
    """
    Build a Transaction from a stored entry.

    Args:
        raw: Mapping in either the current snake_case schema or the legacy
            camelCase export schema
        default_portfolio: Portfolio assigned when the entry has none

    Returns:
        Normalized Transaction

    Raises:
        ValueError / TypeError: If a required field is missing or malformed
    """
    if default_portfolio is None:
        default_portfolio = get_settings().default_portfolio

    tx_type = TransactionType.parse(_pick(raw, "type"))
    amount_fiat = _number(_pick(raw, "amount_fiat"), "amount_fiat")
    price_per_unit = _number(_pick(raw, "price_per_unit"), "price_per_unit")

    amount_asset = _pick(raw, "amount_asset")
    if amount_asset is None:
        if price_per_unit <= 0:
            raise ValueError("Cannot derive amount_asset without a positive price")
        amount_asset = amount_fiat / price_per_unit
    amount_asset = _number(amount_asset, "amount_asset")

    realized_pnl = None
    pnl_percentage = None
    if tx_type == TransactionType.SELL:
        realized_pnl = _optional_number(_pick(raw, "realized_pnl"), "realized_pnl")
        pnl_percentage = _optional_number(_pick(raw, "pnl_percentage"), "pnl_percentage")

    return Transaction(
        id=str(_pick(raw, "id") or new_transaction_id()),
        portfolio_id=normalize_portfolio_id(_pick(raw, "portfolio_id"), default_portfolio),
        date=parse_date(_pick(raw, "date")),
        type=tx_type,
        amount_fiat=amount_fiat,
        price_per_unit=price_per_unit,
        amount_asset=amount_asset,
        realized_pnl=realized_pnl,
        pnl_percentage=pnl_percentage,
    )


def normalize_entries(raw_entries: Iterable[Any], default_portfolio: Optional[str] = None) -> List[Transaction]:
    """Normalize every entry, skipping the ones that cannot be read."""
    transactions = []
    seen_ids = set()
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, Mapping):
            logger.warning(f"Skipping entry {index}: expected an object, got {type(raw).__name__}")
            continue
        try:
            tx = normalize_entry(raw, default_portfolio)
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed entry {index}: {e}")
            continue
        if tx.id in seen_ids:
            logger.warning(f"Duplicate id {tx.id} in entry {index}, assigning a new one")
            tx = replace(tx, id=new_transaction_id())
        seen_ids.add(tx.id)
        transactions.append(tx)
    return transactions


def transaction_to_record(tx: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=tx.id,
        portfolio_id=tx.portfolio_id,
        transaction_date=tx.date,
        transaction_type=tx.type.value,
        amount_fiat=tx.amount_fiat,
        price_per_unit=tx.price_per_unit,
        amount_asset=tx.amount_asset,
        realized_pnl=tx.realized_pnl,
        pnl_percentage=tx.pnl_percentage,
    )


def transaction_to_dict(tx: Transaction) -> dict:
    """camelCase export shape, readable by the browser app's loader."""
    data = {
        "id": tx.id,
        "portfolioId": tx.portfolio_id,
        "date": tx.date.isoformat(),
        "type": tx.type.value,
        "amountFiat": tx.amount_fiat,
        "pricePerUnit": tx.price_per_unit,
        "amountAsset": tx.amount_asset,
    }
    if tx.is_sell:
        data["realizedPnl"] = tx.realized_pnl
        data["pnlPercentage"] = tx.pnl_percentage
    return data


def dump_json(log: Iterable[Transaction]) -> str:
    return json.dumps([transaction_to_dict(tx) for tx in log], indent=2)


def load_json(text: str, default_portfolio: Optional[str] = None) -> List[Transaction]:
    """
    Parse a JSON export. Invalid JSON or a non-list payload loads as an
    empty log.
    """
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Error loading transactions from JSON: {e}")
        return []

    if not isinstance(payload, list):
        logger.error(f"Expected a JSON list of transactions, got {type(payload).__name__}")
        return []

    return normalize_entries(payload, default_portfolio)


class LedgerStore:
    """
    Whole-log persistence on top of TransactionRepository.
    Every save overwrites the stored log; there are no incremental writes.
    """

    def __init__(self, default_portfolio: Optional[str] = None):
        self.default_portfolio = default_portfolio or get_settings().default_portfolio

    def load(self) -> List[Transaction]:
        """
        Load the stored log in saved order.

        Returns:
            Normalized transactions, or an empty list if storage is unreadable
        """
        try:
            records = TransactionRepository.get_all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading transactions, starting with an empty ledger: {e}")
            return []

        transactions = normalize_entries(
            (record.model_dump() for record in records),
            self.default_portfolio,
        )
        logger.info(f"Loaded {len(transactions)} transactions")
        return transactions

    def save(self, log: Iterable[Transaction]) -> int:
        """
        Overwrite the stored log.

        Raises:
            SQLAlchemyError: If the write fails (the stored log is rolled back)
        """
        records = [transaction_to_record(tx) for tx in log]
        count = TransactionRepository.replace_all(records)
        logger.debug(f"Saved {count} transactions")
        return count
