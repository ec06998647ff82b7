"""
Advisory service - natural-language portfolio summary from an LLM.

The service receives a read-only snapshot of one portfolio's transactions and
returns Markdown prose. It never raises into the caller: empty input, an
unconfigured model, an empty answer or a failed call all turn into fixed
fallback messages. Nothing it returns is parsed back into the ledger.
"""

import json
import logging
from typing import Callable, Dict, List, Optional, Sequence

from config import get_settings
from llm_engine import LLMClient, create_llm_from_settings
from prompts import get_analysis_template
from services.accounting import Transaction

logger = logging.getLogger(__name__)


FALLBACK_MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "insufficient_data": "Not enough transactions to run an analysis.",
        "no_analysis": "The analysis could not be generated.",
        "not_configured": "The AI assistant is not configured. Set OPENAI_API_KEY and OPENAI_MODEL, or use local mode.",
        "error": "An error occurred while contacting the AI assistant. Check your connection or try again later.",
    },
    "es": {
        "insufficient_data": "No hay transacciones suficientes para realizar un análisis.",
        "no_analysis": "No se pudo generar el análisis.",
        "not_configured": "El asistente de IA no está configurado. Define OPENAI_API_KEY y OPENAI_MODEL, o usa el modo local.",
        "error": "Ocurrió un error al contactar al asistente inteligente. Verifica tu conexión o intenta más tarde.",
    },
}


def fallback_message(key: str, language: str = "en") -> str:
    messages = FALLBACK_MESSAGES.get(language, FALLBACK_MESSAGES["en"])
    return messages[key]


def build_history_rows(transactions: Sequence[Transaction], fiat_currency: str = "COP") -> List[dict]:
    """Rows sent to the model: date, type, fiat, price, units and realized PnL."""
    rows = []
    for tx in transactions:
        rows.append({
            "date": tx.date.isoformat(),
            "type": tx.type.value,
            "fiat": tx.amount_fiat,
            "price": tx.price_per_unit,
            "asset": tx.amount_asset,
            "realized_pnl": f"{tx.realized_pnl} {fiat_currency}" if tx.realized_pnl is not None else "N/A",
        })
    return rows


class AdvisorService:
    """
    Generates the AI insight for a portfolio.
    The LLM client is created lazily so the app works without one configured.
    """

    def __init__(
        self,
        client: Optional[LLMClient] = None,
        language: str = "en",
        client_factory: Callable[..., LLMClient] = create_llm_from_settings,
    ):
        self.client = client
        self.language = language
        self.client_factory = client_factory

    def build_prompt(self, transactions: Sequence[Transaction], portfolio_label: str) -> str:
        settings = get_settings()
        history = json.dumps(build_history_rows(transactions, settings.fiat_currency), ensure_ascii=False)
        return get_analysis_template(self.language).format(
            portfolio_label=portfolio_label,
            fiat_currency=settings.fiat_currency,
            history=history,
        )

    def _get_client(self) -> Optional[LLMClient]:
        if self.client is None:
            if not get_settings().is_llm_configured:
                return None
            self.client = self.client_factory(language=self.language)
        return self.client

    def analyze_portfolio(self, transactions: Sequence[Transaction], portfolio_label: str) -> str:
        """
        Ask the model for a short performance review.

        Args:
            transactions: Snapshot of the portfolio's transactions
            portfolio_label: Display name of the portfolio

        Returns:
            Markdown text, or a fallback message
        """
        if not transactions:
            return fallback_message("insufficient_data", self.language)

        snapshot = tuple(transactions)
        try:
            client = self._get_client()
            if client is None:
                logger.warning("Advisory requested but no LLM is configured")
                return fallback_message("not_configured", self.language)

            logger.info(f"Requesting analysis of {len(snapshot)} transactions for '{portfolio_label}'")
            response = client.invoke(self.build_prompt(snapshot, portfolio_label))
        except Exception as e:
            logger.error(f"Error calling the advisory LLM: {e}")
            return fallback_message("error", self.language)

        if not response or not str(response).strip():
            return fallback_message("no_analysis", self.language)
        return str(response)
