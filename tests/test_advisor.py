"""
Tests for the advisory service. The LLM is always faked.
"""

import json
from datetime import date

from services.advisor import AdvisorService, build_history_rows, fallback_message
from tests.conftest import FakeLLMClient, make_tx


def sample_transactions():
    return [
        make_tx("SELL", 450_000, 4_500, date(2024, 2, 1), realized_pnl=50_000, pnl_percentage=12.5),
        make_tx("BUY", 1_000_000, 4_000, date(2024, 1, 1)),
    ]


def factory_that_fails(**kwargs):
    raise AssertionError("LLM client must not be created")


class TestAdvisorService:
    def test_empty_input_skips_llm(self, fake_llm):
        advisor = AdvisorService(client=fake_llm)

        result = advisor.analyze_portfolio([], "Main Investment")

        assert result == fallback_message("insufficient_data")
        assert fake_llm.prompts == []

    def test_empty_input_does_not_build_client(self):
        advisor = AdvisorService(client_factory=factory_that_fails)
        assert advisor.analyze_portfolio((), "Main") == fallback_message("insufficient_data")

    def test_returns_model_text(self, fake_llm):
        advisor = AdvisorService(client=fake_llm)

        result = advisor.analyze_portfolio(sample_transactions(), "Main Investment")

        assert result == fake_llm.response
        assert len(fake_llm.prompts) == 1
        assert "Main Investment" in fake_llm.prompts[0]
        assert "COP" in fake_llm.prompts[0]

    def test_call_failure_returns_fallback(self):
        client = FakeLLMClient(error=ConnectionError("timeout"))
        advisor = AdvisorService(client=client)

        assert advisor.analyze_portfolio(sample_transactions(), "Main") == fallback_message("error")

    def test_empty_answer_returns_fallback(self):
        advisor = AdvisorService(client=FakeLLMClient(response="   "))
        assert advisor.analyze_portfolio(sample_transactions(), "Main") == fallback_message("no_analysis")

    def test_unconfigured_llm_returns_fallback(self):
        advisor = AdvisorService(client_factory=factory_that_fails)
        assert advisor.analyze_portfolio(sample_transactions(), "Main") == fallback_message("not_configured")

    def test_factory_error_returns_fallback(self, monkeypatch):
        import config

        monkeypatch.setenv("LLM_MODE", "local")
        config.reload_settings()

        def broken_factory(**kwargs):
            raise ValueError("bad endpoint")

        advisor = AdvisorService(client_factory=broken_factory)
        assert advisor.analyze_portfolio(sample_transactions(), "Main") == fallback_message("error")

    def test_spanish_messages_and_prompt(self):
        client = FakeLLMClient()
        advisor = AdvisorService(client=client, language="es")

        assert advisor.analyze_portfolio([], "Principal") == fallback_message("insufficient_data", "es")
        advisor.analyze_portfolio(sample_transactions(), "Principal")
        assert "Analiza el siguiente historial" in client.prompts[0]

    def test_unknown_language_falls_back_to_english(self):
        assert fallback_message("error", "fr") == fallback_message("error", "en")


class TestHistoryRows:
    def test_rows_carry_pnl_or_na(self):
        rows = build_history_rows(sample_transactions(), "COP")

        assert rows[0]["realized_pnl"] == "50000 COP"
        assert rows[1]["realized_pnl"] == "N/A"
        assert rows[1]["type"] == "BUY"
        assert rows[1]["asset"] == 250
        assert rows[1]["date"] == "2024-01-01"

    def test_prompt_embeds_json_history(self, fake_llm):
        advisor = AdvisorService(client=fake_llm)
        prompt = advisor.build_prompt(sample_transactions(), "Main")

        start = prompt.index("[")
        end = prompt.rindex("]") + 1
        assert len(json.loads(prompt[start:end])) == 2
