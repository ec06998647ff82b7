"""
LLM Engine - Model Factory for the portfolio advisor.
Supports OpenAI-compatible APIs (cloud or local Ollama) with English/Spanish output.
Uses centralized configuration.
"""

from typing import Literal, Optional
from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage
import logging

from config import Settings, get_settings
from prompts import get_system_prompt

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Factory class for creating LLM clients with different backends.
    Supports bilingual output (English/Spanish).
    Uses centralized configuration from config.py.
    """

    def __init__(
        self,
        mode: Literal["cloud", "local"] = "cloud",
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        language: str = "en"
    ):
        """
        Initialize the LLM client.

        Args:
            mode: "cloud" for OpenAI-compatible APIs, "local" for Ollama/local server
            model_name: Model name (e.g., "gpt-4o-mini", "deepseek-chat")
            base_url: Base URL for API
            api_key: API key
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            language: Output language ("en" or "es")
        """
        self.mode = mode
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.language = language

        self.llm = self._create_llm(base_url, api_key)

    def _create_llm(self, base_url: Optional[str], api_key: Optional[str]) -> ChatOpenAI:
        """Create a ChatOpenAI instance based on the mode."""
        settings = get_settings()

        if self.mode == "cloud":
            url = base_url or settings.openai_base_url
            model = self.model_name or settings.openai_model
            key = api_key or settings.openai_api_key

            if not key:
                raise ValueError("API key not found. Set OPENAI_API_KEY environment variable.")
            if not model:
                raise ValueError("Model name not found. Set OPENAI_MODEL environment variable.")

            logger.info(f"Initializing Cloud LLM: {model} at {url or 'OpenAI official'}")
            return ChatOpenAI(
                model=model,
                api_key=key,
                base_url=url,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )

        elif self.mode == "local":
            model = self.model_name or settings.local_model
            url = base_url or settings.local_llm_url
            key = api_key or "ollama"

            logger.info(f"Initializing Local LLM: {model} at {url}")
            return ChatOpenAI(
                model=model,
                base_url=url,
                api_key=key,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        else:
            raise ValueError(f"Invalid mode: {self.mode}. Must be 'cloud' or 'local'.")

    def invoke(self, message: str, system_message: Optional[str] = None) -> str:
        """
        Invoke the LLM with a message.

        Args:
            message: User message
            system_message: Optional custom system message (overrides default)

        Returns:
            LLM response as string
        """
        system = system_message or get_system_prompt(self.language)
        messages = [SystemMessage(content=system), HumanMessage(content=message)]

        response = self.llm.invoke(messages)
        return response.content

    def get_mode(self) -> str:
        """Get the current mode ('cloud' or 'local')."""
        return self.mode

    def get_model_name(self) -> str:
        """Get the current model name."""
        return self.llm.model_name

    def set_language(self, language: str):
        """Set the output language ('en' or 'es')."""
        self.language = language


def create_llm_from_settings(settings: Optional[Settings] = None, language: str = "en") -> LLMClient:
    """Create an LLMClient from the application settings."""
    settings = settings or get_settings()
    return LLMClient(
        mode=settings.llm_mode,
        temperature=settings.llm_temperature,
        language=language
    )
