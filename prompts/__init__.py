"""
Prompts package for USDT Trader Pro.
Contains system prompts for the portfolio advisor persona.
"""

import os
from typing import Dict

SUPPORTED_LANGUAGES = ("en", "es")

# Cache for loaded prompts
_prompt_cache: Dict[str, str] = {}


def load_prompt(filename: str) -> str:
    """
    Load a prompt from a text file.

    Args:
        filename: Name of the prompt file (e.g., 'advisor_prompt_en.txt')

    Returns:
        Prompt content as string
    """
    if filename in _prompt_cache:
        return _prompt_cache[filename]

    prompt_dir = os.path.dirname(os.path.abspath(__file__))
    filepath = os.path.join(prompt_dir, filename)

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
            _prompt_cache[filename] = content
            return content
    except FileNotFoundError:
        raise FileNotFoundError(f"Prompt file not found: {filepath}")
    except Exception as e:
        raise RuntimeError(f"Error loading prompt file {filename}: {e}")


def get_system_prompt(language: str = "en") -> str:
    """
    Get the advisor system prompt for the specified language.
    Unsupported languages fall back to English.
    """
    if language not in SUPPORTED_LANGUAGES:
        language = "en"
    return load_prompt(f"advisor_prompt_{language}.txt")


def get_analysis_template(language: str = "en") -> str:
    """Get the user message template that wraps the transaction history."""
    if language not in SUPPORTED_LANGUAGES:
        language = "en"
    return load_prompt(f"analysis_request_{language}.txt")


def clear_prompt_cache():
    """Clear the prompt cache. Useful for reloading prompts during development."""
    _prompt_cache.clear()
