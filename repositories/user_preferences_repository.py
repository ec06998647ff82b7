"""
UserPreferences Repository - data access layer for UserPreferences model.
Holds the last selected portfolio tab and the advisory language.
"""

from typing import Optional
from sqlmodel import Session, select

from db_engine import get_engine
from models import UserPreferences


class UserPreferencesRepository:
    """Repository for UserPreferences CRUD operations."""

    @staticmethod
    def get() -> Optional[UserPreferences]:
        """Retrieve user preferences (singleton - only one record expected)."""
        with Session(get_engine()) as session:
            statement = select(UserPreferences)
            results = session.exec(statement)
            return results.first()

    @staticmethod
    def _save(**fields) -> UserPreferences:
        """Update the singleton row, creating it on first use."""
        with Session(get_engine()) as session:
            prefs = session.exec(select(UserPreferences)).first()
            if prefs is None:
                prefs = UserPreferences(**fields)
            else:
                for name, value in fields.items():
                    setattr(prefs, name, value)
            session.add(prefs)
            session.commit()
            session.refresh(prefs)
            return prefs

    @staticmethod
    def get_active_portfolio(default: str = "main") -> str:
        prefs = UserPreferencesRepository.get()
        if prefs and prefs.active_portfolio:
            return prefs.active_portfolio
        return default

    @staticmethod
    def save_active_portfolio(portfolio_id: str) -> UserPreferences:
        """Remember the selected portfolio tab across sessions."""
        return UserPreferencesRepository._save(active_portfolio=portfolio_id)

    @staticmethod
    def get_language(default: str = "en") -> str:
        prefs = UserPreferencesRepository.get()
        if prefs and prefs.language:
            return prefs.language
        return default

    @staticmethod
    def save_language(language: str) -> UserPreferences:
        """Save or update the advisory language ("en" or "es")."""
        return UserPreferencesRepository._save(language=language)
