"""
UserPreferences model - stores user preferences and settings.
"""

from typing import Optional
from sqlmodel import SQLModel, Field


class UserPreferences(SQLModel, table=True):
    """Stores user preferences and settings."""
    id: Optional[int] = Field(default=None, primary_key=True)
    active_portfolio: Optional[str] = Field(default="main")  # last selected tab
    language: Optional[str] = Field(default="en")  # "en" or "es"
