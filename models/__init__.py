"""
Database models for USDT Trader Pro.
All SQLModel table definitions are centralized here.
"""

from models.transaction_record import TransactionRecord
from models.user_preferences import UserPreferences

__all__ = [
    'TransactionRecord',
    'UserPreferences',
]
