"""
Database package for Citizenly.

Provides ORM models, session management, and repository pattern
for data persistence.
"""

from .models import Base, BillModel, FeedItemModel, UserModel
from .session import Database, db, get_db

__all__ = [
    "Base",
    "BillModel",
    "FeedItemModel",
    "UserModel",
    "Database",
    "db",
    "get_db",
]
