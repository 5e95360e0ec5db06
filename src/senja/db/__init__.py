"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization for the key/value store
"""

from senja.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
