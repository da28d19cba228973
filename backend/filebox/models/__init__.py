"""SQLAlchemy ORM models for FileBox."""

from filebox.models.base import Base
from filebox.models.stored_session import StoredSession

__all__ = [
    "Base",
    "StoredSession",
]
