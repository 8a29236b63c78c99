from .base import Base
from .session import DATABASE_URL, SessionLocal, get_sessionmaker
from .types import JSON_PAYLOAD

__all__ = [
    "Base",
    "DATABASE_URL",
    "JSON_PAYLOAD",
    "SessionLocal",
    "get_sessionmaker",
]
