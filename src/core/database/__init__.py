from src.core.database.session import async_session, create_schema, engine
from src.core.database.base import Base, BigIntPK

__all__ = ["async_session", "create_schema", "engine", "Base", "BigIntPK"]
