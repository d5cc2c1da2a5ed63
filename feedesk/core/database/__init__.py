from feedesk.core.database.session import async_session, engine, get_db
from feedesk.core.database.base import Base, BaseModel, BigIntPK, SoftDeleteMixin

__all__ = ["async_session", "engine", "get_db", "Base", "BaseModel", "BigIntPK", "SoftDeleteMixin"]
