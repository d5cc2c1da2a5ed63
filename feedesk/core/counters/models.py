from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from feedesk.core.database.base import Base, BigIntPK


class Counter(Base):
    """Named monotonic sequence; one row per counter (e.g. receiptNo)."""

    __tablename__ = "counters"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
