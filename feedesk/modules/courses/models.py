"""Course model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from feedesk.core.database.base import BaseModel, SoftDeleteMixin


class Course(SoftDeleteMixin, BaseModel):
    """A course offered by the institute, e.g. "Tally Prime", 2 months, 3500."""

    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)  # free text: "3 Months"
    standard_fee: Mapped[int] = mapped_column(Integer, nullable=False)
