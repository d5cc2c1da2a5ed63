"""Student model."""

from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Date, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feedesk.core.database.base import BaseModel, SoftDeleteMixin

if TYPE_CHECKING:
    from feedesk.modules.courses.models import Course


class Gender(StrEnum):
    """Gender enumeration."""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class FeeStatus(StrEnum):
    """Fee status, always derived from the balance fields."""

    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


def derive_fee_status(total_paid: int, pending_amount: int) -> FeeStatus:
    """
    Status for a balance.

    Paid wins whenever nothing is pending, including a zero fee with nothing
    paid and an overpaid balance after a downward fee revision.
    """
    if pending_amount <= 0:
        return FeeStatus.PAID
    if total_paid == 0:
        return FeeStatus.UNPAID
    return FeeStatus.PARTIAL


class Student(SoftDeleteMixin, BaseModel):
    """
    One enrollment of a person in a course.

    A person taking two courses has two rows sharing a mobile number; the
    pair (student_mobile, course_id) is unique among rows that are not
    deleted.
    """

    __tablename__ = "students"
    __table_args__ = (
        Index(
            "uq_students_mobile_course_active",
            "student_mobile",
            "course_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    # Personal info
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    dob: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    student_mobile: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    parent_mobile: Mapped[str] = mapped_column(String(10), nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Enrollment
    course_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("courses.id"), nullable=False, index=True
    )
    batch: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. "Morning 8-10"
    admission_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Ledger balance, only ever changed by payments and fee revisions
    total_fee_committed: Mapped[int] = mapped_column(Integer, nullable=False)
    total_paid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_amount: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=FeeStatus.UNPAID.value, index=True
    )

    # Relationships
    course: Mapped["Course"] = relationship("Course")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_overpaid(self) -> bool:
        return self.pending_amount < 0

    @property
    def refund_due(self) -> int:
        """Amount owed back to the student after a downward fee revision."""
        return max(0, -self.pending_amount)
