"""Transaction (fee payment) model."""

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feedesk.core.database.base import BaseModel
from feedesk.shared.utils.dates import local_now

if TYPE_CHECKING:
    from feedesk.modules.students.models import Student


class PaymentMode(StrEnum):
    """How the fee was paid."""

    CASH = "Cash"
    UPI = "UPI"
    CHEQUE = "Cheque"


class Transaction(BaseModel):
    """
    One fee payment by a student.

    Transactions are immutable once recorded: there is no update or delete
    path. The owning student's total_paid always equals the sum of its
    transactions.
    """

    __tablename__ = "transactions"

    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    mode: Mapped[str] = mapped_column(String(10), nullable=False)  # Cash | UPI | Cheque
    receipt_no: Mapped[str] = mapped_column(
        String(30), nullable=False, unique=True, index=True
    )  # REC-0001
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=local_now, index=True
    )
    reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )  # UPI transaction id / cheque number
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_by_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    student: Mapped["Student"] = relationship("Student")
