"""Service for Transactions module: the fee ledger."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feedesk.core.audit.service import AuditAction, AuditService
from feedesk.core.config import settings
from feedesk.core.counters import CounterService
from feedesk.core.exceptions import ExceedsBalanceError, InvalidAmountError, NotFoundError
from feedesk.modules.students.models import FeeStatus, Student
from feedesk.modules.transactions.models import PaymentMode, Transaction
from feedesk.modules.transactions.schemas import TransactionFilters
from feedesk.shared.utils.dates import day_bounds, local_now

logger = logging.getLogger(__name__)


def validate_amount(amount: Any, minimum: int | None = None) -> int:
    """Amount must be an integer rupee value of at least the minimum payment."""
    minimum = settings.min_payment_amount if minimum is None else minimum
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < minimum:
        raise InvalidAmountError(amount, minimum)
    return amount


class TransactionService:
    """
    Records fee payments against a student's balance.

    A payment is one database transaction: the receipt number is allocated,
    the student's balance is decremented by a conditional UPDATE that only
    matches while enough is pending, and the transaction row plus its audit
    entry are inserted. Any failure rolls all of it back, the receipt
    counter included.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def _get_payable_student(self, student_id: int) -> Student:
        result = await self.db.execute(
            select(Student).where(Student.id == student_id, Student.is_deleted.is_(False))
        )
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def _count_for_student(self, student_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Transaction.id)).where(Transaction.student_id == student_id)
        )
        return result.scalar() or 0

    async def record_payment(
        self,
        student_id: int,
        amount: Any,
        mode: PaymentMode | str,
        received_by_id: int | None = None,
        remark: str | None = None,
        reference: str | None = None,
        paid_at: datetime | None = None,
    ) -> Transaction:
        """
        Record a payment and return the stored transaction.

        Raises, in this order: NotFoundError for a missing or deleted
        student, InvalidAmountError below the minimum payment,
        ExceedsBalanceError above the pending balance.
        """
        student = await self._get_payable_student(student_id)
        amount = validate_amount(amount)
        if amount > student.pending_amount:
            raise ExceedsBalanceError(amount, student.pending_amount)

        mode = PaymentMode(mode)
        receipt_no = await CounterService(self.db).next_receipt_number()

        if not remark:
            remark = f"Installment {await self._count_for_student(student_id) + 1}"

        result = await self.db.execute(
            update(Student)
            .where(
                Student.id == student_id,
                Student.is_deleted.is_(False),
                Student.pending_amount >= amount,
            )
            .values(
                total_paid=Student.total_paid + amount,
                pending_amount=Student.pending_amount - amount,
                status=case(
                    (Student.pending_amount - amount <= 0, FeeStatus.PAID.value),
                    else_=FeeStatus.PARTIAL.value,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Balance changed after we read it: a concurrent payment or deletion won
            await self.db.rollback()
            current = await self.db.execute(
                select(Student)
                .where(Student.id == student_id)
                .execution_options(populate_existing=True)
            )
            current_student = current.scalar_one_or_none()
            if current_student is None or current_student.is_deleted:
                raise NotFoundError("Student", student_id)
            raise ExceedsBalanceError(amount, current_student.pending_amount)

        transaction = Transaction(
            student_id=student_id,
            amount=amount,
            mode=mode.value,
            receipt_no=receipt_no,
            date=paid_at or local_now(),
            reference=reference,
            remark=remark,
            received_by_id=received_by_id,
        )
        self.db.add(transaction)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.RECORD_PAYMENT,
            entity_type="Transaction",
            entity_id=transaction.id,
            entity_identifier=receipt_no,
            user_id=received_by_id,
            new_values={
                "student_id": student_id,
                "amount": amount,
                "mode": mode.value,
                "receipt_no": receipt_no,
            },
        )

        await self.db.commit()

        # Pull the new balance into the identity map
        await self.db.execute(
            select(Student)
            .where(Student.id == student_id)
            .execution_options(populate_existing=True)
        )
        await self.db.refresh(transaction)

        logger.info(
            "Payment recorded: %s student=%s amount=%s mode=%s",
            receipt_no,
            student_id,
            amount,
            mode.value,
        )
        return transaction

    async def get_transaction_by_id(self, transaction_id: int) -> Transaction:
        """Get transaction by ID with the student loaded."""
        result = await self.db.execute(
            select(Transaction)
            .options(selectinload(Transaction.student).selectinload(Student.course))
            .where(Transaction.id == transaction_id)
        )
        transaction = result.scalar_one_or_none()
        if not transaction:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    async def get_by_receipt_no(self, receipt_no: str) -> Transaction:
        """Look a transaction up by its receipt number."""
        result = await self.db.execute(
            select(Transaction)
            .options(selectinload(Transaction.student).selectinload(Student.course))
            .where(Transaction.receipt_no == receipt_no.strip().upper())
        )
        transaction = result.scalar_one_or_none()
        if not transaction:
            raise NotFoundError(f"Receipt {receipt_no}")
        return transaction

    async def list_for_student(self, student_id: int) -> list[Transaction]:
        """Payment history of one student, oldest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.student_id == student_id)
            .order_by(Transaction.date, Transaction.id)
        )
        return list(result.scalars().all())

    async def list_transactions(
        self, filters: TransactionFilters
    ) -> tuple[list[Transaction], int]:
        """List transactions, newest first."""
        query = (
            select(Transaction)
            .options(selectinload(Transaction.student))
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )

        if filters.student_id is not None:
            query = query.where(Transaction.student_id == filters.student_id)
        if filters.mode is not None:
            query = query.where(Transaction.mode == filters.mode.value)
        if filters.start_date is not None:
            query = query.where(Transaction.date >= day_bounds(filters.start_date)[0])
        if filters.end_date is not None:
            query = query.where(Transaction.date <= day_bounds(filters.end_date)[1])

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        offset = (filters.page - 1) * filters.limit
        result = await self.db.execute(query.offset(offset).limit(filters.limit))
        return list(result.scalars().all()), total
