"""Service for reports: collections, pending fees, defaulters, expenses."""

from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feedesk.core.exceptions import ValidationError
from feedesk.modules.expenses.models import Expense
from feedesk.modules.students.models import Student
from feedesk.modules.transactions.models import Transaction
from feedesk.modules.reports.schemas import (
    DailyCollectionRow,
    DefaulterRow,
    ExpenseCategoryRow,
    ModeCollectionRow,
    MonthlyCollectionPoint,
)
from feedesk.shared.utils.dates import day_bounds, local_now, months_ago

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _local(moment: datetime) -> datetime:
    """Stored timestamps in server-local time (PostgreSQL hands back aware UTC)."""
    return moment.astimezone() if moment.tzinfo is not None else moment


def _resolve_range(date_from: date | None, date_to: date | None) -> tuple[date, date]:
    """Default to the current month up to today."""
    today = local_now().date()
    date_to = date_to or today
    date_from = date_from or date_to.replace(day=1)
    if date_from > date_to:
        raise ValidationError("date_from must not be after date_to", field="date_from")
    return date_from, date_to


class ReportsService:
    """Read-only aggregations over students, transactions and expenses."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def daily_collection(self, day: date | None = None) -> int:
        """Sum of payments received on a local calendar day (default today)."""
        start, end = day_bounds(day or local_now().date())
        result = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.date >= start, Transaction.date <= end
            )
        )
        return int(result.scalar() or 0)

    async def total_pending(self) -> int:
        """Sum of pending amounts over students that are not deleted."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Student.pending_amount), 0)).where(
                Student.is_deleted.is_(False)
            )
        )
        return int(result.scalar() or 0)

    async def total_students(self) -> int:
        result = await self.db.execute(
            select(func.count(Student.id)).where(Student.is_deleted.is_(False))
        )
        return result.scalar() or 0

    async def monthly_collection(
        self, now: datetime | None = None, months: int = 6
    ) -> list[MonthlyCollectionPoint]:
        """
        Collection per calendar month for the last `months` months.

        Chronological; months without any payment are left out rather than
        reported as zero.
        """
        since = months_ago(now or local_now(), months)
        result = await self.db.execute(
            select(Transaction.date, Transaction.amount).where(Transaction.date >= since)
        )
        totals: dict[tuple[int, int], int] = defaultdict(int)
        for paid_at, amount in result.all():
            paid_at = _local(paid_at)
            totals[(paid_at.year, paid_at.month)] += amount

        return [
            MonthlyCollectionPoint(
                year=year, month=month, name=MONTH_LABELS[month - 1], total=total
            )
            for (year, month), total in sorted(totals.items())
        ]

    async def defaulters(self) -> list[DefaulterRow]:
        """Students with fees pending, largest balance first, then newest admission."""
        result = await self.db.execute(
            select(Student)
            .options(selectinload(Student.course))
            .where(Student.is_deleted.is_(False), Student.pending_amount > 0)
            .order_by(Student.pending_amount.desc(), Student.created_at.desc(), Student.id.desc())
        )
        return [
            DefaulterRow(
                student_id=s.id,
                student_name=s.full_name,
                student_mobile=s.student_mobile,
                parent_mobile=s.parent_mobile,
                course_name=s.course.name if s.course else "",
                batch=s.batch,
                total_fee_committed=s.total_fee_committed,
                total_paid=s.total_paid,
                pending_amount=s.pending_amount,
                status=s.status,
            )
            for s in result.scalars().all()
        ]

    async def collection_report(
        self, date_from: date | None = None, date_to: date | None = None
    ) -> dict:
        """Collections over a date range: per day, per payment mode, grand total."""
        date_from, date_to = _resolve_range(date_from, date_to)
        start, _ = day_bounds(date_from)
        _, end = day_bounds(date_to)

        result = await self.db.execute(
            select(Transaction.date, Transaction.amount, Transaction.mode)
            .where(Transaction.date >= start, Transaction.date <= end)
            .order_by(Transaction.date)
        )

        by_day: dict[date, list[int]] = defaultdict(lambda: [0, 0])
        by_mode: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        grand_total = 0
        count = 0
        for paid_at, amount, mode in result.all():
            day = _local(paid_at).date()
            by_day[day][0] += amount
            by_day[day][1] += 1
            by_mode[mode][0] += amount
            by_mode[mode][1] += 1
            grand_total += amount
            count += 1

        return {
            "date_from": date_from,
            "date_to": date_to,
            "by_day": [
                DailyCollectionRow(date=d, total=t, count=c)
                for d, (t, c) in sorted(by_day.items())
            ],
            "by_mode": [
                ModeCollectionRow(mode=m, total=t, count=c)
                for m, (t, c) in sorted(by_mode.items())
            ],
            "grand_total": grand_total,
            "transactions_count": count,
        }

    async def expense_report(
        self, date_from: date | None = None, date_to: date | None = None
    ) -> dict:
        """Expenses over a date range grouped by category, largest first."""
        date_from, date_to = _resolve_range(date_from, date_to)
        total_col = func.sum(Expense.amount)
        result = await self.db.execute(
            select(Expense.category, total_col, func.count(Expense.id))
            .where(Expense.date >= date_from, Expense.date <= date_to)
            .group_by(Expense.category)
            .order_by(total_col.desc(), Expense.category)
        )
        rows = [
            ExpenseCategoryRow(category=category, total=int(total or 0), count=count)
            for category, total, count in result.all()
        ]
        return {
            "date_from": date_from,
            "date_to": date_to,
            "rows": rows,
            "grand_total": sum(r.total for r in rows),
        }

    async def net_balance(self) -> dict:
        """All-time collections minus all-time expenses."""
        collected = await self.db.execute(select(func.coalesce(func.sum(Transaction.amount), 0)))
        spent = await self.db.execute(select(func.coalesce(func.sum(Expense.amount), 0)))
        total_collected = int(collected.scalar() or 0)
        total_expenses = int(spent.scalar() or 0)
        return {
            "total_collected": total_collected,
            "total_expenses": total_expenses,
            "net_balance": total_collected - total_expenses,
        }
