"""Service for Expenses module."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.audit.service import AuditAction, AuditService
from feedesk.core.exceptions import NotFoundError
from feedesk.modules.expenses.models import Expense
from feedesk.modules.expenses.schemas import ExpenseCreate, ExpenseFilters
from feedesk.shared.utils.dates import local_now


class ExpenseService:
    """Service for the expense log."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_expense(self, data: ExpenseCreate, created_by_id: int) -> Expense:
        """Log an expense; the date defaults to today."""
        expense = Expense(
            title=data.title,
            amount=data.amount,
            category=data.category,
            date=data.date or local_now().date(),
            description=data.description,
            created_by_id=created_by_id,
        )
        self.db.add(expense)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Expense",
            entity_id=expense.id,
            entity_identifier=expense.title,
            user_id=created_by_id,
            new_values={"amount": expense.amount, "category": expense.category},
        )

        await self.db.commit()
        await self.db.refresh(expense)
        return expense

    async def get_expense_by_id(self, expense_id: int) -> Expense:
        """Get expense by ID."""
        result = await self.db.execute(select(Expense).where(Expense.id == expense_id))
        expense = result.scalar_one_or_none()
        if not expense:
            raise NotFoundError("Expense", expense_id)
        return expense

    async def list_expenses(self, filters: ExpenseFilters) -> tuple[list[Expense], int]:
        """List expenses, most recent first."""
        query = select(Expense).order_by(Expense.date.desc(), Expense.id.desc())

        if filters.category:
            query = query.where(Expense.category == filters.category)
        if filters.start_date is not None:
            query = query.where(Expense.date >= filters.start_date)
        if filters.end_date is not None:
            query = query.where(Expense.date <= filters.end_date)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        offset = (filters.page - 1) * filters.limit
        result = await self.db.execute(query.offset(offset).limit(filters.limit))
        return list(result.scalars().all()), total

    async def delete_expense(self, expense_id: int, deleted_by_id: int) -> None:
        """Delete an expense entry."""
        expense = await self.get_expense_by_id(expense_id)

        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Expense",
            entity_id=expense_id,
            entity_identifier=expense.title,
            user_id=deleted_by_id,
            old_values={
                "title": expense.title,
                "amount": expense.amount,
                "category": expense.category,
                "date": expense.date.isoformat(),
            },
        )

        await self.db.delete(expense)
        await self.db.commit()
