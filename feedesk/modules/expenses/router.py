"""API endpoints for Expenses module."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import AdminUser, StaffUser
from feedesk.core.database.session import get_db
from feedesk.modules.expenses.schemas import ExpenseCreate, ExpenseFilters, ExpenseResponse
from feedesk.modules.expenses.service import ExpenseService
from feedesk.shared.schemas.base import ApiResponse, MessageResponse, PaginatedResponse

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post(
    "",
    response_model=ApiResponse[ExpenseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_expense(
    data: ExpenseCreate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Log an expense."""
    expense = await ExpenseService(db).create_expense(data, current_user.id)
    return ApiResponse(
        message="Expense added",
        data=ExpenseResponse.model_validate(expense),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[ExpenseResponse]])
async def list_expenses(
    current_user: StaffUser,
    category: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List expenses with filters and pagination."""
    filters = ExpenseFilters(
        category=category,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    expenses, total = await ExpenseService(db).list_expenses(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[ExpenseResponse.model_validate(e) for e in expenses],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.delete("/{expense_id}", response_model=ApiResponse[MessageResponse])
async def delete_expense(
    expense_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete an expense. Requires ADMIN role."""
    await ExpenseService(db).delete_expense(expense_id, current_user.id)
    return ApiResponse(data=MessageResponse(detail="Expense removed"))
