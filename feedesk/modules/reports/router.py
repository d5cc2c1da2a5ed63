"""API for reports."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import StaffUser
from feedesk.core.database.session import get_db
from feedesk.modules.reports.excel_export import export_defaulters
from feedesk.modules.reports.schemas import (
    CollectionReportResponse,
    DefaultersResponse,
    ExpenseReportResponse,
    NetBalanceResponse,
)
from feedesk.modules.reports.service import ReportsService
from feedesk.shared.schemas.base import ApiResponse
from feedesk.shared.utils.dates import local_now

router = APIRouter(prefix="/reports", tags=["Reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/defaulters", response_model=ApiResponse[DefaultersResponse])
async def get_defaulters(
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Students with fees pending, largest balance first."""
    rows = await ReportsService(db).defaulters()
    return ApiResponse(
        data=DefaultersResponse(
            rows=rows,
            total_pending=sum(r.pending_amount for r in rows),
            count=len(rows),
        )
    )


@router.get("/defaulters/export")
async def export_defaulters_xlsx(
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Download the defaulters list as an Excel workbook."""
    rows = await ReportsService(db).defaulters()
    today = local_now().date().isoformat()
    content = export_defaulters(rows, generated_on=today)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="defaulters_{today}.xlsx"'},
    )


@router.get("/collections", response_model=ApiResponse[CollectionReportResponse])
async def get_collections(
    current_user: StaffUser,
    date_from: date | None = Query(None, description="Default: first day of this month"),
    date_to: date | None = Query(None, description="Default: today"),
    db: AsyncSession = Depends(get_db),
):
    """Collections over a date range by day and by payment mode."""
    data = await ReportsService(db).collection_report(date_from=date_from, date_to=date_to)
    return ApiResponse(data=CollectionReportResponse(**data))


@router.get("/expenses", response_model=ApiResponse[ExpenseReportResponse])
async def get_expense_summary(
    current_user: StaffUser,
    date_from: date | None = Query(None, description="Default: first day of this month"),
    date_to: date | None = Query(None, description="Default: today"),
    db: AsyncSession = Depends(get_db),
):
    """Expenses over a date range by category."""
    data = await ReportsService(db).expense_report(date_from=date_from, date_to=date_to)
    return ApiResponse(data=ExpenseReportResponse(**data))


@router.get("/net-balance", response_model=ApiResponse[NetBalanceResponse])
async def get_net_balance(
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """All-time collections minus all-time expenses."""
    data = await ReportsService(db).net_balance()
    return ApiResponse(data=NetBalanceResponse(**data))
