"""API for dashboard summary (main page)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import StaffUser
from feedesk.core.database.session import get_db
from feedesk.modules.dashboard.schemas import DashboardResponse
from feedesk.modules.dashboard.service import DashboardService
from feedesk.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "",
    response_model=ApiResponse[DashboardResponse],
)
async def get_dashboard(
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """
    Get dashboard summary: student count, today's collection, total
    pending, last six months of collections and net balance.
    """
    data = await DashboardService(db).get_summary()
    return ApiResponse(data=DashboardResponse(**data))
