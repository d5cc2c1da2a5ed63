"""Service for dashboard summary (main page)."""

from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.modules.reports.service import ReportsService


class DashboardService:
    """Aggregates data for main page: cards and the monthly collection chart."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.reports = ReportsService(db)

    async def get_summary(self) -> dict:
        """
        Build dashboard summary.

        Queries run one after another on the request's session; an
        AsyncSession cannot serve concurrent statements.
        """
        balance = await self.reports.net_balance()
        return {
            "total_students": await self.reports.total_students(),
            "todays_collection": await self.reports.daily_collection(),
            "total_pending": await self.reports.total_pending(),
            "monthly_stats": await self.reports.monthly_collection(),
            **balance,
        }
