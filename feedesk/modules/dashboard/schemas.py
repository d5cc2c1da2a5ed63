"""Schemas for dashboard summary."""

from pydantic import BaseModel

from feedesk.modules.reports.schemas import MonthlyCollectionPoint


class DashboardResponse(BaseModel):
    """Cards and chart data for the main page."""

    total_students: int
    todays_collection: int
    total_pending: int
    monthly_stats: list[MonthlyCollectionPoint]
    total_collected: int
    total_expenses: int
    net_balance: int
