"""Schemas for reports."""

from datetime import date

from pydantic import BaseModel


class MonthlyCollectionPoint(BaseModel):
    year: int
    month: int
    name: str  # short month label, e.g. "Jan"
    total: int


class DefaulterRow(BaseModel):
    student_id: int
    student_name: str
    student_mobile: str
    parent_mobile: str
    course_name: str
    batch: str
    total_fee_committed: int
    total_paid: int
    pending_amount: int
    status: str


class DefaultersResponse(BaseModel):
    rows: list[DefaulterRow]
    total_pending: int
    count: int


class DailyCollectionRow(BaseModel):
    date: date
    total: int
    count: int


class ModeCollectionRow(BaseModel):
    mode: str
    total: int
    count: int


class CollectionReportResponse(BaseModel):
    date_from: date
    date_to: date
    by_day: list[DailyCollectionRow]
    by_mode: list[ModeCollectionRow]
    grand_total: int
    transactions_count: int


class ExpenseCategoryRow(BaseModel):
    category: str
    total: int
    count: int


class ExpenseReportResponse(BaseModel):
    date_from: date
    date_to: date
    rows: list[ExpenseCategoryRow]
    grand_total: int


class NetBalanceResponse(BaseModel):
    total_collected: int
    total_expenses: int
    net_balance: int
