"""Schemas for Expenses module."""

import datetime as dt

from pydantic import BaseModel, Field, field_validator


class ExpenseCreate(BaseModel):
    """Schema for logging an expense."""

    title: str = Field(..., min_length=1, max_length=200)
    amount: int = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=50)
    date: dt.date | None = None
    description: str | None = None

    @field_validator("title", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class ExpenseFilters(BaseModel):
    """Filters for listing expenses."""

    category: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)


class ExpenseResponse(BaseModel):
    """Schema for expense response."""

    id: int
    title: str
    amount: int
    category: str
    date: dt.date
    description: str | None
    created_by_id: int | None
    created_at: dt.datetime

    model_config = {"from_attributes": True}
