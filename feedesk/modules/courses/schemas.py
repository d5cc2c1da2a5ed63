"""Schemas for Courses module."""

from datetime import datetime

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    """Schema for creating a course."""

    name: str = Field(..., min_length=1, max_length=200)
    duration: str = Field(..., min_length=1, max_length=50)
    standard_fee: int = Field(..., ge=0)


class CourseUpdate(BaseModel):
    """Schema for updating a course."""

    name: str | None = Field(None, min_length=1, max_length=200)
    duration: str | None = Field(None, min_length=1, max_length=50)
    standard_fee: int | None = Field(None, ge=0)


class CourseResponse(BaseModel):
    """Schema for course response."""

    id: int
    name: str
    duration: str
    standard_fee: int
    is_deleted: bool
    created_at: datetime

    model_config = {"from_attributes": True}
