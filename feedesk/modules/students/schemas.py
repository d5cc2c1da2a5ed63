"""Schemas for Students module."""

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from feedesk.modules.students.models import FeeStatus, Gender

# Indian mobile number: exactly 10 digits
MOBILE_REGEX = re.compile(r"^[0-9]{10}$")


def normalize_mobile(v: str) -> str:
    """Strip spaces and dashes, then require exactly 10 digits."""
    normalized = v.replace(" ", "").replace("-", "")
    if not MOBILE_REGEX.match(normalized):
        raise ValueError("Mobile number must be exactly 10 digits")
    return normalized


class StudentCreate(BaseModel):
    """Schema for admitting a student into a course."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    dob: date
    gender: Gender
    address: str = Field(..., min_length=1)
    student_mobile: str
    parent_mobile: str
    course_id: int
    batch: str = Field(..., min_length=1, max_length=50)
    admission_date: date | None = None
    # Defaults to the course's standard fee (discounts are entered here)
    total_fee_committed: int | None = Field(None, ge=0)

    @field_validator("first_name", "last_name", "batch")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("student_mobile", "parent_mobile")
    @classmethod
    def validate_mobile(cls, v: str) -> str:
        return normalize_mobile(v)


class StudentUpdate(BaseModel):
    """Schema for updating a student. The course cannot be changed."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    dob: date | None = None
    gender: Gender | None = None
    address: str | None = Field(None, min_length=1)
    student_mobile: str | None = None
    parent_mobile: str | None = None
    batch: str | None = Field(None, min_length=1, max_length=50)
    admission_date: date | None = None
    total_fee_committed: int | None = Field(None, ge=0)

    @field_validator("student_mobile", "parent_mobile")
    @classmethod
    def validate_mobile(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return normalize_mobile(v)


class FeeRevisionRequest(BaseModel):
    """Change a student's committed fee."""

    total_fee_committed: int = Field(..., ge=0)


class StudentFilters(BaseModel):
    """Filters for listing students."""

    search: str | None = None
    course_id: int | None = None
    status: FeeStatus | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)


class CourseBrief(BaseModel):
    """Minimal course info for nested responses."""

    id: int
    name: str
    duration: str

    model_config = {"from_attributes": True}


class StudentResponse(BaseModel):
    """Schema for student response."""

    id: int
    first_name: str
    last_name: str
    full_name: str
    dob: date
    gender: str
    address: str
    student_mobile: str
    parent_mobile: str
    photo_url: str | None
    course_id: int
    course: CourseBrief | None = None
    batch: str
    admission_date: date
    total_fee_committed: int
    total_paid: int
    pending_amount: int
    status: FeeStatus
    is_overpaid: bool
    refund_due: int
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
