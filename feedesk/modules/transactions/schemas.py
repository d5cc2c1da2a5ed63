"""Schemas for Transactions module."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from feedesk.modules.transactions.models import PaymentMode


class TransactionCreate(BaseModel):
    """Schema for recording a payment. Amount limits are checked by the ledger."""

    student_id: int
    amount: int
    mode: PaymentMode
    reference: str | None = Field(None, max_length=100)
    remark: str | None = Field(None, max_length=500)

    @field_validator("reference", "remark")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class TransactionFilters(BaseModel):
    """Filters for listing transactions."""

    student_id: int | None = None
    mode: PaymentMode | None = None
    start_date: date | None = None
    end_date: date | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)


class StudentBrief(BaseModel):
    """Minimal student info for nested responses."""

    id: int
    full_name: str
    student_mobile: str

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: int
    student_id: int
    amount: int
    mode: PaymentMode
    receipt_no: str
    date: datetime
    reference: str | None
    remark: str | None
    received_by_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionWithStudentResponse(TransactionResponse):
    """Transaction with the paying student, for lists and receipt lookups."""

    student: StudentBrief


class PaymentRecordedResponse(BaseModel):
    """Result of recording a payment: the transaction and the new balance."""

    transaction: TransactionResponse
    total_paid: int
    pending_amount: int
    status: str
