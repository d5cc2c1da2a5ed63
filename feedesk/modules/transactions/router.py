"""API endpoints for Transactions module."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import StaffUser
from feedesk.core.database.session import get_db
from feedesk.core.pdf import build_receipt_context, pdf_service
from feedesk.modules.students.service import StudentService
from feedesk.modules.transactions.models import PaymentMode
from feedesk.modules.transactions.schemas import (
    PaymentRecordedResponse,
    TransactionCreate,
    TransactionFilters,
    TransactionResponse,
    TransactionWithStudentResponse,
)
from feedesk.modules.transactions.service import TransactionService
from feedesk.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post(
    "",
    response_model=ApiResponse[PaymentRecordedResponse],
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    data: TransactionCreate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Record a fee payment and issue the next receipt number."""
    service = TransactionService(db)
    transaction = await service.record_payment(
        student_id=data.student_id,
        amount=data.amount,
        mode=data.mode,
        received_by_id=current_user.id,
        remark=data.remark,
        reference=data.reference,
    )
    student = await StudentService(db).get_student_by_id(transaction.student_id)
    return ApiResponse(
        message=f"Payment recorded. Receipt {transaction.receipt_no}",
        data=PaymentRecordedResponse(
            transaction=TransactionResponse.model_validate(transaction),
            total_paid=student.total_paid,
            pending_amount=student.pending_amount,
            status=student.status,
        ),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[TransactionWithStudentResponse]],
)
async def list_transactions(
    current_user: StaffUser,
    student_id: int | None = Query(None),
    mode: PaymentMode | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List transactions with filters and pagination, newest first."""
    filters = TransactionFilters(
        student_id=student_id,
        mode=mode,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    transactions, total = await TransactionService(db).list_transactions(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[TransactionWithStudentResponse.model_validate(t) for t in transactions],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get(
    "/receipt/{receipt_no}",
    response_model=ApiResponse[TransactionWithStudentResponse],
)
async def get_by_receipt(
    receipt_no: str,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Look up a transaction by receipt number."""
    transaction = await TransactionService(db).get_by_receipt_no(receipt_no)
    return ApiResponse(data=TransactionWithStudentResponse.model_validate(transaction))


@router.get(
    "/{transaction_id}",
    response_model=ApiResponse[TransactionWithStudentResponse],
)
async def get_transaction(
    transaction_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Get transaction by ID."""
    transaction = await TransactionService(db).get_transaction_by_id(transaction_id)
    return ApiResponse(data=TransactionWithStudentResponse.model_validate(transaction))


@router.get("/{transaction_id}/receipt/pdf")
async def download_receipt_pdf(
    transaction_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Download the fee receipt as PDF."""
    transaction = await TransactionService(db).get_transaction_by_id(transaction_id)
    context = build_receipt_context(transaction, transaction.student)
    pdf_bytes = pdf_service.generate_receipt_pdf(context)
    filename = f"receipt_{transaction.receipt_no}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
