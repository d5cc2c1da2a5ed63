import sys
from datetime import datetime
from types import SimpleNamespace

import pytest

from feedesk.core.exceptions import PdfGenerationUnavailableError
from feedesk.core.pdf import build_receipt_context, pdf_service


def _receipt_context(pending_amount: int = 3000) -> dict:
    course = SimpleNamespace(name="Tally Prime")
    student = SimpleNamespace(
        full_name="Asha Verma",
        student_mobile="9876543210",
        batch="Morning 8-10",
        course=course,
        total_fee_committed=5000,
        total_paid=5000 - pending_amount,
        pending_amount=pending_amount,
    )
    transaction = SimpleNamespace(
        receipt_no="REC-0007",
        date=datetime(2026, 10, 19, 11, 30),
        amount=2000,
        mode="UPI",
        reference="UTR123",
        remark="Installment 1",
    )
    return build_receipt_context(transaction, student)


class TestReceiptContext:
    """Tests for receipt template context."""

    def test_context(self):
        context = _receipt_context()

        assert context["receipt"]["receipt_no"] == "REC-0007"
        assert context["receipt"]["amount_in_words"] == "Two Thousand Rupees Only"
        assert context["student"]["course"] == "Tally Prime"
        assert context["student"]["pending_amount"] == 3000
        assert "name" in context["institute"]

    def test_overpaid_balance_shown_as_zero(self):
        context = _receipt_context(pending_amount=-500)

        assert context["student"]["pending_amount"] == 0


class TestPDFService:
    """Tests for receipt rendering."""

    def test_render_receipt_html(self):
        html = pdf_service.render_receipt_html(_receipt_context())

        assert "REC-0007" in html
        assert "19/10/2026" in html
        assert "Rs. 2,000" in html
        assert "Rs. 3,000" in html
        assert "UPI (UTR123)" in html
        assert "Asha Verma" in html

    def test_generate_pdf_unavailable(self, monkeypatch):
        # A None entry makes the import fail the way missing system libraries do
        monkeypatch.setitem(sys.modules, "weasyprint", None)

        with pytest.raises(PdfGenerationUnavailableError):
            pdf_service.generate_receipt_pdf(_receipt_context())
