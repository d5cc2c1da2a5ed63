"""PDF generation service (fee receipt) from HTML templates."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from feedesk.core.config import settings
from feedesk.core.exceptions import PdfGenerationUnavailableError
from feedesk.shared.utils.money import amount_in_words, format_rupees

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "pdf"


class PDFService:
    """Generate PDF documents from Jinja2 templates and WeasyPrint."""

    def __init__(self) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
        )
        self._env.filters["rupees"] = format_rupees

    def render_receipt_html(self, context: dict) -> str:
        """Render the receipt template to HTML."""
        template = self._env.get_template("receipt.html")
        return template.render(**context)

    def generate_receipt_pdf(self, context: dict) -> bytes:
        """Render receipt template with context and return PDF bytes."""
        try:
            from weasyprint import HTML
        except (OSError, ImportError) as e:
            raise PdfGenerationUnavailableError(
                f"PDF generation unavailable (WeasyPrint/system libs). On macOS: brew install pango glib. {e!s}"
            ) from e
        html_content = self.render_receipt_html(context)
        try:
            return HTML(string=html_content).write_pdf()
        except Exception as e:
            raise PdfGenerationUnavailableError(str(e)) from e


def build_receipt_context(transaction, student) -> dict:
    """Build template context for a receipt PDF from ORM models and institute settings."""
    course = student.course
    return {
        "receipt": {
            "receipt_no": transaction.receipt_no,
            "date": transaction.date,
            "amount": transaction.amount,
            "amount_in_words": amount_in_words(transaction.amount),
            "mode": transaction.mode,
            "reference": transaction.reference,
            "remark": transaction.remark,
        },
        "student": {
            "full_name": student.full_name,
            "student_mobile": student.student_mobile,
            "batch": student.batch,
            "course": course.name if course else "",
            "total_fee_committed": student.total_fee_committed,
            "total_paid": student.total_paid,
            "pending_amount": max(student.pending_amount, 0),
        },
        "institute": settings.institute_info,
    }


pdf_service = PDFService()
