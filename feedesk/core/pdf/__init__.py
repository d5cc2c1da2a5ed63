from feedesk.core.pdf.service import PDFService, build_receipt_context, pdf_service

__all__ = ["PDFService", "pdf_service", "build_receipt_context"]
