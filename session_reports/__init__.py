from __future__ import annotations  # Feedback report package exports

from .pdf import ReportPDF, generate_feedback_pdf

__all__ = ["ReportPDF", "generate_feedback_pdf"]
