from __future__ import annotations  # Styled PDF rendering for interview feedback

import math
import os
from datetime import datetime
from typing import Any, List, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from interview_session.models import CompletedSessionRecord, QuestionFeedback


DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background
CARD_BG = (248, 249, 255)  # Question card background


def _format_datetime(value: datetime | None) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _score_value(value: float | None) -> str:  # Format score on the ten-point scale
    if value is None:
        return "N/A"
    return f"{float(value):.1f}/10"


def _calc_text_height(pdf: FPDF, width: float, text: str, line_height: float) -> float:  # Estimate multi-cell height
    if not text:
        return line_height
    lines = pdf.multi_cell(width, line_height, text, dry_run=True, output="LINES")
    if isinstance(lines, (list, tuple)):
        return line_height * max(1, len(lines))
    return max(1, math.ceil(len(text) / 90)) * line_height


class ReportPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args, accent: Tuple[int, int, int] = ACCENT, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.accent = accent
        self.header_title = "Interview Feedback"
        self._font_regular = "Helvetica"
        self._font_bold = "Helvetica"
        self._supports_unicode = False

    def use_unicode_fonts(self) -> None:  # Switch to DejaVu when the system fonts are installed
        if not (os.path.exists(DEJAVU_SANS) and os.path.exists(DEJAVU_SANS_BOLD)):
            return
        self.add_font("DejaVu", "", DEJAVU_SANS)
        self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        self._font_regular = "DejaVu"
        self._font_bold = "DejaVu"
        self._supports_unicode = True

    def _prepare_text(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self._supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("’", "'").replace("“", '"').replace("”", '"')
        return cleaned.encode("latin-1", "ignore").decode("latin-1")

    def cell(self, w=None, h=None, text="", *args, **kwargs):  # Wrap base cell with text sanitisation
        return super().cell(w, h, self._prepare_text(text), *args, **kwargs)

    def multi_cell(self, w, h=None, text="", *args, **kwargs):  # Wrap base multi_cell with text sanitisation
        return super().multi_cell(w, h, self._prepare_text(text), *args, **kwargs)

    def header(self) -> None:  # Render header banner
        usable = _effective_width(self)
        if self.page_no() == 1:
            line_height = 8
            self.set_font(self._font_bold, "B", 16)
            lines = self.multi_cell(usable, line_height, self.header_title, dry_run=True, output="LINES")
            banner = 6 + max(1, len(lines)) * line_height + 4
            self.set_fill_color(*self.accent)
            self.rect(0, 0, self.w, banner, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 6)
            self.multi_cell(usable, line_height, self.header_title)
            self.set_text_color(*TEXT)
            self.ln(4)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self._font_bold, "B", 12)
            self.multi_cell(usable, 6, self.header_title)
            mark = self.get_y()
            self.set_draw_color(*self.accent)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
            self.set_text_color(*TEXT)
            self.ln(4)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self._font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf._font_bold, "B", 13)
    pdf.cell(0, 9, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Draw two-column metadata
    col = _effective_width(pdf) / 2.0
    line = 6
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf._font_regular, "", 10)
        pdf.cell(col, line, left[0], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[0], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf._font_bold, "B", 11)
        pdf.cell(col, line, left[1], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[1], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _render_overall(pdf: ReportPDF, score: float, narrative: str) -> None:  # Score banner plus narrative
    width = _effective_width(pdf)
    top = pdf.get_y()
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, top, width, 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, top + 4)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf._font_regular, "", 10)
    pdf.cell(width - 12, 6, "Overall Score")
    pdf.set_xy(pdf.l_margin, top + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf._font_bold, "B", 14)
    pdf.cell(width - 6, 8, _score_value(score), align="R")
    pdf.set_y(top + 20)
    pdf.set_x(pdf.l_margin)
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf._font_regular, "", 11)
    pdf.multi_cell(width, 6, narrative.strip() or "-")
    pdf.ln(4)


def _render_question(pdf: ReportPDF, index: int, entry: QuestionFeedback) -> None:  # Render one question card
    line = 5.5
    width = _effective_width(pdf)
    inner = width - 4
    question = f"Q{index}: {entry.question.strip() or '-'}"
    answer = f"Answer: {entry.answer.strip() or '-'}"
    feedback = f"Feedback: {entry.feedback.strip() or '-'}"
    block = sum(_calc_text_height(pdf, inner, text, line) for text in (question, answer, feedback)) + line + 6
    if pdf.get_y() + block > pdf.page_break_trigger:
        pdf.add_page()
    origin_y = pdf.get_y()
    pdf.set_fill_color(*CARD_BG)
    pdf.rect(pdf.l_margin, origin_y, width, block, style="F")
    pdf.set_xy(pdf.l_margin + 2, origin_y + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf._font_bold, "B", 10)
    pdf.multi_cell(inner, line, question)
    pdf.set_x(pdf.l_margin + 2)
    pdf.set_text_color(60, 60, 60)
    pdf.set_font(pdf._font_regular, "", 10)
    pdf.multi_cell(inner, line, answer)
    pdf.set_x(pdf.l_margin + 2)
    pdf.set_text_color(*TEXT)
    pdf.multi_cell(inner, line, feedback)
    pdf.set_x(pdf.l_margin + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf._font_bold, "B", 10)
    pdf.cell(inner, line, f"Score: {_score_value(entry.score)}", align="R")
    bottom = max(pdf.get_y() + line, origin_y + block)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    pdf.line(pdf.l_margin, bottom + 1, pdf.l_margin + width, bottom + 1)
    pdf.set_y(bottom + 4)
    pdf.set_text_color(*TEXT)


def generate_feedback_pdf(record: CompletedSessionRecord) -> bytes:  # Build PDF payload for a completed interview
    pdf = ReportPDF()
    pdf.alias_nb_pages()
    pdf.use_unicode_fonts()
    pdf.header_title = f"{record.config.role} - Interview Feedback"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    _meta_block(
        pdf,
        [
            ("Role", record.config.role),
            ("Completed", _format_datetime(record.completed_at)),
            ("Interviewer", record.config.persona.title()),
            ("Difficulty", record.config.difficulty.title()),
        ],
    )

    _section_title(pdf, "Overall Feedback")
    _render_overall(pdf, record.feedback.overall_score, record.feedback.overall_feedback)

    _section_title(pdf, "Question Feedback")
    if not record.feedback.question_feedback:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf._font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No per-question feedback recorded for this interview.")
        pdf.set_text_color(*TEXT)
    for index, entry in enumerate(record.feedback.question_feedback, start=1):
        _render_question(pdf, index, entry)

    return bytes(pdf.output())


__all__ = ["ReportPDF", "generate_feedback_pdf"]
