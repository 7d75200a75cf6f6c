"""
Visual theme shared by every document generator.

The brand palette, font faces, page sizes and page-break thresholds live
in one immutable value that is passed to each generator, so two
organisations with different brand colors can render documents side by
side in the same process.

Usage:
    theme = default_theme()                     # built from settings
    orange = Theme(accent=colors.HexColor("#F97316"))
    generator = TrainingDocumentGenerator(theme=orange)
"""

from dataclasses import dataclass, field
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape

from app.config import settings


# --- Default palette ---
ACCENT = colors.HexColor("#F97316")            # Orange — bars, section titles
DARK_TEXT = colors.Color(30 / 255, 30 / 255, 30 / 255)
GRAY_TEXT = colors.Color(100 / 255, 100 / 255, 100 / 255)
LIGHT_GRAY = colors.Color(230 / 255, 230 / 255, 230 / 255)
TABLE_HEADER_BG = colors.Color(240 / 255, 240 / 255, 240 / 255)
ZEBRA_BG = colors.Color(252 / 255, 252 / 255, 252 / 255)
BOX_BG = colors.Color(248 / 255, 248 / 255, 248 / 255)
TOTAL_BOX_BG = colors.Color(252 / 255, 237 / 255, 220 / 255)

VAT_EXEMPTION_NOTICE = "Exonéré (art. 261-4-4°a du CGI)"


@dataclass(frozen=True)
class PageBreakThresholds:
    """Minimum remaining height (in points from the page bottom) before a block.

    These are layout tuning values carried over from the documents already
    in circulation; they are not derived from font metrics.
    """
    convention_company: float = 250.0
    convention_financial: float = 120.0
    subcontract_obligations: float = 300.0
    closing_block: float = 180.0
    training_block: float = 150.0
    conditions: float = 150.0
    table_row: float = 120.0
    totals: float = 120.0
    legal_notice: float = 120.0
    bank_details: float = 120.0
    quote_signature: float = 130.0
    section: float = 100.0
    list_line: float = 80.0
    attendance_row: float = 90.0
    attendance_signature: float = 120.0


@dataclass(frozen=True)
class Theme:
    """Everything a generator needs to know about how documents look."""
    accent: colors.Color = field(default_factory=lambda: ACCENT)
    text: colors.Color = field(default_factory=lambda: DARK_TEXT)
    muted: colors.Color = field(default_factory=lambda: GRAY_TEXT)
    rule: colors.Color = field(default_factory=lambda: LIGHT_GRAY)
    table_header_bg: colors.Color = field(default_factory=lambda: TABLE_HEADER_BG)
    zebra_bg: colors.Color = field(default_factory=lambda: ZEBRA_BG)
    box_bg: colors.Color = field(default_factory=lambda: BOX_BG)
    total_box_bg: colors.Color = field(default_factory=lambda: TOTAL_BOX_BG)

    font_regular: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"
    font_regular_path: Optional[str] = None
    font_bold_path: Optional[str] = None

    portrait: tuple = A4
    landscape: tuple = landscape(A4)
    margin: float = 50.0
    # Distance from the top edge where content resumes on continuation pages
    # (780pt on portrait A4).
    continuation_top_margin: float = 61.89

    currency_suffix: str = "€"
    vat_exemption_notice: str = VAT_EXEMPTION_NOTICE
    page_compression: bool = True

    breaks: PageBreakThresholds = field(default_factory=PageBreakThresholds)


def default_theme() -> Theme:
    """Build the theme described by the current settings."""
    return Theme(
        accent=colors.HexColor(settings.BRAND_ACCENT_COLOR),
        font_regular="BrandRegular" if settings.PDF_FONT_REGULAR_PATH else "Helvetica",
        font_bold="BrandBold" if settings.PDF_FONT_BOLD_PATH else "Helvetica-Bold",
        font_regular_path=settings.PDF_FONT_REGULAR_PATH,
        font_bold_path=settings.PDF_FONT_BOLD_PATH,
        page_compression=settings.PDF_PAGE_COMPRESSION,
    )
