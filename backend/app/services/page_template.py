"""
Page template — the header, footer and running cursor shared by all documents.

Every document kind starts with the same branded header and ends every
page with the same footer, portrait or landscape. Keeping them here (and
nowhere else) is what makes a convention, an invoice and an attendance
sheet from the same organisation look like one family of documents.

`PageCursor` owns the vertical position while a document is assembled.
Assemblers ask it for room before each block; when there is not enough,
it closes the page (footer first), opens a new one of the same size and
moves the cursor back to the top.
"""

import logging
from typing import Iterable, Optional

from app.schemas.branding import BrandingOptions
from app.services.drawing import Document, Page, decode_inline_image
from app.services.text_flow import wrap_text
from app.services.theme import Theme

logger = logging.getLogger(__name__)

LOGO_MAX_WIDTH = 120.0
LOGO_MAX_HEIGHT = 50.0
FOOTER_RULE_Y = 50.0
FOOTER_TEXT_Y = 35.0


def identity_lines(branding: BrandingOptions) -> list[str]:
    """Organisation detail lines under the name, in their fixed order."""
    details = []
    if branding.siret:
        details.append(f"SIRET : {branding.siret}")
    if branding.nda:
        details.append(f"NDA : {branding.nda}")
    if branding.address:
        details.append(branding.address)
    if branding.email:
        details.append(branding.email)
    if branding.phone:
        details.append(branding.phone)
    return details


def footer_line(branding: BrandingOptions) -> str:
    """Organisation name followed by whichever registration numbers exist."""
    text = branding.org_name
    if branding.nda:
        text += f" — NDA : {branding.nda}"
    if branding.siret:
        text += f" — SIRET : {branding.siret}"
    return text


def draw_header(page: Page, branding: BrandingOptions, title: str, theme: Theme) -> float:
    """Draw the branded header and return the first writable y below it."""
    width, height = page.size
    left = theme.margin

    page.draw_rect(0, height - 8, width, 8, fill=theme.accent)
    page.draw_text(branding.org_name, left, height - 50, size=16, bold=True, color=theme.accent)

    detail_y = height - 68
    for detail in identity_lines(branding):
        page.draw_text(detail, left, detail_y, size=8, color=theme.muted)
        detail_y -= 12

    if branding.logo:
        _draw_logo(page, branding.logo, theme)

    title_y = detail_y - 20
    page.draw_text(title, left, title_y, size=18, bold=True)
    page.draw_line(left, title_y - 10, width - left, title_y - 10, color=theme.rule, thickness=1)

    return title_y - 30


def draw_footer(page: Page, branding: BrandingOptions, theme: Theme) -> None:
    """Draw the separator rule and the centered organisation line."""
    width = page.width
    page.draw_line(
        theme.margin, FOOTER_RULE_Y, width - theme.margin, FOOTER_RULE_Y,
        color=theme.rule, thickness=0.5,
    )
    text = footer_line(branding)
    text_width = page.text_width(text, 7)
    page.draw_text(text, (width - text_width) / 2, FOOTER_TEXT_Y, size=7, color=theme.muted)


def _draw_logo(page: Page, reference: str, theme: Theme) -> None:
    image = decode_inline_image(reference)
    if image is None:
        return
    img_width, img_height = image.getSize()
    if not img_width or not img_height:
        return
    scale = min(LOGO_MAX_WIDTH / img_width, LOGO_MAX_HEIGHT / img_height)
    draw_width, draw_height = img_width * scale, img_height * scale
    page.draw_image(
        image,
        page.width - theme.margin - draw_width,
        page.height - 20 - draw_height,
        draw_width,
        draw_height,
    )


class PageCursor:
    """Tracks the current page and vertical position of a document being built.

    Usage:
        cursor = PageCursor(document, branding, "FACTURE F-001")
        cursor.section("Destinataire")
        cursor.label_value("Entreprise", "ACME")
        cursor.ensure_space(theme.breaks.totals)
        ...
        cursor.finish()
    """

    def __init__(
        self,
        document: Document,
        branding: BrandingOptions,
        title: str,
        size: Optional[tuple] = None,
    ):
        self.document = document
        self.branding = branding
        self.theme = document.theme
        self.size = size or self.theme.portrait
        self.page = document.new_page(self.size)
        self.y = draw_header(self.page, branding, title, self.theme)

    # --- Geometry ---

    @property
    def left(self) -> float:
        return self.theme.margin

    @property
    def right(self) -> float:
        return self.page.width - self.theme.margin

    @property
    def content_width(self) -> float:
        return self.right - self.left

    @property
    def top(self) -> float:
        """Where content resumes on a continuation page."""
        return self.size[1] - self.theme.continuation_top_margin

    # --- Page breaks ---

    def ensure_space(self, minimum: float) -> bool:
        """Start a new page if the cursor is below `minimum`.

        Returns True when a page break happened.
        """
        if self.y >= minimum:
            return False
        draw_footer(self.page, self.branding, self.theme)
        self.page = self.document.new_page(self.size)
        self.y = self.top
        logger.debug("Page break -> page %d", self.document.page_count)
        return True

    def finish(self) -> Document:
        """Close the last page and hand back the finished document."""
        draw_footer(self.page, self.branding, self.theme)
        return self.document

    def skip(self, amount: float) -> None:
        self.y -= amount

    # --- Blocks ---

    def section(self, title: str) -> None:
        """Colored section title."""
        self.page.draw_text(title, self.left, self.y, size=11, bold=True, color=self.theme.accent)
        self.y -= 18

    def label_value(self, label: str, value: str, x: Optional[float] = None) -> None:
        """`Label : value` line; long values wrap under themselves.

        Like `paragraph`, every wrapped line may break the page.
        """
        x = self.left if x is None else x
        self.ensure_space(self.theme.breaks.list_line)
        self.page.draw_text(f"{label} :", x, self.y, size=9, bold=True)
        value_x = x + self.page.text_width(f"{label} : ", 9, bold=True)
        lines = wrap_text(value, self.document.fonts.regular, 9, self.right - value_x)
        for index, line in enumerate(lines):
            if index:
                self.y -= 13
                self.ensure_space(self.theme.breaks.list_line)
            if line:
                self.page.draw_text(line, value_x, self.y, size=9)
        self.y -= 15

    def paragraph(
        self,
        text: str,
        size: float = 9,
        leading: float = 13,
        x: Optional[float] = None,
        width: Optional[float] = None,
        bold: bool = False,
        color=None,
        line_threshold: Optional[float] = None,
    ) -> None:
        """Wrapped prose; every line may break the page.

        `line_threshold` defaults to the list-line threshold, so no line of
        free text is ever drawn over the footer.
        """
        x = self.left if x is None else x
        width = (self.right - x) if width is None else width
        if line_threshold is None:
            line_threshold = self.theme.breaks.list_line
        font = self.document.fonts.face(bold)
        for line in wrap_text(text, font, size, width):
            self.ensure_space(line_threshold)
            if line:
                self.page.draw_text(line, x, self.y, size=size, bold=bold, color=color)
            self.y -= leading

    def bullets(
        self,
        items: Iterable[str],
        marker: str = "•",
        size: float = 9,
        leading: float = 13,
        indent: float = 10,
    ) -> None:
        """Bulleted list; long items wrap and every line may break the page."""
        x = self.left + indent
        for item in items:
            self.paragraph(
                f"{marker} {item}",
                size=size,
                leading=leading,
                x=x,
                width=self.content_width - indent,
                line_threshold=self.theme.breaks.list_line,
            )

    def signature_box(self, caption: str, width: float = 200, height: float = 60,
                      bold: bool = False) -> None:
        """Caption followed by an empty framed box."""
        color = None if bold else self.theme.muted
        self.page.draw_text(caption, self.left, self.y, size=9, bold=bold, color=color)
        self.y -= 5
        self.page.draw_rect(self.left, self.y - height, width, height,
                            stroke=self.theme.rule, line_width=0.5)
        self.y -= height

    def signature_columns(self, left: tuple, right: tuple) -> None:
        """Two side-by-side signature blocks: (role, name) for each party."""
        column = self.content_width / 2
        right_x = self.left + column + 20
        (left_role, left_name), (right_role, right_name) = left, right

        self.page.draw_text(left_role, self.left, self.y, size=9, bold=True)
        self.page.draw_text(right_role, right_x, self.y, size=9, bold=True)
        self.y -= 15
        self.page.draw_text(left_name, self.left, self.y, size=9)
        self.page.draw_text(right_name, right_x, self.y, size=9)
        self.y -= 12
        for x in (self.left, right_x):
            self.page.draw_text("Date et signature :", x, self.y, size=8, color=self.theme.muted)
        self.y -= 5
        for x in (self.left, right_x):
            self.page.draw_rect(x, self.y - 60, column - 10, 60,
                                stroke=self.theme.rule, line_width=0.5)
        self.y -= 60
