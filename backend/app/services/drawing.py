"""
Primitive drawing layer — pages, fonts, text, lines and rectangles.

Pages are recorded as ordered lists of drawing operations and only
replayed onto a ReportLab canvas when the document is serialized. That
keeps every assembler a pure function that returns an inspectable
`Document`, and means a failure inside ReportLab surfaces once, as a
`DocumentGenerationError`, before any bytes leave this module.

Coordinates are PDF points with the origin at the bottom-left corner,
the same convention ReportLab's canvas uses. Nothing here checks that a
drawing lands inside the page; that is the page cursor's job.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Union

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from app.services.theme import Theme

logger = logging.getLogger(__name__)


class DocumentGenerationError(Exception):
    """The PDF library refused to build the document."""


# ------------------------------------------------------------------
# FONTS
# ------------------------------------------------------------------

@dataclass(frozen=True)
class FontPair:
    """The two faces a document uses: regular and bold."""
    regular: str
    bold: str

    def face(self, bold: bool = False) -> str:
        return self.bold if bold else self.regular

    def width(self, text: str, size: float, bold: bool = False) -> float:
        """Width of `text` in points at `size`."""
        return pdfmetrics.stringWidth(text, self.face(bold), size)


def resolve_fonts(theme: Theme) -> FontPair:
    """Register the theme's TrueType faces (if any) and return the pair.

    Standard Helvetica needs no registration. TTF faces are registered
    once per process under the theme's font names and embedded by
    ReportLab in every document that uses them.
    """
    registered = set(pdfmetrics.getRegisteredFontNames())
    for name, path in (
        (theme.font_regular, theme.font_regular_path),
        (theme.font_bold, theme.font_bold_path),
    ):
        if path and name not in registered:
            try:
                pdfmetrics.registerFont(TTFont(name, path))
            except Exception as exc:
                raise DocumentGenerationError(
                    f"Cannot load font {name!r} from {path}: {exc}"
                ) from exc
            logger.info("Registered TrueType font %s from %s", name, path)
    return FontPair(regular=theme.font_regular, bold=theme.font_bold)


# ------------------------------------------------------------------
# DRAWING OPERATIONS
# ------------------------------------------------------------------

@dataclass(frozen=True)
class TextOp:
    text: str
    x: float
    y: float
    font: str
    size: float
    color: colors.Color

    def render(self, pdf: canvas.Canvas) -> None:
        pdf.setFillColor(self.color)
        pdf.setFont(self.font, self.size)
        pdf.drawString(self.x, self.y, self.text)


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[colors.Color] = None
    stroke: Optional[colors.Color] = None
    line_width: float = 0.5

    def render(self, pdf: canvas.Canvas) -> None:
        if self.fill is not None:
            pdf.setFillColor(self.fill)
        if self.stroke is not None:
            pdf.setStrokeColor(self.stroke)
            pdf.setLineWidth(self.line_width)
        pdf.rect(
            self.x, self.y, self.width, self.height,
            stroke=1 if self.stroke is not None else 0,
            fill=1 if self.fill is not None else 0,
        )


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: colors.Color
    thickness: float = 1.0

    def render(self, pdf: canvas.Canvas) -> None:
        pdf.setStrokeColor(self.color)
        pdf.setLineWidth(self.thickness)
        pdf.line(self.x1, self.y1, self.x2, self.y2)


@dataclass(frozen=True)
class ImageOp:
    image: ImageReader
    x: float
    y: float
    width: float
    height: float

    def render(self, pdf: canvas.Canvas) -> None:
        pdf.drawImage(self.image, self.x, self.y, self.width, self.height, mask="auto")


Operation = Union[TextOp, RectOp, LineOp, ImageOp]


def decode_inline_image(reference: str) -> Optional[ImageReader]:
    """Turn a `data:` URI or bare base64 payload into an ImageReader.

    URLs and file paths are not fetched; they return None.
    """
    payload = reference.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    elif payload.startswith(("http://", "https://", "/")):
        logger.debug("Skipping non-inline logo reference")
        return None
    try:
        raw = base64.b64decode(payload, validate=True)
        return ImageReader(BytesIO(raw))
    except (binascii.Error, ValueError, OSError) as exc:
        logger.warning("Ignoring undecodable logo: %s", exc)
        return None


# ------------------------------------------------------------------
# PAGE AND DOCUMENT
# ------------------------------------------------------------------

class Page:
    """A fixed-size page and the drawing operations placed on it."""

    def __init__(self, size: tuple, fonts: FontPair, theme: Theme):
        self.width, self.height = size
        self.fonts = fonts
        self.theme = theme
        self.operations: list[Operation] = []

    @property
    def size(self) -> tuple:
        return (self.width, self.height)

    @property
    def is_landscape(self) -> bool:
        return self.width > self.height

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        bold: bool = False,
        color: Optional[colors.Color] = None,
    ) -> None:
        self.operations.append(TextOp(
            text=text, x=x, y=y,
            font=self.fonts.face(bold), size=size,
            color=color if color is not None else self.theme.text,
        ))

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: Optional[colors.Color] = None,
        stroke: Optional[colors.Color] = None,
        line_width: float = 0.5,
    ) -> None:
        self.operations.append(RectOp(x, y, width, height, fill, stroke, line_width))

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: Optional[colors.Color] = None,
        thickness: float = 1.0,
    ) -> None:
        self.operations.append(LineOp(
            x1, y1, x2, y2,
            color=color if color is not None else self.theme.rule,
            thickness=thickness,
        ))

    def draw_image(self, image: ImageReader, x: float, y: float, width: float, height: float) -> None:
        self.operations.append(ImageOp(image, x, y, width, height))

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        return self.fonts.width(text, size, bold)

    def text_ops(self) -> list[TextOp]:
        return [op for op in self.operations if isinstance(op, TextOp)]

    def texts(self) -> list[str]:
        """All text runs on the page, in drawing order."""
        return [op.text for op in self.text_ops()]


class Document:
    """An ordered list of pages sharing one font pair.

    Usage:
        doc = Document(theme, title="FACTURE F-001", author="C&CO Formation")
        page = doc.new_page(theme.portrait)
        page.draw_text("Hello", 50, 780, size=12)
        pdf_bytes = doc.to_bytes()
    """

    def __init__(self, theme: Theme, title: str = "", author: str = ""):
        self.theme = theme
        self.title = title
        self.author = author
        self.fonts = resolve_fonts(theme)
        self.pages: list[Page] = []

    def new_page(self, size: tuple) -> Page:
        page = Page(size, self.fonts, self.theme)
        self.pages.append(page)
        return page

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_bytes(self, compress_pages: Optional[bool] = None) -> bytes:
        """Serialize every page to PDF bytes.

        Args:
            compress_pages: Deflate page content streams. Defaults to the
                theme's `page_compression` setting.

        Raises:
            DocumentGenerationError: ReportLab failed; no bytes are returned.
        """
        if not self.pages:
            raise DocumentGenerationError("Document has no pages")
        if compress_pages is None:
            compress_pages = self.theme.page_compression

        buffer = BytesIO()
        try:
            pdf = canvas.Canvas(
                buffer,
                pagesize=self.pages[0].size,
                pageCompression=1 if compress_pages else 0,
            )
            pdf.setTitle(self.title)
            pdf.setAuthor(self.author)
            pdf.setCreator("Training document engine")
            for page in self.pages:
                pdf.setPageSize(page.size)
                for operation in page.operations:
                    operation.render(pdf)
                pdf.showPage()
            pdf.save()
        except DocumentGenerationError:
            raise
        except Exception as exc:
            raise DocumentGenerationError(f"PDF rendering failed: {exc}") from exc

        logger.debug("Rendered %r: %d page(s)", self.title, len(self.pages))
        return buffer.getvalue()
