"""
PDF generator for billing documents: quotes (devis) and invoices (factures).

Both documents share the same skeleton:
1. Dates and recipient
2. Optional subject
3. Line-item table ("Détail")
4. Totals block with the TTC amount boxed in the brand color
5. Conditions and legal mentions

The invoice adds the training block, the attending participants and the
bank details; the quote ends with the client's "Bon pour accord" box.

The line-item table uses fixed column offsets. Designations wrap inside
their column and the row grows with them. When a row would start too low
on the page the table continues on the next one, without repeating the
column headers. A row taller than a whole page (a very long
designation) continues line by line on the following pages.
"""

import logging
from typing import Optional

from app.schemas.branding import BrandingOptions
from app.schemas.documents import InvoiceRecord, LineItem, QuoteRecord
from app.services.drawing import Document
from app.services.formatting import (
    format_amount,
    format_number,
    format_rate,
    format_short_date,
    format_vat,
)
from app.services.page_template import FOOTER_RULE_Y, PageCursor
from app.services.text_flow import wrap_text
from app.services.theme import Theme, default_theme

logger = logging.getLogger(__name__)

# --- Line-item table geometry (x offsets in points) ---
COLUMNS = (
    ("Désignation", 50.0),
    ("Qté", 320.0),
    ("P.U. HT", 370.0),
    ("TVA", 430.0),
    ("Montant HT", 490.0),
)
DESIGNATION_WIDTH = 260.0
DESIGNATION_LEADING = 11.0
DESCRIPTION_LEADING = 10.0
DESCRIPTION_MAX_LINES = 2
ROW_PADDING = 6.0
# Lowest baseline of any text inside a row; keeps the row rule above the footer.
ROW_FLOOR = FOOTER_RULE_Y + 20

# --- Totals block ---
TOTALS_X = 400.0
TOTALS_VALUE_OFFSET = 80.0

ACCEPTANCE_CAPTION = "Bon pour accord — Date et signature du client :"


class BillingDocumentGenerator:
    """Builds quotes and invoices from already-computed billing records."""

    def __init__(self, theme: Optional[Theme] = None):
        self.theme = theme or default_theme()

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    def build_quote(self, branding: BrandingOptions, data: QuoteRecord) -> Document:
        breaks = self.theme.breaks
        doc = Document(self.theme, title=f"Devis {data.number}", author=branding.org_name)
        cursor = PageCursor(doc, branding, f"DEVIS {data.number}")

        self._render_dates(cursor, data.issue_date, data.due_date)

        cursor.section("Destinataire")
        if data.company_name:
            self._render_company(cursor, data.company_name, data.company_siret,
                                 data.company_address, data.contact_name)
        else:
            cursor.label_value("Nom", data.individual_name)
            if data.individual_email:
                cursor.label_value("Email", data.individual_email)
            if data.individual_address:
                cursor.label_value("Adresse", data.individual_address)
        cursor.skip(10)

        self._render_subject(cursor, data.subject)
        self._render_line_items(cursor, data.lines)
        self._render_totals(cursor, data.total_excl_tax, data.total_tax, data.total_incl_tax)

        if data.conditions:
            cursor.ensure_space(breaks.conditions)
            cursor.section("Conditions")
            cursor.paragraph(data.conditions, size=8, leading=12)
            cursor.skip(10)

        if data.legal_mentions:
            cursor.ensure_space(breaks.legal_notice)
            self._render_legal_mentions(cursor, data.legal_mentions)
            cursor.skip(10)

        cursor.ensure_space(breaks.quote_signature)
        cursor.skip(10)
        cursor.signature_box(ACCEPTANCE_CAPTION, width=250, height=60, bold=True)

        return self._finish(cursor, "quote")

    def build_invoice(self, branding: BrandingOptions, data: InvoiceRecord) -> Document:
        breaks = self.theme.breaks
        doc = Document(self.theme, title=f"Facture {data.number}", author=branding.org_name)
        cursor = PageCursor(doc, branding, f"FACTURE {data.number}")

        self._render_dates(cursor, data.issue_date, data.due_date)

        if data.company_name:
            cursor.section("Destinataire")
            self._render_company(cursor, data.company_name, data.company_siret,
                                 data.company_address, data.contact_name)
            cursor.skip(10)

        self._render_subject(cursor, data.subject)
        self._render_training_block(cursor, data)
        self._render_participants(cursor, data)
        self._render_line_items(cursor, data.lines)
        self._render_totals(
            cursor, data.total_excl_tax, data.total_tax, data.total_incl_tax,
            exempt=data.vat_exempt,
        )

        if data.conditions:
            cursor.ensure_space(breaks.conditions)
            cursor.section("Conditions de paiement")
            cursor.paragraph(data.conditions, size=8, leading=12)
            cursor.skip(10)

        if data.bank_details:
            cursor.ensure_space(breaks.bank_details)
            cursor.section("Coordonnées bancaires")
            cursor.paragraph(data.bank_details, size=8, leading=12)
            cursor.skip(10)

        if data.legal_mentions:
            cursor.ensure_space(breaks.legal_notice)
            self._render_legal_mentions(cursor, data.legal_mentions)

        return self._finish(cursor, "invoice")

    # ------------------------------------------------------------------
    # SECTION RENDERERS
    # ------------------------------------------------------------------

    def _render_dates(self, cursor: PageCursor, issue_date: str, due_date: Optional[str]) -> None:
        cursor.label_value("Date d'émission", issue_date)
        if due_date:
            cursor.label_value("Échéance", due_date)
        cursor.skip(10)

    def _render_company(self, cursor: PageCursor, name: str, siret: Optional[str],
                        address: Optional[str], contact: Optional[str]) -> None:
        cursor.label_value("Entreprise", name)
        if siret:
            cursor.label_value("SIRET", siret)
        if address:
            cursor.label_value("Adresse", address)
        if contact:
            cursor.label_value("Contact", contact)

    def _render_subject(self, cursor: PageCursor, subject: Optional[str]) -> None:
        if not subject:
            return
        cursor.section("Objet")
        cursor.paragraph(subject)
        cursor.skip(10)

    def _render_training_block(self, cursor: PageCursor, data: InvoiceRecord) -> None:
        """Training metadata, when the invoice is tied to a session."""
        facts = [
            ("Intitulé", data.training_name),
            ("Dates", data.training_dates),
            ("Lieu", data.training_location),
            ("Modalité", data.training_modality),
            ("Durée", data.training_duration),
        ]
        if data.expected_participants is not None:
            facts.append(("Participants prévus", str(data.expected_participants)))
        facts = [(label, value) for label, value in facts if value]
        if not facts:
            return

        cursor.ensure_space(self.theme.breaks.training_block)
        cursor.section("Formation")
        for label, value in facts:
            cursor.label_value(label, value)
        cursor.skip(10)

    def _render_participants(self, cursor: PageCursor, data: InvoiceRecord) -> None:
        """`NOM Prénom — dd/mm/yyyy, ...` for each participant who attended."""
        if not data.participants:
            return
        breaks = self.theme.breaks

        # Keep the title with as many lines as the page can hold.
        cursor.ensure_space(min(breaks.list_line + len(data.participants) * 13, cursor.top))
        cursor.section(f"Participants présents ({len(data.participants)})")
        for participant in data.participants:
            line = f"{participant.last_name.upper()} {participant.first_name}"
            dates = ", ".join(format_short_date(d) for d in participant.presence_dates)
            if dates:
                line += f" — {dates}"
            cursor.paragraph(
                f"• {line}", size=8, leading=13,
                x=cursor.left + 10, width=cursor.content_width - 10,
                line_threshold=breaks.list_line,
            )
        cursor.skip(10)

    def _render_line_items(self, cursor: PageCursor, lines: list[LineItem]) -> None:
        theme = self.theme
        fonts = cursor.document.fonts

        # The title and column headers never sit alone above the footer.
        cursor.ensure_space(theme.breaks.table_row)
        cursor.section("Détail")
        page, y = cursor.page, cursor.y
        page.draw_rect(cursor.left, y - 15, cursor.content_width, 18, fill=theme.table_header_bg)
        for label, x in COLUMNS:
            page.draw_text(label, x, y - 11, size=7, bold=True)
        cursor.skip(22)

        x_designation, x_qty, x_price, x_rate, x_amount = (x for _, x in COLUMNS)
        for item in lines:
            designation = wrap_text(item.designation, fonts.regular, 8, DESIGNATION_WIDTH) or [""]
            description = []
            if item.description:
                description = wrap_text(item.description, fonts.regular, 7, DESIGNATION_WIDTH)
                description = description[:DESCRIPTION_MAX_LINES]
            row_height = (len(designation) * DESIGNATION_LEADING
                          + len(description) * DESCRIPTION_LEADING + ROW_PADDING)

            needed = max(theme.breaks.table_row, ROW_FLOOR + row_height)
            if needed > cursor.top:
                # Taller than a page: start here and break line by line.
                needed = theme.breaks.table_row
            cursor.ensure_space(needed)

            page, y = cursor.page, cursor.y
            page.draw_text(format_number(item.quantity), x_qty, y, size=8)
            page.draw_text(format_amount(item.unit_price, theme), x_price, y, size=8)
            page.draw_text(format_rate(item.tax_rate), x_rate, y, size=8)
            page.draw_text(format_amount(item.amount, theme), x_amount, y, size=8)

            for line in designation:
                self._row_line(cursor, line, x_designation, 8, DESIGNATION_LEADING)
            for line in description:
                self._row_line(cursor, line, x_designation, 7, DESCRIPTION_LEADING,
                               color=theme.muted)

            cursor.skip(ROW_PADDING)
            cursor.page.draw_line(cursor.left, cursor.y, cursor.right, cursor.y,
                                  color=theme.rule, thickness=0.3)
            cursor.skip(ROW_PADDING)

    @staticmethod
    def _row_line(cursor: PageCursor, line: str, x: float, size: float, leading: float,
                  color=None) -> None:
        cursor.ensure_space(ROW_FLOOR)
        if line:
            cursor.page.draw_text(line, x, cursor.y, size=size, color=color)
        cursor.skip(leading)

    def _render_totals(self, cursor: PageCursor, excl_tax: float, tax: float,
                       incl_tax: float, exempt: bool = False) -> None:
        """HT and TVA lines, then the boxed TTC amount."""
        theme = self.theme
        cursor.skip(10)
        cursor.ensure_space(theme.breaks.totals)
        page, value_x = cursor.page, TOTALS_X + TOTALS_VALUE_OFFSET

        page.draw_text("Total HT :", TOTALS_X, cursor.y, size=9, bold=True)
        page.draw_text(format_amount(excl_tax, theme), value_x, cursor.y, size=9)
        cursor.skip(15)

        page.draw_text("TVA :", TOTALS_X, cursor.y, size=9, bold=True)
        if exempt or tax == 0:
            page.draw_text(format_vat(tax, theme, exempt=True), value_x, cursor.y,
                           size=8, color=theme.muted)
        else:
            page.draw_text(format_amount(tax, theme), value_x, cursor.y, size=9)
        cursor.skip(18)

        page.draw_rect(TOTALS_X - 5, cursor.y - 5, 155, 22,
                       fill=theme.total_box_bg, stroke=theme.accent, line_width=0.5)
        page.draw_text("Total TTC :", TOTALS_X, cursor.y, size=10, bold=True, color=theme.accent)
        page.draw_text(format_amount(incl_tax, theme), value_x, cursor.y,
                       size=10, bold=True, color=theme.accent)
        cursor.skip(30)

    def _render_legal_mentions(self, cursor: PageCursor, text: str) -> None:
        cursor.paragraph(text, size=7, leading=10, color=self.theme.muted)

    # ------------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------------

    @staticmethod
    def _finish(cursor: PageCursor, kind: str) -> Document:
        document = cursor.finish()
        logger.debug("Assembled %s: %d page(s)", kind, document.page_count)
        return document
