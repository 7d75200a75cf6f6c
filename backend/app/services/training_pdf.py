"""
PDF generator for training-session documents.

This service produces five documents around a training session:
1. Convention de formation: agreement with the sponsoring company
2. Attestation de fin de formation: one per learner, after the session
3. Convocation: invitation sent to a learner before the session
4. Feuille d'émargement: landscape attendance grid, one per day
5. Programme de formation: the catalogue sheet of the training product

Unlike a flowable-based layout, every block here is placed explicitly
with a `PageCursor`: the cursor draws the shared header, hands out
vertical space, and breaks pages when a block would not fit. Each
`build_*` method is a pure function of its arguments and returns a
`Document`; call `.to_bytes()` on it for the PDF.

Usage:
    generator = TrainingDocumentGenerator()
    pdf_bytes = generator.build_convention(branding, record).to_bytes()
"""

import logging
from typing import Optional

from app.schemas.branding import BrandingOptions
from app.schemas.documents import (
    AttendanceSheetRecord,
    AttestationRecord,
    ConventionRecord,
    ConvocationRecord,
    ProgrammeRecord,
)
from app.services.drawing import Document
from app.services.formatting import (
    MISSING_DATE,
    city_from_address,
    format_amount,
    format_number,
    format_vat,
)
from app.services.page_template import PageCursor
from app.services.text_flow import strip_rich_text
from app.services.theme import Theme, default_theme

logger = logging.getLogger(__name__)

ATTENDANCE_NAME_COLUMN = 180.0
ATTENDANCE_SLOT_COLUMN = 120.0
ATTENDANCE_ROW_HEIGHT = 28.0


class TrainingDocumentGenerator:
    """Builds conventions, attestations, convocations, attendance sheets
    and programme sheets.

    The theme is fixed per generator instance; nothing else is kept
    between calls.
    """

    def __init__(self, theme: Optional[Theme] = None):
        self.theme = theme or default_theme()

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    def build_convention(self, branding: BrandingOptions, data: ConventionRecord) -> Document:
        """Convention de formation professionnelle.

        Sections: object, characteristics, objectives, programme, company,
        learners, financial terms, signatures.
        """
        breaks = self.theme.breaks
        doc = self._new_document(branding, f"Convention — {data.session_name}")
        cursor = PageCursor(doc, branding, "CONVENTION DE FORMATION PROFESSIONNELLE")

        cursor.section("Article 1 — Objet")
        cursor.paragraph(
            "En exécution de la présente convention, l'organisme de formation "
            "s'engage à organiser l'action de formation intitulée "
            f"« {data.session_name} » (Réf. {data.session_number})."
        )
        cursor.skip(5)

        cursor.section("Article 2 — Nature et caractéristiques")
        self._render_session_facts(cursor, data)
        cursor.skip(5)

        if data.objectives:
            cursor.ensure_space(breaks.section)
            cursor.section("Objectifs pédagogiques")
            cursor.bullets(data.objectives)
            cursor.skip(5)

        if data.programme:
            cursor.ensure_space(breaks.section)
            cursor.section("Programme")
            cursor.bullets(
                f"{item.title} ({item.duration})" if item.duration else item.title
                for item in data.programme
            )
            cursor.skip(5)

        cursor.ensure_space(breaks.convention_company)
        cursor.section("Article 3 — Entreprise commanditaire")
        cursor.label_value("Raison sociale", data.company_name)
        if data.company_siret:
            cursor.label_value("SIRET", data.company_siret)
        if data.company_address:
            cursor.label_value("Adresse", data.company_address)
        if data.company_representative:
            cursor.label_value("Représentant", data.company_representative)
        cursor.skip(5)

        cursor.ensure_space(breaks.section)
        cursor.section("Article 4 — Stagiaire(s)")
        cursor.bullets(learner.full_name for learner in data.learners)
        cursor.skip(5)

        cursor.ensure_space(breaks.convention_financial)
        cursor.section("Article 5 — Dispositions financières")
        cursor.label_value("Montant HT", format_amount(data.price_excl_tax, self.theme))
        cursor.label_value("TVA", format_vat(data.tax_amount, self.theme))
        cursor.label_value("Montant TTC", format_amount(data.price_incl_tax, self.theme))
        cursor.skip(15)

        cursor.ensure_space(breaks.closing_block)
        cursor.section("Signatures")
        cursor.skip(5)
        cursor.signature_columns(
            ("L'organisme de formation", branding.org_name),
            ("L'entreprise", data.company_name),
        )

        return self._finish(cursor, "convention")

    def build_attestation(self, branding: BrandingOptions, data: AttestationRecord) -> Document:
        """Attestation de fin de formation for a single learner."""
        theme = self.theme
        learner = f"{data.learner_first_name} {data.learner_last_name}"
        doc = self._new_document(branding, f"Attestation — {learner}")
        cursor = PageCursor(doc, branding, "ATTESTATION DE FIN DE FORMATION")

        cursor.skip(10)
        declared = f" déclaré sous le numéro {branding.nda}" if branding.nda else ""
        cursor.paragraph(
            f"Je soussigné(e), représentant(e) de {branding.org_name}, "
            f"organisme de formation{declared}, atteste que :",
            size=10,
            leading=15,
        )
        cursor.skip(10)

        self._render_learner_box(cursor, learner, data.learner_birth_date)

        cursor.paragraph(
            f"a suivi la formation « {data.session_name} » (Réf. {data.session_number})",
            size=10,
            leading=20,
        )
        cursor.label_value("Du", f"{data.start_date} au {data.end_date}")
        cursor.label_value("Durée", f"{format_number(data.duration_hours)} heures")
        cursor.label_value("Lieu", data.location)
        cursor.skip(10)

        if data.objectives:
            cursor.ensure_space(theme.breaks.section)
            cursor.section("Objectifs de la formation")
            cursor.bullets(data.objectives)
            cursor.skip(10)

        if data.result:
            cursor.ensure_space(theme.breaks.section)
            cursor.section("Résultat de l'évaluation")
            cursor.paragraph(data.result, size=10, leading=20, bold=True)

        cursor.ensure_space(theme.breaks.closing_block)
        cursor.skip(20)
        place = city_from_address(branding.address) or MISSING_DATE
        cursor.page.draw_text(
            f"Fait à {place}, le {data.issue_date}", cursor.left, cursor.y, size=10,
        )
        cursor.skip(25)
        cursor.signature_box("Le responsable de l'organisme de formation")

        return self._finish(cursor, "attestation")

    def build_convocation(self, branding: BrandingOptions, data: ConvocationRecord) -> Document:
        """Convocation à la formation."""
        theme = self.theme
        learner = f"{data.learner_first_name} {data.learner_last_name}"
        doc = self._new_document(branding, f"Convocation — {learner}")
        cursor = PageCursor(doc, branding, "CONVOCATION À LA FORMATION")

        cursor.skip(10)
        cursor.page.draw_text(learner, cursor.left, cursor.y, size=12, bold=True)
        cursor.skip(25)
        cursor.page.draw_text(
            "Vous êtes convoqué(e) à la session de formation suivante :",
            cursor.left, cursor.y, size=10,
        )
        cursor.skip(25)

        cursor.label_value("Formation", f"{data.session_name} ({data.session_number})")
        cursor.label_value("Dates", f"Du {data.start_date} au {data.end_date}")
        if data.start_time:
            cursor.label_value("Horaires", f"{data.start_time} — {data.end_time or ''}")
        cursor.label_value("Lieu", data.location)
        if data.trainer_name:
            cursor.label_value("Formateur", data.trainer_name)
        cursor.skip(20)

        cursor.paragraph(
            "Merci de vous présenter 10 minutes avant le début de la formation.",
            color=theme.muted,
            leading=30,
        )
        cursor.page.draw_text(f"Fait le {data.issue_date}", cursor.left, cursor.y, size=10)

        return self._finish(cursor, "convocation")

    def build_attendance_sheet(
        self, branding: BrandingOptions, data: AttendanceSheetRecord,
    ) -> Document:
        """Feuille d'émargement on landscape A4.

        One row per learner and one signature column per time slot. Rows
        that do not fit continue on a new page; column headers are not
        repeated there.
        """
        theme = self.theme
        doc = self._new_document(branding, f"Émargement — {data.session_name} — {data.date}")
        cursor = PageCursor(doc, branding, "FEUILLE D'ÉMARGEMENT", size=theme.landscape)

        cursor.page.draw_text(
            f"Formation : {data.session_name} ({data.session_number})",
            cursor.left, cursor.y, size=9, bold=True,
        )
        cursor.skip(14)
        cursor.page.draw_text(f"Date : {data.date}", cursor.left, cursor.y, size=9)
        if data.trainer_name:
            cursor.page.draw_text(
                f"Formateur : {data.trainer_name}", cursor.left + 250, cursor.y, size=9,
            )
        cursor.skip(20)

        slot_width = self._slot_column_width(cursor.content_width, len(data.slots))
        table_width = ATTENDANCE_NAME_COLUMN + slot_width * max(len(data.slots), 2)

        self._render_attendance_header(cursor, data, slot_width, table_width)
        for index, learner in enumerate(data.learners):
            cursor.ensure_space(theme.breaks.attendance_row)
            self._render_attendance_row(
                cursor, f"{learner.last_name} {learner.first_name}",
                len(data.slots), slot_width, table_width, shaded=index % 2 == 0,
            )

        cursor.skip(20)
        cursor.ensure_space(theme.breaks.attendance_signature)
        cursor.signature_box("Signature du formateur :", height=45, bold=True)

        return self._finish(cursor, "attendance sheet")

    def build_programme(self, branding: BrandingOptions, data: ProgrammeRecord) -> Document:
        """Programme de formation (catalogue sheet)."""
        theme = self.theme
        breaks = theme.breaks
        doc = self._new_document(branding, f"Programme — {data.title}")
        cursor = PageCursor(doc, branding, "PROGRAMME DE FORMATION")

        cursor.paragraph(data.title, size=13, leading=18, bold=True)
        if data.subtitle:
            cursor.paragraph(data.subtitle, size=10, leading=14, color=theme.muted)
        cursor.skip(10)

        cursor.section("Informations générales")
        duration = " — ".join(part for part in (
            f"{format_number(data.duration_hours)}h" if data.duration_hours else None,
            f"{format_number(data.duration_days)} jour(s)" if data.duration_days else None,
        ) if part)
        if duration:
            cursor.label_value("Durée", duration)
        if data.modality:
            cursor.label_value("Modalité", data.modality)
        cursor.skip(8)

        for title, items in (
            ("Public visé", data.target_audience),
            ("Prérequis", data.prerequisites),
            ("Objectifs pédagogiques", data.objectives),
            ("Compétences visées", data.skills),
        ):
            if items:
                cursor.ensure_space(breaks.section)
                cursor.section(title)
                cursor.bullets(items)
                cursor.skip(8)

        if data.modules:
            cursor.ensure_space(breaks.section)
            cursor.section("Programme détaillé")
            for number, module in enumerate(data.modules, 1):
                self._render_programme_module(cursor, number, module)
            cursor.skip(5)

        if data.description:
            cursor.ensure_space(breaks.section)
            cursor.section("Description")
            for para in self._plain_paragraphs(data.description):
                cursor.paragraph(para, line_threshold=breaks.list_line)
                cursor.skip(4)
            cursor.skip(5)

        cursor.ensure_space(breaks.section)
        cursor.skip(15)
        cursor.page.draw_text(
            f"Document généré le {data.issue_date}",
            cursor.left, cursor.y, size=8, color=theme.muted,
        )

        return self._finish(cursor, "programme")

    # ------------------------------------------------------------------
    # SECTION RENDERERS
    # ------------------------------------------------------------------

    def _render_session_facts(self, cursor: PageCursor, data: ConventionRecord) -> None:
        cursor.label_value("Intitulé", data.session_name)
        cursor.label_value("Dates", f"Du {data.start_date} au {data.end_date}")
        cursor.label_value(
            "Durée",
            f"{format_number(data.duration_hours)}h "
            f"({format_number(data.duration_days)} jour(s))",
        )
        cursor.label_value("Modalité", data.modality)
        cursor.label_value("Lieu", data.location)
        if data.trainer_name:
            cursor.label_value("Formateur", data.trainer_name)

    def _render_learner_box(
        self, cursor: PageCursor, learner: str, birth_date: Optional[str],
    ) -> None:
        """Shaded box with the learner's name (and birth date)."""
        theme = self.theme
        top = cursor.y
        cursor.page.draw_rect(
            cursor.left, top - 70, cursor.content_width, 70,
            fill=theme.box_bg, stroke=theme.rule, line_width=0.5,
        )
        cursor.skip(18)
        cursor.page.draw_text(learner, cursor.left + 15, cursor.y, size=14, bold=True)
        cursor.skip(18)
        if birth_date:
            cursor.page.draw_text(
                f"Né(e) le {birth_date}", cursor.left + 15, cursor.y,
                size=9, color=theme.muted,
            )
            cursor.skip(15)
        cursor.skip(30)

    @staticmethod
    def _slot_column_width(content_width: float, slot_count: int) -> float:
        if slot_count == 0:
            return ATTENDANCE_SLOT_COLUMN
        return min(ATTENDANCE_SLOT_COLUMN, (content_width - ATTENDANCE_NAME_COLUMN) / slot_count)

    def _render_attendance_header(
        self, cursor: PageCursor, data: AttendanceSheetRecord,
        slot_width: float, table_width: float,
    ) -> None:
        theme = self.theme
        page, x, y = cursor.page, cursor.left, cursor.y
        page.draw_rect(x, y - ATTENDANCE_ROW_HEIGHT, table_width, ATTENDANCE_ROW_HEIGHT,
                       fill=theme.table_header_bg)
        page.draw_text("Nom / Prénom", x + 5, y - 18, size=8, bold=True)
        for index, slot in enumerate(data.slots):
            slot_x = x + ATTENDANCE_NAME_COLUMN + index * slot_width
            page.draw_text(slot.start, slot_x + 5, y - 12, size=7, bold=True)
            page.draw_text(slot.end, slot_x + 5, y - 22, size=7, color=theme.muted)
        cursor.skip(ATTENDANCE_ROW_HEIGHT)

    def _render_attendance_row(
        self, cursor: PageCursor, name: str, slot_count: int,
        slot_width: float, table_width: float, shaded: bool,
    ) -> None:
        theme = self.theme
        page, x = cursor.page, cursor.left
        row_y = cursor.y - ATTENDANCE_ROW_HEIGHT

        if shaded:
            page.draw_rect(x, row_y, table_width, ATTENDANCE_ROW_HEIGHT, fill=theme.zebra_bg)
        page.draw_text(name, x + 5, row_y + 10, size=8)
        for index in range(slot_count):
            page.draw_rect(
                x + ATTENDANCE_NAME_COLUMN + index * slot_width, row_y,
                slot_width, ATTENDANCE_ROW_HEIGHT, stroke=theme.rule,
            )
        page.draw_rect(x, row_y, ATTENDANCE_NAME_COLUMN, ATTENDANCE_ROW_HEIGHT, stroke=theme.rule)
        cursor.y = row_y

    def _render_programme_module(self, cursor: PageCursor, number: int, module) -> None:
        """Numbered module title followed by its stripped rich-text content."""
        breaks = self.theme.breaks
        cursor.ensure_space(breaks.section)

        title = f"{number}. {module.title}"
        if module.duration:
            title += f" ({module.duration})"
        cursor.paragraph(
            title, size=10, leading=14, bold=True,
            x=cursor.left + 5, width=cursor.content_width - 10,
        )

        if module.content:
            for para in self._plain_paragraphs(module.content):
                cursor.paragraph(
                    para, size=8, leading=11,
                    x=cursor.left + 15, width=cursor.content_width - 20,
                    line_threshold=breaks.list_line,
                )
        cursor.skip(6)

    # ------------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------------

    @staticmethod
    def _plain_paragraphs(html: str) -> list[str]:
        """Non-empty paragraphs of an editor HTML fragment."""
        return [line for line in strip_rich_text(html).split("\n") if line.strip()]

    def _new_document(self, branding: BrandingOptions, title: str) -> Document:
        return Document(self.theme, title=title, author=branding.org_name)

    @staticmethod
    def _finish(cursor: PageCursor, kind: str) -> Document:
        document = cursor.finish()
        logger.debug("Assembled %s: %d page(s)", kind, document.page_count)
        return document


__all__ = ["TrainingDocumentGenerator"]
