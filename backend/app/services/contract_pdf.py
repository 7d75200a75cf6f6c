"""
PDF generator for the subcontracting agreement (contrat de sous-traitance)
signed with a freelance trainer.

Articles, in order: parties, object of the service, trainer obligations,
financial terms, general provisions, then the two-column signatures.
"""

import logging
from typing import Optional

from app.schemas.branding import BrandingOptions
from app.schemas.documents import SubcontractRecord
from app.services.drawing import Document
from app.services.formatting import format_amount, format_number
from app.services.page_template import PageCursor
from app.services.theme import Theme, default_theme

logger = logging.getLogger(__name__)

BASE_OBLIGATIONS = (
    "Dispenser la formation conformément au programme convenu.",
    "Respecter le règlement intérieur de l'organisme de formation.",
    "Assurer le suivi pédagogique des stagiaires (émargement, évaluations).",
    "Remettre les documents pédagogiques nécessaires.",
)

PAYMENT_TERMS = (
    "Le règlement sera effectué par virement bancaire dans un délai de 30 jours "
    "après réception de la facture du Sous-traitant."
)

GENERAL_PROVISIONS = (
    "Le présent contrat est régi par le droit français. En cas de litige, les "
    "parties s'engagent à rechercher une solution amiable avant toute action "
    "judiciaire."
)


def trainer_obligations(trainer_nda: Optional[str]) -> list[str]:
    """The fixed obligations list; the last item cites the trainer's NDA when known."""
    declaration = "Justifier d'une déclaration d'activité en cours de validité"
    if trainer_nda:
        declaration += f" (NDA : {trainer_nda})"
    return [*BASE_OBLIGATIONS, declaration + "."]


def _identity(name: str, siret: Optional[str], nda: Optional[str],
              address: Optional[str] = None) -> str:
    parts = [name]
    if siret:
        parts.append(f"SIRET {siret}")
    if nda:
        parts.append(f"NDA {nda}")
    if address:
        parts.append(address)
    return ", ".join(parts)


class ContractDocumentGenerator:
    """Builds subcontracting agreements."""

    def __init__(self, theme: Optional[Theme] = None):
        self.theme = theme or default_theme()

    def build_subcontract(self, branding: BrandingOptions, data: SubcontractRecord) -> Document:
        theme = self.theme
        breaks = theme.breaks
        doc = Document(theme, title=f"Contrat — {data.trainer_full_name}", author=branding.org_name)
        cursor = PageCursor(doc, branding, "CONTRAT DE SOUS-TRAITANCE")

        cursor.section("Article 1 — Parties")
        org = _identity(branding.org_name, branding.siret, branding.nda)
        cursor.paragraph(f"Entre {org}, ci-après « l'Organisme de Formation »,")
        cursor.skip(3)
        trainer = _identity(data.trainer_full_name, data.trainer_siret,
                            data.trainer_nda, data.trainer_address)
        cursor.paragraph(f"Et {trainer}, ci-après « le Sous-traitant »,")
        cursor.skip(10)

        cursor.section("Article 2 — Objet de la prestation")
        cursor.paragraph(
            "Le Sous-traitant s'engage à réaliser, pour le compte de l'Organisme "
            "de Formation, la prestation de formation suivante :"
        )
        cursor.skip(5)
        cursor.label_value("Intitulé", f"{data.session_name} ({data.session_number})")
        cursor.label_value("Dates", f"Du {data.start_date} au {data.end_date}")
        cursor.label_value(
            "Durée",
            f"{format_number(data.duration_hours)}h ({format_number(data.duration_days)} jour(s))",
        )
        cursor.label_value("Modalité", data.modality)
        cursor.label_value("Lieu", data.location)
        cursor.skip(5)

        if data.objectives:
            cursor.ensure_space(breaks.section)
            cursor.section("Objectifs pédagogiques")
            cursor.bullets(data.objectives, marker="-")
            cursor.skip(5)

        cursor.ensure_space(breaks.subcontract_obligations)
        cursor.section("Article 3 — Obligations du Sous-traitant")
        cursor.bullets(trainer_obligations(data.trainer_nda), marker="-")
        cursor.skip(10)

        cursor.section("Article 4 — Dispositions financières")
        cursor.label_value("Tarif journalier HT", format_amount(data.daily_rate, theme))
        cursor.label_value("Nombre de jours", format_number(data.days))
        cursor.label_value("Montant total HT", format_amount(data.amount_excl_tax, theme))
        if data.tax_rate == 0:
            vat = theme.vat_exemption_notice
        else:
            vat = f"{format_amount(data.tax_amount, theme)} ({format_number(data.tax_rate)}%)"
        cursor.label_value("TVA", vat)
        cursor.label_value("Montant total TTC", format_amount(data.amount_incl_tax, theme))
        cursor.skip(5)
        cursor.paragraph(PAYMENT_TERMS)
        cursor.skip(10)

        cursor.ensure_space(breaks.closing_block)
        cursor.section("Article 5 — Dispositions générales")
        cursor.paragraph(GENERAL_PROVISIONS)
        cursor.skip(15)

        cursor.page.draw_text(f"Fait le {data.issue_date}", cursor.left, cursor.y, size=10)
        cursor.skip(25)

        cursor.ensure_space(breaks.closing_block)
        cursor.section("Signatures")
        cursor.skip(5)
        cursor.signature_columns(
            ("L'Organisme de Formation", branding.org_name),
            ("Le Sous-traitant", data.trainer_full_name),
        )

        document = cursor.finish()
        logger.debug("Assembled subcontract: %d page(s)", document.page_count)
        return document
