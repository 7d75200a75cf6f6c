"""
Tests for quotes and invoices: line-item table, totals, exemption wording
and the record validation done before any rendering.
"""

import pytest
from pydantic import ValidationError

from app.schemas.documents import AttendingParticipant, InvoiceRecord, LineItem, QuoteRecord
from app.services.billing_pdf import ACCEPTANCE_CAPTION, BillingDocumentGenerator
from app.services.drawing import RectOp
from app.services.page_template import FOOTER_RULE_Y, footer_line


@pytest.fixture
def generator(theme):
    return BillingDocumentGenerator(theme=theme)


def all_texts(document):
    return [text for page in document.pages for text in page.texts()]


def page_of(document, predicate):
    """Indexes of the pages holding a text run matching `predicate`."""
    return [i for i, page in enumerate(document.pages) if any(predicate(t) for t in page.texts())]


# --- Invoice ---

def test_long_invoice_totals_once_after_all_items(generator, branding, invoice_factory):
    document = generator.build_invoice(branding, invoice_factory(count=40))
    texts = all_texts(document)

    assert document.page_count > 1
    for label in ("Total HT :", "TVA :", "Total TTC :"):
        assert texts.count(label) == 1

    totals_pages = page_of(document, lambda t: t == "Total HT :")
    last_item_pages = page_of(document, lambda t: t.startswith("Module 40 "))
    assert totals_pages == [document.page_count - 1]
    assert last_item_pages[-1] <= totals_pages[0]

    if last_item_pages[-1] == totals_pages[0]:
        last = document.pages[-1].texts()
        last_item = max(i for i, t in enumerate(last) if t.startswith("Module 40 "))
        assert last.index("Total HT :") > last_item


def test_invoice_table_headers_not_repeated(generator, branding, invoice_factory):
    document = generator.build_invoice(branding, invoice_factory(count=40))
    assert all_texts(document).count("Désignation") == 1
    assert all(footer_line(branding) in page.texts() for page in document.pages)
    for page in document.pages:
        for op in page.text_ops():
            assert op.y >= 35


def assert_clear_of_footer(document, branding):
    """Only the footer line may be drawn at or below the footer rule."""
    footer = footer_line(branding)
    for page in document.pages:
        for op in page.text_ops():
            assert op.y >= 35
            if op.text != footer:
                assert op.y > FOOTER_RULE_Y


def test_long_legal_mentions_continue_on_next_page(generator, branding, invoice_factory):
    record = invoice_factory(legal_mentions="Pénalités de retard applicables. " * 200)
    document = generator.build_invoice(branding, record)
    assert document.page_count > 1
    assert_clear_of_footer(document, branding)


def test_long_bank_details_and_conditions_continue_on_next_page(generator, branding, invoice_factory):
    record = invoice_factory(
        conditions="Paiement à réception de facture. " * 150,
        bank_details="IBAN FR76 1234 5678 9012 3456 7890 123 " * 60,
    )
    document = generator.build_invoice(branding, record)
    assert document.page_count > 1
    assert_clear_of_footer(document, branding)


def test_very_long_designation_spans_pages(generator, branding, invoice_factory):
    line = LineItem(designation="Accompagnement " * 400, quantity=1,
                    unit_price=350, tax_rate=20, amount=350)
    record = invoice_factory(lines=[line], total_excl_tax=350, total_tax=70, total_incl_tax=420)
    document = generator.build_invoice(branding, record)

    assert document.page_count > 1
    assert_clear_of_footer(document, branding)
    texts = all_texts(document)
    assert texts.count("Total TTC :") == 1
    assert page_of(document, lambda t: t.startswith("Accompagnement"))[-1] <= \
        page_of(document, lambda t: t == "Total TTC :")[0]


@pytest.mark.parametrize("filler", range(10, 22))
def test_tall_row_stays_on_one_page(generator, branding, invoice_factory, filler):
    rows = list(invoice_factory(count=filler).lines)
    tall = LineItem(designation="Module final " * 60, description="Support remis.",
                    quantity=1, unit_price=350, tax_rate=20, amount=350)
    record = invoice_factory(lines=rows + [tall])
    document = generator.build_invoice(branding, record)

    assert_clear_of_footer(document, branding)
    assert len(page_of(document, lambda t: "final" in t)) == 1


@pytest.mark.parametrize("participants", range(1, 60))
def test_table_header_never_lands_on_footer(generator, branding, invoice_factory, participants):
    record = invoice_factory(
        count=2,
        participants=[AttendingParticipant(first_name=f"Prénom{i}", last_name=f"Nom{i}")
                      for i in range(participants)],
    )
    document = generator.build_invoice(branding, record)

    header_pages = page_of(document, lambda t: t == "Désignation")
    assert len(header_pages) == 1
    header = next(op for op in document.pages[header_pages[0]].text_ops() if op.text == "Désignation")
    assert header.y > FOOTER_RULE_Y
    # The first row follows its header on the same page.
    assert header_pages == page_of(document, lambda t: t.startswith("Module 1 "))
    assert_clear_of_footer(document, branding)


def test_invoice_page_count_grows_with_lines(generator, branding, invoice_factory):
    counts = [generator.build_invoice(branding, invoice_factory(count=n)).page_count
              for n in (1, 10, 40, 80)]
    assert counts == sorted(counts)


def test_zero_rate_invoice_prints_exemption(generator, branding, invoice_factory, theme):
    lines = [
        LineItem(designation="Formation intra", quantity=2, unit_price=600, tax_rate=0, amount=1200),
    ]
    record = invoice_factory(lines=lines, total_excl_tax=1200, total_tax=0, total_incl_tax=1200)
    texts = all_texts(generator.build_invoice(branding, record))

    assert theme.vat_exemption_notice in texts
    assert "Exonéré" in texts
    assert "0.00 €" not in texts
    assert "0%" not in texts


def test_exempt_flag_wins_over_tax_amount(generator, branding, invoice_factory, theme):
    record = invoice_factory(vat_exempt=True)
    texts = all_texts(generator.build_invoice(branding, record))
    assert theme.vat_exemption_notice in texts


def test_taxed_invoice_prints_amounts(generator, branding, invoice_factory):
    texts = all_texts(generator.build_invoice(branding, invoice_factory(count=2)))
    assert "350.00 €" in texts
    assert "20%" in texts
    assert "700.00 €" in texts
    assert "140.00 €" in texts
    assert "840.00 €" in texts


def test_quantities_print_without_trailing_zero(generator, branding, invoice_factory):
    lines = [
        LineItem(designation="Demi-journée", quantity=1.5, unit_price=300, tax_rate=5.5, amount=450),
        LineItem(designation="Journée", quantity=2.0, unit_price=600, tax_rate=20, amount=1200),
    ]
    record = invoice_factory(lines=lines, total_excl_tax=1650, total_tax=264.75, total_incl_tax=1914.75)
    texts = all_texts(generator.build_invoice(branding, record))
    assert "1.5" in texts
    assert "2" in texts
    assert "5.5%" in texts


def test_description_capped_at_two_lines(generator, branding, invoice_factory, theme):
    line = LineItem(
        designation="Formation",
        description="détail " * 200,
        quantity=1, unit_price=100, tax_rate=20, amount=100,
    )
    record = invoice_factory(lines=[line], total_excl_tax=100, total_tax=20, total_incl_tax=120)
    page = generator.build_invoice(branding, record).pages[0]
    description_runs = [op for op in page.text_ops() if op.size == 7 and op.text.startswith("détail")]
    assert len(description_runs) == 2


def test_invoice_training_and_participants(generator, branding, invoice_factory):
    record = invoice_factory(
        training_name="Management d'équipe",
        training_dates="Du 03/03/2025 au 04/03/2025",
        training_location="Paris",
        expected_participants=2,
        participants=[
            AttendingParticipant(first_name="Marie", last_name="Dupont",
                                 presence_dates=["2025-03-03", "2025-03-04"]),
            AttendingParticipant(first_name="Paul", last_name="Leroy"),
        ],
        conditions="Paiement à 30 jours.",
        bank_details="IBAN FR76 1234 5678 9012 3456 7890 123",
        legal_mentions="Pénalités de retard : trois fois le taux d'intérêt légal.",
    )
    texts = all_texts(generator.build_invoice(branding, record))

    assert "Formation" in texts
    assert "Participants prévus :" in texts
    assert "Participants présents (2)" in texts
    assert "• DUPONT Marie — 03/03/2025, 04/03/2025" in texts
    assert "• LEROY Paul" in texts
    assert "Conditions de paiement" in texts
    assert "Coordonnées bancaires" in texts
    assert texts.index("Total TTC :") < texts.index("Conditions de paiement")


def test_invoice_requires_line_items(invoice_factory):
    with pytest.raises(ValidationError):
        invoice_factory(lines=[])


# --- Quote ---

def test_quote_for_individual(generator, branding, quote_record):
    document = generator.build_quote(branding, quote_record)
    texts = all_texts(document)

    assert "DEVIS D-2025-007" in texts
    assert "Nom :" in texts
    assert "Paul Leroy" in texts
    assert "Entreprise :" not in texts
    assert "Conditions" in texts
    assert ACCEPTANCE_CAPTION in document.pages[-1].texts()

    boxes = [op for op in document.pages[-1].operations
             if isinstance(op, RectOp) and op.width == 250 and op.height == 60]
    assert len(boxes) == 1


def test_quote_for_company(generator, branding, quote_record):
    record = quote_record.model_copy(update={"company_name": "ACME Industries", "contact_name": "Jean Martin"})
    texts = all_texts(generator.build_quote(branding, record))
    assert "Entreprise :" in texts
    assert "Contact :" in texts
    assert "Nom :" not in texts


def test_long_quote_text_blocks_continue_on_next_page(generator, branding, quote_record):
    record = quote_record.model_copy(update={
        "subject": "Formation sur mesure pour les équipes commerciales. " * 40,
        "conditions": "Acompte de 30 % à la commande, solde à réception. " * 200,
        "legal_mentions": "Pénalités de retard applicables. " * 200,
    })
    document = generator.build_quote(branding, record)

    assert document.page_count > 2
    assert_clear_of_footer(document, branding)
    assert ACCEPTANCE_CAPTION in document.pages[-1].texts()


def test_quote_requires_line_items(quote_record):
    fields = quote_record.model_dump()
    fields["lines"] = []
    with pytest.raises(ValidationError):
        QuoteRecord(**fields)


def test_quote_requires_a_recipient(quote_record):
    fields = quote_record.model_dump()
    fields["individual_name"] = None
    with pytest.raises(ValidationError):
        QuoteRecord(**fields)


def test_records_are_immutable(invoice_factory):
    record = invoice_factory()
    assert isinstance(record, InvoiceRecord)
    with pytest.raises(ValidationError):
        record.number = "F-2"
