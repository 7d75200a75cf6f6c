"""
Test fixtures shared across the document and API tests.

Architecture:
- Generators are exercised directly: every `build_*` call returns an
  in-memory `Document` whose pages can be inspected (text runs, page
  sizes) without parsing PDF bytes.
- When the bytes matter (compression, API responses) they are read back
  with PyMuPDF, the same library the recompression pass uses.
- The HTTP test client uses the real FastAPI app over ASGITransport;
  nothing is stored, so there is no database to set up.
- `raw_pdf` builds minimal hand-written PDFs with exact xref offsets, so
  the compression tests control precisely which streams are filtered.
"""

import zlib

import pymupdf
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.schemas.branding import BrandingOptions
from app.schemas.documents import (
    AttendanceSheetRecord,
    ConventionRecord,
    InvoiceRecord,
    LineItem,
    Person,
    ProgrammeModule,
    ProgrammeRecord,
    QuoteRecord,
    SubcontractRecord,
    TimeSlot,
)
from app.services.theme import Theme


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client against the real FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def theme():
    """Stock theme: Helvetica faces, default palette and thresholds."""
    return Theme()


# --- Records ---

@pytest.fixture
def branding():
    return BrandingOptions(
        org_name="C&CO Formation",
        siret="123 456 789 00012",
        nda="11 75 12345 75",
        address="12 rue des Lilas, 75011 Paris",
        email="contact@cco-formation.fr",
        phone="01 23 45 67 89",
    )


@pytest.fixture
def convention_record():
    return ConventionRecord(
        session_name="Management d'équipe",
        session_number="S-2025-014",
        start_date="03/03/2025",
        end_date="04/03/2025",
        duration_hours=14,
        duration_days=2,
        location="Paris",
        modality="Présentiel",
        company_name="ACME Industries",
        company_siret="987 654 321 00034",
        company_address="5 avenue de la Gare, 69002 Lyon",
        company_representative="Jean Martin",
        trainer_name="Sophie Bernard",
        learners=[Person(first_name="Marie", last_name="Dupont")],
        price_excl_tax=1400,
        tax_amount=280,
        price_incl_tax=1680,
    )


def make_line(index: int) -> LineItem:
    return LineItem(
        designation=f"Module {index} — Accompagnement individuel et collectif",
        description="Séance animée par un formateur certifié, supports remis aux stagiaires.",
        quantity=1,
        unit_price=350,
        tax_rate=20,
        amount=350,
    )


@pytest.fixture
def invoice_factory():
    """Build an invoice with `count` typical line items."""
    def build(count: int = 3, **overrides) -> InvoiceRecord:
        lines = [make_line(i) for i in range(1, count + 1)]
        total = 350.0 * count
        fields = dict(
            number="F-2025-001",
            issue_date="14/03/2025",
            due_date="13/04/2025",
            company_name="ACME Industries",
            lines=lines,
            total_excl_tax=total,
            total_tax=total * 0.2,
            total_incl_tax=total * 1.2,
        )
        fields.update(overrides)
        return InvoiceRecord(**fields)
    return build


@pytest.fixture
def quote_record():
    return QuoteRecord(
        number="D-2025-007",
        issue_date="01/02/2025",
        due_date="03/03/2025",
        subject="Formation Management d'équipe pour 4 collaborateurs",
        individual_name="Paul Leroy",
        individual_email="paul.leroy@example.com",
        lines=[make_line(1), make_line(2)],
        total_excl_tax=700,
        total_tax=140,
        total_incl_tax=840,
        conditions="Acompte de 30 % à la commande.",
    )


@pytest.fixture
def attendance_factory():
    def build(learners: int = 4, slots: int = 2) -> AttendanceSheetRecord:
        return AttendanceSheetRecord(
            session_name="Management d'équipe",
            session_number="S-2025-014",
            date="03/03/2025",
            slots=[TimeSlot(start=f"{9 + 4 * i}:00", end=f"{12 + 4 * i}:00") for i in range(slots)],
            learners=[Person(first_name=f"Prénom{i}", last_name=f"Nom{i}") for i in range(learners)],
            trainer_name="Sophie Bernard",
        )
    return build


@pytest.fixture
def programme_factory():
    def build(modules: int = 2) -> ProgrammeRecord:
        return ProgrammeRecord(
            title="Management d'équipe",
            subtitle="Piloter et motiver une équipe au quotidien",
            description="<p>Une formation <strong>pratique</strong>.</p><p>Cas réels &amp; mises en situation.</p>",
            duration_hours=14,
            duration_days=2,
            modality="Présentiel",
            target_audience=["Managers de proximité"],
            prerequisites=["Aucun"],
            objectives=["Adapter son style de management", "Conduire un entretien annuel"],
            skills=["Communication", "Délégation"],
            modules=[
                ProgrammeModule(
                    title=f"Module {i}",
                    duration="3h30",
                    content="<ul><li>Accueil</li><li>Tour de table</li></ul><p>Exercices&nbsp;pratiques</p>",
                )
                for i in range(1, modules + 1)
            ],
            issue_date="14/03/2025",
        )
    return build


@pytest.fixture
def subcontract_record():
    return SubcontractRecord(
        trainer_first_name="Sophie",
        trainer_last_name="Bernard",
        trainer_siret="111 222 333 00044",
        trainer_nda="11 75 99999 75",
        trainer_address="8 place du Marché, 33000 Bordeaux",
        session_name="Management d'équipe",
        session_number="S-2025-014",
        start_date="03/03/2025",
        end_date="04/03/2025",
        duration_hours=14,
        duration_days=2,
        location="Paris",
        modality="Présentiel",
        daily_rate=600,
        tax_rate=0,
        days=2,
        amount_excl_tax=1200,
        tax_amount=0,
        amount_incl_tax=1200,
        objectives=["Adapter son style de management"],
        issue_date="14/02/2025",
    )


# --- PDF helpers ---

@pytest.fixture
def pdf_text():
    """Extract the text of every page of a PDF byte string."""
    def extract(pdf_bytes: bytes) -> list[str]:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:
            return [page.get_text() for page in doc]
    return extract


def _stream_object(data: bytes, extra: str = "") -> bytes:
    header = f"<< /Length {len(data)}{extra} >>\nstream\n".encode("latin-1")
    return header + data + b"\nendstream"


def build_raw_pdf(content: bytes, extra_streams: tuple = (), extra_objects: tuple = (),
                  catalog_entries: bytes = b"", page_entries: bytes = b"") -> bytes:
    """A one-page PDF whose page content stream is object 4, stored unfiltered.

    `extra_streams` are (data, filtered) pairs appended as objects 6, 7, ...;
    filtered ones are deflated and declare /FlateDecode. `extra_objects` are
    raw object bodies numbered after them. `catalog_entries` and
    `page_entries` are spliced into the catalog and page dictionaries.
    """
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R " + catalog_entries + b" >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> " + page_entries + b" >>",
        _stream_object(content),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for data, filtered in extra_streams:
        if filtered:
            objects.append(_stream_object(zlib.compress(data), " /Filter /FlateDecode"))
        else:
            objects.append(_stream_object(data))
    objects.extend(extra_objects)

    out = bytearray(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode("latin-1") + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode("latin-1")
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode("latin-1")
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode("latin-1")
    return bytes(out)


@pytest.fixture
def raw_pdf():
    return build_raw_pdf
