"""
Document generation API endpoints.

One endpoint per document kind, plus the recompression pass:
1. POST /documents/convention — Convention de formation
2. POST /documents/attestation — Attestation de fin de formation
3. POST /documents/convocation — Convocation
4. POST /documents/attendance-sheet — Feuille d'émargement (landscape)
5. POST /documents/quote — Devis
6. POST /documents/invoice — Facture
7. POST /documents/subcontract — Contrat de sous-traitance
8. POST /documents/programme — Programme de formation
9. POST /documents/compress — Recompress an existing PDF

Generation endpoints take `{"branding": {...}, "record": {...}}` and
answer with the PDF as an attachment. Nothing is stored: the caller owns
the records and keeps the files. `?compress=true` runs the recompression
pass on the result before it is sent.
"""

import logging
import re
from typing import Callable

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from app.config import settings
from app.schemas.documents import (
    AttendanceSheetRecord,
    AttestationRecord,
    ConventionRecord,
    ConvocationRecord,
    DocumentRequest,
    InvoiceRecord,
    ProgrammeRecord,
    QuoteRecord,
    SubcontractRecord,
)
from app.services.billing_pdf import BillingDocumentGenerator
from app.services.contract_pdf import ContractDocumentGenerator
from app.services.drawing import Document, DocumentGenerationError
from app.services.pdf_compression import compress_pdf
from app.services.training_pdf import TrainingDocumentGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/documents", tags=["documents"])

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _filename(*parts: str) -> str:
    """ASCII-only attachment name, e.g. ("facture", "F-2025/001") -> facture_F-2025_001.pdf"""
    stem = "_".join(_UNSAFE_FILENAME_CHARS.sub("_", part).strip("_") for part in parts if part)
    return f"{stem or 'document'}.pdf"


def _pdf_response(build: Callable[[], Document], filename: str, compress: bool) -> Response:
    """Assemble, serialize and (optionally) recompress one document."""
    try:
        pdf_bytes = build().to_bytes()
    except DocumentGenerationError as e:
        logger.error("Document generation failed for %s: %s", filename, e)
        raise HTTPException(status_code=500, detail=f"PDF generation failed: {e}")

    if compress:
        pdf_bytes = compress_pdf(pdf_bytes)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# --- Training documents ---

@router.post("/convention")
async def generate_convention(body: DocumentRequest[ConventionRecord], compress: bool = False):
    record = body.record
    generator = TrainingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_convention(body.branding, record),
        _filename("convention", record.session_number),
        compress,
    )


@router.post("/attestation")
async def generate_attestation(body: DocumentRequest[AttestationRecord], compress: bool = False):
    record = body.record
    generator = TrainingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_attestation(body.branding, record),
        _filename("attestation", record.learner_last_name, record.learner_first_name),
        compress,
    )


@router.post("/convocation")
async def generate_convocation(body: DocumentRequest[ConvocationRecord], compress: bool = False):
    record = body.record
    generator = TrainingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_convocation(body.branding, record),
        _filename("convocation", record.learner_last_name, record.learner_first_name),
        compress,
    )


@router.post("/attendance-sheet")
async def generate_attendance_sheet(
    body: DocumentRequest[AttendanceSheetRecord], compress: bool = False,
):
    """Feuille d'émargement for one day of a session."""
    record = body.record
    generator = TrainingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_attendance_sheet(body.branding, record),
        _filename("emargement", record.session_number, record.date),
        compress,
    )


@router.post("/programme")
async def generate_programme(body: DocumentRequest[ProgrammeRecord], compress: bool = False):
    record = body.record
    generator = TrainingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_programme(body.branding, record),
        _filename("programme", record.title),
        compress,
    )


# --- Billing documents ---

@router.post("/quote")
async def generate_quote(body: DocumentRequest[QuoteRecord], compress: bool = False):
    record = body.record
    generator = BillingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_quote(body.branding, record),
        _filename("devis", record.number),
        compress,
    )


@router.post("/invoice")
async def generate_invoice(body: DocumentRequest[InvoiceRecord], compress: bool = False):
    record = body.record
    generator = BillingDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_invoice(body.branding, record),
        _filename("facture", record.number),
        compress,
    )


# --- Contracts ---

@router.post("/subcontract")
async def generate_subcontract(body: DocumentRequest[SubcontractRecord], compress: bool = False):
    record = body.record
    generator = ContractDocumentGenerator()
    return _pdf_response(
        lambda: generator.build_subcontract(body.branding, record),
        _filename("contrat_sous_traitance", record.trainer_last_name, record.session_number),
        compress,
    )


# --- Recompression ---

@router.post("/compress")
async def compress_document(request: Request):
    """Recompress an uploaded PDF (raw request body).

    Unreadable, encrypted or already-compact files come back unchanged;
    the size headers tell the caller whether anything was gained.
    """
    pdf_bytes = await request.body()
    if not pdf_bytes:
        raise HTTPException(status_code=400, detail="Request body is empty")
    if len(pdf_bytes) > settings.COMPRESS_MAX_INPUT_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"PDF exceeds {settings.COMPRESS_MAX_INPUT_BYTES} bytes",
        )

    result = compress_pdf(pdf_bytes)
    return Response(
        content=result,
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'attachment; filename="compressed.pdf"',
            "X-Original-Size": str(len(pdf_bytes)),
            "X-Compressed-Size": str(len(result)),
        },
    )
