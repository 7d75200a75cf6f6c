"""
Lossless stream recompression for finished PDFs.

Generated or uploaded PDFs sometimes carry content streams stored without
any filter. This pass deflates those streams in place and leaves the rest
of the file alone:

- streams that already declare a /Filter are never touched
  (images, fonts, anything a signer may have hashed in encoded form)
- streams shorter than the size floor are not worth the filter entry
- a stream is only replaced when the deflated bytes are strictly smaller
- object numbers are preserved; the document is written back without
  garbage collection, renumbering or a new file ID

Two entry points:
    recompress_streams(data) -> CompressionOutcome   # explicit result
    compress_pdf(data) -> bytes                      # never raises

`compress_pdf` is the fail-safe boundary used by the API: whatever goes
wrong, the caller gets bytes back, the original ones at worst.
"""

import logging
import zlib
from dataclasses import dataclass
from typing import Optional

import pymupdf

from app.config import settings

logger = logging.getLogger(__name__)

# Cross-reference and object streams are part of the file structure; MuPDF
# rebuilds them on save.
STRUCTURAL_STREAM_TYPES = ("/XRef", "/ObjStm")


@dataclass
class CompressionOutcome:
    """Result of one recompression attempt.

    `data` is None when nothing was rewritten (including on error), in
    which case the input bytes are the answer.
    """
    data: Optional[bytes] = None
    streams_compressed: int = 0
    bytes_saved: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def changed(self) -> bool:
        return self.data is not None


def _is_candidate(doc: pymupdf.Document, xref: int) -> bool:
    """An unfiltered, non-structural stream object."""
    if not doc.xref_is_stream(xref):
        return False
    filter_type, _ = doc.xref_get_key(xref, "Filter")
    if filter_type != "null":
        return False
    _, object_type = doc.xref_get_key(xref, "Type")
    return object_type not in STRUCTURAL_STREAM_TYPES


def recompress_streams(
    pdf_bytes: bytes,
    min_stream_bytes: Optional[int] = None,
    level: Optional[int] = None,
) -> CompressionOutcome:
    """Deflate every eligible unfiltered stream of `pdf_bytes`.

    Args:
        pdf_bytes: A complete PDF file.
        min_stream_bytes: Streams shorter than this are skipped.
            Defaults to COMPRESSION_MIN_STREAM_BYTES.
        level: zlib level. Defaults to COMPRESSION_LEVEL.

    Returns:
        CompressionOutcome. Refused inputs (not a PDF, encrypted, damaged
        enough that MuPDF had to repair it) come back with `error` set and
        no data.
    """
    if min_stream_bytes is None:
        min_stream_bytes = settings.COMPRESSION_MIN_STREAM_BYTES
    if level is None:
        level = settings.COMPRESSION_LEVEL

    if not pdf_bytes:
        return CompressionOutcome(error="empty input")

    try:
        doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
    except (pymupdf.FileDataError, RuntimeError, ValueError) as e:
        return CompressionOutcome(error=f"not a readable PDF: {e}")

    with doc:
        if not doc.is_pdf:
            return CompressionOutcome(error="not a PDF document")
        if doc.needs_pass or doc.is_encrypted:
            return CompressionOutcome(error="encrypted PDF")
        if doc.is_repaired:
            # Saving a repaired file would rewrite its whole structure.
            return CompressionOutcome(error="PDF needed repair on open")

        compressed_count = 0
        saved = 0
        skipped_small = 0

        for xref in range(1, doc.xref_length()):
            if not _is_candidate(doc, xref):
                continue

            raw = doc.xref_stream_raw(xref)
            if raw is None or len(raw) < min_stream_bytes:
                skipped_small += 1
                continue

            deflated = zlib.compress(raw, level)
            if len(deflated) >= len(raw):
                continue

            # compress=False stores the bytes as given and drops /Filter,
            # so the filter entry is set afterwards.
            doc.update_stream(xref, deflated, compress=False)
            doc.xref_set_key(xref, "Filter", "/FlateDecode")
            compressed_count += 1
            saved += len(raw) - len(deflated)

        logger.debug(
            "Recompression: %d stream(s) deflated, %d below %d bytes",
            compressed_count, skipped_small, min_stream_bytes,
        )

        if not compressed_count:
            return CompressionOutcome()

        output = doc.tobytes(garbage=0, clean=False, deflate=False, no_new_id=True)

    return CompressionOutcome(
        data=output,
        streams_compressed=compressed_count,
        bytes_saved=saved,
    )


def compress_pdf(pdf_bytes: bytes) -> bytes:
    """Recompress `pdf_bytes`, or return them unchanged.

    Never raises: refusals and unexpected failures are logged and the
    original bytes are returned.
    """
    try:
        outcome = recompress_streams(pdf_bytes)
    except Exception as e:
        logger.warning("PDF recompression failed, keeping original: %s", e)
        return pdf_bytes

    if not outcome.ok:
        logger.warning("PDF recompression skipped: %s", outcome.error)
        return pdf_bytes
    if not outcome.changed:
        return pdf_bytes

    logger.info(
        "PDF recompressed: %d stream(s), %d -> %d bytes",
        outcome.streams_compressed, len(pdf_bytes), len(outcome.data),
    )
    return outcome.data
