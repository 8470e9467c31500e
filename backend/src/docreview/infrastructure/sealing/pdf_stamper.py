"""PDF sealing adapter.

Stamps the last page of an approved PDF with a verification box naming both
reviewers and carrying a unique verification code, then stores the stamped
copy next to the original as ``<name>_VERIFIED.pdf``.

Stamp layout (PDF points, bottom-right corner of the last page):

    +----------------------------------+
    | VERIFIED                         |
    |----------------------------------|
    | Jr. Reviewer: <name>             |
    | CO: <name>                       |
    | Date: <Month D, YYYY>            |
    | Code: DRV-XXXX-...               |
    +----------------------------------+
"""

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

import pymupdf

from ...domain.documents.ports.object_storage_port import ObjectStoragePort
from ...domain.sealing.ports import (
    ReviewerNames,
    SealedDocument,
    SealingError,
    SealingPort,
)

logger = logging.getLogger(__name__)

STAMP_WIDTH = 220
STAMP_HEIGHT = 90
STAMP_MARGIN = 20

FILL_COLOR = (0.9, 0.95, 0.9)
BORDER_COLOR = (0.1, 0.5, 0.2)
TEXT_COLOR = (0.1, 0.1, 0.1)
BORDER_WIDTH = 3

CODE_PREFIX = "DRV"
_BASE36_ALPHABET = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_verification_code(application_id: str, now_ms: Optional[int] = None) -> str:
    """Build a verification code: DRV-{ID4}-{base36 epoch ms}-{6 random chars}.

    Example:
        >>> generate_verification_code("abcd1234-...", now_ms=0)[:11]
        'DRV-ABCD-0-'
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(6))
    return f"{CODE_PREFIX}-{application_id[:4].upper()}-{_to_base36(now_ms)}-{random_part}"


def sealed_key_for(document_key: str) -> str:
    """Key of the sealed copy: the original key with .pdf replaced by _VERIFIED.pdf."""
    lower = document_key.lower()
    if lower.endswith(".pdf"):
        return f"{document_key[:-4]}_VERIFIED.pdf"
    return f"{document_key}_VERIFIED.pdf"


def stamp_pdf(
    pdf_bytes: bytes,
    reviewers: ReviewerNames,
    verification_code: str,
    signed_at: datetime,
) -> bytes:
    """Draw the verification stamp on the last page and return the new PDF.

    Raises:
        SealingError: If the input is not a readable PDF or has no pages
    """
    try:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:
            if doc.page_count == 0:
                raise SealingError("PDF has no pages")

            page = doc[doc.page_count - 1]
            rect = page.rect
            # PyMuPDF uses a top-left origin
            box = pymupdf.Rect(
                rect.width - STAMP_WIDTH - STAMP_MARGIN,
                rect.height - STAMP_HEIGHT - STAMP_MARGIN,
                rect.width - STAMP_MARGIN,
                rect.height - STAMP_MARGIN,
            )
            page.draw_rect(box, color=BORDER_COLOR, fill=FILL_COLOR, width=BORDER_WIDTH)

            left = box.x0 + 10
            page.insert_text(
                (left, box.y0 + 20), "VERIFIED",
                fontsize=16, fontname="hebo", color=BORDER_COLOR,
            )
            page.draw_line(
                (left, box.y0 + 26), (box.x1 - 10, box.y0 + 26),
                color=BORDER_COLOR, width=1,
            )

            lines = [
                f"Jr. Reviewer: {reviewers.junior_reviewer_name}",
                f"CO: {reviewers.compliance_officer_name}",
                f"Date: {signed_at.strftime('%B')} {signed_at.day}, {signed_at.year}",
            ]
            y = box.y0 + 40
            for line in lines:
                page.insert_text((left, y), line, fontsize=9, fontname="helv", color=TEXT_COLOR)
                y += 13
            page.insert_text(
                (left, y), f"Code: {verification_code}",
                fontsize=7, fontname="cour", color=TEXT_COLOR,
            )

            return doc.tobytes(garbage=3, deflate=True)
    except SealingError:
        raise
    except Exception as exc:
        raise SealingError(f"pymupdf stamping failed: {exc}") from exc


class PdfSealingService(SealingPort):
    """SealingPort implementation backed by PyMuPDF and object storage.

    Args:
        storage: Object storage holding originals; sealed copies are written there too
    """

    def __init__(self, storage: ObjectStoragePort):
        self.storage = storage

    def seal(
        self,
        application_id: str,
        document_key: str,
        reviewers: ReviewerNames,
    ) -> SealedDocument:
        signed_at = datetime.now(timezone.utc)
        verification_code = generate_verification_code(application_id)

        try:
            original = self.storage.get_bytes(document_key)
        except FileNotFoundError as exc:
            raise SealingError(f"Original document not found: {document_key}") from exc
        except Exception as exc:
            raise SealingError(f"Failed to fetch original document: {exc}") from exc

        stamped = stamp_pdf(original, reviewers, verification_code, signed_at)

        sealed_key = sealed_key_for(document_key)
        try:
            self.storage.put_bytes(
                sealed_key,
                stamped,
                "application/pdf",
                metadata={
                    "original-key": document_key,
                    "application-id": application_id,
                    "verification-code": verification_code,
                    "signed-date": signed_at.isoformat(),
                },
            )
        except Exception as exc:
            raise SealingError(f"Failed to store sealed document: {exc}") from exc

        logger.info(
            f"Sealed document: application_id={application_id}, "
            f"sealed_key={sealed_key}, verification_code={verification_code}"
        )
        return SealedDocument(sealed_document_key=sealed_key, verification_code=verification_code)
