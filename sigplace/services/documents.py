"""
Document services - glue between HTTP payloads and the placement/stamping
modules. Every call site resolves placements through sigplace.pdf.placement.
"""
import base64
import binascii
import logging
from typing import List, Optional, Tuple

from sigplace.config import Settings
from sigplace.exceptions import (
    PayloadTooLargeException,
    PlacementException,
    StampingException,
    ValidationException,
)
from sigplace.models import StampConfigIn, StampRequest
from sigplace.pdf.cache import PageGeometryCache
from sigplace.pdf.placement import (
    PageDescriptor,
    PageSize,
    PlacementValidationError,
    StampConfig,
    StampStrategy,
)
from sigplace.pdf.stamp import (
    PDFStamper,
    SignatureMapping,
    StampingError,
    StampOutcome,
    read_page_descriptors,
)
from sigplace.utils.logging import fingerprint, set_context
from sigplace.utils.security import compute_bytes_hash

logger = logging.getLogger(__name__)

PDF_DATA_URL_PREFIX = "data:application/pdf;base64,"
PDF_MAGIC = b"%PDF-"


def resolve_stamp_config(stamp: Optional[StampConfigIn], settings: Settings) -> StampConfig:
    """Request stamp config, or the configured default fixed stamp."""
    if stamp is not None:
        return stamp.to_domain()
    return StampConfig(
        strategy=StampStrategy.FIXED,
        fixed_size=PageSize(w=settings.default_stamp_width, h=settings.default_stamp_height),
    )


def raise_for_placement_error(exc: PlacementValidationError) -> None:
    """Translate an engine error into the matching HTTP error."""
    if exc.code == "INVALID_PLACEMENT_INPUT":
        raise ValidationException(exc.message, details={"code": exc.code})
    raise PlacementException(exc.message, code=exc.code)


def decode_pdf_payload(pdf_base64: str, settings: Settings) -> bytes:
    """
    Decode a base64 PDF from a request body.

    Raises:
        ValidationException: If the payload is not base64 or not a PDF
        PayloadTooLargeException: If the decoded PDF exceeds MAX_PDF_BYTES
    """
    if pdf_base64.startswith(PDF_DATA_URL_PREFIX):
        pdf_base64 = pdf_base64[len(PDF_DATA_URL_PREFIX):]

    try:
        data = base64.b64decode(pdf_base64, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationException("pdf_base64 is not valid base64")

    if len(data) > settings.max_pdf_bytes:
        raise PayloadTooLargeException(len(data), settings.max_pdf_bytes)

    if not data.startswith(PDF_MAGIC):
        raise ValidationException("pdf_base64 does not contain a PDF document")

    set_context(document_fp=fingerprint(compute_bytes_hash(data), "doc_"))
    return data


def describe_document(pdf_bytes: bytes, cache: PageGeometryCache) -> Tuple[str, List[PageDescriptor]]:
    """
    Page geometry of a document, served from the cache when possible.

    Returns:
        Tuple of (document_hash, pages)
    """
    try:
        pages = cache.get_or_load(pdf_bytes, read_page_descriptors)
    except StampingError as e:
        raise StampingException(str(e))
    return compute_bytes_hash(pdf_bytes), pages


def stamp_document(
    request: StampRequest,
    stamper: PDFStamper,
    settings: Settings,
) -> StampOutcome:
    """Decode the request, stamp all signatures, return the outcome."""
    pdf_bytes = decode_pdf_payload(request.pdf_base64, settings)
    stamp = resolve_stamp_config(request.stamp, settings)

    mappings = [
        SignatureMapping(
            page_number=signature.page_number,
            box=signature.box.to_domain(),
            image_base64=signature.signature_png_base64,
            mapping_dimensions=(
                signature.mapping_dimensions.to_domain()
                if signature.mapping_dimensions is not None else None
            ),
            label=signature.label,
        )
        for signature in request.signatures
    ]

    try:
        outcome = stamper.stamp_signatures(pdf_bytes, mappings, stamp)
    except PlacementValidationError as e:
        raise_for_placement_error(e)
    except StampingError as e:
        raise StampingException(str(e))

    for warning in outcome.warnings:
        logger.warning(f"Stamped despite dimension drift: {warning}")

    return outcome
