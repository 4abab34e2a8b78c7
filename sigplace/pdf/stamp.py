"""
PDF page geometry and signature stamping using PyMuPDF (fitz).

Reads raw page geometry for the placement engine and draws signature images
at the positions it computes. All coordinate math lives in placement.py;
this module only converts the engine's bottom-left, unrotated rectangle into
PyMuPDF's rectangle convention before drawing.
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import fitz  # PyMuPDF

from sigplace.pdf.aspect import (
    Box,
    apply_minimum_size_constraints,
    calculate_centered_placement,
    get_image_dimensions,
    is_valid_centered_placement,
)
from sigplace.pdf.dimensions import (
    DEFAULT_DIMENSION_TOLERANCE,
    ConsistencyResult,
    PageDimensions,
    validate_dimension_consistency,
)
from sigplace.pdf.placement import (
    PageDescriptor,
    PageSize,
    PlacementError,
    PlacementResult,
    PlacementValidationError,
    RelativeBox,
    StampConfig,
    place_signature_checked,
)
from sigplace.utils.logging import fingerprint
from sigplace.utils.security import compute_bytes_hash

logger = logging.getLogger(__name__)

PNG_MAGIC = b'\x89PNG\r\n\x1a\n'
DATA_URL_PREFIX = "data:image/png;base64,"


class StampingError(PlacementError):
    """PDF or signature image could not be processed."""
    pass


@dataclass
class SignatureMapping:
    """One signature to stamp: where (relative box) and what (PNG image)."""
    page_number: int  # 1-indexed
    box: RelativeBox
    image_base64: str
    # Page size recorded when the box was mapped, for the drift check
    mapping_dimensions: Optional[PageDimensions] = None
    label: Optional[str] = None


@dataclass
class StampedSignature:
    page_number: int
    placement: PlacementResult
    consistency: Optional[ConsistencyResult] = None
    label: Optional[str] = None


@dataclass
class StampOutcome:
    pdf_bytes: bytes
    signatures: List[StampedSignature] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _open_pdf(pdf_bytes: bytes) -> fitz.Document:
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        raise StampingError(f"Invalid PDF file: {e}")
    if doc.page_count == 0:
        doc.close()
        raise StampingError("PDF has no pages")
    return doc


def _describe_page(page: fitz.Page) -> PageDescriptor:
    # mediabox is the raw size; page.rect would already be rotated
    mediabox = page.mediabox
    return PageDescriptor(
        page_number=page.number + 1,
        original=PageSize(w=mediabox.width, h=mediabox.height),
        rotation=page.rotation,
    )


def read_page_descriptors(pdf_bytes: bytes) -> List[PageDescriptor]:
    """
    Read raw geometry of every page.

    Args:
        pdf_bytes: PDF file contents

    Returns:
        One PageDescriptor per page, in page order

    Raises:
        StampingError: If the PDF cannot be opened
    """
    doc = _open_pdf(pdf_bytes)
    try:
        return [_describe_page(page) for page in doc]
    finally:
        doc.close()


def get_page_dimensions(pdf_bytes: bytes, page_number: int = 1) -> PageDimensions:
    """Raw media box size of one page (1-indexed)."""
    doc = _open_pdf(pdf_bytes)
    try:
        if page_number < 1 or page_number > doc.page_count:
            raise PlacementValidationError(
                f"Page {page_number} does not exist. Document has {doc.page_count} pages.",
                code="PAGE_OUT_OF_RANGE",
            )
        mediabox = doc[page_number - 1].mediabox
        return PageDimensions(width=mediabox.width, height=mediabox.height)
    finally:
        doc.close()


def decode_signature_image(image_base64: str) -> bytes:
    """
    Decode a base64 PNG signature image.

    Args:
        image_base64: Base64 string (optionally with data URL prefix)

    Returns:
        PNG image bytes

    Raises:
        StampingError: If decoding fails or the data is not a PNG
    """
    if image_base64.startswith(DATA_URL_PREFIX):
        image_base64 = image_base64[len(DATA_URL_PREFIX):]

    try:
        data = base64.b64decode(image_base64, validate=True)
    except ValueError as e:
        raise StampingError(f"Failed to decode signature: {e}")

    if data[:8] != PNG_MAGIC:
        raise StampingError("Failed to decode signature: not a PNG image")

    return data


def pdf_rect_to_page_rect(page: fitz.Page, x: float, y: float, w: float, h: float) -> fitz.Rect:
    """
    Convert a bottom-left-origin rectangle to PyMuPDF's top-left convention.

    Both sides are unrotated page space; PyMuPDF applies /Rotate itself when
    inserting content.
    """
    rect = fitz.Rect(x, y, x + w, y + h) * page.transformation_matrix
    rect.normalize()
    return rect


class PDFStamper:
    """Applies signature placements to a PDF."""

    def __init__(self, dimension_tolerance: float = DEFAULT_DIMENSION_TOLERANCE):
        self.dimension_tolerance = dimension_tolerance

    def stamp_signatures(
        self,
        pdf_bytes: bytes,
        signatures: List[SignatureMapping],
        stamp: StampConfig,
    ) -> StampOutcome:
        """
        Stamp every signature image into the PDF.

        Dimension drift between mapping and merge is reported in the outcome
        warnings; the signature is still placed where the engine puts it.

        Args:
            pdf_bytes: Input PDF
            signatures: Signatures to apply
            stamp: Stamp sizing policy shared by all signatures

        Returns:
            StampOutcome with the stamped PDF bytes

        Raises:
            PlacementValidationError: If a page or box is invalid
            StampingError: If the PDF or an image cannot be processed
        """
        doc_fp = fingerprint(compute_bytes_hash(pdf_bytes), "doc_")
        doc = _open_pdf(pdf_bytes)
        outcome = StampOutcome(pdf_bytes=b"")

        try:
            for mapping in signatures:
                if mapping.page_number < 1 or mapping.page_number > doc.page_count:
                    raise PlacementValidationError(
                        f"Page {mapping.page_number} does not exist. "
                        f"Document has {doc.page_count} pages.",
                        code="PAGE_OUT_OF_RANGE",
                    )

                page = doc[mapping.page_number - 1]
                descriptor = _describe_page(page)

                consistency = None
                if mapping.mapping_dimensions is not None:
                    consistency = validate_dimension_consistency(
                        mapping.mapping_dimensions,
                        PageDimensions(width=descriptor.original.w, height=descriptor.original.h),
                        tolerance=self.dimension_tolerance,
                    )
                    if not consistency.consistent:
                        outcome.warnings.append(
                            f"Page {mapping.page_number}: {consistency.message}"
                        )

                result = place_signature_checked(descriptor, mapping.box, stamp)
                image_data = decode_signature_image(mapping.image_base64)

                self._draw_image(page, result, image_data)
                logger.info(f"[{doc_fp}] {result.log}")

                outcome.signatures.append(StampedSignature(
                    page_number=mapping.page_number,
                    placement=result,
                    consistency=consistency,
                    label=mapping.label,
                ))

            outcome.pdf_bytes = doc.tobytes(garbage=4, deflate=True)

        except PlacementError:
            raise
        except Exception as e:
            logger.exception(f"[{doc_fp}] Failed to stamp PDF")
            raise StampingError(f"Failed to stamp PDF: {e}")
        finally:
            doc.close()

        logger.info(f"[{doc_fp}] Stamped {len(outcome.signatures)} signature(s)")
        return outcome

    def _draw_image(self, page: fitz.Page, result: PlacementResult, image_data: bytes) -> None:
        merge = result.merge
        target = pdf_rect_to_page_rect(page, merge.x, merge.y, merge.w, merge.h)

        try:
            image = get_image_dimensions(image_data)
        except OSError as e:
            raise StampingError(f"Unreadable signature image: {e}")

        # insert_image adds no rotation term, so the image is fitted in unrotated
        # page space on every rotation.
        centered = calculate_centered_placement(
            image.width,
            image.height,
            Box(x=target.x0, y=target.y0, width=target.width, height=target.height),
        )
        centered = apply_minimum_size_constraints(centered)
        if not is_valid_centered_placement(centered):
            raise StampingError(f"Degenerate signature rectangle on page {page.number + 1}")

        page.insert_image(
            fitz.Rect(
                centered.x,
                centered.y,
                centered.x + centered.width,
                centered.y + centered.height,
            ),
            stream=image_data,
            keep_proportion=False,
            overlay=True,
        )
