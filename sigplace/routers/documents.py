"""
Document API - page geometry and signature stamping.
Paths: /v1/documents
"""
import base64

from fastapi import APIRouter, Depends, Request

from sigplace.config import Settings, get_settings
from sigplace.models import (
    ConsistencyResponse,
    DocumentPagesRequest,
    DocumentPagesResponse,
    PageDescriptorOut,
    PlacementResponse,
    StampedSignatureOut,
    StampRequest,
    StampResponse,
)
from sigplace.pdf.cache import PageGeometryCache
from sigplace.pdf.stamp import PDFStamper
from sigplace.services.documents import decode_pdf_payload, describe_document, stamp_document

router = APIRouter(
    prefix="/v1/documents",
    tags=["documents"],
)


def get_page_cache(request: Request) -> PageGeometryCache:
    """Page geometry cache owned by the application instance."""
    return request.app.state.page_cache


def get_pdf_stamper(settings: Settings = Depends(get_settings)) -> PDFStamper:
    return PDFStamper(dimension_tolerance=settings.dimension_tolerance)


@router.post(
    "/pages",
    response_model=DocumentPagesResponse,
    summary="Read raw page geometry of a PDF",
)
def get_document_pages(
    request: DocumentPagesRequest,
    settings: Settings = Depends(get_settings),
    cache: PageGeometryCache = Depends(get_page_cache),
):
    """
    Returns each page's unrotated media box size and stored rotation, the
    exact inputs the placement engine expects.
    """
    pdf_bytes = decode_pdf_payload(request.pdf_base64, settings)
    document_hash, pages = describe_document(pdf_bytes, cache)

    return DocumentPagesResponse(
        document_hash=document_hash,
        page_count=len(pages),
        pages=[PageDescriptorOut.from_descriptor(page) for page in pages],
    )


@router.post(
    "/stamp",
    response_model=StampResponse,
    response_model_exclude_none=True,
    summary="Stamp signature images into a PDF",
)
def stamp_signatures(
    request: StampRequest,
    settings: Settings = Depends(get_settings),
    stamper: PDFStamper = Depends(get_pdf_stamper),
):
    """
    Place and draw every signature. Page size drift between mapping and
    merge is returned in warnings; it never blocks stamping.
    """
    outcome = stamp_document(request, stamper, settings)

    return StampResponse(
        pdf_base64=base64.b64encode(outcome.pdf_bytes).decode(),
        signatures=[
            StampedSignatureOut(
                page_number=signature.page_number,
                label=signature.label,
                placement=PlacementResponse.from_result(signature.placement),
                consistency=(
                    ConsistencyResponse.from_result(signature.consistency)
                    if signature.consistency is not None else None
                ),
            )
            for signature in outcome.signatures
        ],
        warnings=outcome.warnings,
    )
