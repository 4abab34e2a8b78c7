"""
Health check endpoints for diagnosing service dependencies.
"""
import time

import fitz  # PyMuPDF
from fastapi import APIRouter, Request

from sigplace.pdf.placement import (
    PageDescriptor,
    PageSize,
    RelativeBox,
    StampConfig,
    StampStrategy,
    place_signature,
)
from sigplace.pdf.stamp import read_page_descriptors

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


@router.get("/pdf")
def health_check_pdf():
    """
    Verify PyMuPDF can build, save and re-read a rotated page, and that the
    engine places a signature on it.
    """
    start_time = time.time()
    result = {
        "pymupdf_version": fitz.VersionBind,
        "steps": [],
        "error": None,
    }

    try:
        doc = fitz.open()
        page = doc.new_page(width=612, height=792)
        page.set_rotation(90)
        pdf_bytes = doc.tobytes()
        doc.close()
        result["steps"].append(f"Created test PDF: {len(pdf_bytes)} bytes")

        pages = read_page_descriptors(pdf_bytes)
        result["steps"].append(
            f"Read page: {pages[0].original.w}x{pages[0].original.h} rot={pages[0].rotation}"
        )

        placement = place_signature(
            PageDescriptor(page_number=1, original=PageSize(w=612, h=792), rotation=90),
            RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1),
            StampConfig(strategy=StampStrategy.FIXED, fixed_size=PageSize(w=150, h=75)),
        )
        result["steps"].append(placement.log)

        if pages[0].rotation != 90:
            result["error"] = f"Rotation read back as {pages[0].rotation}"
    except Exception as e:
        result["error"] = f"Unexpected error: {e}"
    finally:
        result["duration_seconds"] = round(time.time() - start_time, 3)

    status = "healthy" if result["error"] is None else "unhealthy"
    return {"status": status, "pdf": result}


@router.get("/cache")
def health_check_cache(request: Request):
    """Page geometry cache occupancy and hit statistics."""
    cache = request.app.state.page_cache
    return {
        "status": "healthy",
        "entries": len(cache),
        "max_entries": cache.max_entries,
        "stats": cache.stats().to_dict(),
    }
