"""
Pytest configuration and fixtures.
"""
import base64
import io
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import fitz  # PyMuPDF  # noqa: E402
from PIL import Image  # noqa: E402

# US Letter in points
LETTER_WIDTH = 612.0
LETTER_HEIGHT = 792.0


def make_png_bytes(width: int = 200, height: int = 100) -> bytes:
    """Opaque black-on-white PNG of the given size."""
    img = Image.new("RGB", (width, height), "white")
    for x in range(10, width - 10):
        img.putpixel((x, height // 2), (0, 0, 0))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_pdf_bytes(rotations=(0,), width: float = LETTER_WIDTH, height: float = LETTER_HEIGHT) -> bytes:
    """PDF with one page per rotation; every page has the same media box."""
    doc = fitz.open()
    for i, rotation in enumerate(rotations):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), f"Page {i + 1}", fontsize=18)
        if rotation:
            page.set_rotation(rotation)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def sample_png_bytes():
    return make_png_bytes()


@pytest.fixture
def sample_png_base64(sample_png_bytes):
    """Base64 of a 200x100 PNG signature."""
    return base64.b64encode(sample_png_bytes).decode()


@pytest.fixture
def sample_pdf_bytes():
    """Single unrotated US Letter page."""
    return make_pdf_bytes()


@pytest.fixture
def rotated_pdf_bytes():
    """Four US Letter pages rotated 0, 90, 180, 270."""
    return make_pdf_bytes(rotations=(0, 90, 180, 270))


@pytest.fixture
def client():
    """Test client for the FastAPI app with an empty page cache."""
    from sigplace.main import app

    app.state.page_cache.clear()
    return TestClient(app)


@pytest.fixture
def png_factory():
    """Build PNG bytes of a given size."""
    return make_png_bytes
