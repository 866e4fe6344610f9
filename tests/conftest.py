"""
Pytest configuration and fixtures for File Tools Backend tests.
"""

import io
import os
import shutil
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

# Set test environment variables before importing the app
os.environ["OUTPUT_DIR"] = tempfile.mkdtemp(prefix="filetools_test_output_")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="filetools_test_uploads_")
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["OPENAI_API_KEY"] = ""
# Binaries that cannot exist, so media tools fail the same way on every machine
os.environ["FFMPEG_BINARY"] = "filetools-test-missing-ffmpeg"
os.environ["SOFFICE_BINARY"] = "filetools-test-missing-soffice"

from filetools_backend.main import app  # noqa: E402


@pytest.fixture(scope="session")
def test_dirs():
    """Create and cleanup test directories."""
    output_dir = os.environ["OUTPUT_DIR"]
    upload_dir = os.environ["UPLOAD_DIR"]

    yield {
        "output": Path(output_dir),
        "upload": Path(upload_dir),
    }

    # Cleanup after all tests
    shutil.rmtree(output_dir, ignore_errors=True)
    shutil.rmtree(upload_dir, ignore_errors=True)


@pytest.fixture
def client(test_dirs):
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def tolerant_client(test_dirs):
    """Test client that returns 500 responses instead of re-raising server errors."""
    return TestClient(app, raise_server_exceptions=False)


def build_pdf(pages: int, label: str = "Page") -> bytes:
    """Render a PDF with one line of text per page."""
    buffer = io.BytesIO()
    document = canvas.Canvas(buffer, pagesize=letter)
    for number in range(1, pages + 1):
        document.drawString(72, 720, f"{label} {number}")
        document.showPage()
    document.save()
    return buffer.getvalue()


def build_png(width: int = 40, height: int = 30, color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def pdf_factory():
    """Return a callable producing in-memory PDFs with a given page count."""
    return build_pdf


@pytest.fixture
def png_bytes():
    """A 40x30 solid-color PNG."""
    return build_png()


@pytest.fixture
def upload_dir(test_dirs):
    return test_dirs["upload"]


@pytest.fixture
def output_dir(test_dirs):
    return test_dirs["output"]
