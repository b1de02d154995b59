"""
Pytest configuration and shared fixtures for the shopping-list tests.

This module provides:
- The default CategorizationIndex (built once per session)
- Item factories
- Generated list images (no image files are checked in)
- A scripted fake OCR engine

Usage:
    pytest tests/ -v
    pytest tests/ -m "not slow" -v
    pytest tests/test_pipeline.py -v
"""

import io
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest
from PIL import Image, ImageDraw

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from shoplist_ocr.categorizer import CategorizationIndex
from shoplist_ocr.core.utils import ShoppingItem, OcrResult, create_id, raise_if_cancelled

TESSERACT_AVAILABLE = shutil.which("tesseract") is not None


# =============================================================================
# Index Fixture
# =============================================================================

@pytest.fixture(scope="session")
def index() -> CategorizationIndex:
    """Default vocabulary index (read-only, shared by every test)."""
    return CategorizationIndex()


# =============================================================================
# Item Factories
# =============================================================================

@pytest.fixture
def make_item():
    """
    Provide a factory for ShoppingItems.

    Usage:
        item = make_item("milk", category_id="dairy_eggs", quantity="2")
    """
    def _make_item(name: str, **overrides) -> ShoppingItem:
        fields = {
            "id": create_id(),
            "raw_text": name,
            "canonical_name": name,
            "normalized_name": name.lower(),
            "confidence": 1.0,
        }
        fields.update(overrides)
        return ShoppingItem(**fields)

    return _make_item


# =============================================================================
# Image Fixtures
# =============================================================================

def render_list_image(lines: Sequence[str], size=(480, 360)) -> bytes:
    """Draw dark text lines on a light background and return PNG bytes."""
    image = Image.new("RGB", size, (245, 245, 240))
    draw = ImageDraw.Draw(image)
    for position, line in enumerate(lines):
        draw.text((20, 20 + position * 28), line, fill=(20, 20, 20))

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def list_image_bytes() -> bytes:
    """A small generated shopping-list photo."""
    return render_list_image(["milk", "2 bananas", "bread", "eggs"])


@pytest.fixture
def blank_image_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (400, 300), (250, 250, 250)).save(buffer, format="PNG")
    return buffer.getvalue()


# =============================================================================
# Fake OCR Engine
# =============================================================================

class ScriptedOCREngine:
    """
    OCR engine stand-in that replays scripted results.

    Each entry in script is either an OcrResult, a string (turned into an
    OcrResult with one line per text line), or an exception instance to
    raise. Once the script runs out the last entry repeats.
    """

    def __init__(self, script: List, mean_confidence: float = 0.9):
        self.script = list(script)
        self.mean_confidence = mean_confidence
        self.calls: List[bytes] = []

    def recognize(self, image_bytes: bytes, signal=None) -> OcrResult:
        raise_if_cancelled(signal, "recognition")
        self.calls.append(image_bytes)
        entry = self.script[min(len(self.calls) - 1, len(self.script) - 1)]

        if isinstance(entry, BaseException):
            raise entry
        if isinstance(entry, OcrResult):
            return entry

        lines = [line for line in entry.split("\n") if line.strip()]
        return OcrResult(
            raw_text=entry,
            line_texts=lines,
            mean_confidence=self.mean_confidence,
            word_count=sum(len(line.split()) for line in lines),
            line_count=len(lines)
        )


@pytest.fixture
def scripted_engine():
    """Factory: scripted_engine(["milk\\neggs", RuntimeError("boom")])."""
    def _build(script: List, mean_confidence: float = 0.9) -> ScriptedOCREngine:
        return ScriptedOCREngine(script, mean_confidence)
    return _build


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "requires_tesseract: marks tests that run the real Tesseract binary"
    )


def pytest_collection_modifyitems(config, items):
    """Skip Tesseract tests when the binary is missing."""
    skip_tesseract = pytest.mark.skip(reason="tesseract binary not installed")
    for item in items:
        if "requires_tesseract" in item.keywords and not TESSERACT_AVAILABLE:
            item.add_marker(skip_tesseract)


# =============================================================================
# Test Session Info
# =============================================================================

def pytest_report_header(config):
    """Add project info to test report header."""
    return [
        "Shopping List OCR Test Suite",
        f"Project Root: {PROJECT_ROOT}",
        f"Tesseract: {TESSERACT_AVAILABLE}",
    ]
