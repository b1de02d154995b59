"""
Unit tests for core/recognition.py.

Tesseract and EasyOCR are mocked; only tests marked requires_tesseract
touch the real binary.

Usage:
    pytest tests/test_recognition.py -v
    pytest tests/test_recognition.py -m "not requires_tesseract" -v
"""

import sys
import threading
import time
from unittest import mock

import pytest
import pytesseract

from shoplist_ocr.core.recognition import OCREngine, recognize_in_worker
from shoplist_ocr.core.utils import OcrResult, ProcessingCancelled


TESSERACT_DATA = {
    "text": ["", "2", "apples", "", "milk", "  ", "garbage"],
    "conf": ["-1", "90", "80", "-1", "70", "-1", "-1"],
    "block_num": [0, 1, 1, 1, 1, 1, 1],
    "par_num": [0, 1, 1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 2, 2, 2, 3],
}


def box(top: int, left: int = 0):
    return [[left, top], [left + 40, top], [left + 40, top + 10], [left, top + 10]]


# =============================================================================
# Engine Tests
# =============================================================================

class TestTesseractEngine:
    """Word boxes from image_to_data grouped into lines."""

    def test_groups_words_into_lines(self, list_image_bytes):
        engine = OCREngine("tesseract")
        with mock.patch.object(pytesseract, "image_to_data", return_value=TESSERACT_DATA):
            result = engine.recognize(list_image_bytes)

        assert result.line_texts == ["2 apples", "milk"]
        assert result.raw_text == "2 apples\nmilk"
        assert result.word_count == 3
        assert result.line_count == 2
        assert result.mean_confidence == pytest.approx(0.8)

    def test_nothing_recognized(self, blank_image_bytes):
        engine = OCREngine("tesseract")
        empty = {key: [] for key in TESSERACT_DATA}
        with mock.patch.object(pytesseract, "image_to_data", return_value=empty):
            result = engine.recognize(blank_image_bytes)

        assert result.raw_text == ""
        assert result.mean_confidence == 0.0
        assert result.line_count == 0

    def test_cancelled_before_engine_call(self, list_image_bytes):
        engine = OCREngine("tesseract")
        signal = threading.Event()
        signal.set()

        with mock.patch.object(pytesseract, "image_to_data") as image_to_data:
            with pytest.raises(ProcessingCancelled):
                engine.recognize(list_image_bytes, signal)
        image_to_data.assert_not_called()

    @pytest.mark.requires_tesseract
    @pytest.mark.slow
    def test_real_tesseract_runs(self, list_image_bytes):
        result = OCREngine("tesseract").recognize(list_image_bytes)
        assert isinstance(result, OcrResult)
        assert 0.0 <= result.mean_confidence <= 1.0


class TestEngineSelection:
    """Engine names and fallbacks."""

    def test_unknown_engine(self):
        with pytest.raises(ValueError, match="Unknown OCR engine"):
            OCREngine("paddle")

    def test_easyocr_missing_falls_back_to_tesseract(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "easyocr", None)
        engine = OCREngine("easyocr")
        assert engine.engine_name == "tesseract"

    def test_easyocr_detections_sorted_top_to_bottom(self, list_image_bytes, monkeypatch):
        reader = mock.Mock()
        reader.readtext.return_value = [
            (box(50), "eggs", 0.6),
            (box(10), "milk", 0.9),
            (box(30), " ", 0.1),
        ]
        fake_easyocr = mock.Mock()
        fake_easyocr.Reader.return_value = reader
        monkeypatch.setitem(sys.modules, "easyocr", fake_easyocr)

        engine = OCREngine("easyocr")
        result = engine.recognize(list_image_bytes)

        fake_easyocr.Reader.assert_called_once_with(["en"], gpu=False, verbose=False)
        assert result.line_texts == ["milk", "eggs"]
        assert result.mean_confidence == pytest.approx(0.75)
        assert result.word_count == 2


# =============================================================================
# Background Worker Tests
# =============================================================================

class SlowEngine:
    """Blocks inside recognize() until released."""

    def __init__(self):
        self.release = threading.Event()

    def recognize(self, image_bytes, signal=None):
        self.release.wait(timeout=5)
        return OcrResult(raw_text="milk", line_texts=["milk"], mean_confidence=0.9, word_count=1, line_count=1)


class FlakyEngine:
    """Fails on the first call only."""

    def __init__(self):
        self.calls = 0

    def recognize(self, image_bytes, signal=None):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("worker crashed")
        return OcrResult(raw_text="eggs", line_texts=["eggs"], mean_confidence=0.9, word_count=1, line_count=1)


class TestRecognizeInWorker:
    """Recognition on a background thread."""

    def test_returns_worker_result(self, scripted_engine):
        engine = scripted_engine(["milk\neggs"])
        result = recognize_in_worker(engine, b"image")
        assert result.line_texts == ["milk", "eggs"]

    def test_cancel_while_worker_busy(self):
        engine = SlowEngine()
        signal = threading.Event()
        timer = threading.Timer(0.1, signal.set)

        started = time.perf_counter()
        timer.start()
        try:
            with pytest.raises(ProcessingCancelled):
                recognize_in_worker(engine, b"image", signal, poll_interval=0.01)
        finally:
            engine.release.set()
            timer.cancel()

        assert time.perf_counter() - started < 2.0, "cancellation should not wait for the worker"

    def test_worker_failure_retried_on_calling_thread(self):
        engine = FlakyEngine()
        result = recognize_in_worker(engine, b"image")
        assert result.raw_text == "eggs"
        assert engine.calls == 2

    def test_cancellation_inside_worker_not_retried(self, scripted_engine):
        engine = scripted_engine([ProcessingCancelled("stop")])
        with pytest.raises(ProcessingCancelled):
            recognize_in_worker(engine, b"image")
        assert len(engine.calls) == 1
