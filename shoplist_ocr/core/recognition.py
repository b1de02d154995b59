"""
OCR recognition engines for shopping-list photos.

Wraps Tesseract (default) and EasyOCR behind one recognize() call that
returns the recognized text, the engine's own line split, mean word
confidence and word/line counts.
"""

import io
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Dict, Optional, Tuple

import numpy as np
import pytesseract
from PIL import Image

from ..config import OCR_ENGINE, OCR_LANG, WORKER_POLL_INTERVAL
from .utils import OcrResult, ProcessingCancelled, raise_if_cancelled

# Tesseract language codes -> EasyOCR language codes
EASYOCR_LANGS = {
    "eng": "en",
    "deu": "de",
    "fra": "fr",
    "spa": "es",
}


class OCREngine:
    """Wrapper for OCR engines (Tesseract, EasyOCR)."""

    def __init__(
        self,
        engine_name: str = OCR_ENGINE,
        lang: str = OCR_LANG,
        tesseract_config: str = "--psm 6"
    ):
        self.engine_name = engine_name.lower()
        self.lang = lang
        self.tesseract_config = tesseract_config
        self.engine = None
        self._initialize_engine()

    def _initialize_engine(self):
        """Initialize the selected OCR engine."""
        if self.engine_name == "easyocr":
            try:
                import easyocr
                self.engine = easyocr.Reader([EASYOCR_LANGS.get(self.lang, self.lang)], gpu=False, verbose=False)
                print(f"[OCR] Initialized EasyOCR (lang={self.lang})")
            except ImportError:
                print("[OCR] EasyOCR not available, falling back to Tesseract")
                self.engine_name = "tesseract"
                self._initialize_engine()

        elif self.engine_name == "tesseract":
            self.engine = pytesseract
            print(f"[OCR] Initialized Tesseract (lang={self.lang})")

        else:
            raise ValueError(f"Unknown OCR engine: {self.engine_name}")

    def recognize(self, image_bytes: bytes, signal: Optional[threading.Event] = None) -> OcrResult:
        """
        Recognize the text of one encoded image.

        Args:
            image_bytes: Encoded image (JPEG/PNG)
            signal: Cancel signal; checked before and after the engine call

        Returns:
            OcrResult with lines in reading order
        """
        raise_if_cancelled(signal, "recognition")
        image = Image.open(io.BytesIO(image_bytes))

        if self.engine_name == "easyocr":
            result = self._recognize_easyocr(image)
        else:
            result = self._recognize_tesseract(image)

        # A cancel that arrived mid-call discards the result
        raise_if_cancelled(signal, "recognition")
        return result

    def _recognize_tesseract(self, image: Image.Image) -> OcrResult:
        """Tesseract word boxes grouped back into lines."""
        data = self.engine.image_to_data(
            image,
            lang=self.lang,
            config=self.tesseract_config,
            output_type=pytesseract.Output.DICT
        )

        lines: Dict[Tuple[int, int, int], List[str]] = {}
        confidences = []

        for i, text in enumerate(data.get("text", [])):
            word = (text or "").strip()
            try:
                conf = float(data["conf"][i])
            except (TypeError, ValueError):
                conf = -1.0
            if not word or conf < 0:
                continue

            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            confidences.append(conf / 100.0)

        line_texts = [" ".join(words) for words in lines.values()]
        return OcrResult(
            raw_text="\n".join(line_texts),
            line_texts=line_texts,
            mean_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            word_count=len(confidences),
            line_count=len(line_texts)
        )

    def _recognize_easyocr(self, image: Image.Image) -> OcrResult:
        """EasyOCR detections, one per line, sorted top to bottom."""
        detections = self.engine.readtext(np.asarray(image.convert("RGB")))
        detections = sorted(
            detections,
            key=lambda item: (min(point[1] for point in item[0]), min(point[0] for point in item[0]))
        )

        line_texts = [text.strip() for _, text, _ in detections if text and text.strip()]
        confidences = [float(conf) for _, text, conf in detections if text and text.strip()]

        return OcrResult(
            raw_text="\n".join(line_texts),
            line_texts=line_texts,
            mean_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            word_count=sum(len(line.split()) for line in line_texts),
            line_count=len(line_texts)
        )


def recognize_in_worker(
    engine,
    image_bytes: bytes,
    signal: Optional[threading.Event] = None,
    poll_interval: float = WORKER_POLL_INTERVAL
) -> OcrResult:
    """
    Run one recognition on a background thread while watching the cancel signal.

    The calling thread polls the worker and raises ProcessingCancelled as
    soon as the signal fires (the worker's result is then discarded). If the
    worker itself fails, the recognition is retried once on the calling
    thread.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ocr-worker")
    try:
        future = executor.submit(engine.recognize, image_bytes, signal)
        while True:
            raise_if_cancelled(signal, "recognition")
            done, _ = wait([future], timeout=poll_interval)
            if done:
                break

        try:
            return future.result()
        except ProcessingCancelled:
            raise
        except Exception as e:
            print(f"[OCR] Worker failed ({e}), retrying on calling thread")
            return engine.recognize(image_bytes, signal)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
