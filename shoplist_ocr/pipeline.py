"""
Shopping-list extraction pipeline.

Photo -> prepared image -> OCR attempts (rotation x variant, best kept)
      -> lines -> quantity/notes -> categorized items -> deduped, ordered list

Typed text skips the image stages, and the vision ("magic") path replaces
OCR and line parsing with a single structured model call.
"""

import threading
import time
from typing import Callable, List, Optional, Sequence

from .attempt_scorer import (
    AttemptSpec,
    OcrCandidate,
    DEFAULT_ATTEMPT_PLAN,
    score_candidate,
    select_best_attempt,
    compute_ocr_confidence,
)
from .categorizer import CategorizationIndex, categorize_item_name
from .core.preprocessing import ImagePreprocessor, ImageSource
from .core.recognition import OCREngine, recognize_in_worker
from .core.utils import (
    ShoppingItem,
    OcrMeta,
    ProcessResult,
    MagicModeResult,
    create_id,
    raise_if_cancelled,
)
from .grocery_vocab import ERRAND_PATTERNS
from .line_parser import parse_raw_lines, parse_quantity_and_notes
from .ordering import dedupe_items, build_ordered_items
from .vision_parser import VisionParserBase, VisionParseError, map_magic_items, finalize_list_title

ProgressCallback = Callable[[dict], None]


def _emit(on_progress: Optional[ProgressCallback], status: str, progress: float, label: str):
    if on_progress:
        on_progress({"status": status, "progress": progress, "label": label})


# =============================================================================
# Text -> Items
# =============================================================================

def build_items(lines: Sequence[str], index: CategorizationIndex, source: str = "ocr") -> List[ShoppingItem]:
    """
    Turn candidate lines into deduplicated, categorized items.

    Lines whose name is empty after quantity/notes extraction are skipped.
    """
    items = []
    for line in lines:
        parsed = parse_quantity_and_notes(line)
        if not parsed.name:
            continue

        categorized = categorize_item_name(parsed.name, index)
        if not categorized.normalized_name:
            continue

        items.append(ShoppingItem(
            id=create_id(),
            raw_text=line,
            canonical_name=categorized.canonical_name,
            normalized_name=categorized.normalized_name,
            quantity=parsed.quantity,
            notes=parsed.notes,
            category_id=categorized.category_id,
            subcategory_id=categorized.subcategory_id,
            order_hint=categorized.order_hint,
            checked=False,
            confidence=categorized.confidence,
            source=source
        ))

    return dedupe_items(items)


def process_text_to_items(text: str, index: CategorizationIndex) -> List[ShoppingItem]:
    """Items from typed or pasted text, in checklist order."""
    return build_ordered_items(build_items(parse_raw_lines(text), index, source="manual"))


# =============================================================================
# Pipeline
# =============================================================================

class ShoppingListPipeline:
    """Holds the long-lived collaborators and runs the extraction paths."""

    def __init__(
        self,
        index: CategorizationIndex = None,
        engine=None,
        preprocessor: ImagePreprocessor = None,
        vision_parser: VisionParserBase = None,
        plan: Optional[Sequence[AttemptSpec]] = None,
        errand_patterns: Optional[Sequence[str]] = None,
        use_worker: bool = True
    ):
        self.index = index if index is not None else CategorizationIndex()
        self.engine = engine if engine is not None else OCREngine()
        self.preprocessor = preprocessor if preprocessor is not None else ImagePreprocessor()
        self.vision_parser = vision_parser
        self.plan = list(DEFAULT_ATTEMPT_PLAN if plan is None else plan)
        self.errand_patterns = ERRAND_PATTERNS if errand_patterns is None else errand_patterns
        self.use_worker = use_worker

    def process_text(self, text: str) -> List[ShoppingItem]:
        return process_text_to_items(text, self.index)

    def _run_attempt(self, image, attempt: AttemptSpec, signal: Optional[threading.Event]) -> OcrCandidate:
        started = time.perf_counter()
        image_bytes = self.preprocessor.render_attempt(image, attempt.rotation, attempt.variant)

        if self.use_worker:
            ocr = recognize_in_worker(self.engine, image_bytes, signal)
        else:
            ocr = self.engine.recognize(image_bytes, signal)

        items = build_items(parse_raw_lines(ocr.raw_text), self.index, source="ocr")
        quality = score_candidate(items, ocr.raw_text, ocr.line_texts)

        return OcrCandidate(
            attempt=attempt,
            ocr=ocr,
            items=items,
            quality=quality,
            time_ms=int((time.perf_counter() - started) * 1000)
        )

    def process_image_to_items(
        self,
        image: ImageSource,
        on_progress: Optional[ProgressCallback] = None,
        signal: Optional[threading.Event] = None
    ) -> ProcessResult:
        """
        Extract a shopping list from a photo with local OCR.

        Args:
            image: Image path or encoded bytes
            on_progress: Receives {"status", "progress", "label"} patches
            signal: Cancel signal (threading.Event)

        Returns:
            ProcessResult. When every attempt fails or nothing was found, the
            result has zero items and zero confidence instead of raising.

        Raises:
            ProcessingCancelled: If the signal fires
        """
        raise_if_cancelled(signal, "preprocessing")
        _emit(on_progress, "preprocessing", 0.05, "Preparing image")
        prepared = self.preprocessor.prepare(image)

        summary = select_best_attempt(
            lambda attempt: self._run_attempt(prepared.image, attempt, signal),
            plan=self.plan,
            signal=signal,
            on_progress=on_progress
        )

        _emit(on_progress, "parsing", 0.92, "Organizing items")
        best = summary.best

        if best is None:
            print(f"[Pipeline] No usable OCR attempt ({summary.failures} failed)")
            result = ProcessResult(
                raw_text="",
                items=[],
                ocr_meta=OcrMeta(),
                ocr_confidence=0.0,
                image_hash=prepared.image_hash,
                thumbnail_data_url=prepared.thumbnail_data_url
            )
        else:
            ocr = best.ocr
            meta = OcrMeta(
                mean_confidence=ocr.mean_confidence,
                word_count=ocr.word_count,
                line_count=ocr.line_count,
                time_ms=best.time_ms,
                garbage_line_ratio=best.quality.garbage_line_ratio
            )
            items = build_ordered_items(best.items)
            confidence = 0.0
            if items:
                confidence = compute_ocr_confidence(
                    ocr.word_count, ocr.mean_confidence, ocr.line_count, best.quality.garbage_line_ratio
                )

            print(
                f"[Pipeline] Kept {best.attempt.label}: {len(items)} items, "
                f"confidence={confidence:.2f} ({summary.attempts_run} attempts)"
            )
            result = ProcessResult(
                raw_text=ocr.raw_text,
                items=items,
                ocr_meta=meta,
                ocr_confidence=confidence,
                image_hash=prepared.image_hash,
                thumbnail_data_url=prepared.thumbnail_data_url
            )

        _emit(on_progress, "done", 1.0, "Done")
        return result

    def process_image_with_vision(
        self,
        image: ImageSource,
        on_progress: Optional[ProgressCallback] = None,
        signal: Optional[threading.Event] = None
    ) -> MagicModeResult:
        """
        Extract a shopping list from a photo with the vision model.

        Raises:
            ValueError: If no vision parser is configured
            VisionParseError: If the reply is unusable or holds no items
            ProcessingCancelled: If the signal fires
        """
        if self.vision_parser is None:
            raise ValueError("No vision parser configured")

        raise_if_cancelled(signal, "preprocessing")
        _emit(on_progress, "preprocessing", 0.05, "Preparing image")
        prepared = self.preprocessor.prepare(image)
        image_bytes = self.preprocessor.render_attempt(prepared.image, 0, "raw")

        raise_if_cancelled(signal, "vision")
        _emit(on_progress, "parsing", 0.3, "Reading list with vision model")
        payload = self.vision_parser.parse_image(image_bytes, "image/jpeg")
        raise_if_cancelled(signal, "vision")

        items = map_magic_items(payload["items"], self.index, self.errand_patterns)
        items = build_ordered_items(dedupe_items(items))
        if not items:
            raise VisionParseError("Vision model returned no list items")

        for warning in payload["warnings"]:
            print(f"[Vision] Warning: {warning}")

        title = finalize_list_title(payload["list_title"], [item.canonical_name for item in items])
        print(f"[Pipeline] Vision parse: {len(items)} items, title '{title}'")

        _emit(on_progress, "done", 1.0, "Done")
        return MagicModeResult(
            list_title=title,
            items=items,
            warnings=list(payload["warnings"]),
            image_hash=prepared.image_hash,
            thumbnail_data_url=prepared.thumbnail_data_url
        )


def process_image_to_items(
    image: ImageSource,
    on_progress: Optional[ProgressCallback] = None,
    signal: Optional[threading.Event] = None,
    index: CategorizationIndex = None,
    engine=None
) -> ProcessResult:
    """One-shot OCR extraction with a freshly built pipeline."""
    pipeline = ShoppingListPipeline(index=index, engine=engine)
    return pipeline.process_image_to_items(image, on_progress=on_progress, signal=signal)
