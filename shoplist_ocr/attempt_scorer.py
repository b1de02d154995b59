"""
OCR attempt scoring and selection.

A photographed list is read several times, once per (rotation, variant)
pair. Each attempt is scored on how grocery-like its extracted items look,
the loop stops as soon as one attempt is clearly good, and otherwise the
best-scoring attempt is kept.

Score = known_items*7 + avg_confidence*3 + min(alpha_words, 24)*0.25
        + min(item_count, 20)*0.15 - garbage_line_ratio*4
"""

import re
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .config import (
    ROTATIONS,
    VARIANTS,
    KNOWN_ITEM_MIN_CONFIDENCE,
    KNOWN_ITEM_WEIGHT,
    AVG_CONFIDENCE_WEIGHT,
    ALPHA_WORD_CAP,
    ALPHA_WORD_WEIGHT,
    ITEM_COUNT_CAP,
    ITEM_COUNT_WEIGHT,
    GARBAGE_PENALTY,
    GARBAGE_LINE_SHARE,
    STRONG_KNOWN_ITEMS,
    STRONG_SINGLE_ITEM_CONFIDENCE,
    STRONG_SCORE,
    CONFIDENCE_MIN_WORDS,
    CONFIDENCE_MIN_MEAN,
    CONFIDENCE_MIN_LINES,
    CONFIDENCE_MAX_GARBAGE,
)
from .core.utils import OcrResult, ShoppingItem, ProcessingCancelled, raise_if_cancelled

ALPHA_WORD = re.compile(r"[a-z]{3,}", re.IGNORECASE)
SYMBOL_CHAR = re.compile(r"[^a-z0-9\s]", re.IGNORECASE)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CandidateScore:
    """Quality signals for one OCR attempt."""
    known_item_count: int
    avg_item_confidence: float
    alpha_word_count: int
    item_count: int
    garbage_line_ratio: float
    score: float


@dataclass(frozen=True)
class AttemptSpec:
    """One (rotation, preprocessing variant) pair."""
    rotation: int
    variant: str

    @property
    def label(self) -> str:
        return f"{self.rotation}deg/{self.variant}"


@dataclass
class OcrCandidate:
    """Everything produced by one attempt."""
    attempt: AttemptSpec
    ocr: OcrResult
    items: List[ShoppingItem]
    quality: CandidateScore
    time_ms: int = 0


@dataclass
class AttemptSummary:
    """Outcome of the attempt loop."""
    best: Optional[OcrCandidate]
    attempts_run: int = 0
    failures: int = 0
    stopped_early: bool = False
    scores: List[float] = field(default_factory=list)


DEFAULT_ATTEMPT_PLAN: List[AttemptSpec] = [
    AttemptSpec(rotation, variant) for rotation in ROTATIONS for variant in VARIANTS
]


# =============================================================================
# Scoring
# =============================================================================

def count_alpha_words(text: str) -> int:
    return len(ALPHA_WORD.findall(text or ""))


def compute_garbage_line_ratio(lines: Sequence[str]) -> float:
    """Fraction of non-empty lines that are mostly symbols."""
    non_empty = [line.strip() for line in lines if line and line.strip()]
    if not non_empty:
        return 0.0

    garbage = 0
    for line in non_empty:
        if len(SYMBOL_CHAR.findall(line)) / len(line) > GARBAGE_LINE_SHARE:
            garbage += 1

    return garbage / len(non_empty)


def score_candidate(items: Sequence[ShoppingItem], raw_text: str, line_texts: Sequence[str]) -> CandidateScore:
    """
    Score the items extracted from one OCR attempt.

    Args:
        items: Deduplicated items built from the attempt's text
        raw_text: Full recognized text
        line_texts: Lines as reported by the OCR engine

    Returns:
        CandidateScore with the individual signals and the final score
    """
    item_count = len(items)
    known = sum(
        1 for item in items
        if item.category_id != "other" and item.confidence >= KNOWN_ITEM_MIN_CONFIDENCE
    )
    avg_confidence = sum(item.confidence for item in items) / item_count if item_count else 0.0
    alpha_words = count_alpha_words(raw_text)
    garbage_ratio = compute_garbage_line_ratio(line_texts)

    score = (
        known * KNOWN_ITEM_WEIGHT
        + avg_confidence * AVG_CONFIDENCE_WEIGHT
        + min(alpha_words, ALPHA_WORD_CAP) * ALPHA_WORD_WEIGHT
        + min(item_count, ITEM_COUNT_CAP) * ITEM_COUNT_WEIGHT
        - garbage_ratio * GARBAGE_PENALTY
    )

    return CandidateScore(
        known_item_count=known,
        avg_item_confidence=avg_confidence,
        alpha_word_count=alpha_words,
        item_count=item_count,
        garbage_line_ratio=garbage_ratio,
        score=score
    )


def is_strong_candidate(quality: CandidateScore) -> bool:
    """Good enough to skip the remaining attempts."""
    if quality.known_item_count >= STRONG_KNOWN_ITEMS:
        return True
    if quality.known_item_count >= 1 and quality.avg_item_confidence >= STRONG_SINGLE_ITEM_CONFIDENCE:
        return True
    return quality.score >= STRONG_SCORE


def compute_ocr_confidence(
    word_count: int,
    mean_confidence: float,
    line_count: int,
    garbage_line_ratio: float
) -> float:
    """Coarse 0..1 trust in an OCR read, used to decide whether to offer vision parsing."""
    confidence = 0.0
    if word_count >= CONFIDENCE_MIN_WORDS:
        confidence += 0.3
    if mean_confidence >= CONFIDENCE_MIN_MEAN:
        confidence += 0.2
    if line_count >= CONFIDENCE_MIN_LINES:
        confidence += 0.2
    if garbage_line_ratio > CONFIDENCE_MAX_GARBAGE:
        confidence -= 0.3
    return max(0.0, min(1.0, confidence))


# =============================================================================
# Attempt Loop
# =============================================================================

def select_best_attempt(
    run_attempt: Callable[[AttemptSpec], OcrCandidate],
    plan: Optional[Sequence[AttemptSpec]] = None,
    signal: Optional[threading.Event] = None,
    on_progress: Optional[Callable[[dict], None]] = None
) -> AttemptSummary:
    """
    Run attempts in plan order and keep the best one.

    Attempts run one at a time. A strong attempt ends the loop early. An
    attempt that raises is logged and skipped; cancellation is re-raised
    immediately and is checked before every attempt.

    Args:
        run_attempt: Reads the image for one attempt and scores it
        plan: Attempt order (default: rotations x variants)
        signal: Cancel signal
        on_progress: Receives {"status", "progress", "label"} patches

    Returns:
        AttemptSummary whose best is None when every attempt failed
    """
    attempts = list(DEFAULT_ATTEMPT_PLAN if plan is None else plan)
    summary = AttemptSummary(best=None)

    for position, attempt in enumerate(attempts):
        raise_if_cancelled(signal, f"attempt {attempt.label}")

        if on_progress:
            on_progress({
                "status": "ocr",
                "progress": 0.1 + 0.8 * position / max(len(attempts), 1),
                "label": f"Reading list ({position + 1}/{len(attempts)})"
            })

        summary.attempts_run += 1
        try:
            candidate = run_attempt(attempt)
        except ProcessingCancelled:
            raise
        except Exception as e:
            summary.failures += 1
            print(f"[OCR] Attempt {attempt.label} failed: {e}")
            continue

        quality = candidate.quality
        summary.scores.append(quality.score)
        print(
            f"[Attempts] {attempt.label}: score={quality.score:.2f} "
            f"known={quality.known_item_count} items={quality.item_count}"
        )

        if summary.best is None or quality.score > summary.best.quality.score:
            summary.best = candidate

        if is_strong_candidate(quality):
            summary.stopped_early = position < len(attempts) - 1
            if summary.stopped_early:
                print(f"[Attempts] Strong result at {attempt.label}, skipping remaining attempts")
            break

    if summary.failures:
        print(f"[OCR] {summary.failures}/{summary.attempts_run} attempts failed")

    return summary
