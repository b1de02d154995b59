"""
Line parsing for shopping-list text.

Turns raw OCR or typed text into one candidate string per item, splits
each candidate into {name, quantity, notes}, and derives the display and
identity spellings of a name.

Pipeline per block of text:
1. parse_raw_lines: split lines, drop noise, strip bullets/checkboxes/numbering,
   explode comma/semicolon lists in place
2. parse_quantity_and_notes: trailing "(notes)", leading "2x", trailing "2 lb"
3. normalize_name: canonical (display) and normalized (identity key) names
"""

import math
import re
import unicodedata
from typing import List, Dict, Optional, FrozenSet

from .core.utils import ParsedLine, NormalizedName
from .grocery_vocab import OCR_FIXES, SINGULAR_EXCEPTIONS

# =============================================================================
# Patterns
# =============================================================================

# Bullets, checkbox glyphs and list numbering at the start of a line.
# "1." only counts as numbering when no digit follows, so "1.5 lb" survives.
LEADING_MARKERS = re.compile(
    r"^\s*(?:[-*•]+|\[[ xX]?\]|☐|□|\d+[.)](?!\d)|\(\d+\)|[.#?]+)\s*"
)
ITEM_SEPARATORS = re.compile(r"[;,]")

LEADING_QUANTITY = re.compile(r"^\s*(\d+(?:\.\d+)?|\d+/\d+)\s*(?:x|×)?\s+", re.IGNORECASE)
TRAILING_UNIT = re.compile(
    r"\b(\d+(?:\.\d+)?\s?(?:lb|lbs|oz|g|kg|ml|l|pack|pkg|ct))\b", re.IGNORECASE
)
PAREN_NOTES = re.compile(r"\(([^)]+)\)\s*$")

TRAILING_PUNCTUATION = re.compile(r"[.,;:!?]+$")

# Mixed numbers first so "1 1/2" is one token
QUANTITY_NUMBER = re.compile(r"\d+\s+\d+/\d+|\d+/\d+|\d*\.?\d+")


# =============================================================================
# LineSplitter
# =============================================================================

def is_noise_line(line: str) -> bool:
    """True when a line holds nothing but punctuation and whitespace."""
    return all(ch.isspace() or unicodedata.category(ch).startswith("P") for ch in line)


def strip_leading_marker(line: str) -> str:
    return LEADING_MARKERS.sub("", line, count=1).strip()


def parse_raw_lines(text: str) -> List[str]:
    """
    Split raw multi-line text into candidate item strings.

    Args:
        text: OCR output or typed text

    Returns:
        Candidate strings in input order, with comma/semicolon lists
        expanded in place.
    """
    candidates = []

    for raw_line in re.split(r"\r?\n", text or ""):
        line = raw_line.strip()
        if not line or is_noise_line(line):
            continue

        line = strip_leading_marker(line)
        if not line:
            continue

        if ITEM_SEPARATORS.search(line):
            parts = [part.strip() for part in ITEM_SEPARATORS.split(line)]
            parts = [part for part in parts if part]
            if len(parts) > 1:
                candidates.extend(parts)
                continue

        candidates.append(line)

    return candidates


# =============================================================================
# QuantityNotesParser
# =============================================================================

def _collapse(text: str) -> str:
    return " ".join(text.split())


def parse_quantity_and_notes(line: str) -> ParsedLine:
    """
    Split one candidate line into name, quantity and notes.

    The extraction order is fixed: trailing parenthetical notes, then a
    leading count ("2", "1/2", "3x"), then a number+unit token ("2 lb").
    Both quantities together read "<leading> <unit>".

    Examples:
        "2 apples"               -> name="apples", quantity="2"
        "chicken 2 lb (organic)" -> name="chicken", quantity="2 lb", notes="organic"

    A line that is all quantity/notes comes back with an empty name.
    """
    working = (line or "").strip()
    notes = None
    quantity = None

    notes_match = PAREN_NOTES.search(working)
    if notes_match:
        notes = notes_match.group(1).strip() or None
        working = working[:notes_match.start()].strip()

    lead_match = LEADING_QUANTITY.match(working)
    if lead_match:
        quantity = lead_match.group(1)
        working = working[lead_match.end():].strip()

    unit_match = TRAILING_UNIT.search(working)
    if unit_match:
        unit_quantity = _collapse(unit_match.group(1))
        quantity = f"{quantity} {unit_quantity}" if quantity else unit_quantity
        working = (working[:unit_match.start()] + working[unit_match.end():]).strip()

    return ParsedLine(name=_collapse(working), quantity=quantity, notes=notes)


# =============================================================================
# NameNormalizer
# =============================================================================

def singularize(text: str, exceptions: FrozenSet[str] = SINGULAR_EXCEPTIONS) -> str:
    """De-pluralize the end of a name ("green onions" -> "green onion")."""
    if not text or text in exceptions or len(text) <= 3:
        return text

    if text.endswith("ies"):
        return text[:-3] + "y"
    if text.endswith("s") and not text.endswith("ss"):
        return text[:-1]
    return text


def normalize_name(
    name: str,
    ocr_fixes: Optional[Dict[str, str]] = None,
    exceptions: FrozenSet[str] = SINGULAR_EXCEPTIONS
) -> NormalizedName:
    """
    Derive the display and identity spellings of an item name.

    canonical_name keeps the caller's casing with whitespace collapsed and
    trailing punctuation removed. normalized_name is lowercase, has known
    OCR misreads fixed token by token, and is singularized.
    """
    fixes = OCR_FIXES if ocr_fixes is None else ocr_fixes

    canonical = TRAILING_PUNCTUATION.sub("", _collapse(name or "")).strip()
    tokens = [fixes.get(token, token) for token in canonical.lower().split()]
    normalized = singularize(" ".join(tokens), exceptions)

    return NormalizedName(canonical_name=canonical, normalized_name=normalized)


# =============================================================================
# Quantity scaling
# =============================================================================

def _parse_number(token: str) -> float:
    token = token.strip()
    if " " in token:
        whole, fraction = token.split(None, 1)
        return float(whole) + _parse_number(fraction)
    if "/" in token:
        numerator, denominator = token.split("/", 1)
        return float(numerator) / float(denominator)
    return float(token)


def format_quantity_number(value: float) -> str:
    """Round to two decimals and drop trailing zeros (1.50 -> "1.5", 2.0 -> "2")."""
    text = f"{round(value, 2):.2f}".rstrip("0").rstrip(".")
    return text or "0"


def scale_quantity_string(quantity: Optional[str], multiplier: float) -> Optional[str]:
    """
    Multiply every number in a free-text quantity.

    "1 1/2 cups" x2 -> "3 cups", "2 lb + 1" x1.5 -> "3 lb + 1.5".
    The input comes back untouched for a missing quantity, a non-positive
    or non-finite multiplier, or text without numbers.
    """
    if not quantity or not math.isfinite(multiplier) or multiplier <= 0:
        return quantity

    replaced = False

    def _scale(match):
        nonlocal replaced
        token = match.group(0)
        try:
            value = _parse_number(token)
        except (ValueError, ZeroDivisionError):
            return token
        replaced = True
        return format_quantity_number(value * multiplier)

    scaled = QUANTITY_NUMBER.sub(_scale, quantity)
    return scaled if replaced else quantity
