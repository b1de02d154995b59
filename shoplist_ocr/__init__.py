"""
Shopping-list extraction from photos and typed text.

- line_parser: line splitting, quantity/notes, name normalization
- categorizer: vocabulary index and the exact/rule/fuzzy/fallback cascade
- ordering: dedup, re-ingestion merge, checklist order and sections
- attempt_scorer: OCR attempt scoring and best-attempt selection
- vision_parser: vision-model ("magic") parsing and item mapping
- pipeline: end-to-end extraction
"""

from .core.utils import ShoppingItem, Section, ProcessResult, MagicModeResult, ProcessingCancelled

from .line_parser import parse_raw_lines, parse_quantity_and_notes, normalize_name, scale_quantity_string

from .categorizer import CategorizationIndex, categorize_item_name

from .ordering import (
    dedupe_items,
    collate_items,
    create_manual_item,
    override_category,
    build_ordered_items,
    build_sections,
)

from .vision_parser import VisionParseError, should_suggest_magic_mode

from .pipeline import ShoppingListPipeline, process_image_to_items, process_text_to_items


__version__ = "0.1.0"

__all__ = [
    "ShoppingItem",
    "Section",
    "ProcessResult",
    "MagicModeResult",
    "ProcessingCancelled",
    "parse_raw_lines",
    "parse_quantity_and_notes",
    "normalize_name",
    "scale_quantity_string",
    "CategorizationIndex",
    "categorize_item_name",
    "dedupe_items",
    "collate_items",
    "create_manual_item",
    "override_category",
    "build_ordered_items",
    "build_sections",
    "VisionParseError",
    "should_suggest_magic_mode",
    "ShoppingListPipeline",
    "process_image_to_items",
    "process_text_to_items",
]
