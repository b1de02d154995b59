"""
Utility functions and data classes for the shopping-list pipeline.

Contains shared data structures, id creation, and JSON export helpers.
"""

import json
import threading
import uuid
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Dict, Optional, Any, Union


# =============================================================================
# Exceptions
# =============================================================================

class ProcessingCancelled(Exception):
    """Raised when the caller's cancel signal fires mid-operation."""
    pass


def raise_if_cancelled(signal: Optional[threading.Event], stage: str = ""):
    """Raise ProcessingCancelled if the cancel signal has been set."""
    if signal is not None and signal.is_set():
        raise ProcessingCancelled(f"Cancelled{' during ' + stage if stage else ''}")


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class ShoppingItem:
    """One checklist entry.

    normalized_name is the identity key used for dedup and ordering ties.
    The major_section_* fields are only set when the item was placed on the
    store-layout scaffold, and then major_section_order always equals that
    section's fixed rank.
    """
    id: str
    raw_text: str
    canonical_name: str
    normalized_name: str
    quantity: Optional[str] = None
    notes: Optional[str] = None
    category_id: str = "other"
    subcategory_id: Optional[str] = None
    order_hint: Optional[int] = None
    checked: bool = False
    confidence: float = 0.0
    source: str = "ocr"  # "ocr", "magic", "manual"
    category_overridden: bool = False
    major_section_id: Optional[str] = None
    major_section_label: Optional[str] = None
    major_subsection: Optional[str] = None
    major_section_order: Optional[int] = None
    major_section_item_order: Optional[int] = None

    @property
    def has_major_section(self) -> bool:
        return self.major_section_order is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParsedLine:
    """A candidate line split into its core name, quantity and notes."""
    name: str
    quantity: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class NormalizedName:
    """Display spelling plus the lowercase identity key."""
    canonical_name: str
    normalized_name: str


@dataclass
class CategorizedName:
    """Result of running a name through the categorization cascade."""
    canonical_name: str
    normalized_name: str
    category_id: str
    subcategory_id: Optional[str]
    confidence: float
    order_hint: Optional[int]


@dataclass
class Section:
    """A display group of items sharing a store section or category."""
    id: str
    title: str
    items: List[ShoppingItem] = field(default_factory=list)
    remaining_count: int = 0
    completed_at: Optional[str] = None


@dataclass
class OcrResult:
    """What an OCR engine reports for one image."""
    raw_text: str
    line_texts: List[str] = field(default_factory=list)
    mean_confidence: float = 0.0  # 0..1
    word_count: int = 0
    line_count: int = 0


@dataclass
class OcrMeta:
    """Summary statistics of the OCR attempt that was kept."""
    mean_confidence: float = 0.0
    word_count: int = 0
    line_count: int = 0
    time_ms: int = 0
    garbage_line_ratio: float = 0.0


@dataclass
class ProcessResult:
    """Output of processing one photographed list."""
    raw_text: str
    items: List[ShoppingItem] = field(default_factory=list)
    ocr_meta: OcrMeta = field(default_factory=OcrMeta)
    ocr_confidence: float = 0.0
    image_hash: str = ""
    thumbnail_data_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MagicModeResult:
    """Output of parsing one photographed list with the vision model."""
    list_title: str
    items: List[ShoppingItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    image_hash: str = ""
    thumbnail_data_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Helpers
# =============================================================================

def create_id() -> str:
    """Return a new opaque, globally unique item id."""
    return str(uuid.uuid4())


def sections_to_dict(sections: List[Section]) -> List[Dict[str, Any]]:
    """Convert sections to plain dicts for JSON output."""
    return [asdict(section) for section in sections]


def save_process_result(
    result: Union[ProcessResult, MagicModeResult],
    output_path: str,
    sections: Optional[List[Section]] = None
):
    """
    Save a processing result (and optionally its sections) as JSON.

    Args:
        result: ProcessResult or MagicModeResult to save
        output_path: Destination file path
        sections: Optional section grouping of result.items
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = result.to_dict()
    if sections is not None:
        data["sections"] = sections_to_dict(sections)

    with open(path, 'w') as f:
        json.dump(data, f, indent=2)

    print(f"[Pipeline] Saved result to: {path}")
