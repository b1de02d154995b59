"""
Item merging and checklist ordering.

- dedupe_items: one entry per normalized name within a single batch
- collate_items: merge a later batch into an existing list ("force unless overridden")
- build_ordered_items: deterministic total order over items
- build_sections: group ordered items into display sections
"""

import math
from dataclasses import replace
from typing import List, Dict, Optional, Iterable

from .config import MANUAL_CONFIDENCE
from .core.utils import ShoppingItem, Section, create_id
from .grocery_vocab import SUBCATEGORY_RANK
from .store_layout import (
    CATEGORY_ORDER,
    CATEGORY_RANK,
    CATEGORY_LABELS,
    MAJOR_SECTION_RANK,
    MAJOR_SECTION_LABELS,
)
from .line_parser import normalize_name

INFINITY = math.inf

# Fields that move together when a later batch re-classifies an item
CLASSIFICATION_FIELDS = (
    "category_id",
    "subcategory_id",
    "order_hint",
    "major_section_id",
    "major_section_label",
    "major_subsection",
    "major_section_order",
    "major_section_item_order",
)

MAJOR_SECTION_FIELDS = CLASSIFICATION_FIELDS[3:]


# =============================================================================
# Merging
# =============================================================================

def merge_quantity(left: Optional[str], right: Optional[str]) -> Optional[str]:
    """"1" + "2" -> "1 + 2"; equal or one-sided quantities are kept as is."""
    if left and right:
        return left if left == right else f"{left} + {right}"
    return left or right


def merge_notes(left: Optional[str], right: Optional[str]) -> Optional[str]:
    """Union of distinct notes joined with "; "."""
    if left and right:
        if right in left.split("; "):
            return left
        return f"{left}; {right}"
    return left or right


def _merge_pair(first: ShoppingItem, other: ShoppingItem) -> ShoppingItem:
    return replace(
        first,
        quantity=merge_quantity(first.quantity, other.quantity),
        notes=merge_notes(first.notes, other.notes),
        confidence=max(first.confidence, other.confidence)
    )


def dedupe_items(items: Iterable[ShoppingItem]) -> List[ShoppingItem]:
    """
    Merge items that share a normalized name.

    Quantities and notes are combined, confidence is the max, and every
    other field comes from the first-seen item. Output keeps first-seen order.
    """
    merged: Dict[str, ShoppingItem] = {}
    for item in items:
        existing = merged.get(item.normalized_name)
        merged[item.normalized_name] = item if existing is None else _merge_pair(existing, item)
    return list(merged.values())


def _collate_key(item: ShoppingItem) -> str:
    return item.normalized_name.strip().lower()


def collate_items(existing: Iterable[ShoppingItem], incoming: Iterable[ShoppingItem]) -> List[ShoppingItem]:
    """
    Merge a newly extracted batch into an existing list.

    Matching items are unchecked again and get their quantity/notes merged.
    Unless the user overrode an item's category, the incoming batch's whole
    classification (category, subcategory, order hint and all major-section
    fields) replaces the existing one. New items are appended unchecked.

    Returns:
        The merged list in checklist order.
    """
    merged: Dict[str, ShoppingItem] = {}

    for item in existing:
        key = _collate_key(item)
        current = merged.get(key)
        merged[key] = item if current is None else _merge_pair(current, item)

    for item in incoming:
        key = _collate_key(item)
        current = merged.get(key)
        if current is None:
            merged[key] = replace(item, checked=False)
            continue

        updated = replace(_merge_pair(current, item), checked=False)
        if not current.category_overridden:
            updated = replace(updated, **{name: getattr(item, name) for name in CLASSIFICATION_FIELDS})
        merged[key] = updated

    return build_ordered_items(list(merged.values()))


# =============================================================================
# Manual edits
# =============================================================================

def create_manual_item(text: str, category_id: str = "other") -> Optional[ShoppingItem]:
    """Build an item the user typed in directly; None for blank text."""
    names = normalize_name(text)
    if not names.normalized_name:
        return None
    return ShoppingItem(
        id=create_id(),
        raw_text=text,
        canonical_name=names.canonical_name,
        normalized_name=names.normalized_name,
        category_id=category_id,
        confidence=MANUAL_CONFIDENCE,
        source="manual"
    )


def override_category(item: ShoppingItem, category_id: str) -> ShoppingItem:
    """Pin an item to a category chosen by the user.

    The item leaves the scaffold and later batches will not re-classify it.
    """
    cleared = {name: None for name in MAJOR_SECTION_FIELDS}
    return replace(
        item,
        category_id=category_id,
        subcategory_id=None,
        order_hint=None,
        category_overridden=True,
        **cleared
    )


# =============================================================================
# Ordering
# =============================================================================

def _or_infinity(value: Optional[float]) -> float:
    return INFINITY if value is None else value


def ordering_key(item: ShoppingItem, subcategory_rank: Optional[Dict[str, int]] = None):
    """Sort key implementing the checklist order.

    1. scaffold items first, by section rank then rank within section
    2. coarse category rank
    3. order hint
    4. subcategory rank
    5. canonical name, then normalized name and id so the order is total
    """
    ranks = SUBCATEGORY_RANK if subcategory_rank is None else subcategory_rank

    if item.major_section_order is not None:
        scaffold = (0, item.major_section_order, _or_infinity(item.major_section_item_order))
    else:
        scaffold = (1, 0, 0)

    subcategory = ranks.get(item.subcategory_id, INFINITY) if item.subcategory_id else INFINITY

    return (
        scaffold,
        CATEGORY_RANK.get(item.category_id, len(CATEGORY_ORDER)),
        _or_infinity(item.order_hint),
        subcategory,
        item.canonical_name.casefold(),
        item.canonical_name,
        item.normalized_name,
        item.id,
    )


def build_ordered_items(
    items: Iterable[ShoppingItem],
    subcategory_rank: Optional[Dict[str, int]] = None
) -> List[ShoppingItem]:
    """Return items in checklist order (independent of input order)."""
    return sorted(items, key=lambda item: ordering_key(item, subcategory_rank))


def _category_title(category_id: str) -> str:
    return CATEGORY_LABELS.get(category_id, category_id.replace("_", " ").title())


def build_sections(
    items: Iterable[ShoppingItem],
    subcategory_rank: Optional[Dict[str, int]] = None
) -> List[Section]:
    """
    Group items into display sections.

    Scaffold items group by major section and rank by the section's fixed
    rank; everything else groups by coarse category with rank 1000 + category
    rank, so scaffold sections always come first. When items in one section
    disagree on label or rank, the last scaffold item seen wins.
    """
    buckets: Dict[str, dict] = {}

    for item in build_ordered_items(items, subcategory_rank):
        section_id = item.major_section_id
        on_scaffold = section_id is not None and section_id in MAJOR_SECTION_RANK

        if on_scaffold:
            key = section_id
            title = item.major_section_label or MAJOR_SECTION_LABELS[key]
            rank = item.major_section_order if item.major_section_order is not None else MAJOR_SECTION_RANK[key]
        else:
            key = item.category_id
            title = _category_title(key)
            rank = 1000 + CATEGORY_RANK.get(key, len(CATEGORY_ORDER))

        bucket = buckets.get(key)
        if bucket is None:
            buckets[key] = {"title": title, "rank": rank, "items": [item]}
            continue

        bucket["items"].append(item)
        if on_scaffold:
            bucket["title"] = title
            bucket["rank"] = rank

    ordered_keys = sorted(buckets, key=lambda key: (buckets[key]["rank"], buckets[key]["title"]))

    return [
        Section(
            id=key,
            title=buckets[key]["title"],
            items=buckets[key]["items"],
            remaining_count=sum(1 for item in buckets[key]["items"] if not item.checked),
            completed_at=None
        )
        for key in ordered_keys
    ]
