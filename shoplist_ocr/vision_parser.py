"""
Vision-model list parsing ("magic mode").

Sends a photo of a list to a vision LLM that returns structured items
placed on the store-layout scaffold, validates the reply against a fixed
JSON schema, and maps the items into ShoppingItems.

The model's category and section choices are trusted, with one exception:
errands that end up on shopping lists ("oil change", "DMV") are never
groceries, so they drop to "other" with no store section.
"""

import base64
import json
import math
import os
import re
from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Sequence, Any

import requests

from .config import VISION_MODEL, VISION_PROXY_URL, VISION_TIMEOUT, VISION_MAX_TOKENS, MAGIC_CONFIDENCE
from .config import MAGIC_SUGGEST_CONFIDENCE, MAGIC_SUGGEST_MIN_ITEMS
from .categorizer import CategorizationIndex, categorize_item_name
from .core.utils import ShoppingItem, create_id
from .grocery_vocab import ERRAND_PATTERNS
from .line_parser import parse_quantity_and_notes, normalize_name
from .store_layout import (
    CATEGORY_ORDER,
    MAJOR_SECTION_ORDER,
    MAJOR_SECTION_RANK,
    MAJOR_SECTION_LABELS,
    MAJOR_SECTION_TO_CATEGORY,
    MAJOR_SECTION_PROMPT_SCAFFOLD,
)


class VisionParseError(Exception):
    """Raised when a vision reply cannot be turned into list items."""
    pass


# =============================================================================
# Schema and Prompts
# =============================================================================

MAGIC_SCHEMA_NAME = "shopping_list_extraction_v2"

ITEM_FIELDS = (
    "raw_text",
    "canonical_name",
    "quantity",
    "notes",
    "category_hint",
    "major_section",
    "subsection",
    "within_section_order",
)

MAGIC_OUTPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["items", "warnings"],
    "properties": {
        "list_title": {"type": ["string", "null"]},
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": list(ITEM_FIELDS),
                "properties": {
                    "raw_text": {"type": "string"},
                    "canonical_name": {"type": "string"},
                    "quantity": {"type": ["string", "null"]},
                    "notes": {"type": ["string", "null"]},
                    "category_hint": {"type": ["string", "null"], "enum": CATEGORY_ORDER + [None]},
                    "major_section": {"type": ["string", "null"], "enum": MAJOR_SECTION_ORDER + [None]},
                    "subsection": {"type": ["string", "null"]},
                    "within_section_order": {"type": ["integer", "null"], "minimum": 1},
                },
            },
        },
        "warnings": {"type": "array", "items": {"type": "string"}},
    },
}

SYSTEM_PROMPT = (
    "You are a grocery shopping list parser. Extract every distinct item from the photo "
    "of a shopping list. Preserve intent, separate quantity and notes, and classify every "
    "item using the provided store-layout scaffold."
)

USER_INSTRUCTIONS = f"""Return one object per item.
- Split multiple items on one line.
- Never invent unseen items.
- If uncertain, include your best guess and add warning text.
- category_hint should be the best coarse aisle bucket for compatibility.
- Choose major_section only from the scaffold section IDs.
- Choose subsection from the scaffold subsection labels when possible, else null.
- within_section_order must be a 1-based integer for the item's relative order inside its major section.
- list_title is a short name for the list, or null.

Scaffold section IDs in store order: {", ".join(MAJOR_SECTION_ORDER)}

Scaffold (major sections and in-section ordering reference):
{MAJOR_SECTION_PROMPT_SCAFFOLD}

Reply with a single JSON object (no prose) matching the "{MAGIC_SCHEMA_NAME}" schema:
{json.dumps(MAGIC_OUTPUT_SCHEMA)}"""


# =============================================================================
# Response Validation
# =============================================================================

FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return FENCE_PATTERN.sub("", (text or "").strip()).strip()


def _check_optional_string(item: dict, key: str, position: int):
    value = item[key]
    if value is not None and not isinstance(value, str):
        raise VisionParseError(f"items[{position}].{key} must be a string or null")


def validate_magic_response(payload: Any) -> Dict[str, Any]:
    """
    Check a decoded reply against MAGIC_OUTPUT_SCHEMA.

    Returns:
        The payload with list_title defaulted to None

    Raises:
        VisionParseError: On any schema violation
    """
    if not isinstance(payload, dict):
        raise VisionParseError("Vision reply must be a JSON object")

    unknown = set(payload) - {"items", "warnings", "list_title"}
    if unknown:
        raise VisionParseError(f"Unexpected top-level fields: {sorted(unknown)}")

    items = payload.get("items")
    if not isinstance(items, list):
        raise VisionParseError("Vision reply is missing the items array")

    warnings = payload.get("warnings")
    if not isinstance(warnings, list) or not all(isinstance(w, str) for w in warnings):
        raise VisionParseError("warnings must be an array of strings")

    list_title = payload.get("list_title")
    if list_title is not None and not isinstance(list_title, str):
        raise VisionParseError("list_title must be a string or null")

    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise VisionParseError(f"items[{position}] must be an object")

        missing = [key for key in ITEM_FIELDS if key not in item]
        if missing:
            raise VisionParseError(f"items[{position}] is missing {missing}")
        extra = set(item) - set(ITEM_FIELDS)
        if extra:
            raise VisionParseError(f"items[{position}] has unexpected fields {sorted(extra)}")

        for key in ("raw_text", "canonical_name"):
            if not isinstance(item[key], str):
                raise VisionParseError(f"items[{position}].{key} must be a string")
        for key in ("quantity", "notes", "subsection"):
            _check_optional_string(item, key, position)

        hint = item["category_hint"]
        if hint is not None and hint not in CATEGORY_ORDER:
            raise VisionParseError(f"items[{position}].category_hint '{hint}' is not a known category")

        section = item["major_section"]
        if section is not None and section not in MAJOR_SECTION_RANK:
            raise VisionParseError(f"items[{position}].major_section '{section}' is not a scaffold section")

        order = item["within_section_order"]
        if order is not None and (isinstance(order, bool) or not isinstance(order, (int, float))):
            raise VisionParseError(f"items[{position}].within_section_order must be a number or null")

    return {"list_title": list_title, "items": items, "warnings": warnings}


def parse_magic_response_text(text: str) -> Dict[str, Any]:
    """Decode and validate a raw model reply (code fences tolerated)."""
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise VisionParseError(f"Vision reply is not valid JSON: {e}") from e
    return validate_magic_response(payload)


# =============================================================================
# Item Mapping
# =============================================================================

def is_errand(text: str, patterns: Optional[Sequence[str]] = None) -> bool:
    """True when the text describes a task rather than a product."""
    for pattern in (ERRAND_PATTERNS if patterns is None else patterns):
        if re.search(pattern, text or "", re.IGNORECASE):
            return True
    return False


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _within_section_order(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return max(1, math.floor(value))


def map_magic_items(
    raw_items: Sequence[dict],
    index: CategorizationIndex,
    errand_patterns: Optional[Sequence[str]] = None
) -> List[ShoppingItem]:
    """
    Turn validated vision items into ShoppingItems.

    The model's spelling is kept (only normalized, never rewritten to a
    vocabulary entry). Quantity and notes are re-parsed from the name and
    the model's own values win when present. Category comes from the
    model's hint, then the scaffold section, then the local categorizer.
    """
    items = []

    for raw in raw_items:
        raw_text = raw.get("raw_text") or ""
        source_name = _clean_text(raw.get("canonical_name")) or _clean_text(raw_text)
        if not source_name:
            continue

        parsed = parse_quantity_and_notes(source_name)
        name = parsed.name or source_name
        names = normalize_name(name)
        if not names.normalized_name:
            continue
        categorized = categorize_item_name(name, index)

        section_id = raw.get("major_section")
        section_order = MAJOR_SECTION_RANK.get(section_id) if section_id else None
        if section_order is None:
            section_id = None
        within = _within_section_order(raw.get("within_section_order")) if section_id else None

        hint = raw.get("category_hint")
        category = hint or MAJOR_SECTION_TO_CATEGORY.get(section_id) or categorized.category_id
        order_hint = section_order * 1000 + (within or 999) if section_order is not None else categorized.order_hint
        subcategory = categorized.subcategory_id

        if hint == "other" or is_errand(raw_text, errand_patterns) or is_errand(name, errand_patterns):
            category = "other"
            subcategory = None
            order_hint = None
            section_id = None
            section_order = None
            within = None

        items.append(ShoppingItem(
            id=create_id(),
            raw_text=raw_text or source_name,
            canonical_name=names.canonical_name,
            normalized_name=names.normalized_name,
            quantity=_clean_text(raw.get("quantity")) or parsed.quantity,
            notes=_clean_text(raw.get("notes")) or parsed.notes,
            category_id=category,
            subcategory_id=subcategory,
            order_hint=order_hint,
            checked=False,
            confidence=MAGIC_CONFIDENCE,
            source="magic",
            category_overridden=False,
            major_section_id=section_id,
            major_section_label=MAJOR_SECTION_LABELS[section_id] if section_id else None,
            major_subsection=_clean_text(raw.get("subsection")) if section_id else None,
            major_section_order=section_order,
            major_section_item_order=within
        ))

    return items


# =============================================================================
# Parsers
# =============================================================================

class VisionParserBase(ABC):
    """Abstract base class for vision list parsers."""

    @abstractmethod
    def parse_image(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """Return the validated structured reply for one list photo."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the parser is configured and ready."""
        pass


class AnthropicVisionParser(VisionParserBase):
    """Vision parser backed by the Anthropic Messages API."""

    def __init__(
        self,
        model: str = VISION_MODEL,
        max_tokens: int = VISION_MAX_TOKENS,
        timeout: float = VISION_TIMEOUT,
        client=None
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.client = client

    def is_available(self) -> bool:
        return self.client is not None or bool(os.environ.get("ANTHROPIC_API_KEY"))

    def _get_client(self):
        if self.client is None:
            import anthropic
            self.client = anthropic.Anthropic(timeout=self.timeout)
            print(f"[Vision] Initialized Anthropic client ({self.model})")
        return self.client

    def parse_image(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        import anthropic

        client = self._get_client()
        image_b64 = base64.b64encode(image_bytes).decode('utf-8')

        try:
            message = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {"type": "base64", "media_type": mime_type, "data": image_b64},
                        },
                        {"type": "text", "text": USER_INSTRUCTIONS},
                    ],
                }]
            )
        except anthropic.APIError as e:
            raise VisionParseError(f"Vision request failed: {e}") from e

        text = "".join(
            block.text for block in (message.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise VisionParseError("Vision reply had an unexpected shape (no text content)")

        return parse_magic_response_text(text)


class ProxyVisionParser(VisionParserBase):
    """Vision parser behind an HTTP endpoint that accepts {imageBase64, mimeType}."""

    def __init__(self, endpoint: Optional[str] = VISION_PROXY_URL, timeout: float = VISION_TIMEOUT):
        self.endpoint = endpoint
        self.timeout = timeout

    def is_available(self) -> bool:
        return bool(self.endpoint)

    def parse_image(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        if not self.endpoint:
            raise VisionParseError("Vision proxy endpoint is not configured")

        try:
            response = requests.post(
                self.endpoint,
                json={
                    "imageBase64": base64.b64encode(image_bytes).decode('utf-8'),
                    "mimeType": mime_type or "image/jpeg",
                },
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise VisionParseError(f"Vision proxy request failed: {e}") from e

        if response.status_code == 404:
            raise VisionParseError("Vision proxy endpoint is not configured")
        if response.status_code != 200:
            raise VisionParseError(f"Vision proxy failed: {response.status_code} {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise VisionParseError(f"Vision proxy returned invalid JSON: {e}") from e

        return validate_magic_response(payload)


def create_parser(
    parser_type: str = "anthropic",
    model: str = None,
    endpoint: str = None
) -> Optional[VisionParserBase]:
    """
    Factory function to create a vision parser.

    Args:
        parser_type: "anthropic", "proxy", or "none"
        model: Model id for the Anthropic parser
        endpoint: URL for the proxy parser

    Returns:
        VisionParserBase, or None if disabled
    """
    if parser_type is None or parser_type == "none":
        return None

    if parser_type == "anthropic":
        parser = AnthropicVisionParser(model=model or VISION_MODEL)
    elif parser_type == "proxy":
        parser = ProxyVisionParser(endpoint=endpoint or VISION_PROXY_URL)
    else:
        raise ValueError(f"Unknown vision parser type: {parser_type}")

    if not parser.is_available():
        print(f"[Vision] Warning: {parser_type} parser is not configured")
    return parser


# =============================================================================
# Suggestion Policy and List Title
# =============================================================================

def should_suggest_magic_mode(
    user_requested: bool,
    ocr_confidence: float,
    item_count: int,
    image_likely_non_blank: bool
) -> bool:
    """Whether to offer vision parsing after a plain OCR pass."""
    if user_requested:
        return True
    if not image_likely_non_blank:
        return False
    if ocr_confidence < MAGIC_SUGGEST_CONFIDENCE:
        return True
    return item_count < MAGIC_SUGGEST_MIN_ITEMS


GENERIC_TITLE_WORDS = frozenset({"run", "adventure", "quest", "trip", "haul"})

RECIPE_HINTS: Dict[str, Sequence[str]] = {
    "Guacamole": ("avocados", "limes", "cilantro", "onions", "jalapenos", "tomatoes"),
    "Tacos": ("tortillas", "ground beef", "salsa", "lettuce", "cheese", "sour cream"),
    "Pancakes": ("flour", "eggs", "milk", "butter", "syrup", "baking powder"),
    "Spaghetti": ("pasta", "pasta sauce", "garlic", "parmesan", "ground beef", "basil"),
    "Salad": ("lettuce", "tomatoes", "cucumbers", "carrots", "mixed greens", "dressing"),
    "Smoothies": ("bananas", "strawberries", "blueberries", "yogurt", "frozen fruit", "spinach"),
    "Chili": ("ground beef", "black beans", "kidney beans", "tomatoes", "onions", "chili powder"),
}

TITLE_ADJECTIVES = {
    "a": "Awesome", "b": "Bountiful", "c": "Classic", "d": "Delightful", "e": "Easy",
    "f": "Fresh", "g": "Glorious", "h": "Hearty", "i": "Irresistible", "j": "Jolly",
    "k": "Kickin'", "l": "Lovely", "m": "Mighty", "n": "Nifty", "o": "Outstanding",
    "p": "Perfect", "q": "Quick", "r": "Rustic", "s": "Savory", "t": "Tasty",
    "u": "Ultimate", "v": "Vibrant", "w": "Wholesome", "x": "Xtra", "y": "Yummy", "z": "Zesty",
}


def _alliterate(word: str) -> str:
    return TITLE_ADJECTIVES.get(word[:1].lower(), "Fresh")


def _title_case(name: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in name.split())


def finalize_list_title(title: Optional[str], item_names: Sequence[str]) -> str:
    """
    Pick a display title for a list.

    A model-proposed title is kept unless it is empty or generic ("grocery
    run"). Otherwise a recognizable recipe gives "<Adjective> <Recipe>",
    plus " & <item>" for the first item outside the recipe; failing that,
    the first two items give "<Adjective> <Item> & <Item>".
    """
    cleaned = " ".join((title or "").split())
    if cleaned and not GENERIC_TITLE_WORDS.intersection(re.findall(r"[a-z]+", cleaned.lower())):
        return cleaned

    names = []
    seen = set()
    for raw_name in item_names:
        normalized = normalize_name(raw_name)
        if normalized.normalized_name and normalized.normalized_name not in seen:
            seen.add(normalized.normalized_name)
            names.append((normalized.canonical_name, normalized.normalized_name))

    best_recipe, best_hits, best_ingredients = None, 0, set()
    for recipe, ingredients in RECIPE_HINTS.items():
        keys = {normalize_name(ingredient).normalized_name for ingredient in ingredients}
        hits = sum(1 for _, key in names if key in keys)
        if hits >= 3 and hits > best_hits:
            best_recipe, best_hits, best_ingredients = recipe, hits, keys

    if best_recipe:
        result = f"{_alliterate(best_recipe)} {best_recipe}"
        leftover = next((display for display, key in names if key not in best_ingredients), None)
        if leftover:
            result += f" & {_title_case(leftover)}"
        return result

    if len(names) >= 2:
        first, second = names[0][0], names[1][0]
        return f"{_alliterate(first)} {_title_case(first)} & {_title_case(second)}"
    if names:
        return f"{_alliterate(names[0][0])} {_title_case(names[0][0])}"
    return "Shopping List"
