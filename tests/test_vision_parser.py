"""
Unit tests for vision_parser.py.

The Anthropic SDK and the HTTP proxy are replaced with unittest.mock
objects; nothing here touches the network.

Usage:
    pytest tests/test_vision_parser.py -v
"""

import json
import sys
from unittest import mock

import pytest
import requests

from shoplist_ocr.store_layout import MAJOR_SECTION_RANK, MAJOR_SECTION_LABELS
from shoplist_ocr.vision_parser import (
    MAGIC_SCHEMA_NAME,
    MAGIC_OUTPUT_SCHEMA,
    USER_INSTRUCTIONS,
    VisionParseError,
    AnthropicVisionParser,
    ProxyVisionParser,
    create_parser,
    strip_code_fences,
    parse_magic_response_text,
    validate_magic_response,
    is_errand,
    map_magic_items,
    should_suggest_magic_mode,
    finalize_list_title,
)


def magic_item(**overrides) -> dict:
    item = {
        "raw_text": "avocados",
        "canonical_name": "avocados",
        "quantity": None,
        "notes": None,
        "category_hint": None,
        "major_section": None,
        "subsection": None,
        "within_section_order": None,
    }
    item.update(overrides)
    return item


def magic_payload(items=None, warnings=None, list_title=None) -> dict:
    return {
        "list_title": list_title,
        "items": [magic_item()] if items is None else items,
        "warnings": warnings or [],
    }


# =============================================================================
# Schema and Validation Tests
# =============================================================================

class TestValidation:
    """Reply decoding and schema checks."""

    def test_schema_lists_every_section(self):
        section_enum = MAGIC_OUTPUT_SCHEMA["properties"]["items"]["items"]["properties"]["major_section"]["enum"]
        assert set(MAJOR_SECTION_RANK) <= set(section_enum)
        assert MAGIC_SCHEMA_NAME in USER_INSTRUCTIONS

    def test_code_fences_stripped(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_valid_reply(self):
        text = "```json\n" + json.dumps(magic_payload(list_title="Taco night")) + "\n```"
        payload = parse_magic_response_text(text)
        assert payload["list_title"] == "Taco night"
        assert payload["items"][0]["canonical_name"] == "avocados"

    def test_missing_list_title_defaults_to_none(self):
        payload = validate_magic_response({"items": [], "warnings": []})
        assert payload["list_title"] is None

    def test_malformed_json(self):
        with pytest.raises(VisionParseError, match="not valid JSON"):
            parse_magic_response_text("Here is your list: milk, eggs")

    @pytest.mark.parametrize("payload", [
        [],
        {"items": "milk", "warnings": []},
        {"items": []},
        {"items": [], "warnings": [3]},
        {"items": [], "warnings": [], "extra": True},
        {"items": ["milk"], "warnings": []},
        {"items": [{"raw_text": "milk"}], "warnings": []},
        magic_payload([magic_item(category_hint="groceries")]),
        magic_payload([magic_item(major_section="aisle_99")]),
        magic_payload([magic_item(within_section_order="first")]),
        magic_payload([magic_item(within_section_order=True)]),
        magic_payload([magic_item(quantity=2)]),
        magic_payload([dict(magic_item(), confidence=0.9)]),
    ])
    def test_schema_violations(self, payload):
        with pytest.raises(VisionParseError):
            validate_magic_response(payload)


# =============================================================================
# Mapping Tests
# =============================================================================

class TestMapMagicItems:
    """Vision items to ShoppingItems."""

    def test_scaffold_placement(self, index):
        raw = magic_item(
            raw_text="2 avocados (ripe)",
            canonical_name="avocados",
            quantity="2",
            notes="ripe",
            major_section="produce",
            subsection="Vegetables",
            within_section_order=3,
        )

        item = map_magic_items([raw], index)[0]

        assert item.canonical_name == "avocados"
        assert item.normalized_name == "avocado"
        assert item.quantity == "2"
        assert item.notes == "ripe"
        assert item.category_id == "produce"
        assert item.major_section_id == "produce"
        assert item.major_section_label == MAJOR_SECTION_LABELS["produce"]
        assert item.major_section_order == MAJOR_SECTION_RANK["produce"]
        assert item.major_section_item_order == 3
        assert item.major_subsection == "Vegetables"
        assert item.order_hint == MAJOR_SECTION_RANK["produce"] * 1000 + 3
        assert item.confidence == 0.95
        assert item.source == "magic"

    def test_quantity_reparsed_from_name(self, index):
        raw = magic_item(raw_text="2 lemons (organic)", canonical_name="2 lemons (organic)")
        item = map_magic_items([raw], index)[0]
        assert item.canonical_name == "lemons"
        assert item.quantity == "2"
        assert item.notes == "organic"

    def test_model_quantity_preferred(self, index):
        raw = magic_item(canonical_name="2 lemons", quantity="a dozen")
        assert map_magic_items([raw], index)[0].quantity == "a dozen"

    def test_model_spelling_kept(self, index):
        raw = magic_item(raw_text="brocoli", canonical_name="Brocoli")
        item = map_magic_items([raw], index)[0]
        assert item.canonical_name == "Brocoli"
        assert item.category_id == "produce", "category still comes from the fuzzy vocabulary match"

    def test_category_precedence(self, index):
        hinted = magic_item(canonical_name="salsa", category_hint="deli", major_section="dry_grocery_aisles")
        from_section = magic_item(canonical_name="salsa", major_section="dry_grocery_aisles")
        from_vocab = magic_item(canonical_name="milk")

        items = map_magic_items([hinted, from_section, from_vocab], index)

        assert [item.category_id for item in items] == ["deli", "pantry", "dairy_eggs"]

    def test_within_order_floored_and_clamped(self, index):
        items = map_magic_items([
            magic_item(major_section="produce", within_section_order=2.7),
            magic_item(major_section="produce", within_section_order=0),
            magic_item(major_section="produce"),
        ], index)

        assert [item.major_section_item_order for item in items] == [2, 1, None]
        assert items[2].order_hint == MAJOR_SECTION_RANK["produce"] * 1000 + 999

    def test_no_section_uses_categorizer_hint(self, index):
        item = map_magic_items([magic_item(canonical_name="bananas", within_section_order=4)], index)[0]
        assert not item.has_major_section
        assert item.major_section_item_order is None
        assert item.order_hint == 11

    def test_errand_forced_to_other(self, index):
        raw = magic_item(
            raw_text="car oil change",
            canonical_name="oil change",
            category_hint="household",
            major_section="automotive",
            subsection="Motor oil",
            within_section_order=1,
        )

        item = map_magic_items([raw], index)[0]

        assert item.category_id == "other"
        assert item.major_section_id is None
        assert item.major_section_label is None
        assert item.major_subsection is None
        assert item.major_section_order is None
        assert item.major_section_item_order is None

    def test_other_hint_clears_section(self, index):
        raw = magic_item(canonical_name="birthday card", category_hint="other", major_section="books_cards_and_party")
        item = map_magic_items([raw], index)[0]
        assert item.category_id == "other"
        assert not item.has_major_section

    def test_blank_items_dropped(self, index):
        items = map_magic_items([magic_item(raw_text=" ", canonical_name="")], index)
        assert items == []

    def test_raw_text_used_when_canonical_blank(self, index):
        item = map_magic_items([magic_item(raw_text="eggs", canonical_name="  ")], index)[0]
        assert item.canonical_name == "eggs"
        assert item.category_id == "dairy_eggs"

    def test_custom_errand_patterns(self, index):
        raw = magic_item(canonical_name="walk dog", category_hint="pet")
        assert map_magic_items([raw], index)[0].category_id == "pet"
        assert map_magic_items([raw], index, errand_patterns=[r"\bwalk dog\b"])[0].category_id == "other"

    @pytest.mark.parametrize("text, expected", [
        ("car oil change", True),
        ("DMV renewal", True),
        ("pick up prescription", True),
        ("olive oil", False),
        ("car wax", False),
    ])
    def test_is_errand(self, text, expected):
        assert is_errand(text) is expected


# =============================================================================
# Parser Tests
# =============================================================================

def fake_anthropic_module(reply_text: str):
    """A stand-in for the anthropic package returning one text block."""
    module = mock.Mock()
    module.APIError = type("APIError", (Exception,), {})
    message = mock.Mock()
    message.content = [mock.Mock(type="text", text=reply_text)]
    module.Anthropic.return_value.messages.create.return_value = message
    return module


class TestAnthropicParser:
    """Anthropic Messages API parser."""

    def test_request_and_reply(self, monkeypatch):
        module = fake_anthropic_module(json.dumps(magic_payload(list_title="Guac")))
        monkeypatch.setitem(sys.modules, "anthropic", module)

        parser = AnthropicVisionParser(model="test-model")
        payload = parser.parse_image(b"\xff\xd8jpeg", "image/jpeg")

        assert payload["list_title"] == "Guac"
        kwargs = module.Anthropic.return_value.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        image_block, text_block = kwargs["messages"][0]["content"]
        assert image_block["type"] == "image"
        assert image_block["source"]["media_type"] == "image/jpeg"
        assert image_block["source"]["data"] == "/9hqcGVn"
        assert "Produce" in text_block["text"]

    def test_no_text_block(self, monkeypatch):
        module = fake_anthropic_module("")
        module.Anthropic.return_value.messages.create.return_value.content = []
        monkeypatch.setitem(sys.modules, "anthropic", module)

        with pytest.raises(VisionParseError, match="unexpected shape"):
            AnthropicVisionParser().parse_image(b"img")

    def test_api_error_wrapped(self, monkeypatch):
        module = fake_anthropic_module("")
        module.Anthropic.return_value.messages.create.side_effect = module.APIError("overloaded")
        monkeypatch.setitem(sys.modules, "anthropic", module)

        with pytest.raises(VisionParseError, match="request failed"):
            AnthropicVisionParser().parse_image(b"img")

    def test_injected_client(self, monkeypatch):
        module = fake_anthropic_module("")
        monkeypatch.setitem(sys.modules, "anthropic", module)
        client = mock.Mock()
        client.messages.create.return_value.content = [mock.Mock(type="text", text=json.dumps(magic_payload()))]

        parser = AnthropicVisionParser(client=client)

        assert parser.is_available()
        assert parser.parse_image(b"img")["items"][0]["raw_text"] == "avocados"
        module.Anthropic.assert_not_called()


class TestProxyParser:
    """HTTP proxy parser."""

    def test_posts_base64_image(self):
        response = mock.Mock(status_code=200)
        response.json.return_value = magic_payload()
        with mock.patch("shoplist_ocr.vision_parser.requests.post", return_value=response) as post:
            payload = ProxyVisionParser("http://proxy.local/magic").parse_image(b"\xff\xd8jpeg", "image/png")

        assert payload["items"][0]["canonical_name"] == "avocados"
        body = post.call_args.kwargs["json"]
        assert body == {"imageBase64": "/9hqcGVn", "mimeType": "image/png"}

    def test_404_means_not_configured(self):
        with mock.patch("shoplist_ocr.vision_parser.requests.post", return_value=mock.Mock(status_code=404)):
            with pytest.raises(VisionParseError, match="not configured"):
                ProxyVisionParser("http://proxy.local/magic").parse_image(b"img")

    def test_server_error(self):
        response = mock.Mock(status_code=500, text="boom")
        with mock.patch("shoplist_ocr.vision_parser.requests.post", return_value=response):
            with pytest.raises(VisionParseError, match="500"):
                ProxyVisionParser("http://proxy.local/magic").parse_image(b"img")

    def test_network_error(self):
        error = requests.ConnectionError("refused")
        with mock.patch("shoplist_ocr.vision_parser.requests.post", side_effect=error):
            with pytest.raises(VisionParseError, match="request failed"):
                ProxyVisionParser("http://proxy.local/magic").parse_image(b"img")

    def test_missing_endpoint(self):
        parser = ProxyVisionParser(endpoint=None)
        assert not parser.is_available()
        with pytest.raises(VisionParseError, match="not configured"):
            parser.parse_image(b"img")


class TestCreateParser:
    """Parser factory."""

    def test_types(self):
        assert isinstance(create_parser("anthropic"), AnthropicVisionParser)
        assert isinstance(create_parser("proxy", endpoint="http://x"), ProxyVisionParser)
        assert create_parser("none") is None

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            create_parser("llava")


# =============================================================================
# Suggestion and Title Tests
# =============================================================================

class TestSuggestMagicMode:
    """When to offer vision parsing after OCR."""

    def test_user_request_wins(self):
        assert should_suggest_magic_mode(True, 1.0, 20, False)

    def test_blank_image(self):
        assert not should_suggest_magic_mode(False, 0.0, 0, False)

    def test_low_confidence(self):
        assert should_suggest_magic_mode(False, 0.5, 10, True)

    def test_few_items(self):
        assert should_suggest_magic_mode(False, 0.9, 3, True)

    def test_good_read(self):
        assert not should_suggest_magic_mode(False, 0.7, 4, True)


class TestListTitle:
    """finalize_list_title."""

    def test_specific_title_kept(self):
        assert finalize_list_title("  Taco   Tuesday ", ["milk"]) == "Taco Tuesday"

    def test_generic_title_replaced_by_recipe(self):
        title = finalize_list_title("Weekend grocery run", ["avocados", "limes", "cilantro"])
        assert title == "Glorious Guacamole"

    def test_recipe_with_other_item(self):
        title = finalize_list_title(None, ["avocados", "limes", "cilantro", "paper towels"])
        assert title == "Glorious Guacamole & Paper Towels"

    def test_two_items(self):
        assert finalize_list_title("", ["milk", "bread"]) == "Mighty Milk & Bread"

    def test_single_item(self):
        assert finalize_list_title(None, ["eggs"]) == "Easy Eggs"

    def test_nothing(self):
        assert finalize_list_title(None, []) == "Shopping List"
