import json

import pytest

from fixtures.vision_fixtures import blazer, wardrobe_reply
from tailor.core.errors import MalformedModelOutputError
from tailor.llm.types import ClosetMatchRequest, EncodedImage, ShoppingOutfitRequest, WardrobeOutfitRequest
from tailor.services.normalize import normalize_response, strip_code_fences

REQUEST = WardrobeOutfitRequest(occasion="business casual", wardrobe_items=[blazer()])


@pytest.mark.parametrize(
    "wrapped",
    [
        "```json\n{reply}\n```",
        "```\n{reply}\n```",
        "  ```json{reply}```  ",
        "Here you go:\n```json\n{reply}\n```\nEnjoy!",
    ],
)
def test_fenced_reply_matches_plain_reply(wrapped):
    reply = wardrobe_reply()
    assert normalize_response(wrapped.format(reply=reply), REQUEST) == normalize_response(reply, REQUEST)


def test_unterminated_fence_is_stripped():
    assert strip_code_fences('```json\n{"a": 1}') == '{"a": 1}'


def test_wardrobe_reference_is_resolved_to_full_item():
    out = normalize_response(json.dumps({"completeOutfit": [{"garmentType": "Blazer", "existingItem": "w1"}]}), REQUEST)
    assert out["completeOutfit"][0]["existingItem"] == blazer().model_dump(by_alias=True)


def test_unknown_reference_becomes_explicit_none():
    out = normalize_response(json.dumps({"completeOutfit": [{"existingItem": "item-404"}]}), REQUEST)
    entry = out["completeOutfit"][0]
    assert "existingItem" in entry
    assert entry["existingItem"] is None


def test_ids_and_shopping_options_are_backfilled():
    raw = json.dumps(
        {
            "analysis": "ok",
            "suggestions": [{"description": "a"}, {"id": "keep", "description": "b"}, {"id": 7}],
            "completeOutfit": [{"description": "x"}, {"description": "y", "shoppingOptions": [{"id": "s"}]}],
        }
    )
    out = normalize_response(raw, ShoppingOutfitRequest(occasion="casual"))
    assert [s["id"] for s in out["suggestions"]] == ["suggestion-0", "keep", "7"]
    assert [i["id"] for i in out["completeOutfit"]] == ["outfit-item-0", "outfit-item-1"]
    assert out["completeOutfit"][0]["shoppingOptions"] == []
    assert out["completeOutfit"][1]["shoppingOptions"] == [{"id": "s"}]


def test_plain_string_entries_keep_their_position():
    raw = json.dumps({"analysis": "", "suggestions": ["Add a belt", {"description": "b"}]})
    out = normalize_response(raw, ShoppingOutfitRequest(occasion="casual"))
    assert out["suggestions"] == [
        {"description": "Add a belt", "id": "suggestion-0"},
        {"description": "b", "id": "suggestion-1"},
    ]


@pytest.mark.parametrize("entry", [42, None, ["nested"]])
def test_non_object_entries_are_malformed(entry):
    with pytest.raises(MalformedModelOutputError):
        normalize_response(json.dumps({"completeOutfit": [{"description": "x"}, entry]}), REQUEST)


@pytest.mark.parametrize(
    "field,repaired",
    [("shoppingKeywords", []), ("colors", []), ("styles", []), ("description", ""), ("shoppingOptions", [])],
)
def test_null_fields_are_repaired(field, repaired):
    raw = json.dumps({"completeOutfit": [{"garmentType": "Blazer", "existingItem": "w1", field: None}]})
    assert normalize_response(raw, REQUEST)["completeOutfit"][0][field] == repaired


def test_suggestion_references_resolve_for_closet_match():
    req = ClosetMatchRequest(images=[EncodedImage(data="aGk=")], wardrobe_items=[blazer()])
    out = normalize_response(json.dumps({"analysis": "", "suggestions": [{"existingItem": "w1"}]}), req)
    assert out["suggestions"][0]["existingItem"]["id"] == "w1"


def test_missing_analysis_becomes_empty_string():
    assert normalize_response("{}", REQUEST)["analysis"] == ""


@pytest.mark.parametrize("raw", ["not json", "```json\n{broken\n```", "[1, 2]", "", '{"completeOutfit": "nope"}'])
def test_malformed_reply_raises(raw):
    with pytest.raises(MalformedModelOutputError):
        normalize_response(raw, REQUEST)


def test_normalizer_does_not_touch_request():
    before = REQUEST.model_dump()
    normalize_response(wardrobe_reply(), REQUEST)
    assert REQUEST.model_dump() == before
