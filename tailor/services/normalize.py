"""Repair and resolve the model's JSON reply.

``normalize_response`` is a pure function of the raw reply text and the
originating request: fences are stripped, the JSON is parsed strictly,
list entries receive positional ids, wardrobe references are resolved to
full items and outfit entries get an empty ``shoppingOptions`` list.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from tailor.core.errors import MalformedModelOutputError
from tailor.llm.types import WardrobeItemRef, request_wardrobe

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?(.*?)\n?```", re.DOTALL)

SUGGESTIONS_KEY = "suggestions"
OUTFIT_KEY = "completeOutfit"
REFERENCE_KEY = "existingItem"

# fields the reply models require to be lists or text; null is repaired
_LIST_FIELDS = ("colors", "styles", "shoppingKeywords", "shoppingOptions")
_TEXT_FIELDS = ("description",)


def strip_code_fences(text: str) -> str:
    text = (text or "").strip()
    m = _FENCE_RE.search(text)
    if m:
        return m.group(1).strip()
    # Fence opened but the closing marker was cut off
    if text.startswith("```"):
        return text.split("\n", 1)[1].strip() if "\n" in text else ""
    return text


def parse_reply(text: str) -> Dict[str, Any]:
    body = strip_code_fences(text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedModelOutputError(f"model reply is not valid JSON: {e.msg} at char {e.pos}") from e
    if not isinstance(data, dict):
        raise MalformedModelOutputError(f"model reply is a JSON {type(data).__name__}, expected an object")
    return data


def _resolve_reference(value: Any, wardrobe: Dict[str, WardrobeItemRef]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        item = wardrobe.get(str(value).strip())
        return item.model_dump(by_alias=True) if item else None
    return None


def _entries(data: Dict[str, Any], key: str) -> Optional[List[Dict[str, Any]]]:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise MalformedModelOutputError(f"'{key}' must be a list, got {type(raw).__name__}")
    entries = []
    for i, e in enumerate(raw):
        if isinstance(e, dict):
            entries.append(dict(e))
        elif isinstance(e, str):
            entries.append({"description": e})
        else:
            raise MalformedModelOutputError(f"'{key}[{i}]' must be an object, got {type(e).__name__}")
    return entries


def _repair_nulls(entry: Dict[str, Any]) -> None:
    for name in _LIST_FIELDS:
        if name in entry and entry[name] is None:
            entry[name] = []
    for name in _TEXT_FIELDS:
        if name in entry and entry[name] is None:
            entry[name] = ""


def _ensure_id(entry: Dict[str, Any], prefix: str, index: int) -> None:
    current = entry.get("id")
    entry["id"] = str(current) if current not in (None, "") else f"{prefix}-{index}"


def normalize_response(raw_text: str, request: BaseModel) -> Dict[str, Any]:
    data = parse_reply(raw_text)
    wardrobe = {item.id: item for item in request_wardrobe(request)}

    suggestions = _entries(data, SUGGESTIONS_KEY)
    if suggestions is not None:
        for i, entry in enumerate(suggestions):
            _ensure_id(entry, "suggestion", i)
            _repair_nulls(entry)
            if REFERENCE_KEY in entry:
                entry[REFERENCE_KEY] = _resolve_reference(entry[REFERENCE_KEY], wardrobe)
        data[SUGGESTIONS_KEY] = suggestions

    outfit = _entries(data, OUTFIT_KEY)
    if outfit is not None:
        for i, entry in enumerate(outfit):
            _ensure_id(entry, "outfit-item", i)
            _repair_nulls(entry)
            entry[REFERENCE_KEY] = _resolve_reference(entry.get(REFERENCE_KEY), wardrobe)
            if not isinstance(entry.get("shoppingOptions"), list):
                entry["shoppingOptions"] = []
        data[OUTFIT_KEY] = outfit

    if not isinstance(data.get("analysis"), str):
        data["analysis"] = "" if data.get("analysis") is None else str(data["analysis"])
    return data
