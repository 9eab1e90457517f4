from __future__ import annotations

from typing import Callable, Dict, List, Optional

from tailor.core.garments import GarmentCategory, GarmentType, category_for, garment_labels
from tailor.llm.types import (
    REQUEST_VARIANTS,
    ClosetMatchRequest,
    FindToMatchRequest,
    InstantCheckRequest,
    ItemRegenerationRequest,
    Measurements,
    MixedOutfitRequest,
    OutfitBuilderRequest,
    ShoppingOutfitRequest,
    WardrobeCategorizationRequest,
    WardrobeItemRef,
    WardrobeOutfitRequest,
)

PROMPT_VERSION = "p3"

ROLE_PREAMBLE = (
    "You are an expert men's style consultant. Analyze the clothing and provide "
    "professional, actionable advice.\n\n"
    "Keep responses concise and beginner-friendly."
)

JSON_RULES = (
    "Respond ONLY with a single JSON object. Do not wrap it in markdown or add any text "
    "before or after it."
)

SIZE_RECOMMENDATIONS_SHAPE = """  "sizeRecommendations": [
    {
      "garmentType": "<garment type>",
      "recommendedSize": "e.g. 40R, 32x32",
      "fitNotes": ["note1", "note2"],
      "tailoringTips": ["tip1"]
    }
  ]"""

RATED_SUGGESTIONS_SHAPE = """{
  "rating": "great" | "okay" | "poor",
  "analysis": "Brief explanation (2-3 sentences)",
  "suggestions": [
    {
      "garmentType": "<garment type>",
      "description": "Specific item description",
      "reasoning": "Why this works",
      "colors": ["color1", "color2"],
      "styles": ["style1", "style2"]%(extra)s
    }
  ],
%(sizes)s
}"""

OUTFIT_SHAPE = """{
  "analysis": "Overall concept and why it works",
  "completeOutfit": [
    {
      "garmentType": "<garment type>",
      "description": "Specific description with colors and style",%(existing)s
      "shoppingKeywords": ["keyword1", "keyword2"],
      "colors": ["color1"],
      "styles": ["style1"],
      "priceRange": "budget" | "mid" | "premium"
    }
  ],
%(sizes)s
}"""

CATEGORIZATION_SHAPE = """{
  "analysis": "One sentence describing the item",
  "photoQuality": "good" | "poor",
  "photoQualityFeedback": "What to fix if the photo is poor, otherwise empty",
  "suggestions": [
    {
      "garmentType": "<garment type>",
      "description": "Short item name, e.g. navy wool blazer",
      "reasoning": "Visible cues used for the classification",
      "colors": ["primary color", "secondary color if any"],
      "material": "cotton | wool | linen | denim | leather | synthetic | other",
      "pattern": "solid | striped | checked | plaid | paisley | polka dot | other",
      "styles": ["style1"]
    }
  ]
}"""


def _feet_inches(height_in: float) -> str:
    total = int(round(height_in))
    return f"{total // 12}' {total % 12}\""


def _num(v: float) -> str:
    return f"{v:g}"


def render_measurements(m: Optional[Measurements], shoe_size: Optional[str]) -> str:
    """Body context as plain sentences. Empty when nothing is known."""
    lines: List[str] = []
    if m is not None:
        lines.append(
            f"The user is {_feet_inches(m.height)} tall and weighs {_num(m.weight)} lbs."
        )
        lines.append(
            f"Chest {_num(m.chest)}\", waist {_num(m.waist)}\", inseam {_num(m.inseam)}\", "
            f"neck {_num(m.neck)}\", sleeve {_num(m.sleeve)}\"."
        )
        if m.shoulder is not None:
            lines.append(f"Shoulder width is {_num(m.shoulder)}\".")
        lines.append(f"He prefers a {m.preferred_fit} fit.")
    if shoe_size:
        lines.append(f"His shoe size is {shoe_size} (US).")
    if not lines:
        return ""
    return "USER MEASUREMENTS:\n" + "\n".join(lines)


def render_wardrobe(items: List[WardrobeItemRef]) -> str:
    if not items:
        return "The user's wardrobe is empty."
    lines = []
    for item in sorted(items, key=lambda i: i.id):
        details = []
        if item.color:
            color = item.color
            if item.secondary_color:
                color += f" / {item.secondary_color}"
            details.append(color)
        for attr in (item.material, item.pattern):
            if attr:
                details.append(attr)
        if item.brand:
            details.append(f"brand {item.brand}")
        if item.size:
            details.append(f"size {item.size}")
        suffix = f": {', '.join(details)}" if details else ""
        lines.append(f"- [{item.id}] {item.category}{suffix}")
    return "USER'S WARDROBE (id in brackets):\n" + "\n".join(lines)


def _context_lines(occasion: Optional[str], style, price_tier) -> str:
    lines = []
    if occasion:
        lines.append(f"Occasion: {occasion}")
    if style is not None:
        lines.append(f"Style: {style.value}")
    if price_tier is not None:
        lines.append(f"Price range: {price_tier.value}")
    return "\n".join(lines)


def _block(*parts: str) -> str:
    return "\n".join(p for p in parts if p)


def _garment_rule() -> str:
    return '"garmentType" must be exactly one of: ' + ", ".join(garment_labels()) + "."


def _category_guide() -> str:
    lines = []
    for cat in GarmentCategory:
        members = [g.value for g in GarmentType if category_for(g) is cat]
        lines.append(f"- {cat.value}: {', '.join(members)}")
    return "GARMENT TYPES BY CATEGORY:\n" + "\n".join(lines)


def _rated_shape(extra: str = "") -> str:
    return RATED_SUGGESTIONS_SHAPE % {"extra": extra, "sizes": SIZE_RECOMMENDATIONS_SHAPE}


def _outfit_shape(with_wardrobe: bool) -> str:
    existing = (
        '\n      "existingItem": "<wardrobe item id, or null if this piece must be bought>",'
        if with_wardrobe
        else ""
    )
    return OUTFIT_SHAPE % {"existing": existing, "sizes": SIZE_RECOMMENDATIONS_SHAPE}


def _instant_check(req: InstantCheckRequest) -> str:
    return _block(
        "TASK: Instant Match Check",
        _context_lines(req.occasion, None, None),
        'Rate how well the pictured clothes work together as "great", "okay", or "poor" '
        "and suggest improvements.",
        "\nRESPOND IN JSON:",
        _rated_shape(),
    )


def _outfit_builder(req: OutfitBuilderRequest) -> str:
    return _block(
        "TASK: Complete Outfit Builder",
        _context_lines(req.occasion, req.style_preference, None),
        "Use the pictured item as the starting point and create a complete outfit with all "
        "garments needed.",
        "\nRESPOND IN JSON:",
        _outfit_shape(with_wardrobe=False),
    )


def _closet_match(req: ClosetMatchRequest) -> str:
    return _block(
        "TASK: Match with Existing Items",
        _context_lines(req.occasion, None, None),
        render_wardrobe(req.wardrobe_items),
        "Analyze the photo and suggest which items from the user's wardrobe would match it. "
        'Reference wardrobe items by their id in "existingItem".',
        "\nRESPOND IN JSON:",
        _rated_shape(extra=',\n      "existingItem": "<wardrobe item id>"'),
    )


def _find_to_match(req: FindToMatchRequest) -> str:
    return _block(
        "TASK: Find Items to Match",
        _context_lines(req.occasion, req.style_preference, req.price_tier),
        "The photo shows a piece the user already owns. Suggest new pieces to buy that pair "
        "well with it.",
        "\nRESPOND IN JSON:",
        _outfit_shape(with_wardrobe=False),
    )


def _wardrobe_outfit(req: WardrobeOutfitRequest) -> str:
    return _block(
        "TASK: Outfit From Wardrobe",
        _context_lines(req.occasion, req.style_preference, req.price_tier),
        render_wardrobe(req.wardrobe_items),
        "Build a complete outfit using ONLY items from the user's wardrobe. Set "
        '"existingItem" to the id of the wardrobe item used for each piece. If a needed '
        'piece is missing from the wardrobe, set "existingItem" to null and give '
        '"shoppingKeywords" for it.',
        "\nRESPOND IN JSON:",
        _outfit_shape(with_wardrobe=True),
    )


def _shopping_outfit(req: ShoppingOutfitRequest) -> str:
    return _block(
        "TASK: Shopping Outfit",
        _context_lines(req.occasion, req.style_preference, req.price_tier),
        "Create a complete outfit of new pieces to buy. Give specific "
        '"shoppingKeywords" for every piece.',
        "\nRESPOND IN JSON:",
        _outfit_shape(with_wardrobe=False),
    )


def _mixed_outfit(req: MixedOutfitRequest) -> str:
    return _block(
        "TASK: Mixed Outfit",
        _context_lines(req.occasion, req.style_preference, req.price_tier),
        render_wardrobe(req.wardrobe_items),
        "Build a complete outfit that combines the user's wardrobe with new pieces to buy. "
        'Use wardrobe items where they fit and set "existingItem" to their id; for new '
        'pieces set "existingItem" to null and give "shoppingKeywords".',
        "\nRESPOND IN JSON:",
        _outfit_shape(with_wardrobe=True),
    )


def _wardrobe_categorization(req: WardrobeCategorizationRequest) -> str:
    return _block(
        "TASK: Wardrobe Item Categorization",
        "Identify the single garment in the photo so it can be added to the user's wardrobe. "
        'Also judge the photo: set "photoQuality" to "poor" if the item is blurry, dark, '
        "cropped or cluttered.",
        _category_guide(),
        "\nRESPOND IN JSON:",
        CATEGORIZATION_SHAPE,
    )


def _item_regeneration(req: ItemRegenerationRequest) -> str:
    target = req.garment_type_to_regenerate.value
    outfit_lines = []
    for slot in req.current_outfit:
        owned = f" (wardrobe item {slot.existing_item})" if slot.existing_item else ""
        outfit_lines.append(f"- {slot.garment_type.value}: {slot.description}{owned}")
    current = "CURRENT OUTFIT:\n" + ("\n".join(outfit_lines) if outfit_lines else "- (empty)")
    return _block(
        "TASK: Replace One Outfit Item",
        _context_lines(req.occasion, req.style_preference, req.price_tier),
        render_wardrobe(req.wardrobe_items),
        current,
        f"Replace ONLY the {target} in the outfit above. Recommend a DIFFERENT {target} than "
        "the current one that still works with the rest of the outfit. Prefer a wardrobe item "
        '(set "existingItem" to its id); otherwise set "existingItem" to null and give '
        '"shoppingKeywords". Return exactly one entry in "completeOutfit".',
        "\nRESPOND IN JSON:",
        _outfit_shape(with_wardrobe=True),
    )


TASK_BUILDERS: Dict[type, Callable] = {
    InstantCheckRequest: _instant_check,
    OutfitBuilderRequest: _outfit_builder,
    ClosetMatchRequest: _closet_match,
    FindToMatchRequest: _find_to_match,
    WardrobeOutfitRequest: _wardrobe_outfit,
    ShoppingOutfitRequest: _shopping_outfit,
    MixedOutfitRequest: _mixed_outfit,
    WardrobeCategorizationRequest: _wardrobe_categorization,
    ItemRegenerationRequest: _item_regeneration,
}

_missing = [v.__name__ for v in REQUEST_VARIANTS if v not in TASK_BUILDERS]
if _missing:
    raise RuntimeError(f"no prompt builder for {', '.join(_missing)}")


def build_prompt(request) -> str:
    builder = TASK_BUILDERS.get(type(request))
    if builder is None:
        raise TypeError(f"unsupported request type: {type(request).__name__}")
    context = render_measurements(
        getattr(request, "measurements", None), getattr(request, "shoe_size", None)
    )
    sections = [ROLE_PREAMBLE, context, builder(request), _garment_rule(), JSON_RULES]
    return "\n\n".join(s for s in sections if s)
