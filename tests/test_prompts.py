import pytest
from pydantic import ValidationError

from fixtures.vision_fixtures import blazer
from tailor.core.garments import GarmentType, PriceTier, StylePreference, garment_labels
from tailor.llm.prompts import TASK_BUILDERS, build_prompt, render_measurements
from tailor.llm.types import (
    REQUEST_VARIANTS,
    EncodedImage,
    InstantCheckRequest,
    ItemRegenerationRequest,
    Measurements,
    OutfitSlotContext,
    ShoppingOutfitRequest,
    WardrobeCategorizationRequest,
    WardrobeItemRef,
    WardrobeOutfitRequest,
)

MEASUREMENTS = Measurements(
    height=70, weight=175, chest=40, waist=32, inseam=32, neck=15.5, sleeve=34, preferred_fit="slim"
)


def _wardrobe_request():
    return WardrobeOutfitRequest(
        occasion="business casual",
        style_preference=StylePreference.MODERN,
        price_tier=PriceTier.MID,
        measurements=MEASUREMENTS,
        shoe_size="10.5",
        wardrobe_items=[blazer(), WardrobeItemRef(id="w0", category="Chinos", color="khaki")],
    )


def test_every_variant_has_a_task_builder():
    assert set(REQUEST_VARIANTS) == set(TASK_BUILDERS)


def test_identical_requests_produce_identical_prompts():
    assert build_prompt(_wardrobe_request()) == build_prompt(_wardrobe_request())


def test_measurements_render_as_sentences():
    text = render_measurements(MEASUREMENTS, "10.5")
    assert "5' 10\" tall" in text
    assert "175 lbs" in text
    assert "neck 15.5\"" in text
    assert "slim fit" in text
    assert "shoe size is 10.5" in text
    assert render_measurements(None, None) == ""


def test_wardrobe_prompt_lists_items_by_id_and_context():
    prompt = build_prompt(_wardrobe_request())
    assert prompt.startswith("You are an expert men's style consultant.")
    assert "Occasion: business casual" in prompt
    assert "Style: Modern" in prompt
    assert "Price range: mid" in prompt
    assert "- [w1] Blazer: navy, wool, solid, size 40R" in prompt
    # listed in id order
    assert prompt.index("[w0]") < prompt.index("[w1]")
    assert '"completeOutfit"' in prompt
    assert '"existingItem"' in prompt
    for label in garment_labels():
        assert label in prompt


def test_shopping_prompt_has_no_wardrobe_section():
    prompt = build_prompt(ShoppingOutfitRequest(occasion="wedding", price_tier=PriceTier.PREMIUM))
    assert "WARDROBE" not in prompt
    assert '"existingItem"' not in prompt
    assert "USER MEASUREMENTS" not in prompt
    assert '"shoppingKeywords"' in prompt


def test_regeneration_prompt_names_slot_and_current_outfit():
    req = ItemRegenerationRequest(
        occasion="wedding",
        garment_type_to_regenerate=GarmentType.SHOES,
        wardrobe_items=[blazer()],
        current_outfit=[
            OutfitSlotContext(garment_type=GarmentType.BLAZER, description="Navy wool blazer", existing_item="w1"),
            OutfitSlotContext(garment_type=GarmentType.SHOES, description="Black oxfords"),
        ],
    )
    prompt = build_prompt(req)
    assert "CURRENT OUTFIT:" in prompt
    assert "- Blazer: Navy wool blazer (wardrobe item w1)" in prompt
    assert "- Shoes: Black oxfords" in prompt
    assert "Replace ONLY the Shoes" in prompt
    assert "DIFFERENT Shoes" in prompt


def test_instant_check_asks_for_rating():
    req = InstantCheckRequest(images=[EncodedImage(data="aGk=")], occasion="first date")
    prompt = build_prompt(req)
    assert '"rating": "great" | "okay" | "poor"' in prompt
    assert "Occasion: first date" in prompt


def test_categorization_asks_for_photo_quality():
    prompt = build_prompt(WardrobeCategorizationRequest(images=[EncodedImage(data="aGk=")]))
    assert '"photoQuality"' in prompt
    assert "USER MEASUREMENTS" not in prompt
    assert "- Shoes: Shoes, Boots, Dress Shoes, Loafers, Sneakers" in prompt
    assert "- Hats: Hat" in prompt


def test_fields_outside_a_variant_are_rejected():
    with pytest.raises(ValidationError):
        WardrobeCategorizationRequest(images=[EncodedImage(data="aGk=")], occasion="casual")
    with pytest.raises(ValidationError):
        ShoppingOutfitRequest(occasion="casual", wardrobeItems=[])
    with pytest.raises(ValidationError):
        InstantCheckRequest(images=[])
