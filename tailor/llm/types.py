from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tailor.core.garments import GarmentType, PriceTier, StylePreference

Fit = Literal["slim", "regular", "relaxed"]


class Measurements(BaseModel):
    height: float  # inches
    weight: float  # pounds
    chest: float
    waist: float
    inseam: float
    neck: float
    sleeve: float
    shoulder: Optional[float] = None
    preferred_fit: Fit = Field(default="regular", alias="preferredFit")

    model_config = ConfigDict(populate_by_name=True)


class WardrobeItemRef(BaseModel):
    """Read-only view of a wardrobe item, owned by the wardrobe collaborator."""

    id: str
    category: str
    color: Optional[str] = None
    secondary_color: Optional[str] = Field(default=None, alias="secondaryColor")
    material: Optional[str] = None
    pattern: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class EncodedImage(BaseModel):
    """Image already base64-encoded by the caller; forwarded as-is."""

    source: Literal["encoded"] = "encoded"
    data: str
    media_type: str = Field(default="image/jpeg", alias="mediaType")

    model_config = ConfigDict(populate_by_name=True)


class ImageRef(BaseModel):
    """Reference to image data: a local path, file://, http(s):// or data: URI."""

    source: Literal["ref"] = "ref"
    uri: str


ImageInput = Annotated[Union[EncodedImage, ImageRef], Field(discriminator="source")]


class OutfitSlotContext(BaseModel):
    garment_type: GarmentType = Field(alias="garmentType")
    description: str
    existing_item: Optional[str] = Field(default=None, alias="existingItem")

    model_config = ConfigDict(populate_by_name=True)


class _RequestBase(BaseModel):
    # Fields that a variant does not declare are rejected, never silently dropped.
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    measurements: Optional[Measurements] = None
    shoe_size: Optional[str] = Field(default=None, alias="shoeSize")


class InstantCheckRequest(_RequestBase):
    kind: Literal["instant-check"] = "instant-check"
    images: List[ImageInput] = Field(min_length=1)
    occasion: Optional[str] = None


class OutfitBuilderRequest(_RequestBase):
    kind: Literal["outfit-builder"] = "outfit-builder"
    images: List[ImageInput] = Field(min_length=1)
    occasion: str
    style_preference: Optional[StylePreference] = Field(default=None, alias="stylePreference")


class ClosetMatchRequest(_RequestBase):
    kind: Literal["closet-match"] = "closet-match"
    images: List[ImageInput] = Field(min_length=1)
    occasion: Optional[str] = None
    wardrobe_items: List[WardrobeItemRef] = Field(default_factory=list, alias="wardrobeItems")


class FindToMatchRequest(_RequestBase):
    kind: Literal["find-to-match"] = "find-to-match"
    images: List[ImageInput] = Field(min_length=1)
    occasion: Optional[str] = None
    style_preference: Optional[StylePreference] = Field(default=None, alias="stylePreference")
    price_tier: Optional[PriceTier] = Field(default=None, alias="priceRange")


class WardrobeOutfitRequest(_RequestBase):
    kind: Literal["wardrobe-outfit"] = "wardrobe-outfit"
    occasion: str
    style_preference: Optional[StylePreference] = Field(default=None, alias="stylePreference")
    price_tier: Optional[PriceTier] = Field(default=None, alias="priceRange")
    wardrobe_items: List[WardrobeItemRef] = Field(default_factory=list, alias="wardrobeItems")


class ShoppingOutfitRequest(_RequestBase):
    kind: Literal["shopping-outfit"] = "shopping-outfit"
    occasion: str
    style_preference: Optional[StylePreference] = Field(default=None, alias="stylePreference")
    price_tier: Optional[PriceTier] = Field(default=None, alias="priceRange")


class MixedOutfitRequest(_RequestBase):
    kind: Literal["mixed-outfit"] = "mixed-outfit"
    occasion: str
    style_preference: Optional[StylePreference] = Field(default=None, alias="stylePreference")
    price_tier: Optional[PriceTier] = Field(default=None, alias="priceRange")
    wardrobe_items: List[WardrobeItemRef] = Field(default_factory=list, alias="wardrobeItems")


class WardrobeCategorizationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    kind: Literal["wardrobe-categorization"] = "wardrobe-categorization"
    images: List[ImageInput] = Field(min_length=1)


class ItemRegenerationRequest(_RequestBase):
    kind: Literal["item-regeneration"] = "item-regeneration"
    occasion: str
    style_preference: Optional[StylePreference] = Field(default=None, alias="stylePreference")
    price_tier: Optional[PriceTier] = Field(default=None, alias="priceRange")
    wardrobe_items: List[WardrobeItemRef] = Field(default_factory=list, alias="wardrobeItems")
    garment_type_to_regenerate: GarmentType = Field(alias="garmentTypeToRegenerate")
    current_outfit: List[OutfitSlotContext] = Field(default_factory=list, alias="currentOutfitContext")


AnalysisRequest = Annotated[
    Union[
        InstantCheckRequest,
        OutfitBuilderRequest,
        ClosetMatchRequest,
        FindToMatchRequest,
        WardrobeOutfitRequest,
        ShoppingOutfitRequest,
        MixedOutfitRequest,
        WardrobeCategorizationRequest,
        ItemRegenerationRequest,
    ],
    Field(discriminator="kind"),
]

REQUEST_VARIANTS = (
    InstantCheckRequest,
    OutfitBuilderRequest,
    ClosetMatchRequest,
    FindToMatchRequest,
    WardrobeOutfitRequest,
    ShoppingOutfitRequest,
    MixedOutfitRequest,
    WardrobeCategorizationRequest,
    ItemRegenerationRequest,
)


def request_images(request: BaseModel) -> List[Union[EncodedImage, ImageRef]]:
    return list(getattr(request, "images", None) or [])


def request_wardrobe(request: BaseModel) -> List[WardrobeItemRef]:
    return list(getattr(request, "wardrobe_items", None) or [])


class PreparedImage(BaseModel):
    data: str  # base64
    media_type: str = "image/jpeg"
    width: Optional[int] = None
    height: Optional[int] = None


class Suggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    garment_type: Optional[str] = Field(default=None, alias="garmentType")
    description: str = ""
    reasoning: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    styles: List[str] = Field(default_factory=list)
    existing_item: Optional[Dict[str, Any]] = Field(default=None, alias="existingItem")


class OutfitItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    garment_type: Optional[str] = Field(default=None, alias="garmentType")
    description: str = ""
    colors: List[str] = Field(default_factory=list)
    styles: List[str] = Field(default_factory=list)
    shopping_keywords: List[str] = Field(default_factory=list, alias="shoppingKeywords")
    price_tier: Optional[str] = Field(default=None, alias="priceRange")
    existing_item: Optional[Dict[str, Any]] = Field(default=None, alias="existingItem")
    shopping_options: List[Dict[str, Any]] = Field(default_factory=list, alias="shoppingOptions")


class AnalysisResponse(BaseModel):
    """Model reply after normalization. Unknown keys are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    analysis: str = ""
    rating: Optional[str] = None
    suggestions: Optional[List[Suggestion]] = None
    complete_outfit: Optional[List[OutfitItem]] = Field(default=None, alias="completeOutfit")
    size_recommendations: Optional[List[Dict[str, Any]]] = Field(default=None, alias="sizeRecommendations")
    photo_quality: Optional[str] = Field(default=None, alias="photoQuality")
    photo_quality_feedback: Optional[str] = Field(default=None, alias="photoQualityFeedback")
