import re
from enum import Enum
from typing import Optional


class GarmentType(str, Enum):
    SHIRT = "Shirt"
    DRESS_SHIRT = "Dress Shirt"
    HENLEY = "Henley"
    PANTS = "Pants"
    JACKET = "Jacket"
    BLAZER = "Blazer"
    SUIT = "Suit"
    COAT = "Coat"
    VEST = "Vest"
    SWEATER = "Sweater"
    HOODIE = "Hoodie"
    T_SHIRT = "T-Shirt"
    POLO = "Polo"
    CHINOS = "Chinos"
    JEANS = "Jeans"
    SHORTS = "Shorts"
    SHOES = "Shoes"
    BOOTS = "Boots"
    DRESS_SHOES = "Dress Shoes"
    LOAFERS = "Loafers"
    SNEAKERS = "Sneakers"
    ACCESSORIES = "Accessories"
    TIE = "Tie"
    BELT = "Belt"
    WATCH = "Watch"
    HAT = "Hat"


class GarmentCategory(str, Enum):
    SHIRTS = "Shirts"
    PANTS = "Pants"
    JACKETS = "Jackets"
    SHOES = "Shoes"
    HATS = "Hats"
    ACCESSORIES = "Accessories"


class StylePreference(str, Enum):
    CONSERVATIVE = "Conservative"
    MODERN = "Modern"
    STYLISH = "Stylish"
    FASHION_FORWARD = "Fashion-Forward"
    STREET = "Street"


class PriceTier(str, Enum):
    BUDGET = "budget"
    MID = "mid"
    PREMIUM = "premium"


GARMENT_CATEGORY: dict[GarmentType, GarmentCategory] = {
    GarmentType.SHIRT: GarmentCategory.SHIRTS,
    GarmentType.DRESS_SHIRT: GarmentCategory.SHIRTS,
    GarmentType.HENLEY: GarmentCategory.SHIRTS,
    GarmentType.T_SHIRT: GarmentCategory.SHIRTS,
    GarmentType.POLO: GarmentCategory.SHIRTS,
    GarmentType.SWEATER: GarmentCategory.SHIRTS,
    GarmentType.HOODIE: GarmentCategory.SHIRTS,
    GarmentType.PANTS: GarmentCategory.PANTS,
    GarmentType.CHINOS: GarmentCategory.PANTS,
    GarmentType.JEANS: GarmentCategory.PANTS,
    GarmentType.SHORTS: GarmentCategory.PANTS,
    GarmentType.JACKET: GarmentCategory.JACKETS,
    GarmentType.BLAZER: GarmentCategory.JACKETS,
    GarmentType.SUIT: GarmentCategory.JACKETS,
    GarmentType.COAT: GarmentCategory.JACKETS,
    GarmentType.VEST: GarmentCategory.JACKETS,
    GarmentType.SHOES: GarmentCategory.SHOES,
    GarmentType.BOOTS: GarmentCategory.SHOES,
    GarmentType.DRESS_SHOES: GarmentCategory.SHOES,
    GarmentType.LOAFERS: GarmentCategory.SHOES,
    GarmentType.SNEAKERS: GarmentCategory.SHOES,
    GarmentType.ACCESSORIES: GarmentCategory.ACCESSORIES,
    GarmentType.TIE: GarmentCategory.ACCESSORIES,
    GarmentType.BELT: GarmentCategory.ACCESSORIES,
    GarmentType.WATCH: GarmentCategory.ACCESSORIES,
    GarmentType.HAT: GarmentCategory.HATS,
}

FORMAL_GARMENTS = frozenset(
    {GarmentType.SUIT, GarmentType.DRESS_SHIRT, GarmentType.BLAZER, GarmentType.TIE, GarmentType.SHIRT}
)

# Common spellings the model uses that are not exact labels
_ALIASES = {
    "waistcoat": GarmentType.VEST,
    "tee": GarmentType.T_SHIRT,
    "tshirt": GarmentType.T_SHIRT,
    "dressshirt": GarmentType.DRESS_SHIRT,
    "trousers": GarmentType.PANTS,
    "slacks": GarmentType.PANTS,
    "sport coat": GarmentType.BLAZER,
    "overcoat": GarmentType.COAT,
    "jumper": GarmentType.SWEATER,
    "cardigan": GarmentType.SWEATER,
    "oxfords": GarmentType.DRESS_SHOES,
    "trainers": GarmentType.SNEAKERS,
    "necktie": GarmentType.TIE,
    "cap": GarmentType.HAT,
}


def garment_labels() -> list[str]:
    return [g.value for g in GarmentType]


def parse_garment_type(label: Optional[str]) -> Optional[GarmentType]:
    """Map a free-text garment label to a GarmentType, or None if unknown."""
    if not label:
        return None
    key = re.sub(r"[\s_\-]+", " ", label.strip().lower())
    for g in GarmentType:
        if re.sub(r"[\s_\-]+", " ", g.value.lower()) == key:
            return g
    if key in _ALIASES:
        return _ALIASES[key]
    compact = key.replace(" ", "")
    if compact in _ALIASES:
        return _ALIASES[compact]
    if key.endswith("s") and key[:-1] in _ALIASES:
        return _ALIASES[key[:-1]]
    return None


def category_for(garment: GarmentType) -> GarmentCategory:
    return GARMENT_CATEGORY[garment]
