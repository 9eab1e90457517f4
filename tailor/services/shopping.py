import logging
import uuid
from typing import Callable, Dict, List, Optional
from urllib.parse import quote, quote_plus

from tailor.core.config import Settings, settings as default_settings
from tailor.core.garments import FORMAL_GARMENTS, PriceTier, parse_garment_type
from tailor.llm.types import AnalysisResponse, OutfitItem

logger = logging.getLogger("uvicorn.error")

SPECIFIC_GARMENTS = [
    "sweater", "polo", "tee", "t-shirt", "hoodie", "cardigan", "blazer", "jacket", "coat",
    "chinos", "jeans", "dress shirt", "oxford", "henley", "bomber", "parka", "peacoat",
]

_SIMPLE_COLORS = ["gray", "grey", "blue", "black", "white", "navy"]


def build_search_term(garment_type: Optional[str], description: str, colors: List[str]) -> str:
    terms = ["men"]
    desc = (description or "").lower()
    specific = next((g for g in SPECIFIC_GARMENTS if g in desc), None)
    if specific:
        terms.append(specific.replace("-", " "))
    elif garment_type:
        terms.append(garment_type.lower())

    if colors:
        color = colors[0].lower()
        simple = next((c for c in _SIMPLE_COLORS if c in color), None)
        if simple in ("gray", "grey"):
            terms.append("gray")
        elif simple:
            terms.append(simple)
        elif color.split():
            terms.append(color.split()[0])

    if "crew neck" in desc:
        terms.append("crew neck")
    elif "v-neck" in desc or "v neck" in desc:
        terms.append("v-neck")
    elif "button" in desc and "button-down" not in desc:
        terms.append("button")
    return " ".join(terms)


def _with(param: str, value: str) -> str:
    return f"&{param}={quote_plus(value)}" if value else ""


def _retailers(s: Settings) -> Dict[str, Callable[[str], str]]:
    return {
        "Amazon": lambda q: (
            f"https://www.amazon.com/s?k={quote_plus(q)}&tag={quote_plus(s.AMAZON_AFFILIATE_TAG or 'default-tag')}"
            "&rh=n:7141123011"
        ),
        "Nordstrom": lambda q: (
            f"https://www.nordstrom.com/sr?origin=keywordsearch&keyword={quote_plus(q)}"
            f"{_with('affiliateId', s.NORDSTROM_AFFILIATE_ID)}"
        ),
        "J.Crew": lambda q: f"https://www.jcrew.com/search?q={quote_plus(q)}{_with('cjdata', s.JCREW_AFFILIATE_ID)}",
        "Bonobos": lambda q: f"https://bonobos.com/shop?q={quote_plus(q)}",
        "Target": lambda q: f"https://www.target.com/s?searchTerm={quote_plus(q)}&category=5xtld",
        "Uniqlo": lambda q: f"https://www.uniqlo.com/us/en/men?q={quote_plus(q)}",
        "ASOS": lambda q: f"https://www.asos.com/us/men/search/?q={quote_plus(q)}",
        "Express": lambda q: f"https://www.express.com/mens-clothing/search/{quote(q)}",
        "Mr Porter": lambda q: f"https://www.mrporter.com/en-us/mens/search/{quote(q)}",
    }


def _suitsupply(s: Settings, q: str) -> str:
    return f"https://suitsupply.com/en-us/search?q={quote_plus(q)}{_with('affiliateid', s.SUITSUPPLY_AFFILIATE_ID)}"


_HOUSE_BRANDS = {"J.Crew", "Bonobos", "Uniqlo"}


def generate_shopping_options(
    item: OutfitItem, price_tier: PriceTier = PriceTier.MID, *, config: Settings = default_settings
) -> List[Dict[str, object]]:
    search_term = build_search_term(item.garment_type, item.description, item.colors)
    garment = parse_garment_type(item.garment_type)

    def make(retailer: str, link: str) -> Dict[str, object]:
        return {
            "id": str(uuid.uuid4()),
            "name": item.description,
            "brand": retailer if retailer in _HOUSE_BRANDS else "Various Brands",
            "price": 0,
            "imageUrl": "",
            "affiliateLink": link,
            "retailer": retailer,
            "garmentType": item.garment_type,
            "priceRange": price_tier.value,
            "searchTerm": search_term,
        }

    options = [make(name, build(search_term)) for name, build in _retailers(config).items()]
    if garment in FORMAL_GARMENTS:
        options.append(make("SuitSupply", _suitsupply(config, search_term)))
    return options


def populate_shopping_options(
    response: AnalysisResponse, default_tier: Optional[PriceTier] = None, *, config: Settings = default_settings
) -> AnalysisResponse:
    """Fill shopping links for outfit pieces that do not come from the wardrobe."""
    filled = 0
    for item in response.complete_outfit or []:
        if item.existing_item is not None or item.shopping_options:
            continue
        try:
            tier = PriceTier(item.price_tier) if item.price_tier else (default_tier or PriceTier.MID)
        except ValueError:
            tier = default_tier or PriceTier.MID
        item.shopping_options = generate_shopping_options(item, tier, config=config)
        filled += 1
    if filled:
        logger.info("shopping:populated items=%s", filled)
    return response
