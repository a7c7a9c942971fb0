"""
Link Enricher.

Pure URL templating for shopping and reference links. Nothing here
touches the network; links are search URLs the client opens.
"""

from typing import List, Optional, Sequence
from urllib.parse import quote

from core.utils import clean_terms
from stylist.categories import strip_gender_prefix
from stylist.models import LinkEntry, OutfitSuggestion, ShoppingSearchLink

# Characters left unescaped, matching browser encodeURIComponent
_URI_SAFE = "-_.!~*'()"


def _enc(value: str) -> str:
    return quote(value, safe=_URI_SAFE)


def gender_term(gender: str) -> str:
    return "women" if gender == "female" else "men"


def shopping_links(outfit: OutfitSuggestion, gender: str) -> List[LinkEntry]:
    term = gender_term(gender)
    query = f"{term} {outfit.title} {' '.join(outfit.items)}"
    return [
        LinkEntry(
            platform="Amazon",
            url=f"https://www.amazon.com/s?k={_enc(query)}&ref=nb_sb_noss",
            description=f"Shop similar {term}'s items on Amazon",
            icon="bag",
        ),
        LinkEntry(
            platform="Myntra",
            url=f"https://www.myntra.com/search/{_enc(query)}",
            description=f"Shop similar {term}'s items on Myntra",
            icon="bag",
        ),
        LinkEntry(
            platform="Pinterest",
            url=f"https://www.pinterest.com/search/pins/?q={_enc(query + ' outfit')}",
            description=f"Find {term}'s outfit inspiration",
            icon="camera",
        ),
        LinkEntry(
            platform="Google Shopping",
            url=f"https://www.google.com/search?tbm=shop&q={_enc(query)}",
            description=f"Compare prices for {term}'s items",
            icon="pricetag",
        ),
    ]


def reference_links(outfit: OutfitSuggestion, gender: str, category_slug: str) -> List[LinkEntry]:
    term = gender_term(gender)
    occasion_query = f"{term} {outfit.occasion} {outfit.title} outfit"
    color_query = f"{term} {' '.join(outfit.colors)} {outfit.title}"
    category_query = f"{term} {strip_gender_prefix(category_slug or '')} outfit"
    return [
        LinkEntry(
            platform="Style Guide",
            url=f"https://www.google.com/search?q={_enc(occasion_query + ' style guide')}",
            description=f"Learn {term}'s styling tips",
            icon="book",
        ),
        LinkEntry(
            platform="Color Matching",
            url=f"https://www.google.com/search?q={_enc(color_query + ' color combination fashion')}",
            description=f"{term}'s color coordination ideas",
            icon="color-palette",
        ),
        LinkEntry(
            platform="Outfit Ideas",
            url=f"https://www.google.com/search?tbm=isch&q={_enc(category_query + ' ideas')}",
            description=f"Visual {term}'s outfit references",
            icon="images",
        ),
    ]


def enrich_outfit(outfit: OutfitSuggestion, gender: str, category_slug: str) -> OutfitSuggestion:
    """Copy of ``outfit`` with shopping and reference links; the input is unchanged."""
    return outfit.model_copy(update={
        "shopping_links": shopping_links(outfit, gender),
        "reference_links": reference_links(outfit, gender, category_slug),
    })


def enrich_outfits(
    outfits: Sequence[OutfitSuggestion], gender: str, category_slug: str,
) -> List[OutfitSuggestion]:
    return [enrich_outfit(o, gender, category_slug) for o in outfits]


def coordinated_shopping_links(
    items: Sequence[str],
    colors: Sequence[str],
    gender: str,
    coordination_colors: Optional[Sequence[str]] = None,
) -> List[ShoppingSearchLink]:
    """
    Platform searches for a twinning outfit.

    Venue colours, when given, replace the outfit's own colours in the
    colour-led searches so both people shop the same palette.
    """
    term = gender_term(gender)
    clean_items = clean_terms(items)
    clean_colors = clean_terms(coordination_colors or colors)

    main_search = f"{term} {' '.join(clean_items[:3])}".strip()
    if clean_colors:
        first_item = clean_items[0] if clean_items else "outfit"
        color_search = f"{clean_colors[0]} {term} {first_item}"
    else:
        color_search = main_search
    specific_search = f"{term} {' '.join(clean_items[:2])}" if len(clean_items) > 1 else main_search
    pinterest_search = f"{main_search} {' '.join(clean_colors[:2])} outfit".replace("  ", " ")

    return [
        ShoppingSearchLink(
            platform="Amazon Fashion",
            search_term=main_search,
            url=f"https://amazon.com/s?k={_enc(main_search)}&rh=n%3A7141123011",
            icon="logo-amazon",
        ),
        ShoppingSearchLink(
            platform="Myntra",
            search_term=color_search,
            url=f"https://myntra.com/search?q={_enc(color_search)}",
            icon="shirt",
        ),
        ShoppingSearchLink(
            platform="Zara",
            search_term=specific_search,
            url=f"https://zara.com/search?searchTerm={_enc(specific_search)}",
            icon="storefront",
        ),
        ShoppingSearchLink(
            platform="Pinterest Style",
            search_term=pinterest_search,
            url=f"https://pinterest.com/search/pins/?q={_enc(pinterest_search)}",
            icon="logo-pinterest",
        ),
    ]


# Retailer search endpoints for a single item
_PLATFORM_SEARCH_URLS = {
    "amazon": "https://www.amazon.com/s?k={q}",
    "myntra": "https://www.myntra.com/search/{q}",
    "zara": "https://www.zara.com/search?searchTerm={q}",
    "h&m": "https://www2.hm.com/en_us/search-results.html?q={q}",
    "asos": "https://www.asos.com/search/?q={q}",
    "nordstrom": "https://www.nordstrom.com/sr?keyword={q}",
    "uniqlo": "https://www.uniqlo.com/us/en/search?q={q}",
    "pinterest": "https://www.pinterest.com/search/pins/?q={q}%20fashion",
    "google images": "https://www.google.com/search?tbm=isch&q={q}%20fashion",
}
_DEFAULT_SEARCH_URL = "https://www.google.com/search?tbm=shop&q={q}"


def platform_search_url(item_name: str, platform: Optional[str]) -> str:
    """Search URL for one item on a named platform; unknown platforms use Google Shopping."""
    template = _PLATFORM_SEARCH_URLS.get((platform or "").strip().lower(), _DEFAULT_SEARCH_URL)
    return template.format(q=_enc(item_name or ""))
