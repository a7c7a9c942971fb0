"""
Fallback Synthesizer.

Deterministic, rule-table outfit generation used whenever the AI path
produces nothing usable. No network, no randomness, never raises.

Output for a request is the category's curated templates (tailored with
a body-type styling tip) followed by one outfit assembled from the
body-type and skin-tone tables.
"""

from typing import Dict, List, Optional, Tuple

from core.logging import get_logger
from stylist.categories import map_category_to_style
from stylist.models import NormalizedProfile, OutfitSuggestion, WeatherData
from stylist.profile import DEFAULT_FEMALE_BODY, DEFAULT_MALE_BODY, fallback_body_bucket

logger = get_logger(__name__)


# ── Category templates ────────────────────────────────────────────
# Keyword checked against the lower-cased slug, in order.

_Template = Dict[str, object]

CATEGORY_TEMPLATES: Tuple[Tuple[str, Dict[str, Tuple[_Template, ...]]], ...] = (
    ("gym", {
        "male": (
            {
                "id": "fallback_gym_male_1",
                "title": "Men's Athletic Performance Set",
                "description": "High-performance workout outfit designed for men's intense training sessions.",
                "items": ["Men's moisture-wicking tank top", "Athletic shorts", "Men's running shoes", "Sports watch"],
                "occasion": "Gym workouts, cardio sessions",
                "season": "All seasons",
                "colors": ["Black", "Gray", "Neon accents"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose breathable, moisture-wicking fabrics",
                    "Ensure proper fit for unrestricted movement",
                    "Layer with a light jacket for warm-up",
                ],
                "image_description": "A sleek men's athletic look with black moisture-wicking tank and gray shorts, perfect for high-intensity workouts.",
            },
            {
                "id": "fallback_gym_male_2",
                "title": "Men's Strength Training Outfit",
                "description": "Comfortable and supportive outfit perfect for weightlifting and strength training.",
                "items": ["Fitted compression shirt", "Athletic shorts", "Cross-training shoes", "Lifting gloves"],
                "occasion": "Weight training, strength workouts",
                "season": "All seasons",
                "colors": ["Navy", "Black", "White"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose supportive, form-fitting materials",
                    "Avoid loose clothing that might interfere with equipment",
                    "Opt for shoes with good lateral support",
                ],
                "image_description": "A practical men's strength training ensemble with navy compression shirt and black shorts, ideal for weightlifting.",
            },
        ),
        "female": (
            {
                "id": "fallback_gym_female_1",
                "title": "Women's Athletic Performance Set",
                "description": "High-performance workout outfit designed for women's intense training sessions.",
                "items": ["Women's sports bra", "High-waisted leggings", "Women's running shoes", "Fitness tracker"],
                "occasion": "Gym workouts, cardio sessions",
                "season": "All seasons",
                "colors": ["Pink", "Black", "White"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose supportive sports bra for high-impact activities",
                    "High-waisted leggings provide comfort and coverage",
                    "Layer with a light jacket for warm-up",
                ],
                "image_description": "A stylish women's athletic look with pink sports bra and black high-waisted leggings, perfect for high-intensity workouts.",
            },
            {
                "id": "fallback_gym_female_2",
                "title": "Women's Yoga & Flexibility Wear",
                "description": "Comfortable and flexible outfit perfect for yoga and stretching exercises.",
                "items": ["Fitted yoga top", "Yoga leggings", "Yoga mat", "Lightweight sneakers"],
                "occasion": "Yoga classes, pilates, stretching",
                "season": "All seasons",
                "colors": ["Purple", "Black", "White"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose stretchy, form-fitting materials",
                    "Avoid loose clothing that might get in the way",
                    "Opt for seamless designs to prevent chafing",
                ],
                "image_description": "A comfortable women's yoga ensemble with purple fitted top and black leggings, ideal for flexibility training.",
            },
        ),
    }),
    ("formal", {
        "male": (
            {
                "id": "fallback_formal_male_1",
                "title": "Men's Classic Business Suit",
                "description": "Timeless professional attire perfect for men's business meetings and formal events.",
                "items": ["Men's tailored suit jacket", "Matching trousers", "Men's dress shirt", "Men's leather dress shoes", "Silk tie"],
                "occasion": "Business meetings, formal events",
                "season": "All seasons",
                "colors": ["Navy", "White", "Brown"],
                "price_range": "premium",
                "style_tips": [
                    "Ensure proper fit at shoulders and waist",
                    "Choose quality fabrics for better drape",
                    "Match belt with shoe color",
                ],
                "image_description": "A sharp men's navy business suit with crisp white shirt and brown leather accessories, exuding professional confidence.",
            },
            {
                "id": "fallback_formal_male_2",
                "title": "Men's Evening Formal Wear",
                "description": "Elegant formal attire perfect for evening events and special occasions.",
                "items": ["Black tuxedo jacket", "Formal trousers", "White dress shirt", "Black bow tie", "Patent leather shoes"],
                "occasion": "Evening events, galas, weddings",
                "season": "All seasons",
                "colors": ["Black", "White"],
                "price_range": "premium",
                "style_tips": [
                    "Classic black tie ensemble never goes out of style",
                    "Ensure crisp white shirt with proper collar",
                    "Polish shoes to a high shine",
                ],
                "image_description": "An elegant men's black tuxedo with white shirt and bow tie, perfect for formal evening events.",
            },
        ),
        "female": (
            {
                "id": "fallback_formal_female_1",
                "title": "Women's Professional Business Suit",
                "description": "Sophisticated professional attire perfect for women's business meetings and formal events.",
                "items": ["Women's tailored blazer", "Matching pencil skirt", "Silk blouse", "Women's heels", "Professional handbag"],
                "occasion": "Business meetings, formal events",
                "season": "All seasons",
                "colors": ["Navy", "White", "Black"],
                "price_range": "premium",
                "style_tips": [
                    "Ensure blazer fits well at shoulders",
                    "Choose appropriate heel height for comfort",
                    "Keep accessories minimal and professional",
                ],
                "image_description": "A sophisticated women's navy business suit with white silk blouse and black heels, projecting professional authority.",
            },
            {
                "id": "fallback_formal_female_2",
                "title": "Women's Evening Formal Dress",
                "description": "Elegant formal attire perfect for evening events and special occasions.",
                "items": ["Elegant evening dress", "Women's formal heels", "Clutch purse", "Statement jewelry"],
                "occasion": "Evening events, galas, formal dinners",
                "season": "All seasons",
                "colors": ["Black", "Navy", "Burgundy"],
                "price_range": "premium",
                "style_tips": [
                    "Choose a dress that flatters your body type",
                    "Keep jewelry elegant but not overwhelming",
                    "Select comfortable heels for long events",
                ],
                "image_description": "An elegant women's evening dress in black with sophisticated heels and minimal jewelry, perfect for formal occasions.",
            },
        ),
    }),
    ("street", {
        "male": (
            {
                "id": "fallback_street_male_1",
                "title": "Men's Urban Streetwear",
                "description": "Trendy men's street style perfect for casual urban adventures.",
                "items": ["Men's oversized hoodie", "Distressed jeans", "High-top sneakers", "Baseball cap"],
                "occasion": "Casual outings, street photography",
                "season": "Fall, Winter",
                "colors": ["Gray", "Black", "White"],
                "price_range": "budget",
                "style_tips": [
                    "Layer different textures for visual interest",
                    "Mix high and low-end pieces",
                    "Accessorize with statement sneakers",
                ],
                "image_description": "A relaxed men's street style with gray oversized hoodie and distressed black jeans, perfect for urban exploration.",
            },
            {
                "id": "fallback_street_male_2",
                "title": "Men's Smart Casual Street",
                "description": "Elevated men's street style that's both trendy and refined.",
                "items": ["Men's bomber jacket", "Slim-fit jeans", "White sneakers", "Crossbody bag"],
                "occasion": "Casual meetups, weekend outings",
                "season": "Spring, Summer",
                "colors": ["Olive", "Blue", "White"],
                "price_range": "mid-range",
                "style_tips": [
                    "Balance casual and smart elements",
                    "Choose well-fitted pieces",
                    "Add subtle accessories",
                ],
                "image_description": "A stylish men's street look with olive bomber jacket and slim blue jeans, perfect for casual sophistication.",
            },
        ),
        "female": (
            {
                "id": "fallback_street_female_1",
                "title": "Women's Urban Streetwear",
                "description": "Trendy women's street style perfect for casual urban adventures.",
                "items": ["Women's oversized sweatshirt", "High-waisted jeans", "Platform sneakers", "Crossbody bag"],
                "occasion": "Casual outings, street photography",
                "season": "Fall, Winter",
                "colors": ["Pink", "Black", "White"],
                "price_range": "budget",
                "style_tips": [
                    "Balance oversized tops with fitted bottoms",
                    "Add feminine touches to streetwear",
                    "Choose comfortable yet stylish footwear",
                ],
                "image_description": "A trendy women's street style with pink oversized sweatshirt and black high-waisted jeans, perfect for urban exploration.",
            },
            {
                "id": "fallback_street_female_2",
                "title": "Women's Chic Street Style",
                "description": "Elevated women's street style that's both trendy and feminine.",
                "items": ["Denim jacket", "Midi skirt", "White sneakers", "Tote bag"],
                "occasion": "Casual meetups, weekend outings",
                "season": "Spring, Summer",
                "colors": ["Blue", "White", "Beige"],
                "price_range": "mid-range",
                "style_tips": [
                    "Mix casual and feminine elements",
                    "Choose flattering silhouettes",
                    "Add practical accessories",
                ],
                "image_description": "A chic women's street look with denim jacket and midi skirt, perfect for casual sophistication.",
            },
        ),
    }),
    ("ethnic", {
        "male": (
            {
                "id": "fallback_ethnic_male_1",
                "title": "Men's Traditional Elegance",
                "description": "Classic traditional men's outfit perfect for cultural celebrations.",
                "items": ["Men's kurta", "Matching pajama", "Traditional vest", "Leather mojaris"],
                "occasion": "Festivals, cultural events",
                "season": "All seasons",
                "colors": ["Maroon", "Gold", "Cream"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose fabrics appropriate for the occasion",
                    "Ensure proper fit for comfort",
                    "Add traditional accessories like watch or bracelet",
                ],
                "image_description": "A handsome men's traditional outfit in rich maroon kurta with gold accents, perfect for cultural celebrations.",
            },
            {
                "id": "fallback_ethnic_male_2",
                "title": "Men's Festive Sherwani",
                "description": "Elegant men's sherwani perfect for weddings and special occasions.",
                "items": ["Embroidered sherwani", "Matching churidar", "Traditional shoes", "Pocket square"],
                "occasion": "Weddings, special celebrations",
                "season": "All seasons",
                "colors": ["Navy", "Gold", "Ivory"],
                "price_range": "premium",
                "style_tips": [
                    "Choose rich fabrics with subtle embroidery",
                    "Ensure sherwani length is appropriate",
                    "Keep accessories minimal and elegant",
                ],
                "image_description": "An elegant men's navy sherwani with gold embroidery, perfect for wedding celebrations.",
            },
        ),
        "female": (
            {
                "id": "fallback_ethnic_female_1",
                "title": "Women's Traditional Elegance",
                "description": "Classic traditional women's outfit perfect for cultural celebrations.",
                "items": ["Elegant kurti", "Matching dupatta", "Traditional jewelry", "Comfortable flats"],
                "occasion": "Festivals, cultural events",
                "season": "All seasons",
                "colors": ["Maroon", "Gold", "Cream"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose fabrics that drape well",
                    "Balance traditional and modern elements",
                    "Accessorize with cultural jewelry",
                ],
                "image_description": "A beautiful women's traditional outfit in rich maroon kurti with gold accents, perfect for cultural celebrations.",
            },
            {
                "id": "fallback_ethnic_female_2",
                "title": "Women's Festive Saree",
                "description": "Elegant women's saree perfect for weddings and special occasions.",
                "items": ["Silk saree", "Matching blouse", "Traditional jewelry", "Heeled sandals"],
                "occasion": "Weddings, special celebrations",
                "season": "All seasons",
                "colors": ["Red", "Gold", "Burgundy"],
                "price_range": "premium",
                "style_tips": [
                    "Choose saree fabric that complements body type",
                    "Ensure blouse fits perfectly",
                    "Add statement jewelry for elegance",
                ],
                "image_description": "An elegant women's red silk saree with gold border, perfect for wedding celebrations.",
            },
        ),
    }),
    ("party", {
        "male": (
            {
                "id": "fallback_party_male_1",
                "title": "Men's Party Ready",
                "description": "Stylish men's outfit perfect for parties and celebrations.",
                "items": ["Men's dress shirt", "Blazer", "Dress pants", "Dress shoes"],
                "occasion": "Parties, celebrations, nightouts",
                "season": "All seasons",
                "colors": ["Black", "White", "Silver"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose a well-fitted blazer",
                    "Add a stylish watch for sophistication",
                    "Consider the party venue and dress code",
                ],
                "image_description": "A sharp men's party outfit in black blazer with white shirt, designed to make a statement at any celebration.",
            },
            {
                "id": "fallback_party_male_2",
                "title": "Men's Casual Party Look",
                "description": "Trendy men's outfit perfect for casual parties and social gatherings.",
                "items": ["Stylish polo shirt", "Dark jeans", "Casual blazer", "Loafers"],
                "occasion": "Casual parties, social gatherings",
                "season": "All seasons",
                "colors": ["Navy", "White", "Brown"],
                "price_range": "mid-range",
                "style_tips": [
                    "Balance casual and smart elements",
                    "Choose quality fabrics",
                    "Add subtle accessories",
                ],
                "image_description": "A trendy men's casual party look with navy polo and dark jeans, perfect for social gatherings.",
            },
        ),
        "female": (
            {
                "id": "fallback_party_female_1",
                "title": "Women's Party Ready",
                "description": "Glamorous women's outfit perfect for parties and celebrations.",
                "items": ["Cocktail dress", "Statement heels", "Clutch bag", "Bold jewelry"],
                "occasion": "Parties, celebrations, nightouts",
                "season": "All seasons",
                "colors": ["Black", "Gold", "Silver"],
                "price_range": "mid-range",
                "style_tips": [
                    "Choose a dress that flatters your figure",
                    "Add statement accessories for glamour",
                    "Select comfortable heels for dancing",
                ],
                "image_description": "A stunning women's party outfit in black cocktail dress with gold accessories, designed to make a statement at any celebration.",
            },
            {
                "id": "fallback_party_female_2",
                "title": "Women's Chic Party Look",
                "description": "Elegant women's outfit perfect for sophisticated parties.",
                "items": ["Silk blouse", "High-waisted skirt", "Heeled boots", "Statement earrings"],
                "occasion": "Sophisticated parties, cocktail events",
                "season": "All seasons",
                "colors": ["Burgundy", "Black", "Gold"],
                "price_range": "mid-range",
                "style_tips": [
                    "Mix textures for visual interest",
                    "Choose one statement piece",
                    "Keep makeup elegant",
                ],
                "image_description": "An elegant women's party look with burgundy silk blouse and black skirt, perfect for sophisticated celebrations.",
            },
        ),
    }),
)

GENERAL_TEMPLATES: Dict[str, Tuple[_Template, ...]] = {
    "male": (
        {
            "id": "fallback_general_male_1",
            "title": "Men's Versatile Smart Casual",
            "description": "A flexible men's outfit that works for various occasions and settings.",
            "items": ["Men's button-up shirt", "Chinos", "Casual blazer", "Loafers"],
            "occasion": "Multiple occasions",
            "season": "All seasons",
            "colors": ["Navy", "Khaki", "White"],
            "price_range": "mid-range",
            "style_tips": [
                "Mix formal and casual elements",
                "Choose neutral colors for versatility",
                "Focus on fit and quality basics",
            ],
            "image_description": "A balanced men's smart casual look that transitions well from day to evening activities.",
        },
    ),
    "female": (
        {
            "id": "fallback_general_female_1",
            "title": "Women's Versatile Smart Casual",
            "description": "A flexible women's outfit that works for various occasions and settings.",
            "items": ["Women's blouse", "Tailored pants", "Cardigan", "Flats"],
            "occasion": "Multiple occasions",
            "season": "All seasons",
            "colors": ["Navy", "Beige", "White"],
            "price_range": "mid-range",
            "style_tips": [
                "Mix professional and casual elements",
                "Choose neutral colors for versatility",
                "Focus on fit and comfort",
            ],
            "image_description": "A balanced women's smart casual look that transitions well from day to evening activities.",
        },
    ),
}


# ── Body-type / skin-tone tables ──────────────────────────────────

ITEMS_FOR_BODY_TYPE: Dict[str, Dict[str, List[str]]] = {
    "male": {
        "Athletic": ["Fitted polo shirt", "Tailored chinos", "Structured blazer", "Clean sneakers"],
        "Slim": ["Slim-fit shirt", "Skinny jeans", "Fitted jacket", "Dress shoes"],
        "Average": ["Classic shirt", "Chinos", "Casual jacket", "Loafers"],
        "Heavy": ["Relaxed-fit shirt", "Comfortable trousers", "Open cardigan", "Comfortable shoes"],
    },
    "female": {
        "Hourglass": ["Fitted wrap top", "High-waisted jeans", "Belted blazer", "Heeled boots"],
        "Pear": ["Statement blouse", "A-line skirt", "Cropped jacket", "Ankle boots"],
        "Apple": ["Empire waist top", "Straight-leg pants", "Long cardigan", "Pointed flats"],
        "Rectangle": ["Peplum top", "Skinny jeans", "Structured blazer", "Block heels"],
        "Inverted Triangle": ["Soft blouse", "Wide-leg pants", "Flowy cardigan", "Comfortable flats"],
    },
}

ALTERNATIVE_ITEMS: Dict[str, Dict[str, List[str]]] = {
    "male": {
        "Athletic": ["Casual polo", "Dark jeans", "Leather jacket", "White sneakers"],
        "Slim": ["Layered shirt", "Textured pants", "Denim jacket", "Statement shoes"],
        "Average": ["Henley shirt", "Khaki pants", "Cardigan", "Canvas shoes"],
        "Heavy": ["Comfortable sweater", "Relaxed jeans", "Zip hoodie", "Comfortable sneakers"],
    },
    "female": {
        "Hourglass": ["Wrap dress", "Fitted blazer", "Heeled boots", "Statement belt"],
        "Pear": ["Statement top", "A-line skirt", "Cropped jacket", "Ankle boots"],
        "Apple": ["Flowy blouse", "High-waisted pants", "Long vest", "Pointed flats"],
        "Rectangle": ["Peplum top", "Skinny jeans", "Structured cardigan", "Block heels"],
        "Inverted Triangle": ["Soft sweater", "Wide-leg pants", "Flowy cardigan", "Comfortable flats"],
    },
}
_GENERIC_ALTERNATIVE_ITEMS = ["Versatile top", "Comfortable bottom", "Stylish shoes"]

ACCESSORIES_FOR_BODY_TYPE: Dict[str, List[str]] = {
    "male": ["Watch", "Belt", "Wallet", "Sunglasses"],
    "female": ["Earrings", "Necklace", "Handbag", "Bracelet"],
}

ALTERNATIVE_ACCESSORIES: Dict[str, List[str]] = {
    "male": ["Casual watch", "Leather belt", "Sunglasses"],
    "female": ["Delicate jewelry", "Structured bag", "Scarf"],
}

STYLE_TIPS_FOR_BODY_TYPE: Dict[str, Dict[str, List[str]]] = {
    "male": {
        "Athletic": ["Highlight your build with fitted clothes", "Choose structured pieces", "Balance proportions well"],
        "Slim": ["Add layers for dimension", "Choose structured pieces", "Avoid overly loose fits"],
        "Average": ["Versatile styling options", "Focus on proper fit", "Experiment with colors"],
        "Heavy": ["Choose comfortable fits", "Use vertical lines", "Focus on quality fabrics"],
    },
    "female": {
        "Hourglass": ["Emphasize your waist", "Choose fitted silhouettes", "Balance top and bottom"],
        "Pear": ["Draw attention to your upper body", "Choose A-line bottoms", "Add volume on top"],
        "Apple": ["Create a defined waistline", "Choose empire waist styles", "Use strategic layering"],
        "Rectangle": ["Create curves with belts", "Add volume with layers", "Define your waist"],
        "Inverted Triangle": ["Balance with wider bottoms", "Choose soft, flowing tops", "Add volume to hips"],
    },
}
_GENERIC_STYLE_TIPS = ["Focus on comfort and confidence", "Choose quality pieces", "Highlight your best features"]

COLORS_FOR_SKIN_TONE: Dict[str, List[str]] = {
    "Fair": ["Cool blues", "Soft pinks", "Classic navy", "Crisp whites"],
    "Wheatish": ["Warm earth tones", "Rich browns", "Golden yellows", "Deep greens"],
    "Dusky": ["Jewel tones", "Deep purples", "Rich burgundy", "Emerald green"],
    "Dark": ["Bright whites", "Bold colors", "Vibrant blues", "Rich golds"],
    # Older stored profiles
    "Medium": ["Warm earth tones", "Rich browns", "Golden yellows", "Deep greens"],
    "Olive": ["Jewel tones", "Deep purples", "Rich burgundy", "Emerald green"],
}
_GENERIC_COLORS = ["Neutral tones", "Classic colors", "Versatile shades"]


# ── Table lookups ─────────────────────────────────────────────────

def _gender_key(gender: str) -> str:
    return "female" if gender == "female" else "male"


def _default_body(gender: str) -> str:
    return DEFAULT_FEMALE_BODY if gender == "female" else DEFAULT_MALE_BODY


def items_for_body_type(body_bucket: str, gender: str) -> List[str]:
    table = ITEMS_FOR_BODY_TYPE[_gender_key(gender)]
    return list(table.get(body_bucket) or table[_default_body(gender)])


def alternative_items(body_bucket: str, gender: str) -> List[str]:
    return list(ALTERNATIVE_ITEMS[_gender_key(gender)].get(body_bucket) or _GENERIC_ALTERNATIVE_ITEMS)


def accessories_for(gender: str, alternative: bool = False) -> List[str]:
    table = ALTERNATIVE_ACCESSORIES if alternative else ACCESSORIES_FOR_BODY_TYPE
    return list(table[_gender_key(gender)])


def style_tips_for_body_type(body_bucket: str, gender: str) -> List[str]:
    return list(STYLE_TIPS_FOR_BODY_TYPE[_gender_key(gender)].get(body_bucket) or _GENERIC_STYLE_TIPS)


def colors_for_skin_tone(skin_tone: Optional[str]) -> List[str]:
    return list(COLORS_FOR_SKIN_TONE.get(skin_tone or "") or _GENERIC_COLORS)


def templates_for_category(category_slug: str, gender: str) -> Tuple[_Template, ...]:
    slug = (category_slug or "").lower()
    key = _gender_key(gender)
    for keyword, templates in CATEGORY_TEMPLATES:
        if keyword in slug:
            return templates[key]
    return GENERAL_TEMPLATES[key]


# ── Synthesis ─────────────────────────────────────────────────────

def _body_type_outfit(profile: NormalizedProfile, body_bucket: str, style: str) -> OutfitSuggestion:
    gender = _gender_key(profile.gender)
    colors = colors_for_skin_tone(profile.skin_tone)[:3]
    items = items_for_body_type(body_bucket, gender) + accessories_for(gender)[:1]
    label = "build" if gender == "male" else "figure"
    return OutfitSuggestion(
        id=f"fallback_{style}_{gender}_body",
        title=f"{body_bucket} {style.title()} Style",
        description=(
            f"Tailored for a {body_bucket.lower()} {label} with {profile.skin_tone.lower()} skin tone."
        ),
        items=items,
        occasion=f"{style.title()} occasions",
        season="All seasons",
        colors=colors,
        price_range="mid-range",
        style_tips=style_tips_for_body_type(body_bucket, gender),
        image_description=(
            f"A {style} look built around {items[0].lower()} in {colors[0].lower()}, "
            f"shaped for a {body_bucket.lower()} {label}."
        ),
        is_fallback=True,
    )


def synthesize_fallback_outfits(profile: NormalizedProfile, category_slug: str) -> List[OutfitSuggestion]:
    """
    Curated outfits for ``category_slug`` tailored to ``profile``.

    ``profile.gender`` is taken as final; callers resolve slug/profile
    gender priority before getting here.
    """
    gender = _gender_key(profile.gender)
    body_bucket = fallback_body_bucket(profile.body_type_raw, gender)
    style = map_category_to_style(category_slug)
    body_tips = style_tips_for_body_type(body_bucket, gender)

    outfits: List[OutfitSuggestion] = []
    for template in templates_for_category(category_slug, gender):
        data = dict(template)
        data["style_tips"] = list(template["style_tips"]) + body_tips[:1]
        outfits.append(OutfitSuggestion(is_fallback=True, **data))
    outfits.append(_body_type_outfit(profile, body_bucket, style))

    logger.info(
        "Synthesized fallback outfits",
        category_slug=category_slug,
        gender=gender,
        body_bucket=body_bucket,
        count=len(outfits),
    )
    return outfits


# ── Weather ───────────────────────────────────────────────────────

COLD_BELOW_C = 15
HOT_ABOVE_C = 28
_WET_CONDITIONS = ("rain", "drizzle", "thunderstorm", "snow")


def weather_style_tips(weather: WeatherData) -> List[str]:
    """Dressing tips for the day's temperature swing and conditions."""
    temps = [weather.temperature] + [slot.temp for slot in weather.forecast.values()]
    low, high = min(temps), max(temps)
    tips: List[str] = []
    if low < COLD_BELOW_C:
        tips.append(f"Layer a warm jacket for the {low}°C low")
    if high > HOT_ABOVE_C:
        tips.append(f"Pick breathable cotton or linen for the {high}°C high")
    if high - low >= 8:
        tips.append("Wear removable layers for the temperature change through the day")
    if any(word in weather.condition.lower() for word in _WET_CONDITIONS):
        tips.append("Carry a water-resistant layer and closed shoes")
    return tips


def with_weather_tips(outfits: List[OutfitSuggestion], weather: WeatherData) -> List[OutfitSuggestion]:
    tips = weather_style_tips(weather)
    if not tips:
        return outfits
    return [o.model_copy(update={"style_tips": list(o.style_tips) + tips}) for o in outfits]
