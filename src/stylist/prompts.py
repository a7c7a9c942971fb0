"""
Prompt construction for the generative AI provider.

Pure string building, no I/O. The outfit prompt repeats the target
gender in upper case throughout and carries explicit FORBIDDEN / REQUIRED
lists, because providers drift toward unisex or cross-gender items when
the constraint is stated only once.
"""

import json
from typing import Any, Dict, Optional

from config.constants import DEFAULT_OUTFIT_COUNT
from stylist.models import (
    CategoryContext,
    GroupAnalysis,
    NormalizedProfile,
    PersonAnalysis,
    PlaceAnalysis,
    SituationalContext,
)
from stylist.profile import BODY_SHAPES, describe_body_type, describe_height


_MALE_RULES = """FOR MALES - ABSOLUTELY FORBIDDEN:
- NO dresses, skirts, heels, feminine jewelry, makeup, or women's accessories
- NO women's blouses, feminine tops, or ladies' clothing
- NO feminine colors like pink, purple, or pastel shades as primary colors
- NO women's handbags, purses, or feminine accessories
- ONLY suggest MEN'S clothing, MEN'S shoes, MEN'S accessories

FOR MALES - REQUIRED:
- Men's shirts, t-shirts, polos, hoodies, jackets
- Men's pants, jeans, shorts, trousers
- Men's shoes: sneakers, boots, dress shoes, loafers
- Men's accessories: watches, belts, wallets, caps
- Masculine colors: navy, black, gray, brown, olive, burgundy"""

_FEMALE_RULES = """FOR FEMALES - ABSOLUTELY FORBIDDEN:
- NO men's suits, ties, masculine shoes, or men's accessories
- NO men's clothing or masculine-only items
- NO overly masculine styling or terminology

FOR FEMALES - REQUIRED:
- Women's tops, blouses, dresses, skirts, pants
- Women's shoes: heels, flats, boots, sneakers
- Women's accessories: jewelry, handbags, scarves
- Feminine and versatile colors and styling"""

_MALE_EXAMPLES = """- If category is "gym-wear": Include men's athletic wear, tank tops, shorts, athletic shoes, sports watch
- If category is "formal-wear": Include men's suits, dress shirts, ties, formal shoes, cufflinks
- If category is "street-style": Include men's casual wear, sneakers, jeans, hoodies, caps
- If category is "ethnic-wear": Include traditional men's clothing like kurta, dhoti, sherwani"""

_FEMALE_EXAMPLES = """- If category is "gym-wear": Include women's activewear, sports bras, leggings, athletic shoes, fitness tracker
- If category is "formal-wear": Include women's blazers, blouses, dress pants/skirts, heels, professional accessories
- If category is "street-style": Include women's casual wear, sneakers, jeans, tops, bags
- If category is "ethnic-wear": Include traditional women's clothing like saree, lehenga, kurti"""


def sanitize_for_prompt(value: Any) -> str:
    """Collapse whitespace, drop control characters and swap double quotes."""
    if value is None:
        return ""
    text = " ".join(str(value).split())
    text = "".join(ch for ch in text if ch >= " " and ch != "\x7f")
    return text.replace('"', "'")


def _format_measure(value: Optional[float], unit: str) -> str:
    if value is None:
        return "not provided"
    return f"{value:g}{unit}"


def _situational_section(situational: Optional[SituationalContext]) -> str:
    if situational is None or (situational.weather is None and situational.topography is None):
        return ""
    lines = ["", "SITUATIONAL CONTEXT:"]
    weather = situational.weather
    if weather is not None:
        lines.append(
            f"- Weather in {weather.location}: {weather.temperature}°C, {weather.condition}, "
            f"humidity {weather.humidity}%"
        )
        lines.append(
            f"- Later today: afternoon {weather.forecast['afternoon'].temp}°C, "
            f"evening {weather.forecast['evening'].temp}°C"
        )
    topo = situational.topography
    if topo is not None:
        lines.append(f"- Climate: {topo.climate} ({topo.seasonal_considerations})")
        lines.append(f"- Terrain: {topo.terrain}")
        lines.append(f"- Local cultural style: {topo.cultural_style}")
        if topo.local_fashion_trends:
            lines.append(f"- Local trends: {', '.join(topo.local_fashion_trends)}")
    lines.append("- Choose fabrics and layers that suit these conditions")
    return "\n".join(lines) + "\n"


def build_outfit_prompt(
    profile: NormalizedProfile,
    context: CategoryContext,
    situational: Optional[SituationalContext] = None,
    count: int = DEFAULT_OUTFIT_COUNT,
) -> str:
    """
    Compose the outfit-generation instruction for one user and category.

    ``profile.gender`` is the final, already-resolved gender.
    """
    gender = profile.gender
    g = gender.upper()
    category = sanitize_for_prompt(context.slug)
    body = describe_body_type(profile.body_type_raw)
    height = describe_height(profile.height_cm)
    skin = profile.skin_tone
    rules = _MALE_RULES if gender == "male" else _FEMALE_RULES
    examples = _MALE_EXAMPLES if gender == "male" else _FEMALE_EXAMPLES
    body_id = profile.body_type_bucket

    return f"""You are a professional fashion stylist. Create {count} detailed outfit suggestions for a {g} with the following characteristics:

PHYSICAL ATTRIBUTES:
- Body Type: {body}
- Height: {height} ({_format_measure(profile.height_cm, 'cm')})
- Weight: {_format_measure(profile.weight_kg, 'kg')}
- Skin Tone: {skin}
- Gender: {g}

STYLE CATEGORY: {category}
CATEGORY CONTEXT: {context.free_text_context}
{_situational_section(situational)}
CRITICAL GENDER REQUIREMENTS - THIS IS MANDATORY:
- TARGET GENDER: {g}
- YOU ARE STYLING FOR A {g} PERSON ONLY
- ALL outfit suggestions MUST be appropriate for {g} gender ONLY
- Do NOT include any clothing items typically worn by other genders
- Ensure all accessories, shoes, and styling are gender-appropriate for {g}
- Use {g}-specific fashion terminology and styling advice
- NEVER suggest cross-gender clothing items under any circumstances

{rules}

- REMEMBER: You are styling for a {g} person - keep this in mind for EVERY suggestion

SPECIFIC REQUIREMENTS FOR {category.upper()}:
1. All outfits MUST be appropriate for {category} occasions/settings
2. Consider the specific clothing types needed for {category}
3. Each outfit should be specifically tailored for {body} body type
4. Colors should complement {skin} skin tone
5. Fit recommendations should consider {height}
6. Include {category}-specific accessories and styling elements
7. ENSURE all recommendations are strictly {gender}-appropriate

IMPORTANT: Make each outfit distinctly different and specifically designed for {category}. Do NOT use generic outfits. NEVER suggest cross-gender clothing or accessories.

CRITICAL: Your response MUST be valid JSON only. Do not include any explanatory text, comments, or formatting outside the JSON array.

FORMAT YOUR RESPONSE AS A JSON ARRAY with exactly this structure:
[
  {{
    "id": "{category}_{gender}_{body_id}_1",
    "title": "{g}'s Specific {category} Outfit Name",
    "description": "Brief description focusing on {category} appropriateness for {g}",
    "items": ["{category}-specific {g} item1", "{category}-specific {g} item2", "{g} item3", "{g} item4"],
    "occasion": "{category} specific occasion for {g}",
    "season": "best season for this {category} outfit",
    "colors": ["color1 for {skin} skin", "color2", "color3"],
    "price_range": "budget/mid-range/premium",
    "style_tips": ["{category}-specific tip for {g}", "tip for {body} {g} body", "tip for {height} {g}"],
    "image_description": "detailed description of how this {category} outfit would look on a {body} {g}"
  }}
]

Examples for {gender} context:
{examples}

Make sure each outfit is unique, practical, and specifically suited for {category} activities/occasions for {g}.

FINAL REMINDER: You are creating outfits for a {g} person. Every single item, accessory, and styling tip must be appropriate for {g} gender. Double-check each suggestion before including it.
"""


# =============================================================================
# Twinning prompts
# =============================================================================

def build_person_analysis_prompt(name: str) -> str:
    who = sanitize_for_prompt(name) or "this person"
    return f"""You are an expert fashion stylist and body type analyst. Analyze the photo of {who} comprehensively for fashion coordination purposes.

REQUIRED ANALYSIS:
1. GENDER: Identify if this person is male or female
2. BODY TYPE:
   - For MALES: Athletic, Slim, Average, Heavy
   - For FEMALES: Hourglass, Pear, Apple, Rectangle, Inverted Triangle
3. SKIN TONE: Fair, Wheatish, Dusky, Dark
4. PHYSICAL FEATURES: Height impression, build, posture, notable features
5. STYLE ASSESSMENT: Current fashion sense and preferences visible in the photo
6. PERSONALITY TRAITS: Based on appearance, styling choices, and overall presentation

FORMAT YOUR RESPONSE EXACTLY AS:
Gender: [male/female]
Body Type: [specific body type from the list above]
Skin Tone: [Fair/Wheatish/Dusky/Dark]
Physical Features: [list 2-3 key physical features that affect clothing choices]
Style: [describe their current style in 1-2 sentences]
Traits: [list 3-4 personality traits separated by commas]
Confidence: [number from 1-100 based on photo quality and analysis certainty]

Be professional, respectful, and focus only on fashion-relevant characteristics that will help with outfit coordination.
"""


def build_group_analysis_prompt(
    person1: PersonAnalysis, person2: PersonAnalysis,
) -> str:
    n1 = sanitize_for_prompt(person1.name)
    n2 = sanitize_for_prompt(person2.name)
    return f"""Analyze this photo of {n1} and {n2} together. Focus on:
1. Their visual chemistry and how they look together
2. Body language and comfort level
3. How their styles currently complement or clash
4. Overall visual harmony
5. Suggestions for better coordination
6. Their relationship dynamic (friends, couple, family, etc.)

Person 1 ({n1}): {person1.body_type} body type, {person1.skin_tone} skin tone
Person 2 ({n2}): {person2.body_type} body type, {person2.skin_tone} skin tone

Provide insights for coordinated styling that enhances both individuals.
"""


def build_venue_analysis_prompt(category: str, context: Optional[Dict[str, Any]] = None) -> str:
    return f"""Analyze this venue/location photo for fashion coordination purposes. This is for a {sanitize_for_prompt(category) or 'casual'} occasion.

Context: {sanitize_for_prompt(json.dumps(context or {}, default=str))}

REQUIRED ANALYSIS:
1. VENUE TYPE: Identify the type of location (restaurant, park, mall, home, office, hotel, etc.)
2. ATMOSPHERE: Describe the mood and ambiance (formal, casual, romantic, fun, elegant, etc.)
3. LIGHTING: Describe lighting conditions (natural daylight, warm ambient, cool bright, dim, etc.)
4. DOMINANT COLORS: List 3-4 main colors visible in the environment
5. STYLE: Interior/exterior design style (modern, classic, rustic, elegant, minimalist, etc.)
6. DRESS CODE: Appropriate formality level for this setting
7. AMBIANCE: Overall feel and energy of the space

FORMAT YOUR RESPONSE EXACTLY AS:
Venue Type: [specific venue type]
Atmosphere: [atmosphere description]
Lighting: [lighting description]
Dominant Colors: [color1, color2, color3, color4]
Style: [design style]
Dress Code: [appropriate dress code]
Ambiance: [overall ambiance]

Focus on elements that will help coordinate outfits with the environment.
"""


def _context_details(context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return ""
    entries = [
        f"{sanitize_for_prompt(k)}: {sanitize_for_prompt(v)}"
        for k, v in context.items()
        if v and v != "Not specified"
    ]
    if not entries:
        return ""
    return "\nCONTEXT DETAILS:\n- " + "\n- ".join(entries)


def _person_block(label: str, person: PersonAnalysis) -> str:
    return f"""{label} - {sanitize_for_prompt(person.name)}:
- Gender: {person.gender}
- Body Type: {person.body_type}
- Skin Tone: {person.skin_tone}
- Style: {sanitize_for_prompt(person.style)}
- Traits: {', '.join(person.personality_traits)}
- Physical Features: {', '.join(person.physical_features)}
- Analysis Confidence: {person.confidence}%"""


def build_twinning_prompt(
    person1: PersonAnalysis,
    person2: PersonAnalysis,
    group: GroupAnalysis,
    place: PlaceAnalysis,
    category: str,
    occasion: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> str:
    """Coordinated-outfit instruction for two analysed people at one venue."""
    occasion_line = sanitize_for_prompt(category)
    if occasion:
        occasion_line += f" - {sanitize_for_prompt(occasion)}"

    return f"""You are an expert fashion stylist creating coordinated outfits for {sanitize_for_prompt(person1.name)} and {sanitize_for_prompt(person2.name)}.

COMPREHENSIVE ANALYSIS DATA:

{_person_block('PERSON 1', person1)}

{_person_block('PERSON 2', person2)}

GROUP DYNAMICS:
- Relationship Dynamic: {group.dynamic}
- Visual Chemistry: {group.chemistry}
- Coordination Style: {group.coordination_style}
- Visual Harmony: {group.visual_harmony}
- Group Recommendations: {', '.join(group.recommendations)}

VENUE ANALYSIS:
- Venue Type: {sanitize_for_prompt(place.venue)}
- Atmosphere: {sanitize_for_prompt(place.atmosphere)}
- Lighting: {sanitize_for_prompt(place.lighting)}
- Dominant Colors: {', '.join(place.dominant_colors)}
- Style: {place.style}
- Dress Code: {place.dress_code}
- Ambiance: {place.ambiance}
- Venue Recommendations: {', '.join(place.recommendations)}

OCCASION: {occasion_line}{_context_details(context)}

TASK: Create 2-3 coordinated outfit options for each person that:
1. Complement their individual body types and skin tones
2. Work harmoniously together based on their group dynamic
3. Match the venue's atmosphere and dress code
4. Incorporate the venue's dominant colors appropriately
5. Respect the occasion and any cultural considerations
6. Provide specific styling tips for each person

Respond with valid JSON only, no text outside the JSON object:
{{"recommendations": [{{"style": "...", "outfit": "...", "reasoning": "...", "mood": "..."}}]}}
"""


# =============================================================================
# Photo analysis prompts
# =============================================================================

def build_body_type_prompt(gender: str) -> str:
    """``gender`` is ``"male"``, ``"female"`` or ``"unknown"``."""
    shapes = BODY_SHAPES.get(gender, BODY_SHAPES["unknown"])
    who = f"{gender} " if gender in ("male", "female") else ""
    options = "\n".join(f"- {name}: {definition}" for name, definition in shapes)
    names = "/".join(name for name, _ in shapes)
    return f"""Analyze this {who}body type photo for personal styling purposes. Be respectful and professional.

Body types to choose from (use these exact names):
{options}

Provide your analysis in this exact format:
BODY_TYPE: [{names}]
CONFIDENCE: [percentage from 70-95]%
ANALYSIS: [Brief encouraging explanation focusing on styling advantages]

Focus on positive styling opportunities for this body type.
"""


def build_style_check_prompt(profile: NormalizedProfile, has_venue: bool) -> str:
    """Rate an outfit photo (and optionally how it suits a venue photo)."""
    g = profile.gender.upper()
    venue_photo = " and venue photo" if has_venue else ""
    occasion = "How suitable for the venue shown" if has_venue else "General appropriateness and versatility"
    venue_basis = "(based on venue photo)" if has_venue else "(general assessment)"
    return f"""You are a world-class fashion stylist and image consultant. Analyze the provided outfit photo{venue_photo} for a comprehensive style assessment.

USER PROFILE:
- Gender: {g}
- Height: {_format_measure(profile.height_cm, 'cm')}
- Weight: {_format_measure(profile.weight_kg, 'kg')}
- Body Type: {describe_body_type(profile.body_type_raw)}
- Skin Tone: {profile.skin_tone}

ANALYSIS REQUIREMENTS:
1. OVERALL RATING (0-100): Comprehensive style score based on all factors
2. CATEGORY RATINGS (0-100 each):
   - Color Harmony: How well colors work together and with the skin tone
   - Fit & Silhouette: How well clothes fit the body type and proportions
   - Occasion Appropriate: {occasion}
   - Accessories Balance: Jewelry, bags, shoes coordination and proportion
   - Style Coherence: Overall style consistency and aesthetic unity
3. DETAILED ANALYSIS: strengths (4-6), improvements (3-5), recommendations (6-8), missing items, color suggestions
4. VENUE MATCH {venue_basis}: score, feedback, suggestions
5. SHOPPING RECOMMENDATIONS: categories (accessories, footwear, clothing) with specific items

CRITICAL INSTRUCTIONS:
- Be constructive and encouraging, never harsh
- ALL recommendations must be appropriate for {g} gender ONLY
- Do NOT suggest clothing, accessories, or styling typically associated with other genders

Respond with valid JSON only, no markdown and no text outside the JSON object:
{{
  "overallRating": 0,
  "categoryRatings": {{"colorHarmony": 0, "fitAndSilhouette": 0, "occasionAppropriate": 0, "accessoriesBalance": 0, "styleCoherence": 0}},
  "analysis": {{
    "strengths": ["..."],
    "improvements": ["..."],
    "recommendations": ["..."],
    "missingItems": ["..."],
    "colorSuggestions": ["..."]
  }},
  "venueMatch": {{"score": 0, "feedback": "...", "suggestions": ["..."]}},
  "shoppingLinks": [
    {{"category": "Accessories", "items": [{{"name": "...", "platform": "Amazon", "priceRange": "mid"}}]}}
  ]
}}
"""


def _outfit_object_example(category: str, gender: str, skin: str) -> str:
    g = gender.upper()
    return f"""{{
      "id": "{category}_{gender}_1",
      "title": "{g}'s outfit name",
      "description": "Why this outfit works here",
      "items": ["{g} item1", "{g} item2", "{g} item3"],
      "occasion": "when to wear it",
      "season": "best season",
      "colors": ["color1 for {skin} skin", "color2"],
      "price_range": "budget/mid-range/premium",
      "style_tips": ["tip1", "tip2"],
      "image_description": "how the outfit looks when worn"
    }}"""


def build_image_outfit_prompt(
    profile: NormalizedProfile,
    context: CategoryContext,
    brief: str = "",
    count: int = 3,
) -> str:
    """Outfits inspired by a venue or aesthetic photo plus the user's description."""
    gender = profile.gender
    g = gender.upper()
    category = sanitize_for_prompt(context.slug)
    rules = _MALE_RULES if gender == "male" else _FEMALE_RULES
    request = sanitize_for_prompt(brief) or "Suggest outfits that suit this place and mood"
    return f"""Analyze this image and the user's description: "{request}"

USER PROFILE:
- Gender: {g}
- Body Type: {describe_body_type(profile.body_type_raw)}
- Height: {describe_height(profile.height_cm)} ({_format_measure(profile.height_cm, 'cm')})
- Skin Tone: {profile.skin_tone}

STYLE CATEGORY: {category}
CATEGORY CONTEXT: {context.free_text_context}

TASK:
1. Identify the venue type and its atmosphere
2. Extract the dominant colors of the image
3. Create {count} outfits for a {g} that match the environment AND complement {profile.skin_tone} skin
4. Consider the lighting, the occasion described and the user's body type

TARGET GENDER: {g}
{rules}

Respond with valid JSON only, no text outside the JSON object:
{{
  "venue": "Brief description of the place",
  "ambiance": "Atmosphere and mood",
  "dominantColors": ["color1", "color2", "color3"],
  "outfits": [
    {_outfit_object_example(category, gender, profile.skin_tone)}
  ],
  "tips": ["tip1", "tip2", "tip3"]
}}
"""


def build_wardrobe_outfit_prompt(
    profile: NormalizedProfile,
    context: CategoryContext,
    situational: Optional[SituationalContext] = None,
    count: int = 3,
) -> str:
    """Outfits assembled only from garments visible in wardrobe photos."""
    gender = profile.gender
    g = gender.upper()
    category = sanitize_for_prompt(context.slug)
    return f"""Analyze these wardrobe images and create specific outfits from the available items. Also suggest missing pieces that would unlock better outfits.

USER PROFILE:
- Gender: {g}
- Body Type: {describe_body_type(profile.body_type_raw)}
- Height: {_format_measure(profile.height_cm, 'cm')}
- Skin Tone: {profile.skin_tone}

STYLE CATEGORY: {category}
CATEGORY CONTEXT: {context.free_text_context}
{_situational_section(situational)}
TASK:
1. Identify every clothing item in the images
2. Create {count} complete outfits using ONLY the available items
3. Suggest the items to buy that would unlock the most new combinations

RULES:
- Only use items you can clearly see in the images
- Be specific about the colors and styles you observe
- TARGET GENDER: {g}; every outfit and suggestion must be {g}-appropriate

Respond with valid JSON only, no text outside the JSON object:
{{
  "wardrobe": {{
    "totalItems": 0,
    "categories": ["shirts", "pants", "shoes"],
    "missingCategories": ["blazers"]
  }},
  "outfits": [
    {_outfit_object_example(category, gender, profile.skin_tone)}
  ],
  "suggestions": ["white dress shirt", "brown leather belt"]
}}
"""
