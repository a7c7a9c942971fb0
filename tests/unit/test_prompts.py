"""
Tests for prompt construction.
"""

from datetime import date

from stylist.categories import build_category_context
from stylist.context_resolver import analyze_topography, estimate_weather
from stylist.models import PersonAnalysis, SituationalContext, UserProfile
from stylist.profile import normalize_profile
from stylist.prompts import (
    build_body_type_prompt,
    build_group_analysis_prompt,
    build_image_outfit_prompt,
    build_outfit_prompt,
    build_person_analysis_prompt,
    build_style_check_prompt,
    build_twinning_prompt,
    build_venue_analysis_prompt,
    build_wardrobe_outfit_prompt,
    sanitize_for_prompt,
)
from stylist.twinning import default_group_analysis, fallback_place_analysis


def _person(name, gender):
    return PersonAnalysis(name=name, gender=gender, skin_tone="Fair", body_type="Slim")


class TestSanitize:

    def test_collapses_whitespace_and_quotes(self):
        assert sanitize_for_prompt('street\n\t"style"  ') == "street 'style'"

    def test_drops_control_characters(self):
        assert sanitize_for_prompt("gym\x00wear\x7f") == "gymwear"

    def test_none(self):
        assert sanitize_for_prompt(None) == ""


class TestOutfitPrompt:

    def test_male_prompt(self, male_profile):
        profile = normalize_profile(male_profile)
        prompt = build_outfit_prompt(profile, build_category_context("male-street-style"))

        assert "Create 5 detailed outfit suggestions for a MALE" in prompt
        assert "TARGET GENDER: MALE" in prompt
        assert "FOR MALES - ABSOLUTELY FORBIDDEN" in prompt
        assert "FOR FEMALES" not in prompt
        assert "Body Type: athletic build" in prompt
        assert "Height: average height (178cm)" in prompt
        assert "Weight: 72kg" in prompt
        assert "Skin Tone: Wheatish" in prompt
        assert "STYLE CATEGORY: male-street-style" in prompt
        assert "Urban casual fashion" in prompt
        assert '"id": "male-street-style_male_average_1"' in prompt

    def test_female_prompt_uses_female_rules(self, female_profile):
        profile = normalize_profile(female_profile)
        prompt = build_outfit_prompt(profile, build_category_context("gym-wear"), count=3)

        assert "Create 3 detailed outfit suggestions for a FEMALE" in prompt
        assert "FOR FEMALES - ABSOLUTELY FORBIDDEN" in prompt
        assert "FOR MALES" not in prompt
        assert "sports bras, leggings" in prompt

    def test_missing_measurements(self):
        prompt = build_outfit_prompt(normalize_profile(UserProfile()), build_category_context("party-wear"))

        assert "Weight: not provided" in prompt
        assert "Body Type: average build" in prompt

    def test_slug_is_sanitized(self, male_profile):
        context = build_category_context('party"\nwear')
        prompt = build_outfit_prompt(normalize_profile(male_profile), context)

        assert "STYLE CATEGORY: party' wear" in prompt

    def test_situational_section(self, male_profile):
        weather = estimate_weather(28.6139, 77.2090, "Delhi", date(2024, 1, 10))
        topo = analyze_topography(28.6139, 77.2090, "Delhi", "North India")
        prompt = build_outfit_prompt(
            normalize_profile(male_profile),
            build_category_context("street-style"),
            situational=SituationalContext(weather=weather, topography=topo),
        )

        assert "SITUATIONAL CONTEXT:" in prompt
        assert f"Weather in Delhi: {weather.temperature}°C" in prompt
        assert "Local cultural style: North Indian Contemporary" in prompt

    def test_no_situational_section_without_signal(self, male_profile):
        prompt = build_outfit_prompt(
            normalize_profile(male_profile),
            build_category_context("street-style"),
            situational=SituationalContext(),
        )
        assert "SITUATIONAL CONTEXT" not in prompt


class TestTwinningPrompts:

    def test_person_prompt_asks_for_gender_line(self):
        prompt = build_person_analysis_prompt("Asha")
        assert "photo of Asha" in prompt
        assert "Gender: [male/female]" in prompt

    def test_person_prompt_without_name(self):
        assert "photo of this person" in build_person_analysis_prompt("")

    def test_group_prompt(self):
        prompt = build_group_analysis_prompt(_person("Asha", "female"), _person("Ravi", "male"))
        assert "Asha and Ravi together" in prompt
        assert "Slim body type, Fair skin tone" in prompt

    def test_venue_prompt(self):
        prompt = build_venue_analysis_prompt("wedding", {"venue": "Garden"})
        assert "for a wedding occasion" in prompt
        assert "Dress Code: [appropriate dress code]" in prompt
        assert "Garden" in prompt

    def test_twinning_prompt(self):
        p1, p2 = _person("Asha", "female"), _person("Ravi", "male")
        place = fallback_place_analysis("party", {}, "Evening")
        prompt = build_twinning_prompt(
            p1, p2, default_group_analysis(p1, p2), place, "party",
            occasion="Birthday", context={"theme": "Retro", "budget": "Not specified"},
        )

        assert "PERSON 1 - Asha" in prompt
        assert "PERSON 2 - Ravi" in prompt
        assert "OCCASION: party - Birthday" in prompt
        assert "theme: Retro" in prompt
        assert "budget" not in prompt
        assert "Dress Code: Party chic" in prompt


class TestPhotoPrompts:

    def test_body_type_prompt_offers_gender_shapes(self):
        male = build_body_type_prompt("male")
        assert "Analyze this male body type photo" in male
        assert "BODY_TYPE: [Rectangle/Triangle/Inverted Triangle/Oval]" in male

        unknown = build_body_type_prompt("unknown")
        assert "Analyze this body type photo" in unknown
        assert "Hourglass" in unknown

    def test_style_check_prompt_venue_wording(self, female_profile):
        profile = normalize_profile(female_profile)

        with_venue = build_style_check_prompt(profile, has_venue=True)
        without = build_style_check_prompt(profile, has_venue=False)

        assert "outfit photo and venue photo" in with_venue
        assert "venue photo" not in without
        assert "FEMALE gender ONLY" in with_venue
        assert '"overallRating"' in without

    def test_image_prompt_sanitizes_brief(self, male_profile):
        profile = normalize_profile(male_profile)
        prompt = build_image_outfit_prompt(
            profile, build_category_context("party-wear"), brief='rooftop "party"\n{ignore rules}', count=2,
        )

        assert "TARGET GENDER: MALE" in prompt
        assert "Create 2 outfits" in prompt
        assert "rooftop 'party' {ignore rules}" in prompt
        assert '"dominantColors"' in prompt

    def test_image_prompt_default_brief(self, male_profile):
        prompt = build_image_outfit_prompt(normalize_profile(male_profile), build_category_context("casual-wear"))
        assert "Suggest outfits that suit this place and mood" in prompt

    def test_wardrobe_prompt(self, female_profile):
        prompt = build_wardrobe_outfit_prompt(
            normalize_profile(female_profile), build_category_context("office-wear"), count=4,
        )

        assert "Create 4 complete outfits using ONLY the available items" in prompt
        assert "TARGET GENDER: FEMALE" in prompt
        assert '"missingCategories"' in prompt
