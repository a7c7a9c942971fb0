"""
Outfit recommendation orchestration tests.

Covers:
1. AI success path - parse, enrich, source="ai"
2. Every failure mode degrades to curated fallbacks
3. Gender policy end to end (female profile on a male slug)
4. Twinning slugs are skipped
5. Stale response detection
6. Photo-driven outfits with scene and wardrobe summaries

Run with: PYTHONPATH=src python -m pytest tests/unit/test_recommender.py -v
"""

import json

import pytest

from stylist.gateway import RateLimiter
from stylist.models import GenderPolicy, UserProfile
from stylist.recommender import OutfitRecommender
from stylist.sequencing import ResponseSequencer


class FakeClock:
    def __call__(self) -> float:
        return 0.0


@pytest.fixture
def recommender(fake_provider, make_gateway):
    return OutfitRecommender(make_gateway(fake_provider))


class TestAISuccess:

    def test_ai_outfits_enriched(self, recommender, fake_provider, sample_outfit_dict, male_profile):
        fake_provider.generate_text.return_value = json.dumps([sample_outfit_dict])

        result = recommender.recommend(male_profile, "male-street-style", owner="user-1")

        assert result.source == "ai"
        assert result.gender == "male"
        assert len(result.outfits) == 1
        outfit = result.outfits[0]
        assert outfit.is_fallback is False
        assert len(outfit.shopping_links) == 4
        assert len(outfit.reference_links) == 3
        assert result.is_stale is False

    def test_prompt_targets_resolved_gender(self, recommender, fake_provider, sample_outfit_dict, female_profile):
        fake_provider.generate_text.return_value = json.dumps([sample_outfit_dict])

        recommender.recommend(female_profile, "street-style")

        prompt = fake_provider.generate_text.call_args.args[0]
        assert "TARGET GENDER: FEMALE" in prompt


class TestFallbackPaths:

    def test_busy_exhausted(self, fake_provider, make_gateway, male_profile):
        fake_provider.generate_text.return_value = "The model is overloaded, try again later"
        recommender = OutfitRecommender(make_gateway(fake_provider, max_retries=2))

        result = recommender.recommend(male_profile, "formal-wear")

        assert result.source == "fallback"
        assert fake_provider.generate_text.call_count == 3
        assert all(o.is_fallback for o in result.outfits)
        assert result.outfits[0].id == "fallback_formal_male_1"
        assert result.outfits[0].shopping_links

    def test_unparsable_response_not_retried(self, recommender, fake_provider, male_profile):
        fake_provider.generate_text.return_value = "Here are some great ideas for you!"

        result = recommender.recommend(male_profile, "party-wear")

        assert result.source == "fallback"
        assert fake_provider.generate_text.call_count == 1
        assert result.warnings[0].code == "unparsable"

    def test_provider_error(self, recommender, fake_provider, male_profile):
        fake_provider.generate_text.side_effect = RuntimeError("invalid api key")

        result = recommender.recommend(male_profile, "gym-wear")

        assert result.source == "fallback"
        assert result.outfits

    def test_rate_limited(self, fake_provider, make_gateway, male_profile):
        limiter = RateLimiter(max_calls=0, window_seconds=60, clock=FakeClock())
        recommender = OutfitRecommender(make_gateway(fake_provider, rate_limiter=limiter))

        result = recommender.recommend(male_profile, "gym-wear")

        assert result.source == "fallback"
        fake_provider.generate_text.assert_not_called()

    def test_disabled_gateway(self, make_gateway, male_profile):
        recommender = OutfitRecommender(make_gateway(None))

        result = recommender.recommend(male_profile, "ethnic-wear")

        assert result.source == "fallback"
        assert result.outfits[0].id == "fallback_ethnic_male_1"

    def test_strict_mode_empty_parse_falls_back(self, fake_provider, make_gateway, sample_outfit_dict, male_profile):
        raw = dict(sample_outfit_dict, items=["Floral dress", "Heels"])
        fake_provider.generate_text.return_value = json.dumps([raw])
        recommender = OutfitRecommender(make_gateway(fake_provider))

        result = recommender.recommend(male_profile, "party-wear", strict=True)

        assert result.source == "fallback"
        assert any(w.code == "cross_gender_marker" for w in result.warnings)

    def test_missing_profile(self, make_gateway):
        result = OutfitRecommender(make_gateway(None)).recommend(None, "street-style")

        assert result.gender == "male"
        assert result.outfits


class TestGenderScenario:
    """Female profile requesting a male-prefixed category."""

    def test_profile_first_generates_female_outfits(self, fake_provider, make_gateway, sample_outfit_dict, female_profile):
        raw = dict(sample_outfit_dict, items=["Silk blouse", "Men's tie"], colors=["Pink"])
        fake_provider.generate_text.return_value = json.dumps([raw])
        recommender = OutfitRecommender(make_gateway(fake_provider))

        result = recommender.recommend(female_profile, "male-street-style", policy=GenderPolicy.PROFILE_FIRST)

        assert result.gender == "female"
        assert result.source == "ai"
        markers = [w for w in result.warnings if w.code == "cross_gender_marker"]
        assert markers and "tie" in markers[0].message
        assert "women" in result.outfits[0].shopping_links[0].url

    def test_female_profile_on_male_formal_slug(self, fake_provider, make_gateway, sample_outfit_dict):
        profile = UserProfile(height=170, body_type="athletic", skin_tone="Fair", gender="female")
        raw = dict(sample_outfit_dict, items=["Silk blouse", "Pencil skirt", "Men's suit jacket", "Slim tie"])
        fake_provider.generate_text.return_value = json.dumps([raw])
        recommender = OutfitRecommender(make_gateway(fake_provider))

        result = recommender.recommend(profile, "male-formal-wear")

        assert "TARGET GENDER: FEMALE" in fake_provider.generate_text.call_args.args[0]
        assert result.gender == "female"
        assert len(result.outfits) == 1
        warning = next(w for w in result.warnings if w.code == "cross_gender_marker")
        assert "tie" in warning.message and "men's" in warning.message

    def test_category_first_generates_male_outfits(self, make_gateway, female_profile):
        recommender = OutfitRecommender(make_gateway(None))

        result = recommender.recommend(female_profile, "male-street-style", policy=GenderPolicy.CATEGORY_FIRST)

        assert result.gender == "male"
        assert result.outfits[0].id == "fallback_street_male_1"


class TestSkipAndSequencing:

    def test_twinning_category_skipped(self, recommender, fake_provider, male_profile):
        result = recommender.recommend(male_profile, "twinning")

        assert result.source == "skipped"
        assert result.outfits == []
        fake_provider.generate_text.assert_not_called()

    def test_superseded_request_is_stale(self, fake_provider, make_gateway, sample_outfit_dict, male_profile):
        sequencer = ResponseSequencer()
        recommender = OutfitRecommender(make_gateway(fake_provider), sequencer=sequencer)

        def newer_request_arrives(prompt):
            sequencer.next("user-1")
            return json.dumps([sample_outfit_dict])

        fake_provider.generate_text.side_effect = newer_request_arrives

        result = recommender.recommend(male_profile, "street-style", owner="user-1")

        assert result.sequence == 1
        assert result.is_stale is True


class TestOutfitCount:

    def test_count_truncates_and_reaches_prompt(self, recommender, fake_provider, sample_outfit_dict, male_profile):
        outfits = [dict(sample_outfit_dict, id=f"o{i}") for i in range(4)]
        fake_provider.generate_text.return_value = json.dumps(outfits)

        result = recommender.recommend(male_profile, "street-style", count=2)

        assert [o.id for o in result.outfits] == ["o0", "o1"]
        assert "Create 2 detailed outfit suggestions" in fake_provider.generate_text.call_args.args[0]

    def test_fallback_respects_count(self, fake_provider, make_gateway, male_profile):
        fake_provider.generate_text.side_effect = RuntimeError("invalid api key")
        recommender = OutfitRecommender(make_gateway(fake_provider))

        result = recommender.recommend(male_profile, "street-style", count=1)

        assert result.source == "fallback"
        assert len(result.outfits) == 1


class TestImageOutfits:

    def test_scene_parsed_alongside_outfits(self, recommender, fake_provider, sample_outfit_dict, female_profile):
        fake_provider.analyze_image.return_value = json.dumps({
            "venue": "Rooftop bar",
            "ambiance": "Warm evening light",
            "dominantColors": ["amber", "navy"],
            "outfits": [sample_outfit_dict],
            "tips": ["Bring a light layer for the breeze"],
        })

        result = recommender.recommend_from_image(
            female_profile, "https://img/rooftop.jpg", brief="birthday drinks", category_slug="party-wear",
        )

        assert result.source == "ai"
        assert result.scene.venue == "Rooftop bar"
        assert result.scene.dominant_colors == ["amber", "navy"]
        assert result.wardrobe is None
        image_ref, prompt = fake_provider.analyze_image.call_args.args
        assert image_ref == "https://img/rooftop.jpg"
        assert "birthday drinks" in prompt
        assert "TARGET GENDER: FEMALE" in prompt

    def test_unusable_answer_falls_back_without_scene(self, recommender, fake_provider, male_profile):
        fake_provider.analyze_image.return_value = "What a lovely place!"

        result = recommender.recommend_from_image(male_profile, "https://img/cafe.jpg")

        assert result.source == "fallback"
        assert result.scene is None
        assert len(result.outfits) <= 3
        assert all(o.is_fallback for o in result.outfits)

    def test_local_path_degrades_to_fallback(self, make_gateway, male_profile):
        from stylist.gateway import OpenAIProvider

        provider = OpenAIProvider(api_key="sk-test", text_model="m", vision_model="v", timeout=5)
        recommender = OutfitRecommender(make_gateway(provider))

        result = recommender.recommend_from_image(male_profile, "/etc/passwd")

        assert result.source == "fallback"


class TestWardrobeOutfits:

    def test_inventory_parsed(self, recommender, fake_provider, sample_outfit_dict, male_profile):
        fake_provider.analyze_images.return_value = json.dumps({
            "wardrobe": {"totalItems": 9, "categories": ["shirts", "jeans"], "missingCategories": ["blazers"]},
            "outfits": [sample_outfit_dict],
            "suggestions": ["navy blazer"],
        })

        result = recommender.recommend_from_wardrobe(
            male_profile, ["https://img/w1.jpg", "https://img/w2.jpg"], category_slug="office-wear",
        )

        assert result.source == "ai"
        assert result.wardrobe.total_items == 9
        assert result.wardrobe.missing_categories == ["blazers"]
        assert result.wardrobe.suggestions == ["navy blazer"]
        assert result.outfits[0].shopping_links

