"""
Tests for AI response parsing and validation.
"""

import json

import pytest

from stylist.parser import (
    extract_json_payload,
    find_cross_gender_markers,
    parse_outfit_response,
    parse_scene_summary,
    parse_wardrobe_summary,
    strip_code_fences,
)
from stylist.models import OutfitSuggestion


class TestExtractJsonPayload:

    def test_plain_json(self):
        payload, degraded = extract_json_payload('[{"id": "a"}]')
        assert payload == [{"id": "a"}]
        assert degraded is False

    def test_code_fences(self):
        text = '```json\n[{"id": "a"}]\n```'
        assert strip_code_fences(text) == '[{"id": "a"}]'
        assert extract_json_payload(text) == ([{"id": "a"}], False)

    def test_degrades_to_bracket_substring(self):
        text = 'Sure! Here are your outfits: [{"id": "a"}] Enjoy!'
        payload, degraded = extract_json_payload(text)

        assert payload == [{"id": "a"}]
        assert degraded is True

    def test_object_substring(self):
        text = 'Result -> {"outfits": [{"id": "a"}]} done'
        payload, degraded = extract_json_payload(text)

        assert payload == {"outfits": [{"id": "a"}]}
        assert degraded is True

    def test_no_json(self):
        assert extract_json_payload("no json here") == (None, True)
        assert extract_json_payload("") == (None, False)


class TestParseOutfitResponse:

    def test_valid_outfits(self, sample_outfit_dict):
        second = dict(sample_outfit_dict, id="street-style_male_average_2", title="Night Out")
        result = parse_outfit_response(json.dumps([sample_outfit_dict, second]), "male", "street-style")

        assert [o.id for o in result.outfits] == ["street-style_male_average_1", "street-style_male_average_2"]
        assert result.warnings == []
        assert result.degraded is False
        assert all(isinstance(o, OutfitSuggestion) for o in result.outfits)

    def test_wrapped_in_object(self, sample_outfit_dict):
        result = parse_outfit_response(json.dumps({"recommendations": [sample_outfit_dict]}), "male", "street-style")
        assert len(result.outfits) == 1

    def test_single_object(self, sample_outfit_dict):
        result = parse_outfit_response(json.dumps(sample_outfit_dict), "male", "street-style")
        assert len(result.outfits) == 1

    def test_missing_fields_get_defaults(self):
        raw = [{"title": "Bare", "description": "Only a title", "items": "tee, jeans"}]
        result = parse_outfit_response(json.dumps(raw), "male", "street-style")

        outfit = result.outfits[0]
        assert outfit.id == "street-style_male_1"
        assert outfit.items == ["tee", "jeans"]
        assert outfit.colors == ["Neutral tones", "Classic colors", "Versatile shades"]
        assert outfit.price_range == "budget/mid-range/premium"
        assert outfit.season == "all-season"
        assert outfit.style_tips == []
        assert outfit.occasion == ""
        codes = {w.code for w in result.warnings}
        assert codes == {"default_applied"}
        fields = {w.message.split("'")[1] for w in result.warnings}
        assert {"id", "colors", "price_range", "season", "style_tips", "occasion", "image_description"} <= fields

    def test_empty_items_replaced(self, sample_outfit_dict):
        raw = dict(sample_outfit_dict, items=[])
        outfit = parse_outfit_response(json.dumps([raw]), "male", "street").outfits[0]
        assert outfit.items == ["Versatile top", "Comfortable bottom", "Stylish shoes"]

    def test_numeric_strings_coerced(self, sample_outfit_dict):
        raw = dict(sample_outfit_dict, id=7)
        outfit = parse_outfit_response(json.dumps([raw]), "male", "street").outfits[0]
        assert outfit.id == "7"

    def test_server_only_fields_ignored(self, sample_outfit_dict):
        raw = dict(sample_outfit_dict, is_fallback=True, shopping_links=[{"platform": "x"}])
        outfit = parse_outfit_response(json.dumps([raw]), "male", "street").outfits[0]

        assert outfit.is_fallback is False
        assert outfit.shopping_links == []

    def test_non_object_candidates_skipped(self, sample_outfit_dict):
        result = parse_outfit_response(json.dumps(["oops", sample_outfit_dict]), "male", "street")

        assert len(result.outfits) == 1
        assert result.warnings[0].code == "skipped_candidate"

    def test_unparsable(self):
        result = parse_outfit_response("I'm sorry, I cannot help with that.", "male", "street")

        assert result.outfits == []
        assert result.warnings[0].code == "unparsable"

    def test_degraded_flag(self, sample_outfit_dict):
        text = "Here you go:\n" + json.dumps([sample_outfit_dict]) + "\nHope this helps"
        result = parse_outfit_response(text, "male", "street")

        assert result.degraded is True
        assert len(result.outfits) == 1


class TestCrossGenderMarkers:

    def _outfit(self, sample_outfit_dict, **overrides):
        return OutfitSuggestion.model_validate(dict(sample_outfit_dict, **overrides))

    def test_male_target_flags_dress(self, sample_outfit_dict):
        outfit = self._outfit(sample_outfit_dict, items=["Floral dresses", "Sandals"])
        assert find_cross_gender_markers(outfit, "male") == ["dress"]

    def test_female_target_flags_tie(self, sample_outfit_dict):
        outfit = self._outfit(sample_outfit_dict, items=["Silk tie", "Men's blazer"])
        assert find_cross_gender_markers(outfit, "female") == ["tie", "men's"]

    def test_word_boundaries(self, sample_outfit_dict):
        """'tied' is not 'tie'."""
        outfit = self._outfit(sample_outfit_dict, items=["Tied-up sneakers", "Hoodie"])
        assert find_cross_gender_markers(outfit, "female") == []

    def test_warning_not_rejection(self, sample_outfit_dict):
        raw = dict(sample_outfit_dict, items=["Silk tie", "Blazer"])
        result = parse_outfit_response(json.dumps([raw]), "female", "party-wear")

        assert len(result.outfits) == 1
        assert result.warnings[-1].code == "cross_gender_marker"

    def test_strict_drops_outfit(self, sample_outfit_dict):
        raw = dict(sample_outfit_dict, items=["Silk tie", "Blazer"])
        result = parse_outfit_response(json.dumps([raw]), "female", "party-wear", strict=True)

        assert result.outfits == []
        assert result.warnings[-1].code == "cross_gender_marker"


class TestSummaries:

    def test_scene_from_fenced_answer(self):
        text = '```json\n{"venue": " Beach cafe ", "ambiance": "Breezy", "dominantColors": "teal, sand", "outfits": []}\n```'

        scene = parse_scene_summary(text)

        assert scene.venue == "Beach cafe"
        assert scene.dominant_colors == ["teal", "sand"]
        assert scene.tips == []

    def test_scene_absent(self):
        assert parse_scene_summary('[{"id": "1"}]') is None
        assert parse_scene_summary('{"outfits": []}') is None
        assert parse_scene_summary("no json") is None

    def test_wardrobe_counts_categories_when_total_missing(self):
        text = json.dumps({"wardrobe": {"categories": ["shirts", "jeans", "sneakers"]}, "suggestions": ["belt"]})

        summary = parse_wardrobe_summary(text)

        assert summary.total_items == 3
        assert summary.suggestions == ["belt"]

    def test_wardrobe_junk_total_ignored(self):
        summary = parse_wardrobe_summary(json.dumps({"wardrobe": {"totalItems": "lots", "missingCategories": ["coats"]}}))

        assert summary.total_items == 0
        assert summary.missing_categories == ["coats"]

    def test_wardrobe_absent(self):
        assert parse_wardrobe_summary(json.dumps({"wardrobe": [], "outfits": []})) is None
