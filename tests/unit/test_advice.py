"""
Tests for advice dataset loading, category cascade and scoring.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from config.constants import AdviceScoringConfig
from stylist.advice import (
    AdviceRepository,
    category_matches,
    filter_advice,
    parse_advice_entries,
    score_entry,
    user_attributes,
)
from stylist.exceptions import AdviceUnavailableError
from stylist.models import AdviceEntry, GenderPolicy, UserProfile


def _entry(category, for_=None, advice=None):
    return AdviceEntry.model_validate({"category": category, "for": for_ or [], "advice": advice or []})


class TestParseEntries:

    def test_valid_rows(self, sample_advice_rows):
        entries = parse_advice_entries(sample_advice_rows)

        assert len(entries) == 3
        assert entries[0].for_ == ["male", "average", "average", "wheatish", "street"]

    def test_invalid_rows_skipped(self):
        rows = [{"category": "street style"}, {"for": ["male"]}, "junk", {"category": ""}]
        assert [e.category for e in parse_advice_entries(rows)] == ["street style"]

    def test_non_list_rejected(self):
        with pytest.raises(ValueError):
            parse_advice_entries({"category": "x"})


class TestCategoryCascade:

    def test_exact_before_partial(self):
        entries = [_entry("street style casual"), _entry("Street Style")]
        assert [e.category for e in category_matches(entries, "street style")] == ["Street Style"]

    def test_partial(self):
        entries = [_entry("urban street style looks"), _entry("formal wear")]
        assert [e.category for e in category_matches(entries, "street style")] == ["urban street style looks"]

    def test_keyword_overlap(self):
        entries = [_entry("streetwear"), _entry("beach")]
        assert [e.category for e in category_matches(entries, "street style")] == ["streetwear"]

    def test_no_match(self):
        assert category_matches([_entry("beach")], "gym wear") == []


class TestScoring:

    def test_user_attributes_defaults(self):
        attrs = user_attributes(None, "street-style", "male")
        assert attrs == {"gender": "male", "height": "short", "weight": "slim", "skin_tone": "fair", "style": "street"}

    def test_user_attributes(self, male_profile):
        attrs = user_attributes(male_profile, "male-street-style", "male")
        assert attrs == {
            "gender": "male", "height": "average", "weight": "average", "skin_tone": "wheatish", "style": "street",
        }

    def test_full_match_score(self):
        attrs = {"gender": "male", "height": "average", "weight": "average", "skin_tone": "wheatish", "style": "street"}
        match = score_entry(_entry("street style", ["male", "average", "average", "wheatish", "street"]), attrs)

        assert match.score == 10 + 8 + 15 + 12 + 5
        assert all(match.match_details.values())

    def test_partial_score(self):
        attrs = {"gender": "male", "height": "tall", "weight": "slim", "skin_tone": "fair", "style": "formal"}
        match = score_entry(_entry("x", ["Male", "short", "slim", "dark", "street"]), attrs)

        assert match.score == 10 + 15
        assert match.match_details == {
            "gender": True, "height": False, "weight": True, "skin_tone": False, "style": False,
        }

    def test_short_for_tuple_scores_zero(self):
        attrs = {"gender": "male", "height": "tall", "weight": "slim", "skin_tone": "fair", "style": "formal"}
        match = score_entry(_entry("x", ["male", "tall"]), attrs)

        assert match.score == 0
        assert match.match_details == {}

    def test_custom_weights(self):
        attrs = {"gender": "male", "height": "tall", "weight": "slim", "skin_tone": "fair", "style": "formal"}
        weights = AdviceScoringConfig(GENDER=1, HEIGHT=0, WEIGHT=0, SKIN_TONE=0, STYLE=0)
        assert score_entry(_entry("x", ["male", "a", "b", "c", "d"]), attrs, weights).score == 1


class TestFilterAdvice:

    def test_best_match(self, sample_advice_rows, male_profile):
        match = filter_advice(sample_advice_rows, male_profile, "male-street-style")

        assert match.entry.advice == ["Layer an overshirt over a plain tee"]
        assert match.score == 50
        assert match.gender == "male"

    def test_category_first_overrides_profile_gender(self, sample_advice_rows, female_profile):
        """Female profile on a male slug scores as male; body attributes still count."""
        match = filter_advice(sample_advice_rows, female_profile, "male-street-style")

        assert match.gender == "male"
        assert match.score == 8 + 15 + 12 + 5
        assert match.match_details["gender"] is False

    def test_profile_first_policy(self, sample_advice_rows, female_profile):
        match = filter_advice(sample_advice_rows, female_profile, "male-street-style", GenderPolicy.PROFILE_FIRST)

        assert match.gender == "female"
        assert match.entry.advice == ["High-waisted jeans lengthen the leg line"]

    def test_tie_keeps_earliest(self):
        rows = [
            {"category": "gym wear", "for": ["male", "x", "x", "x", "x"], "advice": ["first"]},
            {"category": "gym wear", "for": ["male", "y", "y", "y", "y"], "advice": ["second"]},
        ]
        assert filter_advice(rows, UserProfile(gender="male"), "gym-wear").entry.advice == ["first"]

    def test_all_zero_returns_first_candidate(self):
        rows = [
            {"category": "gym wear", "for": ["female", "x", "x", "x", "x"], "advice": ["first"]},
            {"category": "gym wear", "for": ["female", "y", "y", "y", "y"], "advice": ["second"]},
        ]
        match = filter_advice(rows, UserProfile(gender="male"), "male-gym-wear")

        assert match.entry.advice == ["first"]
        assert match.score == 0
        assert match.match_details["gender"] is False

    def test_no_category_returns_none(self, sample_advice_rows):
        assert filter_advice(sample_advice_rows, None, "beach-day") is None

    def test_empty_dataset(self):
        assert filter_advice([], None, "street-style") is None
        assert filter_advice(None, None, "street-style") is None


class TestAdviceRepository:

    def _response(self, payload):
        resp = MagicMock()
        resp.json.return_value = payload
        resp.raise_for_status.return_value = None
        return resp

    def test_loads_once(self, sample_advice_rows):
        repo = AdviceRepository("https://cdn.example.com/advice.json", timeout=3)
        with patch("stylist.advice.requests.get", return_value=self._response(sample_advice_rows)) as mock_get:
            first = repo.get_entries()
            second = repo.get_entries()

        assert first is second
        assert len(first) == 3
        assert repo.loaded is True
        mock_get.assert_called_once_with("https://cdn.example.com/advice.json", timeout=3)

    def test_network_failure(self):
        repo = AdviceRepository("https://cdn.example.com/advice.json")
        with patch("stylist.advice.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(AdviceUnavailableError):
                repo.get_entries()
        assert repo.loaded is False

    def test_bad_payload(self):
        repo = AdviceRepository("https://cdn.example.com/advice.json")
        with patch("stylist.advice.requests.get", return_value=self._response({"not": "a list"})):
            with pytest.raises(AdviceUnavailableError):
                repo.get_entries()

    def test_missing_url(self):
        with pytest.raises(AdviceUnavailableError):
            AdviceRepository("").get_entries()

    def test_failed_refresh_keeps_previous(self, sample_advice_rows):
        repo = AdviceRepository("https://cdn.example.com/advice.json")
        with patch("stylist.advice.requests.get", return_value=self._response(sample_advice_rows)):
            entries = repo.get_entries()
        with patch("stylist.advice.requests.get", side_effect=requests.Timeout("slow")):
            with pytest.raises(AdviceUnavailableError):
                repo.refresh()

        assert repo.get_entries() is entries
