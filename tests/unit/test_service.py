"""
Tests for the StylistService facade.

All collaborators are in-memory or mocked; the gateway is disabled via
test settings so outfits come from the curated fallback.
"""

from unittest.mock import MagicMock, patch

import pytest

from stylist.advice import parse_advice_entries
from stylist.analytics import RequestCounter
from stylist.cache import TTLCache
from stylist.context_resolver import ContextResolver
from stylist.exceptions import AdviceUnavailableError
from stylist.models import ForecastSlot, TwinningPhotos, TwinningRequest, UserProfile, WeatherData
from stylist.profile_store import InMemoryProfileStore
from stylist.service import StylistService, build_gateway


@pytest.fixture
def advice_repository(sample_advice_rows):
    repo = MagicMock()
    repo.get_entries.return_value = parse_advice_entries(sample_advice_rows)
    return repo


@pytest.fixture
def service(test_settings, male_profile, advice_repository):
    return StylistService(
        test_settings,
        profile_store=InMemoryProfileStore({"user-1": male_profile}),
        advice_repository=advice_repository,
        context_resolver=ContextResolver(TTLCache(600), TTLCache(3600)),
    )


class TestProfiles:

    def test_get_and_update(self, service):
        assert service.update_profile("user-1", {"skinTone": "Dusky"}) is True
        assert service.get_profile("user-1").skin_tone == "Dusky"

    def test_missing(self, service):
        assert service.get_profile("ghost") is None


class TestOutfitsAndAdvice:

    def test_outfits_use_stored_profile(self, service):
        result = service.get_outfits("street-style", user_id="user-1")

        assert result.source == "fallback"
        assert result.gender == "male"
        assert result.outfits

    def test_missing_profile_uses_defaults(self, service):
        result = service.get_outfits("female-party-wear", user_id="ghost")

        assert result.gender == "female"
        assert result.outfits

    def test_coordinates_resolve_context(self, service):
        service.context_resolver = MagicMock()
        service.get_outfits("street-style", user_id="user-1", latitude=19.07, longitude=72.87)

        service.context_resolver.get_weather.assert_called_once_with(19.07, 72.87)
        service.context_resolver.get_topography.assert_called_once_with(19.07, 72.87)

    def test_advice_for_stored_profile(self, service):
        match = service.get_advice("male-street-style", user_id="user-1")
        assert match.entry.advice == ["Layer an overshirt over a plain tee"]

    def test_advice_unavailable_propagates(self, service, advice_repository):
        advice_repository.get_entries.side_effect = AdviceUnavailableError("down")

        with pytest.raises(AdviceUnavailableError):
            service.get_advice("street-style", user_id="user-1")


class TestProfileStoreOutage:
    """A failing profile store degrades to default profiles."""

    @pytest.fixture
    def broken_store(self):
        store = MagicMock()
        store.get_profile.side_effect = RuntimeError("connection reset")
        return store

    def test_outfits_fall_back_to_defaults(self, service, broken_store):
        service.profile_store = broken_store

        result = service.get_outfits("street-style", user_id="user-1")

        assert result.source == "fallback"
        assert result.gender == "male"
        assert result.outfits

    def test_advice_uses_category_gender(self, service, broken_store):
        service.profile_store = broken_store

        match = service.get_advice("female-street-style", user_id="user-1")

        assert match is not None
        assert match.gender == "female"

    def test_outage_logged(self, service, broken_store):
        service.profile_store = broken_store

        with patch("stylist.service.logger") as mock_logger:
            service.get_outfits("street-style", user_id="user-1")

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["error_type"] == "RuntimeError"

    def test_twinning_without_stored_gender(self, service, broken_store):
        service.profile_store = broken_store
        request = TwinningRequest(
            photos=TwinningPhotos(person1="https://img/p1.jpg", person2="https://img/p2.jpg", place="https://img/v.jpg"),
            person1_name="Asha",
            person2_name="Ravi",
        )

        analysis = service.analyze_twinning(request, user_id="user-1")

        assert analysis.is_fallback is True


def _weather(temperature=12, condition="Rain"):
    return WeatherData(
        temperature=temperature,
        condition=condition,
        description="light rain",
        humidity=80,
        wind_speed=10,
        location="Pune",
        icon="10d",
        forecast={
            "morning": ForecastSlot(temp=temperature - 2, condition=condition),
            "afternoon": ForecastSlot(temp=temperature + 4, condition=condition),
            "evening": ForecastSlot(temp=temperature, condition=condition),
        },
    )


class TestPhotoFeatures:

    @pytest.fixture
    def ai_service(self, test_settings, male_profile, fake_provider, make_gateway):
        return StylistService(
            test_settings,
            profile_store=InMemoryProfileStore({"user-1": male_profile}),
            gateway=make_gateway(fake_provider),
            advice_repository=MagicMock(),
            context_resolver=MagicMock(),
        )

    def test_body_type_saved_when_confident(self, ai_service, fake_provider):
        fake_provider.analyze_image.return_value = "BODY_TYPE: Oval\nCONFIDENCE: 90%\nANALYSIS: Fuller midsection."

        result = ai_service.analyze_body_type("https://img/me.jpg", user_id="user-1", save=True)

        assert result.body_type == "Oval"
        assert result.gender == "male"
        assert ai_service.get_profile("user-1").body_type == "Oval"

    def test_body_type_not_saved_on_fallback(self, service, male_profile):
        result = service.analyze_body_type("https://img/me.jpg", user_id="user-1", save=True)

        assert result.confidence == 0
        assert service.get_profile("user-1").body_type == male_profile.body_type

    def test_style_check_uses_stored_profile(self, service):
        result = service.style_check("https://img/outfit.jpg", user_id="user-1")

        assert result.is_fallback is True
        assert result.color_palette == ["#DEB887", "#CD853F", "#DAA520", "#B8860B", "#F4A460"]
        assert "Balance a strong frame with relaxed layers" in result.style_tips

    def test_image_outfits_fallback(self, service):
        result = service.get_image_outfits("https://img/rooftop.jpg", brief="sunset drinks", user_id="user-1")

        assert result.source == "fallback"
        assert result.scene is None
        assert result.outfits

    def test_wardrobe_outfits_pass_images(self, ai_service, fake_provider):
        fake_provider.analyze_images.return_value = "[]"

        result = ai_service.get_wardrobe_outfits(["https://img/w1.jpg", "https://img/w2.jpg"], user_id="user-1")

        args = fake_provider.analyze_images.call_args.args
        assert args[0] == ["https://img/w1.jpg", "https://img/w2.jpg"]
        assert result.source == "fallback"

    def test_todays_outfit_single_with_weather_tips(self, service):
        service.context_resolver = MagicMock()
        service.context_resolver.get_weather.return_value = _weather(temperature=12, condition="Rain")

        result = service.get_todays_outfit(user_id="user-1")

        assert len(result.outfits) == 1
        assert result.category_slug == "daily-wear"
        tips = result.outfits[0].style_tips
        assert any("warm jacket" in tip for tip in tips)
        assert any("water-resistant" in tip for tip in tips)
        service.context_resolver.get_weather.assert_called_once_with(None, None)
        service.context_resolver.get_topography.assert_not_called()


class TestRefresh:

    def test_all_branches(self, service):
        result = service.refresh("user-1", "male-street-style")

        assert result.profile.gender == "male"
        assert result.advice_status == "matched"
        assert result.outfits.source == "fallback"
        assert result.errors == {}

    def test_known_profile(self, service, female_profile):
        result = service.refresh("new-user", "street-style", known_profile=female_profile)

        assert result.profile == female_profile
        assert result.outfits.gender == "female"

    def test_advice_unavailable_keeps_outfits(self, service, advice_repository):
        advice_repository.get_entries.side_effect = AdviceUnavailableError("blob timeout")

        result = service.refresh("user-1", "street-style")

        assert result.advice_status == "unavailable"
        assert result.advice is None
        assert "advice" in result.errors
        assert result.outfits.outfits

    def test_no_advice_match(self, service):
        result = service.refresh("user-1", "beach-day")

        assert result.advice_status == "no_match"
        assert "advice" not in result.errors

    def test_profile_failure_reported(self, service):
        service.profile_store = MagicMock()
        service.profile_store.get_profile.side_effect = RuntimeError("db down")

        result = service.refresh("user-1", "street-style")

        assert result.errors["profile"] == "db down"
        assert result.profile is None
        assert result.outfits.gender == "male"


class TestTwinning:

    def _request(self, **kwargs):
        return TwinningRequest(
            photos=TwinningPhotos(person1="https://img/p1.jpg", person2="https://img/p2.jpg", place="https://img/v.jpg"),
            person1_name="Asha",
            person2_name="Ravi",
            **kwargs,
        )

    def test_stored_gender_fills_person1(self, service):
        service.update_profile("user-2", {"gender": "female"})

        analysis = service.analyze_twinning(self._request(), user_id="user-2")

        assert analysis.person1.gender == "female"

    def test_request_gender_wins(self, service):
        analysis = service.analyze_twinning(self._request(person1_gender="female"), user_id="user-1")
        assert analysis.person1.gender == "female"


class TestAnalytics:

    def test_gateway_attempts_counted(self, test_settings, fake_provider, make_gateway):
        counter = RequestCounter()
        gateway = make_gateway(fake_provider, on_request=counter.record)

        service = StylistService(
            test_settings,
            profile_store=InMemoryProfileStore(),
            gateway=gateway,
            advice_repository=MagicMock(),
            context_resolver=MagicMock(),
            request_counter=counter,
        )
        service.get_outfits("street-style", profile=UserProfile(gender="male"))

        metrics = service.ai_request_metrics()
        assert metrics["total"] == 1
        assert metrics["by_kind"] == {"text": 1}


class TestBuildGateway:

    def test_disabled_without_key(self, test_settings):
        assert build_gateway(test_settings, RequestCounter()).enabled is False

    def test_enabled_with_key(self):
        from config.settings import get_settings_for_testing
        settings = get_settings_for_testing(ai_enabled=True, openai_api_key="sk-test")

        assert build_gateway(settings, RequestCounter()).enabled is True
