"""
Pytest configuration and shared fixtures for the stylist service tests.
"""
import os
import sys
from typing import List
from unittest.mock import MagicMock, patch

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def male_profile():
    """Complete male profile as stored by the mobile client."""
    from stylist.models import UserProfile
    return UserProfile(
        height=178, weight=72, body_type="Athletic", skin_tone="Wheatish", gender="male", city="Pune",
    )


@pytest.fixture
def female_profile():
    """Complete female profile as stored by the mobile client."""
    from stylist.models import UserProfile
    return UserProfile(
        height=160, weight=55, body_type="slim", skin_tone="Fair", gender="female",
    )


@pytest.fixture
def sample_outfit_dict() -> dict:
    """One well-formed outfit as an AI provider returns it."""
    return {
        "id": "street-style_male_average_1",
        "title": "Weekend Denim Layers",
        "description": "Relaxed street look for city outings",
        "items": ["Graphic t-shirt", "Slim jeans", "White sneakers", "Canvas cap"],
        "occasion": "Weekend outings",
        "season": "Spring",
        "colors": ["Navy", "White", "Olive"],
        "price_range": "mid-range",
        "style_tips": ["Cuff the jeans once", "Keep the cap minimal"],
        "image_description": "A man in a navy graphic tee and slim jeans",
    }


@pytest.fixture
def sample_advice_rows() -> List[dict]:
    """Advice dataset rows in the blob's wire format."""
    return [
        {
            "category": "street style",
            "for": ["male", "average", "average", "wheatish", "street"],
            "advice": ["Layer an overshirt over a plain tee"],
            "source": ["stylist-handbook"],
        },
        {
            "category": "street style",
            "for": ["female", "short", "slim", "fair", "street"],
            "advice": ["High-waisted jeans lengthen the leg line"],
            "source": ["stylist-handbook"],
        },
        {
            "category": "formal wear",
            "for": ["male", "tall", "slim", "fair", "formal"],
            "advice": ["Double-breasted jackets add width"],
            "source": ["tailor-notes"],
        },
    ]


# ============================================================================
# Fixtures: Mock Services
# ============================================================================

@pytest.fixture
def test_settings():
    """Settings with AI and Supabase disabled."""
    from config.settings import get_settings_for_testing
    return get_settings_for_testing()


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_client.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value.data = []
    mock_client.table.return_value.upsert.return_value.execute.return_value.data = [{"id": "test"}]

    return mock_client


@pytest.fixture
def mock_supabase(mock_supabase_client):
    """Patch Supabase client creation."""
    with patch("supabase.create_client", return_value=mock_supabase_client):
        yield mock_supabase_client


@pytest.fixture
def fake_provider():
    """Generative provider double whose answers are queued per call."""
    provider = MagicMock()
    provider.generate_text.return_value = "[]"
    provider.analyze_image.return_value = ""
    provider.analyze_images.return_value = ""
    return provider


@pytest.fixture
def make_gateway():
    """Build an AIGateway that never sleeps."""
    from stylist.gateway import AIGateway

    def _make(provider, **kwargs):
        kwargs.setdefault("retry_delay_seconds", 0.0)
        kwargs.setdefault("sleep", lambda _: None)
        return AIGateway(provider, **kwargs)

    return _make


@pytest.fixture
def stylist_service(test_settings):
    """StylistService wired with in-memory profiles and an AI-disabled gateway."""
    from stylist.advice import AdviceRepository
    from stylist.context_resolver import ContextResolver
    from stylist.cache import TTLCache
    from stylist.profile_store import InMemoryProfileStore
    from stylist.service import StylistService

    advice_repository = AdviceRepository(url="")
    resolver = ContextResolver(TTLCache(600), TTLCache(3600))
    return StylistService(
        test_settings,
        profile_store=InMemoryProfileStore(),
        advice_repository=advice_repository,
        context_resolver=resolver,
    )


# ============================================================================
# Fixtures: FastAPI Test Client
# ============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application."""
    from api.app import create_app
    return create_app()


@pytest.fixture
def client(app, stylist_service):
    """TestClient whose routes use the in-memory stylist service."""
    from fastapi.testclient import TestClient

    with patch("api.routes.stylist.get_stylist_service", return_value=stylist_service):
        yield TestClient(app)


# ============================================================================
# Markers auto-use
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "supabase: marks tests that require Supabase")


# ============================================================================
# Skip conditions
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests if no server URL is configured."""
    skip_integration = pytest.mark.skip(reason="Integration tests require running server")
    skip_supabase = pytest.mark.skip(reason="Supabase tests require credentials")

    server_url = os.getenv("TEST_SERVER_URL")
    supabase_url = os.getenv("SUPABASE_URL")

    for item in items:
        if "integration" in item.keywords and not server_url:
            item.add_marker(skip_integration)
        if "supabase" in item.keywords and not supabase_url:
            item.add_marker(skip_supabase)
