"""
Tests for the in-memory and Supabase profile stores.
"""

from stylist.models import UserProfile
from stylist.profile_store import InMemoryProfileStore, SupabaseProfileStore, profile_changes


class TestProfileChanges:

    def test_aliases_mapped_to_fields(self):
        changes = profile_changes({"bodyType": "Slim", "skinTone": "Dusky", "gender": "female"})
        assert changes == {"body_type": "Slim", "skin_tone": "Dusky", "gender": "female"}

    def test_unknown_keys_ignored(self):
        assert profile_changes({"favourite_color": "teal"}) == {}
        assert profile_changes(None) == {}


class TestInMemoryProfileStore:

    def test_missing_profile(self):
        assert InMemoryProfileStore().get_profile("nobody") is None

    def test_partial_update_merges(self, male_profile):
        store = InMemoryProfileStore({"user-1": male_profile})

        assert store.update_profile("user-1", {"skinTone": "Dark"}) is True

        profile = store.get_profile("user-1")
        assert profile.skin_tone == "Dark"
        assert profile.body_type == "Athletic"
        assert profile.city == "Pune"

    def test_update_creates_profile(self):
        store = InMemoryProfileStore()
        store.update_profile("user-2", {"gender": "female"})

        assert store.get_profile("user-2") == UserProfile(gender="female")


class TestSupabaseProfileStore:

    def test_get_profile(self, mock_supabase_client):
        query = mock_supabase_client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value.data = [{"height": 165, "body_type": "Pear", "gender": "female"}]
        store = SupabaseProfileStore(mock_supabase_client)

        profile = store.get_profile("user-1")

        mock_supabase_client.table.assert_called_with("profiles")
        mock_supabase_client.table.return_value.select.return_value.eq.assert_called_with("id", "user-1")
        assert profile.body_type == "Pear"
        assert profile.gender == "female"

    def test_get_missing(self, mock_supabase_client):
        assert SupabaseProfileStore(mock_supabase_client).get_profile("user-1") is None

    def test_update_upserts_changes(self, mock_supabase_client):
        store = SupabaseProfileStore(mock_supabase_client, table="user_profiles")

        assert store.update_profile("user-1", {"bodyType": "Slim"}) is True

        mock_supabase_client.table.assert_called_with("user_profiles")
        mock_supabase_client.table.return_value.upsert.assert_called_once_with(
            {"id": "user-1", "body_type": "Slim"}, on_conflict="id",
        )

    def test_empty_update_skips_write(self, mock_supabase_client):
        store = SupabaseProfileStore(mock_supabase_client)

        assert store.update_profile("user-1", {}) is True
        mock_supabase_client.table.return_value.upsert.assert_not_called()

    def test_write_failure_reported(self, mock_supabase_client):
        mock_supabase_client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("timeout")
        store = SupabaseProfileStore(mock_supabase_client)

        assert store.update_profile("user-1", {"gender": "male"}) is False
