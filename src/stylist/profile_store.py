"""
Profile store adapters.

Both adapters speak the same two-call contract:

    get_profile(user_id) -> UserProfile | None
    update_profile(user_id, partial) -> bool

Partial updates accept either field names or the client's camelCase
aliases (``bodyType``, ``skinTone``).
"""

import threading
from typing import Any, Dict, Optional, Protocol

from supabase import Client

from core.logging import get_logger
from stylist.models import UserProfile

logger = get_logger(__name__)


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    def update_profile(self, user_id: str, partial: Dict[str, Any]) -> bool: ...


def profile_changes(partial: Dict[str, Any]) -> Dict[str, Any]:
    """Validated subset of ``partial`` keyed by field name."""
    return UserProfile.model_validate(partial or {}).model_dump(exclude_unset=True)


class InMemoryProfileStore:
    """Process-local store, used in development and tests."""

    def __init__(self, profiles: Optional[Dict[str, UserProfile]] = None):
        self._profiles: Dict[str, Dict[str, Any]] = {
            uid: p.model_dump() for uid, p in (profiles or {}).items()
        }
        self._lock = threading.Lock()

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._lock:
            data = self._profiles.get(user_id)
            return UserProfile.model_validate(data) if data is not None else None

    def update_profile(self, user_id: str, partial: Dict[str, Any]) -> bool:
        changes = profile_changes(partial)
        with self._lock:
            current = self._profiles.setdefault(user_id, {})
            current.update(changes)
        return True


class SupabaseProfileStore:
    """
    Profiles in a Supabase table keyed by ``id``.

    Columns: height, weight, body_type, skin_tone, gender, city.
    """

    def __init__(self, client: Client, table: str = "profiles"):
        self._client = client
        self._table = table

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        result = self._client.table(self._table).select(
            "height, weight, body_type, skin_tone, gender, city"
        ).eq("id", user_id).limit(1).execute()

        if not result.data:
            return None
        return UserProfile.model_validate(result.data[0])

    def update_profile(self, user_id: str, partial: Dict[str, Any]) -> bool:
        changes = profile_changes(partial)
        if not changes:
            return True
        try:
            self._client.table(self._table).upsert(
                {"id": user_id, **changes},
                on_conflict="id",
            ).execute()
        except Exception as e:
            logger.warning("Profile update failed", user_id=user_id, error=str(e))
            return False
        return True
