from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from supabase import Client

from ..database.supabase_client import get_service_client
from .models import BehaviorSignal, PropertyCandidate, UserProfile

PROFILES_TABLE = "user_preference_profiles"
SIGNALS_TABLE = "user_behavior_signals"
FAVORITES_TABLE = "favorites"
PROPERTIES_TABLE = "properties"

CANDIDATE_COLUMNS = (
    "id, title, description, price, bedrooms, bathrooms, area_sqm, "
    "property_type, listing_type, city, state, location, features, amenities, "
    "images, thumbnail_url, views_count"
)


def _maybe_row(response: Any) -> dict[str, Any] | None:
    # maybe_single() yields no response object at all when nothing matched
    if response is None or not response.data:
        return None
    return response.data


class SupabaseDataStore:
    """
    Read-only access to the tables the recommender consumes.

    Query failures are not caught here; they surface to the request handler.
    """

    def __init__(self, client: Client | None = None):
        self._supabase = client

    @property
    def client(self) -> Client:
        # Resolved on first query so configuration errors surface inside the request.
        if self._supabase is None:
            self._supabase = get_service_client()
        return self._supabase

    def get_profile(self, user_id: str) -> UserProfile | None:
        response = (
            self.client.table(PROFILES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        row = _maybe_row(response)
        return UserProfile.model_validate(row) if row else None

    def get_recent_signals(
        self,
        user_id: str,
        limit: int,
        since_days: int | None = None,
        columns: str = "property_snapshot, signal_type, time_spent_seconds",
    ) -> list[BehaviorSignal]:
        """Newest-first behaviour signals, optionally restricted to a trailing window."""
        query = self.client.table(SIGNALS_TABLE).select(columns).eq("user_id", user_id)
        if since_days is not None:
            since = datetime.now(timezone.utc) - timedelta(days=since_days)
            query = query.gte("created_at", since.isoformat())
        response = query.order("created_at", desc=True).limit(limit).execute()
        return [BehaviorSignal.model_validate(row) for row in response.data or []]

    def get_favorite_ids(self, user_id: str, limit: int = 20) -> list[str]:
        response = (
            self.client.table(FAVORITES_TABLE)
            .select("property_id")
            .eq("user_id", user_id)
            .limit(limit)
            .execute()
        )
        return [str(row["property_id"]) for row in response.data or [] if row.get("property_id")]

    def get_candidates(self, limit: int = 100) -> list[PropertyCandidate]:
        response = (
            self.client.table(PROPERTIES_TABLE)
            .select(CANDIDATE_COLUMNS)
            .eq("status", "active")
            .eq("approval_status", "approved")
            .limit(limit)
            .execute()
        )
        return [PropertyCandidate.model_validate(row) for row in response.data or []]

    def get_property(self, property_id: str) -> PropertyCandidate | None:
        response = (
            self.client.table(PROPERTIES_TABLE)
            .select("*")
            .eq("id", property_id)
            .maybe_single()
            .execute()
        )
        row = _maybe_row(response)
        return PropertyCandidate.model_validate(row) if row else None


def get_data_store() -> SupabaseDataStore:
    """FastAPI dependency: the store backed by the shared service client."""
    return SupabaseDataStore()
