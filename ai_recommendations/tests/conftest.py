from __future__ import annotations

from typing import Any

import pytest

from ai_recommendations.app import app
from ai_recommendations.auth.dependencies import get_token_verifier
from ai_recommendations.llm.config import LLMConfig, get_llm_config
from ai_recommendations.recommendations.data_store import get_data_store
from ai_recommendations.recommendations.models import (
    BehaviorSignal,
    PropertyCandidate,
    UserProfile,
)

VALID_TOKEN = "valid-token"
ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)


class FakeDataStore:
    """In-memory stand-in for ``SupabaseDataStore`` that records its calls."""

    def __init__(self) -> None:
        self.profile: dict[str, Any] | None = None
        self.signals: list[dict[str, Any]] = []
        self.favorites: list[str] = []
        self.candidates: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error

    def get_profile(self, user_id: str) -> UserProfile | None:
        self._record("get_profile", user_id=user_id)
        return UserProfile.model_validate(self.profile) if self.profile else None

    def get_recent_signals(self, user_id, limit, since_days=None, columns=""):
        self._record("get_recent_signals", user_id=user_id, limit=limit, since_days=since_days)
        return [BehaviorSignal.model_validate(s) for s in self.signals[:limit]]

    def get_favorite_ids(self, user_id: str, limit: int = 20) -> list[str]:
        self._record("get_favorite_ids", user_id=user_id, limit=limit)
        return self.favorites[:limit]

    def get_candidates(self, limit: int = 100) -> list[PropertyCandidate]:
        self._record("get_candidates", limit=limit)
        return [PropertyCandidate.model_validate(c) for c in self.candidates[:limit]]

    def get_property(self, property_id: str) -> PropertyCandidate | None:
        self._record("get_property", property_id=property_id)
        for c in self.candidates:
            if str(c["id"]) == property_id:
                return PropertyCandidate.model_validate(c)
        return None


def _verify(token: str) -> dict[str, Any] | None:
    if token == VALID_TOKEN:
        return {"id": "user-1", "email": "buyer@example.com", "role": "authenticated"}
    return None


@pytest.fixture
def store():
    fake = FakeDataStore()
    app.dependency_overrides[get_data_store] = lambda: fake
    app.dependency_overrides[get_token_verifier] = lambda: _verify
    app.dependency_overrides[get_llm_config] = lambda: DISABLED_CONFIG
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def llm_enabled(store):
    app.dependency_overrides[get_llm_config] = lambda: ENABLED_CONFIG
    return ENABLED_CONFIG

