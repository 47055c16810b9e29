import pytest
from pydantic import ValidationError

from listing_engine.config import Settings
from listing_engine.services.listing_service import ListingEngine, create_listing_engine


def test_settings_normalize_choices(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_BACKEND", " Memory ")
    monkeypatch.setenv("VIEW_COUNTER_MODE", "QUEUE")

    settings = Settings()

    assert settings.cache_backend == "memory"
    assert settings.view_counter_mode == "queue"


def test_settings_reject_unknown_cache_backend() -> None:
    with pytest.raises(ValidationError):
        Settings(cache_backend="memcached")


def test_create_listing_engine_from_settings() -> None:
    settings = Settings(cache_backend="memory", view_counter_mode="queue")

    assert isinstance(create_listing_engine(settings), ListingEngine)
