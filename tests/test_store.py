from __future__ import annotations

import pytest
from django.core.cache import caches
from django.db import connections

from backend.api.store import DjangoCacheStore, reading_cache
from windcore.errors import CacheUnavailable


class ExplodingBackend:
    def get(self, key):
        raise ConnectionError("redis unreachable")

    def set(self, key, value, timeout):
        raise ConnectionError("redis unreachable")


def test_backend_errors_become_cache_unavailable():
    store = DjangoCacheStore(ExplodingBackend())

    with pytest.raises(CacheUnavailable):
        store.get("brambles:latest")
    with pytest.raises(CacheUnavailable):
        store.set("brambles:latest", {}, 300)


def test_store_round_trip_through_django_cache():
    caches["default"].clear()
    store = DjangoCacheStore(caches["default"])

    store.set("brambles:1700000100", {"key": "brambles:1700000100"}, 300)

    assert store.get("brambles:1700000100") == {"key": "brambles:1700000100"}
    assert reading_cache().get("brambles:missing") is None


def test_no_database_is_configured():
    assert connections["default"].settings_dict["ENGINE"] == "django.db.backends.dummy"
