"""Tests for the per-user analysis cache."""

from datetime import datetime, timedelta

from cadence.models.analysis_cache import AnalysisCacheEntry
from cadence.services import analysis_cache

NOW = datetime(2024, 6, 20, 12, 0, 0)


class TestAnalysisCache:

    def test_key_format(self):
        assert analysis_cache.cache_key("user-1") == "recurring:detection:user-1"

    def test_miss(self, db_session):
        assert analysis_cache.get(db_session, "user-1", NOW) is None

    def test_put_then_get(self, db_session):
        entry = analysis_cache.put(db_session, "user-1", {"count": 2}, NOW, ttl_seconds=3600)
        assert entry.expires_at == NOW + timedelta(hours=1)

        cached = analysis_cache.get(db_session, "user-1", NOW + timedelta(minutes=30))
        assert cached is not None
        assert cached.payload == {"count": 2}
        assert cached.cached_at == NOW

    def test_put_overwrites(self, db_session):
        analysis_cache.put(db_session, "user-1", {"count": 1}, NOW)
        analysis_cache.put(db_session, "user-1", {"count": 3}, NOW)
        assert db_session.query(AnalysisCacheEntry).count() == 1
        assert analysis_cache.get(db_session, "user-1", NOW).payload == {"count": 3}

    def test_expired_entry_is_removed(self, db_session):
        analysis_cache.put(db_session, "user-1", {"count": 2}, NOW, ttl_seconds=60)
        assert analysis_cache.get(db_session, "user-1", NOW + timedelta(seconds=60)) is None
        assert db_session.query(AnalysisCacheEntry).count() == 0

    def test_users_are_isolated(self, db_session):
        analysis_cache.put(db_session, "user-1", {"count": 2}, NOW)
        assert analysis_cache.get(db_session, "user-2", NOW) is None

    def test_invalidate(self, db_session):
        analysis_cache.put(db_session, "user-1", {"count": 2}, NOW)
        assert analysis_cache.invalidate(db_session, "user-1") is True
        assert analysis_cache.invalidate(db_session, "user-1") is False
        assert analysis_cache.get(db_session, "user-1", NOW) is None

    def test_transaction_update_invalidates(self, db_session):
        analysis_cache.put(db_session, "user-1", {"count": 2}, NOW)
        assert analysis_cache.invalidate_on_transaction_update(db_session, "user-1")
        assert analysis_cache.get(db_session, "user-1", NOW) is None
