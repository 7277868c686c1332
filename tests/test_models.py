"""
Unit tests for hdfs_cachetool.models module.
"""

import pytest

from hdfs_cachetool.models import NEVER, CacheDirective, Expiration


class TestExpiration:
    """Tests for mapping TTLs to expirations."""

    @pytest.mark.parametrize("ttl", [-1, 0, -3600000])
    def test_non_positive_ttl_never_expires(self, ttl):
        expiration = Expiration.from_ttl(ttl)
        assert expiration is NEVER
        assert expiration.is_never

    def test_positive_ttl_is_relative(self):
        expiration = Expiration.from_ttl(3600000)
        assert expiration.relative_ms == 3600000
        assert not expiration.is_never

    def test_relative_rejects_non_positive(self):
        with pytest.raises(ValueError):
            Expiration.relative(0)

    def test_never_alias(self):
        assert Expiration.NEVER is NEVER

    @pytest.mark.parametrize(
        "ttl,rendered",
        [
            (-1, "never"),
            (1000, "1s"),
            (3600000, "3600s"),
            (100, "1s"),  # rounded up to the cacheadmin granularity
            (1500, "2s"),
        ],
    )
    def test_to_cacheadmin(self, ttl, rendered):
        assert Expiration.from_ttl(ttl).to_cacheadmin() == rendered

    def test_str(self):
        assert str(NEVER) == "never"
        assert str(Expiration.relative(250)) == "250 ms"


class TestCacheDirective:
    def test_defaults_to_never(self):
        directive = CacheDirective(path="/a", pool="p")
        assert directive.expiration is NEVER
