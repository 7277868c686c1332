"""
Unit tests for hdfs_cachetool.caching module.

Tests cover:
- Pattern resolution order and empty matches
- Pool reconciliation (existing, missing, concurrent creation)
- Directive submission with and without TTL
- Abort on the first failing submission
- End-to-end run reports
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from hdfs_cachetool.caching import (
    CacheReport,
    ensure_cache_pool,
    resolve_paths,
    run_caching,
    submit_directives,
)
from hdfs_cachetool.config import CacheJobConfig, ConfigurationError
from hdfs_cachetool.hdfs_client import LocalHDFSClient
from hdfs_cachetool.models import NEVER, CacheDirective, CachePool, FileEntry
from hdfs_cachetool.remote_client import CacheAdminError, PoolAlreadyExistsError


def _entries(*paths):
    return [FileEntry(path=p, mtime=datetime(2024, 1, 15)) for p in paths]


def _submitted(mock_client) -> list[CacheDirective]:
    return [c.args[0] for c in mock_client.add_cache_directive.call_args_list]


class TestResolvePaths:
    """Tests for resolve_paths."""

    def test_concatenates_in_pattern_order(self, mock_client):
        entries = resolve_paths(mock_client, ["/data/b/*", "/data/a/*"])

        assert [e.path for e in entries] == [
            "/data/b/1",
            "/data/b/2",
            "/data/a/1",
            "/data/a/2",
            "/data/a/3",
        ]

    def test_one_glob_call_per_pattern(self, mock_client):
        resolve_paths(mock_client, ["/data/a/*", "/empty/*", "/data/b/*"])

        assert [c.args[0] for c in mock_client.glob_status.call_args_list] == [
            "/data/a/*",
            "/empty/*",
            "/data/b/*",
        ]

    def test_empty_match_contributes_nothing(self, mock_client):
        assert resolve_paths(mock_client, ["/empty/*"]) == []

    def test_duplicates_are_kept(self, mock_client):
        entries = resolve_paths(mock_client, ["/data/b/*", "/data/b/*"])

        assert len(entries) == 4

    def test_glob_error_propagates(self, mock_client):
        mock_client.glob_status.side_effect = CacheAdminError("ls failed")

        with pytest.raises(CacheAdminError):
            resolve_paths(mock_client, ["/data/a/*"])


class TestEnsureCachePool:
    """Tests for ensure_cache_pool."""

    def test_existing_pool_is_not_created(self, mock_client):
        created = ensure_cache_pool(mock_client, "prod")

        assert created is False
        mock_client.add_cache_pool.assert_not_called()

    def test_missing_pool_is_created_once(self, mock_client):
        created = ensure_cache_pool(mock_client, "newpool")

        assert created is True
        mock_client.add_cache_pool.assert_called_once_with("newpool")

    def test_name_match_is_exact(self, mock_client):
        mock_client.list_cache_pools.return_value = [CachePool(name="prod-old")]

        ensure_cache_pool(mock_client, "prod")

        mock_client.add_cache_pool.assert_called_once_with("prod")

    def test_no_pools_at_all(self, mock_client):
        mock_client.list_cache_pools.return_value = []

        assert ensure_cache_pool(mock_client, "prod") is True

    def test_concurrent_creation_is_tolerated(self, mock_client):
        """A pool created between listing and creating counts as existing."""
        mock_client.add_cache_pool.side_effect = PoolAlreadyExistsError("already exists")

        created = ensure_cache_pool(mock_client, "newpool")

        assert created is False
        assert mock_client.add_cache_pool.call_count == 1

    def test_other_create_errors_propagate(self, mock_client):
        mock_client.add_cache_pool.side_effect = PermissionError("not a superuser")

        with pytest.raises(PermissionError):
            ensure_cache_pool(mock_client, "newpool")

    @pytest.mark.parametrize("name", ["", None])
    def test_empty_pool_name_rejected_before_remote_calls(self, mock_client, name):
        with pytest.raises(ConfigurationError, match="poolName"):
            ensure_cache_pool(mock_client, name)

        mock_client.list_cache_pools.assert_not_called()
        mock_client.add_cache_pool.assert_not_called()


class TestSubmitDirectives:
    """Tests for submit_directives."""

    def test_never_expiring_directives(self, mock_client):
        entries = _entries("/a", "/b", "/c")

        count = submit_directives(mock_client, entries, "prod", -1)

        assert count == 3
        directives = _submitted(mock_client)
        assert [d.path for d in directives] == ["/a", "/b", "/c"]
        assert all(d.pool == "prod" for d in directives)
        assert all(d.expiration is NEVER for d in directives)

    def test_zero_ttl_means_never(self, mock_client):
        submit_directives(mock_client, _entries("/a"), "prod", 0)

        assert _submitted(mock_client)[0].expiration is NEVER

    def test_positive_ttl_applies_to_every_directive(self, mock_client):
        submit_directives(mock_client, _entries("/a", "/b"), "prod", 3600000)

        directives = _submitted(mock_client)
        assert len(directives) == 2
        assert all(d.expiration.relative_ms == 3600000 for d in directives)

    def test_no_entries_no_calls(self, mock_client):
        assert submit_directives(mock_client, [], "prod", -1) == 0
        mock_client.add_cache_directive.assert_not_called()

    def test_failure_stops_the_loop(self, mock_client):
        """The K-th failure means exactly K calls were made."""
        mock_client.add_cache_directive.side_effect = [1, CacheAdminError("pool full"), 3, 4]

        with pytest.raises(CacheAdminError, match="pool full"):
            submit_directives(mock_client, _entries("/a", "/b", "/c", "/d"), "prod", -1)

        assert mock_client.add_cache_directive.call_count == 2

    def test_verbose_prints_each_path(self, mock_client, capsys):
        submit_directives(mock_client, _entries("/a", "/b"), "prod", -1, verbose=True)

        out = capsys.readouterr().out
        assert out.splitlines() == ["Cached : /a", "Cached : /b"]

    def test_quiet_by_default(self, mock_client, capsys):
        submit_directives(mock_client, _entries("/a"), "prod", -1)

        assert capsys.readouterr().out == ""

    def test_verbose_does_not_print_failed_path(self, mock_client, capsys):
        mock_client.add_cache_directive.side_effect = CacheAdminError("boom")

        with pytest.raises(CacheAdminError):
            submit_directives(mock_client, _entries("/a"), "prod", -1, verbose=True)

        assert "Cached : /a" not in capsys.readouterr().out


class TestRunCaching:
    """End-to-end pipeline runs against a mocked client."""

    def test_existing_pool_scenario(self, mock_client, job_config):
        """Two patterns with 3 + 2 matches into the existing "prod" pool."""
        report = run_caching(mock_client, job_config)

        assert isinstance(report, CacheReport)
        assert report.cached == 5
        assert report.elapsed_ms >= 0
        assert report.pool_created is False
        assert mock_client.add_cache_directive.call_count == 5
        mock_client.add_cache_pool.assert_not_called()
        assert all(d.expiration.relative_ms == 3600000 for d in _submitted(mock_client))

    def test_empty_pattern_new_pool_scenario(self, mock_client):
        """A pattern with no matches into a pool that does not exist yet."""
        job = CacheJobConfig(paths=["/empty/*"], pool_name="newpool")

        report = run_caching(mock_client, job)

        assert report.cached == 0
        assert report.pool_created is True
        mock_client.add_cache_pool.assert_called_once_with("newpool")
        mock_client.add_cache_directive.assert_not_called()

    def test_pool_created_once_even_if_submission_fails(self, mock_client):
        job = CacheJobConfig(paths=["/data/a/*"], pool_name="newpool")
        mock_client.add_cache_directive.side_effect = CacheAdminError("denied")

        with pytest.raises(CacheAdminError):
            run_caching(mock_client, job)

        mock_client.add_cache_pool.assert_called_once_with("newpool")
        assert mock_client.add_cache_directive.call_count == 1

    def test_steps_run_in_order(self):
        client = MagicMock(spec=LocalHDFSClient)
        client.glob_status.return_value = _entries("/x")
        client.list_cache_pools.return_value = [CachePool(name="p")]
        client.add_cache_directive.return_value = 1

        run_caching(client, CacheJobConfig(paths=["/x"], pool_name="p"))

        assert [c[0] for c in client.method_calls] == [
            "glob_status",
            "list_cache_pools",
            "add_cache_directive",
        ]
