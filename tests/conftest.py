"""
Shared pytest fixtures for hdfs-cachetool tests.
"""

from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from hdfs_cachetool.config import (
    CacheJobConfig,
    ConnectionConfig,
    HDFSConfig,
    SSHConfig,
)
from hdfs_cachetool.hdfs_client import LocalHDFSClient
from hdfs_cachetool.models import CachePool, FileEntry


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    """Keep a developer's HDFS_CACHE_CONFIG out of the tests."""
    monkeypatch.delenv("HDFS_CACHE_CONFIG", raising=False)


@pytest.fixture
def tmp_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Creates a temporary INI configuration file for config tests.

    Returns:
        Path to the temporary config file.
    """
    config_content = """[general]
transport = ssh

[cache]
path = /data/a/*, /data/b/*
pool_name = prod
ttl = 3600000
verbose = true

[hdfs]
command = /opt/hadoop/bin/hdfs
fs_uri = hdfs://namenode:8020

[properties]
dfs.client.socket-timeout = 120000

[ssh]
host = gateway.local
port = 2222
username = hdfs
key_file = ~/.ssh/id_ed25519
use_agent = false

[connection]
timeout_seconds = 45
retry_attempts = 5
retry_delay_seconds = 2
command_timeout_seconds = 600

[logging]
level = DEBUG
file = test.log
console = false
"""
    config_path = tmp_path / "test_config.ini"
    config_path.write_text(config_content, encoding="utf-8")
    yield config_path


@pytest.fixture
def minimal_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Creates a minimal INI configuration file with only required fields.

    Returns:
        Path to the temporary config file.
    """
    config_content = """[cache]
path = /tmp/folder/*
pool_name = test
"""
    config_path = tmp_path / "minimal_config.ini"
    config_path.write_text(config_content, encoding="utf-8")
    yield config_path


@pytest.fixture
def hdfs_config() -> HDFSConfig:
    """Creates a standard HDFSConfig for testing."""
    return HDFSConfig(command="hdfs")


@pytest.fixture
def conn_config() -> ConnectionConfig:
    """Creates a standard ConnectionConfig for testing."""
    return ConnectionConfig(
        timeout_seconds=30,
        retry_attempts=3,
        retry_delay_seconds=0,  # No delay in tests
    )


@pytest.fixture
def ssh_config() -> SSHConfig:
    """Creates a standard SSHConfig for testing."""
    return SSHConfig(host="gateway.local", port=22, username="hdfs", password="secret")


@pytest.fixture
def job_config() -> CacheJobConfig:
    return CacheJobConfig(paths=["/data/a/*", "/data/b/*"], pool_name="prod", ttl_ms=3600000)


def make_entries(*paths: str) -> list[FileEntry]:
    """Build FileEntry objects for the given paths."""
    return [
        FileEntry(path=path, length=1024, mtime=datetime(2024, 1, 15, 10, 30)) for path in paths
    ]


@pytest.fixture
def mock_client() -> Generator[MagicMock, None, None]:
    """
    Creates a fully mocked cache administration client.

    Returns:
        Mocked LocalHDFSClient: /data/a/* matches 3 paths, /data/b/* matches 2,
        and the "prod" pool exists.
    """
    mock = MagicMock(spec=LocalHDFSClient)

    globs = {
        "/data/a/*": make_entries("/data/a/1", "/data/a/2", "/data/a/3"),
        "/data/b/*": make_entries("/data/b/1", "/data/b/2"),
    }
    mock.glob_status.side_effect = lambda pattern: list(globs.get(pattern, []))
    mock.list_cache_pools.return_value = [CachePool(name="default"), CachePool(name="prod")]
    mock.add_cache_directive.side_effect = range(1, 1000)

    yield mock
