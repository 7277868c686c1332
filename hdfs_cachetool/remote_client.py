"""
Cache administration client protocol definition.

Defines the interface that both LocalHDFSClient and SSHHDFSClient implement,
allowing the caching pipeline to work with either transport.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import CacheDirective, CachePool, FileEntry


class CacheAdminError(OSError):
    """An hdfs command exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class PoolAlreadyExistsError(CacheAdminError):
    """The cache pool being created already exists on the NameNode."""


@runtime_checkable
class CacheAdminClient(Protocol):
    """Protocol defining the remote filesystem client interface.

    Any class implementing these methods can drive the caching pipeline,
    regardless of how the hdfs commands are executed.
    """

    def connect(self) -> None:
        """Acquire the client handle."""
        ...

    def disconnect(self) -> None:
        """Release the client handle."""
        ...

    def glob_status(self, pattern: str) -> list[FileEntry]:
        """Expand a glob pattern.

        Args:
            pattern: Glob expression evaluated by the remote filesystem.

        Returns:
            Matching entries in the order the filesystem returns them.
            An empty list when nothing matches.
        """
        ...

    def list_cache_pools(self) -> list[CachePool]:
        """Enumerate the cache pools defined on the NameNode."""
        ...

    def add_cache_pool(self, name: str) -> None:
        """Create a cache pool with default settings.

        Raises:
            PoolAlreadyExistsError: If a pool with this name exists.
        """
        ...

    def add_cache_directive(self, directive: CacheDirective) -> int:
        """Submit a cache directive.

        Returns:
            The directive id assigned by the NameNode.
        """
        ...
