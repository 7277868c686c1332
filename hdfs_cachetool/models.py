"""
Value types exchanged with the cache administration client.
"""

import math
from dataclasses import dataclass
from datetime import datetime


@dataclass
class FileEntry:
    """A path produced by glob expansion, with its status metadata."""

    path: str
    length: int = 0
    is_dir: bool = False
    mtime: datetime | None = None
    permission: str = ""
    replication: int = 0
    owner: str = ""
    group: str = ""


@dataclass
class CachePool:
    name: str
    owner: str = ""
    group: str = ""
    mode: str = ""
    limit: str = ""
    max_ttl: str = ""


@dataclass(frozen=True)
class Expiration:
    """
    When a cache directive expires.

    ``relative_ms`` is None for directives that never expire, otherwise the
    time-to-live in milliseconds counted from submission.
    """

    relative_ms: int | None = None

    @classmethod
    def relative(cls, ms: int) -> "Expiration":
        if ms <= 0:
            raise ValueError(f"Relative expiration must be positive, got {ms}")
        return cls(relative_ms=ms)

    @classmethod
    def from_ttl(cls, ttl_ms: int) -> "Expiration":
        """Map a configured TTL to an expiration; any value <= 0 means never."""
        if ttl_ms > 0:
            return cls.relative(ttl_ms)
        return NEVER

    @property
    def is_never(self) -> bool:
        return self.relative_ms is None

    def to_cacheadmin(self) -> str:
        """Render for ``hdfs cacheadmin -ttl``, whose smallest unit is seconds."""
        if self.is_never:
            return "never"
        return f"{math.ceil(self.relative_ms / 1000)}s"

    def __str__(self) -> str:
        if self.is_never:
            return "never"
        return f"{self.relative_ms} ms"


NEVER = Expiration()
Expiration.NEVER = NEVER


@dataclass
class CacheDirective:
    path: str
    pool: str
    expiration: Expiration = NEVER
