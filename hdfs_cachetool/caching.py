"""
The caching pipeline: resolve patterns, ensure the pool, submit directives.

Every step talks to the cluster through a CacheAdminClient and lets remote
errors propagate; the CLI decides what they mean for the exit status.
"""

import logging
import time
from dataclasses import dataclass

from .config import CacheJobConfig, ConfigurationError
from .models import CacheDirective, Expiration, FileEntry
from .remote_client import CacheAdminClient, PoolAlreadyExistsError

logger = logging.getLogger(__name__)


@dataclass
class CacheReport:
    cached: int
    elapsed_ms: int
    pool_created: bool = False


def resolve_paths(client: CacheAdminClient, patterns: list[str]) -> list[FileEntry]:
    """
    Expand each pattern once and concatenate the matches in pattern order.

    Patterns matching nothing contribute nothing. Duplicates are kept.
    """
    entries = []
    for pattern in patterns:
        matches = client.glob_status(pattern)
        logger.info("%s matched %d path(s)", pattern, len(matches))
        entries.extend(matches)
    return entries


def ensure_cache_pool(client: CacheAdminClient, pool_name: str) -> bool:
    """
    Make sure a cache pool named pool_name exists.

    Listing and creating are separate calls, so a concurrent run may create
    the pool in between. A create that fails because the pool already exists
    is treated as success; no second create is attempted.

    Returns:
        True if this call created the pool.

    Raises:
        ConfigurationError: If pool_name is empty.
    """
    if not pool_name:
        raise ConfigurationError("Missing required configuration fields: poolName")

    for pool in client.list_cache_pools():
        if pool.name == pool_name:
            logger.info("Cache pool %s already exists", pool_name)
            return False

    logger.info("Cache pool %s not found, creating it", pool_name)
    try:
        client.add_cache_pool(pool_name)
    except PoolAlreadyExistsError:
        logger.info("Cache pool %s was created concurrently, using it", pool_name)
        return False
    return True


def submit_directives(
    client: CacheAdminClient,
    entries: list[FileEntry],
    pool_name: str,
    ttl_ms: int,
    verbose: bool = False,
) -> int:
    """
    Submit one cache directive per entry, in order.

    The first failing submission propagates and the rest are not attempted.
    Directives accepted before the failure stay in effect.

    Returns:
        Number of directives submitted.
    """
    expiration = Expiration.from_ttl(ttl_ms)
    submitted = 0
    for entry in entries:
        directive_id = client.add_cache_directive(
            CacheDirective(path=entry.path, pool=pool_name, expiration=expiration)
        )
        submitted += 1
        logger.debug(
            "Added directive %d for %s (expires: %s)", directive_id, entry.path, expiration
        )
        if verbose:
            print(f"Cached : {entry.path}")
    return submitted


def run_caching(client: CacheAdminClient, job: CacheJobConfig) -> CacheReport:
    """Run resolve, ensure-pool and submit against an already connected client."""
    start = time.monotonic()

    entries = resolve_paths(client, job.paths)
    pool_created = ensure_cache_pool(client, job.pool_name)
    cached = submit_directives(client, entries, job.pool_name, job.ttl_ms, job.verbose)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info("Cached %d path(s) in %d ms", cached, elapsed_ms)
    return CacheReport(cached=cached, elapsed_ms=elapsed_ms, pool_created=pool_created)
