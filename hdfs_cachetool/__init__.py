__version__ = "0.1.0"

# Public API exports
from .caching import (
    CacheReport,
    ensure_cache_pool,
    resolve_paths,
    run_caching,
    submit_directives,
)
from .config import (
    AppConfig,
    CacheJobConfig,
    ConfigurationError,
    ConnectionConfig,
    HDFSConfig,
    LogConfig,
    SSHConfig,
    load_config,
)
from .hdfs_client import HDFSCommandClient, LocalHDFSClient
from .models import NEVER, CacheDirective, CachePool, Expiration, FileEntry
from .remote_client import CacheAdminClient, CacheAdminError, PoolAlreadyExistsError
from .ssh_client import SSHHDFSClient

__all__ = [
    "__version__",
    # Configuration
    "AppConfig",
    "CacheJobConfig",
    "HDFSConfig",
    "SSHConfig",
    "ConnectionConfig",
    "LogConfig",
    "ConfigurationError",
    "load_config",
    # Clients
    "CacheAdminClient",
    "CacheAdminError",
    "PoolAlreadyExistsError",
    "HDFSCommandClient",
    "LocalHDFSClient",
    "SSHHDFSClient",
    # Models
    "FileEntry",
    "CachePool",
    "CacheDirective",
    "Expiration",
    "NEVER",
    # Pipeline
    "CacheReport",
    "resolve_paths",
    "ensure_cache_pool",
    "submit_directives",
    "run_caching",
]
