"""
hdfs-cachetool - Main Entry Point

This module provides the CLI interface and wires up all components to
register HDFS cache directives for every path matching a set of globs.
"""

import argparse
import logging
import sys

from .caching import run_caching
from .config import AppConfig, ConfigurationError, load_config, parse_properties
from .hdfs_client import LocalHDFSClient
from .logger import setup_logging
from .remote_client import CacheAdminError
from .ssh_client import SSHHDFSClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

EXAMPLES = """
Examples:
  hdfs-cache --path '/tmp/folder/*,/user/hive/*/2/*' --pool test --verbose
  hdfs-cache -D path=/tmp/folder/* -D poolName=test -D ttl=-1
  hdfs-cache -D path=/tmp/folder/* -D poolName=test -D ttl=100
  hdfs-cache --transport ssh --ssh-host gateway01 --path '/data/*' --pool prod
  hdfs-cache --config cache.ini
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hdfs-cache",
        description="Cache HDFS paths matching glob patterns in a cache pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EXAMPLES,
    )
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument(
        "-D",
        dest="define",
        action="append",
        metavar="KEY=VALUE",
        help="Set a property (path, poolName, ttl, verbose, or any Hadoop property)",
    )
    parser.add_argument("--path", help="Comma-separated glob patterns to cache")
    parser.add_argument("--pool", dest="pool_name", help="Cache pool to use, created if missing")
    parser.add_argument(
        "--ttl", type=int, help="Directive time-to-live in ms; 0 or less means never expire"
    )
    parser.add_argument("--verbose", action="store_true", help="Print every cached path")
    parser.add_argument("--transport", choices=["local", "ssh"], default=None)
    parser.add_argument("--hdfs-command", help="hdfs executable (default: hdfs)")
    parser.add_argument("--fs", dest="fs_uri", help="Filesystem URI, e.g. hdfs://namenode:8020")
    parser.add_argument("--ssh-host", help="Gateway host running the Hadoop client")
    parser.add_argument("--ssh-port", type=int, help="Gateway SSH port")
    parser.add_argument("--ssh-user", help="Gateway SSH username")
    parser.add_argument("--key-file", help="Path to SSH private key")
    parser.add_argument("--key-passphrase", help="Passphrase for encrypted SSH key")
    parser.add_argument(
        "--command-timeout", type=int, help="Seconds to wait for each hdfs command"
    )
    parser.add_argument("--log-file", help="Write logs to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def print_usage() -> None:
    print("Usage: hdfs-cache --path <globPath[,globPath...]> --pool <poolName> [options]")
    print()
    print("path, poolName are mandatory parameters")
    print("ttl is in milliseconds; 0 or a negative value means NEVER expire")
    print(EXAMPLES)
    print("Run 'hdfs-cache --help' for all options.")


def create_client(config: AppConfig):
    """Build the client for the configured transport."""
    if config.transport == "ssh":
        return SSHHDFSClient(config.ssh, config.hdfs, config.connection)
    return LocalHDFSClient(config.hdfs, config.connection)


def cmd_cache(args) -> int:
    """
    Load configuration, connect, run the caching pipeline and report.

    The client is disconnected on every exit path once it has been created.
    """
    client = None

    try:
        # 1. Load Configuration
        try:
            config = load_config(
                config_path=args.config,
                properties=parse_properties(args.define),
                path=args.path,
                pool_name=args.pool_name,
                ttl=args.ttl,
                verbose=args.verbose,
                transport=args.transport,
                hdfs_command=args.hdfs_command,
                fs_uri=args.fs_uri,
                ssh_host=args.ssh_host,
                ssh_port=args.ssh_port,
                ssh_user=args.ssh_user,
                key_file=args.key_file,
                key_passphrase=args.key_passphrase,
                command_timeout=args.command_timeout,
                log_file=args.log_file,
                debug=args.debug,
            )
        except FileNotFoundError as e:
            print(f"[ERROR] {e}")
            return EXIT_USAGE

        # 2. Setup Logging
        setup_logging(config.logging)
        from . import __version__

        logger.info("Starting hdfs-cachetool v%s", __version__)
        logger.info(
            "Caching %s into pool %s (ttl=%d ms)",
            ", ".join(config.job.paths),
            config.job.pool_name,
            config.job.ttl_ms,
        )

        # 3. Acquire the client
        client = create_client(config)
        try:
            client.connect()
        except PermissionError as e:
            logger.error("Authentication failed: %s", e)
            print(f"[ERROR] Authentication failed: {e}")
            return EXIT_FAILURE
        except (ConnectionError, TimeoutError) as e:
            logger.error("Failed to connect: %s", e)
            print(f"[ERROR] Could not reach the HDFS client: {e}")
            return EXIT_FAILURE

        # 4. Resolve, ensure pool, submit
        report = run_caching(client, config.job)

        if report.pool_created:
            print(f"[OK] Created cache pool '{config.job.pool_name}'")
        print(
            f"[OK] Cached {report.cached} path(s) in pool '{config.job.pool_name}' "
            f"in {report.elapsed_ms} ms"
        )
        return EXIT_OK

    except ConfigurationError as e:
        print(f"[ERROR] Configuration error: {e}")
        print_usage()
        return EXIT_USAGE
    except PermissionError as e:
        logger.error("Permission denied: %s", e)
        print(f"[ERROR] Permission denied: {e}")
        return EXIT_FAILURE
    except (CacheAdminError, ConnectionError, TimeoutError) as e:
        logger.error("Caching aborted: %s", e)
        print(f"[ERROR] Caching aborted: {e}")
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        print(f"[ERROR] Fatal error: {e}")
        return EXIT_FAILURE
    finally:
        if client is not None:
            try:
                client.disconnect()
            except Exception as e:
                logger.warning("Error disconnecting: %s", e)


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    return cmd_cache(args)


if __name__ == "__main__":
    sys.exit(main() or 0)
