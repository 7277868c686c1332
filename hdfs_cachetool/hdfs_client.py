"""
Cache administration over the ``hdfs`` command line.

HDFSCommandClient builds ``hdfs dfs`` / ``hdfs cacheadmin`` invocations and
parses their output. Subclasses decide where the command runs:
LocalHDFSClient uses the executable on this machine, SSHHDFSClient
(ssh_client.py) runs it on a gateway host.
"""

import logging
import re
import shutil
import subprocess
from datetime import datetime

from .config import ConnectionConfig, HDFSConfig
from .models import CacheDirective, CachePool, FileEntry
from .remote_client import CacheAdminError, PoolAlreadyExistsError

logger = logging.getLogger(__name__)

# drwxr-xr-x   - hdfs supergroup          0 2024-01-15 10:30 /data/a
LS_LINE_RE = re.compile(
    r"^(?P<permission>[-dl][-rwxsStT]{9}\+?)\s+"
    r"(?P<replication>\S+)\s+"
    r"(?P<owner>\S+)\s+"
    r"(?P<group>.+?)\s+"
    r"(?P<length>\d+)\s+"
    r"(?P<mtime>\d{4}-\d{2}-\d{2} \d{2}:\d{2})\s+"
    r"(?P<path>.+)$"
)
PERMISSION_PREFIX_RE = re.compile(r"^[-dl][-rwxsStT]{9}\+?\s")
DIRECTIVE_ID_RE = re.compile(r"Added cache directive (\d+)")

NO_MATCH_MARKERS = ("No such file or directory", "matches 0 files")
PERMISSION_MARKERS = ("AccessControlException", "Permission denied")


def _is_no_match(stderr: str) -> bool:
    """True when ls itself reported that the pattern matched nothing."""
    return any(
        line.startswith("ls:") and any(marker in line for marker in NO_MATCH_MARKERS)
        for line in stderr.splitlines()
    )


def parse_ls_output(output: str) -> list[FileEntry]:
    """Parse ``hdfs dfs -ls -d`` output into FileEntry objects."""
    entries = []
    for line in output.splitlines():
        line = line.strip()
        match = LS_LINE_RE.match(line)
        if not match:
            if PERMISSION_PREFIX_RE.match(line):
                raise CacheAdminError(f"Unrecognised ls output line: {line}")
            continue
        replication = match.group("replication")
        entries.append(
            FileEntry(
                path=match.group("path"),
                length=int(match.group("length")),
                is_dir=match.group("permission").startswith("d"),
                mtime=datetime.strptime(match.group("mtime"), "%Y-%m-%d %H:%M"),
                permission=match.group("permission"),
                replication=int(replication) if replication.isdigit() else 0,
                owner=match.group("owner"),
                group=match.group("group"),
            )
        )
    return entries


def parse_pool_listing(output: str) -> list[CachePool]:
    """
    Parse ``hdfs cacheadmin -listPools`` output.

    The listing starts with a "Found N results." line followed by a header
    row (NAME OWNER GROUP MODE LIMIT MAXTTL) and one row per pool.
    """
    pools = []
    for line in output.splitlines():
        fields = line.split()
        if not fields or fields[0] == "NAME" or line.startswith("Found "):
            continue
        fields += [""] * (6 - len(fields))
        pools.append(
            CachePool(
                name=fields[0],
                owner=fields[1],
                group=fields[2],
                mode=fields[3],
                limit=fields[4],
                max_ttl=fields[5],
            )
        )
    return pools


class HDFSCommandClient:
    """
    Base class for clients that drive cache administration through the
    hdfs command line. Subclasses implement connect, disconnect and
    _execute.
    """

    def __init__(self, hdfs_config: HDFSConfig, conn_config: ConnectionConfig):
        self.hdfs_config = hdfs_config
        self.conn_config = conn_config
        self._connected = False

    def connect(self) -> None:
        raise NotImplementedError

    def disconnect(self) -> None:
        raise NotImplementedError

    def _execute(self, argv: list[str]) -> tuple[int, str, str]:
        """Run argv and return (exit status, stdout, stderr)."""
        raise NotImplementedError

    def _build_command(self, tool: str, *args: str) -> list[str]:
        """Build ``hdfs <tool> [generic options] args``."""
        argv = [self.hdfs_config.command, tool]
        if self.hdfs_config.fs_uri:
            argv += ["-fs", self.hdfs_config.fs_uri]
        for key, value in self.hdfs_config.properties.items():
            argv.append(f"-D{key}={value}")
        argv += list(args)
        return argv

    def _run(self, operation: str, argv: list[str]) -> str:
        """Execute a command, translating a non-zero exit into an exception."""
        if not self._connected:
            raise ConnectionError(f"{operation} called before connect()")

        logger.debug("Running: %s", " ".join(argv))
        returncode, stdout, stderr = self._execute(argv)
        if returncode != 0:
            raise self._translate_error(operation, argv, returncode, stderr or stdout)
        return stdout

    def _translate_error(
        self, operation: str, argv: list[str], returncode: int, output: str
    ) -> Exception:
        """Translate hdfs error output to an exception."""
        lines = output.strip().splitlines()
        message = lines[-1] if lines else f"exit status {returncode}"
        if "already exists" in output:
            return PoolAlreadyExistsError(
                f"{operation} failed: {message}", argv, returncode, output
            )
        if any(marker in output for marker in PERMISSION_MARKERS):
            return PermissionError(f"{operation} failed: {message}")
        return CacheAdminError(f"{operation} failed: {message}", argv, returncode, output)

    def glob_status(self, pattern: str) -> list[FileEntry]:
        """Expand a glob pattern with ``hdfs dfs -ls -d``."""
        logger.debug("Resolving pattern: %s", pattern)
        argv = self._build_command("dfs", "-ls", "-d", pattern)
        try:
            output = self._run(f"glob_status({pattern})", argv)
        except CacheAdminError as e:
            if _is_no_match(e.stderr):
                logger.debug("Pattern %s matched nothing", pattern)
                return []
            raise

        entries = parse_ls_output(output)
        logger.debug("Pattern %s matched %d entries", pattern, len(entries))
        return entries

    def list_cache_pools(self) -> list[CachePool]:
        argv = self._build_command("cacheadmin", "-listPools")
        pools = parse_pool_listing(self._run("list_cache_pools", argv))
        logger.debug("Found %d cache pools", len(pools))
        return pools

    def add_cache_pool(self, name: str) -> None:
        argv = self._build_command("cacheadmin", "-addPool", name)
        self._run(f"add_cache_pool({name})", argv)
        logger.info("Created cache pool %s", name)

    def add_cache_directive(self, directive: CacheDirective) -> int:
        argv = self._build_command(
            "cacheadmin",
            "-addDirective",
            "-path",
            directive.path,
            "-pool",
            directive.pool,
            "-ttl",
            directive.expiration.to_cacheadmin(),
        )
        output = self._run(f"add_cache_directive({directive.path})", argv)

        match = DIRECTIVE_ID_RE.search(output)
        if not match:
            logger.warning("Could not read directive id from output: %s", output.strip())
            return -1
        return int(match.group(1))


class LocalHDFSClient(HDFSCommandClient):
    """Runs the hdfs executable installed on this machine."""

    def connect(self) -> None:
        """Check that the hdfs executable can be found."""
        executable = shutil.which(self.hdfs_config.command)
        if executable is None:
            raise ConnectionError(
                f"hdfs command not found: {self.hdfs_config.command}. "
                "Install the Hadoop client or use --transport ssh."
            )
        self._connected = True
        logger.info("Using hdfs client at %s", executable)

    def disconnect(self) -> None:
        self._connected = False
        logger.debug("Local hdfs client released")

    def _execute(self, argv: list[str]) -> tuple[int, str, str]:
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.conn_config.command_timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(
                f"Command timed out after {self.conn_config.command_timeout_seconds}s: "
                f"{' '.join(argv)}"
            ) from e
        except FileNotFoundError as e:
            raise ConnectionError(f"hdfs command not found: {argv[0]}") from e
        return result.returncode, result.stdout, result.stderr
