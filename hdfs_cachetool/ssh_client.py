"""
SSH transport using paramiko.

Runs the same hdfs commands as LocalHDFSClient, but on a gateway host that
has the Hadoop client installed.
"""

import logging
import os
import shlex
import time
from pathlib import Path

import paramiko

from .config import ConnectionConfig, HDFSConfig, SSHConfig
from .hdfs_client import HDFSCommandClient

logger = logging.getLogger(__name__)


class TrustOnFirstUsePolicy(paramiko.MissingHostKeyPolicy):
    """
    Trust-on-first-use host key policy (same model as OpenSSH).

    - Unknown host: accept and save key to ~/.ssh/known_hosts
    - Known host, same key: accept
    - Known host, CHANGED key: reject (possible MITM attack)
    """

    def __init__(self):
        self._known_hosts_path = Path.home() / ".ssh" / "known_hosts"

    def missing_host_key(self, client, hostname, key):
        host_keys = client.get_host_keys()
        existing = host_keys.lookup(hostname)

        if existing is not None:
            existing_key = existing.get(key.get_name())
            if existing_key is not None and existing_key != key:
                raise paramiko.SSHException(
                    f"Host key for {hostname} has CHANGED. "
                    f"Remove the old entry from {self._known_hosts_path} "
                    f"if the gateway key was legitimately rotated."
                )

        logger.info("Adding host key for %s to known_hosts", hostname)
        host_keys.add(hostname, key.get_name(), key)

        try:
            self._known_hosts_path.parent.mkdir(parents=True, exist_ok=True)
            host_keys.save(str(self._known_hosts_path))
        except OSError as e:
            logger.warning("Could not save known_hosts: %s", e)


class SSHHDFSClient(HDFSCommandClient):
    """
    Runs hdfs commands on a gateway host over SSH.

    Connection establishment is retried according to ConnectionConfig;
    the hdfs commands themselves are never retried.
    """

    def __init__(
        self, ssh_config: SSHConfig, hdfs_config: HDFSConfig, conn_config: ConnectionConfig
    ):
        super().__init__(hdfs_config, conn_config)
        self.ssh_config = ssh_config
        self._ssh: paramiko.SSHClient | None = None

    def connect(self) -> None:
        """Open the SSH session, retrying transient failures."""
        last_exception = None

        attempts = max(1, self.conn_config.retry_attempts)

        for attempt in range(attempts):
            try:
                self._connect_internal()
                return
            except PermissionError:
                raise
            except (TimeoutError, ConnectionError) as e:
                last_exception = e
                logger.warning(
                    "connect(%s) failed (attempt %d/%d): %s",
                    self.ssh_config.host,
                    attempt + 1,
                    attempts,
                    e,
                )
                if attempt < attempts - 1:
                    time.sleep(self.conn_config.retry_delay_seconds)

        logger.error(
            "connect(%s) failed after %d attempts",
            self.ssh_config.host,
            attempts,
        )
        raise last_exception

    def _connect_internal(self) -> None:
        try:
            self._ssh = paramiko.SSHClient()
            self._ssh.load_system_host_keys()
            try:
                self._ssh.load_host_keys(str(Path.home() / ".ssh" / "known_hosts"))
            except FileNotFoundError:
                pass
            self._ssh.set_missing_host_key_policy(TrustOnFirstUsePolicy())

            connect_kwargs: dict = {
                "hostname": self.ssh_config.host,
                "port": self.ssh_config.port,
                "timeout": self.conn_config.timeout_seconds,
                "allow_agent": self.ssh_config.use_agent,
            }
            if self.ssh_config.username:
                connect_kwargs["username"] = self.ssh_config.username

            # Auth priority: key file -> password -> agent/default keys
            if self.ssh_config.key_file:
                key_path = os.path.expanduser(self.ssh_config.key_file)
                connect_kwargs["key_filename"] = key_path
                if self.ssh_config.key_passphrase:
                    connect_kwargs["passphrase"] = self.ssh_config.key_passphrase
                connect_kwargs["look_for_keys"] = True
                logger.debug("Connecting to %s with key file: %s", self.ssh_config.host, key_path)
            elif self.ssh_config.password:
                connect_kwargs["password"] = self.ssh_config.password
                connect_kwargs["look_for_keys"] = False
                logger.debug("Connecting to %s with password", self.ssh_config.host)
            else:
                connect_kwargs["look_for_keys"] = True
                logger.debug("Connecting to %s with agent/default keys", self.ssh_config.host)

            self._ssh.connect(**connect_kwargs)
            self._connected = True
            logger.info(
                "Connected to gateway %s:%d", self.ssh_config.host, self.ssh_config.port
            )

        except paramiko.AuthenticationException as e:
            self._cleanup_connection()
            logger.error("SSH authentication failed: %s", e)
            raise PermissionError(f"SSH authentication failed: {e}") from e
        except TimeoutError as e:
            self._cleanup_connection()
            logger.error("SSH connection timeout: %s", e)
            raise TimeoutError(f"SSH connection timeout: {e}") from e
        except OSError as e:
            self._cleanup_connection()
            logger.error("SSH connection failed: %s", e)
            raise ConnectionError(f"SSH connection failed: {e}") from e
        except paramiko.SSHException as e:
            self._cleanup_connection()
            logger.error("SSH error: %s", e)
            raise ConnectionError(f"SSH error: {e}") from e

    def _cleanup_connection(self) -> None:
        """Close the SSH client without raising."""
        self._connected = False
        if self._ssh:
            try:
                self._ssh.close()
            except Exception:
                pass
            self._ssh = None

    def disconnect(self) -> None:
        """Close the SSH connection."""
        if self._ssh is not None:
            self._ssh.close()
            self._ssh = None
        self._connected = False
        logger.debug("SSH connection closed")

    def _execute(self, argv: list[str]) -> tuple[int, str, str]:
        command = shlex.join(argv)
        try:
            _, stdout, stderr = self._ssh.exec_command(
                command, timeout=self.conn_config.command_timeout_seconds
            )
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
            returncode = stdout.channel.recv_exit_status()
        except TimeoutError as e:
            raise TimeoutError(
                f"Command timed out after {self.conn_config.command_timeout_seconds}s: {command}"
            ) from e
        except paramiko.SSHException as e:
            raise ConnectionError(f"SSH error running {argv[1]}: {e}") from e
        return returncode, out, err
