import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_ENV_VAR = "HDFS_CACHE_CONFIG"

# Hadoop-style property keys accepted through -D key=value
PATH_KEY = "path"
POOL_NAME_KEY = "poolName"
TTL_KEY = "ttl"
VERBOSE_KEY = "verbose"

TRUE_VALUES = ("true", "1", "yes")


class ConfigurationError(ValueError):
    """Raised when mandatory settings are missing or a value cannot be parsed."""


@dataclass
class CacheJobConfig:
    paths: list[str]
    pool_name: str
    ttl_ms: int = -1  # <= 0 means the directives never expire
    verbose: bool = False


@dataclass
class HDFSConfig:
    command: str = "hdfs"
    fs_uri: str | None = None  # e.g. hdfs://namenode:8020, passed as -fs
    properties: dict[str, str] = field(default_factory=dict)


@dataclass
class SSHConfig:
    host: str
    port: int = 22
    username: str | None = None
    password: str | None = None
    key_file: str | None = None  # Path to SSH private key
    key_passphrase: str | None = None  # Passphrase for encrypted keys
    use_agent: bool = True  # Try SSH agent for auth


@dataclass
class ConnectionConfig:
    timeout_seconds: int = 30
    retry_attempts: int = 3
    retry_delay_seconds: int = 1
    command_timeout_seconds: int | None = None  # None waits forever


@dataclass
class LogConfig:
    level: str = "INFO"
    file: str = ""
    console: bool = True


@dataclass
class AppConfig:
    job: CacheJobConfig
    hdfs: HDFSConfig
    connection: ConnectionConfig
    logging: LogConfig
    transport: str = "local"  # "local" or "ssh"
    ssh: SSHConfig | None = None


def _split_paths(value: str | None) -> list[str]:
    """Split a comma-separated pattern list, trimming items and dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def _parse_int(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid {name} value: '{value}' - must be an integer")


def parse_properties(definitions: list[str] | None) -> dict[str, str]:
    """
    Parse ``key=value`` strings as given to ``-D``.

    Raises:
        ConfigurationError: If an item has no '=' or an empty key.
    """
    properties = {}
    for item in definitions or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Invalid property '{item}' - expected key=value")
        properties[key] = value.strip()
    return properties


def load_config(
    config_path: str | None = None,
    properties: dict[str, str] | None = None,
    **cli_args,
) -> AppConfig:
    """
    Load configuration from an INI file, -D properties and CLI arguments.
    CLI arguments take precedence over properties, which take precedence
    over the config file.

    Args:
        config_path: Path to the INI configuration file. Falls back to the
            HDFS_CACHE_CONFIG environment variable when None.
        properties: Hadoop-style key/value pairs (path, poolName, ttl, verbose).
            Unknown keys are forwarded to every hdfs invocation.
        **cli_args: Key-value pairs from command line arguments.

    Returns:
        AppConfig: The populated configuration object.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigurationError: If path or poolName are missing, or a value is invalid.
    """
    job_config = {
        "paths": [],
        "pool_name": None,
        "ttl_ms": -1,
        "verbose": False,
    }
    hdfs_config = {
        "command": "hdfs",
        "fs_uri": None,
        "properties": {},
    }
    ssh_config = {
        "host": None,
        "port": 22,
        "username": None,
        "password": None,
        "key_file": None,
        "key_passphrase": None,
        "use_agent": True,
    }
    connection_config = {
        "timeout_seconds": 30,
        "retry_attempts": 3,
        "retry_delay_seconds": 1,
        "command_timeout_seconds": None,
    }
    log_config = {
        "level": "INFO",
        "file": "",
        "console": True,
    }
    transport = "local"

    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR) or None

    # Parse INI file if provided
    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # Hadoop property names are case-sensitive
        parser.read(config_file, encoding="utf-8")

        if parser.has_section("cache"):
            cache_section = parser["cache"]
            if cache_section.get("path"):
                job_config["paths"] = _split_paths(cache_section.get("path"))
            if cache_section.get("pool_name"):
                job_config["pool_name"] = cache_section.get("pool_name").strip()
            if cache_section.get("ttl"):
                job_config["ttl_ms"] = _parse_int("ttl", cache_section.get("ttl"))
            if cache_section.get("verbose"):
                job_config["verbose"] = _parse_bool(cache_section.get("verbose"))

        if parser.has_section("hdfs"):
            hdfs_section = parser["hdfs"]
            if hdfs_section.get("command"):
                hdfs_config["command"] = hdfs_section.get("command")
            if hdfs_section.get("fs_uri"):
                hdfs_config["fs_uri"] = hdfs_section.get("fs_uri")

        if parser.has_section("properties"):
            hdfs_config["properties"].update(dict(parser["properties"]))

        if parser.has_section("ssh"):
            ssh_section = parser["ssh"]
            if ssh_section.get("host"):
                ssh_config["host"] = ssh_section.get("host")
            if ssh_section.get("port"):
                ssh_config["port"] = _parse_int("SSH port", ssh_section.get("port"))
            if ssh_section.get("username"):
                ssh_config["username"] = ssh_section.get("username")
            if ssh_section.get("password"):
                ssh_config["password"] = ssh_section.get("password")
            if ssh_section.get("key_file"):
                ssh_config["key_file"] = ssh_section.get("key_file")
            if ssh_section.get("key_passphrase"):
                ssh_config["key_passphrase"] = ssh_section.get("key_passphrase")
            if ssh_section.get("use_agent"):
                ssh_config["use_agent"] = _parse_bool(ssh_section.get("use_agent"))

        if parser.has_section("connection"):
            conn_section = parser["connection"]
            for key in (
                "timeout_seconds",
                "retry_attempts",
                "retry_delay_seconds",
                "command_timeout_seconds",
            ):
                if conn_section.get(key):
                    connection_config[key] = _parse_int(key, conn_section.get(key))

        if parser.has_section("logging"):
            log_section = parser["logging"]
            if log_section.get("level"):
                log_config["level"] = log_section.get("level")
            if log_section.get("file"):
                log_config["file"] = log_section.get("file")
            if log_section.get("console"):
                log_config["console"] = _parse_bool(log_section.get("console"))

        if parser.has_section("general") and parser["general"].get("transport"):
            transport = parser["general"]["transport"].lower()

    # -D properties override the file
    for key, value in (properties or {}).items():
        if key == PATH_KEY:
            job_config["paths"] = _split_paths(value)
        elif key == POOL_NAME_KEY:
            job_config["pool_name"] = value
        elif key == TTL_KEY:
            job_config["ttl_ms"] = _parse_int("ttl", value)
        elif key == VERBOSE_KEY:
            job_config["verbose"] = _parse_bool(value)
        else:
            hdfs_config["properties"][key] = value

    # Override with CLI arguments (cli_args take precedence)
    if cli_args.get("path") is not None:
        job_config["paths"] = _split_paths(cli_args["path"])
    if cli_args.get("pool_name") is not None:
        job_config["pool_name"] = cli_args["pool_name"]
    if cli_args.get("ttl") is not None:
        job_config["ttl_ms"] = _parse_int("ttl", cli_args["ttl"])
    if cli_args.get("verbose"):
        job_config["verbose"] = True
    if cli_args.get("transport") is not None:
        transport = cli_args["transport"].lower()
    if cli_args.get("hdfs_command") is not None:
        hdfs_config["command"] = cli_args["hdfs_command"]
    if cli_args.get("fs_uri") is not None:
        hdfs_config["fs_uri"] = cli_args["fs_uri"]
    if cli_args.get("ssh_host") is not None:
        ssh_config["host"] = cli_args["ssh_host"]
    if cli_args.get("ssh_port") is not None:
        ssh_config["port"] = _parse_int("SSH port", cli_args["ssh_port"])
    if cli_args.get("ssh_user") is not None:
        ssh_config["username"] = cli_args["ssh_user"] or None
    if cli_args.get("key_file") is not None:
        ssh_config["key_file"] = cli_args["key_file"]
    if cli_args.get("key_passphrase") is not None:
        ssh_config["key_passphrase"] = cli_args["key_passphrase"]
    if cli_args.get("command_timeout") is not None:
        connection_config["command_timeout_seconds"] = _parse_int(
            "command timeout", cli_args["command_timeout"]
        )
    if cli_args.get("log_file") is not None:
        log_config["file"] = cli_args["log_file"]
    if cli_args.get("debug"):
        log_config["level"] = "DEBUG"
        log_config["console"] = True

    # A bare --ssh-host implies the ssh transport
    if cli_args.get("ssh_host") is not None and cli_args.get("transport") is None:
        transport = "ssh"

    # Validate required fields
    missing_fields = []
    if not job_config["paths"]:
        missing_fields.append(PATH_KEY)
    if not job_config["pool_name"] or not job_config["pool_name"].strip():
        missing_fields.append(POOL_NAME_KEY)

    if missing_fields:
        raise ConfigurationError(
            f"Missing required configuration fields: {', '.join(missing_fields)}"
        )

    if transport not in ("local", "ssh"):
        raise ConfigurationError(f"Invalid transport: {transport}. Must be 'local' or 'ssh'.")
    if transport == "ssh" and not ssh_config["host"]:
        raise ConfigurationError("Missing required configuration fields: ssh host")
    if connection_config["retry_attempts"] < 1:
        raise ConfigurationError(
            f"Invalid retry_attempts value: {connection_config['retry_attempts']}. "
            "Must be at least 1."
        )

    ssh_obj = None
    if transport == "ssh":
        ssh_obj = SSHConfig(**ssh_config)

    return AppConfig(
        job=CacheJobConfig(
            paths=job_config["paths"],
            pool_name=job_config["pool_name"].strip(),
            ttl_ms=job_config["ttl_ms"],
            verbose=job_config["verbose"],
        ),
        hdfs=HDFSConfig(
            command=hdfs_config["command"],
            fs_uri=hdfs_config["fs_uri"],
            properties=hdfs_config["properties"],
        ),
        connection=ConnectionConfig(**connection_config),
        logging=LogConfig(**log_config),
        transport=transport,
        ssh=ssh_obj,
    )
