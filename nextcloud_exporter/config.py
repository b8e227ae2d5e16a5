"""
Configuration management for the exporter.
Values come from keyword arguments, overridden by environment variables.
"""
import os
import re
from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, Tuple
from urllib.parse import urlencode

from .exceptions import ConfigError

VERSION = "1.0.0"

INFO_PATH = "/ocs/v2.php/apps/serverinfo/api/v1/info"

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """Parse ``5``, ``5s``, ``500ms`` or ``1m`` into seconds."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigError(f"invalid duration: {value!r}")
    number, unit = match.groups()
    return float(number) * _DURATION_UNITS[unit or "s"]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _read_secret(value: str, name: str) -> str:
    """Resolve ``@/path/to/file`` to the stripped file contents."""
    if not value or not value.startswith("@"):
        return value
    path = value[1:]
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError as e:
        raise ConfigError(f"can not read {name} from {path}: {e}") from e


@dataclass
class ExporterConfig:
    """Configuration for the Nextcloud exporter."""

    # Nextcloud server
    server: str = ""
    username: str = ""
    password: str = ""
    auth_token: str = ""
    timeout: float = 5.0  # seconds
    tls_skip_verify: bool = False
    info_apps: bool = True
    info_update: bool = False

    # Exposition endpoint
    listen_address: str = ":9205"

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or standard
    log_file: Optional[str] = None

    def __post_init__(self):
        """Apply environment overrides and resolve password files."""
        self.server = os.getenv("NEXTCLOUD_SERVER", self.server)
        self.username = os.getenv("NEXTCLOUD_USERNAME", self.username)
        self.password = os.getenv("NEXTCLOUD_PASSWORD", self.password)
        self.auth_token = os.getenv("NEXTCLOUD_AUTH_TOKEN", self.auth_token)
        timeout = os.getenv("NEXTCLOUD_TIMEOUT")
        self.timeout = parse_duration(timeout) if timeout is not None else float(self.timeout)
        self.tls_skip_verify = _env_bool("NEXTCLOUD_TLS_SKIP_VERIFY", self.tls_skip_verify)
        self.info_apps = _env_bool("NEXTCLOUD_INFO_APPS", self.info_apps)
        self.info_update = _env_bool("NEXTCLOUD_INFO_UPDATE", self.info_update)
        self.listen_address = os.getenv("NEXTCLOUD_LISTEN_ADDRESS", self.listen_address)
        self.log_level = os.getenv("LOG_LEVEL", self.log_level)
        self.log_format = os.getenv("LOG_FORMAT", self.log_format)
        self.log_file = os.getenv("LOG_FILE", self.log_file)

        self.password = _read_secret(self.password, "password")
        self.auth_token = _read_secret(self.auth_token, "auth token")

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ExporterConfig':
        """Create config from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary with secrets redacted."""
        return {
            'server': self.server,
            'username': self.username,
            'password': '***' if self.password else '',
            'auth_token': '***' if self.auth_token else '',
            'timeout': self.timeout,
            'tls_skip_verify': self.tls_skip_verify,
            'info_apps': self.info_apps,
            'info_update': self.info_update,
            'listen_address': self.listen_address,
            'log_level': self.log_level,
            'log_format': self.log_format,
            'log_file': self.log_file,
        }

    def validate(self):
        """Check that the configuration is usable.

        Raises:
            ConfigError: server URL or credentials are missing.
        """
        if not self.server:
            raise ConfigError("need to set a server URL")
        if not self.server.startswith(("http://", "https://")):
            raise ConfigError(f"server URL needs to start with http:// or https://: {self.server}")
        if not self.auth_token and not (self.username and self.password):
            raise ConfigError("either an auth token or username and password need to be set")
        if self.timeout <= 0:
            raise ConfigError(f"timeout needs to be positive: {self.timeout}")
        self.listen_host_port()

    @property
    def info_url(self) -> str:
        query = urlencode({
            'format': 'json',
            'skipApps': str(not self.info_apps).lower(),
            'skipUpdate': str(not self.info_update).lower(),
        })
        return f"{self.server.rstrip('/')}{INFO_PATH}?{query}"

    @property
    def user_agent(self) -> str:
        return f"nextcloud-exporter/{VERSION}"

    def listen_host_port(self) -> Tuple[str, int]:
        """Split ``host:port`` (host may be empty) into its parts."""
        host, sep, port = self.listen_address.rpartition(":")
        if not sep:
            raise ConfigError(f"listen address needs a port: {self.listen_address}")
        try:
            return host.strip("[]"), int(port)
        except ValueError:
            raise ConfigError(f"invalid listen port: {self.listen_address}") from None
