"""
Nextcloud Exporter

Polls the serverinfo endpoint of a Nextcloud instance and exposes
its contents as Prometheus metrics:
- HTTP client with basic or token authentication
- Collector mapping server info to gauges, with scrape health metrics
- Configuration through environment variables
- Structured logging with JSON formatting
"""

from .config import ExporterConfig, VERSION
from .exceptions import (
    ExporterError,
    ConfigError,
    TransportError,
    AuthorizationError,
    RateLimitError,
    UnexpectedStatusError,
    ParseError,
    MappingError,
)
from .logger import ExporterLogger, get_logger, setup_logging
from .serverinfo import ServerInfo, parse_json
from .client import InfoClient
from .collector import NextcloudCollector, MetricDescriptor, register_collector
from .exporter import NextcloudExporter

__version__ = VERSION
__all__ = [
    "ExporterConfig",
    "ExporterError",
    "ConfigError",
    "TransportError",
    "AuthorizationError",
    "RateLimitError",
    "UnexpectedStatusError",
    "ParseError",
    "MappingError",
    "ExporterLogger",
    "get_logger",
    "setup_logging",
    "ServerInfo",
    "parse_json",
    "InfoClient",
    "NextcloudCollector",
    "MetricDescriptor",
    "register_collector",
    "NextcloudExporter",
]
