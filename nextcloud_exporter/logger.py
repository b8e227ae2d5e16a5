"""
Structured logging with JSON formatting.
"""
import logging
import os
import structlog
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from .config import ExporterConfig


class ExporterLogger:
    """Structured logger for the exporter."""

    def __init__(self, config: ExporterConfig):
        self.config = config
        self._logger = None
        self._setup_logging()

    def _setup_logging(self):
        """Setup structured logging with JSON formatting."""
        if self.config.log_format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=False)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, self.config.log_level.upper(), logging.INFO)
        )

        if self.config.log_file and not self._has_file_handler(self.config.log_file):
            file_handler = logging.FileHandler(self.config.log_file)
            if self.config.log_format == "json":
                formatter = jsonlogger.JsonFormatter(
                    '%(asctime)s %(name)s %(levelname)s %(message)s'
                )
            else:
                formatter = logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                )
            file_handler.setFormatter(formatter)
            logging.getLogger().addHandler(file_handler)

        self._logger = structlog.get_logger("nextcloud_exporter")

    @staticmethod
    def _has_file_handler(log_file: str) -> bool:
        path = os.path.abspath(log_file)
        return any(isinstance(h, logging.FileHandler) and h.baseFilename == path
                   for h in logging.getLogger().handlers)

    def get_logger(self, name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
        """Get a bound logger with optional component context."""
        if name:
            return self._logger.bind(component=name)
        return self._logger

    def log_startup(self, listen_address: str, **kwargs):
        """Log the exporter configuration at startup."""
        self._logger.info(
            "Starting Nextcloud exporter",
            server=self.config.server,
            listen_address=listen_address,
            auth="token" if self.config.auth_token else "basic",
            tls_skip_verify=self.config.tls_skip_verify,
            **kwargs
        )


# Global convenience function
_default_logger = None


def setup_logging(config: ExporterConfig) -> ExporterLogger:
    """Configure logging from ``config`` and make it the default."""
    global _default_logger
    _default_logger = ExporterLogger(config)
    return _default_logger


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance. If no default logger is configured,
    create one with default configuration.
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = ExporterLogger(ExporterConfig())

    return _default_logger.get_logger(name)
