"""
Wires the configuration, the serverinfo client and the collector together
and serves them over HTTP.
"""
from typing import Optional

from prometheus_client import CollectorRegistry, start_http_server

from .client import InfoClient
from .collector import InfoFetcher, NextcloudCollector, register_collector
from .config import ExporterConfig
from .logger import setup_logging


class NextcloudExporter:
    """Prometheus exporter for a single Nextcloud instance."""

    def __init__(self, config: ExporterConfig, registry: Optional[CollectorRegistry] = None,
                 info_client: Optional[InfoFetcher] = None):
        self.config = config
        self.registry = registry or CollectorRegistry()
        self._server = None
        self._server_thread = None

        self.exporter_logger = setup_logging(config)
        self.logger = self.exporter_logger.get_logger("exporter")

        self.info_client = info_client or InfoClient(
            config.info_url,
            username=config.username,
            password=config.password,
            auth_token=config.auth_token,
            timeout=config.timeout,
            user_agent=config.user_agent,
            tls_skip_verify=config.tls_skip_verify,
        )
        self.collector: NextcloudCollector = register_collector(
            self.info_client,
            registry=self.registry,
            logger=self.exporter_logger.get_logger("collector"),
        )

    def start_metrics_server(self):
        """Start the Prometheus metrics server in a background thread."""
        if self._server is not None:
            return
        host, port = self.config.listen_host_port()
        self.exporter_logger.log_startup(self.config.listen_address)
        self._server, self._server_thread = start_http_server(
            port, addr=host or "0.0.0.0", registry=self.registry)
        self.logger.info("Metrics server started", port=port, address=host or "0.0.0.0")

    def shutdown(self):
        """Stop the metrics server and release the HTTP session."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        close = getattr(self.info_client, "close", None)
        if close is not None:
            close()
        self.logger.info("Exporter stopped")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
