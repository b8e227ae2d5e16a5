"""
Prometheus collector exposing Nextcloud server info.

Every scrape of the registry calls :meth:`NextcloudCollector.collect`, which
fetches the serverinfo document once and turns it into gauges. A failed
scrape never raises; it shows up as ``nextcloud_up 0`` and an increment of
``nextcloud_scrape_errors_total``.
"""
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from prometheus_client import REGISTRY, CollectorRegistry, Gauge
from prometheus_client.metrics_core import CounterMetricFamily, GaugeMetricFamily, Metric

from .exceptions import AuthorizationError, MappingError
from .logger import get_logger
from .serverinfo import ServerInfo, Shares

METRIC_PREFIX = "nextcloud_"

LABEL_ERROR_CAUSE_OTHER = "other"
LABEL_ERROR_CAUSE_AUTH = "auth"

InfoFetcher = Callable[[], ServerInfo]


@dataclass(frozen=True)
class MetricDescriptor:
    """Static description of one exposed gauge."""
    name: str
    documentation: str
    labels: Tuple[str, ...] = ()

    def describe(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.name, self.documentation, labels=list(self.labels))

    def new_metric(self, samples: Iterable[Tuple[Sequence[str], float]]) -> GaugeMetricFamily:
        """Build a gauge family holding the given (label values, value) samples.

        Raises:
            MappingError: label count does not match or a value is not numeric.
        """
        family = self.describe()
        for label_values, value in samples:
            if len(label_values) != len(self.labels):
                raise MappingError(
                    f"error creating metric for {self.name}: expected {len(self.labels)} "
                    f"label values {list(self.labels)}, got {len(label_values)}"
                )
            try:
                number = float(value)
            except (TypeError, ValueError) as e:
                raise MappingError(f"error creating metric for {self.name}: {e}") from e
            family.add_metric([str(v) for v in label_values], number)
        return family

    def new_const_metric(self, value: float, *label_values: str) -> GaugeMetricFamily:
        return self.new_metric([(label_values, value)])


class NextcloudCollector:
    """Custom collector for the prometheus_client registry."""

    def __init__(self, info_client: InfoFetcher, logger=None):
        self.info_client = info_client
        self.logger = logger or get_logger("collector")

        # Not registered on their own; exposed through collect()
        self.up_metric = Gauge(
            METRIC_PREFIX + "up",
            "Indicates if the metrics could be scraped by the exporter.",
            registry=None,
        )
        # Plain counts instead of a Counter, which would add a _created series
        self._scrape_errors_lock = threading.Lock()
        self._scrape_errors = {LABEL_ERROR_CAUSE_AUTH: 0, LABEL_ERROR_CAUSE_OTHER: 0}

        self._setup_descriptors()

    def _setup_descriptors(self):
        """Create the descriptors of all Nextcloud metrics."""
        self.system_info_desc = MetricDescriptor(
            METRIC_PREFIX + "system_info",
            "Contains meta information about Nextcloud as labels. Value is always 1.",
            ("version",))
        self.apps_installed_desc = MetricDescriptor(
            METRIC_PREFIX + "apps_installed_total",
            "Number of currently installed apps")
        self.apps_updates_desc = MetricDescriptor(
            METRIC_PREFIX + "apps_updates_available_total",
            "Number of apps that have available updates")
        self.users_desc = MetricDescriptor(
            METRIC_PREFIX + "users_total",
            "Number of users of the instance.")
        self.files_desc = MetricDescriptor(
            METRIC_PREFIX + "files_total",
            "Number of files served by the instance.")
        self.free_space_desc = MetricDescriptor(
            METRIC_PREFIX + "free_space_bytes",
            "Free disk space in data directory in bytes.")
        self.shares_desc = MetricDescriptor(
            METRIC_PREFIX + "shares_total",
            "Number of shares by type.",
            ("type",))
        self.federations_desc = MetricDescriptor(
            METRIC_PREFIX + "shares_federated_total",
            "Number of federated shares by direction.",
            ("direction",))
        self.active_users_desc = MetricDescriptor(
            METRIC_PREFIX + "active_users_total",
            "Number of active users for the last five minutes.")
        self.php_info_desc = MetricDescriptor(
            METRIC_PREFIX + "php_info",
            "Contains meta information about PHP as labels. Value is always 1.",
            ("version",))
        self.php_memory_limit_desc = MetricDescriptor(
            METRIC_PREFIX + "php_memory_limit_bytes",
            "Configured PHP memory limit in bytes.")
        self.php_max_upload_size_desc = MetricDescriptor(
            METRIC_PREFIX + "php_upload_max_size_bytes",
            "Configured maximum upload size in bytes.")

        self.php_opcache_hits_desc = MetricDescriptor(
            METRIC_PREFIX + "php_opcache_hits_total",
            "Number of hits to scripts cached in OpCache.")
        self.php_opcache_misses_desc = MetricDescriptor(
            METRIC_PREFIX + "php_opcache_misses_total",
            "Number of misses in OpCache.")
        self.php_opcache_scripts_desc = MetricDescriptor(
            METRIC_PREFIX + "php_opcache_scripts_total",
            "Number of scripts cached in OpCache.")
        self.php_opcache_keys_desc = MetricDescriptor(
            METRIC_PREFIX + "php_opcache_keys_total",
            "Number of keys in OpCache.")

        self.php_apcu_hits_desc = MetricDescriptor(
            METRIC_PREFIX + "php_apcu_hits_total",
            "Number of hits in APCu cache.")
        self.php_apcu_misses_desc = MetricDescriptor(
            METRIC_PREFIX + "php_apcu_misses_total",
            "Number of misses in APCu cache.")
        self.php_apcu_inserts_desc = MetricDescriptor(
            METRIC_PREFIX + "php_apcu_inserts_total",
            "Number of inserts into APCu cache.")
        self.php_apcu_entries_desc = MetricDescriptor(
            METRIC_PREFIX + "php_apcu_keys_total",
            "Number of entries cached in APCu.")

        self.database_size_desc = MetricDescriptor(
            METRIC_PREFIX + "database_size_bytes",
            "Size of database in bytes as reported from engine.",
            ("version", "type"))

        self.descriptors: Tuple[MetricDescriptor, ...] = (
            self.system_info_desc,
            self.apps_installed_desc,
            self.apps_updates_desc,
            self.users_desc,
            self.files_desc,
            self.free_space_desc,
            self.shares_desc,
            self.federations_desc,
            self.active_users_desc,
            self.php_info_desc,
            self.php_memory_limit_desc,
            self.php_max_upload_size_desc,
            self.php_opcache_hits_desc,
            self.php_opcache_misses_desc,
            self.php_opcache_scripts_desc,
            self.php_opcache_keys_desc,
            self.php_apcu_hits_desc,
            self.php_apcu_misses_desc,
            self.php_apcu_inserts_desc,
            self.php_apcu_entries_desc,
            self.database_size_desc,
        )

    def describe(self) -> List[Metric]:
        """Return all metric families without touching the network."""
        metrics = list(self.up_metric.describe())
        metrics.append(self._scrape_errors_family())
        metrics.extend(desc.describe() for desc in self.descriptors)
        return metrics

    def collect(self) -> Iterable[Metric]:
        try:
            families = self._collect_nextcloud()
        except Exception as e:
            cause = LABEL_ERROR_CAUSE_OTHER
            if isinstance(e, AuthorizationError):
                cause = LABEL_ERROR_CAUSE_AUTH

            self.logger.error("Error during scrape",
                              error=str(e),
                              error_type=type(e).__name__,
                              cause=cause)
            with self._scrape_errors_lock:
                self._scrape_errors[cause] += 1
            self.up_metric.set(0)
            families = []
        else:
            self.up_metric.set(1)

        yield from families
        yield from self.up_metric.collect()
        yield self._scrape_errors_family(self._scrape_error_counts())

    def _scrape_error_counts(self) -> Dict[str, int]:
        with self._scrape_errors_lock:
            return dict(self._scrape_errors)

    @staticmethod
    def _scrape_errors_family(counts: Optional[Dict[str, int]] = None) -> CounterMetricFamily:
        family = CounterMetricFamily(
            METRIC_PREFIX + "scrape_errors_total",
            "Counts the number of scrape errors by this collector.",
            labels=["cause"],
        )
        for cause, count in (counts or {}).items():
            family.add_metric([cause], count)
        return family

    def _collect_nextcloud(self) -> List[GaugeMetricFamily]:
        status = self.info_client()
        return self.read_metrics(status)

    def read_metrics(self, status: ServerInfo) -> List[GaugeMetricFamily]:
        """Map a server info snapshot to metric families.

        Every family is built before any is returned, so a single bad
        mapping fails the whole scrape.
        """
        families = self._collect_simple_metrics(status)
        families.append(self._collect_shares(status.data.nextcloud.shares))
        families.append(self._collect_federated_shares(status.data.nextcloud.shares))

        database = status.data.server.database
        families.append(self.database_size_desc.new_const_metric(
            database.size, database.version, database.type))

        families.append(self._collect_info_metric(
            self.system_info_desc, [status.data.nextcloud.system.version]))
        families.append(self._collect_info_metric(
            self.php_info_desc, [status.data.server.php.version]))
        return families

    def _collect_simple_metrics(self, status: ServerInfo) -> List[GaugeMetricFamily]:
        system = status.data.nextcloud.system
        storage = status.data.nextcloud.storage
        php = status.data.server.php
        opcache = php.opcache.stats
        apcu = php.apcu.cache

        metrics = [
            (self.apps_installed_desc, system.apps.installed),
            (self.apps_updates_desc, system.apps.available_updates),
            (self.users_desc, storage.users),
            (self.files_desc, storage.files),
            (self.free_space_desc, system.free_space),
            (self.active_users_desc, status.data.active_users.last_5_minutes),
            (self.php_memory_limit_desc, php.memory_limit),
            (self.php_max_upload_size_desc, php.upload_max_filesize),
            (self.php_opcache_hits_desc, opcache.hits),
            (self.php_opcache_misses_desc, opcache.misses),
            (self.php_opcache_scripts_desc, opcache.cached_scripts),
            (self.php_opcache_keys_desc, opcache.cached_keys),
            (self.php_apcu_hits_desc, apcu.hits),
            (self.php_apcu_misses_desc, apcu.misses),
            (self.php_apcu_inserts_desc, apcu.inserts),
            (self.php_apcu_entries_desc, apcu.entries),
        ]
        return [desc.new_const_metric(value) for desc, value in metrics]

    def _collect_shares(self, shares: Shares) -> GaugeMetricFamily:
        # authlink is not clamped; it goes negative if the server reports
        # more unprotected link shares than link shares
        return self._collect_map(self.shares_desc, {
            "user": shares.shares_user,
            "group": shares.shares_groups,
            "authlink": shares.shares_link - shares.shares_link_no_password,
            "link": shares.shares_link,
        })

    def _collect_federated_shares(self, shares: Shares) -> GaugeMetricFamily:
        return self._collect_map(self.federations_desc, {
            "sent": shares.fed_sent,
            "received": shares.fed_received,
        })

    @staticmethod
    def _collect_map(desc: MetricDescriptor, label_value_map: Dict[str, float]) -> GaugeMetricFamily:
        return desc.new_metric(((label,), value) for label, value in label_value_map.items())

    @staticmethod
    def _collect_info_metric(desc: MetricDescriptor, label_values: Sequence[str]) -> GaugeMetricFamily:
        return desc.new_metric([(label_values, 1)])


def register_collector(info_client: InfoFetcher,
                       registry: Optional[CollectorRegistry] = None,
                       logger=None) -> NextcloudCollector:
    """Create a collector and register it.

    Raises:
        ValueError: a metric name is already registered in ``registry``.
    """
    collector = NextcloudCollector(info_client, logger=logger)
    (registry if registry is not None else REGISTRY).register(collector)
    return collector
