"""Shared pytest configuration and fixtures."""

import copy
import json
import os
from unittest.mock import Mock

import pytest

from nextcloud_exporter.serverinfo import from_dict


SERVER_INFO_DOCUMENT = {
    "ocs": {
        "meta": {"status": "ok", "statuscode": 200, "message": "OK"},
        "data": {
            "nextcloud": {
                "system": {
                    "version": "27.1.3.2",
                    "freespace": 10000000000,
                    "apps": {
                        "num_installed": 52,
                        "num_updates_available": 3,
                        "app_updates": {},
                    },
                },
                "storage": {
                    "num_users": 120,
                    "num_files": 58930,
                    "num_storages": 130,
                },
                "shares": {
                    "num_shares": 20,
                    "num_shares_user": 5,
                    "num_shares_groups": 2,
                    "num_shares_link": 10,
                    "num_shares_link_no_password": 3,
                    "num_fed_shares_sent": 1,
                    "num_fed_shares_received": 0,
                },
            },
            "server": {
                "webserver": "Apache",
                "php": {
                    "version": "8.2.12",
                    "memory_limit": 536870912,
                    "max_execution_time": 3600,
                    "upload_max_filesize": 536870912,
                    "opcache": {
                        "opcache_enabled": True,
                        "opcache_statistics": {
                            "num_cached_scripts": 1450,
                            "num_cached_keys": 2510,
                            "hits": 934512,
                            "misses": 1620,
                        },
                    },
                    "apcu": {
                        "cache": {
                            "num_hits": 40210,
                            "num_misses": 310,
                            "num_inserts": 412,
                            "num_entries": 198,
                        },
                    },
                },
                "database": {
                    "type": "pgsql",
                    "version": "15.4",
                    "size": "53149864",
                },
            },
            "activeUsers": {
                "last5minutes": 4,
                "last1hour": 11,
                "last24hours": 37,
            },
        },
    },
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep exporter settings from the host environment out of tests."""
    for name in list(os.environ):
        if name.startswith("NEXTCLOUD_") or name in ("LOG_LEVEL", "LOG_FORMAT", "LOG_FILE"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def server_info_document():
    """Realistic serverinfo document, safe to modify per test."""
    return copy.deepcopy(SERVER_INFO_DOCUMENT)


@pytest.fixture
def server_info_body(server_info_document):
    return json.dumps(server_info_document).encode("utf-8")


@pytest.fixture
def server_info(server_info_document):
    return from_dict(server_info_document)


@pytest.fixture
def logger():
    """Stand-in for a structlog bound logger."""
    return Mock()


def sample_values(metrics):
    """Flatten metric families into {(sample name, labels): value}."""
    values = {}
    for metric in metrics:
        for sample in metric.samples:
            values[(sample.name, tuple(sorted(sample.labels.items())))] = sample.value
    return values


@pytest.fixture
def collect_samples():
    """Run a collector once and return its samples keyed by name and labels."""
    def _collect(collector):
        return sample_values(collector.collect())
    return _collect
