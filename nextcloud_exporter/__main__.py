"""
Run the exporter: ``python -m nextcloud_exporter``.

All settings are read from the environment, see :class:`ExporterConfig`.
"""
import sys
import time

from .config import ExporterConfig
from .exceptions import ConfigError
from .exporter import NextcloudExporter


def main() -> int:
    try:
        config = ExporterConfig()
        config.validate()
    except ConfigError as e:
        print(f"Error in configuration: {e}", file=sys.stderr)
        return 1

    with NextcloudExporter(config) as exporter:
        exporter.start_metrics_server()
        try:
            while True:
                time.sleep(3600)
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
