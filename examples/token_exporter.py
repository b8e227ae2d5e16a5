"""
Example: expose a Nextcloud instance authenticated with an app token.
"""
import time

from nextcloud_exporter import ExporterConfig, NextcloudExporter


def run_exporter():
    """Serve metrics on port 9205 until interrupted."""
    config = ExporterConfig(
        server="https://cloud.example.com",
        auth_token="@/run/secrets/nextcloud_token",
        timeout=10,
        log_format="standard",
    )
    config.validate()

    with NextcloudExporter(config) as exporter:
        exporter.start_metrics_server()
        print(f"Scraping {config.info_url}")
        print("Metrics available at http://localhost:9205/metrics")
        try:
            while True:
                time.sleep(60)
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    run_exporter()
