"""Example entry point — ships sample logs to Loki at every severity."""

import dataclasses
import logging
import os
import random
import signal
import threading

from loki_shipper.client import LokiClient
from loki_shipper.config import load_config
from loki_shipper.levels import LogLevel

SAMPLE_MESSAGES = [
    "User logged in",
    "Request processed successfully",
    "Database query completed",
    "Cache miss for key",
    "Configuration reloaded",
    "Health check passed",
    "Connection timeout to upstream",
    "Disk usage above threshold",
    "Authentication failed for user",
    "Service restarted",
]


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_config()
    if not config.labels:
        config = dataclasses.replace(config, labels={"service_name": "loki-shipper-demo"})
    logs_per_second = int(os.environ.get("LOGS_PER_SECOND", "20"))
    run_time = int(os.environ.get("RUN_TIME", "15"))
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    client = LokiClient(config)
    client.start()
    try:
        for _ in range(run_time):
            if shutdown_event.is_set():
                break
            for i in range(logs_per_second):
                # DEBUG entries are filtered out under the default min_level.
                level = random.choice(list(LogLevel))
                client.submit(f"{random.choice(SAMPLE_MESSAGES)} #{i}", level)
            shutdown_event.wait(timeout=1.0)
    finally:
        client.stop()

    logger.info("Final metrics: %s", client.metrics.snapshot())


if __name__ == "__main__":
    main()
