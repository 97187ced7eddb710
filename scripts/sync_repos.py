#!/usr/bin/env python3
"""Script to keep the backend in sync with a user's public GitHub repositories."""

import logging
import signal
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from repo_sync.config import ConfigurationError, Settings
from repo_sync.infrastructure.cache import ResponseCache
from repo_sync.infrastructure.github_client import GitHubRestClient
from repo_sync.infrastructure.backend_client import BackendClient
from repo_sync.application.aggregator import RepositoryAggregator
from repo_sync.application.sync_service import SyncService
from repo_sync.application.scheduler import SyncScheduler

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Sync repositories on a fixed interval until interrupted."""
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.getLogger().setLevel(settings.log_level)

    # Initialize clients
    cache = ResponseCache(ttl_seconds=settings.cache_ttl_seconds)
    github_client = GitHubRestClient(
        token=settings.github_token,
        cache=cache,
        base_url=settings.github_api_url
    )
    backend_client = BackendClient(settings.backend_api_url)

    aggregator = RepositoryAggregator(github_client, batch_size=settings.batch_size)
    sync_service = SyncService(aggregator, backend_client, batch_size=settings.batch_size)
    scheduler = SyncScheduler(
        sync_service,
        username=settings.github_username,
        interval_seconds=settings.sync_interval_seconds
    )

    def _handle_signal(_signum, _frame):
        logger.warning("Signal received; stopping after the current tick...")
        scheduler.request_stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    logger.info(f"Backend: {settings.backend_api_url}")
    return scheduler.run_forever()


if __name__ == "__main__":
    sys.exit(main())
