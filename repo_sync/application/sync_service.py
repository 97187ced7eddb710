"""Application service reconciling GitHub repositories with the backend store."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from repo_sync.application.aggregator import RepositoryAggregator
from repo_sync.application.batching import run_in_batches
from repo_sync.domain.repository import RemoteRepository
from repo_sync.infrastructure.backend_client import BackendClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncSummary:
    """Counts reported at the end of a completed sync."""

    processed: int
    created: int
    updated: int
    failed: int = 0


class SyncService:
    """Service for upserting a user's GitHub repositories into the backend."""

    BATCH_SIZE = 5

    def __init__(
        self,
        aggregator: RepositoryAggregator,
        backend_client: BackendClient,
        batch_size: int = BATCH_SIZE
    ):
        """
        Initialize sync service.

        Args:
            aggregator: Source of complete GitHub repositories
            backend_client: Backend storage API client
            batch_size: Maximum concurrent create or update calls
        """
        self.aggregator = aggregator
        self.backend_client = backend_client
        self.batch_size = batch_size

    @staticmethod
    def partition(
        repos: List[RemoteRepository],
        stored_ids: Dict[str, int]
    ) -> Tuple[List[RemoteRepository], List[Tuple[int, RemoteRepository]]]:
        """
        Split fetched repositories into new ones and existing ones.

        Args:
            repos: Repositories fetched in this sync
            stored_ids: Backend id by full name

        Returns:
            Tuple of (new repositories, (backend id, repository) pairs)
        """
        new_repos: List[RemoteRepository] = []
        existing: List[Tuple[int, RemoteRepository]] = []
        seen = set()

        for repo in repos:
            if repo.full_name in seen:
                logger.warning(f"Skipping duplicate repository {repo.full_name}")
                continue
            seen.add(repo.full_name)

            backend_id = stored_ids.get(repo.full_name)
            if backend_id is None:
                new_repos.append(repo)
            else:
                existing.append((backend_id, repo))

        return new_repos, existing

    def _create(self, repo: RemoteRepository) -> bool:
        try:
            self.backend_client.create_repository(repo)
            logger.info(f"Created repository {repo.full_name}")
            return True
        except Exception as e:
            logger.error(f"Error creating repository {repo.full_name}: {e}")
            return False

    def _update(self, item: Tuple[int, RemoteRepository]) -> bool:
        backend_id, repo = item
        try:
            self.backend_client.update_repository(backend_id, repo)
            logger.info(f"Updated repository {repo.full_name} (id {backend_id})")
            return True
        except Exception as e:
            logger.error(f"Error updating repository {repo.full_name} (id {backend_id}): {e}")
            return False

    def run(self, username: str) -> Optional[SyncSummary]:
        """
        Fetch repositories of a user and create or update them in the backend.

        Failures of single writes are logged and skipped. Any other failure
        aborts the sync; it is logged and None is returned.

        Args:
            username: GitHub account name

        Returns:
            Summary of the sync, or None if it was aborted
        """
        logger.info(f"Starting repository sync for {username}")

        try:
            stored = self.backend_client.list_repositories()
            stored_ids = {repo.full_name: repo.id for repo in stored}

            repos = self.aggregator.aggregate(username)
            new_repos, existing = self.partition(repos, stored_ids)

            created = run_in_batches(new_repos, self._create, self.batch_size, label="create")
            updated = run_in_batches(existing, self._update, self.batch_size, label="update")
        except Exception as e:
            logger.error(f"Repository sync for {username} failed: {e}", exc_info=True)
            return None

        summary = SyncSummary(
            processed=len(new_repos) + len(existing),
            created=len(new_repos),
            updated=len(existing),
            failed=created.count(False) + updated.count(False),
        )
        logger.info(
            f"Sync completed: {summary.processed} processed, {summary.created} new, "
            f"{summary.updated} updated, {summary.failed} failed"
        )
        return summary
