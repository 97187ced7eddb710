"""Combines the repository list with per-repository topics and README."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

from repo_sync.application.batching import run_in_batches
from repo_sync.domain.repository import RemoteRepository
from repo_sync.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)


class RepositoryAggregator:
    """Builds complete repository records for a GitHub user."""

    BATCH_SIZE = 5

    def __init__(self, github_client: GitHubRestClient, batch_size: int = BATCH_SIZE):
        """
        Initialize aggregator.

        Args:
            github_client: GitHub API client
            batch_size: Repositories enriched concurrently per batch
        """
        self.github_client = github_client
        self.batch_size = batch_size

    def _with_details(self, repo: RemoteRepository) -> Tuple[RemoteRepository, List[str]]:
        # Topics and README of one repository are fetched side by side
        with ThreadPoolExecutor(max_workers=2) as executor:
            topics_future = executor.submit(self.github_client.get_topics, repo.full_name)
            readme_future = executor.submit(self.github_client.get_readme, repo.full_name)
            topics = topics_future.result()
            readme = readme_future.result()

        fallbacks = [kind for kind, result in (("topics", topics), ("readme", readme)) if result.fell_back]
        if fallbacks:
            logger.info(f"Using default {' and '.join(fallbacks)} for {repo.full_name}")
        return repo.with_details(topics.value, readme.value), fallbacks

    def aggregate(self, username: str) -> List[RemoteRepository]:
        """
        Fetch public repositories of a user with topics and README populated.

        Only a failure of the repository list itself is raised; topic and
        README failures fall back to defaults and are counted in the logs.

        Args:
            username: GitHub account name

        Returns:
            Complete repositories in API order
        """
        repos = self.github_client.get_repositories(username)
        logger.info(f"Found {len(repos)} public repositories for {username}")

        detailed = run_in_batches(repos, self._with_details, self.batch_size, label="repository")
        results = [repo for repo, _ in detailed]
        topic_fallbacks = sum("topics" in fallbacks for _, fallbacks in detailed)
        readme_fallbacks = sum("readme" in fallbacks for _, fallbacks in detailed)

        logger.info(
            f"Aggregated {len(results)} repositories "
            f"({topic_fallbacks} default topics, {readme_fallbacks} default READMEs)"
        )
        for repo in results:
            logger.debug(
                f"- {repo.name}: {repo.description or 'No description'} | "
                f"{repo.full_name} | {repo.language} | {', '.join(repo.topics)}"
            )
        return results
