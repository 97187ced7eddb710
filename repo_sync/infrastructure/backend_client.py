"""HTTP client for the backend repository storage API."""

import logging
from typing import Any, Dict, List, Optional
import requests

from repo_sync.domain.repository import RemoteRepository, StoredRepository
from repo_sync.infrastructure.http_session import ThreadLocalSession

logger = logging.getLogger(__name__)


class BackendClient:
    """Client for storing GitHub repository data through the backend REST API."""

    REPOS_ENDPOINT = "/api/github-repos"
    REQUEST_TIMEOUT_SECONDS = 30

    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        """
        Initialize backend client.

        Args:
            base_url: Backend root URL, e.g. http://localhost:3000
            session: HTTP session. Defaults to one session per worker thread.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or ThreadLocalSession()

    def _url(self, suffix: str = "") -> str:
        return f"{self.base_url}{self.REPOS_ENDPOINT}{suffix}"

    def list_repositories(self) -> List[StoredRepository]:
        """Fetch every stored repository."""
        try:
            response = self.session.get(self._url(), timeout=self.REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            repositories = [StoredRepository.from_payload(item) for item in response.json()]
            logger.info(f"Fetched {len(repositories)} stored repositories")
            return repositories
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching stored repositories: {e}")
            raise

    def create_repository(self, repo: RemoteRepository) -> Dict[str, Any]:
        """
        Create a stored repository.

        Args:
            repo: Fully populated repository; its source id is sent as-is

        Returns:
            Backend response body
        """
        response = self.session.post(
            self._url(),
            json=repo.to_payload(),
            timeout=self.REQUEST_TIMEOUT_SECONDS
        )
        response.raise_for_status()
        return response.json() if response.content else {}

    def update_repository(self, backend_id: int, repo: RemoteRepository) -> Dict[str, Any]:
        """
        Update a stored repository addressed by its backend id.

        Args:
            backend_id: Id assigned by the backend
            repo: Fully populated repository

        Returns:
            Backend response body
        """
        response = self.session.put(
            self._url(f"/{backend_id}"),
            json=repo.to_payload(),
            timeout=self.REQUEST_TIMEOUT_SECONDS
        )
        response.raise_for_status()
        return response.json() if response.content else {}
