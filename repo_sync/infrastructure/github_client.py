"""GitHub REST API client with response caching, rate limit tracking and retry logic."""

import base64
import time
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import requests

from repo_sync.domain.repository import FetchResult, RateLimitInfo, RemoteRepository
from repo_sync.infrastructure.http_session import ThreadLocalSession
from repo_sync.infrastructure.cache import ResponseCache

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Base class for GitHub API failures."""
    pass


class GitHubAuthenticationError(GitHubAPIError):
    """Raised when GitHub rejects the configured token."""
    pass


class RateLimitExceeded(GitHubAPIError):
    """Raised when GitHub API rate limit is exhausted."""

    def __init__(self, reset_at: str):
        super().__init__(f"GitHub API rate limit exceeded. Resets at {reset_at}")
        self.reset_at = reset_at


class MaxRetriesExceeded(GitHubAPIError):
    """Raised when a request keeps failing after every retry."""
    pass


def format_reset_time(reset_seconds: int) -> str:
    """Render a unix reset timestamp as an ISO-8601 UTC instant with milliseconds."""
    reset_time = datetime.fromtimestamp(reset_seconds, tz=timezone.utc)
    return reset_time.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GitHubRestClient:
    """Client for the GitHub REST API with caching, rate limiting and retry mechanisms."""

    API_BASE_URL = "https://api.github.com"
    ACCEPT_HEADER = "application/vnd.github.mercy-preview+json"
    MAX_RETRIES = 3
    RETRY_DELAY_SECONDS = 1
    RATE_LIMIT_WARNING_THRESHOLD = 100
    REQUEST_TIMEOUT_SECONDS = 30
    DEFAULT_README = "# Hello, *World*!"

    def __init__(
        self,
        token: str,
        cache: ResponseCache,
        base_url: str = API_BASE_URL,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize GitHub REST client.

        Args:
            token: GitHub personal access token
            cache: Response cache shared by every request of this client
            base_url: API root, without trailing slash
            session: HTTP session. Defaults to one session per worker thread.
            sleep: Delay function used between retries
        """
        if not token:
            raise ValueError("A GitHub token is required")

        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.session = session or ThreadLocalSession()
        self._sleep = sleep
        self.headers = {
            "Accept": self.ACCEPT_HEADER,
            "Authorization": f"Bearer {token}",
        }

    def _check_response(self, response: requests.Response):
        """
        Raise on failed responses, then observe rate limit headers.

        Raises:
            GitHubAuthenticationError: On HTTP 401
            RateLimitExceeded: On HTTP 403 with no remaining quota
            requests.HTTPError: On any other non-2xx status
        """
        rate_limit = RateLimitInfo.from_headers(response.headers)

        if response.status_code == 401:
            raise GitHubAuthenticationError(
                "GitHub API authentication failed. Check if your GITHUB_TOKEN is valid."
            )

        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            raise RateLimitExceeded(format_reset_time(rate_limit.reset // 1000))

        response.raise_for_status()

        logger.info(f"Rate limit - Remaining: {rate_limit.remaining}/{rate_limit.limit}")
        if rate_limit.remaining < self.RATE_LIMIT_WARNING_THRESHOLD:
            logger.warning(
                f"GitHub API rate limit is running low. {rate_limit.remaining} requests remaining."
            )

    def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a GET request with caching and retry logic.

        Args:
            url: Absolute endpoint URL
            params: Query parameters

        Returns:
            Parsed JSON body

        Raises:
            GitHubAuthenticationError: If the token is rejected
            RateLimitExceeded: If rate limit is exhausted
            MaxRetriesExceeded: If request fails after retries
        """
        cache_key = self.cache.make_key(url, params)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        last_error: Optional[Exception] = None
        for attempt in range(self.MAX_RETRIES):
            try:
                response = self.session.get(
                    url,
                    headers=self.headers,
                    params=params,
                    timeout=self.REQUEST_TIMEOUT_SECONDS
                )
                self._check_response(response)
                data = response.json()

                self.cache.set(cache_key, data)
                return data

            except (requests.exceptions.RequestException, ValueError) as e:
                last_error = e
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.RETRY_DELAY_SECONDS * (2 ** attempt)  # Exponential backoff
                    logger.warning(
                        f"Request to {url} failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay}s..."
                    )
                    self._sleep(delay)

        raise MaxRetriesExceeded(f"Max retries exceeded for {url}") from last_error

    def get_repositories(self, username: str) -> List[RemoteRepository]:
        """
        Fetch public repositories of a user, without topics or README.

        Args:
            username: GitHub account name

        Returns:
            List of repositories in API order
        """
        url = f"{self.base_url}/users/{username}/repos"
        data = self.fetch(url, {"type": "public"})
        return [RemoteRepository.from_api(item) for item in data]

    def get_topics(self, full_name: str) -> FetchResult[List[str]]:
        """Fetch topics of a repository, falling back to an empty list on any error."""
        try:
            data = self.fetch(f"{self.base_url}/repos/{full_name}/topics")
            return FetchResult.ok(list(data.get("names") or []))
        except Exception as e:
            logger.error(f"Error fetching topics for repository {full_name}: {e}")
            return FetchResult.fallback([])

    def get_readme(self, full_name: str) -> FetchResult[str]:
        """Fetch and decode the README of a repository, falling back to a default on any error."""
        try:
            data = self.fetch(f"{self.base_url}/repos/{full_name}/readme")
            content = base64.b64decode(data["content"]).decode("utf-8")
            return FetchResult.ok(content)
        except Exception as e:
            logger.warning(f"Could not fetch README for repository {full_name}, using default: {e}")
            return FetchResult.fallback(self.DEFAULT_README)
