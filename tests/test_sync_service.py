"""Tests for reconciliation of fetched repositories against the backend."""

import logging
import threading

from conftest import FakeSession, encode_readme, make_response, rate_limit_headers
from repo_sync.application.aggregator import RepositoryAggregator
from repo_sync.application.sync_service import SyncService, SyncSummary
from repo_sync.domain.repository import RemoteRepository, StoredRepository
from repo_sync.infrastructure.backend_client import BackendClient
from repo_sync.infrastructure.cache import ResponseCache
from repo_sync.infrastructure.github_client import GitHubRestClient, RateLimitExceeded


def remote(name, repo_id=1):
    return RemoteRepository(
        id=repo_id,
        name=name,
        full_name=f"octocat/{name}",
        html_url=f"https://github.com/octocat/{name}",
        readme=f"# {name}",
    )


def stored(name, backend_id):
    return StoredRepository(
        id=backend_id,
        full_name=f"octocat/{name}",
        name=name,
        html_url=f"https://github.com/octocat/{name}",
    )


class FakeAggregator:
    def __init__(self, repos=None, error=None):
        self.repos = repos or []
        self.error = error
        self.calls = []

    def aggregate(self, username):
        self.calls.append(username)
        if self.error:
            raise self.error
        return list(self.repos)


class FakeBackend:
    def __init__(self, stored=None, list_error=None, failing=()):
        self.stored = stored or []
        self.list_error = list_error
        self.failing = set(failing)
        self.created = []
        self.updated = []
        self._lock = threading.Lock()

    def list_repositories(self):
        if self.list_error:
            raise self.list_error
        return list(self.stored)

    def create_repository(self, repo):
        if repo.full_name in self.failing:
            raise RuntimeError("backend rejected")
        with self._lock:
            self.created.append(repo)
        return {}

    def update_repository(self, backend_id, repo):
        if repo.full_name in self.failing:
            raise RuntimeError("backend rejected")
        with self._lock:
            self.updated.append((backend_id, repo))
        return {}


def test_creates_new_and_updates_existing_by_full_name():
    backend = FakeBackend(stored=[stored("a", 10), stored("b", 20)])
    aggregator = FakeAggregator([remote("a", 1), remote("c", 3)])

    summary = SyncService(aggregator, backend).run("octocat")

    assert [r.full_name for r in backend.created] == ["octocat/c"]
    assert [(i, r.full_name) for i, r in backend.updated] == [(10, "octocat/a")]
    assert summary == SyncSummary(processed=2, created=1, updated=1, failed=0)


def test_partition_collapses_duplicate_full_names():
    new_repos, existing = SyncService.partition(
        [remote("a"), remote("a"), remote("b")],
        {"octocat/b": 20}
    )

    assert [r.full_name for r in new_repos] == ["octocat/a"]
    assert [(i, r.full_name) for i, r in existing] == [(20, "octocat/b")]


def test_single_write_failure_does_not_abort(caplog):
    names = [f"r{i}" for i in range(7)]
    backend = FakeBackend(failing={"octocat/r2"})
    aggregator = FakeAggregator([remote(n) for n in names])

    with caplog.at_level(logging.INFO):
        summary = SyncService(aggregator, backend).run("octocat")

    assert len(backend.created) == 6
    assert summary.failed == 1
    assert "Error creating repository octocat/r2" in caplog.text
    assert "7 processed, 7 new, 0 updated" in caplog.text


def test_backend_list_failure_aborts_run(caplog):
    backend = FakeBackend(list_error=RuntimeError("backend down"))
    aggregator = FakeAggregator([remote("a")])

    with caplog.at_level(logging.ERROR):
        summary = SyncService(aggregator, backend).run("octocat")

    assert summary is None
    assert aggregator.calls == []
    assert "backend down" in caplog.text


def test_aggregate_failure_aborts_without_writes():
    backend = FakeBackend()
    aggregator = FakeAggregator(error=RateLimitExceeded("2023-11-14T22:13:20.000Z"))

    assert SyncService(aggregator, backend).run("octocat") is None
    assert backend.created == []
    assert backend.updated == []


def test_end_to_end_creates_every_repository_for_empty_backend(caplog):
    github_repos = [
        {
            "id": 1,
            "name": "alpha",
            "full_name": "octocat/alpha",
            "html_url": "https://github.com/octocat/alpha",
            "description": "First",
            "language": "Python",
        },
        {
            "id": 2,
            "name": "beta",
            "full_name": "octocat/beta",
            "html_url": "https://github.com/octocat/beta",
            "description": None,
            "language": None,
        },
    ]

    def github_handler(method, url, kwargs):
        headers = rate_limit_headers()
        if url.endswith("/users/octocat/repos"):
            return make_response(200, github_repos, headers, url=url)
        if url.endswith("/topics"):
            return make_response(200, {"names": ["demo"]}, headers, url=url)
        if url.endswith("/octocat/alpha/readme"):
            return make_response(200, {"content": encode_readme("# Alpha")}, headers, url=url)
        return make_response(404, {"message": "Not Found"}, headers, url=url)

    def backend_handler(method, url, kwargs):
        if method == "GET":
            return make_response(200, [], url=url)
        return make_response(201, kwargs["json"], url=url)

    github_session = FakeSession(github_handler)
    backend_session = FakeSession(backend_handler)
    github_client = GitHubRestClient(
        "test-token",
        ResponseCache(),
        session=github_session,
        sleep=lambda seconds: None
    )
    service = SyncService(
        RepositoryAggregator(github_client),
        BackendClient("http://backend.local", session=backend_session)
    )

    with caplog.at_level(logging.INFO):
        summary = service.run("octocat")

    posts = [kwargs["json"] for method, url, kwargs in backend_session.calls if method == "POST"]
    assert sorted(p["fullName"] for p in posts) == ["octocat/alpha", "octocat/beta"]
    assert not [c for c in backend_session.calls if c[0] == "PUT"]

    by_name = {p["fullName"]: p for p in posts}
    assert by_name["octocat/alpha"]["readme"] == "# Alpha"
    assert by_name["octocat/beta"]["readme"] == "# Hello, *World*!"
    assert by_name["octocat/beta"]["topics"] == ["demo"]

    assert summary == SyncSummary(processed=2, created=2, updated=0, failed=0)
    assert "2 processed, 2 new, 0 updated" in caplog.text
