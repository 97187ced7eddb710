"""Domain entities for synchronized GitHub repositories."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteRepository:
    """Immutable repository entity as returned by the GitHub API."""

    id: int
    name: str
    full_name: str
    html_url: str
    description: Optional[str] = None
    language: Optional[str] = None
    topics: Tuple[str, ...] = field(default_factory=tuple)
    readme: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RemoteRepository":
        """Build an entity from one item of the /users/{username}/repos response."""
        return cls(
            id=data["id"],
            name=data["name"],
            full_name=data["full_name"],
            html_url=data["html_url"],
            description=data.get("description"),
            language=data.get("language"),
            topics=tuple(data.get("topics") or ()),
        )

    def with_details(self, topics: List[str], readme: str) -> "RemoteRepository":
        """Return a copy with topics and README populated."""
        return replace(self, topics=tuple(topics), readme=readme)

    def to_payload(self) -> Dict[str, Any]:
        """
        Translate to the backend's camelCase body.

        The source id is passed through as-is.
        """
        return {
            "id": self.id,
            "fullName": self.full_name,
            "name": self.name,
            "htmlUrl": self.html_url,
            "description": self.description,
            "language": self.language,
            "topics": list(self.topics),
            "readme": self.readme,
        }


@dataclass(frozen=True)
class StoredRepository:
    """Repository record as held by the backend storage API."""

    id: int
    full_name: str
    name: str
    html_url: str
    description: Optional[str] = None
    language: Optional[str] = None
    topics: Tuple[str, ...] = field(default_factory=tuple)
    readme: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "StoredRepository":
        return cls(
            id=data["id"],
            full_name=data["fullName"],
            name=data.get("name", ""),
            html_url=data.get("htmlUrl", ""),
            description=data.get("description"),
            language=data.get("language"),
            topics=tuple(data.get("topics") or ()),
            readme=data.get("readme") or "",
        )


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate limit state parsed from GitHub response headers."""

    limit: int
    remaining: int
    reset: int  # epoch milliseconds

    @classmethod
    def from_headers(cls, headers) -> "RateLimitInfo":
        """Parse X-RateLimit-* headers; absent values default to 0."""
        return cls(
            limit=int(headers.get("X-RateLimit-Limit", 0) or 0),
            remaining=int(headers.get("X-RateLimit-Remaining", 0) or 0),
            reset=int(headers.get("X-RateLimit-Reset", 0) or 0) * 1000,
        )


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a best-effort fetch: the value, and whether it is a fallback."""

    value: T
    fell_back: bool = False

    @classmethod
    def ok(cls, value: T) -> "FetchResult[T]":
        return cls(value=value, fell_back=False)

    @classmethod
    def fallback(cls, value: T) -> "FetchResult[T]":
        return cls(value=value, fell_back=True)
