import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from pagescraper.errors import InvalidRequest, ScrapeError


class ScrapeMode(str, Enum):
    POSTS = "posts"
    COMMENTS = "comments"


@dataclass(frozen=True)
class Post:
    """One post as rendered on a page (unified schema for every backend)."""

    id: str
    content: str = ""
    date: str = ""                    # as rendered, never parsed
    source_url: Optional[str] = None  # permalink of the post when found
    likes: int = 0
    comment_count: int = 0
    shares: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "date": self.date,
            "postUrl": self.source_url,
            "likes": self.likes,
            "comments": self.comment_count,
            "shares": self.shares,
        }


@dataclass(frozen=True)
class Comment:
    """One comment below the post identified by ``post_id``."""

    id: str
    post_id: str
    author: str = "Unknown"
    author_id: Optional[str] = None
    content: str = ""
    date: str = ""
    likes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "postId": self.post_id,
            "author": self.author,
            "authorId": self.author_id,
            "content": self.content,
            "date": self.date,
            "likes": self.likes,
        }


Record = Union[Post, Comment]


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class ScrapeRequest:
    target_url: str
    mode: ScrapeMode = ScrapeMode.POSTS
    post_id: Optional[str] = None
    limit: Optional[int] = None
    credentials: Optional[Credentials] = None
    timeout: Optional[float] = None  # seconds; the whole request must finish within it

    def validate(self) -> "ScrapeRequest":
        if not self.target_url or not isinstance(self.target_url, str):
            raise InvalidRequest("Page URL is required")
        parsed = urlparse(self.target_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidRequest("Page URL must be an absolute http(s) URL", details=self.target_url)
        if self.mode == ScrapeMode.COMMENTS and not self.post_id:
            raise InvalidRequest("postId is required when scraping comments")
        if self.limit is not None and (isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1):
            raise InvalidRequest("limit must be a positive integer")
        if self.timeout is not None and (not math.isfinite(self.timeout) or self.timeout <= 0):
            raise InvalidRequest("timeout must be a positive number of seconds")
        if self.credentials and not (self.credentials.email and self.credentials.password):
            raise InvalidRequest("credentials need both email and password")
        return self

    def effective_limit(self, default: int, maximum: int) -> int:
        return min(self.limit or default, maximum)

    def effective_timeout(self, default: float, maximum: float) -> float:
        return min(self.timeout or default, maximum)

    @classmethod
    def from_payload(cls, payload: Any) -> "ScrapeRequest":
        """Build a request from the JSON body accepted by the HTTP endpoint.

        Mode is inferred from ``postId`` unless ``mode`` is given explicitly.
        Raises InvalidRequest for anything malformed.
        """
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")

        url = payload.get("url")
        if url is not None and not isinstance(url, str):
            raise InvalidRequest("url must be a string")

        post_id = payload.get("postId")
        if post_id is not None:
            post_id = str(post_id)

        raw_mode = payload.get("mode")
        if raw_mode is None:
            mode = ScrapeMode.COMMENTS if post_id else ScrapeMode.POSTS
        else:
            try:
                mode = ScrapeMode(raw_mode)
            except ValueError:
                raise InvalidRequest("mode must be 'posts' or 'comments'", details=str(raw_mode))

        credentials = None
        raw_creds = payload.get("credentials")
        if raw_creds is not None:
            if not isinstance(raw_creds, dict):
                raise InvalidRequest("credentials must be an object")
            credentials = Credentials(
                email=str(raw_creds.get("email") or ""),
                password=str(raw_creds.get("password") or ""),
            )

        timeout = payload.get("timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
            raise InvalidRequest("timeout must be a number of seconds")

        return cls(
            target_url=url or "",
            mode=mode,
            post_id=post_id,
            limit=payload.get("limit"),
            credentials=credentials,
            timeout=timeout,
        ).validate()


@dataclass
class ScrapeResult:
    """Envelope returned by every backend, successful or not."""

    success: bool
    records: List[Record] = field(default_factory=list)
    mode: ScrapeMode = ScrapeMode.POSTS
    target_url: Optional[str] = None
    error: Optional[ScrapeError] = None

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def status_code(self) -> int:
        return 200 if self.success else self.error.status_code

    @classmethod
    def ok(cls, records: List[Record], request: ScrapeRequest) -> "ScrapeResult":
        return cls(success=True, records=list(records), mode=request.mode, target_url=request.target_url)

    @classmethod
    def failed(cls, error: ScrapeError, request: Optional[ScrapeRequest] = None) -> "ScrapeResult":
        return cls(
            success=False,
            mode=request.mode if request else ScrapeMode.POSTS,
            target_url=request.target_url if request else None,
            error=error,
        )

    def to_response(self) -> Dict[str, Any]:
        if not self.success:
            body: Dict[str, Any] = {"success": False, "error": self.error.message}
            if self.error.details:
                body["details"] = self.error.details
            return body

        body = {
            "success": True,
            "data": [r.to_dict() for r in self.records],
            "count": self.count,
        }
        url_key = "postUrl" if self.mode == ScrapeMode.COMMENTS else "pageUrl"
        body[url_key] = self.target_url
        return body
