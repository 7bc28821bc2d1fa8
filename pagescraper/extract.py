import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from pagescraper.adapters.base import SiteAdapter, count_metric, resolve
from pagescraper.errors import ExtractionError
from pagescraper.models import Comment, Post, Record, ScrapeMode
from pagescraper.utils.ids import synthetic_id

log = logging.getLogger(__name__)


def _attr_id(node: Tag, names: Tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = node.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _outermost(containers: List[Tag]) -> List[Tag]:
    """Drops containers nested in another container (comment articles inside a post)."""
    ids = {id(c) for c in containers}
    return [c for c in containers if not any(id(p) in ids for p in c.parents)]


def _build_post(node: Tag, adapter: SiteAdapter, page_url: str) -> Tuple[Post, Optional[str]]:
    fields = adapter.POST_FIELDS
    url = adapter.absolute_url(resolve(node, fields["url"], None), page_url)
    post = Post(
        id=_attr_id(node, adapter.POST_ID_ATTRS) or adapter.natural_id(url) or "",
        content=resolve(node, fields["content"]),
        date=resolve(node, fields["date"]),
        source_url=url,
        likes=count_metric(node, adapter.METRICS["likes"], adapter.METRIC_LABELS, adapter.CONTAINER),
        comment_count=count_metric(node, adapter.METRICS["comments"], adapter.METRIC_LABELS, adapter.CONTAINER),
        shares=count_metric(node, adapter.METRICS["shares"], adapter.METRIC_LABELS, adapter.CONTAINER),
    )
    return post, url


def _build_comment(node: Tag, adapter: SiteAdapter, page_url: str, post_id: str) -> Tuple[Comment, Optional[str]]:
    fields = adapter.COMMENT_FIELDS
    url = adapter.absolute_url(resolve(node, fields["url"], None), page_url)
    author_url = adapter.absolute_url(resolve(node, fields["author_url"], None), page_url)
    comment = Comment(
        id=_attr_id(node, adapter.COMMENT_ID_ATTRS) or adapter.natural_id(url) or "",
        post_id=post_id,
        author=resolve(node, fields["author"], "Unknown"),
        author_id=adapter.profile_id(author_url),
        content=resolve(node, fields["content"]),
        date=resolve(node, fields["date"]),
        likes=count_metric(node, adapter.METRICS["likes"], adapter.METRIC_LABELS, adapter.CONTAINER),
    )
    return comment, url


def _unique_id(candidate: str, url: Optional[str], seen: Dict[str, Optional[str]]) -> Optional[str]:
    """
    Returns an id not yet used in this result, or None when the record is a
    second rendering of one already collected.
    """
    if candidate not in seen:
        return candidate
    if url and seen[candidate] != url:
        alt = synthetic_id(url)
        if alt not in seen:
            return alt
    return None


def extract(
    html: str,
    mode: ScrapeMode,
    limit: int,
    adapter: Optional[SiteAdapter] = None,
    *,
    page_url: str = "",
    post_id: Optional[str] = None,
    scraped_at: Optional[str] = None,
) -> List[Record]:
    """
    Maps a rendered-document snapshot to records, in document order, at most
    `limit` of them. A missing field never drops a record; it gets its default.

    In comments mode the first container is the post itself and is skipped by
    position.
    """
    if mode == ScrapeMode.COMMENTS and not post_id:
        raise ValueError("post_id is required to extract comments")
    if not isinstance(html, str):
        raise ExtractionError(details="page snapshot is not text")

    adapter = adapter or SiteAdapter()
    scraped_at = scraped_at or datetime.now(timezone.utc).isoformat()

    try:
        soup = BeautifulSoup(html, "lxml")
        containers = soup.select(adapter.CONTAINER)
    except Exception as e:
        raise ExtractionError(details=f"could not parse page: {e}") from e

    if mode == ScrapeMode.POSTS:
        containers = _outermost(containers)
    else:
        containers = containers[1:]

    log.debug("%d candidate containers (%s, %s)", len(containers), adapter.name, mode.value)

    out: List[Record] = []
    seen: Dict[str, Optional[str]] = {}

    for position, node in enumerate(containers):
        if mode == ScrapeMode.POSTS:
            record, url = _build_post(node, adapter, page_url)
        else:
            record, url = _build_comment(node, adapter, page_url, post_id)

        candidate = record.id or synthetic_id(page_url, position, scraped_at)
        rid = _unique_id(candidate, url, seen)
        if rid is None:
            log.debug("[DUPE] container %d repeats id %s, skipping", position, candidate)
            continue
        if rid != record.id:
            record = replace(record, id=rid)

        seen[rid] = url
        out.append(record)
        if len(out) >= limit:
            break

    return out
