"""Scrapes through Apify's hosted Facebook actors instead of a local browser."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from pagescraper.backend import ScrapeBackend
from pagescraper.config import Settings
from pagescraper.errors import UpstreamError
from pagescraper.models import Comment, Post, Record, ScrapeMode
from pagescraper.state import ScrapeJob, ScrapeState
from pagescraper.utils.ids import last_path_segment, synthetic_id, to_count

log = logging.getLogger(__name__)

POSTS_ACTOR = "apify~facebook-pages-scraper"
COMMENTS_ACTOR = "apify~facebook-comment-scraper"


def _post_from_item(item: Dict[str, Any], position: int, target_url: str) -> Post:
    url = item.get("postUrl") or item.get("url")
    return Post(
        id=str(item.get("postId") or last_path_segment(url) or synthetic_id(target_url, position)),
        content=str(item.get("text") or ""),
        date=str(item.get("time") or ""),
        source_url=url,
        likes=to_count(item.get("likes")),
        comment_count=to_count(item.get("comments")),
        shares=to_count(item.get("shares")),
    )


def _comment_from_item(item: Dict[str, Any], position: int, target_url: str, post_id: str) -> Comment:
    url = item.get("commentUrl")
    return Comment(
        id=str(item.get("commentId") or item.get("id") or last_path_segment(url) or synthetic_id(target_url, position)),
        post_id=post_id,
        author=str(item.get("name") or item.get("profileName") or "Unknown"),
        author_id=last_path_segment(item.get("profileUrl")),
        content=str(item.get("text") or ""),
        date=str(item.get("date") or item.get("time") or ""),
        likes=to_count(item.get("likesCount", item.get("likes"))),
    )


class ApifyBackend(ScrapeBackend):
    """
    Same contract as the browser backend; the scraping runs on Apify and this
    class only maps the returned dataset items to our records.
    """

    name = "apify"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        super().__init__(settings)
        self._client = client

    def _actor_input(self, job: ScrapeJob) -> Dict[str, Any]:
        request = job.request
        if request.mode == ScrapeMode.POSTS:
            return {
                "startUrls": [{"url": request.target_url}],
                "maxPosts": job.limit,
                "commentsMode": "NONE",
                "maxComments": 0,
                "maxCommentsDepth": 0,
            }
        return {
            "startUrls": [{"url": request.target_url}],
            "maxComments": job.limit,
            "maxReplies": 0,
        }

    async def _call_actor(self, client: httpx.AsyncClient, actor: str, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        url = f"{self.settings.apify_base_url.rstrip('/')}/acts/{actor}/run-sync-get-dataset-items"
        try:
            resp = await client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.apify_token}"},
            )
        except httpx.HTTPError as exc:
            raise UpstreamError("Apify API request failed", details=str(exc)) from exc

        if not resp.is_success:
            raise UpstreamError(f"Apify API error: {resp.status_code}", details=resp.text[:500])

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("Apify API returned invalid JSON", details=str(exc)) from exc
        if not isinstance(data, list):
            raise UpstreamError("Apify API returned an unexpected payload", details=type(data).__name__)
        return [item for item in data if isinstance(item, dict)]

    async def _run(self, job: ScrapeJob) -> List[Record]:
        if not self.settings.apify_token:
            raise UpstreamError("Apify API token is not configured")

        request = job.request
        actor = POSTS_ACTOR if request.mode == ScrapeMode.POSTS else COMMENTS_ACTOR

        job.advance(ScrapeState.NAVIGATING)
        if self._client is not None:
            items = await self._call_actor(self._client, actor, self._actor_input(job))
        else:
            async with httpx.AsyncClient(timeout=self.settings.upstream_timeout_s) as client:
                items = await self._call_actor(client, actor, self._actor_input(job))
        log.info("Apify %s returned %d items", actor, len(items))

        job.advance(ScrapeState.EXTRACTING)
        records: List[Record] = []
        seen = set()
        for position, item in enumerate(items):
            if request.mode == ScrapeMode.POSTS:
                record = _post_from_item(item, position, request.target_url)
            else:
                record = _comment_from_item(item, position, request.target_url, request.post_id)
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
            if len(records) >= job.limit:
                break
        return records
