import logging
from typing import Callable, List, Optional
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError

from pagescraper.adapters.base import SiteAdapter
from pagescraper.adapters.facebook import FacebookAdapter
from pagescraper.apify import ApifyBackend
from pagescraper.auth import is_challenge_url, login
from pagescraper.backend import ScrapeBackend
from pagescraper.browser import open_session
from pagescraper.config import Settings
from pagescraper.errors import AuthError, ExtractionError, TargetUnavailable
from pagescraper.extract import extract
from pagescraper.models import Record, ScrapeMode
from pagescraper.state import ScrapeJob, ScrapeState
from pagescraper.utils.stream import reveal

log = logging.getLogger(__name__)


# Registered adapters; each declares the domains it understands.
ADAPTERS: List[SiteAdapter] = [
    FacebookAdapter(),
]

GENERIC = SiteAdapter()


def pick_adapter(url: str) -> SiteAdapter:
    """
    Selects the adapter for the URL's host.
        "https://www.facebook.com/somepage" -> FacebookAdapter
    Unknown hosts get the generic adapter rather than an error.
    """
    host = (urlparse(url).netloc or "").lower().split(":")[0]
    for a in ADAPTERS:
        if a.matches(host):
            return a
    return GENERIC


class BrowserBackend(ScrapeBackend):
    """
    Drives one headless browser per request:
        1. acquire a session (released on every path)
        2. log in when credentials were given
        3. open the target and wait until it is interactive
        4. reveal enough containers
        5. snapshot the DOM and extract records
    """

    name = "browser"

    def __init__(self, settings: Settings, open_session: Callable = open_session):
        super().__init__(settings)
        self._open_session = open_session

    async def _run(self, job: ScrapeJob) -> List[Record]:
        request = job.request
        adapter = pick_adapter(request.target_url)
        s = self.settings

        async with self._open_session(s) as session:
            page = session.page

            if request.credentials:
                job.advance(ScrapeState.AUTHENTICATING)
                await login(page, request.credentials, s, job.deadline)

            job.advance(ScrapeState.NAVIGATING)
            await self._open_target(page, adapter, request.target_url, job)

            job.advance(ScrapeState.LOADING)
            comments = request.mode == ScrapeMode.COMMENTS
            # In comments mode the post's own container is on the page too
            wanted = job.limit + 1 if comments else job.limit
            revealed = await reveal(
                page,
                adapter.CONTAINER,
                wanted,
                max_rounds=s.max_rounds,
                wait_min_ms=s.settle_ms,
                wait_jitter_ms=s.settle_jitter_ms,
                load_more_selector=adapter.LOAD_MORE_COMMENTS if comments else adapter.LOAD_MORE_POSTS,
                click_timeout_ms=s.click_timeout_ms,
                # posts are counted the way extract() selects them
                outermost_only=not comments,
            )
            log.info("Revealed %d containers in %d rounds (wanted %d)", revealed.item_count, revealed.rounds, wanted)

            job.advance(ScrapeState.EXTRACTING)
            try:
                html = await page.content()
                page_url = page.url or request.target_url
            except PlaywrightError as exc:
                raise ExtractionError("Page snapshot failed", details=str(exc)) from exc

        return extract(
            html,
            request.mode,
            job.limit,
            adapter,
            page_url=page_url,
            post_id=request.post_id,
        )

    async def _open_target(self, page, adapter: SiteAdapter, url: str, job: ScrapeJob) -> None:
        s = self.settings
        try:
            await adapter.navigate_board(
                page, url, job.deadline.cap(s.navigation_timeout_ms), s.click_timeout_ms,
            )
        except PlaywrightError as exc:
            raise TargetUnavailable("Target page could not be loaded", details=str(exc)) from exc

        if is_challenge_url(page.url):
            raise AuthError("Target page requires login", details=page.url)

        try:
            await page.wait_for_selector(adapter.READY, state="attached", timeout=job.deadline.cap(s.ready_timeout_ms))
        except PlaywrightError as exc:
            raise TargetUnavailable("Target page did not become interactive", details=str(exc)) from exc


def get_backend(settings: Settings, backend: Optional[str] = None) -> ScrapeBackend:
    """Backend chosen by configuration; callers only see the ScrapeBackend contract."""
    choice = backend or settings.backend
    if choice == "apify":
        return ApifyBackend(settings)
    return BrowserBackend(settings)
