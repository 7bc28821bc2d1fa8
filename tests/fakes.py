"""Fake Playwright objects and HTML builders; no browser is ever started."""
import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pagescraper.utils.stream import COUNT_OUTERMOST


GENERIC_CONTAINER = "article, [role='article']"


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    @property
    def first(self):
        return self

    async def count(self):
        if self.selector == self.page.load_more_selector:
            return 1 if self.page.load_more_visible else 0
        return self.page.current_count()

    async def is_visible(self):
        if self.selector == self.page.load_more_selector:
            return self.page.load_more_visible
        return self.selector == self.page.consent_selector

    async def click(self, timeout=None):
        self.page.calls.append(("click", self.selector))
        if self.selector == self.page.load_more_selector:
            self.page.round += 1


class FakePage:
    """
    Just enough of playwright's async Page for the engine.
    `counts[i]` is the number of containers after i growth rounds;
    `outer_counts[i]` the ones not nested in another (defaults to `counts`).
    With `submit_delay` the login submit navigates only after that many seconds.
    """

    def __init__(
        self,
        html="<html><body></body></html>",
        counts=(0,),
        outer_counts=None,
        url="about:blank",
        after_submit_url="https://www.facebook.com/",
        submit_delay=0,
        goto_errors=(),
        ready_error=False,
        content_error=False,
        load_more_selector=None,
        load_more_visible=False,
        consent_selector=None,
        redirects=None,
    ):
        self.html = html
        self.counts = list(counts)
        self.outer_counts = list(outer_counts) if outer_counts else self.counts
        self.url = url
        self.after_submit_url = after_submit_url
        self.submit_delay = submit_delay
        self.goto_errors = set(goto_errors)
        self.ready_error = ready_error
        self.content_error = content_error
        self.load_more_selector = load_more_selector
        self.load_more_visible = load_more_visible
        self.consent_selector = consent_selector
        self.redirects = redirects or {}
        self.round = 0
        self.calls = []

    def current_count(self, counts=None):
        counts = counts or self.counts
        return counts[min(self.round, len(counts) - 1)]

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url))
        if url in self.goto_errors:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.url = self.redirects.get(url, url)

    async def fill(self, selector, value, timeout=None):
        self.calls.append(("fill", selector))

    async def click(self, selector, timeout=None):
        self.calls.append(("click", selector))
        if self.submit_delay:
            asyncio.get_running_loop().call_later(self.submit_delay, setattr, self, "url", self.after_submit_url)
        else:
            self.url = self.after_submit_url

    async def wait_for_url(self, url, wait_until=None, timeout=None):
        self.calls.append(("wait_for_url", wait_until))
        matches = url if callable(url) else (lambda u: u == url)
        loop = asyncio.get_running_loop()
        give_up = loop.time() + (timeout or 30000) / 1000
        while not matches(self.url):
            if loop.time() >= give_up:
                raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for navigation")
            await asyncio.sleep(0.005)

    async def wait_for_load_state(self, state=None, timeout=None):
        self.calls.append(("load_state", state))

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self.calls.append(("wait_for_selector", selector))
        if self.ready_error:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def evaluate(self, script, *args):
        if script == COUNT_OUTERMOST:
            self.calls.append(("count_outermost", args[0]))
            return self.current_count(self.outer_counts)
        self.calls.append(("evaluate", script))
        self.round += 1

    async def wait_for_timeout(self, ms):
        self.calls.append(("wait", ms))

    async def content(self):
        if self.content_error:
            raise PlaywrightError("Target page, context or browser has been closed")
        return self.html


class SessionRecorder:
    """Stands in for browser.open_session and counts acquire / release."""

    def __init__(self, page):
        self.page = page
        self.acquired = 0
        self.released = 0

    def __call__(self, settings):
        return self._session()

    @asynccontextmanager
    async def _session(self):
        self.acquired += 1
        try:
            yield SimpleNamespace(page=self.page)
        finally:
            self.released += 1


def articles(*bodies, tag="div"):
    inner = "\n".join(f'<{tag} role="article">{b}</{tag}>' for b in bodies)
    return f"<html><body><main>{inner}</main></body></html>"
