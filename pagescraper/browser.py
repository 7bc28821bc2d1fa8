import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from pagescraper.config import Settings
from pagescraper.errors import LaunchError

log = logging.getLogger(__name__)


CHROME_ARGS = [
    "--disable-blink-features=AutomationControlled",
    # Keeps navigator.webdriver from being set to True.

    "--no-sandbox",
    # Chromium cannot use its sandbox inside Docker / CI containers.

    "--disable-dev-shm-usage",
    # /dev/shm is tiny in containers; Chromium crashes when it runs out.
]


# Consent / cookie interstitials seen on login and target pages.
CONSENT_SELECTORS = [
    "button[data-cookiebanner='accept_button']",
    "button[data-testid='cookie-policy-manage-dialog-accept-button']",
    "div[role='dialog'] button:has-text('Allow all cookies')",
    "div[role='dialog'] button:has-text('Accept all')",
    "button:has-text('Allow all cookies')",
    "button:has-text('Accept all')",
]


@dataclass
class Session:
    """One browser instance owned by exactly one scrape request."""

    pw: Any        # Playwright driver
    browser: Any   # Chromium process
    context: Any   # cookies / localStorage live here
    page: Any      # the tab every step works on
    closed: bool = False


async def acquire(settings: Settings) -> Session:
    """
    Starts Playwright, launches Chromium and opens a fresh context + page.
    Anything that fails here is fatal for the request: partial resources are
    closed and LaunchError is raised. No retry.
    """
    pw = browser = context = None
    try:
        pw = await async_playwright().start()
        browser = await pw.chromium.launch(headless=settings.headless, args=CHROME_ARGS)
        context = await browser.new_context(
            user_agent=settings.user_agent,
            # Desktop viewport; below ~800px many sites switch to a mobile DOM.
            viewport={"width": settings.viewport_width, "height": settings.viewport_height},
            locale=settings.locale,
        )
        page = await context.new_page()
    except PlaywrightError as exc:
        log.error("Browser launch failed: %s", exc)
        await release(Session(pw=pw, browser=browser, context=context, page=None))
        raise LaunchError(details=str(exc)) from exc
    except BaseException:
        # cancelled mid-launch: tear down whatever was already started
        await release(Session(pw=pw, browser=browser, context=context, page=None))
        raise

    log.debug("Browser session started (headless=%s)", settings.headless)
    return Session(pw=pw, browser=browser, context=context, page=page)


async def release(session: Session) -> None:
    """
    Closes context, browser and the Playwright driver. Safe to call twice and
    on a half-built session; close errors are logged, never raised.
    """
    if session.closed:
        return
    session.closed = True

    for name, closer in (
        ("context", session.context and session.context.close),
        ("browser", session.browser and session.browser.close),
        ("playwright", session.pw and session.pw.stop),
    ):
        if not closer:
            continue
        try:
            await closer()
        except PlaywrightError as exc:
            log.debug("Ignoring error while closing %s: %s", name, exc)

    log.debug("Browser session released")


@asynccontextmanager
async def open_session(settings: Settings) -> AsyncIterator[Session]:
    """Scoped acquisition: the session is released on every exit path, cancellation included."""
    session = await acquire(settings)
    try:
        yield session
    finally:
        await release(session)


async def close_overlays(
    page,
    selectors: Sequence[str] = CONSENT_SELECTORS,
    timeout_ms: int = 1500,
) -> Optional[str]:
    """
    Best-effort click on the first visible consent/cookie button.
    Returns the selector that was clicked, or None. Missing elements and
    Playwright errors are not failures.
    """
    for sel in selectors:
        try:
            button = page.locator(sel).first
            if await button.is_visible():
                await button.click(timeout=timeout_ms)
                log.debug("Dismissed overlay via %s", sel)
                return sel
        except PlaywrightError as exc:
            log.debug("Overlay selector %s not usable: %s", sel, exc)
    return None
