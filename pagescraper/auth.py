import logging
import re
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError

from pagescraper.browser import close_overlays
from pagescraper.config import Settings
from pagescraper.errors import AuthError
from pagescraper.models import Credentials
from pagescraper.utils.deadline import Deadline

log = logging.getLogger(__name__)

EMAIL_INPUT = "input[name='email']"
PASSWORD_INPUT = "input[name='pass']"
SUBMIT = "button[name='login'], button[type='submit'], input[type='submit']"

# Where the target sends a session that is not (yet) authenticated.
CHALLENGE_URL_RE = re.compile(
    r"/(login|checkpoint|two_step_verification|captcha|recover)\b|login\.php",
    re.IGNORECASE,
)


def is_challenge_url(url: Optional[str]) -> bool:
    """True for login pages and verification (2FA / CAPTCHA) checkpoints."""
    return bool(url) and bool(CHALLENGE_URL_RE.search(url))


async def login(
    page,
    credentials: Credentials,
    settings: Settings,
    deadline: Optional[Deadline] = None,
) -> None:
    """
    Logs the page's browser context in. Cookies / localStorage of the context
    change as a side effect; nothing else is returned.

    Raises AuthError when a step fails or when the session still sits on a
    login or challenge URL after submitting. Challenges are never solved.
    """
    deadline = deadline or Deadline()
    timeout = deadline.cap(settings.auth_timeout_ms)

    # 1) Login surface
    try:
        await page.goto(settings.login_url, wait_until="networkidle", timeout=timeout)
    except PlaywrightError as exc:
        raise AuthError("Login page could not be loaded", details=str(exc)) from exc

    # 2) Consent banner, if any
    await close_overlays(page, timeout_ms=settings.click_timeout_ms)

    # 3) Credentials
    try:
        await page.fill(EMAIL_INPUT, credentials.email, timeout=deadline.cap(settings.auth_timeout_ms))
        await page.fill(PASSWORD_INPUT, credentials.password, timeout=deadline.cap(settings.auth_timeout_ms))
        await page.click(SUBMIT, timeout=deadline.cap(settings.auth_timeout_ms))
    except PlaywrightError as exc:
        raise AuthError("Login form could not be submitted", details=str(exc)) from exc

    # 4) Leave the login form (redirect may be script-driven), then settle
    try:
        await page.wait_for_url(
            _left(settings.login_url),
            wait_until="domcontentloaded",
            timeout=deadline.cap(settings.auth_timeout_ms),
        )
    except PlaywrightError as exc:
        log.warning("Still on the login form after submitting (%s)", page.url)
        raise AuthError(details="no navigation away from the login form") from exc
    try:
        await page.wait_for_load_state("networkidle", timeout=deadline.cap(settings.auth_timeout_ms))
    except PlaywrightError as exc:
        raise AuthError("Login did not complete", details=str(exc)) from exc

    # 5) Where did we land?
    if is_challenge_url(page.url):
        log.warning("Login rejected or challenged (landed on %s)", page.url)
        raise AuthError()

    log.info("Logged in as %s", _mask(credentials.email))


def _left(login_url: str):
    """URL predicate: true once the page is no longer on the login form."""
    login_path = urlparse(login_url).path.rstrip("/")
    return lambda url: urlparse(url).path.rstrip("/") != login_path


def _mask(email: str) -> str:
    name, _, domain = email.partition("@")
    return f"{name[:1]}***@{domain}" if domain else "***"
