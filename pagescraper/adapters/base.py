import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4.element import Tag

from pagescraper.browser import close_overlays
from pagescraper.utils.ids import last_path_segment

Reader = Callable[[Tag], Optional[str]]

# First run of digits, thousands separators allowed ("1,234 comments").
DIGITS_RE = re.compile(r"\d+(?:,\d{3})*")


def text(el: Tag) -> str:
    return el.get_text(" ", strip=True)


def attr(name: str) -> Reader:
    def read(el: Tag) -> Optional[str]:
        value = el.get(name)
        return value if isinstance(value, str) else None
    return read


@dataclass(frozen=True)
class FieldRule:
    selector: Optional[str]   # None -> the container itself
    read: Reader = text


def rule(selector: Optional[str], read: Reader = text) -> FieldRule:
    return FieldRule(selector, read)


def resolve(node: Tag, rules: Tuple[FieldRule, ...], default: Optional[str] = "") -> Optional[str]:
    """Try each rule in order; the first non-blank value wins, else `default`."""
    for r in rules:
        el = node if r.selector is None else node.select_one(r.selector)
        if el is None:
            continue
        value = r.read(el)
        if value and value.strip():
            return value.strip()
    return default


def count_metric(node: Tag, keywords: Tuple[str, ...], labels: str, container: Optional[str] = None) -> int:
    """
    Scans control labels (aria-label, else visible text) for a metric keyword
    and returns the first digit run in that label. 0 when nothing matches.

    With `container`, labels inside a nested container (a comment under a
    post) belong to that container and are skipped.
    """
    nested = {id(c) for c in node.select(container)} if container else set()
    for el in node.select(labels):
        if nested and (id(el) in nested or any(id(p) in nested for p in el.parents)):
            continue
        label = el.get("aria-label")
        if not isinstance(label, str) or not label.strip():
            label = el.get_text(" ", strip=True)
        if not label:
            continue
        low = label.lower()
        if not any(k in low for k in keywords):
            continue
        m = DIGITS_RE.search(label)
        if m:
            return int(m.group().replace(",", ""))
    return 0


class SiteAdapter:
    """
    Selector configuration for one family of sites. All markup knowledge lives
    in the class attributes below, so churn in a target's HTML means editing a
    table, not the extraction code.

    The base class is the generic adapter used for hosts nobody registered.
    """

    name: str = "generic"
    domains: List[str] = []

    CONTAINER = "article, [role='article']"     # one post / comment each
    READY = "body"                              # minimal "page is interactive" signal
    LOAD_MORE_POSTS: Optional[str] = None       # explicit growth controls, Playwright selectors;
    LOAD_MORE_COMMENTS: Optional[str] = None    # None -> grow by scrolling
    METRIC_LABELS = "[aria-label], [role='button']"

    POST_ID_ATTRS: Tuple[str, ...] = ("data-post-id", "data-id")
    COMMENT_ID_ATTRS: Tuple[str, ...] = ("data-comment-id", "data-id")

    POST_FIELDS: Dict[str, Tuple[FieldRule, ...]] = {
        "content": (
            rule("[itemprop='articleBody']"),
            rule("[data-content]"),
            rule("p"),
        ),
        "date": (
            rule("time", attr("datetime")),
            rule("time"),
            rule("abbr", attr("title")),
            rule("abbr"),
        ),
        "url": (
            rule("a[rel='bookmark']", attr("href")),
            rule("a[href*='/posts/']", attr("href")),
            rule("a[href*='/permalink']", attr("href")),
        ),
    }

    COMMENT_FIELDS: Dict[str, Tuple[FieldRule, ...]] = {
        "author": (
            rule("[itemprop='author'] [itemprop='name']"),
            rule("[itemprop='author']"),
            rule("a[rel='author']"),
            rule(".author"),
        ),
        "author_url": (
            rule("a[rel='author']", attr("href")),
            rule("[itemprop='author'] a", attr("href")),
        ),
        "content": (
            rule("[itemprop='text']"),
            rule("p"),
        ),
        "date": (
            rule("time", attr("datetime")),
            rule("time"),
            rule("abbr", attr("title")),
        ),
        "url": (
            rule("a[href*='comment']", attr("href")),
        ),
    }

    METRICS: Dict[str, Tuple[str, ...]] = {
        "likes": ("like", "reaction"),
        "comments": ("comment",),
        "shares": ("share",),
    }

    def matches(self, host: str) -> bool:
        host = host.lower()
        return any(host == d or host.endswith("." + d) for d in self.domains)

    def absolute_url(self, href: Optional[str], page_url: str) -> Optional[str]:
        if not href or href.startswith(("javascript:", "#")):
            return None
        return self.clean_url(urljoin(page_url, href))

    def clean_url(self, url: str) -> str:
        return url.split("#", 1)[0]

    def natural_id(self, url: Optional[str]) -> Optional[str]:
        return last_path_segment(url)

    def profile_id(self, url: Optional[str]) -> Optional[str]:
        return last_path_segment(url)

    async def navigate_board(self, page, url: str, timeout_ms: int, click_timeout_ms: int = 1500):
        """Opens the target and clears a consent interstitial when one shows up."""
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        await close_overlays(page, timeout_ms=click_timeout_ms)
