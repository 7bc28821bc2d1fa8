from typing import Optional
from urllib.parse import parse_qs, parse_qsl, urlencode, urlparse, urlunparse

from pagescraper.adapters.base import SiteAdapter, attr, rule
from pagescraper.utils.ids import last_path_segment

FB_DOMAINS = ["facebook.com", "fb.com"]


class FacebookAdapter(SiteAdapter):
    name = "facebook"
    domains = FB_DOMAINS

    CONTAINER = "div[role='article']"
    READY = "div[role='main']"
    # The feed grows by scrolling; only the comment thread has an expander
    LOAD_MORE_COMMENTS = (
        "div[role='button']:has-text('View more comments'), "
        "div[role='button']:has-text('View previous comments')"
    )

    POST_FIELDS = {
        "content": (
            rule("div[data-ad-preview='message']"),
            rule("div[data-ad-comet-preview='message']"),
            rule("div[data-testid='post_message']"),
            rule("div[dir='auto']"),
        ),
        "date": (
            rule("abbr", attr("title")),
            rule("a[href*='/posts/']", attr("aria-label")),
            rule("a[href*='/posts/']"),
            rule("a[href*='story_fbid=']"),
        ),
        "url": (
            rule("a[href*='/posts/']", attr("href")),
            rule("a[href*='story_fbid=']", attr("href")),
            rule("a[href*='/permalink/']", attr("href")),
            rule("a[href*='/videos/']", attr("href")),
            rule("a[href*='/photos/']", attr("href")),
        ),
    }

    COMMENT_FIELDS = {
        "author": (
            rule("a[role='link'] span[dir='auto']"),
            rule("a[role='link'] span"),
            rule("a[role='link']", attr("aria-label")),
        ),
        "author_url": (
            rule("a[role='link'][href*='/profile.php']", attr("href")),
            rule("a[role='link'][href]", attr("href")),
        ),
        "content": (
            rule("div[dir='auto'][style*='text-align']"),
            rule("div[dir='auto']"),
            rule("span[dir='auto']"),
        ),
        "date": (
            rule("a[href*='comment_id='] span"),
            rule("a[href*='comment_id=']"),
            rule("abbr", attr("title")),
        ),
        "url": (
            rule("a[href*='comment_id=']", attr("href")),
        ),
    }

    def clean_url(self, url: str) -> str:
        # Drop the __cft__ / __tn__ tracking params Facebook appends to every link
        parsed = urlparse(url)
        query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if not k.startswith("__")]
        return urlunparse(parsed._replace(query=urlencode(query), fragment=""))

    def natural_id(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        qs = parse_qs(urlparse(url).query)
        for key in ("comment_id", "story_fbid", "fbid", "v"):
            if qs.get(key):
                return qs[key][0]
        return last_path_segment(url)

    def profile_id(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        qs = parse_qs(urlparse(url).query)
        if qs.get("id"):
            return qs["id"][0]
        return last_path_segment(url)
