import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from pagescraper.config import Settings
from pagescraper.dispatcher import get_backend
from pagescraper.export import to_csv, to_json
from pagescraper.models import Credentials, ScrapeMode, ScrapeRequest


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Extract posts or comments from a social media page")
    p.add_argument("--url", required=True, help="Page URL (posts) or post URL (comments)")
    p.add_argument("--post-id", default=None, help="Scrape the comments of this post instead of page posts")
    p.add_argument("--limit", type=int, default=None, help="Max records to return")
    p.add_argument("--email", default=None,
                   help="Log in first with this account; password is read from PAGESCRAPER_PASSWORD")
    p.add_argument("--backend", choices=["browser", "apify"], default=None,
                   help="Override the configured backend")
    p.add_argument("--headed", action="store_true", help="Show the browser window (debugging)")
    p.add_argument("--timeout", type=float, default=None, help="Request deadline in seconds")
    p.add_argument("--format", choices=["json", "csv"], default="json", help="Output format")
    p.add_argument("--out", type=str, default=None, help="Output file (stdout when omitted)")
    return p.parse_args(argv)


async def run(args, settings: Settings) -> int:
    credentials = None
    if args.email:
        credentials = Credentials(email=args.email, password=os.environ.get("PAGESCRAPER_PASSWORD", ""))

    request = ScrapeRequest(
        target_url=args.url,
        mode=ScrapeMode.COMMENTS if args.post_id else ScrapeMode.POSTS,
        post_id=args.post_id,
        limit=args.limit,
        credentials=credentials,
        timeout=args.timeout,
    )
    result = await get_backend(settings, args.backend).scrape(request)

    if not result.success:
        detail = f" ({result.error.details})" if result.error.details else ""
        print(f"[ERR] {result.error.kind}: {result.error.message}{detail}", file=sys.stderr)
        return 1

    body = to_json(result.records) if args.format == "json" else to_csv(result.records)
    if args.out:
        Path(args.out).parent.mkdir(parents=True, exist_ok=True)
        Path(args.out).write_text(body, encoding="utf-8")
        print(f"[OK] Extracted {result.count} {request.mode.value} -> {args.out}", file=sys.stderr)
    else:
        print(body)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    overrides = {"headless": False} if args.headed else {}
    settings = Settings(**overrides)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
