import logging
import random
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Error as PWError

log = logging.getLogger(__name__)

SCROLL_TO_BOTTOM = "() => window.scrollTo(0, document.body.scrollHeight)"

# Containers not nested in another match: posts, without the comments inside them.
COUNT_OUTERMOST = (
    "(sel) => Array.from(document.querySelectorAll(sel))"
    ".filter(el => !(el.parentElement && el.parentElement.closest(sel))).length"
)


@dataclass
class RevealedPage:
    item_count: int   # containers in the document when loading stopped
    rounds: int       # growth rounds actually performed
    reached: bool     # item_count >= desired_count
    stagnated: bool   # stopped because the page had nothing more to give


async def _grow(page, load_more_selector: Optional[str], click_timeout_ms: int) -> str:
    """One growth step: click an explicit 'load more' control if present, else scroll."""
    if load_more_selector:
        button = page.locator(load_more_selector).first
        try:
            if await button.count() > 0 and await button.is_visible():
                await button.click(timeout=click_timeout_ms)
                return "click"
        except PWError as e:
            log.debug("Load-more control not clickable, scrolling instead: %s", e)

    await page.evaluate(SCROLL_TO_BOTTOM)
    return "scroll"


async def _count(page, item_selector: str, outermost_only: bool) -> int:
    if outermost_only:
        return await page.evaluate(COUNT_OUTERMOST, item_selector)
    return await page.locator(item_selector).count()


async def reveal(
    page,
    item_selector: str,
    desired_count: int,
    *,
    max_rounds: int = 3,
    stagnant_tolerance: int = 2,
    wait_min_ms: int = 1500,
    wait_jitter_ms: int = 800,
    load_more_selector: Optional[str] = None,
    click_timeout_ms: int = 1500,
    outermost_only: bool = False,
) -> RevealedPage:
    """
    Grows the page until `desired_count` containers exist, `max_rounds` is
    spent, or `stagnant_tolerance` rounds in a row add nothing.

    With `outermost_only`, containers nested in another container are not
    counted.

    Heuristic only: fewer containers than desired is a normal outcome.
    """
    try:
        count = await _count(page, item_selector, outermost_only)
    except PWError as e:
        log.warning("Cannot count items, page is gone: %s", e)
        return RevealedPage(item_count=0, rounds=0, reached=False, stagnated=False)

    if count >= desired_count:
        return RevealedPage(item_count=count, rounds=0, reached=True, stagnated=False)

    stagnant_counter = 0
    rounds = 0

    for round_idx in range(max_rounds):
        try:
            how = await _grow(page, load_more_selector, click_timeout_ms)
            # Give the async renderer time to attach the new nodes
            await page.wait_for_timeout(wait_min_ms + random.randint(0, max(0, wait_jitter_ms)))
            new_count = await _count(page, item_selector, outermost_only)
        except PWError as e:
            # target closed / navigated away; keep what we have
            log.warning("Content loading interrupted in round %d: %s", round_idx, e)
            break

        rounds += 1
        log.debug("Round %d (%s): %d -> %d items", round_idx, how, count, new_count)

        if new_count >= desired_count:
            return RevealedPage(item_count=new_count, rounds=rounds, reached=True, stagnated=False)

        # --- STAGNANT CHECK ---
        if new_count <= count:
            stagnant_counter += 1
            if stagnant_counter >= stagnant_tolerance:
                log.info("No new items for %d rounds, stopping at %d", stagnant_counter, count)
                return RevealedPage(item_count=count, rounds=rounds, reached=False, stagnated=True)
        else:
            stagnant_counter = 0
            count = new_count

    log.info("Round budget spent: %d/%d items after %d rounds", count, desired_count, rounds)
    return RevealedPage(item_count=count, rounds=rounds, reached=False, stagnated=False)
