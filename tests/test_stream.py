import asyncio

from pagescraper.utils.stream import SCROLL_TO_BOTTOM, reveal
from fakes import GENERIC_CONTAINER, FakePage


def run_reveal(page, desired, **kw):
    kw.setdefault("wait_min_ms", 0)
    kw.setdefault("wait_jitter_ms", 0)
    return asyncio.run(reveal(page, GENERIC_CONTAINER, desired, **kw))


def test_enough_items_already_no_rounds():
    page = FakePage(counts=(5,))
    result = run_reveal(page, 3)
    assert (result.item_count, result.rounds, result.reached) == (5, 0, True)
    assert ("evaluate", SCROLL_TO_BOTTOM) not in page.calls


def test_stops_once_desired_count_reached():
    page = FakePage(counts=(1, 3, 6, 9))
    result = run_reveal(page, 5, max_rounds=10)
    assert result.reached
    assert (result.item_count, result.rounds) == (6, 2)


def test_stagnation_ends_before_round_budget():
    page = FakePage(counts=(2,))
    result = run_reveal(page, 10, max_rounds=10, stagnant_tolerance=2)
    assert result.stagnated and not result.reached
    assert (result.item_count, result.rounds) == (2, 2)


def test_round_budget_is_a_hard_bound():
    page = FakePage(counts=(1, 2, 3, 4, 5, 6, 7))
    result = run_reveal(page, 100, max_rounds=3)
    assert (result.item_count, result.rounds) == (4, 3)
    assert not result.reached and not result.stagnated


def test_growth_resets_stagnation():
    page = FakePage(counts=(1, 1, 2, 2, 3, 3, 3))
    result = run_reveal(page, 100, max_rounds=10, stagnant_tolerance=2)
    assert result.stagnated
    assert (result.item_count, result.rounds) == (3, 6)


def test_load_more_control_preferred_over_scroll():
    page = FakePage(counts=(1, 4), load_more_selector="div.more", load_more_visible=True)
    result = run_reveal(page, 3, load_more_selector="div.more")
    assert result.reached
    assert ("click", "div.more") in page.calls
    assert ("evaluate", SCROLL_TO_BOTTOM) not in page.calls


def test_hidden_load_more_falls_back_to_scroll():
    page = FakePage(counts=(1, 4), load_more_selector="div.more", load_more_visible=False)
    result = run_reveal(page, 3, load_more_selector="div.more")
    assert result.reached
    assert ("evaluate", SCROLL_TO_BOTTOM) in page.calls


def test_outermost_only_ignores_nested_containers():
    # 4 containers on the page, but only 1 of them is top level
    page = FakePage(counts=(4, 8), outer_counts=(1, 2))
    result = run_reveal(page, 2, outermost_only=True)
    assert (result.item_count, result.rounds, result.reached) == (2, 1, True)
    assert ("count_outermost", GENERIC_CONTAINER) in page.calls
