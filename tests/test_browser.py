import asyncio
from types import SimpleNamespace

import pytest
from playwright.async_api import Error as PlaywrightError

from pagescraper import browser
from pagescraper.browser import Session, acquire, close_overlays, open_session, release
from pagescraper.errors import LaunchError
from fakes import FakePage


class Closable:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    async def close(self):
        self.calls += 1
        if self.fail:
            raise PlaywrightError("Target closed")

    async def stop(self):
        await self.close()


class FakeBrowser(Closable):
    def __init__(self, context):
        super().__init__()
        self.context = context
        self.context_kwargs = None

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return self.context


class FakeContext(Closable):
    async def new_page(self):
        return FakePage()


def fake_playwright(monkeypatch, launch):
    pw = Closable()
    pw.chromium = SimpleNamespace(launch=launch)

    class Starter:
        async def start(self):
            return pw

    monkeypatch.setattr(browser, "async_playwright", lambda: Starter())
    return pw


def test_release_is_idempotent_and_ignores_close_errors():
    ctx, br, pw = Closable(fail=True), Closable(), Closable()
    session = Session(pw=pw, browser=br, context=ctx, page=None)
    asyncio.run(release(session))
    asyncio.run(release(session))
    assert (ctx.calls, br.calls, pw.calls) == (1, 1, 1)
    assert session.closed


def test_acquire_configures_context(monkeypatch, settings):
    context = FakeContext()
    fb = FakeBrowser(context)
    launched = {}

    async def launch(**kwargs):
        launched.update(kwargs)
        return fb

    fake_playwright(monkeypatch, launch)
    session = asyncio.run(acquire(settings))

    assert launched["headless"] is True
    assert "--disable-blink-features=AutomationControlled" in launched["args"]
    assert fb.context_kwargs["user_agent"] == settings.user_agent
    assert fb.context_kwargs["viewport"] == {"width": 1366, "height": 900}
    assert isinstance(session.page, FakePage)


def test_launch_failure_releases_driver(monkeypatch, settings):
    async def launch(**kwargs):
        raise PlaywrightError("Executable doesn't exist at /ms-playwright/chromium")

    pw = fake_playwright(monkeypatch, launch)
    with pytest.raises(LaunchError) as exc:
        asyncio.run(acquire(settings))
    assert "Executable doesn't exist" in exc.value.details
    assert pw.calls == 1


def test_open_session_releases_on_error(monkeypatch, settings):
    context = FakeContext()
    fb = FakeBrowser(context)

    async def launch(**kwargs):
        return fb

    pw = fake_playwright(monkeypatch, launch)

    async def failing_use():
        async with open_session(settings):
            raise RuntimeError("step failed")

    with pytest.raises(RuntimeError):
        asyncio.run(failing_use())
    assert (context.calls, fb.calls, pw.calls) == (1, 1, 1)


def test_close_overlays_without_banner():
    page = FakePage()
    assert asyncio.run(close_overlays(page)) is None
    assert page.calls == []
