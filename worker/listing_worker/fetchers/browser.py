from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from urllib.parse import urlparse

from playwright.async_api import BrowserContext, Locator, Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from listing_worker.config import WorkerSettings
from listing_worker.errors import DriverTimeoutError
from listing_worker.fetchers.base import BrowserSession, PageDriver, Selector
from listing_worker.models import RunOptions

logger = logging.getLogger(__name__)


def _playwright_proxy(proxy_url: str) -> dict[str, str]:
    parsed = urlparse(proxy_url)
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"Invalid proxy URL: {proxy_url}")

    server = f"{parsed.scheme}://{parsed.hostname}"
    if parsed.port:
        server = f"{server}:{parsed.port}"

    proxy: dict[str, str] = {"server": server}
    if parsed.username:
        proxy["username"] = parsed.username
    if parsed.password:
        proxy["password"] = parsed.password
    return proxy


@contextmanager
def _timeout_guard(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as exc:
        raise DriverTimeoutError(f"Timed out while {action}") from exc


class PlaywrightPageDriver(PageDriver):
    def __init__(self, page: Page) -> None:
        self._page = page

    def _locate(self, selector: Selector) -> Locator:
        root: Page | Locator = self._locate(selector.within) if selector.within else self._page
        if selector.by == "role":
            locator = root.get_by_role(selector.value, name=selector.name)  # type: ignore[arg-type]
        elif selector.by == "text":
            locator = root.get_by_text(selector.value)
        elif selector.by == "css":
            locator = root.locator(selector.value)
            if selector.has_text is not None:
                locator = locator.filter(has_text=selector.has_text)
        elif selector.by == "test_id":
            locator = root.get_by_test_id(selector.value)
        else:
            raise ValueError(f"Unsupported selector strategy: {selector.by}")
        return locator.first

    async def goto(self, url: str) -> None:
        with _timeout_guard(f"navigating to {urlparse(url).path}"):
            await self._page.goto(url, wait_until="domcontentloaded")

    async def wait_for_load(self) -> None:
        with _timeout_guard("waiting for page load"):
            await self._page.wait_for_load_state("domcontentloaded")

    async def count(self, selector: Selector) -> int:
        return await self._locate(selector).count()

    async def wait_visible(self, selector: Selector, timeout_ms: int | None = None) -> None:
        with _timeout_guard(f"waiting for {selector.describe()}"):
            await self._locate(selector).wait_for(state="visible", timeout=timeout_ms)

    async def probe_visible(self, selector: Selector, timeout_ms: int) -> bool:
        try:
            await self._locate(selector).wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return False
        return True

    async def click(self, selector: Selector) -> None:
        with _timeout_guard(f"clicking {selector.describe()}"):
            await self._locate(selector).click()

    async def fill(self, selector: Selector, text: str) -> None:
        with _timeout_guard(f"filling {selector.describe()}"):
            await self._locate(selector).fill(text)

    async def click_and_wait_popup(self, selector: Selector) -> PageDriver:
        with _timeout_guard(f"opening popup from {selector.describe()}"):
            async with self._page.expect_popup() as popup_info:
                await self._locate(selector).click()
            popup = await popup_info.value
            try:
                await popup.wait_for_load_state("domcontentloaded")
            except BaseException:
                await popup.close()
                raise
        return PlaywrightPageDriver(popup)

    async def pause(self, milliseconds: int) -> None:
        if milliseconds > 0:
            await self._page.wait_for_timeout(milliseconds)

    async def close(self) -> None:
        if not self._page.is_closed():
            await self._page.close()


class PlaywrightBrowserSession(BrowserSession):
    def __init__(self, context: BrowserContext) -> None:
        self._context = context

    async def new_page(self) -> PageDriver:
        return PlaywrightPageDriver(await self._context.new_page())

    async def close(self) -> None:
        await self._context.close()


@asynccontextmanager
async def open_browser(options: RunOptions, settings: WorkerSettings) -> AsyncIterator[BrowserSession]:
    launch_kwargs: dict[str, object] = {"headless": options.headless, "args": ["--lang=ja"]}
    if settings.slow_mo_ms:
        launch_kwargs["slow_mo"] = settings.slow_mo_ms
    if settings.proxy_url:
        launch_kwargs["proxy"] = _playwright_proxy(settings.proxy_url)

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(**launch_kwargs)
        logger.debug("Launched chromium headless=%s", options.headless)
        try:
            context = await browser.new_context(locale="ja")
            context.set_default_timeout(settings.step_timeout_ms)
            context.set_default_navigation_timeout(settings.step_timeout_ms)
            session = PlaywrightBrowserSession(context)
            try:
                yield session
            finally:
                await session.close()
        finally:
            await browser.close()


def browser_opener(settings: WorkerSettings):
    def _open(options: RunOptions):
        return open_browser(options, settings)

    return _open
