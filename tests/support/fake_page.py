"""In-memory stand-ins for a Playwright browser and page.

The fake page models the source-tabs widget of the page under test: the
landing controls are shown on load, clicking a tab link shows that tab's
form controls and hides the other tab's.
"""

import asyncio

from tab_probe import (
    ADD_VIDEO_BUTTON,
    BOOKMARKLET_BUTTON,
    MEDIA_INPUT,
    MEDIA_TAB,
    SOURCE_TABS,
    SUBSCRIBE_BUTTON,
    VIDEO_URL_INPUT,
    YOUTUBE_TAB,
)

LANDING = {BOOKMARKLET_BUTTON, SUBSCRIBE_BUTTON, SOURCE_TABS, YOUTUBE_TAB, MEDIA_TAB}
YOUTUBE_PANEL = {VIDEO_URL_INPUT, ADD_VIDEO_BUTTON}
MEDIA_PANEL = {MEDIA_INPUT}


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    async def is_visible(self) -> bool:
        return self.selector in self.page.visible

    async def is_hidden(self) -> bool:
        return self.selector not in self.page.visible

    async def click(self) -> None:
        if self.page.click_error is not None:
            raise self.page.click_error
        self.page.clicks.append(self.selector)
        self.page.switch_tab(self.selector)


class FakePage:
    def __init__(self, missing=(), goto_error=None, click_error=None, close_error=None, screenshot_error=None, switches_panels=True, goto_delay=0.0):
        self.missing = set(missing)
        self.visible: set[str] = set()
        self.goto_error = goto_error
        self.click_error = click_error
        self.close_error = close_error
        self.screenshot_error = screenshot_error
        self.switches_panels = switches_panels
        self.goto_delay = goto_delay
        self.urls: list[str] = []
        self.clicks: list[str] = []
        self.screenshots: list[str] = []
        self.closed = 0

    def _show(self, selectors):
        self.visible |= set(selectors) - self.missing

    def switch_tab(self, selector: str) -> None:
        if not self.switches_panels:
            return
        if selector == YOUTUBE_TAB:
            self.visible -= MEDIA_PANEL
            self._show(YOUTUBE_PANEL)
        elif selector == MEDIA_TAB:
            self.visible -= YOUTUBE_PANEL
            self._show(MEDIA_PANEL)

    async def goto(self, url: str) -> None:
        self.urls.append(url)
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error
        self._show(LANDING)

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def screenshot(self, path: str, full_page: bool = False) -> None:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        self.screenshots.append(path)

    async def close(self) -> None:
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    """Hands out a fresh FakePage per new_page() call, built from page_kwargs."""

    def __init__(self, **page_kwargs):
        self.page_kwargs = page_kwargs
        self.pages: list[FakePage] = []

    async def new_page(self) -> FakePage:
        page = FakePage(**self.page_kwargs)
        self.pages.append(page)
        return page

    @property
    def opened(self) -> int:
        return len(self.pages)

    @property
    def closed(self) -> int:
        return sum(p.closed for p in self.pages)
