"""Narrow page-automation interface consumed by the action executor."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Protocol, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

log = logging.getLogger(__name__)

LOCATE_POLL_INTERVAL = 0.1


class HandleError(Exception):
    """Base class for failures reported by a page handle."""


class ElementNotFound(HandleError):
    def __init__(self, selectors: Sequence[str], timeout_ms: int) -> None:
        super().__init__(f"No candidate of {len(selectors)} matched a visible element within {timeout_ms} ms")
        self.selectors = list(selectors)
        self.timeout_ms = timeout_ms


class HandleTimeout(HandleError):
    """A page condition did not settle within its bound."""


class PageHandle(Protocol):
    async def goto_url(self, url: str, timeout_ms: int) -> None: ...

    async def locate_first_match(self, selectors: Sequence[str], timeout_ms: int) -> Tuple[Any, str]: ...

    async def wait_for_load_state(self, state: str, timeout_ms: int) -> None: ...

    async def wait_for_function(self, script: str, timeout_ms: int) -> None: ...

    async def click(self, element: Any, timeout_ms: int) -> None: ...

    async def fill(self, element: Any, text: str, timeout_ms: int) -> None: ...

    async def set_viewport(self, width: int, height: int) -> None: ...

    async def screenshot(self, path: Path, *, full_page: bool = False) -> Path: ...


class PlaywrightPageHandle:
    """:class:`PageHandle` backed by an async Playwright ``Page``.

    The handle is owned by exactly one sequential stream of steps; it keeps
    no state besides the page it wraps.
    """

    def __init__(self, page: Page) -> None:
        self.page = page

    async def goto_url(self, url: str, timeout_ms: int) -> None:
        try:
            await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise HandleTimeout(f"Navigation to {url} exceeded {timeout_ms} ms") from exc
        except PlaywrightError as exc:
            raise HandleError(f"Navigation to {url} failed: {exc}") from exc

    async def locate_first_match(self, selectors: Sequence[str], timeout_ms: int) -> Tuple[Locator, str]:
        """Poll the candidates in order until one resolves to a visible element.

        All candidates share one deadline, so the call never takes much
        longer than ``timeout_ms``.
        """

        deadline = time.monotonic() + timeout_ms / 1000
        pending = [selector for selector in selectors if selector]
        while pending:
            for selector in list(pending):
                locator = self.page.locator(selector).first
                try:
                    if await locator.is_visible():
                        return locator, selector
                except PlaywrightError as exc:
                    # Invalid selector syntax for this page; never retried.
                    log.debug("Dropping selector candidate %r: %s", selector, exc)
                    pending.remove(selector)
            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(LOCATE_POLL_INTERVAL)
        raise ElementNotFound(selectors, timeout_ms)

    async def wait_for_load_state(self, state: str, timeout_ms: int) -> None:
        try:
            await self.page.wait_for_load_state(state, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise HandleTimeout(f"Load state {state!r} not reached within {timeout_ms} ms") from exc
        except PlaywrightError as exc:
            raise HandleError(f"Waiting for load state {state!r} failed: {exc}") from exc

    async def wait_for_function(self, script: str, timeout_ms: int) -> None:
        try:
            await self.page.wait_for_function(script, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise HandleTimeout(f"Page condition not met within {timeout_ms} ms") from exc
        except PlaywrightError as exc:
            raise HandleError(f"Page condition check failed: {exc}") from exc

    async def click(self, element: Locator, timeout_ms: int) -> None:
        try:
            await element.wait_for(state="visible", timeout=timeout_ms)
            await element.click(timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise HandleTimeout(f"Click did not complete within {timeout_ms} ms") from exc
        except PlaywrightError as exc:
            raise HandleError(f"Click failed: {exc}") from exc

    async def fill(self, element: Locator, text: str, timeout_ms: int) -> None:
        try:
            await element.fill(text, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise HandleTimeout(f"Fill did not complete within {timeout_ms} ms") from exc
        except PlaywrightError as exc:
            raise HandleError(f"Fill failed: {exc}") from exc

    async def set_viewport(self, width: int, height: int) -> None:
        await self.page.set_viewport_size({"width": width, "height": height})

    async def screenshot(self, path: Path, *, full_page: bool = False) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=str(path), full_page=full_page)
        return path
