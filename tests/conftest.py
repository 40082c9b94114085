"""Pytest configuration ensuring local packages are importable."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pytest

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from uxrunner.page_handle import ElementNotFound, HandleTimeout  # noqa: E402


class RecordingHandle:
    """In-memory page handle that records every call it receives."""

    def __init__(
        self,
        visible: Iterable[str] = (),
        *,
        hang_locate: bool = False,
        load_state_timeout: bool = False,
        screenshot_error: Optional[Exception] = None,
    ) -> None:
        self.visible = set(visible)
        self.hang_locate = hang_locate
        self.load_state_timeout = load_state_timeout
        self.screenshot_error = screenshot_error
        self.calls: List[Tuple[Any, ...]] = []

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def goto_url(self, url: str, timeout_ms: int) -> None:
        self.calls.append(("goto", url, timeout_ms))

    async def locate_first_match(self, selectors: Sequence[str], timeout_ms: int):
        self.calls.append(("locate", tuple(selectors), timeout_ms))
        if self.hang_locate:
            await asyncio.sleep(3600)
        for selector in selectors:
            if selector in self.visible:
                return f"element:{selector}", selector
        raise ElementNotFound(selectors, timeout_ms)

    async def wait_for_load_state(self, state: str, timeout_ms: int) -> None:
        self.calls.append(("load_state", state, timeout_ms))
        if self.load_state_timeout:
            raise HandleTimeout(f"{state} not reached")

    async def wait_for_function(self, script: str, timeout_ms: int) -> None:
        self.calls.append(("function", timeout_ms))

    async def click(self, element: Any, timeout_ms: int) -> None:
        self.calls.append(("click", element, timeout_ms))

    async def fill(self, element: Any, text: str, timeout_ms: int) -> None:
        self.calls.append(("fill", element, text, timeout_ms))

    async def set_viewport(self, width: int, height: int) -> None:
        self.calls.append(("viewport", width, height))

    async def screenshot(self, path: Path, *, full_page: bool = False) -> Path:
        self.calls.append(("screenshot", str(path)))
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return Path(path)


@pytest.fixture
def make_handle():
    return RecordingHandle
