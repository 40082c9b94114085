"""Best-effort settle checks run after navigation and waits."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from .page_handle import PageHandle

log = logging.getLogger(__name__)

NETWORK_IDLE_CAP_MS = 5_000
ANIMATIONS_CAP_MS = 5_000
FRAMEWORK_MOUNT_CAP_MS = 3_000

# Slack on top of a sub-step cap before the wait itself is abandoned.
_CAP_SLACK_S = 0.5

ANIMATIONS_IDLE_SCRIPT = """
() => {
    if (typeof document.getAnimations !== 'function') return true;
    return document.getAnimations().every(a => a.playState !== 'running');
}
"""

FRAMEWORK_MOUNTED_SCRIPT = """
() => {
    const roots = document.querySelectorAll('#root, #__next, #app, #__nuxt, [data-reactroot], [ng-version]');
    if (roots.length === 0) return document.readyState === 'complete';
    return Array.from(roots).some(el => el.childElementCount > 0);
}
"""


async def _bounded(name: str, cap_ms: int, call: Callable[[], Awaitable[None]]) -> bool:
    """Run one settle sub-step inside its own time box; never raises."""

    try:
        await asyncio.wait_for(call(), timeout=cap_ms / 1000 + _CAP_SLACK_S)
        return True
    except Exception as exc:
        log.debug("Settle step %s skipped: %s", name, exc)
        return False


async def wait_network_idle(handle: PageHandle, timeout_ms: int = NETWORK_IDLE_CAP_MS) -> bool:
    return await _bounded("network_idle", timeout_ms, lambda: handle.wait_for_load_state("networkidle", timeout_ms))


async def wait_animations_finished(handle: PageHandle, timeout_ms: int = ANIMATIONS_CAP_MS) -> bool:
    return await _bounded("animations", timeout_ms, lambda: handle.wait_for_function(ANIMATIONS_IDLE_SCRIPT, timeout_ms))


async def wait_framework_mounted(handle: PageHandle, timeout_ms: int = FRAMEWORK_MOUNT_CAP_MS) -> bool:
    return await _bounded(
        "framework_mount", timeout_ms, lambda: handle.wait_for_function(FRAMEWORK_MOUNTED_SCRIPT, timeout_ms)
    )


async def settle_page(handle: PageHandle) -> Dict[str, bool]:
    """Let a freshly loaded page finish network, animation and mount work.

    Each check is independent: a check that times out is logged and the
    next one still runs.
    """

    return {
        "network_idle": await wait_network_idle(handle),
        "animations": await wait_animations_finished(handle),
        "framework_mount": await wait_framework_mounted(handle),
    }
