"""Execute parsed step descriptors against an injected page handle."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple

from uxsteps.dsl import ActionDescriptor, ActionKind, ScenarioStepResult, StepOutcome

from .page_handle import ElementNotFound, HandleError, HandleTimeout, PageHandle
from .page_stability import settle_page

log = logging.getLogger(__name__)

# Fixed allowance on top of a descriptor's timeout before the step is abandoned.
STEP_OVERHEAD_MS = 1_000
CLICK_SETTLE_MS = 1_000


class StepError(Exception):
    outcome: StepOutcome = StepOutcome.TIMEOUT

    def __init__(self, message: str, *, code: str = "STEP_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class NotFoundError(StepError):
    """No selector candidate resolved within the step timeout."""

    outcome = StepOutcome.NOT_FOUND


class StepTimeoutError(StepError):
    """A resolvable element or page condition did not settle in time."""

    outcome = StepOutcome.TIMEOUT


class UnknownStepKindError(StepError):
    outcome = StepOutcome.UNKNOWN_STEP_KIND


Handler = Callable[[ActionDescriptor], Awaitable[Optional[str]]]


class ActionExecutor:
    """Perform one descriptor at a time against a page handle.

    The executor keeps no state between steps.  The caller owns the handle
    and must not feed it from more than one step stream.
    """

    def __init__(
        self,
        handle: PageHandle,
        *,
        settle: bool = True,
        click_settle_ms: int = CLICK_SETTLE_MS,
        overhead_ms: int = STEP_OVERHEAD_MS,
    ) -> None:
        self.handle = handle
        self.settle = settle
        self.click_settle_ms = click_settle_ms
        self.overhead_ms = overhead_ms
        self._handlers: Dict[ActionKind, Handler] = {
            ActionKind.NAVIGATE: self._navigate,
            ActionKind.CLICK: self._click,
            ActionKind.FILL: self._fill,
            ActionKind.WAIT: self._wait,
            ActionKind.SCREENSHOT: self._screenshot,
            ActionKind.EXPECT: self._expect,
        }

    async def perform(self, descriptor: ActionDescriptor) -> Optional[str]:
        """Run the descriptor; return the selector that matched, if any.

        Raises :class:`NotFoundError`, :class:`StepTimeoutError` or
        :class:`UnknownStepKindError`.
        """

        handler = self._handlers.get(descriptor.kind)
        if handler is None:
            raise UnknownStepKindError(f"Unsupported step kind {descriptor.kind!r}", code="UNKNOWN_STEP_KIND")
        return await handler(descriptor)

    async def execute(self, descriptor: ActionDescriptor) -> ScenarioStepResult:
        """Like :meth:`perform`, but report step failures as a result."""

        started = time.monotonic()
        selector: Optional[str] = None
        error: Optional[str] = None
        outcome = StepOutcome.SUCCESS
        try:
            selector = await self.perform(descriptor)
        except UnknownStepKindError as exc:
            log.warning("Skipping step %r: %s", descriptor.source, exc)
            outcome = exc.outcome
            error = str(exc)
        except StepError as exc:
            log.warning("Step %r failed (%s): %s", descriptor.source, exc.code, exc)
            outcome = exc.outcome
            error = str(exc)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return ScenarioStepResult(
            outcome=outcome,
            elapsed_ms=elapsed_ms,
            step=descriptor.source,
            kind=descriptor.kind,
            selector=selector,
            error=error,
        )

    def _bound_s(self, descriptor: ActionDescriptor) -> float:
        return (descriptor.timeout_ms + self.overhead_ms) / 1000

    async def _run_bounded(self, descriptor: ActionDescriptor, operation: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(operation, timeout=self._bound_s(descriptor))
        except asyncio.TimeoutError as exc:
            raise StepTimeoutError(
                f"Step exceeded {descriptor.timeout_ms} ms", code="TIMEOUT", details={"step": descriptor.source}
            ) from exc
        except ElementNotFound as exc:
            raise NotFoundError(str(exc), code="NOT_FOUND", details={"selectors": exc.selectors}) from exc
        except HandleTimeout as exc:
            raise StepTimeoutError(str(exc), code="TIMEOUT") from exc
        except HandleError as exc:
            raise StepTimeoutError(f"Page error: {exc}", code="PAGE_ERROR") from exc

    async def _locate(self, descriptor: ActionDescriptor) -> Tuple[Any, str]:
        selectors: Sequence[str] = descriptor.selectors
        if not selectors:
            raise NotFoundError(f"Step {descriptor.source!r} has no selector candidates", code="NOT_FOUND")
        try:
            return await self._run_bounded(
                descriptor, self.handle.locate_first_match(selectors, descriptor.timeout_ms)
            )
        except StepTimeoutError as exc:
            # The handle never answered; no candidate resolved within the bound.
            raise NotFoundError(str(exc), code="NOT_FOUND", details={"selectors": list(selectors)}) from exc

    async def _settle(self) -> None:
        if self.settle:
            await settle_page(self.handle)

    async def _navigate(self, descriptor: ActionDescriptor) -> Optional[str]:
        await self._run_bounded(descriptor, self.handle.goto_url(descriptor.target or "", descriptor.timeout_ms))
        await self._settle()
        return None

    async def _click(self, descriptor: ActionDescriptor) -> Optional[str]:
        element, selector = await self._locate(descriptor)
        await self._run_bounded(descriptor, self.handle.click(element, descriptor.timeout_ms))
        if self.click_settle_ms > 0:
            await asyncio.sleep(self.click_settle_ms / 1000)
        return selector

    async def _fill(self, descriptor: ActionDescriptor) -> Optional[str]:
        if not descriptor.is_complete_fill:
            log.warning("Fill step %r is missing a field or value; skipped", descriptor.source)
            return None
        element, selector = await self._locate(descriptor)
        await self._run_bounded(descriptor, self.handle.fill(element, descriptor.value or "", descriptor.timeout_ms))
        return selector

    async def _wait(self, descriptor: ActionDescriptor) -> Optional[str]:
        selector: Optional[str] = None
        if descriptor.is_load_state_wait:
            await self._run_bounded(
                descriptor, self.handle.wait_for_load_state(descriptor.target or "load", descriptor.timeout_ms)
            )
        else:
            _, selector = await self._locate(descriptor)
        await self._settle()
        return selector

    async def _screenshot(self, descriptor: ActionDescriptor) -> Optional[str]:
        # Captured per scenario by the runner, not per step.
        return None

    async def _expect(self, descriptor: ActionDescriptor) -> Optional[str]:
        _, selector = await self._locate(descriptor)
        return selector
