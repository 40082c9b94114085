"""Sequential execution of one scenario on one page."""

from __future__ import annotations

import json
import logging
import time
import tomllib
from pathlib import Path
from typing import Any, List, Optional

from uxsteps.dsl import Scenario, ScenarioStepResult, StepParser, Viewport
from uxsteps.dsl.parser import default_parser

from .config import RunConfig
from .executor import ActionExecutor
from .page_handle import PageHandle
from .results import ScenarioResult, VisualDiff
from .structured_logging import StructuredLogger
from .visual import baseline_path, compare_screenshots

log = logging.getLogger(__name__)


def unit_name(scenario: Scenario, browser: str, viewport: Viewport) -> str:
    return f"{browser}-{viewport.label}-{scenario.slug}"


class ScenarioRunner:
    """Run a scenario's steps strictly in order against one page handle.

    With ``halt_on_failure`` the first failed step ends the scenario, since
    later steps usually depend on the state the failed step should have
    produced.  A failed scenario still gets a diagnostic screenshot when the
    page allows it.
    """

    def __init__(
        self,
        handle: PageHandle,
        config: RunConfig,
        *,
        shots_dir: Path,
        logger: Optional[StructuredLogger] = None,
        parser: StepParser = default_parser,
        executor: Optional[ActionExecutor] = None,
    ) -> None:
        self.handle = handle
        self.config = config
        self.shots_dir = Path(shots_dir)
        self.logger = logger
        self.parser = parser
        self.executor = executor or ActionExecutor(
            handle, settle=config.settle, click_settle_ms=config.click_settle_ms
        )

    async def run(self, scenario: Scenario, *, viewport: Viewport, browser: str = "chromium") -> ScenarioResult:
        started = time.monotonic()
        unit = unit_name(scenario, browser, viewport)
        await self.handle.set_viewport(viewport.width, viewport.height)

        descriptors = self.parser.parse_all(scenario.steps, scenario.base_url)
        steps: List[ScenarioStepResult] = []
        failure: Optional[ScenarioStepResult] = None
        skipped = 0
        for index, descriptor in enumerate(descriptors, start=1):
            result = await self.executor.execute(descriptor)
            steps.append(result)
            if self.logger is not None:
                self.logger.log_event(
                    unit=unit,
                    step_index=index,
                    action=descriptor.payload(),
                    result=result.model_dump(mode="json"),
                )
            if not result.ok:
                failure = failure or result
                if self.config.halt_on_failure:
                    skipped = len(descriptors) - index
                    break

        screenshot: Optional[Path] = None
        diagnostic: Optional[Path] = None
        visual: Optional[VisualDiff] = None
        if failure is not None:
            diagnostic = await self._safe_screenshot(self.shots_dir / f"{unit}-failure.png")
        else:
            screenshot = await self._safe_screenshot(self.shots_dir / f"{unit}.png")
            if screenshot is not None and self.config.baseline_root is not None:
                visual = self._compare(self.config.baseline_root, screenshot, scenario, browser, viewport)

        status = "failed" if failure is not None else "passed"
        log.info("Scenario %s finished: %s (%d steps, %d skipped)", unit, status, len(steps), skipped)
        return ScenarioResult(
            scenario=scenario.name,
            browser=browser,
            viewport=viewport.label,
            status=status,
            steps=steps,
            skipped_steps=skipped,
            screenshot=str(screenshot) if screenshot else None,
            diagnostic_screenshot=str(diagnostic) if diagnostic else None,
            visual=visual,
            error=failure.error if failure is not None else None,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )

    async def _safe_screenshot(self, path: Path) -> Optional[Path]:
        # A screenshot failure must not hide the scenario's own result.
        try:
            return await self.handle.screenshot(path)
        except Exception as exc:
            log.warning("Screenshot %s could not be captured: %s", path, exc)
            return None

    def _compare(
        self, root: Path, screenshot: Path, scenario: Scenario, browser: str, viewport: Viewport
    ) -> Optional[VisualDiff]:
        baseline = baseline_path(root, browser, viewport.label, scenario.slug)
        try:
            return compare_screenshots(screenshot, baseline, threshold=self.config.visual_threshold)
        except (OSError, ValueError) as exc:
            log.warning("Visual comparison for %s failed: %s", screenshot, exc)
            return None


def load_scenarios(path: Path) -> List[Scenario]:
    """Read scenarios from a JSON or TOML file.

    JSON may hold one scenario object, a list of them, or an object with a
    ``scenarios`` list; TOML uses ``[[scenarios]]`` tables.
    """

    path = Path(path)
    if path.suffix.lower() == ".toml":
        with path.open("rb") as fh:
            data: Any = tomllib.load(fh)
    else:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("scenarios", [data])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a scenario object or a list of scenarios")
    return [Scenario.model_validate(item) for item in data]
