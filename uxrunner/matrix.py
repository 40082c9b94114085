"""Fan scenarios out over browser and viewport combinations."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from playwright.async_api import async_playwright

from uxsteps.dsl import Scenario, Viewport

from .config import RunConfig, ensure_run_directories
from .page_handle import PlaywrightPageHandle
from .results import RunReport, ScenarioResult
from .scenario import ScenarioRunner
from .structured_logging import StructuredLogger, prepare_log_paths

log = logging.getLogger(__name__)


async def run_unit(
    browser: Any,
    browser_name: str,
    viewport: Viewport,
    scenario: Scenario,
    config: RunConfig,
    *,
    shots_dir: Path,
    logger: Optional[StructuredLogger] = None,
) -> ScenarioResult:
    """Run one scenario in a fresh browser context owned by this unit alone."""

    context = None
    try:
        context = await browser.new_context(viewport={"width": viewport.width, "height": viewport.height})
        page = await context.new_page()
        runner = ScenarioRunner(PlaywrightPageHandle(page), config, shots_dir=shots_dir, logger=logger)
        return await runner.run(scenario, viewport=viewport, browser=browser_name)
    except Exception as exc:
        log.exception("Scenario %s crashed on %s/%s", scenario.name, browser_name, viewport.label)
        return ScenarioResult(
            scenario=scenario.name,
            browser=browser_name,
            viewport=viewport.label,
            status="failed",
            error=str(exc),
        )
    finally:
        if context is not None:
            try:
                await context.close()
            except Exception as exc:
                log.warning("Closing context for %s on %s failed: %s", scenario.name, browser_name, exc)


async def run_units(
    browsers: Dict[str, Any],
    scenarios: Sequence[Scenario],
    config: RunConfig,
    *,
    shots_dir: Path,
    logger: Optional[StructuredLogger] = None,
) -> List[ScenarioResult]:
    """Run every (browser, viewport, scenario) unit, at most ``max_workers`` at once.

    Results keep the browser → viewport → scenario order regardless of
    completion order.
    """

    semaphore = asyncio.Semaphore(config.max_workers)

    async def _guarded(browser_name: str, viewport: Viewport, scenario: Scenario) -> ScenarioResult:
        async with semaphore:
            return await run_unit(
                browsers[browser_name], browser_name, viewport, scenario, config, shots_dir=shots_dir, logger=logger
            )

    tasks = [
        _guarded(browser_name, viewport, scenario)
        for browser_name in browsers
        for viewport in config.viewports
        for scenario in scenarios
    ]
    return list(await asyncio.gather(*tasks))


async def run_matrix(scenarios: Sequence[Scenario], config: RunConfig, *, run_id: Optional[str] = None) -> RunReport:
    """Launch the configured browsers and run all scenarios on every viewport."""

    run_id = run_id or f"run-{int(time.time())}"
    dirs = ensure_run_directories(run_id, config)
    paths = prepare_log_paths(dirs["base"])
    logger = StructuredLogger(run_id, paths)
    try:
        async with async_playwright() as playwright:
            browsers: Dict[str, Any] = {}
            try:
                for name in config.browsers:
                    browsers[name] = await getattr(playwright, name).launch(headless=config.headless)
                results = await run_units(browsers, scenarios, config, shots_dir=paths.shots, logger=logger)
            finally:
                for browser in browsers.values():
                    await browser.close()
    finally:
        logger.close()
    report = RunReport(run_id=run_id, results=results, log_path=str(paths.events))
    log.info("Run %s finished: %s", run_id, report.summary())
    return report


def write_report(report: RunReport, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(report.to_payload(), fh, ensure_ascii=False, indent=2)
    return path
