"""Result models produced by scenario and matrix runs."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from uxsteps.dsl import ScenarioStepResult


class VisualDiff(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Literal["new", "match", "changed"]
    ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    baseline: str
    diff_image: Optional[str] = None


class ScenarioResult(BaseModel):
    """Outcome of one scenario on one (browser, viewport) unit."""

    model_config = ConfigDict(extra="forbid")

    scenario: str
    browser: str
    viewport: str
    status: Literal["passed", "failed"]
    steps: List[ScenarioStepResult] = Field(default_factory=list)
    skipped_steps: int = 0
    screenshot: Optional[str] = None
    diagnostic_screenshot: Optional[str] = None
    visual: Optional[VisualDiff] = None
    error: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def passed(self) -> bool:
        return self.status == "passed"


class RunReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    run_id: str
    results: List[ScenarioResult] = Field(default_factory=list)
    log_path: Optional[str] = None

    @property
    def success(self) -> bool:
        return bool(self.results) and all(result.passed for result in self.results)

    def summary(self) -> Dict[str, Any]:
        failed = [result for result in self.results if not result.passed]
        return {
            "total": len(self.results),
            "passed": len(self.results) - len(failed),
            "failed": len(failed),
            "visual_changes": sum(1 for r in self.results if r.visual and r.visual.status == "changed"),
        }

    def to_payload(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["success"] = self.success
        data["summary"] = self.summary()
        return data
