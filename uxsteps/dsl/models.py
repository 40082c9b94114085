"""Typed models for parsed UX steps and their execution results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionKind(str, Enum):
    """Closed vocabulary of browser actions a step can compile to."""
    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    EXPECT = "expect"


class StepOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    UNKNOWN_STEP_KIND = "unknown_step_kind"


NAVIGATE_TIMEOUT_MS = 30_000
CLICK_TIMEOUT_MS = 10_000
FILL_TIMEOUT_MS = 5_000
LOAD_STATE_TIMEOUT_MS = 30_000
WAIT_SELECTOR_TIMEOUT_MS = 10_000
FALLBACK_WAIT_TIMEOUT_MS = 5_000
EXPECT_TIMEOUT_MS = 5_000

LOAD_STATES = ("load", "networkidle")


class ActionDescriptor(BaseModel):
    """A single executable action compiled from one instruction string.

    ``target`` carries the resolved URL for navigation, the load state for
    load-state waits and the free-text element description otherwise.
    ``selectors`` holds the ordered candidate locators to try for element
    actions; it is empty for navigation, load-state waits and screenshots.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ActionKind
    target: Optional[str] = None
    selectors: Tuple[str, ...] = ()
    value: Optional[str] = None
    timeout_ms: int = Field(default=FALLBACK_WAIT_TIMEOUT_MS, gt=0)
    source: str = ""

    @property
    def is_load_state_wait(self) -> bool:
        return self.kind is ActionKind.WAIT and self.target in LOAD_STATES

    @property
    def is_complete_fill(self) -> bool:
        return self.kind is ActionKind.FILL and self.target is not None and self.value is not None

    def payload(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude_none=True)
        data["selectors"] = list(self.selectors)
        return data


class ScenarioStepResult(BaseModel):
    """Outcome of executing one descriptor against a page."""

    model_config = ConfigDict(extra="forbid")

    outcome: StepOutcome
    elapsed_ms: int = Field(ge=0)
    step: str = ""
    kind: Optional[ActionKind] = None
    selector: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        # An unknown kind is executed as a no-op and does not fail the scenario.
        return self.outcome in (StepOutcome.SUCCESS, StepOutcome.UNKNOWN_STEP_KIND)


class Viewport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def label(self) -> str:
        return f"{self.name}-{self.width}x{self.height}"


DEFAULT_VIEWPORTS: List[Viewport] = [
    Viewport(name="desktop", width=1920, height=1080),
    Viewport(name="tablet", width=768, height=1024),
    Viewport(name="mobile", width=375, height=667),
]


class Scenario(BaseModel):
    """An ordered list of free-text steps run against one base URL."""

    model_config = ConfigDict(extra="forbid")

    name: str
    base_url: str = ""
    steps: List[str] = Field(default_factory=list)
    page: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("scenario name must not be empty")
        return value

    @field_validator("steps")
    @classmethod
    def _drop_blank_steps(cls, value: List[str]) -> List[str]:
        steps = [str(step).strip() for step in value]
        return [step for step in steps if step]

    @property
    def slug(self) -> str:
        cleaned = "".join(ch if ch.isalnum() else "-" for ch in self.name.lower())
        return "-".join(part for part in cleaned.split("-") if part) or "scenario"
