"""Browser-side execution of compiled UX steps."""

from .executor import ActionExecutor, NotFoundError, StepError, StepTimeoutError, UnknownStepKindError
from .scenario import ScenarioRunner

__all__ = [
    "ActionExecutor",
    "NotFoundError",
    "ScenarioRunner",
    "StepError",
    "StepTimeoutError",
    "UnknownStepKindError",
]
