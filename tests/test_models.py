import pytest
from pydantic import ValidationError

from uxrunner.results import RunReport, ScenarioResult, VisualDiff
from uxsteps.dsl import ActionDescriptor, ActionKind, Scenario, ScenarioStepResult, StepOutcome


def test_descriptor_rejects_non_positive_timeout():
    with pytest.raises(ValidationError):
        ActionDescriptor(kind=ActionKind.WAIT, timeout_ms=0)


def test_descriptor_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        ActionDescriptor(kind=ActionKind.CLICK, selector="button")


def test_step_result_ok_states():
    assert ScenarioStepResult(outcome=StepOutcome.SUCCESS, elapsed_ms=1).ok
    assert ScenarioStepResult(outcome=StepOutcome.UNKNOWN_STEP_KIND, elapsed_ms=0).ok
    assert not ScenarioStepResult(outcome=StepOutcome.TIMEOUT, elapsed_ms=0).ok


def test_scenario_drops_blank_steps_and_requires_name():
    assert Scenario(name=" Home ", steps=["a", "", "  b "]).steps == ["a", "b"]
    with pytest.raises(ValidationError):
        Scenario(name="   ")


def test_empty_report_is_not_success():
    assert RunReport(run_id="r").success is False


def test_summary_counts_visual_changes():
    changed = VisualDiff(status="changed", ratio=0.2, baseline="b.png")
    report = RunReport(
        run_id="r",
        results=[
            ScenarioResult(scenario="A", browser="chromium", viewport="v", status="passed", visual=changed),
            ScenarioResult(scenario="B", browser="chromium", viewport="v", status="passed"),
        ],
    )

    assert report.success
    assert report.summary() == {"total": 2, "passed": 2, "failed": 0, "visual_changes": 1}
