import json

import pytest

from uxrunner import cli
from uxrunner.results import RunReport, ScenarioResult


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("UXSTEPS_OUTPUT_ROOT", str(tmp_path / "runs"))


def test_parse_prints_actions(capsys):
    code = cli.main(["parse", "Navigate to /a", "Click the submit button", "--base-url", "http://h"])

    assert code == 0
    actions = json.loads(capsys.readouterr().out)
    assert actions[0]["target"] == "http://h/a"
    assert actions[1]["kind"] == "click"


def test_resolve_prints_one_selector_per_line(capsys):
    assert cli.main(["resolve", "the footer"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == '[data-testid*="footer" i]'
    assert lines[-1] == '[aria-label*="the footer" i]'


def test_resolve_field_flag(capsys):
    cli.main(["resolve", "--field", "password"])
    assert capsys.readouterr().out.splitlines()[0] == 'input[type="password"]'


def _fake_matrix(status, captured):
    async def fake_run_matrix(scenarios, config, *, run_id=None):
        captured["scenarios"] = scenarios
        return RunReport(
            run_id=run_id or "run-1",
            results=[
                ScenarioResult(scenario=s.name, browser="chromium", viewport="desktop-1920x1080", status=status)
                for s in scenarios
            ],
        )

    return fake_run_matrix


def test_run_writes_report_and_exit_code(monkeypatch, tmp_path, capsys):
    captured = {}
    monkeypatch.setattr(cli, "run_matrix", _fake_matrix("passed", captured))
    scenario_file = tmp_path / "home.json"
    scenario_file.write_text(json.dumps({"name": "Home", "steps": ["Navigate to /"]}), encoding="utf-8")

    code = cli.main(["run", str(scenario_file), "--run-id", "r1", "--base-url", "http://staging"])

    assert code == 0
    report_path = tmp_path / "runs" / "r1" / "report.json"
    assert json.loads(report_path.read_text(encoding="utf-8"))["success"] is True
    assert captured["scenarios"][0].base_url == "http://staging"
    assert "1/1 scenario runs passed" in capsys.readouterr().out


def test_run_failure_exit_code(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "run_matrix", _fake_matrix("failed", {}))
    scenario_file = tmp_path / "home.json"
    scenario_file.write_text(json.dumps({"name": "Home"}), encoding="utf-8")
    report = tmp_path / "custom" / "r.json"

    assert cli.main(["run", str(scenario_file), "--report", str(report)]) == 1
    assert report.exists()


def test_run_missing_file_is_usage_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", str(tmp_path / "missing.json")])
    assert excinfo.value.code == 2


def test_run_invalid_scenario_is_usage_error(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"name": ""}), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", str(bad)])
    assert excinfo.value.code == 2


def test_run_rejects_unsafe_run_id(tmp_path):
    scenario_file = tmp_path / "home.json"
    scenario_file.write_text(json.dumps({"name": "Home"}), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", str(scenario_file), "--run-id", "../elsewhere"])
    assert excinfo.value.code == 2
