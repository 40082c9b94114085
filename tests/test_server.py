from __future__ import annotations

import pytest

from uxrunner import server
from uxrunner.results import RunReport, ScenarioResult


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("UXSTEPS_BROWSERS", raising=False)
    return server.app.test_client()


def test_healthz(client) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_parse_returns_actions(client) -> None:
    response = client.post(
        "/parse",
        json={"steps": ["Navigate to /login", "  ", "Fill email field with a@b.c"], "base_url": "http://localhost:3000"},
    )

    assert response.status_code == 200
    actions = response.get_json()["actions"]
    assert [action["kind"] for action in actions] == ["navigate", "fill"]
    assert actions[0]["target"] == "http://localhost:3000/login"
    assert actions[0]["selectors"] == []
    assert actions[1]["value"] == "a@b.c"


def test_parse_accepts_single_string(client) -> None:
    response = client.post("/parse", json={"steps": "Take a screenshot"})
    assert response.get_json()["actions"][0]["kind"] == "screenshot"


@pytest.mark.parametrize("payload", [{}, {"steps": [1, 2]}, {"steps": {"a": "b"}}])
def test_parse_rejects_bad_payload(client, payload) -> None:
    response = client.post("/parse", json=payload)
    assert response.status_code == 400
    assert response.get_json() == {"error": "steps must be a list of strings"}


def test_resolve(client) -> None:
    response = client.post("/resolve", json={"description": "the login button"})
    assert response.status_code == 200
    assert response.get_json()["selectors"][0] == '[data-testid*="login" i]'


def test_resolve_field(client) -> None:
    response = client.post("/resolve", json={"description": "email", "field": True})
    assert response.get_json()["selectors"][0] == 'input[type="email"]'


def test_resolve_requires_description(client) -> None:
    response = client.post("/resolve", json={"description": None})
    assert response.status_code == 400


def test_run_invokes_matrix_with_overrides(client, monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    async def fake_run_matrix(scenarios, config, *, run_id=None):
        captured["scenarios"] = scenarios
        captured["config"] = config
        captured["run_id"] = run_id
        return RunReport(
            run_id=run_id or "run-x",
            results=[ScenarioResult(scenario="Home", browser="webkit", viewport="phone-390x844", status="passed")],
        )

    monkeypatch.setattr(server, "run_matrix", fake_run_matrix)

    response = client.post(
        "/run",
        json={
            "scenarios": [{"name": "Home", "base_url": "http://localhost", "steps": ["Navigate to /"]}],
            "browsers": ["webkit"],
            "viewports": "phone=390x844",
            "halt_on_failure": False,
            "run_id": "run-42",
        },
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["run_id"] == "run-42"
    assert body["success"] is True
    assert body["summary"]["total"] == 1
    assert captured["scenarios"][0].name == "Home"
    assert captured["config"].browsers == ["webkit"]
    assert captured["config"].halt_on_failure is False
    assert captured["config"].viewports[0].label == "phone-390x844"


def test_run_rejects_invalid_scenarios(client) -> None:
    response = client.post("/run", json={"scenarios": [{"name": "  "}]})

    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "invalid scenario"
    assert body["details"]


def test_run_rejects_unknown_browser(client) -> None:
    response = client.post("/run", json={"scenarios": [{"name": "Home"}], "browsers": ["lynx"]})

    assert response.status_code == 400
    assert "lynx" in response.get_json()["error"]


def test_run_requires_scenarios(client) -> None:
    response = client.post("/run", json={"scenarios": []})
    assert response.status_code == 400


def test_unknown_route_stays_404(client) -> None:
    assert client.get("/nope").status_code == 404


@pytest.mark.parametrize("run_id", ["../../escaped", "a/b", "..", 7, "run\n"])
def test_run_rejects_unsafe_run_id(client, monkeypatch: pytest.MonkeyPatch, tmp_path, run_id) -> None:
    called = []

    async def fake_run_matrix(scenarios, config, *, run_id=None):
        called.append(run_id)
        return RunReport(run_id="unused")

    monkeypatch.setattr(server, "run_matrix", fake_run_matrix)

    response = client.post("/run", json={"scenarios": [{"name": "Home"}], "run_id": run_id})

    assert response.status_code == 400
    assert "Invalid run id" in response.get_json()["error"]
    assert called == []
    assert not (tmp_path.parent / "escaped").exists()
