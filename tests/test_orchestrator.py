from __future__ import annotations

import json
from pathlib import Path

from seedkit.control_plane import ControlPlaneError, DryRunControlPlane
from seedkit.models.llm_client import RemoteError, TransportError
from seedkit.orchestrator import Orchestrator, RunAction, RunState
from seedkit.personas import PersonaRole

from conftest import StubModelClient


def _orchestrator(tmp_path: Path, client: StubModelClient, plane: DryRunControlPlane) -> Orchestrator:
    return Orchestrator(
        client=client,
        control_plane=plane,
        owner="acme",
        scratch_path=tmp_path / "response.txt",
        logs_dir=tmp_path / "logs",
    )


def test_create_service_runs_through_every_state(tmp_path: Path, architect_response: str) -> None:
    client = StubModelClient(architect_response)
    plane = DryRunControlPlane()

    summary = _orchestrator(tmp_path, client, plane).run("architect", "Design a billing service")

    assert summary.state is RunState.DONE
    assert summary.transitions == [
        RunState.IDLE,
        RunState.GENERATING,
        RunState.EXTRACTING,
        RunState.PLANNING,
        RunState.EXECUTING,
        RunState.DONE,
    ]
    assert summary.directive is not None
    assert summary.directive.service_name == "billing-api"
    assert summary.result is not None and not summary.partial_failure
    assert plane.operations()[0] == "create_repository"
    assert plane.calls[0].repo == "billing-api"
    assert (tmp_path / "response.txt").read_text(encoding="utf-8") == architect_response


def test_persona_configuration_reaches_the_model(tmp_path: Path, architect_response: str) -> None:
    client = StubModelClient(architect_response)

    _orchestrator(tmp_path, client, DryRunControlPlane()).run(PersonaRole.REVIEWER, "Review this", "analyze")

    payload = client.payloads[0]
    assert payload["temperature"] == 0.3
    assert payload["system"].startswith("You are a QA Engineer persona")
    assert payload["messages"] == [{"role": "user", "content": "Review this"}]


def test_missing_service_name_aborts_without_control_plane_calls(tmp_path: Path) -> None:
    client = StubModelClient("A thoughtful essay with no structured fields.")
    plane = DryRunControlPlane()

    summary = _orchestrator(tmp_path, client, plane).run("architect", "Design something")

    assert summary.aborted
    assert summary.transitions[-2:] == [RunState.EXTRACTING, RunState.ABORTED]
    assert summary.error_kind == "ExtractionError"
    assert plane.calls == []
    assert (tmp_path / "response.txt").exists()


def test_invalid_service_name_aborts(tmp_path: Path) -> None:
    plane = DryRunControlPlane()

    summary = _orchestrator(tmp_path, StubModelClient("Service Name: acme/evil\n"), plane).run(
        "architect", "Design"
    )

    assert summary.aborted
    assert plane.calls == []


def test_model_failure_aborts_before_anything_else(tmp_path: Path) -> None:
    client = StubModelClient(error=RemoteError(401, "invalid x-api-key"))
    plane = DryRunControlPlane()

    summary = _orchestrator(tmp_path, client, plane).run("architect", "Design")

    assert summary.transitions == [RunState.IDLE, RunState.GENERATING, RunState.ABORTED]
    assert summary.error == "HTTP 401: invalid x-api-key"
    assert summary.error_kind == "RemoteError"
    assert plane.calls == []
    assert not (tmp_path / "response.txt").exists()


def test_analyze_stops_after_generation(tmp_path: Path, architect_response: str) -> None:
    plane = DryRunControlPlane()

    summary = _orchestrator(tmp_path, StubModelClient(architect_response), plane).run(
        "developer", "Implement issue #4", RunAction.ANALYZE
    )

    assert summary.state is RunState.DONE
    assert summary.transitions == [RunState.IDLE, RunState.GENERATING, RunState.DONE]
    assert summary.directive is None
    assert summary.response_text == architect_response
    assert plane.calls == []


def test_partial_failure_is_reported(tmp_path: Path, architect_response: str) -> None:
    class BrokenIssues(DryRunControlPlane):
        def create_issue(self, owner, repo, *, title, body, labels):  # type: ignore[override]
            raise ControlPlaneError("HTTP 410: Issues are disabled", status_code=410)

    summary = _orchestrator(tmp_path, StubModelClient(architect_response), BrokenIssues()).run(
        "architect", "Design"
    )

    assert summary.state is RunState.DONE
    assert summary.partial_failure
    assert summary.result is not None
    assert len(summary.result.failures) == len(summary.directive.features)


def test_run_log_is_written(tmp_path: Path, architect_response: str) -> None:
    summary = _orchestrator(tmp_path, StubModelClient(architect_response), DryRunControlPlane()).run(
        "architect", "Design"
    )

    assert summary.log_path is not None
    assert summary.log_path.parent == tmp_path / "logs"
    assert "billing-api" in summary.log_path.name
    entry = json.loads(summary.log_path.read_text(encoding="utf-8"))
    assert entry["state"] == "done"
    assert entry["persona"] == "architect"
    assert entry["directive"]["service_name"] == "billing-api"
    assert entry["result"]["status"] == "complete"


def test_aborted_run_is_logged_too(tmp_path: Path) -> None:
    client = StubModelClient(error=TransportError("timed out"))

    summary = _orchestrator(tmp_path, client, DryRunControlPlane()).run("qa", "Review")

    assert summary.log_path is not None
    entry = json.loads(summary.log_path.read_text(encoding="utf-8"))
    assert entry["state"] == "aborted"
    assert entry["error_kind"] == "TransportError"
    assert entry["persona"] == "reviewer"


def test_scratch_and_logs_are_optional(tmp_path: Path, architect_response: str) -> None:
    orchestrator = Orchestrator(
        client=StubModelClient(architect_response),
        control_plane=DryRunControlPlane(),
        owner="acme",
        scratch_path=None,
    )

    summary = orchestrator.run("architect", "Design")

    assert summary.scratch_path is None
    assert summary.log_path is None
    assert summary.state is RunState.DONE


def test_blank_service_name_field_aborts_without_control_plane_calls(tmp_path: Path) -> None:
    client = StubModelClient("**Service Name:** \n**Technology Stack:** node, postgres\n")
    plane = DryRunControlPlane()

    summary = _orchestrator(tmp_path, client, plane).run("architect", "Design something")

    assert summary.aborted
    assert summary.error_kind == "ExtractionError"
    assert summary.directive is not None and summary.directive.service_name == ""
    assert plane.calls == []
