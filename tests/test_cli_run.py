from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from seedkit import cli
from seedkit.cli import EXIT_ABORTED, EXIT_PARTIAL_FAILURE, app
from seedkit.control_plane import ControlPlaneError, DryRunControlPlane

from conftest import ARCHITECT_RESPONSE, StubModelClient


@pytest.fixture()
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("ANTHROPIC_API_KEY", "ORG_ADMIN_TOKEN", "GITHUB_REPOSITORY_OWNER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITHUB_ORG", "acme")
    (tmp_path / "prompt.txt").write_text("Design a billing service.\n", encoding="utf-8")
    return tmp_path


def _stub_model(monkeypatch: pytest.MonkeyPatch, text: str = ARCHITECT_RESPONSE) -> StubModelClient:
    client = StubModelClient(text)
    monkeypatch.setattr(cli, "_build_model_client", lambda settings: client)
    return client


def test_missing_api_key_is_a_configuration_error(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["run", "architect", "prompt.txt", "analyze"])

    assert result.exit_code == 1
    assert "ANTHROPIC_API_KEY" in result.output


def test_missing_prompt_argument_is_a_usage_error(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["run", "architect"])
    assert result.exit_code == 2


def test_unknown_persona_is_a_usage_error(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["run", "manager", "prompt.txt"])
    assert result.exit_code == 2


def test_create_service_requires_architect(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _stub_model(monkeypatch)

    result = CliRunner().invoke(app, ["run", "qa", "prompt.txt", "create-service", "--dry-run"])

    assert result.exit_code == 2
    assert client.payloads == []


def test_analyze_prints_response_and_saves_scratch(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _stub_model(monkeypatch)
    scratch = workspace / "out" / "response.txt"

    result = CliRunner().invoke(
        app,
        ["run", "developer", "prompt.txt", "--scratch", str(scratch)],
        catch_exceptions=False,
    )

    assert result.exit_code == 0, result.output
    assert "Service Name: billing-api" in result.output
    assert "- State: done" in result.output
    assert scratch.read_text(encoding="utf-8") == ARCHITECT_RESPONSE
    assert client.payloads[0]["temperature"] == 0.5


def test_create_service_dry_run(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _stub_model(monkeypatch)

    result = CliRunner().invoke(
        app,
        ["run", "architect", "prompt.txt", "create-service", "--dry-run", "--scratch", str(workspace / "r.txt")],
        catch_exceptions=False,
    )

    assert result.exit_code == 0, result.output
    assert "- Service: billing-api" in result.output
    assert "repository billing-api" in result.output
    assert "Provisioning status: complete" in result.output


def test_create_service_without_service_name_aborts(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _stub_model(monkeypatch, "No structured fields at all.")

    result = CliRunner().invoke(
        app,
        ["run", "architect", "prompt.txt", "create-service", "--dry-run", "--scratch", str(workspace / "r.txt")],
    )

    assert result.exit_code == EXIT_ABORTED
    assert "ExtractionError" in result.output


def test_partial_failure_exit_code(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class NoLabels(DryRunControlPlane):
        def create_label(self, owner, repo, *, name, color, description):  # type: ignore[override]
            raise ControlPlaneError("HTTP 500: boom", status_code=500)

    _stub_model(monkeypatch)
    monkeypatch.setattr(cli, "_build_control_plane", lambda settings, *, dry_run: NoLabels())

    result = CliRunner().invoke(
        app,
        ["run", "architect", "prompt.txt", "create-service", "--scratch", str(workspace / "r.txt")],
    )

    assert result.exit_code == EXIT_PARTIAL_FAILURE
    assert "Failed steps:" in result.output
    assert "Provisioning status: partial_failure" in result.output


def test_run_log_directory_from_config(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _stub_model(monkeypatch)
    logs = workspace / "logs"
    (workspace / "seedkit.yaml").write_text(
        yaml.safe_dump({"paths": {"logs": str(logs), "scratch_response": str(workspace / "r.txt")}}),
        encoding="utf-8",
    )

    result = CliRunner().invoke(app, ["run", "architect", "prompt.txt", "create-service", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert len(list(logs.glob("run-*-billing-api.json"))) == 1


def test_plan_command_lists_steps(workspace: Path) -> None:
    response = workspace / "response.txt"
    response.write_text(ARCHITECT_RESPONSE, encoding="utf-8")

    result = CliRunner().invoke(app, ["plan", str(response)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "Planned steps for acme/billing-api:" in result.output
    assert "create_repository" in result.output
    assert "ci config .github/workflows/ci.yml (node)" in result.output


def test_plan_command_reports_extraction_failure(workspace: Path) -> None:
    response = workspace / "response.txt"
    response.write_text("Service Name: not/valid\n", encoding="utf-8")

    result = CliRunner().invoke(app, ["plan", str(response)])

    assert result.exit_code == EXIT_ABORTED
    assert "Extraction failed" in result.output


def test_create_repo_dry_run(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["create-repo", "svc", "--dry-run"], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "label qa-approved: success" in result.output
    assert "Repository creation complete: acme/svc" in result.output


def test_create_repo_rejects_invalid_name(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["create-repo", "bad/name", "--dry-run"])
    assert result.exit_code == 2


def test_create_repo_needs_token_without_dry_run(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["create-repo", "svc"])

    assert result.exit_code == 1
    assert "ORG_ADMIN_TOKEN" in result.output


def test_init_config_refuses_to_overwrite(workspace: Path) -> None:
    runner = CliRunner()

    first = runner.invoke(app, ["init-config"], catch_exceptions=False)
    second = runner.invoke(app, ["init-config"])

    assert first.exit_code == 0, first.output
    assert (workspace / "seedkit.yaml").exists()
    assert second.exit_code == 1
    assert "--force" in second.output
