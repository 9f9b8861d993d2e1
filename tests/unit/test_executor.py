from __future__ import annotations

from typing import Sequence

from seedkit.control_plane import ControlPlaneError, DryRunControlPlane, RecordedCall, ResourceConflictError
from seedkit.planning.executor import ProvisioningExecutor, ProvisioningStatus, ProvisioningStepError
from seedkit.planning.planner import ProvisioningPlanner
from seedkit.planning.schemas import FeatureDirective, ProvisioningDirective
from seedkit.planning.steps import (
    CreateIssue,
    CreateLabel,
    CreateRepository,
    ProvisioningStep,
    StepOutcome,
    StepPolicy,
    WriteFile,
)


class FailingControlPlane(DryRunControlPlane):
    """Dry-run plane that fails selected operations."""

    def __init__(self, *, fail_label: str | None = None, fail_path: str | None = None) -> None:
        super().__init__()
        self._fail_label = fail_label
        self._fail_path = fail_path

    def create_label(self, owner: str, repo: str, *, name: str, color: str, description: str) -> None:
        if name == self._fail_label:
            self.calls.append(RecordedCall("create_label", owner, repo, {"name": name}))
            raise ControlPlaneError("HTTP 500: Server Error", status_code=500)
        super().create_label(owner, repo, name=name, color=color, description=description)

    def put_file(self, owner: str, repo: str, path: str, *, message: str, content: str) -> None:
        if path == self._fail_path:
            raise ControlPlaneError("HTTP 403: Resource not accessible by integration", status_code=403)
        super().put_file(owner, repo, path, message=message, content=content)


def _plan(features: Sequence[FeatureDirective] = ()) -> list[ProvisioningStep]:
    directive = ProvisioningDirective(service_name="billing-api", tech_stack=["node"], features=list(features))
    return ProvisioningPlanner().plan(directive)


FEATURES = [
    FeatureDirective(title="One", description="first"),
    FeatureDirective(title="Two", description="second"),
]


def test_all_steps_succeed() -> None:
    plane = DryRunControlPlane()
    steps = _plan(FEATURES)

    result = ProvisioningExecutor("acme").execute(steps, plane)

    assert result.status is ProvisioningStatus.COMPLETE
    assert [entry.outcome for entry in result.entries] == [StepOutcome.SUCCESS] * len(steps)
    assert plane.operations()[0] == "create_repository"
    assert plane.calls[0].owner == "acme"
    assert plane.files[("acme", "billing-api", ".github/workflows/ci.yml")]


def test_repository_conflict_aborts_plan() -> None:
    plane = DryRunControlPlane(existing_repositories=["acme/billing-api"])

    result = ProvisioningExecutor("acme").execute(_plan(FEATURES), plane)

    assert result.status is ProvisioningStatus.PARTIAL_FAILURE
    assert result.aborted
    assert len(result.entries) == 1
    assert result.entries[0].outcome is StepOutcome.FAILED
    assert "repository billing-api" in (result.entries[0].reason or "")
    assert plane.operations() == ["create_repository"]


def test_label_failure_does_not_stop_later_steps() -> None:
    plane = FailingControlPlane(fail_label="bug")
    steps = _plan(FEATURES)

    result = ProvisioningExecutor("acme").execute(steps, plane)

    assert result.status is ProvisioningStatus.PARTIAL_FAILURE
    assert not result.aborted
    assert len(result.entries) == len(steps)
    assert len(result.failures) == 1
    assert result.failures[0].step.target == "label bug"
    assert plane.operations()[-2:] == ["create_issue", "create_issue"]


def test_file_write_failure_is_recorded_and_execution_continues() -> None:
    plane = FailingControlPlane(fail_path=".github/workflows/developer.yml")

    result = ProvisioningExecutor("acme").execute(_plan(), plane)

    failed = result.failures
    assert len(failed) == 1
    assert "file .github/workflows/developer.yml" in (failed[0].reason or "")
    assert "403" in (failed[0].reason or "")
    assert result.entries[-1].outcome is StepOutcome.SUCCESS


def test_existing_label_is_skipped_not_failed() -> None:
    class ExistingLabels(DryRunControlPlane):
        def create_label(self, owner: str, repo: str, *, name: str, color: str, description: str) -> None:
            raise ResourceConflictError(f"Label {name} already exists", status_code=422)

    result = ProvisioningExecutor("acme").execute(_plan(), ExistingLabels())

    labels = [entry for entry in result.entries if isinstance(entry.step, CreateLabel)]
    assert labels and all(entry.outcome is StepOutcome.SKIPPED for entry in labels)
    assert result.status is ProvisioningStatus.COMPLETE


def test_policy_drives_abort_not_step_type() -> None:
    class RejectAll(DryRunControlPlane):
        def put_file(self, owner: str, repo: str, path: str, *, message: str, content: str) -> None:
            raise ControlPlaneError("boom")

    steps = [
        WriteFile("svc", path="a.txt", content="a", policy=StepPolicy.FATAL),
        CreateIssue("svc", title="never", body=""),
    ]

    result = ProvisioningExecutor("acme").execute(steps, RejectAll())

    assert result.aborted
    assert len(result.entries) == 1


def test_non_fatal_repository_step_allows_continuation() -> None:
    steps = [
        CreateRepository("svc", description="", policy=StepPolicy.CONTINUE),
        CreateIssue("svc", title="still runs", body=""),
    ]
    plane = DryRunControlPlane(existing_repositories=["acme/svc"])

    result = ProvisioningExecutor("acme").execute(steps, plane)

    assert [entry.outcome for entry in result.entries] == [StepOutcome.FAILED, StepOutcome.SUCCESS]


def test_result_serialises_for_run_logs() -> None:
    result = ProvisioningExecutor("acme").execute(_plan(), DryRunControlPlane())
    payload = result.to_dict()

    assert payload["status"] == "complete"
    assert payload["steps"][0] == {
        "kind": "create_repository",
        "target": "repository billing-api",
        "outcome": "success",
        "reason": None,
        "status_code": None,
    }


def test_failed_entry_keeps_the_underlying_error() -> None:
    result = ProvisioningExecutor("acme").execute(_plan(), FailingControlPlane(fail_label="bug"))

    failed = result.failures[0]
    assert isinstance(failed.error, ProvisioningStepError)
    assert isinstance(failed.error.cause, ControlPlaneError)
    assert failed.error.step is failed.step
    assert failed.status_code == 500
    assert failed.reason == "create_label failed for label bug: HTTP 500: Server Error"
    assert failed.to_dict()["status_code"] == 500
