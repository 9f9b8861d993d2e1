"""Provisioning steps: a tagged variant with a per-step failure policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Tuple

from ..control_plane.base import ControlPlane

__all__ = [
    "CI_WORKFLOW_PATH",
    "CreateIssue",
    "CreateLabel",
    "CreateRepository",
    "ProvisioningStep",
    "StepKind",
    "StepOutcome",
    "StepPolicy",
    "WriteCiConfig",
    "WriteFile",
]

CI_WORKFLOW_PATH = ".github/workflows/ci.yml"


class StepKind(str, Enum):
    """Tag identifying the concrete step variant."""

    CREATE_REPOSITORY = "create_repository"
    WRITE_FILE = "write_file"
    WRITE_CI_CONFIG = "write_ci_config"
    CREATE_LABEL = "create_label"
    CREATE_ISSUE = "create_issue"


class StepPolicy(str, Enum):
    """What the executor does after a step fails."""

    FATAL = "fatal"
    CONTINUE = "continue"


class StepOutcome(str, Enum):
    """Recorded result of applying a single step."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ProvisioningStep:
    """Base class for every step targeting ``repository``.

    ``policy`` and ``conflict_outcome`` drive the executor; subclasses only
    change their defaults.
    """

    kind: ClassVar[StepKind]

    repository: str
    policy: StepPolicy = field(default=StepPolicy.CONTINUE, kw_only=True)
    conflict_outcome: StepOutcome = field(default=StepOutcome.FAILED, kw_only=True)

    @property
    def target(self) -> str:
        raise NotImplementedError

    def apply(self, control_plane: ControlPlane, owner: str) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class CreateRepository(ProvisioningStep):
    kind: ClassVar[StepKind] = StepKind.CREATE_REPOSITORY

    description: str = ""
    private: bool = False
    auto_init: bool = True
    has_issues: bool = True
    has_projects: bool = True
    has_wiki: bool = False
    policy: StepPolicy = field(default=StepPolicy.FATAL, kw_only=True)

    @property
    def target(self) -> str:
        return f"repository {self.repository}"

    def apply(self, control_plane: ControlPlane, owner: str) -> None:
        control_plane.create_repository(
            owner,
            self.repository,
            description=self.description,
            private=self.private,
            auto_init=self.auto_init,
            has_issues=self.has_issues,
            has_projects=self.has_projects,
            has_wiki=self.has_wiki,
        )


@dataclass(frozen=True)
class WriteFile(ProvisioningStep):
    kind: ClassVar[StepKind] = StepKind.WRITE_FILE

    path: str = ""
    content: str = ""
    message: str = ""

    @property
    def target(self) -> str:
        return f"file {self.path}"

    def apply(self, control_plane: ControlPlane, owner: str) -> None:
        control_plane.put_file(
            owner,
            self.repository,
            self.path,
            message=self.message or f"Add {self.path}",
            content=self.content,
        )


@dataclass(frozen=True)
class WriteCiConfig(ProvisioningStep):
    kind: ClassVar[StepKind] = StepKind.WRITE_CI_CONFIG

    content: str = ""
    template_key: str = ""
    path: str = CI_WORKFLOW_PATH
    message: str = "Add CI workflow"

    @property
    def target(self) -> str:
        return f"ci config {self.path} ({self.template_key or 'custom'})"

    def apply(self, control_plane: ControlPlane, owner: str) -> None:
        control_plane.put_file(owner, self.repository, self.path, message=self.message, content=self.content)


@dataclass(frozen=True)
class CreateLabel(ProvisioningStep):
    kind: ClassVar[StepKind] = StepKind.CREATE_LABEL

    name: str = ""
    color: str = ""
    description: str = ""
    conflict_outcome: StepOutcome = field(default=StepOutcome.SKIPPED, kw_only=True)

    @property
    def target(self) -> str:
        return f"label {self.name}"

    def apply(self, control_plane: ControlPlane, owner: str) -> None:
        control_plane.create_label(
            owner,
            self.repository,
            name=self.name,
            color=self.color,
            description=self.description,
        )


@dataclass(frozen=True)
class CreateIssue(ProvisioningStep):
    kind: ClassVar[StepKind] = StepKind.CREATE_ISSUE

    title: str = ""
    body: str = ""
    labels: Tuple[str, ...] = ()

    @property
    def target(self) -> str:
        return f"issue '{self.title}'"

    def apply(self, control_plane: ControlPlane, owner: str) -> None:
        control_plane.create_issue(
            owner,
            self.repository,
            title=self.title,
            body=self.body,
            labels=self.labels,
        )
