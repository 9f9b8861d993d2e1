"""Apply a provisioning plan against a control plane, one step at a time."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..control_plane.base import ControlPlane, ControlPlaneError, ResourceConflictError
from .steps import ProvisioningStep, StepOutcome, StepPolicy

__all__ = [
    "ProvisioningExecutor",
    "ProvisioningResult",
    "ProvisioningStatus",
    "ProvisioningStepError",
    "StepResult",
]

LOGGER = logging.getLogger(__name__)


class ProvisioningStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL_FAILURE = "partial_failure"


class ProvisioningStepError(RuntimeError):
    """Failure of a single step with the context an operator needs to act."""

    def __init__(self, step: ProvisioningStep, cause: Exception) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"{step.kind.value} failed for {step.target}: {cause}")


@dataclass(slots=True)
class StepResult:
    step: ProvisioningStep
    outcome: StepOutcome
    error: Optional[ProvisioningStepError] = None

    @property
    def reason(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status reported by the control plane, when there was one."""
        if self.error is None or not isinstance(self.error.cause, ControlPlaneError):
            return None
        return self.error.cause.status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.step.kind.value,
            "target": self.step.target,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "status_code": self.status_code,
        }


@dataclass(slots=True)
class ProvisioningResult:
    """Ordered step outcomes for one plan execution."""

    entries: List[StepResult] = field(default_factory=list)
    aborted: bool = False

    @property
    def status(self) -> ProvisioningStatus:
        if any(entry.outcome is StepOutcome.FAILED for entry in self.entries):
            return ProvisioningStatus.PARTIAL_FAILURE
        return ProvisioningStatus.COMPLETE

    @property
    def failures(self) -> List[StepResult]:
        return [entry for entry in self.entries if entry.outcome is StepOutcome.FAILED]

    @property
    def succeeded(self) -> List[StepResult]:
        return [entry for entry in self.entries if entry.outcome is StepOutcome.SUCCESS]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "aborted": self.aborted,
            "steps": [entry.to_dict() for entry in self.entries],
        }


class ProvisioningExecutor:
    """Run steps strictly in order.

    A failing step is recorded and, unless its policy is FATAL, execution moves
    on to the next one. Nothing is rolled back.
    """

    def __init__(self, owner: str) -> None:
        self._owner = owner

    def execute(self, steps: Sequence[ProvisioningStep], control_plane: ControlPlane) -> ProvisioningResult:
        result = ProvisioningResult()
        for step in steps:
            entry = self._apply(step, control_plane)
            result.entries.append(entry)
            if entry.outcome is StepOutcome.FAILED and step.policy is StepPolicy.FATAL:
                LOGGER.error("Aborting plan after fatal failure: %s", entry.reason)
                result.aborted = True
                break
        LOGGER.info(
            "Executed %d of %d step(s) for %s: %s",
            len(result.entries),
            len(steps),
            self._owner,
            result.status.value,
        )
        return result

    def _apply(self, step: ProvisioningStep, control_plane: ControlPlane) -> StepResult:
        try:
            step.apply(control_plane, self._owner)
        except ResourceConflictError as error:
            failure = ProvisioningStepError(step, error)
            if step.conflict_outcome is StepOutcome.SKIPPED:
                LOGGER.info("Skipped %s: already exists", step.target)
            else:
                LOGGER.warning("%s", failure)
            return StepResult(step, step.conflict_outcome, failure)
        except ControlPlaneError as error:
            failure = ProvisioningStepError(step, error)
            LOGGER.warning("%s", failure)
            return StepResult(step, StepOutcome.FAILED, failure)
        LOGGER.info("Applied %s", step.target)
        return StepResult(step, StepOutcome.SUCCESS)
