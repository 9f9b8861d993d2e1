"""Top-level run: persona → model → directive → plan → control plane."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .control_plane.base import ControlPlane
from .extraction import DirectiveExtractor, ExtractionError
from .models.llm_client import ModelClient, ModelClientError
from .personas import PERSONAS, PersonaConfig, PersonaRole, resolve_role
from .planning.executor import ProvisioningExecutor, ProvisioningResult, ProvisioningStatus
from .planning.planner import ProvisioningPlanner
from .planning.schemas import ProvisioningDirective
from .planning.steps import ProvisioningStep
from .utils import slugify

__all__ = [
    "DEFAULT_SCRATCH_PATH",
    "Orchestrator",
    "RunAction",
    "RunState",
    "RunSummary",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_SCRATCH_PATH = Path("/tmp/superclaude-response.txt")


class RunState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    EXTRACTING = "extracting"
    PLANNING = "planning"
    EXECUTING = "executing"
    DONE = "done"
    ABORTED = "aborted"


class RunAction(str, Enum):
    ANALYZE = "analyze"
    CREATE_SERVICE = "create-service"


@dataclass(slots=True)
class RunSummary:
    """Everything a single invocation produced, successful or not."""

    persona: PersonaRole
    action: RunAction
    state: RunState = RunState.IDLE
    transitions: List[RunState] = field(default_factory=lambda: [RunState.IDLE])
    response_text: Optional[str] = None
    directive: Optional[ProvisioningDirective] = None
    steps: List[ProvisioningStep] = field(default_factory=list)
    result: Optional[ProvisioningResult] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    scratch_path: Optional[Path] = None
    log_path: Optional[Path] = None

    @property
    def aborted(self) -> bool:
        return self.state is RunState.ABORTED

    @property
    def partial_failure(self) -> bool:
        return self.result is not None and self.result.status is ProvisioningStatus.PARTIAL_FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "persona": self.persona.value,
            "action": self.action.value,
            "state": self.state.value,
            "transitions": [state.value for state in self.transitions],
            "directive": self.directive.model_dump() if self.directive else None,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "error_kind": self.error_kind,
            "scratch_path": self.scratch_path.as_posix() if self.scratch_path else None,
        }


class Orchestrator:
    """Drive one persona run through generation, extraction, planning and execution."""

    def __init__(
        self,
        *,
        client: ModelClient,
        control_plane: ControlPlane,
        owner: str,
        extractor: Optional[DirectiveExtractor] = None,
        planner: Optional[ProvisioningPlanner] = None,
        personas: Mapping[PersonaRole, PersonaConfig] = PERSONAS,
        scratch_path: Optional[Path] = DEFAULT_SCRATCH_PATH,
        logs_dir: Optional[Path] = None,
    ) -> None:
        self._client = client
        self._control_plane = control_plane
        self._executor = ProvisioningExecutor(owner)
        self._extractor = extractor or DirectiveExtractor()
        self._planner = planner or ProvisioningPlanner()
        self._personas = personas
        self._scratch_path = scratch_path
        self._logs_dir = logs_dir

    def run(
        self,
        role: PersonaRole | str,
        prompt: str,
        action: RunAction | str = RunAction.CREATE_SERVICE,
    ) -> RunSummary:
        persona_role = resolve_role(role)
        summary = RunSummary(persona=persona_role, action=RunAction(action))
        persona = self._personas[persona_role]

        self._transition(summary, RunState.GENERATING)
        try:
            response = self._client.generate(prompt, persona)
        except ModelClientError as error:
            self._abort(summary, error)
            return self._finish(summary)
        summary.response_text = response.text
        summary.scratch_path = self._write_scratch(response.text)

        if summary.action is RunAction.ANALYZE:
            self._transition(summary, RunState.DONE)
            return self._finish(summary)

        self._transition(summary, RunState.EXTRACTING)
        try:
            directive = self._extractor.extract(response.text)
            summary.directive = directive
            if not directive.is_actionable:
                raise ExtractionError("Model output did not contain a 'Service Name:' line.")
        except ExtractionError as error:
            self._abort(summary, error)
            return self._finish(summary)

        self._transition(summary, RunState.PLANNING)
        summary.steps = self._planner.plan(directive)
        LOGGER.info(
            "Planned %d step(s) for %s (stack: %s)",
            len(summary.steps),
            directive.service_name,
            ", ".join(directive.tech_stack),
        )

        self._transition(summary, RunState.EXECUTING)
        summary.result = self._executor.execute(summary.steps, self._control_plane)
        self._transition(summary, RunState.DONE)
        return self._finish(summary)

    @staticmethod
    def _transition(summary: RunSummary, state: RunState) -> None:
        LOGGER.debug("Run state %s -> %s", summary.state.value, state.value)
        summary.state = state
        summary.transitions.append(state)

    def _abort(self, summary: RunSummary, error: Exception) -> None:
        LOGGER.error("Run aborted while %s: %s", summary.state.value, error)
        summary.error = str(error)
        summary.error_kind = type(error).__name__
        self._transition(summary, RunState.ABORTED)

    def _write_scratch(self, text: str) -> Optional[Path]:
        """Persist the raw response for downstream tooling."""
        if self._scratch_path is None:
            return None
        try:
            self._scratch_path.parent.mkdir(parents=True, exist_ok=True)
            self._scratch_path.write_text(text, encoding="utf-8")
        except OSError as error:
            LOGGER.warning("Failed to write model response to %s: %s", self._scratch_path, error)
            return None
        return self._scratch_path

    def _finish(self, summary: RunSummary) -> RunSummary:
        summary.log_path = self._write_run_log(summary)
        return summary

    def _write_run_log(self, summary: RunSummary) -> Optional[Path]:
        if self._logs_dir is None:
            return None
        timestamp = datetime.now(timezone.utc)
        label = summary.directive.service_name if summary.directive and summary.directive.service_name else summary.persona.value
        path = self._logs_dir / f"run-{timestamp.strftime('%Y%m%dT%H%M%S%fZ')}-{slugify(label)}.json"
        entry = {"timestamp": timestamp.isoformat(), **summary.to_dict()}
        try:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(entry, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as error:
            LOGGER.warning("Failed to write run log to %s: %s", path, error)
            return None
        return path
