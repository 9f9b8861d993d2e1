"""Turn a provisioning directive into an ordered list of steps."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..defaults import DEFAULT_LABELS, ISSUE_LABELS, LabelSpec
from ..extraction import ExtractionError
from ..templates import WorkflowTemplate, load_workflow_templates
from .ci_templates import CiTemplateSelector
from .schemas import ProvisioningDirective
from .steps import CreateIssue, CreateLabel, CreateRepository, ProvisioningStep, WriteCiConfig, WriteFile

__all__ = ["ProvisioningPlanner"]


class ProvisioningPlanner:
    """Deterministic planner.

    Step order is fixed: repository, workflow files, optional CI config,
    labels, then one issue per feature. Every step after the first depends on
    the repository existing.
    """

    def __init__(
        self,
        *,
        workflows: Optional[Sequence[WorkflowTemplate]] = None,
        labels: Sequence[LabelSpec] = DEFAULT_LABELS,
        issue_labels: Sequence[str] = ISSUE_LABELS,
        ci_selector: Optional[CiTemplateSelector] = None,
    ) -> None:
        self._workflows = tuple(workflows) if workflows is not None else load_workflow_templates()
        self._labels = tuple(labels)
        self._issue_labels = tuple(issue_labels)
        self._ci_selector = ci_selector or CiTemplateSelector()

    def plan(self, directive: ProvisioningDirective) -> List[ProvisioningStep]:
        if not directive.is_actionable:
            raise ExtractionError("Directive has no service name; refusing to plan.")

        repo = directive.service_name
        steps: List[ProvisioningStep] = [
            CreateRepository(repo, description=f"Main service repository for {repo}"),
        ]
        steps.extend(
            WriteFile(repo, path=workflow.path, content=workflow.content, message=workflow.message)
            for workflow in self._workflows
        )

        template = self._ci_selector.select(directive.tech_stack)
        if template is not None:
            steps.append(WriteCiConfig(repo, content=template.content, template_key=template.key))

        steps.extend(
            CreateLabel(repo, name=label.name, color=label.color, description=label.description)
            for label in self._labels
        )
        steps.extend(
            CreateIssue(repo, title=feature.title, body=feature.description, labels=self._issue_labels)
            for feature in directive.features
        )
        return steps

    def plan_repository_setup(self, repository: str, description: str) -> List[ProvisioningStep]:
        """Repository, workflows and labels only; no model output involved."""
        steps: List[ProvisioningStep] = [CreateRepository(repository, description=description)]
        steps.extend(
            WriteFile(repository, path=workflow.path, content=workflow.content, message=workflow.message)
            for workflow in self._workflows
        )
        steps.extend(
            CreateLabel(repository, name=label.name, color=label.color, description=label.description)
            for label in self._labels
        )
        return steps
