"""Constant tables seeded into every provisioned repository.

Each table can be replaced per invocation (see ``defaults`` in the YAML config);
nothing in the planner or extractor hard-codes these values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Tuple

from .planning.schemas import FeatureDirective

__all__ = [
    "BASELINE_FEATURES",
    "DEFAULT_LABELS",
    "ISSUE_LABELS",
    "LabelSpec",
    "features_from_config",
    "labels_from_config",
]


@dataclass(frozen=True, slots=True)
class LabelSpec:
    """Issue label created in every new repository."""

    name: str
    color: str
    description: str


DEFAULT_LABELS: Tuple[LabelSpec, ...] = (
    LabelSpec("feature", "0e8a16", "New feature"),
    LabelSpec("bug", "d73a4a", "Something isn't working"),
    LabelSpec("implementation", "7057ff", "Implementation task"),
    LabelSpec("automated", "f9d0c4", "Automated by SuperClaude"),
    LabelSpec("qa-approved", "0e8a16", "Approved by QA"),
    LabelSpec("needs-work", "fbca04", "Needs improvements"),
)

BASELINE_FEATURES: Tuple[FeatureDirective, ...] = (
    FeatureDirective(
        title="Setup project structure",
        description="Initialize project with chosen tech stack and folder structure",
    ),
    FeatureDirective(
        title="Implement core API endpoints",
        description="Create RESTful API endpoints for main functionality",
    ),
    FeatureDirective(
        title="Add database integration",
        description="Setup database connection and models",
    ),
    FeatureDirective(
        title="Implement authentication",
        description="Add JWT-based authentication",
    ),
    FeatureDirective(
        title="Add tests",
        description="Write unit and integration tests",
    ),
)

# Labels attached to every seeded implementation issue.
ISSUE_LABELS: Tuple[str, ...] = ("feature", "implementation", "automated")


def labels_from_config(entries: Iterable[Mapping[str, Any]] | None) -> Tuple[LabelSpec, ...]:
    """Build a label table from config entries, or return the defaults."""
    if not entries:
        return DEFAULT_LABELS
    labels = []
    for entry in entries:
        name = str(entry.get("name") or "").strip()
        if not name:
            raise ValueError("Label entries require a non-empty 'name'.")
        color = str(entry.get("color") or "ededed").strip().lstrip("#").lower()
        labels.append(LabelSpec(name, color, str(entry.get("description") or "")))
    return tuple(labels)


def features_from_config(entries: Sequence[Mapping[str, Any]] | None) -> Tuple[FeatureDirective, ...]:
    """Build the baseline feature table from config entries, or return the defaults."""
    if not entries:
        return BASELINE_FEATURES
    return tuple(
        FeatureDirective(title=str(entry.get("title") or ""), description=str(entry.get("description") or ""))
        for entry in entries
    )
