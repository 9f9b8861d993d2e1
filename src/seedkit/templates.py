"""Workflow documents copied into every new service repository."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .config import ConfigurationError

__all__ = [
    "DEVELOPER_WORKFLOW",
    "QA_REVIEWER_WORKFLOW",
    "WorkflowTemplate",
    "load_workflow_templates",
]

DEVELOPER_WORKFLOW = """name: Developer

on:
  issues:
    types: [ labeled ]

jobs:
  implement:
    if: github.event.label.name == 'implementation'
    runs-on: ubuntu-latest
    permissions:
      contents: write
      issues: write
      pull-requests: write

    steps:
    - uses: actions/checkout@v4
    - uses: actions/setup-python@v5
      with:
        python-version: '3.11'
    - run: pip install seedkit
    - name: Write prompt
      env:
        ISSUE_TITLE: ${{ github.event.issue.title }}
        ISSUE_BODY: ${{ github.event.issue.body }}
      run: printf '%s\\n\\n%s\\n' "$ISSUE_TITLE" "$ISSUE_BODY" > prompt.txt
    - name: Run developer persona
      env:
        ANTHROPIC_API_KEY: ${{ secrets.ANTHROPIC_API_KEY }}
      run: seedkit run developer prompt.txt analyze
"""

QA_REVIEWER_WORKFLOW = """name: QA Reviewer

on:
  pull_request:
    types: [ opened, synchronize ]

jobs:
  review:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: write

    steps:
    - uses: actions/checkout@v4
      with:
        fetch-depth: 0
    - uses: actions/setup-python@v5
      with:
        python-version: '3.11'
    - run: pip install seedkit
    - name: Collect diff
      run: git diff origin/${{ github.base_ref }}...HEAD > prompt.txt
    - name: Run QA persona
      env:
        ANTHROPIC_API_KEY: ${{ secrets.ANTHROPIC_API_KEY }}
      run: seedkit run qa prompt.txt analyze
"""


@dataclass(frozen=True, slots=True)
class WorkflowTemplate:
    """A workflow file and where it lands in the new repository."""

    path: str
    content: str
    message: str


def _read_override(raw_path: str) -> str:
    path = Path(raw_path).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigurationError(f"Unable to read workflow template {path}: {error}") from error


def load_workflow_templates(paths: Optional[Mapping[str, Optional[str]]] = None) -> Tuple[WorkflowTemplate, ...]:
    """Return the developer and QA workflows, reading overrides from disk.

    ``paths`` may carry ``developer_workflow`` / ``qa_workflow`` file paths; a
    configured path that cannot be read is a configuration error.
    """
    paths = paths or {}
    developer_path = paths.get("developer_workflow")
    qa_path = paths.get("qa_workflow")
    developer = _read_override(developer_path) if developer_path else DEVELOPER_WORKFLOW
    qa = _read_override(qa_path) if qa_path else QA_REVIEWER_WORKFLOW
    return (
        WorkflowTemplate(".github/workflows/developer.yml", developer, "Add developer workflow"),
        WorkflowTemplate(".github/workflows/qa-reviewer.yml", qa, "Add QA reviewer workflow"),
    )
