"""CI workflow templates keyed by tech-stack identifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

__all__ = [
    "CI_TEMPLATES",
    "CiTemplate",
    "CiTemplateSelector",
    "NODE_CI_TEMPLATE",
    "PYTHON_CI_TEMPLATE",
]


@dataclass(frozen=True, slots=True)
class CiTemplate:
    """Static, versioned CI document registered for a set of stack tokens."""

    key: str
    version: str
    stack_tokens: Tuple[str, ...]
    content: str

    def matches(self, tech_stack: Iterable[str]) -> bool:
        tokens = {token.strip().lower() for token in tech_stack}
        return any(token in tokens for token in self.stack_tokens)


NODE_CI_TEMPLATE = CiTemplate(
    key="node",
    version="1",
    stack_tokens=("node", "node.js", "nodejs", "javascript"),
    content="""name: CI

on:
  push:
    branches: [ main ]
  pull_request:
    branches: [ main ]

jobs:
  test:
    runs-on: ubuntu-latest

    steps:
    - uses: actions/checkout@v4
    - uses: actions/setup-node@v4
      with:
        node-version: '20'
    - run: npm ci
    - run: npm run lint || echo "No lint script"
    - run: npm test || echo "No test script"
""",
)

PYTHON_CI_TEMPLATE = CiTemplate(
    key="python",
    version="1",
    stack_tokens=("python", "python3"),
    content="""name: CI

on:
  push:
    branches: [ main ]
  pull_request:
    branches: [ main ]

jobs:
  test:
    runs-on: ubuntu-latest

    steps:
    - uses: actions/checkout@v4
    - uses: actions/setup-python@v4
      with:
        python-version: '3.11'
    - run: pip install -r requirements.txt || echo "No requirements"
    - run: python -m flake8 . || echo "No flake8"
    - run: python -m pytest || echo "No tests"
""",
)

# Lookup order is priority order.
CI_TEMPLATES: Tuple[CiTemplate, ...] = (NODE_CI_TEMPLATE, PYTHON_CI_TEMPLATE)


class CiTemplateSelector:
    """Pick the first registered template whose stack tokens appear in the stack."""

    def __init__(self, templates: Sequence[CiTemplate] = CI_TEMPLATES) -> None:
        self._templates = tuple(templates)

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(template.key for template in self._templates)

    def register(self, template: CiTemplate) -> "CiTemplateSelector":
        """Return a selector with ``template`` appended at the lowest priority."""
        return CiTemplateSelector((*self._templates, template))

    def select(self, tech_stack: Sequence[str]) -> Optional[CiTemplate]:
        for template in self._templates:
            if template.matches(tech_stack):
                return template
        return None
