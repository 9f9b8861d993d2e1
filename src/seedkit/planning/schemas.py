"""Typed records describing provisioning intent extracted from model output."""

from __future__ import annotations

import re
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "DEFAULT_TECH_STACK",
    "FeatureDirective",
    "ProvisioningDirective",
    "REPOSITORY_NAME_PATTERN",
    "is_valid_repository_name",
]

REPOSITORY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,100}$")

DEFAULT_TECH_STACK: Tuple[str, ...] = ("node",)


def is_valid_repository_name(value: str) -> bool:
    """Return True when ``value`` is usable verbatim as a repository name."""
    if value in {".", ".."}:
        return False
    return bool(REPOSITORY_NAME_PATTERN.match(value))


class DirectiveModel(BaseModel):
    """Base model: immutable, unknown keys rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class FeatureDirective(DirectiveModel):
    """A unit of implementation work seeded as an issue."""

    title: str = Field(min_length=1)
    description: str = ""


class ProvisioningDirective(DirectiveModel):
    """Structured provisioning intent.

    An empty ``service_name`` marks a directive the planner must refuse.
    """

    service_name: str = ""
    tech_stack: List[str] = Field(default_factory=lambda: list(DEFAULT_TECH_STACK))
    features: List[FeatureDirective] = Field(default_factory=list)

    @field_validator("service_name")
    @classmethod
    def _check_service_name(cls, value: str) -> str:
        if value and not is_valid_repository_name(value):
            raise ValueError(f"'{value}' is not a valid repository name")
        return value

    @field_validator("tech_stack")
    @classmethod
    def _lowercase_stack(cls, value: List[str]) -> List[str]:
        return [token.lower() for token in value if token]

    @property
    def is_actionable(self) -> bool:
        return bool(self.service_name)
