"""Persona configurations applied to generative-model requests."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field


class PersonaRole(str, Enum):
    """Roles the model can be asked to play."""

    ARCHITECT = "architect"
    DEVELOPER = "developer"
    REVIEWER = "reviewer"


class PersonaConfig(BaseModel):
    """System prompt and sampling temperature for a single persona."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    role: PersonaRole
    system_prompt: str = Field(min_length=1)
    temperature: float = Field(ge=0.0, le=1.0)


ARCHITECT_PROMPT = """You are a System Architect persona with expertise in:
- Microservice architecture design
- Technology stack selection
- System integration patterns
- CI/CD pipeline design
- Best practices for scalable systems

Your task is to analyze service requirements and make architectural decisions."""

DEVELOPER_PROMPT = """You are a Senior Developer persona with expertise in:
- Clean code principles
- Test-driven development
- API design
- Performance optimization
- Security best practices

Your task is to implement features with production-ready code."""

REVIEWER_PROMPT = """You are a QA Engineer persona with expertise in:
- Code review best practices
- Test coverage analysis
- Security vulnerability detection
- Performance testing
- Documentation review

Your task is to review code quality and ensure standards are met."""


PERSONAS: Mapping[PersonaRole, PersonaConfig] = {
    PersonaRole.ARCHITECT: PersonaConfig(
        role=PersonaRole.ARCHITECT,
        system_prompt=ARCHITECT_PROMPT,
        temperature=0.7,
    ),
    PersonaRole.DEVELOPER: PersonaConfig(
        role=PersonaRole.DEVELOPER,
        system_prompt=DEVELOPER_PROMPT,
        temperature=0.5,
    ),
    PersonaRole.REVIEWER: PersonaConfig(
        role=PersonaRole.REVIEWER,
        system_prompt=REVIEWER_PROMPT,
        temperature=0.3,
    ),
}

# Names accepted on the command line.
PERSONA_ALIASES: Dict[str, PersonaRole] = {
    "architect": PersonaRole.ARCHITECT,
    "developer": PersonaRole.DEVELOPER,
    "reviewer": PersonaRole.REVIEWER,
    "qa": PersonaRole.REVIEWER,
}


def resolve_role(name: PersonaRole | str) -> PersonaRole:
    """Map a CLI persona token (``qa`` included) onto a :class:`PersonaRole`."""
    if isinstance(name, PersonaRole):
        return name
    key = (name or "").strip().lower()
    try:
        return PERSONA_ALIASES[key]
    except KeyError:
        choices = ", ".join(sorted(PERSONA_ALIASES))
        raise ValueError(f"Unknown persona '{name}'. Expected one of: {choices}.") from None


def get_persona(role: PersonaRole | str) -> PersonaConfig:
    """Return the immutable persona configuration for ``role``."""
    return PERSONAS[resolve_role(role)]


__all__ = [
    "PERSONAS",
    "PERSONA_ALIASES",
    "PersonaConfig",
    "PersonaRole",
    "get_persona",
    "resolve_role",
]
