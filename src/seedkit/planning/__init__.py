"""
Planning and execution of repository provisioning steps.
"""

from importlib import import_module
from typing import Any

_EXPORTS = {
    "CiTemplateSelector": "seedkit.planning.ci_templates",
    "ProvisioningDirective": "seedkit.planning.schemas",
    "FeatureDirective": "seedkit.planning.schemas",
    "ProvisioningPlanner": "seedkit.planning.planner",
    "ProvisioningExecutor": "seedkit.planning.executor",
    "ProvisioningResult": "seedkit.planning.executor",
    "ProvisioningStatus": "seedkit.planning.executor",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import planning helpers so ``schemas`` stays importable on its own."""
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
