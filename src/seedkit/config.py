"""YAML configuration and environment settings, read once at startup."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

__all__ = [
    "ConfigurationError",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_CONFIG_TEMPLATE",
    "DEFAULT_ORG",
    "Settings",
    "load_config",
    "write_default_config",
]

DEFAULT_CONFIG_NAME = "seedkit.yaml"
DEFAULT_ORG = "code-orchestration"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "model": {
        "endpoint": "https://api.anthropic.com/v1/messages",
        "name": "claude-3-opus-20240229",
        "api_version": "2023-06-01",
        "max_tokens": 4096,
        "timeout": 120,
    },
    "github": {
        "api_url": "https://api.github.com",
        "org": "",
        "timeout": 30,
    },
    "paths": {
        "scratch_response": "/tmp/superclaude-response.txt",
        "logs": "",
        "developer_workflow": "",
        "qa_workflow": "",
    },
    "defaults": {
        "labels": [],
        "features": [],
    },
}


class ConfigurationError(RuntimeError):
    """Raised for missing credentials, bad arguments or unreadable config."""


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: Optional[Path]) -> Dict[str, Any]:
    """Load ``config_path`` over the defaults; ``None`` yields the defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)
    if config_path is None:
        return config
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigurationError(f"Failed to parse config {config_path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping at the top level.")
    return _merge(config, data)


def write_default_config(config_path: Path) -> None:
    """Persist the default configuration with stable formatting."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(DEFAULT_CONFIG_TEMPLATE, handle, sort_keys=False)


def _optional_path(value: Any) -> Optional[Path]:
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return None


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable view of config plus environment used by a single run."""

    anthropic_api_key: Optional[str]
    github_token: Optional[str]
    org: str
    model_endpoint: str
    model_name: str
    model_api_version: str
    max_tokens: int
    model_timeout: float
    github_api_url: str
    github_timeout: float
    scratch_path: Optional[Path]
    logs_dir: Optional[Path]
    workflow_paths: Dict[str, Optional[str]] = field(default_factory=dict)
    label_overrides: Tuple[Mapping[str, Any], ...] = ()
    feature_overrides: Tuple[Mapping[str, Any], ...] = ()

    @classmethod
    def from_config(cls, config: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        model = config.get("model") or {}
        github = config.get("github") or {}
        paths = config.get("paths") or {}
        defaults = config.get("defaults") or {}

        org = (
            env.get("GITHUB_ORG")
            or env.get("GITHUB_REPOSITORY_OWNER")
            or str(github.get("org") or "").strip()
            or DEFAULT_ORG
        )
        try:
            max_tokens = int(model.get("max_tokens", 4096))
            model_timeout = float(model.get("timeout", 120))
            github_timeout = float(github.get("timeout", 30))
        except (TypeError, ValueError) as error:
            raise ConfigurationError(f"Invalid numeric value in config: {error}") from error

        return cls(
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            github_token=env.get("ORG_ADMIN_TOKEN") or None,
            org=org,
            model_endpoint=str(model.get("endpoint") or DEFAULT_CONFIG_TEMPLATE["model"]["endpoint"]),
            model_name=str(model.get("name") or DEFAULT_CONFIG_TEMPLATE["model"]["name"]),
            model_api_version=str(model.get("api_version") or DEFAULT_CONFIG_TEMPLATE["model"]["api_version"]),
            max_tokens=max_tokens,
            model_timeout=model_timeout,
            github_api_url=str(github.get("api_url") or DEFAULT_CONFIG_TEMPLATE["github"]["api_url"]),
            github_timeout=github_timeout,
            scratch_path=_optional_path(paths.get("scratch_response")),
            logs_dir=_optional_path(paths.get("logs")),
            workflow_paths={
                "developer_workflow": paths.get("developer_workflow") or None,
                "qa_workflow": paths.get("qa_workflow") or None,
            },
            label_overrides=tuple(defaults.get("labels") or ()),
            feature_overrides=tuple(defaults.get("features") or ()),
        )

    def require_model_credentials(self) -> str:
        if not self.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required.")
        return self.anthropic_api_key

    def require_github_token(self) -> str:
        if not self.github_token:
            raise ConfigurationError("ORG_ADMIN_TOKEN environment variable is required.")
        return self.github_token
