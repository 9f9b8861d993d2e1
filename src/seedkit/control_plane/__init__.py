"""Repository-hosting control planes consumed by the provisioning executor."""

from .base import ControlPlane, ControlPlaneError, ResourceConflictError, decode_content, encode_content
from .dry_run import DryRunControlPlane, RecordedCall
from .github import GitHubControlPlane

__all__ = [
    "ControlPlane",
    "ControlPlaneError",
    "DryRunControlPlane",
    "GitHubControlPlane",
    "RecordedCall",
    "ResourceConflictError",
    "decode_content",
    "encode_content",
]
