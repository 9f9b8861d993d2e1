"""Interface and errors for the repository-hosting control plane."""

from __future__ import annotations

import base64
from typing import Optional, Protocol, Sequence, runtime_checkable

__all__ = [
    "ControlPlane",
    "ControlPlaneError",
    "ResourceConflictError",
    "decode_content",
    "encode_content",
]


class ControlPlaneError(RuntimeError):
    """Raised when a control-plane operation did not take effect."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ResourceConflictError(ControlPlaneError):
    """Raised when the target resource already exists."""


def encode_content(text: str) -> str:
    """Encode file text into the base64 form the contents API expects."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> str:
    """Inverse of :func:`encode_content`; tolerates embedded newlines."""
    return base64.b64decode("".join(encoded.split())).decode("utf-8")


@runtime_checkable
class ControlPlane(Protocol):
    """Operations consumed by the provisioning executor.

    Every method raises :class:`ControlPlaneError` on failure and
    :class:`ResourceConflictError` when the target already exists.
    """

    def create_repository(
        self,
        org: str,
        name: str,
        *,
        description: str,
        private: bool,
        auto_init: bool,
        has_issues: bool,
        has_projects: bool,
        has_wiki: bool,
    ) -> None: ...

    def put_file(self, owner: str, repo: str, path: str, *, message: str, content: str) -> None:
        """Create or update ``path`` with ``content`` (plain text, encoded by the implementation)."""
        ...

    def create_label(self, owner: str, repo: str, *, name: str, color: str, description: str) -> None: ...

    def create_issue(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        body: str,
        labels: Sequence[str],
    ) -> None: ...
