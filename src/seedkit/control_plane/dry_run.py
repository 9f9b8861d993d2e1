"""In-memory control plane that records calls instead of performing them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Set, Tuple

from .base import ResourceConflictError

__all__ = ["DryRunControlPlane", "RecordedCall"]


@dataclass(slots=True)
class RecordedCall:
    """One control-plane operation as it would have been issued."""

    operation: str
    owner: str
    repo: str
    arguments: Dict[str, Any] = field(default_factory=dict)


class DryRunControlPlane:
    """Records every call and emulates conflict behaviour for repos and labels.

    Used by ``--dry-run`` and by tests that need to observe the call sequence.
    """

    def __init__(self, *, existing_repositories: Sequence[str] = ()) -> None:
        self.calls: List[RecordedCall] = []
        self.files: Dict[Tuple[str, str, str], str] = {}
        self._repositories: Set[Tuple[str, str]] = set()
        self._labels: Set[Tuple[str, str, str]] = set()
        for full_name in existing_repositories:
            owner, _, repo = full_name.partition("/")
            self._repositories.add((owner, repo))

    def create_repository(
        self,
        org: str,
        name: str,
        *,
        description: str,
        private: bool = False,
        auto_init: bool = True,
        has_issues: bool = True,
        has_projects: bool = True,
        has_wiki: bool = False,
    ) -> None:
        self.calls.append(
            RecordedCall(
                "create_repository",
                org,
                name,
                {
                    "description": description,
                    "private": private,
                    "auto_init": auto_init,
                    "has_issues": has_issues,
                    "has_projects": has_projects,
                    "has_wiki": has_wiki,
                },
            )
        )
        if (org, name) in self._repositories:
            raise ResourceConflictError(f"Repository {org}/{name} already exists.", status_code=422)
        self._repositories.add((org, name))

    def put_file(self, owner: str, repo: str, path: str, *, message: str, content: str) -> None:
        self.calls.append(RecordedCall("put_file", owner, repo, {"path": path, "message": message}))
        self.files[(owner, repo, path)] = content

    def create_label(self, owner: str, repo: str, *, name: str, color: str, description: str) -> None:
        self.calls.append(
            RecordedCall("create_label", owner, repo, {"name": name, "color": color, "description": description})
        )
        key = (owner, repo, name.lower())
        if key in self._labels:
            raise ResourceConflictError(f"Label {name} already exists in {owner}/{repo}.", status_code=422)
        self._labels.add(key)

    def create_issue(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        body: str,
        labels: Sequence[str],
    ) -> None:
        self.calls.append(
            RecordedCall("create_issue", owner, repo, {"title": title, "body": body, "labels": list(labels)})
        )

    def operations(self) -> List[str]:
        return [call.operation for call in self.calls]
