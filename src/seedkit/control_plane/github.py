"""GitHub REST implementation of the control plane."""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, Optional, Sequence

from ..tools.http import HttpRequest, HttpResponse, HttpTransport, HttpTransportError, urllib_transport
from .base import ControlPlaneError, ResourceConflictError, encode_content

__all__ = ["GitHubControlPlane"]

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


class GitHubControlPlane:
    """Issue repository, contents, label and issue calls against the GitHub API."""

    def __init__(
        self,
        *,
        token: Optional[str],
        api_url: str = DEFAULT_API_URL,
        transport: Optional[HttpTransport] = None,
        timeout: float = 30.0,
    ) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport or urllib_transport

        if transport is None and not self._token:
            raise ValueError("A GitHub token is required when using the default transport.")

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
        self._request(
            "POST",
            f"/orgs/{_quote(org)}/repos",
            {
                "name": name,
                "description": description,
                "private": private,
                "auto_init": auto_init,
                "has_issues": has_issues,
                "has_projects": has_projects,
                "has_wiki": has_wiki,
            },
        )
        LOGGER.info("Created repository %s/%s", org, name)

    def put_file(self, owner: str, repo: str, path: str, *, message: str, content: str) -> None:
        """Upsert a file; an existing blob is updated in place using its ``sha``."""
        contents_path = f"/repos/{_quote(owner)}/{_quote(repo)}/contents/{_quote(path, safe='/')}"
        body: Dict[str, Any] = {"message": message, "content": encode_content(content)}
        sha = self._existing_sha(contents_path)
        if sha:
            body["sha"] = sha
        self._request("PUT", contents_path, body)
        LOGGER.info("%s %s in %s/%s", "Updated" if sha else "Created", path, owner, repo)

    def create_label(self, owner: str, repo: str, *, name: str, color: str, description: str) -> None:
        self._request(
            "POST",
            f"/repos/{_quote(owner)}/{_quote(repo)}/labels",
            {"name": name, "color": color, "description": description},
        )

    def create_issue(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        body: str,
        labels: Sequence[str],
    ) -> None:
        self._request(
            "POST",
            f"/repos/{_quote(owner)}/{_quote(repo)}/issues",
            {"title": title, "body": body, "labels": list(labels)},
        )

    def _existing_sha(self, contents_path: str) -> Optional[str]:
        response = self._send("GET", contents_path, None)
        if response.status == 404:
            return None
        if not response.ok:
            raise ControlPlaneError(
                f"GET {contents_path} failed: {_error_message(response)}",
                status_code=response.status,
            )
        try:
            data = response.json()
        except ValueError:
            return None
        sha = data.get("sha") if isinstance(data, dict) else None
        return sha if isinstance(sha, str) else None

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]]) -> HttpResponse:
        response = self._send(method, path, body)
        if response.ok:
            return response
        message = _error_message(response)
        if response.status == 409 or (response.status == 422 and _is_already_exists(response)):
            raise ResourceConflictError(f"{method} {path}: {message}", status_code=response.status)
        raise ControlPlaneError(f"{method} {path} failed: {message}", status_code=response.status)

    def _send(self, method: str, path: str, body: Optional[Dict[str, Any]]) -> HttpResponse:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "seedkit",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        request = HttpRequest(
            method=method,
            url=f"{self._api_url}{path}",
            headers=headers,
            json_body=body,
            timeout=self._timeout,
        )
        try:
            return self._transport(request)
        except HttpTransportError as error:
            raise ControlPlaneError(f"{method} {path} failed: {error}") from error


def _quote(value: str, safe: str = "") -> str:
    return urllib.parse.quote(value, safe=safe)


def _error_message(response: HttpResponse) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status}: {response.body.strip()[:200]}"
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return f"HTTP {response.status}: {data['message']}"
    return f"HTTP {response.status}"


def _is_already_exists(response: HttpResponse) -> bool:
    """GitHub reports duplicates as 422 with ``already_exists`` or an "already exists" message."""
    try:
        data = response.json()
    except ValueError:
        return "already exists" in response.body.lower()
    if not isinstance(data, dict):
        return False
    for error in data.get("errors") or []:
        if not isinstance(error, dict):
            continue
        if error.get("code") == "already_exists":
            return True
        detail = error.get("message")
        if isinstance(detail, str) and "already exists" in detail.lower():
            return True
    message = data.get("message")
    if isinstance(message, str) and "already exists" in message.lower():
        return True
    return False
