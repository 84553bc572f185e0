from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import requests

"""GitHub issue creation over the REST API."""

__all__ = [
    "CreatedIssue",
    "IssueCreationError",
    "GitHubIssuesClient",
]

DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class CreatedIssue:
    url: str  # html_url
    number: int


class IssueCreationError(RuntimeError):
    """Raised when the tracker rejects or never answers a create request."""


class GitHubIssuesClient:
    """Creates issues in one repository.

    A ``requests.Session`` can be injected for tests; otherwise one is
    created with the auth and API version headers preset.
    """

    def __init__(
        self,
        token: str,
        repository: str,
        *,
        api_url: str = "https://api.github.com",
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        owner, _, repo = repository.partition("/")
        if not owner or not repo:
            raise ValueError(f"repository must be 'owner/repo', got {repository!r}")
        self.owner = owner
        self.repo = repo
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )

    @property
    def issues_endpoint(self) -> str:
        return f"{self._api_url}/repos/{self.owner}/{self.repo}/issues"

    def create_issue(
        self, title: str, body: str, labels: Sequence[str] | None = None
    ) -> CreatedIssue:
        payload: dict[str, object] = {"title": title, "body": body}
        if labels:
            payload["labels"] = list(labels)
        try:
            resp = self._session.post(self.issues_endpoint, json=payload, timeout=self._timeout)
        except requests.RequestException as exc:
            raise IssueCreationError(f"request to {self.issues_endpoint} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise IssueCreationError(f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
            return CreatedIssue(url=data["html_url"], number=int(data["number"]))
        except (ValueError, KeyError, TypeError) as exc:
            # 2xx なので Issue 自体は作成済みの可能性がある
            raise IssueCreationError(
                f"HTTP {resp.status_code} with unreadable response ({exc!r}); "
                f"the issue may have been created, check {self.owner}/{self.repo} "
                "before re-running"
            ) from exc
