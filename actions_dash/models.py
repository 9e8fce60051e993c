"""Domain records returned by the GitHub Actions API.

The dashboard treats these as read-only value objects identified by ``id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp (``Z`` suffix accepted)."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


def ci_status(status: str, conclusion: str | None) -> str:
    """Return the conclusion for completed items, otherwise the live status."""
    if status == "completed":
        return conclusion or status
    return status


@dataclass(frozen=True)
class Actor:
    login: str = ""
    id: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Actor:
        data = data or {}
        return cls(login=data.get("login") or "", id=data.get("id") or 0)


@dataclass(frozen=True)
class PullRequest:
    number: int
    title: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PullRequest:
        return cls(number=data.get("number") or 0, title=data.get("title") or "")


@dataclass(frozen=True)
class Workflow:
    id: int
    name: str
    path: str = ""
    state: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    html_url: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workflow:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            path=data.get("path") or "",
            state=data.get("state") or "",
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            html_url=data.get("html_url") or "",
        )

    @property
    def filename(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class WorkflowRun:
    id: int
    name: str
    run_number: int = 0
    status: str = ""
    conclusion: str | None = None
    workflow_id: int = 0
    head_branch: str = ""
    head_sha: str = ""
    path: str = ""
    event: str = ""
    html_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    run_started_at: datetime | None = None
    actor: Actor = field(default_factory=Actor)
    pull_requests: tuple[PullRequest, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowRun:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            run_number=data.get("run_number") or 0,
            status=data.get("status") or "",
            conclusion=data.get("conclusion"),
            workflow_id=data.get("workflow_id") or 0,
            head_branch=data.get("head_branch") or "",
            head_sha=data.get("head_sha") or "",
            # The API reports "path" as ".github/workflows/ci.yml@refs/heads/main"
            # for some event types.
            path=(data.get("path") or "").split("@", 1)[0],
            event=data.get("event") or "",
            html_url=data.get("html_url") or "",
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            run_started_at=parse_timestamp(data.get("run_started_at")),
            actor=Actor.from_dict(data.get("actor")),
            pull_requests=tuple(
                PullRequest.from_dict(pr) for pr in data.get("pull_requests") or []
            ),
        )

    @property
    def ci_status(self) -> str:
        return ci_status(self.status, self.conclusion)

    @property
    def duration(self) -> timedelta | None:
        """Wall time of a completed run, ``None`` while running."""
        if self.status != "completed" or not self.run_started_at or not self.updated_at:
            return None
        delta = self.updated_at - self.run_started_at
        return delta if delta > timedelta(0) else None


@dataclass(frozen=True)
class Step:
    name: str
    number: int = 0
    status: str = ""
    conclusion: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        return cls(
            name=data.get("name") or "",
            number=data.get("number") or 0,
            status=data.get("status") or "",
            conclusion=data.get("conclusion"),
            started_at=parse_timestamp(data.get("started_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
        )

    @property
    def ci_status(self) -> str:
        return ci_status(self.status, self.conclusion)

    @property
    def duration(self) -> timedelta | None:
        if self.started_at and self.completed_at:
            return self.completed_at - self.started_at
        return None


@dataclass(frozen=True)
class Job:
    id: int
    name: str
    run_id: int = 0
    status: str = ""
    conclusion: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    steps: tuple[Step, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            run_id=data.get("run_id") or 0,
            status=data.get("status") or "",
            conclusion=data.get("conclusion"),
            started_at=parse_timestamp(data.get("started_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
            steps=tuple(Step.from_dict(s) for s in data.get("steps") or []),
        )

    @property
    def ci_status(self) -> str:
        return ci_status(self.status, self.conclusion)

    @property
    def duration(self) -> timedelta | None:
        if self.started_at and self.completed_at:
            return self.completed_at - self.started_at
        return None
