from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class JobOutcome:
    name: str
    url: str
    started_at: datetime | None
    completed_at: datetime | None
    status: str
    conclusion: str | None


@dataclass(frozen=True)
class PullRequestRef:
    number: int
    head_ref: str
    base_ref: str
    title: str = ""


@dataclass(frozen=True)
class Repository:
    full_name: str
    html_url: str


@dataclass(frozen=True)
class RunSummary:
    repository: Repository
    run_id: int
    run_number: int
    html_url: str
    head_branch: str
    created_at: datetime
    updated_at: datetime
    event_name: str
    workflow_name: str
    pull_requests: tuple[PullRequestRef, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CommitRef:
    sha: str
    html_url: str
