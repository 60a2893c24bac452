from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Iterable

from ..config import Colors, SlackOverrides
from ..context import InvocationContext
from ..duration import compute_duration
from ..github.types import CommitRef, JobOutcome, RunSummary
from ..status import Severity


FOOTER_ICON = "https://github.githubassets.com/favicon.ico"


@dataclass(frozen=True)
class JobField:
    icon: str
    name: str
    url: str
    duration: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": "",
            "short": True,
            "value": f"{self.icon} <{self.url}|{self.name}> ({self.duration})",
        }


@dataclass(frozen=True)
class NotificationDocument:
    title: str
    text: str
    color: str
    author_name: str
    author_link: str
    author_icon: str
    footer: str
    footer_icon: str = FOOTER_ICON
    fields: tuple[JobField, ...] = ()
    overrides: SlackOverrides = field(default_factory=SlackOverrides)

    def to_payload(self) -> dict[str, Any]:
        attachment = {
            "mrkdwn_in": ["text"],
            "color": self.color,
            "author_icon": self.author_icon,
            "author_link": self.author_link,
            "author_name": self.author_name,
            "title": self.title,
            "text": self.text,
            "fields": [job_field.to_payload() for job_field in self.fields],
            "footer_icon": self.footer_icon,
            "footer": self.footer,
        }
        payload: dict[str, Any] = {"attachments": [attachment]}
        payload.update(self.overrides.to_payload())
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False)


def job_icon(conclusion: str | None) -> str:
    if conclusion == "success":
        return "✓"
    if conclusion == "cancelled":
        return "⃠"
    if conclusion == "skipped":
        return "✗"
    # failure, timed_out, action_required and anything unknown
    return "✗"


def build_job_field(job: JobOutcome) -> JobField:
    if job.started_at and job.completed_at:
        duration = compute_duration(job.started_at, job.completed_at)
    else:
        duration = "0s"
    return JobField(icon=job_icon(job.conclusion), name=job.name, url=job.url, duration=duration)


def build_title(run: RunSummary, commit: CommitRef) -> str:
    repo_url = run.repository.html_url
    if run.pull_requests:
        # Only the first associated pull request is shown.
        pr = run.pull_requests[0]
        return f"<{repo_url}/pull/{pr.number}|{pr.title} #{pr.number}>"
    branch_link = f"<{repo_url}/tree/{run.head_branch}|{run.head_branch}>"
    commit_link = f"<{commit.html_url}|{commit.sha[:6]} >"
    return f"{run.event_name} on {branch_link} {commit_link}\n"


def build_text(run: RunSummary) -> str:
    duration = compute_duration(run.created_at, run.updated_at)
    run_link = f"<{run.html_url}|#{run.run_number}>"
    return f"{run.workflow_name} {run_link} completed in *{duration}*\n"


def compose_message(
    run: RunSummary,
    commit: CommitRef,
    severity: Severity,
    jobs: Iterable[JobOutcome],
    context: InvocationContext,
    overrides: SlackOverrides | None = None,
    colors: Colors | None = None,
) -> NotificationDocument:
    """Build the Slack attachment for a finished run.

    ``jobs`` are the jobs to render as fields, already filtered and possibly
    empty when job details are suppressed. Old-style attachments are used
    because blocks have no colour bar and cap fields at 10.
    """
    colors = colors or Colors()
    repo = run.repository
    actor = context.actor
    return NotificationDocument(
        title=build_title(run, commit),
        text=build_text(run),
        color=colors.for_severity(severity),
        author_name=actor,
        author_link=f"https://github.com/{actor}",
        author_icon=f"https://github.com/{actor}.png?size=32",
        footer=f"<{repo.html_url}|*{repo.full_name}*>",
        fields=tuple(build_job_field(job) for job in jobs),
        overrides=overrides or SlackOverrides(),
    )
