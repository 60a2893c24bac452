from __future__ import annotations

from enum import Enum
from typing import Iterable

from .github.types import JobOutcome


class Severity(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"


class IncludeJobs(str, Enum):
    ALWAYS = "true"
    NEVER = "false"
    ON_FAILURE = "on-failure"

    @classmethod
    def parse(cls, value: str) -> IncludeJobs:
        normalized = value.strip().lower()
        aliases = {"always": cls.ALWAYS, "never": cls.NEVER}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                "include_jobs must be one of 'true', 'false', 'on-failure'"
            ) from None


PASSING_CONCLUSIONS = {"success", "skipped"}


def filter_completed_jobs(jobs: Iterable[JobOutcome]) -> list[JobOutcome]:
    return [job for job in jobs if job.status == "completed" and job.conclusion != "skipped"]


def aggregate_status(jobs: Iterable[JobOutcome]) -> Severity:
    """Reduce job conclusions to a single severity.

    All passing (or no jobs at all) is GOOD. Any failure or unknown
    conclusion is DANGER, even next to a cancellation. Otherwise a
    cancelled job makes the run a WARNING.
    """
    failing = [job.conclusion for job in jobs if job.conclusion not in PASSING_CONCLUSIONS]
    if not failing:
        return Severity.GOOD
    if all(conclusion == "cancelled" for conclusion in failing):
        return Severity.WARNING
    return Severity.DANGER


def should_include_jobs(severity: Severity, policy: IncludeJobs) -> bool:
    if policy is IncludeJobs.NEVER:
        return False
    if policy is IncludeJobs.ON_FAILURE:
        return severity is Severity.DANGER
    return True


def summarize(jobs: Iterable[JobOutcome], policy: IncludeJobs) -> tuple[Severity, list[JobOutcome]]:
    """Return the run severity and the jobs to render as fields."""
    completed = filter_completed_jobs(jobs)
    severity = aggregate_status(completed)
    if not should_include_jobs(severity, policy):
        return severity, []
    return severity, completed
