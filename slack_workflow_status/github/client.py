from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any

import httpx

from ..duration import parse_timestamp
from .types import CommitRef, JobOutcome, PullRequestRef, Repository, RunSummary


DEFAULT_API_URL = "https://api.github.com"
JOBS_PER_PAGE = 100


class GitHubError(RuntimeError):
    """Raised when a GitHub API read fails. Never carries the token."""


@dataclass
class GitHubSettings:
    token: str
    repository: str
    timeout_seconds: int
    user_agent: str
    api_url: str = DEFAULT_API_URL


class GitHubClient:
    def __init__(self, settings: GitHubSettings) -> None:
        self._settings = settings
        self._logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._settings.token}",
            "User-Agent": self._settings.user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _url(self, path: str) -> str:
        base = self._settings.api_url.rstrip("/")
        return f"{base}/repos/{self._settings.repository}{path}"

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict[str, Any] | None = None) -> Any:
        self._logger.debug("GET %s", path)
        try:
            response = await client.get(self._url(path), headers=self._headers(), params=params)
        except httpx.HTTPError as exc:
            raise GitHubError(f"GitHub request {path} failed: {type(exc).__name__}") from None
        if response.status_code == 403 and "rate limit" in response.text.lower():
            reset = response.headers.get("X-RateLimit-Reset")
            raise GitHubError(f"GitHub rate limit hit for {path}; reset at {reset or 'unknown'}")
        if not 200 <= response.status_code < 300:
            raise GitHubError(f"GitHub request {path} failed with status {response.status_code}")
        try:
            return response.json()
        except ValueError:
            raise GitHubError(f"GitHub response for {path} was not valid JSON") from None

    async def fetch_run(self, run_id: int) -> RunSummary:
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            payload = await self._get(client, f"/actions/runs/{run_id}")
        return parse_run(payload)

    async def fetch_commit(self, ref: str) -> CommitRef:
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            payload = await self._get(client, f"/commits/{ref}")
        return parse_commit(payload)

    async def list_jobs(self, run_id: int) -> list[JobOutcome]:
        jobs: list[JobOutcome] = []
        page = 1
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            while True:
                params = {"per_page": JOBS_PER_PAGE, "page": page}
                payload = await self._get(client, f"/actions/runs/{run_id}/jobs", params=params)
                entries = payload.get("jobs") or []
                jobs.extend(parse_job(entry) for entry in entries)

                total = payload.get("total_count")
                if not entries or len(entries) < JOBS_PER_PAGE:
                    break
                if isinstance(total, int) and len(jobs) >= total:
                    break
                page += 1
        self._logger.debug("Fetched %s jobs for run %s", len(jobs), run_id)
        return jobs


def parse_run(payload: dict[str, Any]) -> RunSummary:
    repo_raw = payload.get("repository") or {}
    pull_requests = tuple(_parse_pull_request(entry) for entry in payload.get("pull_requests") or [])
    return RunSummary(
        repository=Repository(
            full_name=str(repo_raw.get("full_name", "")),
            html_url=str(repo_raw.get("html_url", "")),
        ),
        run_id=int(payload.get("id", 0)),
        run_number=int(payload.get("run_number", 0)),
        html_url=str(payload.get("html_url", "")),
        head_branch=str(payload.get("head_branch") or ""),
        created_at=_required_timestamp(payload, "created_at"),
        updated_at=_required_timestamp(payload, "updated_at"),
        event_name=str(payload.get("event", "")),
        workflow_name=str(payload.get("name", "")),
        pull_requests=pull_requests,
    )


def parse_commit(payload: dict[str, Any]) -> CommitRef:
    sha = payload.get("sha")
    if not sha:
        raise GitHubError("GitHub commit response is missing sha")
    return CommitRef(sha=str(sha), html_url=str(payload.get("html_url", "")))


def parse_job(entry: dict[str, Any]) -> JobOutcome:
    return JobOutcome(
        name=str(entry.get("name", "")),
        url=str(entry.get("html_url", "")),
        started_at=parse_timestamp(entry.get("started_at")),
        completed_at=parse_timestamp(entry.get("completed_at")),
        status=str(entry.get("status", "")),
        conclusion=entry.get("conclusion"),
    )


def _parse_pull_request(entry: dict[str, Any]) -> PullRequestRef:
    head = entry.get("head") or {}
    base = entry.get("base") or {}
    return PullRequestRef(
        number=int(entry.get("number", 0)),
        head_ref=str(head.get("ref", "")),
        base_ref=str(base.get("ref", "")),
        title=str(entry.get("title") or ""),
    )


def _required_timestamp(payload: dict[str, Any], key: str) -> datetime:
    parsed = parse_timestamp(payload.get(key))
    if parsed is None:
        raise GitHubError(f"GitHub run response is missing {key}")
    return parsed.astimezone(timezone.utc)
