from __future__ import annotations

from dataclasses import dataclass, field, replace
import json
import logging
import os
from typing import Any, Mapping

from .config import ConfigError
from .github.client import DEFAULT_API_URL
from .github.types import RunSummary


@dataclass(frozen=True)
class InvocationContext:
    """GitHub Actions environment for the current run, read once at startup."""

    event_name: str
    workflow: str
    actor: str
    repository: str
    run_id: int
    ref: str
    api_url: str = DEFAULT_API_URL
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def pull_request_title(self) -> str:
        pull_request = self.payload.get("pull_request") or {}
        return str(pull_request.get("title") or "")


def load_context(env: Mapping[str, str] | None = None) -> InvocationContext:
    env = os.environ if env is None else env
    repository = env.get("GITHUB_REPOSITORY", "").strip()
    if not repository or "/" not in repository:
        raise ConfigError("GITHUB_REPOSITORY must be set to owner/repo")
    run_id_raw = env.get("GITHUB_RUN_ID", "").strip()
    try:
        run_id = int(run_id_raw)
    except ValueError:
        raise ConfigError("GITHUB_RUN_ID must be set to a numeric run id") from None

    return InvocationContext(
        event_name=env.get("GITHUB_EVENT_NAME", ""),
        workflow=env.get("GITHUB_WORKFLOW", ""),
        actor=env.get("GITHUB_ACTOR", ""),
        repository=repository,
        run_id=run_id,
        ref=env.get("GITHUB_REF", "") or env.get("GITHUB_SHA", ""),
        api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
        payload=_load_event_payload(env.get("GITHUB_EVENT_PATH")),
    )


def apply_context(run: RunSummary, context: InvocationContext) -> RunSummary:
    """Prefer the runner's event and workflow names, and fill PR titles from the event."""
    title = context.pull_request_title
    pull_requests = tuple(
        replace(pr, title=pr.title or title) for pr in run.pull_requests
    )
    return replace(
        run,
        event_name=context.event_name or run.event_name,
        workflow_name=context.workflow or run.workflow_name,
        pull_requests=pull_requests,
    )


def _load_event_payload(path: str | None) -> dict[str, Any]:
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    if not isinstance(raw, dict):
        logging.getLogger(__name__).warning("Event payload at %s is not an object; ignoring", path)
        return {}
    return raw
