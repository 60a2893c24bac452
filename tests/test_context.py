from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
import tempfile
import unittest

from slack_workflow_status.config import ConfigError
from slack_workflow_status.context import apply_context, load_context
from slack_workflow_status.github.types import PullRequestRef, Repository, RunSummary
from slack_workflow_status.redact import Redactor, redact_url


def _env(**extra: str) -> dict[str, str]:
    env = {
        "GITHUB_REPOSITORY": "acme/widgets",
        "GITHUB_RUN_ID": "42",
        "GITHUB_REF": "refs/pull/7/merge",
        "GITHUB_EVENT_NAME": "pull_request",
        "GITHUB_WORKFLOW": "CI",
        "GITHUB_ACTOR": "octocat",
    }
    env.update(extra)
    return env


def _run() -> RunSummary:
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return RunSummary(
        repository=Repository(full_name="acme/widgets", html_url="https://github.com/acme/widgets"),
        run_id=42,
        run_number=3,
        html_url="https://github.com/acme/widgets/actions/runs/42",
        head_branch="feature",
        created_at=now,
        updated_at=now,
        event_name="push",
        workflow_name=".github/workflows/ci.yml",
        pull_requests=(PullRequestRef(number=7, head_ref="feature", base_ref="main"),),
    )


class LoadContextTests(unittest.TestCase):
    def test_reads_runner_environment(self) -> None:
        context = load_context(_env())
        self.assertEqual(context.repository, "acme/widgets")
        self.assertEqual(context.run_id, 42)
        self.assertEqual(context.actor, "octocat")
        self.assertEqual(context.api_url, "https://api.github.com")
        self.assertEqual(context.payload, {})

    def test_reads_event_payload(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "event.json"
            path.write_text(json.dumps({"pull_request": {"title": "Add widgets"}}), encoding="utf-8")
            context = load_context(_env(GITHUB_EVENT_PATH=str(path), GITHUB_API_URL="https://ghe.example.com/api/v3"))

        self.assertEqual(context.pull_request_title, "Add widgets")
        self.assertEqual(context.api_url, "https://ghe.example.com/api/v3")

    def test_missing_run_id_is_config_error(self) -> None:
        env = _env()
        del env["GITHUB_RUN_ID"]
        with self.assertRaises(ConfigError):
            load_context(env)

    def test_missing_repository_is_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            load_context(_env(GITHUB_REPOSITORY=""))


class ApplyContextTests(unittest.TestCase):
    def test_prefers_runner_names_and_fills_pr_title(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "event.json"
            path.write_text(json.dumps({"pull_request": {"title": "Add widgets"}}), encoding="utf-8")
            context = load_context(_env(GITHUB_EVENT_PATH=str(path)))

        run = apply_context(_run(), context)
        self.assertEqual(run.event_name, "pull_request")
        self.assertEqual(run.workflow_name, "CI")
        self.assertEqual(run.pull_requests[0].title, "Add widgets")

    def test_keeps_run_values_when_environment_is_silent(self) -> None:
        context = load_context(_env(GITHUB_EVENT_NAME="", GITHUB_WORKFLOW=""))
        run = apply_context(_run(), context)
        self.assertEqual(run.event_name, "push")
        self.assertEqual(run.workflow_name, ".github/workflows/ci.yml")
        self.assertEqual(run.pull_requests[0].title, "")


class RedactTests(unittest.TestCase):
    def test_redact_url_keeps_host_only(self) -> None:
        self.assertEqual(
            redact_url("https://hooks.slack.com/services/T000/B000/abcdwxyz"),
            "https://hooks.slack.com/***",
        )
        self.assertEqual(redact_url(""), "")
        self.assertEqual(redact_url("not a url"), "***")

    def test_redactor_masks_longest_secret_first(self) -> None:
        redactor = Redactor(["abc", "abcdef", None, ""])
        self.assertEqual(redactor.secrets, ["abcdef", "abc"])
        self.assertEqual(redactor("token abcdef and abc"), "token *** and ***")
