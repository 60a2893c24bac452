from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, patch

import httpx

from slack_workflow_status.config import SlackOverrides
from slack_workflow_status.notifiers.message import JobField, NotificationDocument
from slack_workflow_status.notifiers.slack import SlackNotifier, SlackSettings


WEBHOOK = "https://hooks.slack.com/services/T000/B000/secret"


def _document() -> NotificationDocument:
    return NotificationDocument(
        title="push on <https://github.com/acme/widgets/tree/main|main>",
        text="CI <https://github.com/acme/widgets/actions/runs/1|#1> completed in *5s*\n",
        color="good",
        author_name="octocat",
        author_link="https://github.com/octocat",
        author_icon="https://github.com/octocat.png?size=32",
        footer="<https://github.com/acme/widgets|*acme/widgets*>",
        fields=(JobField(icon="✓", name="build", url="https://example.com/job", duration="5s"),),
        overrides=SlackOverrides(username="CI"),
    )


def _notifier() -> SlackNotifier:
    return SlackNotifier(SlackSettings(webhook_url=WEBHOOK, timeout_seconds=5, user_agent="slack-workflow-status/test"))


class SlackNotifierTests(unittest.IsolatedAsyncioTestCase):
    async def test_posts_payload_once(self) -> None:
        document = _document()
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_client.return_value.__aenter__.return_value
            instance.post = AsyncMock(return_value=httpx.Response(200, text="ok"))
            success = await _notifier().send(document)

        self.assertTrue(success)
        self.assertEqual(instance.post.await_count, 1)
        self.assertEqual(instance.post.call_args.args[0], WEBHOOK)
        payload = instance.post.call_args.kwargs.get("json")
        self.assertEqual(payload, document.to_payload())
        self.assertEqual(payload["username"], "CI")
        self.assertEqual(payload["attachments"][0]["fields"][0]["value"], "✓ <https://example.com/job|build> (5s)")

    async def test_failure_status_is_not_retried(self) -> None:
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_client.return_value.__aenter__.return_value
            instance.post = AsyncMock(return_value=httpx.Response(429, text="rate_limited"))
            with self.assertLogs("slack_workflow_status.notifiers.slack", level="ERROR") as logs:
                success = await _notifier().send(_document())

        self.assertFalse(success)
        self.assertEqual(instance.post.await_count, 1)
        self.assertNotIn(WEBHOOK, "\n".join(logs.output))

    async def test_transport_error_propagates(self) -> None:
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_client.return_value.__aenter__.return_value
            instance.post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
            with self.assertRaises(httpx.ConnectError):
                await _notifier().send(_document())

    async def test_document_is_not_mutated(self) -> None:
        document = _document()
        before = document.to_json()
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_client.return_value.__aenter__.return_value
            instance.post = AsyncMock(return_value=httpx.Response(200))
            await _notifier().send(document)
        self.assertEqual(document.to_json(), before)
