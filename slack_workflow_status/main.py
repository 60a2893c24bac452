from __future__ import annotations

# Flow:
# 1) Load config + runner context and register secrets before any network call.
# 2) Fetch run, commit and jobs sequentially, then aggregate and compose.
# 3) Send once; every failure ends in handle_error with exit code 1.

import argparse
import asyncio
import logging
import os
from typing import Any, Mapping, Sequence

from .config import Config, load_config
from .context import apply_context, load_context
from .github import GitHubClient, GitHubSettings
from .notifiers.message import NotificationDocument, compose_message
from .notifiers.slack import DeliveryError, SlackNotifier, SlackSettings
from .redact import Redactor, redact_url
from .status import summarize


logger = logging.getLogger(__name__)


async def main(
    argv: Sequence[str] | None = None,
    env: Mapping[str, str] | None = None,
    redactor: Redactor | None = None,
    background_errors: list[BaseException] | None = None,
) -> None:
    env = os.environ if env is None else env
    redactor = redactor if redactor is not None else Redactor()
    background_errors = background_errors if background_errors is not None else []
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    asyncio.get_running_loop().set_exception_handler(_collect_errors(background_errors))

    config = load_config(args.config, env, cli=_cli_overrides(args))
    for secret in config.secrets:
        redactor.add(secret)
        if env.get("GITHUB_ACTIONS") == "true":
            _mask_secret(secret)

    context = load_context(env)
    client = GitHubClient(
        GitHubSettings(
            token=config.repo_token,
            repository=context.repository,
            timeout_seconds=config.settings.request_timeout_seconds,
            user_agent=config.settings.user_agent,
            api_url=context.api_url,
        )
    )

    run = apply_context(await client.fetch_run(context.run_id), context)
    commit = await client.fetch_commit(context.ref)
    jobs = await client.list_jobs(context.run_id)

    severity, job_rows = summarize(jobs, config.include_jobs)
    logger.info(
        "Run #%s: %s of %s jobs rendered, severity %s",
        run.run_number,
        len(job_rows),
        len(jobs),
        severity.value,
    )
    document = compose_message(
        run,
        commit,
        severity,
        job_rows,
        context,
        overrides=config.overrides,
        colors=config.colors,
    )

    _raise_background(background_errors)

    if args.dry_run:
        print(document.to_json())
        return

    await _deliver(config, document)
    # Callbacks scheduled during delivery get one turn of the loop before the final check.
    await asyncio.sleep(0)
    _raise_background(background_errors)


def _collect_errors(errors: list[BaseException]):
    def handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        loop.default_exception_handler(context)
        errors.append(context.get("exception") or RuntimeError(context.get("message") or "Unhandled asyncio error"))

    return handler


def _raise_background(errors: list[BaseException]) -> None:
    if errors:
        raise errors[0]


async def _deliver(config: Config, document: NotificationDocument) -> None:
    logger.info("Sending notification via %s", redact_url(config.slack_webhook_url))
    notifier = SlackNotifier(
        SlackSettings(
            webhook_url=config.slack_webhook_url,
            timeout_seconds=config.settings.request_timeout_seconds,
            user_agent=config.settings.user_agent,
        )
    )
    if not await notifier.send(document):
        raise DeliveryError("Slack webhook rejected the notification")


def handle_error(err: BaseException, redactor: Redactor | None = None) -> int:
    """Report any failure as the single fatal outcome of the run. Never raises."""
    try:
        message = str(err).strip()
        if not message:
            message = f"Unhandled Error: {err!r}"
        if redactor is not None:
            message = redactor(message)
    except Exception:
        message = "Unhandled Error"
    logger.error("%s", message)
    print(f"::error::{_escape_command(message)}", flush=True)
    return 1


def cli(argv: Sequence[str] | None = None) -> int:
    redactor = Redactor()
    background_errors: list[BaseException] = []
    try:
        asyncio.run(main(argv, redactor=redactor, background_errors=background_errors))
        # Errors reported while the loop shut down.
        _raise_background(background_errors)
    except SystemExit as exc:
        # argparse exits with 0 for --help and 2 for bad arguments.
        if exc.code in (0, None):
            return 0
        return handle_error(RuntimeError(f"Invalid command line arguments (exit status {exc.code})"), redactor)
    except Exception as exc:
        return handle_error(exc, redactor)
    return 0


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Post GitHub Actions workflow status to Slack")
    parser.add_argument("--config", default=None, help="Optional YAML config file")
    parser.add_argument("--include-jobs", choices=["true", "false", "on-failure", "always", "never"])
    parser.add_argument("--channel")
    parser.add_argument("--name", help="Override the bot username")
    parser.add_argument("--icon-url")
    parser.add_argument("--icon-emoji")
    parser.add_argument("--dry-run", action="store_true", help="Print the payload instead of sending it")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "include_jobs": args.include_jobs,
        "channel": args.channel,
        "name": args.name,
        "icon_url": args.icon_url,
        "icon_emoji": args.icon_emoji,
    }


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    # httpx logs full request URLs at INFO, which would include the webhook secret.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _mask_secret(value: str) -> None:
    print(f"::add-mask::{value}", flush=True)


def _escape_command(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


if __name__ == "__main__":
    raise SystemExit(cli())
