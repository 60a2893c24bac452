from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any, Mapping

import yaml

from .status import IncludeJobs, Severity


INPUT_KEYS = (
    "slack_webhook_url",
    "repo_token",
    "include_jobs",
    "channel",
    "name",
    "icon_url",
    "icon_emoji",
    "request_timeout_seconds",
    "user_agent",
    "color_good",
    "color_warning",
    "color_danger",
)


class ConfigError(ValueError):
    """Missing or invalid configuration, detected before any network call."""


@dataclass(frozen=True)
class SlackOverrides:
    channel: str | None = None
    username: str | None = None
    icon_url: str | None = None
    icon_emoji: str | None = None

    def to_payload(self) -> dict[str, str]:
        values = {
            "channel": self.channel,
            "username": self.username,
            "icon_url": self.icon_url,
            "icon_emoji": self.icon_emoji,
        }
        return {key: value for key, value in values.items() if value}


@dataclass(frozen=True)
class Colors:
    good: str = Severity.GOOD.value
    warning: str = Severity.WARNING.value
    danger: str = Severity.DANGER.value

    def for_severity(self, severity: Severity) -> str:
        if severity is Severity.GOOD:
            return self.good
        if severity is Severity.WARNING:
            return self.warning
        return self.danger


@dataclass
class Settings:
    request_timeout_seconds: int
    user_agent: str


@dataclass
class Config:
    slack_webhook_url: str
    repo_token: str
    include_jobs: IncludeJobs
    overrides: SlackOverrides
    settings: Settings
    colors: Colors = field(default_factory=Colors)

    @property
    def secrets(self) -> list[str]:
        return [self.slack_webhook_url, self.repo_token]


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: _expand_env(val) for key, val in value.items()}
    return value


def _load_file(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    data = _expand_env(raw)
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")
    return data


def _load_inputs(env: Mapping[str, str]) -> dict[str, str]:
    inputs: dict[str, str] = {}
    for key in INPUT_KEYS:
        # The runner exposes `with:` inputs as INPUT_<NAME>.
        value = env.get(f"INPUT_{key.upper()}")
        if value is not None:
            inputs[key] = value
    return inputs


def _optional(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or "${" in text:
        return None
    return text


def load_config(
    path: str | None = None,
    env: Mapping[str, str] | None = None,
    cli: Mapping[str, Any] | None = None,
) -> Config:
    """Merge the YAML file, action inputs and CLI flags, highest precedence last."""
    env = os.environ if env is None else env
    merged: dict[str, Any] = {}
    merged.update(_load_file(path))
    merged.update({key: value for key, value in _load_inputs(env).items() if _optional(value)})
    merged.update({key: value for key, value in (cli or {}).items() if _optional(value)})

    webhook_url = _optional(merged.get("slack_webhook_url"))
    if not webhook_url:
        raise ConfigError("slack_webhook_url is required")
    if not (webhook_url.startswith("http://") or webhook_url.startswith("https://")):
        raise ConfigError("slack_webhook_url must be an http(s) URL")

    token = _optional(merged.get("repo_token"))
    if not token:
        raise ConfigError("repo_token is required")

    try:
        include_jobs = IncludeJobs.parse(str(_optional(merged.get("include_jobs")) or IncludeJobs.ALWAYS.value))
    except ValueError as exc:
        raise ConfigError(str(exc)) from None

    try:
        raw_timeout = _optional(merged.get("request_timeout_seconds"))
        timeout = int(raw_timeout) if raw_timeout is not None else 20
    except (TypeError, ValueError):
        raise ConfigError("request_timeout_seconds must be an integer") from None
    if timeout <= 0:
        raise ConfigError("request_timeout_seconds must be > 0")

    return Config(
        slack_webhook_url=webhook_url,
        repo_token=token,
        include_jobs=include_jobs,
        overrides=SlackOverrides(
            channel=_optional(merged.get("channel")),
            username=_optional(merged.get("name")),
            icon_url=_optional(merged.get("icon_url")),
            icon_emoji=_optional(merged.get("icon_emoji")),
        ),
        settings=Settings(
            request_timeout_seconds=timeout,
            user_agent=_optional(merged.get("user_agent")) or "slack-workflow-status/0.1",
        ),
        colors=Colors(
            good=_optional(merged.get("color_good")) or Severity.GOOD.value,
            warning=_optional(merged.get("color_warning")) or Severity.WARNING.value,
            danger=_optional(merged.get("color_danger")) or Severity.DANGER.value,
        ),
    )
