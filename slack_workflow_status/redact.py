from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse


MASK = "***"


def redact_url(url: str) -> str:
    """
    Redacts a URL to the format: <scheme>://<domain>/***
    Example: https://hooks.slack.com/services/T000/B000/abcdwxyz -> https://hooks.slack.com/***
    No part of the path is kept; webhook paths are the secret.
    """
    if not url:
        return ""
    parsed = urlparse(url.strip())
    if not parsed.netloc:
        return MASK
    scheme = parsed.scheme or "https"
    return f"{scheme}://{parsed.netloc}/{MASK}"


class Redactor:
    """Scrubs registered secret values out of text before it is logged or reported."""

    def __init__(self, secrets: Iterable[str | None] = ()) -> None:
        self._secrets: list[str] = []
        for secret in secrets:
            self.add(secret)

    def add(self, secret: str | None) -> None:
        if not secret or secret in self._secrets:
            return
        self._secrets.append(secret)
        # Longest first so a secret containing another is masked whole.
        self._secrets.sort(key=len, reverse=True)

    @property
    def secrets(self) -> list[str]:
        return list(self._secrets)

    def __call__(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        return text
