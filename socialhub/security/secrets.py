"""Reading credentials for the auth provider and object store from the environment."""
from __future__ import annotations

import os
from typing import Final


class MissingSecretError(RuntimeError):
    """A credential is unset or still holds a sample value."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} must be set to a real value")
        self.name = name


# Sample values shipped in provider quick-starts and .env templates.
_SAMPLE_VALUES: Final[frozenset[str]] = frozenset(
    {
        "changeme",
        "change-me",
        "placeholder",
        "your-anon-key",
        "your-jwt-secret",
        "your-access-key",
        "your-secret-key",
        "super-secret-jwt-token-with-at-least-32-characters-long",
    }
)


def is_placeholder(value: str | None) -> bool:
    candidate = (value or "").strip()
    if not candidate:
        return True
    return candidate.lower() in _SAMPLE_VALUES or (candidate.startswith("<") and candidate.endswith(">"))


def require_secret(name: str) -> str:
    """Return the stripped value of environment variable ``name``.

    Raises :class:`MissingSecretError` when it is empty or a sample value.
    """

    value = os.environ.get(name)
    if is_placeholder(value):
        raise MissingSecretError(name)
    return value.strip()


__all__ = ["MissingSecretError", "is_placeholder", "require_secret"]
