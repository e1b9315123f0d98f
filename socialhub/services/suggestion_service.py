"""Canned quick-reply suggestions for chats."""
from __future__ import annotations

import random
from typing import Sequence

CANNED_SUGGESTIONS: tuple[str, ...] = (
    "Great! Let's meet up sometime.",
    "What are you doing this weekend?",
    "Can you share more details about that?",
    "That sounds interesting! Tell me more.",
    "I'm glad to hear that! How's everything else?",
    "Thanks for sharing. I appreciate it.",
    "Let's catch up soon!",
    "That's awesome news!",
    "I understand how you feel.",
    "Let me know if there's anything I can do to help.",
)


def suggest_reply(
    messages: Sequence[object] | None = None,
    context: str | None = None,
    *,
    rng: random.Random | None = None,
) -> str:
    """Return one suggestion. The conversation is accepted but not inspected."""

    chooser = rng or random
    return chooser.choice(CANNED_SUGGESTIONS)


__all__ = ["CANNED_SUGGESTIONS", "suggest_reply"]
