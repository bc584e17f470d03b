"""Rough token estimates for providers that do not report usage."""

from __future__ import annotations

import math

# Characters per token, matched against the model name in this order.
CHARS_PER_TOKEN: list[tuple[str, float]] = [
    ("claude", 3.8),
    ("gpt-4", 3.2),
    ("gpt-3", 3.0),
]
DEFAULT_CHARS_PER_TOKEN = 3.5


def chars_per_token(model: str | None) -> float:
    name = (model or "").lower()
    for family, ratio in CHARS_PER_TOKEN:
        if family in name:
            return ratio
    return DEFAULT_CHARS_PER_TOKEN


def estimate_tokens(text: str | None, model: str | None = None) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token(model))
