"""Exponential backoff delays for retried bulk calls."""

from __future__ import annotations

import random

DEFAULT_MAX_DELAY_MS = 30000


def retry_delay_ms(attempt: int, base_delay_ms: int, max_delay_ms: int = DEFAULT_MAX_DELAY_MS) -> int:
    """Delay before retry number ``attempt``: ``base * 2**(attempt - 1)`` capped at ``max_delay_ms``.

    Attempt 0 or below means no retry and no delay.
    """
    if attempt <= 0:
        return 0
    # Cap the exponent so large attempt numbers cannot build huge integers
    exponent = min(attempt - 1, 62)
    return min(base_delay_ms * (2**exponent), max_delay_ms)


def jittered_delay_ms(
    delay_ms: int,
    jitter_ratio: float,
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    rng: random.Random | None = None,
) -> int:
    """Add up to ``jitter_ratio * delay_ms`` of random delay, never above the cap.

    A ratio of 0 returns ``delay_ms`` unchanged.
    """
    if jitter_ratio <= 0 or delay_ms <= 0:
        return delay_ms
    source = rng or random
    extra = int(delay_ms * jitter_ratio * source.random())
    return min(delay_ms + extra, max(max_delay_ms, delay_ms))
