"""Heuristic progress for poll-only backends.

Most queue backends report little more than QUEUED/IN_PROGRESS, so progress
is derived from how many polls have elapsed relative to the attempt ceiling.
The curve is a tunable, not a contract: callers only rely on it being bounded
and non-decreasing, with 100 reserved for confirmed completion.
"""

import math
from typing import Optional

DEFAULT_FLOOR = 10
DEFAULT_CEILING = 95
MAX_ESTIMATE = 99


def estimate_progress(
    attempt: int,
    max_attempts: int,
    hint: Optional[float] = None,
    previous: int = 0,
    floor: int = DEFAULT_FLOOR,
    ceiling: int = DEFAULT_CEILING,
) -> int:
    """Return a progress percentage for the given poll attempt.

    Without a hint the value grows linearly from `floor` (attempt 0) to
    `ceiling` (attempt == max_attempts). A backend hint replaces the
    heuristic but is clamped to `[previous, 99]`. The result is never lower
    than `previous` and never reaches 100.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    previous = min(max(previous, 0), MAX_ESTIMATE)

    if hint is not None and math.isfinite(hint):
        return min(max(int(hint), previous), MAX_ESTIMATE)

    elapsed = min(max(attempt, 0), max_attempts)
    linear = floor + (ceiling - floor) * elapsed // max_attempts
    return min(max(linear, previous), MAX_ESTIMATE)
