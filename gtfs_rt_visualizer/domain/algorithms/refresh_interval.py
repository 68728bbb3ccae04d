from __future__ import annotations


def proposed_refresh_interval(*, last_refresh_ms: int, now_ms: int) -> int:
    """Half the whole seconds elapsed since the previous observed change."""

    elapsed_s = (now_ms - last_refresh_ms) // 1000
    return elapsed_s // 2


def next_refresh_interval(
    *,
    current_interval: int,
    min_interval: int,
    last_refresh_ms: int | None,
    now_ms: int,
) -> int:
    """Interval to use after a tick that observed at least one change.

    The first observed change (no previous refresh) keeps the current cadence.
    """

    if last_refresh_ms is None:
        return current_interval
    proposed = proposed_refresh_interval(last_refresh_ms=last_refresh_ms, now_ms=now_ms)
    return max(min_interval, proposed)
