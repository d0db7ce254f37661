"""Draw distinct question indices from a pool."""

from __future__ import annotations

import random
from typing import Optional

from .errors import ValidationError

# One generator per process. SystemRandom draws from the OS and needs no seeding.
_PROCESS_RNG: random.Random = random.SystemRandom()


def sample_distinct(
    pool_size: int,
    count: int,
    rng: Optional[random.Random] = None,
) -> list[int]:
    """Return ``count`` distinct integers drawn uniformly from ``[1, pool_size)``.

    Values are produced by rejection sampling: draw, discard duplicates, stop
    once ``count`` unique values have been collected. The result keeps draw
    order.

    Parameters
    ----------
    pool_size : int
        Exclusive upper bound. Index ``0`` is never drawn.
    count : int
        Number of values to return.
    rng : Optional[random.Random], default: None
        Source of randomness. Defaults to the process-wide ``SystemRandom``.

    Raises
    ------
    ValidationError
        If ``count`` is negative or the range cannot supply ``count``
        distinct values (``count >= pool_size``).
    """
    if count < 0:
        raise ValidationError("count must not be negative")
    if count == 0:
        return []
    if count >= pool_size:
        raise ValidationError(
            f"cannot draw {count} distinct values from [1, {pool_size})"
        )

    source = rng or _PROCESS_RNG
    seen: set[int] = set()
    drawn: list[int] = []
    while len(drawn) < count:
        n = source.randrange(1, pool_size)
        if n in seen:
            continue
        seen.add(n)
        drawn.append(n)
    return drawn


__all__ = ["sample_distinct"]
