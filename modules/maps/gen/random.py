"""Deterministic random utilities dedicated to terrain generation."""
from __future__ import annotations

import random


def get_rng(seed: int | None = None) -> random.Random:
    """Return a :class:`random.Random` instance optionally seeded."""

    rng = random.Random()
    if seed is not None:
        rng.seed(seed)
    return rng


def rand_phase(rng: random.Random, jitter: float) -> float:
    """Return a phase offset in ``[-jitter, jitter]``; ``0`` when jitter is off."""

    if jitter <= 0:
        return 0.0
    return rng.uniform(-jitter, jitter)
