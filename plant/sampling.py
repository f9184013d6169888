"""Random draws used during plant generation.

Every draw goes through an injectable random source. Any object with a
``random()`` method returning floats in [0, 1) works, which is true of
``numpy.random.Generator``; tests pass scripted sources to pin exact
structures.
"""

import math

import numpy as np


def make_rng(rng=None):
    """Return ``rng`` unchanged, or a fresh unseeded generator."""
    if rng is None:
        return np.random.default_rng()
    return rng


def uniform(rng, low: float, high: float) -> float:
    return low + float(rng.random()) * (high - low)


def jitter(rng, spread: float) -> float:
    """Symmetric offset in [-spread/2, spread/2)."""
    return (float(rng.random()) - 0.5) * spread


def randint(rng, low: int, high: int) -> int:
    """Integer in [low, high], both inclusive."""
    return low + min(int(float(rng.random()) * (high - low + 1)), high - low)


def choice(rng, items):
    return items[randint(rng, 0, len(items) - 1)]


def wrapped_angle_difference(a: float, b: float) -> float:
    """Shortest angular distance between two azimuths, in [0, pi]."""
    diff = abs(a - b) % (2 * math.pi)
    return min(diff, 2 * math.pi - diff)


def sample_separated_angle(
    rng,
    used_angles: list[float],
    min_separation: float,
    max_attempts: int = 20,
) -> tuple[float, bool]:
    """Draw an azimuth at least ``min_separation`` away from every used angle.

    Rejection sampling capped at ``max_attempts`` draws. When the budget runs
    out the last drawn angle is returned anyway.

    Returns:
        angle: azimuth in [0, 2*pi)
        satisfied: False when the attempt budget was exhausted
    """
    angle = 0.0
    for _ in range(max(max_attempts, 1)):
        angle = uniform(rng, 0.0, 2 * math.pi)
        if all(wrapped_angle_difference(angle, used) >= min_separation for used in used_angles):
            return angle, True
    return angle, False
