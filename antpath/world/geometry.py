"""Small float helpers for 2D positions and headings.

Positions are plain ``(x, y)`` float pairs; headings are radians with
0 pointing along +x and pi/2 along +y (screen "down").
"""

from __future__ import annotations

import math

TAU = 2.0 * math.pi


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def normalize(x: float, y: float) -> tuple[float, float]:
    """Return the unit vector of ``(x, y)``, or ``(0, 0)`` for a zero vector."""
    magnitude_sq = x * x + y * y
    if magnitude_sq < 1e-12:
        return 0.0, 0.0
    inv = 1.0 / math.sqrt(magnitude_sq)
    return x * inv, y * inv


def heading_to(ax: float, ay: float, bx: float, by: float) -> float:
    """Heading from point ``a`` toward point ``b``."""
    return math.atan2(by - ay, bx - ax)


def angle_diff(current: float, target: float) -> float:
    """Signed smallest rotation taking ``current`` to ``target``, in [-pi, pi)."""
    return (target - current + math.pi) % TAU - math.pi


def turn_toward(current: float, target: float, max_turn: float) -> float:
    """Rotate ``current`` toward ``target`` by at most ``max_turn`` radians."""
    diff = angle_diff(current, target)
    return current + math.copysign(min(abs(diff), max_turn), diff)
