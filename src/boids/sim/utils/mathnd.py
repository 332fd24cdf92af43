from __future__ import annotations

from typing import Iterable

from ..core.vector import Vector


def _average(vectors: Iterable[Vector], dimension: int) -> Vector:
    total = Vector.zero(dimension)
    count = 0
    for vector in vectors:
        total.add_ip(vector)
        count += 1
    if count == 0:
        return total
    return total.divide_ip(count)


def _polarization(velocities: Iterable[Vector], dimension: int) -> float:
    """Magnitude of the mean heading; 1 when every moving agent points the same way."""
    headings = Vector.zero(dimension)
    moving = 0
    for velocity in velocities:
        if velocity.magnitude_squared() <= 1e-18:
            continue
        headings.add_ip(Vector.normalize(velocity))
        moving += 1
    if moving == 0:
        return 0.0
    return headings.magnitude() / moving
