from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .errors import DimensionMismatch, InvalidArgument
from .vector import Vector


@runtime_checkable
class Obstacle(Protocol):
    """Anything the world can hold as an obstacle: it answers whether a point touches it."""

    def intersects(self, point: Vector) -> bool: ...


@dataclass(slots=True)
class SphereObstacle:
    center: Vector
    radius: float

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise InvalidArgument(f"sphere radius cannot be negative, got {self.radius}")
        self.center = self.center.copy()

    @property
    def dimension(self) -> int:
        return self.center.dimension

    def intersects(self, point: Vector) -> bool:
        offset = Vector.subtract(point, self.center)
        return offset.magnitude_squared() <= self.radius * self.radius


@dataclass(slots=True)
class BoxObstacle:
    """Closed axis-aligned box spanning ``lower`` to ``upper``."""

    lower: Vector
    upper: Vector

    def __post_init__(self) -> None:
        if self.lower.dimension != self.upper.dimension:
            raise DimensionMismatch(self.lower.dimension, self.upper.dimension, what="box upper corner")
        if any(low > high for low, high in zip(self.lower, self.upper)):
            raise InvalidArgument(f"box lower corner {self.lower} exceeds upper corner {self.upper}")
        self.lower = self.lower.copy()
        self.upper = self.upper.copy()

    @property
    def dimension(self) -> int:
        return self.lower.dimension

    def intersects(self, point: Vector) -> bool:
        if point.dimension != self.lower.dimension:
            raise DimensionMismatch(self.lower.dimension, point.dimension, what="point")
        return all(low <= value <= high for low, value, high in zip(self.lower, point, self.upper))
