from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .errors import DimensionMismatch, InvalidArgument
from .vector import Vector


@dataclass(slots=True)
class Agent:
    """A boid: position, velocity and the group tag ("predation level").

    Only agents sharing a group tag steer by each other. Position and velocity
    are copied on construction, so agents never share vector storage with the
    caller or with each other.
    """

    position: Vector
    velocity: Optional[Vector] = None
    group: int = 0
    id: int = field(default=-1, compare=False)

    def __post_init__(self) -> None:
        if self.group < 0:
            raise InvalidArgument(f"group cannot be less than zero, got {self.group}")
        self.position = self.position.copy()
        if self.velocity is None:
            self.velocity = Vector.zero(self.position.dimension)
        else:
            if self.velocity.dimension != self.position.dimension:
                raise DimensionMismatch(self.position.dimension, self.velocity.dimension, what="velocity")
            self.velocity = self.velocity.copy()

    @classmethod
    def at_origin(cls, dimension: int, group: int = 0) -> "Agent":
        return cls(Vector.zero(dimension), group=group)

    @property
    def dimension(self) -> int:
        return self.position.dimension
