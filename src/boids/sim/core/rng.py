from __future__ import annotations

import random

from .vector import Vector


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_point(self, bounds: Vector) -> Vector:
        return Vector.from_components(self._random.uniform(0.0, limit) for limit in bounds)

    def next_unit_vector(self, dimension: int) -> Vector:
        # Normalised Gaussian samples are uniform on the unit sphere.
        while True:
            vector = Vector.from_components(self._random.gauss(0.0, 1.0) for _ in range(dimension))
            if vector.magnitude() > 1e-9:
                return vector.normalize_ip()
