from __future__ import annotations

import math
from typing import Iterable, Iterator, List

from .errors import DimensionMismatch, IndexOutOfRange, InvalidArgument


class Vector:
    """N-dimensional real vector.

    Every instance owns its component list; constructors copy their input
    and no operation hands its storage to another instance. The static
    operations return new vectors, the ``*_ip`` methods work in place on the
    receiver and return it.
    """

    __slots__ = ("_components",)

    def __init__(self, *components: float):
        if not components:
            raise InvalidArgument("a vector needs at least one component")
        self._components: List[float] = [float(value) for value in components]

    @classmethod
    def zero(cls, dimension: int) -> "Vector":
        if dimension < 1:
            raise InvalidArgument(f"dimension must be at least 1, got {dimension}")
        return cls._wrap([0.0] * dimension)

    @classmethod
    def from_components(cls, values: Iterable[float]) -> "Vector":
        return cls(*values)

    @classmethod
    def _wrap(cls, components: List[float]) -> "Vector":
        # Takes ownership of a freshly built list.
        vector = cls.__new__(cls)
        vector._components = components
        return vector

    @property
    def dimension(self) -> int:
        return len(self._components)

    @property
    def components(self) -> tuple[float, ...]:
        return tuple(self._components)

    def copy(self) -> "Vector":
        return Vector._wrap(list(self._components))

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._components):
            raise IndexOutOfRange(index, len(self._components))

    def __getitem__(self, index: int) -> float:
        self._check_index(index)
        return self._components[index]

    def __setitem__(self, index: int, value: float) -> None:
        self._check_index(index)
        self._components[index] = float(value)

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[float]:
        return iter(self._components)

    @staticmethod
    def _check_dimensions(a: "Vector", b: "Vector") -> None:
        if a.dimension != b.dimension:
            raise DimensionMismatch(a.dimension, b.dimension)

    @staticmethod
    def add(a: "Vector", b: "Vector") -> "Vector":
        Vector._check_dimensions(a, b)
        return Vector._wrap([x + y for x, y in zip(a._components, b._components)])

    @staticmethod
    def subtract(a: "Vector", b: "Vector") -> "Vector":
        Vector._check_dimensions(a, b)
        return Vector._wrap([x - y for x, y in zip(a._components, b._components)])

    @staticmethod
    def scale(a: "Vector", scalar: float) -> "Vector":
        return Vector._wrap([x * scalar for x in a._components])

    @staticmethod
    def divide(a: "Vector", scalar: float) -> "Vector":
        if scalar == 0:
            raise InvalidArgument("cannot divide a vector by zero")
        return Vector._wrap([x / scalar for x in a._components])

    @staticmethod
    def inverse(a: "Vector") -> "Vector":
        return Vector._wrap([-x for x in a._components])

    @staticmethod
    def dot(a: "Vector", b: "Vector") -> float:
        Vector._check_dimensions(a, b)
        return sum(x * y for x, y in zip(a._components, b._components))

    @staticmethod
    def cross(a: "Vector", b: "Vector") -> "Vector":
        """Cyclic generalisation of the 3D cross product.

        ``c[i] = a[i+1] * b[i+2] - a[i+2] * b[i+1]`` with indices taken modulo
        the dimension. Only in three dimensions does this satisfy the
        cross-product identities.
        """
        Vector._check_dimensions(a, b)
        n = a.dimension
        ac = a._components
        bc = b._components
        return Vector._wrap(
            [ac[(i + 1) % n] * bc[(i + 2) % n] - ac[(i + 2) % n] * bc[(i + 1) % n] for i in range(n)]
        )

    @staticmethod
    def normalize(a: "Vector") -> "Vector":
        mag = a.magnitude()
        if mag == 0.0:
            return Vector.zero(a.dimension)
        return Vector._wrap([x / mag for x in a._components])

    @staticmethod
    def equals(a: "Vector", b: "Vector") -> bool:
        if a.dimension != b.dimension:
            return False
        return a._components == b._components

    def magnitude_squared(self) -> float:
        return Vector.dot(self, self)

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def normalized(self) -> "Vector":
        return Vector.normalize(self)

    def distance_to(self, other: "Vector") -> float:
        return Vector.subtract(self, other).magnitude()

    def clamp_length(self, max_length: float) -> "Vector":
        # Vectors within the cap come back as the same object.
        if max_length <= 0:
            return Vector.zero(self.dimension)
        mag = self.magnitude()
        if mag <= max_length:
            return self
        return Vector._wrap([x * (max_length / mag) for x in self._components])

    def add_ip(self, other: "Vector") -> "Vector":
        Vector._check_dimensions(self, other)
        components = self._components
        for i, value in enumerate(other._components):
            components[i] += value
        return self

    def subtract_ip(self, other: "Vector") -> "Vector":
        Vector._check_dimensions(self, other)
        components = self._components
        for i, value in enumerate(other._components):
            components[i] -= value
        return self

    def scale_ip(self, scalar: float) -> "Vector":
        components = self._components
        for i in range(len(components)):
            components[i] *= scalar
        return self

    def divide_ip(self, scalar: float) -> "Vector":
        if scalar == 0:
            raise InvalidArgument("cannot divide a vector by zero")
        components = self._components
        for i in range(len(components)):
            components[i] /= scalar
        return self

    def invert_ip(self) -> "Vector":
        components = self._components
        for i in range(len(components)):
            components[i] = -components[i]
        return self

    def normalize_ip(self) -> "Vector":
        mag = self.magnitude()
        if mag == 0.0:
            return self
        return self.divide_ip(mag)

    def __add__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector.add(self, other)

    def __sub__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector.subtract(self, other)

    def __mul__(self, scalar: float) -> "Vector":
        if isinstance(scalar, Vector):
            return NotImplemented
        return Vector.scale(self, scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector":
        if isinstance(scalar, Vector):
            return NotImplemented
        return Vector.divide(self, scalar)

    def __neg__(self) -> "Vector":
        return Vector.inverse(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector.equals(self, other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Vector({', '.join(repr(value) for value in self._components)})"

    def __str__(self) -> str:
        return "[" + ", ".join(str(value) for value in self._components) + "]"
