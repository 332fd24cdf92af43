from __future__ import annotations

import pytest

from boids.sim.core.errors import DimensionMismatch, InvalidArgument
from boids.sim.core.obstacles import BoxObstacle, Obstacle, SphereObstacle
from boids.sim.core.vector import Vector


def test_sphere_contains_points_on_and_inside_surface():
    sphere = SphereObstacle(Vector(0.0, 0.0, 0.0), 2.0)
    assert sphere.intersects(Vector(0.0, 2.0, 0.0))
    assert sphere.intersects(Vector(1.0, 1.0, 1.0))
    assert not sphere.intersects(Vector(2.0, 2.0, 0.0))
    with pytest.raises(DimensionMismatch):
        sphere.intersects(Vector(0.0, 0.0))


def test_box_is_closed_on_every_axis():
    box = BoxObstacle(Vector(0.0, 0.0), Vector(4.0, 2.0))
    assert box.intersects(Vector(4.0, 2.0))
    assert box.intersects(Vector(1.0, 1.0))
    assert not box.intersects(Vector(4.5, 1.0))
    assert not box.intersects(Vector(1.0, -0.1))
    with pytest.raises(DimensionMismatch):
        box.intersects(Vector(1.0, 1.0, 1.0))


def test_invalid_shapes():
    with pytest.raises(InvalidArgument):
        SphereObstacle(Vector(0.0), -1.0)
    with pytest.raises(InvalidArgument):
        BoxObstacle(Vector(5.0, 0.0), Vector(1.0, 1.0))
    with pytest.raises(DimensionMismatch):
        BoxObstacle(Vector(0.0, 0.0), Vector(1.0, 1.0, 1.0))


def test_shapes_copy_their_vectors():
    center = Vector(1.0, 1.0)
    sphere = SphereObstacle(center, 1.0)
    center[0] = 100.0
    assert sphere.intersects(Vector(1.0, 1.5))


def test_capability_protocol():
    class Everywhere:
        def intersects(self, point: Vector) -> bool:
            return True

    assert isinstance(SphereObstacle(Vector(0.0), 1.0), Obstacle)
    assert isinstance(BoxObstacle(Vector(0.0), Vector(1.0)), Obstacle)
    assert isinstance(Everywhere(), Obstacle)
    assert not isinstance(object(), Obstacle)
