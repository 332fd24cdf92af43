from pytest import approx

from boids.sim.core.rng import DeterministicRng
from boids.sim.core.vector import Vector


def test_points_fall_inside_bounds():
    rng = DeterministicRng(7)
    bounds = Vector(10.0, 20.0, 5.0)
    for _ in range(200):
        point = rng.next_point(bounds)
        assert all(0.0 <= value <= limit for value, limit in zip(point, bounds))


def test_unit_vectors_have_unit_length():
    rng = DeterministicRng(7)
    for dimension in (1, 2, 5):
        assert rng.next_unit_vector(dimension).magnitude() == approx(1.0)


def test_reset_replays_the_sequence():
    rng = DeterministicRng(11)
    first = [rng.next_point(Vector(1.0, 1.0)) for _ in range(3)]
    rng.reset()
    assert [rng.next_point(Vector(1.0, 1.0)) for _ in range(3)] == first
