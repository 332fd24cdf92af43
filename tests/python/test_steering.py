from __future__ import annotations

from pytest import approx

from boids.sim.core.agent import Agent
from boids.sim.core.config import SimulationConfig
from boids.sim.core.vector import Vector
from boids.sim.core.world import World
from boids.sim.systems import steering


def _world(dimension: int = 2, **overrides) -> World:
    return World(SimulationConfig(dimension=dimension, **overrides))


def _place(world: World, *agents: Agent) -> list[Agent]:
    return [world.add_agent(agent) for agent in agents]


def test_allies_share_group_and_exclude_self():
    world = _world()
    me, friend, stranger = _place(
        world,
        Agent(Vector(1.0, 1.0), group=1),
        Agent(Vector(2.0, 2.0), group=1),
        Agent(Vector(3.0, 3.0), group=0),
    )
    assert steering.allies_of(world, me) == [friend]
    assert world.allies_of(stranger) == []


def test_cohesion_without_allies_is_zero():
    world = _world(dimension=3)
    agent = world.add_agent(Agent(Vector(1.0, 2.0, 3.0), Vector(1.0, 0.0, 0.0)))
    assert steering.cohesion(world, agent, []) == Vector.zero(3)


def test_cohesion_slows_inside_arrival_radius():
    world = _world(dimension=3, max_force=10.0)
    me, ally = _place(world, Agent(Vector(0.0, 0.0, 0.0)), Agent(Vector(10.0, 0.0, 0.0)))

    force = world.cohesion(me, [ally])

    # desired speed is max_speed * 10 / 100, along position - centroid
    assert list(force) == approx([-0.3, 0.0, 0.0])


def test_cohesion_full_speed_beyond_arrival_radius():
    world = _world(dimension=2, max_force=10.0, arrival_radius=20.0)
    me, ally = _place(world, Agent(Vector(0.0, 0.0), Vector(0.0, 1.0)), Agent(Vector(0.0, 50.0)))

    force = world.cohesion(me, [ally])

    assert list(force) == approx([0.0, -3.0 - 1.0])


def test_cohesion_desired_vector_runs_from_centroid_to_agent():
    world = _world(max_force=10.0)
    me, a, b = _place(world, Agent(Vector(10.0, 10.0)), Agent(Vector(20.0, 10.0)), Agent(Vector(20.0, 30.0)))

    force = world.cohesion(me, [a, b])

    # centroid (20, 20); offset (-10, -10) at speed 3 * sqrt(200) / 100
    assert list(force) == approx([-0.3, -0.3])


def test_cohesion_is_limited_to_max_force():
    world = _world(dimension=3)
    me, ally = _place(world, Agent(Vector(0.0, 0.0, 0.0)), Agent(Vector(50.0, 0.0, 0.0)))

    force = world.cohesion(me, [ally])

    assert force.magnitude() == approx(world.max_force)
    assert force[0] < 0.0


def test_cohesion_at_centroid_is_zero():
    world = _world()
    me, left, right = _place(
        world,
        Agent(Vector(5.0, 5.0), Vector(1.0, 0.0)),
        Agent(Vector(4.0, 5.0)),
        Agent(Vector(6.0, 5.0)),
    )
    assert world.cohesion(me, [left, right]) == Vector.zero(2)


def test_separation_pushes_away_with_inverse_distance():
    world = _world(min_separation_distance=6.0)
    first, second = _place(world, Agent(Vector(10.0, 10.0)), Agent(Vector(13.0, 10.0)))

    away_from_second = world.separation(first, [second])
    away_from_first = world.separation(second, [first])

    assert list(away_from_second) == approx([-1.0 / 3.0, 0.0])
    assert list(away_from_first) == approx([1.0 / 3.0, 0.0])
    assert away_from_second.magnitude() == approx(1.0 / 3.0)


def test_separation_averages_over_contributing_allies():
    world = _world(min_separation_distance=6.0)
    me, near, nearer, far = _place(
        world,
        Agent(Vector(10.0, 10.0)),
        Agent(Vector(10.0, 14.0)),
        Agent(Vector(12.0, 10.0)),
        Agent(Vector(30.0, 30.0)),
    )

    force = world.separation(me, [near, nearer, far])

    assert list(force) == approx([-0.25, -0.125])


def test_separation_ignores_threshold_and_coincident_allies():
    world = _world(min_separation_distance=6.0)
    me, at_threshold, coincident = _place(
        world,
        Agent(Vector(10.0, 10.0)),
        Agent(Vector(16.0, 10.0)),
        Agent(Vector(10.0, 10.0)),
    )
    assert world.separation(me, [at_threshold, coincident]) == Vector.zero(2)


def test_alignment_averages_and_limits_velocity():
    world = _world()
    me, a, b = _place(
        world,
        Agent(Vector(1.0, 1.0)),
        Agent(Vector(2.0, 2.0), Vector(1.0, 0.0)),
        Agent(Vector(3.0, 3.0), Vector(0.0, 1.0)),
    )

    force = world.alignment(me, [a, b])
    assert force.magnitude() == approx(world.max_force)
    assert force[0] == approx(force[1])

    world.max_force = 10.0
    assert list(world.alignment(me, [a, b])) == approx([0.5, 0.5])
    assert world.alignment(me, []) == Vector.zero(2)


def test_limit_keeps_short_vectors_and_clamps_long_ones():
    short = Vector(0.01, 0.02)
    assert World.limit(short, 1.0) is short

    long = Vector(3.0, -4.0)
    clamped = World.limit(long, 2.0)
    assert clamped.magnitude() == approx(2.0)
    assert list(clamped) == approx([1.2, -1.6])


def test_acceleration_sums_the_three_rules():
    world = _world(min_separation_distance=6.0, max_force=10.0)
    me, ally = _place(world, Agent(Vector(10.0, 10.0)), Agent(Vector(13.0, 10.0), Vector(0.0, 2.0)))
    allies = [ally]

    expected = Vector.add(
        Vector.add(world.cohesion(me, allies), world.separation(me, allies)),
        world.alignment(me, allies),
    )

    assert list(steering.compute_acceleration(world, me)) == approx(list(expected))
