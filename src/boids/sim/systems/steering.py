from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from ..core.agent import Agent
from ..core.vector import Vector
from ..utils.mathnd import _average

if TYPE_CHECKING:
    from ..core.world import World


def allies_of(world: World, agent: Agent) -> List[Agent]:
    return [other for other in world.agents if other is not agent and other.group == agent.group]


def limit(vector: Vector, cap: float) -> Vector:
    return vector.clamp_length(cap)


def cohesion(world: World, agent: Agent, allies: List[Agent]) -> Vector:
    """Arrival-scaled steering along the offset from the allies' centroid to the agent."""
    dimension = agent.position.dimension
    if not allies:
        return Vector.zero(dimension)
    centroid = _average((other.position for other in allies), dimension)
    desired = Vector.subtract(agent.position, centroid)
    distance = desired.magnitude()
    if distance == 0.0:
        return Vector.zero(dimension)
    desired.normalize_ip()
    arrival_radius = world.arrival_radius
    if distance < arrival_radius:
        desired.scale_ip(world.max_speed * (distance / arrival_radius))
    else:
        desired.scale_ip(world.max_speed)
    steer = desired.subtract_ip(agent.velocity)
    return limit(steer, world.max_force)


def separation(world: World, agent: Agent, allies: List[Agent]) -> Vector:
    dimension = agent.position.dimension
    threshold = world.min_separation_distance
    accum = Vector.zero(dimension)
    count = 0
    for other in allies:
        away = Vector.subtract(agent.position, other.position)
        distance = away.magnitude()
        if distance <= 0.0 or distance >= threshold:
            continue
        # Unit vector away from the ally, weighted by 1 / distance.
        away.normalize_ip().divide_ip(distance)
        accum.add_ip(away)
        count += 1
    if count == 0:
        return accum
    return accum.divide_ip(count)


def alignment(world: World, agent: Agent, allies: List[Agent]) -> Vector:
    if not allies:
        return Vector.zero(agent.velocity.dimension)
    average_velocity = _average((other.velocity for other in allies), agent.velocity.dimension)
    return limit(average_velocity, world.max_force)


def compute_acceleration(world: World, agent: Agent, allies: Optional[List[Agent]] = None) -> Vector:
    if allies is None:
        allies = allies_of(world, agent)
    acceleration = cohesion(world, agent, allies)
    acceleration.add_ip(separation(world, agent, allies))
    acceleration.add_ip(alignment(world, agent, allies))
    return acceleration
