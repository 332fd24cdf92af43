from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Optional, Tuple

from .agent import Agent
from .config import TICK_MODES, SimulationConfig
from .errors import DimensionMismatch, InvalidArgument
from .obstacles import BoxObstacle, Obstacle, SphereObstacle
from .rng import DeterministicRng
from .vector import Vector
from ..systems import metrics as metrics_system, steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.mathnd import _polarization

logger = logging.getLogger(__name__)


class World:
    """Owns the agents and obstacles and advances the flock one tick at a time.

    Bounds span ``[0, bounds[i]]`` on every axis. Assigning ``bounds`` removes
    every agent outside the new box straight away. The world does no locking:
    a renderer reading ``agents`` must not run concurrently with ``tick()``.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self._config = config if config is not None else SimulationConfig()
        if self._config.dimension < 1:
            raise InvalidArgument(f"dimension must be at least 1, got {self._config.dimension}")
        if self._config.group_count < 1:
            raise InvalidArgument(f"group_count must be at least 1, got {self._config.group_count}")
        if self._config.initial_population < 0:
            raise InvalidArgument(f"initial_population cannot be negative, got {self._config.initial_population}")
        self._dimension = self._config.dimension
        self._rng = DeterministicRng(self._config.seed)
        self._agents: List[Agent] = []
        self._obstacles: List[Obstacle] = []
        self._tick = 0
        self._next_id = 0
        self._removed_since_tick = 0
        self._metrics: TickMetrics | None = None
        self._apply_config_limits()
        self._build_obstacles()
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return tuple(self._agents)

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return tuple(self._obstacles)

    @property
    def tick_count(self) -> int:
        return self._tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def bounds(self) -> Vector:
        return self._bounds.copy()

    @bounds.setter
    def bounds(self, value: Vector) -> None:
        if value.dimension != self._dimension:
            raise DimensionMismatch(self._dimension, value.dimension, what="bounds")
        if any(limit < 0 for limit in value):
            raise InvalidArgument(f"bounds cannot be negative, got {value}")
        self._bounds = value.copy()
        self.enforce_bounds()

    @property
    def max_speed(self) -> float:
        return self._max_speed

    @max_speed.setter
    def max_speed(self, value: float) -> None:
        self._max_speed = self._positive("max_speed", value)

    @property
    def max_force(self) -> float:
        return self._max_force

    @max_force.setter
    def max_force(self, value: float) -> None:
        self._max_force = self._positive("max_force", value)

    @property
    def min_separation_distance(self) -> float:
        return self._min_separation_distance

    @min_separation_distance.setter
    def min_separation_distance(self, value: float) -> None:
        self._min_separation_distance = self._positive("min_separation_distance", value)

    @property
    def arrival_radius(self) -> float:
        return self._arrival_radius

    @arrival_radius.setter
    def arrival_radius(self, value: float) -> None:
        self._arrival_radius = self._positive("arrival_radius", value)

    @property
    def tick_mode(self) -> str:
        return self._tick_mode

    @tick_mode.setter
    def tick_mode(self, value: str) -> None:
        if value not in TICK_MODES:
            raise InvalidArgument(f"tick_mode must be one of {TICK_MODES}, got {value!r}")
        self._tick_mode = value

    @staticmethod
    def _positive(name: str, value: float) -> float:
        if not value > 0:
            raise InvalidArgument(f"{name} must be greater than zero, got {value}")
        return float(value)

    def add_agent(self, agent: Agent) -> Agent:
        if agent.dimension != self._dimension:
            raise DimensionMismatch(self._dimension, agent.dimension, what="agent")
        agent.id = self._next_id
        self._next_id += 1
        self._agents.append(agent)
        return agent

    def remove_agent(self, agent: Agent) -> bool:
        for index, candidate in enumerate(self._agents):
            if candidate is agent:
                del self._agents[index]
                return True
        return False

    def clear_agents(self) -> None:
        self._agents.clear()

    def add_obstacle(self, obstacle: Obstacle) -> None:
        if not isinstance(obstacle, Obstacle):
            raise TypeError(f"{type(obstacle).__name__} does not provide intersects(point)")
        self._obstacles.append(obstacle)

    def obstacles_at(self, point: Vector) -> List[Obstacle]:
        return [obstacle for obstacle in self._obstacles if obstacle.intersects(point)]

    def contains(self, point: Vector) -> bool:
        if point.dimension != self._dimension:
            raise DimensionMismatch(self._dimension, point.dimension, what="point")
        return all(0.0 <= value <= limit for value, limit in zip(point, self._bounds))

    def enforce_bounds(self) -> int:
        survivors = [agent for agent in self._agents if self.contains(agent.position)]
        removed = len(self._agents) - len(survivors)
        if removed:
            logger.debug("Removed %d agent(s) outside bounds %s", removed, self._bounds)
        self._agents = survivors
        self._removed_since_tick += removed
        return removed

    def allies_of(self, agent: Agent) -> List[Agent]:
        return steering.allies_of(self, agent)

    def cohesion(self, agent: Agent, allies: List[Agent]) -> Vector:
        return steering.cohesion(self, agent, allies)

    def separation(self, agent: Agent, allies: List[Agent]) -> Vector:
        return steering.separation(self, agent, allies)

    def alignment(self, agent: Agent, allies: List[Agent]) -> Vector:
        return steering.alignment(self, agent, allies)

    @staticmethod
    def limit(vector: Vector, cap: float) -> Vector:
        return steering.limit(vector, cap)

    def tick(self) -> TickMetrics:
        start = perf_counter()
        sequential = self._tick_mode == "sequential"
        pending: List[Tuple[Agent, Vector, Vector]] = []
        ally_checks = 0

        for agent in self._agents:
            allies = steering.allies_of(self, agent)
            ally_checks += len(allies)
            acceleration = steering.compute_acceleration(self, agent, allies)
            velocity = steering.limit(Vector.add(agent.velocity, acceleration), self._max_speed)
            position = Vector.add(agent.position, velocity)
            if sequential:
                agent.velocity = velocity
                agent.position = position
            else:
                pending.append((agent, velocity, position))

        # Snapshot mode: nothing is written until every agent has been computed.
        for agent, velocity, position in pending:
            agent.velocity = velocity
            agent.position = position

        self._tick += 1
        removed = self._removed_since_tick
        self._removed_since_tick = 0
        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            self._tick, removed, ally_checks, elapsed_ms, self._population_stats()
        )
        self._metrics = metrics
        return metrics

    def reset(self) -> None:
        self._agents.clear()
        self._obstacles.clear()
        self._rng.reset()
        self._tick = 0
        self._next_id = 0
        self._removed_since_tick = 0
        self._metrics = None
        self._apply_config_limits()
        self._build_obstacles()
        self._bootstrap_population()
        logger.info("World reset with %d agent(s)", len(self._agents))

    def snapshot(self) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else self._metrics_from_state()
        return Snapshot(
            tick=self._tick,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self._agents],
            world=SnapshotWorld(
                dimension=self._dimension,
                bounds=list(self._bounds),
                obstacles=len(self._obstacles),
            ),
            metadata=SnapshotMetadata(
                max_speed=self._max_speed,
                max_force=self._max_force,
                min_separation_distance=self._min_separation_distance,
                tick_mode=self._tick_mode,
                seed=self._config.seed,
                config_version=self._config.config_version,
            ),
        )

    def _apply_config_limits(self) -> None:
        config = self._config
        if config.world_size < 0:
            raise InvalidArgument(f"world_size cannot be negative, got {config.world_size}")
        self._bounds = Vector.from_components([config.world_size] * self._dimension)
        self.max_speed = config.max_speed
        self.max_force = config.max_force
        self.min_separation_distance = config.min_separation_distance
        self.arrival_radius = config.arrival_radius
        self.tick_mode = config.tick_mode

    def _build_obstacles(self) -> None:
        for entry in self._config.obstacles:
            if entry.kind == "sphere":
                obstacle: Obstacle = SphereObstacle(Vector.from_components(entry.center), entry.radius)
            elif entry.kind == "box":
                obstacle = BoxObstacle(Vector.from_components(entry.lower), Vector.from_components(entry.upper))
            else:
                raise InvalidArgument(f"Unknown obstacle kind: {entry.kind}")
            if obstacle.dimension != self._dimension:
                raise DimensionMismatch(self._dimension, obstacle.dimension, what="obstacle")
            self.add_obstacle(obstacle)

    def _bootstrap_population(self) -> None:
        config = self._config
        speed = self._max_speed * config.initial_speed_fraction
        for index in range(config.initial_population):
            position = self._rng.next_point(self._bounds)
            velocity = self._rng.next_unit_vector(self._dimension).scale_ip(speed)
            self.add_agent(Agent(position, velocity, group=index % config.group_count))

    def _agent_snapshot(self, agent: Agent) -> Dict[str, Any]:
        position = agent.position
        return {
            "id": agent.id,
            "group": agent.group,
            "x": position[0],
            "y": position[1] if position.dimension > 1 else 0.0,
            "position": list(position),
            "velocity": list(agent.velocity),
            "speed": agent.velocity.magnitude(),
        }

    def _population_stats(self) -> Tuple[int, int, float, float]:
        population = len(self._agents)
        if population == 0:
            return 0, 0, 0.0, 0.0
        groups = len({agent.group for agent in self._agents})
        average_speed = sum(agent.velocity.magnitude() for agent in self._agents) / population
        polarization = _polarization((agent.velocity for agent in self._agents), self._dimension)
        return population, groups, average_speed, polarization

    def _metrics_from_state(self) -> TickMetrics:
        return metrics_system.create_metrics(self._tick, 0, 0, 0.0, self._population_stats())
