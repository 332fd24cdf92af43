from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

logger = logging.getLogger(__name__)

TICK_MODES = ("sequential", "snapshot")


@dataclass
class ObstacleConfig:
    kind: str = "sphere"
    center: List[float] = field(default_factory=list)
    radius: float = 0.0
    lower: List[float] = field(default_factory=list)
    upper: List[float] = field(default_factory=list)


@dataclass
class SimulationConfig:
    dimension: int = 3
    world_size: float = 100.0
    max_speed: float = 3.0
    max_force: float = 0.05
    min_separation_distance: float = 6.0
    # Within this distance of the ally centroid cohesion slows down linearly.
    arrival_radius: float = 100.0
    # "sequential" lets later agents see earlier agents' new state within a tick.
    tick_mode: str = "sequential"
    initial_population: int = 0
    group_count: int = 1
    initial_speed_fraction: float = 0.5
    seed: int = 42
    config_version: str = "v1"
    obstacles: List[ObstacleConfig] = field(default_factory=list)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        logger.info("Loaded simulation config from %s", path)
        return load_config(data)


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2
    tick_interval_seconds: float = 1.0 / 30.0


def load_config(raw: dict) -> SimulationConfig:
    obstacles = [ObstacleConfig(**obstacle) for obstacle in raw.get("obstacles", [])]
    sim_values = {k: v for k, v in raw.items() if k != "obstacles"}
    return SimulationConfig(obstacles=obstacles, **sim_values)


def load_app_config(raw: dict) -> AppConfig:
    simulation = load_config(raw.get("simulation", {}))
    app_values = {k: v for k, v in raw.items() if k != "simulation"}
    return AppConfig(simulation=simulation, **app_values)
