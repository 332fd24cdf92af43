from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    dimension: int
    bounds: List[float]
    obstacles: int


@dataclass(slots=True)
class SnapshotMetadata:
    max_speed: float
    max_force: float
    min_separation_distance: float
    tick_mode: str
    seed: int
    config_version: str
