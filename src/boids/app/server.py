from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from ..logging_config import setup_logging
from ..sim.core.config import AppConfig, SimulationConfig, load_app_config
from ..sim.core.errors import BoidsError
from ..sim.core.vector import Vector
from ..sim.core.world import World
from ..sim.types.snapshot import Snapshot

logger = logging.getLogger(__name__)

MIN_SPEED_MULTIPLIER = 0.1
MAX_SPEED_MULTIPLIER = 5.0


class WorldParameters(BaseModel):
    """Partial update of the live world's tunables; unset fields are left alone."""

    bounds: Optional[List[float]] = None
    max_speed: Optional[float] = None
    max_force: Optional[float] = None
    min_separation_distance: Optional[float] = None
    arrival_radius: Optional[float] = None
    tick_mode: Optional[str] = None


class SpeedRequest(BaseModel):
    multiplier: float = 1.0


@dataclass(frozen=True)
class QueuedSnapshot:
    sequence: int
    tick: int
    payload: str


def _snapshot_message(snapshot: Snapshot) -> str:
    body = {
        "tick": snapshot.tick,
        "metrics": asdict(snapshot.metrics),
        "agents": snapshot.agents,
        "world": asdict(snapshot.world),
        "metadata": asdict(snapshot.metadata),
    }
    message = {"type": "snapshot", "tick": snapshot.tick, "payload": body}
    return json.dumps(message)


def _world_parameters(world: World) -> Dict[str, Any]:
    return {
        "dimension": world.dimension,
        "bounds": list(world.bounds),
        "max_speed": world.max_speed,
        "max_force": world.max_force,
        "min_separation_distance": world.min_separation_distance,
        "arrival_radius": world.arrival_radius,
        "tick_mode": world.tick_mode,
    }


class SimulationController:
    """Owns the live world and streams snapshots to WebSocket clients.

    Every read or write of ``world`` goes through ``_world_lock`` so a REST
    call never observes a half-finished tick. Snapshots stay queued until a
    client acknowledges their tick; a client that connects late is replayed
    everything still queued.
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self.world = World(config.simulation)
        self.broadcast_interval = max(1, config.broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self._last_sent: Dict[WebSocket, int] = {}
        self._queue: deque[QueuedSnapshot] = deque()
        self._sequence = 0
        self._world_lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.world.tick_count

    @property
    def clients(self) -> Set[WebSocket]:
        return set(self._last_sent)

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

    def set_speed(self, multiplier: float) -> float:
        self.speed_multiplier = max(MIN_SPEED_MULTIPLIER, min(MAX_SPEED_MULTIPLIER, float(multiplier)))
        return self.speed_multiplier

    async def reset(self) -> None:
        async with self._world_lock:
            self.world.reset()
        async with self._queue_lock:
            self._queue.clear()
        await self._publish()

    async def advance(self, count: int = 1) -> int:
        async with self._world_lock:
            for _ in range(count):
                self.world.tick()
        await self._publish()
        return self.tick

    async def status(self) -> Dict[str, Any]:
        async with self._world_lock:
            snapshot = self.world.snapshot()
            parameters = _world_parameters(self.world)
        return {
            "running": self.running,
            "tick": snapshot.tick,
            "population": len(snapshot.agents),
            "speed_multiplier": self.speed_multiplier,
            "metrics": asdict(snapshot.metrics),
            "parameters": parameters,
        }

    async def parameters(self) -> Dict[str, Any]:
        async with self._world_lock:
            return _world_parameters(self.world)

    async def update_parameters(self, changes: WorldParameters) -> Dict[str, Any]:
        """Apply ``changes`` to the live world and return the resulting parameters.

        The world validates every value. If one is rejected the earlier ones are
        rolled back, and ``bounds`` is applied last so a rejected update never
        removes agents. Shrinking ``bounds`` removes the agents left outside and
        the count is reported as ``removed``.
        """
        updates = changes.model_dump(exclude_none=True)
        bounds = updates.pop("bounds", None)
        async with self._world_lock:
            before = len(self.world.agents)
            previous = {name: getattr(self.world, name) for name in updates}
            try:
                for name, value in updates.items():
                    setattr(self.world, name, value)
                if bounds is not None:
                    self.world.bounds = Vector.from_components(bounds)
            except BoidsError:
                for name, value in previous.items():
                    setattr(self.world, name, value)
                raise
            removed = before - len(self.world.agents)
            parameters = _world_parameters(self.world)
        logger.info("World parameters updated: %s (removed %d)", sorted(changes.model_fields_set), removed)
        await self._publish()
        return {"parameters": parameters, "removed": removed}

    async def connect(self, client: WebSocket) -> None:
        self._last_sent[client] = -1
        await self._flush(client)

    def disconnect(self, client: WebSocket) -> None:
        self._last_sent.pop(client, None)

    async def receive(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed client message")
            return
        if isinstance(payload, dict) and payload.get("type") == "ack" and isinstance(payload.get("tick"), int):
            await self.acknowledge(payload["tick"])

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._queue and self._queue[0].tick <= tick:
                self._queue.popleft()

    async def queued_ticks(self) -> List[int]:
        async with self._queue_lock:
            return [item.tick for item in self._queue]

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.tick_interval_seconds / self.speed_multiplier)
            if not self.running:
                continue
            async with self._world_lock:
                self.world.tick()
            if self.tick % self.broadcast_interval == 0:
                await self._publish()

    async def _capture(self) -> QueuedSnapshot:
        async with self._world_lock:
            snapshot = self.world.snapshot()
        payload = _snapshot_message(snapshot)
        async with self._queue_lock:
            self._sequence += 1
            return QueuedSnapshot(sequence=self._sequence, tick=snapshot.tick, payload=payload)

    async def _flush(self, client: WebSocket) -> None:
        last_sent = self._last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._queue if item.sequence > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.sequence
        self._last_sent[client] = last_sent

    async def _publish(self) -> None:
        queued = await self._capture()
        async with self._queue_lock:
            self._queue.append(queued)
        for client in list(self._last_sent):
            try:
                await self._flush(client)
            except WebSocketDisconnect:
                logger.info("Dropping disconnected client")
                self.disconnect(client)


def _load_app_config() -> AppConfig:
    path = os.environ.get("BOIDS_CONFIG")
    if not path:
        return AppConfig(simulation=SimulationConfig(dimension=2, initial_population=80, group_count=3))
    logger.info("Loading server config from %s", path)
    return load_app_config(yaml.safe_load(Path(path).read_text()) or {})


controller = SimulationController(_load_app_config())
static_dir = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    await controller.start()
    yield
    await controller.shutdown()


app = FastAPI(title="Boids Web Simulation", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> Dict[str, Any]:
    return await controller.status()


@app.get("/api/world")
async def world_parameters() -> Dict[str, Any]:
    return await controller.parameters()


@app.patch("/api/world")
async def update_world(changes: WorldParameters) -> Dict[str, Any]:
    try:
        return await controller.update_parameters(changes)
    except BoidsError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/control/start")
async def start_simulation() -> Dict[str, Any]:
    await controller.start()
    return {"running": controller.running}


@app.post("/api/control/stop")
async def stop_simulation() -> Dict[str, Any]:
    await controller.stop()
    return {"running": controller.running}


@app.post("/api/control/step")
async def step_simulation(count: int = Query(default=1, ge=1, le=1000)) -> Dict[str, Any]:
    if controller.running:
        raise HTTPException(status_code=409, detail="stop the simulation before stepping it")
    return {"tick": await controller.advance(count)}


@app.post("/api/control/reset")
async def reset_simulation() -> Dict[str, Any]:
    await controller.reset()
    return {"running": controller.running, "tick": controller.tick}


@app.post("/api/control/speed")
async def set_speed(request: SpeedRequest) -> Dict[str, Any]:
    return {"multiplier": controller.set_speed(request.multiplier)}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    await controller.connect(websocket)
    try:
        while True:
            await controller.receive(await websocket.receive_text())
    except WebSocketDisconnect:
        controller.disconnect(websocket)


__all__ = ["app", "controller", "SimulationController", "WorldParameters"]
