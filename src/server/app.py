from __future__ import annotations

import asyncio
import contextlib
import json
from dataclasses import asdict
from typing import List, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from towersim import (
    Building,
    BuildingConfig,
    DoorConfig,
    ElevatorConfig,
    InvalidConfiguration,
    InvalidFloor,
    TransitionDistribution,
)


class StepRequest(BaseModel):
    ticks: int = Field(default=1, ge=1, le=10_000)


class ResetRequest(BaseModel):
    seed: Optional[int] = None


class SpawnRequest(BaseModel):
    origin: int
    destination: int
    elevator_id: Optional[int] = None


def default_config(floor_count: int = 10, seed: Optional[int] = None) -> BuildingConfig:
    """Office tower: two lobby doors, three cars, residents drifting between floors."""
    upper = list(range(1, floor_count))
    transitions: List[TransitionDistribution] = [
        TransitionDistribution(stay=0.5, leave=0.5),
    ]
    for floor in upper:
        others = [f for f in range(floor_count) if f != floor]
        share = 0.05 / len(others)
        destinations = {f: share for f in others}
        destinations[0] += 0.05
        transitions.append(TransitionDistribution(stay=0.9, destinations=destinations))
    return BuildingConfig(
        floor_count=floor_count,
        elevators=[
            ElevatorConfig(name="A", position=(0.0, 0.0), energy_up=2.0, energy_down=0.8, resting_floor=0),
            ElevatorConfig(name="B", position=(4.0, 0.0), energy_up=2.0, energy_down=0.8),
            ElevatorConfig(name="C", position=(8.0, 0.0), energy_up=2.0, energy_down=0.8),
        ],
        doors=[
            DoorConfig(name="north", position=(0.0, 6.0), arrival_probability=0.3),
            DoorConfig(name="south", position=(8.0, -6.0), arrival_probability=0.2, weighting="exponential",
                       weighting_options={"scale": 5.0}),
        ],
        transitions=transitions,
        seed=seed,
    )


class SimulationManager:
    def __init__(self, config: Optional[BuildingConfig] = None, tick_interval: float = 0.25) -> None:
        self.config = config or default_config()
        self.building = Building.from_config(self.config)
        self.tick_interval = tick_interval
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            async with self._lock:
                self.building.tick()
                payload = self.current_state()
            await self.broadcast(payload)
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        return {
            "building": self.building.snapshot(),
            "metrics": asdict(self.building.metrics.snapshot()),
            "population": self.building.population(),
        }

    async def step(self, ticks: int) -> dict:
        async with self._lock:
            reports = [asdict(self.building.tick()) for _ in range(ticks)]
            state = self.current_state()
            state["reports"] = reports
            return state

    async def reset(self, seed: Optional[int]) -> dict:
        async with self._lock:
            self.config.seed = seed
            self.building = Building.from_config(self.config)
            return self.current_state()

    async def spawn(self, origin: int, destination: int, elevator_id: Optional[int]) -> dict:
        async with self._lock:
            person = self.building.spawn_person(origin, destination, elevator_id)
            state = self.current_state()
            state["spawned"] = {"person_id": person.person_id, "elevator_id": person.assigned_elevator}
            return state


manager = SimulationManager()
app = FastAPI(title="towersim Simulation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    await manager.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await manager.stop()


@app.get("/state")
async def get_state() -> dict:
    return manager.current_state()


@app.get("/metrics")
async def get_metrics() -> dict:
    return asdict(manager.building.metrics.snapshot())


@app.post("/step")
async def step(request: StepRequest) -> dict:
    return await manager.step(request.ticks)


@app.post("/reset")
async def reset(request: ResetRequest) -> dict:
    return await manager.reset(request.seed)


@app.post("/passengers/spawn")
async def spawn(request: SpawnRequest) -> dict:
    try:
        return await manager.spawn(request.origin, request.destination, request.elevator_id)
    except (InvalidFloor, InvalidConfiguration) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.websocket("/ws/stream")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await manager.register(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
