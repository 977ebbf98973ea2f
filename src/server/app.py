from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from dispatch import STRATEGY_REGISTRY
from scenario import LiftConfig, PassengerFlow, PassengerFlowScenario, generate, parse
from simulation import ControllerStrategy, IdleParkingMode, InvalidArgument, ParseError, Unsupported
from simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


class LiftConfigModel(BaseModel):
    min_floor: int
    max_floor: int
    lifts: int = 1
    travel_ticks_per_floor: int = 1
    door_transition_ticks: int = 2
    door_dwell_ticks: int = 3
    door_reopen_window_ticks: int = 2
    home_floor: int = 0
    idle_timeout_ticks: int = 5
    controller_strategy: ControllerStrategy = ControllerStrategy.NEAREST_REQUEST_ROUTING
    idle_parking_mode: IdleParkingMode = IdleParkingMode.PARK_TO_HOME_FLOOR

    def to_config(self) -> LiftConfig:
        return LiftConfig(**self.model_dump())


class PassengerFlowModel(BaseModel):
    start_tick: int
    origin_floor: int
    destination_floor: int
    passengers: int = 1


class ScenarioModel(BaseModel):
    duration_ticks: int
    passenger_flows: List[PassengerFlowModel] = []
    seed: Optional[int] = None

    def to_scenario(self) -> PassengerFlowScenario:
        return PassengerFlowScenario(
            duration_ticks=self.duration_ticks,
            passenger_flows=tuple(PassengerFlow(**flow.model_dump()) for flow in self.passenger_flows),
            seed=self.seed,
        )


class GenerateRequest(BaseModel):
    name: str
    lift_config: LiftConfigModel
    scenario: ScenarioModel


class ValidateRequest(BaseModel):
    content: str


class RunRequest(BaseModel):
    content: str
    lifts: int = Field(default=1, ge=1)
    controller_strategy: Optional[ControllerStrategy] = None
    idle_parking_mode: Optional[IdleParkingMode] = None


app = FastAPI(title="Lift Simulator API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(exc: Exception) -> HTTPException:
    if isinstance(exc, Unsupported):
        return HTTPException(status_code=501, detail=str(exc))
    if isinstance(exc, ParseError):
        return HTTPException(
            status_code=400,
            detail={"message": str(exc), "line": exc.line, "field": exc.field},
        )
    if isinstance(exc, InvalidArgument):
        return HTTPException(status_code=400, detail={"message": str(exc), "field": exc.field})
    return HTTPException(status_code=400, detail=str(exc))


@app.get("/strategies")
async def list_strategies() -> List[Dict[str, object]]:
    return [
        {"name": strategy.value, "implemented": cls.implemented}
        for strategy, cls in STRATEGY_REGISTRY.items()
    ]


@app.post("/scenarios/generate")
def generate_scenario(request: GenerateRequest) -> dict:
    try:
        content = generate(
            request.lift_config.to_config(), request.scenario.to_scenario(), request.name
        )
    except InvalidArgument as exc:
        raise _error(exc)
    return {"content": content}


@app.post("/scenarios/validate")
def validate_scenario(request: ValidateRequest) -> dict:
    try:
        definition = parse(request.content)
    except ParseError as exc:
        raise _error(exc)
    return {
        "header": definition.header(),
        "events": [
            {
                "tick": event.tick,
                "kind": event.kind,
                "alias": event.alias,
                "floor": event.floor,
                "direction": event.direction.value,
            }
            for event in definition.events
        ],
    }


@app.post("/runs")
def run_scenario(request: RunRequest) -> dict:
    try:
        definition = parse(request.content)
        engine = SimulationEngine(
            definition,
            lift_count=request.lifts,
            controller_strategy=request.controller_strategy,
            idle_parking_mode=request.idle_parking_mode,
        )
        report = engine.run()
    except (ParseError, InvalidArgument, Unsupported) as exc:
        logger.warning("Run request rejected: %s", exc)
        raise _error(exc)
    return report.to_dict()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
