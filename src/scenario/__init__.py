"""Scenario text format: definitions, parsing and generation."""

from .definition import HALL_CALL, ScenarioDefinition, ScenarioEvent, format_scenario
from .generator import (
    LiftConfig,
    PassengerFlow,
    PassengerFlowScenario,
    generate,
    generate_batch_input_file,
)
from .parser import parse, parse_file

__all__ = [
    "HALL_CALL",
    "LiftConfig",
    "PassengerFlow",
    "PassengerFlowScenario",
    "ScenarioDefinition",
    "ScenarioEvent",
    "format_scenario",
    "generate",
    "generate_batch_input_file",
    "parse",
    "parse_file",
]
