"""Builder agents — draft and repair tests."""

from autojest.agents.builders.unit import (
    BuildTask,
    GenerationSession,
    RepairSeed,
    SessionState,
    UnitBuilder,
)

__all__ = [
    "BuildTask",
    "GenerationSession",
    "RepairSeed",
    "SessionState",
    "UnitBuilder",
]
