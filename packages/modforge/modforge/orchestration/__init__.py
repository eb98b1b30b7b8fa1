"""Orchestration layer — add/delete pipelines with compensating actions."""

from modforge.orchestration.context import ModuleOperationResult, Operation, PipelineContext, Stage
from modforge.orchestration.pipeline import Orchestrator
from modforge.orchestration.saga import CompensationStack

__all__ = [
    "CompensationStack",
    "ModuleOperationResult",
    "Operation",
    "Orchestrator",
    "PipelineContext",
    "Stage",
]
