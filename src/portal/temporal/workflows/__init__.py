"""Temporal workflows - re-exports for worker registration."""

from src.portal.temporal.workflows.retention_sweep import (
    RetentionSweepInput,
    RetentionSweepWorkflow,
)

__all__ = [
    "RetentionSweepInput",
    "RetentionSweepWorkflow",
]
