"""Orchestrator layer for coordinating services and repositories."""

from .monitor_orchestrator import MonitorOrchestrator, OrchestratorStatus

__all__ = [
    "MonitorOrchestrator",
    "OrchestratorStatus",
]
