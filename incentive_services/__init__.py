"""
incentive_services -- orchestration over config and engines.

``run_scheme`` / ``RunOrchestrator`` execute one scheme over one data
snapshot; ``incentive_services.cli`` is the command-line entrypoint.
"""

from incentive_services.run_orchestrator import (
    AgentRunResult,
    RunOptions,
    RunOrchestrator,
    run_scheme,
)

__all__ = [
    "AgentRunResult",
    "RunOptions",
    "RunOrchestrator",
    "run_scheme",
]
