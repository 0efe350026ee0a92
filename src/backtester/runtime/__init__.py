"""Request handling, orchestration and run context."""

from backtester.runtime.context import RunContext, create_run_context
from backtester.runtime.orchestrator import BacktestOrchestrator, select_best
from backtester.runtime.request import BacktestMode, BacktestRequest, BacktestResponse, PairFailure

__all__ = [
    "BacktestMode",
    "BacktestOrchestrator",
    "BacktestRequest",
    "BacktestResponse",
    "PairFailure",
    "RunContext",
    "create_run_context",
    "select_best",
]
