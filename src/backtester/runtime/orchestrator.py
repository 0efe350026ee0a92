"""Fan a backtest request out over (symbol, strategy) pairs and rank the results."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence, Union

from backtester.config.models import EngineConfig
from backtester.errors import BacktestError
from backtester.market.provider import PriceSeriesProvider
from backtester.monitoring.audit import AuditLog
from backtester.monitoring.notifier import Notifier
from backtester.runtime.request import BacktestMode, BacktestRequest, BacktestResponse, PairFailure
from backtester.simulator.backtest import run_backtest
from backtester.simulator.models import BacktestResult, MonteCarloResult
from backtester.simulator.monte_carlo import MonteCarloResampler
from backtester.strategy.base import StrategyName
from backtester.strategy.factory import HYBRID_MEMBERS

TIMEOUT_CODE = "timeout"
UNEXPECTED_CODE = "unexpected"

PairOutcome = Union[tuple[BacktestResult, Optional[MonteCarloResult]], PairFailure]


def select_best(results: Sequence[BacktestResult]) -> Optional[BacktestResult]:
    if not results:
        return None
    # max keeps the first of equal keys, so ties beyond sharpe fall back to request order
    return max(results, key=lambda result: (result.total_return_pct, result.sharpe_ratio))


class BacktestOrchestrator:
    def __init__(
        self,
        provider: PriceSeriesProvider,
        config: Optional[EngineConfig] = None,
        audit_log: Optional[AuditLog] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.provider = provider
        self.config = config or EngineConfig()
        self._audit_log = audit_log
        self._notifier = notifier

    def _log(self, event: str, payload: dict[str, Any]) -> None:
        if self._audit_log is None:
            return
        self._audit_log.log(event, payload)

    def _notify(self, event: str, message: str) -> None:
        if self._notifier is None:
            return
        self._notifier.notify(event, message)

    def prepare(self, request: BacktestRequest | dict[str, Any]) -> BacktestRequest:
        if not isinstance(request, BacktestRequest):
            request = BacktestRequest.from_dict(request, self.config.risk)
        request.validate()
        return request

    def run(self, request: BacktestRequest | dict[str, Any]) -> BacktestResponse:
        prepared = self.prepare(request)
        return asyncio.run(self._run(prepared))

    async def run_async(self, request: BacktestRequest | dict[str, Any]) -> BacktestResponse:
        prepared = self.prepare(request)
        return await self._run(prepared)

    def strategy_parameters(self, strategy: StrategyName) -> dict[str, Any]:
        parameters = self.config.strategy_parameters(strategy.value)
        if strategy == StrategyName.HYBRID:
            members = dict(parameters.get("members") or {})
            for member in HYBRID_MEMBERS:
                members.setdefault(member.value, self.config.strategy_parameters(member.value))
            parameters["members"] = members
        return parameters

    def _backtest_pair(
        self,
        request: BacktestRequest,
        symbol: str,
        strategy: StrategyName,
    ) -> tuple[BacktestResult, Optional[MonteCarloResult]]:
        interval = request.interval or self.config.simulator.interval
        bars = self.provider.get_bars(symbol, request.start, request.end, interval)
        result = run_backtest(
            symbol,
            bars,
            request.strategy_config(strategy, self.strategy_parameters(strategy)),
            interval=interval,
            settings=self.config.simulator,
            indicators=self.config.indicators,
        )
        monte_carlo = None
        if request.run_monte_carlo:
            resampler = MonteCarloResampler.from_config(self.config.monte_carlo, request.monte_carlo_simulations)
            monte_carlo = resampler.resample_trades(result.trades)
        return result, monte_carlo

    async def _run_pair(
        self,
        executor: ThreadPoolExecutor,
        request: BacktestRequest,
        index: int,
        symbol: str,
        strategy: StrategyName,
        outcomes: dict[int, PairOutcome],
    ) -> None:
        loop = asyncio.get_running_loop()
        try:
            outcome = await loop.run_in_executor(executor, self._backtest_pair, request, symbol, strategy)
        except BacktestError as exc:
            outcomes[index] = PairFailure(symbol=symbol, strategy=strategy, code=exc.code, message=str(exc))
        except Exception as exc:
            outcomes[index] = PairFailure(
                symbol=symbol,
                strategy=strategy,
                code=UNEXPECTED_CODE,
                message=f"{type(exc).__name__}: {exc}",
            )
        else:
            outcomes[index] = outcome

    async def _run(self, request: BacktestRequest) -> BacktestResponse:
        pairs = request.pairs()
        self._log(
            "backtest_request",
            {
                "mode": request.mode.value,
                "symbols": request.symbols,
                "strategies": [strategy.value for strategy in request.strategies],
                "pairs": len(pairs),
                "run_monte_carlo": request.run_monte_carlo,
            },
        )

        outcomes: dict[int, PairOutcome] = {}
        timed_out = False
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.config.orchestrator.max_workers, len(pairs))),
            thread_name_prefix="backtest",
        )
        try:
            async with asyncio.timeout(self.config.orchestrator.timeout_seconds):
                async with asyncio.TaskGroup() as group:
                    for index, (symbol, strategy) in enumerate(pairs):
                        group.create_task(self._run_pair(executor, request, index, symbol, strategy, outcomes))
        except TimeoutError:
            timed_out = True
        finally:
            # pending pairs are abandoned on timeout rather than joined
            executor.shutdown(wait=not timed_out, cancel_futures=True)

        results: list[BacktestResult] = []
        failures: list[PairFailure] = []
        monte_carlo: dict[str, Optional[MonteCarloResult]] = {}
        for index, (symbol, strategy) in enumerate(pairs):
            outcome = outcomes.get(index)
            if outcome is None:
                outcome = PairFailure(
                    symbol=symbol,
                    strategy=strategy,
                    code=TIMEOUT_CODE,
                    message=f"Not completed within {self.config.orchestrator.timeout_seconds}s",
                )
            if isinstance(outcome, PairFailure):
                failures.append(outcome)
                self._log("pair_failed", {"key": outcome.key, "code": outcome.code, "message": outcome.message})
                self._notify("pair_failed", f"{outcome.key} [{outcome.code}] {outcome.message}")
                continue

            result, simulation = outcome
            results.append(result)
            self._log(
                "pair_completed",
                {
                    "key": result.key,
                    "total_return_pct": result.total_return_pct,
                    "total_trades": result.total_trades,
                    "warnings": result.warnings,
                },
            )
            if request.run_monte_carlo:
                monte_carlo[result.key] = simulation
                self._log(
                    "monte_carlo",
                    {
                        "key": result.key,
                        "available": simulation is not None,
                        "median": simulation.median if simulation else None,
                        "probability_of_profit": simulation.probability_of_profit if simulation else None,
                    },
                )

        if timed_out:
            self._notify("timeout", f"{len(pairs) - len(outcomes)} of {len(pairs)} pairs did not finish")

        best_result = select_best(results)
        best = None
        if best_result is not None:
            best = best_result.symbol if request.mode == BacktestMode.COMPARE_SYMBOLS else best_result.strategy.value

        response = BacktestResponse(
            mode=request.mode,
            results=results,
            failures=failures,
            best=best,
            best_key=best_result.key if best_result else None,
            monte_carlo=monte_carlo,
            timed_out=timed_out,
        )
        self._log(
            "backtest_response",
            {"best": response.best, "timed_out": timed_out, "summary": response.summary},
        )
        return response
