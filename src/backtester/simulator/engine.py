"""Bar-by-bar trade simulator (FLAT/LONG state machine)."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional, Sequence

from backtester.config.models import IndicatorConfig, IntrabarPolicy
from backtester.errors import InvalidConfigError
from backtester.market.models import Bar, validate_bars
from backtester.simulator.models import (
    EquityPoint,
    Position,
    ReasonCode,
    SimulationRun,
    StrategyConfig,
    Trade,
    TradeAction,
)
from backtester.strategy.base import Signal, SignalStrategy
from backtester.strategy.factory import build_strategy
from backtester.strategy.snapshot import SnapshotBuilder


class TradeSimulator:
    def __init__(
        self,
        config: StrategyConfig,
        strategy: Optional[SignalStrategy] = None,
        indicators: Optional[IndicatorConfig] = None,
        intrabar_policy: IntrabarPolicy = IntrabarPolicy.STOP_FIRST,
        trailing_activation_pct: Optional[float] = None,
    ) -> None:
        config.validate()
        if trailing_activation_pct is not None and trailing_activation_pct < 0:
            raise InvalidConfigError(f"trailing_activation_pct must be >= 0, got {trailing_activation_pct}")
        self.config = config
        self.strategy = strategy or build_strategy(config.name, config.parameters)
        self.indicators = indicators or IndicatorConfig()
        self.intrabar_policy = intrabar_policy
        self.trailing_activation_pct = trailing_activation_pct

    def stop_price(self, position: Position) -> Optional[float]:
        if self.config.stop_loss_pct is None:
            return None
        return position.entry_price * (1.0 - self.config.stop_loss_pct)

    def trailing_stop_price(self, position: Position) -> Optional[float]:
        if self.config.trailing_stop_pct is None:
            return None
        # armed only once the peak has cleared the activation gain
        activation = self.trailing_activation_pct
        if activation is not None and position.peak_price < position.entry_price * (1.0 + activation):
            return None
        return position.peak_price * (1.0 - self.config.trailing_stop_pct)

    def take_profit_price(self, position: Position) -> Optional[float]:
        if self.config.take_profit_pct is None:
            return None
        return position.entry_price * (1.0 + self.config.take_profit_pct)

    def _risk_exit(self, position: Position, bar: Bar) -> Optional[tuple[float, ReasonCode]]:
        stop = self.stop_price(position)
        trailing = self.trailing_stop_price(position)
        target = self.take_profit_price(position)

        stop_side: list[tuple[float, ReasonCode]] = []
        if stop is not None and bar.low <= stop:
            stop_side.append((stop, ReasonCode.STOP_LOSS))
        if trailing is not None and bar.low <= trailing:
            stop_side.append((trailing, ReasonCode.TRAILING_STOP))
        target_side: list[tuple[float, ReasonCode]] = []
        if target is not None and bar.high >= target:
            target_side.append((target, ReasonCode.TAKE_PROFIT))

        # a down bar under open_direction is assumed to reach its high before its low
        if self.intrabar_policy == IntrabarPolicy.OPEN_DIRECTION and bar.close < bar.open:
            ordered = target_side + stop_side
        else:
            ordered = stop_side + target_side
        return ordered[0] if ordered else None

    def _size(self, cash: float, close: float) -> int:
        quantity = math.floor((cash * self.config.position_size_pct) / close)
        while quantity > 0 and quantity * close > cash:
            quantity -= 1
        return max(quantity, 0)

    @staticmethod
    def _close(position: Position, price: float, timestamp: datetime, reason: ReasonCode) -> Trade:
        return Trade(
            action=TradeAction.SELL,
            price=price,
            quantity=position.quantity,
            timestamp=timestamp,
            reason_code=reason,
            profit_loss=(price - position.entry_price) * position.quantity,
            return_pct=(price - position.entry_price) / position.entry_price * 100,
        )

    def run(self, bars: Sequence[Bar], symbol: str = "") -> SimulationRun:
        validate_bars(bars, symbol)
        builder = SnapshotBuilder(self.indicators)
        cash = float(self.config.initial_capital)
        position: Optional[Position] = None
        trades: list[Trade] = []
        equity_curve: list[EquityPoint] = []
        last_index = len(bars) - 1

        for index, bar in enumerate(bars):
            snapshot = builder.build(bars, index)
            signal = self.strategy.evaluate(index, snapshot)

            if position is not None:
                exit_ = self._risk_exit(position, bar)
                if exit_ is None and signal == Signal.EXIT_LONG:
                    exit_ = (bar.close, ReasonCode.SIGNAL)
                if exit_ is not None:
                    price, reason = exit_
                    cash += price * position.quantity
                    trades.append(self._close(position, price, bar.timestamp, reason))
                    position = None
                else:
                    position.peak_price = max(position.peak_price, bar.high)
            elif signal == Signal.ENTER_LONG:
                quantity = self._size(cash, bar.close)
                if quantity > 0:
                    cash -= quantity * bar.close
                    position = Position(
                        entry_price=bar.close,
                        entry_time=bar.timestamp,
                        quantity=quantity,
                        peak_price=bar.close,
                    )
                    trades.append(
                        Trade(
                            action=TradeAction.BUY,
                            price=bar.close,
                            quantity=quantity,
                            timestamp=bar.timestamp,
                            reason_code=ReasonCode.SIGNAL,
                        )
                    )

            if index == last_index and position is not None:
                cash += bar.close * position.quantity
                trades.append(self._close(position, bar.close, bar.timestamp, ReasonCode.END_OF_PERIOD))
                position = None

            value = cash
            if position is not None:
                value += position.quantity * bar.close
            equity_curve.append(EquityPoint(timestamp=bar.timestamp, value=value))

        return SimulationRun(trades=trades, equity_curve=equity_curve, final_cash=cash)
