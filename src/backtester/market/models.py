"""Price bar data structures."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

from backtester.errors import DataIntegrityError


class BarInterval(str, Enum):
    DAILY = "1d"
    WEEKLY = "1wk"
    MONTHLY = "1mo"

    @property
    def periods_per_year(self) -> int:
        if self == BarInterval.WEEKLY:
            return 52
        if self == BarInterval.MONTHLY:
            return 12
        return 252

    @classmethod
    def _missing_(cls, value):
        aliases = {
            "daily": cls.DAILY,
            "day": cls.DAILY,
            "weekly": cls.WEEKLY,
            "week": cls.WEEKLY,
            "monthly": cls.MONTHLY,
            "month": cls.MONTHLY,
        }
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


@dataclass(frozen=True)
class Bar:
    timestamp: datetime
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: Optional[float]
    volume: float = 0.0

    @property
    def range(self) -> float:
        return self.high - self.low


def _bad_price(value: Optional[float]) -> bool:
    return value is None or math.isnan(value) or math.isinf(value) or value <= 0


def validate_bars(bars: Sequence[Bar], symbol: str = "") -> None:
    label = f" for {symbol}" if symbol else ""
    previous: Optional[datetime] = None
    for index, bar in enumerate(bars):
        for field_name in ("open", "high", "low", "close"):
            value = getattr(bar, field_name)
            if _bad_price(value):
                raise DataIntegrityError(
                    f"Bar {index}{label} at {bar.timestamp} has invalid {field_name}: {value!r}"
                )
        if bar.volume is None or math.isnan(bar.volume) or bar.volume < 0:
            raise DataIntegrityError(f"Bar {index}{label} at {bar.timestamp} has invalid volume: {bar.volume!r}")
        if bar.high < bar.low:
            raise DataIntegrityError(f"Bar {index}{label} at {bar.timestamp} has high below low")
        if previous is not None and bar.timestamp <= previous:
            raise DataIntegrityError(f"Bar {index}{label} timestamp {bar.timestamp} is not after {previous}")
        previous = bar.timestamp
