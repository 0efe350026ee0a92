import math
from datetime import datetime, timedelta

from backtester.market import Bar, InMemoryBarProvider
from backtester.runtime import BacktestOrchestrator


start = datetime(2024, 1, 2)
bars = []
for day in range(120):
    close = 100 + 8 * math.sin(day / 6) + day * 0.15
    bars.append(
        Bar(
            timestamp=start + timedelta(days=day),
            open=close - 0.4,
            high=close + 1.2,
            low=close - 1.4,
            close=close,
            volume=1_000_000 + (day % 7) * 50_000,
        )
    )

provider = InMemoryBarProvider({"DEMO": bars})
orchestrator = BacktestOrchestrator(provider)

response = orchestrator.run(
    {
        "mode": "compare_strategies",
        "symbol": "DEMO",
        "strategies": ["momentum", "mean_reversion", "trend_following", "volatility_breakout", "hybrid"],
        "runMonteCarlo": True,
        "monteCarloSimulations": 500,
    }
)

for result in response.results:
    print(
        f"{result.key}: return={result.total_return_pct:.2f}% trades={result.total_trades} "
        f"win_rate={result.win_rate:.1f}% sharpe={result.sharpe_ratio:.2f} dd={result.max_drawdown_pct:.2f}%"
    )
    simulation = response.monte_carlo.get(result.key)
    if simulation is None:
        print("  monte carlo: unavailable")
    else:
        print(f"  monte carlo: median={simulation.median:.2f}% p(profit)={simulation.probability_of_profit:.1f}%")
print("Best strategy:", response.best)
print("Summary:", response.summary)
