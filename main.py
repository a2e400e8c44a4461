import argparse
import logging
import time

import numpy as np

from trade_breakdown.breakdown_engine import TradeBreakdown, best_of_policies
from trade_breakdown.config import BreakdownConfig
from trade_breakdown.enums import SwapPolicy
from trade_breakdown.models import ClientOrder, Trade
from trade_breakdown.report import client_summary


def make_trades(n_trades: int, rng: np.random.Generator) -> dict:
    """Random fills: sizes in [100, 500), integer prices in [10, 15)."""
    sizes = rng.integers(100, 500, n_trades)
    prices = rng.integers(10, 15, n_trades)
    return {
        i: Trade(i, int(size), float(price))
        for i, (size, price) in enumerate(zip(sizes, prices))
    }


def make_client_orders(total: int, n_clients: int) -> dict:
    """Equal requests; the last client absorbs the remainder."""
    each = total // n_clients
    orders = {i: ClientOrder(i, each) for i in range(n_clients - 1)}
    last = n_clients - 1
    orders[last] = ClientOrder(last, total - each * (n_clients - 1))
    return orders


def time_runs(orders: dict, trades: dict, config: BreakdownConfig, repeats: int) -> None:
    engine = TradeBreakdown(config)
    slippage = 0.0
    start = time.perf_counter()
    for _ in range(repeats):
        _, slippage = engine.breakdown(orders, trades)
    elapsed = (time.perf_counter() - start) * 1000
    print(f"  {config.swap_policy.value:<12} T0={config.start_temperature:<7} "
          f"cooling={config.cooling_factor:<6} best slippage={slippage:.6f} "
          f"time={elapsed:.0f} ms for {repeats} runs")


def main():
    parser = argparse.ArgumentParser(description="Trade breakdown performance simulation")
    parser.add_argument("--trades", type=int, default=1000, help="Number of random trades")
    parser.add_argument("--clients", type=int, default=10, help="Number of client orders")
    parser.add_argument("--repeats", type=int, default=5, help="Runs per configuration")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Log optimizer progress")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    seed = args.seed if args.seed is not None else int(time.time())
    trades = make_trades(args.trades, np.random.default_rng(seed))
    total = sum(t.quantity for t in trades.values())
    orders = make_client_orders(total, args.clients)

    print("...Performance simulation...")
    print(f"{len(trades)} trades, {len(orders)} clients, {total} shares, seed={seed}")

    for start_temperature, cooling_factor in ((1100, 0.995), (11000, 0.999)):
        for policy in SwapPolicy:
            config = BreakdownConfig(
                start_temperature=start_temperature,
                cooling_factor=cooling_factor,
                swap_policy=policy,
                random_seed=seed,
            )
            time_runs(orders, trades, config, args.repeats)

    best = best_of_policies(orders, trades, BreakdownConfig(random_seed=seed))
    print(f"\nSuggested policy: {best.swap_policy.value} "
          f"(slippage {best.slippage:.6f}, benchmark {best.benchmark_price:.4f})")
    print(client_summary(best.allocation).to_string())


if __name__ == "__main__":
    main()
