"""
trade_breakdown/breakdown_engine.py
-----------------------------------
Entry point: split executed trades among client orders so each client's
average price tracks the pool's volume-weighted average price.

Pipeline
--------
validate → scale to lots → seed → anneal → scale back → extract

Design contract:
  - Caller records are copied on entry and never mutated
  - One random generator per :class:`TradeBreakdown` instance
  - Errors propagate; a failed run returns nothing
"""

from __future__ import annotations

import gc
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Mapping, Optional, Tuple

from trade_breakdown.annealer import Annealer, make_rng
from trade_breakdown.config import BreakdownConfig
from trade_breakdown.enums import SwapPolicy
from trade_breakdown.lot_normalizer import scale_down, scale_up
from trade_breakdown.models import (
    ClientOrderInput,
    TradeInput,
    coerce_client_orders,
    coerce_trades,
)
from trade_breakdown.result_extractor import Allocation, extract_allocation
from trade_breakdown.seed_builder import build_seed_ledger
from trade_breakdown.validator import validate_inputs

logger = logging.getLogger(__name__)


@dataclass
class BreakdownResult:
    """Everything a run produces; :func:`breakdown` returns only the first two fields."""
    allocation: Allocation
    slippage: float
    benchmark_price: float
    swap_policy: SwapPolicy
    iterations: int = 0
    accepted: int = 0
    initial_slippage: float = 0.0
    best_trace: List[float] = field(default_factory=list)


@contextmanager
def _gc_paused() -> Iterator[None]:
    """Suspend the cyclic garbage collector for the duration of a run."""
    was_enabled = gc.isenabled()
    gc.disable()
    try:
        yield
    finally:
        if was_enabled:
            gc.enable()


class TradeBreakdown:
    """
    Reusable optimizer bound to one :class:`BreakdownConfig`.

    The instance owns its random generator: consecutive runs on the same
    instance continue the same random stream, while two instances built with
    the same seed produce identical results.
    """

    def __init__(self, config: Optional[BreakdownConfig] = None):
        self.config = config or BreakdownConfig()
        self._rng = make_rng(self.config.random_seed)

    def run(
        self,
        client_orders: Mapping[int, ClientOrderInput],
        trades: Mapping[int, TradeInput],
    ) -> BreakdownResult:
        """
        Break *trades* down among *client_orders*.

        Parameters
        ----------
        client_orders:
            ``{client_id: ClientOrder}`` or ``{client_id: quantity}``.
        trades:
            ``{trade_id: Trade}`` or ``{trade_id: (quantity, price)}``.

        Raises
        ------
        InvalidInputError
            Inputs are inconsistent; raised before any allocation.
        AllocationError
            A ledger invariant broke during the run (internal defect).
        """
        config = self.config
        orders = coerce_client_orders(client_orders)
        fills = coerce_trades(trades)

        validate_inputs(orders, fills, config.min_lot_size)

        lot_size = config.min_lot_size
        if lot_size > 1:
            orders, fills = scale_down(orders, fills, lot_size)

        logger.info(
            f"Breaking down {len(fills)} trades among {len(orders)} clients "
            f"(policy={config.swap_policy.value}, lot={lot_size}, "
            f"T0={config.start_temperature}, cooling={config.cooling_factor})"
        )

        with _gc_paused():
            ledger = build_seed_ledger(orders, fills)
            annealer = Annealer(
                self._rng,
                config.start_temperature,
                config.cooling_factor,
                config.swap_policy,
            )
            outcome = annealer.run(ledger)

        best = scale_up(outcome.best, lot_size)
        best.verify_conservation()

        logger.info(
            f"Breakdown complete: benchmark={best.benchmark_price:.6f}, "
            f"slippage={outcome.best_slippage:.6f}"
        )

        return BreakdownResult(
            allocation=extract_allocation(best),
            slippage=outcome.best_slippage,
            benchmark_price=best.benchmark_price,
            swap_policy=config.swap_policy,
            iterations=outcome.iterations,
            accepted=outcome.accepted,
            initial_slippage=outcome.initial_slippage,
            best_trace=outcome.best_trace,
        )

    def breakdown(
        self,
        client_orders: Mapping[int, ClientOrderInput],
        trades: Mapping[int, TradeInput],
    ) -> Tuple[Allocation, float]:
        """``(allocation, achieved_slippage)`` for one run."""
        result = self.run(client_orders, trades)
        return result.allocation, result.slippage


def breakdown(
    client_orders: Mapping[int, ClientOrderInput],
    trades: Mapping[int, TradeInput],
    config: Optional[BreakdownConfig] = None,
) -> Tuple[Allocation, float]:
    """
    Allocate *trades* among *client_orders* minimising slippage.

    Returns
    -------
    tuple
        ``allocation``: ``{client_id: {trade_id: Trade}}`` with zero
        entries omitted, and the achieved slippage (Σ |client average price −
        benchmark price|).
    """
    return TradeBreakdown(config).breakdown(client_orders, trades)


def best_of_policies(
    client_orders: Mapping[int, ClientOrderInput],
    trades: Mapping[int, TradeInput],
    config: Optional[BreakdownConfig] = None,
) -> BreakdownResult:
    """
    Run the breakdown once with each :class:`SwapPolicy` and return the
    lower-slippage result (FastSwap wins ties).

    Both runs share *config*'s seed, so the comparison is reproducible when a
    seed is set.
    """
    base = config or BreakdownConfig()
    results = [
        TradeBreakdown(replace(base, swap_policy=policy)).run(client_orders, trades)
        for policy in (SwapPolicy.FAST_SWAP, SwapPolicy.RANDOM_SWAP)
    ]
    best = min(results, key=lambda r: r.slippage)
    logger.info(
        "Policy comparison: "
        + ", ".join(f"{r.swap_policy.value}={r.slippage:.6f}" for r in results)
        + f" -> {best.swap_policy.value}"
    )
    return best
