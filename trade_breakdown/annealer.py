"""
trade_breakdown/annealer.py
---------------------------
Simulated-annealing search over an :class:`AllocationLedger`.

Each iteration picks two clients and two trades, swaps quantity between the
pairs in place, scores the result and either keeps the move or applies its
exact inverse.  The live ledger is never copied per iteration; only an
improvement on the best score takes a (frozen) snapshot.

The random source is the ``numpy.random.Generator`` handed to the
constructor; the annealer draws from nothing else.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from trade_breakdown.allocation_ledger import AllocationLedger, ClientLedger
from trade_breakdown.config import ACCEPTABLE_ERROR
from trade_breakdown.enums import SwapPolicy

logger = logging.getLogger(__name__)


def expected_iterations(start_temperature: float, cooling_factor: float) -> int:
    """
    Number of iterations the cooling schedule allows when no early stop
    happens: the count of ``k ≥ 0`` with ``start × cooling**k > 1``.
    """
    if start_temperature <= 1:
        return 0
    return math.ceil(math.log(start_temperature) / -math.log(cooling_factor))


@dataclass
class AnnealResult:
    """Outcome of one annealing run."""
    best: AllocationLedger
    best_slippage: float
    initial_slippage: float
    iterations: int = 0
    accepted: int = 0
    best_trace: List[float] = field(default_factory=list)


class Annealer:
    """
    Parameters
    ----------
    rng:
        Random source owned by the caller's run.  Never share one between
        concurrently executing runs.
    start_temperature, cooling_factor:
        Geometric cooling schedule; the loop runs while temperature > 1.
    swap_policy:
        :class:`SwapPolicy` deciding how much quantity a move transfers.
    acceptable_error:
        Stop as soon as the best slippage is at or below this value.
    """

    def __init__(
        self,
        rng: np.random.Generator,
        start_temperature: float,
        cooling_factor: float,
        swap_policy: SwapPolicy,
        acceptable_error: float = ACCEPTABLE_ERROR,
    ):
        self._rng = rng
        self.start_temperature = start_temperature
        self.cooling_factor = cooling_factor
        self.swap_policy = swap_policy
        self.acceptable_error = acceptable_error

    def run(self, ledger: AllocationLedger) -> AnnealResult:
        """
        Anneal *ledger* in place and return the best snapshot seen.

        *ledger* keeps the last accepted state when this returns; callers
        should use ``result.best`` instead.
        """
        current_slippage = ledger.slippage()
        result = AnnealResult(
            best=ledger.snapshot(),
            best_slippage=current_slippage,
            initial_slippage=current_slippage,
            best_trace=[current_slippage],
        )

        if not ledger.clients or not ledger.trade_ids:
            return result

        temperature = self.start_temperature
        while temperature > 1 and result.best_slippage > self.acceptable_error:
            result.iterations += 1

            client1, trade1, client2, trade2 = self._pick_move(ledger)
            amount = self._swap_amount(client1, trade1, client2, trade2)

            if amount:
                ledger.swap(client1, trade1, client2, trade2, amount)
                new_slippage = ledger.slippage()
            else:
                new_slippage = current_slippage

            if new_slippage < result.best_slippage:
                result.best = ledger.snapshot()
                result.best_slippage = new_slippage
                result.best_trace.append(new_slippage)
                logger.debug(
                    f"Iteration {result.iterations}: best slippage "
                    f"{new_slippage:.6f} at T={temperature:.3f}"
                )

            if self._accept(new_slippage, current_slippage, temperature):
                current_slippage = new_slippage
                result.accepted += 1
            elif amount:
                ledger.undo_swap(client1, trade1, client2, trade2, amount)

            temperature *= self.cooling_factor

        logger.info(
            f"Annealing finished after {result.iterations} iterations "
            f"({result.accepted} accepted): slippage "
            f"{result.initial_slippage:.6f} -> {result.best_slippage:.6f}"
        )
        return result

    # ------------------------------------------------------------------ #
    #  Move generation
    # ------------------------------------------------------------------ #

    def _pick_move(self, ledger: AllocationLedger) -> Tuple[ClientLedger, int, ClientLedger, int]:
        """Two client positions, then two trade positions; a collision advances the second pick by one."""
        n_clients = len(ledger.clients)
        position1 = int(self._rng.integers(0, n_clients))
        position2 = int(self._rng.integers(0, n_clients))
        if position1 == position2:
            position2 = (position2 + 1) % n_clients

        n_trades = len(ledger.trade_ids)
        trade_pos1 = int(self._rng.integers(0, n_trades))
        trade_pos2 = int(self._rng.integers(0, n_trades))
        if trade_pos1 == trade_pos2:
            trade_pos2 = (trade_pos2 + 1) % n_trades

        return (
            ledger.clients[position1],
            ledger.trade_ids[trade_pos1],
            ledger.clients[position2],
            ledger.trade_ids[trade_pos2],
        )

    def _swap_amount(self, client1: ClientLedger, trade1: int, client2: ClientLedger, trade2: int) -> int:
        """Quantity to move, or 0 for a no-op."""
        # single client or single trade: the move would be an identity
        if client1 is client2 or trade1 == trade2:
            return 0

        transferable = min(client1.holding(trade1), client2.holding(trade2))
        if transferable == 0:
            return 0

        if self.swap_policy is SwapPolicy.RANDOM_SWAP:
            if transferable == 1:
                return 1
            return int(self._rng.integers(1, transferable))
        return transferable

    def _accept(self, new_slippage: float, current_slippage: float, temperature: float) -> bool:
        """Metropolis criterion."""
        if new_slippage < current_slippage:
            return True
        return math.exp((current_slippage - new_slippage) / temperature) > self._rng.random()


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """A fresh generator; seeded from OS entropy when *seed* is ``None``."""
    return np.random.default_rng(seed)
