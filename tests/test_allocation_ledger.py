"""
tests/test_allocation_ledger.py
-------------------------------
Unit tests for AllocationLedger and its records.

Test coverage:
    add_allocation bookkeeping and average price
    OverAllocation / InvariantViolation / MissingAllocation guards
    Failed mutations leave state untouched
    swap / undo_swap round trip is bit-identical
    Slippage definition
    Frozen snapshots and conservation checks
"""

import unittest

from trade_breakdown.allocation_ledger import AllocationLedger, ClientLedger, TradeBalance
from trade_breakdown.exceptions import (
    InvariantViolationError,
    MissingAllocationError,
    OverAllocationError,
)
from trade_breakdown.models import ClientOrder, Trade
from trade_breakdown.seed_builder import build_seed_ledger


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ledger() -> AllocationLedger:
    """Two clients (150 / 50) over two trades of 100 @ 10 and 100 @ 11."""
    clients = [ClientLedger(1, 150, 0.75), ClientLedger(2, 50, 0.25)]
    trades = [TradeBalance(1, 100, 10.0), TradeBalance(2, 100, 11.0)]
    return AllocationLedger(clients, trades, benchmark_price=10.5)


def _state(ledger: AllocationLedger) -> tuple:
    """Everything a mutation can touch, in comparable form."""
    clients = tuple(
        (c.client_id, dict(c.allocations), c.total_allocated, c.notional, c.average_price)
        for c in ledger.clients
    )
    trades = tuple(
        (b.trade_id, b.allocated, b.remaining) for b in ledger.trades.values()
    )
    return clients, trades


def _seeded_float_ledger() -> AllocationLedger:
    orders = {1: ClientOrder(1, 310), 2: ClientOrder(2, 125), 3: ClientOrder(3, 65)}
    trades = {
        1: Trade(1, 120, 10.01),
        2: Trade(2, 230, 11.37),
        3: Trade(3, 90, 9.93),
        4: Trade(4, 60, 12.49),
    }
    return build_seed_ledger(orders, trades)


# ===========================================================================
# 1. add / remove bookkeeping
# ===========================================================================

class TestAddAllocation(unittest.TestCase):

    def test_updates_client_and_trade(self):
        ledger = _ledger()
        client = ledger.clients[0]
        ledger.add_allocation(client, 1, 100)

        self.assertEqual(client.allocations, {1: 100})
        self.assertEqual(client.total_allocated, 100)
        self.assertEqual(client.average_price, 10.0)
        self.assertEqual(ledger.trades[1].allocated, 100)
        self.assertEqual(ledger.trades[1].remaining, 0)

    def test_average_price_is_volume_weighted(self):
        ledger = _ledger()
        client = ledger.clients[0]
        ledger.add_allocation(client, 1, 100)
        ledger.add_allocation(client, 2, 50)
        self.assertAlmostEqual(client.average_price, (1000 + 550) / 150, places=12)

    def test_zero_amount_registers_trade(self):
        ledger = _ledger()
        client = ledger.clients[1]
        ledger.add_allocation(client, 2, 0)
        self.assertEqual(client.allocations, {2: 0})
        self.assertEqual(client.average_price, 0.0)

    def test_over_allocation_raises(self):
        ledger = _ledger()
        client = ledger.clients[1]
        with self.assertRaises(OverAllocationError):
            ledger.add_allocation(client, 2, 51)

    def test_over_distribution_raises(self):
        ledger = _ledger()
        ledger.add_allocation(ledger.clients[0], 1, 100)
        with self.assertRaises(InvariantViolationError):
            ledger.add_allocation(ledger.clients[1], 1, 1)

    def test_negative_amount_raises(self):
        ledger = _ledger()
        with self.assertRaises(InvariantViolationError):
            ledger.add_allocation(ledger.clients[0], 1, -1)

    def test_failed_add_leaves_state_unchanged(self):
        ledger = _ledger()
        ledger.add_allocation(ledger.clients[1], 2, 40)
        before = _state(ledger)
        with self.assertRaises(OverAllocationError):
            ledger.add_allocation(ledger.clients[1], 1, 11)
        self.assertEqual(_state(ledger), before)


class TestRemoveAllocation(unittest.TestCase):

    def test_remove_not_held_raises(self):
        ledger = _ledger()
        with self.assertRaises(MissingAllocationError):
            ledger.remove_allocation(ledger.clients[1], 1, 1)

    def test_remove_more_than_held_raises(self):
        ledger = _ledger()
        client = ledger.clients[0]
        ledger.add_allocation(client, 2, 50)
        with self.assertRaises(InvariantViolationError):
            ledger.remove_allocation(client, 2, 51)

    def test_remove_everything_resets_average(self):
        ledger = _ledger()
        client = ledger.clients[0]
        ledger.add_allocation(client, 2, 50)
        ledger.remove_allocation(client, 2, 50)
        self.assertEqual(client.total_allocated, 0)
        self.assertEqual(client.average_price, 0.0)
        self.assertEqual(client.allocations, {2: 0})
        self.assertEqual(ledger.trades[2].remaining, 100)

    def test_remove_is_inverse_of_add(self):
        ledger = _ledger()
        client = ledger.clients[0]
        ledger.add_allocation(client, 1, 70)
        before = _state(ledger)
        ledger.add_allocation(client, 2, 33)
        ledger.remove_allocation(client, 2, 33)
        after = _state(ledger)
        # trade 2 is now registered with a zero holding; everything else equal
        self.assertEqual(after[0][0][1], {1: 70, 2: 0})
        self.assertEqual(after[0][0][2:], before[0][0][2:])
        self.assertEqual(after[1], before[1])


# ===========================================================================
# 2. Swaps
# ===========================================================================

class TestSwap(unittest.TestCase):

    def test_swap_preserves_totals(self):
        ledger = _seeded_float_ledger()
        c1, c2 = ledger.clients[0], ledger.clients[2]
        totals = [c.total_allocated for c in ledger.clients]
        amount = min(c1.holding(1), c2.holding(3))
        ledger.swap(c1, 1, c2, 3, amount)
        self.assertEqual([c.total_allocated for c in ledger.clients], totals)
        ledger.verify_conservation()

    def test_swap_then_undo_is_bit_identical(self):
        ledger = _seeded_float_ledger()
        before = _state(ledger)
        c1, c2 = ledger.clients[1], ledger.clients[0]
        for amount in (1, 7, min(c1.holding(2), c2.holding(4))):
            ledger.swap(c1, 2, c2, 4, amount)
            self.assertNotEqual(_state(ledger), before)
            ledger.undo_swap(c1, 2, c2, 4, amount)
            self.assertEqual(_state(ledger), before)

    def test_swap_moves_price_exposure(self):
        ledger = _seeded_float_ledger()
        c1, c2 = ledger.clients[0], ledger.clients[1]
        before1, before2 = c1.holding(4), c2.holding(4)
        ledger.swap(c1, 3, c2, 4, 5)
        self.assertEqual(c1.holding(4), before1 + 5)
        self.assertEqual(c2.holding(4), before2 - 5)


# ===========================================================================
# 3. Slippage
# ===========================================================================

class TestSlippage(unittest.TestCase):

    def test_sum_of_absolute_deviations(self):
        ledger = _ledger()
        ledger.add_allocation(ledger.clients[0], 1, 100)
        ledger.add_allocation(ledger.clients[0], 2, 50)
        ledger.add_allocation(ledger.clients[1], 2, 50)
        expected = abs(1550 / 150 - 10.5) + abs(11.0 - 10.5)
        self.assertAlmostEqual(ledger.slippage(), expected, places=12)

    def test_zero_request_client_counts_full_benchmark(self):
        clients = [ClientLedger(1, 100, 1.0), ClientLedger(2, 0, 0.0)]
        ledger = AllocationLedger(clients, [TradeBalance(1, 100, 10.0)], 10.0)
        ledger.add_allocation(clients[0], 1, 100)
        self.assertEqual(clients[1].average_price, 0.0)
        self.assertEqual(ledger.slippage(), 10.0)


# ===========================================================================
# 4. Snapshots and conservation
# ===========================================================================

class TestSnapshot(unittest.TestCase):

    def test_snapshot_is_frozen(self):
        snap = _seeded_float_ledger().snapshot()
        self.assertTrue(snap.frozen)
        with self.assertRaises(InvariantViolationError):
            snap.add_allocation(snap.clients[0], 1, 0)
        with self.assertRaises(InvariantViolationError):
            snap.remove_allocation(snap.clients[0], 1, 1)

    def test_snapshot_is_independent(self):
        ledger = _seeded_float_ledger()
        snap = ledger.snapshot()
        before = _state(snap)
        c1, c2 = ledger.clients[0], ledger.clients[1]
        ledger.swap(c1, 1, c2, 2, 3)
        self.assertEqual(_state(snap), before)
        self.assertFalse(ledger.frozen)

    def test_snapshot_is_consistent(self):
        snap = _seeded_float_ledger().snapshot()
        snap.verify_conservation()
        self.assertAlmostEqual(snap.slippage(), _seeded_float_ledger().slippage(), places=12)


class TestVerifyConservation(unittest.TestCase):

    def test_incomplete_client_detected(self):
        ledger = _ledger()
        ledger.add_allocation(ledger.clients[0], 1, 100)
        with self.assertRaises(InvariantViolationError):
            ledger.verify_conservation()

    def test_complete_ledger_passes(self):
        ledger = _ledger()
        ledger.add_allocation(ledger.clients[0], 1, 100)
        ledger.add_allocation(ledger.clients[0], 2, 50)
        ledger.add_allocation(ledger.clients[1], 2, 50)
        ledger.verify_conservation()


if __name__ == "__main__":
    unittest.main()
