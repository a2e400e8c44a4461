"""
trade_breakdown/config.py
-------------------------
Tunable optimizer parameters and the per-run configuration record.

Module-level constants are the defaults; :class:`BreakdownConfig` carries the
values actually used by a single run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from trade_breakdown.enums import SwapPolicy
from trade_breakdown.exceptions import InvalidInputError

# ---------------------------------------------------------------------------
# Cooling schedule
# ---------------------------------------------------------------------------
# The temperature starts at START_TEMPERATURE and is multiplied by
# COOLING_FACTOR after every iteration until it drops to 1 or below.
# With the defaults that is ceil(ln(1100) / -ln(0.995)) = 1398 iterations.

START_TEMPERATURE: float = 1100.0
COOLING_FACTOR: float = 0.995

# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------
# The loop stops as soon as the best slippage is at or below this value.

ACCEPTABLE_ERROR: float = 0.0

DEFAULT_SWAP_POLICY: SwapPolicy = SwapPolicy.RANDOM_SWAP
DEFAULT_MIN_LOT_SIZE: int = 1


@dataclass
class BreakdownConfig:
    """
    Settings for one breakdown run.

    ``swap_policy`` accepts a :class:`SwapPolicy` or one of its string values
    (``"fast_swap"`` / ``"random_swap"``).  ``min_lot_size`` is checked by the
    validator together with the inputs it applies to.
    """
    start_temperature: float = START_TEMPERATURE
    cooling_factor: float = COOLING_FACTOR
    swap_policy: Union[SwapPolicy, str] = DEFAULT_SWAP_POLICY
    min_lot_size: int = DEFAULT_MIN_LOT_SIZE
    random_seed: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.swap_policy, SwapPolicy):
            try:
                self.swap_policy = SwapPolicy(str(self.swap_policy).lower())
            except ValueError:
                raise InvalidInputError(
                    f"Unknown swap policy: {self.swap_policy!r}. "
                    "Choose from 'fast_swap', 'random_swap'."
                ) from None

        if self.start_temperature <= 0:
            raise InvalidInputError(
                f"start_temperature must be positive (got {self.start_temperature})."
            )
        if not 0.0 < self.cooling_factor < 1.0:
            raise InvalidInputError(
                f"cooling_factor must be in (0, 1) (got {self.cooling_factor})."
            )
