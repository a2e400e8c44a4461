from enum import Enum


class SwapPolicy(Enum):
    """How much quantity a single annealing move transfers."""
    FAST_SWAP = "fast_swap"      # the full transferable amount
    RANDOM_SWAP = "random_swap"  # uniform in [1, transferable)
