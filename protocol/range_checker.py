"""Range checker sub-bus of the virtual bus.

Every value requested by a memory delta limb or a u32 stack helper must appear
in the range checker table with a matching multiplicity. As a LogUp relation:

    sum_rows  m / (alpha - v)
        - sum_rows f_mem * (1 / (alpha - d0) + 1 / (alpha - d1))
        - sum_rows f_u32 * sum_{i<4} 1 / (alpha - h_i)  == 0

Each term is one lookup fraction per row. The negations are folded into the
denominators, so all numerators are 0/1-ish flags or multiplicities.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from protocol.composition import CompositionPolynomial
from protocol.trace_layout import (
    CHIPLETS_OFFSET,
    DECODER_OP_BITS_OFFSET,
    DECODER_USER_OP_HELPERS_OFFSET,
    M_COL_IDX,
    MEMORY_D0_COL_IDX,
    MEMORY_D1_COL_IDX,
    TRACE_WIDTH,
    V_COL_IDX,
)


def _one_like(x):
    return type(x)(1)


class LookupComposer(CompositionPolynomial):
    """A single fraction term read from a main trace row."""

    def num_variables(self) -> int:
        return TRACE_WIDTH

    def _check(self, query: Sequence) -> None:
        assert len(query) == TRACE_WIDTH, f"expected a trace row of width {TRACE_WIDTH}, got {len(query)}"


# --- Numerators ---


class RangeCheckMultiplicity(LookupComposer):
    """Multiplicity column of the range checker table."""

    def max_degree(self) -> int:
        return 1

    def evaluate(self, query: Sequence):
        self._check(query)
        return query[M_COL_IDX]


class MemoryFlagChiplet(LookupComposer):
    """Memory chiplet row flag s0 * s1 * (1 - s2)."""

    def max_degree(self) -> int:
        return 3

    def evaluate(self, query: Sequence):
        self._check(query)
        s0 = query[CHIPLETS_OFFSET]
        s1 = query[CHIPLETS_OFFSET + 1]
        s2 = query[CHIPLETS_OFFSET + 2]
        return s0 * s1 * (_one_like(s2) - s2)


class U32RangeCheckFlag(LookupComposer):
    """Flag of the u32 operations that range check their stack helpers.

    These are the degree-7 operations with op bits b4 = 0, b5 = 0, b6 = 1.
    """

    def max_degree(self) -> int:
        return 3

    def evaluate(self, query: Sequence):
        self._check(query)
        b4 = query[DECODER_OP_BITS_OFFSET + 4]
        b5 = query[DECODER_OP_BITS_OFFSET + 5]
        b6 = query[DECODER_OP_BITS_OFFSET + 6]
        one = _one_like(b6)
        return (one - b4) * (one - b5) * b6


# --- Denominators ---


class TableValue(LookupComposer):
    """alpha - v for the range checker table value."""

    def __init__(self, alphas: Sequence):
        self.alphas = alphas

    def max_degree(self) -> int:
        return 1

    def evaluate(self, query: Sequence):
        self._check(query)
        return self.alphas[0] - query[V_COL_IDX]


class MemoryValue(LookupComposer):
    """-(alpha - d_i) for memory delta limb i."""

    def __init__(self, alphas: Sequence, idx: int):
        if idx not in (0, 1):
            raise ValueError(f"memory delta limb index must be 0 or 1, got {idx}")
        self.alphas = alphas
        self.col_idx = MEMORY_D0_COL_IDX if idx == 0 else MEMORY_D1_COL_IDX

    def max_degree(self) -> int:
        return 1

    def evaluate(self, query: Sequence):
        self._check(query)
        return -(self.alphas[0] - query[self.col_idx])


class StackValue(LookupComposer):
    """-(alpha - h_i) for user operation helper i."""

    def __init__(self, alphas: Sequence, idx: int):
        if not 0 <= idx < 4:
            raise ValueError(f"stack helper index must be in [0, 4), got {idx}")
        self.alphas = alphas
        self.col_idx = DECODER_USER_OP_HELPERS_OFFSET + idx

    def max_degree(self) -> int:
        return 1

    def evaluate(self, query: Sequence):
        self._check(query)
        return -(self.alphas[0] - query[self.col_idx])


# --- Bus Builders ---


class BusBuilder(ABC):
    """Describes one LogUp bus: its fractions and its expected total."""

    @abstractmethod
    def compute_initial_claim(self):
        """Value the circuit output fraction must equal."""

    @abstractmethod
    def build_numerators(self) -> List[CompositionPolynomial]:
        ...

    @abstractmethod
    def build_denominators(self) -> List[CompositionPolynomial]:
        ...

    def build_composition_polys(self) -> List[List[CompositionPolynomial]]:
        return [self.build_numerators(), self.build_denominators()]


class RangeCheckerBus(BusBuilder):
    """Range checker table against memory deltas and u32 stack helpers."""

    def __init__(self, log_up_randomness: Sequence):
        if len(log_up_randomness) == 0:
            raise ValueError("range checker bus needs at least one LogUp challenge")
        self.alphas = list(log_up_randomness)
        self.field = type(self.alphas[0])

    def compute_initial_claim(self):
        return self.field(0)

    def build_numerators(self) -> List[CompositionPolynomial]:
        return [
            RangeCheckMultiplicity(),
            MemoryFlagChiplet(),
            MemoryFlagChiplet(),
            U32RangeCheckFlag(),
            U32RangeCheckFlag(),
            U32RangeCheckFlag(),
            U32RangeCheckFlag(),
        ]

    def build_denominators(self) -> List[CompositionPolynomial]:
        return [
            TableValue(self.alphas),
            MemoryValue(self.alphas, 0),
            MemoryValue(self.alphas, 1),
            StackValue(self.alphas, 0),
            StackValue(self.alphas, 1),
            StackValue(self.alphas, 2),
            StackValue(self.alphas, 3),
        ]
