"""Composition polynomials for the GKR sum-checks.

A composition polynomial combines a fixed-length query of MLE openings into
the summand of a sum-check relation. Queries may hold scalars or equal-length
arrays; evaluation only uses ring operations, so it applies elementwise and
the prover evaluates a whole round in a single call.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from primitives.field import is_power_of_two
from primitives.multilinear import compute_lagrange_basis_evals_at, inner_product


class CompositionPolynomial(ABC):
    """A multivariate polynomial g(x_0, ..., x_{n-1}) over MLE openings."""

    @abstractmethod
    def num_variables(self) -> int:
        """Length of the query `evaluate` expects."""

    @abstractmethod
    def max_degree(self) -> int:
        """Upper bound on the degree of g in any single variable."""

    @abstractmethod
    def evaluate(self, query: Sequence):
        """Evaluate g at `query`."""


class GkrComposition(CompositionPolynomial):
    """Summand of every non-final GKR layer sum-check.

    Query: [left_num, right_num, left_den, right_den, eq].
    Folds the numerator and denominator equations of a layer into one with the
    combining challenge r:

        eq * ((ln * rd + rn * ld) + ld * rd * r)
    """

    def __init__(self, combining_randomness):
        self.combining_randomness = combining_randomness

    def num_variables(self) -> int:
        return 5

    def max_degree(self) -> int:
        return 3

    def evaluate(self, query: Sequence):
        assert len(query) == 5, f"expected a query of length 5, got {len(query)}"
        left_num, right_num, left_den, right_den, eq = query
        return eq * (
            (left_num * right_den + right_num * left_den)
            + left_den * right_den * self.combining_randomness
        )


# --- Main Trace Row Fractions ---


def num_wires_per_row(num_fractions: int) -> int:
    """Input layer wires produced by one trace row: the next power of two >= 2."""
    n = 2
    while n < num_fractions:
        n *= 2
    return n


def evaluate_fractions_at_main_trace_query(
    query: Sequence,
    numerators: Sequence[CompositionPolynomial],
    denominators: Sequence[CompositionPolynomial],
    field,
) -> Tuple[List, List]:
    """Evaluate every lookup fraction of a trace row, padded with (0, 1).

    Returns:
        (numerators, denominators), each of length num_wires_per_row
    """
    assert len(numerators) == len(denominators)
    n_wires = num_wires_per_row(len(numerators))
    padding = n_wires - len(numerators)

    nums = [c.evaluate(query) for c in numerators] + [field(0)] * padding
    dens = [c.evaluate(query) for c in denominators] + [field(1)] * padding
    return nums, dens


class GkrCompositionMerge(CompositionPolynomial):
    """Summand of the final-layer sum-check, taken directly over trace columns.

    Query: [trace columns..., eq]. The per-row fractions are split into even
    (left) and odd (right) wires, each family is collapsed with the tensored
    merge randomness, and the result takes the same shape as GkrComposition.
    """

    def __init__(
        self,
        combining_randomness,
        merge_randomness: Sequence,
        numerators: Sequence[CompositionPolynomial],
        denominators: Sequence[CompositionPolynomial],
    ):
        if not numerators or len(numerators) != len(denominators):
            raise ValueError("need matching, non-empty numerator and denominator composers")
        widths = {c.num_variables() for c in [*numerators, *denominators]}
        if len(widths) != 1:
            raise ValueError(f"lookup composers disagree on the trace width: {sorted(widths)}")

        self.field = type(combining_randomness)
        self.combining_randomness = combining_randomness
        self.numerators = list(numerators)
        self.denominators = list(denominators)
        self.trace_width = widths.pop()

        n_wires = num_wires_per_row(len(numerators))
        if len(merge_randomness) != n_wires.bit_length() - 2:
            raise ValueError(
                f"{n_wires} wires per row need {n_wires.bit_length() - 2} merge challenges, "
                f"got {len(merge_randomness)}"
            )
        self.tensored_merge_randomness = compute_lagrange_basis_evals_at(
            list(merge_randomness), self.field
        )
        assert is_power_of_two(len(self.tensored_merge_randomness))

    def num_variables(self) -> int:
        return self.trace_width + 1

    def max_degree(self) -> int:
        max_num = max(c.max_degree() for c in self.numerators)
        max_den = max(c.max_degree() for c in self.denominators)
        return 1 + max(max_num + max_den, 2 * max_den)

    def evaluate(self, query: Sequence):
        assert len(query) == self.num_variables(), (
            f"expected a query of length {self.num_variables()}, got {len(query)}"
        )
        row, eq = query[:self.trace_width], query[self.trace_width]
        nums, dens = evaluate_fractions_at_main_trace_query(
            row, self.numerators, self.denominators, self.field
        )

        weights = self.tensored_merge_randomness
        left_num = inner_product(nums[0::2], weights)
        right_num = inner_product(nums[1::2], weights)
        left_den = inner_product(dens[0::2], weights)
        right_den = inner_product(dens[1::2], weights)

        return eq * (
            (left_num * right_den + right_num * left_den)
            + left_den * right_den * self.combining_randomness
        )
