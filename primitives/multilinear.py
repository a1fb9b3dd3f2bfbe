"""Multilinear polynomials over the boolean hypercube and the equality function.

A multilinear polynomial in nu variables is stored as its 2^nu evaluations.
Evaluation index i corresponds to the hypercube vertex whose j-th coordinate
is bit j of i, so variable 0 is the least significant bit of the index.
"""

from typing import List, Sequence, Tuple

import galois

from primitives.field import is_power_of_two


class MultiLinearPolyError(ValueError):
    """Invalid multilinear polynomial construction or query."""


# --- Lagrange Kernel ---


def compute_lagrange_basis_evals_at(point: Sequence, field=None):
    """Tensor a point into the Lagrange basis weights of the hypercube.

    Entry i of the result equals prod_j (point_j if bit_j(i) else 1 - point_j),
    i.e. eq(i, point).

    Args:
        point: Evaluation point (r_0, ..., r_{nu-1}) as field scalars
        field: Field class, required only when `point` is empty

    Returns:
        FieldArray of length 2^nu
    """
    if field is None:
        if len(point) == 0:
            raise MultiLinearPolyError("field must be given for an empty point")
        field = type(point[0])

    evals = field.Ones(1)
    # Processing the last coordinate first leaves point[0] on the lowest bit.
    for r in reversed(point):
        doubled = field.Zeros(2 * len(evals))
        doubled[1::2] = evals * r
        doubled[0::2] = evals - doubled[1::2]
        evals = doubled
    return evals


def inner_product(values: Sequence, weights: Sequence):
    """Inner product that works on scalars as well as equal-length arrays."""
    assert len(values) == len(weights) and len(values) > 0
    acc = values[0] * weights[0]
    for v, w in zip(values[1:], weights[1:]):
        acc = acc + v * w
    return acc


# --- Multilinear Polynomial ---


class MultiLinearPoly:
    """Dense multilinear polynomial given by its evaluations on {0,1}^nu."""

    def __init__(self, evaluations: galois.FieldArray):
        self._evaluations = evaluations

    @classmethod
    def from_evaluations(cls, evaluations: galois.FieldArray) -> "MultiLinearPoly":
        """Take ownership of an evaluation table.

        Raises:
            MultiLinearPolyError: If the table length is not a power of two
        """
        if not isinstance(evaluations, galois.FieldArray) or evaluations.ndim != 1:
            raise MultiLinearPolyError("evaluations must be a 1-d galois FieldArray")
        if not is_power_of_two(len(evaluations)):
            raise MultiLinearPolyError(
                f"number of evaluations must be a power of two, got {len(evaluations)}"
            )
        return cls(evaluations)

    @property
    def evaluations(self) -> galois.FieldArray:
        return self._evaluations

    @property
    def field(self):
        return type(self._evaluations)

    def num_variables(self) -> int:
        return len(self._evaluations).bit_length() - 1

    def num_evaluations(self) -> int:
        return len(self._evaluations)

    def __getitem__(self, index: int):
        return self._evaluations[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, MultiLinearPoly):
            return NotImplemented
        return (
            self.field is other.field
            and len(self._evaluations) == len(other._evaluations)
            and bool((self._evaluations == other._evaluations).all())
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"MultiLinearPoly(num_variables={self.num_variables()})"

    def copy(self) -> "MultiLinearPoly":
        return MultiLinearPoly(self._evaluations.copy())

    def evaluate(self, query: Sequence):
        """Evaluate at an arbitrary point of F^nu."""
        if len(query) != self.num_variables():
            raise MultiLinearPolyError(
                f"expected a point with {self.num_variables()} coordinates, got {len(query)}"
            )
        kernel = compute_lagrange_basis_evals_at(query, self.field)
        return self.evaluate_with_lagrange_kernel(kernel)

    def evaluate_with_lagrange_kernel(self, lagrange_kernel: galois.FieldArray):
        """Inner product of the evaluation table with a precomputed eq tensor."""
        if len(lagrange_kernel) != len(self._evaluations):
            raise MultiLinearPolyError(
                f"kernel has {len(lagrange_kernel)} entries, expected {len(self._evaluations)}"
            )
        return (self._evaluations * lagrange_kernel).sum()

    def bind_assign(self, challenge) -> None:
        """Fix the lowest variable to `challenge`, halving the table in place."""
        if len(self._evaluations) < 2:
            raise MultiLinearPolyError("cannot bind a polynomial with no variables")
        even = self._evaluations[0::2]
        odd = self._evaluations[1::2]
        self._evaluations = even + challenge * (odd - even)

    def project_least_significant_variable(self) -> Tuple["MultiLinearPoly", "MultiLinearPoly"]:
        """Split into the sub-tables with the lowest variable fixed to 0 and to 1."""
        if len(self._evaluations) < 2:
            raise MultiLinearPolyError("cannot project a polynomial with no variables")
        return (
            MultiLinearPoly(self._evaluations[0::2].copy()),
            MultiLinearPoly(self._evaluations[1::2].copy()),
        )


# --- Equality Function ---


class EqFunction:
    """The multilinear extension of the point-equality predicate eq(x, y).

    eq(x, y) = prod_i (x_i y_i + (1 - x_i)(1 - y_i))
    """

    def __init__(self, point: Sequence, field=None):
        if field is None:
            if len(point) == 0:
                raise MultiLinearPolyError("field must be given for an empty point")
            field = type(point[0])
        self.point: List = list(point)
        self.field = field

    def evaluate(self, query: Sequence):
        """eq(query, point) by the product formula."""
        if len(query) != len(self.point):
            raise MultiLinearPolyError(
                f"eq point has {len(self.point)} coordinates, query has {len(query)}"
            )
        one = self.field(1)
        result = one
        for x, y in zip(query, self.point):
            result = result * (x * y + (one - x) * (one - y))
        return result

    def evaluations(self) -> galois.FieldArray:
        """The tensor of eq(i, point) over the hypercube."""
        return compute_lagrange_basis_evals_at(self.point, self.field)

    @staticmethod
    def ml_at(point: Sequence, field=None) -> MultiLinearPoly:
        """eq(., point) as a MultiLinearPoly."""
        return MultiLinearPoly(compute_lagrange_basis_evals_at(point, field))
