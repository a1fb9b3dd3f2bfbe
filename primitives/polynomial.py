"""Univariate round polynomials for the sum-check protocol.

A round polynomial s(X) of degree d is sent in coefficient form with the
linear coefficient omitted. The verifier recovers it from the running claim,
since s(0) + s(1) = claim gives 2 c0 + c1 + c2 + ... + cd = claim.
"""

from typing import Sequence

import galois

from primitives.field import field_vector


class EvaluationDomain:
    """Interpolation domain {0, 1, ..., max_degree} over a field."""

    def __init__(self, field, max_degree: int):
        if max_degree < 1:
            raise ValueError(f"max_degree must be at least 1, got {max_degree}")
        self.field = field
        self.max_degree = max_degree
        self.points = field(list(range(max_degree + 1)))

    def interpolate(self, evaluations: galois.FieldArray) -> galois.FieldArray:
        """Coefficients (ascending) of the polynomial through (i, evaluations[i])."""
        assert len(evaluations) == self.max_degree + 1
        poly = galois.lagrange_poly(self.points, evaluations)
        return poly.coefficients(self.max_degree + 1, order="asc")


class UnivariatePolyCoef:
    """Round polynomial in coefficient form without its linear term.

    Attributes:
        coefficients: [c0, c2, c3, ..., cd] as a 1-d FieldArray
    """

    def __init__(self, coefficients: galois.FieldArray):
        self.coefficients = coefficients

    @classmethod
    def from_round_evaluations(
        cls,
        evals: Sequence,
        claim,
        domain: EvaluationDomain,
    ) -> "UnivariatePolyCoef":
        """Build from s(1), ..., s(d) and the running claim.

        Args:
            evals: Round polynomial evaluations at X = 1..d
            claim: Running claim s(0) + s(1)
            domain: Interpolation domain of matching degree
        """
        assert len(evals) == domain.max_degree
        s0 = claim - evals[0]
        all_evals = field_vector(domain.field, [s0, *evals])
        coeffs = domain.interpolate(all_evals)
        return cls(field_vector(domain.field, [coeffs[0], *coeffs[2:]]))

    def degree_bound(self) -> int:
        return len(self.coefficients)

    def evaluate_using_claim(self, claim, challenge):
        """Evaluate s(challenge), recovering the linear coefficient from `claim`."""
        c0 = self.coefficients[0]
        c1 = claim - self.coefficients.sum() - c0

        full = [c0, c1, *self.coefficients[1:]]
        result = full[-1]
        for coef in reversed(full[:-1]):
            result = result * challenge + coef
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, UnivariatePolyCoef):
            return NotImplemented
        return (
            type(self.coefficients) is type(other.coefficients)
            and len(self.coefficients) == len(other.coefficients)
            and bool((self.coefficients == other.coefficients).all())
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"UnivariatePolyCoef({[int(c) for c in self.coefficients]})"
