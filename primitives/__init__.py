"""Primitives - Low-level algebraic building blocks."""

from primitives.field import (
    FF,
    FF2,
    GOLDILOCKS_PRIME,
    element_from_limbs,
    element_limbs,
    ff2,
    field_vector,
    lift,
)
from primitives.multilinear import (
    EqFunction,
    MultiLinearPoly,
    MultiLinearPolyError,
    compute_lagrange_basis_evals_at,
    inner_product,
)
from primitives.polynomial import (
    EvaluationDomain,
    UnivariatePolyCoef,
)
from primitives.transcript import (
    RandomnessError,
    Transcript,
)

__all__ = [
    # Field
    "FF",
    "FF2",
    "GOLDILOCKS_PRIME",
    "element_from_limbs",
    "element_limbs",
    "ff2",
    "field_vector",
    "lift",
    # Multilinear
    "EqFunction",
    "MultiLinearPoly",
    "MultiLinearPolyError",
    "compute_lagrange_basis_evals_at",
    "inner_product",
    # Univariate
    "EvaluationDomain",
    "UnivariatePolyCoef",
    # Transcript
    "RandomnessError",
    "Transcript",
]
