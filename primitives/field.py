"""Goldilocks field GF(p) and quadratic extension GF(p^2).

Uses galois library for all field arithmetic. FF and FF2 are the field types.
Every protocol object is generic over the field: the field class is recovered
from the elements themselves (``type(x)``), so FF can be used for fast tests
and FF2 for soundness amplification.
"""

from typing import List, Sequence

import galois

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

_irr_poly = galois.Poly([1, GOLDILOCKS_PRIME - 1, 2], field=FF)
FF2 = galois.GF(GOLDILOCKS_PRIME**2, irreducible_poly=_irr_poly)
"""Quadratic extension field GF(p^2) with irreducible polynomial x^2 - x + 2."""


# --- Coefficient Order Conversion ---
# An element of GF(p^k) is the integer a_{k-1} p^{k-1} + ... + a_1 p + a_0,
# we expose ascending limbs [a0, a1, ...].


def ff2(coeffs: List[int]) -> FF2:
    """Construct FF2 element from ascending-order coefficients [a0, a1]."""
    return FF2.Vector(coeffs[::-1])


def element_limbs(elem) -> List[int]:
    """Extract ascending-order coefficients of a field element as u64 limbs."""
    value = int(elem)
    limbs = []
    for _ in range(type(elem).degree):
        value, limb = divmod(value, GOLDILOCKS_PRIME)
        limbs.append(limb)
    return limbs


def element_from_limbs(field, limbs: Sequence[int]):
    """Inverse of element_limbs. Raises ValueError on a non-canonical limb."""
    if len(limbs) != field.degree:
        raise ValueError(f"expected {field.degree} limbs, got {len(limbs)}")
    value = 0
    for limb in reversed(limbs):
        if not 0 <= limb < GOLDILOCKS_PRIME:
            raise ValueError(f"limb {limb} is not a canonical field element")
        value = value * GOLDILOCKS_PRIME + limb
    return field(value)


# --- Array Helpers ---


def field_vector(field, items):
    """Build a 1-d FieldArray from a sequence of scalars of `field`."""
    return field([int(x) for x in items])


def lift(values, field):
    """Embed a vector of base field elements into `field`.

    GF(p) sits inside GF(p^2) as the constant polynomials, whose integer
    representation is unchanged.
    """
    if type(values) is field:
        return values.copy()
    return field([int(v) for v in values])


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def log2(n: int) -> int:
    """Exact log2 of a power of two."""
    assert is_power_of_two(n), f"{n} is not a power of two"
    return n.bit_length() - 1
