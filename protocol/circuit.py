"""Fraction-sum circuit of the LogUp bus.

The circuit is a binary tree of (numerator, denominator) wires. Each layer
adds adjacent wire pairs of the layer below it:

    (a, b) + (c, d) = (a d + c b, b d)

Layers are stored in one index-addressed list, `layer_polys[0]` being the
input layer and `layer_polys[-1]` the 2-wire output layer (p0, p1, q0, q1).
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from primitives.field import field_vector, is_power_of_two
from primitives.multilinear import MultiLinearPoly
from protocol.composition import (
    CompositionPolynomial,
    evaluate_fractions_at_main_trace_query,
    num_wires_per_row,
)
from protocol.errors import CircuitConstructionError

logger = logging.getLogger(__name__)


# --- Wires and Layers ---


@dataclass
class CircuitWire:
    """A fraction numerator / denominator with a nonzero denominator."""
    numerator: object
    denominator: object

    def __post_init__(self):
        if self.denominator == type(self.denominator)(0):
            raise CircuitConstructionError("circuit wire has a zero denominator")

    def __add__(self, other: "CircuitWire") -> "CircuitWire":
        return CircuitWire(
            self.numerator * other.denominator + other.numerator * self.denominator,
            self.denominator * other.denominator,
        )


class CircuitLayer:
    """A power-of-two-length sequence of wires."""

    def __init__(self, wires: Sequence[CircuitWire]):
        if not is_power_of_two(len(wires)):
            raise CircuitConstructionError(
                f"circuit layer size must be a power of two, got {len(wires)}"
            )
        self.wires = list(wires)

    def __len__(self) -> int:
        return len(self.wires)

    def fold(self) -> "CircuitLayer":
        """Next layer up: wire k is wires[2k] + wires[2k + 1]."""
        if len(self.wires) < 2:
            raise CircuitConstructionError("cannot fold a single-wire layer")
        return CircuitLayer([
            self.wires[i] + self.wires[i + 1] for i in range(0, len(self.wires), 2)
        ])


class CircuitLayerPolys:
    """A circuit layer as a pair of multilinear polynomials."""

    def __init__(self, numerators: MultiLinearPoly, denominators: MultiLinearPoly):
        if numerators.num_evaluations() != denominators.num_evaluations():
            raise CircuitConstructionError(
                f"layer has {numerators.num_evaluations()} numerators but "
                f"{denominators.num_evaluations()} denominators"
            )
        self.numerators = numerators
        self.denominators = denominators

    @classmethod
    def from_circuit_layer(cls, layer: CircuitLayer) -> "CircuitLayerPolys":
        field = type(layer.wires[0].denominator)
        return cls(
            MultiLinearPoly.from_evaluations(field_vector(field, [w.numerator for w in layer.wires])),
            MultiLinearPoly.from_evaluations(field_vector(field, [w.denominator for w in layer.wires])),
        )

    def num_wires(self) -> int:
        return self.numerators.num_evaluations()

    def wires(self) -> List[CircuitWire]:
        return [
            CircuitWire(n, d)
            for n, d in zip(self.numerators.evaluations, self.denominators.evaluations)
        ]

    def fold(self) -> "CircuitLayerPolys":
        """Vectorized CircuitLayer.fold over the whole layer."""
        n = self.numerators.evaluations
        d = self.denominators.evaluations
        return CircuitLayerPolys(
            MultiLinearPoly(n[0::2] * d[1::2] + n[1::2] * d[0::2]),
            MultiLinearPoly(d[0::2] * d[1::2]),
        )

    def project_least_significant_variable(self) -> List[MultiLinearPoly]:
        """[left_num, right_num, left_den, right_den]."""
        left_num, right_num = self.numerators.project_least_significant_variable()
        left_den, right_den = self.denominators.project_least_significant_variable()
        return [left_num, right_num, left_den, right_den]

    def __eq__(self, other) -> bool:
        if not isinstance(other, CircuitLayerPolys):
            return NotImplemented
        return self.numerators == other.numerators and self.denominators == other.denominators

    __hash__ = None

    def __repr__(self) -> str:
        return f"CircuitLayerPolys(num_wires={self.num_wires()})"


# --- Evaluated Circuit ---


class EvaluatedCircuit:
    """All layers of a fraction circuit, from the input layer to the output layer."""

    def __init__(self, input_layer: CircuitLayerPolys):
        if not is_power_of_two(input_layer.num_wires()) or input_layer.num_wires() < 4:
            raise CircuitConstructionError(
                f"input layer must have a power-of-two number of wires >= 4, "
                f"got {input_layer.num_wires()}"
            )
        if bool((input_layer.denominators.evaluations == input_layer.numerators.field(0)).any()):
            raise CircuitConstructionError("input layer contains a zero denominator")

        self.layer_polys: List[CircuitLayerPolys] = []
        current = input_layer
        while current.num_wires() > 2:
            self.layer_polys.append(current)
            current = current.fold()
        self.layer_polys.append(current)
        logger.debug(
            "evaluated circuit: %d input wires, %d layers",
            input_layer.num_wires(), len(self.layer_polys),
        )

    @classmethod
    def from_main_trace(
        cls,
        main_trace_columns: Sequence[MultiLinearPoly],
        numerators: Sequence[CompositionPolynomial],
        denominators: Sequence[CompositionPolynomial],
    ) -> "EvaluatedCircuit":
        """Build the input layer from the lookup fractions of every trace row.

        Row `i` contributes wires i * W .. i * W + W - 1, so the lowest
        log2(W) variables of the input layer select the fraction within a row.
        """
        input_layer = generate_input_layer(main_trace_columns, numerators, denominators)
        return cls(input_layer)

    def num_layers(self) -> int:
        return len(self.layer_polys)

    def get_layer(self, idx: int) -> CircuitLayerPolys:
        return self.layer_polys[idx]

    def input_layer(self) -> CircuitLayerPolys:
        return self.layer_polys[0]

    def output_layer(self) -> CircuitLayerPolys:
        return self.layer_polys[-1]

    def evaluate_output_layer(self, r) -> Tuple[object, object]:
        """Output numerator and denominator MLEs at the point (r,)."""
        out = self.output_layer()
        return out.numerators.evaluate([r]), out.denominators.evaluate([r])


def generate_input_layer(
    main_trace_columns: Sequence[MultiLinearPoly],
    numerators: Sequence[CompositionPolynomial],
    denominators: Sequence[CompositionPolynomial],
) -> CircuitLayerPolys:
    """Input layer of the circuit, num_wires_per_row(len(numerators)) wires per row."""
    if not main_trace_columns:
        raise CircuitConstructionError("main trace has no columns")
    field = main_trace_columns[0].field
    num_rows = main_trace_columns[0].num_evaluations()
    n_wires = num_wires_per_row(len(numerators))

    columns = [ml.evaluations for ml in main_trace_columns]
    nums, dens = evaluate_fractions_at_main_trace_query(columns, numerators, denominators, field)

    input_nums = field.Zeros(num_rows * n_wires)
    input_dens = field.Zeros(num_rows * n_wires)
    for j in range(n_wires):
        input_nums[j::n_wires] = nums[j]
        input_dens[j::n_wires] = dens[j]

    return CircuitLayerPolys(
        MultiLinearPoly.from_evaluations(input_nums),
        MultiLinearPoly.from_evaluations(input_dens),
    )


def fold_openings(openings: Sequence, r) -> Tuple[object, object]:
    """Claim on a layer from its four projected openings [p0, p1, q0, q1].

    Returns (p0 + r (p1 - p0), q0 + r (q1 - q0)).
    """
    p0, p1, q0, q1 = openings
    return p0 + r * (p1 - p0), q0 + r * (q1 - q0)
