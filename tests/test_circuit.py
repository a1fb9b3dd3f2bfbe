"""Tests for the fraction circuit."""

import numpy as np
import pytest

from primitives.field import FF
from primitives.multilinear import MultiLinearPoly
from protocol.circuit import (
    CircuitLayer,
    CircuitLayerPolys,
    CircuitWire,
    EvaluatedCircuit,
    fold_openings,
    generate_input_layer,
)
from protocol.errors import CircuitConstructionError
from tests.bus_fixtures import fraction_trace


def layer_polys(numerators, denominators) -> CircuitLayerPolys:
    return CircuitLayerPolys(
        MultiLinearPoly.from_evaluations(FF(numerators)),
        MultiLinearPoly.from_evaluations(FF(denominators)),
    )


def fraction_value(numerator, denominator):
    return numerator / denominator


class TestCircuitWire:
    """Tests for fraction addition."""

    def test_addition(self) -> None:
        """(a, b) + (c, d) = (ad + cb, bd)."""
        w = CircuitWire(FF(2), FF(3)) + CircuitWire(FF(5), FF(7))
        assert w.numerator == FF(2 * 7 + 5 * 3)
        assert w.denominator == FF(21)

    def test_addition_preserves_value(self, rng) -> None:
        a = CircuitWire(*FF.Random(2, low=1, seed=rng))
        b = CircuitWire(*FF.Random(2, low=1, seed=rng))
        total = a + b
        assert fraction_value(total.numerator, total.denominator) == (
            fraction_value(a.numerator, a.denominator) + fraction_value(b.numerator, b.denominator)
        )

    def test_zero_denominator(self) -> None:
        with pytest.raises(CircuitConstructionError):
            CircuitWire(FF(1), FF(0))


class TestCircuitLayer:
    """Tests for wire layers."""

    @pytest.mark.parametrize("n", [0, 3, 6])
    def test_non_power_of_two(self, n: int) -> None:
        with pytest.raises(CircuitConstructionError):
            CircuitLayer([CircuitWire(FF(1), FF(1))] * n)

    def test_fold_adds_adjacent_pairs(self) -> None:
        wires = [CircuitWire(FF(1), FF(d)) for d in (2, 3, 4, 5)]
        folded = CircuitLayer(wires).fold()
        assert len(folded) == 2
        assert folded.wires[0].numerator == FF(5) and folded.wires[0].denominator == FF(6)
        assert folded.wires[1].numerator == FF(9) and folded.wires[1].denominator == FF(20)

    def test_fold_single_wire(self) -> None:
        with pytest.raises(CircuitConstructionError):
            CircuitLayer([CircuitWire(FF(1), FF(1))]).fold()


class TestCircuitLayerPolys:
    """Tests for the multilinear form of a layer."""

    def test_vectorized_fold_matches_wire_fold(self, rng) -> None:
        """CircuitLayerPolys.fold agrees with CircuitLayer.fold."""
        wires = [CircuitWire(*FF.Random(2, low=1, seed=rng)) for _ in range(8)]
        layer = CircuitLayer(wires)
        assert CircuitLayerPolys.from_circuit_layer(layer).fold() == (
            CircuitLayerPolys.from_circuit_layer(layer.fold())
        )

    def test_wires_round_trip(self) -> None:
        polys = layer_polys([1, 2, 3, 4], [5, 6, 7, 8])
        assert CircuitLayerPolys.from_circuit_layer(CircuitLayer(polys.wires())) == polys

    def test_projection_order(self) -> None:
        """Projection returns [left_num, right_num, left_den, right_den]."""
        ln, rn, ld, rd = layer_polys([1, 2, 3, 4], [5, 6, 7, 8]).project_least_significant_variable()
        assert np.array_equal(ln.evaluations, FF([1, 3]))
        assert np.array_equal(rn.evaluations, FF([2, 4]))
        assert np.array_equal(ld.evaluations, FF([5, 7]))
        assert np.array_equal(rd.evaluations, FF([6, 8]))

    def test_length_mismatch(self) -> None:
        with pytest.raises(CircuitConstructionError):
            layer_polys([1, 2], [3, 4, 5, 6])


class TestEvaluatedCircuit:
    """Tests for the layered circuit."""

    def test_eight_wire_circuit(self) -> None:
        """Three layers, the output holding the sums of each half of the input."""
        circuit = EvaluatedCircuit(layer_polys([1] * 8, list(range(2, 10))))
        assert circuit.num_layers() == 3
        assert [circuit.get_layer(i).num_wires() for i in range(3)] == [8, 4, 2]

        out = circuit.output_layer()
        p0, p1 = out.numerators.evaluations
        q0, q1 = out.denominators.evaluations
        assert p0 / q0 == sum((FF(1) / FF(d) for d in range(2, 6)), FF(0))
        assert p1 / q1 == sum((FF(1) / FF(d) for d in range(6, 10)), FF(0))

    def test_output_equals_sum_of_fractions(self, rng) -> None:
        nums = FF.Random(32, seed=rng)
        dens = FF.Random(32, low=1, seed=rng)
        circuit = EvaluatedCircuit(CircuitLayerPolys(
            MultiLinearPoly.from_evaluations(nums), MultiLinearPoly.from_evaluations(dens)
        ))
        out = circuit.output_layer()
        p0, p1 = out.numerators.evaluations
        q0, q1 = out.denominators.evaluations
        assert (p0 * q1 + p1 * q0) / (q0 * q1) == (nums / dens).sum()

    def test_too_few_wires(self) -> None:
        with pytest.raises(CircuitConstructionError):
            EvaluatedCircuit(layer_polys([1, 1], [2, 3]))

    def test_zero_input_denominator(self) -> None:
        with pytest.raises(CircuitConstructionError):
            EvaluatedCircuit(layer_polys([1, 1, 1, 1], [2, 0, 4, 5]))

    def test_evaluate_output_layer(self, rng) -> None:
        """The output MLEs at r interpolate between the two output wires."""
        circuit = EvaluatedCircuit(layer_polys([1] * 4, [2, 3, 4, 5]))
        out = circuit.output_layer()
        r = FF.Random(seed=rng)
        p, q = circuit.evaluate_output_layer(r)
        p0, p1 = out.numerators.evaluations
        q0, q1 = out.denominators.evaluations
        assert (p, q) == fold_openings([p0, p1, q0, q1], r)


class TestInputLayer:
    """Tests for building the input layer from a trace."""

    def test_row_major_wire_order(self) -> None:
        """Wire row * W + j holds fraction j of the row."""
        nums = list(range(1, 9))
        dens = list(range(11, 19))
        trace, (numerators, denominators) = fraction_trace(nums, dens, per_row=4)
        layer = generate_input_layer(trace.to_multilinears(FF), numerators, denominators)
        assert np.array_equal(layer.numerators.evaluations, FF(nums))
        assert np.array_equal(layer.denominators.evaluations, FF(dens))

    def test_padding(self) -> None:
        """Three fractions per row are padded to four with (0, 1)."""
        trace, (numerators, denominators) = fraction_trace([1, 2, 3, 4, 5, 6], [7, 8, 9, 10, 11, 12], per_row=3)
        layer = generate_input_layer(trace.to_multilinears(FF), numerators, denominators)
        assert np.array_equal(layer.numerators.evaluations, FF([1, 2, 3, 0, 4, 5, 6, 0]))
        assert np.array_equal(layer.denominators.evaluations, FF([7, 8, 9, 1, 10, 11, 12, 1]))

    def test_from_main_trace(self) -> None:
        trace, (numerators, denominators) = fraction_trace([1] * 8, list(range(2, 10)))
        circuit = EvaluatedCircuit.from_main_trace(trace.to_multilinears(FF), numerators, denominators)
        assert circuit.input_layer() == layer_polys([1] * 8, list(range(2, 10)))

    def test_zero_denominator_in_trace(self) -> None:
        trace, (numerators, denominators) = fraction_trace([1] * 4, [2, 3, 0, 5])
        with pytest.raises(CircuitConstructionError):
            EvaluatedCircuit.from_main_trace(trace.to_multilinears(FF), numerators, denominators)
