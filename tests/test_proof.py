"""Tests for proof serialization."""

import json
import struct

import galois
import pytest

from primitives.field import FF, FF2, GOLDILOCKS_PRIME, ff2
from primitives.multilinear import MultiLinearPoly
from primitives.polynomial import UnivariatePolyCoef
from primitives.transcript import Transcript
from protocol.circuit import CircuitLayerPolys
from protocol.errors import ProofDeserializationError
from protocol.proof import (
    FinalLayerProof,
    FinalOpeningClaim,
    GkrCircuitProof,
    RoundProof,
    SumCheckProof,
    from_bytes,
    proof_from_json,
    proof_to_json,
    to_bytes,
)
from protocol.prover import prove
from protocol.verifier import verify
from tests.bus_fixtures import fraction_trace


def gkr_proof(gf):
    trace, composition_polys = fraction_trace([1] * 16, list(range(2, 18)), per_row=4)
    return prove(composition_polys, trace, Transcript(gf, b"serialize")), composition_polys


class TestBinary:
    """Tests for the little-endian u64 layout."""

    def test_round_proof_layout(self) -> None:
        """A round proof is its length followed by its coefficients."""
        proof = RoundProof(UnivariatePolyCoef(FF([7, 8, 9])))
        assert proof.to_bytes() == struct.pack("<4Q", 3, 7, 8, 9)
        assert RoundProof.from_bytes(proof.to_bytes(), FF) == proof

    def test_extension_field_layout(self) -> None:
        """GF(p^2) elements are written as two limbs, lowest first."""
        claim = FinalOpeningClaim([ff2([1, 2])], [ff2([3, 4]), ff2([5, 6])])
        assert claim.to_bytes() == struct.pack("<8Q", 1, 1, 2, 2, 3, 4, 5, 6)
        assert FinalOpeningClaim.from_bytes(claim.to_bytes(), FF2) == claim

    def test_sum_check_proof(self) -> None:
        proof = SumCheckProof(
            FinalOpeningClaim([FF(1), FF(2)], [FF(3)]),
            [RoundProof(UnivariatePolyCoef(FF([4, 5]))), RoundProof(UnivariatePolyCoef(FF([6, 7])))],
        )
        assert from_bytes(SumCheckProof, to_bytes(proof), FF) == proof

    def test_final_layer_proof(self) -> None:
        proof = FinalLayerProof(
            [RoundProof(UnivariatePolyCoef(FF([1, 2, 3])))],
            SumCheckProof(FinalOpeningClaim([FF(4)], [FF(5), FF(6)]), [RoundProof(UnivariatePolyCoef(FF([7])))]),
        )
        assert FinalLayerProof.from_bytes(proof.to_bytes(), FF) == proof

    def test_empty_before_merge_proof(self) -> None:
        proof = FinalLayerProof([], SumCheckProof(FinalOpeningClaim([FF(1)], [FF(2)]), []))
        assert FinalLayerProof.from_bytes(proof.to_bytes(), FF) == proof

    @pytest.mark.parametrize("gf", [FF, FF2])
    def test_gkr_proof(self, gf) -> None:
        """A real proof survives serialization and still verifies."""
        proof, composition_polys = gkr_proof(gf)
        decoded = GkrCircuitProof.from_bytes(proof.to_bytes(), gf)
        assert decoded == proof

        claim = sum((gf(1) / gf(d) for d in range(2, 18)), gf(0))
        verify(claim, decoded, composition_polys, Transcript(gf, b"serialize"))

    def test_truncated(self) -> None:
        proof, _ = gkr_proof(FF)
        data = proof.to_bytes()
        with pytest.raises(ProofDeserializationError):
            GkrCircuitProof.from_bytes(data[:-8], FF)

    def test_trailing_data(self) -> None:
        proof, _ = gkr_proof(FF)
        with pytest.raises(ProofDeserializationError):
            GkrCircuitProof.from_bytes(proof.to_bytes() + bytes(8), FF)

    def test_not_a_multiple_of_eight(self) -> None:
        with pytest.raises(ProofDeserializationError):
            RoundProof.from_bytes(bytes(7), FF)

    def test_overlong_sequence(self) -> None:
        """A length prefix larger than the remaining data is rejected."""
        with pytest.raises(ProofDeserializationError):
            RoundProof.from_bytes(struct.pack("<2Q", 5, 1), FF)

    def test_empty_round_proof(self) -> None:
        with pytest.raises(ProofDeserializationError):
            RoundProof.from_bytes(struct.pack("<Q", 0), FF)

    def test_non_canonical_element(self) -> None:
        with pytest.raises(ProofDeserializationError):
            RoundProof.from_bytes(struct.pack("<2Q", 1, GOLDILOCKS_PRIME), FF)

    def test_non_power_of_two_outputs(self) -> None:
        """Circuit outputs must form a multilinear polynomial."""
        data = struct.pack("<8Q", 3, 1, 1, 1, 3, 2, 3, 4)
        with pytest.raises(ProofDeserializationError):
            GkrCircuitProof.from_bytes(data, FF)

    def test_unsupported_field(self) -> None:
        """Only Goldilocks and its extensions decode; the error is still a ValueError."""
        with pytest.raises(ProofDeserializationError):
            RoundProof.from_bytes(struct.pack("<2Q", 1, 1), galois.GF(7))


class TestJson:
    """Tests for the JSON form of a GKR proof."""

    @pytest.mark.parametrize("gf", [FF, FF2])
    def test_round_trip(self, gf) -> None:
        proof, _ = gkr_proof(gf)
        encoded = json.dumps(proof_to_json(proof))
        assert proof_from_json(json.loads(encoded), gf) == proof

    def test_limbs_are_decimal_strings(self) -> None:
        proof = GkrCircuitProof(
            CircuitLayerPolys(
                MultiLinearPoly.from_evaluations(FF([1, 2])),
                MultiLinearPoly.from_evaluations(FF([3, GOLDILOCKS_PRIME - 1])),
            )
        )
        j = proof_to_json(proof)
        assert j["circuitOutputs"]["denominators"] == [["3"], [str(GOLDILOCKS_PRIME - 1)]]
        assert j["layers"] == []

    def test_missing_key(self) -> None:
        proof, _ = gkr_proof(FF)
        j = proof_to_json(proof)
        del j["finalLayer"]
        with pytest.raises(ProofDeserializationError):
            proof_from_json(j, FF)

    def test_invalid_limb(self) -> None:
        proof, _ = gkr_proof(FF)
        j = proof_to_json(proof)
        j["layers"][0]["openings"][0] = ["not a number"]
        with pytest.raises(ProofDeserializationError):
            proof_from_json(j, FF)

    def test_empty_round_proof(self) -> None:
        """An empty coefficient list is rejected, as in the binary form."""
        proof, _ = gkr_proof(FF)
        j = proof_to_json(proof)
        j["layers"][-1]["roundProofs"][0] = []
        with pytest.raises(ProofDeserializationError):
            proof_from_json(j, FF)

    def test_empty_before_merge_round(self) -> None:
        proof, _ = gkr_proof(FF)
        j = proof_to_json(proof)
        j["finalLayer"]["beforeMerge"][0] = []
        with pytest.raises(ProofDeserializationError):
            proof_from_json(j, FF)

    def test_empty_circuit_outputs(self) -> None:
        proof, _ = gkr_proof(FF)
        j = proof_to_json(proof)
        j["circuitOutputs"]["numerators"] = []
        with pytest.raises(ProofDeserializationError):
            proof_from_json(j, FF)

    def test_unsupported_field(self) -> None:
        proof, _ = gkr_proof(FF)
        with pytest.raises(ProofDeserializationError):
            proof_from_json(proof_to_json(proof), galois.GF(7))
