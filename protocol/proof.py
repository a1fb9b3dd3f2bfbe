"""GKR and sum-check proof data structures and serialization.

Binary layout: a flat sequence of little-endian u64 values.

    element      field.degree limbs, lowest coefficient first
    sequence     u64 length, then its items
    RoundProof        | coefficients: seq<element> |
    FinalOpeningClaim | eval_point: seq<element> | openings: seq<element> |
    SumCheckProof     | openings_claim | round_proofs: seq<RoundProof> |
    CircuitLayerPolys | numerators: seq<element> | denominators: seq<element> |
    FinalLayerProof   | before_merge_proof: seq<RoundProof> | after_merge_proof |
    GkrCircuitProof   | circuit_outputs | before_final_layer_proofs: seq<SumCheckProof>
                      | final_layer_proof |
"""

import struct
from dataclasses import dataclass, field
from typing import Any, List

from primitives.field import GOLDILOCKS_PRIME, element_from_limbs, element_limbs, field_vector
from primitives.multilinear import MultiLinearPoly
from primitives.polynomial import UnivariatePolyCoef
from protocol.circuit import CircuitLayerPolys
from protocol.errors import ProofDeserializationError

# --- Type Aliases ---
EvalPoint = List[Any]  # Field scalars (r_0, ..., r_{nu-1})


# --- Binary Encoding ---

class _Writer:
    """Accumulates u64 values."""

    def __init__(self):
        self.values: List[int] = []

    def write_u64(self, value: int) -> None:
        self.values.append(value)

    def write_elements(self, elements) -> None:
        self.write_u64(len(elements))
        for e in elements:
            self.values.extend(element_limbs(e))

    def to_bytes(self) -> bytes:
        return struct.pack(f'<{len(self.values)}Q', *self.values)


class _Reader:
    """Cursor over u64 values produced by _Writer."""

    def __init__(self, data: bytes, gf):
        if len(data) % 8 != 0:
            raise ProofDeserializationError(f"proof length {len(data)} is not a multiple of 8")
        n_vals = len(data) // 8
        self.values = struct.unpack(f'<{n_vals}Q', data)
        self.field = gf
        self.idx = 0

    def read_u64(self) -> int:
        if self.idx >= len(self.values):
            raise ProofDeserializationError(f"unexpected end of proof at u64 {self.idx}")
        value = self.values[self.idx]
        self.idx += 1
        return value

    def read_elements(self) -> List[Any]:
        n = self.read_u64()
        degree = self.field.degree
        if self.idx + n * degree > len(self.values):
            raise ProofDeserializationError(
                f"sequence of {n} elements at u64 {self.idx - 1} overruns the proof"
            )
        elements = []
        for _ in range(n):
            limbs = self.values[self.idx:self.idx + degree]
            try:
                elements.append(element_from_limbs(self.field, limbs))
            except ValueError as err:
                raise ProofDeserializationError(f"at u64 {self.idx}: {err}") from err
            self.idx += degree
        return elements

    def read_vector(self):
        elements = self.read_elements()
        if not elements:
            raise ProofDeserializationError(f"empty vector at u64 {self.idx - 1}")
        return field_vector(self.field, elements)

    def finish(self) -> None:
        if self.idx != len(self.values):
            raise ProofDeserializationError(
                f"{len(self.values) - self.idx} trailing u64 values after proof"
            )


def _check_field(gf) -> None:
    if gf.characteristic != GOLDILOCKS_PRIME:
        raise ProofDeserializationError(f"unsupported field {gf.name}")


class _Serializable:
    """to_bytes / from_bytes on top of write_into / read_from."""

    def to_bytes(self) -> bytes:
        return to_bytes(self)

    @classmethod
    def from_bytes(cls, data: bytes, gf):
        return from_bytes(cls, data, gf)


# --- Proof Data Structures ---

@dataclass
class RoundProof(_Serializable):
    """One sum-check round message: the round polynomial without its linear term."""
    round_poly_coefs: UnivariatePolyCoef

    def write_into(self, w: _Writer) -> None:
        w.write_elements(self.round_poly_coefs.coefficients)

    @classmethod
    def read_from(cls, r: _Reader) -> "RoundProof":
        return cls(UnivariatePolyCoef(r.read_vector()))


@dataclass
class FinalOpeningClaim(_Serializable):
    """Claimed openings of a set of MLEs at one evaluation point."""
    eval_point: EvalPoint = field(default_factory=list)
    openings: List[Any] = field(default_factory=list)

    def write_into(self, w: _Writer) -> None:
        w.write_elements(self.eval_point)
        w.write_elements(self.openings)

    @classmethod
    def read_from(cls, r: _Reader) -> "FinalOpeningClaim":
        eval_point = r.read_elements()
        openings = r.read_elements()
        return cls(eval_point, openings)


@dataclass
class SumCheckProof(_Serializable):
    """Round messages of a full sum-check and the final openings."""
    openings_claim: FinalOpeningClaim = field(default_factory=FinalOpeningClaim)
    round_proofs: List[RoundProof] = field(default_factory=list)

    def write_into(self, w: _Writer) -> None:
        self.openings_claim.write_into(w)
        _write_round_proofs(w, self.round_proofs)

    @classmethod
    def read_from(cls, r: _Reader) -> "SumCheckProof":
        openings_claim = FinalOpeningClaim.read_from(r)
        return cls(openings_claim, _read_round_proofs(r))


@dataclass
class FinalLayerProof(_Serializable):
    """Input layer proof: rounds over the merge variables, then a trace-level sum-check."""
    before_merge_proof: List[RoundProof] = field(default_factory=list)
    after_merge_proof: SumCheckProof = field(default_factory=SumCheckProof)

    def write_into(self, w: _Writer) -> None:
        _write_round_proofs(w, self.before_merge_proof)
        self.after_merge_proof.write_into(w)

    @classmethod
    def read_from(cls, r: _Reader) -> "FinalLayerProof":
        before_merge_proof = _read_round_proofs(r)
        return cls(before_merge_proof, SumCheckProof.read_from(r))


@dataclass
class GkrCircuitProof(_Serializable):
    """Complete LogUp-GKR proof for a fraction circuit.

    Attributes:
        circuit_outputs: Output layer wires (p0, p1) / (q0, q1).
        before_final_layer_proofs: One sum-check per layer, from the layer
            below the output down to the layer above the input layer.
        final_layer_proof: Proof reducing the input layer to trace columns.
    """
    circuit_outputs: CircuitLayerPolys
    before_final_layer_proofs: List[SumCheckProof] = field(default_factory=list)
    final_layer_proof: FinalLayerProof = field(default_factory=FinalLayerProof)

    def write_into(self, w: _Writer) -> None:
        _write_layer_polys(w, self.circuit_outputs)
        w.write_u64(len(self.before_final_layer_proofs))
        for proof in self.before_final_layer_proofs:
            proof.write_into(w)
        self.final_layer_proof.write_into(w)

    @classmethod
    def read_from(cls, r: _Reader) -> "GkrCircuitProof":
        circuit_outputs = _read_layer_polys(r)
        n_layers = r.read_u64()
        before_final_layer_proofs = [SumCheckProof.read_from(r) for _ in range(n_layers)]
        return cls(circuit_outputs, before_final_layer_proofs, FinalLayerProof.read_from(r))


@dataclass
class GkrRandElements:
    """Randomness the bus hands to the outer STARK.

    Attributes:
        lagrange_kernel_eval_point: Point at which the trace columns are opened.
        openings_combining_randomness: One challenge per opened column, used to
            batch the openings into one Lagrange kernel constraint.
    """
    lagrange_kernel_eval_point: EvalPoint = field(default_factory=list)
    openings_combining_randomness: List[Any] = field(default_factory=list)


def _write_round_proofs(w: _Writer, round_proofs: List[RoundProof]) -> None:
    w.write_u64(len(round_proofs))
    for proof in round_proofs:
        proof.write_into(w)


def _read_round_proofs(r: _Reader) -> List[RoundProof]:
    n = r.read_u64()
    return [RoundProof.read_from(r) for _ in range(n)]


def _write_layer_polys(w: _Writer, layer: CircuitLayerPolys) -> None:
    w.write_elements(layer.numerators.evaluations)
    w.write_elements(layer.denominators.evaluations)


def _read_layer_polys(r: _Reader) -> CircuitLayerPolys:
    try:
        numerators = MultiLinearPoly.from_evaluations(r.read_vector())
        denominators = MultiLinearPoly.from_evaluations(r.read_vector())
        return CircuitLayerPolys(numerators, denominators)
    except ProofDeserializationError:
        raise
    except ValueError as err:
        raise ProofDeserializationError(f"invalid circuit layer: {err}") from err


# --- Generic Entry Points ---

def to_bytes(obj) -> bytes:
    """Serialize any proof object of this module."""
    w = _Writer()
    obj.write_into(w)
    return w.to_bytes()


def from_bytes(cls, data: bytes, gf):
    """Deserialize a `cls` proof object over field `gf`, rejecting trailing data."""
    _check_field(gf)
    r = _Reader(data, gf)
    obj = cls.read_from(r)
    r.finish()
    return obj


# --- JSON Serialization ---

def _elements_to_json(elements) -> List[List[str]]:
    return [[str(limb) for limb in element_limbs(e)] for e in elements]


def _elements_from_json(data, gf) -> List[Any]:
    try:
        return [element_from_limbs(gf, [int(limb) for limb in e]) for e in data]
    except (TypeError, ValueError) as err:
        raise ProofDeserializationError(f"invalid field element in JSON: {err}") from err


def _vector_from_json(data, gf):
    elements = _elements_from_json(data, gf)
    if not elements:
        raise ProofDeserializationError("empty vector in JSON")
    return field_vector(gf, elements)


def _sumcheck_to_json(proof: SumCheckProof) -> dict[str, Any]:
    return {
        "evalPoint": _elements_to_json(proof.openings_claim.eval_point),
        "openings": _elements_to_json(proof.openings_claim.openings),
        "roundProofs": [_elements_to_json(rp.round_poly_coefs.coefficients) for rp in proof.round_proofs],
    }


def _sumcheck_from_json(data: dict[str, Any], gf) -> SumCheckProof:
    return SumCheckProof(
        FinalOpeningClaim(
            _elements_from_json(data["evalPoint"], gf),
            _elements_from_json(data["openings"], gf),
        ),
        [RoundProof(UnivariatePolyCoef(_vector_from_json(rp, gf)))
         for rp in data["roundProofs"]],
    )


def proof_to_json(proof: GkrCircuitProof) -> dict[str, Any]:
    """Convert GKR proof to JSON-serializable dictionary."""
    j: dict[str, Any] = {}

    j["circuitOutputs"] = {
        "numerators": _elements_to_json(proof.circuit_outputs.numerators.evaluations),
        "denominators": _elements_to_json(proof.circuit_outputs.denominators.evaluations),
    }
    j["layers"] = [_sumcheck_to_json(p) for p in proof.before_final_layer_proofs]
    j["finalLayer"] = {
        "beforeMerge": [
            _elements_to_json(rp.round_poly_coefs.coefficients)
            for rp in proof.final_layer_proof.before_merge_proof
        ],
        "afterMerge": _sumcheck_to_json(proof.final_layer_proof.after_merge_proof),
    }
    return j


def proof_from_json(data: dict[str, Any], gf) -> GkrCircuitProof:
    """Inverse of proof_to_json."""
    try:
        _check_field(gf)
        outputs = data["circuitOutputs"]
        circuit_outputs = CircuitLayerPolys(
            MultiLinearPoly.from_evaluations(_vector_from_json(outputs["numerators"], gf)),
            MultiLinearPoly.from_evaluations(_vector_from_json(outputs["denominators"], gf)),
        )
        final = data["finalLayer"]
        return GkrCircuitProof(
            circuit_outputs=circuit_outputs,
            before_final_layer_proofs=[_sumcheck_from_json(p, gf) for p in data["layers"]],
            final_layer_proof=FinalLayerProof(
                before_merge_proof=[
                    RoundProof(UnivariatePolyCoef(_vector_from_json(rp, gf)))
                    for rp in final["beforeMerge"]
                ],
                after_merge_proof=_sumcheck_from_json(final["afterMerge"], gf),
            ),
        )
    except ProofDeserializationError:
        raise
    except (KeyError, TypeError, ValueError) as err:
        raise ProofDeserializationError(f"malformed proof JSON: {err!r}") from err
