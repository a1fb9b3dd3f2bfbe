"""Protocol - LogUp-GKR virtual bus: sum-check, fraction circuit and proofs."""

from protocol.circuit import (
    CircuitLayer,
    CircuitLayerPolys,
    CircuitWire,
    EvaluatedCircuit,
)
from protocol.composition import (
    CompositionPolynomial,
    GkrComposition,
    GkrCompositionMerge,
)
from protocol.config import GkrConfig
from protocol.errors import (
    CircuitConstructionError,
    EvaluationPointMismatchError,
    FailedToVerifySumCheckError,
    FinalEvaluationMismatchError,
    InvalidProofShapeError,
    MalformedRoundProofError,
    MismatchingCircuitOutputError,
    MissingOpeningsError,
    ProofDeserializationError,
    SumCheckProverError,
    SumCheckVerifierError,
    VerifierError,
    ZeroOutputDenominatorError,
)
from protocol.main_trace import MainTrace
from protocol.proof import (
    FinalLayerProof,
    FinalOpeningClaim,
    GkrCircuitProof,
    GkrRandElements,
    RoundProof,
    SumCheckProof,
)
from protocol.prover import prove, prove_virtual_bus
from protocol.range_checker import BusBuilder, RangeCheckerBus
from protocol.sumcheck import SumCheckProver, SumCheckVerifier
from protocol.verifier import verify, verify_virtual_bus

__all__ = [
    # Circuit
    "CircuitLayer",
    "CircuitLayerPolys",
    "CircuitWire",
    "EvaluatedCircuit",
    # Composition polynomials
    "CompositionPolynomial",
    "GkrComposition",
    "GkrCompositionMerge",
    "BusBuilder",
    "RangeCheckerBus",
    # Configuration and data structures
    "GkrConfig",
    "MainTrace",
    "FinalLayerProof",
    "FinalOpeningClaim",
    "GkrCircuitProof",
    "GkrRandElements",
    "RoundProof",
    "SumCheckProof",
    # Errors
    "CircuitConstructionError",
    "EvaluationPointMismatchError",
    "FailedToVerifySumCheckError",
    "FinalEvaluationMismatchError",
    "InvalidProofShapeError",
    "MalformedRoundProofError",
    "MismatchingCircuitOutputError",
    "MissingOpeningsError",
    "ProofDeserializationError",
    "SumCheckProverError",
    "SumCheckVerifierError",
    "VerifierError",
    "ZeroOutputDenominatorError",
    # Sum-check
    "SumCheckProver",
    "SumCheckVerifier",
    # Entry points
    "prove",
    "prove_virtual_bus",
    "verify",
    "verify_virtual_bus",
]
