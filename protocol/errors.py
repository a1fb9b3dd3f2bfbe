"""Error taxonomy of the GKR prover and verifier.

Construction errors are ValueErrors raised before any proof is produced.
Verification failures all derive from VerifierError, one class per failed
check. primitives.transcript.RandomnessError propagates unchanged from both
sides.
"""


class GkrError(Exception):
    """Base class for errors raised by the protocol package."""


# --- Construction ---


class CircuitConstructionError(GkrError, ValueError):
    """A circuit layer violates a shape invariant or contains a zero denominator."""


class SumCheckProverError(GkrError, ValueError):
    """Sum-check prover was given inconsistent inputs."""


class ProofDeserializationError(GkrError, ValueError):
    """Bytes or JSON do not describe a well-formed proof."""


# --- Verification ---


class VerifierError(GkrError):
    """Base class for every verification failure."""


class InvalidProofShapeError(VerifierError):
    """Proof has the wrong number of layers, rounds or output wires."""


class ZeroOutputDenominatorError(VerifierError):
    """A denominator of the circuit output layer is zero."""


class MismatchingCircuitOutputError(VerifierError):
    """Circuit output fraction does not match the claimed bus value."""


class SumCheckVerifierError(VerifierError):
    """Base class for sum-check verification failures."""


class MalformedRoundProofError(SumCheckVerifierError):
    """A round polynomial has the wrong number of coefficients."""


class EvaluationPointMismatchError(SumCheckVerifierError):
    """The proof's evaluation point differs from the transcript-derived one."""


class MissingOpeningsError(SumCheckVerifierError):
    """Openings do not cover every variable of the composition polynomial."""


class FinalEvaluationMismatchError(SumCheckVerifierError):
    """Composition evaluated at the openings does not match the final claim."""


class FailedToVerifySumCheckError(VerifierError):
    """A sum-check inside the GKR reduction was rejected.

    The underlying SumCheckVerifierError is available as __cause__.
    """

    def __init__(self, message: str, layer: int):
        super().__init__(message)
        self.layer = layer
