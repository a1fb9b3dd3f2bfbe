"""LogUp-GKR verifier.

Replays the prover's transcript layer by layer (see protocol.prover) and
returns the final opening claim on the main trace columns. The claim is a
reduction target only: the outer STARK must check these openings against its
own commitment to the trace.

Verification checks:
1. Shape: two output wires, round counts consistent with the evaluation point.
2. Output: no zero output denominator, (p0 q1 + p1 q0) / (q0 q1) == claim.
3. Every layer sum-check, then the two sum-checks of the input layer.
"""

import logging
from typing import Any, List, Sequence, Tuple

from primitives.field import log2
from primitives.transcript import Transcript
from protocol.circuit import fold_openings
from protocol.composition import (
    CompositionPolynomial,
    GkrComposition,
    GkrCompositionMerge,
    num_wires_per_row,
)
from protocol.config import GkrConfig
from protocol.errors import (
    FailedToVerifySumCheckError,
    InvalidProofShapeError,
    MismatchingCircuitOutputError,
    SumCheckVerifierError,
    ZeroOutputDenominatorError,
)
from protocol.proof import (
    EvalPoint,
    FinalLayerProof,
    FinalOpeningClaim,
    GkrCircuitProof,
    GkrRandElements,
    SumCheckProof,
)
from protocol.range_checker import RangeCheckerBus
from protocol.sumcheck import GkrMergeQueryBuilder, GkrQueryBuilder, SumCheckVerifier

logger = logging.getLogger(__name__)


def verify(
    claim,
    proof: GkrCircuitProof,
    composition_polys: Sequence[Sequence[CompositionPolynomial]],
    transcript: Transcript,
) -> FinalOpeningClaim:
    """Verify a GKR proof that the fraction circuit sums to `claim`.

    Args:
        claim: Expected value of the bus (sum of all lookup fractions)
        proof: Proof produced by prover.prove
        composition_polys: [numerator composers, denominator composers]
        transcript: Fiat-Shamir transcript in the same state as the prover's

    Returns:
        Openings of the main trace columns at the final evaluation point

    Raises:
        VerifierError: Subclass naming the failed check
    """
    numerators, denominators = composition_polys
    outputs = proof.circuit_outputs
    if outputs.num_wires() != 2:
        logger.debug("GKR rejected: %d output wires", outputs.num_wires())
        raise InvalidProofShapeError(f"circuit output must have 2 wires, got {outputs.num_wires()}")

    p0, p1 = outputs.numerators.evaluations
    q0, q1 = outputs.denominators.evaluations
    zero = type(q0)(0)

    # Output-claim check
    if q0 == zero or q1 == zero:
        logger.debug("GKR rejected: zero output denominator")
        raise ZeroOutputDenominatorError("circuit output has a zero denominator")
    if (p0 * q1 + p1 * q0) / (q0 * q1) != claim:
        logger.debug("GKR rejected: circuit output does not match the claim")
        raise MismatchingCircuitOutputError("circuit output fraction does not match the claim")

    transcript.reseed([p0, p1, q0, q1])
    r = transcript.draw()
    reduced_claim = (p0 + r * (p1 - p0), q0 + r * (q1 - q0))
    rand = [r]

    for layer, layer_proof in enumerate(proof.before_final_layer_proofs):
        openings_claim = verify_sum_check_proof_before_last(
            layer_proof, rand, reduced_claim, transcript, layer
        )
        transcript.reseed(openings_claim.openings)
        r_layer = transcript.draw()
        reduced_claim = fold_openings(openings_claim.openings, r_layer)
        rand = [r_layer, *openings_claim.eval_point]

    return verify_sum_check_proof_last(
        numerators,
        denominators,
        proof.final_layer_proof,
        rand,
        reduced_claim,
        transcript,
        len(proof.before_final_layer_proofs),
    )


def verify_sum_check_proof_before_last(
    proof: SumCheckProof,
    gkr_eval_point: EvalPoint,
    claim: Tuple[Any, Any],
    transcript: Transcript,
    layer: int,
) -> FinalOpeningClaim:
    """Verify the sum-check of one layer above the input layer."""
    if len(proof.round_proofs) != len(gkr_eval_point):
        logger.debug("GKR rejected: layer %d has %d rounds", layer, len(proof.round_proofs))
        raise InvalidProofShapeError(
            f"layer {layer}: expected {len(gkr_eval_point)} rounds, got {len(proof.round_proofs)}"
        )
    p, q = claim
    transcript.reseed([p, q])
    r_batch = transcript.draw()
    reduced_claim = p + q * r_batch

    verifier = SumCheckVerifier(GkrComposition(r_batch), GkrQueryBuilder(gkr_eval_point))
    try:
        return verifier.verify(reduced_claim, proof, transcript)
    except SumCheckVerifierError as err:
        raise FailedToVerifySumCheckError(f"layer {layer}: {err}", layer) from err


def verify_sum_check_proof_last(
    numerators: Sequence[CompositionPolynomial],
    denominators: Sequence[CompositionPolynomial],
    proof: FinalLayerProof,
    gkr_eval_point: EvalPoint,
    claim: Tuple[Any, Any],
    transcript: Transcript,
    layer: int,
) -> FinalOpeningClaim:
    """Verify the before-merge rounds and the trace-level sum-check of the input layer."""
    num_rounds_merge = log2(num_wires_per_row(len(numerators)) // 2)
    if len(proof.before_merge_proof) != num_rounds_merge:
        logger.debug("GKR rejected: %d merge rounds", len(proof.before_merge_proof))
        raise InvalidProofShapeError(
            f"expected {num_rounds_merge} merge rounds, got {len(proof.before_merge_proof)}"
        )
    num_rounds_trace = len(gkr_eval_point) - num_rounds_merge
    if num_rounds_trace < 1 or len(proof.after_merge_proof.round_proofs) != num_rounds_trace:
        logger.debug("GKR rejected: %d trace rounds", len(proof.after_merge_proof.round_proofs))
        raise InvalidProofShapeError(
            f"expected {num_rounds_trace} trace rounds, got {len(proof.after_merge_proof.round_proofs)}"
        )

    p, q = claim
    transcript.reseed([p, q])
    r_sum_check = transcript.draw()
    reduced_claim = p + q * r_sum_check

    try:
        before_merge_verifier = SumCheckVerifier(
            GkrComposition(r_sum_check), GkrQueryBuilder(gkr_eval_point)
        )
        round_claim = before_merge_verifier.verify_rounds(
            reduced_claim, proof.before_merge_proof, transcript
        )

        composition = GkrCompositionMerge(
            r_sum_check, round_claim.eval_point, numerators, denominators
        )
        after_merge_verifier = SumCheckVerifier(
            composition, GkrMergeQueryBuilder(gkr_eval_point, round_claim.eval_point)
        )
        return after_merge_verifier.verify(round_claim.claim, proof.after_merge_proof, transcript)
    except SumCheckVerifierError as err:
        raise FailedToVerifySumCheckError(f"final layer: {err}", layer) from err


# --- Virtual Bus ---


def verify_virtual_bus(
    proof: GkrCircuitProof,
    transcript: Transcript,
    config: GkrConfig = None,
) -> GkrRandElements:
    """Verify the range checker bus and derive the randomness for the outer STARK.

    Returns:
        The Lagrange kernel point at which the trace must be opened and one
        combining challenge per opened column
    """
    config = config or GkrConfig()
    log_up_randomness = transcript.draw_many(config.num_log_up_rand_values)
    bus = RangeCheckerBus(log_up_randomness)

    final_opening_claim = verify(
        bus.compute_initial_claim(), proof, bus.build_composition_polys(), transcript
    )

    transcript.reseed(final_opening_claim.openings)
    openings_combining_randomness: List[Any] = transcript.draw_many(
        len(final_opening_claim.openings)
    )

    return GkrRandElements(
        lagrange_kernel_eval_point=final_opening_claim.eval_point,
        openings_combining_randomness=openings_combining_randomness,
    )
