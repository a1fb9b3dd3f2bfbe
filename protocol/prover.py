"""LogUp-GKR prover.

Reduces "the fraction circuit over the main trace outputs (p0, p1, q0, q1)"
to one opening claim on the main trace column MLEs. Layers are processed
from the output down to the input:

    output      reseed(p0, p1, q0, q1), r = draw()
                claim = (p(r), q(r)), rand = [r]
    layer i     reseed(claim), r_batch = draw()
                sum-check of GkrComposition(r_batch) at eq(rand, .)
                reseed(openings), r_layer = draw()
                claim = folded openings, rand = [r_layer] + sum-check point
    input       reseed(claim), r = draw()
                log2(W / 2) rounds of GkrComposition(r) over the merge variables
                full sum-check of GkrCompositionMerge over the trace columns
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from primitives.field import log2
from primitives.multilinear import EqFunction, MultiLinearPoly
from primitives.transcript import Transcript
from protocol.circuit import EvaluatedCircuit, fold_openings
from protocol.composition import (
    CompositionPolynomial,
    GkrComposition,
    GkrCompositionMerge,
    num_wires_per_row,
)
from protocol.config import GkrConfig
from protocol.main_trace import MainTrace
from protocol.proof import (
    EvalPoint,
    FinalLayerProof,
    GkrCircuitProof,
    GkrRandElements,
    SumCheckProof,
)
from protocol.range_checker import RangeCheckerBus
from protocol.sumcheck import GkrFinalClaimBuilder, SumCheckProver

logger = logging.getLogger(__name__)


@dataclass
class GkrClaim:
    """Claim that the (numerator, denominator) MLEs of a layer open to a pair at a point."""
    evaluation_point: EvalPoint
    claimed_evaluation: Tuple[Any, Any]


def prove(
    composition_polys: Sequence[Sequence[CompositionPolynomial]],
    trace: MainTrace,
    transcript: Transcript,
) -> GkrCircuitProof:
    """Prove the fraction circuit defined by the lookup composers over `trace`.

    Args:
        composition_polys: [numerator composers, denominator composers]
        trace: Main trace the composers read
        transcript: Fiat-Shamir transcript; challenges are drawn in its field

    Returns:
        GkrCircuitProof whose final openings are the trace columns

    Raises:
        CircuitConstructionError: If some lookup fraction has a zero denominator
    """
    numerators, denominators = composition_polys
    main_trace_columns = trace.to_multilinears(transcript.field)

    circuit = EvaluatedCircuit.from_main_trace(main_trace_columns, numerators, denominators)

    before_final_layer_proofs, gkr_claim = prove_before_final_circuit_layers(circuit, transcript)

    num_rounds_before_merge = log2(num_wires_per_row(len(numerators)) // 2)
    final_layer_proof = prove_final_circuit_layer(
        numerators,
        denominators,
        main_trace_columns,
        num_rounds_before_merge,
        gkr_claim,
        circuit,
        transcript,
    )

    return GkrCircuitProof(
        circuit_outputs=circuit.output_layer(),
        before_final_layer_proofs=before_final_layer_proofs,
        final_layer_proof=final_layer_proof,
    )


def prove_before_final_circuit_layers(
    circuit: EvaluatedCircuit,
    transcript: Transcript,
) -> Tuple[List[SumCheckProof], GkrClaim]:
    """Reduce the output claim down to a claim on the input layer."""
    outputs = circuit.output_layer()
    transcript.reseed([*outputs.numerators.evaluations, *outputs.denominators.evaluations])

    r = transcript.draw()
    claim = circuit.evaluate_output_layer(r)
    rand = [r]

    proofs: List[SumCheckProof] = []
    for layer_idx in range(circuit.num_layers() - 2, 0, -1):
        logger.debug("proving circuit layer %d (%d wires)", layer_idx, circuit.get_layer(layer_idx).num_wires())
        mls = circuit.get_layer(layer_idx).project_least_significant_variable()
        mls.append(EqFunction.ml_at(rand))

        proof = sum_check_prove_layer(claim, mls, transcript)

        openings = proof.openings_claim.openings
        transcript.reseed(openings)
        r_layer = transcript.draw()
        claim = fold_openings(openings, r_layer)
        rand = [r_layer, *proof.openings_claim.eval_point]

        proofs.append(proof)

    return proofs, GkrClaim(evaluation_point=rand, claimed_evaluation=claim)


def prove_final_circuit_layer(
    numerators: Sequence[CompositionPolynomial],
    denominators: Sequence[CompositionPolynomial],
    main_trace_columns: List[MultiLinearPoly],
    num_rounds_merge: int,
    gkr_claim: GkrClaim,
    circuit: EvaluatedCircuit,
    transcript: Transcript,
) -> FinalLayerProof:
    """Reduce the input layer claim to openings of the trace columns.

    `main_trace_columns` is bound in place.
    """
    merged_mls = circuit.input_layer().project_least_significant_variable()
    merged_mls.append(EqFunction.ml_at(gkr_claim.evaluation_point))

    p, q = gkr_claim.claimed_evaluation
    transcript.reseed([p, q])
    r_sum_check = transcript.draw()
    claim = p + q * r_sum_check

    prover = SumCheckProver(GkrComposition(r_sum_check), GkrFinalClaimBuilder())
    round_claim, before_merge_proof = prover.prove_rounds(claim, merged_mls, num_rounds_merge, transcript)

    composition = GkrCompositionMerge(r_sum_check, round_claim.eval_point, numerators, denominators)
    mls = [*main_trace_columns, merged_mls[4]]
    logger.debug(
        "proving final layer: %d merge rounds, %d trace columns, degree %d",
        num_rounds_merge, len(main_trace_columns), composition.max_degree(),
    )
    main_prover = SumCheckProver(composition, GkrFinalClaimBuilder())
    after_merge_proof = main_prover.prove(round_claim.claim, mls, transcript)

    return FinalLayerProof(before_merge_proof=before_merge_proof, after_merge_proof=after_merge_proof)


def sum_check_prove_layer(
    claimed_evaluation: Tuple[Any, Any],
    mls: List[MultiLinearPoly],
    transcript: Transcript,
) -> SumCheckProof:
    """Batch the numerator and denominator claims of a layer into one sum-check."""
    p, q = claimed_evaluation
    transcript.reseed([p, q])
    r_batch = transcript.draw()
    claim = p + q * r_batch

    prover = SumCheckProver(GkrComposition(r_batch), GkrFinalClaimBuilder())
    return prover.prove(claim, mls, transcript)


# --- Virtual Bus ---


def prove_virtual_bus(
    trace: MainTrace,
    transcript: Transcript,
    config: GkrConfig = None,
) -> Tuple[GkrCircuitProof, GkrRandElements]:
    """Prove the range checker bus and derive the randomness for the outer STARK.

    Draws the LogUp randomness, proves the bus, absorbs the final trace
    openings and draws one combining challenge per opened column, mirroring
    verifier.verify_virtual_bus.
    """
    config = config or GkrConfig()
    log_up_randomness = transcript.draw_many(config.num_log_up_rand_values)
    bus = RangeCheckerBus(log_up_randomness)

    proof = prove(bus.build_composition_polys(), trace, transcript)

    final_opening_claim = proof.final_layer_proof.after_merge_proof.openings_claim
    transcript.reseed(final_opening_claim.openings)
    openings_combining_randomness = transcript.draw_many(len(final_opening_claim.openings))

    return proof, GkrRandElements(
        lagrange_kernel_eval_point=list(final_opening_claim.eval_point),
        openings_combining_randomness=openings_combining_randomness,
    )
