"""Sum-check prover and verifier over multilinear polynomials.

Proves sum_{x in {0,1}^nu} g(f_0(x), ..., f_c(x)) = claim for a composition
polynomial g and MLEs f_i. Round i fixes variable i (the lowest remaining
one) to the transcript challenge r_i:

    prover:   s_i(X) = sum_{x'} g(f(r_0, .., r_{i-1}, X, x'))  sent as [c0, c2, .., cd]
              reseed(coefficients), r_i = draw(), bind every f to r_i
    verifier: claim_{i+1} = s_i(r_i), with c1 recovered from claim_i

After nu rounds the verifier checks g(openings) = claim_nu, where the
openings are the prover's claimed values f_j(r_0, ..., r_{nu-1}).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

from primitives.multilinear import EqFunction, MultiLinearPoly
from primitives.polynomial import EvaluationDomain, UnivariatePolyCoef
from primitives.transcript import Transcript
from protocol.composition import CompositionPolynomial
from protocol.errors import (
    EvaluationPointMismatchError,
    FinalEvaluationMismatchError,
    MalformedRoundProofError,
    MissingOpeningsError,
    SumCheckProverError,
)
from protocol.proof import EvalPoint, FinalOpeningClaim, RoundProof, SumCheckProof

logger = logging.getLogger(__name__)


@dataclass
class RoundClaim:
    """Running sum-check claim after a number of rounds."""
    eval_point: EvalPoint = field(default_factory=list)
    claim: Any = None


def reduce_claim(round_proof: RoundProof, round_claim: RoundClaim, challenge) -> RoundClaim:
    """Reduce a claim to s(challenge) and extend the evaluation point."""
    new_claim = round_proof.round_poly_coefs.evaluate_using_claim(round_claim.claim, challenge)
    return RoundClaim(eval_point=[*round_claim.eval_point, challenge], claim=new_claim)


# --- Final Claim Builders (prover side) ---


class FinalClaimBuilder(ABC):
    """Shapes the prover's final openings into a FinalOpeningClaim."""

    @abstractmethod
    def build_claim(self, openings: List[Any], evaluation_point: EvalPoint) -> FinalOpeningClaim:
        ...


class PlainFinalClaimBuilder(FinalClaimBuilder):
    """Every opening is sent."""

    def build_claim(self, openings: List[Any], evaluation_point: EvalPoint) -> FinalOpeningClaim:
        return FinalOpeningClaim(list(evaluation_point), list(openings))


class GkrFinalClaimBuilder(FinalClaimBuilder):
    """The trailing eq MLE is dropped, the verifier recomputes it."""

    def build_claim(self, openings: List[Any], evaluation_point: EvalPoint) -> FinalOpeningClaim:
        return FinalOpeningClaim(list(evaluation_point), list(openings[:-1]))


# --- Query Builders (verifier side) ---


class CompositionPolyQueryBuilder(ABC):
    """Assembles the composition polynomial query from the prover's openings."""

    @abstractmethod
    def build_query(self, openings_claim: FinalOpeningClaim, evaluation_point: EvalPoint) -> List[Any]:
        ...


class PlainQueryBuilder(CompositionPolyQueryBuilder):
    def build_query(self, openings_claim: FinalOpeningClaim, evaluation_point: EvalPoint) -> List[Any]:
        return list(openings_claim.openings)


class GkrQueryBuilder(CompositionPolyQueryBuilder):
    """Appends eq(gkr_eval_point, sum-check point)."""

    def __init__(self, gkr_eval_point: EvalPoint):
        self.gkr_eval_point = list(gkr_eval_point)

    def build_query(self, openings_claim: FinalOpeningClaim, evaluation_point: EvalPoint) -> List[Any]:
        eq_at = EqFunction(self.gkr_eval_point).evaluate(evaluation_point)
        return [*openings_claim.openings, eq_at]


class GkrMergeQueryBuilder(CompositionPolyQueryBuilder):
    """Appends eq(gkr_eval_point, merge point || sum-check point)."""

    def __init__(self, gkr_eval_point: EvalPoint, merge_randomness: EvalPoint):
        self.gkr_eval_point = list(gkr_eval_point)
        self.merge_randomness = list(merge_randomness)

    def build_query(self, openings_claim: FinalOpeningClaim, evaluation_point: EvalPoint) -> List[Any]:
        point = [*self.merge_randomness, *evaluation_point]
        eq_at = EqFunction(self.gkr_eval_point).evaluate(point)
        return [*openings_claim.openings, eq_at]


# --- Prover ---


def sumcheck_round(
    eval_domain: EvaluationDomain,
    composition_poly: CompositionPolynomial,
    mls: Sequence[MultiLinearPoly],
    claim,
) -> RoundProof:
    """Compute one round polynomial over all adjacent vertex pairs at once.

    For every pair (x = 2k, x = 2k + 1) and every X in 1..d, the MLE values
    f(X) = f(0) + X (f(1) - f(0)) are produced by repeated addition of the
    deltas; s(0) follows from the claim.
    """
    evals_zero = [ml.evaluations[0::2] for ml in mls]
    evals_x = [ml.evaluations[1::2] for ml in mls]
    deltas = [e1 - e0 for e0, e1 in zip(evals_zero, evals_x)]

    round_evals = [composition_poly.evaluate(evals_x).sum()]
    for _ in range(2, eval_domain.max_degree + 1):
        evals_x = [e + d for e, d in zip(evals_x, deltas)]
        round_evals.append(composition_poly.evaluate(evals_x).sum())

    return RoundProof(UnivariatePolyCoef.from_round_evaluations(round_evals, claim, eval_domain))


class SumCheckProver:
    """Sum-check prover for one composition polynomial."""

    def __init__(self, composition_poly: CompositionPolynomial, final_claim_builder: FinalClaimBuilder):
        self.composition_poly = composition_poly
        self.final_claim_builder = final_claim_builder

    def prove(self, claim, mls: List[MultiLinearPoly], transcript: Transcript) -> SumCheckProof:
        """Run every round, binding `mls` in place.

        Args:
            claim: Claimed sum over the hypercube
            mls: MLEs in the order the composition polynomial reads them
            transcript: Fiat-Shamir transcript shared with the verifier

        Returns:
            Round proofs and the claimed openings of `mls` at the final point

        Raises:
            SumCheckProverError: On empty input, zero variables or differing arities
        """
        if not mls:
            raise SumCheckProverError("no multilinear polynomials provided")
        num_rounds = mls[0].num_variables()
        if num_rounds == 0:
            raise SumCheckProverError("multilinear polynomials need at least one variable")

        round_claim, round_proofs = self.prove_rounds(claim, mls, num_rounds, transcript)
        openings = [ml[0] for ml in mls]
        openings_claim = self.final_claim_builder.build_claim(openings, round_claim.eval_point)
        return SumCheckProof(openings_claim, round_proofs)

    def prove_rounds(
        self,
        claim,
        mls: List[MultiLinearPoly],
        num_rounds: int,
        transcript: Transcript,
    ) -> Tuple[RoundClaim, List[RoundProof]]:
        """Run the first `num_rounds` rounds only, leaving `mls` partially bound."""
        if not mls:
            raise SumCheckProverError("no multilinear polynomials provided")
        num_vars = mls[0].num_variables()
        if any(ml.num_variables() != num_vars for ml in mls):
            raise SumCheckProverError(
                f"multilinear polynomials have different arities: {[ml.num_variables() for ml in mls]}"
            )
        if num_rounds > num_vars:
            raise SumCheckProverError(f"{num_rounds} rounds requested for {num_vars} variables")

        eval_domain = EvaluationDomain(type(claim), self.composition_poly.max_degree())
        round_claim = RoundClaim(eval_point=[], claim=claim)
        round_proofs: List[RoundProof] = []

        for _ in range(num_rounds):
            round_proof = sumcheck_round(eval_domain, self.composition_poly, mls, round_claim.claim)
            transcript.reseed(round_proof.round_poly_coefs.coefficients)
            r = transcript.draw()
            round_claim = reduce_claim(round_proof, round_claim, r)
            for ml in mls:
                ml.bind_assign(r)
            round_proofs.append(round_proof)

        logger.debug(
            "sum-check: %d rounds, degree %d, %d polynomials",
            num_rounds, self.composition_poly.max_degree(), len(mls),
        )
        return round_claim, round_proofs


# --- Verifier ---


class SumCheckVerifier:
    """Sum-check verifier for one composition polynomial."""

    def __init__(self, composition_poly: CompositionPolynomial, query_builder: CompositionPolyQueryBuilder):
        self.composition_poly = composition_poly
        self.query_builder = query_builder

    def verify(self, claim, proof: SumCheckProof, transcript: Transcript) -> FinalOpeningClaim:
        """Check a full sum-check proof.

        Returns:
            The openings claim at the transcript-derived evaluation point

        Raises:
            SumCheckVerifierError: Subclass naming the failed check
        """
        round_claim = self.verify_rounds(claim, proof.round_proofs, transcript)
        openings_claim = proof.openings_claim

        if not _points_equal(openings_claim.eval_point, round_claim.eval_point):
            logger.debug("sum-check rejected: evaluation point mismatch")
            raise EvaluationPointMismatchError(
                "openings are claimed at a point other than the sum-check challenges"
            )

        query = self.query_builder.build_query(openings_claim, round_claim.eval_point)
        if len(query) != self.composition_poly.num_variables():
            logger.debug("sum-check rejected: %d query entries", len(query))
            raise MissingOpeningsError(
                f"expected {self.composition_poly.num_variables()} query entries, got {len(query)}"
            )

        if self.composition_poly.evaluate(query) != round_claim.claim:
            logger.debug("sum-check rejected: final evaluation mismatch")
            raise FinalEvaluationMismatchError(
                "composition polynomial at the openings does not match the final claim"
            )

        return FinalOpeningClaim(list(round_claim.eval_point), list(openings_claim.openings))

    def verify_rounds(self, claim, round_proofs: Sequence[RoundProof], transcript: Transcript) -> RoundClaim:
        """Replay the rounds, returning the reduced claim and the challenges."""
        expected = self.composition_poly.max_degree()
        round_claim = RoundClaim(eval_point=[], claim=claim)

        for i, round_proof in enumerate(round_proofs):
            n_coefs = round_proof.round_poly_coefs.degree_bound()
            if n_coefs != expected:
                logger.debug("sum-check rejected: round %d has %d coefficients", i, n_coefs)
                raise MalformedRoundProofError(
                    f"round {i}: expected {expected} coefficients, got {n_coefs}"
                )
            transcript.reseed(round_proof.round_poly_coefs.coefficients)
            r = transcript.draw()
            round_claim = reduce_claim(round_proof, round_claim, r)

        return round_claim


def _points_equal(a: Sequence, b: Sequence) -> bool:
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))
