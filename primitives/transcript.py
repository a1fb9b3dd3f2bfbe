"""
Fiat-Shamir transcript (random coin) using a BLAKE2b hash chain.

The transcript absorbs prover messages and produces verifier challenges in a
deterministic, pseudorandom manner. Prover and verifier must call `reseed`
and `draw` in exactly the same order.

Construction:
    reseed(m):  seed := H(seed || encode(m)), counter := 0
    draw():     counter += 1, candidate := H(seed || u64(counter))
                accept the first candidate whose u64 limbs are all < p
"""
import hashlib
import logging
import struct
from typing import Iterable, List

from primitives.field import FF, GOLDILOCKS_PRIME, element_limbs

logger = logging.getLogger(__name__)

# Digest size in bytes; enough limbs for any extension degree up to 4
DIGEST_SIZE = 32

# Number of rejected candidates after which `draw` gives up
MAX_DRAW_ATTEMPTS = 1000


class RandomnessError(Exception):
    """The transcript failed to produce a challenge."""


class Transcript:
    """
    Fiat-Shamir random coin over a galois field.

    Attributes:
        field: Field the challenges are drawn from (FF or FF2)
        seed: Current 32-byte chain value
        counter: Number of draws since the last reseed
    """

    def __init__(self, field=FF, seed: bytes = b""):
        """
        Initialize transcript.

        Args:
            field: galois field class challenges are drawn from
            seed: Public domain-separation bytes (e.g. a statement digest)
        """
        if field.degree * 8 > DIGEST_SIZE:
            raise ValueError(f"extension degree {field.degree} is too large for the digest")

        self.field = field
        self.seed = hashlib.blake2b(bytes(seed), digest_size=DIGEST_SIZE).digest()
        self.counter = 0

    def reseed(self, elements: Iterable) -> None:
        """
        Absorb field elements into the transcript.

        Args:
            elements: Iterable of field elements (a list of scalars or a 1-d FieldArray)
        """
        h = hashlib.blake2b(digest_size=DIGEST_SIZE)
        h.update(self.seed)
        for elem in elements:
            limbs = element_limbs(elem)
            h.update(struct.pack(f'<{len(limbs)}Q', *limbs))
        self.seed = h.digest()
        self.counter = 0

    def draw(self):
        """
        Draw the next challenge from the transcript.

        Returns:
            A scalar of `self.field`

        Raises:
            RandomnessError: If no valid candidate was found within MAX_DRAW_ATTEMPTS
        """
        n_limbs = self.field.degree
        for _ in range(MAX_DRAW_ATTEMPTS):
            self.counter += 1
            digest = hashlib.blake2b(
                self.seed + struct.pack('<Q', self.counter), digest_size=DIGEST_SIZE
            ).digest()
            limbs = struct.unpack(f'<{n_limbs}Q', digest[:8 * n_limbs])
            if all(limb < GOLDILOCKS_PRIME for limb in limbs):
                value = 0
                for limb in reversed(limbs):
                    value = value * GOLDILOCKS_PRIME + limb
                return self.field(value)

        logger.debug("transcript exhausted %d draw attempts", MAX_DRAW_ATTEMPTS)
        raise RandomnessError(f"failed to draw a field element after {MAX_DRAW_ATTEMPTS} attempts")

    def draw_many(self, n: int) -> List:
        """Draw `n` challenges in sequence."""
        return [self.draw() for _ in range(n)]
