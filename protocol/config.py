"""LogUp-GKR configuration."""

from dataclasses import dataclass

from primitives.field import FF2
from primitives.transcript import Transcript


@dataclass
class GkrConfig:
    """Virtual bus parameters shared by prover and verifier."""
    field: type = FF2
    transcript_seed: bytes = b""
    num_log_up_rand_values: int = 1

    def new_transcript(self) -> Transcript:
        return Transcript(self.field, self.transcript_seed)
