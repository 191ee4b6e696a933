"""Random short id generation.

Ids are drawn with ``nanoid`` (backed by ``os.urandom``) from a fixed alphabet
at a fixed length. The generator holds no state and never checks uniqueness:
a candidate is only a proposal, and the allocation service is responsible for
correctness when two candidates collide.

Capacity with the defaults is 64^6 ≈ 6.9·10^10 ids.
"""

from typing import Protocol, runtime_checkable

from nanoid import generate

from tinyurl.config import DEFAULT_ALPHABET, Settings

__all__ = ["IdGenerator", "NanoIdGenerator"]


@runtime_checkable
class IdGenerator(Protocol):
    """Produces candidate short ids."""

    def generate(self) -> str: ...


class NanoIdGenerator:
    def __init__(self, length: int = 6, alphabet: str = DEFAULT_ALPHABET) -> None:
        if length < 1:
            raise ValueError("length must be positive")
        if len(alphabet) < 2:
            raise ValueError("alphabet must contain at least two characters")
        self.length = length
        self.alphabet = alphabet

    @classmethod
    def from_settings(cls, settings: Settings) -> "NanoIdGenerator":
        return cls(length=settings.SHORT_ID_LENGTH, alphabet=settings.SHORT_ID_ALPHABET)

    def generate(self) -> str:
        return generate(self.alphabet, self.length)
