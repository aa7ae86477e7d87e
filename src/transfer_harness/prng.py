"""
Deterministic pseudo-random byte sequences.

Both ends of a transfer recompute the same bytes from nothing but the length,
using a Lehmer generator with a fixed seed:

    seed = seed * 48271 % 2147483647
    byte = seed & 0xFF

Python integers do not overflow, so the product never needs widening.
"""

from collections.abc import Iterable, Iterator

from transfer_harness.constants import (
    DEFAULT_CHUNK_SIZE,
    PRNG_MODULUS,
    PRNG_MULTIPLIER,
    PRNG_SEED,
)
from transfer_harness.errors import VerificationError


class PRNGStream:
    """Produce the sequence incrementally, starting from the fixed seed."""

    def __init__(self):
        self.seed = PRNG_SEED
        self.position = 0

    def read(self, n: int) -> bytes:
        """
        Return the next n bytes of the sequence.

        Args:
            n: Number of bytes to produce

        Returns:
            Bytes object of length n
        """
        if n < 0:
            raise ValueError(f"Cannot read a negative number of bytes: {n}")

        out = bytearray(n)
        seed = self.seed
        for i in range(n):
            seed = seed * PRNG_MULTIPLIER % PRNG_MODULUS
            out[i] = seed & 0xFF

        self.seed = seed
        self.position += n
        return bytes(out)


def generate(length: int) -> bytes:
    """
    Generate the first `length` bytes of the deterministic sequence.

    Args:
        length: Number of bytes, must be non-negative

    Returns:
        Bytes object containing the generated content
    """
    if length < 0:
        raise ValueError(f"Length must be non-negative, got {length}")
    return PRNGStream().read(length)


def iter_chunks(length: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield generate(length) in pieces of at most chunk_size bytes."""
    if length < 0:
        raise ValueError(f"Length must be non-negative, got {length}")

    stream = PRNGStream()
    while stream.position < length:
        yield stream.read(min(chunk_size, length - stream.position))


class SequenceVerifier:
    """Check a byte stream against generate(length) chunk by chunk.

    Expected bytes are produced alongside the received ones, so neither the
    payload nor the expected sequence is held in full.
    """

    def __init__(self, length: int):
        if length < 0:
            raise ValueError(f"Length must be non-negative, got {length}")
        self.length = length
        self.stream = PRNGStream()

    @property
    def received(self) -> int:
        return self.stream.position

    def feed(self, chunk: bytes):
        """
        Verify the next chunk of the stream.

        Raises:
            VerificationError: On more bytes than expected or the first differing byte
        """
        offset = self.received
        if offset + len(chunk) > self.length:
            raise VerificationError(
                f"Received more than the expected {self.length} bytes"
            )

        expected = self.stream.read(len(chunk))
        if expected != chunk:
            index = next(i for i in range(len(chunk)) if chunk[i] != expected[i])
            raise VerificationError(
                f"Byte mismatch at offset {offset + index}: "
                f"expected {expected[index]}, got {chunk[index]}"
            )

    def finish(self) -> int:
        """Raise VerificationError if the stream ended early, else return the byte count."""
        if self.received != self.length:
            raise VerificationError(
                f"Expected {self.length} bytes, received {self.received}"
            )
        return self.received


def verify(chunks: Iterable[bytes], length: int) -> int:
    """
    Verify an iterable of chunks against generate(length).

    Returns:
        Number of bytes verified
    """
    verifier = SequenceVerifier(length)
    for chunk in chunks:
        verifier.feed(chunk)
    return verifier.finish()
