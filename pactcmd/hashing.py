"""
pactcmd Hashing

Content hashes are BLAKE2b-512 digests rendered as lowercase hex.
PactHash marks a hash of a command payload; Hash is the untyped form
used for signing messages and request keys.
"""

import hashlib
from dataclasses import dataclass
from typing import Union

from .util import parse_b16_text, to_b16_text

DEFAULT_HASH_ALGORITHM = "blake2b"


@dataclass(frozen=True)
class Hash:
    """Untyped content hash."""
    digest: bytes

    def to_hex(self) -> str:
        return to_b16_text(self.digest)

    @classmethod
    def from_hex(cls, text: str) -> 'Hash':
        return cls(parse_b16_text(text))

    def __str__(self) -> str:
        return self.to_hex()


@dataclass(frozen=True)
class PactHash(Hash):
    """Hash of the exact bytes of a command payload."""

    def to_untyped(self) -> Hash:
        return Hash(self.digest)


def hash_tx(data: Union[bytes, str], algorithm: str = DEFAULT_HASH_ALGORITHM) -> Hash:
    """
    Hash data with a named hashlib algorithm.

    Args:
        data: Bytes (or text, UTF-8 encoded) to hash
        algorithm: hashlib algorithm name, e.g. "blake2b" or "sha3_256"

    Returns:
        Untyped Hash of the data
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return Hash(hashlib.new(algorithm, data).digest())


def pact_hash(data: bytes) -> PactHash:
    """Compute the command hash of payload bytes."""
    return PactHash(hashlib.blake2b(data).digest())


def verify_hash(declared: PactHash, data: bytes) -> bool:
    """
    Verify that payload bytes match a declared command hash.

    Verifiers MUST recompute the hash from the bytes rather than trust
    the declared value.
    """
    return pact_hash(data) == declared
