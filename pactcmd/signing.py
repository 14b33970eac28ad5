"""
pactcmd Signature Schemes

A closed set of public/private key schemes. Each scheme defines key
import, public key formatting (the "address"), signing and
verification.

- ED25519 (RFC 8032) via PyNaCl. The address is the public key.
- ETH: secp256k1 ECDSA over keccak-256 of the message, via coincurve.
  The public key is the 64-byte uncompressed point without prefix; the
  address is the last 20 bytes of its keccak-256 digest.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

import coincurve
from eth_hash.auto import keccak
from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from .errors import KeyPairImportError, SigningError
from .logging_config import audit_log
from .util import to_b16_text

logger = logging.getLogger(__name__)

ED25519_KEY_LENGTH = 32
ETH_PRIVATE_KEY_LENGTH = 32
ETH_PUBLIC_KEY_LENGTH = 64
ETH_ADDRESS_LENGTH = 20

_UNCOMPRESSED_PREFIX = b"\x04"


class PPKScheme(str, Enum):
    """Supported public/private key schemes."""
    ED25519 = "ED25519"
    ETH = "ETH"

    @classmethod
    def default(cls) -> 'PPKScheme':
        return cls.ED25519


def keccak256(data: bytes) -> bytes:
    return keccak(data)


def format_public_key_bs(scheme: PPKScheme, public_key: bytes) -> bytes:
    """
    Derive the canonical address of a public key under a scheme.

    Raises:
        ValueError: if the public key has the wrong length for the scheme
    """
    if scheme == PPKScheme.ED25519:
        if len(public_key) != ED25519_KEY_LENGTH:
            raise ValueError(
                f"ED25519 public key must be {ED25519_KEY_LENGTH} bytes, got {len(public_key)}"
            )
        return public_key
    if scheme == PPKScheme.ETH:
        if len(public_key) != ETH_PUBLIC_KEY_LENGTH:
            raise ValueError(
                f"ETH public key must be {ETH_PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
            )
        return keccak256(public_key)[-ETH_ADDRESS_LENGTH:]
    raise ValueError(f"Unsupported scheme: {scheme}")


def canonical_address(scheme: PPKScheme, public_key: bytes) -> str:
    """Hex text form of format_public_key_bs."""
    return to_b16_text(format_public_key_bs(scheme, public_key))


class KeyPair(ABC):
    """A private key with its derived public key under one scheme."""

    scheme: PPKScheme

    def __init__(self, private_key: bytes, public_key: bytes):
        self._private = private_key
        self._public = public_key

    def get_public(self) -> bytes:
        return self._public

    def get_private(self) -> bytes:
        return self._private

    def format_public_key(self) -> bytes:
        return format_public_key_bs(self.scheme, self._public)

    @classmethod
    @abstractmethod
    def from_private(cls, private_key: bytes) -> 'KeyPair':
        """
        Build a key pair, deriving the public key.

        Raises:
            ValueError: if the private key is malformed
        """

    @abstractmethod
    def _sign(self, message: bytes) -> bytes:
        pass

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message.

        Raises:
            SigningError: if the underlying library rejects the key or message
        """
        try:
            return self._sign(message)
        except (CryptoError, ValueError, TypeError) as e:
            raise SigningError(f"{self.scheme.value} signing failed: {e}") from e

    def __repr__(self) -> str:
        return f"{type(self).__name__}(public={to_b16_text(self._public)})"


class Ed25519KeyPair(KeyPair):
    scheme = PPKScheme.ED25519

    @classmethod
    def from_private(cls, private_key: bytes) -> 'Ed25519KeyPair':
        if len(private_key) != ED25519_KEY_LENGTH:
            raise ValueError(
                f"ED25519 private key must be {ED25519_KEY_LENGTH} bytes, got {len(private_key)}"
            )
        try:
            verify_key = SigningKey(private_key).verify_key
        except CryptoError as e:
            raise ValueError(str(e)) from e
        return cls(private_key, bytes(verify_key))

    @contextmanager
    def _signing_key(self) -> Iterator[SigningKey]:
        key = SigningKey(self._private)
        try:
            yield key
        finally:
            del key

    def _sign(self, message: bytes) -> bytes:
        with self._signing_key() as key:
            return key.sign(message).signature


class EthKeyPair(KeyPair):
    scheme = PPKScheme.ETH

    @classmethod
    def from_private(cls, private_key: bytes) -> 'EthKeyPair':
        if len(private_key) != ETH_PRIVATE_KEY_LENGTH:
            raise ValueError(
                f"ETH private key must be {ETH_PRIVATE_KEY_LENGTH} bytes, got {len(private_key)}"
            )
        public = coincurve.PrivateKey(private_key).public_key.format(compressed=False)
        return cls(private_key, public[1:])

    @contextmanager
    def _signing_key(self) -> Iterator[coincurve.PrivateKey]:
        key = coincurve.PrivateKey(self._private)
        try:
            yield key
        finally:
            del key

    def _sign(self, message: bytes) -> bytes:
        with self._signing_key() as key:
            return key.sign(keccak256(message), hasher=None)


_KEY_PAIR_TYPES = {
    PPKScheme.ED25519: Ed25519KeyPair,
    PPKScheme.ETH: EthKeyPair,
}


def import_key_pair(
    scheme: PPKScheme,
    private_key: bytes,
    public_key: Optional[bytes] = None,
    address: Optional[bytes] = None
) -> KeyPair:
    """
    Import a key pair from its private key.

    A supplied public key or address is checked against the values
    derived from the private key; it is never silently replaced.

    Args:
        scheme: Scheme the key belongs to
        private_key: Raw private key bytes
        public_key: Expected public key, if known
        address: Expected address, if known

    Returns:
        KeyPair for the scheme

    Raises:
        KeyPairImportError: on malformed key material or any mismatch
    """
    scheme = PPKScheme(scheme)
    try:
        kp = _KEY_PAIR_TYPES[scheme].from_private(private_key)
    except ValueError as e:
        audit_log.key_pair_import_failed(scheme.value, str(e))
        raise KeyPairImportError(f"Invalid {scheme.value} private key: {e}") from e

    if public_key is not None and public_key != kp.get_public():
        reason = (
            f"Expected PublicKey: {to_b16_text(kp.get_public())}, "
            f"but received: {to_b16_text(public_key)}"
        )
        audit_log.key_pair_import_failed(scheme.value, reason)
        raise KeyPairImportError(reason)

    if address is not None and address != kp.format_public_key():
        reason = (
            f"Address provided does not match derived address. "
            f"Expected: {to_b16_text(kp.format_public_key())}, "
            f"but received: {to_b16_text(address)}"
        )
        audit_log.key_pair_import_failed(scheme.value, reason)
        raise KeyPairImportError(reason)

    logger.debug("Imported %s key pair %s", scheme.value, to_b16_text(kp.get_public()))
    return kp


def sign(key_pair: KeyPair, message: bytes) -> bytes:
    """Sign a message with a key pair."""
    return key_pair.sign(message)


def verify(scheme: PPKScheme, message: bytes, public_key: bytes, signature: bytes) -> bool:
    """
    Verify a signature under a scheme.

    Malformed keys or signatures verify as False rather than raising.
    """
    if scheme == PPKScheme.ED25519:
        try:
            VerifyKey(public_key).verify(message, signature)
            return True
        except (CryptoError, ValueError, TypeError):
            return False

    if scheme == PPKScheme.ETH:
        if len(public_key) != ETH_PUBLIC_KEY_LENGTH:
            return False
        try:
            key = coincurve.PublicKey(_UNCOMPRESSED_PREFIX + public_key)
            return key.verify(signature, keccak256(message), hasher=None)
        except (ValueError, TypeError):
            return False

    return False
