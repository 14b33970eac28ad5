"""
pactcmd Command Envelope

A Command is the signed, hashed envelope of an execution instruction.
In Command[bytes] the payload bytes are the canonical JSON of a
Payload whose exec code is text; the bytes are hashed and the hash is
signed. After verification the payload becomes a Payload whose exec
code is ParsedCode, carrying the same hash and signatures.

The declared signers live inside the hashed payload, so changing them
invalidates every attached signature.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from . import config
from .canonicalization import canonicalize, decode_json
from .errors import PayloadDecodeError
from .hashing import PactHash, pact_hash
from .logging_config import audit_log
from .parse import ParsedCode
from .rpc import PactRPC
from .signing import KeyPair, PPKScheme, sign
from .util import to_b16_text


A = TypeVar("A")
M = TypeVar("M")


def _scheme_from_json(d: Dict[str, Any], label: str) -> PPKScheme:
    scheme = d.get("scheme")
    if scheme is None:
        return PPKScheme.default()
    try:
        return PPKScheme(scheme)
    except ValueError as e:
        raise PayloadDecodeError(f"{label}: unknown scheme {scheme!r}") from e


def _text_field(d: Dict[str, Any], key: str, label: str) -> str:
    value = d.get(key)
    if not isinstance(value, str):
        raise PayloadDecodeError(f"{label}: {key!r} must be text")
    return value


@dataclass(frozen=True)
class Signer:
    """A declared signer: who must sign, independent of any signature."""
    scheme: PPKScheme
    pub_key: str
    address: str

    @classmethod
    def from_key_pair(cls, kp: KeyPair) -> 'Signer':
        return cls(kp.scheme, to_b16_text(kp.get_public()), to_b16_text(kp.format_public_key()))

    def to_dict(self) -> Dict[str, Any]:
        return {"scheme": self.scheme.value, "pubKey": self.pub_key, "addr": self.address}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Signer':
        """
        Decode a signer; scheme defaults to PPKScheme.default() and the
        address to the full public key.

        Raises:
            PayloadDecodeError: on missing or mistyped fields
        """
        if not isinstance(d, dict):
            raise PayloadDecodeError("Signer: expected an object")
        pub = _text_field(d, "pubKey", "Signer")
        addr = d.get("addr", pub)
        if not isinstance(addr, str):
            raise PayloadDecodeError("Signer: 'addr' must be text")
        return cls(_scheme_from_json(d, "Signer"), pub, addr)


@dataclass(frozen=True)
class UserSig:
    """
    A self-describing signature.

    Carries its own scheme, public key and address so it can be checked
    for internal consistency before being compared to a declared Signer.
    """
    scheme: PPKScheme
    pub_key: str
    address: str
    sig: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheme": self.scheme.value,
            "pubKey": self.pub_key,
            "addr": self.address,
            "sig": self.sig,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'UserSig':
        """
        Decode a signature; scheme defaults to PPKScheme.default() and
        the address to the full public key.

        Raises:
            PayloadDecodeError: on missing or mistyped fields
        """
        if not isinstance(d, dict):
            raise PayloadDecodeError("UserSig: expected an object")
        pub = _text_field(d, "pubKey", "UserSig")
        sig = _text_field(d, "sig", "UserSig")
        addr = d.get("addr", pub)
        if not isinstance(addr, str):
            raise PayloadDecodeError("UserSig: 'addr' must be text")
        return cls(_scheme_from_json(d, "UserSig"), pub, addr, sig)


@dataclass(frozen=True)
class Payload(Generic[M]):
    """An RPC with its nonce, platform metadata, and declared signers."""
    rpc: PactRPC
    nonce: str
    meta: M = None
    signers: List[Signer] = field(default_factory=list)

    def map_code(self, fn: Callable[[Any], Any]) -> 'Payload[M]':
        return replace(self, rpc=self.rpc.map_code(fn))

    def to_dict(self) -> Dict[str, Any]:
        def code_to_json(code):
            return code.code if isinstance(code, ParsedCode) else code

        meta = self.meta.to_dict() if hasattr(self.meta, "to_dict") else self.meta
        return {
            "payload": self.rpc.to_dict(code_to_json),
            "nonce": self.nonce,
            "meta": meta,
            "signers": [s.to_dict() for s in self.signers],
        }

    def to_bytes(self) -> bytes:
        """Canonical JSON bytes; these are what get hashed and signed."""
        return canonicalize(self.to_dict())


@dataclass(frozen=True)
class Command(Generic[A]):
    """Payload, ordered signatures, and the hash of the payload bytes."""
    payload: A
    sigs: List[UserSig]
    hash: PactHash

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.payload, bytes):
            cmd = self.payload.decode("utf-8")
        elif isinstance(self.payload, Payload):
            cmd = self.payload.to_dict()
        else:
            cmd = self.payload
        return {
            "cmd": cmd,
            "sigs": [s.to_dict() for s in self.sigs],
            "hash": self.hash.to_hex(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Command[bytes]':
        """
        Decode the wire form of an unverified command.

        Raises:
            PayloadDecodeError: if the envelope itself is malformed
        """
        if not isinstance(d, dict):
            raise PayloadDecodeError("Command: expected an object")
        cmd = _text_field(d, "cmd", "Command")
        sigs = d.get("sigs")
        if not isinstance(sigs, list):
            raise PayloadDecodeError("Command: 'sigs' must be a list")
        try:
            hsh = PactHash.from_hex(_text_field(d, "hash", "Command"))
        except ValueError as e:
            raise PayloadDecodeError(f"Command: {e}") from e
        return cls(cmd.encode("utf-8"), [UserSig.from_dict(s) for s in sigs], hsh)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> 'Command[bytes]':
        try:
            obj = decode_json(text, max_depth=config.MAX_JSON_DEPTH)
        except (ValueError, RecursionError) as e:
            raise PayloadDecodeError(f"Command: invalid JSON: {e}") from e
        return cls.from_dict(obj)


class ProcessedCommand(ABC):
    """Outcome of verify_command: exactly one of ProcSucc or ProcFail."""

    @abstractmethod
    def is_success(self) -> bool:
        pass


@dataclass(frozen=True)
class ProcSucc(ProcessedCommand):
    command: Command

    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class ProcFail(ProcessedCommand):
    reason: str

    def is_success(self) -> bool:
        return False


def mk_user_sig(hsh: PactHash, kp: KeyPair) -> UserSig:
    """
    Sign a command hash with one key pair.

    Raises:
        SigningError: if the scheme fails to sign
    """
    sig = sign(kp, hsh.to_untyped().digest)
    return UserSig(
        scheme=kp.scheme,
        pub_key=to_b16_text(kp.get_public()),
        address=to_b16_text(kp.format_public_key()),
        sig=to_b16_text(sig)
    )


def mk_command_raw(key_pairs: List[KeyPair], payload: bytes) -> Command[bytes]:
    """
    Hash already-serialized payload bytes and sign the hash with each
    key pair, in order.

    Raises:
        SigningError: if any signature fails; no partial command is returned
    """
    hsh = pact_hash(payload)
    sigs = [mk_user_sig(hsh, kp) for kp in key_pairs]
    audit_log.command_built(hsh.to_hex(), [kp.scheme.value for kp in key_pairs])
    return Command(payload, sigs, hsh)


def mk_command(
    key_pairs: List[KeyPair],
    meta: Any,
    nonce: str,
    rpc: PactRPC,
    signers: Optional[List[Signer]] = None
) -> Command[bytes]:
    """
    Build a signed command.

    Args:
        key_pairs: Signing key pairs, in signer order
        meta: Platform metadata (JSON value, or object with to_dict())
        nonce: Caller-chosen nonce
        rpc: ExecMsg with code text, or ContMsg
        signers: Declared signers; derived from key_pairs when omitted

    Returns:
        Command whose payload is the canonical JSON bytes
    """
    if signers is None:
        signers = [Signer.from_key_pair(kp) for kp in key_pairs]
    payload = Payload(rpc, nonce, meta, list(signers))
    return mk_command_raw(key_pairs, payload.to_bytes())
