"""
pactcmd Command Verification

verify_command turns an unverified Command[bytes] into a
ProcessedCommand. It is a pure function: every problem found is
folded into one ProcFail diagnostic and nothing is raised.

Verification steps:
1. Decode the payload JSON and parse its exec code
2. Recompute the payload hash and compare with the declared hash
3. Require one attached signature per declared signer
4. For each position, check the attached signature:
   a. its address is the canonical address of its own public key
   b. its scheme and address match the declared signer in that slot
   c. it verifies cryptographically against the command hash

Signatures and signers are matched by position, never by set
membership: order encodes which signer authorized what.
"""

import logging
from dataclasses import replace
from typing import Any, Callable, List, Optional, Tuple

from . import config
from .canonicalization import decode_json
from .command import Command, Payload, ProcessedCommand, ProcFail, ProcSucc, Signer, UserSig
from .errors import (
    CodeParseError,
    HashMismatchError,
    PactCommandError,
    PayloadDecodeError,
    SignatureBindingError,
    SignatureCountError,
    SignatureCryptoError,
)
from .hashing import Hash, pact_hash, verify_hash
from .logging_config import audit_log
from .parse import parse_code
from .rpc import ExecMsg, PactRPC, rpc_from_dict
from .signing import canonical_address, verify
from .util import parse_b16_text

logger = logging.getLogger(__name__)

MetaDecoder = Callable[[Any], Any]


def check_user_sig(hsh: Hash, user_sig: UserSig, signer: Signer) -> List[PactCommandError]:
    """
    Check one attached signature against the signer declared in its slot.

    Returns:
        Every reason the signature is unacceptable; empty if it passes
    """
    errors: List[PactCommandError] = []

    try:
        pub = parse_b16_text(user_sig.pub_key)
    except ValueError:
        return [SignatureCryptoError(f"malformed public key {user_sig.pub_key!r}")]

    try:
        expected_addr = canonical_address(user_sig.scheme, pub)
    except ValueError as e:
        return [SignatureCryptoError(f"unusable {user_sig.scheme.value} public key: {e}")]

    if expected_addr != user_sig.address.lower():
        errors.append(SignatureBindingError(
            f"address {user_sig.address} is not the {user_sig.scheme.value} "
            f"address of public key {user_sig.pub_key}"
        ))

    if user_sig.scheme != signer.scheme:
        errors.append(SignatureBindingError(
            f"scheme {user_sig.scheme.value} does not match declared signer "
            f"scheme {signer.scheme.value}"
        ))
    if user_sig.address.lower() != signer.address.lower():
        errors.append(SignatureBindingError(
            f"address {user_sig.address} does not match declared signer "
            f"address {signer.address}"
        ))

    try:
        sig = parse_b16_text(user_sig.sig)
    except ValueError:
        errors.append(SignatureCryptoError(f"malformed signature {user_sig.sig!r}"))
        return errors

    if not verify(signer.scheme, hsh.digest, pub, sig):
        errors.append(SignatureCryptoError(
            f"{signer.scheme.value} signature does not verify for public key {user_sig.pub_key}"
        ))
    return errors


def verify_user_sig(hsh: Hash, user_sig: UserSig, signer: Signer) -> bool:
    """True if the signature is self-consistent, bound to signer, and valid."""
    return not check_user_sig(hsh, user_sig, signer)


def _check_sigs(hsh: Hash, sigs: List[UserSig], signers: List[Signer]) -> List[PactCommandError]:
    errors: List[PactCommandError] = []
    if len(sigs) != len(signers):
        errors.append(SignatureCountError(len(sigs), len(signers)))

    for i, (user_sig, signer) in enumerate(zip(sigs, signers)):
        for e in check_user_sig(hsh, user_sig, signer):
            errors.append(type(e)(f"Invalid sig at position {i}: {e}"))
    return errors


def _decode_payload(
    raw: bytes,
    meta_decoder: Optional[MetaDecoder]
) -> Tuple[Optional[Payload], Optional[List[Signer]], List[PactCommandError]]:
    """
    Decode payload bytes and parse exec code, collecting every problem.

    Returns:
        (payload with parsed code or None, declared signers if they
        decoded, errors)
    """
    try:
        obj = decode_json(raw, config.MAX_PAYLOAD_BYTES, config.MAX_JSON_DEPTH)
    except (ValueError, RecursionError) as e:
        return None, None, [PayloadDecodeError(f"Invalid payload JSON: {e}")]
    if not isinstance(obj, dict):
        return None, None, [PayloadDecodeError("Invalid payload: expected a JSON object")]

    errors: List[PactCommandError] = []

    rpc: Optional[PactRPC] = None
    try:
        rpc = rpc_from_dict(obj.get("payload"))
    except PayloadDecodeError as e:
        errors.append(e)

    nonce = obj.get("nonce")
    if not isinstance(nonce, str):
        errors.append(PayloadDecodeError("Invalid payload: 'nonce' must be text"))

    meta = obj.get("meta")
    if meta_decoder is not None:
        # Caller-supplied code: any exception it raises is a decode failure
        try:
            meta = meta_decoder(meta)
        except Exception as e:
            errors.append(PayloadDecodeError(f"Invalid payload meta: {type(e).__name__}: {e}"))

    signers: Optional[List[Signer]] = None
    raw_signers = obj.get("signers")
    if not isinstance(raw_signers, list):
        errors.append(PayloadDecodeError("Invalid payload: 'signers' must be a list"))
    else:
        try:
            signers = [Signer.from_dict(s) for s in raw_signers]
        except PayloadDecodeError as e:
            errors.append(e)

    # Code is parsed whenever it decoded, regardless of other field errors
    if isinstance(rpc, ExecMsg):
        try:
            rpc = rpc.map_code(parse_code)
        except CodeParseError as e:
            errors.append(CodeParseError(f"Invalid code: {e}"))

    if errors:
        return None, signers, errors
    return Payload(rpc, nonce, meta, signers), signers, errors


def verify_command(
    command: Command,
    meta_decoder: Optional[MetaDecoder] = None
) -> ProcessedCommand:
    """
    Verify an unverified command.

    Args:
        command: Command whose payload is the raw payload bytes
        meta_decoder: Optional conversion of the JSON meta value; any
            exception it raises is reported as a decode failure

    Returns:
        ProcSucc with the parsed payload, same hash and same signatures,
        or ProcFail with every problem found, in the order: decode and
        parse errors; hash error; signature errors
    """
    payload, signers, decode_errors = _decode_payload(command.payload, meta_decoder)

    hash_errors: List[PactCommandError] = []
    if not verify_hash(command.hash, command.payload):
        hash_errors.append(HashMismatchError(
            command.hash.to_hex(), pact_hash(command.payload).to_hex()
        ))

    sig_errors: List[PactCommandError] = []
    if signers is not None:
        sig_errors = _check_sigs(command.hash, command.sigs, signers)

    errors = decode_errors + hash_errors + sig_errors
    if not errors:
        audit_log.command_verified(command.hash.to_hex(), len(command.sigs))
        return ProcSucc(replace(command, payload=payload))

    reason = "Invalid command: " + "".join(f"{e}; " for e in errors)
    audit_log.command_rejected(command.hash.to_hex(), reason)
    logger.debug("Rejected command %s with %d error(s)", command.hash.to_hex(), len(errors))
    return ProcFail(reason)
