"""
pactcmd: Signed Command Envelopes

Builds, hashes, signs and verifies the command objects that carry
smart-contract code from a client to a validating node.

A command declares its signers inside the hashed payload and attaches
one signature per signer, in the same order. Verification checks the
payload hash, decodes and parses the payload, and binds every attached
signature to the signer declared in its slot. The outcome is always a
ProcessedCommand value: ProcSucc or ProcFail, never an exception.

Usage:
    from pactcmd import (
        ApiKeyPair,
        ExecMsg,
        mk_command,
        mk_key_pairs,
        verify_command,
    )

    kps = mk_key_pairs([ApiKeyPair(secret="8693e641...")])
    cmd = mk_command(kps, meta=None, nonce="1", rpc=ExecMsg("(+ 1 2)"))

    result = verify_command(cmd)
    if result.is_success():
        parsed = result.command.payload.rpc.code
    else:
        print(result.reason)
"""

__version__ = "1.0.0"

from .canonicalization import canonicalize

from .command import (
    Command,
    Payload,
    ProcessedCommand,
    ProcFail,
    ProcSucc,
    Signer,
    UserSig,
    mk_command,
    mk_command_raw,
    mk_user_sig,
)

from .errors import (
    CodeParseError,
    HashMismatchError,
    KeyPairImportError,
    PactCommandError,
    PayloadDecodeError,
    SignatureBindingError,
    SignatureCountError,
    SignatureCryptoError,
    SigningError,
)

from .hashing import Hash, PactHash, hash_tx, pact_hash, verify_hash

from .keys import ApiKeyPair, mk_key_pair, mk_key_pairs

from .parse import ParsedCode, parse_code, parse_exprs

from .result import (
    CommandError,
    CommandExecInterface,
    CommandResult,
    CommandSuccess,
    ExecutionMode,
    Local,
    RequestKey,
    Transactional,
    cmd_to_request_key,
    request_key_to_b16_text,
)

from .rpc import ContMsg, ExecMsg, PactRPC

from .signing import (
    KeyPair,
    PPKScheme,
    canonical_address,
    format_public_key_bs,
    import_key_pair,
    sign,
    verify,
)

from .verifier import check_user_sig, verify_command, verify_user_sig


__all__ = [
    "__version__",

    # Canonicalization and hashing
    "canonicalize",
    "Hash",
    "PactHash",
    "hash_tx",
    "pact_hash",
    "verify_hash",

    # Schemes and keys
    "PPKScheme",
    "KeyPair",
    "import_key_pair",
    "format_public_key_bs",
    "canonical_address",
    "sign",
    "verify",
    "ApiKeyPair",
    "mk_key_pair",
    "mk_key_pairs",

    # Code
    "ParsedCode",
    "parse_code",
    "parse_exprs",
    "ExecMsg",
    "ContMsg",
    "PactRPC",

    # Command
    "Command",
    "Payload",
    "Signer",
    "UserSig",
    "ProcessedCommand",
    "ProcSucc",
    "ProcFail",
    "mk_command",
    "mk_command_raw",
    "mk_user_sig",

    # Verification
    "verify_command",
    "verify_user_sig",
    "check_user_sig",

    # Execution plumbing
    "RequestKey",
    "cmd_to_request_key",
    "request_key_to_b16_text",
    "ExecutionMode",
    "Transactional",
    "Local",
    "CommandResult",
    "CommandError",
    "CommandSuccess",
    "CommandExecInterface",

    # Errors
    "PactCommandError",
    "KeyPairImportError",
    "SigningError",
    "PayloadDecodeError",
    "CodeParseError",
    "HashMismatchError",
    "SignatureCountError",
    "SignatureBindingError",
    "SignatureCryptoError",
]
