"""
pactcmd Error Taxonomy

Build-time errors (key import, signing) are raised to the caller.
Verification-time errors are created as values and folded into a
single ProcFail diagnostic; verify_command never raises them.
"""


class PactCommandError(Exception):
    """Base class for all pactcmd errors."""


class KeyPairImportError(PactCommandError):
    """Supplied public key or address disagrees with the private key."""


class SigningError(PactCommandError):
    """Scheme-level signing failure, e.g. malformed key material."""


class PayloadDecodeError(PactCommandError):
    """Payload bytes are not a well-formed command payload."""


class CodeParseError(PactCommandError):
    """Code text inside an exec payload could not be parsed."""


class HashMismatchError(PactCommandError):
    """Declared command hash does not match the payload bytes."""

    def __init__(self, declared: str, computed: str):
        self.declared = declared
        self.computed = computed
        super().__init__(
            f"Hash mismatch: declared {declared}, computed {computed}"
        )


class SignatureCountError(PactCommandError):
    """Number of attached signatures differs from declared signers."""

    def __init__(self, sigs: int, signers: int):
        self.sigs = sigs
        self.signers = signers
        super().__init__(
            f"Signature count mismatch: {sigs} signature(s) for {signers} signer(s)"
        )


class SignatureBindingError(PactCommandError):
    """Attached signature is not bound to the declared signer in its slot."""


class SignatureCryptoError(PactCommandError):
    """Signature failed cryptographic verification."""
