"""
Utility functions for pactcmd.

Provides base-16 encoding of key, signature, address and hash material,
and decoding it back.
"""

import binascii


def to_b16_text(b: bytes) -> str:
    """Hex encode bytes to a lowercase string."""
    return binascii.hexlify(b).decode('ascii')


def parse_b16_text(s: str) -> bytes:
    """
    Decode a hex string to bytes.

    Raises:
        ValueError: if the text is not valid base-16
    """
    if not isinstance(s, str):
        raise ValueError(f"Expected hex text, got {type(s).__name__}")
    try:
        return binascii.unhexlify(s.encode('ascii'))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base16 text: {s!r}") from e


