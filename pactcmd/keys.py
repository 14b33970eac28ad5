"""
Key pair import for pactcmd.

ApiKeyPair is the hex-encoded form in which callers supply key
material; mk_key_pairs turns a list of them into signing key pairs.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import KeyPairImportError
from .signing import KeyPair, PPKScheme, import_key_pair
from .util import parse_b16_text


@dataclass
class ApiKeyPair:
    """Hex-encoded key material; scheme defaults to PPKScheme.default()."""
    secret: str
    public: Optional[str] = None
    address: Optional[str] = None
    scheme: Optional[PPKScheme] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ApiKeyPair':
        scheme = d.get("scheme")
        return cls(
            secret=d["secret"],
            public=d.get("public"),
            address=d.get("address"),
            scheme=PPKScheme(scheme) if scheme is not None else None
        )


def _decode(label: str, text: Optional[str]) -> Optional[bytes]:
    if text is None:
        return None
    try:
        return parse_b16_text(text)
    except ValueError as e:
        raise KeyPairImportError(f"Invalid {label}: {e}") from e


def mk_key_pair(api_kp: ApiKeyPair) -> KeyPair:
    """Import one ApiKeyPair, raising KeyPairImportError on any mismatch."""
    scheme = api_kp.scheme or PPKScheme.default()
    return import_key_pair(
        scheme,
        _decode("secret", api_kp.secret),
        public_key=_decode("public key", api_kp.public),
        address=_decode("address", api_kp.address)
    )


def mk_key_pairs(api_kps: List[ApiKeyPair]) -> List[KeyPair]:
    """Import key pairs in order; the first bad entry aborts the whole call."""
    return [mk_key_pair(kp) for kp in api_kps]
