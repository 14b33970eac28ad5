"""
pactcmd Canonical JSON Encoding

Payloads are hashed as bytes, so the builder must produce one stable
byte representation for a given payload value.
"""

import json
from typing import Any, Dict, List, Optional, Union


def canonicalize(obj: Any) -> bytes:
    """
    Convert an object to canonical JSON bytes.

    Rules:
    - Object keys sorted lexicographically (Unicode code point order)
    - No whitespace between tokens (compact form)
    - UTF-8 encoding, no BOM
    - Arrays preserve order

    Raises:
        ValueError: if the object holds a value with no JSON form
    """
    canonical = _canonicalize_value(obj)
    return json.dumps(canonical, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def decode_json(
    data: Union[bytes, str],
    max_bytes: Optional[int] = None,
    max_depth: Optional[int] = None
) -> Any:
    """
    Strictly decode JSON text.

    Args:
        data: JSON text or UTF-8 bytes
        max_bytes: Reject input longer than this many bytes
        max_depth: Reject input whose arrays/objects nest deeper than this

    Raises:
        ValueError: on invalid UTF-8, malformed JSON, or input over a limit
    """
    if max_bytes is not None:
        size = len(data) if isinstance(data, bytes) else len(data.encode('utf-8'))
        if size > max_bytes:
            raise ValueError(f"input is {size} bytes, limit is {max_bytes}")
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    if max_depth is not None:
        check_json_depth(data, max_depth)
    return json.loads(data)


def check_json_depth(text: str, max_depth: int) -> None:
    """
    Scan JSON text for array/object nesting deeper than max_depth.

    Brackets inside string literals are skipped. The text is not
    otherwise validated; json.loads does that afterwards.

    Raises:
        ValueError: if the nesting exceeds max_depth
    """
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == '[' or ch == '{':
            depth += 1
            if depth > max_depth:
                raise ValueError(f"nesting deeper than {max_depth} levels")
        elif ch == ']' or ch == '}':
            depth -= 1


def _canonicalize_value(value: Any) -> Any:
    """Recursively canonicalize a value."""
    if value is None:
        return None
    elif isinstance(value, bool):
        return value
    elif isinstance(value, (int, float)):
        return value
    elif isinstance(value, str):
        return value
    elif isinstance(value, dict):
        return _canonicalize_object(value)
    elif isinstance(value, (list, tuple)):
        return _canonicalize_array(value)
    else:
        raise ValueError(f"Cannot canonicalize type: {type(value)}")


def _canonicalize_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    sorted_keys = sorted(obj.keys())
    return {k: _canonicalize_value(obj[k]) for k in sorted_keys}


def _canonicalize_array(arr: Union[List, tuple]) -> List:
    return [_canonicalize_value(item) for item in arr]
