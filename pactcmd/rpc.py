"""
pactcmd RPC Variants

A command either executes new code (exec) or continues a suspended
multi-step execution (cont). Only exec carries code.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, TypeVar, Union

from .errors import PayloadDecodeError

C = TypeVar("C")
D = TypeVar("D")


@dataclass(frozen=True)
class ExecMsg(Generic[C]):
    """Execute code with accompanying JSON data."""
    code: C
    data: Any = None

    def map_code(self, fn: Callable[[C], D]) -> 'ExecMsg[D]':
        return ExecMsg(fn(self.code), self.data)

    def to_dict(self, code_to_json: Callable[[C], Any] = lambda c: c) -> Dict[str, Any]:
        return {"exec": {"code": code_to_json(self.code), "data": self.data}}


@dataclass(frozen=True)
class ContMsg:
    """Continue the pact started in tx_id at the given step."""
    tx_id: int
    step: int
    rollback: bool
    data: Any = None

    def map_code(self, fn: Callable[[Any], Any]) -> 'ContMsg':
        return self

    def to_dict(self, code_to_json: Callable[[Any], Any] = None) -> Dict[str, Any]:
        return {
            "cont": {
                "txid": self.tx_id,
                "step": self.step,
                "rollback": self.rollback,
                "data": self.data,
            }
        }


PactRPC = Union[ExecMsg, ContMsg]


def _require(obj: Dict[str, Any], key: str, types, label: str) -> Any:
    if key not in obj:
        raise PayloadDecodeError(f"{label}: missing key {key!r}")
    value = obj[key]
    # bool is an int subclass; reject it where a number is required
    if not isinstance(value, types) or (types is int and isinstance(value, bool)):
        raise PayloadDecodeError(
            f"{label}: {key!r} has type {type(value).__name__}"
        )
    return value


def rpc_from_dict(obj: Any) -> PactRPC:
    """
    Decode the JSON form of an RPC.

    The code of an exec message is returned as text.

    Raises:
        PayloadDecodeError: if the object is not a recognizable RPC
    """
    if not isinstance(obj, dict) or len(obj) != 1:
        raise PayloadDecodeError("payload: expected an object with a single 'exec' or 'cont' key")

    if "exec" in obj:
        msg = obj["exec"]
        if not isinstance(msg, dict):
            raise PayloadDecodeError("exec: expected an object")
        code = _require(msg, "code", str, "exec")
        return ExecMsg(code, msg.get("data"))

    if "cont" in obj:
        msg = obj["cont"]
        if not isinstance(msg, dict):
            raise PayloadDecodeError("cont: expected an object")
        return ContMsg(
            tx_id=_require(msg, "txid", int, "cont"),
            step=_require(msg, "step", int, "cont"),
            rollback=_require(msg, "rollback", bool, "cont"),
            data=msg.get("data")
        )

    raise PayloadDecodeError(f"payload: unknown RPC {next(iter(obj))!r}")
