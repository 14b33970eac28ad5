"""
pactcmd Execution Plumbing

Types shared with the execution layer that consumes verified commands:
request keys, execution modes, results and their wire shapes.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from .command import Command, ProcessedCommand
from .hashing import Hash
from .util import to_b16_text

T = TypeVar("T")


@dataclass(frozen=True)
class RequestKey:
    """
    Lookup and idempotency key of a submitted command.

    Derived one-way from the command hash; two commands with the same
    payload bytes share a request key.
    """
    hash: Hash

    @classmethod
    def from_b16_text(cls, text: str) -> 'RequestKey':
        return cls(Hash.from_hex(text))

    def __str__(self) -> str:
        return self.hash.to_hex()


def cmd_to_request_key(command: Command) -> RequestKey:
    return RequestKey(command.hash.to_untyped())


def request_key_to_b16_text(key: RequestKey) -> str:
    return to_b16_text(key.hash.digest)


@dataclass(frozen=True)
class Transactional:
    """Execution recorded against a transaction id."""
    tx_id: int


@dataclass(frozen=True)
class Local:
    """Execution with no transaction recorded."""


ExecutionMode = Union[Transactional, Local]


@dataclass
class CommandResult:
    req_key: RequestKey
    tx_id: Optional[int]
    result: Any
    gas: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reqKey": request_key_to_b16_text(self.req_key),
            "txId": self.tx_id,
            "result": self.result,
            "gas": self.gas,
        }


@dataclass
class CommandError:
    """Failure wire shape."""
    message: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"status": "failure", "error": self.message}
        if self.detail is not None:
            d["detail"] = self.detail
        return d


@dataclass
class CommandSuccess(Generic[T]):
    """Success wire shape."""
    data: T

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "success", "data": self.data}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CommandSuccess':
        if not isinstance(d, dict) or "data" not in d:
            raise ValueError("CommandSuccess: missing 'data'")
        return cls(d["data"])


ApplyCmd = Callable[[ExecutionMode, Command], CommandResult]
ApplyPPCmd = Callable[[ExecutionMode, Command, ProcessedCommand], CommandResult]


@dataclass
class CommandExecInterface:
    """
    Entry points of an execution layer.

    apply_cmd verifies and runs a raw command; apply_pp_cmd runs a
    command that has already been through verify_command.
    """
    apply_cmd: ApplyCmd
    apply_pp_cmd: ApplyPPCmd
