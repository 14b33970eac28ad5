"""
pactcmd Code Parser

Parses the Lisp-style code text carried by an exec payload into a
sequence of expression nodes. Parsing is purely syntactic: no name
resolution or evaluation happens here.

Grammar:
    exprs     := expr*
    expr      := literal | atom | separator | list
    list      := "(" expr* ")" | "[" expr* "]" | "{" expr* "}"
    literal   := string | symbol | integer | decimal | "true" | "false"
    symbol    := "'" atom-chars
    separator := ":" | ","

Comments run from ";" to end of line.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Tuple, Union

from . import config
from .errors import CodeParseError

LiteralValue = Union[str, int, Decimal, bool]

_CLOSERS = {"(": ")", "[": "]", "{": "}"}

_TOKEN_SPEC = [
    ("WS", r"[ \t\r\n]+"),
    ("COMMENT", r";[^\n]*"),
    ("OPEN", r"[(\[{]"),
    ("CLOSE", r"[)\]}]"),
    ("STRING", r'"(?:[^"\\]|\\.)*"'),
    ("UNTERMINATED", r'"'),
    ("SYMBOL", r"'[A-Za-z%#+\-_&$@<>=^?*!|/~][A-Za-z0-9%#+\-_&$@<>=^?*!|/~.]*"),
    ("DECIMAL", r"-?\d+\.\d+(?![A-Za-z0-9%#+\-_&$@<>=^?*!|/~.])"),
    ("INTEGER", r"-?\d+(?![A-Za-z0-9%#+\-_&$@<>=^?*!|/~.])"),
    ("ATOM", r"[A-Za-z0-9%#+\-_&$@<>=^?*!|/~.]+"),
    ("SEPARATOR", r"[:,]"),
    ("MISMATCH", r"."),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))

_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r"}


@dataclass(frozen=True)
class Info:
    """Source position of an expression (1-based)."""
    line: int
    column: int


@dataclass
class Exp:
    info: Info = field(compare=False, repr=False)


@dataclass
class LiteralExp(Exp):
    value: LiteralValue = None


@dataclass
class AtomExp(Exp):
    name: str = ""


@dataclass
class SeparatorExp(Exp):
    sep: str = ""


@dataclass
class ListExp(Exp):
    items: List[Exp] = field(default_factory=list)
    delimiter: str = "("


@dataclass
class ParsedCode:
    """Parsed expressions paired with the original code text."""
    code: str
    exps: List[Exp]


def _unescape(body: str, info: Info) -> str:
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            nxt = body[i + 1]
            if nxt not in _ESCAPES:
                raise CodeParseError(
                    f"{info.line}:{info.column}: invalid escape sequence \\{nxt}"
                )
            out.append(_ESCAPES[nxt])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _tokenize(code: str) -> List[Tuple[str, str, Info]]:
    tokens = []
    line, line_start = 1, 0
    for m in _TOKEN_RE.finditer(code):
        kind = m.lastgroup
        text = m.group()
        info = Info(line, m.start() - line_start + 1)

        if kind == "MISMATCH":
            raise CodeParseError(f"{info.line}:{info.column}: unexpected character {text!r}")
        if kind == "UNTERMINATED":
            raise CodeParseError(f"{info.line}:{info.column}: unterminated string literal")
        if kind not in ("WS", "COMMENT"):
            tokens.append((kind, text, info))

        newlines = text.count("\n")
        if newlines:
            line += newlines
            line_start = m.start() + text.rindex("\n") + 1
    return tokens


def _atom_or_literal(text: str, info: Info) -> Exp:
    if text == "true":
        return LiteralExp(info, True)
    if text == "false":
        return LiteralExp(info, False)
    return AtomExp(info, text)


def parse_exprs(code: str) -> List[Exp]:
    """
    Parse code text into top-level expressions.

    Raises:
        CodeParseError: on unbalanced delimiters, bad tokens, or code
            larger than the configured limit
    """
    size = len(code.encode("utf-8"))
    if size > config.MAX_CODE_BYTES:
        raise CodeParseError(
            f"code is {size} bytes, limit is {config.MAX_CODE_BYTES}"
        )

    # Stack of (delimiter, open position, collected items); bottom is top level
    stack: List[Tuple[str, Info, List[Exp]]] = [("", Info(1, 1), [])]

    for kind, text, info in _tokenize(code):
        if kind == "OPEN":
            stack.append((text, info, []))
        elif kind == "CLOSE":
            opener, open_info, items = stack[-1]
            if not opener:
                raise CodeParseError(f"{info.line}:{info.column}: unexpected {text!r}")
            if _CLOSERS[opener] != text:
                raise CodeParseError(
                    f"{info.line}:{info.column}: expected {_CLOSERS[opener]!r} "
                    f"to close {opener!r} at {open_info.line}:{open_info.column}, got {text!r}"
                )
            stack.pop()
            stack[-1][2].append(ListExp(open_info, items, opener))
        elif kind == "STRING":
            stack[-1][2].append(LiteralExp(info, _unescape(text[1:-1], info)))
        elif kind == "SYMBOL":
            stack[-1][2].append(LiteralExp(info, text[1:]))
        elif kind == "INTEGER":
            stack[-1][2].append(LiteralExp(info, int(text)))
        elif kind == "DECIMAL":
            stack[-1][2].append(LiteralExp(info, Decimal(text)))
        elif kind == "SEPARATOR":
            stack[-1][2].append(SeparatorExp(info, text))
        else:
            stack[-1][2].append(_atom_or_literal(text, info))

    if len(stack) > 1:
        opener, open_info, _ = stack[-1]
        raise CodeParseError(
            f"{open_info.line}:{open_info.column}: unclosed {opener!r}"
        )
    return stack[0][2]


def parse_code(code: str) -> ParsedCode:
    """Parse code text, keeping the source alongside the expressions."""
    return ParsedCode(code, parse_exprs(code))
