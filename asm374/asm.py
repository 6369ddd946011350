"""Operand grammar, parser and formatter.

Operand text is split on commas and each piece is parsed with the lark
grammar in ``asm.lark``, using the start rule that matches the operand kind
the opcode's format expects at that position. The transformer only turns
tokens into numbers; range checks happen afterwards so that every failure
surfaces as a specific ``OperandError`` rather than a wrapped visitor error.
"""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, Union

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

from .coding import sign_extend
from .constants import IMM_MAX, IMM_MIN, IMM_WIDTH, NO_BASE_REGISTER, REGISTER_COUNT
from .errors import (
    ImmediateOutOfRange,
    ImmediateParseFailure,
    InvalidBaseRegister,
    InvalidRegisterToken,
    OperandArityMismatch,
)
from .opcodes import Format

grammar_path = os.path.join(os.path.dirname(__file__), "asm.lark")
with open(grammar_path, "r") as f:
    asm_grammar = f.read()

asm_parser = Lark(
    asm_grammar,
    parser="earley",
    start=["register", "immediate", "indexed"],
    maybe_placeholders=False,
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Register:
    index: int

    def __str__(self) -> str:
        return f"r{self.index}"


@dataclass(frozen=True)
class Immediate:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Indexed:
    """``C`` or ``C(Rb)``; a base of 0 means no base register."""

    offset: int
    base: int = NO_BASE_REGISTER

    def __str__(self) -> str:
        if self.base == NO_BASE_REGISTER:
            return str(self.offset)
        return f"{self.offset}(r{self.base})"


Operand = Union[Register, Immediate, Indexed]


class OperandKind(enum.Enum):
    REGISTER = "register"
    IMMEDIATE = "immediate"
    INDEXED = "indexed"


R = OperandKind.REGISTER
C = OperandKind.IMMEDIATE
RBC = OperandKind.INDEXED

# Expected operands in text order for every format.
OPERAND_SHAPES: Dict[Format, Tuple[OperandKind, ...]] = {
    Format.R1: (R, R, R),
    Format.I1: (R, RBC),
    Format.I2: (RBC, R),
    Format.I3: (R, R, C),
    Format.I4: (R, R),
    Format.B1: (R, C),
    Format.J1: (R,),
    Format.M1: (),
}


def _parse_int(text: str) -> int:
    """Convert an ``IMM`` token to an int (sign, then ``$``/0x/0o/0b/decimal)."""
    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    lowered = text.lower()
    if lowered.startswith("$"):
        return sign * int(lowered[1:], 16)
    if lowered.startswith(("0x", "0o", "0b")):
        return sign * int(lowered[2:], {"x": 16, "o": 8, "b": 2}[lowered[1]])
    return sign * int(lowered, 10)


class OperandTransformer(Transformer):
    def register(self, items: List[Token]) -> Tuple[str, int]:
        token = str(items[0])
        return token, int(token[1:], 10)

    def immediate(self, items: List[Token]) -> Tuple[str, int]:
        token = str(items[0])
        return token, _parse_int(token)

    def indexed(self, items: List[Token]) -> Tuple[Tuple[str, int], ...]:
        offset = self.immediate(items[:1])
        if len(items) == 1:
            return (offset,)
        return (offset, self.register(items[1:]))


_transformer = OperandTransformer()


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def split_operands(text: str) -> List[str]:
    text = normalize_whitespace(text)
    if not text:
        return []
    return [part.strip() for part in text.split(",")]


def _check_register(token: str, index: int) -> int:
    # Register names are matched exactly: r1 is valid, r01 is not.
    if index >= REGISTER_COUNT or token[1:] != str(index):
        raise InvalidRegisterToken(token)
    return index


def _is_bit_pattern(token: str) -> bool:
    """Unsigned ``$``/0x/0o/0b literals spell the raw 18-bit field."""
    return token.lower().startswith(("$", "0x", "0o", "0b"))


def _check_immediate(token: str, value: int) -> int:
    if _is_bit_pattern(token):
        if not 0 <= value < 1 << IMM_WIDTH:
            raise ImmediateOutOfRange(token, value)
        return sign_extend(value, IMM_WIDTH)
    if not IMM_MIN <= value <= IMM_MAX:
        raise ImmediateOutOfRange(token, value)
    return value


def parse_register(text: str) -> Register:
    try:
        tree = asm_parser.parse(text, start="register")
    except UnexpectedInput as e:
        raise InvalidRegisterToken(text) from e
    token, index = _transformer.transform(tree)
    return Register(_check_register(token, index))


def parse_immediate(text: str) -> Immediate:
    try:
        tree = asm_parser.parse(text, start="immediate")
    except UnexpectedInput as e:
        raise ImmediateParseFailure(text) from e
    token, value = _transformer.transform(tree)
    return Immediate(_check_immediate(token, value))


def parse_indexed(text: str) -> Indexed:
    try:
        tree = asm_parser.parse(text, start="indexed")
    except UnexpectedInput as e:
        raise ImmediateParseFailure(text) from e
    parts = _transformer.transform(tree)
    offset = _check_immediate(*parts[0])
    if len(parts) == 1:
        return Indexed(offset)
    base = _check_register(*parts[1])
    if base == NO_BASE_REGISTER:
        # r0 is the encoding of "no base"; writing it explicitly is ambiguous.
        raise InvalidBaseRegister(text)
    return Indexed(offset, base)


_PARSERS = {
    OperandKind.REGISTER: parse_register,
    OperandKind.IMMEDIATE: parse_immediate,
    OperandKind.INDEXED: parse_indexed,
}


def parse_operand(kind: OperandKind, text: str) -> Operand:
    return _PARSERS[kind](text)


def parse_operands(fmt: Format, text: str) -> Tuple[Operand, ...]:
    """Parse the comma-separated operand list for an opcode of format ``fmt``."""
    shape = OPERAND_SHAPES[fmt]
    parts = split_operands(text)
    if len(parts) != len(shape):
        raise OperandArityMismatch(len(shape), len(parts))
    return tuple(parse_operand(kind, part) for kind, part in zip(shape, parts))


def format_operands(operands: Sequence[Operand]) -> str:
    return ", ".join(str(op) for op in operands)


__all__ = [
    "asm_parser",
    "Register",
    "Immediate",
    "Indexed",
    "Operand",
    "OperandKind",
    "OPERAND_SHAPES",
    "OperandTransformer",
    "normalize_whitespace",
    "split_operands",
    "parse_register",
    "parse_immediate",
    "parse_indexed",
    "parse_operand",
    "parse_operands",
    "format_operands",
]
