"""Instruction variants and the decode/encode drivers.

Every encoding format has its own frozen dataclass holding exactly the fields
that format defines, so e.g. a branch condition can only be read from a
``BranchInstr`` and never from an instruction whose bits 19..22 hold Rb.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Type, cast

from .asm import (
    Immediate,
    Indexed,
    Operand,
    Register,
    format_operands,
    normalize_whitespace,
    parse_operands,
)
from .coding import (
    LAYOUTS,
    check_word,
    extract_fields,
    insert_fields,
    opcode_of,
    sign_extend,
    to_unsigned,
    word_from_bytes,
    word_to_bits,
    word_to_bytes,
)
from .constants import IMM_WIDTH, WORD_BITS
from .errors import MissingCondition, OperandError, UnknownMnemonic, UnknownOpcode
from .opcodes import (
    Cond,
    Format,
    OpcodeInfo,
    is_conditional_base,
    lookup_by_code,
    lookup_by_mnemonic,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Instruction:
    info: OpcodeInfo

    formats: ClassVar[Tuple[Format, ...]] = ()

    @property
    def mnemonic(self) -> str:
        return self.info.mnemonic

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "Instruction":
        return cls(info)

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "Instruction":
        return cls(info)

    def fields(self) -> Dict[str, int]:
        return {"op": self.info.code}

    def operands(self) -> Tuple[Operand, ...]:
        return ()

    def encode(self) -> int:
        return insert_fields(self.info.format, self.fields())

    def to_bytes(self) -> bytes:
        return word_to_bytes(self.encode())

    def __str__(self) -> str:
        ops = format_operands(self.operands())
        return f"{self.mnemonic} {ops}" if ops else self.mnemonic


@dataclass(frozen=True)
class RegInstr(Instruction):
    """``op Ra, Rb, Rc``"""

    ra: int
    rb: int
    rc: int

    formats: ClassVar[Tuple[Format, ...]] = (Format.R1,)

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "RegInstr":
        return cls(info, fields["ra"], fields["rb"], fields["rc"])

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "RegInstr":
        ra, rb, rc = cast(Sequence[Register], operands)
        return cls(info, ra.index, rb.index, rc.index)

    def fields(self) -> Dict[str, int]:
        return {"op": self.info.code, "ra": self.ra, "rb": self.rb, "rc": self.rc}

    def operands(self) -> Tuple[Operand, ...]:
        return (Register(self.ra), Register(self.rb), Register(self.rc))


@dataclass(frozen=True)
class IndexedInstr(Instruction):
    """Loads and stores: ``op Ra, C(Rb)`` (I1) and ``op C(Rb), Ra`` (I2).

    ``rb == 0`` renders the bare ``C`` form.
    """

    ra: int
    rb: int
    c: int

    formats: ClassVar[Tuple[Format, ...]] = (Format.I1, Format.I2)

    @property
    def stores(self) -> bool:
        return self.info.format is Format.I2

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "IndexedInstr":
        return cls(
            info, fields["ra"], fields["rb"], sign_extend(fields["c"], IMM_WIDTH)
        )

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "IndexedInstr":
        if info.format is Format.I2:
            addr, ra = cast(Tuple[Indexed, Register], tuple(operands))
        else:
            ra, addr = cast(Tuple[Register, Indexed], tuple(operands))
        return cls(info, ra.index, addr.base, addr.offset)

    def fields(self) -> Dict[str, int]:
        return {
            "op": self.info.code,
            "ra": self.ra,
            "rb": self.rb,
            "c": to_unsigned(self.c, IMM_WIDTH),
        }

    def operands(self) -> Tuple[Operand, ...]:
        addr = Indexed(self.c, self.rb)
        if self.stores:
            return (addr, Register(self.ra))
        return (Register(self.ra), addr)


@dataclass(frozen=True)
class ImmInstr(Instruction):
    """``op Ra, Rb, C``"""

    ra: int
    rb: int
    c: int

    formats: ClassVar[Tuple[Format, ...]] = (Format.I3,)

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "ImmInstr":
        return cls(
            info, fields["ra"], fields["rb"], sign_extend(fields["c"], IMM_WIDTH)
        )

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "ImmInstr":
        ra, rb, c = cast(Tuple[Register, Register, Immediate], tuple(operands))
        return cls(info, ra.index, rb.index, c.value)

    def fields(self) -> Dict[str, int]:
        return {
            "op": self.info.code,
            "ra": self.ra,
            "rb": self.rb,
            "c": to_unsigned(self.c, IMM_WIDTH),
        }

    def operands(self) -> Tuple[Operand, ...]:
        return (Register(self.ra), Register(self.rb), Immediate(self.c))


@dataclass(frozen=True)
class PairInstr(Instruction):
    """``op Ra, Rb``"""

    ra: int
    rb: int

    formats: ClassVar[Tuple[Format, ...]] = (Format.I4,)

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "PairInstr":
        return cls(info, fields["ra"], fields["rb"])

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "PairInstr":
        ra, rb = cast(Sequence[Register], operands)
        return cls(info, ra.index, rb.index)

    def fields(self) -> Dict[str, int]:
        return {"op": self.info.code, "ra": self.ra, "rb": self.rb}

    def operands(self) -> Tuple[Operand, ...]:
        return (Register(self.ra), Register(self.rb))


@dataclass(frozen=True)
class BranchInstr(Instruction):
    """``op<cond> Ra, C``; the condition lives where other formats keep Rb."""

    ra: int
    cond: Cond
    c: int

    formats: ClassVar[Tuple[Format, ...]] = (Format.B1,)

    @property
    def mnemonic(self) -> str:
        return self.info.mnemonic + self.cond.suffix

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "BranchInstr":
        return cls(
            info, fields["ra"], Cond(fields["c2"]), sign_extend(fields["c"], IMM_WIDTH)
        )

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "BranchInstr":
        assert cond is not None, "branch matched without a condition"
        ra, c = cast(Tuple[Register, Immediate], tuple(operands))
        return cls(info, ra.index, cond, c.value)

    def fields(self) -> Dict[str, int]:
        return {
            "op": self.info.code,
            "ra": self.ra,
            "c2": int(self.cond),
            "c": to_unsigned(self.c, IMM_WIDTH),
        }

    def operands(self) -> Tuple[Operand, ...]:
        return (Register(self.ra), Immediate(self.c))


@dataclass(frozen=True)
class JumpInstr(Instruction):
    """``op Ra``"""

    ra: int

    formats: ClassVar[Tuple[Format, ...]] = (Format.J1,)

    @classmethod
    def from_fields(
        cls, info: OpcodeInfo, fields: Mapping[str, int]
    ) -> "JumpInstr":
        return cls(info, fields["ra"])

    @classmethod
    def from_operands(
        cls, info: OpcodeInfo, cond: Optional[Cond], operands: Sequence[Operand]
    ) -> "JumpInstr":
        (ra,) = cast(Sequence[Register], operands)
        return cls(info, ra.index)

    def fields(self) -> Dict[str, int]:
        return {"op": self.info.code, "ra": self.ra}

    def operands(self) -> Tuple[Operand, ...]:
        return (Register(self.ra),)


@dataclass(frozen=True)
class BareInstr(Instruction):
    """``op``"""

    formats: ClassVar[Tuple[Format, ...]] = (Format.M1,)


VARIANTS: Dict[Format, Type[Instruction]] = {
    fmt: cls
    for cls in (
        RegInstr,
        IndexedInstr,
        ImmInstr,
        PairInstr,
        BranchInstr,
        JumpInstr,
        BareInstr,
    )
    for fmt in cls.formats
}


def variant_for(info: OpcodeInfo) -> Type[Instruction]:
    cls = VARIANTS.get(info.format)
    if cls is None:
        # A table entry without a handler is a bug in this package, not bad input.
        raise AssertionError(
            f"no handler for format {info.format.value} of {info.mnemonic!r}"
        )
    return cls


def decode(word: int) -> Instruction:
    """Decode a 32-bit word into its instruction variant."""
    word = check_word(word)
    code = opcode_of(word)
    info = lookup_by_code(code)
    if info is None:
        raise UnknownOpcode(code)
    # The format must be known before bits 19..22 mean anything.
    instr = variant_for(info).from_fields(info, extract_fields(word, info.format))
    logger.debug("decoded %08X as %s", word, instr)
    return instr


def disassemble(word: int) -> str:
    return str(decode(word))


def disassemble_bytes(data: bytes) -> str:
    """Disassemble one 4-byte big-endian word."""
    return disassemble(word_from_bytes(data))


def parse(text: str) -> Instruction:
    """Parse one line of assembly into its instruction variant."""
    normalized = normalize_whitespace(text)
    mnemonic, _, operand_text = normalized.partition(" ")
    match = lookup_by_mnemonic(mnemonic)
    if match is None:
        if is_conditional_base(mnemonic):
            raise MissingCondition(mnemonic)
        raise UnknownMnemonic(mnemonic or text)
    info, cond = match
    try:
        operands = parse_operands(info.format, operand_text)
    except OperandError as e:
        e.mnemonic = info.mnemonic
        raise
    return variant_for(info).from_operands(info, cond, operands)


def assemble(text: str) -> int:
    word = parse(text).encode()
    logger.debug("assembled %r as %08X", text, word)
    return word


def assemble_bytes(text: str) -> bytes:
    return word_to_bytes(assemble(text))


def _describe_field(name: str, value: int) -> str:
    if name == "c2":
        return Cond(value).suffix
    if name == "c":
        return str(sign_extend(value, IMM_WIDTH))
    return str(Register(value))


def explain(word: int) -> str:
    """Explain the binary encoding of ``word`` in a human-readable manner.

    The first line shows each field in binary from the most significant bit
    down, with bits the format ignores shown as ``Unk:???``. The second line
    shows the format tag and the decoded value of every field.
    """
    instr = decode(word)
    fmt = instr.info.format
    layout = sorted(LAYOUTS[fmt], key=lambda field: field.shift, reverse=True)

    segments: List[str] = []
    bit = WORD_BITS
    for field in layout:
        top = field.shift + field.width
        if top < bit:
            segments.append("Unk:" + "?" * (bit - top))
        bits = word_to_bits(field.extract(word), field.width)
        segments.append(f"{field.label}:{bits}")
        bit = field.shift
    if bit > 0:
        segments.append("Unk:" + "?" * bit)

    values = [fmt.value, f"Op={instr.info.mnemonic}"]
    for field in layout[1:]:
        value = _describe_field(field.name, field.extract(word))
        values.append(f"{field.label}={value}")
    return "|".join(segments) + "\n" + " ".join(values)


__all__ = [
    "Instruction",
    "RegInstr",
    "IndexedInstr",
    "ImmInstr",
    "PairInstr",
    "BranchInstr",
    "JumpInstr",
    "BareInstr",
    "VARIANTS",
    "variant_for",
    "decode",
    "disassemble",
    "disassemble_bytes",
    "parse",
    "assemble",
    "assemble_bytes",
    "explain",
]
