"""Opcode table for the ASM374 instruction set.

The table is the single source of truth for mnemonics and encoding formats;
the decoder indexes it directly by opcode and the encoder goes through the
mnemonic map built from it below.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from .constants import OPCODE_COUNT


class Format(enum.Enum):
    """Encoding format of an opcode: bit layout plus operand text shape."""

    R1 = "R1"  # op Ra, Rb, Rc
    I1 = "I1"  # op Ra, C | op Ra, C(Rb)
    I2 = "I2"  # op C, Ra | op C(Rb), Ra
    I3 = "I3"  # op Ra, Rb, C
    I4 = "I4"  # op Ra, Rb
    B1 = "B1"  # op<cond> Ra, C
    J1 = "J1"  # op Ra
    M1 = "M1"  # op


class Cond(enum.IntEnum):
    ZR = 0
    NZ = 1
    PL = 2
    MI = 3

    @property
    def suffix(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class OpcodeInfo:
    code: int
    mnemonic: str
    format: Format

    @property
    def conditional(self) -> bool:
        """True when the mnemonic needs a condition suffix (branches)."""
        return self.format is Format.B1


# Ordered by opcode value; slots past the end of the list are unused.
OPCODE_LIST: Tuple[Tuple[str, Format], ...] = (
    ("ld", Format.I1),
    ("ldi", Format.I1),
    ("st", Format.I2),
    ("add", Format.R1),
    ("sub", Format.R1),
    ("and", Format.R1),
    ("or", Format.R1),
    ("shr", Format.R1),
    ("shra", Format.R1),
    ("shl", Format.R1),
    ("ror", Format.R1),
    ("rol", Format.R1),
    ("addi", Format.I3),
    ("andi", Format.I3),
    ("ori", Format.I3),
    ("mul", Format.I4),
    ("div", Format.I4),
    ("neg", Format.I4),
    ("not", Format.I4),
    ("br", Format.B1),
    ("jr", Format.J1),
    ("jal", Format.J1),
    ("in", Format.J1),
    ("out", Format.J1),
    ("mfhi", Format.J1),
    ("mflo", Format.J1),
    ("nop", Format.M1),
    ("halt", Format.M1),
)


def _build_table() -> Tuple[Optional[OpcodeInfo], ...]:
    slots: List[Optional[OpcodeInfo]] = [None] * OPCODE_COUNT
    for code, (mnemonic, fmt) in enumerate(OPCODE_LIST):
        slots[code] = OpcodeInfo(code, mnemonic, fmt)
    return tuple(slots)


OPCODE_TABLE: Tuple[Optional[OpcodeInfo], ...] = _build_table()


def _build_mnemonics() -> Dict[str, Tuple[OpcodeInfo, Optional[Cond]]]:
    """Creates the text -> (opcode, condition) map used by the encoder.

    Branches are only reachable through their suffixed spellings (``brzr``,
    ``brnz``, ...); the bare base name is absent.
    """
    mnemonics: Dict[str, Tuple[OpcodeInfo, Optional[Cond]]] = {}
    for info in OPCODE_TABLE:
        if info is None:
            continue
        if info.conditional:
            for cond in Cond:
                mnemonics[info.mnemonic + cond.suffix] = (info, cond)
        else:
            mnemonics[info.mnemonic] = (info, None)
    return mnemonics


MNEMONICS: Dict[str, Tuple[OpcodeInfo, Optional[Cond]]] = _build_mnemonics()

CONDITIONAL_BASES = frozenset(
    info.mnemonic for info in OPCODE_TABLE if info is not None and info.conditional
)


def lookup_by_code(code: int) -> Optional[OpcodeInfo]:
    """Return the table entry for ``code``, or None for an unused slot."""
    if not 0 <= code < OPCODE_COUNT:
        raise ValueError(f"opcode out of range: {code}")
    return OPCODE_TABLE[code]


def lookup_by_mnemonic(
    text: str, cond: Union[Cond, str, None] = None
) -> Optional[Tuple[OpcodeInfo, Optional[Cond]]]:
    """Match a mnemonic, case-insensitively.

    ``cond`` may be given separately, in which case ``text`` is the branch
    base name and the suffix is appended before matching.
    """
    key = text.strip().lower()
    if cond is not None:
        key += cond.suffix if isinstance(cond, Cond) else cond.lower()
    return MNEMONICS.get(key)


def is_conditional_base(text: str) -> bool:
    return text.strip().lower() in CONDITIONAL_BASES


def valid_opcodes() -> Tuple[int, ...]:
    return tuple(info.code for info in OPCODE_TABLE if info is not None)


__all__ = [
    "Format",
    "Cond",
    "OpcodeInfo",
    "OPCODE_LIST",
    "OPCODE_TABLE",
    "MNEMONICS",
    "lookup_by_code",
    "lookup_by_mnemonic",
    "is_conditional_base",
    "valid_opcodes",
]
