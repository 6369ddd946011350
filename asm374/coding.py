"""Bit-field and wire helpers for 32-bit instruction words.

Field layouts are described declaratively per encoding format; a single
extraction/insertion routine walks the descriptors instead of each format
spelling out its own shifts and masks.
"""

import struct
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from .constants import (
    COND_SHIFT,
    COND_WIDTH,
    IMM_SHIFT,
    IMM_WIDTH,
    OPCODE_SHIFT,
    OPCODE_WIDTH,
    RA_SHIFT,
    RB_SHIFT,
    RC_SHIFT,
    REGISTER_WIDTH,
    WORD_BITS,
    WORD_BYTES,
    WORD_MASK,
)
from .errors import BufferTooShort, WordSizeError
from .opcodes import Format


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    shift: int
    width: int

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    def extract(self, word: int) -> int:
        return (word >> self.shift) & self.mask

    def insert(self, word: int, value: int) -> int:
        """Return ``word`` with this field replaced by ``value`` masked to width."""
        cleared = word & ~(self.mask << self.shift) & WORD_MASK
        return cleared | ((value & self.mask) << self.shift)


OP = FieldSpec("op", "Op", OPCODE_SHIFT, OPCODE_WIDTH)
RA = FieldSpec("ra", "Ra", RA_SHIFT, REGISTER_WIDTH)
RB = FieldSpec("rb", "Rb", RB_SHIFT, REGISTER_WIDTH)
RC = FieldSpec("rc", "Rc", RC_SHIFT, REGISTER_WIDTH)
C2 = FieldSpec("c2", "C2", COND_SHIFT, COND_WIDTH)
C = FieldSpec("c", "C", IMM_SHIFT, IMM_WIDTH)

# Fields consumed by each format, most significant first. Bits not covered by
# any field are ignored on decode and written as zero on encode.
LAYOUTS: Dict[Format, Tuple[FieldSpec, ...]] = {
    Format.R1: (OP, RA, RB, RC),
    Format.I1: (OP, RA, RB, C),
    Format.I2: (OP, RA, RB, C),
    Format.I3: (OP, RA, RB, C),
    Format.I4: (OP, RA, RB),
    Format.B1: (OP, RA, C2, C),
    Format.J1: (OP, RA),
    Format.M1: (OP,),
}


def opcode_of(word: int) -> int:
    return OP.extract(word)


def check_word(word: int) -> int:
    if not 0 <= word <= WORD_MASK:
        raise WordSizeError(f"instruction word out of range: {word:#x}")
    return word


def extract_fields(word: int, fmt: Format) -> Dict[str, int]:
    """Pull the raw (unsigned) value of every field ``fmt`` defines."""
    return {field.name: field.extract(word) for field in LAYOUTS[fmt]}


def insert_fields(fmt: Format, fields: Mapping[str, int]) -> int:
    word = 0
    for field in LAYOUTS[fmt]:
        word = field.insert(word, fields.get(field.name, 0))
    return word


def unused_mask(fmt: Format) -> int:
    used = 0
    for field in LAYOUTS[fmt]:
        used |= field.mask << field.shift
    return ~used & WORD_MASK


def sign_extend(value: int, width: int) -> int:
    value &= (1 << width) - 1
    if value & (1 << (width - 1)):
        value -= 1 << width
    return value


def to_unsigned(value: int, width: int) -> int:
    return value & ((1 << width) - 1)


def word_to_bits(word: int, width: int = WORD_BITS) -> str:
    return format(to_unsigned(word, width), f"0{width}b")


class Decoder:
    def __init__(self, buf: bytes) -> None:
        self.buf, self.pos = buf, 0

    def remaining(self) -> int:
        return len(self.buf) - self.pos

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        if len(self.buf) - self.pos < size:
            raise BufferTooShort(
                f"need {size} bytes at offset {self.pos}, have {self.remaining()}"
            )
        fmt = ">" + fmt if fmt[0] != "<" else fmt
        items = struct.unpack_from(fmt, self.buf, self.pos)
        self.pos += size
        if len(items) == 1:
            return items[0]  # type: ignore
        raise ValueError("Unpacking more than one item is not supported")

    def unsigned_word_be(self) -> int:
        return self._unpack("I")


class Encoder:
    def __init__(self) -> None:
        self.buf = bytearray()

    def _pack(self, fmt: str, item: int) -> None:
        offset = len(self.buf)
        self.buf += b"\x00" * struct.calcsize(fmt)
        fmt = ">" + fmt if fmt[0] != "<" else fmt
        struct.pack_into(fmt, self.buf, offset, item)

    def unsigned_word_be(self, value: int) -> None:
        self._pack("I", check_word(value))


def word_from_bytes(data: bytes) -> int:
    """Decode exactly one big-endian word from ``data``."""
    decoder = Decoder(data)
    word = decoder.unsigned_word_be()
    if decoder.remaining():
        raise WordSizeError(f"expected {WORD_BYTES} bytes, got {len(data)}")
    return word


def word_to_bytes(word: int) -> bytes:
    encoder = Encoder()
    encoder.unsigned_word_be(word)
    return bytes(encoder.buf)


def word_from_hex(text: str) -> int:
    """Parse exactly eight hexadecimal digits as a word."""
    text = text.strip()
    if len(text) != WORD_BYTES * 2:
        raise WordSizeError(f"expected {WORD_BYTES * 2} hex digits, got {text!r}")
    try:
        data = bytes.fromhex(text)
    except ValueError as e:
        raise WordSizeError(f"invalid hexadecimal word {text!r}") from e
    return word_from_bytes(data)


def word_to_hex(word: int, *, lowercase: bool = False) -> str:
    text = word_to_bytes(word).hex()
    return text if lowercase else text.upper()


__all__ = [
    "FieldSpec",
    "OP",
    "RA",
    "RB",
    "RC",
    "C2",
    "C",
    "LAYOUTS",
    "opcode_of",
    "check_word",
    "extract_fields",
    "insert_fields",
    "unused_mask",
    "sign_extend",
    "to_unsigned",
    "word_to_bits",
    "Decoder",
    "Encoder",
    "word_from_bytes",
    "word_to_bytes",
    "word_from_hex",
    "word_to_hex",
]
