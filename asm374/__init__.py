"""ASM374 instruction codec: 32-bit words <-> mnemonic text."""

__version__ = "1.0.0"

from .errors import (  # noqa: E402
    Asm374Error,
    AssemblerError,
    DecodeError,
    EncodeError,
    ImmediateOutOfRange,
    ImmediateParseFailure,
    InvalidBaseRegister,
    InvalidRegisterToken,
    MissingCondition,
    OperandArityMismatch,
    OperandError,
    UnknownMnemonic,
    UnknownOpcode,
    WordSizeError,
)
from .instr import (  # noqa: E402
    Instruction,
    assemble,
    assemble_bytes,
    decode,
    disassemble,
    disassemble_bytes,
    explain,
    parse,
)
from .opcodes import Cond, Format, lookup_by_code, lookup_by_mnemonic  # noqa: E402

__all__ = [
    "__version__",
    "Asm374Error",
    "AssemblerError",
    "DecodeError",
    "EncodeError",
    "ImmediateOutOfRange",
    "ImmediateParseFailure",
    "InvalidBaseRegister",
    "InvalidRegisterToken",
    "MissingCondition",
    "OperandArityMismatch",
    "OperandError",
    "UnknownMnemonic",
    "UnknownOpcode",
    "WordSizeError",
    "Instruction",
    "assemble",
    "assemble_bytes",
    "decode",
    "disassemble",
    "disassemble_bytes",
    "explain",
    "parse",
    "Cond",
    "Format",
    "lookup_by_code",
    "lookup_by_mnemonic",
]
