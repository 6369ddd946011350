"""Exception hierarchy shared by the decoder, encoder and command line tools."""

from __future__ import annotations

from typing import Optional


class Asm374Error(Exception):
    """Base class for every user-facing assembly/disassembly failure."""


class DecodeError(Asm374Error):
    pass


class WordSizeError(DecodeError):
    """Raised when a value cannot be an instruction word."""


class BufferTooShort(WordSizeError):
    """Raised when attempting to read past the end of the buffer."""


class UnknownOpcode(DecodeError):
    def __init__(self, code: int) -> None:
        super().__init__(f"unknown opcode {code:05b} ({code})")
        self.code = code


class EncodeError(Asm374Error):
    pass


class UnknownMnemonic(EncodeError):
    def __init__(self, mnemonic: str, reason: str = "invalid op") -> None:
        super().__init__(f"{reason} {mnemonic!r}")
        self.mnemonic = mnemonic


class MissingCondition(UnknownMnemonic):
    """A branch mnemonic was written without its condition suffix."""

    def __init__(self, mnemonic: str) -> None:
        super().__init__(mnemonic, reason="missing condition code for")


class OperandError(EncodeError):
    """Base class for operand failures.

    ``mnemonic`` is filled in by the encoder once it knows which instruction
    the operands belonged to, and is then included in the message.
    """

    mnemonic: Optional[str] = None

    def __str__(self) -> str:
        message = super().__str__()
        if self.mnemonic:
            return f"op {self.mnemonic}: {message}"
        return message


class OperandArityMismatch(OperandError):
    def __init__(self, expected: int, got: int) -> None:
        detail = "too many arguments" if got > expected else "not enough arguments"
        super().__init__(f"{detail} (expected {expected}, got {got})")
        self.expected = expected
        self.got = got


class InvalidRegisterToken(OperandError):
    def __init__(self, token: str) -> None:
        super().__init__(f"unknown register {token!r}")
        self.token = token


class InvalidBaseRegister(OperandError):
    def __init__(self, token: str) -> None:
        super().__init__(f"register r0 is forbidden as a base in {token!r}")
        self.token = token


class ImmediateError(OperandError):
    pass


class ImmediateParseFailure(ImmediateError):
    def __init__(self, token: str) -> None:
        super().__init__(f"invalid immediate {token!r}")
        self.token = token


class ImmediateOutOfRange(ImmediateError):
    def __init__(self, token: str, value: int) -> None:
        super().__init__(f"immediate value out of range: {token!r} ({value})")
        self.token = token
        self.value = value


class AssemblerError(Asm374Error):
    """Raised by the image builder; wraps the failing line's error."""

    def __init__(self, message: str, line_num: Optional[int] = None) -> None:
        if line_num is not None:
            message = f"on line {line_num}: {message}"
        super().__init__(message)
        self.line_num = line_num


__all__ = [
    "Asm374Error",
    "DecodeError",
    "WordSizeError",
    "BufferTooShort",
    "UnknownOpcode",
    "EncodeError",
    "UnknownMnemonic",
    "MissingCondition",
    "OperandError",
    "OperandArityMismatch",
    "InvalidRegisterToken",
    "InvalidBaseRegister",
    "ImmediateError",
    "ImmediateParseFailure",
    "ImmediateOutOfRange",
    "AssemblerError",
]
