from typing import List, Tuple

import pytest

from .coding import word_from_hex, word_to_hex
from .errors import (
    Asm374Error,
    ImmediateOutOfRange,
    InvalidBaseRegister,
    InvalidRegisterToken,
    MissingCondition,
    OperandArityMismatch,
    OperandError,
    UnknownMnemonic,
    UnknownOpcode,
    WordSizeError,
)
from .instr import (
    VARIANTS,
    BareInstr,
    BranchInstr,
    ImmInstr,
    IndexedInstr,
    JumpInstr,
    PairInstr,
    RegInstr,
    assemble,
    assemble_bytes,
    decode,
    disassemble,
    disassemble_bytes,
    explain,
    parse,
)
from .opcodes import Cond, Format


def test_disassemble_known_vectors(known_vectors: List[Tuple[str, str]]) -> None:
    for hex_word, text in known_vectors:
        assert disassemble(word_from_hex(hex_word)) == text, hex_word


def test_assemble_known_vectors(known_vectors: List[Tuple[str, str]]) -> None:
    for hex_word, text in known_vectors:
        assert word_to_hex(assemble(text)) == hex_word, text


@pytest.mark.parametrize(
    "text,word",
    [
        ("st 5(r2), r4", 0x12100005),
        ("st -1, r4", 0x1203FFFF),
        ("addi r1, r2, -1", 0x6093FFFF),
        ("brmi r2, -1", 0x991BFFFF),
        ("brnz r0, 0", 0x98080000),
        ("jr r15", 0xA7800000),
        ("nop", 0xD0000000),
        ("halt", 0xD8000000),
    ],
)
def test_assemble_and_disassemble(text: str, word: int) -> None:
    assert assemble(text) == word
    assert disassemble(word) == text


@pytest.mark.parametrize(
    "text,canonical",
    [
        ("AND R1,R2,R3", "and r1, r2, r3"),
        ("  and\tr1 ,  r2,\tr3  ", "and r1, r2, r3"),
        ("BRZR r2, 0x270f", "brzr r2, 9999"),
        ("brZr r2, $270F", "brzr r2, 9999"),
        ("ldi r0, 0x39(R1)", "ldi r0, 57(r1)"),
        ("ld r3, +0", "ld r3, 0"),
        ("HALT", "halt"),
    ],
)
def test_assemble_accepts_loose_spelling(text: str, canonical: str) -> None:
    assert disassemble(assemble(text)) == canonical


@pytest.mark.parametrize(
    "hex_word,text",
    [
        ("9900270F", "brzr r2, +9999"),
        ("9900270F", "brzr r2, $270f"),
        ("9903FFFF", "brzr r2, 0x3FFFF"),
        ("9903FFFF", "brzr r2, $3FFFF"),
        ("08080000", "ldi r0, $0000(r1)"),
        ("08080015", "ldi r0, 0b010101(r1)"),
        ("08080039", "ldi r0, 0o71(r1)"),
        ("08080039", "ldi r0, $000000039(r1)"),
    ],
)
def test_assemble_alternative_spellings(hex_word: str, text: str) -> None:
    assert word_to_hex(assemble(text)) == hex_word


def test_unsigned_literal_is_the_raw_field() -> None:
    # The raw pattern for -1 disassembles back to the signed value.
    assert disassemble(assemble("brzr r2, 0x3FFFF")) == "brzr r2, -1"
    assert assemble("addi r1, r2, $20000") == assemble("addi r1, r2, -131072")
    with pytest.raises(ImmediateOutOfRange):
        assemble("brzr r2, +0x3FFFF")
    with pytest.raises(ImmediateOutOfRange):
        assemble("brzr r2, 0x40000")


def test_unused_bits_are_ignored_on_decode() -> None:
    assert disassemble(0x9900270F | (0b11 << 21)) == "brzr r2, 9999"
    assert disassemble(0x9900270F | (1 << 18)) == "brzr r2, 9999"
    assert disassemble(0x28918000 | 0x7FFF) == "and r1, r2, r3"
    assert disassemble(0xD8000000 | 0x7FFFFFF) == "halt"


def test_no_base_register_renders_bare_offset() -> None:
    instr = decode(0x0000002A)
    assert isinstance(instr, IndexedInstr)
    assert instr.rb == 0
    assert str(instr) == "ld r0, 42"


@pytest.mark.parametrize("code", [28, 29, 30, 31])
def test_unknown_opcodes(code: int) -> None:
    with pytest.raises(UnknownOpcode) as excinfo:
        decode(code << 27)
    assert excinfo.value.code == code
    assert f"{code:05b}" in str(excinfo.value)


@pytest.mark.parametrize("word", [-1, 1 << 32])
def test_decode_rejects_values_outside_a_word(word: int) -> None:
    with pytest.raises(WordSizeError):
        decode(word)


@pytest.mark.parametrize(
    "word,cls,fmt",
    [
        (0x28918000, RegInstr, Format.R1),
        (0x08080039, IndexedInstr, Format.I1),
        (0x12100005, IndexedInstr, Format.I2),
        (0x6093FFFF, ImmInstr, Format.I3),
        (0x7B380000, PairInstr, Format.I4),
        (0x9903F6D7, BranchInstr, Format.B1),
        (0xA7800000, JumpInstr, Format.J1),
        (0xD0000000, BareInstr, Format.M1),
    ],
)
def test_decode_picks_variant_by_format(word: int, cls: type, fmt: Format) -> None:
    instr = decode(word)
    assert type(instr) is cls
    assert instr.info.format is fmt
    # Only branches carry a condition.
    assert hasattr(instr, "cond") == (cls is BranchInstr)
    assert instr.encode() == word


def test_branch_fields() -> None:
    instr = decode(0x9903F6D7)
    assert isinstance(instr, BranchInstr)
    assert instr.ra == 2
    assert instr.cond is Cond.ZR
    assert instr.c == -2345
    assert instr.mnemonic == "brzr"
    assert instr.info.mnemonic == "br"


def test_store_operand_order() -> None:
    instr = parse("st 57(r1), r0")
    assert isinstance(instr, IndexedInstr)
    assert instr.stores
    assert (instr.ra, instr.rb, instr.c) == (0, 1, 57)
    assert not parse("ld r0, 57(r1)").stores


def test_instructions_are_values() -> None:
    assert parse("add r1, r2, r3") == decode(0x18918000)
    assert len({parse("nop"), parse("NOP"), decode(0xD0000000)}) == 1


@pytest.mark.parametrize(
    "text", ["sdf r1", "mhfhi r1", "", "addzr r1, r2, r3", "br0"]
)
def test_unknown_mnemonic(text: str) -> None:
    with pytest.raises(UnknownMnemonic):
        assemble(text)


def test_bare_branch_reports_missing_condition() -> None:
    with pytest.raises(MissingCondition) as excinfo:
        assemble("br r2, 0")
    assert "missing condition code" in str(excinfo.value)
    assert isinstance(excinfo.value, UnknownMnemonic)


@pytest.mark.parametrize(
    "text,error",
    [
        ("add r1, r2", OperandArityMismatch),
        ("add r1, r2, r3, r4", OperandArityMismatch),
        ("halt r1", OperandArityMismatch),
        ("add r1, r2, r16", InvalidRegisterToken),
        ("ld r1, 0(r0)", InvalidBaseRegister),
        ("addi r1, r2, 131072", ImmediateOutOfRange),
        ("brzr r2, -131073", ImmediateOutOfRange),
    ],
)
def test_operand_errors(text: str, error: type) -> None:
    with pytest.raises(error):
        assemble(text)


def test_operand_error_names_the_instruction() -> None:
    with pytest.raises(OperandError) as excinfo:
        assemble("add r1, r2")
    assert excinfo.value.mnemonic == "add"
    assert str(excinfo.value).startswith("op add: not enough arguments")


def test_every_error_is_an_asm374_error() -> None:
    for text in ("nope", "br r1, 0", "add r1", "add r1, r2, x"):
        with pytest.raises(Asm374Error):
            assemble(text)


def test_missing_variant_is_an_internal_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delitem(VARIANTS, Format.M1)
    with pytest.raises(AssertionError):
        decode(0xD8000000)
    with pytest.raises(AssertionError):
        assemble("halt")


def test_bytes_helpers() -> None:
    assert disassemble_bytes(b"\x99\x03\xf6\xd7") == "brzr r2, -2345"
    assert assemble_bytes("brzr r2, -2345") == b"\x99\x03\xf6\xd7"
    assert parse("mul r6, r7").to_bytes() == b"\x7b\x38\x00\x00"
    with pytest.raises(WordSizeError):
        disassemble_bytes(b"\x99\x03\xf6")


def test_explain_branch() -> None:
    assert explain(0x9900270F) == (
        "Op:10011|Ra:0010|Unk:??|C2:00|Unk:?|C:000010011100001111\n"
        "B1 Op=br Ra=r2 C2=zr C=9999"
    )


def test_explain_register_format() -> None:
    assert explain(0x28918000) == (
        "Op:00101|Ra:0001|Rb:0010|Rc:0011|Unk:" + "?" * 15 + "\n"
        "R1 Op=and Ra=r1 Rb=r2 Rc=r3"
    )


def test_explain_immediate_is_signed() -> None:
    lines = explain(0x6093FFFF).splitlines()
    assert lines[0] == "Op:01100|Ra:0001|Rb:0010|Unk:?|C:" + "1" * 18
    assert lines[1] == "I3 Op=addi Ra=r1 Rb=r2 C=-1"


def test_explain_bare_format() -> None:
    assert explain(0xD8000000) == "Op:11011|Unk:" + "?" * 27 + "\nM1 Op=halt"


def test_explain_unknown_opcode() -> None:
    with pytest.raises(UnknownOpcode):
        explain(0xF8000000)
