"""Shared encoding constants for the ASM374 instruction set.

Every instruction is a single 32-bit word. The top five bits always select the
opcode; the remaining 27 bits are interpreted according to the opcode's
encoding format (see ``coding.LAYOUTS``).
"""

# Instruction words are 32 bits wide and travel as 4 big-endian bytes.
WORD_BITS = 32
WORD_BYTES = 4
WORD_MASK = (1 << WORD_BITS) - 1

# Opcode field: bits 31..27.
OPCODE_SHIFT = 27
OPCODE_WIDTH = 5
OPCODE_COUNT = 1 << OPCODE_WIDTH

# Register fields. Ra, Rb and Rc are laid out back to back below the opcode.
REGISTER_WIDTH = 4
REGISTER_COUNT = 1 << REGISTER_WIDTH
RA_SHIFT = 23
RB_SHIFT = 19
RC_SHIFT = 15

# Branch condition shares its low bits with the Rb field (bits 20..19).
COND_SHIFT = RB_SHIFT
COND_WIDTH = 2

# Signed constant field: bits 17..0, two's complement.
IMM_SHIFT = 0
IMM_WIDTH = 18
IMM_MIN = -(1 << (IMM_WIDTH - 1))  # -131072
IMM_MAX = (1 << (IMM_WIDTH - 1)) - 1  # 131071

# Register 0 doubles as "no base register" in indexed operands.
NO_BASE_REGISTER = 0
