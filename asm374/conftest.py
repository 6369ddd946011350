"""Shared pytest fixtures and hypothesis profiles for the asm374 tests."""

from __future__ import annotations

import os
from typing import List, Tuple

import pytest
from hypothesis import HealthCheck, settings

settings.register_profile(
    "fast",
    max_examples=int(os.getenv("ASM374_PROP_EXAMPLES", "500")),
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "nightly",
    max_examples=int(os.getenv("ASM374_PROP_NIGHTLY_EXAMPLES", "20000")),
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile(os.getenv("ASM374_HYPOTHESIS_PROFILE", "fast"))


# (big-endian hex word, canonical text) pairs that must translate both ways.
KNOWN_VECTORS: List[Tuple[str, str]] = [
    ("28918000", "and r1, r2, r3"),
    ("30918000", "or r1, r2, r3"),
    ("18228000", "add r0, r4, r5"),
    ("20228000", "sub r0, r4, r5"),
    ("7B380000", "mul r6, r7"),
    ("83380000", "div r6, r7"),
    ("389A8000", "shr r1, r3, r5"),
    ("409A8000", "shra r1, r3, r5"),
    ("489A8000", "shl r1, r3, r5"),
    ("53320000", "ror r6, r6, r4"),
    ("5B320000", "rol r6, r6, r4"),
    ("88080000", "neg r0, r1"),
    ("90080000", "not r0, r1"),
    ("9900270F", "brzr r2, 9999"),
    ("9903F6D7", "brzr r2, -2345"),
    ("00000000", "ld r0, 0"),
    ("08080000", "ldi r0, 0(r1)"),
    ("08080039", "ldi r0, 57(r1)"),
]


@pytest.fixture(scope="session")
def known_vectors() -> List[Tuple[str, str]]:
    return list(KNOWN_VECTORS)
