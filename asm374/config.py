from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import os
from typing import Optional


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


def _env_log_level(name: str, default: str = "WARNING") -> str:
    raw = (os.getenv(name) or "").strip().upper()
    if raw and isinstance(logging.getLevelName(raw), int):
        return raw
    return default


@dataclass(frozen=True)
class Asm374Config:
    lowercase_hex: bool
    strict: bool
    log_level: str

    def with_overrides(
        self,
        *,
        lowercase_hex: Optional[bool] = None,
        strict: Optional[bool] = None,
        log_level: Optional[str] = None,
    ) -> "Asm374Config":
        """Return a copy with the given (non-None) values replaced."""
        changes = {
            key: value
            for key, value in (
                ("lowercase_hex", lowercase_hex),
                ("strict", strict),
                ("log_level", log_level.upper() if log_level else None),
            )
            if value is not None
        }
        return replace(self, **changes)


def load_config() -> Asm374Config:
    return Asm374Config(
        lowercase_hex=_env_flag("ASM374_LOWERCASE_HEX", default=False),
        strict=_env_flag("ASM374_STRICT", default=False),
        log_level=_env_log_level("ASM374_LOG_LEVEL", default="WARNING"),
    )


__all__ = ["Asm374Config", "load_config"]
