#!/usr/bin/env python3
"""Line-oriented front end: stream translation, image building and the CLI.

``asm374 stream`` reads one record per line. A record of exactly eight hex
digits is disassembled, anything else non-blank is assembled, blank records
are passed through. A failing record is echoed back with an inline
``; error:`` annotation and the stream carries on with the next one.
"""

import logging
import re
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

import bincopy  # type: ignore[import-untyped]
from plumbum import cli  # type: ignore[import-untyped]

from . import __version__
from .coding import Encoder, word_from_hex, word_to_hex
from .config import Asm374Config, load_config
from .errors import Asm374Error, AssemblerError
from .instr import assemble, disassemble, explain

logger = logging.getLogger(__name__)

HEX_RECORD = re.compile(r"[0-9A-Fa-f]{8}")
COMMENT = re.compile(r"[;#]")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class StreamResult:
    record: str
    output: str
    error: Optional[Asm374Error] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def process_line(line: str, *, lowercase_hex: bool = False) -> StreamResult:
    """Translate a single record in whichever direction it calls for."""
    raw = line.rstrip("\r\n")
    record = raw.strip()
    if not record:
        return StreamResult(raw, raw)

    if HEX_RECORD.fullmatch(record):
        action = "disassemble"
    else:
        action = "assemble"
    try:
        if action == "disassemble":
            output = disassemble(word_from_hex(record))
        else:
            output = word_to_hex(assemble(record), lowercase=lowercase_hex)
    except Asm374Error as e:
        logger.debug("failed to %s %r: %s", action, record, e)
        return StreamResult(raw, f"{raw} ; error: {action}: {e}", e)
    return StreamResult(raw, output)


def process_stream(
    lines: Iterable[str], *, lowercase_hex: bool = False
) -> Iterator[StreamResult]:
    for line in lines:
        yield process_line(line, lowercase_hex=lowercase_hex)


def strip_comment(line: str) -> str:
    return COMMENT.split(line, maxsplit=1)[0].strip()


def build_image(lines: Iterable[str], *, base_address: int = 0) -> bincopy.BinFile:
    """Assemble one instruction per line into consecutive big-endian words."""
    encoder = Encoder()
    for line_num, line in enumerate(lines, 1):
        source = strip_comment(line)
        if not source:
            continue
        try:
            encoder.unsigned_word_be(assemble(source))
        except Asm374Error as e:
            raise AssemblerError(f"{e}\n> {line.rstrip()}", line_num) from e

    binfile = bincopy.BinFile()
    if encoder.buf:
        binfile.add_binary(bytes(encoder.buf), base_address)
    logger.debug("built %d words at %#x", len(encoder.buf) // 4, base_address)
    return binfile


class Asm374CLI(cli.Application):
    """Assembler and disassembler for single ASM374 instructions."""

    PROGNAME = "asm374"
    VERSION = __version__

    log_level = cli.SwitchAttr(
        ["--log-level"],
        cli.Set(*LOG_LEVELS, case_sensitive=False),
        default=None,
        help="Logging level (default: $ASM374_LOG_LEVEL or WARNING)",
    )

    config: Asm374Config

    def main(self, *args: str) -> Optional[int]:
        self.config = load_config().with_overrides(log_level=self.log_level)
        logging.basicConfig(
            level=self.config.log_level,
            format="%(levelname)s %(name)s: %(message)s",
        )
        if args:
            print(f"Unknown command {args[0]!r}", file=sys.stderr)
            return 1
        if not self.nested_command:
            self.help()
            return 1
        return None


@Asm374CLI.subcommand("stream")
class StreamCommand(cli.Application):
    """Translate each input line: 8 hex digits are disassembled, text is assembled."""

    strict = cli.Flag(
        ["--strict"], help="Exit with status 1 if any record failed to translate"
    )
    lowercase = cli.Flag(["--lowercase"], help="Print assembled words in lowercase hex")

    def main(self, input_file: cli.ExistingFile = None) -> int:
        config = self.parent.config.with_overrides(
            strict=self.strict or None, lowercase_hex=self.lowercase or None
        )
        if input_file is None:
            failures = self._run(sys.stdin, config)
        else:
            with open(input_file, "r") as f:
                failures = self._run(f, config)
        if failures:
            logger.warning("%d record(s) failed to translate", failures)
        return 1 if failures and config.strict else 0

    @staticmethod
    def _run(lines: Iterable[str], config: Asm374Config) -> int:
        failures = 0
        for result in process_stream(lines, lowercase_hex=config.lowercase_hex):
            if not result.ok:
                failures += 1
            sys.stdout.write(result.output + "\n")
            sys.stdout.flush()
        return failures


@Asm374CLI.subcommand("explain")
class ExplainCommand(cli.Application):
    """Show the bit fields of one or more 8-digit hex instruction words."""

    def main(self, *words: str) -> int:
        failed = False
        for text in words:
            try:
                print(explain(word_from_hex(text)))
            except Asm374Error as e:
                logger.warning("cannot explain %s: %s", text, e)
                print(f"{text} ; error: {e}", file=sys.stderr)
                failed = True
        return 1 if failed else 0


@Asm374CLI.subcommand("build")
class BuildCommand(cli.Application):
    """Assemble a file of one instruction per line into Intel HEX or raw binary."""

    output_file = cli.SwitchAttr(
        ["-o", "--output"], str, help="Output file path (default: stdout)"
    )
    output_format = cli.SwitchAttr(
        ["-f", "--format"],
        cli.Set("ihex", "bin", case_sensitive=False),
        default="ihex",
        help="Output format",
    )
    base_address = cli.SwitchAttr(
        ["--base"], int, default=0, help="Address of the first word"
    )

    def main(self, input_file: cli.ExistingFile) -> int:
        with open(input_file, "r") as f:
            lines: List[str] = f.readlines()
        try:
            bin_file = build_image(lines, base_address=self.base_address)
        except AssemblerError as e:
            logger.warning("build of %s failed", input_file)
            print(f"Assembly Error: {e}", file=sys.stderr)
            return 1

        if str(self.output_format).lower() == "bin":
            data = b""
            if bin_file.minimum_address is not None:
                data = bytes(bin_file.as_binary())
            if self.output_file:
                with open(self.output_file, "wb") as out:
                    out.write(data)
            else:
                sys.stdout.buffer.write(data)
            return 0

        ihex_data = bin_file.as_ihex()
        if self.output_file:
            with open(self.output_file, "w") as out:
                out.write(ihex_data)
        else:
            sys.stdout.write(ihex_data)
        return 0


def main() -> None:
    Asm374CLI.run()


if __name__ == "__main__":
    main()
