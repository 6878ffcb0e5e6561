"""Instruction-line parsing for raw disassembler output.

Splits the output of ``objdump -d`` / ``llvm-objdump -d`` into per-symbol
function blocks and turns each block into typed instruction records. Two
line layouts are recognized:

- Default::

      0: 89 f0                        <\\t>mov	eax, esi

- Hexagon, where a packet word and the packet-grouping token precede the
  instruction text::

      8:<\\t>e4 5f 00 78<\\t>78005fe4 { <\\t>r4 = #0xff
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from asmtest.errors import DisassemblyParseError
from asmtest.utils.types import ArchFamily, TargetArch


FUNCTION_BOUNDARY_RE = re.compile(r"\n00000000+ <")
_MNEMONIC_SEPARATOR_RE = re.compile(r"[\t ]")
_DATA_TOKEN_RE = re.compile(r"[0-9a-fA-F]{2}")


@dataclass
class FunctionBlock:
    """Disassembled region of one symbol."""

    verbose_name: str  # possibly still mangled
    text: str


@dataclass
class InstructionLine:
    """A single disassembled instruction."""

    address: int
    mnemonic: str
    operands: str


@dataclass
class LabelLine:
    """Marker for a function-local address that is referenced by the block."""

    ordinal: int


Line = Union[InstructionLine, LabelLine]


def split_functions(raw: str) -> list[FunctionBlock]:
    """Split full disassembler output into function blocks.

    Blocks start at address-zero symbol headers (``0000000000000000 <sym>:``).
    Anything before the first header is preamble and is dropped.

    Args:
        raw: Complete disassembler output for one object

    Returns:
        Function blocks in output order
    """
    blocks = []
    for chunk in FUNCTION_BOUNDARY_RE.split(raw)[1:]:
        verbose_name, sep, text = chunk.partition(">:\n")
        if not sep:
            raise DisassemblyParseError("malformed function header", chunk.split("\n", 1)[0])
        blocks.append(FunctionBlock(verbose_name=verbose_name, text=text))
    return blocks


class InstructionParser:
    """Parses the body of a function block into instruction lines."""

    def __init__(self, arch: TargetArch):
        self.arch = arch
        self._split_instruction = (
            self._split_hexagon if arch.family == ArchFamily.HEXAGON else self._split_default
        )

    def parse(self, text: str) -> list[InstructionLine]:
        """Parse one function block body.

        Blank lines and lines that do not start with a space (section
        headers, symbol headers) are skipped, as are data-directive
        continuation lines.

        Raises:
            DisassemblyParseError: If a line has no recognized shape
        """
        instructions = []
        for line in text.split("\n"):
            line = line.rstrip("\r")
            if not line.strip() or not line.startswith(" "):
                continue
            addr, sep, rest = line.lstrip().partition(":")
            if not sep:
                continue
            address = _parse_address(addr, line)
            raw_bytes, sep, rest = rest.lstrip().partition("\t")
            if not sep:
                _check_data_directive(raw_bytes, line)
                continue
            mnemonic, operands = self._split_instruction(rest, line)
            instructions.append(InstructionLine(address, mnemonic, operands))
        return instructions

    def _split_default(self, text: str, line: str) -> tuple[str, str]:
        parts = _MNEMONIC_SEPARATOR_RE.split(text.lstrip(), maxsplit=1)
        if len(parts) == 1:
            return parts[0].strip(), ""
        return parts[0].strip(), parts[1].strip()

    def _split_hexagon(self, text: str, line: str) -> tuple[str, str]:
        _word, sep, rest = text.lstrip().partition(" ")
        if not sep:
            raise DisassemblyParseError("missing hexagon packet word", line)
        packet, sep, operands = rest.partition("\t")
        if not sep:
            raise DisassemblyParseError("missing hexagon instruction separator", line)
        return packet.strip(), operands.strip()


def _parse_address(text: str, line: str) -> int:
    try:
        return int(text, 16)
    except ValueError:
        raise DisassemblyParseError("invalid instruction address", line) from None


def _check_data_directive(text: str, line: str) -> None:
    # e.g. the second line of an msp430 instruction wrapped by objdump
    for token in re.split(r"[ \t]", text):
        if token and not _DATA_TOKEN_RE.fullmatch(token):
            raise DisassemblyParseError("unrecognized disassembly line", line)
