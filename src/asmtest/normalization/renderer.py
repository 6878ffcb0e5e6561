"""Canonical text rendering of normalized functions.

Layout::

    name:
    0:
            mnemonic          operands

Instructions are indented by eight spaces and operands start at a fixed
column. 18 columns for mnemonic and padding fit the longest x86_64
mnemonic (``vgf2p8affineinvqb``, 17 characters).
"""

from __future__ import annotations

from typing import Callable

from asmtest.errors import DisassemblyParseError
from asmtest.normalization.parser import InstructionLine, LabelLine, Line
from asmtest.utils.types import ArchFamily, TargetArch

START_PAD = " " * 8
INST_WIDTH = 18
HEXAGON_PACKET_OPEN = "{"


def inst_pad(length: int) -> str:
    """Return the padding that follows a mnemonic of ``length`` characters."""
    return " " * max(INST_WIDTH - length, 1)


def format_instruction(mnemonic: str, operands: str) -> str:
    if not operands:
        return f"{START_PAD}{mnemonic}\n"
    return f"{START_PAD}{mnemonic}{inst_pad(len(mnemonic))}{operands}\n"


class Renderer:
    """Serializes one function at a time."""

    def __init__(self, arch: TargetArch):
        self.arch = arch
        renderers: dict[ArchFamily, Callable[[list[Line], int], tuple[str, int]]] = {
            ArchFamily.X86: self._render_x86,
            ArchFamily.HEXAGON: self._render_hexagon,
        }
        self._render_instruction = renderers.get(arch.family, self._render_default)

    def render(self, name: str, lines: list[Line]) -> str:
        """Render a function header, its labels and instructions.

        Returns:
            Text ending with exactly one blank line
        """
        out = [f"{name}:\n"]
        i = 0
        while i < len(lines):
            line = lines[i]
            if isinstance(line, LabelLine):
                out.append(f"{line.ordinal}:\n")
                i += 1
                continue
            text, consumed = self._render_instruction(lines, i)
            out.append(text)
            i += consumed
        out.append("\n")
        return "".join(out)

    def _render_default(self, lines: list[Line], i: int) -> tuple[str, int]:
        inst = lines[i]
        return format_instruction(inst.mnemonic, inst.operands), 1

    def _render_x86(self, lines: list[Line], i: int) -> tuple[str, int]:
        inst = lines[i]
        if inst.mnemonic != "lock":
            return self._render_default(lines, i)

        if inst.operands:
            # llvm-objdump: "lock\tcmpxchg\tqword ptr [rdi], rsi"
            mnemonic, _, operands = inst.operands.partition("\t")
            return format_instruction(f"lock {mnemonic}", operands), 1

        # objdump: "lock" and the locked instruction on separate lines
        if i + 1 < len(lines) and isinstance(lines[i + 1], InstructionLine):
            locked = lines[i + 1]
            return format_instruction(f"lock {locked.mnemonic}", locked.operands), 2
        return format_instruction(inst.mnemonic, ""), 1

    def _render_hexagon(self, lines: list[Line], i: int) -> tuple[str, int]:
        inst = lines[i]
        if not inst.operands:
            return format_instruction(inst.mnemonic, ""), 1
        if not inst.mnemonic:
            return f"{START_PAD}  {inst.operands}\n", 1
        if inst.mnemonic != HEXAGON_PACKET_OPEN:
            raise DisassemblyParseError(
                "unexpected hexagon packet token", f"{inst.mnemonic}\t{inst.operands}"
            )
        return f"{START_PAD}{HEXAGON_PACKET_OPEN} {inst.operands}\n", 1
