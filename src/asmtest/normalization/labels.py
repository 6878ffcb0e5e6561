"""Function-local label resolution.

Branch and load targets inside a function are printed by the disassemblers
as absolute addresses (``jmp 0x12 <foo+0x12>``). Those addresses change with
every unrelated edit, so they are replaced by GNU-assembler style numeric
local labels: the referenced instruction gets a ``N:`` marker and every
reference becomes ``Nb`` (backward) or ``Nf`` (forward).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from asmtest.normalization.parser import InstructionLine, LabelLine, Line
from asmtest.utils.types import ArchFamily, Backend, TargetArch


@dataclass(frozen=True)
class TargetPattern:
    """Target-operand pattern and the capture group holding the address."""

    regex: re.Pattern
    address_group: int

    def address_of(self, match: re.Match) -> int:
        """Return the absolute address captured by ``match``.

        A missing address group means a reference to the symbol start.
        """
        return int(match.group(self.address_group) or "0", 16)


def _symbol_offset(name: str) -> str:
    return f"<{re.escape(name)}(\\+0x([0-9a-f]+))?>"


def _arm_pattern(name: str) -> TargetPattern:
    return TargetPattern(
        re.compile(f"(-)?(0x)?[0-9a-f]+ {_symbol_offset(name)}( @ imm = #(-)?0x[0-9a-f]+)?"),
        4,
    )


def _avr_pattern(name: str) -> TargetPattern:
    return TargetPattern(
        re.compile(r"\.(\+|-)[0-9]+ +\t; 0x([0-9a-f]+) <__zero_reg__(\+0x[0-9a-f]+)?>"),
        2,
    )


def _csky_pattern(name: str) -> TargetPattern:
    return TargetPattern(re.compile(f"0x[0-9a-f]+\t// (0x)?[0-9a-f]+ {_symbol_offset(name)}"), 3)


def _loongarch_gnu_pattern(name: str) -> TargetPattern:
    return TargetPattern(
        re.compile(f"(-)?(0x)?[0-9a-f]+\t# (-)?(0x)?[0-9a-f]+ {_symbol_offset(name)}"),
        6,
    )


def _msp430_pattern(name: str) -> TargetPattern:
    return TargetPattern(re.compile(r"\$(\+|-)[0-9]+ +\t;abs 0x([0-9a-f]+)"), 2)


def _default_pattern(name: str) -> TargetPattern:
    return TargetPattern(re.compile(f"(-)?(0x)?[0-9a-f]+ {_symbol_offset(name)}"), 4)


# (family, backend) -> pattern factory; a backend of None matches both
TARGET_PATTERNS: dict[tuple[ArchFamily, Optional[Backend]], Callable[[str], TargetPattern]] = {
    (ArchFamily.ARM, Backend.LLVM): _arm_pattern,
    (ArchFamily.AVR, None): _avr_pattern,
    (ArchFamily.CSKY, None): _csky_pattern,
    (ArchFamily.LOONGARCH, Backend.GNU): _loongarch_gnu_pattern,
    (ArchFamily.MSP430, None): _msp430_pattern,
}


def target_pattern(arch: TargetArch, backend: Backend, verbose_name: str) -> TargetPattern:
    """Select the target-operand pattern for a function block.

    Args:
        arch: Target architecture of the revision
        backend: Disassembler that produced the text
        verbose_name: Raw symbol name of the block, as printed in references

    Returns:
        Compiled pattern for the block
    """
    family = arch.family
    factory = TARGET_PATTERNS.get((family, backend)) or TARGET_PATTERNS.get((family, None))
    return (factory or _default_pattern)(verbose_name)


@dataclass
class LabelMap:
    """Referenced addresses of one function block and their ordinals.

    Build a new map for every block.
    """

    _ordinals: dict[int, Optional[int]] = field(default_factory=dict)
    _next: int = 0

    def reference(self, address: int) -> None:
        """Record that ``address`` is referenced by an operand."""
        self._ordinals.setdefault(address, None)

    def define(self, address: int) -> Optional[int]:
        """Assign an ordinal if ``address`` is referenced and not yet defined.

        Returns:
            The newly assigned ordinal, or None
        """
        if address not in self._ordinals or self._ordinals[address] is not None:
            return None
        ordinal = self._next
        self._ordinals[address] = ordinal
        self._next += 1
        return ordinal

    def ordinal(self, address: int) -> Optional[int]:
        return self._ordinals.get(address)

    def __contains__(self, address: int) -> bool:
        return address in self._ordinals

    def __len__(self) -> int:
        return len(self._ordinals)


class LabelResolver:
    """Replaces in-function address references with numeric local labels."""

    def __init__(self, arch: TargetArch, backend: Backend):
        self.arch = arch
        self.backend = backend

    def resolve(
        self,
        text: str,
        verbose_name: str,
        instructions: list[InstructionLine],
    ) -> list[Line]:
        """Interleave label markers and rewrite references for one block.

        Args:
            text: Raw body of the function block
            verbose_name: Raw symbol name of the block
            instructions: Parsed instructions of the block, in order

        Returns:
            Lines with label markers inserted before defining instructions
        """
        pattern = target_pattern(self.arch, self.backend, verbose_name)
        labels = LabelMap()

        for match in pattern.regex.finditer(text):
            labels.reference(pattern.address_of(match))

        lines: list[Line] = []
        for inst in instructions:
            ordinal = labels.define(inst.address)
            if ordinal is not None:
                lines.append(LabelLine(ordinal))
            lines.append(inst)

        for inst in instructions:
            inst.operands = self._rewrite(inst, pattern, labels)
        return lines

    def _rewrite(self, inst: InstructionLine, pattern: TargetPattern, labels: LabelMap) -> str:
        def substitute(match: re.Match) -> str:
            address = pattern.address_of(match)
            ordinal = labels.ordinal(address)
            if ordinal is None:
                return match.group(0)
            # `>=`: a self-loop renders as `0b`; a strict `>` would give `0f`
            direction = "b" if inst.address >= address else "f"
            return f"{ordinal}{direction}"

        return pattern.regex.sub(substitute, inst.operands)
