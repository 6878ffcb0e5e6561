"""Disassembly normalizer - turns raw disassembler output into fixture text.

Runs the passes for every function block of one object:
- Instruction-line parsing
- Symbol name normalization
- Local label resolution
- Rendering

and finally rewrites verbose symbol names across the whole output.
"""

from __future__ import annotations

from typing import Optional

from asmtest.normalization.labels import LabelResolver
from asmtest.normalization.parser import InstructionParser, split_functions
from asmtest.normalization.renderer import Renderer
from asmtest.normalization.symbols import SymbolNormalizer
from asmtest.utils.logging import get_logger
from asmtest.utils.types import Backend, TargetArch

log = get_logger(__name__)


class DisassemblyNormalizer:
    """Normalizes the disassembly of one object file.

    The normalizer is stateless between calls to :meth:`normalize`; each call
    builds fresh per-revision and per-block state.
    """

    def __init__(self, arch: TargetArch, backend: Optional[Backend] = None):
        self.arch = arch
        self.backend = backend or arch.select_backend()
        self._parser = InstructionParser(arch)
        self._labels = LabelResolver(arch, self.backend)
        self._renderer = Renderer(arch)

    def normalize(self, raw: str) -> str:
        """Normalize complete disassembler output.

        Args:
            raw: Output of ``objdump -Cd`` or ``llvm-objdump -Cd``

        Returns:
            Canonical rendering of every function in the object
        """
        symbols = SymbolNormalizer(self.arch, self.backend)
        out = []
        for block in split_functions(raw):
            name = symbols.normalize(block.verbose_name)
            instructions = self._parser.parse(block.text)
            lines = self._labels.resolve(block.text, block.verbose_name, instructions)
            out.append(self._renderer.render(name, lines))
        log.debug(
            f"normalized {len(out)} functions for {self.arch} ({self.backend.value}), "
            f"{len(symbols.verbose_names)} hashed symbols"
        )
        return symbols.apply("".join(out))


def normalize_disassembly(
    raw: str,
    arch: TargetArch,
    backend: Optional[Backend] = None,
) -> str:
    """Convenience function to normalize raw disassembler output.

    Args:
        raw: Raw disassembler output
        arch: Target architecture
        backend: Disassembler that produced ``raw`` (default: the one
            :meth:`TargetArch.select_backend` picks)

    Returns:
        Normalized rendering
    """
    return DisassemblyNormalizer(arch, backend).normalize(raw)
