"""Disassembly normalization module for asmtest.

This module rewrites raw ``objdump``/``llvm-objdump`` output into a stable,
reviewable form:

- Function splitting and instruction-line parsing
- Numeric local labels for in-function branch targets
- Hash-suffix stripping and demangling fallbacks for symbol names
- Fixed-column rendering with per-architecture fusions
"""

from asmtest.normalization.normalizer import DisassemblyNormalizer, normalize_disassembly
from asmtest.normalization.parser import (
    FunctionBlock,
    InstructionLine,
    InstructionParser,
    LabelLine,
    split_functions,
)
from asmtest.normalization.labels import LabelMap, LabelResolver, target_pattern
from asmtest.normalization.symbols import SymbolNormalizer, strip_hash_suffix
from asmtest.normalization.renderer import Renderer

__all__ = [
    "DisassemblyNormalizer",
    "normalize_disassembly",
    "FunctionBlock",
    "InstructionLine",
    "InstructionParser",
    "LabelLine",
    "split_functions",
    "LabelMap",
    "LabelResolver",
    "target_pattern",
    "SymbolNormalizer",
    "strip_hash_suffix",
    "Renderer",
]
