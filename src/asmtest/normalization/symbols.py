"""Symbol name normalization.

Rust symbols in ``llvm-objdump -C`` output keep their legacy hash suffix
(``asm_test::load::u8::h0123456789abcdef``), which changes with every
compiler version. The suffix is dropped from function headers and, in a
second pass over the whole rendering, from every other mention of the
same symbol.

objdump also leaves a few section-prefixed symbols mangled; those are
demangled here.
"""

from __future__ import annotations

import re
from typing import Optional

from rust_demangler import demangle

from asmtest.utils.logging import get_logger
from asmtest.utils.types import ArchFamily, Backend, TargetArch

log = get_logger(__name__)

HASH_SUFFIX_RE = re.compile(r"h[0-9a-f]{16}")
SCOPE_SEPARATOR = "::"


def strip_hash_suffix(name: str) -> Optional[str]:
    """Return ``name`` without its ``::h<16 hex digits>`` component.

    Returns:
        The shortened name, or None when there is no hash suffix
    """
    head, sep, tail = name.rpartition(SCOPE_SEPARATOR)
    if sep and HASH_SUFFIX_RE.fullmatch(tail):
        return head
    return None


def demangle_symbol(mangled: str) -> str:
    """Demangle a Rust symbol, omitting the hash suffix.

    Names the demangler does not understand are returned unchanged.
    """
    try:
        name = demangle(mangled)
    except Exception as e:
        log.debug(f"leaving {mangled!r} mangled: {e}")
        return mangled
    return strip_hash_suffix(name) or name


class SymbolNormalizer:
    """Derives display names and collects verbose names for one revision."""

    def __init__(self, arch: TargetArch, backend: Backend):
        self.arch = arch
        self.backend = backend
        self.verbose_names: list[str] = []

    def normalize(self, verbose_name: str) -> str:
        """Return the display name for a function block header."""
        name = verbose_name
        if self.backend == Backend.LLVM:
            short = strip_hash_suffix(verbose_name)
            if short is not None:
                if verbose_name not in self.verbose_names:
                    self.verbose_names.append(verbose_name)
                name = short

        family = self.arch.family
        if family == ArchFamily.POWERPC64_BE and name.startswith(".text."):
            # .text on big-endian PowerPC64 is not demangled by objdump 2.45
            name = demangle_symbol(name[len(".text.") :])
        elif family == ArchFamily.XTENSA and name.startswith(".literal."):
            # .literal is not demangled by objdump 2.45
            name = ".literal." + demangle_symbol(name[len(".literal.") :])
        return name

    def apply(self, text: str) -> str:
        """Replace every collected verbose name in ``text`` by its short form."""
        if not self.verbose_names:
            return text
        combined = re.compile("|".join(re.escape(name) for name in self.verbose_names))
        return combined.sub(lambda m: m.group(0).rpartition(SCOPE_SEPARATOR)[0], text)
