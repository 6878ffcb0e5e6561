"""Core type definitions for asmtest.

This module defines the architecture dispatch values shared by the build,
disassembly and normalization layers: the architecture family enumeration,
the disassembler backend enumeration and the per-revision target description.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ArchFamily(str, Enum):
    """Groups of architectures that share disassembly quirks.

    Every revision maps to exactly one family. Architectures without any
    special handling fall into ``OTHER``; the raw identifier stays available
    on the owning :class:`TargetArch`.
    """

    X86 = "x86"
    ARM = "arm"
    AVR = "avr"
    CSKY = "csky"
    HEXAGON = "hexagon"  # VLIW packets
    LOONGARCH = "loongarch"
    MIPS = "mips"
    MSP430 = "msp430"
    POWERPC64_BE = "powerpc64be"
    XTENSA = "xtensa"
    OTHER = "other"


class Backend(str, Enum):
    """Disassembler backends, valued by their binary name."""

    GNU = "objdump"
    LLVM = "llvm-objdump"


ARCH_FAMILIES: dict[str, ArchFamily] = {
    "x86": ArchFamily.X86,
    "x86_64": ArchFamily.X86,
    "arm": ArchFamily.ARM,
    "aarch64": ArchFamily.ARM,
    "arm64ec": ArchFamily.ARM,
    "avr": ArchFamily.AVR,
    "csky": ArchFamily.CSKY,
    "hexagon": ArchFamily.HEXAGON,
    "loongarch32": ArchFamily.LOONGARCH,
    "loongarch64": ArchFamily.LOONGARCH,
    "mips": ArchFamily.MIPS,
    "mips64": ArchFamily.MIPS,
    "mips32r6": ArchFamily.MIPS,
    "mips64r6": ArchFamily.MIPS,
    "msp430": ArchFamily.MSP430,
    "xtensa": ArchFamily.XTENSA,
}

# Some instructions are not correctly recognized or dumped by llvm-objdump
GNU_ONLY_ARCHES = frozenset(
    {
        "avr",
        "csky",
        "m68k",
        "msp430",
        "mips",
        "mips64",
        "mips32r6",
        "mips64r6",
        "s390x",
        "sparc",
        "sparc64",
        "xtensa",
    }
)

# Not supported by GNU binutils
LLVM_ONLY_ARCHES = frozenset({"hexagon"})


@dataclass(frozen=True)
class TargetArch:
    """Architecture of the target a revision is built for.

    Attributes:
        arch: Raw ``target_arch`` value reported by rustc (e.g. ``x86_64``)
        endian: ``little`` or ``big``
    """

    arch: str
    endian: str = "little"

    @property
    def family(self) -> ArchFamily:
        """Return the architecture family used for dispatch."""
        if self.arch == "powerpc64" and self.endian == "big":
            return ArchFamily.POWERPC64_BE
        return ARCH_FAMILIES.get(self.arch, ArchFamily.OTHER)

    @property
    def is_big_endian(self) -> bool:
        return self.endian == "big"

    def select_backend(self, prefer_gnu: bool = False) -> Backend:
        """Pick the disassembler backend for this architecture.

        Args:
            prefer_gnu: Preference applied when the architecture does not
                force a backend

        Returns:
            Backend to disassemble with
        """
        if self.arch in GNU_ONLY_ARCHES:
            return Backend.GNU
        if self.arch in LLVM_ONLY_ARCHES:
            return Backend.LLVM
        return Backend.GNU if prefer_gnu else Backend.LLVM

    def __str__(self) -> str:
        if self.family == ArchFamily.POWERPC64_BE:
            return f"{self.arch} ({self.endian} endian)"
        return self.arch
