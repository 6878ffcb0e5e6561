"""
asmtest: golden-file tests for generated assembly

Builds a crate for a set of target revisions, disassembles the resulting
object files and compares a normalized rendering of the disassembly with
fixtures checked into the repository.

Key Components:
    - normalization: Raw disassembly -> stable, reviewable text
    - golden: Fixture comparison (update locally, fail in CI)
    - tools: cargo, docker and objdump integration
    - tester: Revision configuration and the dump loop

Example:
    >>> from asmtest import Tester, Revision
    >>> Tester().dump("tests/asm-test", "asm", [Revision("x86_64", "x86_64-unknown-linux-gnu")])
"""

__version__ = "0.1.0"

from asmtest.errors import (
    AsmTestError,
    ArtifactNotFoundError,
    BuildError,
    ConfigError,
    DisassemblyParseError,
    GoldenMismatchError,
    ProcessError,
)
from asmtest.golden import GoldenComparator, GoldenOutcome
from asmtest.normalization import DisassemblyNormalizer, normalize_disassembly
from asmtest.tester import CommonConfig, Revision, Tester
from asmtest.utils.types import ArchFamily, Backend, TargetArch

__all__ = [
    # Configuration
    "Tester",
    "Revision",
    "CommonConfig",
    # Normalization
    "DisassemblyNormalizer",
    "normalize_disassembly",
    # Fixtures
    "GoldenComparator",
    "GoldenOutcome",
    # Types
    "ArchFamily",
    "Backend",
    "TargetArch",
    # Errors
    "AsmTestError",
    "ArtifactNotFoundError",
    "BuildError",
    "ConfigError",
    "DisassemblyParseError",
    "GoldenMismatchError",
    "ProcessError",
]
