"""Error taxonomy for asmtest.

Every error is fatal for the run: nothing is retried, because the external
tools are assumed to be deterministic for a given input.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class AsmTestError(Exception):
    """Base class for all asmtest failures."""


class ConfigError(AsmTestError):
    """Raised when the configuration file or arguments are invalid."""


class ProcessError(AsmTestError):
    """Raised when an external program is missing or exits unsuccessfully."""

    def __init__(
        self,
        message: str,
        args: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = list(args or [])
        self.returncode = returncode
        self.stderr = stderr
        if stderr:
            message = f"{message}\n{stderr.rstrip()}"
        super().__init__(message)


class BuildError(AsmTestError):
    """Raised when the compiler fails; its diagnostics were already shown."""


class ArtifactNotFoundError(AsmTestError):
    """Raised when build messages contain no object for the manifest under test."""

    def __init__(self, manifest_path: str):
        self.manifest_path = manifest_path
        super().__init__(f"not found .rmeta file in artifacts for {manifest_path}")


class DisassemblyParseError(AsmTestError):
    """Raised when disassembler output has an unsupported shape."""

    def __init__(self, message: str, line: Optional[str] = None):
        self.line = line
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)


class GoldenMismatchError(AsmTestError):
    """Raised in CI mode when the rendering differs from the fixture."""

    def __init__(self, fixture_path: Path):
        self.fixture_path = fixture_path
        super().__init__(
            f"assertion failed for {fixture_path}; please run test locally and commit "
            "resulting changes, or apply the above diff as patch "
            "(e.g., `patch -p1 <<'EOF' ... EOF`)"
        )
