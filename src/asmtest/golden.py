"""Golden-file comparison of normalized disassembly.

Locally, a mismatching fixture is rewritten so the change shows up in
``git diff`` for review. In CI (``CI`` set in the environment) the fixture is
left alone, a diff is printed and the run fails.
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from asmtest.errors import GoldenMismatchError
from asmtest.tools.process import ProcessBuilder
from asmtest.utils.logging import get_logger

log = get_logger(__name__)


class GoldenOutcome(str, Enum):
    """Result of comparing a rendering with its fixture."""

    MATCH = "match"
    UPDATED = "updated"


def is_ci(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when running under continuous integration."""
    environ = os.environ if environ is None else environ
    return "CI" in environ


def wants_color(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when diff output should be colorized."""
    environ = os.environ if environ is None else environ
    return "GITHUB_ACTIONS" in environ or sys.stdout.isatty()


class GoldenComparator:
    """Compares renderings against fixture files.

    Args:
        ci: Fail on mismatch instead of updating; defaults to :func:`is_ci`
        command_prefix: Factory for the command that ``git`` runs under
            (e.g. a ``docker run`` invocation); defaults to running ``git``
            directly
        show_diff: Replaces the git-based diff presentation
    """

    def __init__(
        self,
        ci: Optional[bool] = None,
        command_prefix: Optional[Callable[[], ProcessBuilder]] = None,
        show_diff: Optional[Callable[[Path, bytes], None]] = None,
    ):
        self.ci = is_ci() if ci is None else ci
        self._command_prefix = command_prefix or ProcessBuilder
        self._show_diff = show_diff or self._git_diff

    def compare(self, fixture_path: Path, actual: Union[str, bytes]) -> GoldenOutcome:
        """Compare ``actual`` with the fixture at ``fixture_path``.

        A missing fixture is created empty first, so the first run of a new
        revision always goes through the mismatch path.

        Raises:
            GoldenMismatchError: On mismatch in CI mode
        """
        if isinstance(actual, str):
            actual = actual.encode("utf-8")
        fixture_path = Path(fixture_path)
        if not fixture_path.is_file():
            fixture_path.parent.mkdir(parents=True, exist_ok=True)
            fixture_path.write_bytes(b"")

        expected = fixture_path.read_bytes()
        if expected == actual:
            return GoldenOutcome.MATCH

        if self.ci:
            self._show_diff(fixture_path, actual)
            log.error(f"{fixture_path} does not match the generated assembly")
            raise GoldenMismatchError(fixture_path)

        fixture_path.write_bytes(actual)
        log.info(f"updated {fixture_path}")
        return GoldenOutcome.UPDATED

    def _git_diff(self, fixture_path: Path, actual: bytes) -> None:
        cmd = self._command_prefix().extend(["git", "--no-pager"])
        if wants_color():
            cmd.extend(["-c", "color.ui=always"])
        cmd.extend(["diff", "--no-index", "--", fixture_path, "-"])
        status = cmd.run_with_input(actual)
        # git diff exits with 1 when the inputs differ
        if status == 0:
            log.warning(f"`{cmd}` reported no difference")
