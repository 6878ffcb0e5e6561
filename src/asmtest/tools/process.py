"""Synchronous external process invocation.

All external tools (cargo, rustc, docker, git) are run through
:class:`ProcessBuilder`. There are no timeouts: a hanging tool blocks the run.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import Iterable, Optional, Union

from asmtest.errors import ProcessError
from asmtest.utils.logging import get_logger

log = get_logger(__name__)

Arg = Union[str, Path]


class ProcessBuilder:
    """A command line with extra environment variables.

    Example:
        version = ProcessBuilder("rustc", "-vV").read()
    """

    def __init__(self, *args: Arg):
        self.args: list[str] = [str(a) for a in args]
        self.env: dict[str, str] = {}

    def arg(self, arg: Arg) -> "ProcessBuilder":
        self.args.append(str(arg))
        return self

    def extend(self, args: Iterable[Arg]) -> "ProcessBuilder":
        self.args.extend(str(a) for a in args)
        return self

    def set_env(self, key: str, value: str) -> "ProcessBuilder":
        self.env[key] = value
        return self

    def copy(self) -> "ProcessBuilder":
        new = ProcessBuilder(*self.args)
        new.env = dict(self.env)
        return new

    def read(self) -> str:
        """Run the command and return its stdout with trailing newlines removed.

        Raises:
            ProcessError: If the program is missing or exits unsuccessfully
        """
        result = self._run(stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        if result.returncode != 0:
            raise ProcessError(
                f"process didn't exit successfully: `{self}` ({_describe(result.returncode)})",
                self.args,
                result.returncode,
                result.stderr,
            )
        return result.stdout.rstrip("\n")

    def run(self) -> None:
        """Run the command with inherited stdio.

        Raises:
            ProcessError: If the program is missing or exits unsuccessfully
        """
        result = self._run()
        if result.returncode != 0:
            raise ProcessError(
                f"process didn't exit successfully: `{self}` ({_describe(result.returncode)})",
                self.args,
                result.returncode,
            )

    def status(self) -> int:
        """Run the command with inherited stdio and return its exit status."""
        return self._run().returncode

    def run_with_input(self, data: bytes) -> int:
        """Run the command feeding ``data`` on stdin; return the exit status."""
        return self._run(input=data).returncode

    def _run(self, **kwargs) -> subprocess.CompletedProcess:
        if not self.args:
            raise ProcessError("empty command line")
        log.debug(f"running `{self}`")
        env = {**os.environ, **self.env} if self.env else None
        try:
            return subprocess.run(self.args, env=env, check=False, **kwargs)
        except FileNotFoundError:
            raise ProcessError(f"could not execute process `{self}` (never executed)", self.args) from None

    def __str__(self) -> str:
        parts = [f"{k}={shlex.quote(v)}" for k, v in self.env.items()]
        parts.extend(shlex.quote(a) for a in self.args)
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"ProcessBuilder({str(self)!r})"


def _describe(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status: {returncode}"
