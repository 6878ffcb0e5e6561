"""Docker invocation for the disassembler and diff tools.

The disassemblers run from a pinned image so that fixture contents do not
depend on the binutils/LLVM versions installed on the host.
"""

from __future__ import annotations

import os
from pathlib import Path

from asmtest.tools.process import ProcessBuilder

DEFAULT_IMAGE = "ghcr.io/taiki-e/objdump:binutils-2.45.1-llvm-21"


def current_user() -> str:
    """Return ``uid:gid`` for files written from inside the container."""
    if hasattr(os, "getuid"):
        return f"{os.getuid()}:{os.getgid()}"
    return "1000:1000"


def docker_command(workdir: Path, user: str, image: str = DEFAULT_IMAGE) -> ProcessBuilder:
    """Build a ``docker run`` prefix with ``workdir`` mounted at the same path.

    Args:
        workdir: Host directory to mount and run in
        user: ``uid:gid`` to run as
        image: Image providing ``objdump``, ``llvm-objdump`` and ``git``

    Returns:
        Command to which the tool and its arguments are appended
    """
    return ProcessBuilder(
        "docker",
        "run",
        "--rm",
        "--init",
        "-i",
        "--user",
        user,
        "--volume",
        f"{workdir}:{workdir}",
        "--workdir",
        workdir,
        image,
    )
