"""Disassembly collaborator: runs objdump or llvm-objdump inside docker.

Refs:
- https://llvm.org/docs/CommandGuide/llvm-objdump.html
- https://sourceware.org/binutils/docs/binutils/objdump.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from asmtest.tools.process import ProcessBuilder
from asmtest.utils.types import ArchFamily

if TYPE_CHECKING:
    from asmtest.tester import RevisionContext


def objdump_command(cx: "RevisionContext") -> ProcessBuilder:
    """Build the disassembler command line for a built revision."""
    objdump = cx.tcx.docker_cmd(cx.obj_path.parent)
    objdump.extend([cx.backend.value, "-Cd", "--disassembler-color=off", cx.obj_path])

    family = cx.target.family
    if family == ArchFamily.MIPS:
        objdump.extend(["-M", "reg-names=numeric"])
    elif family == ArchFamily.X86:
        if cx.tcx.tester.config.att_syntax or cx.revision.config.att_syntax:
            objdump.extend(["-M", "att"])
        else:
            objdump.extend(["-M", "intel"])

    objdump.extend(cx.tcx.tester.config.objdump_args)
    objdump.extend(cx.revision.config.objdump_args)
    return objdump


def disassemble(cx: "RevisionContext") -> str:
    """Disassemble the object file of a built revision.

    Returns:
        Raw disassembler output
    """
    return objdump_command(cx).read()
