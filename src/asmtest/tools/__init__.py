"""External tool integration for asmtest.

- process: synchronous command execution
- cargo: building revisions and locating their object files
- cargo_config: rustflags from cargo configuration files
- docker: the pinned container the disassemblers run in
- objdump: disassembler selection and invocation
"""

from asmtest.tools.process import ProcessBuilder
from asmtest.tools.docker import DEFAULT_IMAGE, docker_command

__all__ = [
    "ProcessBuilder",
    "DEFAULT_IMAGE",
    "docker_command",
]
