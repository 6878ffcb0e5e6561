"""Revision configuration and the dump loop.

Example:
    >>> tester = Tester().rustc_args(["-C", "opt-level=3"])
    >>> tester.dump(
    ...     "tests/asm-test",
    ...     "asm",
    ...     [
    ...         Revision("x86_64", "x86_64-unknown-linux-gnu"),
    ...         Revision("aarch64", "aarch64-unknown-linux-gnu").objdump_args(["--no-leading-addr"]),
    ...     ],
    ... )

Each revision is built, disassembled, normalized and compared to
``<manifest_dir>/<dump_dir>/<revision>.asm`` before the next one starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from tqdm import tqdm

from asmtest.errors import ConfigError
from asmtest.golden import GoldenComparator, GoldenOutcome
from asmtest.normalization import DisassemblyNormalizer
from asmtest.tools import cargo, objdump
from asmtest.tools.cargo_config import CargoConfig
from asmtest.tools.docker import DEFAULT_IMAGE, current_user, docker_command
from asmtest.tools.process import ProcessBuilder
from asmtest.utils.logging import LogContext, get_logger
from asmtest.utils.types import Backend, TargetArch

log = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass
class CommonConfig:
    """Settings shared by :class:`Tester` (all revisions) and :class:`Revision`."""

    cargo_args: list[str] = field(default_factory=list)
    rustc_args: list[str] = field(default_factory=list)
    objdump_args: list[str] = field(default_factory=list)
    att_syntax: bool = False


class _ConfigBuilder:
    config: CommonConfig

    def cargo_args(self, args: Iterable[str]):
        """Add command line arguments for ``cargo rustc``.

        A ``--`` passes the following arguments to rustc. See the output of
        ``cargo rustc --help`` for acceptable arguments.
        """
        self.config.cargo_args.extend(args)
        return self

    def rustc_args(self, args: Iterable[str]):
        """Add rustflags to set."""
        self.config.rustc_args.extend(args)
        return self

    def objdump_args(self, args: Iterable[str]):
        """Add command line arguments for objdump."""
        self.config.objdump_args.extend(args)
        return self

    def att_syntax(self):
        """Use AT&T syntax in x86/x86_64 assemblies.

        By default, Intel syntax is used to match Rust inline assembly.
        """
        self.config.att_syntax = True
        return self


class Revision(_ConfigBuilder):
    """A named build of the test crate for one target.

    Arguments added here are merged with the ones on :class:`Tester`.
    """

    def __init__(self, name: str, target: str, config: Optional[CommonConfig] = None):
        self.name = name
        self.target = target
        self.config = config or CommonConfig()

    def __repr__(self) -> str:
        return f"Revision({self.name!r}, {self.target!r})"


class Tester(_ConfigBuilder):
    """Dumps and checks assemblies for a set of revisions.

    Args:
        prefer_gnu: Use GNU objdump for architectures that do not force a backend
        docker_image: Image providing the disassemblers
    """

    def __init__(self, prefer_gnu: bool = False, docker_image: str = DEFAULT_IMAGE):
        self.config = CommonConfig()
        self.prefer_gnu = prefer_gnu
        self.docker_image = docker_image

    def dump(
        self,
        manifest_dir: PathLike,
        dump_dir: PathLike,
        revisions: Sequence[Revision],
        comparator: Optional[GoldenComparator] = None,
    ) -> dict[str, GoldenOutcome]:
        """Dump assemblies for the given revisions.

        Args:
            manifest_dir: Directory containing the test crate's Cargo.toml
            dump_dir: Fixture directory, resolved relative to the manifest directory
            revisions: Revisions to process, in order
            comparator: Fixture comparison policy (default: from the environment)

        Returns:
            Outcome per revision name
        """
        return dump(self, Path(manifest_dir), Path(dump_dir), revisions, comparator)


@dataclass
class TesterContext:
    """State shared by all revisions of one :meth:`Tester.dump` call."""

    tester: Tester
    manifest_path: str
    metadata: cargo.Metadata
    nightly: bool
    user: str
    cargo_config: CargoConfig = field(default_factory=CargoConfig)

    @classmethod
    def new(cls, tester: Tester, manifest_dir: Path) -> "TesterContext":
        manifest_path = cargo.locate_project(manifest_dir / "Cargo.toml")
        return cls(
            tester=tester,
            manifest_path=manifest_path,
            metadata=cargo.metadata(manifest_path),
            nightly=cargo.rustc_is_nightly(),
            user=current_user(),
            cargo_config=CargoConfig.load(Path(manifest_path).parent),
        )

    def docker_cmd(self, workdir: Path) -> ProcessBuilder:
        return docker_command(workdir, self.user, self.tester.docker_image)


@dataclass
class RevisionContext:
    """State of one revision while it is built and disassembled."""

    tcx: TesterContext
    revision: Revision
    target_name: str
    target: TargetArch
    backend: Backend
    obj_path: Path = field(default_factory=Path)


def cargo_base_args(tcx: TesterContext) -> tuple[list[str], list[str]]:
    """Return the cargo arguments before and after ``--`` shared by all revisions."""
    args = ["rustc", "--release", "--manifest-path", tcx.manifest_path]
    rest_args = ["--", "--emit=obj"]
    cargo.split_at_separator(args, rest_args, tcx.tester.config.cargo_args)
    return args, rest_args


def dump(
    tester: Tester,
    manifest_dir: Path,
    dump_dir: Path,
    revisions: Sequence[Revision],
    comparator: Optional[GoldenComparator] = None,
) -> dict[str, GoldenOutcome]:
    tcx = TesterContext.new(tester, manifest_dir)
    manifest_dir = Path(tcx.manifest_path).parent.resolve()
    dump_dir = (manifest_dir / dump_dir).resolve()
    try:
        relative_dump_dir = dump_dir.relative_to(manifest_dir)
    except ValueError:
        raise ConfigError(f"dump directory {dump_dir} is not inside {manifest_dir}") from None
    raw_dump_dir = tcx.metadata.target_directory / "tests" / "asmtest" / "raw" / relative_dump_dir
    if comparator is None:
        comparator = GoldenComparator(command_prefix=lambda: tcx.docker_cmd(Path.cwd()))

    base_args, base_rest_args = cargo_base_args(tcx)
    dump_dir.mkdir(parents=True, exist_ok=True)
    raw_dump_dir.mkdir(parents=True, exist_ok=True)

    outcomes = {}
    for revision in tqdm(revisions, desc="Dumping revisions", unit="rev"):
        with LogContext(revision=revision.name):
            log.info(f"testing revision {revision.name}")
            target = cargo.target_arch_from_cfg(cargo.print_cfg(revision.target))
            cx = RevisionContext(
                tcx=tcx,
                revision=revision,
                target_name=cargo.target_triple_name(revision.target),
                target=target,
                backend=target.select_backend(tester.prefer_gnu),
            )

            cargo.build(cx, base_args, base_rest_args)

            raw = objdump.disassemble(cx)
            # Save raw assembly to target directory for debugging
            (raw_dump_dir / f"{revision.name}.asm").write_text(raw, encoding="utf-8")
            out = DisassemblyNormalizer(cx.target, cx.backend).normalize(raw)

            outcomes[revision.name] = comparator.compare(dump_dir / f"{revision.name}.asm", out)
    return outcomes
