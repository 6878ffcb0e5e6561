"""Build collaborator: compiles a revision with cargo and locates its object file.

The crate is built with ``cargo rustc --release ... -- --emit=obj``. The
object file is not reported in cargo's JSON messages, so its path is derived
from the hash of the ``.rmeta`` artifact that is.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

from asmtest.errors import ArtifactNotFoundError, BuildError, ConfigError, ProcessError
from asmtest.tools.process import ProcessBuilder
from asmtest.utils.logging import get_logger
from asmtest.utils.types import TargetArch

if TYPE_CHECKING:
    from asmtest.tester import RevisionContext

log = get_logger(__name__)

CARGO = os.environ.get("CARGO", "cargo")
RUSTC = os.environ.get("RUSTC", "rustc")

# Keep every function in the object even when bodies are identical
MERGE_FUNCTIONS_DISABLED = ["-Z", "merge-functions=disabled"]


@dataclass
class Metadata:
    """The subset of ``cargo metadata`` output asmtest needs."""

    target_directory: Path
    build_directory: Optional[Path] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Metadata":
        build_directory = data.get("build_directory")
        return cls(
            target_directory=Path(data["target_directory"]),
            build_directory=Path(build_directory) if build_directory else None,
        )


@dataclass
class Artifact:
    """A ``compiler-artifact`` message from ``--message-format=json``."""

    package_id: str
    manifest_path: str
    filenames: list[str] = field(default_factory=list)

    @property
    def crate_name(self) -> str:
        # path+file:///path/to/my-crate#0.1.0 -> my_crate
        file_name = Path(self.package_id).name
        name, sep, _ = file_name.partition("#")
        if not sep:
            raise ArtifactNotFoundError(self.package_id)
        return name.replace("-", "_")


def locate_project(manifest_path: Path) -> str:
    """Return the absolute path of the manifest cargo resolves for ``manifest_path``."""
    return ProcessBuilder(
        CARGO, "locate-project", "--message-format", "plain", "--manifest-path", manifest_path
    ).read()


def metadata(manifest_path: str) -> Metadata:
    cmd = ProcessBuilder(
        CARGO, "metadata", "--format-version=1", "--no-deps", "--manifest-path", manifest_path
    )
    output = cmd.read()
    try:
        return Metadata.from_json(json.loads(output))
    except (ValueError, KeyError) as e:
        raise ConfigError(f"failed to parse output from {cmd}: {e}") from e


def rustc_is_nightly() -> bool:
    """Return True when the active rustc accepts unstable flags natively."""
    for line in ProcessBuilder(RUSTC, "-vV").read().splitlines():
        if line.startswith("release:"):
            return "nightly" in line or "dev" in line
    return False


def print_cfg(target: str) -> str:
    return ProcessBuilder(RUSTC, "--print", "cfg", "--target", target).read()


def target_arch_from_cfg(cfg: str) -> TargetArch:
    """Extract ``target_arch`` and ``target_endian`` from ``--print cfg`` output.

    Raises:
        ConfigError: If the output has no ``target_arch``
    """
    values = {}
    for line in cfg.splitlines():
        m = re.fullmatch(r'(target_arch|target_endian)="([^"]*)"', line.strip())
        if m:
            values[m.group(1)] = m.group(2)
    if "target_arch" not in values:
        raise ConfigError(f"target_arch not found in rustc cfg output:\n{cfg}")
    return TargetArch(values["target_arch"], values.get("target_endian", "little"))


def target_triple_name(target: str) -> str:
    """Return the directory name cargo uses for ``target``.

    Custom targets given as ``path/to/my-target.json`` use the file stem.
    """
    if target.endswith(".json"):
        return Path(target).stem
    return target


def split_at_separator(args: list[str], rest_args: list[str], extra: list[str]) -> None:
    """Append ``extra`` to ``args``; everything after a ``--`` goes to ``rest_args``."""
    target = args
    for arg in extra:
        if arg == "--":
            target = rest_args
        else:
            target.append(arg)


def find_artifact(messages: str, manifest_path: str) -> tuple[str, Artifact]:
    """Find the library artifact of ``manifest_path`` in cargo JSON messages.

    Returns:
        The artifact hash and the artifact

    Raises:
        ArtifactNotFoundError: If no message carries an ``.rmeta`` for the manifest
    """
    for line in messages.splitlines():
        if not line.strip():
            continue
        try:
            message = json.loads(line)
            artifact = Artifact(
                package_id=message["package_id"],
                manifest_path=message["manifest_path"],
                filenames=list(message["filenames"]),
            )
        except (ValueError, KeyError, TypeError):
            continue
        if artifact.manifest_path != manifest_path:
            continue
        for filename in artifact.filenames:
            if filename.endswith(".rmeta"):
                _, sep, artifact_hash = filename[: -len(".rmeta")].rpartition("-")
                if sep:
                    return artifact_hash, artifact
    raise ArtifactNotFoundError(manifest_path)


def object_path(meta: Metadata, target_name: str, artifact_hash: str, artifact: Artifact) -> Path:
    base = (meta.build_directory or meta.target_directory).resolve()
    return base / target_name / "release" / "deps" / f"{artifact.crate_name}-{artifact_hash}.o"


def build(cx: "RevisionContext", base_args: list[str], base_rest_args: list[str]) -> Path:
    """Build one revision and return the path of its object file.

    Args:
        cx: Revision being processed; ``cx.obj_path`` is set on success
        base_args: ``cargo`` arguments shared by all revisions
        base_rest_args: Arguments after ``--`` shared by all revisions

    Raises:
        BuildError: If compilation fails (cargo's diagnostics are shown first)
        ArtifactNotFoundError: If the object file cannot be located
    """
    tcx = cx.tcx
    rustflags = tcx.cargo_config.rustflags(cx.target_name)
    rustflags += MERGE_FUNCTIONS_DISABLED
    rustflags += tcx.tester.config.rustc_args
    rustflags += cx.revision.config.rustc_args

    args = list(base_args) + ["--target", cx.revision.target]
    rest_args = list(base_rest_args)
    split_at_separator(args, rest_args, cx.revision.config.cargo_args)

    def cargo() -> ProcessBuilder:
        cmd = ProcessBuilder(CARGO).set_env("CARGO_ENCODED_RUSTFLAGS", "\x1f".join(rustflags))
        if not tcx.nightly:
            # -Z merge-functions=disabled is unstable
            cmd.set_env("RUSTC_BOOTSTRAP", "1")
        return cmd

    try:
        messages = cargo().extend(args).arg("--message-format=json").extend(rest_args).read()
    except ProcessError as e:
        # Show error from cargo to the user
        log.debug(f"build failed: {e}")
        cargo().extend(args).extend(rest_args).status()
        raise BuildError(f"failed to build revision {cx.revision.name}") from e

    artifact_hash, artifact = find_artifact(messages, tcx.manifest_path)
    cx.obj_path = object_path(tcx.metadata, cx.target_name, artifact_hash, artifact)
    log.debug(f"object file for {cx.revision.name}: {cx.obj_path}")
    return cx.obj_path
