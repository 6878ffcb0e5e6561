"""Cargo configuration relevant to building revisions.

Only the rustflags settings are read. Configuration files are discovered the
way cargo does it: ``.cargo/config.toml`` (or the legacy ``.cargo/config``) in
the start directory and every parent, then ``$CARGO_HOME/config.toml``.
Deeper files take precedence; arrays from several files are concatenated with
the higher-precedence values last.

Refs:
- https://doc.rust-lang.org/cargo/reference/config.html
"""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from asmtest.errors import ConfigError
from asmtest.utils.logging import get_logger

log = get_logger(__name__)


def cargo_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    environ = os.environ if environ is None else environ
    if "CARGO_HOME" in environ:
        return Path(environ["CARGO_HOME"])
    return Path.home() / ".cargo"


def config_files(cwd: Path, environ: Optional[Mapping[str, str]] = None) -> list[Path]:
    """Return the cargo config files that apply in ``cwd``, highest precedence first."""
    dirs = [cwd, *cwd.parents]
    home = cargo_home(environ)
    files = []
    for d in dirs:
        found = _config_in(d / ".cargo")
        if found is not None:
            files.append(found)
    home_config = _config_in(home)
    if home_config is not None and home_config not in files:
        files.append(home_config)
    return files


def _config_in(directory: Path) -> Optional[Path]:
    # cargo reads the extension-less file when both exist
    for name in ("config", "config.toml"):
        path = directory / name
        if path.is_file():
            return path
    return None


def _flags(value: Any, where: str) -> list[str]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"{where}: rustflags must be a string or an array of strings")


@dataclass
class CargoConfig:
    """Rustflags from cargo configuration files.

    Attributes:
        build_rustflags: ``build.rustflags``, None when unset
        target_rustflags: ``target.<triple>.rustflags`` per triple
    """

    build_rustflags: Optional[list[str]] = None
    target_rustflags: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def load(cls, cwd: Path, environ: Optional[Mapping[str, str]] = None) -> "CargoConfig":
        """Load and merge the config files that apply in ``cwd``.

        Raises:
            ConfigError: If a file cannot be read or has invalid rustflags
        """
        config = cls()
        for path in reversed(config_files(Path(cwd).resolve(), environ)):
            log.debug(f"reading cargo config {path}")
            try:
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            except OSError as e:
                raise ConfigError(f"failed to read {path}: {e}") from e
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"failed to parse {path}: {e}") from e
            config.merge(data, str(path))
        return config

    def merge(self, data: Mapping[str, Any], where: str = "cargo config") -> None:
        """Merge one parsed config file of higher precedence into this one."""
        build = data.get("build") or {}
        if "rustflags" in build:
            flags = _flags(build["rustflags"], f"{where}: build")
            self.build_rustflags = (self.build_rustflags or []) + flags

        for triple, table in (data.get("target") or {}).items():
            if not isinstance(table, Mapping) or "rustflags" not in table:
                continue
            if triple.startswith("cfg("):
                log.debug(f"{where}: ignoring rustflags for `{triple}`")
                continue
            flags = _flags(table["rustflags"], f"{where}: target.{triple}")
            self.target_rustflags[triple] = self.target_rustflags.get(triple, []) + flags

    def rustflags(self, triple: str, environ: Optional[Mapping[str, str]] = None) -> list[str]:
        """Return the rustflags cargo would use for ``triple``.

        The first source that is set wins: ``CARGO_ENCODED_RUSTFLAGS``,
        ``RUSTFLAGS``, ``target.<triple>.rustflags`` (overridden by
        ``CARGO_TARGET_<TRIPLE>_RUSTFLAGS``), ``build.rustflags`` (overridden by
        ``CARGO_BUILD_RUSTFLAGS``).
        """
        environ = os.environ if environ is None else environ
        encoded = environ.get("CARGO_ENCODED_RUSTFLAGS")
        if encoded is not None:
            return [f for f in encoded.split("\x1f") if f]
        if "RUSTFLAGS" in environ:
            return environ["RUSTFLAGS"].split()

        key = re.sub(r"[-.]", "_", triple).upper()
        target_env = f"CARGO_TARGET_{key}_RUSTFLAGS"
        if target_env in environ:
            return environ[target_env].split()
        if triple in self.target_rustflags:
            return list(self.target_rustflags[triple])

        if "CARGO_BUILD_RUSTFLAGS" in environ:
            return environ["CARGO_BUILD_RUSTFLAGS"].split()
        return list(self.build_rustflags or [])
