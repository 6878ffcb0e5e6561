"""YAML configuration for the ``asmtest dump`` command.

Example file::

    rustc_args: [-C, opt-level=3]
    revisions:
      - name: x86_64
        target: x86_64-unknown-linux-gnu
      - name: x86_64_att
        target: x86_64-unknown-linux-gnu
        att_syntax: true
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from asmtest.errors import ConfigError
from asmtest.tester import CommonConfig, Revision, Tester
from asmtest.tools.docker import DEFAULT_IMAGE

COMMON_KEYS = {"cargo_args", "rustc_args", "objdump_args", "att_syntax"}
TESTER_KEYS = COMMON_KEYS | {"prefer_gnu", "docker_image", "revisions"}
REVISION_KEYS = COMMON_KEYS | {"name", "target"}


@dataclass
class AsmTestConfig:
    """A loaded configuration file."""

    tester: Tester
    revisions: list[Revision] = field(default_factory=list)

    def select(self, names: list[str]) -> list[Revision]:
        """Return the revisions named in ``names`` (all when empty), in file order.

        Raises:
            ConfigError: If a name does not match any revision
        """
        if not names:
            return list(self.revisions)
        known = {r.name for r in self.revisions}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ConfigError(f"unknown revision(s): {', '.join(unknown)}")
        return [r for r in self.revisions if r.name in names]


def _common_config(data: Mapping[str, Any], where: str) -> CommonConfig:
    config = CommonConfig()
    for key in ("cargo_args", "rustc_args", "objdump_args"):
        value = data.get(key, [])
        if not isinstance(value, list):
            raise ConfigError(f"{where}: `{key}` must be a list")
        getattr(config, key).extend(str(v) for v in value)
    config.att_syntax = _flag(data, "att_syntax", where)
    return config


def _flag(data: Mapping[str, Any], key: str, where: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ConfigError(f"{where}: `{key}` must be true or false")
    return value


def _check_keys(data: Any, allowed: set[str], where: str) -> None:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where}: expected a mapping")
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(f"{where}: unknown key(s): {', '.join(unknown)}")


def config_from_dict(data: Mapping[str, Any]) -> AsmTestConfig:
    """Build a tester and its revisions from parsed YAML."""
    _check_keys(data, TESTER_KEYS, "config")
    tester = Tester(
        prefer_gnu=_flag(data, "prefer_gnu", "config"),
        docker_image=str(data.get("docker_image", DEFAULT_IMAGE)),
    )
    tester.config = _common_config(data, "config")

    revisions = []
    for i, entry in enumerate(data.get("revisions") or []):
        where = f"revisions[{i}]"
        _check_keys(entry, REVISION_KEYS, where)
        if "name" not in entry or "target" not in entry:
            raise ConfigError(f"{where}: `name` and `target` are required")
        revisions.append(
            Revision(str(entry["name"]), str(entry["target"]), _common_config(entry, where))
        )

    names = [r.name for r in revisions]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"duplicate revision name(s): {', '.join(duplicates)}")
    return AsmTestConfig(tester=tester, revisions=revisions)


def load_config(path: Union[str, Path]) -> AsmTestConfig:
    """Load a configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Configured tester and revisions
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"failed to read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {path}: {e}") from e
    return config_from_dict(data or {})
