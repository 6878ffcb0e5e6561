"""Integration tests for the dump loop with recorded build and disassembly steps."""

from pathlib import Path

import pytest

from asmtest import GoldenComparator, GoldenOutcome, Revision, Tester
from asmtest.errors import BuildError, ConfigError, GoldenMismatchError
from asmtest.tools import cargo, objdump
from asmtest.utils.types import Backend


RAW_X86_64 = (
    "\n"
    "lib.o:\tfile format elf64-x86-64\n"
    "\n"
    "Disassembly of section .text.functionA:\n"
    "\n"
    "0000000000000000 <functionA>:\n"
    "       0: c3                           \tret\n"
    "\n"
    "Disassembly of section .text.functionB:\n"
    "\n"
    "0000000000000000 <functionB>:\n"
    "       0: eb fe                        \tjmp\t0x0 <functionB>\n"
)

EXPECTED_X86_64 = (
    "functionA:\n"
    "        ret\n"
    "\n"
    "functionB:\n"
    "0:\n"
    "        jmp" + " " * 15 + "0b\n"
    "\n"
)

CFG = {
    "x86_64-unknown-linux-gnu": 'target_arch="x86_64"\ntarget_endian="little"\n',
    "mips64-unknown-linux-gnuabi64": 'target_arch="mips64"\ntarget_endian="big"\n',
}


class Toolchain:
    """Records build and disassembly calls made by the dump loop."""

    def __init__(self, tmp_path):
        self.manifest_dir = tmp_path / "asm-test"
        self.manifest_dir.mkdir()
        self.target_dir = tmp_path / "target"
        self.built = []
        self.disassembled = []
        self.rustflags = []
        self.fail_build = set()

    def locate_project(self, manifest_path):
        return str(Path(manifest_path).resolve())

    def metadata(self, manifest_path):
        return cargo.Metadata(target_directory=self.target_dir)

    def build(self, cx, base_args, base_rest_args):
        if cx.revision.name in self.fail_build:
            raise BuildError(f"failed to build revision {cx.revision.name}")
        self.built.append((cx.revision.name, list(base_args), list(base_rest_args)))
        self.rustflags.append(cx.tcx.cargo_config.rustflags(cx.target_name, {}))
        cx.obj_path = self.target_dir / cx.target_name / "release" / "deps" / "asm_test-0123.o"
        return cx.obj_path

    def disassemble(self, cx):
        self.disassembled.append((cx.revision.name, cx.target, cx.backend))
        return RAW_X86_64


@pytest.fixture
def toolchain(tmp_path, monkeypatch):
    tc = Toolchain(tmp_path)
    (tmp_path / "cargo-home").mkdir()
    monkeypatch.setenv("CARGO_HOME", str(tmp_path / "cargo-home"))
    monkeypatch.setattr(cargo, "locate_project", tc.locate_project)
    monkeypatch.setattr(cargo, "metadata", tc.metadata)
    monkeypatch.setattr(cargo, "rustc_is_nightly", lambda: True)
    monkeypatch.setattr(cargo, "print_cfg", lambda target: CFG[target])
    monkeypatch.setattr(cargo, "build", tc.build)
    monkeypatch.setattr(objdump, "disassemble", tc.disassemble)
    return tc


@pytest.fixture
def local():
    return GoldenComparator(ci=False, show_diff=lambda path, actual: None)


class TestDump:
    """Test dumping revisions end to end."""

    def test_first_run_writes_fixture(self, toolchain, local):
        outcomes = Tester().dump(
            toolchain.manifest_dir,
            "asm",
            [Revision("x86_64", "x86_64-unknown-linux-gnu")],
            comparator=local,
        )

        assert outcomes == {"x86_64": GoldenOutcome.UPDATED}
        fixture = toolchain.manifest_dir / "asm" / "x86_64.asm"
        assert fixture.read_text() == EXPECTED_X86_64

    def test_second_run_matches(self, toolchain, local):
        revisions = [Revision("x86_64", "x86_64-unknown-linux-gnu")]
        Tester().dump(toolchain.manifest_dir, "asm", revisions, comparator=local)
        outcomes = Tester().dump(toolchain.manifest_dir, "asm", revisions, comparator=local)

        assert outcomes == {"x86_64": GoldenOutcome.MATCH}

    def test_raw_copy_saved(self, toolchain, local):
        Tester().dump(
            toolchain.manifest_dir,
            "asm",
            [Revision("x86_64", "x86_64-unknown-linux-gnu")],
            comparator=local,
        )

        raw = toolchain.target_dir / "tests" / "asmtest" / "raw" / "asm" / "x86_64.asm"
        assert raw.read_text() == RAW_X86_64

    def test_revisions_in_order(self, toolchain, local):
        revisions = [
            Revision("x86_64", "x86_64-unknown-linux-gnu"),
            Revision("mips64", "mips64-unknown-linux-gnuabi64"),
        ]
        outcomes = Tester(prefer_gnu=False).dump(
            toolchain.manifest_dir, "asm", revisions, comparator=local
        )

        assert list(outcomes) == ["x86_64", "mips64"]
        assert [d[0] for d in toolchain.disassembled] == ["x86_64", "mips64"]
        assert toolchain.disassembled[0][2] == Backend.LLVM
        assert toolchain.disassembled[1][2] == Backend.GNU
        assert toolchain.disassembled[1][1].is_big_endian

    def test_prefer_gnu(self, toolchain, local):
        Tester(prefer_gnu=True).dump(
            toolchain.manifest_dir,
            "asm",
            [Revision("x86_64", "x86_64-unknown-linux-gnu")],
            comparator=local,
        )
        assert toolchain.disassembled[0][2] == Backend.GNU

    def test_shared_cargo_args(self, toolchain, local):
        tester = Tester().cargo_args(["--features", "std", "--", "-C", "panic=abort"])
        tester.dump(
            toolchain.manifest_dir,
            "asm",
            [Revision("x86_64", "x86_64-unknown-linux-gnu")],
            comparator=local,
        )

        _, args, rest_args = toolchain.built[0]
        assert args[:2] == ["rustc", "--release"]
        assert args[-2:] == ["--features", "std"]
        assert rest_args == ["--", "--emit=obj", "-C", "panic=abort"]

    def test_build_failure_stops_run(self, toolchain, local):
        toolchain.fail_build.add("x86_64")
        revisions = [
            Revision("x86_64", "x86_64-unknown-linux-gnu"),
            Revision("mips64", "mips64-unknown-linux-gnuabi64"),
        ]

        with pytest.raises(BuildError):
            Tester().dump(toolchain.manifest_dir, "asm", revisions, comparator=local)
        assert toolchain.disassembled == []

    def test_ci_mismatch(self, toolchain):
        fixture = toolchain.manifest_dir / "asm" / "x86_64.asm"
        fixture.parent.mkdir()
        fixture.write_text("stale\n")
        ci = GoldenComparator(ci=True, show_diff=lambda path, actual: None)

        with pytest.raises(GoldenMismatchError):
            Tester().dump(
                toolchain.manifest_dir,
                "asm",
                [Revision("x86_64", "x86_64-unknown-linux-gnu")],
                comparator=ci,
            )
        assert fixture.read_text() == "stale\n"

    def test_dump_dir_outside_manifest(self, toolchain, local):
        with pytest.raises(ConfigError, match="not inside"):
            Tester().dump(toolchain.manifest_dir, "../elsewhere", [], comparator=local)

    def test_crate_cargo_config(self, toolchain, local):
        config = toolchain.manifest_dir / ".cargo" / "config.toml"
        config.parent.mkdir()
        config.write_text('[target.x86_64-unknown-linux-gnu]\nrustflags = ["-C", "target-cpu=native"]\n')

        Tester().dump(
            toolchain.manifest_dir,
            "asm",
            [Revision("x86_64", "x86_64-unknown-linux-gnu")],
            comparator=local,
        )
        assert toolchain.rustflags == [["-C", "target-cpu=native"]]
