"""Unit tests for architecture families and backend selection."""

import pytest

from asmtest.utils.types import ArchFamily, Backend, TargetArch


class TestArchFamily:
    """Test mapping of target_arch values to families."""

    @pytest.mark.parametrize(
        "arch,family",
        [
            ("x86", ArchFamily.X86),
            ("x86_64", ArchFamily.X86),
            ("aarch64", ArchFamily.ARM),
            ("arm", ArchFamily.ARM),
            ("hexagon", ArchFamily.HEXAGON),
            ("mips64r6", ArchFamily.MIPS),
            ("loongarch64", ArchFamily.LOONGARCH),
            ("riscv64", ArchFamily.OTHER),
        ],
    )
    def test_family(self, arch, family):
        assert TargetArch(arch).family == family

    def test_powerpc64_depends_on_endianness(self):
        """Only big-endian powerpc64 gets its own family."""
        assert TargetArch("powerpc64", "big").family == ArchFamily.POWERPC64_BE
        assert TargetArch("powerpc64", "little").family == ArchFamily.OTHER
        assert TargetArch("powerpc64", "big").is_big_endian

    def test_str(self):
        assert str(TargetArch("x86_64")) == "x86_64"
        assert str(TargetArch("powerpc64", "big")) == "powerpc64 (big endian)"


class TestSelectBackend:
    """Test disassembler backend selection."""

    def test_default_is_llvm(self):
        assert TargetArch("x86_64").select_backend() == Backend.LLVM

    def test_prefer_gnu(self):
        assert TargetArch("aarch64").select_backend(prefer_gnu=True) == Backend.GNU

    @pytest.mark.parametrize("arch", ["avr", "mips", "s390x", "sparc64", "xtensa", "msp430"])
    def test_gnu_only(self, arch):
        """These architectures ignore the preference."""
        assert TargetArch(arch).select_backend(prefer_gnu=False) == Backend.GNU

    def test_llvm_only(self):
        assert TargetArch("hexagon").select_backend(prefer_gnu=True) == Backend.LLVM

    def test_backend_values_are_binaries(self):
        assert Backend.GNU.value == "objdump"
        assert Backend.LLVM.value == "llvm-objdump"
