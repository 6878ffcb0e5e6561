"""Unit tests for golden-file comparison."""

import pytest

from asmtest.errors import GoldenMismatchError
from asmtest.golden import GoldenComparator, GoldenOutcome, is_ci


class RecordingDiff:
    """Stands in for the git diff presentation."""

    def __init__(self):
        self.calls = []

    def __call__(self, path, actual):
        self.calls.append((path, actual))


@pytest.fixture
def show_diff():
    return RecordingDiff()


class TestIsCi:
    """Test CI detection."""

    def test_set(self):
        assert is_ci({"CI": "true"})

    def test_empty_value_counts(self):
        assert is_ci({"CI": ""})

    def test_unset(self):
        assert not is_ci({"GITHUB_ACTIONS": "true"})


class TestLocalMode:
    """Test fixture updates outside CI."""

    def test_bootstrap(self, tmp_path, show_diff):
        """A missing fixture is written and the run succeeds."""
        fixture = tmp_path / "asm" / "x86_64.asm"
        comparator = GoldenComparator(ci=False, show_diff=show_diff)

        assert comparator.compare(fixture, "f:\n        ret\n\n") == GoldenOutcome.UPDATED
        assert fixture.read_text() == "f:\n        ret\n\n"
        assert show_diff.calls == []

    def test_match(self, tmp_path, show_diff):
        fixture = tmp_path / "x86_64.asm"
        fixture.write_bytes(b"f:\n        ret\n\n")
        comparator = GoldenComparator(ci=False, show_diff=show_diff)

        assert comparator.compare(fixture, "f:\n        ret\n\n") == GoldenOutcome.MATCH

    def test_update(self, tmp_path, show_diff):
        fixture = tmp_path / "x86_64.asm"
        fixture.write_bytes(b"old\n")
        comparator = GoldenComparator(ci=False, show_diff=show_diff)

        assert comparator.compare(fixture, b"new\n") == GoldenOutcome.UPDATED
        assert fixture.read_bytes() == b"new\n"

    def test_bytes_compared_exactly(self, tmp_path, show_diff):
        fixture = tmp_path / "x86_64.asm"
        fixture.write_bytes(b"f:\r\n")
        comparator = GoldenComparator(ci=False, show_diff=show_diff)

        assert comparator.compare(fixture, "f:\n") == GoldenOutcome.UPDATED


class TestCiMode:
    """Test strict comparison in CI."""

    def test_mismatch_fails(self, tmp_path, show_diff):
        fixture = tmp_path / "x86_64.asm"
        fixture.write_bytes(b"old\n")
        comparator = GoldenComparator(ci=True, show_diff=show_diff)

        with pytest.raises(GoldenMismatchError) as exc_info:
            comparator.compare(fixture, "new\n")

        assert exc_info.value.fixture_path == fixture
        assert fixture.read_bytes() == b"old\n"
        assert show_diff.calls == [(fixture, b"new\n")]

    def test_missing_fixture_fails(self, tmp_path, show_diff):
        """The fixture is created empty, then compared."""
        fixture = tmp_path / "x86_64.asm"
        comparator = GoldenComparator(ci=True, show_diff=show_diff)

        with pytest.raises(GoldenMismatchError):
            comparator.compare(fixture, "f:\n")
        assert fixture.read_bytes() == b""

    def test_match_passes(self, tmp_path, show_diff):
        fixture = tmp_path / "x86_64.asm"
        fixture.write_bytes(b"f:\n")
        comparator = GoldenComparator(ci=True, show_diff=show_diff)

        assert comparator.compare(fixture, "f:\n") == GoldenOutcome.MATCH
        assert show_diff.calls == []

    def test_ci_from_environment(self, monkeypatch):
        monkeypatch.setenv("CI", "1")
        assert GoldenComparator().ci is True
        monkeypatch.delenv("CI")
        assert GoldenComparator().ci is False
