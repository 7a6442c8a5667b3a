from __future__ import annotations

import pytest

from verse.engine.bump import BumpType, merge_bumps, parse_bump
from verse.engine.semver import Version, compare_versions, is_valid_prerelease, parse_version


class TestParseVersion:
    def test_plain(self) -> None:
        assert parse_version("1.2.3") == Version(1, 2, 3)

    def test_prerelease_and_build(self) -> None:
        v = parse_version("1.2.3-alpha.1+abc.5")
        assert v == Version(1, 2, 3, ("alpha", "1"), ("abc", "5"))

    def test_snapshot_suffix_is_a_prerelease(self) -> None:
        v = parse_version("1.0.0-SNAPSHOT")
        assert v is not None
        assert v.prerelease == ("SNAPSHOT",)

    def test_strips_surrounding_whitespace(self) -> None:
        assert parse_version("  0.1.0\n") == Version(0, 1, 0)

    @pytest.mark.parametrize(
        "raw",
        ["", "1.2", "v1.2.3", "01.2.3", "1.2.3-", "1.2.3-01", "1.2.3+", "latest"],
    )
    def test_rejects_invalid(self, raw: str) -> None:
        assert parse_version(raw) is None

    def test_str_roundtrip(self) -> None:
        for raw in ("0.0.0", "1.2.3-alpha.0", "2.0.0-rc.1+build.7", "1.0.0-alpha.0-SNAPSHOT"):
            v = parse_version(raw)
            assert v is not None
            assert str(v) == raw


class TestPrereleaseIdentifier:
    @pytest.mark.parametrize("identifier", ["alpha", "rc.1", "beta-2", "0", "x.7.z.92", "0a"])
    def test_valid(self, identifier: str) -> None:
        assert is_valid_prerelease(identifier)
        assert parse_version(f"1.2.4-{identifier}.0") is not None

    @pytest.mark.parametrize("identifier", ["", "01", "rc_1", "beta 1", "rc..1", "alpha.", "rc.1\n"])
    def test_invalid(self, identifier: str) -> None:
        assert not is_valid_prerelease(identifier)


class TestBump:
    def test_major_resets_minor_and_patch(self) -> None:
        assert Version(1, 2, 3).bump(BumpType.MAJOR) == Version(2, 0, 0)

    def test_minor_resets_patch(self) -> None:
        assert Version(1, 2, 3).bump(BumpType.MINOR) == Version(1, 3, 0)

    def test_patch(self) -> None:
        assert Version(1, 2, 3).bump(BumpType.PATCH) == Version(1, 2, 4)

    def test_none_is_identity(self) -> None:
        v = Version(1, 2, 3, ("beta", "2"))
        assert v.bump(BumpType.NONE) is v

    def test_bump_drops_suffixes(self) -> None:
        v = Version(1, 2, 3, ("alpha", "0"), ("sha",))
        assert v.bump(BumpType.PATCH) == Version(1, 2, 4)


class TestPrecedence:
    def test_release_after_prerelease(self) -> None:
        assert Version(1, 0, 0, ("alpha",)) < Version(1, 0, 0)

    def test_numeric_identifiers_compare_numerically(self) -> None:
        assert Version(1, 0, 0, ("alpha", "2")) < Version(1, 0, 0, ("alpha", "10"))

    def test_numeric_before_alphanumeric(self) -> None:
        assert Version(1, 0, 0, ("1",)) < Version(1, 0, 0, ("alpha",))

    def test_shorter_prerelease_first(self) -> None:
        assert Version(1, 0, 0, ("alpha",)) < Version(1, 0, 0, ("alpha", "1"))

    def test_build_metadata_ignored(self) -> None:
        assert compare_versions(Version(1, 0, 0, (), ("a",)), Version(1, 0, 0, (), ("b",))) == 0

    def test_semver_spec_ordering(self) -> None:
        ordered = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [parse_version(r) for r in ordered]
        assert all(v is not None for v in versions)
        for a, b in zip(versions, versions[1:]):
            assert a is not None and b is not None
            assert compare_versions(a, b) == -1
            assert compare_versions(b, a) == 1


class TestBumpType:
    def test_total_order(self) -> None:
        assert BumpType.NONE < BumpType.PATCH < BumpType.MINOR < BumpType.MAJOR

    def test_merge_is_max(self) -> None:
        assert merge_bumps(BumpType.PATCH, BumpType.MAJOR, BumpType.MINOR) == BumpType.MAJOR
        assert merge_bumps() == BumpType.NONE

    def test_merge_is_associative_and_commutative(self) -> None:
        for a in BumpType:
            for b in BumpType:
                assert merge_bumps(a, b) == merge_bumps(b, a)
                for c in BumpType:
                    assert merge_bumps(merge_bumps(a, b), c) == merge_bumps(a, merge_bumps(b, c))

    def test_parse_bump(self) -> None:
        assert parse_bump("Minor") == BumpType.MINOR
        assert parse_bump(" none ") == BumpType.NONE
        assert parse_bump("huge") is None

    def test_str(self) -> None:
        assert str(BumpType.MAJOR) == "major"
