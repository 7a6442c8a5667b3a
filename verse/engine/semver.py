"""Semantic versions with SemVer 2.0.0 precedence.

Only the parts of the grammar the engine relies on are exposed: parsing,
rendering, precedence comparison and the standard core increment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from verse.engine.bump import BumpType

__all__ = [
    "Version",
    "compare_versions",
    "is_valid_prerelease",
    "parse_version",
]


_NUM = r"0|[1-9]\d*"
_PRE_ID = r"(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
_BUILD_ID = r"[0-9a-zA-Z-]+"

_SEMVER_RE = re.compile(
    rf"^(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})"
    rf"(?:-(?P<pre>{_PRE_ID}(?:\.{_PRE_ID})*))?"
    rf"(?:\+(?P<build>{_BUILD_ID}(?:\.{_BUILD_ID})*))?$"
)
_PRERELEASE_RE = re.compile(rf"{_PRE_ID}(?:\.{_PRE_ID})*")


@dataclass(frozen=True, slots=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += "-" + ".".join(self.prerelease)
        if self.build:
            out += "+" + ".".join(self.build)
        return out

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def core(self) -> Version:
        return Version(self.major, self.minor, self.patch)

    def with_prerelease(self, prerelease: tuple[str, ...]) -> Version:
        return replace(self, prerelease=prerelease)

    def with_build(self, build: tuple[str, ...]) -> Version:
        return replace(self, build=build)

    def bump(self, kind: BumpType) -> Version:
        """Standard increment; any pre-release or build suffix is dropped."""
        match kind:
            case BumpType.MAJOR:
                return Version(self.major + 1, 0, 0)
            case BumpType.MINOR:
                return Version(self.major, self.minor + 1, 0)
            case BumpType.PATCH:
                return Version(self.major, self.minor, self.patch + 1)
            case BumpType.NONE:
                return self
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def precedence_key(self) -> tuple[object, ...]:
        # A release sorts after every pre-release of the same core.
        if not self.prerelease:
            pre: tuple[object, ...] = (1,)
        else:
            pre = (0, *(_identifier_key(p) for p in self.prerelease))
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: Version) -> bool:
        return compare_versions(self, other) < 0

    def __le__(self, other: Version) -> bool:
        return compare_versions(self, other) <= 0

    def __gt__(self, other: Version) -> bool:
        return compare_versions(self, other) > 0

    def __ge__(self, other: Version) -> bool:
        return compare_versions(self, other) >= 0


def _identifier_key(ident: str) -> tuple[int, int | str]:
    if ident.isdigit():
        return (0, int(ident))
    return (1, ident)


def parse_version(raw: str) -> Version | None:
    m = _SEMVER_RE.match(raw.strip())
    if m is None:
        return None
    pre = m.group("pre")
    build = m.group("build")
    return Version(
        int(m.group("major")),
        int(m.group("minor")),
        int(m.group("patch")),
        tuple(pre.split(".")) if pre else (),
        tuple(build.split(".")) if build else (),
    )


def is_valid_prerelease(identifier: str) -> bool:
    """True for a dot-separated SemVer pre-release such as ``rc`` or ``beta.2``."""
    return _PRERELEASE_RE.fullmatch(identifier) is not None


def compare_versions(a: Version, b: Version) -> int:
    """Return -1, 0 or 1; build metadata never affects the result."""
    ka = a.precedence_key()
    kb = b.precedence_key()
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0
