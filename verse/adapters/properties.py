"""Minimal Java ``.properties`` reading and in-place updating.

Only ``key=value`` / ``key: value`` lines are understood; comments (``#``,
``!``), blank lines and anything else are preserved verbatim on rewrite.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

__all__ = ["parse_properties", "upsert_properties"]

_PROPERTY_RE = re.compile(r"^\s*(?P<key>[^=:#!\s][^=:]*?)\s*[=:]\s*(?P<value>.*?)\s*$")


def _is_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(("#", "!"))


def parse_properties(text: str) -> dict[str, str]:
    """Key/value pairs in file order; later duplicates win."""
    out: dict[str, str] = {}
    for line in text.splitlines():
        if _is_comment(line):
            continue
        match = _PROPERTY_RE.match(line)
        if match:
            out[match.group("key")] = match.group("value")
    return out


def upsert_properties(text: str, updates: Mapping[str, str]) -> str:
    """Return ``text`` with every key of ``updates`` set.

    Existing keys are rewritten in place as ``key=value``; missing keys are
    appended in sorted order.
    """
    seen: set[str] = set()
    lines = text.splitlines()
    for i, line in enumerate(lines):
        if _is_comment(line):
            continue
        match = _PROPERTY_RE.match(line)
        if match and match.group("key") in updates:
            key = match.group("key")
            lines[i] = f"{key}={updates[key]}"
            seen.add(key)

    lines.extend(f"{key}={updates[key]}" for key in sorted(updates) if key not in seen)
    return "\n".join(lines) + "\n" if lines else ""
