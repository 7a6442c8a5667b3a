"""Gradle adapter: module discovery and ``gradle.properties`` write-back.

Module versions live in the root ``gradle.properties``:

    version=1.0.0          # root project ":"
    core.version=2.1.0     # ":core"
    core.api.version=0.3.0 # ":core:api"

The module hierarchy comes either from a pre-generated JSON file or from
running ``gradlew`` with the bundled ``init-hierarchy-deps.gradle.kts``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path

from verse.core.result import Err, Ok, Result
from verse.engine.errors import EngineError, WriteFailed
from verse.engine.model import ModuleGraph
from verse.platform.files import atomic_write_text, read_text_or_none
from verse.platform.process import run as run_process

from .errors import AdapterError
from .hierarchy import ROOT_IDS, parse_hierarchy
from .properties import parse_properties, upsert_properties

__all__ = [
    "GRADLE_PROPERTIES",
    "INIT_SCRIPT_NAME",
    "GradleDetector",
    "GradleVersionWriter",
    "bundled_init_script",
    "is_version_property",
    "module_id_for_property",
    "property_name",
    "read_versions",
]

GRADLE_PROPERTIES = "gradle.properties"
INIT_SCRIPT_NAME = "init-hierarchy-deps.gradle.kts"

_GRADLE_TIMEOUT_SECONDS = 10 * 60.0
_VERSION_KEY = "version"
_VERSION_SUFFIX = ".version"


def property_name(module_id: str) -> str:
    """``:`` -> ``version``, ``:a:b`` -> ``a.b.version``."""
    if module_id in ROOT_IDS:
        return _VERSION_KEY
    return module_id.lstrip(":").replace(":", ".") + _VERSION_SUFFIX


def module_id_for_property(key: str) -> str:
    """Inverse of ``property_name``."""
    if key == _VERSION_KEY:
        return ":"
    return ":" + key.removesuffix(_VERSION_SUFFIX).replace(".", ":")


def is_version_property(key: str) -> bool:
    return key == _VERSION_KEY or key.endswith(_VERSION_SUFFIX)


def bundled_init_script() -> Path:
    return Path(__file__).with_name(INIT_SCRIPT_NAME)


def read_versions(root: Path) -> Result[dict[str, str], AdapterError]:
    """Recorded version per module id, from the root ``gradle.properties``."""
    path = root / GRADLE_PROPERTIES
    try:
        text = read_text_or_none(path)
    except (OSError, UnicodeDecodeError) as e:
        return Err(AdapterError("properties_unreadable", f"cannot read {path}: {e}"))
    if text is None:
        return Err(
            AdapterError(
                "properties_missing",
                f"{GRADLE_PROPERTIES} not found: {path}",
                hint="declare every module version there (e.g. version=1.0.0, core.version=1.0.0)",
            )
        )

    return Ok(
        {
            module_id_for_property(key): value
            for key, value in parse_properties(text).items()
            if is_version_property(key)
        }
    )


def _extract_json(output: str) -> str:
    # gradlew may print warnings before the document even with --quiet.
    start = output.find("{")
    return output[start:] if start >= 0 else output


class GradleDetector:
    """Discover the module graph of a Gradle build."""

    def __init__(self, root: Path, *, hierarchy_file: Path | None = None) -> None:
        self.root = root
        self.hierarchy_file = hierarchy_file

    def hierarchy_json(self) -> Result[str, AdapterError]:
        if self.hierarchy_file is not None:
            path = self.hierarchy_file if self.hierarchy_file.is_absolute() else self.root / self.hierarchy_file
            try:
                text = read_text_or_none(path)
            except (OSError, UnicodeDecodeError) as e:
                return Err(AdapterError("hierarchy_invalid", f"cannot read {path}: {e}"))
            if text is None:
                return Err(AdapterError("hierarchy_missing", f"hierarchy file not found: {path}"))
            return Ok(text)

        gradlew = self.root / ("gradlew.bat" if sys.platform == "win32" else "gradlew")
        if not gradlew.exists():
            return Err(
                AdapterError(
                    "hierarchy_missing",
                    f"gradle wrapper not found: {gradlew}",
                    hint="pass --hierarchy-file with a pre-generated hierarchy",
                )
            )

        cmd = [
            str(gradlew),
            "--quiet",
            "--console=plain",
            "--init-script",
            str(bundled_init_script()),
            "hierarchy",
        ]
        result = run_process(cmd, cwd=self.root, timeout=_GRADLE_TIMEOUT_SECONDS)
        match result:
            case Err(e):
                return Err(
                    AdapterError(
                        "gradle_failed",
                        f"gradle hierarchy task failed ({e}): {e.detail}",
                    )
                )
            case Ok(stdout):
                return Ok(_extract_json(stdout))

    def detect(self) -> Result[ModuleGraph, AdapterError | EngineError]:
        raw = self.hierarchy_json()
        if isinstance(raw, Err):
            return raw

        try:
            document: object = json.loads(raw.value)
        except json.JSONDecodeError as e:
            return Err(AdapterError("hierarchy_invalid", f"invalid hierarchy JSON: {e}"))

        versions = read_versions(self.root)
        if isinstance(versions, Err):
            return versions

        return parse_hierarchy(document, versions.value, self.root)


class GradleVersionWriter:
    """Write staged versions back to ``gradle.properties`` in one rewrite."""

    def __init__(self, root: Path) -> None:
        self.path = root / GRADLE_PROPERTIES

    def write_versions(self, updates: Mapping[str, str]) -> Result[None, WriteFailed]:
        module_ids = tuple(sorted(updates))
        try:
            current = read_text_or_none(self.path) or ""
            content = upsert_properties(
                current,
                {property_name(module_id): version for module_id, version in updates.items()},
            )
            atomic_write_text(self.path, content)
        except (OSError, UnicodeDecodeError) as e:
            return Err(WriteFailed(f"{self.path}: {e}", module_ids=module_ids))
        return Ok(None)
