"""Build-system independent module hierarchy.

The hierarchy document maps module ids to their directory and the modules
affected when they change:

    {
      ":":     {"path": "/repo",      "affectedSubprojects": [":core", ":core:api"]},
      ":core": {"path": "/repo/core", "affectedSubprojects": [":core:api"]},
      ":core:api": {"path": "/repo/core/api", "affectedSubprojects": []}
    }

Entries may also carry ``type`` (``root``/``submodule``), ``name`` and
``version``; versions otherwise come from the caller (e.g. gradle.properties).
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from verse.core.result import Err, Ok, Result
from verse.core.structured import as_str_dict, get_str, get_str_list
from verse.engine.errors import EngineError, InvalidVersion
from verse.engine.model import Module, ModuleGraph, ModuleKind
from verse.engine.semver import parse_version

from .errors import AdapterError

__all__ = ["ROOT_IDS", "module_name", "parse_hierarchy", "relative_module_path"]

ROOT_IDS = frozenset({":", ""})


def module_name(module_id: str) -> str:
    """Tag-friendly name: ``:`` -> ``root``, ``:core:api`` -> ``core/api``."""
    if module_id in ROOT_IDS:
        return "root"
    return module_id.lstrip(":").replace(":", "/")


def relative_module_path(raw: str, root: Path) -> str:
    """Repository-relative POSIX path (``.`` for the root itself)."""
    path = Path(raw)
    if path.is_absolute():
        try:
            path = path.resolve().relative_to(root.resolve())
        except ValueError:
            return path.as_posix()
    rel = path.as_posix()
    return rel if rel not in ("", ".") else "."


def parse_hierarchy(
    obj: object,
    versions: Mapping[str, str],
    root: Path,
) -> Result[ModuleGraph, AdapterError | EngineError]:
    """Turn a parsed hierarchy document into a ``ModuleGraph``.

    Args:
        obj: Parsed JSON document
        versions: Recorded version per module id (entry ``version`` wins)
        root: Repository root, used to relativise absolute paths
    """
    document = as_str_dict(obj)
    if document is None:
        return Err(AdapterError("hierarchy_invalid", "hierarchy must be a JSON object"))

    modules: list[Module] = []
    for module_id in sorted(document):
        entry = as_str_dict(document[module_id])
        if entry is None:
            return Err(AdapterError("hierarchy_invalid", f"hierarchy entry for {module_id!r} must be an object"))

        raw_path = get_str(entry, "path")
        if raw_path is None:
            return Err(AdapterError("hierarchy_invalid", f"hierarchy entry for {module_id!r} has no path"))

        affects = get_str_list(entry, "affectedSubprojects") if "affectedSubprojects" in entry else []
        if affects is None:
            return Err(
                AdapterError(
                    "hierarchy_invalid",
                    f"affectedSubprojects of {module_id!r} must be a list of module ids",
                )
            )

        raw_version = get_str(entry, "version") or versions.get(module_id)
        if raw_version is None:
            return Err(
                AdapterError(
                    "hierarchy_invalid",
                    f"no version recorded for module {module_id!r}",
                )
            )
        version = parse_version(raw_version)
        if version is None:
            return Err(InvalidVersion(module_id, raw_version))

        kind: ModuleKind = "root" if module_id in ROOT_IDS else "submodule"
        if get_str(entry, "type") == "root":
            kind = "root"

        modules.append(
            Module(
                id=module_id,
                name=get_str(entry, "name") or module_name(module_id),
                path=relative_module_path(raw_path, root),
                kind=kind,
                version=version,
                affects=frozenset(a for a in affects if a != module_id),
            )
        )

    return ModuleGraph.build(modules)
