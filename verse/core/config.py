"""Typed configuration loading and validation.

The versioning policy lives in ``.versioningrc.json`` at the repository root
(TOML is accepted too, chosen by file suffix):

    {
      "defaultBump": "patch",
      "commitTypes": {"feat": "minor", "fix": "patch", "docs": "ignore"},
      "dependencyRules": {
        "onMajorOfDependency": "minor",
        "onMinorOfDependency": "patch",
        "onPatchOfDependency": "none"
      }
    }

User values are merged over the defaults. Invalid bump tokens are rejected
here, before the engine ever runs.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from verse.engine.model import (
    IGNORE,
    BumpType,
    CommitRule,
    DependencyRule,
    Policy,
    default_commit_types,
    parse_bump,
)

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "VerseConfig",
    "config_to_dict",
    "load_config",
    "load_config_or_default",
]

DEFAULT_CONFIG_PATH = ".versioningrc.json"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded, parsed or validated."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class VerseConfig:
    default_bump: BumpType = BumpType.PATCH
    commit_types: Mapping[str, CommitRule] = field(default_factory=default_commit_types)
    dependency_rules: DependencyRule = field(default_factory=DependencyRule)

    def policy(self) -> Policy:
        return Policy(
            default_bump=self.default_bump,
            commit_type_bump=dict(self.commit_types),
            dependency_rule=self.dependency_rules,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[VerseConfig, str]:
        """Validate a parsed config document and merge it over defaults."""
        default_bump = BumpType.PATCH
        raw_default = data.get("defaultBump")
        if raw_default is not None:
            parsed = parse_bump(raw_default) if isinstance(raw_default, str) else None
            if parsed is None:
                return Err(f"invalid defaultBump: {raw_default!r}")
            default_bump = parsed

        commit_types = default_commit_types()
        if "commitTypes" in data:
            user_types = get_table(data, "commitTypes")
            if user_types is None:
                return Err("commitTypes must be a table")
            for commit_type, token in user_types.items():
                rule = _parse_commit_rule(token)
                if rule is None:
                    return Err(f"invalid bump type for commit type '{commit_type}': {token!r}")
                commit_types[commit_type] = rule

        rules = DependencyRule()
        if "dependencyRules" in data:
            user_rules = get_table(data, "dependencyRules")
            if user_rules is None:
                return Err("dependencyRules must be a table")
            resolved: dict[str, BumpType] = {
                "onMajorOfDependency": rules.on_major,
                "onMinorOfDependency": rules.on_minor,
                "onPatchOfDependency": rules.on_patch,
            }
            for key in resolved:
                if key not in user_rules:
                    continue
                token = get_str(user_rules, key)
                bump = parse_bump(token) if token is not None else None
                if bump is None:
                    return Err(f"invalid {key}: {user_rules[key]!r}")
                resolved[key] = bump
            rules = DependencyRule(
                on_major=resolved["onMajorOfDependency"],
                on_minor=resolved["onMinorOfDependency"],
                on_patch=resolved["onPatchOfDependency"],
            )

        return Ok(cls(default_bump=default_bump, commit_types=commit_types, dependency_rules=rules))


def _parse_commit_rule(token: object) -> CommitRule | None:
    if not isinstance(token, str):
        return None
    if token.strip().lower() == IGNORE:
        return IGNORE
    return parse_bump(token)


def config_to_dict(config: VerseConfig) -> StrDict:
    """Render a config back to the JSON document layout."""
    return {
        "defaultBump": str(config.default_bump),
        "commitTypes": {k: str(v) for k, v in config.commit_types.items()},
        "dependencyRules": {
            "onMajorOfDependency": str(config.dependency_rules.on_major),
            "onMinorOfDependency": str(config.dependency_rules.on_minor),
            "onPatchOfDependency": str(config.dependency_rules.on_patch),
        },
    }


def _parse_document(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a JSON or TOML config file into a string-keyed table."""
    import tomllib

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    obj: object
    if path.suffix == ".toml":
        try:
            obj = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    else:
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            return Err(ConfigError(f"Invalid JSON syntax: {e}", path=path))

    data = as_str_dict(obj)
    if data is None:
        return Err(ConfigError("Config root must be an object", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[VerseConfig, ConfigError]:
    """Load and validate configuration.

    Args:
        path: Path to ``.versioningrc.json`` (or a ``.toml`` file)

    Returns:
        Ok(VerseConfig) on success, Err(ConfigError) on failure
    """
    parsed = _parse_document(path)
    if isinstance(parsed, Err):
        return parsed

    config = VerseConfig.from_dict(parsed.value)
    if isinstance(config, Err):
        return Err(ConfigError(f"Invalid config: {config.error}", path=path))
    return Ok(config.value)


def load_config_or_default(path: Path) -> Result[VerseConfig, ConfigError]:
    """Like ``load_config`` but a missing file yields the defaults.

    A file that exists but does not validate is still an error.
    """
    if not path.exists():
        return Ok(VerseConfig())
    return load_config(path)
