from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import typer

from verse import __version__
from verse.core.config import DEFAULT_CONFIG_PATH, VerseConfig, config_to_dict
from verse.core.errors import ErrorCode
from verse.core.result import Err
from verse.git.repository import Repository
from verse.output.console import ConsoleProtocol, RichConsole
from verse.output.errors import print_run_error, run_error_exit_code
from verse.platform.files import atomic_write_text
from verse.services.runner import RunnerOptions, VersionRunner

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def build_console(*, stderr: bool = False) -> ConsoleProtocol:
    return RichConsole(stderr=stderr)


def _exit(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def execute_run(options: RunnerOptions, console: ConsoleProtocol, *, json_output: bool = False) -> None:
    """Run the versioning pipeline and translate the outcome to an exit code."""
    result = VersionRunner(options, console).run()
    if isinstance(result, Err):
        print_run_error(result.error, console)
        raise typer.Exit(code=run_error_exit_code(result.error))

    if json_output:
        typer.echo(json.dumps(result.value.to_dict(), indent=2))


_REPO_ROOT = typer.Option(Path("."), "--repo-root", help="Repository root.")
_CONFIG = typer.Option(None, "--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH}).")
_HIERARCHY = typer.Option(
    None,
    "--hierarchy-file",
    help="Pre-generated hierarchy JSON (skips running gradlew).",
)
_PRERELEASE = typer.Option(False, "--prerelease", help="Produce pre-release versions.")
_PRERELEASE_ID = typer.Option("alpha", "--prerelease-id", help="Pre-release identifier (e.g. alpha, rc.1).")
_BUMP_UNCHANGED = typer.Option(
    False, "--bump-unchanged", help="In pre-release mode, also bump modules without changes."
)
_BUILD_METADATA = typer.Option(False, "--build-metadata", help="Append +<short sha> to every version.")
_TIMESTAMP_VERSIONS = typer.Option(
    False, "--timestamp-versions", help="Use <id>.<date>.<time> pre-release identifiers."
)
_GRADLE_SNAPSHOT = typer.Option(False, "--gradle-snapshot", help="Append -SNAPSHOT to every module version.")


@app.command()
def run(
    repo_root: Path = _REPO_ROOT,
    config: Path | None = _CONFIG,
    release_branch: list[str] = typer.Option(
        ["main"], "--release-branch", help="Branch allowed to release (repeatable)."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan and report only."),
    prerelease: bool = _PRERELEASE,
    prerelease_id: str = _PRERELEASE_ID,
    bump_unchanged: bool = _BUMP_UNCHANGED,
    build_metadata: bool = _BUILD_METADATA,
    timestamp_versions: bool = _TIMESTAMP_VERSIONS,
    gradle_snapshot: bool = _GRADLE_SNAPSHOT,
    push_changes: bool = typer.Option(False, "--push-changes", help="Commit and push the release."),
    push_tags: bool = typer.Option(False, "--push-tags", help="Create and push name@version tags."),
    hierarchy_file: Path | None = _HIERARCHY,
    changelog: bool = typer.Option(True, "--changelog/--no-changelog", help="Write CHANGELOG.md files."),
    json_output: bool = typer.Option(False, "--json", help="Print the run result as JSON."),
) -> None:
    """Compute, write and optionally publish new module versions."""
    options = RunnerOptions(
        repo_root=repo_root.resolve(),
        config_path=config,
        release_branches=tuple(release_branch),
        dry_run=dry_run,
        prerelease_mode=prerelease,
        prerelease_id=prerelease_id,
        bump_unchanged=bump_unchanged,
        add_build_metadata=build_metadata,
        timestamp_versions=timestamp_versions,
        gradle_snapshot=gradle_snapshot,
        push_changes=push_changes,
        push_tags=push_tags,
        hierarchy_file=hierarchy_file,
        changelog=changelog,
    )
    execute_run(options, build_console(stderr=json_output), json_output=json_output)


@app.command()
def plan(
    repo_root: Path = _REPO_ROOT,
    config: Path | None = _CONFIG,
    prerelease: bool = _PRERELEASE,
    prerelease_id: str = _PRERELEASE_ID,
    bump_unchanged: bool = _BUMP_UNCHANGED,
    build_metadata: bool = _BUILD_METADATA,
    timestamp_versions: bool = _TIMESTAMP_VERSIONS,
    gradle_snapshot: bool = _GRADLE_SNAPSHOT,
    hierarchy_file: Path | None = _HIERARCHY,
    json_output: bool = typer.Option(False, "--json", help="Print the plan as JSON."),
) -> None:
    """Show the versions a run would produce (dry run on the current branch)."""
    root = repo_root.resolve()

    branch = Repository(root).current_branch()
    options = RunnerOptions(
        repo_root=root,
        config_path=config,
        release_branches=(branch,) if branch else (),
        dry_run=True,
        prerelease_mode=prerelease,
        prerelease_id=prerelease_id,
        bump_unchanged=bump_unchanged,
        add_build_metadata=build_metadata,
        timestamp_versions=timestamp_versions,
        gradle_snapshot=gradle_snapshot,
        hierarchy_file=hierarchy_file,
        changelog=False,
    )
    execute_run(options, build_console(stderr=json_output), json_output=json_output)


@app.command("init-config")
def init_config(
    path: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--path", help="Where to write the config."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Write the default versioning config."""
    if path.exists() and not force:
        _exit(f"{path} already exists (use --force to overwrite)", code=ErrorCode.USER_ERROR)
    try:
        atomic_write_text(path, json.dumps(config_to_dict(VerseConfig()), indent=2) + "\n")
    except OSError as e:
        _exit(f"cannot write {path}: {e}", code=ErrorCode.IO_ERROR)
    typer.echo(f"wrote {path}")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Semantic versioning for multi-module repositories."""


def main() -> None:
    app()
