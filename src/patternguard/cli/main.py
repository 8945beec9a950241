"""patternguard CLI: run the hooks, scan files, list and validate profiles."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from patternguard import BUILTIN_PROFILES, PatternGuard, PatternGuardConfigError
from patternguard.adapters.claude_hooks import JsonHookAdapter, TextReportAdapter
from patternguard.profile import Profile, load_builtin
from patternguard.yaml_engine import compile_profile, load_profile

_console = Console(highlight=False)
_err_console = Console(stderr=True, highlight=False)

# Exit code for configuration problems. The host reads 2 as "deny".
EXIT_CONFIG_ERROR = 1

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_profile(value: str) -> Profile:
    """Resolve --profile as a built-in name or a path to a YAML bundle."""
    if value in BUILTIN_PROFILES:
        return load_builtin(value)
    path = Path(value)
    if not path.is_file():
        raise PatternGuardConfigError(
            f"Profile '{value}' is neither a built-in ({', '.join(BUILTIN_PROFILES)}) nor a file"
        )
    bundle, bundle_hash = load_profile(path)
    return compile_profile(bundle, bundle_hash)


def _build_guard(profile_opt: str | None) -> tuple[PatternGuard, Profile | None]:
    """Build the guard, exiting with a config error if the profile is unusable."""
    try:
        if profile_opt is None:
            return PatternGuard(), None
        return PatternGuard(), _resolve_profile(profile_opt)
    except (PatternGuardConfigError, OSError) as e:
        _err_console.print(f"[red]Failed to load profile: {escape(str(e))}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)


def _emit(output) -> None:
    if output.stdout:
        click.echo(output.stdout, nl=False)
    if output.stderr:
        click.echo(output.stderr, nl=False, err=True)
    sys.exit(output.exit_code)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging on stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """patternguard: pre-write pattern detection hooks."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
def version() -> None:
    """Show the installed patternguard version."""
    from patternguard import __version__

    click.echo(f"patternguard {__version__}")


# ---------------------------------------------------------------------------
# hook
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--profile", "profile_opt", default=None, help="Built-in profile name or YAML bundle path.")
def hook(profile_opt: str | None) -> None:
    """Run as a PreToolUse hook: JSON payload on stdin, JSON verdict on stderr.

    Exit 2 denies the write; exit 0 allows it, with an advisory message
    when something was found.
    """
    guard, profile = _build_guard(profile_opt)
    raw = click.get_binary_stream("stdin").read()
    _emit(JsonHookAdapter(guard, profile).handle(raw))


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("file_path", required=False, default="")
@click.argument("content", required=False, default="")
@click.option(
    "--profile", "profile_opt", default="sql", show_default=True, help="Built-in profile name or YAML bundle path."
)
def report(file_path: str, content: str, profile_opt: str) -> None:
    """Plain-text advisory report for FILE_PATH with CONTENT. Always exits 0."""
    guard, profile = _build_guard(profile_opt)
    _emit(TextReportAdapter(guard, profile).handle(file_path, content))


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path())
@click.option("--profile", "profile_opt", default=None, help="Built-in profile name or YAML bundle path.")
@click.option("--json", "json_output", is_flag=True, default=False, help="Output results as JSON.")
def scan(files: tuple[str, ...], profile_opt: str | None, json_output: bool) -> None:
    """Dry-run the hook over files on disk. Exit 1 if any file would be denied."""
    guard, profile = _build_guard(profile_opt)

    any_denied = False
    any_unreadable = False
    results: list[dict] = []

    for file_path in files:
        path = Path(file_path)
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            any_unreadable = True
            if json_output:
                results.append({"file_path": file_path, "error": str(e)})
            else:
                _err_console.print(f"[red]  {escape(file_path)} — {escape(str(e))}[/red]")
            continue

        result = guard.evaluate(file_path, content, profile=profile)
        any_denied = any_denied or result.denied

        if json_output:
            results.append({"file_path": file_path, **result.to_dict()})
            continue

        if result.profile is None:
            _console.print(f"[dim]  {escape(file_path)} — no profile[/dim]")
        elif profile is not None and not profile.matches_path(file_path):
            _console.print(f"[dim]  {escape(file_path)} — skipped (not a {escape(profile.name)} file)[/dim]")
        elif not result.findings:
            _console.print(f"[green]  {escape(file_path)}[/green] — clean ({result.profile})")
        else:
            style = "red bold" if result.denied else "yellow bold"
            label = "DENY" if result.denied else "WARN"
            _console.print(
                f"[{style}]{label}[/{style}] {escape(file_path)} — "
                f"{len(result.findings)} finding(s) ({result.profile})"
            )
            for finding in result.findings:
                _console.print(f"  [yellow]{escape(finding.rule_id)}[/yellow]: {escape(finding.message)}")

    if json_output:
        click.echo(json.dumps(results, indent=2, ensure_ascii=False))

    sys.exit(1 if any_denied or any_unreadable else 0)


# ---------------------------------------------------------------------------
# profiles
# ---------------------------------------------------------------------------


@cli.command()
def profiles() -> None:
    """List the built-in profiles."""
    table = Table(title="Built-in profiles")
    table.add_column("Name", style="bold")
    table.add_column("Language")
    table.add_column("Extensions")
    table.add_column("Rules", justify="right")
    table.add_column("Blocking")
    table.add_column("Version")

    for name in BUILTIN_PROFILES:
        p = load_builtin(name)
        table.add_row(
            p.name,
            p.language,
            " ".join(p.extensions),
            str(len(p.rules)),
            "yes" if p.blocking else "no",
            p.version,
        )

    _console.print(table)


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path())
def validate(files: tuple[str, ...]) -> None:
    """Validate one or more profile bundle files."""
    has_errors = False

    for file_path in files:
        path = Path(file_path)
        if not path.exists():
            _err_console.print(f"[red]  {escape(str(path))} — file not found[/red]")
            has_errors = True
            continue

        try:
            bundle, bundle_hash = load_profile(path)
            compiled = compile_profile(bundle, bundle_hash)
        except PatternGuardConfigError as e:
            _err_console.print(f"[red]  {escape(path.name)} — {escape(str(e))}[/red]")
            has_errors = True
            continue

        counts: dict[str, int] = {}
        for rule in compiled.rules:
            counts[rule.severity.value] = counts.get(rule.severity.value, 0) + 1
        breakdown = ", ".join(f"{v} {k}" for k, v in sorted(counts.items())) or "no rules"
        _console.print(
            f"[green]  {escape(path.name)}[/green] — profile {escape(compiled.name)}, "
            f"{len(compiled.rules)} rules ({breakdown})"
        )

    sys.exit(1 if has_errors else 0)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
