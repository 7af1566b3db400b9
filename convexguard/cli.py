# convexguard — Convex authentication convention linter
# Copyright (C) 2026 convexguard contributors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""convexguard CLI — Typer entry point.

Commands:
- convexguard scan <path>  — Lint a Convex project (or a single file)
- convexguard rules        — List rules and their configured level
- convexguard version      — Show the version

Exit codes: 0 clean (warnings allowed), 1 at least one error-level
diagnostic, 2 bad invocation (missing path, unreadable policy).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from convexguard import __version__
from convexguard.models.diagnostics import FileResult
from convexguard.models.report import LintReport
from convexguard.models.rules import Policy
from convexguard.policy.config import load_policy
from convexguard.reporter.console_out import console, print_report, print_rules
from convexguard.reporter.json_out import to_canonical_json, write_report
from convexguard.scanner.coordinator import discover_files, get_lintable_files
from convexguard.scanner.engine import RULES
from convexguard.scanner.js_analyzer import lint_file

app = typer.Typer(
    name="convexguard",
    help=(
        "convexguard: enforce authenticatedQuery/authenticatedMutation usage in Convex code. "
        "Run 'convexguard <command> --help' for flags."
    ),
    add_completion=False,
)

logger = logging.getLogger("convexguard")


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _load_policy_or_exit(config: Optional[str]) -> Policy:
    try:
        return load_policy(config)
    except FileNotFoundError:
        console.print(f"[red]Error: Policy file not found: {config}[/red]")
        raise typer.Exit(code=2)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error: Invalid policy {config or '(bundled default)'}:[/red]\n{e}")
        raise typer.Exit(code=2)


def _lint_target(target: Path, display: str, policy: Policy) -> LintReport:
    """Lint a single file or every lintable file under a directory."""
    if target.is_file():
        result = lint_file(target, Path(display).as_posix(), policy)
        return LintReport.from_results([result], scan_target=str(target), manifest_source="file")

    all_files, manifest_source = discover_files(target)
    lintable = get_lintable_files(all_files)
    logger.info("Linting %d of %d files", len(lintable), len(all_files))

    results: list[FileResult] = []
    for rel_path in lintable:
        results.append(lint_file(target / rel_path, rel_path.as_posix(), policy))

    return LintReport.from_results(
        results, scan_target=str(target), manifest_source=manifest_source
    )


@app.command()
def scan(
    path: str = typer.Argument(".", help="Directory or file to lint (default: current directory)"),
    output_json: bool = typer.Option(False, "--json", help="Print the report as JSON to stdout (for CI)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show source lines and clean files"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress all output except errors"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Policy YAML (default: bundled policy)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Also write the JSON report to this path"),
) -> None:
    """Lint Convex functions for authentication convention violations.

    Flags direct query()/mutation() calls and ctx.auth.getUserIdentity()
    inside authenticated handlers. Exits 1 when any error is found.
    """
    _configure_logging(verbose=verbose, quiet=quiet or output_json)
    policy = _load_policy_or_exit(config)

    target = Path(path).resolve()
    if not target.exists():
        console.print(f"[red]Error: Path not found: {target}[/red]")
        raise typer.Exit(code=2)

    report = _lint_target(target, path, policy)

    if output:
        write_report(report, Path(output))

    if output_json:
        print(to_canonical_json(report), end="")
    elif not quiet:
        print_report(report, verbose=verbose)

    if report.error_count:
        raise typer.Exit(code=1)


@app.command()
def rules(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Policy YAML (default: bundled policy)"),
) -> None:
    """List the available rules and their configured level."""
    policy = _load_policy_or_exit(config)
    print_rules(RULES, policy)


@app.command()
def version() -> None:
    """Show the convexguard version."""
    console.print(f"convexguard v{__version__}")


if __name__ == "__main__":
    app()
