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

"""Rich terminal output for lint results.

Default output is one table per file with findings, then a one-line
summary. --verbose adds the offending source line under each finding
and lists clean files.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from convexguard.models.diagnostics import FileResult, Severity
from convexguard.models.report import LintReport
from convexguard.models.rules import Policy, RuleLevel
from convexguard.scanner.context import Rule


def _make_console() -> Console:
    """Console with soft wrap, sized to the live terminal."""
    return Console(soft_wrap=True)


console = _make_console()

_SEVERITY_STYLE = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
}

_LEVEL_STYLE = {
    RuleLevel.ERROR: "red",
    RuleLevel.WARN: "yellow",
    RuleLevel.OFF: "dim",
}


def _file_table(result: FileResult, verbose: bool) -> Table:
    table = Table(title=result.file, title_justify="left", show_header=True, header_style="bold")
    table.add_column("Line", justify="right", style="cyan", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Message")
    table.add_column("Rule", style="dim", no_wrap=True)

    for d in result.diagnostics:
        message = Text(d.message)
        if verbose and d.source_line:
            message.append("\n" + d.source_line.strip(), style="dim italic")
        table.add_row(
            f"{d.line}:{d.col + 1}",
            Text(d.severity.value, style=_SEVERITY_STYLE[d.severity]),
            message,
            d.rule_id,
        )
    return table


def print_report(report: LintReport, *, verbose: bool = False) -> None:
    """Print every file with findings, unparsed files, and a summary line."""
    for result in report.results:
        if result.diagnostics:
            console.print(_file_table(result, verbose))
            console.print()
        elif verbose and not result.error:
            console.print(f"[green]✓[/green] [dim]{result.file}[/dim]")

    if report.unparsed_files:
        lines = "\n".join(
            f"{r.file}: {r.error}" for r in report.results if r.error
        )
        console.print(
            Panel(
                lines,
                title=f"{len(report.unparsed_files)} file(s) could not be analyzed",
                title_align="left",
                border_style="yellow",
            )
        )

    print_summary(report)


def print_summary(report: LintReport) -> None:
    total = report.error_count + report.warning_count
    if total == 0:
        console.print(
            f"[bold green]No problems[/bold green] [dim]({report.files_scanned} files linted)[/dim]"
        )
        return
    style = "bold red" if report.error_count else "bold yellow"
    console.print(
        f"[{style}]✖ {total} problem(s)[/{style}] "
        f"({report.error_count} error(s), {report.warning_count} warning(s)) "
        f"[dim]in {report.files_scanned} files[/dim]"
    )


def print_rules(rules: dict[str, Rule], policy: Policy) -> None:
    """Table of registered rules with their configured level."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Rule", no_wrap=True)
    table.add_column("Level", no_wrap=True)
    table.add_column("Description")
    table.add_column("Message ids", style="dim")

    for rule_id, rule in rules.items():
        level = policy.level_for(rule_id)
        table.add_row(
            rule_id,
            Text(level.value, style=_LEVEL_STYLE[level]),
            rule.meta.description,
            ", ".join(rule.meta.messages),
        )
    console.print(table)
