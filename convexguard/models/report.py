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

"""Pydantic model for the lint report (convexguard_report.json)."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from convexguard import __version__
from convexguard.models.diagnostics import Diagnostic, FileResult


class LintReport(BaseModel):
    """Results of linting a directory tree, one entry per analyzed file."""

    convexguard_version: str = __version__
    scan_target: str = ""
    scan_timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    manifest_source: str = "directory"  # "git" or "directory"
    files_scanned: int = 0
    error_count: int = 0
    warning_count: int = 0
    unparsed_files: list[str] = Field(default_factory=list)
    results: list[FileResult] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls,
        results: list[FileResult],
        *,
        scan_target: str = "",
        manifest_source: str = "directory",
    ) -> LintReport:
        """Build a report and fill in the summary counters."""
        return cls(
            scan_target=scan_target,
            manifest_source=manifest_source,
            files_scanned=len(results),
            error_count=sum(r.error_count for r in results),
            warning_count=sum(r.warning_count for r in results),
            unparsed_files=[r.file for r in results if r.error],
            results=results,
        )

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for r in self.results for d in r.diagnostics]
