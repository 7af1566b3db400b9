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

"""Pydantic models for diagnostics and per-file results."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity of a diagnostic, derived from the rule's configured level."""

    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """A single finding reported by a rule.

    Core fields (always populated):
      file, line, rule_id, message_id, message

    Location fields follow the parser: ``line`` is 1-based, ``col`` is the
    0-based column of the reported node. ``node_type`` is the ESTree type of
    that node (``Identifier`` for a banned callee, ``MemberExpression`` for a
    forbidden identity lookup).

    Diagnostics are immutable once reported.
    """

    model_config = ConfigDict(frozen=True)

    file: str
    line: int
    col: int = 0
    end_line: int = 0
    end_col: int = 0
    rule_id: str
    message_id: str
    message: str = ""
    node_type: str = ""
    severity: Severity = Severity.ERROR
    source_line: str = ""


class FileResult(BaseModel):
    """Diagnostics for one file, or the reason it could not be analyzed."""

    file: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    error: Optional[str] = None  # read or parse failure; never a rule finding

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.WARNING)
