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

"""Rule plumbing shared by every rule module.

A rule is its metadata plus a ``create`` factory. The factory is called
once per file with a fresh ``RuleContext`` and returns the listeners it
wants, keyed by node kind. All per-file rule state lives in the closure
the factory builds, so nothing carries over between files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from convexguard.models.diagnostics import Diagnostic, Severity
from convexguard.models.rules import Policy, RuleLevel, RuleMeta
from convexguard.policy.config import is_exempt_file
from convexguard.scanner.estree import Node, NodeKind, ScopeChain

logger = logging.getLogger(__name__)

Listener = Callable[[Node], None]
Listeners = dict[NodeKind, Listener]


class RuleContext:
    """What a rule sees of the current file pass."""

    def __init__(
        self,
        meta: RuleMeta,
        filename: str,
        policy: Policy,
        scope: ScopeChain,
        diagnostics: list[Diagnostic],
        source_lines: list[str] | None = None,
        level: RuleLevel = RuleLevel.ERROR,
        display_name: str | None = None,
    ) -> None:
        self.meta = meta
        # filename is what path checks match on; display_name is what reports show
        self.filename = filename
        self.display_name = display_name or filename
        self.policy = policy
        self.scope = scope
        self.level = level
        self._diagnostics = diagnostics
        self._source_lines = source_lines or []

    @property
    def rule_id(self) -> str:
        return self.meta.id

    @property
    def is_exempt(self) -> bool:
        return is_exempt_file(self.filename, self.policy)

    def _get_source_line(self, lineno: int) -> str:
        """Extract a source line by 1-indexed line number."""
        if self._source_lines and 0 < lineno <= len(self._source_lines):
            return self._source_lines[lineno - 1].rstrip()
        return ""

    def report(self, node: Node, message_id: str) -> None:
        """Append a diagnostic located at ``node``."""
        (line, col), (end_line, end_col) = _node_position(node)
        self._diagnostics.append(
            Diagnostic(
                file=self.display_name,
                line=line,
                col=col,
                end_line=end_line,
                end_col=end_col,
                rule_id=self.rule_id,
                message_id=message_id,
                message=self.meta.messages.get(message_id, message_id),
                node_type=str(node.get("type", "")),
                severity=Severity.WARNING if self.level == RuleLevel.WARN else Severity.ERROR,
                source_line=self._get_source_line(line),
            )
        )
        logger.debug("%s:%d:%d %s (%s)", self.display_name, line, col, message_id, self.rule_id)


@dataclass(frozen=True)
class Rule:
    meta: RuleMeta
    create: Callable[[RuleContext], Listeners]


def _field(value: Any, name: str) -> Any:
    # loc may arrive as dicts (JSON, toDict) or as parser objects
    if isinstance(value, dict):
        return value.get(name)
    return getattr(value, name, None)


def _position(value: Any) -> tuple[int, int]:
    line, column = _field(value, "line"), _field(value, "column")
    return (
        line if isinstance(line, int) else 0,
        column if isinstance(column, int) else 0,
    )


def _node_position(node: Node) -> tuple[tuple[int, int], tuple[int, int]]:
    """(start, end) as (line, column) pairs from ``loc``; zeros when absent."""
    loc = node.get("loc")
    if loc is None:
        return (0, 0), (0, 0)
    return _position(_field(loc, "start")), _position(_field(loc, "end"))
