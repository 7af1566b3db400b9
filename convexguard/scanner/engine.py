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

"""Rule registry and the single-pass lint driver.

One call to ``lint_tree`` is one file pass:
1. Every enabled rule's ``create`` runs against a fresh context.
2. Listeners are merged per node kind, in registry order.
3. The tree is walked once, pre-order; each node goes to the listeners
   for its kind.

Diagnostics come back in visitation order. The pass never raises for odd
tree shapes; rules only ever look at nodes through the total helpers in
``estree``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Optional

from convexguard import __version__
from convexguard.models.diagnostics import Diagnostic
from convexguard.models.rules import Policy, RuleLevel
from convexguard.scanner import context_identity, direct_call
from convexguard.scanner.context import Listener, Rule, RuleContext
from convexguard.scanner.estree import NodeKind, ScopeChain, kind_of, walk

logger = logging.getLogger(__name__)

PLUGIN_META: dict[str, str] = {
    "name": "convexguard",
    "version": __version__,
}

RULES: dict[str, Rule] = {
    rule.meta.id: rule for rule in (direct_call.RULE, context_identity.RULE)
}


def enabled_rules(policy: Policy) -> list[tuple[Rule, RuleLevel]]:
    """Registered rules that the policy does not switch off."""
    enabled = []
    for rule_id, rule in RULES.items():
        level = policy.level_for(rule_id)
        if level != RuleLevel.OFF:
            enabled.append((rule, level))
    return enabled


def listened_kinds(rule_id: str, filename: str, policy: Optional[Policy] = None) -> frozenset[NodeKind]:
    """Node kinds ``rule_id`` observes for ``filename`` (empty when exempt).

    Raises KeyError for an unknown rule id.
    """
    rule = RULES[rule_id]
    context = RuleContext(rule.meta, filename, policy or Policy(), ScopeChain(), [])
    return frozenset(rule.create(context))


def lint_tree(
    tree: Any,
    filename: str,
    policy: Optional[Policy] = None,
    source_lines: list[str] | None = None,
    display_name: str | None = None,
) -> list[Diagnostic]:
    """Run every enabled rule over one parsed file.

    ``filename`` is matched against the exempt-file suffix; diagnostics are
    attributed to ``display_name`` when given.
    """
    policy = policy or Policy()
    diagnostics: list[Diagnostic] = []
    scope = ScopeChain()

    dispatch: dict[NodeKind, list[Listener]] = defaultdict(list)
    for rule, level in enabled_rules(policy):
        context = RuleContext(
            rule.meta, filename, policy, scope, diagnostics, source_lines, level, display_name
        )
        for kind, listener in rule.create(context).items():
            dispatch[kind].append(listener)

    if not dispatch:
        logger.debug("No rule applies to %s", filename)
        return diagnostics

    for node in walk(tree, scope):
        for listener in dispatch.get(kind_of(node), ()):
            listener(node)

    return diagnostics
