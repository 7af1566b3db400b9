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

"""Rule ``no-getuseridentity-in-authenticated``.

Inside an authenticated handler the wrapper has already resolved the
caller's identity and passed it in as ``ctx.identity``. Calling
``ctx.auth.getUserIdentity()`` there again is flagged, at any depth of
nested functions below the handler.

Only an actual invocation counts: ``const f = ctx.auth.getUserIdentity;``
is a property read and is left alone.
"""

from __future__ import annotations

from typing import Any

from convexguard.models.rules import ForbiddenCall, RuleMeta
from convexguard.scanner.context import Listeners, Rule, RuleContext
from convexguard.scanner.estree import Node, NodeKind, ScopeChain, identifier_name, kind_of
from convexguard.scanner.handler_scope import HandlerScopeTracker

RULE_ID = "no-getuseridentity-in-authenticated"

META = RuleMeta(
    id=RULE_ID,
    description=(
        "Disallow ctx.auth.getUserIdentity() inside authenticatedQuery/authenticatedMutation "
        "handlers. Use ctx.identity instead."
    ),
    messages={
        "useContextIdentity": (
            "Do not use ctx.auth.getUserIdentity() inside authenticatedQuery/authenticatedMutation "
            "handlers. Use ctx.identity instead, which is already provided."
        ),
    },
)


def _member(node: Any, property_name: str) -> bool:
    """Non-computed ``<object>.<property_name>`` member expression.

    ``ctx.auth[getUserIdentity]`` is deliberately not a match, even when the
    computed key is an identifier.
    """
    return (
        kind_of(node) is NodeKind.MEMBER_EXPRESSION
        and not node.get("computed", False)
        and identifier_name(node.get("property")) == property_name
    )


def matches_forbidden_chain(node: Node, chain: ForbiddenCall) -> bool:
    """Check for ``ctx.auth.getUserIdentity`` (names taken from the policy)."""
    if not _member(node, chain.method_name):
        return False
    inner = node.get("object")
    if not _member(inner, chain.member_name):
        return False
    return identifier_name(inner.get("object")) == chain.object_name


def is_invoked(node: Node, scope: ScopeChain) -> bool:
    """True when ``node`` is the callee of its parent call expression."""
    parent = scope.parent(node)
    return kind_of(parent) is NodeKind.CALL_EXPRESSION and parent.get("callee") is node


def create(context: RuleContext) -> Listeners:
    if context.is_exempt:
        return {}

    tracker = HandlerScopeTracker(context.policy)
    chain = context.policy.forbidden_call

    def check_member(node: Node) -> None:
        if not matches_forbidden_chain(node, chain):
            return
        if not is_invoked(node, context.scope):
            return
        if tracker.restricted_root(node, context.scope) is not None:
            context.report(node, "useContextIdentity")

    return {
        NodeKind.IMPORT_DECLARATION: tracker.on_import,
        NodeKind.CALL_EXPRESSION: tracker.on_call,
        NodeKind.MEMBER_EXPRESSION: check_member,
    }


RULE = Rule(meta=META, create=create)
