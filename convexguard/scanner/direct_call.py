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

"""Rule ``no-direct-query-mutation``.

Flags direct calls to the raw ``query()`` / ``mutation()`` factories from
the generated server module. Functions must be declared through
``authenticatedQuery()`` / ``authenticatedMutation()`` instead.

Resolution goes through the import alias table, so a renamed import
(``import { query as q }``) is still caught when called as ``q(...)``.
Only plain identifier callees are checked; ``server.query(...)`` through a
namespace import is out of reach without type information.

No autofix: the raw and wrapped forms take different handler signatures.
"""

from __future__ import annotations

from convexguard.models.rules import RuleMeta
from convexguard.policy.config import is_generated_server_module
from convexguard.scanner.aliases import ImportAliasTable
from convexguard.scanner.context import Listeners, Rule, RuleContext
from convexguard.scanner.estree import Node, NodeKind, identifier_name

RULE_ID = "no-direct-query-mutation"

META = RuleMeta(
    id=RULE_ID,
    description=(
        "Disallow direct use of query() and mutation() in favor of "
        "authenticatedQuery() and authenticatedMutation()"
    ),
    messages={
        "useAuthenticatedQuery": (
            'Use authenticatedQuery() instead of query(). Import from "./auth" or "../auth".'
        ),
        "useAuthenticatedMutation": (
            'Use authenticatedMutation() instead of mutation(). Import from "./auth" or "../auth".'
        ),
    },
)


def create(context: RuleContext) -> Listeners:
    if context.is_exempt:
        return {}

    policy = context.policy
    imports = ImportAliasTable(
        lambda source: is_generated_server_module(source, policy),
        policy.banned_calls,
    )

    def check_call(node: Node) -> None:
        callee = node.get("callee")
        canonical = imports.resolve(identifier_name(callee))
        if canonical is None:
            return
        message_id = policy.banned_calls.get(canonical)
        if message_id:
            context.report(callee, message_id)

    return {
        NodeKind.IMPORT_DECLARATION: imports.register,
        NodeKind.CALL_EXPRESSION: check_call,
    }


RULE = Rule(meta=META, create=create)
