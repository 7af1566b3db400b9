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

"""Handler-scope tracker — which function literals are authenticated handlers.

Given

    import { authenticatedQuery } from "./auth";
    export const get = authenticatedQuery({
      args: {},
      handler: async (ctx) => { ... },
    });

the arrow function under ``handler`` becomes a restricted-scope root. The
call node is visited before its arguments, so the root is registered
before the walk reaches anything inside the handler body.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from convexguard.models.rules import Policy
from convexguard.policy.config import is_wrapper_module
from convexguard.scanner.aliases import ImportAliasTable
from convexguard.scanner.estree import (
    FUNCTION_KINDS,
    Node,
    NodeKind,
    ScopeChain,
    identifier_name,
    kind_of,
)

logger = logging.getLogger(__name__)


class HandlerScopeTracker:
    """Per-file registry of restricted-scope roots."""

    def __init__(self, policy: Policy) -> None:
        self.policy = policy
        self.imports = ImportAliasTable(
            lambda source: is_wrapper_module(source, policy),
            policy.wrapper_names,
        )
        # id(node) -> node; keeps the registered literals alive for the pass
        self._roots: dict[int, Node] = {}

    def on_import(self, node: Node) -> None:
        self.imports.register(node)

    def on_call(self, node: Node) -> None:
        """Register the handler of an approved wrapper call, if it has one."""
        wrapper = self.imports.resolve(identifier_name(node.get("callee")))
        if wrapper is None:
            return
        handler = self.handler_of(node)
        if handler is None:
            logger.debug("%s() call without an inline handler function", wrapper)
            return
        self._roots[id(handler)] = handler

    def handler_of(self, call: Node) -> Optional[Node]:
        """The function literal passed as ``{handler: ...}`` in the first argument."""
        arguments = call.get("arguments")
        if not isinstance(arguments, list) or not arguments:
            return None
        options = arguments[0]
        if kind_of(options) is not NodeKind.OBJECT_EXPRESSION:
            return None
        properties = options.get("properties")
        if not isinstance(properties, list):
            return None

        for prop in properties:
            if not self._is_handler_property(prop):
                continue
            value = prop.get("value")
            return value if kind_of(value) in FUNCTION_KINDS else None
        return None

    def _is_handler_property(self, prop: Any) -> bool:
        """Non-computed ``handler`` key; ``{[handler]: fn}`` is deliberately not a match."""
        return (
            kind_of(prop) is NodeKind.PROPERTY
            and not prop.get("computed", False)
            and identifier_name(prop.get("key")) == self.policy.handler_property
        )

    def is_root(self, node: Node) -> bool:
        return id(node) in self._roots

    def restricted_root(self, node: Node, scope: ScopeChain) -> Optional[Node]:
        """Nearest enclosing function literal of ``node`` that is a root.

        Every enclosing function is considered, not just the innermost, so a
        helper closure declared inside a handler is restricted too.
        """
        for function in scope.function_chain(node):
            if self.is_root(function):
                return function
        return None

    def __len__(self) -> int:
        return len(self._roots)
