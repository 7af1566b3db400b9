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

"""ESTree helpers — node kinds, pre-order traversal, lexical scope chain.

Trees are plain ESTree dicts (``{"type": "CallExpression", "callee": ...}``)
as produced by esprima's ``toDict()`` or dumped as JSON by any ESTree
parser. Nothing here assumes a well-formed tree: unknown shapes classify
as ``NodeKind.OTHER`` and non-node values are skipped.

Node identity is object identity. Two structurally equal nodes at
different positions are different nodes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Optional

Node = dict[str, Any]


class NodeKind(str, Enum):
    """The node kinds the rules care about. Everything else is OTHER."""

    IMPORT_DECLARATION = "ImportDeclaration"
    IMPORT_SPECIFIER = "ImportSpecifier"
    CALL_EXPRESSION = "CallExpression"
    MEMBER_EXPRESSION = "MemberExpression"
    IDENTIFIER = "Identifier"
    OBJECT_EXPRESSION = "ObjectExpression"
    PROPERTY = "Property"
    ARROW_FUNCTION_EXPRESSION = "ArrowFunctionExpression"
    FUNCTION_EXPRESSION = "FunctionExpression"
    LITERAL = "Literal"
    OTHER = "*"


_KINDS_BY_TYPE: dict[str, NodeKind] = {
    kind.value: kind for kind in NodeKind if kind is not NodeKind.OTHER
}

# Function literals: the only nodes that open a restricted scope.
FUNCTION_KINDS = frozenset({NodeKind.ARROW_FUNCTION_EXPRESSION, NodeKind.FUNCTION_EXPRESSION})

# Metadata keys that never hold child nodes worth visiting.
_SKIP_KEYS = frozenset({
    "type",
    "loc",
    "range",
    "parent",
    "comments",
    "tokens",
    "errors",
    "leadingComments",
    "trailingComments",
    "innerComments",
})


def is_node(value: Any) -> bool:
    """Return True for a dict carrying a string ``type``."""
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def kind_of(node: Any) -> NodeKind:
    """Classify a node. Total: anything unrecognised is OTHER."""
    if not is_node(node):
        return NodeKind.OTHER
    return _KINDS_BY_TYPE.get(node["type"], NodeKind.OTHER)


def identifier_name(node: Any) -> Optional[str]:
    """Name of an Identifier node, else None."""
    if kind_of(node) is not NodeKind.IDENTIFIER:
        return None
    name = node.get("name")
    return name if isinstance(name, str) else None


def literal_string(node: Any) -> Optional[str]:
    """Value of a string Literal node, else None."""
    if kind_of(node) is not NodeKind.LITERAL:
        return None
    value = node.get("value")
    return value if isinstance(value, str) else None


def child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of a node in field order."""
    for key, value in node.items():
        if key in _SKIP_KEYS:
            continue
        if is_node(value):
            yield value
        elif isinstance(value, list):
            for item in value:
                if is_node(item):
                    yield item


class ScopeChain:
    """Parent links recorded during a walk, queried as a lexical scope chain.

    ``enclosing_function`` resolves the nearest function literal strictly
    above a node; applying it repeatedly climbs the chain of lexically
    enclosing functions. Blocks, conditionals, calls and every other node
    kind are transparent to the climb.
    """

    def __init__(self) -> None:
        self._parents: dict[int, Optional[Node]] = {}

    def link(self, node: Node, parent: Optional[Node]) -> None:
        self._parents[id(node)] = parent

    def parent(self, node: Node) -> Optional[Node]:
        return self._parents.get(id(node))

    def enclosing_function(self, node: Node) -> Optional[Node]:
        current = self.parent(node)
        while current is not None:
            if kind_of(current) in FUNCTION_KINDS:
                return current
            current = self.parent(current)
        return None

    def function_chain(self, node: Node) -> Iterator[Node]:
        """Yield every enclosing function literal, innermost first."""
        current = self.enclosing_function(node)
        while current is not None:
            yield current
            current = self.enclosing_function(current)


def walk(tree: Any, scope: Optional[ScopeChain] = None) -> Iterator[Node]:
    """Pre-order, document-order traversal.

    A node is yielded before any of its children are expanded, so work done
    by the consumer on a parent is visible when its descendants come up.
    Each child's parent link is recorded in ``scope`` as the child is
    discovered. Nodes reachable twice (a shared subtree or a cycle in a
    hand-built tree) are visited once.
    """
    if not is_node(tree):
        return
    scope = scope if scope is not None else ScopeChain()
    scope.link(tree, None)
    stack: list[Node] = [tree]
    seen: set[int] = set()

    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node

        children = [child for child in child_nodes(node) if id(child) not in seen]
        for child in children:
            scope.link(child, node)
        stack.extend(reversed(children))
