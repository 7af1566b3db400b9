"""Tests for ESTree node classification, traversal and the scope chain."""

import pytest

from convexguard.scanner.estree import (
    FUNCTION_KINDS,
    NodeKind,
    ScopeChain,
    child_nodes,
    identifier_name,
    kind_of,
    literal_string,
    walk,
)
from tests.estree_builders import arrow, call, function, ident, literal, member, program, stmt


class TestKindOf:
    """Tagged dispatch over node kinds."""

    def test_known_kinds(self):
        assert kind_of(ident("x")) is NodeKind.IDENTIFIER
        assert kind_of(call(ident("f"))) is NodeKind.CALL_EXPRESSION
        assert kind_of(arrow()) is NodeKind.ARROW_FUNCTION_EXPRESSION

    def test_unknown_type_is_other(self):
        assert kind_of({"type": "WhileStatement"}) is NodeKind.OTHER

    @pytest.mark.parametrize("value", [None, 42, "Identifier", [], {}, {"type": 7}])
    def test_non_nodes_are_other(self, value):
        assert kind_of(value) is NodeKind.OTHER

    def test_function_kinds(self):
        assert NodeKind.ARROW_FUNCTION_EXPRESSION in FUNCTION_KINDS
        assert NodeKind.FUNCTION_EXPRESSION in FUNCTION_KINDS
        assert NodeKind.CALL_EXPRESSION not in FUNCTION_KINDS


class TestAccessors:
    def test_identifier_name(self):
        assert identifier_name(ident("query")) == "query"
        assert identifier_name(literal("query")) is None
        assert identifier_name({"type": "Identifier", "name": None}) is None

    def test_literal_string(self):
        assert literal_string(literal("./auth")) == "./auth"
        assert literal_string(literal(3)) is None
        assert literal_string(ident("x")) is None

    def test_child_nodes_skip_metadata(self):
        node = call(ident("f"), ident("a"))
        node["loc"] = {"start": {"line": 1, "column": 0}, "end": {"line": 1, "column": 4}}
        node["range"] = [0, 4]
        children = list(child_nodes(node))
        assert [identifier_name(c) for c in children] == ["f", "a"]


class TestWalk:
    """Pre-order traversal and parent links."""

    def test_pre_order_document_order(self):
        tree = program(stmt(call(ident("f"), ident("a"))), stmt(ident("b")))
        names = [n.get("name") or n["type"] for n in walk(tree)]
        assert names == [
            "Program",
            "ExpressionStatement",
            "CallExpression",
            "f",
            "a",
            "ExpressionStatement",
            "b",
        ]

    def test_parent_linked_before_child_is_yielded(self):
        inner = ident("a")
        outer = call(ident("f"), inner)
        tree = program(stmt(outer))
        scope = ScopeChain()
        for node in walk(tree, scope):
            if node is inner:
                assert scope.parent(node) is outer

    def test_non_node_root_yields_nothing(self):
        assert list(walk(None)) == []
        assert list(walk({"no": "type"})) == []

    def test_shared_subtree_visited_once(self):
        shared = ident("x")
        tree = program(stmt(shared), stmt(shared))
        assert sum(1 for n in walk(tree) if n is shared) == 1

    def test_cycle_terminates(self):
        node = {"type": "ExpressionStatement"}
        node["expression"] = node
        assert len(list(walk(program(node)))) == 2


class TestScopeChain:
    """Lexical function chain, with blocks and calls transparent."""

    def _walk_all(self, tree):
        scope = ScopeChain()
        for _ in walk(tree, scope):
            pass
        return scope

    def test_enclosing_function_skips_blocks(self):
        target = ident("target")
        handler = arrow(stmt(call(ident("g"), target)))
        tree = program(stmt(call(ident("wrap"), handler)))
        scope = self._walk_all(tree)
        assert scope.enclosing_function(target) is handler

    def test_function_chain_innermost_first(self):
        target = ident("target")
        helper = function(stmt(target))
        handler = arrow(stmt(call(helper)))
        tree = program(stmt(handler))
        scope = self._walk_all(tree)
        assert list(scope.function_chain(target)) == [helper, handler]

    def test_function_is_not_its_own_enclosing_function(self):
        handler = arrow()
        scope = self._walk_all(program(stmt(handler)))
        assert scope.enclosing_function(handler) is None

    def test_top_level_has_empty_chain(self):
        target = member(ident("ctx"), "auth")
        scope = self._walk_all(program(stmt(target)))
        assert list(scope.function_chain(target)) == []

    def test_unwalked_node_has_no_parent(self):
        assert ScopeChain().parent(ident("x")) is None
