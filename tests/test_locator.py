# tests/test_locator.py
"""Tests for structural field lookup."""

from sonnetdoc import ast as A
from sonnetdoc.locator import NOT_FOUND, locate
from sonnetdoc.parser import parse


class TestLocate:

    def test_finds_field_body(self):
        obj = parse("{ a: 1, f(x): x }")
        found = locate(obj, "f")
        assert isinstance(found, A.Function)
        assert found.parameters.names() == ("x",)

    def test_unwraps_locals(self):
        node = parse("local a = 1; local b = 2; { target: 'yes' }")
        assert locate(node, "target") == A.LiteralString("yes")

    def test_first_field_in_declaration_order_wins(self):
        first, second = A.LiteralString("first"), A.LiteralString("second")
        obj = A.Object((A.Field("dup", first), A.Field("dup", second)))
        assert locate(obj, "dup") is first

    def test_missing_field(self):
        assert locate(parse("{ a: 1 }"), "b") is NOT_FOUND

    def test_computed_names_never_match(self):
        assert locate(parse("{ [k]: 1 }"), "k") is NOT_FOUND

    def test_non_object_is_not_found(self):
        assert locate(parse("[1]"), "a") is NOT_FOUND
        assert locate(parse("import 'x.libsonnet'"), "a") is NOT_FOUND

    def test_does_not_follow_variables(self):
        assert locate(parse("local o = { a: 1 }; o"), "a") is NOT_FOUND

    def test_not_found_is_falsy(self):
        assert not NOT_FOUND
        assert repr(NOT_FOUND) == "NOT_FOUND"
