# tests/test_resolver.py
"""
Tests for the resolver: expression tree → catalog.
"""

import sys

import pytest

from sonnetdoc import ast as A
from sonnetdoc.catalog import ABSENT, Namespace, Opaque, Signature
from sonnetdoc.config import CatalogConfig
from sonnetdoc.errors import (
    ImportCycleError,
    ImportFailure,
    ResolutionDepthExceeded,
    SdocErrorCodes,
    UnknownIdentifier,
)
from sonnetdoc.parser import parse
from sonnetdoc.resolver import Resolver, build_catalog
from sonnetdoc.scope import empty

from tests.conftest import LIBRARY_SRC, DictImporter


class TestResolveShapes:

    def test_end_to_end_nested(self, build):
        catalog = build("{ add: function(a, b) 0, nested: { sub: function(x) 0 } }")
        assert catalog == Namespace({
            "add": Signature(("a", "b")),
            "nested": Namespace({"sub": Signature(("x",))}),
        })

    def test_one_entry_per_field(self, build):
        catalog = build("{ a: 1, b: function(x) x, c: {}, d: [1], e: 'str' }")
        assert list(catalog) == ["a", "b", "c", "d", "e"]
        assert catalog["a"] == Opaque("LiteralNumber")
        assert catalog["c"] == Namespace({})
        assert catalog["d"] == Opaque("Array")
        assert catalog["e"] == Opaque("LiteralString")

    def test_required_before_optional(self, build):
        catalog = build("{ f: function(a, b=1, c) 0 }")
        assert catalog["f"] == Signature(("a", "c", "b"))

    def test_method_sugar(self, build):
        assert build("{ f(x, y=2): x }")["f"] == Signature(("x", "y"))

    def test_root_function(self, build):
        assert build("function(a) a") == Signature(("a",))

    def test_unsupported_nodes_are_opaque(self, build):
        catalog = build("{ a: 1 + 2, b: if true then {} else {}, c: self.x }")
        assert catalog["a"] == Opaque("Binary")
        assert catalog["b"] == Opaque("Conditional")
        assert catalog["c"] == Opaque("Index")

    def test_function_call_result_is_opaque(self, build):
        catalog = build("local f(x) = { g: x }; { made: f(1) }")
        assert catalog["made"] == Opaque("Apply")

    def test_computed_field_names_are_skipped(self, build):
        catalog = build("{ [name]: 1, plain: function() 0 }")
        assert catalog == Namespace({"plain": Signature(())})

    def test_full_library(self, build):
        assert build(LIBRARY_SRC) == Namespace({
            "add": Signature(("a", "b")),
            "nested": Namespace({"sub": Signature(("x",))}),
            "version": Opaque("LiteralString"),
            "join": Signature(("parts", "sep")),
        })


class TestResolveScope:

    def test_variable_reference(self, build):
        catalog = build("local f = function(p) p; { g: f }")
        assert catalog["g"] == Signature(("p",))

    def test_shadowing(self, build):
        src = """
            local f = function(outer) 0;
            local keep = function(k) 0;
            local f = function(inner) 0;
            { g: f, h: keep }
        """
        assert build(src) == Namespace({
            "g": Signature(("inner",)),
            "h": Signature(("k",)),
        })

    def test_shadowing_does_not_reach_sibling_fields(self, build):
        src = """
            local f = function(outer) 0;
            { a: local f = function(inner) 0; f, b: f }
        """
        assert build(src) == Namespace({
            "a": Signature(("inner",)),
            "b": Signature(("outer",)),
        })

    def test_object_locals_are_shared_by_fields(self, build):
        src = "{ local impl = { run(cmd): 0 }, a: impl, b: impl.run }"
        assert build(src) == Namespace({
            "a": Namespace({"run": Signature(("cmd",))}),
            "b": Signature(("cmd",)),
        })

    def test_object_locals_do_not_leak(self, build):
        with pytest.raises(UnknownIdentifier):
            build("{ inner: { local hidden = {}, x: 1 }, y: hidden }")

    def test_unknown_identifier_aborts(self, build):
        with pytest.raises(UnknownIdentifier) as exc_info:
            build("{ ok: function() 0, bad: nope }")
        err = exc_info.value
        assert err.name == "nope"
        assert err.code == SdocErrorCodes.UNDEFINED_VARIABLE
        assert (err.span.file, err.span.line) == ("main.jsonnet", 1)

    def test_unknown_identifier_suggests_close_names(self, build):
        with pytest.raises(UnknownIdentifier) as exc_info:
            build("local helper = {}; { a: helpr }")
        assert "Did you mean 'helper'?" in str(exc_info.value)

    def test_unknown_index_target_aborts(self, build):
        with pytest.raises(UnknownIdentifier):
            build("{ a: missing.field }")


class TestResolveIndex:

    def test_index_of_local_object(self, build):
        catalog = build("local lib = { f(x): x }; { g: lib.f }")
        assert catalog["g"] == Signature(("x",))

    def test_index_through_local_wrapper(self, build):
        catalog = build("local lib = local y = 1; { f(x): x }; { g: lib.f }")
        assert catalog["g"] == Signature(("x",))

    def test_missing_field_is_absent_and_siblings_complete(self, build):
        catalog = build("local lib = { f(x): x }; { a: lib.nope, b: lib.f }")
        assert catalog["a"] is ABSENT
        assert catalog["b"] == Signature(("x",))
        assert len(catalog) == 2

    def test_found_node_resolves_in_caller_scope(self, build):
        src = """
            local lib = { f: helper };
            local helper = function(late) 0;
            { g: lib.f }
        """
        assert build(src)["g"] == Signature(("late",))

    def test_indexed_object_becomes_namespace(self, build):
        catalog = build("local lib = { ns: { f(a): a } }; { x: lib.ns }")
        assert catalog["x"] == Namespace({"f": Signature(("a",))})

    def test_computed_index_is_opaque(self, build):
        catalog = build("local lib = {}; { x: lib[k] }")
        assert catalog["x"] == Opaque("Index")

    def test_nested_index_is_opaque(self, build):
        catalog = build("local lib = { a: { b: {} } }; { x: lib.a.b }")
        assert catalog["x"] == Opaque("Index")


class TestResolveImports:

    def test_import_field(self, build):
        catalog = build('{ helper: (import "lib.libsonnet").fn }')
        assert catalog == Namespace({"helper": Signature(("x", "y"))})

    def test_import_whole_file(self, build, importer):
        catalog = build('{ lib: import "lib.libsonnet" }')
        assert catalog["lib"] == Namespace({
            "fn": Signature(("x", "y")),
            "other": Opaque("LiteralNumber"),
        })
        assert importer.calls == [("main.jsonnet", "lib.libsonnet")]

    def test_import_missing_field_is_absent(self, build):
        catalog = build('{ h: (import "lib.libsonnet").nothing }')
        assert catalog["h"] is ABSENT

    def test_import_switches_current_file(self):
        importer = DictImporter({
            "a/one.libsonnet": 'import "two.libsonnet"',
            "two.libsonnet": "{ f(z): z }",
        })
        root = parse('import "a/one.libsonnet"', "main.jsonnet")
        catalog = Resolver(importer).build(root, "main.jsonnet")
        assert catalog == Namespace({"f": Signature(("z",))})
        assert importer.calls == [
            ("main.jsonnet", "a/one.libsonnet"),
            ("a/one.libsonnet", "two.libsonnet"),
        ]

    def test_outer_bindings_visible_after_import(self):
        importer = DictImporter({"lib.libsonnet": "{ f: shared }"})
        src = 'local shared = function(s) 0; import "lib.libsonnet"'
        catalog = Resolver(importer).build(parse(src, "main.jsonnet"), "main.jsonnet")
        assert catalog["f"] == Signature(("s",))

    def test_import_failure_aborts(self, build):
        with pytest.raises(ImportFailure) as exc_info:
            build('{ ok: function() 0, bad: import "missing.libsonnet" }')
        err = exc_info.value
        assert err.target == "missing.libsonnet"
        assert any(n.message == "imported here" for n in err.error_message.notes)

    def test_import_cycle(self):
        importer = DictImporter({
            "a.libsonnet": 'import "b.libsonnet"',
            "b.libsonnet": '{ back: import "a.libsonnet" }',
        })
        root = parse('import "a.libsonnet"', "main.jsonnet")
        with pytest.raises(ImportCycleError) as exc_info:
            Resolver(importer).build(root, "main.jsonnet")
        assert exc_info.value.cycle == ["a.libsonnet", "b.libsonnet", "a.libsonnet"]
        assert exc_info.value.code == SdocErrorCodes.IMPORT_CYCLE

    def test_same_file_twice_is_not_a_cycle(self, build):
        catalog = build('{ a: import "lib.libsonnet", b: import "lib.libsonnet" }')
        assert catalog["a"] == catalog["b"]

    def test_field_of_file_being_imported_is_not_a_cycle(self):
        importer = DictImporter({
            "main.jsonnet": '{ x: function(a) 0, sub: import "b.libsonnet" }',
            "b.libsonnet": '{ y: (import "main.jsonnet").x }',
        })
        root = parse(importer.files["main.jsonnet"], "main.jsonnet")
        catalog = Resolver(importer).build(root, "main.jsonnet")
        assert catalog == Namespace({
            "x": Signature(("a",)),
            "sub": Namespace({"y": Signature(("a",))}),
        })

    def test_field_of_own_file(self):
        src = '{ a(x): x, b: (import "main.jsonnet").a }'
        importer = DictImporter({"main.jsonnet": src})
        catalog = Resolver(importer).build(parse(src, "main.jsonnet"), "main.jsonnet")
        assert catalog == Namespace({"a": Signature(("x",)), "b": Signature(("x",))})

    def test_fields_indexing_each_other_hit_depth_budget(self):
        src = '{ a: (import "main.jsonnet").b, b: (import "main.jsonnet").a }'
        importer = DictImporter({"main.jsonnet": src})
        with pytest.raises(ResolutionDepthExceeded):
            Resolver(importer, CatalogConfig(max_depth=30)).build(
                parse(src, "main.jsonnet"), "main.jsonnet"
            )


class TestResolveLimits:

    def test_self_referential_binding_hits_depth_budget(self, build):
        with pytest.raises(ResolutionDepthExceeded) as exc_info:
            build("local x = x; { a: x }", CatalogConfig(max_depth=50))
        assert exc_info.value.limit == 50
        assert exc_info.value.code == SdocErrorCodes.RECURSION_LIMIT

    def test_budget_larger_than_python_recursion_limit(self, build):
        limit = sys.getrecursionlimit()
        with pytest.raises(ResolutionDepthExceeded) as exc_info:
            build("local x = x; { a: x }", CatalogConfig(max_depth=5000))
        assert exc_info.value.limit == 5000
        assert sys.getrecursionlimit() == limit

    def test_deep_nesting_within_budget(self, build):
        src = "{ a: " * 20 + "function(leaf) 0" + " }" * 20
        catalog = build(src, CatalogConfig(max_depth=50))
        path, leaf = next(iter(catalog.walk()))
        assert path == ("a",) * 20
        assert leaf == Signature(("leaf",))


class TestResolverApi:

    def test_idempotent(self, importer):
        root = parse(LIBRARY_SRC, "main.jsonnet")
        resolver = Resolver(importer)
        assert resolver.build(root, "main.jsonnet") == resolver.build(root, "main.jsonnet")

    def test_resolve_under_explicit_context(self, importer):
        node = A.Var("f")
        ctx = empty("main.jsonnet").extend(
            [A.Bind("f", A.Function(A.Parameters((A.Param("q"),)), A.LiteralNull()))]
        )
        assert Resolver(importer).resolve(node, ctx) == Signature(("q",))

    def test_build_catalog_wrapper(self, importer):
        root = parse("{ f(a): a }", "main.jsonnet")
        assert build_catalog(root, "main.jsonnet", importer) == Namespace(
            {"f": Signature(("a",))}
        )

    def test_signatures_flattening(self, build):
        catalog = build("{ add: function(a, b) 0, nested: { sub: function(x) 0 } }")
        assert catalog.signatures() == {
            "add": Signature(("a", "b")),
            "nested.sub": Signature(("x",)),
        }
