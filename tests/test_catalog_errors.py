# tests/test_catalog_errors.py
"""Tests for catalog values and structured errors."""

import pickle

import pytest

from sonnetdoc.catalog import ABSENT, Namespace, Opaque, Signature
from sonnetdoc.errors import (
    ErrorSeverity,
    ImportCycleError,
    ImportFailure,
    JsonnetSyntaxError,
    ResolutionError,
    SdocErrorCodes,
    SonnetdocError,
    SourceSpan,
    UnknownIdentifier,
)


class TestCatalogValues:

    def test_namespace_equality_ignores_order(self):
        a = Namespace({"x": Signature(("p",)), "y": Opaque("Array")})
        b = Namespace({"y": Opaque("Array"), "x": Signature(("p",))})
        assert a == b

    def test_namespace_is_read_only(self):
        ns = Namespace({"x": ABSENT})
        with pytest.raises(TypeError):
            ns.entries["y"] = ABSENT

    def test_absent_is_a_falsy_singleton(self):
        assert not ABSENT
        assert pickle.loads(pickle.dumps(ABSENT)) is ABSENT

    def test_signature_format(self):
        assert Signature(("a", "b")).format("lib.f") == "fn lib.f(a, b)"

    def test_walk_and_to_plain(self):
        ns = Namespace({"a": Namespace({"f": Signature(("x",))}), "b": Opaque("Self")})
        assert list(ns.walk()) == [(("a", "f"), Signature(("x",))), (("b",), Opaque("Self"))]
        assert ns.to_plain() == {"a": {"f": {"fn": ["x"]}}, "b": {"opaque": "Self"}}


class TestErrors:

    def test_hierarchy(self):
        assert issubclass(JsonnetSyntaxError, SonnetdocError)
        assert issubclass(UnknownIdentifier, ResolutionError)
        assert issubclass(ImportCycleError, ImportFailure)

    def test_gcc_format(self):
        err = UnknownIdentifier("x", span=SourceSpan("main.jsonnet", 3, 7))
        assert str(err) == "main.jsonnet:3:7: fatal: Unknown variable 'x' [SDOC-3000]"

    def test_notes_and_hints(self):
        err = ImportFailure("lib.libsonnet", "no such file")
        err.add_note("imported here", span=SourceSpan("main.jsonnet", 1, 2))
        err.with_hint("pass -J vendor")
        lines = str(err).splitlines()
        assert lines[0].endswith("Couldn't import 'lib.libsonnet': no such file [SDOC-6000]")
        assert lines[1] == "main.jsonnet:1:2: note: imported here"
        assert lines[2] == "hint: pass -J vendor"

    def test_error_code_identity(self):
        assert SdocErrorCodes.IMPORT_CYCLE.code == "SDOC-6002"
        assert SdocErrorCodes.RECURSION_LIMIT == "SDOC-7000"

    def test_severity_follows_code(self):
        assert JsonnetSyntaxError("bad").severity is ErrorSeverity.ERROR
        assert UnknownIdentifier("x").severity is ErrorSeverity.FATAL

    def test_to_json(self):
        err = JsonnetSyntaxError("Unexpected '}'", span=SourceSpan("f", 1, 2))
        data = err.error_message.to_json()
        assert data["code"] == "SDOC-1000"
        assert data["location"] == {"file": "f", "line": 1, "column": 2}
        assert data["phase"] == "syntax"
