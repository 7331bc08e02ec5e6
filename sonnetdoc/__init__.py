"""sonnetdoc — list the functions a Jsonnet library exports.

The package reads a Jsonnet program, follows its ``local`` bindings,
variable references, ``a.b`` indexing and imports, and produces a catalog:
a tree of namespaces whose leaves are function signatures.

Submodules
----------
grammar, parser
    parsimonious PEG grammar and the visitor that builds the expression
    tree (:mod:`sonnetdoc.ast`).

scope, locator, resolver
    Lexical scope chain, field lookup inside object literals, and the
    recursive resolver that turns a tree into a catalog.

importer
    File-system import resolution with library search paths.

catalog, render
    Catalog value types and the text / JSON / S-expression presenters.

errors, config
    Structured ``SDOC-NNNN`` exceptions and ``CatalogConfig``.

Usage
-----
Command-line::

    python -m sonnetdoc main.libsonnet -J vendor

Programmatic::

    from sonnetdoc import FileImporter, Resolver, parse_file

    root = parse_file("main.libsonnet")
    catalog = Resolver(FileImporter(["vendor"])).build(root, "main.libsonnet")
    for name, sig in catalog.signatures().items():
        print(sig.format(name))
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "ABSENT",
    "CatalogConfig",
    "FileImporter",
    "Namespace",
    "Opaque",
    "Resolver",
    "Signature",
    "SonnetdocError",
    "build_catalog",
    "parse",
    "parse_file",
]

from .catalog import ABSENT, Namespace, Opaque, Signature
from .config import CatalogConfig
from .errors import SonnetdocError
from .importer import FileImporter
from .parser import parse, parse_file
from .resolver import Resolver, build_catalog
