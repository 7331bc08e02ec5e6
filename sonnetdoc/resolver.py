"""
sonnetdoc/resolver.py – Expression tree → catalog.

The resolver is a small recursive walk, not an interpreter.  It only needs
to reach two shapes, function definitions and object literals, and it
follows ``local`` bindings, variable references, ``a.b`` indexing and
imports to get there.  Anything else becomes an ``Opaque`` entry labelled
with the node's class name, so one odd expression never hides the rest of
the catalog.

Two conditions abort the whole build: a variable that is not in scope
(``UnknownIdentifier``) and an import that cannot be loaded
(``ImportFailure``).  A depth budget turns runaway recursion, e.g.
``local x = x; x``, into ``ResolutionDepthExceeded`` instead of a Python
``RecursionError``.

Usage::

    from sonnetdoc.importer import FileImporter
    from sonnetdoc.parser import parse_file
    from sonnetdoc.resolver import Resolver

    root = parse_file("main.libsonnet")
    catalog = Resolver(FileImporter()).build(root, "main.libsonnet")
"""

from __future__ import annotations

import difflib
import logging
import sys
from typing import Optional, Protocol, Tuple

from . import ast as A
from .catalog import ABSENT, CatalogValue, Namespace, Opaque, Signature
from .config import CatalogConfig
from .errors import (
    ImportCycleError,
    ImportFailure,
    ResolutionDepthExceeded,
    SourceSpan,
    UnknownIdentifier,
)
from .locator import NOT_FOUND, locate
from .parser import _recursion_limit
from .scope import Context, empty

logger = logging.getLogger(__name__)

# Python frames one resolver step may use (_resolve plus a helper).
_FRAMES_PER_STEP = 3


class Importer(Protocol):
    """Loads the tree of an imported file."""

    def resolve_import(self, current_file: str, target: str) -> Tuple[A.Node, str]:
        """Return ``(root node, resolved path)`` or raise ``ImportFailure``."""
        ...


class Resolver:
    """Walks an expression tree under a ``Context`` and builds a catalog."""

    def __init__(
        self,
        importer: Importer,
        config: Optional[CatalogConfig] = None,
    ) -> None:
        self.importer = importer
        self.config = config or CatalogConfig()

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    def build(self, root: A.Node, root_file: str) -> CatalogValue:
        """Resolve *root* under an empty scope whose current file is *root_file*."""
        with self._stack_for_budget():
            return self._resolve(root, empty(root_file), 0, (root_file,))

    def resolve(self, node: A.Node, ctx: Context) -> CatalogValue:
        with self._stack_for_budget():
            return self._resolve(node, ctx, 0, (ctx.current_file,))

    def _stack_for_budget(self):
        """Room on the Python stack for *max_depth* resolver steps."""
        return _recursion_limit(
            sys.getrecursionlimit() + _FRAMES_PER_STEP * self.config.max_depth
        )

    # ─────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────

    def _resolve(
        self,
        node: A.Node,
        ctx: Context,
        depth: int,
        imports: Tuple[str, ...],
    ) -> CatalogValue:
        if depth > self.config.max_depth:
            raise ResolutionDepthExceeded(
                self.config.max_depth, span=SourceSpan.from_node(node)
            )
        depth += 1

        if isinstance(node, A.Local):
            return self._resolve(node.body, ctx.extend(node.binds), depth, imports)

        if isinstance(node, A.Object):
            return self._resolve_object(node, ctx, depth, imports)

        if isinstance(node, A.Function):
            return Signature(node.parameters.names())

        if isinstance(node, A.Import):
            root, path, chain = self._import(node, ctx, imports)
            return self._resolve(root, ctx.switch_file(path), depth, chain)

        if isinstance(node, A.Var):
            bound = self._lookup(node.id, node, ctx)
            return self._resolve(bound, ctx, depth, imports)

        if isinstance(node, A.Index):
            return self._resolve_index(node, ctx, depth, imports)

        tag = A.node_tag(node)
        logger.debug("%s: leaving %s unresolved", node.loc, tag)
        return Opaque(tag)

    def _resolve_object(
        self,
        node: A.Object,
        ctx: Context,
        depth: int,
        imports: Tuple[str, ...],
    ) -> Namespace:
        inner = ctx.extend(node.locals)
        entries = {}
        for f in node.fields:
            if f.name is None:
                logger.debug("%s: skipping field with computed name", f.loc)
                continue
            entries[f.name] = self._resolve(f.body, inner, depth, imports)
        return Namespace(entries)

    def _resolve_index(
        self,
        node: A.Index,
        ctx: Context,
        depth: int,
        imports: Tuple[str, ...],
    ) -> CatalogValue:
        name = node.field_name
        if name is None:
            logger.debug("%s: computed index is not supported", node.loc)
            return Opaque(A.node_tag(node))

        target = node.target
        if isinstance(target, A.Var):
            indexed = self._lookup(target.id, target, ctx)
            found = locate(indexed, name)
            if found is NOT_FOUND:
                logger.debug("%s: no field '%s' on '%s'", node.loc, name, target.id)
                return ABSENT
            return self._resolve(found, ctx, depth, imports)

        if isinstance(target, A.Import):
            # Only one field is located, so the file may already be in *imports*.
            root, path = self._load(target, ctx)
            found = locate(root, name)
            if found is NOT_FOUND:
                logger.debug("%s: no field '%s' in %s", node.loc, name, path)
                return ABSENT
            return self._resolve(found, ctx.switch_file(path), depth, imports)

        logger.debug(
            "%s: indexing a %s is not supported", node.loc, A.node_tag(target)
        )
        return Opaque(A.node_tag(node))

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _lookup(self, name: str, at: A.Node, ctx: Context) -> A.Node:
        bound = ctx.lookup(name)
        if bound is None:
            suggestions = difflib.get_close_matches(name, ctx.names(), n=3)
            raise UnknownIdentifier(
                name, span=SourceSpan.from_node(at), suggestions=suggestions
            )
        return bound

    def _load(self, node: A.Import, ctx: Context) -> Tuple[A.Node, str]:
        try:
            root, path = self.importer.resolve_import(ctx.current_file, node.file)
        except ImportFailure as exc:
            exc.add_note("imported here", span=SourceSpan.from_node(node))
            raise
        logger.info("importing %s from %s", path, ctx.current_file)
        return root, path

    def _import(
        self,
        node: A.Import,
        ctx: Context,
        imports: Tuple[str, ...],
    ) -> Tuple[A.Node, str, Tuple[str, ...]]:
        root, path = self._load(node, ctx)
        if path in imports:
            raise ImportCycleError(
                imports[imports.index(path):] + (path,),
                span=SourceSpan.from_node(node),
            )
        return root, path, imports + (path,)


def build_catalog(
    root: A.Node,
    root_file: str,
    importer: Importer,
    config: Optional[CatalogConfig] = None,
) -> CatalogValue:
    """Convenience wrapper around ``Resolver(importer, config).build``."""
    return Resolver(importer, config).build(root, root_file)
