"""
Structural field lookup used by the resolver for ``a.b`` indexing.

``locate`` looks at the *shape* of a node only: it never consults a scope
and never resolves anything.  ``local`` wrappers are peeled off and the
fields of the object underneath are scanned in declaration order.
"""

from __future__ import annotations

from typing import Final, Union

from . import ast as A


class _NotFound:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Final = _NotFound()


def locate(node: A.Node, field_name: str) -> Union[A.Node, _NotFound]:
    """Return the body bound to *field_name* in *node*, or ``NOT_FOUND``."""
    while isinstance(node, A.Local):
        node = node.body
    if isinstance(node, A.Object):
        for f in node.fields:
            if f.name == field_name:
                return f.body
    return NOT_FOUND
