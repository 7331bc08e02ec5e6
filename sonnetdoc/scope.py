"""
Lexical scope for the resolver.

A ``Context`` is an immutable value: ``extend`` and ``switch_file`` always
return a new context and never touch the one they were called on.  Bindings
are kept as a chain of frames, one frame per ``local`` / object-locals
construct, so that extending a context does not copy the parent's map.
Lookup walks from the innermost frame outwards; the first hit wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from . import ast as A


@dataclass(frozen=True, slots=True)
class _Frame:
    binds: Mapping[str, A.Node]
    parent: Optional["_Frame"] = None

    def chain(self) -> Iterator["_Frame"]:
        frame: Optional[_Frame] = self
        while frame is not None:
            yield frame
            frame = frame.parent


@dataclass(frozen=True, slots=True)
class Context:
    """
    Identifier → unresolved node, plus the file currently being resolved.

    ``current_file`` changes only when the resolver follows an import; it is
    what relative imports and diagnostics are resolved against.
    """

    current_file: str
    frame: Optional[_Frame] = None

    def lookup(self, name: str) -> Optional[A.Node]:
        """Return the node bound to *name*, or ``None`` when it is unbound."""
        if self.frame is None:
            return None
        for frame in self.frame.chain():
            if name in frame.binds:
                return frame.binds[name]
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    @property
    def bindings(self) -> Mapping[str, A.Node]:
        """Read-only flattened view, inner bindings winning."""
        merged: Dict[str, A.Node] = {}
        if self.frame is not None:
            for frame in self.frame.chain():
                for name, node in frame.binds.items():
                    merged.setdefault(name, node)
        return MappingProxyType(merged)

    def names(self) -> Tuple[str, ...]:
        return tuple(self.bindings)

    def extend(self, binds: Iterable[A.Bind]) -> "Context":
        """New context with *binds* shadowing this one."""
        new: Dict[str, A.Node] = {}
        for bind in binds:
            new[bind.variable] = bind.body
        if not new:
            return Context(self.current_file, self.frame)
        return Context(
            self.current_file,
            _Frame(MappingProxyType(new), self.frame),
        )

    def switch_file(self, new_file: str) -> "Context":
        """Same bindings, different current file."""
        return Context(new_file, self.frame)


def empty(current_file: str) -> Context:
    """The root context for a catalog build of *current_file*."""
    return Context(current_file)


def extend(parent: Context, binds: Iterable[A.Bind]) -> Context:
    return parent.extend(binds)


def switch_file(ctx: Context, new_file: str) -> Context:
    return ctx.switch_file(new_file)
