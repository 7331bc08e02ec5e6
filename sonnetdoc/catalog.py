"""sonnetdoc/catalog.py – What the resolver produces.

A catalog is a tree of ``Namespace`` nodes whose leaves are ``Signature``
(a function and its parameter names), ``Opaque`` (an expression the resolver
does not model, labelled with its node tag) or ``ABSENT`` (an indexed field
that does not exist).  ``Opaque`` and ``ABSENT`` still occupy their entry in
the enclosing namespace; presenters decide whether to show them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Tuple, Union


@dataclass(frozen=True, slots=True)
class Signature:
    params: Tuple[str, ...] = ()

    def format(self, name: str) -> str:
        return f"fn {name}({', '.join(self.params)})"


@dataclass(frozen=True, slots=True)
class Opaque:
    tag: str


class _Absent:
    """Singleton for an indexed field that could not be located."""

    __slots__ = ()
    _instance = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


@dataclass(frozen=True, slots=True, eq=False)
class Namespace:
    """Field name → catalog value.  Equality ignores insertion order."""

    entries: Mapping[str, "CatalogValue"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Namespace):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __getitem__(self, name: str) -> "CatalogValue":
        return self.entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def items(self):
        return self.entries.items()

    def walk(self, prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], "CatalogValue"]]:
        """Yield ``(path, leaf)`` for every non-namespace leaf, depth first."""
        for name, value in self.entries.items():
            path = prefix + (name,)
            if isinstance(value, Namespace):
                yield from value.walk(path)
            else:
                yield path, value

    def signatures(self) -> Dict[str, Signature]:
        """Dotted qualified name → signature, for every function in the tree."""
        return {
            ".".join(path): value
            for path, value in self.walk()
            if isinstance(value, Signature)
        }

    def to_plain(self) -> Dict[str, Any]:
        """Nested plain-dict form, used by the JSON presenter."""
        out: Dict[str, Any] = {}
        for name, value in self.entries.items():
            if isinstance(value, Namespace):
                out[name] = value.to_plain()
            elif isinstance(value, Signature):
                out[name] = {"fn": list(value.params)}
            elif isinstance(value, Opaque):
                out[name] = {"opaque": value.tag}
            else:
                out[name] = None
        return out


CatalogValue = Union[Signature, Namespace, Opaque, _Absent]
