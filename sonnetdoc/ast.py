"""sonnetdoc/ast.py – Expression tree for the Jsonnet subset.

The parser (:mod:`sonnetdoc.parser`) produces these nodes and the resolver
(:mod:`sonnetdoc.resolver`) consumes them.  The resolver only understands a
handful of shapes (``Local``, ``Object``, ``Function``, ``Import``, ``Var``,
``Index``); every other node class is reported by its class name.

Design invariants
-----------------
* Every node is a frozen dataclass (immutable after construction).
* Children are stored in tuples, never lists.
* Every node records its source location (``SourceLoc``) for diagnostics.
* Parenthesised expressions do not survive parsing; ``(e)`` is ``e``.

Module layout
-------------
§1  Source location
§2  Nodes the resolver understands
§3  Everything else
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

# ════════════════════════════════════════════════════════════════════════
# §1  Source location
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SourceLoc:
    """Points back to a position in a ``.jsonnet`` / ``.libsonnet`` file."""

    file: str = "<unknown>"
    line: int = 0
    col: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


#: Sentinel for synthesised nodes (no source position).
NO_LOC = SourceLoc()


# ════════════════════════════════════════════════════════════════════════
# §2  Nodes the resolver understands
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Bind:
    """One ``name = body`` entry of a ``local`` or of an object's locals."""

    variable: str
    body: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Local:
    """``local a = 1, b = 2; body``."""

    binds: Tuple[Bind, ...]
    body: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Field:
    """An object field.

    ``name`` is ``None`` when the field name is computed (``[expr]: ...``);
    the expression is then kept in ``name_expr``.
    """

    name: Optional[str]
    body: "Node"
    hidden: bool = False          # ``::``
    plus_super: bool = False      # ``+:``
    name_expr: Optional["Node"] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Object:
    """An object literal with its fields, object-level locals and asserts."""

    fields: Tuple[Field, ...] = ()
    locals: Tuple[Bind, ...] = ()
    asserts: Tuple["Node", ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    def field_names(self) -> Tuple[Optional[str], ...]:
        return tuple(f.name for f in self.fields)


@dataclass(frozen=True, slots=True)
class Param:
    name: str
    default: Optional["Node"] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Parameters:
    """Function parameters split the same way the resolver reports them.

    ``required`` holds the parameters without a default value and
    ``optional`` the ones with a default, each in declaration order.
    """

    required: Tuple[Param, ...] = ()
    optional: Tuple[Param, ...] = ()

    @classmethod
    def from_params(cls, params: Tuple[Param, ...]) -> "Parameters":
        return cls(
            required=tuple(p for p in params if p.default is None),
            optional=tuple(p for p in params if p.default is not None),
        )

    def names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.required) + tuple(
            p.name for p in self.optional
        )


@dataclass(frozen=True, slots=True)
class Function:
    parameters: Parameters
    body: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Import:
    """``import "file.libsonnet"``."""

    file: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Var:
    id: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Index:
    """``target.name`` or ``target[index]``."""

    target: "Node"
    index: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    @property
    def field_name(self) -> Optional[str]:
        """The indexed field when the index is a literal string."""
        if isinstance(self.index, LiteralString):
            return self.index.value
        return None


# ════════════════════════════════════════════════════════════════════════
# §3  Everything else
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class LiteralString:
    value: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class LiteralNumber:
    value: float
    text: str = ""
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class LiteralBoolean:
    value: bool
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class LiteralNull:
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Self:
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Dollar:
    """``$``, the outermost object."""

    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class SuperIndex:
    """``super.name`` / ``super[index]``."""

    index: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ImportStr:
    file: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ImportBin:
    file: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Binary:
    left: "Node"
    op: str
    right: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Unary:
    op: str
    expr: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Conditional:
    cond: "Node"
    branch_true: "Node"
    branch_false: Optional["Node"] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Apply:
    """A function call ``target(args...)``."""

    target: "Node"
    positional: Tuple["Node", ...] = ()
    named: Tuple[Tuple[str, "Node"], ...] = ()
    tailstrict: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ApplyBrace:
    """``left { ... }``, sugar for ``left + { ... }``."""

    left: "Node"
    right: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Slice:
    target: "Node"
    begin: Optional["Node"] = None
    end: Optional["Node"] = None
    step: Optional["Node"] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Array:
    elements: Tuple["Node", ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ForSpec:
    variable: str
    expr: "Node"
    conditions: Tuple["Node", ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ArrayComprehension:
    body: "Node"
    specs: Tuple[ForSpec, ...]
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ObjectComprehension:
    name_expr: "Node"
    body: "Node"
    specs: Tuple[ForSpec, ...]
    locals: Tuple[Bind, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Error:
    expr: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class Assert:
    cond: "Node"
    message: Optional["Node"]
    rest: "Node"
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


Node = Union[
    Local, Object, Function, Import, Var, Index,
    LiteralString, LiteralNumber, LiteralBoolean, LiteralNull,
    Self, Dollar, SuperIndex, ImportStr, ImportBin,
    Binary, Unary, Conditional, Apply, ApplyBrace, Slice,
    Array, ArrayComprehension, ObjectComprehension, Error, Assert,
]


def node_tag(node: object) -> str:
    """The diagnostic tag of *node*: its class name."""
    return type(node).__name__
