"""sonnetdoc/parser.py – Jsonnet source → expression tree.

Parsing runs in two steps: :data:`sonnetdoc.grammar.GRAMMAR` turns the text
into a parsimonious parse tree, then :class:`JsonnetASTBuilder` (a
``NodeVisitor``) turns that tree into the frozen dataclasses of
:mod:`sonnetdoc.ast`.

Desugaring done here
--------------------
* ``local f(x) = e`` becomes ``Bind("f", Function(...))``.
* ``{ f(x): e }`` becomes a field whose body is a ``Function``.
* ``(e)`` becomes ``e``.
* ``a.b`` becomes ``Index(a, LiteralString("b"))``.
* Binary operators are folded with Jsonnet precedence, all left
  associative.

Public API
----------
``parse(text, filename) -> Node``
``parse_file(path) -> Node``
"""

from __future__ import annotations

import bisect
import contextlib
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.nodes import Node, NodeVisitor

from . import ast as A
from .errors import JsonnetSyntaxError, SdocErrorCodes, SourceSpan
from .grammar import GRAMMAR

logger = logging.getLogger(__name__)

#: Binding power of each binary operator; higher binds tighter.
BINARY_PRECEDENCE: Dict[str, int] = {
    "*": 12, "/": 12, "%": 12,
    "+": 11, "-": 11,
    "<<": 10, ">>": 10,
    "<": 9, "<=": 9, ">": 9, ">=": 9, "in": 9,
    "==": 8, "!=": 8,
    "&": 7,
    "^": 6,
    "|": 5,
    "&&": 4,
    "||": 3,
}

_ESCAPES = {
    '"': '"', "'": "'", "\\": "\\", "/": "/",
    "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t",
}

# Parse trees for nested objects get deep; parsimonious recurses per rule.
_PARSE_RECURSION_LIMIT = 10_000


# ═══════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════

def _repeat(value: Any) -> List[Any]:
    """Items of a ``*`` / ``+`` group (parsimonious yields the bare node when empty)."""
    return value if isinstance(value, list) else []


def _opt(value: Any) -> Any:
    """Content of a ``?`` group, or ``None`` when it did not match."""
    return value[0] if isinstance(value, list) else None


def _text(value: Any) -> str:
    return value.text if isinstance(value, Node) else str(value)


def _sep_list(first: Any, rest: Any, index: int = 3) -> List[Any]:
    """``first (_ "," _ item)*`` → ``[first, item, ...]``."""
    return [first] + [group[index] for group in _repeat(rest)]


@contextlib.contextmanager
def _recursion_limit(limit: int) -> Iterator[None]:
    previous = sys.getrecursionlimit()
    if previous < limit:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


# ═══════════════════════════════════════════════════════════════════
#  Parse tree → AST
# ═══════════════════════════════════════════════════════════════════

class JsonnetASTBuilder(NodeVisitor):
    """Transforms a parsimonious parse tree into :mod:`sonnetdoc.ast` nodes."""

    unwrapped_exceptions = (JsonnetSyntaxError,)

    def __init__(self, text: str, filename: str = "<snippet>") -> None:
        self.text = text
        self.filename = filename
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    def _loc(self, node: Node) -> A.SourceLoc:
        line = bisect.bisect_right(self._line_starts, node.start)
        col = node.start - self._line_starts[line - 1] + 1
        return A.SourceLoc(self.filename, line, col)

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit__(self, node, visited_children):
        return None

    def visit_document(self, node, visited_children):
        _, expr, _ = visited_children
        return expr

    # ─────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────

    def visit_binary_expr(self, node, visited_children):
        first, rest = visited_children
        operands = [first]
        operators: List[Tuple[str, A.SourceLoc]] = []
        for _, op, _, operand in _repeat(rest):
            operators.append(op)
            operands.append(operand)
        if not operators:
            return first
        return self._fold(operands, operators)

    def _fold(
        self,
        operands: List[A.Node],
        operators: List[Tuple[str, A.SourceLoc]],
    ) -> A.Node:
        """Shunting-yard over a flat ``a op b op c`` chain."""
        out: List[A.Node] = [operands[0]]
        pending: List[Tuple[str, A.SourceLoc]] = []

        def reduce() -> None:
            op, loc = pending.pop()
            right = out.pop()
            left = out.pop()
            out.append(A.Binary(left, op, right, loc=loc))

        for (op, loc), operand in zip(operators, operands[1:]):
            while pending and BINARY_PRECEDENCE[pending[-1][0]] >= BINARY_PRECEDENCE[op]:
                reduce()
            pending.append((op, loc))
            out.append(operand)
        while pending:
            reduce()
        return out[0]

    def visit_binary_op(self, node, visited_children):
        return node.text, self._loc(node)

    def visit_unary_expr(self, node, visited_children):
        (inner,) = visited_children
        if isinstance(inner, list):
            op, _, operand = inner
            return A.Unary(op, operand, loc=self._loc(node))
        return inner

    def visit_unary_op(self, node, visited_children):
        return node.text

    # ─────────────────────────────────────────────────────────────
    # Postfix: member, index, slice, call, object apply
    # ─────────────────────────────────────────────────────────────

    def visit_postfix_expr(self, node, visited_children):
        target, ops = visited_children
        for kind, loc, payload in _repeat(ops):
            if kind == "index":
                target = A.Index(target, payload, loc=loc)
            elif kind == "slice":
                begin, end, step = payload
                target = A.Slice(target, begin, end, step, loc=loc)
            elif kind == "call":
                positional, named, tailstrict = payload
                target = A.Apply(target, positional, named, tailstrict, loc=loc)
            else:
                target = A.ApplyBrace(target, payload, loc=loc)
        return target

    def visit_postfix_op(self, node, visited_children):
        _, (op,) = visited_children
        if isinstance(op, (A.Object, A.ObjectComprehension)):
            return "brace", op.loc, op
        return op

    def visit_member_op(self, node, visited_children):
        _, _, name = visited_children
        loc = self._loc(node)
        return "index", loc, A.LiteralString(name, loc=loc)

    def visit_index_op(self, node, visited_children):
        _, _, expr, _, _ = visited_children
        return "index", self._loc(node), expr

    def visit_slice_op(self, node, visited_children):
        _, _, begin, _, _, _, end, step_group, _, _ = visited_children
        step = None
        step_part = _opt(step_group)
        if step_part is not None:
            step = _opt(step_part[3])
        return "slice", self._loc(node), (_opt(begin), _opt(end), step)

    def visit_call_op(self, node, visited_children):
        _, _, args, _, _, tailstrict = visited_children
        positional: List[A.Node] = []
        named: List[Tuple[str, A.Node]] = []
        for arg in _opt(args) or []:
            if isinstance(arg, tuple):
                named.append(arg)
            elif named:
                raise JsonnetSyntaxError(
                    "Positional argument after a named argument",
                    span=self._span(node),
                )
            else:
                positional.append(arg)
        return "call", self._loc(node), (
            tuple(positional), tuple(named), _opt(tailstrict) is not None,
        )

    def visit_args(self, node, visited_children):
        first, rest, _ = visited_children
        return _sep_list(first, rest)

    def visit_arg(self, node, visited_children):
        return visited_children[0]

    def visit_named_arg(self, node, visited_children):
        name, _, _, _, _, expr = visited_children
        return (name, expr)

    def visit_primary_expr(self, node, visited_children):
        (value,) = visited_children
        if isinstance(value, str):
            return A.Var(value, loc=self._loc(node))
        return value

    # ─────────────────────────────────────────────────────────────
    # Keyword expressions
    # ─────────────────────────────────────────────────────────────

    def visit_local_expr(self, node, visited_children):
        _, _, first, rest, _, _, _, body = visited_children
        return A.Local(tuple(_sep_list(first, rest)), body, loc=self._loc(node))

    def visit_bind(self, node, visited_children):
        return visited_children[0]

    def visit_function_bind(self, node, visited_children):
        name, _, _, _, params, _, _, _, _, _, body = visited_children
        loc = self._loc(node)
        fn = A.Function(
            A.Parameters.from_params(tuple(_opt(params) or ())), body, loc=loc
        )
        return A.Bind(name, fn, loc=loc)

    def visit_value_bind(self, node, visited_children):
        name, _, _, _, _, body = visited_children
        return A.Bind(name, body, loc=self._loc(node))

    def visit_params(self, node, visited_children):
        first, rest, _ = visited_children
        params = _sep_list(first, rest)
        seen = set()
        for p in params:
            if p.name in seen:
                raise JsonnetSyntaxError(
                    f"Duplicate parameter '{p.name}'", span=self._span(node)
                )
            seen.add(p.name)
        return params

    def visit_param(self, node, visited_children):
        name, default = visited_children
        default_group = _opt(default)
        return A.Param(
            name,
            default_group[3] if default_group is not None else None,
            loc=self._loc(node),
        )

    def visit_if_expr(self, node, visited_children):
        _, _, cond, _, _, _, then, else_group = visited_children
        else_part = _opt(else_group)
        return A.Conditional(
            cond,
            then,
            else_part[3] if else_part is not None else None,
            loc=self._loc(node),
        )

    def visit_function_expr(self, node, visited_children):
        _, _, _, _, params, _, _, _, body = visited_children
        return A.Function(
            A.Parameters.from_params(tuple(_opt(params) or ())),
            body,
            loc=self._loc(node),
        )

    def visit_assert_expr(self, node, visited_children):
        (cond, message), _, _, _, rest = visited_children
        return A.Assert(cond, message, rest, loc=self._loc(node))

    def visit_assertion(self, node, visited_children):
        _, _, cond, message_group = visited_children
        message = _opt(message_group)
        return cond, message[3] if message is not None else None

    def visit_error_expr(self, node, visited_children):
        _, _, expr = visited_children
        return A.Error(expr, loc=self._loc(node))

    def visit_import_expr(self, node, visited_children):
        kind, _, target = visited_children
        loc = self._loc(node)
        if kind == "importstr":
            return A.ImportStr(target.value, loc=loc)
        if kind == "importbin":
            return A.ImportBin(target.value, loc=loc)
        return A.Import(target.value, loc=loc)

    def visit_import_kw(self, node, visited_children):
        return node.text

    def visit_super_expr(self, node, visited_children):
        _, _, (access,) = visited_children
        loc = self._loc(node)
        if len(access) == 3:
            return A.SuperIndex(A.LiteralString(access[2], loc=loc), loc=loc)
        return A.SuperIndex(access[2], loc=loc)

    def visit_parens(self, node, visited_children):
        _, _, expr, _, _ = visited_children
        return expr

    # ─────────────────────────────────────────────────────────────
    # Objects
    # ─────────────────────────────────────────────────────────────

    def visit_object(self, node, visited_children):
        _, _, body, _, _ = visited_children
        loc = self._loc(node)
        members = _opt(body)
        if isinstance(members, A.ObjectComprehension):
            return members

        fields: List[A.Field] = []
        binds: List[A.Bind] = []
        asserts: List[A.Node] = []
        for member in members or []:
            if isinstance(member, A.Field):
                fields.append(member)
            elif isinstance(member, A.Bind):
                binds.append(member)
            else:
                cond, _ = member
                asserts.append(cond)

        seen = set()
        for f in fields:
            if f.name is None:
                continue
            if f.name in seen:
                raise JsonnetSyntaxError(
                    f"Duplicate field '{f.name}'", span=self._span_at(f.loc)
                )
            seen.add(f.name)

        return A.Object(tuple(fields), tuple(binds), tuple(asserts), loc=loc)

    def visit_object_body(self, node, visited_children):
        return visited_children[0]

    def visit_object_members(self, node, visited_children):
        first, rest, _ = visited_children
        return _sep_list(first, rest)

    def visit_member(self, node, visited_children):
        return visited_children[0]

    def visit_object_local(self, node, visited_children):
        _, _, bind = visited_children
        return bind

    def visit_field(self, node, visited_children):
        name, _, params, _, sep, _, body = visited_children
        loc = self._loc(node)
        param_list = _opt(params)
        if param_list is not None:
            body = A.Function(A.Parameters.from_params(tuple(param_list)), body, loc=loc)

        name_expr: Optional[A.Node] = None
        if isinstance(name, A.LiteralString):
            field_name: Optional[str] = name.value
        elif isinstance(name, str):
            field_name = name
        else:
            field_name, name_expr = None, name[1]

        return A.Field(
            field_name,
            body,
            hidden=sep.lstrip("+") == "::",
            plus_super=sep.startswith("+"),
            name_expr=name_expr,
            loc=loc,
        )

    def visit_field_params(self, node, visited_children):
        _, _, params, _, _ = visited_children
        return _opt(params) or []

    def visit_field_name(self, node, visited_children):
        return visited_children[0]

    def visit_computed_name(self, node, visited_children):
        _, _, expr, _, _ = visited_children
        return ("computed", expr)

    def visit_field_sep(self, node, visited_children):
        return node.text

    def visit_object_comprehension(self, node, visited_children):
        (pre, (_, name_expr), _, _, _, body, post, _, _, first_spec,
         more_specs) = visited_children
        binds = [group[0] for group in _repeat(pre)]
        binds += [group[3] for group in _repeat(post)]
        specs = self._specs(first_spec, more_specs)
        return A.ObjectComprehension(
            name_expr, body, specs, tuple(binds), loc=self._loc(node)
        )

    # ─────────────────────────────────────────────────────────────
    # Arrays & comprehensions
    # ─────────────────────────────────────────────────────────────

    def visit_array(self, node, visited_children):
        _, _, body, _, _ = visited_children
        content = _opt(body)
        if isinstance(content, A.ArrayComprehension):
            return content
        return A.Array(tuple(content or ()), loc=self._loc(node))

    def visit_array_body(self, node, visited_children):
        return visited_children[0]

    def visit_array_elements(self, node, visited_children):
        first, rest, _ = visited_children
        return _sep_list(first, rest)

    def visit_array_comprehension(self, node, visited_children):
        body, _, _, first_spec, more_specs = visited_children
        return A.ArrayComprehension(
            body, self._specs(first_spec, more_specs), loc=self._loc(node)
        )

    def visit_for_spec(self, node, visited_children):
        _, _, name, _, _, _, expr = visited_children
        return A.ForSpec(name, expr, loc=self._loc(node))

    def visit_if_spec(self, node, visited_children):
        _, _, cond = visited_children
        return ("if", cond)

    def visit_comp_spec(self, node, visited_children):
        return visited_children[0]

    def _specs(self, first: A.ForSpec, more: Any) -> Tuple[A.ForSpec, ...]:
        """Attach each ``if`` clause to the ``for`` clause before it."""
        specs = [first]
        for _, spec in _repeat(more):
            if isinstance(spec, A.ForSpec):
                specs.append(spec)
            else:
                last = specs[-1]
                specs[-1] = A.ForSpec(
                    last.variable, last.expr, last.conditions + (spec[1],), loc=last.loc
                )
        return tuple(specs)

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    def visit_string(self, node, visited_children):
        return visited_children[0]

    def visit_double_string(self, node, visited_children):
        return A.LiteralString(self._unescape(node, node.text[1:-1]), loc=self._loc(node))

    visit_single_string = visit_double_string

    def visit_verbatim_string(self, node, visited_children):
        quote = node.text[1]
        value = node.text[2:-1].replace(quote * 2, quote)
        return A.LiteralString(value, loc=self._loc(node))

    def visit_text_block(self, node, visited_children):
        raw = node.text
        chomp = raw.startswith("|||-")
        lines = raw.split("\n")[1:-1]
        first = next((ln for ln in lines if ln.strip()), "")
        indent = first[: len(first) - len(first.lstrip(" \t"))]
        if not indent:
            raise JsonnetSyntaxError(
                "Text block's first line must start with whitespace",
                span=self._span(node),
                code=SdocErrorCodes.INVALID_LITERAL,
            )
        body = []
        for ln in lines:
            if ln.startswith(indent):
                body.append(ln[len(indent):])
            elif not ln.strip():
                body.append("")
            else:
                raise JsonnetSyntaxError(
                    "Text block not terminated with |||",
                    span=self._span(node),
                    code=SdocErrorCodes.INVALID_LITERAL,
                )
        value = "\n".join(body)
        if not chomp:
            value += "\n"
        return A.LiteralString(value, loc=self._loc(node))

    def visit_number(self, node, visited_children):
        return A.LiteralNumber(float(node.text), node.text, loc=self._loc(node))

    def visit_null_lit(self, node, visited_children):
        return A.LiteralNull(loc=self._loc(node))

    def visit_true_lit(self, node, visited_children):
        return A.LiteralBoolean(True, loc=self._loc(node))

    def visit_false_lit(self, node, visited_children):
        return A.LiteralBoolean(False, loc=self._loc(node))

    def visit_self_lit(self, node, visited_children):
        return A.Self(loc=self._loc(node))

    def visit_dollar_lit(self, node, visited_children):
        return A.Dollar(loc=self._loc(node))

    def visit_identifier(self, node, visited_children):
        return node.text

    # ─────────────────────────────────────────────────────────────
    # Utilities
    # ─────────────────────────────────────────────────────────────

    def _span(self, node: Node) -> SourceSpan:
        return self._span_at(self._loc(node))

    def _span_at(self, loc: A.SourceLoc) -> SourceSpan:
        return SourceSpan(file=loc.file, line=loc.line, column=loc.col)

    def _unescape(self, node: Node, raw: str) -> str:
        out: List[str] = []
        i = 0
        while i < len(raw):
            ch = raw[i]
            if ch != "\\":
                out.append(ch)
                i += 1
                continue
            nxt = raw[i + 1]
            if nxt in _ESCAPES:
                out.append(_ESCAPES[nxt])
                i += 2
            elif nxt == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", raw[i + 2:i + 6]):
                out.append(chr(int(raw[i + 2:i + 6], 16)))
                i += 6
            else:
                raise JsonnetSyntaxError(
                    f"Unknown escape sequence '\\{nxt}' in string literal",
                    span=self._span(node),
                    code=SdocErrorCodes.INVALID_LITERAL,
                )
        return "".join(out)


# ═══════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════

_CLOSERS = frozenset(")]}")


def _truncated(exc: ParseError, rest: str) -> bool:
    """Whether the text ran out before the expression did.

    parsimonious reports the start of the rule that failed, not how far the
    match got, so a failure on the last token means the input ended early
    unless that token is a stray closing bracket or trails a complete document.
    """
    if not rest:
        return True
    if isinstance(exc, IncompleteParseError) or len(rest.split(None, 1)) > 1:
        return False
    return rest not in _CLOSERS


def _syntax_error(exc: ParseError, text: str, filename: str) -> JsonnetSyntaxError:
    line, column = exc.line(), exc.column()
    rest = text[exc.pos:].strip()
    got = rest.split(None, 1)[0] if rest else ""
    if _truncated(exc, rest):
        err = JsonnetSyntaxError(
            "Unexpected end of file",
            span=SourceSpan(file=filename, line=line, column=column),
            code=SdocErrorCodes.UNEXPECTED_EOF,
            cause=exc,
        )
    else:
        err = JsonnetSyntaxError(
            f"Unexpected {got[:20]!r}",
            span=SourceSpan(file=filename, line=line, column=column),
            got=got,
            cause=exc,
        )
    lines = text.splitlines()
    if 0 < line <= len(lines):
        err.error_message.with_source(lines[line - 1])
    return err


def parse(text: str, filename: str = "<snippet>") -> A.Node:
    """Parse Jsonnet *text*; *filename* is recorded in every ``SourceLoc``."""
    with _recursion_limit(_PARSE_RECURSION_LIMIT):
        try:
            tree = GRAMMAR.parse(text)
        except IncompleteParseError as exc:
            raise _syntax_error(exc, text, filename) from exc
        except ParseError as exc:
            raise _syntax_error(exc, text, filename) from exc
        node = JsonnetASTBuilder(text, filename).visit(tree)
    logger.debug("parsed %s", filename)
    return node


def parse_file(path: Union[str, Path]) -> A.Node:
    """Read and parse *path*.  ``OSError``/``UnicodeDecodeError`` propagate."""
    p = Path(path)
    return parse(p.read_text(encoding="utf-8"), str(p))
