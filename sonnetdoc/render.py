"""
sonnetdoc/render.py
===================

Presenters for a resolved catalog.

Formats
-------
text
    One line per function: ``fn k8s.apps.deployment(name, replicas)``, the
    last name segment in bold when colour is on.  ``Opaque`` and ``ABSENT``
    leaves are hidden unless ``show_opaque`` is set.
json
    Nested objects; a function is ``{"fn": ["name", "replicas"]}``.
sexp
    ``(namespace ("name" value) ...)`` written with ``sexpdata.dumps``.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, Iterable, List, Optional, TextIO, Tuple

import sexpdata
from sexpdata import Symbol

from .catalog import ABSENT, CatalogValue, Namespace, Opaque, Signature

FORMATS = ("text", "json", "sexp")


# ═══════════════════════════════════════════════════════════════════════════
# TERMINAL COLORS
# ═══════════════════════════════════════════════════════════════════════════

class _Colors:
    """ANSI color codes, disabled when not writing to a TTY."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _code(self, code: str) -> str:
        return code if self.enabled else ""

    @property
    def RESET(self) -> str:
        return self._code("\033[0m")

    @property
    def BOLD(self) -> str:
        return self._code("\033[1m")

    @property
    def DIM(self) -> str:
        return self._code("\033[2m")

    @property
    def RED(self) -> str:
        return self._code("\033[31m")


def _get_colors(stream: TextIO = sys.stdout, mode: str = "auto") -> _Colors:
    """Get color codes appropriate for the given stream.

    *mode* is ``"always"``, ``"never"`` or ``"auto"``; ``auto`` enables colour
    on a TTY unless ``NO_COLOR`` is set.
    """
    if mode == "always":
        return _Colors(enabled=True)
    if mode == "never":
        return _Colors(enabled=False)
    try:
        is_tty = hasattr(stream, "isatty") and stream.isatty()
    except (AttributeError, ValueError, OSError):
        is_tty = False
    return _Colors(enabled=is_tty and os.environ.get("NO_COLOR") is None)


# ═══════════════════════════════════════════════════════════════════════════
# TEXT
# ═══════════════════════════════════════════════════════════════════════════

def _items(ns: Namespace, sort_keys: bool) -> Iterable[Tuple[str, CatalogValue]]:
    return sorted(ns.items()) if sort_keys else ns.items()


def _as_namespace(value: CatalogValue) -> Namespace:
    """A root that is not an object is shown as a single unnamed entry."""
    if isinstance(value, Namespace):
        return value
    return Namespace({"": value})


def text_lines(
    catalog: CatalogValue,
    colors: Optional[_Colors] = None,
    sort_keys: bool = False,
    show_opaque: bool = False,
) -> List[str]:
    c = colors or _Colors(enabled=False)
    lines: List[str] = []

    def emit(ns: Namespace, prefix: str) -> None:
        for name, value in _items(ns, sort_keys):
            if isinstance(value, Namespace):
                emit(value, f"{prefix}{name}.")
            elif isinstance(value, Signature):
                lines.append(
                    f"fn {prefix}{c.BOLD}{name}{c.RESET}({', '.join(value.params)})"
                )
            elif show_opaque:
                tag = value.tag if isinstance(value, Opaque) else "absent"
                lines.append(f"{c.DIM}{prefix}{name}: {tag}{c.RESET}")

    emit(_as_namespace(catalog), "")
    return lines


def render_text(catalog: CatalogValue, stream: Optional[TextIO] = None, **options: Any) -> None:
    stream = stream or sys.stdout
    for line in text_lines(catalog, **options):
        stream.write(line + "\n")


# ═══════════════════════════════════════════════════════════════════════════
# JSON
# ═══════════════════════════════════════════════════════════════════════════

def render_json(
    catalog: CatalogValue,
    stream: Optional[TextIO] = None,
    sort_keys: bool = False,
    show_opaque: bool = False,
) -> None:
    stream = stream or sys.stdout
    ns = _as_namespace(catalog)
    plain = ns.to_plain() if show_opaque else _functions_only(ns)
    json.dump(plain, stream, indent=2, sort_keys=sort_keys)
    stream.write("\n")


def _functions_only(ns: Namespace) -> Dict[str, Any]:
    """``to_plain`` without opaque and absent leaves."""
    out: Dict[str, Any] = {}
    for name, value in ns.items():
        if isinstance(value, Namespace):
            out[name] = _functions_only(value)
        elif isinstance(value, Signature):
            out[name] = {"fn": list(value.params)}
    return out


# ═══════════════════════════════════════════════════════════════════════════
# S-EXPRESSIONS
# ═══════════════════════════════════════════════════════════════════════════

def to_sexp(value: CatalogValue, sort_keys: bool = False, show_opaque: bool = False) -> Any:
    """Convert a catalog value into ``sexpdata`` lists and symbols."""
    if isinstance(value, Namespace):
        form: List[Any] = [Symbol("namespace")]
        for name, child in _items(value, sort_keys):
            if not show_opaque and not isinstance(child, (Namespace, Signature)):
                continue
            form.append([name, to_sexp(child, sort_keys, show_opaque)])
        return form
    if isinstance(value, Signature):
        return [Symbol("fn")] + list(value.params)
    if isinstance(value, Opaque):
        return [Symbol("opaque"), Symbol(value.tag)]
    if value is ABSENT:
        return Symbol("absent")
    raise TypeError(f"not a catalog value: {value!r}")


def render_sexp(
    catalog: CatalogValue,
    stream: Optional[TextIO] = None,
    sort_keys: bool = False,
    show_opaque: bool = False,
) -> None:
    stream = stream or sys.stdout
    stream.write(sexpdata.dumps(to_sexp(catalog, sort_keys, show_opaque)))
    stream.write("\n")


def render(
    catalog: CatalogValue,
    fmt: str = "text",
    stream: Optional[TextIO] = None,
    colors: Optional[_Colors] = None,
    sort_keys: bool = False,
    show_opaque: bool = False,
) -> None:
    """Write *catalog* to *stream* in format *fmt*."""
    if fmt == "text":
        render_text(
            catalog, stream, colors=colors, sort_keys=sort_keys, show_opaque=show_opaque
        )
    elif fmt == "json":
        render_json(catalog, stream, sort_keys=sort_keys, show_opaque=show_opaque)
    elif fmt == "sexp":
        render_sexp(catalog, stream, sort_keys=sort_keys, show_opaque=show_opaque)
    else:
        raise ValueError(f"unknown output format {fmt!r}; expected one of {FORMATS}")
