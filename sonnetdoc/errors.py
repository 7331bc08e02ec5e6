# sonnetdoc/errors.py
"""
sonnetdoc Error Types

Structured exceptions for the parse → resolve pipeline.  Every exception
carries an ``ErrorMessage`` (code, span, notes, hint) so that the CLI can
print GCC-style diagnostics and tests can assert on the precise failure.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  SonnetdocError (base)                                                      │
│  ├── JsonnetSyntaxError       - Source text does not match the grammar      │
│  └── ResolutionError          - Catalog build aborted                       │
│      ├── UnknownIdentifier    - Variable not bound in the active scope      │
│      ├── ImportFailure        - Import could not be loaded                  │
│      └── ResolutionDepthExceeded - Recursion budget exhausted               │
└─────────────────────────────────────────────────────────────────────────────┘

Every ``ResolutionError`` is fatal: the whole catalog build stops and no
partial catalog is returned.  Missing indexed fields and unsupported
expressions are not errors at all; the resolver degrades them to
``Absent`` / ``Opaque`` catalog values.

Error Codes:
────────────
Each error has a unique code ``SDOC-NNNN``:
  - 1000-1999: Syntax errors
  - 3000-3999: Scope errors
  - 6000-6999: Import errors
  - 7000-7999: Resource limits
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto, unique
from typing import Any, Dict, List, Optional, Sequence


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for sonnetdoc diagnostics."""

    FATAL = "fatal"
    ERROR = "error"


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    SYNTAX = "syntax"          # Parsing
    RESOLUTION = "resolution"  # Catalog build
    IMPORT = "import"          # Loading imported files
    INTERNAL = "internal"


@unique
class ErrorCategory(Enum):
    UNEXPECTED_TOKEN = auto()
    UNEXPECTED_EOF = auto()
    INVALID_LITERAL = auto()
    UNDEFINED_SYMBOL = auto()
    IMPORT_NOT_FOUND = auto()
    IMPORT_UNREADABLE = auto()
    IMPORT_CYCLE = auto()
    RECURSION_LIMIT = auto()
    INTERNAL_ERROR = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code ``PREFIX-NNNN``.
    """

    __slots__ = ("prefix", "number", "category", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class SdocErrorCodes:
    """Predefined error codes."""

    # Syntax (1000-1999)
    UNEXPECTED_TOKEN = ErrorCode(
        "SDOC", 1000, ErrorCategory.UNEXPECTED_TOKEN, ErrorPhase.SYNTAX
    )
    UNEXPECTED_EOF = ErrorCode(
        "SDOC", 1001, ErrorCategory.UNEXPECTED_EOF, ErrorPhase.SYNTAX
    )
    INVALID_LITERAL = ErrorCode(
        "SDOC", 1002, ErrorCategory.INVALID_LITERAL, ErrorPhase.SYNTAX
    )

    # Scope (3000-3999)
    UNDEFINED_VARIABLE = ErrorCode(
        "SDOC", 3000, ErrorCategory.UNDEFINED_SYMBOL, ErrorPhase.RESOLUTION,
        ErrorSeverity.FATAL,
    )

    # Imports (6000-6999)
    IMPORT_NOT_FOUND = ErrorCode(
        "SDOC", 6000, ErrorCategory.IMPORT_NOT_FOUND, ErrorPhase.IMPORT,
        ErrorSeverity.FATAL,
    )
    IMPORT_UNREADABLE = ErrorCode(
        "SDOC", 6001, ErrorCategory.IMPORT_UNREADABLE, ErrorPhase.IMPORT,
        ErrorSeverity.FATAL,
    )
    IMPORT_CYCLE = ErrorCode(
        "SDOC", 6002, ErrorCategory.IMPORT_CYCLE, ErrorPhase.IMPORT,
        ErrorSeverity.FATAL,
    )

    # Resource limits (7000-7999)
    RECURSION_LIMIT = ErrorCode(
        "SDOC", 7000, ErrorCategory.RECURSION_LIMIT, ErrorPhase.RESOLUTION,
        ErrorSeverity.FATAL,
    )

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode(
        "SDOC", 9000, ErrorCategory.INTERNAL_ERROR, ErrorPhase.INTERNAL,
        ErrorSeverity.FATAL,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of source code with start and end positions.
    """

    file: str = ""
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0

    def __post_init__(self) -> None:
        # Normalize: if end not specified, use start
        if self.end_line == 0:
            object.__setattr__(self, "end_line", self.line)
        if self.end_column == 0:
            object.__setattr__(self, "end_column", self.column)

    @classmethod
    def from_node(cls, node: Any) -> "SourceSpan":
        """Create a SourceSpan from an AST node carrying a ``SourceLoc``."""
        loc = getattr(node, "loc", None)
        if loc is None:
            return cls()
        return cls(
            file=getattr(loc, "file", ""),
            line=getattr(loc, "line", 0),
            column=getattr(loc, "col", 0),
        )

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorNote:
    """
    Additional note attached to an error.
    """

    message: str
    span: Optional[SourceSpan] = None
    label: str = ""  # e.g., "note", "help"

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        if self.span:
            return f"{self.span}: {prefix}{self.message}"
        return f"{prefix}{self.message}"


@dataclass
class ErrorMessage:
    """
    A complete error message with all context.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    notes: List[ErrorNote] = field(default_factory=list)
    hint: str = ""
    source_line: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ErrorMessage":
        self.notes.append(ErrorNote(message=message, span=span, label=label))
        return self

    def with_hint(self, hint: str) -> "ErrorMessage":
        self.hint = hint
        return self

    def with_source(self, line: str) -> "ErrorMessage":
        self.source_line = line
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        main = f"{self.span}: {severity}: {self.message} [{self.code}]"

        lines = [main]

        if self.source_line:
            lines.append(f"    {self.source_line}")
            if self.span.column > 0:
                caret_pos = self.span.column - 1
                caret_len = max(1, self.span.end_column - self.span.column)
                lines.append(f"    {' ' * caret_pos}{'^' * caret_len}")

        for note in self.notes:
            lines.append(str(note))

        if self.hint:
            lines.append(f"hint: {self.hint}")

        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
            },
            "phase": self.code.phase.value,
            "notes": [str(note) for note in self.notes],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class SonnetdocError(Exception):
    """
    Base exception for all sonnetdoc errors.
    """

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or SdocErrorCodes.INTERNAL_ERROR,
            message=message,
            span=span or SourceSpan(),
            severity=severity,
            notes=notes or [],
            hint=hint,
        )
        self.cause = cause

    @property
    def message(self) -> str:
        return self.error_message.message

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_message.severity or ErrorSeverity.ERROR

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "SonnetdocError":
        self.error_message.add_note(message, span, label)
        return self

    def with_hint(self, hint: str) -> "SonnetdocError":
        self.error_message.with_hint(hint)
        return self

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def __str__(self) -> str:
        return self.to_gcc_format()


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class JsonnetSyntaxError(SonnetdocError):
    """Source text could not be parsed."""

    def __init__(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        code: Optional[ErrorCode] = None,
        got: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or SdocErrorCodes.UNEXPECTED_TOKEN,
            span=span,
            **kwargs,
        )
        self.got = got


# ───────────────────────────────────────────────────────────────────────────────
# RESOLUTION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ResolutionError(SonnetdocError):
    """Fatal error that aborts the whole catalog build."""


class UnknownIdentifier(ResolutionError):
    """A variable is not bound in the active scope."""

    def __init__(
        self,
        name: str,
        span: Optional[SourceSpan] = None,
        suggestions: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"Unknown variable '{name}'",
            code=SdocErrorCodes.UNDEFINED_VARIABLE,
            span=span,
            **kwargs,
        )
        self.name = name

        if suggestions:
            if len(suggestions) == 1:
                self.with_hint(f"Did you mean '{suggestions[0]}'?")
            else:
                self.add_note(f"Similar names: {', '.join(suggestions[:5])}")


class ImportFailure(ResolutionError):
    """The importer could not deliver the imported file."""

    def __init__(
        self,
        target: str,
        reason: str,
        span: Optional[SourceSpan] = None,
        code: Optional[ErrorCode] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"Couldn't import '{target}': {reason}",
            code=code or SdocErrorCodes.IMPORT_NOT_FOUND,
            span=span,
            **kwargs,
        )
        self.target = target
        self.reason = reason


class ImportCycleError(ImportFailure):
    """A file imports itself, directly or through other files."""

    def __init__(
        self,
        cycle: Sequence[str],
        span: Optional[SourceSpan] = None,
        **kwargs: Any,
    ) -> None:
        cycle_str = " -> ".join(cycle)
        super().__init__(
            target=cycle[-1] if cycle else "",
            reason=f"import cycle detected: {cycle_str}",
            span=span,
            code=SdocErrorCodes.IMPORT_CYCLE,
            **kwargs,
        )
        self.cycle = list(cycle)


class ResolutionDepthExceeded(ResolutionError):
    """The resolver went deeper than its configured budget."""

    def __init__(
        self,
        limit: int,
        span: Optional[SourceSpan] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"Resolution depth limit of {limit} exceeded",
            code=SdocErrorCodes.RECURSION_LIMIT,
            span=span,
            hint="Check for a local binding that refers back to itself, "
                 "or raise --max-depth",
            **kwargs,
        )
        self.limit = limit
