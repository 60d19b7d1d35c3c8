"""
MiniLang exceptions and error handling.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Declared-type errors (checked at runtime)
- E4xx: Runtime errors
- E5xx: Uncaught script-raised values
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None   # None until the runtime locates it
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    related: List["Diagnostic"] = field(default_factory=list)

    @property
    def line(self) -> Optional[int]:
        """The source line number, if known."""
        return self.span.start.line if self.span is not None else None

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        header = f"{self.severity.value}[{self.code}]: {self.message}"
        if self.span is not None:
            header = f"{self.span.start}: {header}"
        parts.append(header)

        # Source line with caret
        if show_source and self.source_line is not None and self.span is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        for related in self.related:
            where = f"{related.span.start}: " if related.span is not None else ""
            parts.append(f"    --> {where}{related.message}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        result = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": None,
            "hints": self.hints,
            "related": [r.to_json() for r in self.related],
        }
        if self.span is not None:
            result["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return result


class DslError(Exception):
    """Base exception for MiniLang errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    def locate(self, span: SourceSpan, source_line: Optional[str] = None) -> "DslError":
        """Attach a location if the error does not carry one yet."""
        if self.diagnostic.span is None:
            self.diagnostic.span = span
        if self.diagnostic.source_line is None and source_line is not None:
            self.diagnostic.source_line = source_line
        return self

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(DslError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(DslError):
    """Error during parsing (E1xx)."""
    pass


class ParseFailure(ParserError):
    """All syntax errors recorded while parsing one program."""

    def __init__(self, collector: "DiagnosticCollector"):
        self.collector = collector
        super().__init__(collector.diagnostics[0])

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.collector.diagnostics

    def __str__(self) -> str:
        return self.collector.format_all()


class ScriptError(DslError):
    """Runtime error raised while executing a program (E4xx)."""
    pass


class DeclaredTypeError(ScriptError):
    """A value did not satisfy a declared type annotation (E2xx)."""
    pass


class UncaughtThrow(DslError):
    """A thrown value reached the top level without a handler (E5xx)."""

    def __init__(self, diagnostic: Diagnostic, value: Any):
        self.value = value
        super().__init__(diagnostic)


class HostError(Exception):
    """
    Raised by native functions to report a failure.

    The interpreter converts it into a located ScriptError at the call site.
    """
    pass


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    if char in "&|":
        diag.hints.append(f"logical operators are written '{char}{char}'")
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with matching quotes"],
    )
    return LexerError(diag)


def error_unterminated_comment(span: SourceSpan, source_line: str = None) -> LexerError:
    """E004: Unterminated multi-line comment."""
    diag = Diagnostic(
        code="E004",
        message="unterminated multi-line comment (expected closing */)",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E006: Invalid number literal."""
    diag = Diagnostic(
        code="E006",
        message=f"invalid number literal '{text}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["integer literals must fit in a signed 64-bit integer"],
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E102: Unexpected end of file."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of file, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_invalid_expression(found: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Invalid expression."""
    diag = Diagnostic(
        code="E103",
        message=f"expected expression, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParserError:
    """E104: Invalid assignment target."""
    diag = Diagnostic(
        code="E104",
        message="invalid assignment target",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["only variables, index expressions and member accesses can be assigned"],
    )
    return ParserError(diag)


# --- Declared-type error codes ---

def _type_error(code: str, message: str, span: Optional[SourceSpan]) -> DeclaredTypeError:
    return DeclaredTypeError(Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
    ))


def error_initializer_mismatch(name: str, expected: str, found: str,
                               span: SourceSpan = None) -> DeclaredTypeError:
    """E201: Initializer does not match the declared type."""
    return _type_error(
        "E201",
        f"Initializer type mismatch for '{name}': expected {expected}, got {found}.",
        span,
    )


def error_assignment_mismatch(name: str, expected: str, found: str,
                              span: SourceSpan = None) -> DeclaredTypeError:
    """E202: Assignment to a typed variable with a value of the wrong type."""
    return _type_error(
        "E202",
        f"Type mismatch on assignment to static variable '{name}': expected {expected}, got {found}.",
        span,
    )


def error_argument_mismatch(name: str, expected: str, found: str,
                            span: SourceSpan = None) -> DeclaredTypeError:
    """E203: Argument does not match the parameter's declared type."""
    return _type_error(
        "E203",
        f"Argument type mismatch for parameter '{name}': expected {expected}, got {found}.",
        span,
    )


# --- Runtime error codes ---

def _runtime_error(code: str, message: str, span: Optional[SourceSpan],
                   hints: List[str] = None) -> ScriptError:
    return ScriptError(Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        hints=hints or [],
    ))


def error_undefined_variable(name: str, span: SourceSpan = None) -> ScriptError:
    """E401: Undefined variable."""
    return _runtime_error("E401", f"Undefined variable: {name}", span)


def error_undefined_property(name: str, span: SourceSpan = None) -> ScriptError:
    """E402: Undefined property or dictionary key."""
    return _runtime_error("E402", f"Undefined property '{name}'.", span)


def error_arity_mismatch(expected: int, got: int, span: SourceSpan = None) -> ScriptError:
    """E403: Wrong number of arguments."""
    return _runtime_error("E403", f"Expected {expected} arguments but got {got}.", span)


def error_not_callable(type_name: str, span: SourceSpan = None) -> ScriptError:
    """E404: Call of a non-callable value."""
    return _runtime_error(
        "E404", f"Can only call functions and classes, not {type_name}.", span,
    )


def error_index_out_of_bounds(index: int, length: int, span: SourceSpan = None) -> ScriptError:
    """E405: Index out of bounds."""
    return _runtime_error(
        "E405", f"Index {index} out of bounds for length {length}.", span,
    )


def error_division_by_zero(span: SourceSpan = None) -> ScriptError:
    """E406: Division by zero."""
    return _runtime_error("E406", "Division by zero.", span)


def error_modulo_by_zero(span: SourceSpan = None) -> ScriptError:
    """E406: Modulo by zero."""
    return _runtime_error("E406", "Modulo by zero.", span)


def error_invalid_operands(operator: str, left: str, right: str = None,
                           span: SourceSpan = None) -> ScriptError:
    """E407: Operator not defined for the operand types."""
    if right is None:
        message = f"Invalid operand for unary operator '{operator}': {left}."
    else:
        message = f"Invalid operands for binary operator '{operator}': {left} and {right}."
    return _runtime_error("E407", message, span)


def error_invalid_target(message: str, span: SourceSpan = None) -> ScriptError:
    """E408: Invalid assignment target at runtime."""
    return _runtime_error("E408", message, span)


def error_invalid_control_flow(keyword: str, context: str,
                               span: SourceSpan = None) -> ScriptError:
    """E409: return/break/continue outside the construct that handles it."""
    return _runtime_error("E409", f"Cannot '{keyword}' from {context}.", span)


def error_call_depth_exceeded(limit: int, span: SourceSpan = None) -> ScriptError:
    """E410: Call depth limit exceeded."""
    return _runtime_error(
        "E410", f"Maximum call depth of {limit} exceeded.", span,
        hints=["check for unbounded recursion, or raise --max-depth"],
    )


def error_native_failure(name: str, message: str, span: SourceSpan = None) -> ScriptError:
    """E411: A native function reported a failure."""
    return _runtime_error("E411", message, span, hints=[f"raised by native function '{name}'"])


def error_invalid_access(message: str, span: SourceSpan = None) -> ScriptError:
    """E412: Member or index access on a value that does not support it."""
    return _runtime_error("E412", message, span)


def error_class_definition(message: str, span: SourceSpan = None) -> ScriptError:
    """E413: Invalid class definition or construction."""
    return _runtime_error("E413", message, span)


def error_invalid_receiver(keyword: str, span: SourceSpan = None) -> ScriptError:
    """E414: 'this' or 'super' used outside a method."""
    return _runtime_error("E414", f"Cannot use '{keyword}' outside of a class method.", span)


def error_not_iterable(type_name: str, span: SourceSpan = None) -> ScriptError:
    """E415: for-each over a value that is not an array or string."""
    return _runtime_error("E415", f"Can only iterate over arrays and strings, not {type_name}.", span)


def error_uncaught_throw(display: str, value: Any, span: SourceSpan = None) -> UncaughtThrow:
    """E501: A thrown value was not caught."""
    diag = Diagnostic(
        code="E501",
        message=f"Uncaught exception: {display}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return UncaughtThrow(diag, value)


class DiagnosticCollector:
    """Collects diagnostics during parsing and execution."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: DslError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
            "warning_count": self.warning_count,
        }
