"""
MiniLang: a small dynamically typed scripting language.

This package provides:
- Lexer: Tokenizes MiniLang source code
- Parser: Builds an AST from tokens
- Interpreter: Executes the AST with closures, classes and exceptions

Usage:
    from minilang import compile_and_run

    result = compile_and_run('''
    class Greeter {
        init(name) { this.name = name; }
        greet() { print("hello", this.name); }
    }
    Greeter("world").greet();
    ''')
    if not result.success:
        print(result.format_errors())
"""

from importlib.metadata import PackageNotFoundError, version

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    is_type_token,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    AstNode,
    AstVisitor,
    Program,
    print_ast,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DiagnosticCollector,
    DslError,
    LexerError,
    ParserError,
    ParseFailure,
    ScriptError,
    DeclaredTypeError,
    UncaughtThrow,
    HostError,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    execute,
    compile_and_run,
    Value,
    ValueKind,
    deep_copy,
)

try:
    __version__ = version("minilang")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

__all__ = [
    # Tokens
    "Token",
    "TokenType",
    "SourceLocation",
    "SourceSpan",
    "KEYWORDS",
    "is_type_token",
    # Lexer / Parser
    "Lexer",
    "tokenize",
    "Parser",
    "parse",
    # AST
    "AstNode",
    "AstVisitor",
    "Program",
    "print_ast",
    # Errors
    "ErrorSeverity",
    "Diagnostic",
    "DiagnosticCollector",
    "DslError",
    "LexerError",
    "ParserError",
    "ParseFailure",
    "ScriptError",
    "DeclaredTypeError",
    "UncaughtThrow",
    "HostError",
    # Runtime
    "Interpreter",
    "ExecutionResult",
    "execute",
    "compile_and_run",
    "Value",
    "ValueKind",
    "deep_copy",
]
