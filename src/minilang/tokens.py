"""
Token types for the MiniLang lexer.

Token type categories follow the diagnostic code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Declared-type errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the MiniLang lexer."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42
    FLOAT_LITERAL = auto()      # 3.14, 2.5e10
    STRING_LITERAL = auto()     # "hello", 'hello'
    BOOL_LITERAL = auto()       # true, false
    NIL_LITERAL = auto()        # nil

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    IF = auto()                 # if
    ELSE = auto()               # else
    WHILE = auto()              # while
    FOR = auto()                # for
    FUNC = auto()               # func
    RETURN = auto()             # return
    VAR = auto()                # var (no declared type)
    BREAK = auto()              # break
    CONTINUE = auto()           # continue
    CLASS = auto()              # class
    THIS = auto()               # this
    SUPER = auto()              # super
    EXTENDS = auto()            # extends
    THROW = auto()              # throw
    TRY = auto()                # try
    CATCH = auto()              # catch

    # --- Type keywords ---
    TYPE_INT = auto()           # int
    TYPE_FLOAT = auto()         # float
    TYPE_BOOL = auto()          # bool
    TYPE_STRING = auto()        # string
    TYPE_ARRAY = auto()         # array
    TYPE_DICT = auto()          # dict
    TYPE_OBJECT = auto()        # object

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %

    # --- Comparison operators ---
    EQ = auto()                 # ==
    NE = auto()                 # !=
    LT = auto()                 # <
    LE = auto()                 # <=
    GT = auto()                 # >
    GE = auto()                 # >=

    # --- Logical operators ---
    AND = auto()                # &&
    OR = auto()                 # ||
    NOT = auto()                # ! or not

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COMMA = auto()              # ,
    COLON = auto()              # :
    DOT = auto()                # .
    SEMICOLON = auto()          # ;

    # --- Special ---
    EOF = auto()                # end of file


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    @property
    def line(self) -> int:
        """The line the span starts on."""
        return self.start.line

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # The actual value (int, float, str, etc.)
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.FLOAT_LITERAL,
                         TokenType.STRING_LITERAL, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "func": TokenType.FUNC,
    "return": TokenType.RETURN,
    "var": TokenType.VAR,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "class": TokenType.CLASS,
    "this": TokenType.THIS,
    "super": TokenType.SUPER,
    "extends": TokenType.EXTENDS,
    "throw": TokenType.THROW,
    "try": TokenType.TRY,
    "catch": TokenType.CATCH,
    "not": TokenType.NOT,

    # Literals
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
    "nil": TokenType.NIL_LITERAL,

    # Declared types
    "int": TokenType.TYPE_INT,
    "float": TokenType.TYPE_FLOAT,
    "bool": TokenType.TYPE_BOOL,
    "string": TokenType.TYPE_STRING,
    "array": TokenType.TYPE_ARRAY,
    "dict": TokenType.TYPE_DICT,
    "object": TokenType.TYPE_OBJECT,
}


# Statement-leading keywords the parser resynchronizes on after an error
STATEMENT_KEYWORDS: frozenset = frozenset({
    TokenType.CLASS,
    TokenType.FUNC,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.RETURN,
    TokenType.THROW,
    TokenType.TRY,
})


def is_type_token(token_type: TokenType) -> bool:
    """Check if a token type represents a type keyword."""
    return token_type.name.startswith("TYPE_")
