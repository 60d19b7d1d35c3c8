"""
Abstract Syntax Tree (AST) node definitions for MiniLang.

The AST represents the structure of a parsed program. Every node carries
the span it was parsed from, which the interpreter uses to locate runtime
errors.
"""

import sys
from dataclasses import dataclass, field
from typing import Optional, List, Union, Any, TextIO
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Type Nodes
# =============================================================================

@dataclass
class TypeNode(AstNode):
    """Base class for type annotations."""
    pass


@dataclass
class SimpleType(TypeNode):
    """A declared type keyword: int, float, bool, string, array, dict, object."""
    name: str


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value (int, float, string, bool, nil)."""
    value: Union[int, float, str, bool, None]
    literal_type: TokenType  # INT_LITERAL, FLOAT_LITERAL, STRING_LITERAL, BOOL_LITERAL, NIL_LITERAL


@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x && y)."""
    left: Expression
    operator: TokenType  # Includes AND, OR for logical operators
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (e.g., !x, -n)."""
    operator: TokenType
    operand: Expression


@dataclass
class Assignment(Expression):
    """An assignment; evaluates to the assigned value.

    The target is an Identifier, IndexAccess or MemberAccess.
    """
    target: Expression
    value: Expression


@dataclass
class FunctionCall(Expression):
    """A call (e.g., f(1, 2), obj.method(x), Point(1, 2))."""
    callee: Expression
    arguments: List[Expression]


@dataclass
class MemberAccess(Expression):
    """Member access (e.g., point.x)."""
    object: Expression
    member: str


@dataclass
class IndexAccess(Expression):
    """Index access (e.g., items[0], table["key"])."""
    object: Expression
    index: Expression


@dataclass
class ArrayLiteral(Expression):
    """An array literal (e.g., [1, 2, 3])."""
    elements: List[Expression]


@dataclass
class DictLiteral(Expression):
    """A dictionary literal (e.g., {name: "x", "other key": 2})."""
    entries: dict[str, Expression]


@dataclass
class ThisExpr(Expression):
    """The receiver inside a method body."""
    pass


@dataclass
class SuperAccess(Expression):
    """A superclass method reference (e.g., super.init)."""
    method: str


@dataclass
class FunctionExpr(Expression):
    """An anonymous function (e.g., func (x) { return x * 2; })."""
    parameters: List["Parameter"]
    body: "Block"


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class VarDecl(Statement):
    """A variable declaration.

    Syntax options:
        var x = 42;         # No declared type
        int x = 42;         # Declared type, checked on every assignment
        float y;            # Declared type, default value
    """
    name: str
    type_annotation: Optional[TypeNode]
    initializer: Optional[Expression]


@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression


@dataclass
class Block(Statement):
    """A brace-delimited block of statements; gets its own scope."""
    statements: List[Statement]


@dataclass
class IfStatement(Statement):
    """An if statement; else-if chains nest in else_branch."""
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    """A while loop."""
    condition: Expression
    body: Statement


@dataclass
class ForStatement(Statement):
    """A C-style for loop: for (init; condition; increment) body."""
    initializer: Optional[Statement]
    condition: Optional[Expression]
    increment: Optional[Expression]
    body: Statement


@dataclass
class ForEachStatement(Statement):
    """A for-each loop: for (var x : items) body."""
    variable: str
    type_annotation: Optional[TypeNode]
    iterable: Expression
    body: Statement


@dataclass
class ReturnStatement(Statement):
    """A return statement."""
    value: Optional[Expression] = None


@dataclass
class BreakStatement(Statement):
    """A break statement."""
    pass


@dataclass
class ContinueStatement(Statement):
    """A continue statement."""
    pass


@dataclass
class ThrowStatement(Statement):
    """A throw statement; any value may be thrown."""
    value: Expression


@dataclass
class TryStatement(Statement):
    """A try/catch statement.

    Syntax:
        try { ... } catch (err) { ... }
    """
    body: Block
    catch_name: str
    handler: Block


# =============================================================================
# Function and Class Definitions
# =============================================================================

@dataclass
class Parameter(AstNode):
    """A function parameter with an optional declared type."""
    name: str
    type_annotation: Optional[TypeNode] = None


@dataclass
class FunctionDef(Statement):
    """A named function definition (also used for class methods).

    Syntax:
        func name(int a, b) { ... }
    """
    name: str
    parameters: List[Parameter]
    body: Block


@dataclass
class ClassDef(Statement):
    """A class definition with optional superclass.

    Syntax:
        class Name extends Base {
            init(x) { this.x = x; }
            func get() { return this.x; }
        }
    """
    name: str
    superclass: Optional[Identifier]
    methods: List[FunctionDef] = field(default_factory=list)


@dataclass
class Program(AstNode):
    """A complete program: top-level statements executed in order."""
    statements: List[Statement]
    filename: Optional[str] = None


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that prints the AST structure."""

    def __init__(self, indent: int = 0, out: Optional[TextIO] = None):
        self.indent = indent
        self.out = out

    def _print(self, text: str) -> None:
        print("  " * self.indent + text, file=self.out or sys.stdout)

    def _child(self) -> "PrintVisitor":
        return PrintVisitor(self.indent + 2, self.out)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._print(f"  {name}:")
                self._child().generic_visit(value)
            elif isinstance(value, list):
                self._print(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child().generic_visit(item)
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            elif isinstance(value, dict):
                self._print(f"  {name}: {{")
                for key, item in value.items():
                    self._print(f"    {key!r}:")
                    PrintVisitor(self.indent + 3, self.out).generic_visit(item)
                self._print("  }")
            elif isinstance(value, TokenType):
                self._print(f"  {name}: {value.name}")
            else:
                self._print(f"  {name}: {value!r}")


def print_ast(node: AstNode, out: Optional[TextIO] = None) -> None:
    """Print an AST node for debugging."""
    PrintVisitor(out=out).generic_visit(node)
