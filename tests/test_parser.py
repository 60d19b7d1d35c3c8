"""
Unit tests for the MiniLang parser.
"""

import io
import textwrap

import pytest
from minilang import tokenize, parse, ParseFailure, TokenType, print_ast
from minilang.ast import (
    Literal, Identifier, BinaryOp, UnaryOp, Assignment, FunctionCall,
    MemberAccess, IndexAccess, ArrayLiteral, DictLiteral, ThisExpr,
    SuperAccess, FunctionExpr,
    VarDecl, ExpressionStatement, Block, IfStatement, WhileStatement,
    ForStatement, ForEachStatement, FunctionDef, ClassDef, ReturnStatement,
    BreakStatement, ContinueStatement, ThrowStatement, TryStatement,
)


def parse_source(source):
    source = textwrap.dedent(source)
    return parse(tokenize(source), source=source)


def parse_expr(source):
    program = parse_source(source + ";")
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


class TestExpressions:
    """Test expression parsing and precedence."""

    def test_literal(self):
        expr = parse_expr("42")
        assert isinstance(expr, Literal)
        assert expr.value == 42
        assert expr.literal_type == TokenType.INT_LITERAL

    def test_multiplication_binds_tighter(self):
        expr = parse_expr("1 + 2 * 3")
        assert isinstance(expr, BinaryOp)
        assert expr.operator == TokenType.PLUS
        assert isinstance(expr.right, BinaryOp)
        assert expr.right.operator == TokenType.STAR

    def test_left_associative(self):
        expr = parse_expr("10 - 4 - 3")
        assert expr.operator == TokenType.MINUS
        assert isinstance(expr.left, BinaryOp)
        assert expr.left.left.value == 10

    def test_logical_precedence(self):
        """&& binds tighter than ||, comparisons tighter than &&."""
        expr = parse_expr("a || b && c < d")
        assert expr.operator == TokenType.OR
        assert expr.right.operator == TokenType.AND
        assert expr.right.right.operator == TokenType.LT

    def test_grouping(self):
        expr = parse_expr("(1 + 2) * 3")
        assert expr.operator == TokenType.STAR
        assert expr.left.operator == TokenType.PLUS

    def test_unary(self):
        expr = parse_expr("!-x")
        assert isinstance(expr, UnaryOp)
        assert expr.operator == TokenType.NOT
        assert isinstance(expr.operand, UnaryOp)
        assert expr.operand.operator == TokenType.MINUS

    def test_assignment_is_right_associative(self):
        expr = parse_expr("a = b = 3")
        assert isinstance(expr, Assignment)
        assert isinstance(expr.value, Assignment)
        assert expr.value.target.name == "b"

    def test_postfix_chain(self):
        expr = parse_expr("obj.items[0].run(1, 2)")
        assert isinstance(expr, FunctionCall)
        assert len(expr.arguments) == 2
        assert isinstance(expr.callee, MemberAccess)
        assert expr.callee.member == "run"
        assert isinstance(expr.callee.object, IndexAccess)

    def test_array_literal_with_trailing_comma(self):
        expr = parse_expr("[1, 2, 3,]")
        assert isinstance(expr, ArrayLiteral)
        assert len(expr.elements) == 3

    def test_dict_literal(self):
        expr = parse_expr('x = {name: "a", "two words": 2}')
        assert isinstance(expr.value, DictLiteral)
        assert list(expr.value.entries) == ["name", "two words"]

    def test_this_and_super(self):
        expr = parse_expr("super.get() + this.x")
        assert isinstance(expr.left, FunctionCall)
        assert isinstance(expr.left.callee, SuperAccess)
        assert expr.left.callee.method == "get"
        assert isinstance(expr.right.object, ThisExpr)

    def test_anonymous_function(self):
        expr = parse_expr("f = func (a, b) { return a + b; }")
        assert isinstance(expr.value, FunctionExpr)
        assert [p.name for p in expr.value.parameters] == ["a", "b"]

    def test_type_name_as_conversion_call(self):
        expr = parse_expr('int("42")')
        assert isinstance(expr, FunctionCall)
        assert isinstance(expr.callee, Identifier)
        assert expr.callee.name == "int"


class TestStatements:
    """Test statement parsing."""

    def test_var_declarations(self):
        program = parse_source("var a = 1; int b; float c = 2.5;")
        a, b, c = program.statements
        assert isinstance(a, VarDecl) and a.type_annotation is None
        assert b.type_annotation.name == "int" and b.initializer is None
        assert c.type_annotation.name == "float"

    def test_if_else_chain(self):
        program = parse_source("""
            if (a) { x; } else if (b) { y; } else { z; }
        """)
        stmt = program.statements[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.else_branch, IfStatement)
        assert isinstance(stmt.else_branch.else_branch, Block)

    def test_while(self):
        stmt = parse_source("while (i < 3) i = i + 1;").statements[0]
        assert isinstance(stmt, WhileStatement)
        assert isinstance(stmt.body, ExpressionStatement)

    def test_for_loop(self):
        stmt = parse_source("for (var i = 0; i < 3; i = i + 1) { print(i); }").statements[0]
        assert isinstance(stmt, ForStatement)
        assert isinstance(stmt.initializer, VarDecl)
        assert stmt.condition.operator == TokenType.LT
        assert isinstance(stmt.increment, Assignment)

    def test_for_loop_empty_clauses(self):
        stmt = parse_source("for (;;) { break; }").statements[0]
        assert isinstance(stmt, ForStatement)
        assert stmt.initializer is None
        assert stmt.condition is None
        assert stmt.increment is None
        assert isinstance(stmt.body.statements[0], BreakStatement)

    def test_for_each(self):
        stmt = parse_source("for (int n : numbers) { continue; }").statements[0]
        assert isinstance(stmt, ForEachStatement)
        assert stmt.variable == "n"
        assert stmt.type_annotation.name == "int"
        assert isinstance(stmt.body.statements[0], ContinueStatement)

    def test_function_def(self):
        stmt = parse_source("func add(int a, b) { return a + b; }").statements[0]
        assert isinstance(stmt, FunctionDef)
        assert stmt.name == "add"
        assert stmt.parameters[0].type_annotation.name == "int"
        assert stmt.parameters[1].type_annotation is None
        assert isinstance(stmt.body.statements[0], ReturnStatement)

    def test_bare_return(self):
        stmt = parse_source("func f() { return; }").statements[0]
        assert stmt.body.statements[0].value is None

    def test_class_def(self):
        stmt = parse_source("""
            class B extends A {
                init(x) { this.x = x; }
                func get() { return this.x; }
            }
        """).statements[0]
        assert isinstance(stmt, ClassDef)
        assert stmt.superclass.name == "A"
        assert [m.name for m in stmt.methods] == ["init", "get"]

    def test_throw_and_try(self):
        program = parse_source("""
            try { throw "boom"; } catch (e) { print(e); }
        """)
        stmt = program.statements[0]
        assert isinstance(stmt, TryStatement)
        assert stmt.catch_name == "e"
        assert isinstance(stmt.body.statements[0], ThrowStatement)

    def test_statement_lines(self):
        program = parse_source("var a = 1;\n\nprint(a);")
        assert program.statements[1].span.start.line == 3


class TestErrors:
    """Test syntax error reporting and recovery."""

    def test_missing_semicolon(self):
        with pytest.raises(ParseFailure) as exc_info:
            parse_source("var x = 1")
        assert exc_info.value.diagnostics[0].code == "E102"

    def test_unexpected_token(self):
        with pytest.raises(ParseFailure) as exc_info:
            parse_source("var = 3;")
        diag = exc_info.value.diagnostics[0]
        assert diag.code == "E101"
        assert "variable name" in diag.message

    def test_invalid_assignment_target(self):
        with pytest.raises(ParseFailure) as exc_info:
            parse_source("1 + 2 = 3;")
        assert exc_info.value.diagnostics[0].code == "E104"

    def test_invalid_expression(self):
        with pytest.raises(ParseFailure) as exc_info:
            parse_source("var x = );")
        assert exc_info.value.diagnostics[0].code == "E103"

    def test_collects_multiple_errors(self):
        """Recovery resumes at the next statement so later errors are reported."""
        source = """
            var a = ;
            var b = 2;
            var = 3;
        """
        with pytest.raises(ParseFailure) as exc_info:
            parse_source(source)
        diagnostics = exc_info.value.diagnostics
        assert len(diagnostics) == 2
        assert diagnostics[0].line == 2
        assert diagnostics[1].line == 4

    def test_error_format_has_caret(self):
        with pytest.raises(ParseFailure) as exc_info:
            parse_source("var x = );")
        text = str(exc_info.value)
        assert "error[E103]" in text
        assert "^" in text


class TestPrintAst:
    """Test the debug tree printer."""

    def test_print_ast(self):
        out = io.StringIO()
        print_ast(parse_source("var x = 1 + 2;"), out=out)
        text = out.getvalue()
        assert "Program" in text
        assert "VarDecl" in text
        assert "operator: PLUS" in text
