"""
Recursive descent parser for MiniLang.

Converts a token stream into an Abstract Syntax Tree (AST). Syntax errors
do not stop the parse: each one is recorded, the parser resynchronizes at
the next statement boundary, and all errors are raised together once the
whole program has been read.
"""

from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, STATEMENT_KEYWORDS, is_type_token
from .ast import (
    # Types
    TypeNode, SimpleType,
    # Expressions
    Expression, Literal, Identifier, BinaryOp, UnaryOp, Assignment,
    FunctionCall, MemberAccess, IndexAccess, ArrayLiteral, DictLiteral,
    ThisExpr, SuperAccess, FunctionExpr,
    # Statements
    Statement, VarDecl, ExpressionStatement, Block, IfStatement,
    WhileStatement, ForStatement, ForEachStatement, ReturnStatement,
    BreakStatement, ContinueStatement, ThrowStatement, TryStatement,
    # Declarations
    Parameter, FunctionDef, ClassDef, Program,
)
from .errors import (
    ParserError,
    ParseFailure,
    DiagnosticCollector,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_assignment_target,
)


class Parser:
    """
    Recursive descent parser for MiniLang.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    The parser implements standard precedence climbing for expressions:
        Lowest:  = (assignment, right-associative)
                 ||
                 &&
                 == !=
                 < > <= >=
                 + -
                 * / %
                 unary (! not -)
        Highest: call, index, member access
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
        TokenType.PERCENT: 6,
    }

    def __init__(self, tokens: List[Token], filename: Optional[str] = None,
                 source: Optional[str] = None, max_errors: int = 20):
        self.tokens = tokens
        self.filename = filename
        self.source = source
        self.pos = 0
        self.diagnostics = DiagnosticCollector(max_errors)
        self._lines = source.splitlines() if source else []

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _previous(self) -> Token:
        """Get the most recently consumed token."""
        return self.tokens[max(0, self.pos - 1)]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """Check if current token is any of given types."""
        return self._current().type in token_types

    def _check_ahead(self, token_type: TokenType, offset: int = 1) -> bool:
        """Check if token at current position + offset is of given type."""
        return self._peek(offset).type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, line_num: int) -> Optional[str]:
        if 1 <= line_num <= len(self._lines):
            return self._lines[line_num - 1]
        return None

    @staticmethod
    def _describe(token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of file"
        return f"'{token.lexeme}'"

    def _error(self, expected: str) -> ParserError:
        """Build a parser error for the current token."""
        token = self._current()
        source_line = self._source_line(token.span.start.line)
        if token.type == TokenType.EOF:
            return error_unexpected_eof(expected, token.span, source_line)
        return error_unexpected_token(expected, self._describe(token), token.span, source_line)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the end of the last consumed token."""
        return SourceSpan(start.span.start, self._previous().span.end)

    def _synchronize(self) -> None:
        """Skip tokens until a likely statement boundary."""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_KEYWORDS:
                return
            self._advance()

    # =========================================================================
    # Type Parsing
    # =========================================================================

    def _parse_type(self) -> TypeNode:
        """Parse a declared type keyword."""
        token = self._current()
        if not is_type_token(token.type):
            raise self._error("type")
        self._advance()
        return SimpleType(span=token.span, name=token.value)

    def _at_typed_declaration(self) -> bool:
        """A type keyword starts a declaration only when a name follows it."""
        return is_type_token(self._current().type) and self._check_ahead(TokenType.IDENTIFIER)

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression."""
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse an assignment (right-associative, lowest precedence)."""
        target = self._parse_binary_expr(1)

        if self._check(TokenType.ASSIGN):
            equals = self._advance()
            value = self._parse_assignment()
            if not isinstance(target, (Identifier, IndexAccess, MemberAccess)):
                raise error_invalid_assignment_target(
                    equals.span, self._source_line(equals.span.start.line)
                )
            return Assignment(
                span=SourceSpan(target.span.start, value.span.end),
                target=target,
                value=value
            )

        return target

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right
            )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (!, not, -)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS):
            op = self._advance()
            operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Parse postfix expressions (calls, member access, indexing)."""
        expr = self._parse_primary_expr()

        while True:
            if self._check(TokenType.LPAREN):
                expr = self._parse_call(expr)
            elif self._match(TokenType.DOT):
                member = self._consume(TokenType.IDENTIFIER, "property name after '.'")
                expr = MemberAccess(
                    span=SourceSpan(expr.span.start, member.span.end),
                    object=expr,
                    member=member.value
                )
            elif self._match(TokenType.LBRACKET):
                index = self._parse_expression()
                close = self._consume(TokenType.RBRACKET, "']' after index")
                expr = IndexAccess(
                    span=SourceSpan(expr.span.start, close.span.end),
                    object=expr,
                    index=index
                )
            else:
                break

        return expr

    def _parse_call(self, callee: Expression) -> FunctionCall:
        """Parse the argument list of a call."""
        self._consume(TokenType.LPAREN, "'('")
        arguments = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_expression())
        close = self._consume(TokenType.RPAREN, "')' after arguments")
        return FunctionCall(
            span=SourceSpan(callee.span.start, close.span.end),
            callee=callee,
            arguments=arguments
        )

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions (literals, identifiers, grouping)."""
        token = self._current()

        if self._check_any(TokenType.INT_LITERAL, TokenType.FLOAT_LITERAL,
                           TokenType.STRING_LITERAL, TokenType.BOOL_LITERAL,
                           TokenType.NIL_LITERAL):
            self._advance()
            return Literal(span=token.span, value=token.value, literal_type=token.type)

        if self._check(TokenType.IDENTIFIER):
            self._advance()
            return Identifier(span=token.span, name=token.value)

        # Type names double as conversion functions: int("3"), float(x)
        if is_type_token(token.type):
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if self._match(TokenType.THIS):
            return ThisExpr(span=token.span)

        if self._match(TokenType.SUPER):
            self._consume(TokenType.DOT, "'.' after 'super'")
            method = self._consume(TokenType.IDENTIFIER, "superclass method name")
            return SuperAccess(span=self._span_from(token), method=method.value)

        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')' after expression")
            return expr

        if self._check(TokenType.LBRACKET):
            return self._parse_array_literal()

        if self._check(TokenType.LBRACE):
            return self._parse_dict_literal()

        if self._check(TokenType.FUNC):
            return self._parse_function_expr()

        if token.type == TokenType.EOF:
            raise error_unexpected_eof("expression", token.span)
        raise error_invalid_expression(
            self._describe(token), token.span, self._source_line(token.span.start.line)
        )

    def _parse_array_literal(self) -> ArrayLiteral:
        """Parse [a, b, c]."""
        start = self._consume(TokenType.LBRACKET, "'['")
        elements = []
        if not self._check(TokenType.RBRACKET):
            elements.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                if self._check(TokenType.RBRACKET):
                    break  # trailing comma
                elements.append(self._parse_expression())
        self._consume(TokenType.RBRACKET, "']' after array elements")
        return ArrayLiteral(span=self._span_from(start), elements=elements)

    def _parse_dict_literal(self) -> DictLiteral:
        """Parse {key: value, "other key": value}."""
        start = self._consume(TokenType.LBRACE, "'{'")
        entries = {}
        if not self._check(TokenType.RBRACE):
            while True:
                key_token = self._current()
                if self._check_any(TokenType.IDENTIFIER, TokenType.STRING_LITERAL):
                    key = self._advance().value
                else:
                    raise self._error("dictionary key (identifier or string)")
                self._consume(TokenType.COLON, f"':' after key {key_token.lexeme}")
                entries[key] = self._parse_expression()
                if not self._match(TokenType.COMMA) or self._check(TokenType.RBRACE):
                    break
        self._consume(TokenType.RBRACE, "'}' after dictionary entries")
        return DictLiteral(span=self._span_from(start), entries=entries)

    def _parse_function_expr(self) -> FunctionExpr:
        """Parse an anonymous function: func (params) { body }."""
        start = self._consume(TokenType.FUNC, "'func'")
        parameters = self._parse_parameter_list()
        body = self._parse_block()
        return FunctionExpr(span=self._span_from(start), parameters=parameters, body=body)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        token = self._current()

        if token.type == TokenType.IF:
            return self._parse_if_statement()
        if token.type == TokenType.WHILE:
            return self._parse_while_statement()
        if token.type == TokenType.FOR:
            return self._parse_for_statement()
        if token.type == TokenType.LBRACE:
            return self._parse_block()
        if token.type == TokenType.RETURN:
            return self._parse_return_statement()
        if token.type == TokenType.BREAK:
            self._advance()
            self._consume(TokenType.SEMICOLON, "';' after 'break'")
            return BreakStatement(span=self._span_from(token))
        if token.type == TokenType.CONTINUE:
            self._advance()
            self._consume(TokenType.SEMICOLON, "';' after 'continue'")
            return ContinueStatement(span=self._span_from(token))
        if token.type == TokenType.THROW:
            return self._parse_throw_statement()
        if token.type == TokenType.TRY:
            return self._parse_try_statement()
        if token.type == TokenType.SEMICOLON:
            self._advance()
            return Block(span=token.span, statements=[])

        return self._parse_expression_statement()

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._current()
        expr = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after expression")
        return ExpressionStatement(span=self._span_from(start), expression=expr)

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE, "'{'")
        statements = []

        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            statements.append(self._parse_declaration())

        self._consume(TokenType.RBRACE, "'}' after block")
        return Block(span=self._span_from(start), statements=statements)

    def _parse_if_statement(self) -> IfStatement:
        """Parse an if statement; 'else if' nests in the else branch."""
        start = self._advance()  # consume 'if'
        self._consume(TokenType.LPAREN, "'(' after 'if'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after if condition")
        then_branch = self._parse_statement()

        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()

        return IfStatement(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch
        )

    def _parse_while_statement(self) -> WhileStatement:
        """Parse a while loop."""
        start = self._advance()  # consume 'while'
        self._consume(TokenType.LPAREN, "'(' after 'while'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after condition")
        body = self._parse_statement()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_for_statement(self) -> Statement:
        """Parse a C-style for loop or a for-each loop."""
        start = self._advance()  # consume 'for'
        self._consume(TokenType.LPAREN, "'(' after 'for'")

        # for (var x : items) / for (int x : items)
        if (self._check_any(TokenType.VAR) or is_type_token(self._current().type)) \
                and self._check_ahead(TokenType.IDENTIFIER) \
                and self._check_ahead(TokenType.COLON, 2):
            type_annotation = None
            if self._match(TokenType.VAR) is None:
                type_annotation = self._parse_type()
            variable = self._consume(TokenType.IDENTIFIER, "loop variable").value
            self._consume(TokenType.COLON, "':'")
            iterable = self._parse_expression()
            self._consume(TokenType.RPAREN, "')' after for-each clause")
            body = self._parse_statement()
            return ForEachStatement(
                span=self._span_from(start),
                variable=variable,
                type_annotation=type_annotation,
                iterable=iterable,
                body=body
            )

        initializer = None
        if self._match(TokenType.SEMICOLON):
            pass
        elif self._check(TokenType.VAR) or self._at_typed_declaration():
            initializer = self._parse_var_decl()
        else:
            initializer = self._parse_expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after loop condition")

        increment = None
        if not self._check(TokenType.RPAREN):
            increment = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after for clauses")

        body = self._parse_statement()
        return ForStatement(
            span=self._span_from(start),
            initializer=initializer,
            condition=condition,
            increment=increment,
            body=body
        )

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse a return statement."""
        start = self._advance()  # consume 'return'
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after return value")
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_throw_statement(self) -> ThrowStatement:
        """Parse a throw statement."""
        start = self._advance()  # consume 'throw'
        value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after thrown value")
        return ThrowStatement(span=self._span_from(start), value=value)

    def _parse_try_statement(self) -> TryStatement:
        """Parse try { ... } catch (name) { ... }."""
        start = self._advance()  # consume 'try'
        body = self._parse_block()
        self._consume(TokenType.CATCH, "'catch' after try block")
        self._consume(TokenType.LPAREN, "'(' after 'catch'")
        catch_name = self._consume(TokenType.IDENTIFIER, "name for the caught value").value
        self._consume(TokenType.RPAREN, "')' after catch name")
        handler = self._parse_block()
        return TryStatement(
            span=self._span_from(start),
            body=body,
            catch_name=catch_name,
            handler=handler
        )

    # =========================================================================
    # Declaration Parsing
    # =========================================================================

    def _parse_declaration(self) -> Statement:
        """Parse a declaration or statement."""
        if self._check(TokenType.CLASS):
            return self._parse_class_def()
        if self._check(TokenType.FUNC) and self._check_ahead(TokenType.IDENTIFIER):
            self._advance()  # consume 'func'
            return self._parse_function_def(self._previous())
        if self._check(TokenType.VAR) or self._at_typed_declaration():
            return self._parse_var_decl()
        return self._parse_statement()

    def _parse_var_decl(self) -> VarDecl:
        """Parse 'var name = value;' or 'int name;'."""
        start = self._current()
        type_annotation = None
        if self._match(TokenType.VAR) is None:
            type_annotation = self._parse_type()

        name = self._consume(TokenType.IDENTIFIER, "variable name").value
        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after variable declaration")

        return VarDecl(
            span=self._span_from(start),
            name=name,
            type_annotation=type_annotation,
            initializer=initializer
        )

    def _parse_parameter(self) -> Parameter:
        """Parse a function parameter with an optional type keyword."""
        start = self._current()
        type_annotation = None
        if is_type_token(start.type):
            type_annotation = self._parse_type()
        name = self._consume(TokenType.IDENTIFIER, "parameter name").value
        return Parameter(
            span=self._span_from(start),
            name=name,
            type_annotation=type_annotation
        )

    def _parse_parameter_list(self) -> List[Parameter]:
        self._consume(TokenType.LPAREN, "'(' before parameters")
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._match(TokenType.COMMA):
                parameters.append(self._parse_parameter())
        self._consume(TokenType.RPAREN, "')' after parameters")
        return parameters

    def _parse_function_def(self, start: Token) -> FunctionDef:
        """Parse the rest of a function or method after 'func' (if any)."""
        name = self._consume(TokenType.IDENTIFIER, "function name").value
        parameters = self._parse_parameter_list()
        body = self._parse_block()
        return FunctionDef(
            span=self._span_from(start),
            name=name,
            parameters=parameters,
            body=body
        )

    def _parse_class_def(self) -> ClassDef:
        """Parse a class definition; methods may omit 'func'."""
        start = self._advance()  # consume 'class'
        name = self._consume(TokenType.IDENTIFIER, "class name").value

        superclass = None
        if self._match(TokenType.EXTENDS):
            super_token = self._consume(TokenType.IDENTIFIER, "superclass name")
            superclass = Identifier(span=super_token.span, name=super_token.value)

        self._consume(TokenType.LBRACE, "'{' before class body")
        methods = []
        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            method_start = self._current()
            self._match(TokenType.FUNC)
            methods.append(self._parse_function_def(method_start))
        self._consume(TokenType.RBRACE, "'}' after class body")

        return ClassDef(
            span=self._span_from(start),
            name=name,
            superclass=superclass,
            methods=methods
        )

    # =========================================================================
    # Program Parsing
    # =========================================================================

    def parse_program(self) -> Program:
        """
        Parse a complete program.

        Raises:
            ParseFailure: carrying every syntax error found
        """
        start = self._current()
        statements = []

        while not self._is_at_end():
            try:
                statements.append(self._parse_declaration())
            except ParserError as e:
                self.diagnostics.add_error(e)
                if self.diagnostics.should_stop:
                    break
                self._synchronize()

        if self.diagnostics.has_errors:
            raise ParseFailure(self.diagnostics)

        end = self._current()
        return Program(
            span=SourceSpan(start.span.start, end.span.end),
            statements=statements,
            filename=self.filename
        )


def parse(tokens: List[Token], filename: Optional[str] = None,
          source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code for diagnostic source lines

    Returns:
        Parsed Program AST

    Raises:
        ParseFailure: If any syntax errors were found
    """
    parser = Parser(tokens, filename, source)
    return parser.parse_program()
