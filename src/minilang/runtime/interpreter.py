"""
Tree-walking interpreter for MiniLang.

Statements execute to an optional Signal (see signals.py); expressions
evaluate to a Value. Runtime errors are ScriptError exceptions that pick
up the span of the innermost node they pass through.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, List, Optional, TextIO

from .values import (
    Value, ValueKind, NIL,
    int_val, float_val, bool_val, string_val, array_val, dict_val, callable_val,
    is_truthy, type_name, to_display_string,
)
from .types import DeclaredType, resolve_type_name
from .context import Scope, ExecutionContext, DEFAULT_MAX_CALL_DEPTH
from .signals import Signal, SignalKind, ThrownValue
from .callables import Function, BoundMethod, NativeFunction
from .objects import ClassValue
from .operators import binary_op, unary_op

from ..ast import (
    Program, Statement, Expression, TypeNode,
    VarDecl, ExpressionStatement, Block, IfStatement, WhileStatement,
    ForStatement, ForEachStatement, FunctionDef, ClassDef, ReturnStatement,
    BreakStatement, ContinueStatement, ThrowStatement, TryStatement,
    Literal, Identifier, BinaryOp, UnaryOp, Assignment, FunctionCall,
    MemberAccess, IndexAccess, ArrayLiteral, DictLiteral, ThisExpr,
    SuperAccess, FunctionExpr,
)
from ..tokens import SourceSpan, TokenType
from ..errors import (
    Diagnostic, DslError, HostError, LexerError, ParseFailure, ScriptError,
    UncaughtThrow,
    error_undefined_variable,
    error_undefined_property,
    error_not_callable,
    error_index_out_of_bounds,
    error_invalid_target,
    error_invalid_control_flow,
    error_call_depth_exceeded,
    error_native_failure,
    error_invalid_access,
    error_class_definition,
    error_invalid_receiver,
    error_not_iterable,
    error_uncaught_throw,
)

logger = logging.getLogger(__name__)

# Host stack frames used per script-level call, for sizing the recursion limit
FRAMES_PER_CALL = 40


@dataclass
class ExecutionResult:
    """Result of running a program."""
    success: bool
    error_message: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    thrown: Optional[Value] = None  # Value of an uncaught throw

    def format_errors(self) -> str:
        """Render every diagnostic for display."""
        return "\n\n".join(d.format() for d in self.diagnostics)


class Interpreter:
    """
    Tree-walking interpreter.

    Evaluates AST nodes by dispatching to type-specific methods. Globals
    persist across `execute()` calls, so one interpreter can run several
    programs in sequence.
    """

    def __init__(self, stdout: Optional[TextIO] = None, stdin: Optional[TextIO] = None,
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
                 install_builtins: bool = True):
        """
        Initialize the interpreter.

        Args:
            stdout: stream `print` writes to (default: sys.stdout at call time)
            stdin: stream `input` reads from (default: sys.stdin at call time)
            max_call_depth: nesting limit for script function calls
            install_builtins: register the native function library
        """
        self._stdout = stdout
        self._stdin = stdin
        self.ctx = ExecutionContext(max_call_depth=max_call_depth)
        if install_builtins:
            from .builtins import get_builtin_registry
            get_builtin_registry().install(self)

    @property
    def output(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def input(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def globals(self) -> Scope:
        return self.ctx.globals

    def define_native(self, name: str, arity: int,
                      implementation: Callable[[List[Value]], Optional[Value]],
                      doc: str = "") -> NativeFunction:
        """Register a host function in the global scope."""
        native = NativeFunction(name, arity, implementation, doc)
        self.ctx.globals.define(name, callable_val(native))
        logger.debug("registered native %s/%s", name, arity)
        return native

    # =========================================================================
    # Entry Points
    # =========================================================================

    def execute(self, program: Program, source: str = "") -> ExecutionResult:
        """
        Run a program, reporting failure in the result instead of raising.

        Args:
            program: The parsed program
            source: Original source code for error messages

        Returns:
            ExecutionResult; on failure it carries the diagnostic and, for an
            uncaught throw, the thrown value
        """
        try:
            self.run(program, source)
        except UncaughtThrow as e:
            self.ctx.diagnostics.add_error(e)
            return ExecutionResult(
                success=False,
                error_message=e.message,
                diagnostics=[e.diagnostic],
                thrown=e.value,
            )
        except ScriptError as e:
            self.ctx.diagnostics.add_error(e)
            return ExecutionResult(
                success=False,
                error_message=e.message,
                diagnostics=[e.diagnostic],
            )
        return ExecutionResult(success=True)

    def run(self, program: Program, source: str = "") -> None:
        """
        Run a program's top-level statements in order.

        Raises:
            ScriptError: on an uncaught runtime error
            UncaughtThrow: when a thrown value reaches the top level
        """
        if source:
            self.ctx.source_lines = source.splitlines()
        logger.debug("executing %d top-level statement(s)", len(program.statements))

        try:
            with self._recursion_headroom():
                for stmt in program.statements:
                    signal = self._execute_statement(stmt)
                    if signal is not None:
                        self._handle_top_level_signal(signal)
        except ThrownValue as e:
            # A throw that escaped every statement frame
            self.ctx.reset()
            raise self._uncaught_throw(e.signal) from None
        except DslError as e:
            logger.debug("program aborted: %s", e.message)
            self.ctx.reset()
            raise

    def _handle_top_level_signal(self, signal: Signal) -> None:
        if signal.kind is SignalKind.THROW:
            raise self._uncaught_throw(signal)
        if signal.kind is SignalKind.RETURN:
            raise self._locate(
                error_invalid_control_flow("return", "top-level code"), signal.span
            )
        raise self._locate(
            error_invalid_control_flow(signal.kind.keyword, "outside a loop"), signal.span
        )

    def _uncaught_throw(self, signal: Signal) -> UncaughtThrow:
        """
        Build the E501 error for a throw that reached the top level.

        A class toString that itself fails falls back to the plain rendering.
        """
        try:
            display = to_display_string(signal.value)
        except (ThrownValue, ScriptError):
            display = to_display_string(signal.value, use_to_string=False)
        error = error_uncaught_throw(display, signal.value, signal.span)
        return self._locate(error, signal.span)

    @contextmanager
    def _recursion_headroom(self):
        """Raise the host recursion limit to fit max_call_depth script calls."""
        previous = sys.getrecursionlimit()
        needed = self.ctx.max_call_depth * FRAMES_PER_CALL + 1000
        if needed > previous:
            sys.setrecursionlimit(needed)
        try:
            yield
        finally:
            sys.setrecursionlimit(previous)

    def _locate(self, error: DslError, span: SourceSpan) -> DslError:
        if span is not None:
            error.locate(span, self.ctx.get_source_line(span.start.line))
        return error

    # =========================================================================
    # Function Calls
    # =========================================================================

    def execute_function_body(self, function: Function, scope: Scope) -> Value:
        """
        Run a function body in its call frame and turn the outcome into a value.

        A return yields its value, falling off the end yields nil, a throw
        leaves as ThrownValue, and break/continue are errors.
        """
        ctx = self.ctx
        if ctx.call_depth >= ctx.max_call_depth:
            raise error_call_depth_exceeded(ctx.max_call_depth)

        ctx.call_depth += 1
        try:
            with ctx.enter_scope(scope):
                signal = self._execute_statements(function.body.statements)
        finally:
            ctx.call_depth -= 1

        if signal is None:
            return NIL
        if signal.kind is SignalKind.RETURN:
            return signal.value
        if signal.kind is SignalKind.THROW:
            raise ThrownValue(signal)
        raise self._locate(
            error_invalid_control_flow(signal.kind.keyword, "a function"), signal.span
        )

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statements(self, statements: List[Statement]) -> Optional[Signal]:
        """Execute statements in order, stopping at the first signal."""
        for stmt in statements:
            signal = self._execute_statement(stmt)
            if signal is not None:
                return signal
        return None

    def _execute_statement(self, stmt: Statement) -> Optional[Signal]:
        """Execute a statement."""
        try:
            if isinstance(stmt, ExpressionStatement):
                self._evaluate(stmt.expression)
                return None
            elif isinstance(stmt, VarDecl):
                return self._execute_var_decl(stmt)
            elif isinstance(stmt, Block):
                return self._execute_block(stmt)
            elif isinstance(stmt, IfStatement):
                return self._execute_if(stmt)
            elif isinstance(stmt, WhileStatement):
                return self._execute_while(stmt)
            elif isinstance(stmt, ForStatement):
                return self._execute_for(stmt)
            elif isinstance(stmt, ForEachStatement):
                return self._execute_for_each(stmt)
            elif isinstance(stmt, FunctionDef):
                return self._execute_function_def(stmt)
            elif isinstance(stmt, ClassDef):
                return self._execute_class_def(stmt)
            elif isinstance(stmt, ReturnStatement):
                value = self._evaluate(stmt.value) if stmt.value is not None else NIL
                return Signal(SignalKind.RETURN, value, stmt.span)
            elif isinstance(stmt, BreakStatement):
                return Signal(SignalKind.BREAK, span=stmt.span)
            elif isinstance(stmt, ContinueStatement):
                return Signal(SignalKind.CONTINUE, span=stmt.span)
            elif isinstance(stmt, ThrowStatement):
                return Signal(SignalKind.THROW, self._evaluate(stmt.value), stmt.span)
            elif isinstance(stmt, TryStatement):
                return self._execute_try(stmt)
            else:
                raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")
        except ThrownValue as thrown:
            return thrown.signal
        except ScriptError as e:
            raise self._locate(e, stmt.span)

    def _declared_type(self, annotation: Optional[TypeNode]) -> Optional[DeclaredType]:
        if annotation is None:
            return None
        return resolve_type_name(annotation.name)

    def _execute_var_decl(self, stmt: VarDecl) -> None:
        """Execute a variable declaration."""
        declared = self._declared_type(stmt.type_annotation)
        if stmt.initializer is not None:
            value = self._evaluate(stmt.initializer)
        elif declared is not None:
            value = declared.default_value()
        else:
            value = NIL
        self.ctx.current_scope.define(stmt.name, value, declared)

    def _execute_block(self, block: Block) -> Optional[Signal]:
        """Execute a block of statements in a new scope."""
        with self.ctx.new_scope("block"):
            return self._execute_statements(block.statements)

    def _execute_if(self, stmt: IfStatement) -> Optional[Signal]:
        """Execute an if statement."""
        if is_truthy(self._evaluate(stmt.condition)):
            return self._execute_statement(stmt.then_branch)
        if stmt.else_branch is not None:
            return self._execute_statement(stmt.else_branch)
        return None

    def _execute_while(self, stmt: WhileStatement) -> Optional[Signal]:
        """Execute a while loop."""
        while is_truthy(self._evaluate(stmt.condition)):
            signal = self._execute_statement(stmt.body)
            if signal is None or signal.kind is SignalKind.CONTINUE:
                continue
            if signal.kind is SignalKind.BREAK:
                break
            return signal
        return None

    def _execute_for(self, stmt: ForStatement) -> Optional[Signal]:
        """
        Execute a C-style for loop.

        The initializer's variables live in a loop scope that encloses every
        iteration, and the increment runs in that scope after each iteration,
        including one ended by continue.
        """
        with self.ctx.new_scope("for-loop"):
            if stmt.initializer is not None:
                signal = self._execute_statement(stmt.initializer)
                if signal is not None:
                    return signal

            while stmt.condition is None or is_truthy(self._evaluate(stmt.condition)):
                signal = self._execute_statement(stmt.body)
                if signal is not None:
                    if signal.kind is SignalKind.BREAK:
                        break
                    if signal.kind is not SignalKind.CONTINUE:
                        return signal
                if stmt.increment is not None:
                    self._evaluate(stmt.increment)
        return None

    def _execute_for_each(self, stmt: ForEachStatement) -> Optional[Signal]:
        """Execute a for-each loop over an array snapshot or a string."""
        iterable = self._evaluate(stmt.iterable)
        if iterable.kind is ValueKind.ARRAY:
            items = list(iterable.data)
        elif iterable.kind is ValueKind.STRING:
            items = [string_val(ch) for ch in iterable.data]
        else:
            raise error_not_iterable(type_name(iterable), stmt.iterable.span)

        declared = self._declared_type(stmt.type_annotation)
        for item in items:
            with self.ctx.new_scope("for-each"):
                self.ctx.current_scope.define(stmt.variable, item, declared)
                signal = self._execute_statement(stmt.body)
            if signal is None or signal.kind is SignalKind.CONTINUE:
                continue
            if signal.kind is SignalKind.BREAK:
                break
            return signal
        return None

    def _execute_function_def(self, stmt: FunctionDef) -> None:
        """Define a named function closing over the current scope."""
        scope = self.ctx.current_scope
        function = Function(self, stmt.name, stmt.parameters, stmt.body, scope)
        scope.define(stmt.name, callable_val(function))

    def _execute_class_def(self, stmt: ClassDef) -> None:
        """
        Define a class.

        The name is bound to nil first so methods can refer to the class.
        Methods close over a class scope that binds `super` when there is a
        superclass.
        """
        superclass = None
        if stmt.superclass is not None:
            if stmt.superclass.name == stmt.name:
                raise error_class_definition(
                    f"Class '{stmt.name}' cannot inherit from itself.", stmt.superclass.span
                )
            value = self._evaluate(stmt.superclass)
            if value.kind is not ValueKind.CALLABLE or not isinstance(value.data, ClassValue):
                raise error_class_definition("Superclass must be a class.", stmt.superclass.span)
            superclass = value.data

        scope = self.ctx.current_scope
        scope.define(stmt.name, NIL)

        klass = ClassValue(stmt.name, superclass)
        class_scope = Scope(parent=scope, name=f"class {stmt.name}")
        if superclass is not None:
            class_scope.define("super", callable_val(superclass))

        for method in stmt.methods:
            klass.define_method(Function(
                self, method.name, method.parameters, method.body, class_scope,
                is_initializer=(method.name == "init"),
            ))

        scope.assign(stmt.name, callable_val(klass))

    def _execute_try(self, stmt: TryStatement) -> Optional[Signal]:
        """
        Execute try/catch.

        A thrown value is bound as is; a runtime error is bound as its
        message string. Other signals pass through.
        """
        try:
            signal = self._execute_statement(stmt.body)
        except ScriptError as e:
            logger.debug("caught runtime error: %s", e.message)
            return self._execute_handler(stmt, string_val(e.message))

        if signal is not None and signal.kind is SignalKind.THROW:
            return self._execute_handler(stmt, signal.value)
        return signal

    def _execute_handler(self, stmt: TryStatement, caught: Value) -> Optional[Signal]:
        with self.ctx.new_scope("catch"):
            self.ctx.current_scope.define(stmt.catch_name, caught)
            return self._execute_statement(stmt.handler)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Value:
        """Evaluate an expression to produce a Value."""
        try:
            if isinstance(expr, Literal):
                return self._eval_literal(expr)
            elif isinstance(expr, Identifier):
                return self.ctx.current_scope.get(expr.name)
            elif isinstance(expr, BinaryOp):
                return self._eval_binary_op(expr)
            elif isinstance(expr, UnaryOp):
                return unary_op(expr.operator, self._evaluate(expr.operand))
            elif isinstance(expr, Assignment):
                return self._eval_assignment(expr)
            elif isinstance(expr, FunctionCall):
                return self._eval_function_call(expr)
            elif isinstance(expr, MemberAccess):
                return self._eval_member_access(expr)
            elif isinstance(expr, IndexAccess):
                return self._eval_index_access(expr)
            elif isinstance(expr, ArrayLiteral):
                return array_val([self._evaluate(e) for e in expr.elements])
            elif isinstance(expr, DictLiteral):
                return dict_val({k: self._evaluate(v) for k, v in expr.entries.items()})
            elif isinstance(expr, ThisExpr):
                return self._eval_this(expr)
            elif isinstance(expr, SuperAccess):
                return self._eval_super(expr)
            elif isinstance(expr, FunctionExpr):
                return callable_val(Function(
                    self, None, expr.parameters, expr.body, self.ctx.current_scope
                ))
            else:
                raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")
        except ScriptError as e:
            raise self._locate(e, expr.span)

    def _eval_literal(self, lit: Literal) -> Value:
        """Evaluate a literal value."""
        if lit.literal_type == TokenType.INT_LITERAL:
            return int_val(lit.value)
        elif lit.literal_type == TokenType.FLOAT_LITERAL:
            return float_val(lit.value)
        elif lit.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(lit.value)
        elif lit.literal_type == TokenType.STRING_LITERAL:
            return string_val(lit.value)
        elif lit.literal_type == TokenType.NIL_LITERAL:
            return NIL
        else:
            raise RuntimeError(f"Unknown literal type: {lit.literal_type}")

    def _eval_binary_op(self, op: BinaryOp) -> Value:
        """Evaluate a binary operation; && and || short-circuit."""
        left = self._evaluate(op.left)

        if op.operator == TokenType.AND:
            if not is_truthy(left):
                return bool_val(False)
            return bool_val(is_truthy(self._evaluate(op.right)))
        if op.operator == TokenType.OR:
            if is_truthy(left):
                return bool_val(True)
            return bool_val(is_truthy(self._evaluate(op.right)))

        right = self._evaluate(op.right)
        return binary_op(op.operator, left, right)

    def _eval_function_call(self, call: FunctionCall) -> Value:
        """Evaluate a call of any callable kind."""
        callee = self._evaluate(call.callee)
        args = [self._evaluate(arg) for arg in call.arguments]

        if callee.kind is not ValueKind.CALLABLE:
            raise error_not_callable(type_name(callee), call.span)

        try:
            return callee.data.invoke(args)
        except HostError as e:
            raise error_native_failure(callee.data.name, str(e), call.span)
        except RecursionError:
            raise error_call_depth_exceeded(self.ctx.max_call_depth, call.span)

    def _bind_method(self, value: Value, receiver: Value) -> Value:
        """Bind plain user functions found on an object to that object."""
        fn = value.data if value.kind is ValueKind.CALLABLE else None
        if isinstance(fn, Function) and not isinstance(fn, BoundMethod):
            return callable_val(fn.bind(receiver))
        return value

    def _eval_member_access(self, expr: MemberAccess) -> Value:
        """Evaluate obj.name on objects (prototype chain) and dicts."""
        target = self._evaluate(expr.object)

        if target.kind is ValueKind.OBJECT:
            value = target.data.get(expr.member)
            if value is None:
                raise error_undefined_property(expr.member, expr.span)
            return self._bind_method(value, target)

        if target.kind is ValueKind.DICT:
            if expr.member not in target.data:
                raise error_undefined_property(expr.member, expr.span)
            return target.data[expr.member]

        raise error_invalid_access(
            f"Can only access properties on objects or dicts, not {type_name(target)}.",
            expr.span,
        )

    def _check_index(self, index: Value, length: int) -> int:
        if index.kind is not ValueKind.INT:
            raise error_invalid_access(f"Index must be an integer, not {type_name(index)}.")
        if not 0 <= index.data < length:
            raise error_index_out_of_bounds(index.data, length)
        return index.data

    def _check_key(self, key: Value) -> str:
        if key.kind is not ValueKind.STRING:
            raise error_invalid_access(f"Key must be a string, not {type_name(key)}.")
        return key.data

    def _eval_index_access(self, expr: IndexAccess) -> Value:
        """Evaluate container[index]."""
        target = self._evaluate(expr.object)
        index = self._evaluate(expr.index)

        if target.kind is ValueKind.ARRAY:
            return target.data[self._check_index(index, len(target.data))]

        if target.kind is ValueKind.STRING:
            return string_val(target.data[self._check_index(index, len(target.data))])

        if target.kind is ValueKind.DICT:
            key = self._check_key(index)
            if key not in target.data:
                raise error_undefined_property(key)
            return target.data[key]

        if target.kind is ValueKind.OBJECT:
            key = self._check_key(index)
            value = target.data.get(key)
            if value is None:
                raise error_undefined_property(key)
            return self._bind_method(value, target)

        raise error_invalid_access(f"Cannot index into {type_name(target)}.")

    def _eval_this(self, expr: ThisExpr) -> Value:
        slot = self.ctx.current_scope.lookup("this")
        if slot is None:
            raise error_invalid_receiver("this", expr.span)
        return slot.value

    def _eval_super(self, expr: SuperAccess) -> Value:
        """
        Resolve super.name on the superclass of the class whose method is
        running, then bind it to the current receiver.
        """
        scope = self.ctx.current_scope
        receiver = scope.lookup("this")
        superclass = scope.lookup("super")
        if receiver is None:
            raise error_invalid_receiver("super", expr.span)
        if superclass is None:
            raise error_class_definition(
                "Cannot use 'super' in a class with no superclass.", expr.span
            )

        method = superclass.value.data.find_method(expr.method)
        if method is None:
            raise error_undefined_property(expr.method, expr.span)
        return callable_val(method.bind(receiver.value))

    # =========================================================================
    # Assignment
    # =========================================================================

    def _eval_assignment(self, expr: Assignment) -> Value:
        """Evaluate an assignment; its value is the assigned value."""
        value = self._evaluate(expr.value)
        self._assign_to(expr.target, value)
        return value

    def _assign_to(self, target: Expression, value: Value) -> None:
        """Store a value into a variable, field, element or dict entry."""
        if isinstance(target, Identifier):
            if not self.ctx.current_scope.assign(target.name, value):
                raise error_undefined_variable(target.name, target.span)
            return

        if isinstance(target, MemberAccess):
            container = self._evaluate(target.object)
            if container.kind is ValueKind.OBJECT:
                container.data.set(target.member, value)
            elif container.kind is ValueKind.DICT:
                container.data[target.member] = value
            else:
                raise error_invalid_target(
                    f"Can only set properties on objects or dicts, not {type_name(container)}.",
                    target.span,
                )
            return

        if isinstance(target, IndexAccess):
            container = self._evaluate(target.object)
            index = self._evaluate(target.index)
            if container.kind is ValueKind.ARRAY:
                container.data[self._check_index(index, len(container.data))] = value
            elif container.kind is ValueKind.DICT:
                container.data[self._check_key(index)] = value
            elif container.kind is ValueKind.OBJECT:
                container.data.set(self._check_key(index), value)
            elif container.kind is ValueKind.STRING:
                self._assign_string_index(target, container, index, value)
            else:
                raise error_invalid_target(
                    f"Cannot assign by index into {type_name(container)}.", target.span
                )
            return

        raise error_invalid_target("Invalid assignment target.", target.span)

    def _assign_string_index(self, target: IndexAccess, container: Value,
                             index: Value, value: Value) -> None:
        """
        Replace one character of a string.

        Strings are immutable, so the slot holding the string is rebound to
        a new string; other aliases of the old string are unaffected.
        """
        position = self._check_index(index, len(container.data))
        if value.kind is not ValueKind.STRING or len(value.data) != 1:
            raise error_invalid_target(
                "Can only assign a single-character string to a string index.", target.span
            )
        if not isinstance(target.object, (Identifier, MemberAccess, IndexAccess)):
            raise error_invalid_target(
                "Cannot assign into a string that is not stored in a variable, field or element.",
                target.span,
            )
        text = container.data
        self._assign_to(target.object, string_val(text[:position] + value.data + text[position + 1:]))


def execute(program: Program, source: str = "", **options) -> ExecutionResult:
    """
    Execute a parsed program with a fresh interpreter.

    Args:
        program: Parsed Program AST
        source: Original source (for error messages)
        **options: Interpreter constructor arguments

    Returns:
        ExecutionResult
    """
    return Interpreter(**options).execute(program, source)


def compile_and_run(source: str, filename: Optional[str] = None,
                    interpreter: Optional[Interpreter] = None,
                    **options) -> ExecutionResult:
    """
    Tokenize, parse and execute source code in one step.

    Lexer and parser failures are reported in the result rather than raised.

    Args:
        source: Program source
        filename: Optional filename for diagnostics
        interpreter: Interpreter to run in (a fresh one is made if omitted)
        **options: Interpreter constructor arguments for a fresh interpreter

    Returns:
        ExecutionResult
    """
    from ..lexer import tokenize
    from ..parser import parse

    try:
        tokens = tokenize(source, filename)
        program = parse(tokens, filename, source)
    except LexerError as e:
        return ExecutionResult(success=False, error_message=e.message,
                               diagnostics=[e.diagnostic])
    except ParseFailure as e:
        return ExecutionResult(success=False, error_message=e.message,
                               diagnostics=list(e.diagnostics))

    if interpreter is None:
        interpreter = Interpreter(**options)
    return interpreter.execute(program, source)
