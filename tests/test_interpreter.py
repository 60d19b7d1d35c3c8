"""
Tests for the MiniLang interpreter: operators, scoping, closures and
runtime errors.
"""

import io
import textwrap

import pytest

from minilang import (
    tokenize, parse, compile_and_run, execute, Interpreter, ExecutionResult,
)


def run(source, **options):
    """Run a program, returning the result and everything it printed."""
    out = io.StringIO()
    result = compile_and_run(textwrap.dedent(source), stdout=out, **options)
    return result, out.getvalue()


def output_lines(source, **options):
    result, out = run(source, **options)
    assert result.success, result.format_errors()
    return out.splitlines()


def error_of(source, **options):
    result, _ = run(source, **options)
    assert not result.success
    return result.diagnostics[0]


# --- Operators ---

class TestArithmetic:
    """Test numeric operator semantics."""

    def test_integer_arithmetic_stays_integer(self):
        """int op int stays int for + - * %."""
        assert output_lines("""
            print(2 + 3, 7 - 10, 4 * 5, 5 % 2);
            print(type(2 + 3));
        """) == ["5 -3 20 1", "int"]

    def test_division_always_promotes(self):
        """5/2 is the float 2.5 and 4/2 is still a float."""
        assert output_lines("""
            print(5 / 2);
            print(type(4 / 2));
        """) == ["2.5", "float"]

    def test_mixed_promotes_to_float(self):
        assert output_lines("""
            print(1 + 0.5, type(2 * 1.0));
        """) == ["1.5 float"]

    def test_integer_division_by_zero(self):
        diag = error_of("print(1 / 0);")
        assert diag.code == "E406"
        assert diag.message == "Division by zero."

    def test_float_division_by_zero(self):
        diag = error_of("print(1.0 / 0);")
        assert diag.code == "E406"

    def test_modulo_by_zero(self):
        diag = error_of("print(5 % 0);")
        assert diag.message == "Modulo by zero."

    def test_modulo_truncates_toward_zero(self):
        assert output_lines("print(-7 % 3, 7 % -3, 7.5 % 2);") == ["-1 1 1.5"]

    def test_integer_overflow_wraps(self):
        assert output_lines("print(9223372036854775807 + 1);") == ["-9223372036854775808"]

    def test_unary_minus(self):
        assert output_lines("var x = 3; print(-x, -1.5);") == ["-3 -1.5"]

    def test_unary_minus_on_string_fails(self):
        diag = error_of('print(-"a");')
        assert diag.code == "E407"

    def test_mismatched_operands_fail(self):
        diag = error_of('print("a" + 1);')
        assert diag.code == "E407"
        assert "string and int" in diag.message


class TestComparison:
    """Test equality and ordering."""

    def test_numeric_equality_by_promoted_value(self):
        assert output_lines("print(1 == 1.0, 2 != 2.0, 1 < 1.5);") == ["true false true"]

    def test_string_ordering(self):
        assert output_lines('print("apple" < "banana", "b" >= "a", "a" == "a");') == [
            "true true true"
        ]

    def test_structural_equality_of_containers(self):
        assert output_lines("""
            print([1, [2, 3]] == [1, [2, 3]]);
            print({a: [1]} == {a: [1]});
            print([1, 2] == [2, 1]);
        """) == ["true", "true", "false"]

    def test_different_types_are_unequal(self):
        assert output_lines('print("1" == 1, nil == false, nil == nil);') == [
            "false false true"
        ]

    def test_ordering_undefined_for_other_types(self):
        diag = error_of("print([1] < [2]);")
        assert diag.code == "E407"


class TestLogic:
    """Test truthiness and logical operators."""

    def test_falsy_values(self):
        lines = output_lines("""
            var values = [nil, 0, 0.0, false, "", [], {}];
            for (var v : values) {
                if (v) print("truthy"); else print("falsy");
            }
        """)
        assert lines == ["falsy"] * 7

    def test_truthy_values(self):
        lines = output_lines("""
            func f() {}
            var values = [1, -0.5, true, "0", [0], {a: nil}, f, print];
            for (var v : values) {
                if (v) print("truthy"); else print("falsy");
            }
        """)
        assert lines == ["truthy"] * 8

    def test_logical_operators_produce_booleans(self):
        assert output_lines('print(1 && "x", nil || 0, 0 || "y", !nil, not 1);') == [
            "true false true true false"
        ]

    def test_short_circuit(self):
        assert output_lines("""
            var calls = 0;
            func touch() { calls = calls + 1; return true; }
            var a = false && touch();
            var b = true || touch();
            var c = true && touch();
            print(calls);
        """) == ["1"]


class TestStrings:
    """Test string semantics."""

    def test_concatenation(self):
        assert output_lines('var s = "foo" + "bar"; print(s, len(s));') == ["foobar 6"]

    def test_indexing(self):
        assert output_lines('print("abc"[1]);') == ["b"]

    def test_index_assignment_does_not_affect_aliases(self):
        """A write through one alias of a string is invisible to the others."""
        assert output_lines("""
            var s = "abc";
            var t = s;
            t[0] = "x";
            print(s, t);
        """) == ["abc xbc"]

    def test_index_assignment_in_container(self):
        assert output_lines("""
            var words = ["cat"];
            words[0][0] = "b";
            print(words[0]);
        """) == ["bat"]

    def test_index_assignment_requires_single_character(self):
        diag = error_of('var s = "abc"; s[0] = "xy";')
        assert diag.code == "E408"


# --- Containers ---

class TestArrays:
    """Test array reference semantics."""

    def test_assignment_aliases(self):
        assert output_lines("""
            var a = [1, 2];
            var b = a;
            append(b, 3);
            b[0] = 10;
            print(a);
        """) == ["[10, 2, 3]"]

    def test_passing_aliases(self):
        assert output_lines("""
            func push(arr) { append(arr, 99); }
            var a = [];
            push(a);
            print(a);
        """) == ["[99]"]

    def test_concatenation_creates_new_array(self):
        """(a + b) has len(a)+len(b) elements; mutating it leaves a and b alone."""
        assert output_lines("""
            var a = [1];
            var b = [2, 3];
            var c = a + b;
            append(c, 9);
            c[0] = 100;
            print(a, b, c, len(c));
        """) == ["[1] [2, 3] [100, 2, 3, 9] 4"]

    def test_concatenation_reflects_state_at_copy_point(self):
        assert output_lines("""
            var a = [1, 2];
            var b = [3];
            a[0] = 5;
            var c = a + b;
            a[0] = 7;
            print(c);
        """) == ["[5, 2, 3]"]

    def test_index_out_of_bounds(self):
        diag = error_of("var a = [1]; print(a[1]);")
        assert diag.code == "E405"
        assert diag.message == "Index 1 out of bounds for length 1."

    def test_negative_index_out_of_bounds(self):
        diag = error_of("var a = [1]; print(a[-1]);")
        assert diag.code == "E405"

    def test_non_integer_index(self):
        diag = error_of('var a = [1]; print(a["0"]);')
        assert diag.code == "E412"

    def test_nested_display(self):
        assert output_lines('print([1, "a", [true, nil], 2.5]);') == ["[1, a, [true, nil], 2.5]"]

    def test_self_containing_array_display(self):
        assert output_lines("var a = [1]; append(a, a); print(a);") == ["[1, [...]]"]


class TestDictionaries:
    """Test dictionary semantics."""

    def test_access_forms(self):
        assert output_lines("""
            var d = {a: 1};
            d["b"] = 2;
            d.c = 3;
            print(d.a + d["b"] + d.c, len(d));
        """) == ["6 3"]

    def test_reference_semantics(self):
        assert output_lines("""
            var d = {};
            var e = d;
            e.x = 1;
            print(d);
        """) == ['{"x": 1}']

    def test_missing_key(self):
        diag = error_of('var d = {}; print(d["zzz"]);')
        assert diag.code == "E402"

    def test_missing_member(self):
        diag = error_of("var d = {}; print(d.zzz);")
        assert diag.code == "E402"

    def test_keys_must_be_strings(self):
        diag = error_of("var d = {}; d[1] = 2;")
        assert diag.code == "E412"


# --- Scoping ---

class TestDeclarations:
    """Test variable declarations and declared types."""

    def test_untyped_default_is_nil(self):
        assert output_lines("var x; print(x);") == ["nil"]

    def test_typed_defaults(self):
        assert output_lines("""
            int i; float f; bool b; string s; array a; dict d; object o;
            print(i, f, b, a, d, o);
            print(len(s), type(f), type(o));
        """) == ["0 0 false [] {} <object>{}", "0 float object"]

    def test_float_slot_accepts_int(self):
        """An int stored in a float slot is read back as a float."""
        assert output_lines("""
            float f = 1;
            print(type(f));
            f = 2;
            print(type(f), f / 4);
        """) == ["float", "float 0.5"]

    def test_float_slot_rejects_string(self):
        diag = error_of('float f = 1.5; f = "x";')
        assert diag.code == "E202"
        assert "expected float, got string" in diag.message

    def test_initializer_mismatch(self):
        diag = error_of('int n = "three";')
        assert diag.code == "E201"

    def test_object_slot_accepts_nil_and_instances(self):
        assert output_lines("""
            class P {}
            object o = nil;
            o = P();
            print(type(o));
        """) == ["P"]

    def test_object_slot_rejects_numbers(self):
        diag = error_of("object o = 1;")
        assert diag.code == "E201"

    def test_untyped_slot_accepts_anything(self):
        assert output_lines('var x = 1; x = "s"; x = [x]; print(x);') == ["[s]"]

    def test_redeclaration_in_same_scope_overwrites(self):
        assert output_lines("var x = 1; var x = 2; print(x);") == ["2"]


class TestScopes:
    """Test lexical scoping."""

    def test_block_shadowing(self):
        assert output_lines("""
            var x = 1;
            {
                var x = 2;
                print(x);
            }
            print(x);
        """) == ["2", "1"]

    def test_assignment_climbs_to_enclosing_scope(self):
        assert output_lines("""
            var x = 1;
            { x = 2; }
            print(x);
        """) == ["2"]

    def test_block_locals_do_not_leak(self):
        diag = error_of("{ var inner = 1; } print(inner);")
        assert diag.code == "E401"
        assert diag.message == "Undefined variable: inner"

    def test_assigning_undeclared_variable_fails(self):
        diag = error_of("y = 1;")
        assert diag.code == "E401"

    def test_declared_type_enforced_from_inner_scope(self):
        diag = error_of('int n = 1; { n = "s"; }')
        assert diag.code == "E202"


class TestClosures:
    """Test closures over live scopes."""

    def test_counter(self):
        assert output_lines("""
            func makeCounter() {
                var count = 0;
                func inc() {
                    count = count + 1;
                    return count;
                }
                return inc;
            }
            var c = makeCounter();
            c();
            print(c());
            var d = makeCounter();
            print(d());
        """) == ["2", "1"]

    def test_closure_sees_later_mutation(self):
        assert output_lines("""
            var x = 1;
            func get() { return x; }
            x = 5;
            print(get());
        """) == ["5"]

    def test_closure_mutation_visible_outside(self):
        assert output_lines("""
            var total = 0;
            var add = func (n) { total = total + n; };
            add(3);
            add(4);
            print(total);
        """) == ["7"]

    def test_shared_captured_scope(self):
        assert output_lines("""
            func pair() {
                var v = 0;
                var set = func (n) { v = n; };
                var get = func () { return v; };
                return [set, get];
            }
            var p = pair();
            p[0](42);
            print(p[1]());
        """) == ["42"]

    def test_function_display(self):
        assert output_lines("""
            func named() {}
            print(named, func () {}, print);
        """) == ["<function named> <function> <native function: print>"]


# --- Functions ---

class TestFunctions:
    """Test user-defined function calls."""

    def test_return_value(self):
        assert output_lines("func add(a, b) { return a + b; } print(add(2, 3));") == ["5"]

    def test_fall_through_returns_nil(self):
        assert output_lines("func f() { var x = 1; } print(f());") == ["nil"]

    def test_recursion(self):
        assert output_lines("""
            func fib(n) {
                if (n < 2) return n;
                return fib(n - 1) + fib(n - 2);
            }
            print(fib(15));
        """) == ["610"]

    def test_deep_recursion_within_limit(self):
        assert output_lines("""
            func depth(n) {
                if (n == 0) { return 0; }
                return 1 + depth(n - 1);
            }
            print(depth(400));
        """) == ["400"]

    def test_arity_mismatch(self):
        diag = error_of("func f(a) {} f(1, 2);")
        assert diag.code == "E403"
        assert diag.message == "Expected 1 arguments but got 2."

    def test_parameter_type_checked(self):
        diag = error_of('func f(int a) { return a; } f("s");')
        assert diag.code == "E203"

    def test_float_parameter_widens_int(self):
        assert output_lines("func g(float x) { return x; } print(type(g(1)));") == ["float"]

    def test_parameter_type_enforced_on_reassignment(self):
        diag = error_of('func f(int a) { a = "s"; } f(1);')
        assert diag.code == "E202"

    def test_calling_non_callable(self):
        diag = error_of("var x = 1; x();")
        assert diag.code == "E404"
        assert diag.message == "Can only call functions and classes, not int."

    def test_call_depth_limit(self):
        diag = error_of("func r(n) { return r(n + 1); } r(0);", max_call_depth=50)
        assert diag.code == "E410"
        assert diag.message == "Maximum call depth of 50 exceeded."

    def test_call_depth_error_is_catchable(self):
        assert output_lines("""
            func r(n) { return r(n + 1); }
            try { r(0); } catch (e) { print(e); }
            print(r == r);
        """, max_call_depth=30) == ["Maximum call depth of 30 exceeded.", "true"]

    def test_assignment_is_an_expression(self):
        assert output_lines("var a; var b; a = b = 3; print(a, b);") == ["3 3"]


# --- Errors and results ---

class TestRuntimeErrors:
    """Test runtime error reporting."""

    def test_error_carries_source_line(self):
        result, _ = run("""\
            var a = 1;
            var b = 0;
            print(a / b);
        """)
        assert not result.success
        diag = result.diagnostics[0]
        assert diag.line == 3
        assert diag.source_line.strip() == "print(a / b);"
        assert "^" in diag.format()

    def test_error_inside_function_points_at_failing_line(self):
        result, _ = run("""\
            func bad() {
                return nope;
            }
            bad();
        """)
        assert result.diagnostics[0].line == 2

    def test_output_before_error_is_kept(self):
        result, out = run('print("before"); print(missing); print("after");')
        assert not result.success
        assert out == "before\n"

    def test_syntax_errors_reported_in_result(self):
        result, _ = run("var x = ;\nvar = 2;")
        assert not result.success
        assert [d.code for d in result.diagnostics] == ["E103", "E101"]

    def test_lexer_error_reported_in_result(self):
        result, _ = run("var x = 1 $ 2;")
        assert not result.success
        assert result.diagnostics[0].code == "E001"

    def test_return_at_top_level(self):
        diag = error_of("return 1;")
        assert diag.code == "E409"

    def test_break_outside_loop(self):
        diag = error_of("{ break; }")
        assert diag.code == "E409"
        assert "break" in diag.message

    def test_continue_reaching_function_boundary(self):
        diag = error_of("func f() { continue; } f();")
        assert diag.code == "E409"
        assert diag.message == "Cannot 'continue' from a function."


class TestInterpreterApi:
    """Test embedding the interpreter."""

    def test_execute_returns_result(self):
        source = "var x = 1;"
        program = parse(tokenize(source))
        result = execute(program, source)
        assert isinstance(result, ExecutionResult)
        assert result.success

    def test_globals_persist_across_programs(self):
        out = io.StringIO()
        interp = Interpreter(stdout=out)
        compile_and_run("var shared = 41;", interpreter=interp)
        result = compile_and_run("print(shared + 1);", interpreter=interp)
        assert result.success
        assert out.getvalue() == "42\n"

    def test_interpreter_usable_after_error(self):
        out = io.StringIO()
        interp = Interpreter(stdout=out)
        failed = compile_and_run("func f() { var x = nope; } f();", interpreter=interp)
        assert not failed.success
        assert interp.ctx.current_scope is interp.globals
        assert interp.ctx.call_depth == 0
        ok = compile_and_run('print("still works");', interpreter=interp)
        assert ok.success

    def test_without_builtins(self):
        out = io.StringIO()
        interp = Interpreter(stdout=out, install_builtins=False)
        result = compile_and_run("print(1);", interpreter=interp)
        assert not result.success
        assert result.diagnostics[0].code == "E401"
