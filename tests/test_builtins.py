"""
Tests for the built-in function library and host-registered natives.
"""

import io
import textwrap

import pytest

from minilang import compile_and_run, Interpreter, HostError
from minilang.runtime import (
    get_builtin_registry, int_val, string_val, VARIADIC, NativeFunction,
)


def run(source, **options):
    out = io.StringIO()
    result = compile_and_run(textwrap.dedent(source), stdout=out, **options)
    return result, out.getvalue()


def output_lines(source, **options):
    result, out = run(source, **options)
    assert result.success, result.format_errors()
    return out.splitlines()


def error_message(source):
    result, _ = run(source)
    assert not result.success
    return result.diagnostics[0].message


class TestRegistry:
    """Test the builtin registry itself."""

    def test_registry_is_shared(self):
        assert get_builtin_registry() is get_builtin_registry()

    def test_expected_functions_registered(self):
        names = get_builtin_registry().names()
        for name in ["print", "input", "len", "type", "str", "int", "float",
                     "bool", "append", "pop", "slice", "range", "keys", "has",
                     "del", "dict", "map", "filter", "deepcopy", "Object",
                     "dir", "assert", "clock", "read_file", "write_file"]:
            assert name in names

    def test_arities(self):
        registry = get_builtin_registry()
        assert registry.get_function("len").arity == 1
        assert registry.get_function("print").arity == VARIADIC
        assert registry.get_function("missing") is None

    def test_installed_as_natives(self):
        interp = Interpreter()
        value = interp.globals.get("len")
        assert isinstance(value.data, NativeFunction)
        assert str(value.data) == "<native function: len>"

    def test_native_arity_checked(self):
        assert error_message("len([1], [2]);") == "Expected 1 arguments but got 2."


class TestOutput:
    """Test print and input."""

    def test_print_joins_with_spaces(self):
        assert output_lines('print("a", 1, 2.5, true, nil);') == ["a 1 2.5 true nil"]

    def test_print_without_arguments(self):
        _, out = run("print();")
        assert out == "\n"

    def test_input_reads_line(self):
        out = io.StringIO()
        result = compile_and_run(
            'var name = input("name? "); print("hi " + name);',
            stdout=out, stdin=io.StringIO("Ada\nrest\n"),
        )
        assert result.success
        assert out.getvalue() == "name? hi Ada\n"

    def test_input_at_eof_is_nil(self):
        out = io.StringIO()
        result = compile_and_run("print(input());", stdout=out, stdin=io.StringIO(""))
        assert result.success
        assert out.getvalue() == "nil\n"


class TestConversions:
    """Test type and conversion functions."""

    def test_type(self):
        assert output_lines("""
            print(type(1), type(1.5), type(nil), type(true), type("s"));
            print(type([]), type({}), type(print), type(func () {}));
        """) == ["int float nil bool string", "array dict function function"]

    def test_str(self):
        assert output_lines('print(str(12) + str(0.5) + str([1]));') == ["120.5[1]"]

    def test_int(self):
        assert output_lines('print(int(3.9), int(-3.9), int(true), int(" 42 "));') == [
            "3 -3 1 42"
        ]

    def test_int_from_bad_string(self):
        assert error_message('int("abc");') == "Cannot convert string 'abc' to int."

    def test_int_of_infinity_is_catchable(self):
        """Float overflow reaches inf, which int() rejects as a script error."""
        assert output_lines("""
            var x = 10.0;
            for (var i = 0; i < 400; i = i + 1) { x = x * 10.0; }
            try { print(int(x)); } catch (e) { print("caught", e); }
            try { print(int(-x)); } catch (e) { print("caught", e); }
        """) == [
            "caught Cannot convert float inf to int.",
            "caught Cannot convert float -inf to int.",
        ]

    def test_int_of_nan(self):
        result, _ = run("""
            var x = 10.0;
            for (var i = 0; i < 400; i = i + 1) { x = x * 10.0; }
            int(x - x);
        """)
        assert not result.success
        assert result.diagnostics[0].code == "E411"
        assert result.diagnostics[0].message == "Cannot convert float nan to int."

    def test_type_of_object_constructor(self):
        assert output_lines("print(type(Object), type(len));") == [
            "object_constructor function"
        ]

    def test_float(self):
        assert output_lines('print(float(2), float("2.5"), type(float(1)));') == [
            "2 2.5 float"
        ]

    def test_float_from_bad_string(self):
        assert error_message('float("x");') == "Cannot convert string 'x' to float."

    def test_bool(self):
        assert output_lines('print(bool(0), bool("x"), bool([]));') == ["false true false"]


class TestCollections:
    """Test array, string and dict helpers."""

    def test_len(self):
        assert output_lines('print(len("abc"), len([1, 2]), len({a: 1}));') == ["3 2 1"]

    def test_len_of_number_fails(self):
        assert "has no length" in error_message("len(5);")

    def test_append_mutates_array_in_place(self):
        assert output_lines("""
            var a = [];
            var same = append(a, 1);
            append(same, 2);
            print(a);
        """) == ["[1, 2]"]

    def test_append_to_string_returns_new_string(self):
        assert output_lines("""
            var s = "ab";
            var t = append(s, "c");
            print(s, t);
        """) == ["ab abc"]

    def test_pop(self):
        assert output_lines("""
            var a = [1, 2, 3, 4];
            print(pop(a), pop(a, 0), a);
        """) == ["4 1 [2, 3]"]

    def test_pop_empty(self):
        assert error_message("pop([]);") == "pop from empty array."

    def test_pop_bad_index(self):
        assert error_message("pop([1], 3);") == "pop index out of range."

    def test_slice(self):
        assert output_lines("""
            var a = [0, 1, 2, 3];
            print(slice(a, 1, 3), slice(a, 2), slice("hello", 1, 4));
        """) == ["[1, 2] [2, 3] ell"]

    def test_slice_is_a_copy(self):
        assert output_lines("""
            var a = [1, 2];
            var b = slice(a, 0);
            append(b, 3);
            print(a);
        """) == ["[1, 2]"]

    def test_slice_out_of_bounds(self):
        assert error_message("slice([1, 2], 1, 5);") == "Slice indices are out of bounds."
        assert error_message("slice([1, 2], 2, 1);") == "Slice indices are out of bounds."

    def test_range(self):
        assert output_lines("""
            print(range(3));
            print(range(2, 5));
            print(range(0, 10, 4));
            print(range(3, 0, -1));
        """) == ["[0, 1, 2]", "[2, 3, 4]", "[0, 4, 8]", "[3, 2, 1]"]

    def test_range_zero_step(self):
        assert error_message("range(0, 5, 0);") == "range() step cannot be zero."

    def test_range_argument_count(self):
        assert error_message("range();") == "range() takes 1 to 3 arguments."

    def test_map_and_filter(self):
        assert output_lines("""
            var nums = [1, 2, 3, 4];
            print(map(func (x) { return x * x; }, nums));
            print(filter(func (x) { return x % 2 == 0; }, nums));
            print(nums);
        """) == ["[1, 4, 9, 16]", "[2, 4]", "[1, 2, 3, 4]"]

    def test_map_requires_unary_function(self):
        assert error_message("map(func (a, b) { return a; }, [1]);") == (
            "Function for map must take exactly one argument."
        )

    def test_dict_keys_has_del(self):
        assert output_lines("""
            var d = dict();
            d["x"] = 1;
            d["y"] = 2;
            print(keys(d), has(d, "x"), has(d, "z"));
            print(del(d, "x"), keys(d));
        """) == ["[x, y] true false", "nil [y]"]

    def test_has_requires_string_key(self):
        assert error_message("has({}, 1);") == "Second argument to has() must be a string."


class TestObjects:
    """Test object helpers."""

    def test_object_requires_object_parent(self):
        assert "must be another object" in error_message("Object(5);")

    def test_has_follows_prototype_chain(self):
        assert output_lines("""
            var base = Object();
            base.shared = 1;
            var o = Object(base);
            print(has(o, "shared"), has(o, "nope"));
        """) == ["true false"]

    def test_del_removes_own_field_only(self):
        assert output_lines("""
            var base = Object();
            base.v = "inherited";
            var o = Object(base);
            o.v = "own";
            del(o, "v");
            print(o.v);
        """) == ["inherited"]

    def test_dir_lists_visible_names_sorted(self):
        assert output_lines("""
            class A {
                init() { this.zeta = 1; }
                method() {}
            }
            print(dir(A()));
            print(dir({b: 1, a: 2}));
        """) == ["[init, method, zeta]", "[a, b]"]

    def test_keys_of_object_are_own_fields(self):
        assert output_lines("""
            class A { init() { this.x = 1; } m() {} }
            print(keys(A()));
        """) == ["[x]"]


class TestUtilities:
    """Test assert, clock and file helpers."""

    def test_assert_passes(self):
        assert output_lines('assert(1 == 1, "fine"); print("ok");') == ["ok"]

    def test_assert_message(self):
        assert error_message("assert(false);") == "Assertion failed."
        assert error_message('assert(1 > 2, "math broke");') == "Assertion failed. math broke"

    def test_assert_failure_is_catchable(self):
        assert output_lines("""
            try { assert(false, "nope"); } catch (e) { print(e); }
        """) == ["Assertion failed. nope"]

    def test_clock_returns_milliseconds(self):
        assert output_lines("""
            int start = clock();
            print(type(start), clock() >= start);
        """) == ["int true"]

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "note.txt"
        lines = output_lines(f"""
            write_file("{path.as_posix()}", "line one\\nline two");
            var text = read_file("{path.as_posix()}");
            print(len(text));
        """)
        assert lines == ["17"]
        assert path.read_text() == "line one\nline two"

    def test_read_missing_file(self, tmp_path):
        missing = (tmp_path / "absent.txt").as_posix()
        assert error_message(f'read_file("{missing}");') == f"Could not open file: {missing}"


class TestHostNatives:
    """Test registering host functions."""

    def test_define_native(self):
        out = io.StringIO()
        interp = Interpreter(stdout=out)
        interp.define_native("double", 1, lambda args: int_val(args[0].data * 2))
        result = compile_and_run("print(double(21));", interpreter=interp)
        assert result.success
        assert out.getvalue() == "42\n"

    def test_variadic_native_returning_none_gives_nil(self):
        seen = []
        out = io.StringIO()
        interp = Interpreter(stdout=out)
        interp.define_native("record", VARIADIC, lambda args: seen.extend(a.data for a in args))
        result = compile_and_run('print(record(1, "two"));', interpreter=interp)
        assert result.success
        assert seen == [1, "two"]
        assert out.getvalue() == "nil\n"

    def test_host_error_becomes_runtime_error(self):
        def explode(args):
            raise HostError("host says no")

        interp = Interpreter(stdout=io.StringIO())
        interp.define_native("explode", 0, explode)
        result = compile_and_run("var x = 1;\nexplode();", interpreter=interp)
        assert not result.success
        diag = result.diagnostics[0]
        assert diag.code == "E411"
        assert diag.message == "host says no"
        assert diag.line == 2
        assert "explode" in diag.hints[0]

    def test_native_returning_string(self):
        out = io.StringIO()
        interp = Interpreter(stdout=out)
        interp.define_native("greet", 1, lambda args: string_val("hi " + args[0].data))
        compile_and_run('print(greet("you"));', interpreter=interp)
        assert out.getvalue() == "hi you\n"
