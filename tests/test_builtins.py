#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
""" pawk AWK interpreter tests
    of the built-in functions, sprintf and printf """
#
# Copyright (C) 2022 Julia Ingleby Clement
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import math
import pytest
from helpers import Fuzzy, compile_run, compile_run_answer_assert, compile_run_capsys_assert, lines_txt
import pawk_builtins as builtins
from pawk_regex import compile_ere
from pawk_values import AwkValue


def fmt(text: str, *args) -> str:
    values = [AwkValue.string(a) if isinstance(a, str) else AwkValue.number(a) for a in args]
    return builtins.format_values(text, values, "%.6g")


""" substr, index, length """


@pytest.mark.parametrize(
    "start, length, expected",
    [
        (2, 3, "ell"),
        (0, None, "hello"),
        (-1, 3, "h"),
        (1.5, None, "ello"),
        (10, None, ""),
        (2, -1, ""),
        (2, 100, "ello"),
        (math.nan, None, ""),
    ],
)
def test_substr(start, length, expected):
    assert builtins.substr("hello", start, length) == expected


def test_index():
    assert builtins.index("foobar", "bar") == 4
    assert builtins.index("abc", "z") == 0
    assert builtins.index("abc", "") == 0


def test_length_forms(capsys):
    compile_run_capsys_assert(
        capsys,
        "5 5 3 2\n",
        '{ a[1]; a[2]; print length, length($0), length("abc"), length(a) }',
        [],
        stdin="hello\n",
    )


def test_length_of_number_uses_its_text(capsys):
    compile_run_capsys_assert(capsys, "3\n", "BEGIN { print length(1/4 * 2 + 0.25 * 4) }")


""" split """


def test_split_returns_count(capsys):
    compile_run_capsys_assert(
        capsys,
        "3 a b c\n",
        'BEGIN { n = split("a:b:c", arr, ":"); print n, arr[1], arr[2], arr[3] }',
    )


def test_split_default_fs(capsys):
    compile_run_capsys_assert(
        capsys, "2 x\n", 'BEGIN { n = split("  x   y ", parts); print n, parts[1] }'
    )


def test_split_regex(capsys):
    compile_run_capsys_assert(
        capsys, "3 c\n", 'BEGIN { n = split("a1b22c", p, /[0-9]+/); print n, p[3] }'
    )


def test_split_clears_array(capsys):
    compile_run_capsys_assert(
        capsys,
        "1 0\n",
        'BEGIN { a["old"] = 1; n = split("x", a, ","); print n, ("old" in a) }',
    )


def test_split_empty_string(capsys):
    compile_run_capsys_assert(capsys, "0 0\n", 'BEGIN { n = split("", a); print n, length(a) }')


def test_split_elements_are_strnums(capsys):
    compile_run_capsys_assert(
        capsys, "yes\n", 'BEGIN { split("10 9", a); if (a[1] > a[2]) print "yes" }'
    )


""" sub and gsub """


def test_gsub_banana(capsys):
    compile_run_capsys_assert(
        capsys, "bonono 3\n", 'BEGIN { s = "banana"; n = gsub(/a/, "o", s); print s, n }'
    )


@pytest.mark.parametrize(
    "pattern, replacement, text, expected, count",
    [
        ("x*", "-", "abc", "-a-b-c-", 4),
        ("b*", "X", "abc", "XaXcX", 3),
        ("[aeiou]", "(&)", "Line.1", "L(i)n(e).1", 2),
        ("a", "\\&", "aa", "&&", 2),
        ("z", "y", "abc", "abc", 0),
    ],
)
def test_substitute_every(pattern, replacement, text, expected, count):
    assert builtins.substitute(compile_ere(pattern), replacement, text, True) == (expected, count)


def test_substitute_first_only():
    assert builtins.substitute(compile_ere("[aeiou]"), "(&)", "Line.1", False) == ("L(i)ne.1", 1)


def test_sub_escaped_ampersand(capsys):
    compile_run_capsys_assert(
        capsys, "[&]bc\n", 'BEGIN { s = "abc"; sub(/a/, "[\\\\&]", s); print s }'
    )


def test_gsub_on_record_resplits(capsys):
    compile_run_capsys_assert(
        capsys, "L(i)n(e).1 6\n", '/Line.1/ { n = gsub(/[aeiou]/, "(&)"); print $1, n }', [lines_txt]
    )


def test_gsub_on_field_rebuilds_record(capsys):
    compile_run_capsys_assert(
        capsys, "xbc-d\n", 'BEGIN { OFS = "-" } { gsub(/a/, "x", $1); print }', [], stdin="abc d\n"
    )


def test_gsub_dynamic_regex(capsys):
    compile_run_capsys_assert(
        capsys, "L(i)n(e).1\n", 'BEGIN { x = "Line.1"; r = "[aeiou]"; gsub(r, "(&)", x); print x }'
    )


def test_gsub_array_element(capsys):
    compile_run_capsys_assert(
        capsys, "b-b\n", 'BEGIN { a[1] = "a-a"; gsub(/a/, "b", a[1]); print a[1] }'
    )


""" match """


def test_match_sets_rstart_rlength(capsys):
    compile_run_capsys_assert(
        capsys, "2 2 2\n", 'BEGIN { n = match("foobar", /o+/); print n, RSTART, RLENGTH }'
    )


def test_no_match(capsys):
    compile_run_capsys_assert(
        capsys, "0 0 -1\n", 'BEGIN { n = match("foobar", /z/); print n, RSTART, RLENGTH }'
    )


def test_match_is_leftmost():
    assert builtins.match(compile_ere("b+"), "abbcbbb") == (2, 2)


""" sprintf """


@pytest.mark.parametrize(
    "text, args, expected",
    [
        ("%d", (7,), "7"),
        ("%-3dx", (7,), "7  x"),
        (">>%d<<", (7,), ">>7<<"),
        ("%05d", (42,), "00042"),
        ("%i", (3.9,), "3"),
        ("%d", (-3.9,), "-3"),
        ("%d", ("3abc",), "3"),
        ("%5.2f", (3.14159,), " 3.14"),
        ("%.4f", (2.34,), "2.3400"),
        ("%e", (0.234,), "2.340000e-01"),
        ("%g", (2112728.4,), "2.11273e+06"),
        ("%G", (211272800000000.4,), "2.11273E+14"),
        ("%x", (255,), "ff"),
        ("%X", (255,), "FF"),
        ("%o", (8,), "10"),
        ("%#o", (8,), "010"),
        ("%#x", (255,), "0xff"),
        ("%u", (-1,), "18446744073709551615"),
        ("%c", (65,), "A"),
        ("%c", ("hello",), "h"),
        ("%3c|", ("x",), "  x|"),
        ("%s", ("abc",), "abc"),
        ("%5s", ("abc",), "  abc"),
        ("%-5s|", ("abc",), "abc  |"),
        ("%.2s", ("abc",), "ab"),
        ("%s", (3.5,), "3.5"),
        ("%*d", (5, 42), "   42"),
        ("%-*d|", (4, 1), "1   |"),
        ("%*.*f", (8, 4, 12.345), " 12.3450"),
        ("100%%", (), "100%"),
        ("%d %s|", (), "0 |"),
        ("%z", (1,), "%z"),
        ("%d", (math.inf,), "inf"),
        ("%5.1f%%", (99.44,), " 99.4%"),
    ],
)
def test_format_values(text, args, expected):
    assert fmt(text, *args) == expected


def test_sprintf_in_program(capsys):
    compile_run_capsys_assert(capsys, "x=007|\n", 'BEGIN { s = sprintf("x=%03d|", 7); print s }')


def test_printf_statement(capsys):
    compile_run_capsys_assert(
        capsys, "a   1\nb   2\n", 'BEGIN { printf "%-3s %d\\n", "a", 1; printf("%-3s %d\\n", "b", 2) }'
    )


def test_printf_does_not_add_newline(capsys):
    compile_run_capsys_assert(capsys, "ab", 'BEGIN { printf "a"; printf "b" }')


""" arithmetic """


def test_int_truncates(capsys):
    compile_run_capsys_assert(capsys, "3 -3\n", "BEGIN { print int(3.9), int(-3.7) }")


def test_maths_functions(capsys):
    compile_run_capsys_assert(
        capsys,
        "4 1 3.14159 2.71828 0 1\n",
        "BEGIN { print sqrt(16), exp(0), atan2(0, -1), exp(1), sin(0), cos(0) }",
    )


def test_log_domain_errors_are_not_fatal(capsys):
    compile_run_capsys_assert(capsys, "nan -inf inf\n", "BEGIN { print log(-1), log(0), exp(1000) }")


def test_awk_functions_direct():
    assert builtins.awk_log(math.e) == Fuzzy(1, 0.0001)
    assert math.isnan(builtins.awk_sqrt(-1))
    assert builtins.awk_pow(2, 10) == 1024
    assert builtins.awk_pow(10, 1000) == math.inf
    assert builtins.awk_int(-2.5) == -2


""" rand and srand """


def test_rand_range():
    generator = builtins.AwkRandom()
    for _ in range(100):
        assert 0 <= generator.rand() < 1


def test_rand_repeats_without_seed():
    assert builtins.AwkRandom().rand() == builtins.AwkRandom().rand()


def test_srand_returns_previous_seed(capsys):
    compile_run_capsys_assert(capsys, "0 5\n", "BEGIN { a = srand(5); b = srand(); print a, b }")


def test_same_seed_same_sequence(capsys):
    compile_run_capsys_assert(
        capsys, "1\n", "BEGIN { srand(7); x = rand(); srand(7); y = rand(); print (x == y) }"
    )


def test_srand_uses_time(monkeypatch):
    monkeypatch.setattr(builtins.time, "time", lambda: 1234.5)
    generator = builtins.AwkRandom()
    generator.srand()
    assert generator.srand(1.0) == 1234


""" strings """


def test_case_conversion(capsys):
    compile_run_capsys_assert(capsys, "abc ABC\n", 'BEGIN { print tolower("AbC"), toupper("aBc") }')


""" system, close and fflush """


def test_system_returns_status():
    compile_run_answer_assert(3, 'BEGIN { exit system("exit 3") }', [])


def test_system_output_is_in_order(capsys):
    compile_run_capsys_assert(capsys, "a\nb\nc\n", 'BEGIN { print "a"; system("echo b"); print "c" }')


def test_close_unknown_is_minus_one(capsys):
    compile_run_capsys_assert(capsys, "-1\n", 'BEGIN { print close("never-opened") }')


def test_fflush(capsys):
    compile_run_capsys_assert(capsys, "x\n0 -1\n", 'BEGIN { print "x"; print fflush(), fflush("nope") }')


def test_builtin_errors_are_fatal(capsys):
    assert compile_run("BEGIN { x[1] = 1; print length(x) substr(x, 1) }") == 2
    assert "fatal" in capsys.readouterr().err
