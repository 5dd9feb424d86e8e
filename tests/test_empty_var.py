#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
""" pawk AWK interpreter tests
    uninitialised variables act as both 0 and "" """
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

import pytest
from helpers import compile_run, compile_run_capsys_assert
from pawk_values import UNINIT_VALUE, ValueKind


def test_empty_var_str():
    assert UNINIT_VALUE.to_str() == ""


def test_empty_var_num():
    assert UNINIT_VALUE.to_num() == 0.0


def test_empty_var_bool():
    assert not UNINIT_VALUE.is_true()


def test_empty_var_kind():
    assert UNINIT_VALUE.kind == ValueKind.UNINIT


@pytest.mark.parametrize(
    "expr, expected",
    [
        ("a + 2", "2"),
        ("-a + 2", "2"),
        ("+a", "0"),
        ("a - 2", "-2"),
        ("a * 2", "0"),
        ("a / 2", "0"),
        ("a % 2", "0"),
        ("a ^ 2", "0"),
        ("2 ^ a", "1"),
        ("2 - a", "2"),
        ("!a", "1"),
        ("a \"x\"", "x"),
        ("length(a)", "0"),
        ("(a == 0)", "1"),
        ("(a == \"\")", "1"),
        ("(a < 1)", "1"),
    ],
)
def test_empty_var_in_expression(capsys, expr, expected):
    compile_run_capsys_assert(capsys, expected + "\n", f"BEGIN {{ print {expr} }}")


@pytest.mark.parametrize(
    "statement, expected",
    [
        ("a += 2", "2"),
        ("a -= 2", "-2"),
        ("a *= 2", "0"),
        ("a /= 2", "0"),
        ("a %= 2", "0"),
        ("a ^= 2", "0"),
    ],
)
def test_empty_var_compound_assignment(capsys, statement, expected):
    compile_run_capsys_assert(capsys, expected + "\n", f"BEGIN {{ {statement}; print a }}")


def test_empty_var_divisor(capsys):
    assert compile_run("BEGIN { print 2 / a }") == 2
    captured = capsys.readouterr()
    assert "division by zero" in captured.err


def test_empty_var_modulus_divisor(capsys):
    assert compile_run("BEGIN { print 2 % a }") == 2
    assert "division by zero" in capsys.readouterr().err


def test_empty_field_is_uninitialised(capsys):
    compile_run_capsys_assert(capsys, "1 1\n", '{ print ($5 == 0), ($5 == "") }', [], stdin="a b\n")


def test_empty_array_element(capsys):
    compile_run_capsys_assert(capsys, "1 1\n", 'BEGIN { print (x["k"] == 0), (x["k"] == "") }')
