#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
""" pawk AWK interpreter tests
    of scalar values, conversions, comparisons and arrays """
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
import sys
from pathlib import Path

try:
    from pawk_values import AwkArray, AwkValue, UNINIT_VALUE, ValueKind, compare_values
except ImportError:
    path = Path(__file__).parent.parent / "code"
    sys.path.append(str(path))
    from pawk_values import AwkArray, AwkValue, UNINIT_VALUE, ValueKind, compare_values
from pawk_values import looks_numeric, num_to_str, str_to_num


@pytest.mark.parametrize(
    "text, expected",
    [
        ("12", 12.0),
        ("  12abc", 12.0),
        ("abc", 0.0),
        (".5e1x", 5.0),
        ("+3", 3.0),
        ("-", 0.0),
        ("1e", 1.0),
        ("0x1A", 0.0),
        ("", 0.0),
    ],
)
def test_str_to_num_uses_leading_prefix(text, expected):
    assert str_to_num(text) == expected


@pytest.mark.parametrize("text", [" 12 ", "1e5", "-3.5", ".5", "+0"])
def test_looks_numeric(text):
    assert looks_numeric(text)


@pytest.mark.parametrize("text", ["12abc", "", " ", "1e", "abc", "1 2"])
def test_does_not_look_numeric(text):
    assert not looks_numeric(text)


def test_integral_numbers_have_no_point():
    assert num_to_str(3.0) == "3"
    assert num_to_str(-17.0) == "-17"
    assert num_to_str(1e20) == "100000000000000000000"


def test_fractions_use_format():
    assert num_to_str(3.14159265) == "3.14159"
    assert num_to_str(0.1) == "0.1"
    assert num_to_str(0.1, "%.2f") == "0.10"


def test_special_numbers():
    assert num_to_str(math.nan) == "nan"
    assert num_to_str(math.inf) == "inf"
    assert num_to_str(-math.inf) == "-inf"


def test_strnum_keeps_its_text():
    value = AwkValue.from_input("3.0")
    assert value.kind == ValueKind.STRNUM
    assert value.to_num() == 3.0
    assert value.to_str() == "3.0"


def test_input_that_is_not_numeric_is_a_string():
    assert AwkValue.from_input("3 apples").kind == ValueKind.STRING


def test_number_to_string_uses_convfmt():
    assert AwkValue.number(0.123456789).to_str("%.2g") == "0.12"


def test_truth():
    assert AwkValue.string("0").is_true()
    assert not AwkValue.from_input("0").is_true()
    assert not AwkValue.from_input(" 0.0 ").is_true()
    assert AwkValue.from_input(" ").is_true()
    assert not AwkValue.string("").is_true()
    assert not AwkValue.number(0).is_true()
    assert not UNINIT_VALUE.is_true()


def test_uninitialised_is_zero_and_empty():
    assert UNINIT_VALUE.to_num() == 0.0
    assert UNINIT_VALUE.to_str() == ""


def test_strnums_compare_as_numbers():
    assert compare_values(AwkValue.from_input("10"), AwkValue.from_input("9")) == 1


def test_strings_compare_as_strings():
    assert compare_values(AwkValue.string("10"), AwkValue.number(9)) == -1


def test_uninitialised_equals_empty_string_and_zero():
    assert compare_values(UNINIT_VALUE, AwkValue.string("")) == 0
    assert compare_values(UNINIT_VALUE, AwkValue.number(0)) == 0


def test_number_compared_with_string_uses_convfmt():
    assert compare_values(AwkValue.number(0.5), AwkValue.string("0.50"), "%.2f") == 0


def test_array_reference_creates_element():
    arr = AwkArray()
    assert not arr.contains("x")
    assert arr.get_or_create("x") == UNINIT_VALUE
    assert arr.contains("x")
    assert len(arr) == 1


def test_array_get_does_not_create():
    arr = AwkArray()
    assert arr.get("x") == UNINIT_VALUE
    assert not arr.contains("x")


def test_array_keys_are_a_snapshot_in_insertion_order():
    arr = AwkArray()
    for key in ("b", "a", "c"):
        arr.set(key, AwkValue.number(1))
    keys = arr.keys()
    arr.delete("a")
    assert keys == ["b", "a", "c"]
    assert arr.keys() == ["b", "c"]


def test_array_delete_missing_is_quiet():
    arr = AwkArray()
    arr.delete("nothing")
    arr.set("1", AwkValue.number(1))
    arr.clear()
    assert len(arr) == 0
