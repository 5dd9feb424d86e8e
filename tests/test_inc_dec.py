#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
""" pawk AWK interpreter tests
    increment and decrement of variables, array elements and fields """
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
from helpers import compile_run_answer_assert, compile_run_capsys_assert


def test_post_inc_arr_uninitialised():
    compile_run_answer_assert(1, """
BEGIN {
    a[2]=12
    b=a[1]++
    exit b*100+a[1]
}""")


def test_pre_inc_arr_uninitialised():
    compile_run_answer_assert(101, """
BEGIN {
    a[2]=12
    b=++a[1]
    exit b*100+a[1]
}""")


def test_post_dec_arr_uninitialised(capsys):
    compile_run_capsys_assert(capsys, "0 -1\n", """
BEGIN {
    a[2]=12
    b=a[1]--
    print b, a[1]
}""")


def test_pre_dec_arr_uninitialised(capsys):
    compile_run_capsys_assert(capsys, "-1 -1\n", """
BEGIN {
    a[2]=4
    b=--a[1]
    print b, a[1]
}""")


def test_post_inc_arr_initialised(capsys):
    compile_run_capsys_assert(capsys, "8 9\n", """
BEGIN {
    a[1]=8
    b=a[1]++
    print b, a[1]
}""")


def test_pre_inc_arr_initialised():
    compile_run_answer_assert(33, """
BEGIN {
    a[1]=2
    b=++a[1]
    exit b*10+a[1]
}""")


def test_post_dec_arr_initialised(capsys):
    compile_run_capsys_assert(capsys, "9 8\n", """
BEGIN {
    a[1]=9
    b=a[1]--
    print b, a[1]
}""")


def test_pre_dec_arr_initialised():
    compile_run_answer_assert(33, """
BEGIN {
    a[1]=4
    b=--a[1]
    exit b*10+a[1]
}""")


def test_pre_inc_var_initialised():
    compile_run_answer_assert(202, """
BEGIN {
    a=1
    b=++a
    exit b*100+a
}""")


def test_post_dec_var_initialised(capsys):
    compile_run_capsys_assert(capsys, "3 2\n", """
BEGIN {
    a=3
    b=a--
    print b, a
}""")


def test_post_inc_var_uninitialised():
    compile_run_answer_assert(0, """
BEGIN {
    b=a++
    exit b+0
}""")


def test_pre_inc_var_uninitialised():
    compile_run_answer_assert(1, """
BEGIN {
    b=++a
    exit b+0
}""")


def test_pre_dec_var_uninitialised(capsys):
    compile_run_capsys_assert(capsys, "-2\n", """
BEGIN {
    b=--a
    print a+b
}""")


def test_post_inc_var_initialised():
    compile_run_answer_assert(201, """
BEGIN {
    a=1
    b=a++
    exit a*100+b
}""")


def test_inc_field(capsys):
    compile_run_capsys_assert(capsys, "5 4 5 b\n", "{ x = $1++; print $1, x, $1, $2 }", [], stdin="4 b\n")


def test_inc_dollar_of_var(capsys):
    compile_run_capsys_assert(capsys, "a 3\n", "{ i = 2; $i++; print }", [], stdin="a 2\n")


def test_inc_string_value(capsys):
    compile_run_capsys_assert(capsys, "4\n", 'BEGIN { s = "3 apples"; s++; print s }')


def test_inc_nf(capsys):
    compile_run_capsys_assert(capsys, "a b \n", "{ NF++; print }", [], stdin="a b\n")


def test_increment_result_is_a_number(capsys):
    compile_run_capsys_assert(capsys, "1\n", 'BEGIN { x = "010"; x++; y = x ""; print (y == "11") }')
