#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
""" pawk AWK interpreter tests
    program phases, exit and fatal errors """
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

import io
import sys
import pytest
from helpers import compile_run, compile_run_capsys_assert, compile_run_answer_assert, lines_txt
from pawk import compile_awk, run_awk
from pawk_interpreter import Interpreter
from pawk_runtime import MAX_STACK_BYTES, AwkRuntimeError, stack_bytes


class UnreadableInput(io.StringIO):
    def read(self, *args):
        raise AssertionError("standard input was read")

    def readline(self, *args):
        raise AssertionError("standard input was read")


def test_begin_only_does_not_read_input(capsys):
    program = compile_awk("BEGIN { print 1 + 1 }")
    assert run_awk(program, [], stdin=UnreadableInput()) == 0
    assert capsys.readouterr().out == "2\n"


def test_end_reads_input(capsys):
    compile_run_capsys_assert(capsys, "2\n", "END { print NR }", [], stdin="a\nb\n")


def test_exit_in_begin_still_runs_end(capsys):
    compile_run_capsys_assert(capsys, "begin end\n", '''
BEGIN { printf "begin "; exit }
{ print "never" }
END { print "end" }''', [], stdin="a\n")


def test_exit_in_end_stops_end():
    compile_run_answer_assert(5, '''
END { exit 5; print "never" }
END { print "never" }''', ["/dev/null"])


def test_exit_without_status_keeps_earlier_status():
    compile_run_answer_assert(3, '''
{ exit 3 }
END { exit }''', [lines_txt])


def test_exit_in_rule_skips_other_records(capsys):
    compile_run_capsys_assert(capsys, "Line.1\n", '{ print $1; exit }', [lines_txt])


@pytest.mark.parametrize(
    "status, expected",
    [
        ("1", 1),
        ("255", 255),
        ("256", 0),
        ("-1", 255),
        ("3.9", 3),
        ('"7x"', 7),
        ("log(-1)", 2),
        ("-log(0)", 2),
    ],
)
def test_exit_status_values(status, expected):
    assert compile_run(f"BEGIN {{ exit {status} }}") == expected


def test_next_in_begin_is_fatal(capsys):
    assert compile_run("BEGIN { next }") == 2
    assert "`next' used in BEGIN action" in capsys.readouterr().err


def test_next_in_function_called_from_end_is_fatal(capsys):
    assert compile_run("function skip() { next }\nEND { skip() }", [], stdin="") == 2
    assert "`next' used in END action" in capsys.readouterr().err


def test_fatal_error_reports_position(capsys):
    assert compile_run("NR == 2 { x = 1 / 0 }", [lines_txt]) == 2
    captured = capsys.readouterr()
    assert captured.err == f"pawk: (FILENAME={lines_txt} FNR=2) fatal: division by zero attempted\n"


def test_fatal_error_in_begin_has_no_position(capsys):
    assert compile_run("BEGIN { x = 1 % 0 }") == 2
    assert capsys.readouterr().err == "pawk: fatal: division by zero attempted in `%'\n"


def test_output_before_fatal_error_is_kept(capsys):
    assert compile_run('BEGIN { print "before"; x = 1 / 0; print "after" }') == 2
    assert capsys.readouterr().out == "before\n"


def test_interpreter_raises_runtime_errors():
    program = compile_awk("BEGIN { f() }")
    interpreter = Interpreter(program, io.StringIO(""), io.StringIO(), io.StringIO())
    with pytest.raises(AwkRuntimeError):
        interpreter.run([])


def test_interpreter_writes_to_given_streams():
    out = io.StringIO()
    err = io.StringIO()
    program = compile_awk('{ print $2 > "/dev/stderr"; print $1 }')
    status = Interpreter(program, io.StringIO("a b\n"), out, err).run([])
    assert status == 0
    assert out.getvalue() == "a\n"
    assert err.getvalue() == "b\n"


def test_assignments_before_begin(capsys):
    program = compile_awk("BEGIN { print x + 1 }")
    run_awk(program, [], ["x=41"])
    assert capsys.readouterr().out == "42\n"


def test_run_restores_recursion_limit():
    before = sys.getrecursionlimit()
    program = compile_awk("function f(n) { return n ? f(n - 1) : 0 } BEGIN { f(2000) }")
    assert run_awk(program, []) == 0
    assert sys.getrecursionlimit() == before


def test_errors_cross_back_from_the_worker_thread():
    program = compile_awk("function f(n) { return f(n + 1) } BEGIN { f(1) }")
    interpreter = Interpreter(program, io.StringIO(""), io.StringIO(), io.StringIO())
    with pytest.raises(AwkRuntimeError, match="recursion too deep"):
        interpreter.run([])


@pytest.mark.parametrize(
    "frames, expected",
    [
        (1, 1 << 20),
        (60, 1 << 20),
        (4096, 2 << 20),
        (10 ** 9, MAX_STACK_BYTES),
    ],
)
def test_stack_bytes(frames, expected):
    assert stack_bytes(frames) == expected
