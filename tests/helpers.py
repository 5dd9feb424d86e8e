#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
""" pawk AWK interpreter tests
    shared helpers """
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
from pathlib import Path
try:
    from pawk import run, compile_awk, run_awk
except ImportError:
    path = Path(__file__).parent.parent / 'code'
    sys.path.append(str(path))
    from pawk import run, compile_awk, run_awk
from pawk_common import PawkArgParser


class Fuzzy():
    def __init__(self, target: float, max_err: float):
        self.target = target
        self.max_err = max_err

    def __eq__(self, o) -> bool:
        if (self.target - self.max_err) > o:
            return False
        if o > (self.target + self.max_err):
            return False
        return True


# unless specified otherwise, test input files are in the same directory as
# the tests
def full_file_name(test_file):
    return str(Path(__file__).parent / test_file)


empty_txt = full_file_name('empty.txt')
lines_txt = full_file_name('lines.txt')

# we expect to find the file empty.txt in the same directory


def compile_run(awk: str, files: list = [empty_txt], stdin: str = None, assignments: list = ()):
    """Compile and run awk, returning the exit status.
    stdin, when given, is the text standard input holds."""
    program = compile_awk(awk)
    stream = io.StringIO(stdin) if stdin is not None else None
    return run_awk(program, files, assignments, stdin=stream)


def compile_run_capsys_assert(capsys, expected: str, awk: str, files: list = [empty_txt], stdin: str = None):
    compile_run(awk, files, stdin)
    captured = capsys.readouterr()
    assert captured.out == expected


def compile_run_answer_assert(expected, awk: str, files: list = [empty_txt]):
    args = ["program"]
    if awk is not None:
        args.append(awk)
    args.extend(files)
    ans = run(args)
    assert ans == expected


def check_arg_parser(value, check, args: list):
    parser = PawkArgParser()
    parser.parse(["program"] + args)
    field = check(parser)
    assert field == value
