#!/usr/bin/python3
"""
    pawk AWK interpreter: compile and go.

    compile_awk() turns program text into a Program tree,
    run_awk() runs one and run() is the command line.
"""
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
import sys
from pawk_common import USAGE, PawkArgParser
from pawk_interpreter import PROGRAM_NAME, Interpreter
from pawk_lexer import CompileError
from pawk_parser import parse_source
from pawk_runtime import ENCODING, ERRORS, AwkRuntimeError


def compile_awk(source: str, filename: str = None):
    """Parse AWK program text. Raises CompileError (LexError or ParseError)."""
    return parse_source(source, filename)


def run_awk(program, operands=(), assignments=(), stdin=None, stdout=None, stderr=None) -> int:
    """Run a compiled program, returning its exit status.
    Fatal runtime errors are reported on stderr and give status 2."""
    interpreter = Interpreter(program, stdin, stdout, stderr)
    try:
        return interpreter.run(list(operands), list(assignments))
    except AwkRuntimeError as err:
        interpreter.report(str(err))
        return 2


def read_sources(sources: list):
    """Join -f files and -e texts into one program.
    Returns the text and a file name for error messages."""
    texts = []
    for kind, value in sources:
        if kind == "file":
            with open(value, "r", encoding=ENCODING, errors=ERRORS) as source_file:
                texts.append(source_file.read())
        else:
            texts.append(value)
    filename = sources[0][1] if len(sources) == 1 and sources[0][0] == "file" else None
    return "\n".join(texts), filename


def run(args, stdin=None, stdout=None, stderr=None) -> int:
    stderr = sys.stderr if stderr is None else stderr
    arg_parser = PawkArgParser()
    try:
        arg_parser.parse(args)
    except ValueError as err:
        print(f"{PROGRAM_NAME}: {err}", file=stderr)
        print(USAGE, file=stderr)
        return 2
    try:
        source, filename = read_sources(arg_parser.sources)
    except OSError as err:
        print(f"{PROGRAM_NAME}: can't open source file `{err.filename}': {err.strerror}", file=stderr)
        return 2
    try:
        program = compile_awk(source, filename)
    except CompileError as err:
        print(f"{PROGRAM_NAME}: {err}", file=stderr)
        return 2
    if arg_parser.debug:
        print(repr(program), file=stderr)
    return run_awk(program, arg_parser.operands, arg_parser.assignments, stdin, stdout, stderr)


def main():
    # arbitrary bytes read from input must survive being printed
    sys.stdin.reconfigure(errors=ERRORS)
    sys.stdout.reconfigure(errors=ERRORS)
    try:
        status = run(sys.argv)
    except BrokenPipeError:
        status = 2
    sys.exit(status)


if __name__ == "__main__":
    main()
