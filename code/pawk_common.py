#!/usr/bin/python3
"""
    pawk AWK interpreter:
    Classes shared between the command line front end and the interpreter
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

USAGE = "usage: pawk [-d] [-F fs] [-v var=value] [-f progfile | -e 'prog' | 'prog'] [file ...]"


class PawkArgParser:
    '''Parses commandline args.

        Walks the argument list sorting it into program
        text, -v assignments and the operands that
        become ARGV[1..] for the interpreter.
    '''

    def __init__(self):
        self.sources = []  # ("file", path) or ("text", program text)
        self.assignments = []
        self.operands = []
        self.debug = False
        self.code_found = False

    def _option_value(self, args, i):
        curr_arg = args[i]
        if len(curr_arg) > 2:
            return i, curr_arg[2:]
        i += 1
        if i >= len(args):
            raise ValueError(f"option {curr_arg} requires an argument")
        return i, args[i]

    def parse(self, args):
        i = 1  # skip program name
        while i < len(args):
            curr_arg = args[i]
            if not curr_arg.startswith("-") or len(curr_arg) < 2:
                break
            if curr_arg == "--":  # end of options
                i += 1
                break
            option = curr_arg[1]
            if option == "d":  # dump the parsed program
                self.debug = True
            elif option == "e":  # source text
                i, value = self._option_value(args, i)
                self.sources.append(("text", value))
                self.code_found = True
            elif option == "f":  # source file
                i, value = self._option_value(args, i)
                self.sources.append(("file", value))
                self.code_found = True
            elif option == "F":  # set variable FS
                i, value = self._option_value(args, i)
                self.assignments.append("FS=" + ("\\t" if value == "t" else value))
            elif option == "v":  # set variable
                i, value = self._option_value(args, i)
                if "=" not in value:
                    raise ValueError(f"-v expects var=value, found {value!r}")
                self.assignments.append(value)
            else:
                raise ValueError(f"unknown option {curr_arg}")
            i += 1
        rest = args[i:]
        if not self.code_found:
            if not rest:
                raise ValueError("no program text")
            self.sources.append(("text", rest[0]))
            self.code_found = True
            rest = rest[1:]
        self.operands = list(rest)
        return self


class AwkSprintfConversion():
    '''One printf/sprintf conversion character.
        kind says how the argument is coerced before
        python's % operator formats it with python_char'''
    def __init__(self, char, kind, python_char):
        self.char = char
        self.kind = kind
        self.python_char = python_char

'''All conversion specifiers AWK printf supports.
    a, A, n & p are in the POSIX C standard but not in the
    AWK one; n is regarded as unsafe, & p is highly unlikely
    to be useful '''
AwkSprintfConversion.all_conversions={
    'c' : AwkSprintfConversion('c', 'char', 's'),
    'd' : AwkSprintfConversion('d', 'int', 'd'),
    'e' : AwkSprintfConversion('e', 'float', 'e'),
    'E' : AwkSprintfConversion('E', 'float', 'E'),
    'f' : AwkSprintfConversion('f', 'float', 'f'),
    'F' : AwkSprintfConversion('F', 'float', 'F'),
    'g' : AwkSprintfConversion('g', 'float', 'g'),
    'G' : AwkSprintfConversion('G', 'float', 'G'),
    'i' : AwkSprintfConversion('i', 'int', 'd'),
    'o' : AwkSprintfConversion('o', 'unsigned', 'o'),
    's' : AwkSprintfConversion('s', 'string', 's'),
    'u' : AwkSprintfConversion('u', 'unsigned', 'd'),
    'x' : AwkSprintfConversion('x', 'unsigned', 'x'),
    'X' : AwkSprintfConversion('X', 'unsigned', 'X'),
}
