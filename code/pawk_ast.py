#!/usr/bin/python3
"""
    Syntax tree for the pawk AWK interpreter.

    Nodes are built once by the parser and never modified
    afterwards; the same tree is walked for every record.
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


class Node:
    __slots__ = ()

    def __repr__(self):
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)
        return f"{type(self).__name__}({fields})"

    def __eq__(self, other):
        return type(self) is type(other) and all(
            getattr(self, name) == getattr(other, name) for name in self.__slots__
        )

    __hash__ = object.__hash__


""" Program structure """


class Program(Node):
    __slots__ = ("begin_blocks", "rules", "end_blocks", "functions")

    def __init__(self):
        self.begin_blocks = []
        self.rules = []
        self.end_blocks = []
        self.functions = {}

    def reads_input(self) -> bool:
        """A program of nothing but BEGIN blocks never touches its input"""
        return bool(self.rules) or bool(self.end_blocks)


class Rule(Node):
    __slots__ = ("pattern", "action")

    def __init__(self, pattern, action):
        self.pattern = pattern
        self.action = action


class ExprPattern(Node):
    __slots__ = ("expr",)

    def __init__(self, expr):
        self.expr = expr


class RangePattern(Node):
    __slots__ = ("start", "end")

    def __init__(self, start, end):
        self.start = start
        self.end = end


class Function(Node):
    __slots__ = ("name", "params", "body", "line")

    def __init__(self, name: str, params: list, body, line: int = 0):
        self.name = name
        self.params = params
        self.body = body
        self.line = line


""" Statements """


class Block(Node):
    __slots__ = ("statements",)

    def __init__(self, statements: list):
        self.statements = statements


class ExprStmt(Node):
    __slots__ = ("expr",)

    def __init__(self, expr):
        self.expr = expr


class Redirect(Node):
    """mode is one of '>', '>>' or '|'"""

    __slots__ = ("mode", "target")

    def __init__(self, mode: str, target):
        self.mode = mode
        self.target = target


class Print(Node):
    __slots__ = ("args", "redirect")

    def __init__(self, args: list, redirect=None):
        self.args = args
        self.redirect = redirect


class Printf(Node):
    __slots__ = ("args", "redirect")

    def __init__(self, args: list, redirect=None):
        self.args = args
        self.redirect = redirect


class If(Node):
    __slots__ = ("cond", "then", "otherwise")

    def __init__(self, cond, then, otherwise=None):
        self.cond = cond
        self.then = then
        self.otherwise = otherwise


class While(Node):
    __slots__ = ("cond", "body")

    def __init__(self, cond, body):
        self.cond = cond
        self.body = body


class DoWhile(Node):
    __slots__ = ("body", "cond")

    def __init__(self, body, cond):
        self.body = body
        self.cond = cond


class For(Node):
    __slots__ = ("init", "cond", "step", "body")

    def __init__(self, init, cond, step, body):
        self.init = init
        self.cond = cond
        self.step = step
        self.body = body


class ForIn(Node):
    __slots__ = ("var", "array", "body")

    def __init__(self, var, array, body):
        self.var = var
        self.array = array
        self.body = body


class Next(Node):
    __slots__ = ()


class NextFile(Node):
    __slots__ = ()


class Break(Node):
    __slots__ = ()


class Continue(Node):
    __slots__ = ()


class Exit(Node):
    __slots__ = ("expr",)

    def __init__(self, expr=None):
        self.expr = expr


class Return(Node):
    __slots__ = ("expr",)

    def __init__(self, expr=None):
        self.expr = expr


class Delete(Node):
    """delete array[subscripts], or the whole array when subscripts is None"""

    __slots__ = ("array", "subscripts")

    def __init__(self, array, subscripts=None):
        self.array = array
        self.subscripts = subscripts


""" Expressions """


class Num(Node):
    __slots__ = ("value",)

    def __init__(self, value: float):
        self.value = value


class Str(Node):
    __slots__ = ("value",)

    def __init__(self, value: str):
        self.value = value


class Regex(Node):
    """/pattern/ - on its own it means $0 ~ /pattern/"""

    __slots__ = ("pattern",)

    def __init__(self, pattern: str):
        self.pattern = pattern


class Var(Node):
    """A global variable, built-in or user defined"""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name


class LocalVar(Node):
    """A function parameter, addressed by its slot in the call frame"""

    __slots__ = ("name", "slot")

    def __init__(self, name: str, slot: int):
        self.name = name
        self.slot = slot


class Field(Node):
    __slots__ = ("index",)

    def __init__(self, index):
        self.index = index


class Index(Node):
    """array[subscript, ...]"""

    __slots__ = ("array", "subscripts")

    def __init__(self, array, subscripts: list):
        self.array = array
        self.subscripts = subscripts


class Unary(Node):
    """op is '-', '+' or '!'"""

    __slots__ = ("op", "operand")

    def __init__(self, op: str, operand):
        self.op = op
        self.operand = operand


class Binary(Node):
    """Arithmetic: op is one of + - * / % ^"""

    __slots__ = ("op", "left", "right")

    def __init__(self, op: str, left, right):
        self.op = op
        self.left = left
        self.right = right


class Concat(Node):
    __slots__ = ("left", "right")

    def __init__(self, left, right):
        self.left = left
        self.right = right


class Compare(Node):
    __slots__ = ("op", "left", "right")

    def __init__(self, op: str, left, right):
        self.op = op
        self.left = left
        self.right = right


class Match(Node):
    __slots__ = ("negate", "left", "right")

    def __init__(self, negate: bool, left, right):
        self.negate = negate
        self.left = left
        self.right = right


class And(Node):
    __slots__ = ("left", "right")

    def __init__(self, left, right):
        self.left = left
        self.right = right


class Or(Node):
    __slots__ = ("left", "right")

    def __init__(self, left, right):
        self.left = left
        self.right = right


class Cond(Node):
    __slots__ = ("test", "yes", "no")

    def __init__(self, test, yes, no):
        self.test = test
        self.yes = yes
        self.no = no


class In(Node):
    """(subscripts) in array - never creates the element"""

    __slots__ = ("subscripts", "array")

    def __init__(self, subscripts: list, array):
        self.subscripts = subscripts
        self.array = array


class Assign(Node):
    """op is '=' or a compound operator such as '+='"""

    __slots__ = ("op", "target", "value")

    def __init__(self, op: str, target, value):
        self.op = op
        self.target = target
        self.value = value


class IncDec(Node):
    __slots__ = ("op", "prefix", "target")

    def __init__(self, op: str, prefix: bool, target):
        self.op = op
        self.prefix = prefix
        self.target = target


class Call(Node):
    """Call of a user defined function"""

    __slots__ = ("name", "args", "line")

    def __init__(self, name: str, args: list, line: int = 0):
        self.name = name
        self.args = args
        self.line = line


class BuiltinCall(Node):
    __slots__ = ("name", "args")

    def __init__(self, name: str, args: list):
        self.name = name
        self.args = args


class Getline(Node):
    """kind is 'simple' (main input), 'file' (getline < source)
    or 'command' (source | getline). target is an lvalue or None for $0."""

    __slots__ = ("kind", "target", "source")

    def __init__(self, kind: str, target=None, source=None):
        self.kind = kind
        self.target = target
        self.source = source


LVALUES = (Var, LocalVar, Field, Index)
