#!/usr/bin/python3
"""
    Tree walking evaluator for the pawk AWK interpreter.

    Interpreter owns everything a run needs: globals, the call
    frame stack, the current record, open streams and the random
    number generator. Several interpreters can run side by side,
    nothing here is kept at module level.

    A run goes BEGIN -> main loop -> END. exit jumps straight to
    the END actions, exit inside END stops at once.
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
import math
import os
import re
import sys
import pawk_builtins as builtins
from pawk_ast import (
    And,
    Assign,
    Binary,
    Block,
    Break,
    BuiltinCall,
    Call,
    Compare,
    Concat,
    Cond,
    Continue,
    Delete,
    DoWhile,
    Exit,
    ExprStmt,
    Field,
    For,
    ForIn,
    Getline,
    If,
    In,
    IncDec,
    Index,
    LocalVar,
    Match,
    Next,
    NextFile,
    Num,
    Or,
    Print,
    Printf,
    RangePattern,
    Regex,
    Return,
    Str,
    Unary,
    Var,
    While,
)
from pawk_lexer import NAME_RE, process_escapes
from pawk_records import Record, RecordReader
from pawk_regex import compile_ere
from pawk_runtime import (
    ENCODING,
    ERRORS,
    AwkBreak,
    AwkContinue,
    AwkExit,
    AwkNext,
    AwkNextFile,
    AwkReturn,
    AwkRuntimeError,
    Frame,
    StreamManager,
    UntypedParam,
    call_with_deep_stack,
)
from pawk_values import (
    DEFAULT_NUMBER_FORMAT,
    ONE,
    UNINIT_VALUE,
    ZERO,
    AwkArray,
    AwkValue,
    ValueKind,
    compare_values,
    num_to_str,
)

PROGRAM_NAME = "pawk"
DEFAULT_MAX_CALL_DEPTH = 10000
# rough number of Python frames one AWK function call can use
PYTHON_FRAMES_PER_CALL = 60

COMPARISONS = {
    "<": lambda c: c < 0,
    "<=": lambda c: c <= 0,
    "==": lambda c: c == 0,
    "!=": lambda c: c != 0,
    ">": lambda c: c > 0,
    ">=": lambda c: c >= 0,
}


def arithmetic(op: str, x: float, y: float) -> float:
    if op == "+":
        return x + y
    if op == "-":
        return x - y
    if op == "*":
        return x * y
    if op == "/":
        if y == 0:
            raise AwkRuntimeError("division by zero attempted")
        return x / y
    if op == "%":
        if y == 0:
            raise AwkRuntimeError("division by zero attempted in `%'")
        return math.fmod(x, y)
    return builtins.awk_pow(x, y)


class MainInput:
    """Walks ARGV[1] .. ARGV[ARGC-1] handing out records to the main
    loop and to plain getline. Operands of the form var=value are
    assignments made when they are reached; with no file operands at
    all, standard input is read."""

    def __init__(self, interpreter):
        self.interpreter = interpreter
        self.index = 0
        self.reader = None
        self.file_handle = None
        self.seen_file = False
        self.finished = False

    def _open_next(self) -> bool:
        it = self.interpreter
        while True:
            self.index += 1
            if self.index >= int(it.get_global("ARGC").to_num()):
                if self.seen_file:
                    return False
                self.seen_file = True
                self._start(it.streams.stdin_reader(), "")
                return True
            argv = it.global_array("ARGV")
            key = str(self.index)
            if not argv.contains(key):
                continue
            operand = argv.get(key).to_str(it.convfmt())
            if operand == "":
                continue
            name, equals, _ = operand.partition("=")
            if equals and NAME_RE.fullmatch(name):
                it.assign_variable(operand)
                continue
            self.seen_file = True
            if operand in ("-", "/dev/stdin"):
                self._start(it.streams.stdin_reader(), operand)
                return True
            try:
                self.file_handle = open(operand, "r", encoding=ENCODING, errors=ERRORS, newline="\n")
            except OSError as err:
                it.warn(f'cannot open "{operand}" for reading ({err.strerror or err})')
                it.input_failed = True
                continue
            self._start(RecordReader(self.file_handle), operand)
            return True

    def _start(self, reader, filename: str):
        self.reader = reader
        it = self.interpreter
        it.globals["FILENAME"] = AwkValue.string(filename)
        it.globals["FNR"] = ZERO

    def next_record(self):
        """The next record of the main input, or None when it is used up"""
        it = self.interpreter
        while not self.finished:
            if self.reader is None and not self._open_next():
                self.finished = True
                break
            text = self.reader.read_record(it.get_global("RS").to_str(it.convfmt()))
            if text is not None:
                it.increment("NR")
                it.increment("FNR")
                return text
            self.close_current()
        return None

    def close_current(self):
        if self.file_handle is not None:
            self.file_handle.close()
            self.file_handle = None
        self.reader = None


class Interpreter:
    """This is the main class of the interpreter"""

    def __init__(self, program, stdin=None, stdout=None, stderr=None):
        self.program = program
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr
        self.streams = StreamManager(stdin, self.stdout, self.stderr)
        self.globals = {}
        self.frames = []
        self.record = Record()
        self.random = builtins.AwkRandom()
        self.range_active = [False] * len(program.rules)
        self.main_input = None
        self.phase = "BEGIN"
        self.exit_status = 0
        self.exit_status_set = False
        self.input_failed = False
        self._init_globals()
        self.evaluators = {
            Num: self.eval_num,
            Str: self.eval_str,
            Regex: self.eval_regex,
            Var: self.eval_var,
            LocalVar: self.eval_local,
            Field: self.eval_field,
            Index: self.eval_index,
            Unary: self.eval_unary,
            Binary: self.eval_binary,
            Concat: self.eval_concat,
            Compare: self.eval_compare,
            Match: self.eval_match,
            And: self.eval_and,
            Or: self.eval_or,
            Cond: self.eval_cond,
            In: self.eval_in,
            Assign: self.eval_assign,
            IncDec: self.eval_incdec,
            Call: self.eval_call,
            BuiltinCall: self.eval_builtin,
            Getline: self.eval_getline,
        }
        self.executors = {
            Block: self.exec_block,
            ExprStmt: self.exec_expr,
            Print: self.exec_print,
            Printf: self.exec_printf,
            If: self.exec_if,
            While: self.exec_while,
            DoWhile: self.exec_do,
            For: self.exec_for,
            ForIn: self.exec_for_in,
            Next: self.exec_next,
            NextFile: self.exec_nextfile,
            Break: self.exec_break,
            Continue: self.exec_continue,
            Exit: self.exec_exit,
            Return: self.exec_return,
            Delete: self.exec_delete,
        }

    def _init_globals(self):
        for name, text in (
            ("FS", " "),
            ("OFS", " "),
            ("ORS", "\n"),
            ("RS", "\n"),
            ("SUBSEP", "\034"),
            ("CONVFMT", DEFAULT_NUMBER_FORMAT),
            ("OFMT", DEFAULT_NUMBER_FORMAT),
            ("FILENAME", ""),
        ):
            self.globals[name] = AwkValue.string(text)
        self.globals["NR"] = ZERO
        self.globals["FNR"] = ZERO
        self.globals["RSTART"] = ZERO
        self.globals["RLENGTH"] = AwkValue.number(-1)
        environ = AwkArray()
        for name, text in os.environ.items():
            environ.set(name, AwkValue.from_input(text))
        self.globals["ENVIRON"] = environ
        self.globals["ARGV"] = AwkArray()
        self.globals["ARGC"] = ZERO
        #
        # pawk namespace
        #
        self.globals["pawk__max_call_depth"] = AwkValue.number(DEFAULT_MAX_CALL_DEPTH)
        self.globals["pawk__wait_for_pipe_close"] = ONE

    """ Diagnostics """

    def warn(self, message: str):
        print(f"{PROGRAM_NAME}: {message}", file=self.stderr)

    def report(self, message: str):
        """Print a fatal runtime error with the input position if there is one"""
        filename = self.get_global("FILENAME").to_str(self.convfmt())
        fnr = num_to_str(self.get_global("FNR").to_num())
        where = f"(FILENAME={filename or '-'} FNR={fnr}) " if self.phase == "main" else ""
        self.stdout.flush()
        print(f"{PROGRAM_NAME}: {where}fatal: {message}", file=self.stderr)

    """ Variables """

    def get_global(self, name: str) -> AwkValue:
        value = self.globals.get(name, UNINIT_VALUE)
        if isinstance(value, AwkArray):
            raise AwkRuntimeError(f"attempt to use array `{name}' in a scalar context")
        return value

    def global_array(self, name: str) -> AwkArray:
        value = self.globals.get(name)
        if isinstance(value, AwkArray):
            return value
        if name == "NF" or (value is not None and value.kind != ValueKind.UNINIT):
            raise AwkRuntimeError(f"attempt to use scalar `{name}' as an array")
        array = self.globals[name] = AwkArray()
        return array

    def local_array(self, node: LocalVar) -> AwkArray:
        slots = self.frames[-1].locals
        value = slots[node.slot]
        if isinstance(value, AwkArray):
            return value
        if isinstance(value, UntypedParam):
            array = slots[node.slot] = value.materialise()
            return array
        if value.kind != ValueKind.UNINIT:
            raise AwkRuntimeError(f"attempt to use scalar parameter `{node.name}' as an array")
        array = slots[node.slot] = AwkArray()
        return array

    def array_of(self, node) -> AwkArray:
        if isinstance(node, LocalVar):
            return self.local_array(node)
        return self.global_array(node.name)

    def increment(self, name: str):
        self.globals[name] = AwkValue.number(self.get_global(name).to_num() + 1)

    def convfmt(self) -> str:
        value = self.globals["CONVFMT"]
        return value.str if value.kind != ValueKind.NUMBER else DEFAULT_NUMBER_FORMAT

    def to_str(self, value: AwkValue) -> str:
        return value.to_str(self.convfmt())

    def output_str(self, value: AwkValue) -> str:
        """print formats numbers with OFMT rather than CONVFMT"""
        if value.kind == ValueKind.NUMBER:
            return num_to_str(value.num, self.to_str(self.get_global("OFMT")))
        return value.str

    def assign_variable(self, assignment: str):
        """name=value from -v or an operand. Escapes in value are
        processed and the result is a strnum if it looks like a number."""
        name, _, text = assignment.partition("=")
        if not NAME_RE.fullmatch(name):
            raise AwkRuntimeError(f"invalid variable assignment `{assignment}'")
        self.store(("global", name), AwkValue.from_input(process_escapes(text)))

    """ Records and fields """

    def set_record(self, text: str):
        rs = self.to_str(self.get_global("RS"))
        self.record.set_text(text, self.to_str(self.get_global("FS")), rs == "")

    def field_index(self, node) -> int:
        number = self.eval(node).to_num()
        if math.isnan(number) or math.isinf(number):
            raise AwkRuntimeError(f"attempt to access field {num_to_str(number)}")
        index = int(number)
        if index < 0:
            raise AwkRuntimeError(f"attempt to access field {index}")
        return index

    def get_field(self, index: int) -> AwkValue:
        text = self.record.get_field(index)
        if text is None:
            return UNINIT_VALUE
        return AwkValue.from_input(text)

    def set_field(self, index: int, value: AwkValue):
        text = self.to_str(value)
        if index == 0:
            self.set_record(text)
        else:
            self.record.set_field(index, text, self.to_str(self.get_global("OFS")))

    """ Lvalues: ("global", name), ("local", slot), ("elem", array, key) or ("field", index) """

    def ref(self, node) -> tuple:
        if isinstance(node, Var):
            return ("global", node.name)
        if isinstance(node, LocalVar):
            return ("local", node.slot, node.name)
        if isinstance(node, Field):
            return ("field", self.field_index(node.index))
        return ("elem", self.array_of(node.array), self.subscript(node.subscripts))

    def load(self, ref: tuple) -> AwkValue:
        where = ref[0]
        if where == "global":
            if ref[1] == "NF":
                return AwkValue.number(self.record.nf)
            return self.get_global(ref[1])
        if where == "local":
            value = self.frames[-1].locals[ref[1]]
            if isinstance(value, AwkArray):
                raise AwkRuntimeError(f"attempt to use array `{ref[2]}' in a scalar context")
            if isinstance(value, UntypedParam):
                return UNINIT_VALUE
            return value
        if where == "elem":
            return ref[1].get_or_create(ref[2])
        return self.get_field(ref[1])

    def store(self, ref: tuple, value: AwkValue):
        where = ref[0]
        if where == "global":
            name = ref[1]
            if name == "NF":
                nf = value.to_num()
                if math.isnan(nf) or nf < 0:
                    raise AwkRuntimeError(f"NF set to negative value {num_to_str(nf)}")
                self.record.set_nf(int(nf), self.to_str(self.get_global("OFS")))
                return
            if isinstance(self.globals.get(name), AwkArray):
                raise AwkRuntimeError(f"attempt to use array `{name}' in a scalar context")
            self.globals[name] = value
        elif where == "local":
            slots = self.frames[-1].locals
            if isinstance(slots[ref[1]], AwkArray):
                raise AwkRuntimeError(f"attempt to use array `{ref[2]}' in a scalar context")
            slots[ref[1]] = value
        elif where == "elem":
            ref[1].set(ref[2], value)
        else:
            self.set_field(ref[1], value)

    def subscript(self, subscripts: list) -> str:
        if len(subscripts) == 1:
            return self.to_str(self.eval(subscripts[0]))
        return self.to_str(self.get_global("SUBSEP")).join(
            [self.to_str(self.eval(node)) for node in subscripts]
        )

    def regex_of(self, node):
        """Regex literals were checked by the parser, anything else
        is a dynamic regular expression built from a string"""
        if isinstance(node, Regex):
            return compile_ere(node.pattern)
        return self.dynamic_regex(self.to_str(self.eval(node)))

    def dynamic_regex(self, text: str):
        try:
            return compile_ere(text)
        except re.error as err:
            raise AwkRuntimeError(f"invalid regular expression /{text}/: {err}") from err

    """ Expressions """

    def eval(self, node) -> AwkValue:
        return self.evaluators[node.__class__](node)

    def eval_num(self, node: Num):
        return AwkValue.number(node.value)

    def eval_str(self, node: Str):
        return AwkValue.string(node.value)

    def eval_regex(self, node: Regex):
        return ONE if compile_ere(node.pattern).search(self.record.text) else ZERO

    def eval_var(self, node: Var):
        if node.name == "NF":
            return AwkValue.number(self.record.nf)
        return self.get_global(node.name)

    def eval_local(self, node: LocalVar):
        return self.load(("local", node.slot, node.name))

    def eval_field(self, node: Field):
        return self.get_field(self.field_index(node.index))

    def eval_index(self, node: Index):
        return self.array_of(node.array).get_or_create(self.subscript(node.subscripts))

    def eval_unary(self, node: Unary):
        value = self.eval(node.operand)
        if node.op == "!":
            return ZERO if value.is_true() else ONE
        if node.op == "-":
            return AwkValue.number(-value.to_num())
        return AwkValue.number(value.to_num())

    def eval_binary(self, node: Binary):
        x = self.eval(node.left).to_num()
        y = self.eval(node.right).to_num()
        return AwkValue.number(arithmetic(node.op, x, y))

    def eval_concat(self, node: Concat):
        left = self.to_str(self.eval(node.left))
        return AwkValue.string(left + self.to_str(self.eval(node.right)))

    def eval_compare(self, node: Compare):
        left = self.eval(node.left)
        right = self.eval(node.right)
        return ONE if COMPARISONS[node.op](compare_values(left, right, self.convfmt())) else ZERO

    def eval_match(self, node: Match):
        text = self.to_str(self.eval(node.left))
        found = self.regex_of(node.right).search(text) is not None
        return ONE if found != node.negate else ZERO

    def eval_and(self, node: And):
        return ONE if self.eval(node.left).is_true() and self.eval(node.right).is_true() else ZERO

    def eval_or(self, node: Or):
        return ONE if self.eval(node.left).is_true() or self.eval(node.right).is_true() else ZERO

    def eval_cond(self, node: Cond):
        return self.eval(node.yes) if self.eval(node.test).is_true() else self.eval(node.no)

    def eval_in(self, node: In):
        key = self.subscript(node.subscripts)
        return ONE if self.array_of(node.array).contains(key) else ZERO

    def eval_assign(self, node: Assign):
        ref = self.ref(node.target)
        if node.op == "=":
            value = self.eval(node.value)
        else:
            # the right hand side may itself change the target
            operand = self.eval(node.value).to_num()
            value = AwkValue.number(arithmetic(node.op[:-1], self.load(ref).to_num(), operand))
        self.store(ref, value)
        return value

    def eval_incdec(self, node: IncDec):
        ref = self.ref(node.target)
        old = self.load(ref).to_num()
        new = old + 1 if node.op == "++" else old - 1
        self.store(ref, AwkValue.number(new))
        return AwkValue.number(new if node.prefix else old)

    """ User defined functions """

    def argument(self, node):
        """Arrays are passed by reference, scalars by value. An
        uninitialised variable may yet become an array in the callee."""
        if isinstance(node, Var) and node.name != "NF":
            value = self.globals.get(node.name, UNINIT_VALUE)
            if isinstance(value, AwkArray):
                return value
            if value.kind == ValueKind.UNINIT:
                return UntypedParam(self.globals, node.name)
            return value
        if isinstance(node, LocalVar):
            slots = self.frames[-1].locals
            value = slots[node.slot]
            if isinstance(value, AwkArray):
                return value
            if isinstance(value, UntypedParam) or value.kind == ValueKind.UNINIT:
                return UntypedParam(slots, node.slot)
            return value
        return self.eval(node)

    def eval_call(self, node: Call):
        function = self.program.functions.get(node.name)
        if function is None:
            raise AwkRuntimeError(f"function `{node.name}' not defined")
        if len(node.args) > len(function.params):
            raise AwkRuntimeError(
                f"function `{node.name}' called with {len(node.args)} args, accepts only {len(function.params)}"
            )
        if len(self.frames) >= self.max_call_depth():
            raise AwkRuntimeError(f"function `{node.name}': recursion too deep")
        slots = [self.argument(arg) for arg in node.args]
        slots.extend([UNINIT_VALUE] * (len(function.params) - len(slots)))
        self.frames.append(Frame(function, slots))
        try:
            self.execute(function.body)
        except AwkReturn as returned:
            return returned.value
        finally:
            self.frames.pop()
        return UNINIT_VALUE

    def max_call_depth(self) -> int:
        depth = self.get_global("pawk__max_call_depth").to_num()
        return int(depth) if math.isfinite(depth) and depth > 0 else DEFAULT_MAX_CALL_DEPTH

    """ getline """

    def eval_getline(self, node: Getline):
        if node.kind == "simple":
            if self.main_input is None:
                self.main_input = MainInput(self)
            text = self.main_input.next_record()
        else:
            source = self.to_str(self.eval(node.source))
            wrapper = self.streams.input(source, node.kind)
            if wrapper is None:
                return AwkValue.number(-1)
            text = wrapper.reader.read_record(self.to_str(self.get_global("RS")))
            if text is not None and node.kind == "command":
                self.increment("NR")
        if text is None:
            return ZERO
        if node.target is None:
            self.set_record(text)
        else:
            self.store(self.ref(node.target), AwkValue.from_input(text))
        return ONE

    """ Built-in functions """

    def eval_builtin(self, node: BuiltinCall):
        return getattr(self, f"builtin_{node.name}")(node.args)

    def _num_arg(self, node) -> float:
        return self.eval(node).to_num()

    def _str_arg(self, node) -> str:
        return self.to_str(self.eval(node))

    def builtin_length(self, args):
        if not args:
            return AwkValue.number(len(self.record.text))
        node = args[0]
        if isinstance(node, Var) and node.name != "NF":
            value = self.globals.get(node.name, UNINIT_VALUE)
            if isinstance(value, AwkArray):
                return AwkValue.number(len(value))
        elif isinstance(node, LocalVar):
            value = self.frames[-1].locals[node.slot]
            if isinstance(value, AwkArray):
                return AwkValue.number(len(value))
            if isinstance(value, UntypedParam):
                return ZERO
        return AwkValue.number(len(self._str_arg(node)))

    def builtin_substr(self, args):
        text = self._str_arg(args[0])
        start = self._num_arg(args[1])
        length = self._num_arg(args[2]) if len(args) == 3 else None
        return AwkValue.string(builtins.substr(text, start, length))

    def builtin_index(self, args):
        return AwkValue.number(builtins.index(self._str_arg(args[0]), self._str_arg(args[1])))

    def builtin_split(self, args):
        text = self._str_arg(args[0])
        if len(args) == 3 and isinstance(args[2], Regex):
            pieces = builtins.split(text, None, compile_ere(args[2].pattern))
        else:
            separator = self._str_arg(args[2]) if len(args) == 3 else self.to_str(self.get_global("FS"))
            if len(separator) > 1:
                self.dynamic_regex(separator)
            pieces = builtins.split(text, separator)
        array = self.array_of(args[1])
        array.clear()
        for number, piece in enumerate(pieces, 1):
            array.set(str(number), AwkValue.from_input(piece))
        return AwkValue.number(len(pieces))

    def _substitute(self, args, every: bool):
        regex = self.regex_of(args[0])
        replacement = self._str_arg(args[1])
        target = args[2] if len(args) == 3 else Field(Num(0.0))
        ref = self.ref(target)
        text, count = builtins.substitute(regex, replacement, self.to_str(self.load(ref)), every)
        if count:
            self.store(ref, AwkValue.string(text))
        return AwkValue.number(count)

    def builtin_sub(self, args):
        return self._substitute(args, False)

    def builtin_gsub(self, args):
        return self._substitute(args, True)

    def builtin_match(self, args):
        text = self._str_arg(args[0])
        rstart, rlength = builtins.match(self.regex_of(args[1]), text)
        self.globals["RSTART"] = AwkValue.number(rstart)
        self.globals["RLENGTH"] = AwkValue.number(rlength)
        return AwkValue.number(rstart)

    def builtin_sprintf(self, args):
        fmt = self._str_arg(args[0])
        values = [self.eval(node) for node in args[1:]]
        return AwkValue.string(builtins.format_values(fmt, values, self.convfmt()))

    def builtin_sin(self, args):
        return AwkValue.number(builtins.awk_sin(self._num_arg(args[0])))

    def builtin_cos(self, args):
        return AwkValue.number(builtins.awk_cos(self._num_arg(args[0])))

    def builtin_atan2(self, args):
        return AwkValue.number(math.atan2(self._num_arg(args[0]), self._num_arg(args[1])))

    def builtin_exp(self, args):
        return AwkValue.number(builtins.awk_exp(self._num_arg(args[0])))

    def builtin_log(self, args):
        return AwkValue.number(builtins.awk_log(self._num_arg(args[0])))

    def builtin_sqrt(self, args):
        return AwkValue.number(builtins.awk_sqrt(self._num_arg(args[0])))

    def builtin_int(self, args):
        return AwkValue.number(builtins.awk_int(self._num_arg(args[0])))

    def builtin_rand(self, args):
        return AwkValue.number(self.random.rand())

    def builtin_srand(self, args):
        seed = self._num_arg(args[0]) if args else None
        return AwkValue.number(self.random.srand(seed))

    def builtin_tolower(self, args):
        return AwkValue.string(self._str_arg(args[0]).lower())

    def builtin_toupper(self, args):
        return AwkValue.string(self._str_arg(args[0]).upper())

    def builtin_system(self, args):
        return AwkValue.number(self.streams.system(self._str_arg(args[0])))

    def builtin_close(self, args):
        return AwkValue.number(self.streams.close(self._str_arg(args[0]), self.wait_for_pipe_close()))

    def builtin_fflush(self, args):
        name = self._str_arg(args[0]) if args else ""
        if name == "":
            self.streams.flush_all()
            return ZERO
        return AwkValue.number(self.streams.flush(name))

    def wait_for_pipe_close(self) -> bool:
        return self.get_global("pawk__wait_for_pipe_close").is_true()

    """ Statements """

    def execute(self, node):
        self.executors[node.__class__](node)

    def exec_block(self, node: Block):
        for statement in node.statements:
            self.execute(statement)

    def exec_expr(self, node: ExprStmt):
        self.eval(node.expr)

    def _write(self, redirect, text: str):
        if redirect is None:
            self.stdout.write(text)
        else:
            target = self._str_arg(redirect.target)
            self.streams.output(target, redirect.mode).write(text)

    def exec_print(self, node: Print):
        if node.args:
            ofs = self.to_str(self.get_global("OFS"))
            text = ofs.join([self.output_str(self.eval(arg)) for arg in node.args])
        else:
            text = self.record.text
        self._write(node.redirect, text + self.to_str(self.get_global("ORS")))

    def exec_printf(self, node: Printf):
        fmt = self._str_arg(node.args[0])
        values = [self.eval(arg) for arg in node.args[1:]]
        self._write(node.redirect, builtins.format_values(fmt, values, self.convfmt()))

    def exec_if(self, node: If):
        if self.eval(node.cond).is_true():
            self.execute(node.then)
        elif node.otherwise is not None:
            self.execute(node.otherwise)

    def _loop_body(self, body) -> bool:
        """Run one iteration, False when the loop should stop"""
        try:
            self.execute(body)
        except AwkBreak:
            return False
        except AwkContinue:
            pass
        return True

    def exec_while(self, node: While):
        while self.eval(node.cond).is_true():
            if not self._loop_body(node.body):
                break

    def exec_do(self, node: DoWhile):
        while True:
            if not self._loop_body(node.body):
                break
            if not self.eval(node.cond).is_true():
                break

    def exec_for(self, node: For):
        if node.init is not None:
            self.eval(node.init)
        while node.cond is None or self.eval(node.cond).is_true():
            if not self._loop_body(node.body):
                break
            if node.step is not None:
                self.eval(node.step)

    def exec_for_in(self, node: ForIn):
        array = self.array_of(node.array)
        for key in array.keys():
            # elements deleted by the loop body are skipped
            if not array.contains(key):
                continue
            self.store(self.ref(node.var), AwkValue.from_input(key))
            if not self._loop_body(node.body):
                break

    def exec_next(self, node):
        raise AwkNext()

    def exec_nextfile(self, node):
        raise AwkNextFile()

    def exec_break(self, node):
        raise AwkBreak()

    def exec_continue(self, node):
        raise AwkContinue()

    def exec_exit(self, node: Exit):
        status = None
        if node.expr is not None:
            number = self.eval(node.expr).to_num()
            status = int(number) % 256 if math.isfinite(number) else 2
        raise AwkExit(status)

    def exec_return(self, node: Return):
        raise AwkReturn(UNINIT_VALUE if node.expr is None else self.eval(node.expr))

    def exec_delete(self, node: Delete):
        array = self.array_of(node.array)
        if node.subscripts is None:
            array.clear()
        else:
            array.delete(self.subscript(node.subscripts))

    """ Patterns and the run itself """

    def rule_matches(self, number: int, rule) -> bool:
        pattern = rule.pattern
        if pattern is None:
            return True
        if not isinstance(pattern, RangePattern):
            return self.eval(pattern.expr).is_true()
        if self.range_active[number]:
            if self.eval(pattern.end).is_true():
                self.range_active[number] = False
            return True
        if self.eval(pattern.start).is_true():
            # a record matching both ends is a range of one record
            self.range_active[number] = not self.eval(pattern.end).is_true()
            return True
        return False

    def run_main_loop(self):
        rules = self.program.rules
        while True:
            text = self.main_input.next_record()
            if text is None:
                break
            self.set_record(text)
            try:
                for number, rule in enumerate(rules):
                    if self.rule_matches(number, rule):
                        self.execute(rule.action)
            except AwkNext:
                pass
            except AwkNextFile:
                self.main_input.close_current()

    def run_blocks(self, blocks: list):
        try:
            for block in blocks:
                self.execute(block)
        except (AwkNext, AwkNextFile):
            raise AwkRuntimeError(f"`next' used in {self.phase} action")

    def set_exit(self, exit_signal: AwkExit):
        if exit_signal.status is not None:
            self.exit_status = exit_signal.status
            self.exit_status_set = True

    def run(self, operands=(), assignments=()) -> int:
        """Run the program over the operands, returning the exit status.
        Raises AwkRuntimeError for fatal errors."""
        argv = self.globals["ARGV"]
        argv.set("0", AwkValue.string(PROGRAM_NAME))
        for number, operand in enumerate(operands, 1):
            argv.set(str(number), AwkValue.from_input(operand))
        self.globals["ARGC"] = AwkValue.number(len(operands) + 1)
        for assignment in assignments:
            self.assign_variable(assignment)

        return call_with_deep_stack(self.run_phases, self.max_call_depth() * PYTHON_FRAMES_PER_CALL)

    def run_phases(self) -> int:
        """BEGIN, the main loop and END"""
        try:
            try:
                self.run_blocks(self.program.begin_blocks)
                if self.program.reads_input():
                    self.phase = "main"
                    if self.main_input is None:
                        self.main_input = MainInput(self)
                    self.run_main_loop()
            except AwkExit as exit_signal:
                self.set_exit(exit_signal)
            self.phase = "END"
            try:
                self.run_blocks(self.program.end_blocks)
            except AwkExit as exit_signal:
                self.set_exit(exit_signal)
        except RecursionError as err:
            raise AwkRuntimeError("function call nesting too deep: recursion too deep") from err
        except re.error as err:
            raise AwkRuntimeError(f"invalid regular expression: {err}") from err
        finally:
            if self.main_input is not None:
                self.main_input.close_current()
            self.streams.close_all(self.wait_for_pipe_close())
        if self.input_failed and not self.exit_status_set:
            return 2
        return self.exit_status
