#!/usr/bin/python3
"""
    Built-in function library for the pawk AWK interpreter.

    Everything here works on plain Python strings and floats; the
    interpreter turns AWK values into arguments and stores results.
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
import random
import re
import time
from pawk_common import AwkSprintfConversion
from pawk_records import regex_split, split_fields
from pawk_values import UNINIT_VALUE, ValueKind, num_to_str

# name: (fewest, most) arguments, None for no upper limit
BUILTIN_ARITY = {
    "length": (0, 1),
    "substr": (2, 3),
    "index": (2, 2),
    "split": (2, 3),
    "sub": (2, 3),
    "gsub": (2, 3),
    "match": (2, 2),
    "sprintf": (1, None),
    "sin": (1, 1),
    "cos": (1, 1),
    "atan2": (2, 2),
    "exp": (1, 1),
    "log": (1, 1),
    "sqrt": (1, 1),
    "int": (1, 1),
    "rand": (0, 0),
    "srand": (0, 1),
    "tolower": (1, 1),
    "toupper": (1, 1),
    "system": (1, 1),
    "close": (1, 1),
    "fflush": (0, 1),
}

FORMAT_SPEC_RE = re.compile(r"%([-+ #0]*)(\*|\d+)?(?:\.(\*|\d*))?([a-zA-Z%])?")
UNSIGNED_WRAP = 2 ** 64


def _round_half_up(number: float) -> float:
    if math.isinf(number):
        return number
    return float(math.floor(number + 0.5))


def substr(text: str, start: float, length: float = None) -> str:
    """Characters at positions p with start <= p < start + length,
    positions counted from 1 after rounding both arguments"""
    if math.isnan(start) or (length is not None and math.isnan(length)):
        return ""
    first = _round_half_up(start)
    end = math.inf if length is None else first + _round_half_up(length)
    low = max(first, 1.0)
    high = min(end, float(len(text) + 1))
    if high <= low:
        return ""
    return text[int(low) - 1:int(high) - 1]


def index(text: str, target: str) -> int:
    if target == "":
        return 0
    return text.find(target) + 1


def parse_replacement(replacement: str) -> list:
    """Split a sub/gsub replacement into literal strings and None,
    where None stands for the matched text (&)"""
    parts = []
    literal = []
    i = 0
    while i < len(replacement):
        ch = replacement[i]
        if ch == "\\" and replacement[i + 1:i + 2] in ("&", "\\"):
            literal.append(replacement[i + 1])
            i += 2
            continue
        if ch == "&":
            parts.append("".join(literal))
            parts.append(None)
            literal = []
        else:
            literal.append(ch)
        i += 1
    parts.append("".join(literal))
    return parts


def _expand(parts: list, matched: str) -> str:
    return "".join(matched if part is None else part for part in parts)


def substitute(regex, replacement: str, text: str, every: bool):
    """sub() when every is False, gsub() when True.
    Returns the new text and the number of replacements.

    An empty match straight after a previous match is not replaced,
    so gsub(/x*/, "-", "abc") gives "-a-b-c-".
    """
    parts = parse_replacement(replacement)
    if not every:
        match = regex.search(text)
        if match is None:
            return text, 0
        return text[:match.start()] + _expand(parts, match.group()) + text[match.end():], 1
    out = []
    count = 0
    pos = 0
    previous_end = -1
    while pos <= len(text):
        match = regex.search(text, pos)
        if match is None:
            break
        start, end = match.span()
        if start == end and start == previous_end:
            if start >= len(text):
                break
            out.append(text[pos:start + 1])
            pos = start + 1
            continue
        out.append(text[pos:start])
        out.append(_expand(parts, match.group()))
        count += 1
        previous_end = end
        if start == end:
            if start < len(text):
                out.append(text[start])
            pos = start + 1
        else:
            pos = end
    out.append(text[pos:])
    return "".join(out), count


def match(regex, text: str):
    """(RSTART, RLENGTH) for the leftmost longest-first match, (0, -1) for none"""
    found = regex.search(text)
    if found is None:
        return 0, -1
    return found.start() + 1, found.end() - found.start()


def split(text: str, separator, regex=None) -> list:
    """The pieces split() stores, separator is an FS style string
    unless a compiled regex is given"""
    if regex is None:
        return split_fields(text, separator)
    if text == "":
        return []
    return regex_split(text, regex)


""" Arithmetic. AWK never traps on a domain error, it gives nan or inf """


def awk_log(number: float) -> float:
    if math.isnan(number) or number < 0:
        return math.nan
    if number == 0:
        return -math.inf
    return math.log(number)


def awk_sqrt(number: float) -> float:
    if math.isnan(number) or number < 0:
        return math.nan
    return math.sqrt(number)


def awk_exp(number: float) -> float:
    try:
        return math.exp(number)
    except OverflowError:
        return math.inf


def awk_sin(number: float) -> float:
    try:
        return math.sin(number)
    except ValueError:
        return math.nan


def awk_cos(number: float) -> float:
    try:
        return math.cos(number)
    except ValueError:
        return math.nan


def awk_pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and exponent.is_integer() and exponent % 2:
            return -math.inf
        return math.inf
    except ValueError:
        if base == 0:
            return math.inf
        return math.nan


def awk_int(number: float) -> float:
    """Truncate toward zero"""
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.trunc(number))


class AwkRandom:
    """rand() and srand(). The first seed is 0, so an
    unseeded program sees the same sequence every run."""

    def __init__(self):
        self.seed = 0.0
        self.generator = random.Random(0)

    def rand(self) -> float:
        return self.generator.random()

    def srand(self, seed: float = None) -> float:
        previous = self.seed
        self.seed = float(int(time.time())) if seed is None else seed
        self.generator.seed(int(self.seed) if self.seed.is_integer() else self.seed)
        return previous


""" sprintf """


def _format_unsigned(conversion, flags: str, width: str, precision, number: float) -> str:
    value = int(number)
    if value < 0:
        value += UNSIGNED_WRAP
    if conversion.python_char == "o" and "#" in flags:
        # C's alternate octal form is a single leading 0, python's is 0o
        digits = ("%" + ("." + precision if precision is not None else "") + "o") % value
        if not digits.startswith("0"):
            digits = "0" + digits
        return ("%" + flags.replace("#", "").replace("0", "") + (width or "") + "s") % digits
    spec = "%" + flags + (width or "") + ("." + precision if precision is not None else "")
    return (spec + conversion.python_char) % value


def format_one(conversion, flags: str, width: str, precision, value, convfmt: str) -> str:
    """Format a single argument for one %-conversion"""
    precision_text = "." + precision if precision is not None else ""
    spec = "%" + flags + (width or "")
    if conversion.kind == "string":
        return (spec + precision_text + "s") % value.to_str(convfmt)
    if conversion.kind == "char":
        if value.kind in (ValueKind.NUMBER, ValueKind.STRNUM):
            code = int(awk_int(value.to_num())) if math.isfinite(value.to_num()) else -1
            text = chr(code) if 0 <= code < 0x110000 else ""
        else:
            text = value.to_str(convfmt)[:1]
        return ("%" + flags.replace("0", "") + (width or "") + "s") % text
    number = value.to_num()
    if conversion.kind == "float":
        return (spec + precision_text + conversion.python_char) % number
    if not math.isfinite(number):
        # %d of inf or nan prints the word, as a string
        return ("%" + flags.replace("0", "") + (width or "") + "s") % num_to_str(number)
    if conversion.kind == "unsigned":
        return _format_unsigned(conversion, flags, width, precision, number)
    return (spec + precision_text + "d") % int(number)


def format_values(fmt: str, args: list, convfmt: str) -> str:
    """sprintf(fmt, args...). Missing arguments behave as uninitialised
    values, unknown conversions are copied to the output unchanged."""
    out = []
    pos = 0
    next_arg = 0
    while True:
        start = fmt.find("%", pos)
        if start < 0:
            out.append(fmt[pos:])
            break
        out.append(fmt[pos:start])
        spec = FORMAT_SPEC_RE.match(fmt, start)
        pos = spec.end()
        flags, width, precision, char = spec.groups()
        if char == "%":
            out.append("%")
            continue
        conversion = AwkSprintfConversion.all_conversions.get(char)
        if conversion is None:
            out.append(spec.group())
            continue
        if width == "*":
            star = _star(_argument(args, next_arg))
            next_arg += 1
            if star < 0:
                flags += "-"
            width = str(abs(star))
        if precision == "*":
            star = _star(_argument(args, next_arg))
            next_arg += 1
            precision = str(star) if star >= 0 else None
        elif precision == "":
            precision = "0"
        value = _argument(args, next_arg)
        next_arg += 1
        out.append(format_one(conversion, flags, width, precision, value, convfmt))
    return "".join(out)


def _argument(args: list, position: int):
    return args[position] if position < len(args) else UNINIT_VALUE


def _star(value) -> int:
    number = value.to_num()
    return int(number) if math.isfinite(number) else 0
