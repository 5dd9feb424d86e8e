#!/usr/bin/python3
"""
    Values for the pawk AWK interpreter.

    Every AWK value is one of a small closed set of kinds:
    uninitialised, number, string, strnum (a string from input
    that looks like a number) or array. Scalars are immutable
    AwkValue objects, so a value can be shared between variables,
    fields and array elements without copying.
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

from enum import IntEnum
from functools import lru_cache
import math
import re

DEFAULT_NUMBER_FORMAT = "%.6g"

_NUMBER_TEXT = r"[ \t\n\r\f\v]*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
NUMERIC_PREFIX_RE = re.compile(_NUMBER_TEXT)
LOOKS_NUMERIC_RE = re.compile(_NUMBER_TEXT + r"[ \t\n\r\f\v]*\Z")


class ValueKind(IntEnum):
    UNINIT = 0
    NUMBER = 1
    STRING = 2
    STRNUM = 3
    ARRAY = 4


# kinds that take part in a numeric comparison
NUMERIC_KINDS = (ValueKind.NUMBER, ValueKind.STRNUM, ValueKind.UNINIT)


@lru_cache(maxsize=4096)
def str_to_num(text: str) -> float:
    """The longest leading numeric prefix of text, or 0"""
    match = NUMERIC_PREFIX_RE.match(text)
    return float(match.group()) if match else 0.0


def looks_numeric(text: str) -> bool:
    return LOOKS_NUMERIC_RE.match(text) is not None


def num_to_str(number: float, fmt: str = DEFAULT_NUMBER_FORMAT) -> str:
    """Integral values print without a decimal point,
    everything else goes through fmt (CONVFMT or OFMT)"""
    if math.isnan(number):
        return "nan"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if number.is_integer():
        return str(int(number))
    try:
        return fmt % number
    except (TypeError, ValueError):
        return DEFAULT_NUMBER_FORMAT % number


class AwkValue:
    """A scalar AWK value. Treat instances as immutable."""

    __slots__ = ("kind", "num", "str")

    def __init__(self, kind: ValueKind, num: float = 0.0, string: str = ""):
        self.kind = kind
        self.num = num
        self.str = string

    @classmethod
    def number(cls, num) -> "AwkValue":
        return cls(ValueKind.NUMBER, float(num))

    @classmethod
    def string(cls, text: str) -> "AwkValue":
        return cls(ValueKind.STRING, 0.0, text)

    @classmethod
    def from_input(cls, text: str) -> "AwkValue":
        """Text read from outside the program: fields, getline,
        split() elements, ARGV, ENVIRON and -v assignments"""
        if looks_numeric(text):
            return cls(ValueKind.STRNUM, str_to_num(text), text)
        return cls(ValueKind.STRING, 0.0, text)

    def to_num(self) -> float:
        if self.kind == ValueKind.STRING:
            return str_to_num(self.str)
        return self.num

    def to_str(self, convfmt: str = DEFAULT_NUMBER_FORMAT) -> str:
        if self.kind == ValueKind.NUMBER:
            return num_to_str(self.num, convfmt)
        return self.str

    def is_true(self) -> bool:
        if self.kind == ValueKind.STRING:
            return self.str != ""
        return self.num != 0.0

    def __repr__(self):
        if self.kind == ValueKind.NUMBER:
            return f"AwkValue(NUMBER, {self.num!r})"
        if self.kind == ValueKind.UNINIT:
            return "AwkValue(UNINIT)"
        return f"AwkValue({self.kind.name}, {self.str!r})"

    def __eq__(self, other):
        if not isinstance(other, AwkValue):
            return NotImplemented
        return self.kind == other.kind and self.num == other.num and self.str == other.str

    __hash__ = None


UNINIT_VALUE = AwkValue(ValueKind.UNINIT)
EMPTY_STRING = AwkValue.string("")
ZERO = AwkValue.number(0)
ONE = AwkValue.number(1)


def compare_values(left: AwkValue, right: AwkValue, convfmt: str = DEFAULT_NUMBER_FORMAT) -> int:
    """-1, 0 or 1. Numeric when both sides are numbers, strnums or
    uninitialised, a string comparison otherwise."""
    if left.kind in NUMERIC_KINDS and right.kind in NUMERIC_KINDS:
        x, y = left.num, right.num
    else:
        x, y = left.to_str(convfmt), right.to_str(convfmt)
    return (x > y) - (x < y)


class AwkArray:
    """An associative array keyed by strings.

    get_or_create() is the AWK a[k] reference that brings an element
    into existence; contains() is `k in a` and never does.
    Iteration order is insertion order."""

    __slots__ = ("items",)
    kind = ValueKind.ARRAY

    def __init__(self):
        self.items = {}

    def get_or_create(self, key: str) -> AwkValue:
        value = self.items.get(key)
        if value is None:
            value = self.items[key] = UNINIT_VALUE
        return value

    def get(self, key: str) -> AwkValue:
        return self.items.get(key, UNINIT_VALUE)

    def contains(self, key: str) -> bool:
        return key in self.items

    def set(self, key: str, value: AwkValue):
        self.items[key] = value

    def delete(self, key: str):
        self.items.pop(key, None)

    def clear(self):
        self.items.clear()

    def keys(self) -> list:
        """A snapshot, safe against changes made while iterating"""
        return list(self.items)

    def __len__(self):
        return len(self.items)

    def __repr__(self):
        return f"AwkArray({self.items!r})"
