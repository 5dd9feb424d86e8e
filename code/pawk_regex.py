#!/usr/bin/python3
"""
    Regular expressions for the pawk AWK interpreter.

    AWK uses POSIX extended regular expressions, Python's re
    module is close but not identical. translate_ere() bridges
    the gap and compile_ere() caches the result, so field and
    record splitting, patterns, ~ and the sub/gsub/match/split
    built-ins all share one set of compiled expressions.
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
from functools import lru_cache
import re

POSIX_CLASSES = {
    "alpha": "a-zA-Z",
    "digit": "0-9",
    "alnum": "a-zA-Z0-9",
    "upper": "A-Z",
    "lower": "a-z",
    "space": " \\t\\n\\r\\f\\v",
    "blank": " \\t",
    "punct": re.escape("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~"),
    "print": " -~",
    "graph": "!-~",
    "cntrl": "\\x00-\\x1f\\x7f",
    "xdigit": "0-9A-Fa-f",
    "word": "a-zA-Z0-9_",
}

# escapes Python understands the same way
KEPT_ESCAPES = set("afnrtvsSwWdDB")
# GNU word boundary operators
WORD_BOUNDARIES = set("y<>")


def translate_ere(pattern: str) -> str:
    """Rewrite a POSIX ERE into Python re syntax"""
    out = []
    i = 0
    n = len(pattern)
    # True where a following * + or ? would have nothing to repeat
    at_start = True
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 >= n:
                out.append("\\\\")
                i += 1
                continue
            nxt = pattern[i + 1]
            if nxt in KEPT_ESCAPES:
                out.append("\\" + nxt)
            elif nxt in WORD_BOUNDARIES:
                out.append("\\b")
            elif nxt == "b":
                out.append("\\x08")
            else:
                out.append(re.escape(nxt))
            i += 2
            at_start = False
        elif ch == "[":
            end, text = _translate_bracket(pattern, i)
            out.append(text)
            i = end
            at_start = False
        elif ch == "$":
            out.append(r"\Z")
            i += 1
        elif ch in "*+?":
            out.append("\\" + ch if at_start else ch)
            i += 1
        elif ch in "(|^":
            out.append(ch)
            i += 1
            at_start = True
        elif ch == "{" and at_start:
            out.append("\\{")
            i += 1
        else:
            out.append(ch)
            i += 1
            at_start = False
    return "".join(out)


def _translate_bracket(pattern: str, start: int):
    """Translate [...] starting at pattern[start].
    Returns the index after the closing ] and the Python text."""
    n = len(pattern)
    i = start + 1
    out = ["["]
    if i < n and pattern[i] == "^":
        out.append("^")
        i += 1
    if i < n and pattern[i] == "]":
        out.append("\\]")
        i += 1
    while i < n:
        ch = pattern[i]
        if ch == "]":
            out.append("]")
            return i + 1, "".join(out)
        if ch == "[" and pattern[i + 1:i + 2] == ":":
            end = pattern.find(":]", i + 2)
            if end > 0:
                name = pattern[i + 2:end]
                if name not in POSIX_CLASSES:
                    raise re.error(f"invalid character class [:{name}:]")
                out.append(POSIX_CLASSES[name])
                i = end + 2
                continue
        if ch == "\\" and i + 1 < n:
            nxt = pattern[i + 1]
            out.append("\\" + nxt if nxt in KEPT_ESCAPES or not nxt.isalnum() else nxt)
            i += 2
            continue
        if ch == "[":
            out.append("\\[")
        else:
            out.append(ch)
        i += 1
    raise re.error("unterminated [] in regular expression")


@lru_cache(maxsize=512)
def compile_ere(pattern: str):
    """Compile (and cache) an AWK regular expression.
    Raises re.error when the pattern is invalid."""
    return re.compile(translate_ere(pattern), re.DOTALL)
