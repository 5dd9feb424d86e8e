#!/usr/bin/python3
"""
    Records and fields for the pawk AWK interpreter.

    Record keeps $0 and splits it into fields only when a field
    or NF is first asked for. RecordReader cuts a text stream
    into records using whatever RS is when each record is read.
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

import re
from pawk_regex import compile_ere

BLANKS_RE = re.compile(r"[ \t\n]+")
BLANK_LINES_RE = re.compile(r"\n\n+")


def regex_split(text: str, regex) -> list:
    """Split on every non-empty match, capture groups are ignored"""
    fields = []
    start = 0
    for match in regex.finditer(text):
        if match.end() == match.start():
            continue
        fields.append(text[start:match.start()])
        start = match.end()
    fields.append(text[start:])
    return fields


def _ere_literal(ch: str) -> str:
    return ch if ch.isalnum() else "\\" + ch


def split_fields(text: str, fs: str, paragraph: bool = False) -> list:
    """Split text the way AWK splits records into fields.

    " " splits on runs of blanks, tabs and newlines ignoring leading
    and trailing ones; any other single character is a literal
    separator; "" gives one field per character; anything longer is
    a regular expression. In paragraph mode a newline always
    separates fields as well.
    """
    if text == "":
        return []
    if fs == " ":
        stripped = text.strip(" \t\n")
        return BLANKS_RE.split(stripped) if stripped else []
    if fs == "":
        if paragraph:
            return [ch for ch in text if ch != "\n"]
        return list(text)
    if paragraph:
        separator = _ere_literal(fs) if len(fs) == 1 else fs
        return regex_split(text, compile_ere(f"({separator})|\n"))
    if len(fs) == 1:
        return text.split(fs)
    return regex_split(text, compile_ere(fs))


class Record:
    """$0 and its fields. Fields are held as strings."""

    def __init__(self):
        self.text = ""
        self.fields = []
        self.fs = " "
        self.paragraph = False

    def set_text(self, text: str, fs: str = " ", paragraph: bool = False):
        """Assign $0, fields are split later using the FS given now"""
        self.text = text
        self.fields = None
        self.fs = fs
        self.paragraph = paragraph

    def split(self) -> list:
        if self.fields is None:
            self.fields = split_fields(self.text, self.fs, self.paragraph)
        return self.fields

    @property
    def nf(self) -> int:
        return len(self.split())

    def get_field(self, index: int):
        """The text of $index, or None beyond NF"""
        if index == 0:
            return self.text
        fields = self.split()
        if index <= len(fields):
            return fields[index - 1]
        return None

    def set_field(self, index: int, value: str, ofs: str):
        """Assign $index (index >= 1) and rebuild $0 with OFS"""
        fields = self.split()
        if index > len(fields):
            fields.extend([""] * (index - len(fields)))
        fields[index - 1] = value
        self.text = ofs.join(fields)

    def set_nf(self, nf: int, ofs: str):
        fields = self.split()
        if nf < len(fields):
            del fields[nf:]
        else:
            fields.extend([""] * (nf - len(fields)))
        self.text = ofs.join(fields)


class RecordReader:
    """Reads records from a text stream.

    RS is passed to every read_record() call, so a program that
    changes RS part way through a file sees the new separator
    from the next record on.
    """

    def __init__(self, stream):
        self.stream = stream
        self.buffer = ""
        self.eof = False

    def _fill(self) -> bool:
        if self.eof:
            return False
        chunk = self.stream.readline()
        if chunk == "":
            self.eof = True
            return False
        self.buffer += chunk
        return True

    def _take(self, start: int, end: int) -> str:
        record = self.buffer[:start]
        self.buffer = self.buffer[end:]
        return record

    def _rest(self):
        if self.buffer == "":
            return None
        return self._take(len(self.buffer), len(self.buffer))

    def read_record(self, rs: str = "\n"):
        """The next record without its terminator, or None at end of input"""
        if rs == "":
            return self._read_paragraph()
        if len(rs) == 1:
            return self._read_until(rs)
        return self._read_regex(compile_ere(rs))

    def _read_until(self, separator: str):
        searched = 0
        while True:
            found = self.buffer.find(separator, searched)
            if found >= 0:
                return self._take(found, found + 1)
            searched = len(self.buffer)
            if not self._fill():
                return self._rest()

    def _first_match(self, regex):
        for match in regex.finditer(self.buffer):
            if match.end() > match.start():
                return match
        return None

    def _read_regex(self, regex):
        while True:
            match = self._first_match(regex)
            # a match touching the end of the buffer might grow with more input
            if match and (match.end() < len(self.buffer) or self.eof):
                return self._take(match.start(), match.end())
            if not self._fill():
                match = self._first_match(regex)
                if match:
                    return self._take(match.start(), match.end())
                return self._rest()

    def _read_paragraph(self):
        while True:
            self.buffer = self.buffer.lstrip("\n")
            if self.buffer or not self._fill():
                break
        while True:
            match = BLANK_LINES_RE.search(self.buffer)
            if match and match.end() < len(self.buffer):
                return self._take(match.start(), match.end())
            if not self._fill():
                self.buffer = self.buffer.rstrip("\n")
                return self._rest()
