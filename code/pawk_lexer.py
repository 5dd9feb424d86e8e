#!/usr/bin/python3
"""
    Lexer for the pawk AWK interpreter.

    Turns program text into a list of Token objects. The only
    context the lexer needs is the previous token: it decides
    whether a '/' starts a regular expression or is a division.
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
from enum import IntEnum


class CompileError(SyntaxError):
    """Lex or parse failure. Execution never starts."""

    def __init__(self, msg: str, line: int = 0, column: int = 0, filename: str = None):
        super().__init__(msg)
        self.msg = msg
        self.lineno = line
        self.offset = column
        self.filename = filename

    def __str__(self):
        where = f"{self.filename}:" if self.filename else ""
        return f"{where}{self.lineno}:{self.offset}: {self.msg}"


class LexError(CompileError):
    pass


class TokenType(IntEnum):
    UNKNOWN = 0
    NEWLINE = 1         # \n
    SEMICOLON = 2       # ;
    LEFT_BRACE = 3      # {
    RIGHT_BRACE = 4     # }
    LEFT_PAREN = 5      # (
    RIGHT_PAREN = 6     # )
    LEFT_BRACKET = 7    # [
    RIGHT_BRACKET = 8   # ]
    COMMA = 9           # ,
    NUMBER = 10         # Number
    STRING = 11         # String
    ERE = 12            # Regular expression
    NAME = 13           # Variable
    FUNC_NAME = 14      # User function name directly followed by (
    BUILTIN_FUNC = 15   # Built-in function
    KEYWORD = 16        # Reserved word
    DOLLAR = 17         # $
    OPERATOR = 18       # Operator
    END_OF_INPUT = 19   # End_Of_Input


token_display_name = [
    "Unknown",
    "newline",
    "';'",
    "'{'",
    "'}'",
    "'('",
    "')'",
    "'['",
    "']'",
    "','",
    "number",
    "string",
    "regular expression",
    "name",
    "function name",
    "built-in function",
    "keyword",
    "'$'",
    "operator",
    "end of input",
]

KEYWORDS = {
    "BEGIN", "END", "function", "func", "if", "else", "while", "for", "do",
    "break", "continue", "next", "nextfile", "exit", "return", "delete",
    "in", "getline", "print", "printf",
}

BUILTIN_FUNCTIONS = {
    "length", "substr", "index", "split", "sub", "gsub", "match", "sprintf",
    "sin", "cos", "atan2", "exp", "log", "sqrt", "int", "rand", "srand",
    "tolower", "toupper", "system", "close", "fflush",
}

# longest first, so "**=" wins over "**" and "*"
OPERATORS = sorted(
    [
        "+", "-", "*", "/", "%", "^", "**", "!", ">", "<", "|", "?", ":", "~",
        "=", "+=", "-=", "*=", "/=", "%=", "^=", "**=", "==", "<=", ">=", "!=",
        "++", "--", ">>", "!~", "&&", "||",
    ],
    key=len,
    reverse=True,
)

SINGLE_CHARACTER_TOKENS = {
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "[": TokenType.LEFT_BRACKET,
    "]": TokenType.RIGHT_BRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "$": TokenType.DOLLAR,
}

# A '/' after one of these is a division, anywhere else it opens a regex
DIVISION_FOLLOWS = {
    TokenType.NAME,
    TokenType.NUMBER,
    TokenType.STRING,
    TokenType.ERE,
    TokenType.RIGHT_PAREN,
    TokenType.RIGHT_BRACKET,
    TokenType.BUILTIN_FUNC,
}

NUMBER_RE = re.compile(r"(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")
NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}


class Token:
    """One lexical unit plus where it was found"""

    __slots__ = ("type", "value", "line", "column")

    def __init__(self, token_type: TokenType, value, line: int, column: int):
        self.type = token_type
        self.value = value
        self.line = line
        self.column = column

    def describe(self) -> str:
        if self.type in (TokenType.NEWLINE, TokenType.END_OF_INPUT):
            return token_display_name[self.type]
        if self.type == TokenType.STRING:
            return f'"{self.value}"'
        if self.type == TokenType.ERE:
            return f"/{self.value}/"
        if self.type == TokenType.NUMBER:
            return f"{self.value:g}"
        return f"'{self.value}'"

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


def process_escapes(text: str) -> str:
    """Expand the escape sequences allowed in AWK strings.
    Unknown escapes keep their backslash, so "\\." stays usable
    as a dynamic regular expression."""
    if "\\" not in text:
        return text
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt in ESCAPES:
            out.append(ESCAPES[nxt])
            i += 2
        elif nxt in "01234567":
            j = i + 1
            while j < len(text) and j < i + 4 and text[j] in "01234567":
                j += 1
            out.append(chr(int(text[i + 1:j], 8)))
            i = j
        else:
            out.append("\\" + nxt)
            i += 2
    return "".join(out)


class AwkLexer:
    def __init__(self, source: str, filename: str = None):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens = []

    def error(self, message: str, line=None, column=None):
        raise LexError(
            message,
            self.line if line is None else line,
            self.column if column is None else column,
            self.filename,
        )

    def advance(self, count: int = 1):
        for _ in range(count):
            if self.source[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def add(self, token_type: TokenType, value, line: int, column: int):
        self.tokens.append(Token(token_type, value, line, column))

    def previous_type(self):
        return self.tokens[-1].type if self.tokens else TokenType.UNKNOWN

    def regex_allowed(self) -> bool:
        if not self.tokens:
            return True
        prior = self.tokens[-1]
        if prior.type in DIVISION_FOLLOWS:
            return False
        if prior.type == TokenType.OPERATOR and prior.value in ("++", "--"):
            return False
        if prior.type == TokenType.KEYWORD and prior.value == "getline":
            return False
        return True

    def tokenize(self) -> list:
        source = self.source
        while self.pos < len(source):
            ch = source[self.pos]
            line, column = self.line, self.column
            if ch in " \t\r":
                self.advance()
            elif ch == "\\" and source[self.pos + 1:self.pos + 2] == "\n":
                self.advance(2)  # continuation line
            elif ch == "\\" and source[self.pos + 1:self.pos + 3] == "\r\n":
                self.advance(3)
            elif ch == "#":
                while self.pos < len(source) and source[self.pos] != "\n":
                    self.advance()
            elif ch == "\n":
                self.add(TokenType.NEWLINE, "\n", line, column)
                self.advance()
            elif ch == '"':
                self.add(TokenType.STRING, self.read_string(), line, column)
            elif ch == "/" and self.regex_allowed():
                self.add(TokenType.ERE, self.read_regex(), line, column)
            elif ch.isdigit() or (ch == "." and source[self.pos + 1:self.pos + 2].isdigit()):
                match = NUMBER_RE.match(source, self.pos)
                self.add(TokenType.NUMBER, float(match.group()), line, column)
                self.advance(len(match.group()))
            elif ch.isalpha() or ch == "_":
                word = NAME_RE.match(source, self.pos).group()
                self.advance(len(word))
                if word in KEYWORDS:
                    if word == "func":
                        word = "function"
                    self.add(TokenType.KEYWORD, word, line, column)
                elif word in BUILTIN_FUNCTIONS:
                    self.add(TokenType.BUILTIN_FUNC, word, line, column)
                elif source[self.pos:self.pos + 1] == "(":
                    self.add(TokenType.FUNC_NAME, word, line, column)
                else:
                    self.add(TokenType.NAME, word, line, column)
            elif ch in SINGLE_CHARACTER_TOKENS:
                self.add(SINGLE_CHARACTER_TOKENS[ch], ch, line, column)
                self.advance()
            else:
                for op in OPERATORS:
                    if source.startswith(op, self.pos):
                        self.add(TokenType.OPERATOR, op, line, column)
                        self.advance(len(op))
                        break
                else:
                    self.error(f"illegal character {ch!r}")
        self.add(TokenType.END_OF_INPUT, "", self.line, self.column)
        return self.tokens

    def read_string(self) -> str:
        """Consume "...", returning the text with escapes expanded"""
        line, column = self.line, self.column
        self.advance()  # opening "
        start = self.pos
        source = self.source
        while True:
            if self.pos >= len(source) or source[self.pos] == "\n":
                self.error("unterminated string", line, column)
            ch = source[self.pos]
            if ch == "\\" and self.pos + 1 < len(source):
                self.advance(2)  # escaped character or continuation line
                continue
            if ch == '"':
                break
            self.advance()
        raw = source[start:self.pos].replace("\\\n", "")
        self.advance()  # closing "
        return process_escapes(raw)

    def read_regex(self) -> str:
        """Consume /.../, returning the pattern. Only \\/ is rewritten,
        other escapes are left for the regex translator."""
        line, column = self.line, self.column
        self.advance()  # opening /
        out = []
        bracket_start = None
        source = self.source
        while True:
            if self.pos >= len(source) or source[self.pos] == "\n":
                self.error("unterminated regular expression", line, column)
            ch = source[self.pos]
            if ch == "\\" and self.pos + 1 < len(source) and source[self.pos + 1] != "\n":
                nxt = source[self.pos + 1]
                out.append("/" if nxt == "/" else "\\" + nxt)
                self.advance(2)
                continue
            if bracket_start is not None:
                if ch == "[" and source[self.pos + 1:self.pos + 2] == ":":
                    end = source.find(":]", self.pos + 2)
                    if end > 0 and "\n" not in source[self.pos:end]:
                        out.append(source[self.pos:end + 2])
                        self.advance(end + 2 - self.pos)
                        continue
                # ']' straight after '[' or '[^' is a member of the set
                if ch == "]" and len(out) > bracket_start and out[bracket_start:] != ["^"]:
                    bracket_start = None
            elif ch == "[":
                out.append(ch)
                self.advance()
                bracket_start = len(out)
                continue
            elif ch == "/":
                break
            out.append(ch)
            self.advance()
        self.advance()  # closing /
        return "".join(out)
