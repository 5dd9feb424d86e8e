#!/usr/bin/python3
"""
    Recursive descent parser for the pawk AWK interpreter.

    Consumes the token list produced by AwkLexer and builds the
    Program tree defined in pawk_ast. The first error aborts the
    parse with a ParseError naming what was expected and what was
    found; there is no error recovery.
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
from pawk_lexer import AwkLexer, CompileError, Token, TokenType
from pawk_regex import compile_ere
from pawk_builtins import BUILTIN_ARITY
from pawk_ast import (
    LVALUES,
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
    ExprPattern,
    ExprStmt,
    Field,
    For,
    ForIn,
    Function,
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
    Program,
    RangePattern,
    Redirect,
    Regex,
    Return,
    Rule,
    Str,
    Unary,
    Var,
    While,
)


class ParseError(CompileError):
    pass


ASSIGNMENT_OPERATORS = {"=", "+=", "-=", "*=", "/=", "%=", "^=", "**="}
COMPARISON_OPERATORS = {"<", "<=", "==", "!=", ">=", ">"}
REDIRECT_OPERATORS = {">", ">>", "|"}
# tokens that may start the right hand side of an implicit concatenation
CONCAT_STARTS = {
    TokenType.NUMBER,
    TokenType.STRING,
    TokenType.ERE,
    TokenType.NAME,
    TokenType.FUNC_NAME,
    TokenType.BUILTIN_FUNC,
    TokenType.DOLLAR,
    TokenType.LEFT_PAREN,
}
STATEMENT_ENDS = {
    TokenType.NEWLINE,
    TokenType.SEMICOLON,
    TokenType.RIGHT_BRACE,
    TokenType.END_OF_INPUT,
}


class AwkParser:
    """This is the main class of the parser"""

    def __init__(self, tokens: list, filename: str = None):
        self.tokens = tokens
        self.filename = filename
        self.pos = 0
        self.program = Program()
        self.locals = None  # parameter name -> slot while inside a function
        self.loop_depth = 0
        # inside a print expression list an unparenthesised > is a redirection
        self.allow_gt = True

    """ Token access """

    @property
    def tok(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != TokenType.END_OF_INPUT:
            self.pos += 1
        return token

    def syntax_error(self, expected: str, token: Token = None):
        """Used by the parser to report syntax errors"""
        token = self.tok if token is None else token
        raise ParseError(
            f"syntax error: expected {expected}, found {token.describe()}",
            token.line,
            token.column,
            self.filename,
        )

    def is_op(self, *values) -> bool:
        return self.tok.type == TokenType.OPERATOR and self.tok.value in values

    def is_keyword(self, value: str) -> bool:
        return self.tok.type == TokenType.KEYWORD and self.tok.value == value

    def expect(self, token_type: TokenType, expected: str) -> Token:
        if self.tok.type != token_type:
            self.syntax_error(expected)
        return self.advance()

    def expect_op(self, value: str):
        if not self.is_op(value):
            self.syntax_error(f"'{value}'")
        return self.advance()

    def skip_newlines(self):
        while self.tok.type == TokenType.NEWLINE:
            self.advance()

    def skip_terminators(self):
        while self.tok.type in (TokenType.NEWLINE, TokenType.SEMICOLON):
            self.advance()

    def end_simple_statement(self):
        if self.tok.type in (TokenType.SEMICOLON, TokenType.NEWLINE):
            self.advance()
        elif self.tok.type not in (TokenType.RIGHT_BRACE, TokenType.END_OF_INPUT):
            self.syntax_error("';' or newline")

    """ Program level """

    def parse_program(self) -> Program:
        self.skip_terminators()
        while self.tok.type != TokenType.END_OF_INPUT:
            self.parse_item()
            self.skip_terminators()
        return self.program

    def parse_item(self):
        """ consume BEGIN {...}, END {...}, a function or pattern {...} """
        if self.is_keyword("BEGIN") or self.is_keyword("END"):
            section = self.advance().value
            if self.tok.type != TokenType.LEFT_BRACE:
                self.syntax_error(f"'{{' after {section}")
            block = self.parse_block()
            if section == "BEGIN":
                self.program.begin_blocks.append(block)
            else:
                self.program.end_blocks.append(block)
        elif self.is_keyword("function"):
            self.parse_function()
        else:
            pattern = None
            if self.tok.type != TokenType.LEFT_BRACE:
                start = self.parse_expression()
                if self.tok.type == TokenType.COMMA:
                    self.advance()
                    self.skip_newlines()
                    pattern = RangePattern(start, self.parse_expression())
                else:
                    pattern = ExprPattern(start)
            if self.tok.type == TokenType.LEFT_BRACE:
                action = self.parse_block()
            elif self.tok.type in STATEMENT_ENDS and self.tok.type != TokenType.RIGHT_BRACE:
                # a pattern without an action prints the record
                action = Block([Print([])])
            else:
                self.syntax_error("'{' or newline")
            self.program.rules.append(Rule(pattern, action))

    def parse_function(self):
        """ function name(param, ...) { statements } """
        self.advance()  # discard function
        name_token = self.tok
        if name_token.type not in (TokenType.NAME, TokenType.FUNC_NAME):
            self.syntax_error("function name")
        name = name_token.value
        if name in self.program.functions:
            raise ParseError(
                f"function {name} redefined", name_token.line, name_token.column, self.filename
            )
        self.advance()
        self.expect(TokenType.LEFT_PAREN, "'('")
        self.skip_newlines()
        params = []
        while self.tok.type == TokenType.NAME:
            param = self.advance()
            if param.value in params:
                raise ParseError(
                    f"function {name}: duplicate parameter {param.value}",
                    param.line,
                    param.column,
                    self.filename,
                )
            if param.value == name:
                raise ParseError(
                    f"function {name}: parameter shadows the function name",
                    param.line,
                    param.column,
                    self.filename,
                )
            params.append(param.value)
            self.skip_newlines()
            if self.tok.type == TokenType.COMMA:
                self.advance()
                self.skip_newlines()
                if self.tok.type != TokenType.NAME:
                    self.syntax_error("parameter name")
        self.expect(TokenType.RIGHT_PAREN, "')'")
        self.skip_newlines()
        self.locals = {param: slot for slot, param in enumerate(params)}
        body = self.parse_block()
        self.locals = None
        self.program.functions[name] = Function(name, params, body, name_token.line)

    """ Statements and blocks """

    def parse_block(self) -> Block:
        """ consume { statement; ... } """
        self.expect(TokenType.LEFT_BRACE, "'{'")
        statements = []
        self.skip_terminators()
        while self.tok.type != TokenType.RIGHT_BRACE:
            if self.tok.type == TokenType.END_OF_INPUT:
                self.syntax_error("'}'")
            statements.append(self.parse_statement())
            self.skip_terminators()
        self.advance()
        return Block(statements)

    def parse_loop_body(self):
        if self.tok.type == TokenType.SEMICOLON:
            self.advance()
            return Block([])
        self.skip_newlines()
        self.loop_depth += 1
        body = self.parse_statement()
        self.loop_depth -= 1
        return body

    def parse_statement(self):
        """ consume a simple statement or a block """
        token = self.tok
        if token.type == TokenType.LEFT_BRACE:
            return self.parse_block()
        if token.type == TokenType.SEMICOLON:
            self.advance()
            return Block([])
        if token.type == TokenType.KEYWORD:
            parser = getattr(self, f"parse_{token.value}_statement", None)
            if parser is not None:
                return parser()
        expr = self.parse_expression()
        self.end_simple_statement()
        return ExprStmt(expr)

    def parse_if_statement(self):
        self.advance()  # discard if
        self.expect(TokenType.LEFT_PAREN, "'('")
        cond = self.parse_expression()
        self.expect(TokenType.RIGHT_PAREN, "')'")
        self.skip_newlines()
        then = self.parse_statement()
        saved = self.pos
        self.skip_terminators()
        if self.is_keyword("else"):
            self.advance()
            self.skip_newlines()
            return If(cond, then, self.parse_statement())
        self.pos = saved
        return If(cond, then)

    def parse_while_statement(self):
        self.advance()  # discard while
        self.expect(TokenType.LEFT_PAREN, "'('")
        cond = self.parse_expression()
        self.expect(TokenType.RIGHT_PAREN, "')'")
        return While(cond, self.parse_loop_body())

    def parse_do_statement(self):
        self.advance()  # discard do
        self.skip_newlines()
        self.loop_depth += 1
        body = self.parse_statement()
        self.loop_depth -= 1
        self.skip_terminators()
        if not self.is_keyword("while"):
            self.syntax_error("'while'")
        self.advance()
        self.expect(TokenType.LEFT_PAREN, "'('")
        cond = self.parse_expression()
        self.expect(TokenType.RIGHT_PAREN, "')'")
        self.end_simple_statement()
        return DoWhile(body, cond)

    def parse_for_statement(self):
        """ AWK has two types of for statements, C style and
            for( var in array )
            first step is to work out what we are dealing with
        """
        self.advance()  # discard for
        self.expect(TokenType.LEFT_PAREN, "'('")
        if (
            self.tok.type == TokenType.NAME
            and self.peek(1).type == TokenType.KEYWORD
            and self.peek(1).value == "in"
            and self.peek(2).type == TokenType.NAME
            and self.peek(3).type == TokenType.RIGHT_PAREN
        ):
            var = self.make_var(self.advance().value)
            self.advance()  # discard in
            array = self.make_var(self.advance().value)
            self.advance()  # discard )
            return ForIn(var, array, self.parse_loop_body())
        init = None if self.tok.type == TokenType.SEMICOLON else self.parse_expression()
        self.expect(TokenType.SEMICOLON, "';'")
        self.skip_newlines()
        cond = None if self.tok.type == TokenType.SEMICOLON else self.parse_expression()
        self.expect(TokenType.SEMICOLON, "';'")
        self.skip_newlines()
        step = None if self.tok.type == TokenType.RIGHT_PAREN else self.parse_expression()
        self.expect(TokenType.RIGHT_PAREN, "')'")
        return For(init, cond, step, self.parse_loop_body())

    def parse_break_statement(self):
        return self.parse_loop_control(Break)

    def parse_continue_statement(self):
        return self.parse_loop_control(Continue)

    def parse_loop_control(self, node_class):
        token = self.advance()
        if self.loop_depth == 0:
            raise ParseError(
                f"{token.value} is not allowed outside a loop",
                token.line,
                token.column,
                self.filename,
            )
        self.end_simple_statement()
        return node_class()

    def parse_next_statement(self):
        self.advance()
        self.end_simple_statement()
        return Next()

    def parse_nextfile_statement(self):
        self.advance()
        self.end_simple_statement()
        return NextFile()

    def parse_exit_statement(self):
        self.advance()
        expr = None if self.tok.type in STATEMENT_ENDS else self.parse_expression()
        self.end_simple_statement()
        return Exit(expr)

    def parse_return_statement(self):
        token = self.advance()
        if self.locals is None:
            raise ParseError(
                "return is not allowed outside a function", token.line, token.column, self.filename
            )
        expr = None if self.tok.type in STATEMENT_ENDS else self.parse_expression()
        self.end_simple_statement()
        return Return(expr)

    def parse_delete_statement(self):
        self.advance()  # discard delete
        array = self.parse_array_name()
        subscripts = None
        if self.tok.type == TokenType.LEFT_BRACKET:
            subscripts = self.parse_subscripts()
        self.end_simple_statement()
        return Delete(array, subscripts)

    def parse_getline_statement(self):
        expr = self.parse_expression()
        self.end_simple_statement()
        return ExprStmt(expr)

    def parse_print_statement(self):
        return self.parse_output_statement(Print)

    def parse_printf_statement(self):
        return self.parse_output_statement(Printf)

    def parse_output_statement(self, node_class):
        """ print [expr, ...] [> target | >> target | '|' command] """
        keyword = self.advance()
        args = []
        if not (self.tok.type in STATEMENT_ENDS or self.is_op(*REDIRECT_OPERATORS)):
            if self.tok.type == TokenType.LEFT_PAREN:
                # print (a, b) > "file" - the parentheses may hold the whole list
                saved = self.pos
                self.advance()
                args = self.parse_expression_list(TokenType.RIGHT_PAREN)
                self.expect(TokenType.RIGHT_PAREN, "')'")
                if not (self.tok.type in STATEMENT_ENDS or self.is_op(*REDIRECT_OPERATORS)):
                    self.pos = saved
                    args = self.parse_print_list()
            else:
                args = self.parse_print_list()
        redirect = None
        if self.is_op(*REDIRECT_OPERATORS):
            mode = self.advance().value
            saved_allow_gt = self.allow_gt
            self.allow_gt = False
            target = self.parse_concatenation()
            self.allow_gt = saved_allow_gt
            redirect = Redirect(mode, target)
        self.end_simple_statement()
        if node_class is Printf and not args:
            self.syntax_error("printf format", keyword)
        return node_class(args, redirect)

    def parse_print_list(self) -> list:
        saved_allow_gt = self.allow_gt
        self.allow_gt = False
        args = [self.parse_expression()]
        while self.tok.type == TokenType.COMMA:
            self.advance()
            self.skip_newlines()
            args.append(self.parse_expression())
        self.allow_gt = saved_allow_gt
        return args

    """ Expressions """

    def parse_expression_list(self, closing: TokenType) -> list:
        """Comma separated expressions up to (not including) closing"""
        saved_allow_gt = self.allow_gt
        self.allow_gt = True
        self.skip_newlines()
        exprs = []
        if self.tok.type != closing:
            exprs.append(self.parse_expression())
            self.skip_newlines()
            while self.tok.type == TokenType.COMMA:
                self.advance()
                self.skip_newlines()
                exprs.append(self.parse_expression())
                self.skip_newlines()
        self.allow_gt = saved_allow_gt
        return exprs

    def parse_expression(self):
        return self.parse_assignment()

    def parse_assignment(self):
        left = self.parse_ternary()
        if self.is_op(*ASSIGNMENT_OPERATORS) and isinstance(left, LVALUES):
            op = self.advance().value
            self.skip_newlines()
            if op == "**=":
                op = "^="
            return Assign(op, left, self.parse_assignment())
        return left

    def parse_ternary(self):
        test = self.parse_or()
        if self.is_op("?"):
            self.advance()
            self.skip_newlines()
            yes = self.parse_assignment()
            self.skip_newlines()
            self.expect_op(":")
            self.skip_newlines()
            return Cond(test, yes, self.parse_assignment())
        return test

    def parse_or(self):
        left = self.parse_and()
        while self.is_op("||"):
            self.advance()
            self.skip_newlines()
            left = Or(left, self.parse_and())
        return left

    def parse_and(self):
        left = self.parse_in()
        while self.is_op("&&"):
            self.advance()
            self.skip_newlines()
            left = And(left, self.parse_in())
        return left

    def parse_in(self):
        left = self.parse_match()
        while self.is_keyword("in"):
            self.advance()
            left = In([left], self.parse_array_name())
        return left

    def parse_match(self):
        left = self.parse_comparison()
        while self.is_op("~", "!~"):
            negate = self.advance().value == "!~"
            left = Match(negate, left, self.parse_comparison())
        return left

    def parse_comparison(self):
        # non-associative: a < b < c is an error
        left = self.parse_pipe_getline()
        if self.is_op(*COMPARISON_OPERATORS) and (self.allow_gt or self.tok.value != ">"):
            op = self.advance().value
            return Compare(op, left, self.parse_pipe_getline())
        return left

    def parse_pipe_getline(self):
        """ command | getline [var] """
        left = self.parse_concatenation()
        while self.is_op("|") and self.peek().type == TokenType.KEYWORD and self.peek().value == "getline":
            self.advance()
            self.advance()
            left = Getline("command", self.parse_optional_lvalue(), left)
        return left

    def parse_concatenation(self):
        left = self.parse_additive()
        while self.tok.type in CONCAT_STARTS:
            left = Concat(left, self.parse_additive())
        return left

    def parse_additive(self):
        left = self.parse_multiplicative()
        while self.is_op("+", "-"):
            op = self.advance().value
            left = Binary(op, left, self.parse_multiplicative())
        return left

    def parse_multiplicative(self):
        left = self.parse_unary()
        while self.is_op("*", "/", "%"):
            op = self.advance().value
            left = Binary(op, left, self.parse_unary())
        return left

    def parse_unary(self):
        if self.is_op("!", "-", "+"):
            op = self.advance().value
            return Unary(op, self.parse_unary())
        return self.parse_power()

    def parse_power(self):
        # right associative, and 2^-1 is allowed
        base = self.parse_postfix()
        if self.is_op("^", "**"):
            self.advance()
            if self.is_op("!", "-", "+"):
                op = self.advance().value
                return Binary("^", base, Unary(op, self.parse_unary()))
            return Binary("^", base, self.parse_power())
        return base

    def parse_postfix(self):
        if self.is_op("++", "--"):
            op = self.advance().value
            target = self.parse_primary()
            if not isinstance(target, LVALUES):
                self.syntax_error(f"variable, field or array element after {op}")
            return IncDec(op, True, target)
        expr = self.parse_primary()
        if isinstance(expr, LVALUES) and self.is_op("++", "--"):
            return IncDec(self.advance().value, False, expr)
        return expr

    def parse_primary(self):
        token = self.tok
        if token.type == TokenType.NUMBER:
            self.advance()
            return Num(token.value)
        if token.type == TokenType.STRING:
            self.advance()
            return Str(token.value)
        if token.type == TokenType.ERE:
            self.advance()
            return self.make_regex(token)
        if token.type == TokenType.DOLLAR:
            self.advance()
            return Field(self.parse_field_index())
        if token.type == TokenType.LEFT_PAREN:
            self.advance()
            exprs = self.parse_expression_list(TokenType.RIGHT_PAREN)
            if not exprs:
                self.syntax_error("expression")
            self.expect(TokenType.RIGHT_PAREN, "')'")
            if len(exprs) > 1:
                if not self.is_keyword("in"):
                    self.syntax_error("'in' after a parenthesised list")
                self.advance()
                return In(exprs, self.parse_array_name())
            return exprs[0]
        if token.type == TokenType.NAME:
            self.advance()
            var = self.make_var(token.value)
            if self.tok.type == TokenType.LEFT_BRACKET:
                return Index(var, self.parse_subscripts())
            return var
        if token.type == TokenType.FUNC_NAME:
            self.advance()
            self.expect(TokenType.LEFT_PAREN, "'('")
            args = self.parse_expression_list(TokenType.RIGHT_PAREN)
            self.expect(TokenType.RIGHT_PAREN, "')'")
            return Call(token.value, args, token.line)
        if token.type == TokenType.BUILTIN_FUNC:
            return self.parse_builtin_call()
        if token.type == TokenType.KEYWORD and token.value == "getline":
            self.advance()
            target = self.parse_optional_lvalue()
            if self.is_op("<"):
                self.advance()
                return Getline("file", target, self.parse_primary())
            return Getline("simple", target)
        if token.type == TokenType.OPERATOR and token.value in ("!", "-", "+"):
            return self.parse_unary()
        self.syntax_error("expression")

    def parse_field_index(self):
        """ the operand of $ binds tighter than everything but grouping """
        if self.is_op("++", "--"):
            return self.parse_postfix()
        if self.is_op("-", "+", "!"):
            op = self.advance().value
            return Unary(op, self.parse_field_index())
        return self.parse_primary()

    def parse_builtin_call(self):
        token = self.advance()
        name = token.value
        if name == "length" and self.tok.type != TokenType.LEFT_PAREN:
            return BuiltinCall("length", [])
        self.expect(TokenType.LEFT_PAREN, "'('")
        args = self.parse_expression_list(TokenType.RIGHT_PAREN)
        self.expect(TokenType.RIGHT_PAREN, "')'")
        low, high = BUILTIN_ARITY[name]
        if len(args) < low or (high is not None and len(args) > high):
            expected = str(low) if low == high else f"{low} to {high}" if high else f"at least {low}"
            raise ParseError(
                f"{name}: expected {expected} arguments, found {len(args)}",
                token.line,
                token.column,
                self.filename,
            )
        if name == "split" and not isinstance(args[1], (Var, LocalVar)):
            raise ParseError(
                "split: second argument must be an array name", token.line, token.column, self.filename
            )
        if name in ("sub", "gsub") and len(args) == 3 and not isinstance(args[2], LVALUES):
            raise ParseError(
                f"{name}: third argument must be a variable, field or array element",
                token.line,
                token.column,
                self.filename,
            )
        return BuiltinCall(name, args)

    def parse_optional_lvalue(self):
        """ the optional variable after getline """
        if self.tok.type == TokenType.NAME:
            var = self.make_var(self.advance().value)
            if self.tok.type == TokenType.LEFT_BRACKET:
                return Index(var, self.parse_subscripts())
            return var
        if self.tok.type == TokenType.DOLLAR:
            self.advance()
            return Field(self.parse_field_index())
        return None

    def parse_subscripts(self) -> list:
        self.expect(TokenType.LEFT_BRACKET, "'['")
        subscripts = self.parse_expression_list(TokenType.RIGHT_BRACKET)
        if not subscripts:
            self.syntax_error("subscript")
        self.expect(TokenType.RIGHT_BRACKET, "']'")
        return subscripts

    def parse_array_name(self):
        if self.tok.type != TokenType.NAME:
            self.syntax_error("array name")
        return self.make_var(self.advance().value)

    def make_var(self, name: str):
        if self.locals is not None and name in self.locals:
            return LocalVar(name, self.locals[name])
        return Var(name)

    def make_regex(self, token: Token) -> Regex:
        try:
            compile_ere(token.value)
        except re.error as err:
            raise ParseError(
                f"invalid regular expression /{token.value}/: {err}",
                token.line,
                token.column,
                self.filename,
            )
        return Regex(token.value)


def parse_source(source: str, filename: str = None) -> Program:
    """Lex and parse program text, raising CompileError on failure"""
    tokens = AwkLexer(source, filename).tokenize()
    return AwkParser(tokens, filename).parse_program()
