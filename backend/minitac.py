#!/usr/bin/env python3
"""
minitac.py
Single-file educational compiler pipeline (lexer → LL(1) parser → semantic analysis
→ TAC IR) for a tiny integer language:

    int a;
    a = 3 + 4 * 2;
    print -a;

Each phase fully consumes the previous phase's output and the first error of
any phase stops the run.
"""

import argparse
import logging
import re
import sys
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

log = logging.getLogger(__name__)

# =====================================================
# ERRORS
# =====================================================
class CompileError(Exception):
    """Base class for every error that stops the pipeline."""

    phase = "Compile"

    def __init__(self, message, line=None, column=None, lexeme=None):
        self.message = message
        self.line = line
        self.column = column
        self.lexeme = lexeme
        super().__init__(self.format())

    def format(self):
        return f"{self.phase} error: {self.message}"


class LexicalError(CompileError):
    phase = "Lexical"

    def format(self):
        return (f"Lexical error at {self.line}:{self.column}"
                f" -> Unexpected character '{self.lexeme}'")


class ParseError(CompileError):
    phase = "Syntax"

    def format(self):
        return f"Syntax error at {self.line}:{self.column} near '{self.lexeme}': {self.message}"


class SemanticError(CompileError):
    phase = "Semantic"

    def format(self):
        return f"Semantic error at {self.line}:{self.column} near '{self.lexeme}': {self.message}"


class DuplicateDeclarationError(SemanticError):
    pass


class UndeclaredVariableError(SemanticError):
    pass


class InternalCompilerError(CompileError):
    """An AST shape a phase does not know about; never caused by user input."""

    phase = "Internal"


def _at(error_cls, token, message):
    return error_cls(message, token.line, token.column, token.text)

# =====================================================
# LEXER
# =====================================================
class TokenKind(Enum):
    KW_INT = "KW_INT"
    KW_PRINT = "KW_PRINT"
    IDENTIFIER = "IDENTIFIER"
    NUMBER = "NUMBER"
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    SLASH = "SLASH"
    ASSIGN = "ASSIGN"
    SEMICOLON = "SEMICOLON"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    END_OF_INPUT = "END_OF_INPUT"


Token = namedtuple('Token', ['kind', 'text', 'line', 'column'])

KEYWORDS = {'int': TokenKind.KW_INT, 'print': TokenKind.KW_PRINT}

SINGLE_CHAR_KINDS = {
    '+': TokenKind.PLUS,
    '-': TokenKind.MINUS,
    '*': TokenKind.STAR,
    '/': TokenKind.SLASH,
    '=': TokenKind.ASSIGN,
    ';': TokenKind.SEMICOLON,
    '(': TokenKind.LPAREN,
    ')': TokenKind.RPAREN,
}

TOKEN_CATEGORIES = {
    TokenKind.KW_INT: 'KEYWORD',
    TokenKind.KW_PRINT: 'KEYWORD',
    TokenKind.IDENTIFIER: 'IDENTIFIER',
    TokenKind.NUMBER: 'NUMBER',
    TokenKind.PLUS: 'OPERATOR',
    TokenKind.MINUS: 'OPERATOR',
    TokenKind.STAR: 'OPERATOR',
    TokenKind.SLASH: 'OPERATOR',
    TokenKind.ASSIGN: 'OPERATOR',
    TokenKind.SEMICOLON: 'SYMBOL',
    TokenKind.LPAREN: 'SYMBOL',
    TokenKind.RPAREN: 'SYMBOL',
    TokenKind.END_OF_INPUT: 'EOF',
}


def token_category(kind):
    return TOKEN_CATEGORIES[kind]


class Lexer:
    # order matters: '//' has to win over the '/' operator
    token_specification = [
        ("COMMENT",   r'//[^\n]*'),
        ("NEWLINE",   r'\n'),
        ("SKIP",      r'[ \t\r\f\v]+'),
        ("ID",        r'[A-Za-z_][A-Za-z0-9_]*'),
        ("NUMBER",    r'[0-9]+'),
        ("SINGLE",    r'[-+*/=;()]'),
        ("MISMATCH",  r'.'),
    ]
    tok_regex = '|'.join(f'(?P<{n}>{p})' for n, p in token_specification)
    master_re = re.compile(tok_regex, re.DOTALL)

    def __init__(self, code):
        self.code = code
        self.line = 1
        self.line_start = 0
        self.tokens = []

    def column(self, offset):
        return offset - self.line_start + 1

    def tokenize(self):
        self.line = 1
        self.line_start = 0
        self.tokens = []
        for mo in self.master_re.finditer(self.code):
            kind = mo.lastgroup
            val = mo.group()
            col = self.column(mo.start())
            if kind == "ID":
                self.tokens.append(Token(KEYWORDS.get(val, TokenKind.IDENTIFIER), val, self.line, col))
            elif kind == "NUMBER":
                self.tokens.append(Token(TokenKind.NUMBER, val, self.line, col))
            elif kind == "SINGLE":
                self.tokens.append(Token(SINGLE_CHAR_KINDS[val], val, self.line, col))
            elif kind == "NEWLINE":
                self.line += 1
                self.line_start = mo.end()
            elif kind == "MISMATCH":
                raise LexicalError("Unexpected character", self.line, col, val)
        self.tokens.append(Token(TokenKind.END_OF_INPUT, 'EOF', self.line, self.column(len(self.code))))
        log.debug("lexer produced %d tokens", len(self.tokens))
        return self.tokens


def tokenize(source: str) -> List[Token]:
    """Split ``source`` into tokens, always ending with one END_OF_INPUT token."""
    return Lexer(source).tokenize()

# =====================================================
# AST NODES
# =====================================================
@dataclass(frozen=True)
class NumberLiteral:
    token: Token

    @property
    def text(self):
        return self.token.text


@dataclass(frozen=True)
class VariableRef:
    token: Token

    @property
    def name(self):
        return self.token.text


@dataclass(frozen=True)
class UnaryOp:
    op: Token
    operand: "Expression"


@dataclass(frozen=True)
class BinaryOp:
    left: "Expression"
    op: Token
    right: "Expression"


Expression = Union[NumberLiteral, VariableRef, UnaryOp, BinaryOp]


@dataclass(frozen=True)
class Declaration:
    name: Token


@dataclass(frozen=True)
class Assignment:
    name: Token
    value: Expression


@dataclass(frozen=True)
class PrintStatement:
    keyword: Token
    value: Expression


Statement = Union[Declaration, Assignment, PrintStatement]


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...]

# =====================================================
# PARSER (recursive-descent, LL(1))
# =====================================================
class Parser:
    def __init__(self, tokens):
        self.tokens = tokens
        self.pos = 0

    def peek(self):
        return self.tokens[self.pos]

    def at(self, *kinds):
        return self.peek().kind in kinds

    def advance(self):
        tok = self.peek()
        # never step past the terminal token
        if tok.kind != TokenKind.END_OF_INPUT:
            self.pos += 1
        return tok

    def error(self, msg):
        return _at(ParseError, self.peek(), msg)

    def expect(self, kind, msg):
        if not self.at(kind):
            raise self.error(msg)
        return self.advance()

    # Program -> {Declaration | Statement} EOF
    def parse(self):
        stmts = []
        while not self.at(TokenKind.END_OF_INPUT):
            if self.at(TokenKind.KW_INT):
                stmts.append(self.declaration())
            elif self.at(TokenKind.IDENTIFIER, TokenKind.KW_PRINT):
                try:
                    stmts.append(self.statement())
                except RecursionError:
                    # only parenthesized groups still recurse
                    raise self.error("Expression nested too deeply.") from None
            else:
                raise self.error("Expected 'int' declaration or a statement (assignment/print).")
        self.expect(TokenKind.END_OF_INPUT, "Expected EOF.")
        log.debug("parser built %d statements", len(stmts))
        return Program(tuple(stmts))

    # Declaration -> "int" IDENT ";"
    def declaration(self):
        self.expect(TokenKind.KW_INT, "Expected 'int'.")
        name = self.expect(TokenKind.IDENTIFIER, "Expected identifier after 'int'.")
        self.expect(TokenKind.SEMICOLON, "Expected ';' after declaration.")
        return Declaration(name)

    # Statement -> Assignment ";" | Print ";"
    def statement(self):
        if self.at(TokenKind.IDENTIFIER):
            stmt = self.assignment()
            self.expect(TokenKind.SEMICOLON, "Expected ';' after assignment.")
            return stmt
        if self.at(TokenKind.KW_PRINT):
            stmt = self.print_statement()
            self.expect(TokenKind.SEMICOLON, "Expected ';' after print.")
            return stmt
        raise self.error("Expected statement.")

    def assignment(self):
        name = self.expect(TokenKind.IDENTIFIER, "Expected identifier.")
        self.expect(TokenKind.ASSIGN, "Expected '=' in assignment.")
        return Assignment(name, self.expression())

    def print_statement(self):
        kw = self.expect(TokenKind.KW_PRINT, "Expected 'print'.")
        return PrintStatement(kw, self.expression())

    # Expressions: one function per precedence level, loops fold to the left
    def expression(self):
        node = self.term()
        while self.at(TokenKind.PLUS, TokenKind.MINUS):
            op = self.advance()
            node = BinaryOp(node, op, self.term())
        return node

    def term(self):
        node = self.unary()
        while self.at(TokenKind.STAR, TokenKind.SLASH):
            op = self.advance()
            node = BinaryOp(node, op, self.unary())
        return node

    def unary(self):
        signs = []
        while self.at(TokenKind.PLUS, TokenKind.MINUS):
            signs.append(self.advance())
        node = self.primary()
        # innermost sign is the one closest to the operand
        for op in reversed(signs):
            node = UnaryOp(op, node)
        return node

    def primary(self):
        if self.at(TokenKind.NUMBER):
            return NumberLiteral(self.advance())
        if self.at(TokenKind.IDENTIFIER):
            return VariableRef(self.advance())
        if self.at(TokenKind.LPAREN):
            self.advance()
            node = self.expression()
            self.expect(TokenKind.RPAREN, "Expected ')' to close '('.")
            return node
        raise self.error("Expected NUMBER, IDENTIFIER, or '(' expression ')'.")


def parse(tokens: List[Token]) -> Program:
    return Parser(tokens).parse()

# =====================================================
# SEMANTIC ANALYZER + SYMBOL TABLE
# =====================================================
Symbol = namedtuple('Symbol', ['name', 'type'])


class SymbolTable:
    """Flat global table; iteration follows declaration order."""

    def __init__(self):
        self.symbols = {}
        self.order = []

    def declare(self, name, type_='int'):
        symbol = Symbol(name, type_)
        self.symbols[name] = symbol
        self.order.append(name)
        return symbol

    def lookup(self, name):
        return self.symbols.get(name)

    def __contains__(self, name):
        return name in self.symbols

    def __len__(self):
        return len(self.order)

    def __iter__(self):
        return (self.symbols[name] for name in self.order)

    @property
    def names(self):
        return list(self.order)

    def to_list(self):
        return [{"name": s.name, "type": s.type} for s in self]


class SemanticAnalyzer:
    def __init__(self):
        self.symbols = SymbolTable()

    def analyze(self, program: Program) -> SymbolTable:
        for stmt in program.statements:
            if isinstance(stmt, Declaration):
                name = stmt.name.text
                if name in self.symbols:
                    raise _at(DuplicateDeclarationError, stmt.name,
                              f"Duplicate declaration of '{name}'.")
                self.symbols.declare(name)
                log.debug("declared %s", name)
            elif isinstance(stmt, Assignment):
                name = stmt.name.text
                if name not in self.symbols:
                    raise _at(UndeclaredVariableError, stmt.name,
                              f"Assignment to undeclared variable '{name}'.")
                self.check_expr(stmt.value)
            elif isinstance(stmt, PrintStatement):
                self.check_expr(stmt.value)
            else:
                raise InternalCompilerError(
                    f"unknown statement node {type(stmt).__name__} in semantic analysis")
        log.info("semantic analysis passed, %d symbols", len(self.symbols))
        return self.symbols

    def check_expr(self, expr):
        # explicit stack: long operator chains are deeper than Python's recursion limit
        stack = [expr]
        while stack:
            node = stack.pop()
            if isinstance(node, NumberLiteral):
                continue
            if isinstance(node, VariableRef):
                if node.name not in self.symbols:
                    raise _at(UndeclaredVariableError, node.token,
                              f"Variable '{node.name}' used before declaration.")
            elif isinstance(node, UnaryOp):
                stack.append(node.operand)
            elif isinstance(node, BinaryOp):
                # right pushed first so the left operand is checked first
                stack.append(node.right)
                stack.append(node.left)
            else:
                raise InternalCompilerError(
                    f"unknown expression node {type(node).__name__} in semantic analysis")


def analyze(program: Program) -> SymbolTable:
    return SemanticAnalyzer().analyze(program)

# =====================================================
# IR (TAC) GENERATION
# =====================================================
BINARY_OPCODES = {'+': 'add', '-': 'sub', '*': 'mul', '/': 'div'}
OPCODE_SYMBOLS = {v: k for k, v in BINARY_OPCODES.items()}


class TACInstruction:
    def __init__(self, op, dest=None, arg1=None, arg2=None):
        self.op = op
        self.dest = dest
        self.arg1 = arg1
        self.arg2 = arg2

    def __eq__(self, other):
        if not isinstance(other, TACInstruction):
            return NotImplemented
        return (self.op, self.dest, self.arg1, self.arg2) == (other.op, other.dest, other.arg1, other.arg2)

    def __str__(self):
        if self.op == 'print':
            return f"print {self.arg1}"
        if self.op == 'assign':
            return f"{self.dest} = {self.arg1}"
        if self.op in OPCODE_SYMBOLS:
            return f"{self.dest} = {self.arg1} {OPCODE_SYMBOLS[self.op]} {self.arg2}"
        return f"{self.op} {self.dest} {self.arg1} {self.arg2}"

    def __repr__(self):
        return str(self)


class TACGenerator:
    def __init__(self):
        self.tac = []
        self.temp_count = 0

    def new_temp(self):
        self.temp_count += 1
        return f"t{self.temp_count}"

    def emit(self, op, dest=None, arg1=None, arg2=None):
        instr = TACInstruction(op, dest=dest, arg1=arg1, arg2=arg2)
        log.debug("emit %s", instr)
        self.tac.append(instr)
        return instr

    def generate(self, program: Program) -> List[TACInstruction]:
        self.tac = []
        self.temp_count = 0
        for stmt in program.statements:
            if isinstance(stmt, Declaration):
                continue
            if isinstance(stmt, Assignment):
                value = self.gen_expr(stmt.value)
                self.emit('assign', dest=stmt.name.text, arg1=value)
            elif isinstance(stmt, PrintStatement):
                self.emit('print', arg1=self.gen_expr(stmt.value))
            else:
                raise InternalCompilerError(
                    f"unknown statement node {type(stmt).__name__} in TAC generation")
        log.info("generated %d TAC instructions", len(self.tac))
        return self.tac

    def gen_expr(self, expr):
        """
        Post-order walk with an explicit stack. Operand strings are collected
        on ``values``; a node marked ``ready`` has all its operands there.
        The left subtree is fully emitted before the right one starts.
        """
        values = []
        stack = [(expr, False)]
        while stack:
            node, ready = stack.pop()
            if isinstance(node, NumberLiteral):
                values.append(node.text)
            elif isinstance(node, VariableRef):
                values.append(node.name)
            elif isinstance(node, UnaryOp):
                if not ready:
                    stack.append((node, True))
                    stack.append((node.operand, False))
                elif node.op.kind == TokenKind.MINUS:
                    dest = self.new_temp()
                    self.emit('sub', dest=dest, arg1='0', arg2=values.pop())
                    values.append(dest)
                # unary plus leaves its operand on top of values
            elif isinstance(node, BinaryOp):
                if not ready:
                    stack.append((node, True))
                    stack.append((node.right, False))
                    stack.append((node.left, False))
                else:
                    b = values.pop()
                    a = values.pop()
                    dest = self.new_temp()
                    self.emit(BINARY_OPCODES[node.op.text], dest=dest, arg1=a, arg2=b)
                    values.append(dest)
            else:
                raise InternalCompilerError(
                    f"unknown expression node {type(node).__name__} in TAC generation")
        return values.pop()


def generate(program: Program) -> List[TACInstruction]:
    return TACGenerator().generate(program)

# =====================================================
# REPORTS
# =====================================================
def format_tokens(tokens):
    lines = ["TOKENS:"]
    for tok in tokens:
        if tok.kind == TokenKind.END_OF_INPUT:
            break
        lines.append(f"{tok.text:<10} {token_category(tok.kind)}")
    return "\n".join(lines) + "\n\n"


def format_symbol_table(symbols):
    lines = ["SYMBOL TABLE:", f"{'Name':<10}Type"]
    lines.extend(f"{s.name:<10}{s.type}" for s in symbols)
    return "\n".join(lines) + "\n\n"


def format_tac(tac):
    lines = ["INTERMEDIATE CODE (TAC):"]
    lines.extend(str(instr) for instr in tac)
    return "\n".join(lines) + "\n\n"

# =====================================================
# COMPILER DRIVER
# =====================================================
@dataclass
class CompileResult:
    tokens: Optional[List[Token]] = None
    ast: Optional[Program] = None
    symbol_table: Optional[SymbolTable] = None
    tac: Optional[List[TACInstruction]] = None
    error: Optional[CompileError] = None

    @property
    def ok(self):
        return self.error is None

    @property
    def errors(self):
        return [] if self.error is None else [str(self.error)]


def compile_source(code, report=None):
    """
    Run every phase over ``code``. When ``report`` is a text stream, each
    phase's report is written to it as soon as that phase completes.
    User errors are recorded on the result instead of raised.
    """
    result = CompileResult()

    def emit(text):
        if report is not None:
            report.write(text)

    try:
        result.tokens = tokenize(code)
        emit(format_tokens(result.tokens))

        result.ast = parse(result.tokens)

        result.symbol_table = analyze(result.ast)
        emit(format_symbol_table(result.symbol_table))

        result.tac = generate(result.ast)
        emit(format_tac(result.tac))
    except CompileError as e:
        log.info("%s phase failed: %s", e.phase, e)
        result.error = e
    return result


def _read_source(path):
    if path and path != "-":
        with open(path, encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read()


def main(argv=None):
    ap = argparse.ArgumentParser(prog="minitac", description="Compile a mini program to three-address code")
    ap.add_argument("file", nargs="?", default="-", help="Source file (or '-' for stdin)")
    ap.add_argument("--debug", action="store_true", help="Show the full Python traceback on errors")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every phase step")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s:%(name)s:%(lineno)d: %(message)s')

    try:
        source = _read_source(args.file)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    result = compile_source(source, report=sys.stdout)
    if result.error is not None:
        if args.debug:
            raise result.error
        sys.stdout.flush()
        print(result.error, file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
