"""
Recursive descent parser for BigLisp surface syntax.

Grammar (first matching alternative wins):
    expr      → list | vector | OPERATOR | literal | KEYWORD | IDENT
    list      → "(" expr* ")"
    vector    → "[" expr* "]"
    literal   → INT | FLOAT | STRING | "true" | "false"

Invocation wrapper (variable capture):
    invocation → "[" IDENT ("," IDENT)* ","? "]" expr
               | expr
"""

from __future__ import annotations

import ast
import logging

from biglisp.core.errors import ParseError, make_parse_error, source_snippet
from biglisp.core.ir.expressions import (
    Expr,
    List,
    Literal,
    Operator,
    Symbol,
    TopLevelForm,
    Vector,
)
from biglisp.core.reader.tokenizer import (
    ReaderTokenError,
    Token,
    TokenKind,
    tokenize,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_NAME = "<lisp>"

_CLOSERS: dict[TokenKind, TokenKind] = {
    TokenKind.LPAREN: TokenKind.RPAREN,
    TokenKind.LBRACKET: TokenKind.RBRACKET,
}

_LITERAL_KINDS = frozenset(
    {TokenKind.INT, TokenKind.FLOAT, TokenKind.STRING, TokenKind.TRUE, TokenKind.FALSE}
)


class _Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, tokens: list[Token], source: str, source_name: str) -> None:
        self.tokens = tokens
        self.source = source
        self.source_name = source_name
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind) -> Token:
        tok = self.current
        if tok.kind != kind:
            raise self.error(f"Expected {kind}, got {_describe(tok)}", tok)
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def at_end(self) -> bool:
        return self.current.kind == TokenKind.EOF

    def error(self, message: str, tok: Token) -> ParseError:
        return make_parse_error(
            message,
            self.source_name,
            tok.line,
            tok.column,
            source_snippet(self.source, tok.line),
        )

    # -- Grammar rules --

    def parse_expr(self) -> Expr:
        """One expression; the stream is left just after it."""
        tok = self.current

        if tok.kind in _CLOSERS:
            items = self._parse_items(tok)
            if tok.kind == TokenKind.LPAREN:
                return List(items=items)
            return Vector(items=items)

        if tok.kind == TokenKind.OPERATOR:
            self.advance()
            return Operator(symbol=tok.value)

        if tok.kind in _LITERAL_KINDS:
            self.advance()
            return _make_literal(tok)

        # Reserved words collide with host keywords; read them by spelling
        if tok.kind == TokenKind.KEYWORD:
            self.advance()
            return Symbol(name=tok.value)

        if tok.kind == TokenKind.IDENT:
            self.advance()
            return Symbol(name=tok.value)

        if tok.kind == TokenKind.EOF:
            raise self.error("Unexpected end of input", tok)

        if tok.kind in (TokenKind.RPAREN, TokenKind.RBRACKET):
            raise self.error(f"Unexpected closing {tok.value!r}", tok)

        raise self.error(f"Unexpected token: {_describe(tok)}", tok)

    def _parse_items(self, opener: Token) -> list[Expr]:
        """'(' expr* ')' or '[' expr* ']'"""
        closer = _CLOSERS[opener.kind]
        self.advance()
        items: list[Expr] = []
        while self.current.kind != closer:
            tok = self.current
            if tok.kind == TokenKind.EOF:
                raise self.error(
                    f"Unclosed {opener.value!r} opened at line {opener.line}, "
                    f"column {opener.column}",
                    opener,
                )
            if tok.kind in (TokenKind.RPAREN, TokenKind.RBRACKET):
                raise self.error(
                    f"Mismatched {tok.value!r}: {opener.value!r} opened at line "
                    f"{opener.line}, column {opener.column}",
                    tok,
                )
            items.append(self.parse_expr())
        self.advance()
        return items

    def parse_capture_names(self) -> list[str]:
        """'[' IDENT (',' IDENT)* ','? ']'"""
        self.expect(TokenKind.LBRACKET)
        names = [self.expect(TokenKind.IDENT).value]
        while self.match(TokenKind.COMMA):
            if self.current.kind == TokenKind.RBRACKET:
                break
            names.append(self.expect(TokenKind.IDENT).value)
        self.expect(TokenKind.RBRACKET)
        return names

    def expect_end(self) -> None:
        if not self.at_end():
            raise self.error(
                f"Unexpected token after expression: {_describe(self.current)}",
                self.current,
            )


def _make_literal(tok: Token) -> Literal:
    if tok.kind == TokenKind.TRUE:
        return Literal(value=True, text=tok.text)
    if tok.kind == TokenKind.FALSE:
        return Literal(value=False, text=tok.text)
    if tok.kind == TokenKind.STRING:
        return Literal(value=tok.value, text=tok.text)
    return Literal(value=ast.literal_eval(tok.text), text=tok.text)


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of input"
    return f"{tok.kind} ({tok.text!r})"


def _make_parser(source: str, source_name: str) -> _Parser:
    try:
        tokens = tokenize(source)
    except ReaderTokenError as e:
        raise make_parse_error(
            str(e),
            source_name,
            e.line,
            e.column,
            source_snippet(source, e.line),
        ) from e
    return _Parser(tokens, source, source_name)


def parse_expr(source: str, source_name: str = DEFAULT_SOURCE_NAME) -> Expr:
    """Parse exactly one expression.

    Args:
        source: Surface syntax (e.g., "(+ 1 2 3)")
        source_name: Name used in error locations

    Returns:
        Parsed expression tree.

    Raises:
        ParseError: If the input is not a single valid expression.
    """
    parser = _make_parser(source, source_name)
    expr = parser.parse_expr()
    parser.expect_end()
    logger.debug("Parsed %s from %s", expr, source_name)
    return expr


def parse_program(source: str, source_name: str = DEFAULT_SOURCE_NAME) -> list[TopLevelForm]:
    """Parse zero or more top-level forms, keeping where each one starts."""
    parser = _make_parser(source, source_name)
    forms: list[TopLevelForm] = []
    while not parser.at_end():
        start = parser.current
        expr = parser.parse_expr()
        forms.append(TopLevelForm(expr=expr, line=start.line, column=start.column))
    logger.debug("Parsed %d forms from %s", len(forms), source_name)
    return forms


def parse_invocation(source: str, source_name: str = DEFAULT_SOURCE_NAME) -> Expr:
    """Parse the variable-capture wrapper ``[a, b] expr`` or a plain expression.

    A capture becomes ``(with-vars [a b] expr)``. If the leading brackets are
    not a comma-separated name list, or nothing follows them, the whole input
    is parsed as a plain expression. Errors in the body of a capture are
    reported where they occur.
    """
    parser = _make_parser(source, source_name)
    if parser.current.kind == TokenKind.LBRACKET:
        names: list[str] | None
        try:
            names = parser.parse_capture_names()
        except ParseError:
            names = None
        if names is not None and not parser.at_end():
            body = parser.parse_expr()
            parser.expect_end()
            logger.debug("Capturing %s in %s", ", ".join(names), source_name)
            captures = Vector(items=[Symbol(name=n) for n in names])
            return List(items=[Symbol(name="with-vars"), captures, body])
        logger.debug("No capture list in %s; parsing as plain expression", source_name)
        parser.pos = 0

    expr = parser.parse_expr()
    parser.expect_end()
    return expr


def bracket_depth(source: str) -> int:
    """Net count of unclosed '(' and '[' outside strings and comments.

    Positive while a form is incomplete; the REPL keeps reading lines until
    it drops to zero or below.
    """
    depth = 0
    quote: str | None = None
    i = 0
    n = len(source)
    while i < n:
        c = source[i]
        if quote:
            if c == "\\":
                i += 2
                continue
            if c == quote:
                quote = None
        elif c in ('"', "'"):
            quote = c
        elif c == "#":
            newline = source.find("\n", i)
            if newline == -1:
                break
            i = newline
        elif c in "([":
            depth += 1
        elif c in ")]":
            depth -= 1
        i += 1
    return depth
