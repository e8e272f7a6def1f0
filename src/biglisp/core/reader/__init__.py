"""
BigLisp reader.

Tokenizer and parser for the S-expression surface syntax.

Usage:
    from biglisp.core.reader import parse_expr

    expr = parse_expr("(+ 1 2 3)")
    # List(items=[Operator(symbol='+'), Literal(value=1, ...), ...])
"""

from biglisp.core.reader.parser import (
    bracket_depth,
    parse_expr,
    parse_invocation,
    parse_program,
)
from biglisp.core.reader.tokenizer import Token, TokenKind, tokenize

__all__ = [
    "Token",
    "TokenKind",
    "bracket_depth",
    "parse_expr",
    "parse_invocation",
    "parse_program",
    "tokenize",
]
