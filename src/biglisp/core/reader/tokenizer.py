"""
Tokenizer for BigLisp surface syntax.

Lexing is delegated to the host tokenizer (the standard library ``tokenize``
module); this module classifies its output into typed tokens and applies
the two adjustments the surface syntax needs:

- indentation is not significant, so leading whitespace outside string
  literals is removed before the host tokenizer sees a line (reported
  columns add it back)
- ``name-name`` written without spaces is one identifier (``with-vars``)
"""

from __future__ import annotations

import ast
import io
import keyword
import tokenize as _pytokenize
from enum import StrEnum, auto

RESERVED_WORDS = frozenset({"if", "let", "do", "while", "try"})

OPERATORS = frozenset({"+", "-", "*", "/", "=", "<", ">", "%", ">=", "<=", "!="})


class TokenKind(StrEnum):
    """Token types for the surface syntax."""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    TRUE = auto()
    FALSE = auto()

    # Identifiers and reserved words
    IDENT = auto()
    KEYWORD = auto()

    # Operators
    OPERATOR = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()

    # Host tokens with no meaning in the surface syntax
    OTHER = auto()

    # End of input
    EOF = auto()


class Token:
    """A single classified token.

    ``value`` is the interpreted text (decoded string contents for strings),
    ``text`` the verbatim source text.
    """

    __slots__ = ("kind", "value", "text", "line", "column")

    def __init__(self, kind: TokenKind, value: str, text: str, line: int, column: int) -> None:
        self.kind = kind
        self.value = value
        self.text = text
        self.line = line
        self.column = column

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, {self.line}:{self.column})"


_PUNCTUATION: dict[str, TokenKind] = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
}

_BOOLEANS: dict[str, TokenKind] = {
    "true": TokenKind.TRUE,
    "True": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "False": TokenKind.FALSE,
}

_SKIPPED = frozenset(
    {
        _pytokenize.NEWLINE,
        _pytokenize.NL,
        _pytokenize.INDENT,
        _pytokenize.DEDENT,
        _pytokenize.COMMENT,
        _pytokenize.ENCODING,
        _pytokenize.ENDMARKER,
    }
)


class ReaderTokenError(Exception):
    """Error raised when the host tokenizer rejects the input."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


def is_reserved(name: str) -> bool:
    """True for words the host language reserves or the surface syntax special-cases."""
    return name in RESERVED_WORDS or keyword.iskeyword(name)


def tokenize(source: str) -> list[Token]:
    """Tokenize surface syntax into a list of tokens ending with EOF."""
    stripped, offsets = _strip_indentation(source)

    def column_of(row: int, col: int) -> int:
        offset = offsets[row - 1] if 0 < row <= len(offsets) else 0
        return col + offset + 1

    raw: list[_pytokenize.TokenInfo] = []
    try:
        for info in _pytokenize.generate_tokens(io.StringIO(stripped).readline):
            if info.type in _SKIPPED:
                continue
            # Whitespace ahead of a character the host cannot lex
            if info.type == _pytokenize.ERRORTOKEN and info.string.isspace():
                continue
            raw.append(info)
    except _pytokenize.TokenError as e:
        message, (row, col) = e.args[0], e.args[1]
        raise ReaderTokenError(_describe_host_error(message), row, column_of(row, col)) from e
    except SyntaxError as e:
        row = e.lineno or 1
        col = (e.offset or 1) - 1
        raise ReaderTokenError(_describe_host_error(e.msg), row, column_of(row, col)) from e

    tokens: list[Token] = []
    for info, text in _join_hyphenated(raw):
        row, col = info.start
        tokens.append(_classify(info, text, row, column_of(row, col)))

    last_line = len(offsets)
    tokens.append(Token(TokenKind.EOF, "", "", last_line, column_of(last_line, len(stripped.split("\n")[-1]))))
    return tokens


def _strip_indentation(source: str) -> tuple[str, list[int]]:
    """Remove leading whitespace from every line, remembering how much was removed.

    Lines that begin inside a string literal are kept as written.
    """
    lines = source.split("\n")
    in_string = _lines_inside_strings(source)
    stripped: list[str] = []
    offsets: list[int] = []
    for index, line in enumerate(lines):
        body = line if index in in_string else line.lstrip(" \t\f")
        offsets.append(len(line) - len(body))
        stripped.append(body)
    return "\n".join(stripped), offsets


def _lines_inside_strings(source: str) -> set[int]:
    """Zero-based indices of lines that start inside a string literal."""
    inside: set[int] = set()
    quote: str | None = None
    line = 0
    i = 0
    n = len(source)
    while i < n:
        c = source[i]
        if c == "\n":
            line += 1
            if quote and len(quote) == 1:
                # Unterminated; the host tokenizer reports it
                quote = None
            if quote:
                inside.add(line)
            i += 1
        elif quote:
            if c == "\\":
                if source.startswith("\n", i + 1):
                    line += 1
                    inside.add(line)
                i += 2
            elif source.startswith(quote, i):
                i += len(quote)
                quote = None
            else:
                i += 1
        elif c in "\"'":
            quote = c * 3 if source.startswith(c * 3, i) else c
            i += len(quote)
        elif c == "#":
            newline = source.find("\n", i)
            if newline == -1:
                break
            i = newline
        else:
            i += 1
    return inside


def _join_hyphenated(
    raw: list[_pytokenize.TokenInfo],
) -> list[tuple[_pytokenize.TokenInfo, str]]:
    """Fuse NAME '-' NAME runs written without whitespace into one name."""
    joined: list[tuple[_pytokenize.TokenInfo, str]] = []
    i = 0
    n = len(raw)
    while i < n:
        info = raw[i]
        text = info.string
        if info.type == _pytokenize.NAME:
            end = info.end
            while (
                i + 2 < n
                and raw[i + 1].type == _pytokenize.OP
                and raw[i + 1].string == "-"
                and raw[i + 1].start == end
                and raw[i + 2].type == _pytokenize.NAME
                and raw[i + 2].start == raw[i + 1].end
            ):
                text += "-" + raw[i + 2].string
                end = raw[i + 2].end
                i += 2
        joined.append((info, text))
        i += 1
    return joined


def _classify(info: _pytokenize.TokenInfo, text: str, line: int, column: int) -> Token:
    """Map one host token onto a surface-syntax token kind."""
    if info.type == _pytokenize.OP:
        if text in _PUNCTUATION:
            return Token(_PUNCTUATION[text], text, text, line, column)
        if text in OPERATORS:
            return Token(TokenKind.OPERATOR, text, text, line, column)
        return Token(TokenKind.OTHER, text, text, line, column)

    if info.type == _pytokenize.NAME:
        if text in _BOOLEANS:
            return Token(_BOOLEANS[text], text, text, line, column)
        if is_reserved(text):
            return Token(TokenKind.KEYWORD, text, text, line, column)
        return Token(TokenKind.IDENT, text, text, line, column)

    if info.type == _pytokenize.NUMBER:
        return Token(_number_kind(text), text, text, line, column)

    if info.type == _pytokenize.STRING:
        decoded = _decode_string(text)
        if decoded is None:
            return Token(TokenKind.OTHER, text, text, line, column)
        return Token(TokenKind.STRING, decoded, text, line, column)

    return Token(TokenKind.OTHER, text, text, line, column)


def _number_kind(text: str) -> TokenKind:
    if text[-1] in "jJ":
        return TokenKind.OTHER
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return TokenKind.OTHER
    return TokenKind.INT if isinstance(value, int) else TokenKind.FLOAT


def _decode_string(text: str) -> str | None:
    """Decode a host string literal; bytes and f-strings are not surface literals."""
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return None
    return value if isinstance(value, str) else None


def _describe_host_error(message: str) -> str:
    if "EOF" in message:
        return "Unexpected end of input: unclosed delimiter or string"
    return f"Invalid syntax: {message}"
