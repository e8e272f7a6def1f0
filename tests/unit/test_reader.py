"""Tests for the BigLisp reader.

Covers:
- Tokenizer: token kinds, hyphenated names, positions, host errors
- Parser: grammar alternatives, delimiters, error locations
- Capture wrapper and its fallback to a plain expression
- Multi-form programs and bracket balance
"""

from __future__ import annotations

import pytest

from biglisp.core.errors import ParseError
from biglisp.core.ir.expressions import List, Literal, Operator, Symbol, Vector
from biglisp.core.reader import (
    TokenKind,
    bracket_depth,
    parse_expr,
    parse_invocation,
    parse_program,
    tokenize,
)

# ============================================================================
# Tokenizer tests
# ============================================================================


class TestTokenizer:
    """Tokenizer classifies host tokens."""

    def test_simple_form(self) -> None:
        kinds = [t.kind for t in tokenize("(+ 1 2)")]
        assert kinds == [
            TokenKind.LPAREN,
            TokenKind.OPERATOR,
            TokenKind.INT,
            TokenKind.INT,
            TokenKind.RPAREN,
            TokenKind.EOF,
        ]

    def test_float(self) -> None:
        tokens = tokenize("3.14")
        assert tokens[0].kind == TokenKind.FLOAT
        assert tokens[0].value == "3.14"

    def test_string_is_decoded(self) -> None:
        tokens = tokenize('"a\\nb"')
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value == "a\nb"
        assert tokens[0].text == '"a\\nb"'

    def test_bytes_are_not_strings(self) -> None:
        assert tokenize("b'x'")[0].kind == TokenKind.OTHER

    def test_imaginary_number_is_other(self) -> None:
        assert tokenize("2j")[0].kind == TokenKind.OTHER

    def test_booleans(self) -> None:
        kinds = [t.kind for t in tokenize("true false True False")[:-1]]
        assert kinds == [TokenKind.TRUE, TokenKind.FALSE, TokenKind.TRUE, TokenKind.FALSE]

    def test_reserved_words(self) -> None:
        for word in ("if", "let", "do", "while", "try", "class", "lambda"):
            assert tokenize(word)[0].kind == TokenKind.KEYWORD, word

    def test_identifier(self) -> None:
        tokens = tokenize("square")
        assert tokens[0].kind == TokenKind.IDENT
        assert tokens[0].value == "square"

    def test_two_character_operators(self) -> None:
        tokens = tokenize(">= <= !=")
        assert [t.value for t in tokens[:-1]] == [">=", "<=", "!="]
        assert all(t.kind == TokenKind.OPERATOR for t in tokens[:-1])

    def test_hyphenated_name_is_one_identifier(self) -> None:
        tokens = tokenize("(with-vars [a] a)")
        assert tokens[1].kind == TokenKind.IDENT
        assert tokens[1].value == "with-vars"

    def test_spaced_minus_is_an_operator(self) -> None:
        kinds = [t.kind for t in tokenize("a - b")[:-1]]
        assert kinds == [TokenKind.IDENT, TokenKind.OPERATOR, TokenKind.IDENT]

    def test_negative_number_is_two_tokens(self) -> None:
        tokens = tokenize("-5")
        assert tokens[0].kind == TokenKind.OPERATOR
        assert tokens[1].kind == TokenKind.INT

    def test_punctuation(self) -> None:
        kinds = [t.kind for t in tokenize("[a, b]")[:-1]]
        assert kinds == [
            TokenKind.LBRACKET,
            TokenKind.IDENT,
            TokenKind.COMMA,
            TokenKind.IDENT,
            TokenKind.RBRACKET,
        ]

    def test_comments_are_skipped(self) -> None:
        tokens = tokenize("# a comment\n(x) # trailing")
        assert [t.kind for t in tokens] == [
            TokenKind.LPAREN,
            TokenKind.IDENT,
            TokenKind.RPAREN,
            TokenKind.EOF,
        ]

    def test_positions_are_one_indexed(self) -> None:
        tokens = tokenize("(foo bar)")
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        assert (tokens[2].line, tokens[2].column) == (1, 6)

    def test_indentation_is_not_significant(self) -> None:
        tokens = tokenize("  (+ 1\n     2)")
        assert (tokens[0].line, tokens[0].column) == (1, 3)
        two = tokens[3]
        assert two.value == "2"
        assert (two.line, two.column) == (2, 6)

    def test_multiline_string_keeps_indentation(self) -> None:
        tokens = tokenize('  (str """a\n    b""")')
        assert tokens[2].kind == TokenKind.STRING
        assert tokens[2].value == "a\n    b"

    def test_indentation_after_multiline_string(self) -> None:
        tokens = tokenize('(f """x\n  y"""\n    z)')
        z = tokens[3]
        assert z.value == "z"
        assert (z.line, z.column) == (3, 5)

    def test_escaped_newline_in_string_keeps_indentation(self) -> None:
        tokens = tokenize('(f "a\\\n  b")')
        assert tokens[2].value == "a  b"

    def test_empty_source(self) -> None:
        tokens = tokenize("")
        assert [t.kind for t in tokens] == [TokenKind.EOF]


# ============================================================================
# Parser tests
# ============================================================================


class TestParser:
    """Parser builds expression trees."""

    def test_integer_literal(self) -> None:
        assert parse_expr("42") == Literal(value=42, text="42")

    def test_string_literal(self) -> None:
        expr = parse_expr('"hi"')
        assert isinstance(expr, Literal)
        assert expr.value == "hi"

    def test_boolean_literal(self) -> None:
        expr = parse_expr("true")
        assert isinstance(expr, Literal)
        assert expr.value is True

    def test_symbol(self) -> None:
        assert parse_expr("x") == Symbol(name="x")

    def test_reserved_word_is_symbol(self) -> None:
        assert parse_expr("let") == Symbol(name="let")

    def test_operator(self) -> None:
        assert parse_expr("+") == Operator(symbol="+")

    def test_list(self) -> None:
        expr = parse_expr("(+ 1 2 3)")
        assert isinstance(expr, List)
        assert expr.head == Operator(symbol="+")
        assert [a.value for a in expr.args] == [1, 2, 3]

    def test_empty_list_and_vector(self) -> None:
        assert parse_expr("()") == List(items=[])
        assert parse_expr("[]") == Vector(items=[])

    def test_nested(self) -> None:
        expr = parse_expr("(let [x 3] (* x x))")
        assert isinstance(expr, List)
        assert expr.items[0] == Symbol(name="let")
        assert isinstance(expr.items[1], Vector)
        assert isinstance(expr.items[2], List)

    def test_negation_form(self) -> None:
        expr = parse_expr("(-5)")
        assert isinstance(expr, List)
        assert expr.items[0] == Operator(symbol="-")
        assert expr.items[1].value == 5

    def test_multiline(self) -> None:
        expr = parse_expr(
            """
            (let [x 1
                  y 2]
              (+ x y))
            """
        )
        assert isinstance(expr, List)
        assert len(expr.items) == 3

    def test_str_round_trip(self) -> None:
        source = '(if (> x 3) "big" [1 2.5 true])'
        assert str(parse_expr(source)) == source

    def test_deterministic(self) -> None:
        assert parse_expr("(a [b c] (d))") == parse_expr("(a [b c] (d))")


class TestParserErrors:
    """Malformed input raises ParseError with a location."""

    def test_unclosed_list(self) -> None:
        with pytest.raises(ParseError):
            parse_expr("(+ 1 2")

    def test_mismatched_closer(self) -> None:
        with pytest.raises(ParseError):
            parse_expr("(+ 1 2]")

    def test_stray_closer(self) -> None:
        with pytest.raises(ParseError):
            parse_expr(")")

    def test_trailing_input(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_expr("(+ 1 2) 3")
        assert "after expression" in exc.value.message
        assert exc.value.context is not None
        assert (exc.value.context.line, exc.value.context.column) == (1, 9)

    def test_unexpected_token(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_expr("(+ 1 @)")
        assert "Unexpected token" in exc.value.message
        assert exc.value.context.column == 6

    def test_unlexable_character_is_named(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_expr("(+ 1 $)")
        assert exc.value.context.column == 6
        assert "' '" not in exc.value.message

    def test_comma_outside_capture(self) -> None:
        with pytest.raises(ParseError):
            parse_expr("(a, b)")

    def test_empty_input(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_expr("")
        assert "end of input" in exc.value.message

    def test_source_name_in_context(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_expr("(a @)", source_name="prog.lisp")
        assert exc.value.context.file == "prog.lisp"
        assert str(exc.value).startswith("prog.lisp:1:4")

    def test_error_snippet_has_marker(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_expr("(a\n  @)")
        assert "^^^" in str(exc.value)


# ============================================================================
# Capture wrapper
# ============================================================================


class TestParseInvocation:
    """[a, b] expr captures names; anything else is a plain expression."""

    def test_capture(self) -> None:
        expr = parse_invocation("[x, y] (+ x y)")
        assert isinstance(expr, List)
        assert expr.items[0] == Symbol(name="with-vars")
        assert expr.items[1] == Vector(items=[Symbol(name="x"), Symbol(name="y")])
        assert str(expr.items[2]) == "(+ x y)"

    def test_single_capture_with_trailing_comma(self) -> None:
        expr = parse_invocation("[x,] (* x 2)")
        assert expr.items[1] == Vector(items=[Symbol(name="x")])

    def test_plain_expression(self) -> None:
        assert parse_invocation("(+ 1 2)") == parse_expr("(+ 1 2)")

    def test_vector_of_literals_falls_back(self) -> None:
        assert parse_invocation("[1 2 3]") == parse_expr("[1 2 3]")

    def test_vector_without_body_falls_back(self) -> None:
        assert parse_invocation("[x]") == Vector(items=[Symbol(name="x")])

    def test_space_separated_names_fall_back(self) -> None:
        assert parse_invocation("[x y]") == Vector(items=[Symbol(name="x"), Symbol(name="y")])

    def test_broken_input_still_errors(self) -> None:
        with pytest.raises(ParseError):
            parse_invocation("[x, y] (+ x")

    def test_body_error_located_in_body(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_invocation("[x, y] (+ x ,)")
        assert exc.value.context is not None
        assert (exc.value.context.line, exc.value.context.column) == (1, 13)

    def test_trailing_input_after_body_located(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_invocation("[x] (+ x 1) 2")
        assert "after expression" in exc.value.message
        assert exc.value.context.column == 13


# ============================================================================
# Programs
# ============================================================================


class TestParseProgram:
    """Multiple top-level forms keep their start positions."""

    def test_forms_and_positions(self) -> None:
        forms = parse_program("(defn f [x] x)\n\n  (f 1)")
        assert len(forms) == 2
        assert (forms[0].line, forms[0].column) == (1, 1)
        assert (forms[1].line, forms[1].column) == (3, 3)
        assert str(forms[1].expr) == "(f 1)"

    def test_empty_program(self) -> None:
        assert parse_program("# nothing here\n") == []

    def test_error_in_later_form(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_program("(a)\n(b @)")
        assert exc.value.context.line == 2


class TestBracketDepth:
    """Balance check used for REPL continuation lines."""

    @pytest.mark.parametrize(
        "source,depth",
        [
            ("(+ 1 2)", 0),
            ("(+ 1", 1),
            ("(let [x", 2),
            ("(a [b])", 0),
            ('(str "(")', 0),
            ("(a # (\n", 1),
            (")", -1),
        ],
    )
    def test_depth(self, source: str, depth: int) -> None:
        assert bracket_depth(source) == depth
