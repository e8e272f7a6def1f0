"""Tests for error formatting."""

from __future__ import annotations

from biglisp.core.errors import (
    BigLispError,
    ErrorContext,
    ExpansionError,
    ParseError,
    make_expansion_error,
    make_parse_error,
    source_snippet,
)


class TestErrorContext:
    def test_location_only(self) -> None:
        assert ErrorContext(file="prog.lisp", line=3, column=7).format() == "prog.lisp:3:7"

    def test_snippet_marker(self) -> None:
        context = ErrorContext(file="p", line=2, column=3, snippet="(a\n  @)")
        assert context.format() == "p:2:3\n   1 | (a\n   2 |   @)\n" + " " * 9 + "^^^"


class TestHelpers:
    def test_source_snippet_radius(self) -> None:
        source = "\n".join(f"line{i}" for i in range(1, 11))
        assert source_snippet(source, 5) == "line3\nline4\nline5\nline6\nline7"
        assert source_snippet(source, 1) == "line1\nline2\nline3"

    def test_make_parse_error(self) -> None:
        error = make_parse_error("bad token", "<lisp>", 1, 4)
        assert isinstance(error, ParseError)
        assert isinstance(error, BigLispError)
        assert str(error) == "<lisp>:1:4\nbad token"

    def test_make_expansion_error(self) -> None:
        error = make_expansion_error("let", "requires a vector", "(let [name value ...] body ...)")
        assert error.operation == "let"
        assert error.context is None
        assert str(error) == "let: requires a vector\n  usage: (let [name value ...] body ...)"

    def test_with_context_keeps_fields(self) -> None:
        error = make_expansion_error("if", "requires 2 to 3 arguments, got 1", "(if cond then [else])")
        located = error.with_context(ErrorContext(file="f.lisp", line=2, column=1))
        assert isinstance(located, ExpansionError)
        assert located.operation == "if"
        assert located.usage == "(if cond then [else])"
        assert str(located).startswith("f.lisp:2:1\nif: requires")

    def test_with_context_replaces_message(self) -> None:
        error = ParseError("bad")
        located = error.with_context(ErrorContext(file="f", line=1, column=1), "worse")
        assert located.message == "worse"
        assert error.message == "bad"
