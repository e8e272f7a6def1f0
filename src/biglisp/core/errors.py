"""
Error types for BigLisp parsing, expansion, and configuration.
"""

from dataclasses import dataclass
from typing import Optional


class BigLispError(Exception):
    """Base exception for all BigLisp errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message

    def with_context(self, context: "ErrorContext", message: str | None = None) -> "BigLispError":
        """Return a copy of this error located at ``context``."""
        return type(self)(message or self.message, context)


class ParseError(BigLispError):
    """
    Raised when surface syntax cannot be parsed.

    Examples:
    - Unclosed or mismatched delimiters
    - Tokens that match no grammar alternative
    - Input the host tokenizer rejects
    - Trailing input after a complete expression
    """

    pass


class ExpansionError(BigLispError):
    """
    Raised when a recognized operation has the wrong number or shape of arguments.

    Examples:
    - ``let`` without a vector of bindings
    - ``defn`` missing its parameter vector
    - ``if`` with four arguments

    Expansion errors are reported before any code is generated.
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        operation: str | None = None,
        usage: str | None = None,
    ):
        self.operation = operation
        self.usage = usage
        super().__init__(message, context)

    def with_context(self, context: "ErrorContext", message: str | None = None) -> "ExpansionError":
        return type(self)(message or self.message, context, self.operation, self.usage)


class ConfigError(BigLispError):
    """
    Raised when a configuration file cannot be loaded.

    Examples:
    - Malformed TOML
    - Unknown option values
    """

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Source name (a path, or a pseudo-name such as ``<lisp>``)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet showing the error location
    """

    file: str
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "prog.lisp:10:5"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet starts at most 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)

            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^^^")

        return "\n".join(formatted)


def source_snippet(source: str, line: int, radius: int = 2) -> str:
    """Cut the lines surrounding ``line`` out of ``source``."""
    lines = source.split("\n")
    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    return "\n".join(lines[start - 1 : end])


def make_parse_error(
    message: str,
    file: str,
    line: int,
    column: int,
    snippet: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        file: Source name
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return ParseError(message, context)


def make_expansion_error(
    operation: str,
    problem: str,
    usage: str | None = None,
) -> ExpansionError:
    """
    Helper to create an ExpansionError naming the operation and its shape.

    Args:
        operation: Operation name as written in the source
        problem: What is wrong with the arguments
        usage: Required shape, e.g. ``(let [name value ...] body ...)``

    Returns:
        ExpansionError without location; callers that know the invocation
        site attach it with ``with_context``.
    """
    message = f"{operation}: {problem}"
    if usage:
        message += f"\n  usage: {usage}"
    return ExpansionError(message, operation=operation, usage=usage)
