"""Core BigLisp functionality: IR, reader, expander, configuration and errors."""

from . import ir
from .config import BigLispConfig, ExpanderConfig, load_config
from .errors import (
    BigLispError,
    ConfigError,
    ErrorContext,
    ExpansionError,
    ParseError,
)
from .expander import compile_expr, expand, expand_to_source, to_source
from .reader import parse_expr, parse_invocation, parse_program

__all__ = [
    "ir",
    "BigLispConfig",
    "BigLispError",
    "ConfigError",
    "ErrorContext",
    "ExpanderConfig",
    "ExpansionError",
    "ParseError",
    "compile_expr",
    "expand",
    "expand_to_source",
    "load_config",
    "parse_expr",
    "parse_invocation",
    "parse_program",
    "to_source",
]
