"""
BigLisp - an S-expression surface syntax that expands to Python.

Parses Lisp-style forms, expands them through a table of operations into
Python expression trees, and evaluates the result in the caller's scope.
"""

from __future__ import annotations

from ._version import get_version

# Re-export commonly used types for convenience
from .core import ir
from .core.config import BigLispConfig, ExpanderConfig, load_config
from .core.errors import BigLispError, ConfigError, ExpansionError, ParseError
from .embed import Environment, lisp
from .runtime import UnhandledError

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "BigLispConfig",
    "BigLispError",
    "ConfigError",
    "Environment",
    "ExpanderConfig",
    "ExpansionError",
    "ParseError",
    "UnhandledError",
    "lisp",
    "load_config",
]
