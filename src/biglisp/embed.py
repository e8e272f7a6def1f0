"""
Evaluate BigLisp from Python.

``lisp()`` is the embedding entry point: it reads the invocation (with the
optional ``[a, b]`` capture list), expands it, compiles the fragment and
evaluates it in the caller's scope::

    from biglisp import lisp

    x, y = 10, 5
    lisp("[x, y] (+ x y)")   # 15

``Environment`` keeps a namespace alive across forms, for multi-form
programs and the REPL.
"""

from __future__ import annotations

import logging
import sys
from types import CodeType, FrameType
from typing import Any

from biglisp import runtime
from biglisp.core.config import ExpanderConfig
from biglisp.core.errors import BigLispError, ErrorContext, source_snippet
from biglisp.core.expander import compile_expr, to_source
from biglisp.core.expander.expander import Expander
from biglisp.core.ir.expressions import Expr, TopLevelForm
from biglisp.core.reader import parse_invocation, parse_program

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_NAME = "<lisp>"


def install_runtime(namespace: dict[str, Any], config: ExpanderConfig) -> dict[str, Any]:
    """Make the runtime alias and operator slots visible to generated code.

    Names the namespace already defines are left alone, so a caller can
    supply its own ``op_plus``.
    """
    namespace.setdefault(config.runtime_alias, runtime)
    for tag, fn in runtime.OPERATOR_FUNCTIONS.items():
        namespace.setdefault(config.operator_prefix + tag, fn)
    return namespace


def compile_form(
    expr: Expr,
    config: ExpanderConfig,
    source_name: str = DEFAULT_SOURCE_NAME,
) -> CodeType:
    """Compile one expression, logging the generated source."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Generated: %s", to_source(Expander(config).expand(expr)))
    return compile_expr(expr, config, filename=source_name)


def compile_top_level(
    form: TopLevelForm,
    config: ExpanderConfig,
    source: str,
    source_name: str = DEFAULT_SOURCE_NAME,
) -> CodeType:
    """Compile a form of a program; expansion errors are located at the form."""
    try:
        return compile_form(form.expr, config, source_name)
    except BigLispError as e:
        if e.context is not None:
            raise
        context = ErrorContext(
            file=source_name,
            line=form.line,
            column=form.column,
            snippet=source_snippet(source, form.line),
        )
        raise e.with_context(context) from e


def lisp(
    source: str,
    namespace: dict[str, Any] | None = None,
    *,
    config: ExpanderConfig | None = None,
) -> Any:
    """
    Expand and evaluate one invocation.

    Args:
        source: One expression, optionally preceded by a capture list
            (``[x, y] (+ x y)``)
        namespace: Evaluate in this mapping; ``defn`` names bound here persist.
            When omitted, a copy of the caller's globals and locals is used
            and the caller's module is left untouched.
        config: Expander naming options

    Returns:
        The value of the expression

    Raises:
        ParseError: If the source cannot be parsed
        ExpansionError: If an operation has the wrong arguments
    """
    config = config or ExpanderConfig()
    caller = sys._getframe(1)

    try:
        expr = parse_invocation(source)
        code = compile_form(expr, config)
    except BigLispError as e:
        raise _at_call_site(e, caller) from e

    if namespace is None:
        namespace = {**caller.f_globals, **caller.f_locals}
    install_runtime(namespace, config)
    return eval(code, namespace)


def _at_call_site(error: BigLispError, frame: FrameType) -> BigLispError:
    """Relocate an error to the Python line that called ``lisp()``."""
    message = error.message
    if error.context is not None:
        message = f"{message} (lisp source line {error.context.line}, column {error.context.column})"
    context = ErrorContext(file=frame.f_code.co_filename, line=frame.f_lineno, column=1)
    return error.with_context(context, message)


class Environment:
    """
    Persistent namespace for evaluating a sequence of forms.

    Each form sees the bindings made by earlier ones, so a ``defn`` in one
    form can be called from the next.
    """

    def __init__(
        self,
        config: ExpanderConfig | None = None,
        namespace: dict[str, Any] | None = None,
    ) -> None:
        self.config = config or ExpanderConfig()
        self.namespace = install_runtime(namespace if namespace is not None else {}, self.config)

    def eval_form(self, expr: Expr, source_name: str = DEFAULT_SOURCE_NAME) -> Any:
        """Evaluate one parsed expression."""
        return eval(compile_form(expr, self.config, source_name), self.namespace)

    def eval_top_level(
        self, form: TopLevelForm, source: str, source_name: str = DEFAULT_SOURCE_NAME
    ) -> Any:
        """Evaluate one form of a program, locating expansion errors at the form."""
        return eval(compile_top_level(form, self.config, source, source_name), self.namespace)

    def run_source(self, source: str, source_name: str = DEFAULT_SOURCE_NAME) -> Any:
        """Evaluate every top-level form in ``source``; return the last value.

        All forms are expanded before the first one runs, so an expansion
        error anywhere means nothing is evaluated.
        """
        forms = parse_program(source, source_name)
        compiled = [compile_top_level(f, self.config, source, source_name) for f in forms]
        result = None
        for code in compiled:
            result = eval(code, self.namespace)
        return result

    def __contains__(self, name: str) -> bool:
        return name in self.namespace

    def __getitem__(self, name: str) -> Any:
        return self.namespace[name]
