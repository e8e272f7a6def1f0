"""
Expander for BigLisp expression trees.

Translates an ``Expr`` tree into a Python ``ast.expr`` fragment. Nothing is
evaluated here: the fragment is handed to the host compiler by the caller.
Pure translation with no state shared between calls.
"""

from __future__ import annotations

import ast
import keyword
import logging
from collections.abc import Sequence
from types import CodeType

from biglisp.core.config import ExpanderConfig
from biglisp.core.errors import ExpansionError, make_expansion_error
from biglisp.core.expander.operations import OPERATIONS
from biglisp.core.ir.expressions import (
    Expr,
    List,
    Literal,
    Operator,
    Symbol,
    Vector,
)

logger = logging.getLogger(__name__)

OPERATOR_TAGS: dict[str, str] = {
    "+": "plus",
    "-": "minus",
    "*": "mul",
    "/": "div",
    "=": "eq",
    "<": "lt",
    ">": "gt",
    "%": "mod",
    ">=": "gte",
    "<=": "lte",
    "!=": "ne",
}


def expand(expr: Expr, config: ExpanderConfig | None = None) -> ast.expr:
    """Expand an expression tree into a Python expression node.

    Args:
        expr: Parsed expression tree.
        config: Naming options; defaults to ``ExpanderConfig()``.

    Returns:
        A single ``ast.expr`` (never a statement).

    Raises:
        ExpansionError: If a recognized operation has the wrong arguments.
    """
    return Expander(config or ExpanderConfig()).expand(expr)


def to_source(node: ast.expr) -> str:
    """Render an expanded fragment as Python source text."""
    return ast.unparse(node)


def expand_to_source(expr: Expr, config: ExpanderConfig | None = None) -> str:
    """Expand and render in one step."""
    return to_source(expand(expr, config))


def compile_expr(
    expr: Expr,
    config: ExpanderConfig | None = None,
    filename: str = "<lisp>",
) -> CodeType:
    """Expand and hand the fragment to the host compiler in ``eval`` mode."""
    tree = ast.Expression(body=expand(expr, config))
    ast.fix_missing_locations(tree)
    return compile(tree, filename, "eval")


class Expander:
    """Structural recursion over ``Expr`` producing ``ast.expr`` nodes."""

    def __init__(self, config: ExpanderConfig) -> None:
        self.config = config

    def expand(self, expr: Expr) -> ast.expr:
        """Dispatch expansion to the appropriate handler."""
        if isinstance(expr, Symbol):
            return self.name(expr.name)

        if isinstance(expr, Literal):
            return ast.Constant(value=expr.value)

        if isinstance(expr, Operator):
            return self.operator_reference(expr.symbol)

        if isinstance(expr, Vector):
            return ast.List(elts=self.expand_all(expr.items), ctx=ast.Load())

        if isinstance(expr, List):
            return self._expand_list(expr)

        raise ExpansionError(f"Unknown expression type: {type(expr).__name__}")

    def expand_all(self, exprs: Sequence[Expr]) -> list[ast.expr]:
        return [self.expand(e) for e in exprs]

    def _expand_list(self, expr: List) -> ast.expr:
        if not expr.items:
            return ast.Constant(value=None)

        head, args = expr.items[0], expr.items[1:]

        if isinstance(head, (Symbol, Operator)):
            key = head.name if isinstance(head, Symbol) else head.symbol
            operation = OPERATIONS.get(key)
            if operation is not None:
                if not operation.arity.accepts(len(args)):
                    raise make_expansion_error(
                        key,
                        f"requires {operation.arity.describe()}, got {len(args)}",
                        operation.usage_for(key),
                    )
                logger.debug("Expanding special form %s", key)
                return operation.handler(self, key, args)

            logger.debug("No operation named %s; expanding as a plain call", key)

        return self.call(self.expand(head), self.expand_all(args))

    # -- Node builders used by operation handlers --

    def identifier(self, name: str) -> str:
        """Map a surface name onto a Python identifier."""
        result = name
        if "-" in result:
            if not self.config.mangle_hyphens:
                raise ExpansionError(
                    f"{name!r} is not a Python identifier (hyphen mangling is disabled)"
                )
            result = result.replace("-", "_")
        if keyword.iskeyword(result):
            result += "_"
        return result

    def name(self, name: str) -> ast.Name:
        return ast.Name(id=self.identifier(name), ctx=ast.Load())

    def operator_reference(self, symbol: str) -> ast.Name:
        """An operator used as a value names a conventional function slot."""
        tag = OPERATOR_TAGS.get(symbol)
        if tag is None:
            raise ExpansionError(f"Unknown operator: {symbol!r}")
        return ast.Name(id=self.config.operator_prefix + tag, ctx=ast.Load())

    def runtime(self, helper: str, *args: ast.expr) -> ast.Call:
        """Call a helper from biglisp.runtime through the runtime alias."""
        func = ast.Attribute(
            value=ast.Name(id=self.config.runtime_alias, ctx=ast.Load()),
            attr=helper,
            ctx=ast.Load(),
        )
        return self.call(func, list(args))

    @staticmethod
    def call(func: ast.expr, args: list[ast.expr]) -> ast.Call:
        return ast.Call(func=func, args=args, keywords=[])

    @staticmethod
    def function(params: Sequence[str], body: ast.expr) -> ast.Lambda:
        return ast.Lambda(
            args=ast.arguments(
                posonlyargs=[],
                args=[ast.arg(arg=p) for p in params],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[],
            ),
            body=body,
        )

    def sequence(self, exprs: Sequence[Expr]) -> ast.expr:
        """Evaluate in order and yield the last value; empty yields None."""
        if not exprs:
            return ast.Constant(value=None)
        if len(exprs) == 1:
            return self.expand(exprs[0])
        return ast.Subscript(
            value=ast.Tuple(elts=self.expand_all(exprs), ctx=ast.Load()),
            slice=ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=1)),
            ctx=ast.Load(),
        )
