"""
BigLisp Intermediate Representation (IR) types.

The expression tree produced by the reader and consumed by the expander.
"""

from .expressions import (
    Expr,
    List,
    Literal,
    Operator,
    Symbol,
    TopLevelForm,
    Vector,
)

__all__ = [
    "Expr",
    "List",
    "Literal",
    "Operator",
    "Symbol",
    "TopLevelForm",
    "Vector",
]
