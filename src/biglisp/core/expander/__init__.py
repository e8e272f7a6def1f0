"""
BigLisp expander.

Compiles expression trees into Python expression fragments.

Usage:
    from biglisp.core.expander import expand, to_source
    from biglisp.core.reader import parse_expr

    node = expand(parse_expr("(let [x 3 y 4] (+ x y))"))
    to_source(node)
    # '(lambda x: (lambda y: x + y)(4))(3)'
"""

from biglisp.core.expander.expander import (
    OPERATOR_TAGS,
    Expander,
    compile_expr,
    expand,
    expand_to_source,
    to_source,
)
from biglisp.core.expander.operations import (
    OPERATIONS,
    Arity,
    Operation,
    describe_operation,
    operation_names,
)

__all__ = [
    "OPERATIONS",
    "OPERATOR_TAGS",
    "Arity",
    "Expander",
    "Operation",
    "compile_expr",
    "describe_operation",
    "expand",
    "expand_to_source",
    "operation_names",
    "to_source",
]
