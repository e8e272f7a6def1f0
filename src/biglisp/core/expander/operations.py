"""
Operation table for the BigLisp expander.

Maps operation names to an arity rule, a usage string and a handler that
builds the Python expression for the form. Arity is checked by the
expander before the handler runs; handlers check argument shapes.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from biglisp.core.errors import make_expansion_error
from biglisp.core.ir.expressions import Expr, Symbol, Vector

if TYPE_CHECKING:
    from biglisp.core.expander.expander import Expander

Handler = Callable[["Expander", str, list[Expr]], ast.expr]


@dataclass(frozen=True)
class Arity:
    """Allowed argument counts: ``minimum`` up to ``maximum`` (None = no limit)."""

    minimum: int
    maximum: int | None = None

    def accepts(self, count: int) -> bool:
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def describe(self) -> str:
        if self.maximum is None:
            if self.minimum == 0:
                return "any number of arguments"
            return f"at least {_plural(self.minimum)}"
        if self.minimum == self.maximum:
            return f"exactly {_plural(self.minimum)}"
        return f"{self.minimum} to {_plural(self.maximum)}"


def exactly(n: int) -> Arity:
    return Arity(n, n)


def at_least(n: int) -> Arity:
    return Arity(n)


@dataclass(frozen=True)
class Operation:
    """One entry of the operation table."""

    name: str
    arity: Arity
    usage: str
    summary: str
    handler: Handler

    def usage_for(self, alias: str) -> str:
        return self.usage.format(name=alias)


OPERATIONS: dict[str, Operation] = {}


def _operation(*names: str, arity: Arity, usage: str, summary: str) -> Callable[[Handler], Handler]:
    """Register a handler under one or more names."""

    def decorator(handler: Handler) -> Handler:
        for name in names:
            OPERATIONS[name] = Operation(name, arity, usage, summary, handler)
        return handler

    return decorator


def _plural(n: int) -> str:
    return f"{n} argument" if n == 1 else f"{n} arguments"


def _fold(ex: Expander, args: list[Expr], op: type[ast.operator]) -> ast.expr:
    """Left fold: ((a op b) op c) ..."""
    result = ex.expand(args[0])
    for arg in args[1:]:
        result = ast.BinOp(left=result, op=op(), right=ex.expand(arg))
    return result


def _compare(left: ast.expr, op: type[ast.cmpop], right: ast.expr) -> ast.Compare:
    return ast.Compare(left=left, ops=[op()], comparators=[right])


def _symbol_names(ex: Expander, operation: str, vector: Vector, usage: str) -> list[str]:
    """Python identifiers for a vector that must hold distinct symbols."""
    names: list[str] = []
    for item in vector.items:
        if not isinstance(item, Symbol):
            raise make_expansion_error(operation, f"expected a symbol, got {item}", usage)
        name = ex.identifier(item.name)
        if name in names:
            raise make_expansion_error(operation, f"duplicate name {item.name!r}", usage)
        names.append(name)
    return names


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


@_operation("+", arity=at_least(0), usage="({name} x ...)", summary="sum, 0 when empty")
def _expand_add(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    if not args:
        return ast.Constant(value=0)
    return _fold(ex, args, ast.Add)


@_operation("-", arity=at_least(1), usage="({name} x y ...)", summary="negation or difference")
def _expand_subtract(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    if len(args) == 1:
        return ast.UnaryOp(op=ast.USub(), operand=ex.expand(args[0]))
    return _fold(ex, args, ast.Sub)


@_operation("*", arity=at_least(0), usage="({name} x ...)", summary="product, 1 when empty")
def _expand_multiply(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    if not args:
        return ast.Constant(value=1)
    return _fold(ex, args, ast.Mult)


@_operation("/", arity=at_least(2), usage="({name} x y ...)", summary="quotient")
def _expand_divide(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return _fold(ex, args, ast.Div)


@_operation("%", "modulo", arity=exactly(2), usage="({name} x y)", summary="remainder")
def _expand_modulo(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return _fold(ex, args, ast.Mod)


@_operation("inc", arity=exactly(1), usage="(inc x)", summary="x + 1")
def _expand_inc(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ast.BinOp(left=ex.expand(args[0]), op=ast.Add(), right=ast.Constant(value=1))


@_operation("dec", arity=exactly(1), usage="(dec x)", summary="x - 1")
def _expand_dec(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ast.BinOp(left=ex.expand(args[0]), op=ast.Sub(), right=ast.Constant(value=1))


@_operation("abs", arity=exactly(1), usage="(abs x)", summary="absolute value of int(x)")
def _expand_abs(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ex.runtime("absolute", ex.expand(args[0]))


@_operation("min", "max", arity=at_least(2), usage="({name} x y ...)", summary="pairwise min/max")
def _expand_min_max(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    helper = "minimum" if name == "min" else "maximum"
    result = ex.expand(args[0])
    for arg in args[1:]:
        result = ex.runtime(helper, result, ex.expand(arg))
    return result


# ---------------------------------------------------------------------------
# Comparison and predicates
# ---------------------------------------------------------------------------

_COMPARATORS: dict[str, type[ast.cmpop]] = {
    "=": ast.Eq,
    "eq": ast.Eq,
    "<": ast.Lt,
    ">": ast.Gt,
    "gte": ast.GtE,
    ">=": ast.GtE,
    "lte": ast.LtE,
    "<=": ast.LtE,
    "ne": ast.NotEq,
    "!=": ast.NotEq,
}


@_operation(*_COMPARATORS, arity=exactly(2), usage="({name} x y)", summary="comparison")
def _expand_comparison(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    left, right = ex.expand_all(args)
    return _compare(left, _COMPARATORS[name], right)


_SIGN_PREDICATES: dict[str, type[ast.cmpop]] = {
    "zero": ast.Eq,
    "pos": ast.Gt,
    "neg": ast.Lt,
}


@_operation(*_SIGN_PREDICATES, arity=exactly(1), usage="({name} x)", summary="compare with 0")
def _expand_sign_predicate(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return _compare(ex.expand(args[0]), _SIGN_PREDICATES[name], ast.Constant(value=0))


@_operation("even", "odd", arity=exactly(1), usage="({name} x)", summary="parity test")
def _expand_parity(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    remainder = ast.BinOp(left=ex.expand(args[0]), op=ast.Mod(), right=ast.Constant(value=2))
    op = ast.Eq if name == "even" else ast.NotEq
    return _compare(remainder, op, ast.Constant(value=0))


# ---------------------------------------------------------------------------
# Boolean logic
# ---------------------------------------------------------------------------


@_operation("and", "or", arity=at_least(2), usage="({name} x y ...)", summary="short-circuit logic")
def _expand_bool(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    op = ast.And() if name == "and" else ast.Or()
    return ast.BoolOp(op=op, values=ex.expand_all(args))


@_operation("not", arity=exactly(1), usage="(not x)", summary="logical negation")
def _expand_not(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ast.UnaryOp(op=ast.Not(), operand=ex.expand(args[0]))


# ---------------------------------------------------------------------------
# Control flow and bindings
# ---------------------------------------------------------------------------


@_operation("if", arity=Arity(2, 3), usage="(if cond then [else])", summary="conditional")
def _expand_if(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    test = ex.expand(args[0])
    body = ex.expand(args[1])
    orelse = ex.expand(args[2]) if len(args) == 3 else ast.Constant(value=None)
    return ast.IfExp(test=test, body=body, orelse=orelse)


_LET_USAGE = "(let [name value ...] body ...)"


@_operation("let", arity=at_least(2), usage=_LET_USAGE, summary="sequential local bindings")
def _expand_let(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    bindings = args[0]
    if not isinstance(bindings, Vector):
        raise make_expansion_error(name, f"requires a vector of bindings, got {bindings}", _LET_USAGE)
    if len(bindings.items) % 2:
        raise make_expansion_error(
            name, "requires an even number of forms in the binding vector", _LET_USAGE
        )

    pairs: list[tuple[str, Expr]] = []
    for target, value in zip(bindings.items[::2], bindings.items[1::2], strict=True):
        if not isinstance(target, Symbol):
            raise make_expansion_error(name, f"binding name must be a symbol, got {target}", _LET_USAGE)
        pairs.append((ex.identifier(target.name), value))

    # Innermost first, so each value is evaluated where earlier names are bound
    result = ex.sequence(args[1:])
    for target, value in reversed(pairs):
        result = ex.call(ex.function([target], result), [ex.expand(value)])
    return result


_DEFN_USAGE = "(defn name [param ...] body ...)"


@_operation("defn", arity=at_least(3), usage=_DEFN_USAGE, summary="named fixed-int function")
def _expand_defn(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    fn_name, params = args[0], args[1]
    if not isinstance(fn_name, Symbol):
        raise make_expansion_error(name, f"function name must be a symbol, got {fn_name}", _DEFN_USAGE)
    if not isinstance(params, Vector):
        raise make_expansion_error(name, f"requires a parameter vector, got {params}", _DEFN_USAGE)

    param_names = _symbol_names(ex, name, params, _DEFN_USAGE)
    body = ex.function(param_names, ex.sequence(args[2:]))
    wrapped = ex.runtime("fixed", ast.Constant(value=fn_name.name), body)
    target = ast.Name(id=ex.identifier(fn_name.name), ctx=ast.Store())
    return ast.NamedExpr(target=target, value=wrapped)


@_operation("call", arity=at_least(1), usage="(call f arg ...)", summary="invoke a callable value")
def _expand_call(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ex.call(ex.expand(args[0]), ex.expand_all(args[1:]))


@_operation("do", arity=at_least(0), usage="(do form ...)", summary="sequence, value of last")
def _expand_do(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ex.sequence(args)


@_operation("while", arity=exactly(2), usage="(while cond body)", summary="loop, value of last body")
def _expand_while(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    condition, body = ex.expand_all(args)
    return ex.runtime("loop", ex.function([], condition), ex.function([], body))


_DOTIMES_USAGE = "(dotimes var count body)"


@_operation("dotimes", arity=exactly(3), usage=_DOTIMES_USAGE, summary="run body count times")
def _expand_dotimes(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    var, count, body = args
    if not isinstance(var, Symbol):
        raise make_expansion_error(name, f"loop variable must be a symbol, got {var}", _DOTIMES_USAGE)
    return ex.runtime(
        "repeat",
        ex.expand(count),
        ex.function([ex.identifier(var.name)], ex.expand(body)),
    )


_WITH_VARS_USAGE = "(with-vars [name ...] body ...)"


@_operation("with-vars", arity=at_least(2), usage=_WITH_VARS_USAGE, summary="capture variables")
def _expand_with_vars(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    captures = args[0]
    if not isinstance(captures, Vector):
        raise make_expansion_error(
            name, f"requires a vector of variable names, got {captures}", _WITH_VARS_USAGE
        )
    names = _symbol_names(ex, name, captures, _WITH_VARS_USAGE)
    rebound = [ast.Name(id=n, ctx=ast.Load()) for n in names]
    return ex.call(ex.function(names, ex.sequence(args[1:])), rebound)


@_operation("try", arity=Arity(1, 2), usage="(try body [fallback])", summary="recover from errors")
def _expand_try(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    thunks = [ex.function([], node) for node in ex.expand_all(args)]
    return ex.runtime("recover", *thunks)


# ---------------------------------------------------------------------------
# Collections and strings
# ---------------------------------------------------------------------------


@_operation("first", "rest", "count", arity=exactly(1), usage="({name} coll)", summary="collection access")
def _expand_collection(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ex.runtime(name, ex.expand(args[0]))


@_operation("cons", arity=exactly(2), usage="(cons x coll)", summary="prepend to a copy")
def _expand_cons(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    return ex.runtime("cons", *ex.expand_all(args))


@_operation("str", arity=at_least(0), usage="(str x ...)", summary="concatenate as strings")
def _expand_str(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    if not args:
        return ast.Constant(value="")
    return ex.runtime("concat", *ex.expand_all(args))


@_operation("println", arity=at_least(1), usage="(println x ...)", summary="debug-print, yields None")
def _expand_println(ex: Expander, name: str, args: list[Expr]) -> ast.expr:
    if len(args) == 1:
        return ex.runtime("debug_print", ex.expand(args[0]))
    return ex.runtime("debug_print", ast.Tuple(elts=ex.expand_all(args), ctx=ast.Load()))


def operation_names() -> list[str]:
    """All names the table recognizes, sorted."""
    return sorted(OPERATIONS)


def describe_operation(name: str) -> str:
    """Usage and arity of one operation, for help output."""
    operation = OPERATIONS[name]
    return f"{operation.usage_for(name)}: {operation.summary} ({operation.arity.describe()})"
