"""
Runtime support for code generated by the BigLisp expander.

Generated code reaches these helpers through the runtime alias
(``__biglisp__`` by default) for the forms Python cannot write as a single
expression: loops, error recovery and fixed-width functions. The ``op_*``
functions are the conventional slots an operator resolves to when it is
used as a value, e.g. ``(call + 1 2)``.
"""

from __future__ import annotations

import functools
import logging
import operator
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

FIXED_BITS = 32
FIXED_MIN = -(2 ** (FIXED_BITS - 1))
FIXED_MAX = 2 ** (FIXED_BITS - 1) - 1


class UnhandledError(RuntimeError):
    """Raised by ``(try body)`` when ``body`` fails and there is no fallback."""


# ---------------------------------------------------------------------------
# Operator slots
# ---------------------------------------------------------------------------

op_plus = operator.add
op_minus = operator.sub
op_mul = operator.mul
op_div = operator.truediv
op_eq = operator.eq
op_lt = operator.lt
op_gt = operator.gt
op_mod = operator.mod
op_gte = operator.ge
op_lte = operator.le
op_ne = operator.ne

# Keyed by operator tag; the slot name is the configured prefix plus the tag
OPERATOR_FUNCTIONS: dict[str, Callable[[Any, Any], Any]] = {
    "plus": op_plus,
    "minus": op_minus,
    "mul": op_mul,
    "div": op_div,
    "eq": op_eq,
    "lt": op_lt,
    "gt": op_gt,
    "mod": op_mod,
    "gte": op_gte,
    "lte": op_lte,
    "ne": op_ne,
}


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------


def loop(condition: Callable[[], Any], body: Callable[[], Any]) -> Any:
    """``while``: the value of the last body evaluation, or None if it never ran."""
    result = None
    while condition():
        result = body()
    return result


def repeat(count: int, body: Callable[[int], Any]) -> None:
    """``dotimes``: run ``body(i)`` for i in [0, count), discarding the values."""
    for i in range(count):
        body(i)


def recover(protected: Callable[[], Any], fallback: Callable[[], Any] | None = None) -> Any:
    """``try``: the protected value, or the fallback's value if it raised."""
    try:
        return protected()
    except Exception as e:
        if fallback is None:
            raise UnhandledError("Unhandled error in try block") from e
        logger.debug("Recovered from %s: %s", type(e).__name__, e)
        return fallback()


# ---------------------------------------------------------------------------
# Fixed-width functions
# ---------------------------------------------------------------------------


def to_fixed(value: Any) -> int:
    """Coerce to the fixed integer type used by ``defn``."""
    result = int(value)
    if not FIXED_MIN <= result <= FIXED_MAX:
        raise OverflowError(f"{result} does not fit in a {FIXED_BITS}-bit integer")
    return result


def fixed(name: str, fn: Callable[..., Any]) -> Callable[..., int]:
    """``defn``: wrap ``fn`` so arguments and result are fixed-width integers."""

    @functools.wraps(fn)
    def wrapper(*args: Any) -> int:
        return to_fixed(fn(*(to_fixed(a) for a in args)))

    wrapper.__name__ = name
    wrapper.__qualname__ = name
    return wrapper


# ---------------------------------------------------------------------------
# Collections and strings
# ---------------------------------------------------------------------------


def first(coll: Iterable[Any]) -> Any:
    """First element, or None when empty."""
    return next(iter(coll), None)


def rest(coll: Iterable[Any]) -> list[Any]:
    """All but the first element as a new list."""
    return list(coll)[1:]


def cons(item: Any, coll: Iterable[Any]) -> list[Any]:
    return [item, *coll]


def count(coll: Iterable[Any]) -> int:
    if hasattr(coll, "__len__"):
        return len(coll)  # type: ignore[arg-type]
    return sum(1 for _ in coll)


def concat(*parts: Any) -> str:
    return "".join(str(p) for p in parts)


def minimum(a: Any, b: Any) -> Any:
    return min(a, b)


def maximum(a: Any, b: Any) -> Any:
    return max(a, b)


def absolute(value: Any) -> int:
    return abs(int(value))


def debug_print(value: Any) -> None:
    """``println``: print the repr of a value."""
    print(repr(value))
