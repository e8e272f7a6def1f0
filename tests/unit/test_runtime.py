"""Tests for the runtime helpers generated code calls."""

from __future__ import annotations

import pytest

from biglisp import runtime
from biglisp.core.expander import OPERATOR_TAGS


class TestOperatorSlots:
    def test_every_operator_has_a_function(self) -> None:
        assert set(runtime.OPERATOR_FUNCTIONS) == set(OPERATOR_TAGS.values())

    @pytest.mark.parametrize(
        "tag,args,expected",
        [
            ("plus", (2, 3), 5),
            ("minus", (2, 3), -1),
            ("mul", (2, 3), 6),
            ("div", (3, 2), 1.5),
            ("mod", (7, 3), 1),
            ("eq", (2, 2), True),
            ("ne", (2, 2), False),
            ("lt", (1, 2), True),
            ("gt", (1, 2), False),
            ("gte", (2, 2), True),
            ("lte", (3, 2), False),
        ],
    )
    def test_slot(self, tag: str, args: tuple[int, int], expected: object) -> None:
        assert runtime.OPERATOR_FUNCTIONS[tag](*args) == expected


class TestControlFlow:
    def test_loop_never_runs(self) -> None:
        assert runtime.loop(lambda: False, lambda: 1) is None

    def test_loop_reevaluates_condition(self) -> None:
        remaining = [3, 2, 1]
        assert runtime.loop(lambda: remaining, remaining.pop) == 3

    def test_repeat(self) -> None:
        seen: list[int] = []
        assert runtime.repeat(3, seen.append) is None
        assert seen == [0, 1, 2]

    def test_recover_value(self) -> None:
        assert runtime.recover(lambda: 5, lambda: 0) == 5

    def test_recover_fallback(self) -> None:
        assert runtime.recover(lambda: {}["missing"], lambda: "fallback") == "fallback"

    def test_recover_without_fallback(self) -> None:
        with pytest.raises(runtime.UnhandledError, match="Unhandled error in try block") as exc:
            runtime.recover(lambda: int("x"))
        assert isinstance(exc.value.__cause__, ValueError)

    def test_recover_lets_base_exceptions_through(self) -> None:
        def interrupt() -> None:
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            runtime.recover(interrupt, lambda: 0)


class TestFixed:
    def test_wraps_and_names(self) -> None:
        add = runtime.fixed("add", lambda a, b: a + b)
        assert add(2, 3) == 5
        assert add.__name__ == "add"

    def test_coerces(self) -> None:
        halve = runtime.fixed("halve", lambda a: a / 2)
        assert halve(9) == 4
        assert isinstance(halve(9.9), int)

    def test_bounds(self) -> None:
        ident = runtime.fixed("ident", lambda a: a)
        assert ident(runtime.FIXED_MAX) == 2**31 - 1
        assert ident(runtime.FIXED_MIN) == -(2**31)
        with pytest.raises(OverflowError):
            ident(runtime.FIXED_MAX + 1)
        with pytest.raises(OverflowError):
            ident(runtime.FIXED_MIN - 1)

    def test_non_numeric_argument(self) -> None:
        with pytest.raises(ValueError):
            runtime.fixed("ident", lambda a: a)("abc")


class TestCollections:
    def test_first(self) -> None:
        assert runtime.first([4, 5]) == 4
        assert runtime.first([]) is None
        assert runtime.first("ab") == "a"
        assert runtime.first(iter(range(3, 6))) == 3

    def test_rest_copies(self) -> None:
        items = [1, 2, 3]
        assert runtime.rest(items) == [2, 3]
        assert runtime.rest([]) == []
        assert items == [1, 2, 3]

    def test_cons_copies(self) -> None:
        items = [1, 2]
        assert runtime.cons(0, items) == [0, 1, 2]
        assert runtime.cons(0, (1,)) == [0, 1]
        assert items == [1, 2]

    def test_count(self) -> None:
        assert runtime.count([1, 2, 3]) == 3
        assert runtime.count(x for x in range(4)) == 4

    def test_concat(self) -> None:
        assert runtime.concat("a", 1, True, None) == "a1TrueNone"
        assert runtime.concat() == ""

    def test_min_max_abs(self) -> None:
        assert runtime.minimum(3, 1) == 1
        assert runtime.maximum(3, 1) == 3
        assert runtime.absolute(-4.7) == 4

    def test_debug_print(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert runtime.debug_print([1, "a"]) is None
        assert capsys.readouterr().out == "[1, 'a']\n"
