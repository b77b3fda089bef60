"""Tests for wolfcalc function registry and builtins."""

from __future__ import annotations

import pytest

from wolfcalc import Calculator
from wolfcalc._errors import InvalidArgumentError
from wolfcalc._functions import (
    _BUILTINS,
    FunctionRegistry,
    _arity,
    default_aliases,
    default_registry,
    set_default_aliases,
)


class TestFunctionRegistry:
    def test_builtins_registered(self) -> None:
        reg = FunctionRegistry(builtins=True)
        assert reg.has("SUM")
        assert reg.has("sum")
        assert reg.supported_functions == frozenset(_BUILTINS)

    def test_empty_by_default(self) -> None:
        assert FunctionRegistry().supported_functions == frozenset()

    def test_parent_fallback(self) -> None:
        child = FunctionRegistry(parent=default_registry())
        assert child.get("MAX") is default_registry().get("MAX")

    def test_register_stays_local(self) -> None:
        child = FunctionRegistry(parent=default_registry())
        child.register("LOCAL", "numeric", lambda: 1)
        assert child.has("LOCAL")
        assert not default_registry().has("LOCAL")
        assert "LOCAL" in child.supported_functions

    def test_local_overrides_parent(self) -> None:
        child = FunctionRegistry(parent=default_registry())
        child.register("SUM", "numeric", lambda *args: "mine")
        assert child.get("sum")(1, 2) == "mine"

    def test_spec_fields(self) -> None:
        spec = FunctionRegistry().register("clamp", "numeric", lambda x, lo=0, hi=1: x)
        assert spec.name == "CLAMP"
        assert spec.return_type == "numeric"
        assert (spec.min_args, spec.max_args) == (1, 3)
        assert spec.accepts(2)
        assert not spec.accepts(0)
        assert not spec.accepts(4)

    def test_unknown_return_type(self) -> None:
        with pytest.raises(InvalidArgumentError, match="unknown return type"):
            FunctionRegistry().register("X", "complex", lambda: 1)

    def test_body_must_be_callable(self) -> None:
        with pytest.raises(InvalidArgumentError, match="not callable"):
            FunctionRegistry().register("X", "numeric", 42)


class TestArity:
    def test_variadic(self) -> None:
        assert _arity(lambda *args: 0) == (0, None)

    def test_required_and_variadic(self) -> None:
        assert _arity(lambda a, *rest: 0) == (1, None)


class TestAliases:
    def test_set_default_aliases_upper_cases(self) -> None:
        set_default_aliases({"rnd": "round"})
        assert default_aliases() == {"RND": "ROUND"}


def _eval(expr: str, **data: object) -> object:
    return Calculator().evaluate_strict(expr, data)


class TestMathBuiltins:
    def test_sum_flattens_lists(self) -> None:
        assert _eval("SUM(a, 1)", a=[1, 2, 3]) == 7

    def test_sum_skips_text(self) -> None:
        assert _eval('SUM(1, "x", TRUE)') == 2

    def test_min_max(self) -> None:
        assert _eval("MIN(3, 1, 2)") == 1
        assert _eval("MAX(3, 1, 2)") == 3

    def test_min_no_numbers(self) -> None:
        with pytest.raises(InvalidArgumentError):
            _eval('MIN("a")')

    def test_average(self) -> None:
        assert _eval("AVERAGE(1, 2, 3)") == 2.0

    def test_count(self) -> None:
        assert _eval('COUNT(1, "a", 2.5)') == 2

    def test_abs(self) -> None:
        assert _eval("ABS(-4)") == 4

    def test_round(self) -> None:
        assert _eval("ROUND(3.14159, 2)") == 3.14
        assert _eval("ROUND(2.6)") == 3

    def test_roundup_rounddown(self) -> None:
        assert _eval("ROUNDUP(3.141, 2)") == 3.15
        assert _eval("ROUNDDOWN(3.777, 2)") == 3.77
        assert _eval("ROUNDDOWN(-3.777, 2)") == -3.77
        assert _eval("ROUNDUP(3.2)") == 4

    def test_int(self) -> None:
        assert _eval("INT(-2.5)") == -3

    def test_mod_sign_of_divisor(self) -> None:
        assert _eval("MOD(10, 3)") == 1
        assert _eval("MOD(-10, 3)") == 2

    def test_mod_by_zero(self) -> None:
        with pytest.raises(ZeroDivisionError):
            _eval("MOD(1, 0)")

    def test_power_sqrt_sign(self) -> None:
        assert _eval("POWER(2, 10)") == 1024
        assert _eval("SQRT(16)") == 4.0
        assert _eval("SIGN(-3)") == -1
        assert _eval("SIGN(0)") == 0

    def test_non_numeric_argument(self) -> None:
        with pytest.raises(InvalidArgumentError, match="ABS: non-numeric"):
            _eval('ABS("x")')


class TestLogicBuiltins:
    def test_and_or_not(self) -> None:
        assert _eval("AND(TRUE, 1)") is True
        assert _eval("AND(TRUE, 0)") is False
        assert _eval("OR(FALSE, 0, 1)") is True
        assert _eval("NOT(FALSE)") is True

    def test_and_requires_argument(self) -> None:
        with pytest.raises(InvalidArgumentError):
            _eval("AND()")


class TestTextBuiltins:
    def test_left_right_mid(self) -> None:
        assert _eval('LEFT("wolfcalc", 4)') == "wolf"
        assert _eval('RIGHT("wolfcalc", 4)') == "calc"
        assert _eval('RIGHT("abc", 0)') == ""
        assert _eval('MID("wolfcalc", 2, 3)') == "olf"

    def test_mid_bad_start(self) -> None:
        with pytest.raises(InvalidArgumentError):
            _eval('MID("abc", 0, 1)')

    def test_len_concat(self) -> None:
        assert _eval('LEN("abc")') == 3
        assert _eval('CONCAT("a", 1, TRUE)') == "a1TRUE"

    def test_case_and_trim(self) -> None:
        assert _eval('UPPER("ab")') == "AB"
        assert _eval('LOWER("AB")') == "ab"
        assert _eval('TRIM("  a   b  ")') == "a b"
