"""Tests for SafeInt checked arithmetic."""

import pytest

from exchange.safe_int import (
    DivisionByZero,
    S,
    SafeInt,
    SafeIntError,
    Underflow,
)


class TestSafeIntConstruction:
    """Tests for SafeInt construction."""

    def test_from_int(self):
        assert SafeInt(42).value == 42

    def test_from_safeint(self):
        """SafeInt can be constructed from another SafeInt."""
        assert SafeInt(SafeInt(42)).value == 42

    def test_rejects_other_types(self):
        """Strings, floats and bools are not amounts."""
        with pytest.raises(TypeError):
            SafeInt("42")  # type: ignore
        with pytest.raises(TypeError):
            SafeInt(3.14)  # type: ignore
        with pytest.raises(TypeError):
            SafeInt(True)

    def test_alias(self):
        assert S is SafeInt


class TestSafeIntArithmetic:
    """Tests for SafeInt arithmetic operations."""

    def test_add_and_mul(self):
        assert (S(10) + S(5)).value == 15
        assert (S(10) + 5).value == 15
        assert (5 + S(10)).value == 15
        assert (S(6) * S(7)).value == 42
        assert (7 * S(6)).value == 42

    def test_sub(self):
        assert (S(10) - S(3)).value == 7
        assert (S(10) - 10).value == 0

    def test_sub_underflow_raises(self):
        """Reserves never go negative."""
        with pytest.raises(Underflow):
            S(3) - S(10)

    def test_floordiv_rounds_down(self):
        assert (S(10) // S(3)).value == 3
        assert (S(9) // 3).value == 3

    def test_floordiv_by_zero_raises(self):
        with pytest.raises(DivisionByZero):
            S(10) // S(0)

    def test_large_products_are_exact(self):
        """Products of uint256-sized amounts do not lose precision."""
        big = S(2**256 - 1)
        assert ((big * big) // big).value == 2**256 - 1


class TestSafeIntComparison:
    """Tests for comparisons against SafeInt and int."""

    def test_eq(self):
        assert S(5) == S(5)
        assert S(5) == 5
        assert S(5) != S(6)

    def test_ordering(self):
        assert S(1) < S(2)
        assert S(2) <= 2
        assert S(3) > 2
        assert S(3) >= S(3)

    def test_conversions(self):
        assert int(S(7)) == 7
        assert bool(S(0)) is False
        assert bool(S(1)) is True
        assert [10, 20, 30][S(1)] == 20
        assert str(S(12)) == "12"
        assert repr(S(12)) == "SafeInt(12)"
        assert hash(S(12)) == hash(12)


class TestSafeIntNamedOps:
    """Tests for ceiling division and the error hierarchy."""

    def test_ceiling_div(self):
        assert S(10).ceiling_div(S(3)).value == 4
        assert S(9).ceiling_div(3).value == 3
        assert S(0).ceiling_div(3).value == 0

    def test_ceiling_div_by_zero_raises(self):
        with pytest.raises(DivisionByZero):
            S(10).ceiling_div(0)

    def test_errors_are_arithmetic_errors(self):
        assert issubclass(SafeIntError, ArithmeticError)
        for error in (DivisionByZero, Underflow):
            assert issubclass(error, SafeIntError)
