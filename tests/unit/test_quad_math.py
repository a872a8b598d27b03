"""
Unit tests for exact high precision arithmetic.
"""

from fractions import Fraction

import pytest

from gasproof_toolkit.utils.quad_math import QuadMath


class TestQuadMath:
    def test_pow2_negative_exponent_is_exact(self):
        assert QuadMath.pow2(-80) == Fraction(1, 2**80)
        assert QuadMath.pow2(10) == 1024

    def test_compare(self):
        a, b = QuadMath.from_int(3), QuadMath.from_int(5)
        assert QuadMath.compare(a, b) == -1
        assert QuadMath.compare(b, a) == 1
        assert QuadMath.compare(a, QuadMath.from_uint(3)) == 0

    def test_no_precision_loss_near_threshold(self):
        # 2^-80 computed as (1/2)^80 compares exactly equal
        half = QuadMath.div(QuadMath.from_int(1), QuadMath.from_int(2))
        assert QuadMath.compare(QuadMath.pow(half, 80), QuadMath.pow2(-80)) == 0
        assert QuadMath.compare(QuadMath.pow(half, 81), QuadMath.pow2(-80)) == -1

    def test_mul_and_truncate(self):
        value = QuadMath.mul(QuadMath.from_uint(7), QuadMath.div(1, Fraction(3)))
        assert QuadMath.to_uint(value) == 2

    def test_from_uint_rejects_negative(self):
        with pytest.raises(ValueError):
            QuadMath.from_uint(-1)

    def test_div_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            QuadMath.div(QuadMath.from_int(1), QuadMath.from_int(0))

    def test_negative_power_rejected(self):
        with pytest.raises(ValueError):
            QuadMath.pow(QuadMath.from_int(2), -1)
