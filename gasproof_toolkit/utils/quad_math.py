"""High precision real arithmetic for the soundness bound.

Values are exact rationals, so "multiply then compare against a power of
two" never rounds. Every operation is pure.
"""

from fractions import Fraction


class QuadMath:
    """Exact real arithmetic primitives"""

    @staticmethod
    def from_int(x: int) -> Fraction:
        return Fraction(int(x))

    @staticmethod
    def from_uint(x: int) -> Fraction:
        if x < 0:
            raise ValueError(f"Expected an unsigned integer, got {x}")
        return Fraction(int(x))

    @staticmethod
    def mul(a: Fraction, b: Fraction) -> Fraction:
        return a * b

    @staticmethod
    def div(a: Fraction, b: Fraction) -> Fraction:
        if b == 0:
            raise ZeroDivisionError("QuadMath division by zero")
        return a / b

    @staticmethod
    def pow(base: Fraction, exponent: int) -> Fraction:
        """Raise to a non-negative integer power."""
        if exponent < 0:
            raise ValueError("Exponent must be non-negative")
        return base**exponent

    @staticmethod
    def pow2(exponent: int) -> Fraction:
        """2 ** exponent, exponent may be negative."""
        if exponent >= 0:
            return Fraction(1 << exponent)
        return Fraction(1, 1 << -exponent)

    @staticmethod
    def compare(a: Fraction, b: Fraction) -> int:
        """Return -1, 0 or 1 as a is below, equal to or above b."""
        if a < b:
            return -1
        if a > b:
            return 1
        return 0

    @staticmethod
    def to_uint(x: Fraction) -> int:
        """Truncate towards zero."""
        if x < 0:
            raise ValueError(f"Cannot convert negative value {x} to uint")
        return x.numerator // x.denominator
