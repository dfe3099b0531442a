# src/fastfib/doubling.py
"""
Fast-doubling evaluation of F(n) mod m.

The recurrence is written once against `NumericOps`, the small set of
arithmetic primitives a backend has to provide. Using the identities

    F(2k)   = F(k) * (2*F(k+1) - F(k))
    F(2k+1) = F(k)**2 + F(k+1)**2

the pair P(k) = (F(k) mod m, F(k+1) mod m) is doubled once per bit of n,
scanning from the most significant bit down, so the work is O(log n) and
no call frame is spent per bit.
"""

from __future__ import annotations

from typing import Any


class NumericOps:
    """
    Arithmetic primitives for one integer representation.

    All *_mod methods take operands already reduced into [0, m) and return a
    value in [0, m). `halve`, `is_odd` and `is_zero` act on the index.
    """

    name = "abstract"

    def lift(self, v: Any) -> Any:
        raise NotImplementedError

    def reduce(self, a: Any, m: Any) -> Any:
        raise NotImplementedError

    def add_mod(self, a: Any, b: Any, m: Any) -> Any:
        raise NotImplementedError

    def sub_mod(self, a: Any, b: Any, m: Any) -> Any:
        raise NotImplementedError

    def mul_mod(self, a: Any, b: Any, m: Any) -> Any:
        raise NotImplementedError

    def halve(self, k: Any) -> Any:
        raise NotImplementedError

    def is_odd(self, k: Any) -> bool:
        raise NotImplementedError

    def is_zero(self, k: Any) -> bool:
        return not k

    # --- derived ---------------------------------------------------------

    def double_mod(self, a: Any, m: Any) -> Any:
        return self.add_mod(a, a, m)

    def is_even(self, k: Any) -> bool:
        return not self.is_odd(k)


def _index_bits(n, ops: NumericOps) -> list[bool]:
    """Bits of n, least significant first, taken with the backend's halve/parity."""
    bits: list[bool] = []
    k = n
    while not ops.is_zero(k):
        bits.append(ops.is_odd(k))
        k = ops.halve(k)
    return bits


def doubling_step(a, b, m, ops: NumericOps):
    """Given (F(k), F(k+1)) mod m return (F(2k), F(2k+1)) mod m."""
    # 2b - a, kept in [0, m) so the multiplier is never negative
    t = ops.sub_mod(ops.double_mod(b, m), a, m)
    c = ops.mul_mod(a, t, m)
    d = ops.add_mod(ops.mul_mod(a, a, m), ops.mul_mod(b, b, m), m)
    return c, d


def fib_pair_mod(n, modulo, ops: NumericOps):
    """
    Return (F(n) mod m, F(n+1) mod m).

    Arguments must already be validated and lifted into the backend's domain;
    the public entry points in fastfib.fixed and fastfib.bigint do that.
    """
    a = ops.reduce(ops.lift(0), modulo)
    b = ops.reduce(ops.lift(1), modulo)

    for odd in reversed(_index_bits(n, ops)):
        c, d = doubling_step(a, b, modulo, ops)
        if odd:
            a, b = d, ops.add_mod(c, d, modulo)
        else:
            a, b = c, d
    return a, b


def fib_mod(n, modulo, ops: NumericOps):
    return fib_pair_mod(n, modulo, ops)[0]
