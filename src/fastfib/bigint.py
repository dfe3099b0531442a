# src/fastfib/bigint.py
"""
Arbitrary-precision backend on gmpy2.mpz.

Multiplication and reduction are the mpz operations themselves; the only
thing the backend has to guarantee is that every value stays reduced mod m,
which keeps each operand at most bit_length(m) bits wide.
"""

from __future__ import annotations

import gmpy2
from gmpy2 import mpz

from fastfib.doubling import NumericOps, fib_pair_mod
from fastfib.utility import check_modulus, check_unsigned


class BigIntOps(NumericOps):
    name = "bigint"

    def lift(self, v):
        return mpz(v)

    def reduce(self, a, m):
        return a % m

    def add_mod(self, a, b, m):
        s = a + b
        return s - m if s >= m else s

    def sub_mod(self, a, b, m):
        return a - b if a >= b else a + (m - b)

    def mul_mod(self, a, b, m):
        return (a * b) % m

    def halve(self, k):
        return k >> 1

    def is_odd(self, k):
        return gmpy2.is_odd(k)


BIGINT = BigIntOps()


def bigint_fib_pair_mod(n, modulo) -> tuple[mpz, mpz]:
    """(F(n) mod m, F(n+1) mod m) for arbitrary non-negative n and m >= 1."""
    k = mpz(check_unsigned(n, "n"))
    m = mpz(check_modulus(modulo))
    return fib_pair_mod(k, m, BIGINT)


def bigint_fib_mod(n, modulo) -> mpz:
    """F(n) mod `modulo` as an mpz; n and modulo may be int or mpz of any size."""
    return bigint_fib_pair_mod(n, modulo)[0]
