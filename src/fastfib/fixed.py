# src/fastfib/fixed.py
"""
Fixed-width backend: index and modulus are unsigned 64-bit values.

Python ints never overflow, so the 64-bit discipline is enforced explicitly:
every value handed back to the engine is narrowed (checked) to 64 bits, the
product of two residues is formed in a 128-bit intermediate before reduction,
and additions/subtractions are arranged so they cannot pass 2**64 - 1 even
when m is close to the top of the range.
"""

from __future__ import annotations

from fastfib.doubling import NumericOps, fib_pair_mod
from fastfib.utility import U64_MAX, check_modulus, check_unsigned

U128_MAX = (1 << 128) - 1


def _narrow(v: int) -> int:
    if not 0 <= v <= U64_MAX:
        raise OverflowError(f"value {v} escaped the 64-bit range")
    return v


def add_mod_u64(a: int, b: int, m: int) -> int:
    """(a + b) mod m for a, b < m without forming a sum above 2**64 - 1."""
    if a >= m - b:
        return _narrow(a - (m - b))
    return _narrow(a + b)


def sub_mod_u64(a: int, b: int, m: int) -> int:
    """(a - b) mod m for a, b < m; adds m (as m - (b - a)) instead of going negative."""
    if a >= b:
        return _narrow(a - b)
    return _narrow(m - (b - a))


def mul_mod_u64(a: int, b: int, m: int) -> int:
    """(a * b) mod m via a widened 128-bit product, narrowed after reduction."""
    wide = a * b
    if wide > U128_MAX:
        raise OverflowError("operands exceed 64 bits; product does not fit in 128 bits")
    return _narrow(wide % m)


class Fixed64Ops(NumericOps):
    name = "fixed"

    def lift(self, v):
        return _narrow(int(v))

    def reduce(self, a, m):
        return _narrow(a % m)

    def add_mod(self, a, b, m):
        return add_mod_u64(a, b, m)

    def sub_mod(self, a, b, m):
        return sub_mod_u64(a, b, m)

    def mul_mod(self, a, b, m):
        return mul_mod_u64(a, b, m)

    def halve(self, k):
        return k >> 1

    def is_odd(self, k):
        return bool(k & 1)


FIXED64 = Fixed64Ops()


def fixed_fib_pair_mod(n: int, modulo: int) -> tuple[int, int]:
    """(F(n) mod m, F(n+1) mod m) with n, m in the unsigned 64-bit range."""
    k = check_unsigned(n, "n", upper=U64_MAX)
    m = check_modulus(modulo, upper=U64_MAX)
    return fib_pair_mod(k, m, FIXED64)


def fixed_fib_mod(n: int, modulo: int) -> int:
    """
    F(n) mod `modulo` for unsigned 64-bit n and modulo.

    >>> fixed_fib_mod(50, 1_000_000_007)
    586268941
    """
    return fixed_fib_pair_mod(n, modulo)[0]
