# src/fastfib/recurrence.py
"""
Slower recurrences kept alongside fast doubling.

matrix_fib_mod  raises Q = [[0, 1], [1, 1]] to the n-th power by repeated
                squaring, every entry reduced mod m: Q**n = [[F(n-1), F(n)],
                [F(n), F(n+1)]]. Same O(log n) bound, roughly twice the
                multiplications of fast doubling.
linear_fib_mod  the O(n) walk, used as an oracle for small n.
"""

from __future__ import annotations

from fastfib.bigint import BIGINT
from fastfib.doubling import NumericOps
from fastfib.fixed import FIXED64
from fastfib.utility import U64_MAX, check_modulus, check_unsigned, fits_u64

Matrix2 = tuple[tuple[object, object], tuple[object, object]]


def _mat_mul(x: Matrix2, y: Matrix2, m, ops: NumericOps) -> Matrix2:
    def dot(a, b, c, d):
        return ops.add_mod(ops.mul_mod(a, b, m), ops.mul_mod(c, d, m), m)

    (x00, x01), (x10, x11) = x
    (y00, y01), (y10, y11) = y
    return (
        (dot(x00, y00, x01, y10), dot(x00, y01, x01, y11)),
        (dot(x10, y00, x11, y10), dot(x10, y01, x11, y11)),
    )


def matrix_power_mod(base: Matrix2, k, m, ops: NumericOps) -> Matrix2:
    """base**k mod m, scanning k from the least significant bit."""
    zero = ops.reduce(ops.lift(0), m)
    one = ops.reduce(ops.lift(1), m)
    result: Matrix2 = ((one, zero), (zero, one))
    sq = tuple(tuple(ops.reduce(v, m) for v in row) for row in base)
    while not ops.is_zero(k):
        if ops.is_odd(k):
            result = _mat_mul(result, sq, m, ops)
        k = ops.halve(k)
        if not ops.is_zero(k):
            sq = _mat_mul(sq, sq, m, ops)
    return result


def pick_ops(n: int, modulo: int) -> NumericOps:
    return FIXED64 if fits_u64(n, modulo) else BIGINT


def _checked(n, modulo, ops: NumericOps | None):
    if ops is FIXED64:
        k = check_unsigned(n, "n", upper=U64_MAX)
        m = check_modulus(modulo, upper=U64_MAX)
    else:
        k = check_unsigned(n, "n")
        m = check_modulus(modulo)
    return k, m, ops if ops is not None else pick_ops(k, m)


def matrix_fib_pair_mod(n, modulo, ops: NumericOps | None = None):
    k, m, ops = _checked(n, modulo, ops)
    k, m = ops.lift(k), ops.lift(m)

    q = ((ops.lift(0), ops.lift(1)), (ops.lift(1), ops.lift(1)))
    (_, f_n), (_, f_n1) = matrix_power_mod(q, k, m, ops)
    return f_n, f_n1


def matrix_fib_mod(n, modulo, ops: NumericOps | None = None):
    """F(n) mod m via the companion-matrix power."""
    return matrix_fib_pair_mod(n, modulo, ops)[0]


def linear_fib_pair_mod(n, modulo, ops: NumericOps | None = None):
    k, m, ops = _checked(n, modulo, ops)
    m = ops.lift(m)
    a, b = ops.reduce(ops.lift(0), m), ops.reduce(ops.lift(1), m)
    for _ in range(k):
        a, b = b, ops.add_mod(a, b, m)
    return a, b


def linear_fib_mod(n, modulo, ops: NumericOps | None = None):
    """F(n) mod m by direct iteration; O(n), for checking the fast paths."""
    return linear_fib_pair_mod(n, modulo, ops)[0]
