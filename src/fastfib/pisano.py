# src/fastfib/pisano.py
"""
Pisano periods: π(m) is the period of F(n) mod m.

pisano_period() works from the factorisation of m (sympy.factorint):

  π(m)    = lcm of π(p^k) over the prime powers p^k dividing m
  π(2)    = 3,  π(5) = 20
  π(p)    divides p - 1       when p ≡ ±1 (mod 5)
          divides 2 * (p + 1) when p ≡ ±2 (mod 5)
  π(p^k)  = π(p) * p^j for some 0 <= j < k

Each candidate period t is tested by checking (F(t), F(t+1)) ≡ (0, 1) with
the bigint fast-doubling backend, so the cost is polylogarithmic in the
period once m is factored.
"""

from __future__ import annotations

from functools import lru_cache

from sympy import divisors, factorint, lcm

from fastfib.bigint import bigint_fib_pair_mod
from fastfib.utility import check_modulus, check_unsigned


def _returns_to_start(t: int, m: int) -> bool:
    return tuple(bigint_fib_pair_mod(t, m)) == (0, 1 % m)


@lru_cache(maxsize=4096)
def _pisano_prime(p: int) -> int:
    if p == 2:
        return 3
    if p == 5:
        return 20
    bound = p - 1 if p % 5 in (1, 4) else 2 * (p + 1)
    for d in divisors(bound):
        if _returns_to_start(d, p):
            return int(d)
    # Unreachable for primes: F(bound) ≡ 0 and F(bound+1) ≡ 1 always hold.
    raise ArithmeticError(f"no Pisano period found for prime {p}")


def _pisano_prime_power(p: int, k: int) -> int:
    base = _pisano_prime(p)
    if k == 1:
        return base
    pk = p ** k
    for j in range(k):
        t = base * p ** j
        if _returns_to_start(t, pk):
            return t
    raise ArithmeticError(f"no Pisano period found for {p}^{k}")


def pisano_period(modulo) -> int:
    """
    Return π(modulo) for modulo >= 1 (π(1) = 1).

    >>> pisano_period(10)
    60
    """
    m = check_modulus(modulo)
    if m == 1:
        return 1
    periods = [_pisano_prime_power(int(p), int(k)) for p, k in factorint(m).items()]
    return int(lcm(periods))


def pisano_period_naive(modulo) -> int:
    """
    π(modulo) by walking residues from (0, 1) until the pair reappears.
    O(π(m)) steps; π(m) <= 6m for every m.
    """
    m = check_modulus(modulo)
    if m == 1:
        return 1
    a, b = 0, 1
    steps = 0
    cap = 6 * m
    while steps < cap:
        a, b = b, (a + b) % m
        steps += 1
        if a == 0 and b == 1:
            return steps
    raise ArithmeticError(f"no period detected within cap {cap}")


def reduce_index(n, modulo) -> int:
    """n mod π(modulo); F(n) ≡ F(reduce_index(n, m)) (mod m)."""
    k = check_unsigned(n, "n")
    return k % pisano_period(modulo)
