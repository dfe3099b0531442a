# tests/test_pisano.py
from __future__ import annotations

import pytest

from fastfib import ZeroModulusError, bigint_fib_mod, fixed_fib_mod, pisano_period, reduce_index
from fastfib.pisano import pisano_period_naive

# OEIS A001175
KNOWN_PERIODS = [
    (1, 1), (2, 3), (3, 8), (4, 6), (5, 20), (6, 24), (7, 16), (8, 12),
    (9, 24), (10, 60), (11, 10), (12, 24), (13, 28), (25, 100), (100, 300),
    (1_000, 1_500), (1_000_000, 1_500_000), (10**9, 1_500_000_000),
]


@pytest.mark.parametrize("m,period", KNOWN_PERIODS, ids=[f"pi({m})" for m, _ in KNOWN_PERIODS])
def test_known_pisano_periods(m, period):
    assert pisano_period(m) == period


def test_factorised_matches_naive_walk():
    for m in range(1, 300):
        assert pisano_period(m) == pisano_period_naive(m), f"m={m}"


@pytest.mark.parametrize("m", [97, 1_000_000_007, 2**61 - 1, 3**20, 2**30 * 5])
def test_period_returns_pair_to_start(m):
    p = pisano_period(m)
    assert bigint_fib_mod(p, m) == 0
    assert bigint_fib_mod(p + 1, m) == 1


def test_sequence_repeats_with_period():
    m = 10
    p = pisano_period(m)
    assert [fixed_fib_mod(n, m) for n in range(p)] == [fixed_fib_mod(n + p, m) for n in range(p)]


@pytest.mark.parametrize("n", [0, 59, 60, 61, 10**18, 2**80 + 3])
def test_reduce_index_preserves_value(n):
    m = 10
    assert reduce_index(n, m) < 60
    assert bigint_fib_mod(reduce_index(n, m), m) == bigint_fib_mod(n, m)


def test_zero_modulus():
    with pytest.raises(ZeroModulusError):
        pisano_period(0)
    with pytest.raises(ZeroModulusError):
        pisano_period_naive(0)
