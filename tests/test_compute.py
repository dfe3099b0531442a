# tests/test_compute.py
from __future__ import annotations

import pytest
from gmpy2 import mpz

from fastfib import APPLY, FibResult, IndexRangeError, UserInputError, ZeroModulusError, compute
from fastfib.bigint import BIGINT
from fastfib.compute import resolve_backend
from fastfib.fixed import FIXED64
from fastfib.recurrence import linear_fib_mod
from fastfib.utility import U64_MAX


@pytest.mark.parametrize("method", ["doubling", "matrix", "linear"])
@pytest.mark.parametrize("backend", ["auto", "fixed", "bigint"])
def test_every_backend_and_method_agree(backend, method):
    res = compute(1000, 97, backend=backend, method=method)
    assert isinstance(res, FibResult)
    assert res.value == 72
    assert res.pair == (72, res.pair_next)
    assert res.method == method
    assert res.backend in ("fixed", "bigint")
    assert res.elapsed >= 0


def test_results_are_plain_ints():
    res = compute(10**30, 10**40 + 7)
    assert type(res.value) is int
    assert type(res.pair_next) is int


@pytest.mark.parametrize(
    "n,m,expected",
    [
        (10, 7, "fixed"),
        (U64_MAX, U64_MAX, "fixed"),
        (U64_MAX + 1, 7, "bigint"),
        (7, U64_MAX + 1, "bigint"),
    ],
)
def test_auto_backend_selection(n, m, expected):
    assert resolve_backend("auto", n, m) == expected
    assert compute(n, m).backend == expected


def test_explicit_fixed_out_of_range():
    with pytest.raises(IndexRangeError):
        compute(2**64, 10, backend="fixed")
    with pytest.raises(IndexRangeError):
        compute(5, 2**64, backend="fixed", method="linear")


def test_zero_modulus():
    with pytest.raises(ZeroModulusError):
        compute(5, 0)


def test_unknown_names():
    with pytest.raises(UserInputError):
        compute(5, 7, backend="u128")
    with pytest.raises(UserInputError):
        compute(5, 7, method="binet")


def test_linear_method_respects_configured_cap():
    APPLY({"BEHAVIOUR": {"LINEAR_MAX_INDEX": 100}})
    assert compute(100, 10, method="linear").value == 5
    with pytest.raises(UserInputError, match="LINEAR_MAX_INDEX"):
        compute(101, 10, method="linear")


def test_linear_method_runs_on_the_chosen_backend():
    fixed_val = linear_fib_mod(1000, 97, FIXED64)
    big_val = linear_fib_mod(1000, 97, BIGINT)
    assert type(fixed_val) is int
    assert isinstance(big_val, type(mpz(0)))
    assert fixed_val == big_val == 72
    with pytest.raises(IndexRangeError):
        linear_fib_mod(5, 2**64, FIXED64)
    # unbounded operands without an explicit backend
    assert linear_fib_mod(10, 2**70) == 55
    assert compute(300, 2**64 + 13, method="linear").backend == "bigint"
