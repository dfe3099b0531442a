# src/fastfib/compute.py
"""
Dispatch a single F(n) mod m request to a backend and method.

backend: "fixed"  -> 64-bit operands (fastfib.fixed)
         "bigint" -> gmpy2.mpz operands (fastfib.bigint)
         "auto"   -> fixed when n and m both fit in 64 bits, else bigint
method:  "doubling" (default), "matrix", "linear"; every method runs on the
         resolved backend's arithmetic
"""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter

from fastfib.bigint import BIGINT, bigint_fib_pair_mod
from fastfib.fixed import FIXED64, fixed_fib_pair_mod
from fastfib.recurrence import linear_fib_pair_mod, matrix_fib_pair_mod
from fastfib.runtime import CFG, debug
from fastfib.utility import U64_MAX, UserInputError, check_modulus, check_unsigned, fits_u64

BACKENDS = ("auto", "fixed", "bigint")
METHODS = ("doubling", "matrix", "linear")


@dataclass(frozen=True)
class FibResult:
    n: int
    modulo: int
    value: int          # F(n) mod m
    pair_next: int      # F(n+1) mod m
    backend: str        # resolved backend, never "auto"
    method: str
    elapsed: float      # seconds

    @property
    def pair(self) -> tuple[int, int]:
        return self.value, self.pair_next


def resolve_backend(backend: str, n: int, modulo: int) -> str:
    b = (backend or "auto").strip().lower()
    if b not in BACKENDS:
        raise UserInputError(f"Unknown backend '{backend}'. Choose one of: {', '.join(BACKENDS)}.")
    if b == "auto":
        return "fixed" if fits_u64(n, modulo) else "bigint"
    return b


def _resolve_method(method: str) -> str:
    name = (method or "doubling").strip().lower()
    if name not in METHODS:
        raise UserInputError(f"Unknown method '{method}'. Choose one of: {', '.join(METHODS)}.")
    return name


def compute(n, modulo, *, backend: str = "auto", method: str = "doubling") -> FibResult:
    """
    Compute (F(n) mod m, F(n+1) mod m) with the requested backend and method.

    Domain errors (zero modulus, negative or out-of-range inputs) propagate as
    FibDomainError subclasses; bad backend/method names as UserInputError.
    """
    k = check_unsigned(n, "n")
    m = check_modulus(modulo)
    chosen = resolve_backend(backend, k, m)
    how = _resolve_method(method)

    if chosen == "fixed":
        # explicit fixed requests outside 64 bits fail before any work
        check_unsigned(k, "n", upper=U64_MAX)
        check_modulus(m, upper=U64_MAX)

    if how == "linear":
        cap = int(CFG("BEHAVIOUR.LINEAR_MAX_INDEX", 10_000_000))
        if k > cap:
            raise UserInputError(
                f"linear method limited to n <= {cap} (BEHAVIOUR.LINEAR_MAX_INDEX); "
                "use the doubling or matrix method."
            )

    debug(f"compute n={k} m={m} backend={chosen} method={how}")

    t0 = perf_counter()
    if how == "doubling":
        if chosen == "fixed":
            a, b = fixed_fib_pair_mod(k, m)
        else:
            a, b = bigint_fib_pair_mod(k, m)
    else:
        ops = FIXED64 if chosen == "fixed" else BIGINT
        walk = matrix_fib_pair_mod if how == "matrix" else linear_fib_pair_mod
        a, b = walk(k, m, ops)
    elapsed = perf_counter() - t0

    debug(f"result {int(a)} in {elapsed:.6f}s")
    return FibResult(
        n=k,
        modulo=m,
        value=int(a),
        pair_next=int(b),
        backend=chosen,
        method=how,
        elapsed=elapsed,
    )
