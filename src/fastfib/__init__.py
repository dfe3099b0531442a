from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("fastfib")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .bigint import bigint_fib_mod, bigint_fib_pair_mod
from .compute import FibResult, compute
from .doubling import NumericOps, fib_mod, fib_pair_mod
from .fixed import fixed_fib_mod, fixed_fib_pair_mod
from .pisano import pisano_period, reduce_index
from .recurrence import linear_fib_mod, matrix_fib_mod
from .runtime import APPLY, CFG
from .utility import (
    FibDomainError,
    IndexRangeError,
    NegativeInputError,
    UserInputError,
    ZeroModulusError,
)

__all__ = [
    "APPLY",
    "CFG",
    "FibDomainError",
    "FibResult",
    "IndexRangeError",
    "NegativeInputError",
    "NumericOps",
    "UserInputError",
    "ZeroModulusError",
    "__version__",
    "bigint_fib_mod",
    "bigint_fib_pair_mod",
    "compute",
    "fib_mod",
    "fib_pair_mod",
    "fixed_fib_mod",
    "fixed_fib_pair_mod",
    "linear_fib_mod",
    "matrix_fib_mod",
    "pisano_period",
    "reduce_index",
]
