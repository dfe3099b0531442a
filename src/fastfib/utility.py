# -----------------------------------------------------------------------------
#  Utility functions and error types
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import sys

import gmpy2

U64_MAX = (1 << 64) - 1

_MPZ_TYPE = type(gmpy2.mpz(0))


class UserInputError(Exception):
    pass


class FibDomainError(ValueError):
    """An argument lies outside the domain a Fibonacci backend accepts."""


class ZeroModulusError(FibDomainError, ZeroDivisionError):
    pass


class NegativeInputError(FibDomainError):
    pass


class IndexRangeError(FibDomainError, OverflowError):
    pass


def is_integral(v: object) -> bool:
    """True for Python ints and gmpy2 mpz values, False for bool and everything else."""
    if isinstance(v, bool):
        return False
    return isinstance(v, (int, _MPZ_TYPE))


def check_unsigned(value, what: str, *, upper: int | None = None) -> int:
    """
    Validate an unsigned argument and return it as a plain int.

    Raises TypeError for non-integers, NegativeInputError for values < 0 and
    IndexRangeError when `upper` is given and exceeded.
    """
    if not is_integral(value):
        raise TypeError(f"{what} must be an integer, not {typename(value)}")
    v = int(value)
    if v < 0:
        raise NegativeInputError(f"{what} must be non-negative, got {v}")
    if upper is not None and v > upper:
        raise IndexRangeError(f"{what} = {v} does not fit in 64 bits (max {upper})")
    return v


def check_modulus(modulo, *, upper: int | None = None) -> int:
    """Same as check_unsigned, plus the m >= 1 precondition."""
    m = check_unsigned(modulo, "modulo", upper=upper)
    if m == 0:
        raise ZeroModulusError("modulo must be >= 1; reduction modulo 0 is undefined")
    return m


def fits_u64(*values: int) -> bool:
    return all(0 <= int(v) <= U64_MAX for v in values)


def dec_digits(n: int) -> int:
    """Exact decimal digit count without str(); handles n >= 0."""
    n = abs(int(n))
    if n == 0:
        return 1
    bl = n.bit_length()
    # floor(bitlen*log10(2)) is within one of the true exponent
    est = int((bl * 30103) // 100000)
    p10 = 10 ** est
    if n < p10:
        while n < p10:
            est -= 1
            p10 //= 10
    else:
        p10 *= 10
        while n >= p10:
            est += 1
            p10 *= 10
    return est + 1


def clear_screen(keep_scrollback: bool = False) -> None:
    """
    Clear the terminal screen.
    - On Windows: uses 'cls'
    - On POSIX: ANSI sequences; optionally clear scrollback
    """
    try:
        if os.name == "nt":
            os.system("cls")
        else:
            seq = "\033[H\033[2J" if keep_scrollback else "\033[3J\033[H\033[2J"
            sys.stdout.write(seq)
            sys.stdout.flush()
    except OSError:
        pass


def validate_output_setting(output_file: str | None) -> str | None:
    """
    Validate output setting.
    - None / "" => ok (screen only)
    - path/to/file => must not be a directory or a forbidden name/extension
    Returns the output_file, or raises ValueError.
    """
    FORBIDDEN_FILENAMES = {
        ".gitignore",
        "LICENSE",
        "pyproject.toml",
        # Windows reserved device names
        "con", "prn", "aux", "nul",
    }
    FORBIDDEN_EXTENSIONS = {".py", ".md", ".toml"}

    if not output_file:
        return output_file

    if output_file.endswith(("/", "\\")):
        raise ValueError("Output must be a file path, not a directory")

    basename = os.path.basename(output_file)
    name_no_ext, ext = os.path.splitext(basename)
    if basename.lower() in FORBIDDEN_FILENAMES or name_no_ext.lower() in FORBIDDEN_FILENAMES:
        raise ValueError(f"Forbidden output filename: {basename}")
    if ext.lower() in FORBIDDEN_EXTENSIONS:
        raise ValueError(f"Forbidden output file extension: {ext.lower()}")
    return output_file


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
