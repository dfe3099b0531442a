# src/fastfib/fmt.py
from __future__ import annotations

import re

from colorama import Fore, Style

from fastfib.runtime import CFG
from fastfib.utility import dec_digits

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def abbr_int_fast(n: int, head: int = 10, tail: int = 10, threshold: int = 35, ellipsis: str = "…") -> str:
    """Abbreviate very large ints as first<head>…last<tail> without str(n)."""
    n = int(n)
    if n == 0:
        return "0"

    sign = "-" if n < 0 else ""
    a = -n if n < 0 else n

    d = dec_digits(a)
    if d <= threshold or head + tail >= d:
        return sign + str(a)

    first = a // 10 ** (d - head)
    last = a % 10 ** tail
    return f"{sign}{first}{ellipsis}{last:0{tail}d}"


def format_value(n: int) -> str:
    """Render an integer result, abbreviated per DISPLAY.ABBREVIATE / ABBR_THRESHOLD."""
    if not CFG("DISPLAY.ABBREVIATE", True):
        return str(int(n))
    threshold = int(CFG("DISPLAY.ABBR_THRESHOLD", 60))
    return abbr_int_fast(n, threshold=threshold)


def format_elapsed(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.1f} µs"
    if seconds < 1:
        return f"{seconds * 1e3:.2f} ms"
    return f"{seconds:.3f} s"


def label(text: str) -> str:
    return f"{Fore.YELLOW}{text}{Style.RESET_ALL}"


def strip_ansi(s: str | None) -> str:
    """Return s with ANSI escape sequences removed."""
    return "" if s is None else ANSI_RE.sub("", s)
