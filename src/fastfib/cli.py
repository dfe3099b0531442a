# src/fastfib/cli.py

"""
fastfib - Fibonacci numbers modulo m in O(log n)

Description:
    Computes F(n) mod m by fast doubling on a 64-bit or an arbitrary-precision
    backend, optionally with the Pisano period of m. Without an index an
    interactive prompt is started.

usage: see fastfib -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import platform
import re
import sys
import textwrap
import traceback
from importlib.resources import files as pkg_files

from colorama import Fore, Style
from colorama import init as colorama_init

import fastfib.config as CONFIG
from fastfib import __version__ as _ver
from fastfib.compute import BACKENDS, METHODS, FibResult, compute
from fastfib.expreval import parse_int_or_expr, parse_unsigned
from fastfib.fmt import format_elapsed, format_value, label
from fastfib.output_manager import OutputManager
from fastfib.pisano import pisano_period
from fastfib.runtime import APPLY, CFG, debug, reset
from fastfib.runtime import current as _rt_current
from fastfib.utility import (
    FibDomainError,
    UserInputError,
    clear_screen,
    flatten_dotted,
    typename,
    validate_output_setting,
)
from fastfib.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir


def _install_loud_error_handlers(debug_on: bool) -> None:
    if not debug_on:
        return
    try:
        faulthandler.enable()
    except (RuntimeError, ValueError, OSError):
        # stderr has no file descriptor (captured or replaced stream)
        pass

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if msg.startswith("Invalid input:"):
        msg = msg.replace("Invalid input:", f"{Fore.RED}Invalid input:{Style.RESET_ALL}", 1)
    elif not msg.startswith("Error:"):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _configure_text_streams() -> None:
    if os.environ.get("PYTHONIOENCODING"):
        return
    # Only touch redirected output (pipes/files), leave TTY as-is
    if sys.stdout.isatty() or not hasattr(sys.stdout, "reconfigure"):
        return
    enc = (sys.stdout.encoding or "").lower()
    if platform.system() == "Windows" or enc in ("", "ascii", "us-ascii"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")


_DECIMAL_HEAD = re.compile(r"[+-]?\d[\d_]*")


def _resolve_inputs(items: list[str]) -> tuple[str | None, list[str]]:
    """
    Split positionals into (profile_or_command, numeric_items).

    The first item is a profile/command name when it does not parse as an
    integer; at most two numeric items (n, m) may follow. Plain decimal
    literals are numeric without conversion: the profile that sets the
    digit limit is applied only after this split.
    """
    if not items:
        return None, []
    head, rest = items[0], items[1:]
    if not _DECIMAL_HEAD.fullmatch(head.strip()) and parse_int_or_expr(head) is None:
        name, nums = head, rest
    else:
        name, nums = None, items
    if len(nums) > 2:
        raise UserInputError(f"Invalid input: expected at most two numbers (n, m), got {len(nums)}.")
    return name, nums


def _select_profile_name(explicit: str | None) -> str:
    """explicit name → last used (profiles/.current) → 'default'."""
    if explicit:
        return explicit
    last = CONFIG.read_current_profile()
    if last and CONFIG.has_profile(last):
        return last
    return "default"


def _apply_profile(name: str) -> None:
    selected = CONFIG.load_settings(name)
    APPLY(selected)

    limit = int(CFG("BEHAVIOUR.MAX_DIGITS", 100_000))
    setter = getattr(sys, "set_int_max_str_digits", None)
    if setter is not None and not os.environ.get("PYTHONINTMAXSTRDIGITS"):
        # Python refuses values below 640 (0 disables the guard)
        setter(max(limit, 640))

    if _rt_current().debug:
        print(f"[debug] active profile: {selected.name}", file=sys.stderr)
        print(f"[debug] profile file: {selected._source}", file=sys.stderr)
        flat = flatten_dotted(selected.as_dict())
        for k in sorted(flat, key=str.lower):
            v = flat[k]
            print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    numbers:
      Literals (1_000_000_007, 0xFF, 1.000.000) or integer expressions
      such as 10**18+1, 2**64-1 or 1e18. Without m, DEFAULTS.MODULUS from
      the active profile is used.

    commands:
      init              Create the workspace and copy the packaged profiles if missing.
      init overwrite    Re-copy packaged profiles (requires FASTFIB_DEV=1).
      where             Show the workspace and package paths.
      profiles          List profiles with their descriptions.
      active            Show the last used profile.
    """)

    p = argparse.ArgumentParser(
        prog="fastfib",
        description="Fibonacci numbers modulo m in O(log n)",
        usage=(
            "fastfib [profile] [n [m]] [--backend B] [--method M] [--pisano] [--output FILE] [--quiet] [--debug]\n"
            "       fastfib init | where | profiles | active\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[profile] [n [m]]",
                   help="optional profile name, the index n and the modulus m")
    p.add_argument("--backend", choices=BACKENDS, default=None,
                   help="integer backend (default: DEFAULTS.BACKEND, else auto)")
    p.add_argument("--method", choices=METHODS, default=None,
                   help="algorithm (default: DEFAULTS.METHOD, else doubling)")
    p.add_argument("--pisano", action="store_true", help="Also print the Pisano period of m")
    p.add_argument("--output", default=None, help="Append results to a file (also prints unless --quiet)")
    p.add_argument("--quiet", action="store_true", help="Suppress screen output")
    p.add_argument("--debug", action="store_true", help="Show profile settings, trace lines and tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    getter = getattr(sys, "get_int_max_str_digits", None)
    saved_limit = getter() if getter is not None else None
    try:
        return _main_impl(argv)
    except (UserInputError, FibDomainError) as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        if "--debug" in (argv if argv is not None else sys.argv) or _rt_current().debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1
    finally:
        # profiles raise the interpreter-wide limit; hand the caller's back
        if saved_limit is not None:
            sys.set_int_max_str_digits(saved_limit)


# ---- rendering ----
def print_result(res: FibResult, om: OutputManager, *, with_pisano: bool = False) -> None:
    n_txt = format_value(res.n)
    m_txt = format_value(res.modulo)
    om.write(f"{label('F(' + n_txt + ') mod ' + m_txt)} = {Fore.GREEN}{Style.BRIGHT}{format_value(res.value)}{Style.RESET_ALL}")
    om.write(f"  F(n+1) mod m = {format_value(res.pair_next)}")
    line = f"  backend: {res.backend}   method: {res.method}"
    if CFG("DISPLAY.SHOW_TIMING", True):
        line += f"   time: {format_elapsed(res.elapsed)}"
    om.write(line)
    if with_pisano:
        period = pisano_period(res.modulo)
        om.write(f"  Pisano period π(m) = {format_value(period)}   n mod π(m) = {format_value(res.n % period)}")


def _run_one(nums: list[str], args, om: OutputManager) -> FibResult:
    if len(nums) > 2:
        raise UserInputError(f"Invalid input: expected n [m], got {len(nums)} values.")
    n = parse_unsigned(nums[0], "n")
    if len(nums) > 1:
        m = parse_unsigned(nums[1], "m")
    else:
        m = int(CFG("DEFAULTS.MODULUS", 1_000_000_007))
        debug(f"no modulus given, using DEFAULTS.MODULUS={m}")
    backend = args.backend or str(CFG("DEFAULTS.BACKEND", "auto"))
    method = args.method or str(CFG("DEFAULTS.METHOD", "doubling"))
    res = compute(n, m, backend=backend, method=method)
    print_result(res, om, with_pisano=args.pisano)
    return res


def _show_help() -> None:
    print(textwrap.dedent(f"""\
        {label('Enter')}  n          F(n) mod DEFAULTS.MODULUS
               n m        F(n) mod m   (expressions like 10**18+1 allowed)
               <profile>  switch profile
               p          list profiles
               h          this help
               q          quit"""))


def _print_profiles() -> None:
    for name, desc in CONFIG.list_profiles_with_descriptions():
        print(f"  {Fore.YELLOW}{name:<12}{Style.RESET_ALL} {desc}")


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)
    _configure_text_streams()

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = reset()
    rt.cli_debug = bool(args.debug)

    _install_loud_error_handlers(args.debug)

    ws, seeded, copied = ensure_workspace_seeded()
    if seeded:
        debug(f"workspace seeded at {ws}: {copied}")

    profile, nums = _resolve_inputs(args.items)

    # --- commands ---
    if profile == "init":
        if nums == ["overwrite"]:
            if os.environ.get("FASTFIB_DEV") != "1":
                print("Refusing to overwrite: set FASTFIB_DEV=1 to enable developer overwrite.")
                return 2
            ws, copied = seed_workspace(overwrite=True)
            print(f"Workspace ready at: {ws} (overwrote existing files)")
            print(f"Copied -> profiles: {copied.get('profiles', 0)}")
            return 0
        if nums:
            raise UserInputError("Invalid input: usage is 'fastfib init [overwrite]'.")
        print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied.get('profiles', 0)}")
        return 0
    if profile == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('fastfib')}")
        return 0
    if profile == "profiles":
        _print_profiles()
        return 0
    if profile == "active":
        print(f"Active profile: {CONFIG.read_current_profile() or 'default'}")
        return 0

    # --- profile ---
    if profile and not CONFIG.has_profile(profile):
        print(f"Unknown profile: '{profile}'", file=sys.stderr)
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()), file=sys.stderr)
        return 2
    profile_name = _select_profile_name(profile)
    if not CONFIG.has_profile(profile_name):
        profile_name = "default"
    _apply_profile(profile_name)

    # --- output routing (CLI --output overrides profile OUTPUT_FILE) ---
    try:
        cli_target = validate_output_setting(args.output)
    except ValueError as e:
        raise UserInputError(f"--output: {e}") from None

    def make_output_manager() -> OutputManager:
        target = cli_target if cli_target is not None else CFG("OUTPUT.OUTPUT_FILE", None)
        return OutputManager(output_file=validate_output_setting(target), quiet=args.quiet)

    # --- one-shot ---
    if nums:
        om = make_output_manager()
        try:
            _run_one(nums, args, om)
        finally:
            om.close()
        return 0

    # --- REPL ---
    if not _rt_current().debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}fastfib v{_ver} — Fibonacci numbers modulo m{Style.RESET_ALL}")

    current_profile = profile_name
    while True:
        try:
            user_input = input(f"\nProfile: {current_profile} — Enter n [m], a profile or h/q: ").strip()
            low = user_input.lower()
            if low in {"", "q", "quit"}:
                break
            if low in {"h", "help"}:
                _show_help()
                continue
            if low in {"p", "profiles"}:
                _print_profiles()
                continue

            parts = user_input.split()
            if parse_int_or_expr(parts[0]) is not None or len(parts) > 1:
                om = make_output_manager()
                try:
                    _run_one(parts, args, om)
                finally:
                    om.close()
                continue

            if CONFIG.has_profile(user_input):
                _apply_profile(user_input)
                CONFIG.write_current_profile(user_input)
                current_profile = user_input
                print(f"Applied profile: {current_profile}")
                continue

            print(f"{Fore.RED}Invalid input: {Style.RESET_ALL}'{user_input}'. Type H for help.")
        except (UserInputError, FibDomainError) as e:
            _print_user_error(str(e))
        except (EOFError, KeyboardInterrupt):
            print()
            break
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
