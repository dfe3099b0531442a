# tests/test_cli.py
"""CLI, profiles and integer-argument parsing."""

from __future__ import annotations

import builtins
import sys

import pytest

from fastfib import config as CONFIG
from fastfib.bigint import bigint_fib_mod
from fastfib.cli import main
from fastfib.expreval import parse_int_or_expr, parse_unsigned
from fastfib.fmt import abbr_int_fast, strip_ansi
from fastfib.runtime import APPLY, CFG, current
from fastfib.utility import UserInputError
from fastfib.workspace import ensure_workspace_seeded

# ---------- expression parsing -----------------------------------------------------

PARSE_CASES = [
    ("42", 42),
    ("1_000_000_007", 1_000_000_007),
    ("0xFF", 255),
    ("0b1010", 10),
    ("1.000.000", 1_000_000),
    ("1 000 000", 1_000_000),
    ("10**18 + 1", 10**18 + 1),
    ("2**64 - 1", 2**64 - 1),
    ("1e18", 10**18),
    ("3e2", 300),
    ("(1 << 70) | 1", (1 << 70) | 1),
    ("-7", -7),
]


@pytest.mark.parametrize("text,value", PARSE_CASES, ids=[t for t, _ in PARSE_CASES])
def test_parse_int_or_expr(text, value):
    assert parse_int_or_expr(text) == value


@pytest.mark.parametrize("text", ["3.14", "abc", "__import__('os')", "1e-3", "x + 1", "", "7 // 0"])
def test_parse_rejects_non_integers(text):
    assert parse_int_or_expr(text) is None


def test_parse_enforces_digit_limit():
    APPLY({"BEHAVIOUR": {"MAX_DIGITS": 20}})
    assert parse_int_or_expr("10**19") == 10**19
    with pytest.raises(UserInputError):
        parse_int_or_expr("10**20")
    with pytest.raises(UserInputError):
        parse_int_or_expr("2**100000000")


def test_parse_unsigned():
    assert parse_unsigned("5", "n") == 5
    with pytest.raises(UserInputError):
        parse_unsigned("-5", "n")
    with pytest.raises(UserInputError):
        parse_unsigned("five", "n")


def test_abbreviation():
    assert abbr_int_fast(12345) == "12345"
    big = 10**80 + 123
    assert abbr_int_fast(big, threshold=60) == "1000000000…0000000123"


# ---------- profiles ----------------------------------------------------------------


def test_workspace_seeded_with_packaged_profiles(isolated_workspace):
    root, seeded, copied = ensure_workspace_seeded()
    assert root == isolated_workspace.resolve()
    assert seeded
    assert {"default", "bigint", "contest"} <= set(CONFIG.list_all_profiles())
    # second run copies nothing new
    _, seeded_again, _ = ensure_workspace_seeded()
    assert not seeded_again


def test_load_settings_strips_profile_section():
    ensure_workspace_seeded()
    s = CONFIG.load_settings("contest")
    assert s.name == "contest"
    assert "PROFILE" not in s.data
    APPLY(s)
    assert CFG("DEFAULTS.MODULUS") == 998_244_353
    assert CFG("DEFAULTS.METHOD") == "matrix"


def test_bad_profile_values_are_user_errors(isolated_workspace):
    ensure_workspace_seeded()
    p = isolated_workspace / "profiles" / "broken.toml"
    p.write_text('[DEFAULTS]\nMODULUS = 0\n', encoding="utf-8")
    with pytest.raises(UserInputError, match="MODULUS"):
        CONFIG.load_settings("broken")
    p.write_text('[DEFAULTS\nMODULUS = 5\n', encoding="utf-8")
    with pytest.raises(UserInputError, match="broken.toml"):
        CONFIG.load_settings("broken")


def test_current_profile_round_trip():
    assert CONFIG.read_current_profile() is None
    CONFIG.write_current_profile("bigint.toml")
    assert CONFIG.read_current_profile() == "bigint"


# ---------- one-shot CLI -------------------------------------------------------------


def _out(capsys) -> tuple[str, str]:
    cap = capsys.readouterr()
    return strip_ansi(cap.out), strip_ansi(cap.err)


def test_cli_computes_value(capsys):
    assert main(["50", "1_000_000_007"]) == 0
    out, _ = _out(capsys)
    assert "F(50) mod 1000000007 = 586268941" in out
    assert "backend: fixed" in out


def test_cli_uses_profile_default_modulus(capsys):
    assert main(["contest", "10"]) == 0
    out, _ = _out(capsys)
    assert "F(10) mod 998244353 = 55" in out
    assert "method: matrix" in out
    assert "time:" not in out


def test_cli_expressions_and_pisano(capsys):
    assert main(["10**18", "10**6", "--backend", "bigint", "--pisano"]) == 0
    out, _ = _out(capsys)
    assert "= 546875" in out
    assert "backend: bigint" in out
    assert "Pisano period π(m) = 1500000" in out


def test_cli_zero_modulus_exits_2(capsys):
    assert main(["10", "0"]) == 2
    _, err = _out(capsys)
    assert "Error:" in err
    assert "modulo must be >= 1" in err


def test_cli_fixed_backend_out_of_range(capsys):
    assert main(["2**64", "10", "--backend", "fixed"]) == 2
    _, err = _out(capsys)
    assert "64 bits" in err


def test_cli_rejects_garbage(capsys):
    assert main(["10", "ten"]) == 2
    assert main(["1", "2", "3"]) == 2
    assert main(["nosuchprofile", "10"]) == 2


def test_cli_digit_limit_from_profile(capsys):
    assert main(["contest", "10**50", "7"]) == 2
    _, err = _out(capsys)
    assert "decimal digits" in err


def test_cli_output_file(isolated_workspace, capsys):
    assert main(["10", "1000", "--output", "runs/fib.txt", "--quiet"]) == 0
    out, _ = _out(capsys)
    assert out == ""
    text = (isolated_workspace / "runs" / "fib.txt").read_text(encoding="utf-8")
    assert "F(10) mod 1000 = 55" in text
    assert "\x1b[" not in text


def test_cli_output_forbidden_name(capsys):
    assert main(["10", "7", "--output", "notes.md"]) == 2


def test_cli_commands(isolated_workspace, capsys):
    assert main(["where"]) == 0
    out, _ = _out(capsys)
    assert str(isolated_workspace.resolve()) in out
    assert main(["profiles"]) == 0
    out, _ = _out(capsys)
    assert "contest" in out
    assert main(["init", "overwrite"]) == 2


def test_cli_debug_traces(capsys):
    assert main(["10", "7", "--debug"]) == 0
    _, err = _out(capsys)
    assert "[debug] active profile: default" in err
    assert "compute n=10 m=7" in err


# ---------- REPL ----------------------------------------------------------------------


def test_repl_session(monkeypatch, capsys):
    answers = iter(["10 1000", "0 0", "bigint", "20", "bogus", "q"])
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(answers))
    assert main([]) == 0
    out, err = _out(capsys)
    assert "F(10) mod 1000 = 55" in out
    assert "Applied profile: bigint" in out
    assert "F(20) mod 1000000007 = 6765" in out
    assert "Invalid input:" in out
    assert "modulo must be >= 1" in err
    assert CONFIG.read_current_profile() == "bigint"


# ---------- runtime ------------------------------------------------------------------


def test_apply_accepts_settings_and_plain_dicts():
    ensure_workspace_seeded()
    APPLY(CONFIG.load_settings("contest"))
    assert current().profile_name == "contest"
    assert CFG("DEFAULTS.BACKEND") == "fixed"
    APPLY({"DEFAULTS": {"MODULUS": 11}})
    assert CFG("DEFAULTS.MODULUS") == 11
    assert CFG("DEFAULTS.BACKEND", "auto") == "auto"
    assert CFG("DEFAULTS.MODULUS.DEEPER", "x") == "x"


def test_profile_debug_switches_off_again():
    APPLY({"BEHAVIOUR": {"DEBUG": True}})
    assert current().debug
    APPLY({"BEHAVIOUR": {"DEBUG": False}})
    assert not current().debug


def test_cli_debug_flag_outlives_profile_switches():
    rt = current()
    rt.cli_debug = True
    APPLY({"BEHAVIOUR": {"DEBUG": False}})
    assert rt.debug


def test_repl_profile_without_debug_turns_traces_off(isolated_workspace, monkeypatch, capsys):
    ensure_workspace_seeded()
    profiles = isolated_workspace / "profiles"
    (profiles / "loud.toml").write_text("[BEHAVIOUR]\nDEBUG = true\n", encoding="utf-8")
    (profiles / "calm.toml").write_text("[BEHAVIOUR]\nDEBUG = false\n", encoding="utf-8")
    answers = iter(["loud", "10 7", "calm", "11 7", "q"])
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(answers))
    assert main([]) == 0
    _, err = _out(capsys)
    assert "compute n=10 m=7" in err
    assert "compute n=11 m=7" not in err


# ---------- large arguments -----------------------------------------------------------


def test_cli_huge_decimal_index_as_first_argument(capsys):
    n_txt = "1" + "0" * 5000
    expected = int(bigint_fib_mod(10**5000, 1000))
    assert main([n_txt, "1000"]) == 0
    out, err = _out(capsys)
    assert f"mod 1000 = {expected}" in out
    assert err == ""


def test_has_profile_false_for_unstorable_names():
    assert CONFIG.has_profile("9" * 5000) is False


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no int/str digit limit")
def test_cli_restores_int_string_limit(capsys):
    before = sys.get_int_max_str_digits()
    assert main(["10", "7"]) == 0
    assert main(["10", "0"]) == 2
    assert sys.get_int_max_str_digits() == before
