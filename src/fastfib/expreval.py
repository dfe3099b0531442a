"""
Parsing of integer arguments: plain literals, grouped digits, based literals
and a safe subset of Python integer expressions (10**18 + 1, 2**64 - 1, 1e18).
"""

import ast
import operator as op
import re

from fastfib.runtime import CFG
from fastfib.utility import UserInputError, dec_digits

_THIN_SPACES = ("\u2009", "\u202F", "\u00A0")  # thin, narrow no-break, no-break
_SEP_CLASS = r"[ ,._\u00A0\u2009\u202F]"      # spaces/commas/dots/underscores & NBSP variants
_GROUPED_RE = re.compile(rf"^[+-]?\d{{1,3}}(?:{_SEP_CLASS}\d{{3}})+$")

_ALLOWED_BINOPS = {
    ast.Add:      op.add,
    ast.Sub:      op.sub,
    ast.Mult:     op.mul,
    ast.FloorDiv: op.floordiv,
    ast.Mod:      op.mod,
    ast.LShift:   op.lshift,
    ast.RShift:   op.rshift,
    ast.BitAnd:   op.and_,
    ast.BitXor:   op.xor,
    ast.BitOr:    op.or_,
}
_ALLOWED_UNARYOPS = {
    ast.UAdd: op.pos,
    ast.USub: op.neg,
}

_MAX_NODES = 256  # sanity guard

_SCI_NOTATION_TOKEN = re.compile(
    r"""
    (?<![\w.])          # not immediately after a word char or dot
    ([+\-]?)            # optional sign
    (\d+)               # mantissa (digits)
    [eE]
    ([+\-]?\d+)         # exponent (optional sign + digits)
    (?![\w.])           # not immediately before a word char or dot
    """,
    re.VERBOSE,
)


class _IntExprError(Exception):
    pass


def _max_digits() -> int:
    return int(CFG("BEHAVIOUR.MAX_DIGITS", 100_000))


def _too_many_digits(limit: int) -> UserInputError:
    return UserInputError(
        f"number has more than {limit} decimal digits. "
        "Increase the limit in the profile or pass a smaller value."
    )


def _would_exceed_digit_limit_for_pow(base: int, exp: int, limit: int) -> bool:
    """
    Cheap lower bound on the decimal digits of base**exp: for |base| >= 2,
    digits(base**exp) >= digits(2**exp) ~= exp * log10(2) + 1.
    """
    if exp <= 0 or abs(base) <= 1:
        return False
    digits_lb = 1 + (exp * 30103) // 100000
    return digits_lb > limit


def _rewrite_scientific_notation(expr: str) -> str:
    """
    Rewrite '1e3', '2E5', '-3e10' into exact integer expressions:

        1e3   -> 10**(3)
        2e5   -> (2)*10**(5)
    """

    def repl(m: re.Match) -> str:
        sign, mant, exp_str = m.group(1), m.group(2), m.group(3)
        exp = int(exp_str)
        if exp < 0:
            raise _IntExprError("scientific notation with negative exponent is not an integer")
        if int(mant) == 0:
            return "0"
        full_mant = (sign or "") + mant
        if full_mant == "1":
            return f"10**({exp})"
        return f"({full_mant})*10**({exp})"

    return _SCI_NOTATION_TOKEN.sub(repl, expr)


def _eval_int_expr(expr: str) -> int:
    """
    Evaluate a *safe* integer expression.

    Allowed: integers (incl. underscores), parentheses,
             + - * // % **, << >>, & ^ |, unary +/-.
    Disallowed: names, calls, attributes, subscripts, floats.
    Negative exponents are rejected; BEHAVIOUR.MAX_DIGITS is enforced on
    literals, powers and the final result.
    """
    limit = _max_digits()
    expr = _rewrite_scientific_notation(expr)

    try:
        tree = ast.parse(expr.strip(), mode="eval")
    except SyntaxError as e:
        raise _IntExprError("invalid integer expression") from e

    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise _IntExprError("expression too large")

    def _eval(node) -> int:
        if isinstance(node, ast.Expression):
            return _eval(node.body)

        if isinstance(node, ast.Constant):
            val = node.value
            if isinstance(val, bool) or not isinstance(val, int):
                raise _IntExprError("only integer literals are allowed")
            if dec_digits(val) > limit:
                raise _too_many_digits(limit)
            return val

        if isinstance(node, ast.UnaryOp) and type(node.op) in _ALLOWED_UNARYOPS:
            return _ALLOWED_UNARYOPS[type(node.op)](_eval(node.operand))

        if isinstance(node, ast.BinOp):
            op_type = type(node.op)

            if op_type is ast.Pow:
                base = _eval(node.left)
                exp = _eval(node.right)
                if exp < 0:
                    raise UserInputError("negative exponents are not allowed in integer expressions")
                if _would_exceed_digit_limit_for_pow(base, exp, limit):
                    raise _too_many_digits(limit)
                return pow(base, exp)

            if op_type in _ALLOWED_BINOPS:
                left = _eval(node.left)
                right = _eval(node.right)
                if op_type in (ast.FloorDiv, ast.Mod) and right == 0:
                    raise _IntExprError("division by zero")
                if op_type in (ast.LShift, ast.RShift) and right < 0:
                    raise _IntExprError("negative shift count")
                if op_type is ast.LShift and right > limit * 4:
                    raise _too_many_digits(limit)
                return _ALLOWED_BINOPS[op_type](left, right)

        raise _IntExprError(f"unsupported syntax: {type(node).__name__}")

    value = _eval(tree)
    if dec_digits(value) > limit:
        raise _too_many_digits(limit)
    return value


def _parse_int_literal(text: str) -> int | None:
    """Accepts: 42  -7  1_000_000  0xFF  0b1010  1.000.000  1 000 000
       Rejects: 3.14  1,23  12.34.56  0xG1"""
    if text is None:
        return None

    s = text.strip()
    if not s:
        return None

    for ch in _THIN_SPACES:
        s = s.replace(ch, " ")

    if s.lower().startswith(("0x", "0b", "0o")):
        try:
            return int(s.replace("_", ""), 0)
        except ValueError:
            return None

    if re.fullmatch(r"[+-]?\d[\d_]*", s):
        try:
            return int(s.replace("_", ""))
        except ValueError:
            return None

    if _GROUPED_RE.match(s):
        return int(re.sub(_SEP_CLASS, "", s))

    return None


def parse_int_or_expr(s: str) -> int | None:
    """Return the integer value of `s`, or None if it is not an integer or expression."""
    n = _parse_int_literal(s)
    if n is not None:
        limit = _max_digits()
        if dec_digits(n) > limit:
            raise _too_many_digits(limit)
        return n
    try:
        return _eval_int_expr(s)
    except _IntExprError:
        return None


def parse_unsigned(s: str, what: str) -> int:
    """Parse a CLI argument that must be a non-negative integer."""
    n = parse_int_or_expr(s)
    if n is None:
        raise UserInputError(f"Invalid input: {what} '{s}' is not an integer or integer expression.")
    if n < 0:
        raise UserInputError(f"Invalid input: {what} must be non-negative, got {n}.")
    return n
