from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib as toml
except ImportError:  # Python < 3.11
    import tomli as toml  # type: ignore

from fastfib.utility import UserInputError
from fastfib.workspace import ensure_workspace_seeded, workspace_dir

_BACKENDS = {"auto", "fixed", "bigint"}
_METHODS = {"doubling", "matrix", "linear"}


@dataclass
class Settings:
    """
    Wrap the full TOML dict (without the [PROFILE] section).
    .as_dict() feeds runtime.apply().

      - name:        resolved profile name (file stem if not given in [PROFILE])
      - description: one-line description from [PROFILE] or "(no description)"
    """
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


# --- Paths -----------------------------------------------------------------

def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{name}.toml"


# --- I/O -------------------------------------------------------------------


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return toml.load(f)
    except toml.TOMLDecodeError as e:
        lineno = getattr(e, "lineno", None)
        colno = getattr(e, "colno", None)
        msg = getattr(e, "msg", str(e))
        where = []
        if lineno is not None:
            where.append(f"line {lineno}")
        if colno is not None:
            where.append(f"column {colno}")
        loc = f" (at {', '.join(where)})" if where else ""
        raise UserInputError(f"reading {path.name}: {msg}{loc}.") from None


# --- Metadata / validation ---------------------------------------------------


def _sanitize_oneline(s: str) -> str:
    return " ".join(str(s).split()) or "(no description)"


def _split_profile_data(raw: dict[str, Any], fallback_name: str) -> tuple[dict[str, Any], str, str]:
    """Return (settings_without_profile, resolved_name, resolved_description)."""
    meta = raw.get("PROFILE") or {}
    data = {k: v for k, v in raw.items() if k != "PROFILE"}
    name = str(meta.get("name") or fallback_name)
    description = _sanitize_oneline(str(meta.get("description") or ""))
    return data, name, description


def _validate_defaults(data: dict[str, Any], source: str) -> None:
    defaults = data.get("DEFAULTS", {}) or {}
    mod = defaults.get("MODULUS")
    if mod is not None and (not isinstance(mod, int) or isinstance(mod, bool) or mod < 1):
        raise UserInputError(f"{source}: DEFAULTS.MODULUS must be an integer >= 1, got {mod!r}.")
    backend = defaults.get("BACKEND")
    if backend is not None and str(backend).lower() not in _BACKENDS:
        raise UserInputError(
            f"{source}: DEFAULTS.BACKEND must be one of {', '.join(sorted(_BACKENDS))}, got {backend!r}."
        )
    method = defaults.get("METHOD")
    if method is not None and str(method).lower() not in _METHODS:
        raise UserInputError(
            f"{source}: DEFAULTS.METHOD must be one of {', '.join(sorted(_METHODS))}, got {method!r}."
        )


# --- Public API ------------------------------------------------------------


def list_all_profiles() -> list[str]:
    """Return the available profile names (filename stems)."""
    ensure_workspace_seeded()
    pdir = _profiles_dir()
    if not pdir.exists():
        return []
    return sorted(p.stem for p in pdir.glob("*.toml"))


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    items: list[tuple[str, str]] = []
    for p in _profiles_dir().glob("*.toml"):
        try:
            _, nm, desc = _split_profile_data(_load_toml(p), p.stem)
        except UserInputError:
            nm, desc = p.stem, "(unreadable profile)"
        items.append((nm, desc))
    return sorted(items, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    try:
        return _profile_path(name).exists()
    except OSError:
        # names the filesystem cannot hold (too long, reserved) are no profile
        return False


def load_settings(name: str | None) -> Settings:
    """
    Load a profile by name (default 'default'), strip the [PROFILE] metadata,
    validate [DEFAULTS] and return Settings(data=..., name=..., description=..., _source=path).
    """
    if not name:
        name = "default"

    path = _profile_path(name)
    if not path.exists():
        raise FileNotFoundError(f"Profile '{name}' not found at {path}")

    data, resolved_name, description = _split_profile_data(_load_toml(path), path.stem)
    _validate_defaults(data, path.name)

    return Settings(
        data=data,
        name=resolved_name,
        description=description,
        _source=path,
    )


def _current_profile_path() -> Path:
    p = _profiles_dir()
    p.mkdir(parents=True, exist_ok=True)
    return p / ".current"


def read_current_profile() -> str | None:
    try:
        s = _current_profile_path().read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return s[:-5] if s.lower().endswith(".toml") else (s or None)


def write_current_profile(name: str) -> None:
    nm = (name or "").strip()
    if nm.lower().endswith(".toml"):
        nm = nm[:-5]
    _current_profile_path().write_text(nm, encoding="utf-8")
