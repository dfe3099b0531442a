# runtime.py
"""
Active profile settings for the running process.

A Runtime sits in a ContextVar; APPLY installs a profile into it and CFG
reads dotted keys back out (CFG("DEFAULTS.MODULUS", 1_000_000_007)).
"""
from __future__ import annotations

import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from colorama import Fore, Style


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    cli_debug: bool = False      # --debug, fixed for the whole run
    profile_debug: bool = False  # BEHAVIOUR.DEBUG of the last applied profile

    @property
    def debug(self) -> bool:
        return self.cli_debug or self.profile_debug

    def apply(self, settings: Any) -> None:
        """Install a Settings object (anything with as_dict()) or a plain nested dict."""
        if isinstance(settings, dict):
            self.profile_name = "default"
            self.settings = dict(settings)
        else:
            self.profile_name = settings.name or "default"
            self.settings = dict(settings.as_dict())
        self.profile_debug = self.get("BEHAVIOUR.DEBUG", False) is True

    def get(self, key: str, default: Any = None) -> Any:
        cur: Any = self.settings
        for part in key.split("."):
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


_current_runtime: ContextVar[Runtime | None] = ContextVar("fastfib_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime (used between CLI runs and in tests)."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def debug(msg: str) -> None:
    """Write a [debug] trace line to stderr when debug mode is on."""
    if current().debug:
        print(f"{Fore.CYAN}[debug]{Style.RESET_ALL} {msg}", file=sys.stderr)
