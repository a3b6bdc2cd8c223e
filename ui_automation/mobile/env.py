from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

_QUOTES = ("'", '"')
_EXPORT = "export "

_loaded_once = False


def default_dotenv_path() -> Path:
    # ui_automation/mobile/env.py lives two packages below the checkout root.
    return Path(__file__).resolve().parents[2] / ".env"


def _parse_line(line: str) -> Optional[tuple[str, str]]:
    stripped = line.strip()
    if stripped.startswith(_EXPORT):
        stripped = stripped[len(_EXPORT) :].lstrip()
    if not stripped or stripped[0] == "#" or "=" not in stripped:
        return None
    name, _, raw_value = stripped.partition("=")
    name = name.strip()
    if not name:
        return None
    raw_value = raw_value.strip()
    if len(raw_value) > 1 and raw_value[0] in _QUOTES and raw_value[-1] == raw_value[0]:
        raw_value = raw_value[1:-1]
    return name, raw_value


def parse_dotenv(text: str) -> dict[str, str]:
    """
    KEY=VALUE pairs from .env text. Comments, blank lines and lines without
    "=" are skipped; `export ` prefixes and matching outer quotes are dropped.
    """
    return dict(pair for pair in map(_parse_line, text.splitlines()) if pair is not None)


def load_dotenv(*, path: Optional[str | Path] = None, override: bool = False) -> dict[str, str]:
    """
    Copy a .env file into os.environ. Variables already set in the
    environment are left alone unless `override` is true. Returns what was set.
    """
    env_file = default_dotenv_path() if path is None else Path(path).expanduser().resolve()
    if env_file.is_dir():
        raise RuntimeError(f".env path is a directory: {env_file}")
    if not env_file.is_file():
        return {}

    applied = {
        name: value
        for name, value in parse_dotenv(env_file.read_text(encoding="utf-8")).items()
        if override or name not in os.environ
    }
    os.environ.update(applied)
    return applied


def ensure_dotenv_loaded() -> dict[str, str]:
    global _loaded_once
    if _loaded_once:
        return {}
    _loaded_once = True
    return load_dotenv()
