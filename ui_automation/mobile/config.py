from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .env import ensure_dotenv_loaded
from .scroll import ScrollBudget

DEFAULT_APPIUM_SERVER_URL = "http://127.0.0.1:4723"

APP_CAPABILITY_KEYS = ("appium:app", "app")


def load_json_file(path: str | Path) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"JSON file not found: {file_path}")
    if file_path.is_dir():
        raise IsADirectoryError(f"Expected a JSON file but found a directory: {file_path}")

    raw = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected top-level JSON object in {file_path}")
    return data


def require_key(obj: dict[str, Any], key: str, *, context: str) -> Any:
    if key not in obj:
        raise ValueError(f"Missing required key '{key}' in {context}")
    return obj[key]


def _as_non_negative_float(value: Any, *, field: str, context: str) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{context}: '{field}' must be a number") from e
    if parsed < 0:
        raise ValueError(f"{context}: '{field}' must be >= 0")
    return parsed


def _as_non_negative_int(value: Any, *, field: str, context: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{context}: '{field}' must be an integer")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{context}: '{field}' must be an integer") from e
    if parsed < 0:
        raise ValueError(f"{context}: '{field}' must be >= 0")
    return parsed


@dataclass(frozen=True)
class EngineSettings:
    appium_server_url: str
    capabilities: dict[str, Any]
    explicit_timeout_s: float = 10.0
    implicit_timeout_s: float = 0.0
    poll_interval_s: float = 0.25
    scroll_down_budget: int = 3
    scroll_up_budget: int = 5
    swipe_duration_ms: int = 500
    request_timeout_s: float = 30.0

    def scroll_budget(self) -> ScrollBudget:
        return ScrollBudget(max_down=self.scroll_down_budget, max_up=self.scroll_up_budget)


def resolve_app_path(capabilities_payload: dict[str, Any], *, base_dir: Path) -> dict[str, Any]:
    """
    Return a copy of the session payload with a relative app path made
    absolute against `base_dir`, so Appium does not depend on its own cwd.
    """
    payload = copy.deepcopy(capabilities_payload)
    caps = payload.get("capabilities")
    if not isinstance(caps, dict):
        return payload
    targets = [caps.get("alwaysMatch")] + list(caps.get("firstMatch") or [])
    for target in targets:
        if not isinstance(target, dict):
            continue
        for key in APP_CAPABILITY_KEYS:
            value = target.get(key)
            if isinstance(value, str) and value and "://" not in value and not Path(value).is_absolute():
                target[key] = str((base_dir / value).resolve())
    return payload


def load_engine_settings(path: str | Path) -> EngineSettings:
    """
    Load engine settings from JSON (fail-fast).

    Schema:
      {
        "appium_server_url": "http://127.0.0.1:4723",
        "capabilities": {"capabilities": {"alwaysMatch": {...}, "firstMatch": [{}]}},
        "explicit_timeout_s": 10,
        "implicit_timeout_s": 0,
        "poll_interval_s": 0.25,
        "scroll_budget": {"down": 3, "up": 5},
        "swipe_duration_ms": 500,
        "request_timeout_s": 30
      }

    `capabilities` may also be a path to a separate capabilities JSON file.
    APPIUM_SERVER_URL and MOBILE_EXPLICIT_TIMEOUT_S (env or repo .env)
    override the file.
    """
    ensure_dotenv_loaded()
    config_path = Path(path).resolve()
    config = load_json_file(config_path)
    context = str(config_path)

    caps_raw = require_key(config, "capabilities", context=context)
    caps_base = config_path.parent
    if isinstance(caps_raw, str):
        caps_path = (config_path.parent / caps_raw).resolve()
        caps_raw = load_json_file(caps_path)
        caps_base = caps_path.parent
    if not isinstance(caps_raw, dict):
        raise ValueError(f"{context}: 'capabilities' must be an object or a path to a JSON file")
    require_key(caps_raw, "capabilities", context=f"{context}: capabilities")

    server_url = os.environ.get("APPIUM_SERVER_URL") or config.get("appium_server_url") or DEFAULT_APPIUM_SERVER_URL
    if not isinstance(server_url, str) or not server_url.strip():
        raise ValueError(f"{context}: 'appium_server_url' must be a non-empty string")

    explicit_raw = os.environ.get("MOBILE_EXPLICIT_TIMEOUT_S") or config.get("explicit_timeout_s", 10.0)
    poll_interval_s = _as_non_negative_float(config.get("poll_interval_s", 0.25), field="poll_interval_s", context=context)
    if poll_interval_s == 0 or poll_interval_s > 0.25:
        raise ValueError(f"{context}: 'poll_interval_s' must be in (0, 0.25]")

    budget_raw = config.get("scroll_budget") or {}
    if not isinstance(budget_raw, dict):
        raise ValueError(f"{context}: 'scroll_budget' must be an object")

    return EngineSettings(
        appium_server_url=server_url.strip(),
        capabilities=resolve_app_path(caps_raw, base_dir=caps_base),
        explicit_timeout_s=_as_non_negative_float(explicit_raw, field="explicit_timeout_s", context=context),
        implicit_timeout_s=_as_non_negative_float(
            config.get("implicit_timeout_s", 0.0), field="implicit_timeout_s", context=context
        ),
        poll_interval_s=poll_interval_s,
        scroll_down_budget=_as_non_negative_int(budget_raw.get("down", 3), field="scroll_budget.down", context=context),
        scroll_up_budget=_as_non_negative_int(budget_raw.get("up", 5), field="scroll_budget.up", context=context),
        swipe_duration_ms=_as_non_negative_int(
            config.get("swipe_duration_ms", 500), field="swipe_duration_ms", context=context
        ),
        request_timeout_s=_as_non_negative_float(
            config.get("request_timeout_s", 30.0), field="request_timeout_s", context=context
        ),
    )
