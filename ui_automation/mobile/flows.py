from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, Optional, Union

from .appium_http_client import AppiumHTTPClient
from .calendar_picker import CalendarNavigator
from .config import EngineSettings, load_engine_settings
from .driver import AppiumDriver
from .engine import InteractionEngine
from .locators import Locator, describe

logger = logging.getLogger("ui_automation.mobile.flows")


@dataclass(frozen=True)
class MobileSession:
    session_id: str
    client: AppiumHTTPClient
    driver: AppiumDriver
    engine: InteractionEngine


def _default_artifacts_dir() -> Path:
    return Path(os.environ.get("MOBILE_ARTIFACTS_DIR", "artifacts")).resolve()


def build_engine(driver: AppiumDriver, settings: EngineSettings) -> InteractionEngine:
    return InteractionEngine(
        driver,
        explicit_timeout_s=settings.explicit_timeout_s,
        poll_interval_s=settings.poll_interval_s,
        scroll_budget=settings.scroll_budget(),
        swipe_duration_ms=settings.swipe_duration_ms,
    )


@contextmanager
def open_mobile_session(settings: EngineSettings) -> Iterator[MobileSession]:
    """
    Create an Appium session and hand out an engine that owns it.

    The implicit wait is pinned (0 by default) so element lookups return
    immediately and only the engine's explicit deadlines decide how long
    anything waits. The session is deleted on exit, even on failure.
    """
    client = AppiumHTTPClient(settings.appium_server_url, timeout_s=settings.request_timeout_s)
    session_id = client.create_session(settings.capabilities)
    logger.info("Appium session %s started on %s", session_id, settings.appium_server_url)
    try:
        client.set_implicit_wait(settings.implicit_timeout_s)
        driver = AppiumDriver(client)
        yield MobileSession(
            session_id=session_id,
            client=client,
            driver=driver,
            engine=build_engine(driver, settings),
        )
    finally:
        client.delete_session()
        logger.info("Appium session %s closed", session_id)


def run_date_pick(
    *,
    settings_json_path: str,
    date_field: Locator,
    target: Union[date, str],
) -> date:
    settings = load_engine_settings(settings_json_path)
    with open_mobile_session(settings) as session:
        return CalendarNavigator(session.engine).pick(date_field, target)


def run_locator_probe(*, settings_json_path: str, locator: Locator) -> bool:
    settings = load_engine_settings(settings_json_path)
    with open_mobile_session(settings) as session:
        visible = session.engine.probe_visible(locator)
        logger.info("probe %s -> %s", describe(locator), visible)
        return visible


def capture_page_source(*, settings_json_path: str, artifacts_dir: Optional[str] = None) -> Path:
    """
    Save the current UI XML (/source) for locator discovery.
    """
    settings = load_engine_settings(settings_json_path)
    out_dir = Path(artifacts_dir).resolve() if artifacts_dir else _default_artifacts_dir()
    out_dir.mkdir(parents=True, exist_ok=True)
    with open_mobile_session(settings) as session:
        xml = session.client.get_page_source()
    path = out_dir / f"mobile_page_source_{datetime.now().strftime('%Y%m%d-%H%M%S-%f')}.xml"
    path.write_text(xml, encoding="utf-8")
    return path
