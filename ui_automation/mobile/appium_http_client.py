from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import requests

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"
LEGACY_ELEMENT_KEY = "ELEMENT"


class AppiumHTTPError(RuntimeError):
    """
    Any failure talking to the Appium server: connection problems, HTTP
    status >= 400, or a payload that is not the shape the command returns.
    """

    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_json: Optional[dict[str, Any]] = None,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_json = response_json
        self.response_text = response_text


@dataclass(frozen=True)
class WebDriverElementRef:
    element_id: str


def _unwrap(body: dict[str, Any]) -> Any:
    # W3C responses carry the result under "value"; some servers return it bare.
    return body["value"] if "value" in body else body


def _element_id(entry: Any) -> str:
    if not isinstance(entry, dict):
        raise ValueError(f"Element reference must be an object, got {type(entry).__name__}")
    for key in (W3C_ELEMENT_KEY, LEGACY_ELEMENT_KEY):
        if entry.get(key):
            return str(entry[key])
    raise ValueError(f"No element id among keys {sorted(entry)}")


def _error_detail(body: Optional[dict[str, Any]]) -> Optional[str]:
    if body is None:
        return None
    value = _unwrap(body)
    if isinstance(value, dict):
        return value.get("error") or value.get("message")
    return None


def swipe_actions_payload(*, x1: int, y1: int, x2: int, y2: int, duration_ms: int) -> dict[str, Any]:
    """
    W3C pointer-action sequence for one touch swipe:
    move to start, press, move to end over `duration_ms`, release.
    """
    return {
        "actions": [
            {
                "type": "pointer",
                "id": "finger",
                "parameters": {"pointerType": "touch"},
                "actions": [
                    {"type": "pointerMove", "duration": 0, "origin": "viewport", "x": x1, "y": y1},
                    {"type": "pointerDown", "button": 0},
                    {"type": "pointerMove", "duration": duration_ms, "origin": "viewport", "x": x2, "y": y2},
                    {"type": "pointerUp", "button": 0},
                ],
            }
        ]
    }


class AppiumHTTPClient:
    """
    Thin WebDriver-over-HTTP client for an Appium server, limited to the
    commands the interaction engine and session bootstrap use.
    """

    def __init__(self, server_url: str, *, timeout_s: float = 30.0, session: Optional[requests.Session] = None) -> None:
        if not server_url:
            raise ValueError("server_url is required")
        self.server_url = server_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session_id: Optional[str] = None
        self._http = session or requests.Session()

    def _request(self, method: str, path: str, *, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = self.server_url + path
        try:
            response = self._http.request(method, url, json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise AppiumHTTPError(message=f"Failed to call Appium server: {e}", method=method, url=url) from e

        body: Optional[dict[str, Any]] = None
        raw_text: Optional[str] = None
        try:
            body = response.json()
        except ValueError:
            raw_text = response.text

        failed = response.status_code >= 400
        if failed or not isinstance(body, dict):
            if failed:
                detail = _error_detail(body)
                message = f"Appium HTTP {response.status_code} for {method} {path}" + (f": {detail}" if detail else "")
            else:
                message = f"Appium returned non-JSON response for {method} {path}"
            raise AppiumHTTPError(
                message=message,
                method=method,
                url=url,
                status_code=response.status_code,
                response_json=body if isinstance(body, dict) else None,
                response_text=raw_text,
            )
        return body

    def _session_value(self, method: str, path: str, *, json: Optional[dict[str, Any]] = None) -> Any:
        if not self.session_id:
            raise RuntimeError("No active Appium session. Call create_session() first.")
        return _unwrap(self._request(method, f"/session/{self.session_id}{path}", json=json))

    def _typed_value(self, method: str, path: str, expected: type, *, json: Optional[dict[str, Any]] = None) -> Any:
        value = self._session_value(method, path, json=json)
        if not isinstance(value, expected):
            raise AppiumHTTPError(
                message=f"Unexpected {path} response shape (expected {expected.__name__})",
                method=method,
                url=f"{self.server_url}/session/{self.session_id}{path}",
                response_json={"value": value},
            )
        return value

    # -- session ------------------------------------------------------------

    def create_session(self, session_payload: dict[str, Any]) -> str:
        """
        POST /session with a W3C payload
        (`{"capabilities": {"alwaysMatch": {...}, "firstMatch": [{}]}}`).
        The id is read from `value.sessionId` or a top-level `sessionId`.
        """
        if not isinstance(session_payload, dict) or not session_payload:
            raise ValueError("session_payload must be a non-empty dict")
        body = self._request("POST", "/session", json=session_payload)
        value = _unwrap(body)
        session_id = (value.get("sessionId") if isinstance(value, dict) else None) or body.get("sessionId")
        if not session_id:
            raise AppiumHTTPError(
                message="Appium did not return a sessionId in the create_session response",
                method="POST",
                url=f"{self.server_url}/session",
                response_json=body,
            )
        self.session_id = str(session_id)
        return self.session_id

    def delete_session(self) -> None:
        session_id, self.session_id = self.session_id, None
        if session_id:
            self._request("DELETE", f"/session/{session_id}")

    def set_implicit_wait(self, timeout_s: float) -> None:
        self._session_value("POST", "/timeouts", json={"implicit": int(timeout_s * 1000)})

    # -- screen -------------------------------------------------------------

    def get_page_source(self) -> str:
        return self._typed_value("GET", "/source", str)

    def get_window_rect(self) -> dict[str, int]:
        rect = self._typed_value("GET", "/window/rect", dict)
        try:
            return {key: int(rect[key]) for key in ("x", "y", "width", "height")}
        except (KeyError, TypeError, ValueError) as e:
            raise AppiumHTTPError(
                message=f"Window rect is missing coordinates: {rect!r}",
                method="GET",
                url=f"{self.server_url}/session/{self.session_id}/window/rect",
                response_json={"value": rect},
            ) from e

    def swipe(self, *, x1: int, y1: int, x2: int, y2: int, duration_ms: int = 500) -> None:
        self._session_value(
            "POST",
            "/actions",
            json=swipe_actions_payload(x1=x1, y1=y1, x2=x2, y2=y2, duration_ms=duration_ms),
        )

    # -- elements -----------------------------------------------------------

    def find_elements(self, *, using: str, value: str) -> list[WebDriverElementRef]:
        if not using or not value:
            raise ValueError("'using' and 'value' are required to find elements")
        entries = self._typed_value("POST", "/elements", list, json={"using": using, "value": value})
        return [WebDriverElementRef(element_id=_element_id(entry)) for entry in entries]

    def is_element_displayed(self, element: WebDriverElementRef) -> bool:
        return self._typed_value("GET", f"/element/{element.element_id}/displayed", bool)

    def is_element_enabled(self, element: WebDriverElementRef) -> bool:
        return self._typed_value("GET", f"/element/{element.element_id}/enabled", bool)

    def get_element_text(self, element: WebDriverElementRef) -> str:
        return self._typed_value("GET", f"/element/{element.element_id}/text", str)

    def get_element_attribute(self, element: WebDriverElementRef, name: str) -> Optional[str]:
        if not name:
            raise ValueError("attribute name is required")
        value = self._session_value("GET", f"/element/{element.element_id}/attribute/{name}")
        return None if value is None else str(value)

    def click(self, element: WebDriverElementRef) -> None:
        self._session_value("POST", f"/element/{element.element_id}/click", json={})

    def clear(self, element: WebDriverElementRef) -> None:
        self._session_value("POST", f"/element/{element.element_id}/clear", json={})

    def send_keys(self, element: WebDriverElementRef, *, text: str) -> None:
        if text is None:
            raise ValueError("text must not be None")
        # Older servers read `value` (a list of characters), newer ones `text`.
        self._session_value(
            "POST",
            f"/element/{element.element_id}/value",
            json={"text": text, "value": list(text)},
        )
