"""HTTP boundary to the external scheduling service."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from roster_desk.config import DEFAULT_TIMEOUT, ENV_API_BASE
from roster_desk.errors import ScheduleServiceError
from roster_desk.payload import SchedulePayload

logger = logging.getLogger(__name__)

GENERATE_PATH = "/schedule/generate"


def _is_json(response: requests.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "").lower()


def _body(response: requests.Response) -> Any:
    if _is_json(response):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def error_message(response: requests.Response) -> str:
    """Human-readable failure text: ``detail``/``message`` from JSON, else the body."""
    body = _body(response)
    message: Any = None
    if isinstance(body, dict):
        message = body.get("detail") or body.get("message") or json.dumps(body)
    elif isinstance(body, str):
        message = body.strip()
    elif body is not None:
        message = json.dumps(body)

    if message and not isinstance(message, str):
        message = json.dumps(message)
    return message or f"Request failed ({response.status_code})"


class ScheduleClient:
    def __init__(self, *, api_base: str, token: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.api_base = (api_base or "").rstrip("/")
        self.token = token or ""
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        if not self.token:
            raise ScheduleServiceError("You must login again.")
        if not self.api_base:
            raise ScheduleServiceError(f"Missing {ENV_API_BASE}; set it in the environment or .env file.")

        url = f"{self.api_base}{path}"
        logger.info("POST %s", url)
        try:
            response = requests.post(url, json=body, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Request to %s failed: %s", url, exc)
            raise ScheduleServiceError(str(exc) or "Failed") from exc

        if not response.ok:
            message = error_message(response)
            logger.warning("Scheduling service returned %s: %s", response.status_code, message)
            raise ScheduleServiceError(message, status_code=response.status_code)
        return _body(response)

    def generate(self, request_payload: dict[str, Any]) -> SchedulePayload:
        data = self._post(GENERATE_PATH, request_payload)
        try:
            return SchedulePayload.from_dict(data)
        except ValueError as exc:
            raise ScheduleServiceError(f"Unexpected response from scheduling service: {exc}") from exc
