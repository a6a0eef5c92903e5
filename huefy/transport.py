"""Authenticated HTTP transport for the Huefy API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from .config import ClientConfig
from .errors import NetworkError, TimeoutError

logger = logging.getLogger("huefy.transport")

SDK_VERSION = "1.0.0"
USER_AGENT = f"Huefy-Python-SDK/{SDK_VERSION}"
API_KEY_HEADER = "X-API-Key"


@dataclass
class RawResponse:
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.text)


class Transport:
    """Issues one HTTP call per ``execute``; never interprets status codes."""

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self._config = config
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            API_KEY_HEADER: self._config.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    def url_for(self, path: str) -> str:
        return f"{self._config.base_url}/{path.lstrip('/')}"

    def execute(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> RawResponse:
        url = self.url_for(path)
        effective_timeout = self._config.timeout
        if timeout is not None:
            effective_timeout = min(effective_timeout, timeout)

        try:
            r = self._session.request(
                method,
                url,
                data=json.dumps(body) if body is not None else None,
                headers=self.headers,
                timeout=effective_timeout,
            )
        except requests.Timeout as e:
            raise TimeoutError(
                f"request timed out after {effective_timeout:.1f}s: {method} {url}"
            ) from e
        except requests.RequestException as e:
            raise NetworkError(f"request failed: {e}") from e

        logger.debug(f"{method} {url} -> {r.status_code}")
        return RawResponse(
            status_code=r.status_code, text=r.text or "", headers=dict(r.headers or {})
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()
