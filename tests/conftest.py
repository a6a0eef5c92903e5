import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from huefy import ClientConfig, HuefyClient, RetryConfig


class FakeResponse:
    def __init__(self, status_code: int, body: Any = "", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)
        self.headers = headers or {}


class FakeSession:
    """Stands in for ``requests.Session``; replays queued responses or raises queued errors."""

    def __init__(self, *responses: Any):
        self.queue: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method, url, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "body": json.loads(data) if data is not None else None,
                "headers": headers,
                "timeout": timeout,
            }
        )
        if not self.queue:
            raise AssertionError(f"unexpected request: {method} {url}")
        item = self.queue[0] if len(self.queue) == 1 else self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_client(sleeps):
    def _make(*responses: Any, **config: Any):
        config.setdefault("api_key", "test-key")
        config.setdefault("retry", RetryConfig(max_retries=3, base_delay=1.0, max_delay=30.0))
        session = FakeSession(*responses)
        client = HuefyClient(config=ClientConfig(**config), session=session, sleep=sleeps.append)
        return client, session

    return _make
