# callbench/connection.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

import httpx

from callbench.errors import ConnectionReleasedError, ConnectivityError
from callbench.types import EndpointTarget

logger = logging.getLogger("callbench")

DEFAULT_HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class CallOutcome:
    """Result of issuing one request: a response, or the reason there is none."""

    response: httpx.Response | None = None
    error: ConnectivityError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> httpx.Response:
        if self.error is not None:
            raise self.error
        return cast(httpx.Response, self.response)


class Connection:
    def __init__(self, client: httpx.Client) -> None:
        self._client: httpx.Client | None = client
        self.base_url = str(client.base_url)

    @property
    def released(self) -> bool:
        return self._client is None

    def send(self, target: EndpointTarget) -> CallOutcome:
        if self._client is None:
            raise ConnectionReleasedError(f"connection to {self.base_url} was already released")
        try:
            resp = self._client.request(target.method, target.path, **target.request_kwargs())
        except httpx.ConnectError as e:
            url = f"{self.base_url.rstrip('/')}/{target.path.lstrip('/')}"
            logger.debug("connect failed for %s %s: %s", target.method, url, e)
            return CallOutcome(error=ConnectivityError(url, str(e)))
        return CallOutcome(response=resp)

    def release(self) -> None:
        # second and later calls do nothing
        client, self._client = self._client, None
        if client is not None:
            client.close()


class ConnectionFactory:
    """
    Builds clients bound to one base address with ``Accept: application/json``.

    ``app`` swaps the network transport for an in-process ASGI app (FastAPI's
    TestClient), which is how the tests drive the stub service.
    ``timeout=None`` leaves calls unbounded.
    """

    def __init__(self, base_url: str, *, timeout: float | None = None, app: Any = None) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.app = app

    def create(self) -> Connection:
        if self.app is not None:
            from fastapi.testclient import TestClient

            client: httpx.Client = TestClient(self.app, base_url=self.base_url, headers=DEFAULT_HEADERS)
        else:
            client = httpx.Client(base_url=self.base_url, headers=DEFAULT_HEADERS, timeout=self.timeout)
        return Connection(client)

    @staticmethod
    def release(conn: Connection) -> None:
        conn.release()
