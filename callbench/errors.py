# callbench/errors.py
from __future__ import annotations


class CallbenchError(Exception):
    """Base class for every error raised by the harness."""


class ConnectivityError(CallbenchError):
    """Nothing answered at the configured address."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        msg = f"no listener at {url}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class UnexpectedStatus(CallbenchError):
    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"{url} answered HTTP {status_code}")


class DecodeError(CallbenchError):
    """Body is not JSON, or does not fit the requested shape."""


class ValidationFailure(CallbenchError):
    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "document violates schema")


class ConnectionReleasedError(CallbenchError):
    pass
