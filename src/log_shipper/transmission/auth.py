"""
Authentication strategies applied to outgoing bulk requests.

Each strategy mutates a prepared request before its body is sent. The
serialized body is passed along so that signing schemes can cover it.
"""
import hashlib
import hmac
import time
from typing import Callable, Protocol

import requests
from requests.auth import HTTPBasicAuth


class AuthStrategy(Protocol):
    """Anything with apply(request, body) can authenticate a bulk request."""

    def apply(self, request: requests.PreparedRequest, body: str) -> None:
        ...


class BasicAuthentication:
    """HTTP Basic credentials."""

    def __init__(self, username: str, password: str):
        self._auth = HTTPBasicAuth(username, password)

    def apply(self, request: requests.PreparedRequest, body: str) -> None:
        self._auth(request)


class TokenAuthentication:
    """Static token, sent as '<scheme> <token>' (API keys, bearer tokens)."""

    def __init__(
        self,
        token: str,
        scheme: str = "Bearer",
        header: str = "Authorization"
    ):
        self.token = token
        self.scheme = scheme
        self.header = header

    def apply(self, request: requests.PreparedRequest, body: str) -> None:
        value = f"{self.scheme} {self.token}" if self.scheme else self.token
        request.headers[self.header] = value


class HmacSignatureAuthentication:
    """
    Shared-secret request signing.

    Signs "<unix timestamp>\\n<body>" with HMAC-SHA256. The receiver
    recomputes the digest from the timestamp header and the raw body.
    """

    TIMESTAMP_HEADER = "X-Signature-Timestamp"

    def __init__(
        self,
        key_id: str,
        secret: str,
        header: str = "X-Signature",
        clock: Callable[[], float] = time.time
    ):
        self.key_id = key_id
        self._secret = secret.encode("utf-8")
        self.header = header
        self._clock = clock

    def sign(self, timestamp: str, body: str) -> str:
        message = f"{timestamp}\n{body}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def apply(self, request: requests.PreparedRequest, body: str) -> None:
        timestamp = str(int(self._clock()))
        signature = self.sign(timestamp, body)
        request.headers[self.TIMESTAMP_HEADER] = timestamp
        request.headers[self.header] = f"keyId={self.key_id},signature={signature}"
