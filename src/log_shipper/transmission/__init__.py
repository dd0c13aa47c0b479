"""Transmission layer for shipping buffered records."""
from .buffer import SendBuffer
from .http_client import BulkWriter
from .auth import (
    AuthStrategy,
    BasicAuthentication,
    TokenAuthentication,
    HmacSignatureAuthentication,
)
from .proxy import ProxyCredentials, ProxyEndpoint, build_proxy_endpoint

__all__ = [
    'SendBuffer',
    'BulkWriter',
    'AuthStrategy',
    'BasicAuthentication',
    'TokenAuthentication',
    'HmacSignatureAuthentication',
    'ProxyCredentials',
    'ProxyEndpoint',
    'build_proxy_endpoint',
]
