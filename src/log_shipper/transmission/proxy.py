"""
Proxy routing for bulk requests.

Credentials travel with each request through the proxies mapping handed to
requests, so writers with different proxies never share state.
"""
from typing import NamedTuple, Optional
from urllib.parse import quote

DEFAULT_PROXY_PORT: int = 80
DEFAULT_PROXY_SCHEME: str = "http"


class ProxyCredentials(NamedTuple):
    username: str
    password: str


class ProxyEndpoint(NamedTuple):
    host: str
    port: int = DEFAULT_PROXY_PORT
    credentials: Optional[ProxyCredentials] = None

    def as_url(self) -> str:
        userinfo = ""
        if self.credentials is not None:
            userinfo = (
                f"{quote(self.credentials.username, safe='')}:"
                f"{quote(self.credentials.password, safe='')}@"
            )
        return f"{DEFAULT_PROXY_SCHEME}://{userinfo}{self.host}:{self.port}"

    def as_proxies(self) -> dict[str, str]:
        url = self.as_url()
        return {"http": url, "https": url}


def build_proxy_endpoint(
    host: Optional[str],
    port: Optional[int] = None,
    username: Optional[str] = None,
    password: Optional[str] = None
) -> Optional[ProxyEndpoint]:
    """
    Build a proxy endpoint, or None when no proxy host is configured.

    Args:
        host: Proxy host; empty or blank means a direct connection
        port: Proxy port (default: 80)
        username: Proxy user, credentials are used only when set
        password: Proxy password (may be empty)

    Returns:
        ProxyEndpoint or None
    """
    if not host or not host.strip():
        return None

    credentials = None
    if username:
        credentials = ProxyCredentials(username, password or "")

    return ProxyEndpoint(
        host=host.strip(),
        port=port or DEFAULT_PROXY_PORT,
        credentials=credentials
    )
