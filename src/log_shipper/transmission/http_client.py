"""
Bulk HTTP writer for the send buffer.

One flush is one POST of the whole buffer. The buffer is cleared once the
exchange has completed, whether the server accepted it or not.
"""
from typing import Iterable, Optional
import requests
import structlog
from urllib3 import HTTPHeaderDict
from urllib3.exceptions import NewConnectionError, ProxyError

from ..errors import TransportError
from .auth import AuthStrategy
from .buffer import SendBuffer
from .proxy import ProxyEndpoint

logger = structlog.get_logger()

SUCCESS_STATUS = 200
BODY_ENCODING = "utf-8"
NO_DATA = "<no data>"


class BulkWriter:
    """
    Synchronous bulk sender.

    Performs no locking of its own; appends to the buffer must not run
    concurrently with flush().
    """

    def __init__(
        self,
        buffer: SendBuffer,
        url: str,
        connect_timeout_s: float,
        read_timeout_s: float,
        headers: Iterable[tuple[str, str]] = (),
        authentication: Optional[AuthStrategy] = None,
        proxy: Optional[ProxyEndpoint] = None,
        clear_on_connection_failure: bool = True,
        session: Optional[requests.Session] = None
    ):
        """
        Args:
            buffer: Buffer read and cleared by flush()
            url: Ingestion endpoint
            connect_timeout_s: Connect timeout in seconds
            read_timeout_s: Read timeout in seconds
            headers: Ordered (name, value) pairs, duplicates allowed
            authentication: Strategy applied to each request before sending
            proxy: Proxy route with its own credentials, None for direct
            clear_on_connection_failure: Clear the buffer when no connection
                could be made (DNS failure, refused, connect timeout)
            session: Session to send through (default: a private one)
        """
        self.buffer = buffer
        self.url = url
        self.timeout = (connect_timeout_s, read_timeout_s)
        self.headers = [(name, value) for name, value in headers]
        self.authentication = authentication
        self.proxy = proxy
        self.clear_on_connection_failure = clear_on_connection_failure
        if session is None:
            session = requests.Session()
            # netrc credentials must not leak into bulk requests
            session.trust_env = False
        self._session = session

    def has_pending_data(self) -> bool:
        return self.buffer.has_pending_data()

    def _prepare(self, body: str) -> requests.PreparedRequest:
        request = requests.Request("POST", self.url, data=body.encode(BODY_ENCODING))
        prepared = self._session.prepare_request(request)

        # HTTPHeaderDict sends repeated names as separate header lines
        configured = {name.lower() for name, _ in self.headers}
        headers = HTTPHeaderDict()
        for name, value in prepared.headers.items():
            if name.lower() not in configured:
                headers[name] = value
        for name, value in self.headers:
            headers.add(name, value)
        prepared.headers = headers

        if self.authentication is not None:
            self.authentication.apply(prepared, body)

        return prepared

    def flush(self) -> None:
        """
        Send the buffered text as one bulk request.

        Returns without network activity when the buffer is empty.

        Raises:
            TransportError: On a non-200 response or a network failure
        """
        if not self.buffer.has_pending_data():
            return

        body = self.buffer.get_value()
        clear = True

        try:
            prepared = self._prepare(body)
            proxies = self.proxy.as_proxies() if self.proxy is not None else {}

            with self._session.send(
                prepared,
                timeout=self.timeout,
                proxies=proxies,
                allow_redirects=False,
                stream=True
            ) as response:
                rc = response.status_code
                if rc != SUCCESS_STATUS:
                    data = slurp_errors(response)
                    logger.warning("bulk_rejected", url=self.url, status=rc)
                    raise TransportError(
                        f"Got response code [{rc}] from server with data {data}",
                        status_code=rc,
                        body=data
                    )

            logger.debug("bulk_sent", url=self.url, chars=len(body))

        except requests.ConnectionError as e:
            if not self.clear_on_connection_failure and _never_connected(e):
                clear = False
            logger.warning("bulk_connection_failed", url=self.url, error=str(e), retained=not clear)
            raise TransportError(f"Failed to send to {self.url}: {e}") from e

        except requests.RequestException as e:
            logger.warning("bulk_request_failed", url=self.url, error=str(e))
            raise TransportError(f"Failed to send to {self.url}: {e}") from e

        finally:
            if clear:
                self.buffer.clear()

    def close(self) -> None:
        self._session.close()


def slurp_errors(response: requests.Response) -> str:
    """
    Read the error body of a rejected request.

    Never raises; read failures become a placeholder.
    """
    try:
        content = response.content
        if not content:
            return NO_DATA
        return content.decode(BODY_ENCODING, errors="replace")
    except Exception as e:
        return f"<error retrieving data: {e}>"


def _never_connected(error: requests.ConnectionError) -> bool:
    """True when the request failed before a connection was established."""
    if isinstance(error, requests.ConnectTimeout):
        return True
    cause = error.args[0] if error.args else None
    reason = getattr(cause, 'reason', cause)
    if isinstance(reason, ProxyError):
        reason = reason.original_error
    return isinstance(reason, NewConnectionError)
