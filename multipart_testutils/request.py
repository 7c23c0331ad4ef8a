from typing import BinaryIO, Mapping, Optional, Tuple
from urllib.parse import unquote, urlencode, urlsplit

from anyio.to_thread import run_sync
from starlette.requests import Request
from starlette.types import Message, Receive, Scope

from multipart_testutils.constants import COPY_CHUNK_SIZE, TEST_REQUEST_CLIENT, TEST_REQUEST_HOST


def create_receive(body: Optional[BinaryIO], chunk_size: int = COPY_CHUNK_SIZE) -> Receive:
    """Creates an ASGI receive callable streaming ``body``.

    Blocking reads run in a worker thread. The body is closed once it is exhausted or a read fails, after which the
    callable reports a client disconnect.

    Args:
        body: A readable binary stream, or None for an empty body.
        chunk_size: Maximum number of bytes per message.

    Returns:
        An ASGI receive callable.
    """
    done = False

    async def receive() -> Message:
        nonlocal done
        if done:
            return {"type": "http.disconnect"}
        if body is None:
            done = True
            return {"type": "http.request", "body": b"", "more_body": False}
        try:
            chunk = await run_sync(body.read, chunk_size)
        except Exception:
            done = True
            body.close()
            raise
        if not chunk:
            done = True
            body.close()
        return {"type": "http.request", "body": chunk, "more_body": not done}

    return receive


def create_test_request(
    method: str,
    url: str,
    body: Optional[BinaryIO] = None,
    headers: Optional[Mapping[str, str]] = None,
    query: Optional[Mapping[str, str]] = None,
    chunk_size: int = COPY_CHUNK_SIZE,
    host: str = TEST_REQUEST_HOST,
    client: Tuple[str, int] = TEST_REQUEST_CLIENT,
) -> Request:
    """Creates a starlette request without any server or network involved.

    Args:
        method: HTTP method.
        url: Either a path, optionally with a query string, or an absolute URL.
        body: Request body stream.
        headers: Request headers.
        query: Query parameters appended to the query string of ``url``.
        chunk_size: Maximum number of bytes per body message.
        host: Host used when ``url`` is not absolute.
        client: The client address reported by the request.

    Returns:
        A request instance.
    """
    parts = urlsplit(url)
    scheme = parts.scheme or "http"
    netloc = parts.netloc or host
    path = parts.path or "/"

    query_string = parts.query
    if query:
        encoded = urlencode(list(query.items()))
        query_string = f"{query_string}&{encoded}" if query_string else encoded

    raw_headers = [(b"host", netloc.encode("latin-1"))]
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    default_port = 443 if scheme == "https" else 80
    scope: Scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "scheme": scheme,
        "path": unquote(path),
        "raw_path": path.encode("utf-8"),
        "root_path": "",
        "query_string": query_string.encode("utf-8"),
        "headers": raw_headers,
        "client": client,
        "server": (parts.hostname or host, parts.port or default_port),
    }
    return Request(scope, receive=create_receive(body, chunk_size))
