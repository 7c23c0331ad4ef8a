from typing import Dict, Mapping, Optional, Tuple
from uuid import uuid4

from multipart_testutils.constants import BOUNDARY_RE, CRLF, OPTION_RE, QUOTED_PAIR_RE


def choose_boundary() -> str:
    """Returns a random multipart boundary."""
    return uuid4().hex


def validate_boundary(boundary: str) -> str:
    """Validates a boundary according to RFC 2046.

    Args:
        boundary: A candidate boundary.

    Raises:
        ValueError: If the boundary is empty, too long or contains characters not allowed in a boundary.

    Returns:
        The boundary, unchanged.
    """
    if not BOUNDARY_RE.fullmatch(boundary):
        raise ValueError(f"invalid multipart boundary: {boundary!r}")
    return boundary


def quote_header_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def unquote_header_value(value: str) -> str:
    """Reverses :func:`quote_header_value` for a value still wrapped in double quotes."""
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return QUOTED_PAIR_RE.sub(r"\1", value[1:-1])
    return value


def parse_options_header(value: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """Splits a header such as Content-Type or Content-Disposition into its value and options.

    Only plain ``key=token`` and ``key="quoted"`` options are understood, which is what
    :class:`~multipart_testutils.encoder.MultipartWriter` and HTTP clients write.

    Args:
        value: An optional header string.

    Returns:
        A tuple with the header value and a dictionary of options, keyed by lower case option name.
    """
    if not value:
        return "", {}
    main, _, rest = value.partition(";")
    options = {
        match.group(1).lower(): unquote_header_value(match.group(2).strip())
        for match in OPTION_RE.finditer(";" + rest)
    }
    return main.strip(), options


def parse_headers(data: bytes) -> Dict[str, str]:
    """Parses the CRLF separated header block of a part.

    Args:
        data: The header block, without the terminating blank line.

    Raises:
        ValueError: If a line is not a ``name: value`` pair.

    Returns:
        A dictionary of header names to values.
    """
    headers: Dict[str, str] = {}
    for line in bytes(data).split(CRLF):
        if not line:
            continue
        name, separator, value = line.decode("utf-8", "replace").partition(":")
        if not separator:
            raise ValueError(f"Malformed part header: {line!r}")
        headers[name.strip()] = value.strip()
    return headers


def get_header(headers: Mapping[str, str], name: str, default: str = "") -> str:
    """Case-insensitive header lookup over a plain mapping."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return default
