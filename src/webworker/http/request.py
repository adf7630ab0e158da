"""
=============================================================================
REQUEST READER
=============================================================================

Reads the request half of a connection and produces the Request it names.

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /index.html HTTP/1.1\\r\\n      ← request line (contains GET)│
    │  Host: localhost:8080\\r\\n          ← read, ignored              │
    │  User-Agent: curl/8.0\\r\\n          ← read, ignored              │
    │  \\r\\n                              ← empty line: stop reading   │
    └─────────────────────────────────────────────────────────────────┘

Reading is line by line with the stream's blocking readline(), so the
thread sleeps in the kernel until a whole line has arrived.

MATCHING IS PERMISSIVE
──────────────────────

A line is taken as the request line when it CONTAINS "GET" anywhere, not
only when it starts with it. "XGET /a HTTP/1.1" and "FORGET /a" both match.
Only the first matching line counts; any later line (a Referer header that
happens to contain "GET", say) is read and ignored.

WHEN READING STOPS
──────────────────

    - an empty line             → normal end of the request head
    - end of stream             → client stopped sending, same as above
    - I/O error / timeout       → RequestReadError
    - GET line with no target   → RequestReadError

=============================================================================
"""

import logging
from typing import BinaryIO, Optional

from ..errors import RequestReadError
from .resolver import PathResolver, Request


logger = logging.getLogger(__name__)


GET_MARKER = "GET"

# Every byte maps to a code point, so decoding a request line never fails
LINE_ENCODING = "iso-8859-1"


def decode_line(raw: bytes) -> str:
    """Decode a raw line and drop its CR/LF terminator."""
    return raw.decode(LINE_ENCODING).rstrip("\r\n")


def is_request_line(line: str) -> bool:
    """True when the line carries the GET marker anywhere in it."""
    return GET_MARKER in line


def parse_target(line: str) -> str:
    """
    Extract the requested path from a request line.

    The target is the second whitespace-delimited token:

        >>> parse_target("GET /index.html HTTP/1.1")
        '/index.html'

    Raises:
        RequestReadError: If the line has no second token.
    """
    tokens = line.split()
    if len(tokens) < 2:
        raise RequestReadError(f"Malformed request line: {line!r}")
    return tokens[1]


def read_request(
    stream: BinaryIO,
    resolver: Optional[PathResolver] = None,
) -> Optional[Request]:
    """
    Read request lines until the end of the request head.

    Args:
        stream: Readable binary stream (socket.makefile("rb") in production).
        resolver: Resolver used for the existence check. Defaults to one
                  rooted at the working directory.

    Returns:
        The Request built from the first GET line, or None if no GET line
        was seen before the head ended.

    Raises:
        RequestReadError: On I/O errors or a malformed GET line.
    """
    resolver = resolver or PathResolver()
    request: Optional[Request] = None

    while True:
        try:
            raw = stream.readline()
        except OSError as e:
            # socket.timeout is an OSError too
            raise RequestReadError(f"Request error: {e}") from e

        if not raw:
            logger.debug("Client closed the stream before an empty line")
            break

        line = decode_line(raw)
        logger.debug(f"Request line: ({line})")

        if not line:
            break

        if request is None and is_request_line(line):
            request = resolver.resolve(parse_target(line))

    return request
