"""
=============================================================================
CONTENT RENDERER
=============================================================================

Writes the response body. Which body depends on the status decided for the
connection:

    ┌──────────────┬─────────────────────────────────────────────────────┐
    │ 200 OK       │ The resolved file, streamed line by line, with two  │
    │              │ template tokens substituted on every line.          │
    ├──────────────┼─────────────────────────────────────────────────────┤
    │ 404          │ A fixed three-line HTML page, no substitution.      │
    └──────────────┴─────────────────────────────────────────────────────┘

TEMPLATE TOKENS
───────────────

    <cs371date>     → the current local time, e.g.
                      "Mon Oct 19 19:49:03 UTC 2026"
                      (recomputed for every line, so a slow render shows
                      the time each line went out)
    <cs371server>   → the configured server name ("Luis Server")

Replacement is plain substring replacement on raw bytes. Files are read in
binary mode so non-text files pass through unchanged as long as they do not
happen to contain a token.

LINE ENDINGS
────────────

By default each line is written with the terminator it had in the file.
The legacy renderer dropped every terminator, which glued the whole page
onto one line; pass strip_line_endings=True to get that output back.

=============================================================================
"""

import logging
from datetime import datetime
from typing import BinaryIO, Callable, Optional

from .status_codes import ResponseStatus


logger = logging.getLogger(__name__)


DATE_TOKEN = b"<cs371date>"
SERVER_TOKEN = b"<cs371server>"

DEFAULT_SERVER_NAME = "Luis Server"

CONTENT_ENCODING = "utf-8"

NOT_FOUND_BODY = (
    b"<html><head></head><body>\n"
    b"<h3>File not found</h3>\n"
    b"</body></html>\n"
)


def format_render_date(moment: datetime) -> str:
    """
    Format a moment the way the date token is rendered.

        "Mon Oct 19 19:49:03 UTC 2026"

    Naive datetimes are taken to be local time.
    """
    moment = moment.astimezone()
    return (
        f"{_DAYS[moment.weekday()]} {_MONTHS[moment.month - 1]} "
        f"{moment.day:02d} {moment:%H:%M:%S} {moment.tzname()} {moment.year}"
    )


def local_now() -> datetime:
    return datetime.now().astimezone()


def strip_line_ending(line: bytes) -> bytes:
    """Remove a trailing LF, CRLF or CR."""
    if line.endswith(b"\r\n"):
        return line[:-2]
    if line.endswith(b"\n") or line.endswith(b"\r"):
        return line[:-1]
    return line


class ContentRenderer:
    """
    Renders response bodies.

    One renderer can be shared by every handler: it holds configuration
    only, and all per-request state lives in the render() call.

    Args:
        server_name: Replacement for the server token.
        strip_line_endings: Drop line terminators (legacy output).
        now: Clock returning a datetime, called once per line.
    """

    def __init__(
        self,
        server_name: str = DEFAULT_SERVER_NAME,
        strip_line_endings: bool = False,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.server_name = server_name
        self.strip_line_endings = strip_line_endings
        self._now = now or local_now
        self._server_bytes = server_name.encode(CONTENT_ENCODING)

    def substitute(self, line: bytes) -> bytes:
        """Replace both template tokens in a single line."""
        date_text = format_render_date(self._now()).encode(CONTENT_ENCODING)
        line = line.replace(DATE_TOKEN, date_text)
        return line.replace(SERVER_TOKEN, self._server_bytes)

    def render_file(self, stream: BinaryIO, path: str) -> int:
        """
        Stream a file to the response with tokens substituted.

        The file is closed before this returns, also when reading or
        writing fails. Errors propagate: the header is already committed,
        so there is no second response to fall back to.

        Returns:
            Number of body bytes written.
        """
        written = 0
        with open(path, "rb") as source:
            for line in source:
                if self.strip_line_endings:
                    line = strip_line_ending(line)
                data = self.substitute(line)
                stream.write(data)
                written += len(data)
        return written

    def render_not_found(self, stream: BinaryIO) -> int:
        stream.write(NOT_FOUND_BODY)
        return len(NOT_FOUND_BODY)

    def render(self, stream: BinaryIO, status: ResponseStatus, path: Optional[str]) -> int:
        """
        Write the body matching the status.

        Args:
            stream: Writable binary stream.
            status: Status already sent in the header.
            path: Filesystem path of the resolved file (OK only).

        Returns:
            Number of body bytes written.
        """
        if status is ResponseStatus.OK:
            if path is None:
                raise ValueError("OK responses need a path to render")
            return self.render_file(stream, path)
        return self.render_not_found(stream)


_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
