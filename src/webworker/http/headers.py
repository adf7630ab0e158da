"""
=============================================================================
RESPONSE HEADER WRITER
=============================================================================

Writes the response head. The layout never changes:

    HTTP/1.1 200 OK\\n
    Date: Oct 19, 2026 7:49:03 PM\\n
    Server: Jon's very own server\\n
    Connection: close\\n
    Content-Type: text/html\\n
    \\n

Two things differ from a textbook HTTP/1.1 response and are kept for wire
compatibility with existing clients of this server:

1. Lines end with a bare LF, not CRLF.
2. There is no Content-Length. The body is streamed and the end of the
   response is the server closing the connection.

The Date value is GMT in the "medium" date-time style
("Oct 19, 2026 7:49:03 PM"), not the RFC 7231 IMF-fixdate.

=============================================================================
"""

from datetime import datetime, timezone
from typing import BinaryIO, Callable, List, Optional

from .status_codes import ResponseStatus


HEADER_ENCODING = "utf-8"
LINE_END = "\n"

DEFAULT_SERVER_HEADER = "Jon's very own server"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_header_date(moment: datetime) -> str:
    """
    Format a moment as a GMT medium date-time.

        >>> format_header_date(datetime(2003, 1, 8, 23, 11, 55, tzinfo=timezone.utc))
        'Jan 8, 2003 11:11:55 PM'

    Month and AM/PM are spelled out here rather than taken from strftime's
    %b/%p so the header does not change with the process locale.
    """
    moment = moment.astimezone(timezone.utc)
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return (
        f"{_MONTHS[moment.month - 1]} {moment.day}, {moment.year} "
        f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
    )


def build_header_lines(
    status: ResponseStatus,
    content_type: str,
    server_header: str = DEFAULT_SERVER_HEADER,
    now: Optional[Callable[[], datetime]] = None,
) -> List[str]:
    """
    Build the header lines, in wire order, without terminators.

    The final empty string is the blank line that ends the head.
    """
    now = now or utc_now
    return [
        status.status_line,
        f"Date: {format_header_date(now())}",
        f"Server: {server_header}",
        "Connection: close",
        f"Content-Type: {content_type}",
        "",
    ]


def write_header(
    stream: BinaryIO,
    status: ResponseStatus,
    content_type: str,
    server_header: str = DEFAULT_SERVER_HEADER,
    now: Optional[Callable[[], datetime]] = None,
) -> int:
    """
    Write the response head to the stream.

    Args:
        stream: Writable binary stream.
        status: Response status decided for this connection.
        content_type: MIME type for the Content-Type line.
        server_header: Value of the Server line.
        now: Clock returning an aware datetime (for tests).

    Returns:
        Number of bytes written.

    I/O errors from the stream propagate to the caller unchanged.
    """
    lines = build_header_lines(status, content_type, server_header, now)
    data = "".join(line + LINE_END for line in lines).encode(HEADER_ENCODING)
    stream.write(data)
    return len(data)


_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
