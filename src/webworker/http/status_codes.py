"""
=============================================================================
RESPONSE STATUS
=============================================================================

The handler only ever answers with one of two statuses:

    200 OK          The requested path names an existing file.
    404 Not Found   Anything else (missing file, no GET line, read error).

The status is decided ONCE per connection and then drives both the header
and the body, so the two can never disagree.

=============================================================================
"""

from enum import IntEnum


HTTP_VERSION = "HTTP/1.1"


class ResponseStatus(IntEnum):
    """
    Status codes the handler can produce.

    IntEnum, so the members compare equal to their numeric codes:

        >>> ResponseStatus.OK == 200
        True
        >>> ResponseStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _PHRASES[self]

    @property
    def status_line(self) -> str:
        """
        Full status line without terminator.

            >>> ResponseStatus.NOT_FOUND.status_line
            'HTTP/1.1 404 Not Found'
        """
        return f"{HTTP_VERSION} {self.value} {self.phrase}"

    @classmethod
    def for_found(cls, found: bool) -> "ResponseStatus":
        """Map the resolver's existence check to a status."""
        return cls.OK if found else cls.NOT_FOUND


_PHRASES = {
    ResponseStatus.OK: "OK",
    ResponseStatus.NOT_FOUND: "Not Found",
}
