"""
Exception hierarchy for the connection handler.

Only two things can go wrong inside a handler, and they are treated very
differently:

    RequestReadError    Reading the request failed (I/O error, timeout,
                        malformed GET line). Nothing has been written yet,
                        so the handler recovers by answering 404.

    ResponseWriteError  Writing the response failed. The header may already
                        be on the wire, so no second response is attempted;
                        the connection is logged and closed.

A missing file is NOT an error: it is the normal 404 branch.
"""


class WebWorkerError(Exception):
    """Base class for handler errors."""


class RequestReadError(WebWorkerError):
    """Raised when the request cannot be read from the connection."""


class ResponseWriteError(WebWorkerError):
    """
    Raised when the response cannot be written to the connection.

    bytes_written counts what was handed to the socket before the failure,
    typically the committed header.
    """

    def __init__(self, message: str, bytes_written: int = 0):
        super().__init__(message)
        self.bytes_written = bytes_written
