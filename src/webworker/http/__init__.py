"""
HTTP stages of the per-connection handler.

    request      RequestReader: read lines, find the GET target
    resolver     PathResolver: strip one separator, check existence
    headers      ResponseHeaderWriter: status line and fixed header block
    content      ContentRenderer: file with tokens replaced, or the 404 page
"""

from .status_codes import ResponseStatus
from .resolver import PathResolver, Request, strip_leading_separator
from .request import read_request
from .headers import write_header, format_header_date
from .content import ContentRenderer, NOT_FOUND_BODY, DATE_TOKEN, SERVER_TOKEN
from .mime_types import get_mime_type

__all__ = [
    "ResponseStatus",
    "PathResolver",
    "Request",
    "strip_leading_separator",
    "read_request",
    "write_header",
    "format_header_date",
    "ContentRenderer",
    "NOT_FOUND_BODY",
    "DATE_TOKEN",
    "SERVER_TOKEN",
    "get_mime_type",
]
