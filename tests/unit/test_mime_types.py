"""
Unit tests for MIME type lookup.
"""

import pytest

from webworker.http.mime_types import get_mime_type


@pytest.mark.parametrize("path, expected", [
    ("page.html", "text/html"),
    ("style.CSS", "text/css"),
    ("dir/logo.png", "image/png"),
    ("notes.txt", "text/plain"),
    ("unknown.xyz", "text/html"),
    ("no_extension", "text/html"),
])
def test_get_mime_type(path, expected):
    assert get_mime_type(path) == expected


def test_explicit_default():
    assert get_mime_type("blob.xyz", default="application/octet-stream") == "application/octet-stream"
