"""
Unit tests for body rendering.
"""

import builtins
import io
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from webworker.http.content import (
    ContentRenderer,
    DATE_TOKEN,
    NOT_FOUND_BODY,
    SERVER_TOKEN,
    format_render_date,
    strip_line_ending,
)
from webworker.http.status_codes import ResponseStatus


RENDER_DATE = re.compile(
    r"^(Mon|Tue|Wed|Thu|Fri|Sat|Sun) [A-Z][a-z]{2} \d{2} \d{2}:\d{2}:\d{2} \S+ \d{4}$"
)


class TickingClock:
    """Clock that moves forward one minute per call."""

    def __init__(self):
        self.calls = 0
        self.start = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        moment = self.start + timedelta(minutes=self.calls)
        self.calls += 1
        return moment


class BrokenStream:
    def write(self, data):
        raise BrokenPipeError("peer went away")


@pytest.fixture
def opened_files(monkeypatch) -> list:
    """Record every file object returned by open()."""
    opened = []
    real_open = builtins.open

    def recording_open(*args, **kwargs):
        handle = real_open(*args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr(builtins, "open", recording_open)
    return opened


@pytest.fixture
def page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_bytes(
        b"<p><cs371date></p>\n"
        b"<p><cs371server> <cs371server></p>\n"
        b"<p>static</p>\n"
    )
    return path


class TestRenderFile:
    """Tests for the OK body."""

    def test_tokens_replaced(self, page: Path):
        stream = io.BytesIO()
        ContentRenderer().render(stream, ResponseStatus.OK, str(page))
        body = stream.getvalue()

        assert DATE_TOKEN not in body
        assert SERVER_TOKEN not in body
        assert b"<p>Luis Server Luis Server</p>\n" in body
        assert b"<p>static</p>\n" in body

    def test_date_replaced_with_timestamp(self, page: Path):
        stream = io.BytesIO()
        ContentRenderer().render(stream, ResponseStatus.OK, str(page))
        first_line = stream.getvalue().split(b"\n")[0].decode()

        date_text = first_line[len("<p>"):-len("</p>")]
        assert RENDER_DATE.match(date_text), date_text

    def test_date_computed_per_line(self, tmp_path: Path):
        path = tmp_path / "two.html"
        path.write_bytes(b"<cs371date>\n<cs371date>\n")
        clock = TickingClock()
        stream = io.BytesIO()

        ContentRenderer(now=clock).render_file(stream, str(path))
        first, second = stream.getvalue().split(b"\n")[:2]

        assert clock.calls == 2
        assert first != second

    def test_custom_server_name(self, page: Path):
        stream = io.BytesIO()
        ContentRenderer(server_name="Test Box").render_file(stream, str(page))

        assert b"<p>Test Box Test Box</p>" in stream.getvalue()

    def test_line_endings_kept_by_default(self, tmp_path: Path):
        path = tmp_path / "crlf.txt"
        path.write_bytes(b"one\r\ntwo\nthree")
        stream = io.BytesIO()

        written = ContentRenderer().render_file(stream, str(path))

        assert stream.getvalue() == b"one\r\ntwo\nthree"
        assert written == len(b"one\r\ntwo\nthree")

    def test_legacy_mode_drops_line_endings(self, page: Path):
        stream = io.BytesIO()
        ContentRenderer(strip_line_endings=True).render_file(stream, str(page))
        body = stream.getvalue()

        assert b"\n" not in body
        assert body.endswith(b"<p>Luis Server Luis Server</p><p>static</p>")

    def test_binary_content_passes_through(self, tmp_path: Path):
        data = bytes(range(256)) * 4
        path = tmp_path / "blob.bin"
        path.write_bytes(data)
        stream = io.BytesIO()

        ContentRenderer().render_file(stream, str(path))

        assert stream.getvalue() == data

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            ContentRenderer().render_file(io.BytesIO(), str(tmp_path / "gone.html"))

    def test_write_error_propagates(self, page: Path):
        with pytest.raises(BrokenPipeError):
            ContentRenderer().render_file(BrokenStream(), str(page))

    def test_file_closed_when_write_fails(self, page: Path, opened_files: list):
        with pytest.raises(BrokenPipeError):
            ContentRenderer().render_file(BrokenStream(), str(page))

        assert len(opened_files) == 1
        assert opened_files[0].closed

    def test_file_closed_after_render(self, page: Path, opened_files: list):
        ContentRenderer().render_file(io.BytesIO(), str(page))

        assert len(opened_files) == 1
        assert opened_files[0].closed

    def test_ok_without_path(self):
        with pytest.raises(ValueError):
            ContentRenderer().render(io.BytesIO(), ResponseStatus.OK, None)


class TestRenderNotFound:
    """Tests for the 404 body."""

    def test_exact_body(self):
        stream = io.BytesIO()
        written = ContentRenderer().render(stream, ResponseStatus.NOT_FOUND, None)

        assert stream.getvalue() == (
            b"<html><head></head><body>\n"
            b"<h3>File not found</h3>\n"
            b"</body></html>\n"
        )
        assert written == len(NOT_FOUND_BODY)

    def test_path_ignored(self, page: Path):
        stream = io.BytesIO()
        ContentRenderer().render(stream, ResponseStatus.NOT_FOUND, str(page))

        assert stream.getvalue() == NOT_FOUND_BODY


class TestHelpers:

    @pytest.mark.parametrize("line, expected", [
        (b"a\n", b"a"),
        (b"a\r\n", b"a"),
        (b"a\r", b"a"),
        (b"a", b"a"),
        (b"\n", b""),
    ])
    def test_strip_line_ending(self, line, expected):
        assert strip_line_ending(line) == expected

    def test_format_render_date_shape(self):
        moment = datetime(2026, 10, 19, 19, 49, 3, tzinfo=timezone.utc)
        text = format_render_date(moment)

        assert RENDER_DATE.match(text), text
        assert text.endswith(str(moment.astimezone().year))
