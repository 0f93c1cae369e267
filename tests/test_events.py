"""Tests for progress sinks."""

import io

import pytest

from folder_publisher.sync.events import (
    CallbackProgressSink,
    NullProgressSink,
    ProgressSink,
    RecordingProgressSink,
    StreamProgressSink,
    as_sink,
    format_event,
)
from folder_publisher.sync.models import ProgressEvent, ProgressEventType


def _file_event(event_type, path="docs/a.md"):
    return ProgressEvent(type=event_type, package_name="pkg", file=path)


class TestFormatEvent:
    def test_package_lines(self):
        start = ProgressEvent(
            type=ProgressEventType.PACKAGE_START,
            package_name="pkg",
            package_version="1.2.3",
        )
        assert format_event(start) == "pkg@1.2.3: extracting"

    @pytest.mark.parametrize(
        "event_type,label",
        [
            (ProgressEventType.FILE_ADDED, "A"),
            (ProgressEventType.FILE_MODIFIED, "M"),
            (ProgressEventType.FILE_DELETED, "D"),
            (ProgressEventType.FILE_SKIPPED, "="),
        ],
    )
    def test_file_lines(self, event_type, label):
        assert format_event(_file_event(event_type)) == f"  {label} docs/a.md"

    def test_event_type_values_are_wire_names(self):
        assert [t.value for t in ProgressEventType] == [
            "package-start",
            "package-end",
            "file-added",
            "file-modified",
            "file-deleted",
            "file-skipped",
        ]


class TestSinks:
    def test_recording_sink_keeps_order(self):
        sink = RecordingProgressSink()
        sink.on_event(_file_event(ProgressEventType.FILE_ADDED, "a"))
        sink.on_event(_file_event(ProgressEventType.FILE_SKIPPED, "b"))

        assert [e.file for e in sink.events] == ["a", "b"]
        assert [e.file for e in sink.of_type(ProgressEventType.FILE_SKIPPED)] == ["b"]

    def test_stream_sink_hides_skipped_by_default(self):
        stream = io.StringIO()
        sink = StreamProgressSink(stream)
        sink.on_event(_file_event(ProgressEventType.FILE_SKIPPED, "same"))
        sink.on_event(_file_event(ProgressEventType.FILE_ADDED, "new"))
        assert stream.getvalue() == "  A new\n"

    def test_stream_sink_show_skipped(self):
        stream = io.StringIO()
        StreamProgressSink(stream, show_skipped=True).on_event(
            _file_event(ProgressEventType.FILE_SKIPPED, "same")
        )
        assert stream.getvalue() == "  = same\n"

    def test_every_sink_satisfies_protocol(self):
        for sink in (
            NullProgressSink(),
            RecordingProgressSink(),
            CallbackProgressSink(lambda e: None),
            StreamProgressSink(io.StringIO()),
        ):
            assert isinstance(sink, ProgressSink)


class TestAsSink:
    def test_none_becomes_null_sink(self):
        assert isinstance(as_sink(None), NullProgressSink)

    def test_sink_passed_through(self):
        sink = RecordingProgressSink()
        assert as_sink(sink) is sink

    def test_callable_wrapped(self):
        seen = []
        sink = as_sink(seen.append)
        event = _file_event(ProgressEventType.FILE_ADDED)
        sink.on_event(event)
        assert seen == [event]

    def test_other_values_rejected(self):
        with pytest.raises(TypeError, match="on_progress"):
            as_sink(42)
