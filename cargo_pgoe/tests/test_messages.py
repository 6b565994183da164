"""Tests for cargo JSON message decoding."""
import json

import pytest

from cargo_pgoe.core.errors import EventStreamError
from cargo_pgoe.io.messages import (
    BuildFinished,
    CompilerArtifact,
    CompilerMessage,
    UnknownMessage,
    decode_message,
    iter_messages,
)

from conftest import make_artifact, make_compiler_message, make_finished, to_lines


class TestDecodeMessage:

    def test_artifact(self):
        event = decode_message(json.dumps(make_artifact("app", ["bin"])))
        assert isinstance(event, CompilerArtifact)
        assert event.target.name == "app"
        assert event.target.kind == ["bin"]
        assert event.executable == "/work/target/release/app"

    def test_artifact_without_executable(self):
        event = decode_message(json.dumps(make_artifact("core", ["lib"], executable=None)))
        assert isinstance(event, CompilerArtifact)
        assert event.executable is None

    def test_artifact_minimal_fields(self):
        line = json.dumps({"reason": "compiler-artifact", "target": {"name": "x", "kind": []}})
        event = decode_message(line)
        assert isinstance(event, CompilerArtifact)
        assert event.filenames == []

    def test_build_finished(self):
        event = decode_message(json.dumps(make_finished(False)))
        assert isinstance(event, BuildFinished)
        assert event.success is False

    def test_compiler_message(self):
        event = decode_message(json.dumps(make_compiler_message("warning: x\n")))
        assert isinstance(event, CompilerMessage)
        assert event.message.rendered == "warning: x\n"

    def test_unknown_reason_passes_through(self):
        raw = {"reason": "build-script-executed", "package_id": "p", "out_dir": "/o"}
        event = decode_message(json.dumps(raw))
        assert isinstance(event, UnknownMessage)
        assert event.reason == "build-script-executed"
        assert event.raw == raw

    def test_missing_reason(self):
        event = decode_message('{"foo": 1}')
        assert isinstance(event, UnknownMessage)
        assert event.reason is None

    def test_blank_line(self):
        assert decode_message("   \n") is None

    def test_not_json(self):
        with pytest.raises(EventStreamError) as exc:
            decode_message("Compiling app v0.1.0", line_number=7)
        assert exc.value.line_number == 7
        assert "not JSON" in str(exc.value)

    def test_bytes_line(self):
        event = decode_message(json.dumps(make_finished(True)).encode() + b"\n")
        assert isinstance(event, BuildFinished)
        assert event.success is True

    def test_invalid_utf8(self):
        line = b'{"reason": "compiler-message", "x": "\xff"}\n'
        with pytest.raises(EventStreamError, match="invalid UTF-8") as exc:
            decode_message(line, line_number=3)
        assert exc.value.line_number == 3
        assert "\\xff" in exc.value.line

    def test_not_object(self):
        with pytest.raises(EventStreamError, match="not a JSON object"):
            decode_message("[1, 2]")

    def test_known_reason_wrong_shape(self):
        with pytest.raises(EventStreamError, match="malformed build-finished"):
            decode_message('{"reason": "build-finished"}')

    def test_artifact_missing_target(self):
        with pytest.raises(EventStreamError):
            decode_message('{"reason": "compiler-artifact", "executable": null}')


class TestIterMessages:

    def test_order_preserved(self):
        lines = to_lines(
            make_compiler_message(),
            make_artifact("app"),
            make_finished(True),
        )
        kinds = [type(e) for e in iter_messages(lines)]
        assert kinds == [CompilerMessage, CompilerArtifact, BuildFinished]

    def test_blank_lines_skipped(self):
        lines = ["\n"] + to_lines(make_finished(True)) + ["\n"]
        assert len(list(iter_messages(lines))) == 1

    def test_lazy(self):
        """Lines are only read as events are pulled."""
        pulled = []

        def source():
            for line in to_lines(make_artifact("a"), make_artifact("b")):
                pulled.append(line)
                yield line

        events = iter_messages(source())
        next(events)
        assert len(pulled) == 1

    def test_malformed_stops_stream(self):
        lines = to_lines(make_artifact("a")) + ["garbage\n"] + to_lines(make_finished(True))
        seen = []
        with pytest.raises(EventStreamError) as exc:
            for event in iter_messages(lines):
                seen.append(event)
        assert len(seen) == 1
        assert exc.value.line_number == 2
