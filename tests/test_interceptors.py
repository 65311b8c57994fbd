import pytest

from notekeeper.interceptors import (
    LoggingStream,
    auth_unary_interceptor,
    logging_stream_interceptor,
    logging_unary_interceptor,
)
from notekeeper.messages import RpcError, StatusCode


class RecordingLogger:
    def __init__(self):
        self.records = []

    def _add(self, level, msg, fields):
        self.records.append((level, msg, {f.key: f.value for f in fields}))

    def debug(self, msg, *args):
        self._add("debug", msg, args)

    def info(self, msg, *args):
        self._add("info", msg, args)

    def warn(self, msg, *args):
        self._add("warn", msg, args)

    def error(self, msg, *args):
        self._add("error", msg, args)

    def sync(self):
        pass


class FakeStream:
    def __init__(self, incoming=()):
        self.sent = []
        self.incoming = list(incoming)
        self.peer = "peer-1"

    def send(self, message):
        self.sent.append(message)

    def receive(self):
        if not self.incoming:
            raise EOFError("end of stream")
        return self.incoming.pop(0)


def echo(request):
    return ("echo", request)


@pytest.mark.parametrize(
    "metadata, message",
    [
        (None, "missing metadata"),
        ({}, "authorization header is required"),
        ({"authorization": []}, "invalid authorization token"),
    ],
)
def test_auth_rejects(metadata, message):
    intercept = auth_unary_interceptor()
    with pytest.raises(RpcError) as info:
        intercept("req", metadata, "/notes.v1.NoteAPI/Create", echo)
    assert info.value.code is StatusCode.UNAUTHENTICATED
    assert info.value.message == message


def test_auth_passes_through():
    intercept = auth_unary_interceptor()
    result = intercept("req", {"authorization": ["Bearer token"]}, "/m", echo)
    assert result == ("echo", "req")


def test_logging_unary_success():
    log = RecordingLogger()
    intercept = logging_unary_interceptor(log)
    assert intercept("req", None, "/m", echo) == ("echo", "req")
    assert [r[1] for r in log.records] == ["start request", "successfull request"]
    assert log.records[-1][2]["method"] == "/m"
    assert log.records[-1][2]["duration"] >= 0


def test_logging_unary_failure_reraises():
    log = RecordingLogger()
    intercept = logging_unary_interceptor(log)
    failure = RpcError(StatusCode.NOT_FOUND, "note not found")

    def fail(request):
        raise failure

    with pytest.raises(RpcError) as info:
        intercept("req", None, "/m", fail)
    assert info.value is failure
    assert log.records[-1][0] == "warn"
    assert log.records[-1][2]["error"] is failure


def test_logging_stream_wraps_and_logs():
    log = RecordingLogger()
    intercept = logging_stream_interceptor(log)
    stream = FakeStream()

    def handler(server, wrapped):
        wrapped.send("hello")
        return "done"

    assert intercept(None, stream, "/s", handler) == "done"
    assert stream.sent == ["hello"]
    messages = [r[1] for r in log.records]
    assert messages == ["request to grpc-stream", "server send:", "grpc-stream closed"]


def test_logging_stream_failure_logs_error_then_closed():
    log = RecordingLogger()
    intercept = logging_stream_interceptor(log)

    def handler(server, wrapped):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        intercept(None, FakeStream(), "/s", handler)
    assert [r[1] for r in log.records][-2:] == ["error with grpc-stream", "grpc-stream closed"]


def test_logging_stream_receive_and_delegation():
    log = RecordingLogger()
    wrapped = LoggingStream(log, FakeStream(["first"]))
    assert wrapped.receive() == "first"
    assert log.records[-1][2]["message"] == "first"
    assert wrapped.peer == "peer-1"
    with pytest.raises(EOFError):
        wrapped.receive()
    assert log.records[-1][2]["message"] is None