import sys
import os
import logging
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sas_core.logger import EVENT, DiagnosticSink, LogLevel, build_logger
from sas_core.redactlog import NoLocalsFilter, RedactingFormatter


@pytest.fixture
def sink_logger(caplog):
    caplog.set_level(logging.DEBUG, logger="test_sink")
    return logging.getLogger("test_sink")


def _levels(caplog):
    return [r.levelname for r in caplog.records if r.name == "test_sink"]


def test_threshold_filters_verbose_messages(sink_logger, caplog):
    """Com nível ERROR, apenas EVENT e ERROR passam."""
    sink = DiagnosticSink(sink_logger, LogLevel.ERROR)
    sink.event("irrigation started")
    sink.error("publish failed")
    sink.info("wifi connected")
    sink.debug("reading sensors")
    assert _levels(caplog) == ["EVENT", "ERROR"]


def test_debug_lets_everything_through(sink_logger, caplog):
    sink = DiagnosticSink(sink_logger, "debug")
    for emit in (sink.event, sink.error, sink.info, sink.debug):
        emit("msg %d", 1)
    assert _levels(caplog) == ["EVENT", "ERROR", "INFO", "DEBUG"]
    assert caplog.records[0].levelno == EVENT


def test_none_silences_sink(sink_logger, caplog):
    sink = DiagnosticSink(sink_logger, LogLevel.INFO)
    sink.set_level(LogLevel.NONE)
    sink.event("x")
    sink.error("y")
    assert _levels(caplog) == []
    assert sink.level is LogLevel.NONE


def test_level_parsing():
    assert LogLevel.parse("warning") is LogLevel.ERROR
    assert LogLevel.parse(4) is LogLevel.DEBUG
    assert LogLevel.parse(" event ") is LogLevel.EVENT
    with pytest.raises(ValueError, match="unknown log level"):
        LogLevel.parse("chatty")


def test_formatter_redacts_credentials():
    fmt = RedactingFormatter("%(message)s")
    record = logging.LogRecord(
        "x", logging.INFO, __file__, 1,
        "token SharedAccessSignature sr=hub&sig=abc%2Bdef&se=1 key=YmFzZTY0a2V5 "
        "HostName=h;SharedAccessKey=c2VjcmV0",
        None, None,
    )
    out = fmt.format(record)
    assert "abc%2Bdef" not in out
    assert "YmFzZTY0a2V5" not in out
    assert "c2VjcmV0" not in out
    assert "sig=[redacted]" in out
    assert "se=1" in out


def test_no_locals_filter_drops_traceback():
    try:
        raise RuntimeError("bad key length")
    except RuntimeError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
    assert NoLocalsFilter().filter(record)
    assert record.exc_info is None
    assert record.msg == "failed | RuntimeError: bad key length"


def test_build_logger_writes_redacted_file(tmp_path):
    log_path = tmp_path / "logs" / "sas.log"
    lg = build_logger("sas_core_test_file", LogLevel.DEBUG, log_path=log_path, stream=False)
    assert build_logger("sas_core_test_file", LogLevel.DEBUG, log_path=log_path, stream=False) is lg
    assert len(lg.handlers) == 1

    DiagnosticSink(lg, LogLevel.DEBUG).event("issued &sig=abcdef&se=2")
    for h in lg.handlers:
        h.flush()
        h.close()

    text = log_path.read_text(encoding="utf-8")
    assert "[EVENT]" in text
    assert "sig=[redacted]" in text
    assert "abcdef" not in text
    if os.name != "nt":
        assert (log_path.stat().st_mode & 0o777) == 0o600
