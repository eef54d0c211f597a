import logging

import pytest

from clinic_import.logging.logger import Log, _ContextFormatter


def _record(message: str, **context: object) -> logging.LogRecord:
    record = logging.LogRecord("clinic_import", logging.INFO, __file__, 1, message, None, None)
    record.import_context = context
    return record


class TestContextFormatter:
    def test_appends_context_pairs(self) -> None:
        formatter = _ContextFormatter("%(message)s")
        line = formatter.format(_record("ZIP extracted", upload_id="importFile-1.zip", files=3))
        assert line == "ZIP extracted | upload_id=importFile-1.zip files=3"

    def test_leaves_plain_messages_untouched(self) -> None:
        formatter = _ContextFormatter("%(message)s")
        assert formatter.format(_record("ready")) == "ready"


class TestLog:
    def test_info_carries_context(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="clinic_import"):
            Log.info("Upload received", clinic_id="c-1")

        record = caplog.records[-1]
        assert record.getMessage() == "Upload received"
        assert record.import_context == {"clinic_id": "c-1"}

    def test_exception_includes_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="clinic_import"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                Log.exception("Unexpected error")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None

    def test_configure_adds_single_handler(self) -> None:
        Log.configure("debug")
        Log.configure("info")
        assert len(Log._logger.handlers) == 1
        assert Log._logger.level == logging.INFO
