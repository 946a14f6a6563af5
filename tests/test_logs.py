import logging
from datetime import date

from hacktober_finder.logs import FetchObserver, FetchRecord, configure_logging, log_location
from hacktober_finder.models import RateLimitInfo


def test_log_location_is_dated(tmp_path):
    assert log_location(tmp_path) == tmp_path / f"hacktober-{date.today().isoformat()}.log"


def test_configure_logging_writes_file(tmp_path):
    path = configure_logging(tmp_path / "logs")
    pkg_logger = logging.getLogger("hacktober_finder")
    try:
        logging.getLogger("hacktober_finder.test").info("hello from the test")
        for handler in pkg_logger.handlers:
            handler.flush()
        content = path.read_text()
        assert "Hacktoberfest explorer started" in content
        assert "hello from the test" in content
        assert pkg_logger.propagate is False
    finally:
        for handler in list(pkg_logger.handlers):
            pkg_logger.removeHandler(handler)
            handler.close()


def test_configure_logging_replaces_previous_file_handler(tmp_path):
    configure_logging(tmp_path / "a")
    configure_logging(tmp_path / "b")
    pkg_logger = logging.getLogger("hacktober_finder")
    try:
        file_handlers = [h for h in pkg_logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
    finally:
        for handler in list(pkg_logger.handlers):
            pkg_logger.removeHandler(handler)
            handler.close()


class TestFetchObserver:
    def test_success_logged_with_structured_fields(self, caplog):
        observer = FetchObserver(log=logging.getLogger("observer-test"))
        record = FetchRecord("repositories/search", "q", 3, 0.25, rate_limit=RateLimitInfo(remaining=9))
        with caplog.at_level(logging.INFO, logger="observer-test"):
            observer.record(record)
        assert list(observer.records) == [record]
        assert caplog.records[0].levelno == logging.INFO
        assert caplog.records[0].fetch["result_count"] == 3

    def test_failure_logged_as_warning(self, caplog):
        observer = FetchObserver(log=logging.getLogger("observer-test"))
        with caplog.at_level(logging.INFO, logger="observer-test"):
            observer.record(FetchRecord("issues/list", "o/r", 0, 1.0, error="timeout"))
        assert caplog.records[0].levelno == logging.WARNING

    def test_bounded_history(self):
        observer = FetchObserver(keep=2)
        for i in range(5):
            observer.record(FetchRecord("e", str(i), i, 0.0))
        assert [r.query for r in observer.records] == ["3", "4"]

    def test_logging_failure_never_propagates(self):
        class BrokenLogger:
            def info(self, *args, **kwargs):
                raise RuntimeError("disk full")

        observer = FetchObserver(log=BrokenLogger())
        observer.record(FetchRecord("e", "q", 1, 0.0))
        assert len(observer.records) == 1
