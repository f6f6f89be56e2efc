"""Tests for the logging setup module."""

import io
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

from orderform.utils.logger import get_logger, setup_logging


@contextmanager
def bare_root() -> Iterator[logging.Logger]:
    """Strip every root handler for the block, restoring them afterwards.

    Entered inside the test body so that pytest's capture handler, which is
    attached once the test starts, is removed too.
    """
    root = logging.getLogger()
    pil = logging.getLogger("PIL")
    saved, level, pil_level = root.handlers[:], root.level, pil.level
    root.handlers.clear()
    try:
        yield root
    finally:
        root.handlers[:] = saved
        root.setLevel(level)
        pil.setLevel(pil_level)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self) -> None:
        with bare_root() as root:
            setup_logging("DEBUG")
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG

    def test_setup_idempotent(self) -> None:
        with bare_root() as root:
            setup_logging("INFO")
            setup_logging("DEBUG")
            assert len(root.handlers) == 1
            assert root.level == logging.INFO

    def test_invalid_level_defaults_to_info(self) -> None:
        with bare_root() as root:
            setup_logging("NONEXISTENT")
            assert root.level == logging.INFO

    def test_logs_to_stderr_by_default(self) -> None:
        with bare_root() as root:
            setup_logging("INFO")
            assert root.handlers[0].stream is sys.stderr

    def test_pil_debug_is_quieted(self) -> None:
        with bare_root():
            setup_logging("DEBUG")
            assert logging.getLogger("PIL").level == logging.INFO

    def test_existing_handlers_are_kept(self) -> None:
        with bare_root() as root:
            existing = logging.NullHandler()
            root.addHandler(existing)
            setup_logging("DEBUG")
            assert root.handlers == [existing]


class TestLogFormat:
    """Tests for the handler installed by setup_logging."""

    def test_records_reach_stream(self) -> None:
        stream = io.StringIO()
        with bare_root():
            setup_logging("WARNING", stream=stream)
            get_logger("orderform.pipeline").warning("low")
            get_logger("orderform.pipeline").info("hidden")

        output = stream.getvalue()
        assert " - orderform.pipeline - WARNING - low" in output
        assert "hidden" not in output


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("orderform.test")
        assert logger.name == "orderform.test"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        assert get_logger("orderform.same") is get_logger("orderform.same")
