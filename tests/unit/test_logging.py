"""
Unit tests for script logging setup.
"""

import io
import logging

import pytest

from business_kb_publisher.cli.logging import setup_logging
from business_kb_publisher.utils.tqdm_logging import TqdmLoggingHandler


@pytest.fixture
def reset_loggers():
    yield
    for name in ("unit_test_script", "business_kb_publisher"):
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


class TestTqdmLoggingHandler:
    def test_writes_formatted_record(self):
        stream = io.StringIO()
        handler = TqdmLoggingHandler(stream=stream)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger = logging.getLogger("tqdm_handler_test")
        logger.addHandler(handler)
        logger.propagate = False
        try:
            logger.warning("Published Q42")
        finally:
            logger.removeHandler(handler)

        assert stream.getvalue() == "WARNING Published Q42\n"


class TestSetupLogging:
    def test_execute_mode_writes_log_file(self, tmp_path, reset_loggers):
        logger = setup_logging(
            "unit_test_script", execute=True, log_dir=tmp_path, tqdm_compatible=False
        )
        logger.info("publishing 3 businesses")
        logging.getLogger("business_kb_publisher.publishing.client").debug("login ok")

        log_files = list(tmp_path.glob("unit_test_script_*.log"))
        assert len(log_files) == 1
        text = log_files[0].read_text(encoding="utf-8")
        assert "publishing 3 businesses" in text
        # Package debug output goes to the file even though the console shows warnings only
        assert "login ok" in text

    def test_dry_run_has_no_log_file(self, tmp_path, reset_loggers):
        setup_logging("unit_test_script", execute=False, log_dir=tmp_path)
        assert list(tmp_path.iterdir()) == []
