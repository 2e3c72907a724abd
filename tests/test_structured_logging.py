"""
Tests for JSON log formatting and logging setup.
"""

import json
import logging
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

from valet_cli.structured_logging import JSONFormatter, is_json_logging_enabled, setup_logging


class TestJSONFormatter(unittest.TestCase):
    """Test JSON log formatter."""

    def setUp(self):
        self.formatter = JSONFormatter()

    def _record(self, msg="Secured blog.dev", exc_info=None):
        return logging.LogRecord(
            name="valet.certificates",
            level=logging.INFO,
            pathname="/path/to/certificates.py",
            lineno=42,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )

    def test_basic_log_formatting(self):
        data = json.loads(self.formatter.format(self._record()))

        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "valet.certificates")
        self.assertEqual(data["message"], "Secured blog.dev")
        self.assertEqual(data["file"], "certificates.py:42")
        self.assertIn("timestamp", data)

    def test_extra_fields_included(self):
        record = self._record()
        record.host = "blog.dev"
        record._private = "hidden"

        data = json.loads(self.formatter.format(record))

        self.assertEqual(data["host"], "blog.dev")
        self.assertNotIn("_private", data)

    def test_log_with_exception(self):
        try:
            raise ValueError("openssl missing")
        except ValueError:
            record = self._record(msg="Failed", exc_info=sys.exc_info())

        data = json.loads(self.formatter.format(record))

        self.assertIn("ValueError: openssl missing", data["exception"])


class TestSetupLogging(unittest.TestCase):
    """Test logging configuration from the environment."""

    def tearDown(self):
        logging.basicConfig(level=logging.WARNING, force=True)

    @patch.dict(os.environ, {"VALET_LOG_FORMAT": "JSON"})
    def test_json_enabled(self):
        self.assertTrue(is_json_logging_enabled())

    @patch.dict(os.environ, {}, clear=True)
    def test_text_by_default(self):
        self.assertFalse(is_json_logging_enabled())

    @patch.dict(os.environ, {"VALET_LOG_LEVEL": "info", "VALET_LOG_FORMAT": "json"})
    def test_level_and_formatter_from_env(self):
        setup_logging()

        root = logging.getLogger()
        self.assertEqual(root.level, logging.INFO)
        self.assertIsInstance(root.handlers[0].formatter, JSONFormatter)

    def test_log_file_handler(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = os.path.join(temp_dir, "valet.log")
            setup_logging(level="DEBUG", log_file=log_file)
            logging.getLogger("valet.test").debug("written to file")
            for handler in logging.getLogger().handlers:
                handler.flush()

            with open(log_file, encoding="utf-8") as f:
                self.assertIn("written to file", f.read())

            for handler in logging.getLogger().handlers:
                handler.close()


if __name__ == "__main__":
    unittest.main()
