import logging
import unittest

import structlog

from noteshub.core.logging import QUIET_LOGGERS, setup_logging


class TestSetupLogging(unittest.TestCase):

    def tearDown(self):
        setup_logging()

    def test_single_stdout_handler_with_structlog_formatter(self):
        setup_logging("INFO", "production")
        root = logging.getLogger()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        self.assertEqual(root.level, logging.INFO)

    def test_third_party_loggers_quiet_unless_debug(self):
        setup_logging("INFO", "development")
        self.assertTrue(all(logging.getLogger(n).level == logging.WARNING for n in QUIET_LOGGERS))

        setup_logging("DEBUG", "development")
        self.assertTrue(all(logging.getLogger(n).level == logging.DEBUG for n in QUIET_LOGGERS))


if __name__ == "__main__":
    unittest.main()
