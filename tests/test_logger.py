import unittest
import logging
import sys
from unittest.mock import patch

from xlfsync import logger as xlf_logger


class TestLogger(unittest.TestCase):
    def test_handlers(self):
        log = xlf_logger.get_logger("xlfsync.tests.handlers")

        levels = {type(h): h.level for h in log.handlers}
        self.assertEqual(levels[logging.FileHandler], logging.DEBUG)
        self.assertEqual(levels[logging.StreamHandler], logging.INFO)
        file_handler = next(h for h in log.handlers if isinstance(h, logging.FileHandler))
        self.assertEqual(file_handler.baseFilename, xlf_logger.LOG_FILE)

    def test_handlers_attached_once(self):
        first = xlf_logger.get_logger("xlfsync.tests.once")
        second = xlf_logger.get_logger("xlfsync.tests.once")
        self.assertIs(first, second)
        self.assertEqual(len(second.handlers), 2)


class TestExceptionHook(unittest.TestCase):
    def setUp(self):
        self.saved_hook = sys.excepthook

    def tearDown(self):
        sys.excepthook = self.saved_hook

    def test_unhandled_error_is_logged(self):
        xlf_logger.setup_exception_hook()
        with patch.object(sys, "__excepthook__") as default_hook:
            with self.assertLogs("xlfsync.crash", level="CRITICAL"):
                sys.excepthook(RuntimeError, RuntimeError("boom"), None)
        default_hook.assert_called_once()

    def test_keyboard_interrupt_is_not_logged(self):
        xlf_logger.setup_exception_hook()
        with patch.object(sys, "__excepthook__") as default_hook, \
                patch.object(logging.getLogger("xlfsync.crash"), "critical") as critical:
            sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)
        critical.assert_not_called()
        default_hook.assert_called_once()


if __name__ == "__main__":
    unittest.main()
