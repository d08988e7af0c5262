from __future__ import annotations

import logging
import tempfile
import unittest
from logging.handlers import RotatingFileHandler
from pathlib import Path

from consult_intake.logging_utils import LOG_FILE_NAME, setup_logging


class LoggingSetupTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        saved_level = root.level

        def _restore() -> None:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

        self.addCleanup(_restore)

    def test_file_handler_is_size_capped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = setup_logging("info", tmp, max_bytes=2048, backup_count=3)
            handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
            self.assertEqual(len(handlers), 1)
            self.assertEqual(handlers[0].maxBytes, 2048)
            self.assertEqual(handlers[0].backupCount, 3)
            self.assertEqual(log_file, Path(tmp) / LOG_FILE_NAME)

            logger = logging.getLogger("consult_intake.test")
            for i in range(200):
                logger.info("submission stage=persisted row=%s padding=%s", i, "x" * 40)

            self.assertTrue((Path(tmp) / f"{LOG_FILE_NAME}.1").exists())
            self.assertLessEqual(log_file.stat().st_size, 2048)
            self.assertFalse((Path(tmp) / f"{LOG_FILE_NAME}.4").exists())
            handlers[0].close()

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            setup_logging("INFO", tmp)
            setup_logging("DEBUG", tmp)
            root = logging.getLogger()
            self.assertEqual(len(root.handlers), 2)
            self.assertEqual(root.level, logging.DEBUG)
            for handler in root.handlers:
                handler.close()


if __name__ == "__main__":
    unittest.main()
