"""Tests for file-based debug logging."""

from __future__ import annotations

import logging
from pathlib import Path

from live_scribe.l4_frameworks_and_drivers.logging_setup import setup_file_logging


def test_writes_scribe_logs_to_session_dir(tmp_path: Path):
    log_path = setup_file_logging(tmp_path / 'session')
    logger = logging.getLogger('scribe')
    try:
        logging.getLogger('scribe.engine').debug('engine debug message')
        for handler in logger.handlers:
            handler.flush()
        assert log_path == tmp_path / 'session' / 'scribe_debug.log'
        assert 'engine debug message' in log_path.read_text(encoding='utf-8')
    finally:
        for handler in list(logger.handlers):
            if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path:
                logger.removeHandler(handler)
                handler.close()
