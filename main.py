from __future__ import annotations

import argparse
import os
import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
import uuid

from PySide6.QtWidgets import QApplication

# Allow running from project root without installing as a package
project_root = Path(__file__).resolve().parent
sys.path.insert(0, str(project_root))  # so 'digggin' is importable

from digggin.data.dataset_paths import data_root, logs_root
from digggin.data.gallery_config import get_gallery_config
from digggin.ui.main_window import MainWindow

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | sid=%(sid)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _SessionFilter(logging.Filter):
    """Inject a stable session id into every record."""
    def __init__(self, sid: str):
        super().__init__()
        self.sid = sid

    def filter(self, record: logging.LogRecord) -> bool:
        record.sid = self.sid
        return True


def _setup_logging(level_name: str) -> str:
    """Rotating file log under <data root>/logs plus stdout; returns the session id."""
    log_dir = logs_root()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "digggin.log"
    level = getattr(logging, level_name, logging.INFO)

    sid = os.getenv("DIGGGIN_SESSION_ID") or (
        datetime.now().strftime("%Y%m%d-%H%M%S") + "-" + uuid.uuid4().hex[:6]
    )
    sess_filter = _SessionFilter(sid)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATEFMT)

    handlers = [
        RotatingFileHandler(str(log_path), maxBytes=1_000_000, backupCount=3, encoding="utf-8"),
        logging.StreamHandler(stream=sys.stdout),
    ]
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for h in handlers:
        h.setFormatter(formatter)
        h.addFilter(sess_filter)
        root_logger.addHandler(h)

    logging.info("Logging initialized. Log file=%s level=%s data_root=%s", log_path, level_name, data_root())
    return sid


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Browse and filter the record collection.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding DiggerDB.csv and gallery_config.yaml (default: DIGGGIN_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("DIGGGIN_LOG_LEVEL", "INFO"),
        help="Root log level (default: DIGGGIN_LOG_LEVEL or INFO)",
    )
    # Qt consumes its own flags (-style, -platform ...)
    args, qt_args = parser.parse_known_args(argv[1:])
    return args, [argv[0]] + qt_args


def main():
    args, qt_argv = _parse_args(sys.argv)
    if args.data_dir is not None:
        os.environ["DIGGGIN_DATA_DIR"] = str(args.data_dir.expanduser().resolve())
    _setup_logging(args.log_level.upper())

    app = QApplication(qt_argv)
    app.setApplicationName("digggin")
    win = MainWindow(config=get_gallery_config())
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
