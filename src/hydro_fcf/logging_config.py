from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", report_dir: str | Path = "Report") -> Path | None:
    """Configure root logging. At DEBUG, also write a timestamped log file.

    Returns the debug log path when one was created.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    logging.getLogger().setLevel(lvl)

    if str(level).upper() != "DEBUG":
        return None
    try:
        out_dir = Path(report_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = out_dir / f"fcf_debug_{ts}.txt"
        fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    except OSError as exc:
        # Keep console logging if the report directory is not writable
        logging.getLogger(__name__).warning("debug log file disabled: %s", exc)
        return None
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(fh)
    logging.getLogger(__name__).debug("writing DEBUG logs to %s", log_path)
    return log_path


__all__ = ["setup_logging", "LOG_FORMAT"]
