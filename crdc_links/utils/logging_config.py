"""Logger configuration for the mapping command-line entry points."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_dir: Optional[Path] = None, *, verbose: bool = False) -> None:
    """Attach console and optional file handlers to the root logger.

    With ``log_dir`` set, ``error.log`` receives ERROR and above and
    ``combined.log`` receives every record the root logger accepts.
    """

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(FILE_FORMAT)

        error_handler = logging.FileHandler(log_dir / "error.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

        combined_handler = logging.FileHandler(log_dir / "combined.log", encoding="utf-8")
        combined_handler.setFormatter(file_formatter)
        root_logger.addHandler(combined_handler)

    # requests/urllib3 connection chatter only matters when debugging.
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)


__all__ = ["setup_logging"]
