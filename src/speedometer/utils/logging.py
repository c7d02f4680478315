from __future__ import annotations

import logging
from typing import Dict, Optional


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    logger_levels: Optional[Dict[str, str]] = None,
) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=handlers,
    )
    # Per-fix DEBUG output from the pipeline is noisy; allow narrowing it per logger.
    for name, lvl in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(getattr(logging, str(lvl).upper(), logging.INFO))
