import logging
import sys
from typing import Any, Dict

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(cfg: Dict[str, Any]) -> logging.Logger:
    """Configure the root logger from the `logging` section of the config."""
    log_cfg = cfg.get('logging', {})
    level = getattr(logging, str(log_cfg.get('level', 'INFO')).upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []  # Clear existing

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    return root_logger
