"""Logging setup for the pagecritic command line.

``configure_logging()`` is safe to call more than once; it only installs
handlers on a root logger that has none.
"""

import logging
import os
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "pagecritic.log"

# HTTP and SDK libraries are chatty at DEBUG
NOISY_LOGGERS = ("urllib3", "openai", "httpx", "httpcore")


def configure_logging(level: Union[int, str] = logging.INFO, log_dir: str = "logs") -> None:
    """
    Send records to stderr and, when ``log_dir`` is writable, to ``log_dir/pagecritic.log``.

    Args:
        level: Root level, as a logging constant or a name such as "DEBUG"
        log_dir: Directory for the log file
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, LOG_FILENAME), mode="a")
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
