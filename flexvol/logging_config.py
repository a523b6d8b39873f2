"""
Logging configuration for the FlexVol plugin.

The driver entry point must keep stdout free for the JSON response, so
console output goes to the stream passed in (stderr for the driver).
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

def setup_logging(
    component_name: str = "flexvol",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None
):
    """
    Configure logging for a FlexVol entry point.

    Args:
        component_name: Component identifier (e.g., 'flexvol', 'flexvol-service')
        level: Logging level name or number
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
        stream: Console stream (default stdout)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(stream or sys.stdout)
        ]
    )

    # Add file handler if specified
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            logging.getLogger(component_name).warning(f"Cannot open log file {log_file}: {e}")
        else:
            file_handler.setFormatter(logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S'))
            logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.debug(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")

    return logger
