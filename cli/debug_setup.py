"""Logging setup for CLI"""

import logging
import os

import settings


def setup_logging(debug: bool = False, log_file: str = settings.DEBUG_LOG_FILE) -> None:
    """
    Configure the root logger

    With debug enabled, everything at DEBUG goes to stderr and is appended
    to the debug log file. Otherwise only LOG_LEVEL and above reach stderr.

    Args:
        debug: Whether debug mode is enabled
        log_file: Debug log file path
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if debug:
        root_logger.setLevel(logging.DEBUG)
        console_handler.setLevel(logging.DEBUG)

        log_path = os.path.abspath(log_file)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        # Request-level chatter from the HTTP stack is rarely useful
        logging.getLogger("httpcore").setLevel(logging.INFO)

        logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_path}")
    else:
        level = logging.getLevelName(str(settings.LOG_LEVEL).upper())
        if not isinstance(level, int):
            level = logging.WARNING
        root_logger.setLevel(level)
        console_handler.setLevel(level)
