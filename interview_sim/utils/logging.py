"""
Logging utilities for the interview simulator.
"""
import os
import logging


def setup_logging(log_file_path: str, level: str = "DEBUG") -> str:
    """
    Set up logging to file with minimal console output.

    Args:
        log_file_path: Full path to the log file
        level: Level name for the file handler

    Returns:
        Path to the log file
    """
    workdir = os.path.dirname(log_file_path)
    if workdir:
        os.makedirs(workdir, exist_ok=True)

    # Clear any existing handlers
    logging.getLogger().handlers.clear()

    file_handler = logging.FileHandler(log_file_path, mode='a', encoding='utf-8')
    file_handler.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s'))

    # Console handler for minimal output only
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Keep HTTP client chatter out of the interview log
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)

    return log_file_path
