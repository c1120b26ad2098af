# services/logger_config.py
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from config import Settings, settings


def setup_logging(config: Optional[Settings] = None) -> logging.Logger:
    """
    Sets up logging for the RAG service.
    Logs are written to a rotating file and also printed to the console.
    """
    config = config or settings
    logger = logging.getLogger(config.LOGGER_NAME)

    # Avoid adding duplicate handlers if this function is called multiple times
    if logger.hasHandlers():
        logger.handlers.clear()

    level = logging.getLevelName(config.LOG_LEVEL.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )

    # File Handler: Rotates logs to prevent large files.
    try:
        log_dir = os.path.dirname(config.LOG_FILE_PATH)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            config.LOG_FILE_PATH,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        # Console logging below still works without the file
        logger.warning(f"Error setting up file logger: {e}")

    # Console Handler: For immediate feedback during development.
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.propagate = True

    logger.info("Logging configured successfully.")
    return logger
