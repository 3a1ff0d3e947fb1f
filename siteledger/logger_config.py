import logging
import os

# Logger name
LOG_NAME = os.getenv("APP_LOGGER_NAME", "site_ledger")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

# Create logger
logger = logging.getLogger(LOG_NAME)
logger.setLevel(LOG_LEVEL)

# Log format with ISO-like timestamp including milliseconds
LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(filename)s - %(funcName)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Formatter
formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

# Console handler
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Optional rotating file handler, off unless LOG_TO_FILE is set
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() in ("1", "true", "yes")

if LOG_TO_FILE:
    from logging.handlers import RotatingFileHandler

    log_file_path = os.getenv("LOG_FILE_PATH", os.path.join("logs", "app.log"))
    os.makedirs(os.path.dirname(log_file_path) or ".", exist_ok=True)

    file_handler = RotatingFileHandler(log_file_path, maxBytes=5 * 1024 * 1024, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

# Avoid duplicate logs when imported in multiple modules
logger.propagate = False
