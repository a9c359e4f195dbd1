"""
Logging setup for the bot
"""

import os
import logging
import logging.handlers

NOISY_LOGGERS = ("httpx", "httpcore", "telegram", "apscheduler", "pymongo")


def setup_logging(
    log_level: str = "INFO",
    log_dir: str = "logs",
    app_name: str = "stats_bot",
    max_log_size: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5
) -> None:
    """Configure console and rotating file logging on the root logger"""

    os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    general_log_file = os.path.join(log_dir, f"{app_name}.log")
    general_handler = logging.handlers.RotatingFileHandler(
        general_log_file,
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    general_handler.setLevel(level)
    general_handler.setFormatter(formatter)
    root_logger.addHandler(general_handler)

    # data-source failures end up here with full tracebacks
    error_log_file = os.path.join(log_dir, f"{app_name}_errors.log")
    error_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root_logger.addHandler(error_handler)

    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(f"Logging configured: level={log_level}, directory={log_dir}")
