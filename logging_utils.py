# logging_utils.py
"""
Logging setup for the bot: rotating file log plus console output
"""

import logging
import os
import platform
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
SIMPLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class LoggingSettings:
    """Logging options pulled from the config module"""

    def __init__(self, config_module=None):
        self.config = config_module

        self.log_level = self._get('LOG_LEVEL', logging.INFO)
        self.max_bytes = self._get('MAX_LOG_SIZE', 5*1024*1024)  # 5MB
        self.backup_count = self._get('LOG_BACKUP_COUNT', 3)
        self.logs_dir = self._get('LOGS_DIR', 'logs')
        self.log_file = self._get('LOG_FILE', 'bot.log')
        self.enable_file_logging = self._get('ENABLE_FILE_LOGGING', True)

        # Third-party library log levels
        self.third_party_levels = {
            'discord': self._get('DISCORD_LOG_LEVEL', logging.WARNING),
            'discord.http': self._get('DISCORD_HTTP_LOG_LEVEL', logging.WARNING),
            'aiohttp': self._get('AIOHTTP_LOG_LEVEL', logging.WARNING),
        }

    def _get(self, key: str, default):
        if self.config and hasattr(self.config, key):
            return getattr(self.config, key)
        return default


def _file_handler(settings: LoggingSettings) -> Optional[RotatingFileHandler]:
    try:
        os.makedirs(settings.logs_dir, exist_ok=True)
        handler = RotatingFileHandler(
            os.path.join(settings.logs_dir, settings.log_file),
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
            encoding='utf-8'
        )
    except OSError as e:
        print(f"Warning: Could not setup file logging: {e}")
        return None

    handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(config_module=None) -> logging.Logger:
    """Configure the root logger once and return the bot's main logger"""
    settings = LoggingSettings(config_module)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    if settings.enable_file_logging:
        file_handler = _file_handler(settings)
        if file_handler:
            root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    console_handler.setLevel(settings.log_level)
    root_logger.addHandler(console_handler)

    for logger_name, level in settings.third_party_levels.items():
        logging.getLogger(logger_name).setLevel(level)

    return logging.getLogger("bot")


def log_system_info(logger: logging.Logger, additional_info: dict = None):
    """Log a startup banner with interpreter and platform details"""
    logger.info("=" * 50)
    logger.info("SYSTEM INFORMATION")
    logger.info("=" * 50)
    logger.info(f"Python Version: {sys.version}")
    logger.info(f"Platform: {platform.platform()}")

    if additional_info:
        logger.info("-" * 30)
        for key, value in additional_info.items():
            logger.info(f"{key}: {value}")

    logger.info("=" * 50)
