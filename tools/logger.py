import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

from tools.config import LoggingConfig

LOG_FORMAT = '%(asctime)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class Logger:
    _configured = False

    def __init__(self):
        # Використовуємо root logger замість __name__
        self.logger = logging.getLogger()

        if not Logger._configured:
            self._configure()
            Logger._configured = True

    def _configure(self):
        config = LoggingConfig()

        # Створюємо handler з кольоровим форматуванням для консолі
        console_handler = colorlog.StreamHandler()
        console_handler.setFormatter(
            colorlog.ColoredFormatter(
                '%(log_color)s' + LOG_FORMAT,
                datefmt=DATE_FORMAT,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            )
        )

        self.logger.handlers = []  # Очищаємо попередні handlers
        self.logger.addHandler(console_handler)

        # Файловий handler з ротацією логів
        try:
            log_dir = Path(config.LOG_DIR)
            log_dir.mkdir(parents=True, exist_ok=True)

            rotating_handler = RotatingFileHandler(
                log_dir / config.LOG_FILE,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            rotating_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(rotating_handler)
        except OSError as e:
            # Якщо не вдалося створити файловий handler, використовуємо тільки консольний
            self.logger.warning(f"Could not create file logger: {e}")

        self.logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    def debug(self, message):
        self.logger.debug(message, stacklevel=2)

    def info(self, message):
        self.logger.info(message, stacklevel=2)

    def warning(self, message):
        self.logger.warning(message, stacklevel=2)

    def error(self, message):
        self.logger.error(message, stacklevel=2)
