import logging

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Logger:
    """Configures the root logging handler once and hands out named loggers."""

    def __init__(
        self, log_format: str = DEFAULT_LOG_FORMAT, log_level: str = "INFO"
    ) -> None:
        self.log_format = log_format or DEFAULT_LOG_FORMAT
        self.log_level = logging.getLevelName((log_level or "INFO").upper())
        if not isinstance(self.log_level, int):
            self.log_level = logging.INFO

        logging.basicConfig(format=self.log_format, level=self.log_level)

    def get_logger(self, name: str) -> logging.Logger:
        logger = logging.getLogger(name)
        logger.setLevel(self.log_level)
        return logger
