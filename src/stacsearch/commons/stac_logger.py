"""StacLogger module."""

import logging

from stacsearch.configs import (
    PROJECT_NAME,
    LOG_FILE_PATH,
    LOG_STREAM_LEVEL,
    LOG_FILE_LEVEL,
)


class StacLogger(object):
    """Process-wide logger.

    Calling ``StacLogger()`` always returns the same configured
    ``logging.Logger``.
    """

    _instance = None

    @classmethod
    def _build_logger(cls):
        # Critical + 1 will disable the handler.
        stream_level = getattr(logging, LOG_STREAM_LEVEL, logging.CRITICAL + 1)
        file_level = getattr(logging, LOG_FILE_LEVEL, logging.CRITICAL + 1)

        logger = logging.getLogger(PROJECT_NAME)
        logger.setLevel(min(stream_level, file_level))
        logger.propagate = False

        base_format = f"[%(name)s][%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"

        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(stream_level)
        stream_handler.setFormatter(logging.Formatter(base_format))
        logger.addHandler(stream_handler)

        if file_level <= logging.CRITICAL:
            file_handler = logging.FileHandler(LOG_FILE_PATH, delay=True, mode="a+")
            file_handler.setLevel(file_level)
            file_handler.setFormatter(logging.Formatter(base_format))
            logger.addHandler(file_handler)

        logger.debug(f"{PROJECT_NAME}'s base log is set up!")
        return logger

    def __new__(cls, *args, **kwargs) -> logging.Logger:
        """Return the shared logger, building it on first use."""
        if not cls._instance:
            cls._instance = super(StacLogger, cls).__new__(cls)
            cls._instance._logger = StacLogger._build_logger()
        return cls._instance._logger
