"""Logging setup for the engine and its HTTP host."""

import logging

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# held at WARNING unless the engine itself runs at DEBUG
_NOISY_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(level=numeric, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("lifequest").setLevel(numeric)

    noisy = numeric if numeric <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
