import logging

_LOGGER_NAME = "astrofactory"


def _get_logger() -> logging.Logger:

    logger = logging.getLogger(_LOGGER_NAME)

    # Attach a compact handler only once
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("[%(levelname)s] %(name)s :: %(message)s")
        )
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


log = _get_logger()
