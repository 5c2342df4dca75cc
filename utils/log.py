import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_loggers = {}
_level = logging.DEBUG


def get_logger(name):
    """
    Module-level logger writing to stderr, one handler per logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level)
    if not logger.hasHandlers():
        ch = logging.StreamHandler()
        ch.setLevel(logging.DEBUG)
        formatter = logging.Formatter(LOG_FORMAT)
        ch.setFormatter(formatter)
        logger.addHandler(ch)
    _loggers[name] = logger
    return logger


def set_level(level):
    """
    Apply a level (name or number) to every logger handed out so far.
    """
    global _level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    _level = level
    for logger in _loggers.values():
        logger.setLevel(level)
