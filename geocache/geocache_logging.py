"""This provides logging functionality for geocache.

It is modeled on the default `logging approach that comes with Python <https://docs.python.org/library/logging.html>`_.
Each module obtains its own logger via ``create_module_logger``; all of these
are children of a single root logger named ``GEOCACHE``, so a host can switch
them on or off together.

Hosts typically only need ``log_to_stderr`` to see what the world is doing.
"""

import inspect
import logging
from functools import wraps
from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING

__all__ = [
    "CRITICAL",
    "DEBUG",
    "ERROR",
    "INFO",
    "WARNING",
    "create_module_logger",
    "function_logger",
    "get_module_logger",
    "get_rootlogger",
    "log_to_stderr",
    "method_logger",
]

LOGGER_NAME = "GEOCACHE"

_module_loggers: dict[str, logging.Logger] = {}


def create_module_logger(name: str | None = None) -> logging.Logger:
    """Create a module logger.

    Args:
        name: name of the module; inferred from the calling module if None

    """
    if name is None:
        frm = inspect.stack()[1]
        mod = inspect.getmodule(frm[0])
        name = mod.__name__
    logger = logging.getLogger(f"{LOGGER_NAME}.{name}")

    _module_loggers[name] = logger
    return logger


def get_module_logger(name: str) -> logging.Logger:
    """Get or create a module logger.

    Args:
        name: name of the module

    """
    try:
        logger = _module_loggers[name]
    except KeyError:
        logger = create_module_logger(name)

    return logger


def get_rootlogger() -> logging.Logger:
    """Return the root logger shared by all geocache modules."""
    return logging.getLogger(LOGGER_NAME)


def method_logger(name: str):
    """Decorator for adding debug logging to a method.

    Args:
        name: the name of the module in which the method resides

    """
    logger = get_module_logger(name)
    classname = inspect.getouterframes(inspect.currentframe())[1][3]

    def real_decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            # the first argument is self, which we do not log
            logger.debug(
                f"calling {classname}.{func.__name__} with {args[1::]} and {kwargs}"
            )
            return func(*args, **kwargs)

        return wrapper

    return real_decorator


def function_logger(name: str):
    """Decorator for adding debug logging to a module level function.

    Args:
        name: the name of the module in which the function resides

    """
    logger = get_module_logger(name)

    def real_decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger.debug(f"calling {func.__name__} with {args} and {kwargs}")
            return func(*args, **kwargs)

        return wrapper

    return real_decorator


def log_to_stderr(level: int = DEBUG, pass_root_logger_level: bool = False):
    """Add a stream handler writing geocache log records to stderr.

    Args:
        level: the logging level to set on the geocache root logger
        pass_root_logger_level: if True, also set the level of python's root logger

    """
    formatter = logging.Formatter(
        "[%(levelname)s] [%(asctime)s] [%(name)s] %(message)s"
    )
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = get_rootlogger()
    logger.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False

    if pass_root_logger_level:
        logging.getLogger().setLevel(level)

    return logger
