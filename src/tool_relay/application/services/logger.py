"""Root logger setup for the tool-relay command line.

stdout belongs to command output (the streamed answer, tool listings), so
console logging always goes to stderr.
"""

import logging
import os
import sys
import typing

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d %(message)s"
DEFAULT_LOG_FILENAME = "logs/tool-relay.log"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_LIBRARIES_LIST = ["asyncio", "httpx", "httpcore"]
DEFAULT_LOG_LIBRARIES_LEVEL = "WARN"


def configure_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    console: bool = True,
    file: bool = False,
    filename: str = DEFAULT_LOG_FILENAME,
    lib_list: typing.List = DEFAULT_LOG_LIBRARIES_LIST,
    lib_level: str = DEFAULT_LOG_LIBRARIES_LEVEL,
) -> None:
    """Replace the root logger's handlers with a stderr and/or file handler.

    Args:
        log_level (str, optional): Level of the root logger and its handlers, case-insensitive.
        log_format (str, optional): Record format shared by every handler.
        console (bool, optional): Log to stderr. Defaults to True.
        file (bool, optional): Also log to `filename`. Defaults to False.
        filename (str, optional): Log file path; its directory is created when missing.
        lib_list (typing.List, optional): Loggers of chatty libraries to hold at `lib_level`.
        lib_level (str, optional): Level for the `lib_list` loggers, so DEBUG runs show tool-relay's own records.
    """
    level = log_level.upper()
    formatter = logging.Formatter(log_format)

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if file:
        handlers.append(_open_log_file(filename))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for lib_name in lib_list:
        logging.getLogger(lib_name).setLevel(lib_level.upper())


def _open_log_file(filename: str) -> logging.FileHandler:
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return logging.FileHandler(filename, encoding="utf-8")
