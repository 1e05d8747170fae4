"""
Logging utilities for openthermo.

Console output of the thermochemistry driver is ordinary logging; the
print level of a run (0-3) is mapped onto a logging level here. Warnings
repeated by concurrent workers are dropped by ``LogOnceFilter``.
"""

import logging
import os
import re
import sys

# print level -> root logging level
PRINT_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.INFO,
    3: logging.DEBUG,
}


class LogOnceFilter(logging.Filter):
    """
    Logging filter that prevents duplicate messages from being logged.

    Keeps the set of messages seen so far (timestamps stripped) and
    rejects any record whose message was already emitted. Records below
    ``level`` always pass, so report lines repeated per file are kept.
    """

    def __init__(self, level=logging.WARNING):
        super().__init__()
        self.level = level
        self.logged_messages = set()

    def filter(self, record):
        if record.levelno < self.level:
            return True
        formatted_message = self.format_record(record)
        stripped_message = self.remove_timestamp(formatted_message)

        if stripped_message in self.logged_messages:
            return False
        self.logged_messages.add(stripped_message)
        return True

    @staticmethod
    def format_record(record):
        if record.args:
            return record.msg % record.args
        return str(record.msg)

    @staticmethod
    def remove_timestamp(message):
        return re.sub(
            r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3} - ", "", message
        )


def level_from_print_level(prtlevel):
    """
    Map a print level to a logging level.

    Args:
        prtlevel (int): 0 = silent apart from warnings and errors,
            1 = normal, 2 = adds geometry details, 3 = full per-mode detail.

    Returns:
        int: Logging level.
    """
    prtlevel = max(0, min(3, int(prtlevel)))
    return PRINT_LEVELS[prtlevel]


def create_logger(
    debug=False,
    folder=".",
    logfile=None,
    errfile=None,
    stream=True,
    disable=None,
    prtlevel=1,
    once=True,
):
    """
    Create and configure the root logger.

    Errors are always sent to stderr. If ``stream`` is True, all messages
    at or above the active level are also sent to stdout.

    Args:
        debug (bool, optional): Force DEBUG level regardless of prtlevel.
        folder (str, optional): Directory for log files. Defaults to ".".
        logfile (str, optional): Name of the info/debug log file.
        errfile (str, optional): Name of the warning/error log file.
        stream (bool, optional): Enable console output to stdout.
        disable (list[str], optional): Module names to disable logging for.
        prtlevel (int, optional): Print level 0-3. Defaults to 1.
        once (bool, optional): Attach a ``LogOnceFilter`` to
            every handler. Defaults to True.

    Returns:
        logging.Logger: Configured root logger instance.
    """
    if disable is None:
        disable = []

    for module in disable:
        logging.getLogger(module).disabled = True

    logger = logging.getLogger()

    level = logging.DEBUG if debug else level_from_print_level(prtlevel)
    logger.setLevel(level)
    logger.handlers = []
    logger.filters = []
    formatter = logging.Formatter(
        "{asctime} - {levelname:6s} - [{name}] {message}",
        style="{",
    )

    err_stream_handler = logging.StreamHandler(stream=sys.stderr)
    err_stream_handler.setLevel(logging.ERROR)
    err_stream_handler.setFormatter(formatter)
    logger.addHandler(err_stream_handler)

    if stream:
        stream_handler = logging.StreamHandler(stream=sys.stdout)
        stream_handler.setFormatter(formatter)
        # errors already go to stderr
        stream_handler.addFilter(lambda record: record.levelno < logging.ERROR)
        logger.addHandler(stream_handler)

    if logfile:
        infofile_handler = logging.FileHandler(
            filename=os.path.join(folder, logfile)
        )
        infofile_handler.setLevel(level)
        infofile_handler.setFormatter(formatter)
        logger.addHandler(infofile_handler)

    if errfile:
        errfile_handler = logging.FileHandler(
            filename=os.path.join(folder, errfile)
        )
        errfile_handler.setLevel(logging.WARNING)
        errfile_handler.setFormatter(formatter)
        logger.addHandler(errfile_handler)

    if once:
        # logger filters skip records propagated from child loggers
        for handler in logger.handlers:
            handler.addFilter(LogOnceFilter())

    return logger
