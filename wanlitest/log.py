"""Logging setup shared by the command-line programs
"""

import argparse
import logging
import os
import shlex
import sys
from typing import Optional


# syslog priorities for each logging level, highest level first
SYSLOG_PRIORITIES = (
    (logging.DEBUG, 7),     # KERN_DEBUG
    (logging.INFO, 6),      # KERN_INFO
    (logging.WARNING, 4),   # KERN_WARNING
    (logging.ERROR, 3),     # KERN_ERR
    (logging.CRITICAL, 2),  # KERN_CRIT
)


def calling_program() -> str:
    "Return the name of the program that started us"
    return os.path.basename(sys.argv[0])


def logging_level_to_syslog(level: int) -> int:
    "Converts a logging level into a syslog-compatible priority"
    for threshold, priority in SYSLOG_PRIORITIES:
        if level <= threshold:
            return priority
    return 1  # KERN_ALERT


class SyslogFormatter(logging.Formatter):
    "Formats log messages with a syslog-style <N> priority prefix"

    def __init__(self, fmt: str):
        super().__init__()
        self.base_format = fmt

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        self._style._fmt = f'<{logging_level_to_syslog(record.levelno)}>' + self.base_format
        return super().format(record)


def log_format(args: argparse.Namespace, program: str) -> tuple[int, str]:
    """Return the logging level and format string selected by the arguments."""
    # Escape percents to pass through format()
    program = program.replace('%', '%%')
    if args.debug:
        return logging.DEBUG, program + ' %(levelno)s %(filename)s: %(message)s'
    if args.verbose:
        return logging.INFO, program + ' %(filename)s: %(message)s'
    return logging.WARNING, '%(filename)s: %(message)s'


def setup(args: argparse.Namespace, program: Optional[str] = None):
    """Set up the logging subsystem in a consistent way.

    program defaults to the program invoking this run. If a log file was requested, the same
    messages are also appended to it.
    """
    if not program:
        program = shlex.quote(calling_program())
    level, fmt = log_format(args, program)
    handlers = [logging.StreamHandler()]  # type: list[logging.Handler]
    if getattr(args, 'log_file', None):
        handlers.append(logging.FileHandler(args.log_file, encoding='utf-8'))
    logging.basicConfig(level=level, format=fmt, handlers=handlers)
    if args.level_prefix:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(SyslogFormatter(fmt))
